"""Lottery events and their ordered round plans."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import dt_iso
from .base import Base

if TYPE_CHECKING:
    from ..allocation.ledger import RoundLedger
    from .participant import Participant
    from .winner import WinnerRecord

STATUS_IDLE = "idle"
STATUS_DRAWING = "drawing"
STATUS_REVEALING = "revealing"


class LotteryEvent(Base):
    """A single run of the lottery: one roster, one round plan."""

    __tablename__ = "lottery_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Display name of the event; no two events share one."""

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=STATUS_IDLE
    )
    """Round progression state: ``"idle"``, ``"drawing"`` or ``"revealing"``."""

    completed_rounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Number of rounds fully drawn and revealed. Never decreases during a run."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    participants: Mapped[list["Participant"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Participant.id",
    )
    """Roster of the event."""

    rounds: Mapped[list["DrawRound"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="DrawRound.position",
    )
    """Round plan, in draw order."""

    winners: Mapped[list["WinnerRecord"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="WinnerRecord.id",
    )
    """Winner history in recording order."""

    __table_args__ = (UniqueConstraint("name", name="lottery_events_name_key"),)

    def __init__(
        self,
        *,
        name: str,
        status: str = STATUS_IDLE,
        completed_rounds: int = 0,
        participants: Optional[list["Participant"]] = None,
        rounds: Optional[list["DrawRound"]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        self.name = name
        self.status = status
        self.completed_rounds = completed_rounds
        if participants is not None:
            self.participants = participants
        if rounds is not None:
            self.rounds = rounds
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<LotteryEvent(id={self.id}, name='{self.name}', status='{self.status}', "
            f"completed_rounds={self.completed_rounds})>"
        )

    def ledger(self) -> "RoundLedger":
        """Wrap :attr:`rounds` in a ledger that mutates the rows in place."""
        from ..allocation.ledger import RoundLedger

        return RoundLedger(self.rounds)

    def current_round(self) -> Optional["DrawRound"]:
        return self.ledger().current_round(self.completed_rounds)

    @property
    def is_completed(self) -> bool:
        return self.completed_rounds >= len(self.rounds)

    def unclaimed_participants(self) -> list["Participant"]:
        return [p for p in self.participants if not p.has_won]

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "completed_rounds": self.completed_rounds,
            "total_rounds": len(self.rounds),
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }

    @classmethod
    def get_by_name(cls, session: Session, name: str) -> Optional["LotteryEvent"]:
        """Return the event called ``name`` if it exists."""

        return session.scalar(select(cls).where(cls.name == name))


class DrawRound(Base):
    """One entry of an event's round plan."""

    __tablename__ = "draw_rounds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    event_id: Mapped[int] = mapped_column(
        ForeignKey("lottery_events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False)
    """Zero-based index of the round in the plan."""

    tier: Mapped[int] = mapped_column(Integer, nullable=False)
    """Prize tier awarded; several rounds may share one tier."""

    label: Mapped[str] = mapped_column(String(255), nullable=False)
    """Display name of the prize."""

    quota: Mapped[int] = mapped_column(Integer, nullable=False)
    """Winners originally allocated to the round. Fixed after creation."""

    remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    """Winners still to be drawn; floored at zero."""

    event: Mapped["LotteryEvent"] = relationship(back_populates="rounds")

    __table_args__ = (
        UniqueConstraint("event_id", "position", name="uq_draw_round_position"),
    )

    def __init__(
        self,
        *,
        tier: int,
        label: str,
        quota: int,
        position: int = 0,
        remaining: Optional[int] = None,
        event: Optional["LotteryEvent"] = None,
        event_id: Optional[int] = None,
    ) -> None:
        self.tier = tier
        self.label = label
        self.quota = quota
        self.position = position
        self.remaining = quota if remaining is None else remaining
        if event is not None:
            self.event = event
        if event_id is not None:
            self.event_id = event_id

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<DrawRound(id={self.id}, position={self.position}, tier={self.tier}, "
            f"label='{self.label}', quota={self.quota}, remaining={self.remaining})>"
        )

    def to_json(self) -> dict:
        return {
            "position": self.position,
            "tier": self.tier,
            "label": self.label,
            "quota": self.quota,
            "remaining": self.remaining,
        }


__all__ = [
    "DrawRound",
    "LotteryEvent",
    "STATUS_DRAWING",
    "STATUS_IDLE",
    "STATUS_REVEALING",
]
