"""Roster entries taking part in a lottery event."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
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
    from .event import LotteryEvent
    from .winner import WinnerRecord


class Participant(Base):
    """A person who may win at most one prize during an event."""

    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    event_id: Mapped[int] = mapped_column(
        ForeignKey("lottery_events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    """Event whose roster this participant belongs to."""

    external_id: Mapped[str] = mapped_column(String(64), nullable=False)
    """Opaque identifier supplied by the roster, unique within the event."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Display label. Not required to be unique."""

    min_tier: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Floor bound: only tiers numerically ``<= min_tier`` may be won."""

    max_tier: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Ceiling bound: only tiers numerically ``>= max_tier`` may be won."""

    has_won: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Set once the participant is drawn; cleared only by a pool reset."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    event: Mapped["LotteryEvent"] = relationship(back_populates="participants")
    winner_records: Mapped[list["WinnerRecord"]] = relationship(
        back_populates="participant"
    )

    __table_args__ = (
        UniqueConstraint("event_id", "external_id", name="uq_participant_per_event"),
    )

    def __init__(
        self,
        *,
        external_id: str,
        name: str,
        min_tier: Optional[int] = None,
        max_tier: Optional[int] = None,
        has_won: bool = False,
        event: Optional["LotteryEvent"] = None,
        event_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.external_id = external_id
        self.name = name
        self.min_tier = min_tier
        self.max_tier = max_tier
        self.has_won = has_won
        if event is not None:
            self.event = event
        if event_id is not None:
            self.event_id = event_id
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<Participant(id={self.id}, external_id='{self.external_id}', "
            f"name='{self.name}', min_tier={self.min_tier}, "
            f"max_tier={self.max_tier}, has_won={self.has_won})>"
        )

    @property
    def is_restricted(self) -> bool:
        return self.min_tier is not None or self.max_tier is not None

    def is_eligible_for(self, tier: int) -> bool:
        """Shortcut for :func:`tierdraw.allocation.eligibility.is_eligible`."""
        from ..allocation.eligibility import is_eligible

        return is_eligible(self, tier)

    def mark_won(self) -> None:
        """Flag the participant as a winner. Calling it twice is harmless."""
        self.has_won = True

    def to_json(self) -> dict:
        return {
            "id": self.external_id,
            "name": self.name,
            "min_tier": self.min_tier,
            "max_tier": self.max_tier,
            "has_won": self.has_won,
            "created_at": dt_iso(self.created_at),
        }

    @classmethod
    def get_by_external_id(
        cls, session: Session, event_id: int, external_id: str
    ) -> Optional["Participant"]:
        """Return the participant of ``event_id`` with ``external_id`` if any."""

        return session.scalar(
            select(cls).where(cls.event_id == event_id, cls.external_id == external_id)
        )


__all__ = ["Participant"]
