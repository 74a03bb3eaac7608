"""Winner history recorded as rounds are committed."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import dt_iso
from .base import Base

if TYPE_CHECKING:
    from .event import LotteryEvent
    from .participant import Participant


class WinnerRecord(Base):
    """Immutable record of a participant winning a prize."""

    __tablename__ = "winner_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    event_id: Mapped[int] = mapped_column(
        ForeignKey("lottery_events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    participant_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("participants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    """Winning participant; the denormalized columns survive its deletion."""

    participant_external_id: Mapped[str] = mapped_column(String(64), nullable=False)
    """Roster identifier of the winner, copied at draw time."""

    participant_name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Display name of the winner, copied at draw time."""

    round_position: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Plan index of the round the winner was drawn in."""

    tier: Mapped[int] = mapped_column(Integer, nullable=False)
    """Tier of the prize awarded."""

    prize_label: Mapped[str] = mapped_column(String(255), nullable=False)
    """Label of the prize awarded."""

    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Shared by every winner of the same physical round."""

    event: Mapped["LotteryEvent"] = relationship(back_populates="winners")
    participant: Mapped[Optional["Participant"]] = relationship(
        back_populates="winner_records"
    )

    __table_args__ = (
        Index("ix_winner_records_event_drawn_at", "event_id", "drawn_at"),
    )

    def __init__(
        self,
        *,
        tier: int,
        prize_label: str,
        participant: Optional["Participant"] = None,
        participant_external_id: Optional[str] = None,
        participant_name: Optional[str] = None,
        round_position: Optional[int] = None,
        drawn_at: Optional[datetime] = None,
        event: Optional["LotteryEvent"] = None,
        event_id: Optional[int] = None,
    ) -> None:
        if participant is not None:
            self.participant = participant
            participant_external_id = participant_external_id or participant.external_id
            participant_name = participant_name or participant.name
        if participant_external_id is None or participant_name is None:
            raise ValueError(
                "WinnerRecord needs a participant or an explicit id and name"
            )
        self.participant_external_id = participant_external_id
        self.participant_name = participant_name
        self.tier = tier
        self.prize_label = prize_label
        self.round_position = round_position
        if drawn_at is not None:
            self.drawn_at = drawn_at
        if event is not None:
            self.event = event
        if event_id is not None:
            self.event_id = event_id

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<WinnerRecord(id={self.id}, participant='{self.participant_external_id}', "
            f"tier={self.tier}, prize_label='{self.prize_label}', "
            f"drawn_at={self.drawn_at})>"
        )

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "participant_id": self.participant_external_id,
            "participant_name": self.participant_name,
            "tier": self.tier,
            "prize_label": self.prize_label,
            "round_position": self.round_position,
            "drawn_at": dt_iso(self.drawn_at),
        }

    @classmethod
    def for_event(cls, session: Session, event_id: int) -> list["WinnerRecord"]:
        """Return the winner history of ``event_id`` in recording order."""

        stmt = select(cls).where(cls.event_id == event_id).order_by(cls.id)
        return list(session.scalars(stmt))


__all__ = ["WinnerRecord"]
