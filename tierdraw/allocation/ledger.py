"""Bookkeeping over an event's ordered round plan."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

if TYPE_CHECKING:
    from ..models.event import DrawRound
    from ..models.winner import WinnerRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FutureRound:
    """Tier and quota of a round that has not been drawn yet."""

    tier: int
    quota: int


class RoundLedger:
    """Remaining-count ledger for a fixed sequence of draw rounds.

    The ledger does not copy the rounds: ``remaining`` is mutated in place on
    the supplied objects, so callers holding :class:`DrawRound` rows see the
    updates and persist them with their session.
    """

    def __init__(self, rounds: Sequence["DrawRound"]) -> None:
        self._rounds = list(rounds)

    def __len__(self) -> int:
        return len(self._rounds)

    def __iter__(self):
        return iter(self._rounds)

    def __getitem__(self, index: int) -> "DrawRound":
        return self._rounds[index]

    @property
    def rounds(self) -> list["DrawRound"]:
        """Copy of the rounds in plan order."""
        return list(self._rounds)

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self._rounds)

    def current_round(self, completed_count: int) -> Optional["DrawRound"]:
        """Return the round to draw after ``completed_count`` rounds, or ``None``."""
        if not self._in_range(completed_count):
            return None
        return self._rounds[completed_count]

    def total_rounds(self) -> int:
        return len(self._rounds)

    def remaining_rounds(self, completed_count: int) -> int:
        return max(0, len(self._rounds) - completed_count)

    def tier_at(self, index: int) -> Optional[int]:
        if not self._in_range(index):
            return None
        return self._rounds[index].tier

    def label_at(self, index: int) -> Optional[str]:
        if not self._in_range(index):
            return None
        return self._rounds[index].label

    def future_rounds(self, completed_count: int) -> list[FutureRound]:
        """Return the rounds scheduled after the current one."""
        return [
            FutureRound(tier=r.tier, quota=r.quota)
            for r in self._rounds[completed_count + 1 :]
        ]

    def decrement(self, index: int) -> None:
        """Record one winner against round ``index``; floors at zero."""
        if not self._in_range(index):
            return
        round_ = self._rounds[index]
        if round_.remaining > 0:
            round_.remaining -= 1

    def reset_all(self) -> None:
        for round_ in self._rounds:
            round_.remaining = round_.quota

    def match_index(self, tier: int, label: str) -> Optional[int]:
        """Return the first round in plan order awarding ``tier`` and ``label``."""
        for index, round_ in enumerate(self._rounds):
            if round_.tier == tier and round_.label == label:
                return index
        return None

    def restore_from_history(self, winners: Iterable["WinnerRecord"]) -> None:
        """Recompute every ``remaining`` counter from a full winner history.

        Every round is reset to its quota, then each winner is charged to the
        first round in plan order whose tier and label both match. Winners
        matching no round are ignored.

        Parameters
        ----------
        winners : Iterable[WinnerRecord]
            Historical winners. Only ``tier`` and ``prize_label`` are read.
        """
        self.reset_all()
        unmatched = 0
        for winner in winners:
            index = self.match_index(winner.tier, winner.prize_label)
            if index is None:
                unmatched += 1
                continue
            self.decrement(index)
        if unmatched:
            logger.warning(
                f"{unmatched} winner record(s) matched no round in the plan"
            )


__all__ = ["FutureRound", "RoundLedger"]
