"""Constrained winner selection for a single draw round."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from .eligibility import can_win_tier, has_ceiling, is_unrestricted
from .ledger import FutureRound
from .settings import DrawSettings, get_settings

if TYPE_CHECKING:
    from ..models.participant import Participant

logger = logging.getLogger(__name__)


@dataclass
class DrawStats:
    """Diagnostic counters describing how a round's winners were chosen.

    Attributes
    ----------
    requested : int
        Quota the engine was asked to fill.
    total_eligible : int
        Size of the eligible pool handed to the engine.
    unrestricted_count : int
        Eligible candidates with neither tier bound.
    restricted_count : int
        Eligible candidates with at least one tier bound.
    unrestricted_drawn : int
        Winners taken from the unrestricted group.
    restricted_drawn : int
        Winners taken from the restricted group, last-chance winners included.
    reserved_for_future : int
        Unrestricted participants withheld for later, better rounds.
    last_chance_drawn : int
        Winners force-selected because this round was their final opportunity.
    """

    requested: int = 0
    total_eligible: int = 0
    unrestricted_count: int = 0
    restricted_count: int = 0
    unrestricted_drawn: int = 0
    restricted_drawn: int = 0
    reserved_for_future: int = 0
    last_chance_drawn: int = 0

    @property
    def drawn(self) -> int:
        return self.unrestricted_drawn + self.restricted_drawn

    @property
    def shortfall(self) -> int:
        """Quota left unfilled; a positive value signals under-supply."""
        return max(0, self.requested - self.drawn)

    @property
    def is_under_filled(self) -> bool:
        return self.shortfall > 0

    def to_json(self) -> dict:
        return {
            "requested": self.requested,
            "total_eligible": self.total_eligible,
            "unrestricted_count": self.unrestricted_count,
            "restricted_count": self.restricted_count,
            "unrestricted_drawn": self.unrestricted_drawn,
            "restricted_drawn": self.restricted_drawn,
            "reserved_for_future": self.reserved_for_future,
            "last_chance_drawn": self.last_chance_drawn,
            "shortfall": self.shortfall,
        }


@dataclass
class DrawOutcome:
    """Uncommitted batch of winners returned by :class:`AllocationEngine`."""

    winners: list["Participant"] = field(default_factory=list)
    stats: DrawStats = field(default_factory=DrawStats)


def _excluding(
    participants: Iterable["Participant"], chosen: Sequence["Participant"]
) -> list["Participant"]:
    chosen_ids = {id(p) for p in chosen}
    return [p for p in participants if id(p) not in chosen_ids]


def find_last_chance(
    candidates: Iterable["Participant"], future_rounds: Sequence[FutureRound]
) -> list["Participant"]:
    """Return ceiling-bounded candidates that no future round could reward."""
    return [
        p
        for p in candidates
        if has_ceiling(p)
        and not any(can_win_tier(p, round_.tier) for round_ in future_rounds)
    ]


def reserved_for_future(
    all_unclaimed: Sequence["Participant"],
    current_tier: int,
    future_rounds: Sequence[FutureRound],
) -> int:
    """Count the unrestricted participants to hold back for later rounds.

    Only future rounds at the current tier or better matter. For each of them
    the quota not coverable by ceiling-bounded participants must eventually
    come from participants without a ceiling, so the shortfalls are summed.

    Parameters
    ----------
    all_unclaimed : Sequence[Participant]
        Every participant who has not won yet, whatever their eligibility
        for the current tier.
    current_tier : int
        Tier drawn in the current round.
    future_rounds : Sequence[FutureRound]
        Rounds scheduled after the current one.

    Returns
    -------
    int
        Reserve size, capped at the number of unclaimed participants without a
        ceiling.
    """
    if not future_rounds:
        return 0

    open_pool = [p for p in all_unclaimed if not p.has_won]
    without_ceiling = sum(1 for p in open_pool if not has_ceiling(p))

    needed = 0
    for round_ in future_rounds:
        if round_.tier > current_tier:
            continue
        ceiling_bounded = sum(
            1 for p in open_pool if has_ceiling(p) and can_win_tier(p, round_.tier)
        )
        needed += max(0, round_.quota - ceiling_bounded)

    return min(needed, without_ceiling)


class AllocationEngine:
    """Selects winners for one round while protecting restricted participants.

    Three protection layers are applied in priority order:

    1. *Last chance*: ceiling-bounded candidates with no winnable future round
       are force-selected first.
    2. *Future reservation*: unrestricted participants are withheld when later
       rounds at the current tier or better would otherwise run short.
    3. *Protected split*: the rest of the quota is divided between the
       restricted and unrestricted groups, with the restricted share capped
       by :attr:`DrawSettings.restricted_share_cap`. Seats the available
       unrestricted participants cannot cover are topped up from the
       remaining restricted candidates.

    All random choices are uniform shuffles without replacement.
    """

    def __init__(
        self,
        settings: Optional[DrawSettings] = None,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Create an engine.

        Parameters
        ----------
        settings : Optional[DrawSettings], default: None
            Tunable constants. Read from the ``TIERDRAW_*`` environment
            variables when omitted.
        rng : Optional[random.Random], default: None
            Random source. Pass a seeded instance for reproducible draws.
        """
        self._settings = settings or get_settings()
        self._rng = rng or random.Random()

    @property
    def settings(self) -> DrawSettings:
        return self._settings

    def _pick(self, candidates: Sequence["Participant"], count: int) -> list["Participant"]:
        shuffled = list(candidates)
        self._rng.shuffle(shuffled)
        return shuffled[: max(0, count)]

    def draw(
        self,
        eligible_pool: Sequence["Participant"],
        quota: int,
        all_unclaimed: Sequence["Participant"],
        current_tier: int,
        future_rounds: Sequence[FutureRound] = (),
    ) -> DrawOutcome:
        """Choose up to ``quota`` winners from ``eligible_pool``.

        Parameters
        ----------
        eligible_pool : Sequence[Participant]
            Participants passing :func:`~tierdraw.allocation.eligibility.is_eligible`
            for ``current_tier``.
        quota : int
            Winners needed this round.
        all_unclaimed : Sequence[Participant]
            Every participant who has not won yet. Used only to project the
            needs of future rounds.
        current_tier : int
            Tier awarded this round.
        future_rounds : Sequence[FutureRound], default: ()
            Rounds not yet run, in plan order.

        Returns
        -------
        DrawOutcome
            The winners, not yet marked as won, and the diagnostic stats.
            Fewer winners than ``quota`` is a valid outcome and is reported
            through :attr:`DrawStats.shortfall`.
        """
        pool = list(eligible_pool)
        future = list(future_rounds)
        unrestricted_count = sum(1 for p in pool if is_unrestricted(p))
        stats = DrawStats(
            requested=max(0, quota),
            total_eligible=len(pool),
            unrestricted_count=unrestricted_count,
            restricted_count=len(pool) - unrestricted_count,
        )
        if quota <= 0:
            return DrawOutcome(winners=[], stats=stats)

        last_chance = find_last_chance(pool, future)
        forced = self._pick(last_chance, min(len(last_chance), quota))
        if last_chance:
            logger.debug(
                f"Tier {current_tier}: {len(last_chance)} last-chance candidate(s), "
                f"forcing {len(forced)}"
            )
        stats.last_chance_drawn = len(forced)
        stats.restricted_drawn = len(forced)

        quota_left = quota - len(forced)
        if quota_left <= 0:
            return DrawOutcome(winners=forced, stats=stats)

        candidates = _excluding(pool, forced)
        unclaimed = _excluding(all_unclaimed, forced)

        reserve = reserved_for_future(unclaimed, current_tier, future)
        stats.reserved_for_future = reserve
        if reserve:
            logger.debug(
                f"Tier {current_tier}: reserving {reserve} unrestricted participant(s) "
                "for later rounds"
            )

        restricted = [p for p in candidates if not is_unrestricted(p)]
        unrestricted = [p for p in candidates if is_unrestricted(p)]
        available_unrestricted = max(0, len(unrestricted) - reserve)

        restricted_take = 0
        if restricted:
            ratio = min(
                self._settings.restricted_share_cap,
                len(restricted) / (len(restricted) + available_unrestricted),
            )
            restricted_take = min(
                math.ceil(quota_left * ratio), len(restricted), quota_left
            )
        from_restricted = self._pick(restricted, restricted_take)

        unrestricted_take = min(quota_left - len(from_restricted), available_unrestricted)
        from_unrestricted = self._pick(unrestricted, unrestricted_take)

        # Seats the unrestricted group cannot cover go back to restricted
        # candidates; the reserve is never touched.
        open_seats = quota_left - len(from_restricted) - len(from_unrestricted)
        if open_seats > 0:
            leftover = _excluding(restricted, from_restricted)
            from_restricted += self._pick(leftover, open_seats)

        stats.restricted_drawn += len(from_restricted)
        stats.unrestricted_drawn = len(from_unrestricted)

        winners = forced + from_restricted + from_unrestricted
        if stats.is_under_filled:
            logger.warning(
                f"Tier {current_tier}: drew {len(winners)} of {quota} winner(s) "
                f"(eligible={len(pool)}, reserved={reserve})"
            )
        return DrawOutcome(winners=winners, stats=stats)


def draw(
    eligible_pool: Sequence["Participant"],
    quota: int,
    all_unclaimed: Sequence["Participant"],
    current_tier: int,
    future_rounds: Sequence[FutureRound] = (),
    *,
    settings: Optional[DrawSettings] = None,
    rng: Optional[random.Random] = None,
) -> DrawOutcome:
    """Run :meth:`AllocationEngine.draw` with a throwaway engine."""
    engine = AllocationEngine(settings, rng=rng)
    return engine.draw(eligible_pool, quota, all_unclaimed, current_tier, future_rounds)


def random_draw(
    eligible_pool: Sequence["Participant"],
    quota: int,
    *,
    rng: Optional[random.Random] = None,
) -> DrawOutcome:
    """Draw uniformly with no protection layers.

    Kept as a baseline to compare against :class:`AllocationEngine`.
    """
    pool = list(eligible_pool)
    shuffled = list(pool)
    (rng or random.Random()).shuffle(shuffled)
    winners = shuffled[: max(0, min(quota, len(pool)))]
    unrestricted_count = sum(1 for p in pool if is_unrestricted(p))
    unrestricted_drawn = sum(1 for p in winners if is_unrestricted(p))
    stats = DrawStats(
        requested=max(0, quota),
        total_eligible=len(pool),
        unrestricted_count=unrestricted_count,
        restricted_count=len(pool) - unrestricted_count,
        unrestricted_drawn=unrestricted_drawn,
        restricted_drawn=len(winners) - unrestricted_drawn,
    )
    return DrawOutcome(winners=winners, stats=stats)


__all__ = [
    "AllocationEngine",
    "DrawOutcome",
    "DrawStats",
    "draw",
    "find_last_chance",
    "random_draw",
    "reserved_for_future",
]
