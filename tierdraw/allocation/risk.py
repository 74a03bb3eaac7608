"""Advisory analysis of a round plan against the current roster."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from .eligibility import can_win_tier
from .settings import get_settings

if TYPE_CHECKING:
    from ..models.event import DrawRound
    from ..models.participant import Participant


@dataclass(frozen=True)
class RiskyRound:
    """A round predicted to lack enough eligible, unclaimed participants.

    Attributes
    ----------
    index : int
        Zero-based position of the round in the plan.
    label : str
        Prize label of the round.
    quota : int
        Winners the round needs.
    predicted_available : int
        Eligible participants expected to remain when the round is drawn.
    """

    index: int
    label: str
    quota: int
    predicted_available: int

    @property
    def number(self) -> int:
        """One-based round number for display."""
        return self.index + 1

    @property
    def deficit(self) -> int:
        return max(0, self.quota - self.predicted_available)


@dataclass
class RiskReport:
    risky_rounds: list[RiskyRound] = field(default_factory=list)

    @property
    def has_risk(self) -> bool:
        return bool(self.risky_rounds)


def analyze(
    participants: Iterable["Participant"],
    plan_start_index: int,
    plan: Sequence["DrawRound"],
    discount_per_round: Optional[int] = None,
) -> RiskReport:
    """Flag rounds from ``plan_start_index`` onward that may not fill.

    For each round the unclaimed participants able to win its tier are
    counted, then ``discount_per_round`` participants are subtracted for
    every round scheduled after it, modelling consumption by intervening
    rounds. The result never mutates its inputs.

    Parameters
    ----------
    participants : Iterable[Participant]
        Full roster. Past winners are skipped.
    plan_start_index : int
        Index of the first round still to be drawn.
    plan : Sequence[DrawRound]
        Complete round plan. Rounds need ``tier``, ``label`` and ``quota``.
    discount_per_round : Optional[int], default: None
        Override for :attr:`DrawSettings.risk_discount_per_round`. Read from
        ``TIERDRAW_RISK_DISCOUNT_PER_ROUND`` when omitted.

    Returns
    -------
    RiskReport
        Rounds whose predicted availability falls below their quota.
    """
    discount = (
        get_settings().risk_discount_per_round
        if discount_per_round is None
        else discount_per_round
    )
    open_pool = [p for p in participants if not p.has_won]
    report = RiskReport()
    for index in range(max(0, plan_start_index), len(plan)):
        round_ = plan[index]
        eligible = sum(1 for p in open_pool if can_win_tier(p, round_.tier))
        rounds_after = len(plan) - index - 1
        predicted = max(0, eligible - rounds_after * discount)
        if predicted < round_.quota:
            report.risky_rounds.append(
                RiskyRound(
                    index=index,
                    label=round_.label,
                    quota=round_.quota,
                    predicted_available=predicted,
                )
            )
    return report


__all__ = ["RiskReport", "RiskyRound", "analyze"]
