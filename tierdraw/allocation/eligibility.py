"""Eligibility rules deciding which prize tiers a participant may win.

Tiers are small non-negative integers where a lower number is a better prize
(``0`` is the top prize). Each participant carries two optional bounds:

``min_tier``
    "At least tier n": the participant may win tier ``n`` or better, so any
    tier numerically greater than ``min_tier`` is excluded.
``max_tier``
    "At most tier n": the participant may win tier ``n`` or worse, so any
    tier numerically lower than ``max_tier`` is excluded. ``max_tier=0``
    therefore excludes nothing.

The winnable set is the intersection of both constraints. When both bounds
are set and ``min_tier < max_tier`` the intersection is empty, which is
treated as an authoring mistake and rejected with
:class:`~tierdraw.errors.InvalidConfiguration`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from ..errors import InvalidConfiguration, describe_bounds_problem, invalid_participant

if TYPE_CHECKING:
    from ..models.participant import Participant


def has_invalid_bounds(participant: "Participant") -> bool:
    """Return ``True`` when the participant's bounds cannot both be satisfied."""
    return (
        participant.min_tier is not None
        and participant.max_tier is not None
        and participant.min_tier < participant.max_tier
    )


def is_unrestricted(participant: "Participant") -> bool:
    """Return ``True`` when the participant has neither tier bound."""
    return participant.min_tier is None and participant.max_tier is None


def has_ceiling(participant: "Participant") -> bool:
    """Return ``True`` when ``max_tier`` limits how good a prize can be won."""
    return participant.max_tier is not None


def can_win_tier(participant: "Participant", tier: int) -> bool:
    """Apply the tier bounds only, ignoring ``has_won`` and bound validity."""
    if participant.min_tier is not None and tier > participant.min_tier:
        return False
    if participant.max_tier is not None and tier < participant.max_tier:
        return False
    return True


def is_eligible(participant: "Participant", tier: int) -> bool:
    """Decide whether ``participant`` may win a prize of ``tier`` right now.

    Parameters
    ----------
    participant : Participant
        Participant to check.
    tier : int
        Tier of the prize being drawn.

    Returns
    -------
    bool
        ``False`` for past winners and for tiers outside the bounds.

    Raises
    ------
    InvalidConfiguration
        If both bounds are set and ``min_tier < max_tier``. The check runs for
        every queried tier so a bad roster cannot slip through silently.
    """
    if participant.has_won:
        return False
    if has_invalid_bounds(participant):
        raise invalid_participant(participant)
    return can_win_tier(participant, tier)


def filter_eligible(
    participants: Iterable["Participant"], tier: int
) -> list["Participant"]:
    """Return the participants currently eligible for ``tier``, preserving order."""
    return [p for p in participants if is_eligible(p, tier)]


def eligible_tiers(participant: "Participant", max_tier: int) -> list[int]:
    """List every tier in ``[0, max_tier]`` the participant's bounds allow.

    ``has_won`` is ignored: this describes the configuration, not the
    participant's current standing.
    """
    if has_invalid_bounds(participant):
        raise invalid_participant(participant)
    return [tier for tier in range(max_tier + 1) if can_win_tier(participant, tier)]


def validate_all(participants: Iterable["Participant"]) -> None:
    """Reject a roster containing any participant with empty eligibility.

    Every participant is inspected before raising so the operator receives
    the complete list in one pass.

    Raises
    ------
    InvalidConfiguration
        With ``problems`` listing each ``(participant, reason)`` pair.
    """
    problems = [
        (participant, describe_bounds_problem(participant))
        for participant in participants
        if has_invalid_bounds(participant)
    ]
    if not problems:
        return
    lines = "\n".join(
        f"  - {participant.name} ({participant.external_id}): {reason}"
        for participant, reason in problems
    )
    raise InvalidConfiguration(
        f"Found {len(problems)} participant(s) with an invalid tier configuration:\n"
        f"{lines}",
        problems=problems,
    )


__all__ = [
    "can_win_tier",
    "eligible_tiers",
    "filter_eligible",
    "has_ceiling",
    "has_invalid_bounds",
    "is_eligible",
    "is_unrestricted",
    "validate_all",
]
