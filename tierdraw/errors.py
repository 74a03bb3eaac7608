"""Exceptions raised by the allocation core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from .models.participant import Participant


class InvalidConfiguration(ValueError):
    """A participant's tier bounds leave no tier they could ever win.

    Raised when both ``min_tier`` and ``max_tier`` are set and
    ``min_tier < max_tier``. The error is never corrected automatically: the
    roster must be fixed by an operator.

    Attributes
    ----------
    problems : list[tuple[Participant, str]]
        Every offending participant paired with a human readable reason.
    """

    def __init__(
        self,
        message: str,
        problems: Optional[Sequence[tuple["Participant", str]]] = None,
    ) -> None:
        super().__init__(message)
        self.problems: list[tuple[Any, str]] = list(problems or [])


def describe_bounds_problem(participant: "Participant") -> str:
    """Return the reason string used for a ``min_tier < max_tier`` participant."""
    return f"min_tier({participant.min_tier}) < max_tier({participant.max_tier})"


def invalid_participant(participant: "Participant") -> InvalidConfiguration:
    """Build the error for a single participant with empty eligibility."""
    reason = describe_bounds_problem(participant)
    return InvalidConfiguration(
        f"Participant {participant.name!r} ({participant.external_id}) has an "
        f"invalid tier configuration: {reason} leaves no winnable tier",
        problems=[(participant, reason)],
    )


__all__ = ["InvalidConfiguration", "describe_bounds_problem", "invalid_participant"]
