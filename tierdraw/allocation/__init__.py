"""Constrained prize allocation: eligibility, round ledger, engine and risk analysis."""

from .eligibility import (
    can_win_tier,
    eligible_tiers,
    filter_eligible,
    has_ceiling,
    is_eligible,
    is_unrestricted,
    validate_all,
)
from .engine import AllocationEngine, DrawOutcome, DrawStats, draw, random_draw
from .ledger import FutureRound, RoundLedger
from .risk import RiskReport, RiskyRound, analyze
from .settings import DEFAULT_SETTINGS, DrawSettings, get_settings

__all__ = [
    "AllocationEngine",
    "DEFAULT_SETTINGS",
    "DrawOutcome",
    "DrawSettings",
    "DrawStats",
    "FutureRound",
    "RiskReport",
    "RiskyRound",
    "RoundLedger",
    "analyze",
    "can_win_tier",
    "draw",
    "eligible_tiers",
    "filter_eligible",
    "get_settings",
    "has_ceiling",
    "is_eligible",
    "is_unrestricted",
    "random_draw",
    "validate_all",
]
