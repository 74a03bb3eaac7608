"""Tunable constants for the allocation engine and the risk analyzer."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()

DEFAULT_MAX_TIER = 5
DEFAULT_RESTRICTED_SHARE_CAP = 0.7
DEFAULT_RISK_DISCOUNT_PER_ROUND = 2


@dataclass(frozen=True)
class DrawSettings:
    """Empirical parameters used when splitting a round's quota.

    Attributes
    ----------
    max_tier : int
        Worst (numerically highest) tier an event may configure. Tiers run
        from ``0`` (best) to ``max_tier``.
    restricted_share_cap : float
        Upper bound on the share of a round's quota protected for restricted
        candidates.
    risk_discount_per_round : int
        Number of participants the risk analyzer assumes each later round will
        consume.
    """

    max_tier: int = DEFAULT_MAX_TIER
    restricted_share_cap: float = DEFAULT_RESTRICTED_SHARE_CAP
    risk_discount_per_round: int = DEFAULT_RISK_DISCOUNT_PER_ROUND

    def __post_init__(self) -> None:
        if self.max_tier < 0:
            raise ValueError("max_tier must be non-negative")
        if not 0.0 <= self.restricted_share_cap <= 1.0:
            raise ValueError("restricted_share_cap must be between 0.0 and 1.0")
        if self.risk_discount_per_round < 0:
            raise ValueError("risk_discount_per_round must be non-negative")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DrawSettings":
        """Build settings from ``TIERDRAW_*`` environment variables.

        Parameters
        ----------
        environ : Optional[Mapping[str, str]], default: None
            Mapping to read from. Defaults to :data:`os.environ`.

        Returns
        -------
        DrawSettings
            Settings with every unset variable falling back to its default.
        """
        env = os.environ if environ is None else environ
        return cls(
            max_tier=int(env.get("TIERDRAW_MAX_TIER", DEFAULT_MAX_TIER)),
            restricted_share_cap=float(
                env.get("TIERDRAW_RESTRICTED_SHARE_CAP", DEFAULT_RESTRICTED_SHARE_CAP)
            ),
            risk_discount_per_round=int(
                env.get(
                    "TIERDRAW_RISK_DISCOUNT_PER_ROUND", DEFAULT_RISK_DISCOUNT_PER_ROUND
                )
            ),
        )


# Built-in values, ignoring the environment.
DEFAULT_SETTINGS = DrawSettings()


def get_settings(environ: Optional[Mapping[str, str]] = None) -> DrawSettings:
    """Return the settings currently in effect.

    The environment is read on every call, so overrides set after import
    (or loaded from ``.env``) still apply.
    """
    return DrawSettings.from_env(environ)


__all__ = [
    "DEFAULT_MAX_TIER",
    "DEFAULT_RESTRICTED_SHARE_CAP",
    "DEFAULT_RISK_DISCOUNT_PER_ROUND",
    "DEFAULT_SETTINGS",
    "DrawSettings",
    "get_settings",
]
