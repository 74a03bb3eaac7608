"""Parse raw roster and round-plan records into model instances.

Records arrive as dictionaries, typically decoded from a JSON configuration
file. Both the snake_case keys used by this package and the camelCase keys of
legacy lottery configuration files are accepted::

    {
        "users": [{"e_id": "001", "name": "Alice", "maxLevel": 3}],
        "drawRounds": [{"level": 5, "name": "Gift card", "count": 10}]
    }

Every record is checked before anything is raised, so a single
``ValueError`` lists all problems found in the input.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from .allocation.eligibility import validate_all
from .allocation.settings import get_settings
from .models import DrawRound, Participant

logger = logging.getLogger(__name__)

_PARTICIPANT_KEYS = {
    "external_id": ("id", "external_id", "e_id"),
    "name": ("name",),
    "min_tier": ("min_tier", "minLevel", "minTier"),
    "max_tier": ("max_tier", "maxLevel", "maxTier"),
}
_ROUND_KEYS = {
    "tier": ("tier", "level"),
    "label": ("label", "name"),
    "quota": ("quota", "count"),
}


def _lookup(record: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    for key in aliases:
        if key in record:
            return record[key]
    return None


def _coerce_int(value: Any) -> Optional[int]:
    """Return ``value`` as an int, accepting digit strings; ``None`` otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _check_text(
    record: Mapping[str, Any], aliases: Sequence[str], where: str, errors: list[str]
) -> Optional[str]:
    value = _lookup(record, aliases)
    if value is None:
        errors.append(f"{where}.{aliases[0]}: is required")
        return None
    text = str(value).strip()
    if not text:
        errors.append(f"{where}.{aliases[0]}: must not be empty")
        return None
    return text


def _check_tier(
    value: Any, field: str, where: str, max_tier: int, errors: list[str]
) -> Optional[int]:
    tier = _coerce_int(value)
    if tier is None or not 0 <= tier <= max_tier:
        errors.append(f"{where}.{field}: must be an integer between 0 and {max_tier}")
        return None
    return tier


def parse_participants(
    records: Iterable[Mapping[str, Any]],
    *,
    max_tier: Optional[int] = None,
) -> list[Participant]:
    """Build transient :class:`Participant` objects from raw records.

    Parameters
    ----------
    records : Iterable[Mapping[str, Any]]
        Raw participant records. ``id`` and ``name`` are required, tier bounds
        are optional.
    max_tier : Optional[int], default: None
        Worst configurable tier. Defaults to ``get_settings().max_tier``.

    Returns
    -------
    list[Participant]
        Participants in input order. When an id appears more than once only
        the first record is kept.

    Raises
    ------
    ValueError
        If the input is empty or any record is malformed.
    InvalidConfiguration
        If any participant's bounds leave no winnable tier.
    """
    bound = get_settings().max_tier if max_tier is None else max_tier
    rows = list(records)
    if not rows:
        raise ValueError("Participant data cannot be empty")

    errors: list[str] = []
    participants: list[Participant] = []
    seen: set[str] = set()
    duplicates: list[str] = []
    for index, record in enumerate(rows):
        where = f"[{index}]"
        if not isinstance(record, Mapping):
            errors.append(f"{where}: must be an object")
            continue
        external_id = _check_text(record, _PARTICIPANT_KEYS["external_id"], where, errors)
        name = _check_text(record, _PARTICIPANT_KEYS["name"], where, errors)

        bounds: dict[str, Optional[int]] = {}
        valid_bounds = True
        for field in ("min_tier", "max_tier"):
            raw = _lookup(record, _PARTICIPANT_KEYS[field])
            if raw is None:
                bounds[field] = None
                continue
            bounds[field] = _check_tier(raw, field, where, bound, errors)
            valid_bounds = valid_bounds and bounds[field] is not None

        if external_id is None or name is None or not valid_bounds:
            continue
        if external_id in seen:
            duplicates.append(external_id)
            continue
        seen.add(external_id)
        participants.append(
            Participant(
                external_id=external_id,
                name=name,
                min_tier=bounds["min_tier"],
                max_tier=bounds["max_tier"],
            )
        )

    if errors:
        raise ValueError(f"Participant validation failed: {'; '.join(errors)}")
    if duplicates:
        logger.warning(
            f"Ignored {len(duplicates)} duplicate participant record(s): "
            f"{', '.join(sorted(set(duplicates)))}"
        )

    validate_all(participants)
    return participants


def parse_rounds(
    records: Iterable[Mapping[str, Any]],
    *,
    max_tier: Optional[int] = None,
) -> list[DrawRound]:
    """Build transient :class:`DrawRound` objects in plan order.

    ``tier`` and ``quota`` may be integers or digit strings. ``quota`` must be
    positive. Positions are assigned from the record order.

    Raises
    ------
    ValueError
        If the input is empty or any record is malformed.
    """
    bound = get_settings().max_tier if max_tier is None else max_tier
    rows = list(records)
    if not rows:
        raise ValueError("Round data cannot be empty")

    errors: list[str] = []
    rounds: list[DrawRound] = []
    for index, record in enumerate(rows):
        where = f"[{index}]"
        if not isinstance(record, Mapping):
            errors.append(f"{where}: must be an object")
            continue
        label = _check_text(record, _ROUND_KEYS["label"], where, errors)
        tier = _check_tier(_lookup(record, _ROUND_KEYS["tier"]), "tier", where, bound, errors)
        quota = _coerce_int(_lookup(record, _ROUND_KEYS["quota"]))
        if quota is None or quota <= 0:
            errors.append(f"{where}.quota: must be a positive integer")
            quota = None
        if label is None or tier is None or quota is None:
            continue
        rounds.append(DrawRound(position=index, tier=tier, label=label, quota=quota))

    if errors:
        raise ValueError(f"Round validation failed: {'; '.join(errors)}")
    return rounds


def parse_config(
    payload: Mapping[str, Any], *, max_tier: Optional[int] = None
) -> tuple[list[Participant], list[DrawRound]]:
    """Split a configuration mapping into participants and rounds."""
    users = _lookup(payload, ("participants", "users"))
    rounds = _lookup(payload, ("rounds", "drawRounds"))
    if not isinstance(users, list):
        raise ValueError("Configuration must contain a 'participants' list")
    if not isinstance(rounds, list):
        raise ValueError("Configuration must contain a 'rounds' list")
    return (
        parse_participants(users, max_tier=max_tier),
        parse_rounds(rounds, max_tier=max_tier),
    )


def load_json_file(
    path: Union[str, Path], *, max_tier: Optional[int] = None
) -> tuple[list[Participant], list[DrawRound]]:
    """Read and parse a JSON configuration file."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON format in {path}: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ValueError("Configuration root must be a JSON object")
    return parse_config(payload, max_tier=max_tier)


__all__ = ["load_json_file", "parse_config", "parse_participants", "parse_rounds"]
