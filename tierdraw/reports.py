"""Read-only views over an event's winner history."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from .db.utils import as_utc, dt_iso

if TYPE_CHECKING:
    from .models import Participant, WinnerRecord


@dataclass
class RoundGroup:
    """Winners that were drawn together in one physical round.

    Attributes
    ----------
    number : int
        One-based round number, in order of first appearance.
    prize_label : str
        Prize label of the first winner in the group.
    drawn_at : datetime
        Timestamp shared by every winner of the group.
    winners : list[WinnerRecord]
        Winners in recording order.
    """

    number: int
    prize_label: str
    drawn_at: datetime
    winners: list["WinnerRecord"] = field(default_factory=list)


def group_winners_by_round(records: Iterable["WinnerRecord"]) -> list[RoundGroup]:
    """Group winner records sharing a ``drawn_at`` timestamp into rounds."""
    groups: list[RoundGroup] = []
    by_timestamp: dict[datetime, RoundGroup] = {}
    for record in records:
        key = as_utc(record.drawn_at)
        group = by_timestamp.get(key)
        if group is None:
            group = RoundGroup(
                number=len(groups) + 1,
                prize_label=record.prize_label,
                drawn_at=key,
            )
            by_timestamp[key] = group
            groups.append(group)
        group.winners.append(record)
    return groups


def non_winners(
    participants: Iterable["Participant"], records: Iterable["WinnerRecord"]
) -> list["Participant"]:
    """Return roster members with no winner record, preserving roster order."""
    winner_ids = {record.participant_external_id for record in records}
    return [p for p in participants if p.external_id not in winner_ids]


def summarize(records: Sequence["WinnerRecord"]) -> dict:
    """Count winners overall and per tier."""
    prizes_awarded: dict[int, int] = {}
    for record in records:
        prizes_awarded[record.tier] = prizes_awarded.get(record.tier, 0) + 1
    return {
        "total_winners": len(records),
        "prizes_awarded": dict(sorted(prizes_awarded.items())),
    }


def export_json(
    records: Sequence["WinnerRecord"], event_date: Optional[datetime] = None
) -> str:
    """Serialize the winner history with a summary block.

    Parameters
    ----------
    records : Sequence[WinnerRecord]
        Winner history to export.
    event_date : Optional[datetime], default: None
        Date stamped on the export. Defaults to now (UTC).

    Returns
    -------
    str
        Indented JSON document. Tier keys of ``prizes_awarded`` are strings,
        as JSON requires.
    """
    payload = {
        "event_date": dt_iso(event_date or datetime.now(timezone.utc)),
        "winners": [record.to_json() for record in records],
        "summary": summarize(records),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_text(
    records: Sequence["WinnerRecord"],
    participants: Optional[Sequence["Participant"]] = None,
    *,
    include_non_winners: bool = False,
    generated_at: Optional[datetime] = None,
) -> str:
    """Render a plain-text winners report, one block per physical round.

    When ``include_non_winners`` is set and a roster is supplied, the report
    ends with the participants who did not win.
    """
    stamp = dt_iso(generated_at or datetime.now(timezone.utc))
    lines = [f"Draw time: {stamp}", ""]
    for group in group_winners_by_round(records):
        names = ", ".join(record.participant_name for record in group.winners)
        lines.append(
            f"Round {group.number} | Prize: {group.prize_label} | "
            f"Winners: {len(group.winners)}"
        )
        lines.append(f"Winners: {names}")
        lines.append("")
    lines.append(f"Total winners: {len(records)}")

    if include_non_winners and participants:
        losers = non_winners(participants, records)
        lines.append(f"Non-winners: {len(losers)}")
        lines.append(f"Non-winner list: {', '.join(p.name for p in losers)}")
    return "\n".join(lines) + "\n"


__all__ = [
    "RoundGroup",
    "export_json",
    "group_winners_by_round",
    "non_winners",
    "render_text",
    "summarize",
]
