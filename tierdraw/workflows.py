"""Session-level orchestration of a lottery event.

The allocation core in :mod:`tierdraw.allocation` is pure: it only proposes
winners. The functions here own the round progression state machine
(``idle -> drawing -> revealing -> idle``) and apply each proposed batch to the
database inside the caller's transaction. Nothing is committed here; callers
decide whether to commit or roll back the session.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from sqlalchemy import delete
from sqlalchemy.orm import Session

from .allocation.eligibility import filter_eligible, validate_all
from .allocation.engine import AllocationEngine, DrawStats
from .allocation.risk import RiskReport, analyze
from .allocation.settings import DrawSettings, get_settings
from .loaders import load_json_file, parse_config
from .models import (
    STATUS_DRAWING,
    STATUS_IDLE,
    STATUS_REVEALING,
    DrawRound,
    LotteryEvent,
    Participant,
    WinnerRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class RoundResult:
    """Outcome of :func:`draw_round` after it has been applied.

    Attributes
    ----------
    round : DrawRound
        Round that was drawn.
    winners : list[Participant]
        Participants selected, now flagged as winners.
    records : list[WinnerRecord]
        Winner rows added to the session, all sharing one ``drawn_at``.
    stats : DrawStats
        Diagnostics reported by the allocation engine.
    """

    round: DrawRound
    winners: list[Participant]
    records: list[WinnerRecord]
    stats: DrawStats


def _require_persisted(event: LotteryEvent) -> None:
    if event.id is None:
        raise ValueError("Lottery event must be persisted before running draws")


def _require_status(event: LotteryEvent, expected: str, action: str) -> None:
    if event.status != expected:
        raise ValueError(
            f"Cannot {action} while event '{event.name}' is {event.status}; "
            f"expected {expected}"
        )


def create_event(
    session: Session,
    name: str,
    participants: Sequence[Participant],
    rounds: Sequence[DrawRound],
) -> LotteryEvent:
    """Persist a new event with its roster and round plan.

    Round positions are renumbered from the given order.

    Raises
    ------
    ValueError
        If the plan is empty or the participant ids are not unique.
    InvalidConfiguration
        If a participant's tier bounds leave no winnable tier.
    """
    if not rounds:
        raise ValueError("A lottery event needs at least one round")
    external_ids = [p.external_id for p in participants]
    if len(set(external_ids)) != len(external_ids):
        raise ValueError("Participant ids must be unique within an event")
    validate_all(participants)

    for position, round_ in enumerate(rounds):
        round_.position = position
        round_.remaining = round_.quota

    event = LotteryEvent(
        name=name, participants=list(participants), rounds=list(rounds)
    )
    session.add(event)
    session.flush()
    logger.info(
        f"Created event '{name}' with {len(participants)} participant(s) "
        f"and {len(rounds)} round(s)"
    )
    return event


def create_event_from_config(
    session: Session,
    name: str,
    source: Union[str, Path, Mapping[str, Any]],
    *,
    settings: Optional[DrawSettings] = None,
) -> LotteryEvent:
    """Create an event from a configuration mapping or a JSON file path."""
    max_tier = (settings or get_settings()).max_tier
    if isinstance(source, Mapping):
        participants, rounds = parse_config(source, max_tier=max_tier)
    else:
        participants, rounds = load_json_file(source, max_tier=max_tier)
    return create_event(session, name, participants, rounds)


def start_round(session: Session, event: LotteryEvent) -> DrawRound:
    """Move ``event`` from ``idle`` to ``drawing`` and return the round to draw."""
    _require_persisted(event)
    _require_status(event, STATUS_IDLE, "start a round")
    round_ = event.current_round()
    if round_ is None:
        raise ValueError(f"All rounds of event '{event.name}' are already completed")
    event.status = STATUS_DRAWING
    session.flush()
    return round_


def draw_round(
    session: Session,
    event: LotteryEvent,
    *,
    engine: Optional[AllocationEngine] = None,
    drawn_at: Optional[datetime] = None,
) -> RoundResult:
    """Draw the current round and apply the winners as one batch.

    The allocation engine is invoked exactly once with the round's remaining
    quota. Its winners are then marked as won, recorded with a shared
    ``drawn_at`` timestamp, and charged to the round's ``remaining`` counter.
    The event moves to ``revealing``.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session. Changes are flushed, not committed.
    event : LotteryEvent
        Event in the ``drawing`` state.
    engine : Optional[AllocationEngine], default: None
        Engine to use. A default engine is created when omitted.
    drawn_at : Optional[datetime], default: None
        Timestamp for the winner records. Defaults to now (UTC).

    Returns
    -------
    RoundResult
        The applied batch and the engine's diagnostics.

    Raises
    ------
    ValueError
        If the event is not persisted or not in the ``drawing`` state.
    InvalidConfiguration
        If a participant with invalid bounds is still on the roster.
    """
    _require_persisted(event)
    _require_status(event, STATUS_DRAWING, "draw a round")
    ledger = event.ledger()
    index = event.completed_rounds
    round_ = ledger.current_round(index)
    if round_ is None:
        raise ValueError(f"All rounds of event '{event.name}' are already completed")

    engine = engine or AllocationEngine()
    unclaimed = event.unclaimed_participants()
    eligible = filter_eligible(unclaimed, round_.tier)
    outcome = engine.draw(
        eligible,
        round_.remaining,
        unclaimed,
        round_.tier,
        ledger.future_rounds(index),
    )

    timestamp = drawn_at or datetime.now(timezone.utc)
    records: list[WinnerRecord] = []
    for participant in outcome.winners:
        participant.mark_won()
        record = WinnerRecord(
            event=event,
            participant=participant,
            tier=round_.tier,
            prize_label=round_.label,
            round_position=round_.position,
            drawn_at=timestamp,
        )
        session.add(record)
        records.append(record)
        ledger.decrement(index)

    event.status = STATUS_REVEALING
    session.flush()

    logger.info(
        f"Event '{event.name}' round {index + 1} ({round_.label}): "
        f"{len(outcome.winners)} winner(s), {round_.remaining} remaining"
    )
    return RoundResult(
        round=round_, winners=outcome.winners, records=records, stats=outcome.stats
    )


def run_round(
    session: Session,
    event: LotteryEvent,
    *,
    engine: Optional[AllocationEngine] = None,
    drawn_at: Optional[datetime] = None,
) -> RoundResult:
    """Start and draw the current round in one call."""
    start_round(session, event)
    return draw_round(session, event, engine=engine, drawn_at=drawn_at)


def finish_round(session: Session, event: LotteryEvent) -> Optional[DrawRound]:
    """Close the revealed round and return the next one, if any."""
    _require_persisted(event)
    _require_status(event, STATUS_REVEALING, "finish a round")
    event.completed_rounds += 1
    event.status = STATUS_IDLE
    session.flush()
    return event.current_round()


def cancel_round(session: Session, event: LotteryEvent) -> None:
    """Abandon a round that was started but not drawn."""
    _require_persisted(event)
    _require_status(event, STATUS_DRAWING, "cancel a round")
    event.status = STATUS_IDLE
    session.flush()


def restore_progress(session: Session, event: LotteryEvent) -> None:
    """Rebuild in-memory progress from the persisted winner history.

    Every round's ``remaining`` is recomputed from the winner records, the
    recorded winners are re-flagged as won, an interrupted ``drawing`` state
    falls back to ``idle``, and ``completed_rounds`` is raised to cover every
    round that has recorded winners.
    """
    _require_persisted(event)
    records = WinnerRecord.for_event(session, event.id)
    event.ledger().restore_from_history(records)

    winner_ids = {record.participant_external_id for record in records}
    for participant in event.participants:
        if participant.external_id in winner_ids:
            participant.has_won = True

    if event.status == STATUS_DRAWING:
        event.status = STATUS_IDLE

    positions = [r.round_position for r in records if r.round_position is not None]
    if positions:
        drawn_through = max(positions) + 1
        if event.status == STATUS_REVEALING:
            drawn_through -= 1
        event.completed_rounds = max(event.completed_rounds, drawn_through)
    session.flush()


def reset_pool(session: Session, event: LotteryEvent) -> None:
    """Clear every participant's ``has_won`` flag."""
    for participant in event.participants:
        participant.has_won = False
    session.flush()


def reset_event(session: Session, event: LotteryEvent) -> None:
    """Prepare ``event`` to be run again from its first round.

    Winner history is deleted, the pool is reset, and the ledger and round
    progression return to their initial values.
    """
    _require_persisted(event)
    session.execute(delete(WinnerRecord).where(WinnerRecord.event_id == event.id))
    session.expire(event, ["winners"])
    for participant in event.participants:
        session.expire(participant, ["winner_records"])
    reset_pool(session, event)
    event.ledger().reset_all()
    event.completed_rounds = 0
    event.status = STATUS_IDLE
    session.flush()
    logger.info(f"Event '{event.name}' reset")


def analyze_event_risk(
    event: LotteryEvent, *, settings: Optional[DrawSettings] = None
) -> RiskReport:
    """Run the risk analyzer over the rounds ``event`` has not completed yet."""
    active = settings or get_settings()
    report = analyze(
        event.participants,
        event.completed_rounds,
        event.rounds,
        discount_per_round=active.risk_discount_per_round,
    )
    for risky in report.risky_rounds:
        logger.warning(
            f"Event '{event.name}' round {risky.number} ({risky.label}) may be short: "
            f"needs {risky.quota}, predicted {risky.predicted_available}"
        )
    return report


__all__ = [
    "RoundResult",
    "analyze_event_risk",
    "cancel_round",
    "create_event",
    "create_event_from_config",
    "draw_round",
    "finish_round",
    "reset_event",
    "reset_pool",
    "restore_progress",
    "run_round",
    "start_round",
]
