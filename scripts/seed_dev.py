import logging
from pathlib import Path

from tierdraw.db.engine import make_engine, session_scope
from tierdraw.models import Base
from tierdraw.reports import render_text
from tierdraw.workflows import (
    analyze_event_risk,
    create_event_from_config,
    finish_round,
    run_round,
)

SAMPLE_CONFIG = Path(__file__).resolve().parent / "sample_event.json"


def main() -> None:
    """Seed the development database with a sample event and run it end to end."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    engine = make_engine()

    # Drop and recreate all tables so the seed is repeatable.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    with session_scope(engine) as session:
        event = create_event_from_config(session, "dev-sample", SAMPLE_CONFIG)

        report = analyze_event_risk(event)
        if not report.has_risk:
            print("Round plan looks safe.")

        while not event.is_completed:
            result = run_round(session, event)
            if result.stats.is_under_filled:
                print(
                    f"{result.round.label}: short by {result.stats.shortfall} winner(s)"
                )
            finish_round(session, event)

        print(
            render_text(event.winners, event.participants, include_non_winners=True)
        )


if __name__ == "__main__":
    main()
