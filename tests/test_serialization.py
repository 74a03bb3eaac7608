import unittest
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from tierdraw.models import Base, DrawRound, LotteryEvent, Participant, WinnerRecord


class SerializationTestCase(unittest.TestCase):
    def setUp(self):
        # In-memory SQLite for isolation
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def _event(self, session, name="gala"):
        event = LotteryEvent(
            name=name,
            participants=[
                Participant(external_id="p1", name="Alice", max_tier=3),
                Participant(external_id="p2", name="Bob"),
            ],
            rounds=[DrawRound(tier=3, label="Mug", quota=2)],
        )
        session.add(event)
        session.flush()
        return event

    def test_event_to_json(self):
        with self.Session() as session:
            event = self._event(session)
            d = event.to_json()
            self.assertEqual(d["name"], "gala")
            self.assertEqual(d["status"], "idle")
            self.assertEqual(d["completed_rounds"], 0)
            self.assertEqual(d["total_rounds"], 1)
            self.assertIsInstance(d["created_at"], str)
            self.assertIsInstance(d["updated_at"], str)

    def test_participant_and_round_to_json(self):
        with self.Session() as session:
            event = self._event(session)
            alice = event.participants[0]
            self.assertEqual(
                {k: v for k, v in alice.to_json().items() if k != "created_at"},
                {
                    "id": "p1",
                    "name": "Alice",
                    "min_tier": None,
                    "max_tier": 3,
                    "has_won": False,
                },
            )
            self.assertTrue(alice.is_restricted)
            self.assertFalse(event.participants[1].is_restricted)
            self.assertEqual(
                event.rounds[0].to_json(),
                {"position": 0, "tier": 3, "label": "Mug", "quota": 2, "remaining": 2},
            )

    def test_winner_record_copies_participant(self):
        now = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
        with self.Session() as session:
            event = self._event(session)
            record = WinnerRecord(
                event=event,
                participant=event.participants[1],
                tier=3,
                prize_label="Mug",
                round_position=0,
                drawn_at=now,
            )
            session.add(record)
            session.flush()

            d = record.to_json()
            self.assertEqual(d["participant_id"], "p2")
            self.assertEqual(d["participant_name"], "Bob")
            self.assertEqual(d["drawn_at"], "2026-05-01T12:00:00+00:00")
            self.assertEqual(event.winners, [record])

    def test_winner_record_requires_identity(self):
        with self.assertRaises(ValueError):
            WinnerRecord(tier=0, prize_label="Trip")

    def test_event_names_are_unique(self):
        with self.Session() as session:
            self._event(session)
            session.add(LotteryEvent(name="gala"))
            with self.assertRaises(IntegrityError):
                session.flush()


if __name__ == "__main__":
    unittest.main()
