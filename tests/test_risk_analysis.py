from __future__ import annotations

import unittest

from tierdraw.allocation import RiskyRound, analyze
from tierdraw.models import DrawRound, Participant


def _roster() -> list[Participant]:
    roster = [Participant(external_id=f"u{i}", name=f"U{i}") for i in range(4)]
    roster.append(Participant(external_id="c", name="Fifth only", max_tier=5))
    return roster


def _plan() -> list[DrawRound]:
    return [
        DrawRound(position=0, tier=5, label="Voucher", quota=2),
        DrawRound(position=1, tier=3, label="Tablet", quota=2),
        DrawRound(position=2, tier=0, label="Trip", quota=1),
    ]


class AnalyzeTests(unittest.TestCase):
    def test_discount_flags_early_rounds(self) -> None:
        report = analyze(_roster(), 0, _plan())
        self.assertTrue(report.has_risk)
        self.assertEqual(
            report.risky_rounds,
            [RiskyRound(index=0, label="Voucher", quota=2, predicted_available=1)],
        )
        self.assertEqual(report.risky_rounds[0].number, 1)
        self.assertEqual(report.risky_rounds[0].deficit, 1)

    def test_start_index_skips_completed_rounds(self) -> None:
        report = analyze(_roster(), 1, _plan())
        self.assertFalse(report.has_risk)
        self.assertEqual(report.risky_rounds, [])

    def test_past_winners_are_not_counted(self) -> None:
        roster = _roster()
        for participant in roster[:3]:
            participant.mark_won()
        report = analyze(roster, 1, _plan())
        self.assertEqual([r.index for r in report.risky_rounds], [1])
        self.assertEqual(report.risky_rounds[0].predicted_available, 0)

    def test_discount_is_configurable(self) -> None:
        self.assertFalse(analyze(_roster(), 0, _plan(), discount_per_round=0).has_risk)
        report = analyze(_roster(), 0, _plan(), discount_per_round=3)
        self.assertEqual([r.index for r in report.risky_rounds], [0, 1])

    def test_analysis_does_not_mutate_inputs(self) -> None:
        roster = _roster()
        plan = _plan()
        analyze(roster, 0, plan)
        self.assertEqual([r.remaining for r in plan], [2, 2, 1])
        self.assertFalse(any(p.has_won for p in roster))

    def test_start_past_the_end_reports_nothing(self) -> None:
        self.assertFalse(analyze(_roster(), 3, _plan()).has_risk)


if __name__ == "__main__":
    unittest.main()
