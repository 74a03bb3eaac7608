from __future__ import annotations

import random
import unittest

from tierdraw.allocation import (
    AllocationEngine,
    DrawSettings,
    FutureRound,
    draw,
    filter_eligible,
    random_draw,
)
from tierdraw.allocation.engine import find_last_chance, reserved_for_future
from tierdraw.models import Participant


def _people(prefix: str, count: int, **bounds) -> list[Participant]:
    return [
        Participant(external_id=f"{prefix}{i}", name=f"{prefix}-{i}", **bounds)
        for i in range(count)
    ]


def _ids(participants) -> set[str]:
    return {p.external_id for p in participants}


class DrawScenarioTests(unittest.TestCase):
    def test_unrestricted_pool_fills_quota(self) -> None:
        pool = _people("u", 3)
        outcome = draw(pool, 2, pool, 5, [], rng=random.Random(1))
        self.assertEqual(len(outcome.winners), 2)
        self.assertEqual(len(_ids(outcome.winners)), 2)
        self.assertTrue(_ids(outcome.winners) <= _ids(pool))
        self.assertEqual(outcome.stats.unrestricted_drawn, 2)
        self.assertEqual(outcome.stats.restricted_drawn, 0)
        self.assertEqual(outcome.stats.total_eligible, 3)
        self.assertEqual(outcome.stats.shortfall, 0)

    def test_quota_larger_than_pool_is_under_filled_not_fatal(self) -> None:
        pool = _people("u", 2)
        with self.assertLogs("tierdraw.allocation.engine", level="WARNING"):
            outcome = draw(pool, 5, pool, 3, [], rng=random.Random(2))
        self.assertEqual(len(outcome.winners), 2)
        self.assertEqual(outcome.stats.shortfall, 3)
        self.assertTrue(outcome.stats.is_under_filled)

    def test_zero_quota_draws_nobody(self) -> None:
        pool = _people("u", 3)
        outcome = draw(pool, 0, pool, 3, [])
        self.assertEqual(outcome.winners, [])
        self.assertEqual(outcome.stats.total_eligible, 3)

    def test_future_only_participant_is_not_last_chance(self) -> None:
        a = Participant(external_id="A", name="A", max_tier=0)
        b = Participant(external_id="B", name="B")
        roster = [a, b]
        future = [FutureRound(tier=0, quota=1)]

        self.assertEqual(find_last_chance(roster, future), [])
        for seed in range(20):
            outcome = draw(roster, 1, roster, 5, future, rng=random.Random(seed))
            self.assertEqual(outcome.stats.last_chance_drawn, 0)
            # A takes the only restricted seat: ceil(1 * 1/2) == 1.
            self.assertEqual(outcome.winners, [a])
            # A alone covers the tier 0 round, so nothing is held back.
            self.assertEqual(outcome.stats.reserved_for_future, 0)


class LastChanceTests(unittest.TestCase):
    def test_last_chance_participant_always_wins(self) -> None:
        last = Participant(external_id="L", name="Last", max_tier=5)
        crowd = _people("u", 10)
        roster = [last] + crowd
        future = [FutureRound(tier=0, quota=1)]
        for seed in range(200):
            outcome = draw(roster, 1, roster, 5, future, rng=random.Random(seed))
            self.assertEqual(outcome.winners, [last])
            self.assertEqual(outcome.stats.last_chance_drawn, 1)
            self.assertEqual(outcome.stats.restricted_drawn, 1)
            self.assertEqual(outcome.stats.unrestricted_drawn, 0)

    def test_last_chance_with_only_current_tier_left(self) -> None:
        last = Participant(external_id="L", name="Last", min_tier=3, max_tier=3)
        roster = [last] + _people("r", 5, min_tier=5)
        future = [FutureRound(tier=4, quota=2), FutureRound(tier=1, quota=1)]
        for seed in range(100):
            outcome = draw(roster, 2, roster, 3, future, rng=random.Random(seed))
            self.assertIn(last, outcome.winners)

    def test_too_many_last_chance_candidates_fill_the_quota(self) -> None:
        lasts = _people("l", 4, max_tier=4)
        roster = lasts + _people("u", 4)
        outcome = draw(roster, 3, roster, 4, [], rng=random.Random(7))
        self.assertEqual(len(outcome.winners), 3)
        self.assertTrue(_ids(outcome.winners) <= _ids(lasts))
        self.assertEqual(outcome.stats.last_chance_drawn, 3)
        self.assertEqual(outcome.stats.reserved_for_future, 0)

    def test_floor_only_participants_are_never_last_chance(self) -> None:
        roster = _people("f", 3, min_tier=2)
        self.assertEqual(find_last_chance(roster, []), [])


class ReservationTests(unittest.TestCase):
    def test_reserve_counts_future_shortfall_at_current_tier_or_better(self) -> None:
        roster = _people("u", 5) + _people("c", 1, max_tier=1)
        future = [
            FutureRound(tier=6, quota=4),  # worse than current: ignored
            FutureRound(tier=2, quota=2),  # 1 ceiling-bounded covers one seat
            FutureRound(tier=0, quota=1),  # nobody with a ceiling can win 0
        ]
        self.assertEqual(reserved_for_future(roster, 3, future), 2)

    def test_reserve_is_capped_by_participants_without_ceiling(self) -> None:
        roster = _people("u", 1) + _people("f", 1, min_tier=0)
        future = [FutureRound(tier=0, quota=5)]
        self.assertEqual(reserved_for_future(roster, 0, future), 2)

    def test_no_future_rounds_means_no_reserve(self) -> None:
        self.assertEqual(reserved_for_future(_people("u", 3), 2, []), 0)

    def test_reserve_withholds_unrestricted_participants(self) -> None:
        lone = Participant(external_id="U", name="Only")
        future = [FutureRound(tier=0, quota=1)]
        outcome = draw([lone], 1, [lone], 3, future, rng=random.Random(0))
        self.assertEqual(outcome.winners, [])
        self.assertEqual(outcome.stats.reserved_for_future, 1)
        self.assertEqual(outcome.stats.shortfall, 1)

    def test_last_chance_then_reserve(self) -> None:
        last = Participant(external_id="R", name="Fifth only", max_tier=5)
        crowd = _people("u", 2)
        roster = [last] + crowd
        future = [FutureRound(tier=0, quota=1)]
        for seed in range(50):
            outcome = draw(roster, 2, roster, 5, future, rng=random.Random(seed))
            self.assertEqual(len(outcome.winners), 2)
            self.assertIn(last, outcome.winners)
            self.assertEqual(outcome.stats.last_chance_drawn, 1)
            self.assertEqual(outcome.stats.reserved_for_future, 1)
            self.assertEqual(outcome.stats.unrestricted_drawn, 1)
            self.assertEqual(outcome.stats.restricted_drawn, 1)


class ProtectedSplitTests(unittest.TestCase):
    def test_restricted_share_follows_group_ratio(self) -> None:
        restricted = _people("r", 2, min_tier=5)
        roster = restricted + _people("u", 8)
        outcome = draw(roster, 4, roster, 5, [], rng=random.Random(3))
        # ceil(4 * min(0.7, 2 / 10)) == 1
        self.assertEqual(outcome.stats.restricted_drawn, 1)
        self.assertEqual(outcome.stats.unrestricted_drawn, 3)
        self.assertEqual(outcome.stats.restricted_count, 2)
        self.assertEqual(outcome.stats.unrestricted_count, 8)

    def test_restricted_share_is_capped(self) -> None:
        roster = _people("r", 9, min_tier=5) + _people("u", 1)
        outcome = draw(roster, 4, roster, 5, [], rng=random.Random(4))
        # ceil(4 * 0.7) == 3, not ceil(4 * 0.9) == 4
        self.assertEqual(outcome.stats.restricted_drawn, 3)
        self.assertEqual(outcome.stats.unrestricted_drawn, 1)

    def test_cap_is_configurable(self) -> None:
        roster = _people("r", 9, min_tier=5) + _people("u", 1)
        engine = AllocationEngine(
            DrawSettings(restricted_share_cap=0.9), rng=random.Random(4)
        )
        outcome = engine.draw(roster, 4, roster, 5, [])
        self.assertEqual(outcome.stats.restricted_drawn, 4)
        self.assertEqual(outcome.stats.unrestricted_drawn, 0)

    def test_short_unrestricted_group_is_topped_up_from_restricted(self) -> None:
        roster = _people("r", 9, min_tier=5) + _people("u", 1)
        outcome = draw(roster, 10, roster, 5, [], rng=random.Random(5))
        self.assertEqual(len(outcome.winners), 10)
        self.assertEqual(outcome.stats.restricted_drawn, 9)
        self.assertEqual(outcome.stats.unrestricted_drawn, 1)

    def test_everyone_drawn_when_candidates_fall_short(self) -> None:
        roster = _people("r", 3, min_tier=4) + _people("u", 2)
        outcome = draw(roster, 8, roster, 4, [], rng=random.Random(6))
        self.assertEqual(_ids(outcome.winners), _ids(roster))
        self.assertEqual(outcome.stats.shortfall, 3)


class StatsConsistencyTests(unittest.TestCase):
    def test_counters_stay_consistent_under_random_rosters(self) -> None:
        rng = random.Random(2024)
        for trial in range(300):
            roster = []
            for i in range(rng.randint(0, 25)):
                floor = rng.choice([None, None, rng.randint(0, 5)])
                ceiling = rng.choice([None, None, rng.randint(0, 5)])
                if floor is not None and ceiling is not None and floor < ceiling:
                    floor, ceiling = ceiling, floor
                roster.append(
                    Participant(
                        external_id=f"{trial}-{i}",
                        name=str(i),
                        min_tier=floor,
                        max_tier=ceiling,
                    )
                )
            tier = rng.randint(0, 5)
            future = [
                FutureRound(tier=rng.randint(0, 5), quota=rng.randint(1, 3))
                for _ in range(rng.randint(0, 4))
            ]
            pool = filter_eligible(roster, tier)
            quota = rng.randint(1, 6)
            outcome = draw(pool, quota, roster, tier, future, rng=random.Random(trial))
            stats = outcome.stats

            with self.subTest(trial=trial):
                self.assertEqual(
                    stats.unrestricted_drawn + stats.restricted_drawn,
                    len(outcome.winners),
                )
                self.assertLessEqual(stats.last_chance_drawn, stats.restricted_drawn)
                self.assertLessEqual(len(outcome.winners), quota)
                self.assertEqual(len(_ids(outcome.winners)), len(outcome.winners))
                self.assertTrue(_ids(outcome.winners) <= _ids(pool))
                self.assertEqual(
                    stats.unrestricted_count + stats.restricted_count, len(pool)
                )
                for lc in find_last_chance(pool, future)[:quota]:
                    # every last-chance candidate wins while seats last
                    if len(find_last_chance(pool, future)) <= quota:
                        self.assertIn(lc, outcome.winners)

    def test_same_seed_gives_same_winners(self) -> None:
        roster = _people("r", 6, max_tier=2) + _people("u", 12)
        future = [FutureRound(tier=1, quota=2), FutureRound(tier=0, quota=1)]
        first = draw(roster, 4, roster, 3, future, rng=random.Random(99))
        second = draw(roster, 4, roster, 3, future, rng=random.Random(99))
        self.assertEqual(first.winners, second.winners)

    def test_stats_serialize(self) -> None:
        pool = _people("u", 3)
        payload = draw(pool, 5, pool, 0, []).stats.to_json()
        self.assertEqual(payload["requested"], 5)
        self.assertEqual(payload["shortfall"], 2)


class RandomDrawTests(unittest.TestCase):
    def test_random_draw_has_no_protection(self) -> None:
        roster = _people("r", 3, max_tier=4) + _people("u", 3)
        outcome = random_draw(roster, 4, rng=random.Random(8))
        self.assertEqual(len(outcome.winners), 4)
        self.assertEqual(outcome.stats.reserved_for_future, 0)
        self.assertEqual(outcome.stats.last_chance_drawn, 0)
        self.assertEqual(
            outcome.stats.restricted_drawn + outcome.stats.unrestricted_drawn, 4
        )


if __name__ == "__main__":
    unittest.main()
