from __future__ import annotations

import random
import unittest
from collections import Counter

from luckydraw.draw import assign, sample
from luckydraw.draw.errors import InsufficientCandidates, InvalidCount, PrizesRequired


class SamplerTests(unittest.TestCase):
    def test_returns_k_distinct_members_of_pool(self) -> None:
        pool = [f"p{i}" for i in range(20)]
        rng = random.Random(7)
        for k in range(1, 21):
            winners = sample(pool, k, rng=rng)
            self.assertEqual(len(winners), k)
            self.assertEqual(len(set(winners)), k)
            self.assertTrue(set(winners) <= set(pool))

    def test_whole_pool_is_a_permutation(self) -> None:
        pool = list(range(10))
        winners = sample(pool, 10, rng=random.Random(3))
        self.assertEqual(sorted(winners), pool)

    def test_input_sequence_is_not_mutated(self) -> None:
        pool = list(range(10))
        sample(pool, 5, rng=random.Random(1))
        self.assertEqual(pool, list(range(10)))

    def test_insufficient_candidates(self) -> None:
        with self.assertRaises(InsufficientCandidates) as ctx:
            sample(["a", "b"], 3)
        self.assertEqual(ctx.exception.available, 2)
        self.assertEqual(ctx.exception.requested, 3)
        self.assertEqual(ctx.exception.code, "INSUFFICIENT_CANDIDATES")

    def test_empty_pool_is_insufficient(self) -> None:
        with self.assertRaises(InsufficientCandidates):
            sample([], 1)

    def test_non_positive_count(self) -> None:
        for k in (0, -1):
            with self.assertRaises(InvalidCount):
                sample(["a", "b"], k)

    def test_non_integer_count(self) -> None:
        with self.assertRaises(InvalidCount):
            sample(["a", "b"], 1.5)  # type: ignore[arg-type]
        with self.assertRaises(InvalidCount):
            sample(["a", "b"], True)  # type: ignore[arg-type]

    def test_seeded_rng_is_reproducible(self) -> None:
        pool = list(range(50))
        first = sample(pool, 5, rng=random.Random(42))
        second = sample(pool, 5, rng=random.Random(42))
        self.assertEqual(first, second)

    def test_default_source_varies_between_runs(self) -> None:
        pool = list(range(100))
        draws = {tuple(sample(pool, 5)) for _ in range(10)}
        self.assertGreater(len(draws), 1)

    def test_single_winner_distribution_is_uniform(self) -> None:
        pool = list(range(10))
        rng = random.Random(2024)
        counts = Counter(sample(pool, 1, rng=rng)[0] for _ in range(10_000))
        self.assertEqual(set(counts), set(pool))
        for candidate in pool:
            # expected 1000, standard deviation 30
            self.assertGreater(counts[candidate], 850, candidate)
            self.assertLess(counts[candidate], 1150, candidate)

    def test_early_candidates_win_as_often_as_late_ones(self) -> None:
        # Selecting only from a suffix of the list would starve the front half.
        pool = list(range(10))
        rng = random.Random(99)
        counts = Counter()
        for _ in range(5_000):
            counts.update(sample(pool, 3, rng=rng))
        front = sum(counts[i] for i in range(5))
        back = sum(counts[i] for i in range(5, 10))
        self.assertAlmostEqual(front / (front + back), 0.5, delta=0.03)

    def test_every_position_is_uniform(self) -> None:
        pool = list(range(4))
        rng = random.Random(5)
        second_place = Counter(sample(pool, 2, rng=rng)[1] for _ in range(8_000))
        for candidate in pool:
            self.assertGreater(second_place[candidate], 1_800)
            self.assertLess(second_place[candidate], 2_200)


class PrizeAssignmentTests(unittest.TestCase):
    def test_labels_cycle_over_winners(self) -> None:
        winners = ["w0", "w1", "w2", "w3", "w4"]
        pairs = assign(winners, ["gold", "silver"])
        self.assertEqual(
            [label for _, label in pairs],
            ["gold", "silver", "gold", "silver", "gold"],
        )
        self.assertEqual([winner for winner, _ in pairs], winners)

    def test_surplus_labels_are_unused(self) -> None:
        pairs = assign(["a", "b"], ["first", "second", "third"])
        self.assertEqual(pairs, [("a", "first"), ("b", "second")])

    def test_no_winners(self) -> None:
        self.assertEqual(assign([], ["prize"]), [])

    def test_empty_labels_rejected(self) -> None:
        with self.assertRaises(PrizesRequired):
            assign(["a"], [])


if __name__ == "__main__":
    unittest.main()
