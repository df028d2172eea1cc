"""Tests for the retry delay policies."""

import unittest

from scrapfly_client.backoff import ExponentialBackoff, FixedBackoff, make_backoff


class UpperBoundRandom:
    """Stand-in for random.Random that always draws the top of the range."""

    def __init__(self):
        self.ranges = []

    def uniform(self, low, high):
        self.ranges.append((low, high))
        return high


class TestFixedBackoff(unittest.TestCase):
    """Verify the default constant delay policy."""

    def test_default_delay_is_one_second(self):
        """Every attempt should wait one second by default."""
        backoff = FixedBackoff()
        for attempt in range(1, 5):
            self.assertEqual(backoff.get_sleep(attempt), 1.0)

    def test_custom_delay(self):
        """The configured delay should be returned unchanged."""
        backoff = FixedBackoff(delay_seconds=0.25)
        self.assertEqual(backoff.get_sleep(attempt=3, error_type="HTTP_503"), 0.25)

    def test_negative_delay_is_clamped(self):
        """A negative delay should never produce a negative sleep."""
        self.assertEqual(FixedBackoff(delay_seconds=-1).get_sleep(1), 0.0)


class TestExponentialBackoff(unittest.TestCase):
    """Verify the capped full-jitter policy."""

    def test_ceiling_grows_by_factor(self):
        backoff = ExponentialBackoff(base_seconds=0.5, max_seconds=100.0, factor=3.0)
        self.assertEqual(
            [backoff.ceiling(attempt) for attempt in (1, 2, 3)],
            [0.5, 1.5, 4.5],
        )

    def test_ceiling_is_capped(self):
        backoff = ExponentialBackoff(base_seconds=1.0, max_seconds=5.0)
        self.assertEqual(backoff.ceiling(attempt=500), 5.0)

    def test_overload_starts_one_step_higher(self):
        """503/504 answers should wait as if one more attempt had failed."""
        backoff = ExponentialBackoff(base_seconds=1.0, max_seconds=60.0)
        self.assertEqual(backoff.ceiling(1, "HTTP_503"), 2.0)
        self.assertEqual(backoff.ceiling(2, "HTTP_504"), 4.0)
        self.assertEqual(backoff.ceiling(2, "HTTP_500"), 2.0)
        self.assertEqual(backoff.ceiling(2, "ConnectionError"), 2.0)

    def test_sleep_drawn_below_ceiling(self):
        rng = UpperBoundRandom()
        backoff = ExponentialBackoff(base_seconds=1.0, max_seconds=60.0, rng=rng)
        self.assertEqual(backoff.get_sleep(3), 4.0)
        self.assertEqual(rng.ranges, [(0, 4.0)])

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            ExponentialBackoff(base_seconds=-1)
        with self.assertRaises(ValueError):
            ExponentialBackoff(factor=0.5)


class TestMakeBackoff(unittest.TestCase):
    """Verify policy selection by name."""

    def test_fixed(self):
        backoff = make_backoff("fixed", 2.0, 30.0)
        self.assertIsInstance(backoff, FixedBackoff)
        self.assertEqual(backoff.get_sleep(4), 2.0)

    def test_exponential(self):
        backoff = make_backoff("exponential", 0.5, 8.0)
        self.assertIsInstance(backoff, ExponentialBackoff)
        self.assertEqual(backoff.ceiling(10), 8.0)

    def test_unknown_policy(self):
        with self.assertRaises(ValueError):
            make_backoff("linear", 1.0, 10.0)


if __name__ == "__main__":
    unittest.main()
