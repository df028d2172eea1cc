"""Tests for the ConcurrentScrapeController."""

import threading
import time
import unittest

from scrapfly_client.controller import ConcurrentScrapeController


class TrackingScraper:
    """Fake scrape callable that records how many calls overlap."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, config):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            self.calls.append(config)
        try:
            time.sleep(0.02)
            if config in self.fail_on:
                raise RuntimeError(f"boom {config}")
            return f"result {config}"
        finally:
            with self._lock:
                self.in_flight -= 1


class TestConcurrentScrapeController(unittest.TestCase):
    """Verify bounded concurrency and exactly-once delivery."""

    def test_invalid_limit(self):
        with self.assertRaises(ValueError):
            ConcurrentScrapeController(lambda c: c, 0)

    def test_limit_respected_and_each_outcome_once(self):
        """Ten configs at limit three should never overlap more than three calls."""
        scraper = TrackingScraper()
        controller = ConcurrentScrapeController(scraper, 3)
        outcomes = list(controller.run(range(10)))

        self.assertEqual(len(outcomes), 10)
        self.assertEqual(sorted(o.config for o in outcomes), list(range(10)))
        self.assertLessEqual(scraper.max_in_flight, 3)
        self.assertEqual(sorted(scraper.calls), list(range(10)))
        self.assertTrue(all(o.ok for o in outcomes))
        self.assertEqual({o.result for o in outcomes}, {f"result {i}" for i in range(10)})

    def test_errors_are_delivered_not_raised(self):
        """A failing item should yield an error outcome while the others continue."""
        scraper = TrackingScraper(fail_on={2, 5})
        outcomes = list(ConcurrentScrapeController(scraper, 2).run(range(8)))

        self.assertEqual(len(outcomes), 8)
        failed = sorted(o.config for o in outcomes if not o.ok)
        self.assertEqual(failed, [2, 5])
        for outcome in outcomes:
            if not outcome.ok:
                self.assertIsInstance(outcome.error, RuntimeError)
                self.assertIsNone(outcome.result)

    def test_more_workers_than_configs(self):
        outcomes = list(ConcurrentScrapeController(TrackingScraper(), 5).run([1, 2]))
        self.assertEqual(sorted(o.config for o in outcomes), [1, 2])

    def test_empty_batch(self):
        self.assertEqual(list(ConcurrentScrapeController(TrackingScraper(), 3).run([])), [])


if __name__ == "__main__":
    unittest.main()
