from __future__ import annotations

import logging
import queue
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, Iterator, Optional

from .models import ScrapeOutcome, ScrapeResult

logger = logging.getLogger("scrapfly_client")

_WORKER_DONE = object()


class ConcurrentScrapeController:
    """Runs a batch of scrapes on a fixed pool of ``limit`` worker threads.

    Workers pull configs from a shared queue until it is empty. Every config
    yields exactly one ``ScrapeOutcome``, in completion order. The stream
    ends once every worker has reported it is done. There is no early abort:
    a failing item does not stop the others.
    """

    def __init__(
        self,
        scrape: Callable[[Any], ScrapeResult],
        limit: int,
        log: Optional[logging.Logger] = None,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be a positive integer")
        self._scrape = scrape
        self._limit = limit
        self._log = log or logger

    @property
    def limit(self) -> int:
        return self._limit

    def run(self, configs: Iterable[Any]) -> Iterator[ScrapeOutcome]:
        work: "queue.Queue[Any]" = queue.Queue()
        for config in configs:
            work.put(config)
        results: "queue.Queue[Any]" = queue.Queue()

        self._log.debug("starting %d workers for %d configs", self._limit, work.qsize())
        executor = ThreadPoolExecutor(max_workers=self._limit, thread_name_prefix="scrapfly-worker")
        try:
            for _ in range(self._limit):
                executor.submit(self._worker, work, results)

            running = self._limit
            while running:
                item = results.get()
                if item is _WORKER_DONE:
                    running -= 1
                    continue
                yield item
        finally:
            executor.shutdown(wait=False)

    def _worker(self, work: "queue.Queue[Any]", results: "queue.Queue[Any]") -> None:
        try:
            while True:
                try:
                    config = work.get_nowait()
                except queue.Empty:
                    return
                results.put(self._run_one(config))
        finally:
            results.put(_WORKER_DONE)

    def _run_one(self, config: Any) -> ScrapeOutcome:
        try:
            return ScrapeOutcome(config=config, result=self._scrape(config))
        except Exception as exc:  # noqa: BLE001
            self._log.debug("scrape of %s failed: %s", getattr(config, "url", config), exc)
            return ScrapeOutcome(config=config, error=exc)
