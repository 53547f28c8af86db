"""Shard-parallel execution of aggregations: local per shard, merge in shard order, then finish."""
import logging
import threading
from collections import deque
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from itertools import islice
from typing import Deque, Iterable, Iterator, List, Optional, TypeVar

from wikipedia_stats.config.settings import EXECUTION_CONFIG
from wikipedia_stats.domain.models import Article
from wikipedia_stats.processing.aggregation.operators import (
    Aggregation, CoGroup, ContributorBags, merge_cogroups,
)
from wikipedia_stats.processing.shared.error_handling import AggregationCancelled

P = TypeVar('P')
R = TypeVar('R')


def shard(articles: Iterable[Article], shard_size: int) -> Iterator[List[Article]]:
    """Lazily cut ``articles`` into lists of at most ``shard_size`` items."""
    if shard_size <= 0:
        raise ValueError("shard_size must be positive")
    iterator = iter(articles)
    while True:
        batch = list(islice(iterator, shard_size))
        if not batch:
            return
        yield batch


class ShardedExecutor:
    """
    Runs :class:`Aggregation` objects over shards of an article sequence.

    With ``max_workers == 1`` everything runs in the calling thread. Otherwise
    shards are handed to a thread (or process) pool, at most ``2 * max_workers``
    in flight, and partials are merged in shard order so results do not depend
    on scheduling.
    """

    def __init__(
        self,
        max_workers: int = EXECUTION_CONFIG['workers'],
        shard_size: int = EXECUTION_CONFIG['shard_size'],
        use_processes: bool = False,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if shard_size < 1:
            raise ValueError("shard_size must be at least 1")
        self.max_workers = max_workers
        self.shard_size = shard_size
        self.use_processes = use_processes
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def run(
        self,
        aggregation: Aggregation[P, R],
        articles: Iterable[Article],
        cancel_event: Optional[threading.Event] = None
    ) -> R:
        """
        Compute ``aggregation`` over ``articles``.

        Args:
            aggregation: operator to run
            articles: article sequence, consumed once
            cancel_event: checked between shards; when set the run stops and
                partial results are discarded

        Raises:
            AggregationCancelled: if ``cancel_event`` was set
            concurrent.futures.TimeoutError: if a shard exceeds ``timeout``
        """
        return aggregation.finish(self._reduce(aggregation, articles, cancel_event))

    def cogroup(
        self,
        articles_a: Iterable[Article],
        articles_b: Iterable[Article],
        cancel_event: Optional[threading.Event] = None
    ) -> CoGroup:
        """Sharded equivalent of :func:`cogroup_by_contributor`."""
        left = self._reduce(ContributorBags(side=0), articles_a, cancel_event)
        right = self._reduce(ContributorBags(side=1), articles_b, cancel_event)
        return merge_cogroups(left, right)

    def _reduce(self, aggregation: Aggregation[P, R], articles: Iterable[Article], cancel_event) -> P:
        shards = shard(articles, self.shard_size)
        if self.max_workers == 1:
            partials = (aggregation.local(s) for s in self._until_cancelled(shards, cancel_event))
            return self._merge_all(aggregation, partials)

        pool = self._make_pool()
        try:
            merged = self._merge_all(aggregation, self._pooled_partials(pool, aggregation, shards, cancel_event))
        except BaseException:
            # a timed-out shard may still be running; do not wait for it
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        pool.shutdown(wait=True)
        return merged

    def _merge_all(self, aggregation: Aggregation[P, R], partials: Iterable[P]) -> P:
        merged = None
        count = 0
        for partial in partials:
            merged = partial if count == 0 else aggregation.merge(merged, partial)
            count += 1
        self.logger.debug(f"{type(aggregation).__name__}: merged {count} shard(s)")
        if count == 0:
            return aggregation.local([])
        return merged

    def _pooled_partials(
        self,
        pool: Executor,
        aggregation: Aggregation[P, R],
        shards: Iterator[List[Article]],
        cancel_event: Optional[threading.Event]
    ) -> Iterator[P]:
        window: Deque[Future] = deque()
        limit = 2 * self.max_workers
        try:
            for batch in self._until_cancelled(shards, cancel_event):
                window.append(pool.submit(aggregation.local, batch))
                if len(window) >= limit:
                    yield window.popleft().result(timeout=self.timeout)
            while window:
                self._check_cancelled(cancel_event)
                yield window.popleft().result(timeout=self.timeout)
        finally:
            for future in window:
                future.cancel()

    def _until_cancelled(self, shards: Iterator[List[Article]], cancel_event) -> Iterator[List[Article]]:
        for batch in shards:
            self._check_cancelled(cancel_event)
            yield batch

    def _check_cancelled(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self.logger.warning("Aggregation cancelled between shards; discarding partial results")
            raise AggregationCancelled("aggregation cancelled")

    def _make_pool(self) -> Executor:
        if self.use_processes:
            return ProcessPoolExecutor(max_workers=self.max_workers)
        return ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="shard")
