"""Fixed-size worker pool and the batch orchestration built on it."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Sequence

from .codec import PillowCodec
from .conversion import convert_entry, plan_destinations
from .formats import ExtensionMatcher
from .models import (
    BatchSummary,
    ConversionOutcome,
    ProgressState,
    RunConfig,
    SourceEntry,
)
from .partition import partition
from .progress import ProgressAggregator
from .sources import discover_images
from .utils import MAX_REPORTED_FAILURES, lane_message

log = logging.getLogger(__name__)

ConvertFn = Callable[[SourceEntry, int], ConversionOutcome]


class WorkerPool:
    """Start exactly one worker thread per chunk and wait for all of them.

    Workers share the read-only ``RunConfig`` and a cancellation token.
    Each owns one ``ProgressState``; no other mutable state is shared.
    """

    def __init__(
        self,
        config: RunConfig,
        convert: ConvertFn,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self.config = config
        self.convert = convert
        self.cancel = cancel if cancel is not None else threading.Event()

    def progress_states(
        self, chunks: Sequence[Sequence[SourceEntry]]
    ) -> list[ProgressState]:
        return [
            ProgressState(worker=index, total=len(chunk))
            for index, chunk in enumerate(chunks)
        ]

    def _work(
        self,
        index: int,
        chunk: Sequence[SourceEntry],
        state: ProgressState,
    ) -> list[ConversionOutcome]:
        outcomes: list[ConversionOutcome] = []
        remaining = 0
        try:
            for position, entry in enumerate(chunk):
                if self.cancel.is_set():
                    remaining = len(chunk) - position
                    log.info(
                        "Worker %s cancelled with %s entries left", index, remaining
                    )
                    outcomes.extend(
                        ConversionOutcome(
                            source=pending.path, status="cancelled", worker=index
                        )
                        for pending in chunk[position:]
                    )
                    break

                outcome = self.convert(entry, index)
                outcomes.append(outcome)
                state.advance(lane_message(entry.path), failed=outcome.failed)

                if outcome.failed and self.config.fail_fast:
                    log.error(
                        "Fail-fast: aborting run after %s failure on %s",
                        outcome.error_kind,
                        entry.path,
                    )
                    self.cancel.set()
        finally:
            state.finish(cancelled=remaining)
        return outcomes

    def run(
        self,
        chunks: Sequence[Sequence[SourceEntry]],
        states: Optional[Sequence[ProgressState]] = None,
    ) -> list[ConversionOutcome]:
        """Process every chunk on its own worker; return outcomes in chunk order.

        Returns only once every worker has terminated.
        """
        if states is None:
            states = self.progress_states(chunks)
        results: list[list[ConversionOutcome]] = [[] for _ in chunks]
        errors: list[Optional[BaseException]] = [None] * len(chunks)

        def target(index: int) -> None:
            try:
                results[index] = self._work(index, chunks[index], states[index])
            except BaseException as exc:
                errors[index] = exc
                self.cancel.set()

        threads = [
            threading.Thread(target=target, args=(index,), name=f"convert-{index}")
            for index in range(len(chunks))
        ]
        for thread in threads:
            thread.start()
        try:
            for thread in threads:
                thread.join()
        except KeyboardInterrupt:
            log.warning("Interrupted: letting workers finish their current entry")
            self.cancel.set()
            for thread in threads:
                thread.join()
            raise

        for exc in errors:
            if exc is not None:
                raise exc

        outcomes: list[ConversionOutcome] = []
        for chunk_outcomes in results:
            outcomes.extend(chunk_outcomes)
        return outcomes


# ---------------------------------------------------------------------------
# Batch orchestration
# ---------------------------------------------------------------------------


def run_batch(
    config: RunConfig,
    *,
    codec: Optional[PillowCodec] = None,
    show_progress: bool = True,
    cancel: Optional[threading.Event] = None,
) -> BatchSummary:
    """Discover, partition and convert every matching image for *config*.

    Raises:
        TraversalError: if the input directory cannot be opened.
        ConfigError: if the codec cannot write the target format.
    """
    codec = codec or PillowCodec(config.target_format)
    matcher = ExtensionMatcher(config.source_extensions)

    t0 = time.perf_counter()
    entries = discover_images(
        config.input_dir,
        config.depth_range,
        matcher,
        parallel=config.parallel_walk,
        max_workers=config.workers,
    )
    log.info(
        "Discovered %s matching files under %s (depth %s) in %.2fs",
        len(entries),
        config.input_dir,
        config.depth_range,
        time.perf_counter() - t0,
    )

    accepted, conflicts = plan_destinations(entries, config)
    chunks = partition(accepted, config.workers)
    log.info(
        "Partitioned %s entries over %s workers: %s",
        len(accepted),
        config.workers,
        [len(chunk) for chunk in chunks],
    )

    pool = WorkerPool(
        config,
        lambda entry, worker: convert_entry(entry, config, codec, worker=worker),
        cancel=cancel,
    )
    if conflicts and config.fail_fast:
        log.error(
            "Fail-fast: aborting run after %s destination conflicts", len(conflicts)
        )
        pool.cancel.set()
    states = pool.progress_states(chunks)

    t1 = time.perf_counter()
    with ProgressAggregator(states, enabled=show_progress and bool(accepted)):
        outcomes = pool.run(chunks, states)
    log.info("Conversion stage completed in %.2fs", time.perf_counter() - t1)

    return BatchSummary(
        matched=len(entries),
        outcomes=conflicts + outcomes,
        cancelled_run=pool.cancel.is_set(),
    )


def log_summary(summary: BatchSummary) -> None:
    """Log the end-of-run report, listing the first failures."""
    log.info("=" * 60)
    log.info("BATCH COMPLETE")
    log.info(f"  Files matched:   {summary.matched}")
    log.info(f"  Converted:       {len(summary.succeeded)}")
    log.info(f"  Skipped:         {len(summary.skipped)}")
    log.info(f"  Cancelled:       {len(summary.cancelled)}")
    log.info(f"  Failed:          {len(summary.failed)}")
    deleted = sum(1 for o in summary.outcomes if o.deleted_original)
    if deleted:
        log.info(f"  Originals removed: {deleted}")
    failed = summary.failed
    if failed:
        log.warning("Failed files:")
        for outcome in failed[:MAX_REPORTED_FAILURES]:
            log.warning(f"  - [{outcome.error_kind}] {outcome.source}: {outcome.error}")
        if len(failed) > MAX_REPORTED_FAILURES:
            log.warning(f"  ... and {len(failed) - MAX_REPORTED_FAILURES} more")
