"""Concurrent fetching with per-URL retries.

Usage:
    reports = run(urls, fetch, workers=4, retries=2)

``fetch(url)`` returns a Report or raises. Any exception, or a return value
that isn't a Report, counts as a transient failure: the URL is queued again
until it has been attempted ``retries + 1`` times, after which an empty
placeholder Report is recorded for it. The returned list lines up with
*urls* whatever order the fetches finish in.
"""

import logging
import queue
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from psi_report.config import ConfigError
from psi_report.models import Report

logger = logging.getLogger(__name__)

FetchFunc = Callable[[str], Report]
FailureHook = Callable[[str, int, Exception], None]

# Put on the pending queue once per worker to shut the pool down
_STOP = object()


@dataclass
class _Job:
    url: str
    attempts: int = 0
    last_error: Exception | None = None


@dataclass
class _Outcome:
    job: _Job
    report: Report | None = None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def run(
    urls: Sequence[str],
    fetch: FetchFunc,
    *,
    workers: int,
    retries: int,
    on_failure: FailureHook | None = None,
) -> list[Report]:
    """Fetch every URL on a pool of *workers* threads.

    Args:
        urls:       URLs to analyze. Duplicates are fetched once.
        fetch:      Called with one URL at a time; returns a Report or raises.
        workers:    Maximum number of concurrent fetch calls.
        retries:    Extra attempts allowed per URL after the first failure.
        on_failure: Called as ``on_failure(url, attempts, last_error)`` for
                    each URL whose attempts are exhausted.

    Returns:
        One Report per entry in *urls*, in the same order. URLs that never
        succeeded get ``Report(url=url)`` with no categories.

    Raises:
        ConfigError: if *workers* < 1 or *retries* < 0 and there is work to do.
    """
    if not urls:
        return []
    if workers < 1:
        raise ConfigError(f"Worker count must be at least 1 (got {workers})")
    if retries < 0:
        raise ConfigError(f"Retry count can't be negative (got {retries})")

    unique = list(dict.fromkeys(urls))
    pending: queue.Queue = queue.Queue()
    completed: queue.Queue = queue.Queue()
    for url in unique:
        pending.put(_Job(url))

    pool = [
        threading.Thread(
            target=_work,
            args=(pending, completed, fetch),
            name=f"psi-worker-{i}",
            daemon=True,
        )
        for i in range(min(workers, len(unique)))
    ]
    logger.debug("Fetching %d URL(s) with %d worker(s)", len(unique), len(pool))
    for thread in pool:
        thread.start()

    try:
        done = _coordinate(pending, completed, len(unique), retries, on_failure)
    finally:
        for _ in pool:
            pending.put(_STOP)
    for thread in pool:
        thread.join()

    return [done[url] for url in urls]


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------

def _work(pending: queue.Queue, completed: queue.Queue, fetch: FetchFunc) -> None:
    while True:
        job = pending.get()
        if job is _STOP:
            return
        job.attempts += 1
        try:
            report = fetch(job.url)
            if not isinstance(report, Report):
                raise TypeError(f"fetch returned {type(report).__name__}, not a Report")
        except Exception as exc:  # every fetch error is retryable
            job.last_error = exc
            completed.put(_Outcome(job))
        else:
            completed.put(_Outcome(job, report))


def _coordinate(
    pending: queue.Queue,
    completed: queue.Queue,
    total: int,
    retries: int,
    on_failure: FailureHook | None,
) -> dict[str, Report]:
    """Drain outcomes until every URL has a final Report.

    Only this loop reads or writes the done map, so each URL ends up with
    exactly one result.
    """
    done: dict[str, Report] = {}
    while len(done) < total:
        outcome: _Outcome = completed.get()
        job = outcome.job

        if outcome.report is not None:
            done[job.url] = outcome.report
            if job.attempts > 1:
                logger.debug("%s succeeded on attempt %d", job.url, job.attempts)
        elif job.attempts <= retries:
            logger.debug(
                "Attempt %d/%d for %s failed: %s",
                job.attempts, retries + 1, job.url, job.last_error,
            )
            pending.put(job)
        else:
            logger.warning(
                "Giving up on %s after %d attempt(s): %s",
                job.url, job.attempts, job.last_error,
            )
            done[job.url] = Report(url=job.url)
            if on_failure is not None:
                on_failure(job.url, job.attempts, job.last_error)

    return done
