from __future__ import annotations

import multiprocessing
import queue
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from threading import Event, Lock
from typing import Dict, Iterator, NamedTuple, Optional, Tuple

from .candidates import CandidateStream
from .config import SearchBackend, settings
from .errors import InvalidInputError, InvariantViolation, PrimeSearchTimeout
from .logging_utils import get_logger, log_context
from .metrics_recorder import SearchMetricsRecorder, search_metrics
from .primality import PrimalityOracle, default_oracle

logger = get_logger(__name__)

# How often the parent re-checks worker liveness and the deadline.
_POLL_SECONDS = 0.25
# How long stopped workers get to report before they are terminated.
_GRACE_SECONDS = 2.0


class PrimeSearchResult(NamedTuple):
    attempt: int
    prime: int


class _NumberedCandidates:
    """Hands out ``(attempt_index, candidate)`` pairs to concurrent worker threads."""

    def __init__(self, stream: CandidateStream) -> None:
        self._source: Iterator[Tuple[int, int]] = enumerate(stream)
        self._lock = Lock()

    def draw(self) -> Tuple[int, int]:
        with self._lock:
            return next(self._source)


class _Race:
    """First accepted candidate wins; setting the winner cancels everyone else."""

    def __init__(self) -> None:
        self.cancel = Event()
        self._lock = Lock()
        self.winner: Optional[PrimeSearchResult] = None

    def offer(self, result: PrimeSearchResult) -> None:
        with self._lock:
            if self.winner is None:
                self.winner = result
        self.cancel.set()


def _process_worker(oracle, bits, stop_event, results, worker_index) -> None:
    """Search loop run in a child process.

    Draws from its own stream and reports ``("prime", index, local_attempt, prime)``,
    ``("error", index, exc, None)`` and finally ``("done", index, outcome_counts, None)``.
    """
    outcomes: Dict[str, int] = {}
    try:
        for attempt, candidate in enumerate(CandidateStream(bits)):
            if stop_event.is_set():
                break
            verdict = oracle.verdict(candidate)
            outcomes[verdict.value] = outcomes.get(verdict.value, 0) + 1
            if verdict.is_prime:
                results.put(("prime", worker_index, attempt, candidate))
                stop_event.set()
                break
    except Exception as exc:
        results.put(("error", worker_index, exc, None))
        stop_event.set()
    results.put(("done", worker_index, outcomes, None))


class ParallelPrimeSearch:
    """
    Race a pool of workers over random candidates of one bit length:
      - every worker loops: check cancel token, draw, test
      - the first accepted candidate is kept and the token is set
      - siblings stop at their next token check; all workers are joined before returning
      - an optional deadline cancels the whole search

    ``backend="process"`` (default) runs one OS process per worker, each with its
    own candidate stream, so Miller-Rabin rounds run in parallel. ``"thread"``
    shares one numbered stream between threads of this process; the oracle then
    need not be picklable.
    """

    def __init__(
        self,
        oracle: Optional[PrimalityOracle] = None,
        *,
        max_workers: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        backend: Optional[SearchBackend] = None,
        metrics: SearchMetricsRecorder = search_metrics,
    ) -> None:
        self.oracle = oracle if oracle is not None else default_oracle()
        self.max_workers = int(max_workers or settings.worker_pool_size)
        if timeout_seconds is None:
            timeout_seconds = settings.search_timeout_seconds
        self.timeout_seconds = float(timeout_seconds)
        self.backend = backend or settings.search_backend
        if self.backend not in ("process", "thread"):
            raise InvalidInputError(f"unknown search backend: {self.backend}")
        self._metrics = metrics

    def _drain(self, source: _NumberedCandidates, race: _Race) -> None:
        try:
            while not race.cancel.is_set():
                attempt, candidate = source.draw()
                verdict = self.oracle.verdict(candidate)
                self._metrics.record_candidate(verdict.value)
                if verdict.is_prime:
                    race.offer(PrimeSearchResult(attempt, candidate))
                    return
        except Exception:
            race.cancel.set()
            raise

    def _race_threads(self, bits: int, deadline: float) -> Optional[PrimeSearchResult]:
        source = _NumberedCandidates(CandidateStream(bits))
        race = _Race()
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="primekey-search"
        )
        futures = []
        try:
            futures = [
                executor.submit(self._drain, source, race) for _ in range(self.max_workers)
            ]
            race.cancel.wait(deadline if deadline > 0 else None)
        finally:
            race.cancel.set()
            executor.shutdown(wait=True)

        for future in futures:
            exc = future.exception()
            if exc is not None:
                raise exc
        return race.winner

    def _race_processes(self, bits: int, deadline: float, start: float) -> Optional[PrimeSearchResult]:
        CandidateStream(bits)  # validate before spawning anything
        ctx = multiprocessing.get_context()
        stop_event = ctx.Event()
        results = ctx.Queue()
        workers = [
            ctx.Process(
                target=_process_worker,
                args=(self.oracle, bits, stop_event, results, i),
                name=f"primekey-search-{i}",
                daemon=True,
            )
            for i in range(self.max_workers)
        ]
        end = start + deadline if deadline > 0 else None
        winner: Optional[PrimeSearchResult] = None
        error: Optional[BaseException] = None
        finished: set[int] = set()

        def handle(message) -> None:
            nonlocal winner, error
            kind, index, payload, extra = message
            if kind == "prime":
                if winner is None:
                    winner = PrimeSearchResult(payload, extra)
            elif kind == "error":
                if error is None:
                    error = payload
            else:
                finished.add(index)
                for outcome, count in payload.items():
                    self._metrics.record_candidate(outcome, count)

        try:
            for worker in workers:
                worker.start()
            while winner is None and error is None and len(finished) < len(workers):
                wait = _POLL_SECONDS
                if end is not None:
                    wait = min(wait, end - time.perf_counter())
                    if wait <= 0:
                        break
                try:
                    handle(results.get(timeout=wait))
                except queue.Empty:
                    if not any(worker.is_alive() for worker in workers):
                        break
        finally:
            stop_event.set()
            grace_end = time.perf_counter() + _GRACE_SECONDS
            while len(finished) < len(workers):
                remaining = grace_end - time.perf_counter()
                if remaining <= 0:
                    break
                try:
                    handle(results.get(timeout=remaining))
                except queue.Empty:
                    break
            for worker in workers:
                if worker.pid is None:
                    continue
                worker.join(timeout=max(0.0, grace_end - time.perf_counter()))
                if worker.is_alive():
                    worker.terminate()
                    worker.join()
            results.close()
            results.join_thread()

        if error is not None:
            raise error
        return winner

    def find_prime(self, bits: int, *, timeout: Optional[float] = None) -> PrimeSearchResult:
        """Return the first probable prime with exactly ``bits`` bits and its attempt index.

        Blocks until a worker finds one. Raises ``PrimeSearchTimeout`` when a
        deadline is configured (``timeout`` or ``settings.search_timeout_seconds``)
        and expires first. With the process backend the attempt index counts
        draws of the winning worker only.
        """
        deadline = self.timeout_seconds if timeout is None else float(timeout)

        with log_context(search_id=uuid.uuid4().hex[:12], bits=bits):
            logger.debug(
                "Prime search started",
                extra={"max_workers": self.max_workers, "backend": self.backend},
            )
            start = time.perf_counter()
            if self.backend == "process":
                winner = self._race_processes(bits, deadline, start)
            else:
                winner = self._race_threads(bits, deadline)
            elapsed = time.perf_counter() - start

            if winner is None:
                if deadline > 0 and elapsed >= deadline:
                    self._metrics.record_timeout(bits, elapsed)
                    logger.warning(
                        "Prime search timed out", extra={"timeout_seconds": deadline}
                    )
                    raise PrimeSearchTimeout(
                        f"no {bits}-bit prime found within {deadline}s",
                        action_hint="Raise the search timeout or request a smaller key.",
                        detail={"bits": bits, "timeout_seconds": deadline},
                    )
                raise InvariantViolation(
                    "prime search ended without a winner",
                    detail={"bits": bits, "backend": self.backend},
                )

            self._metrics.record_success(bits, elapsed)
            logger.debug(
                "Prime search finished",
                extra={"attempt": winner.attempt, "latency_s": elapsed},
            )
            return winner


_DEFAULT_SEARCH: Optional[ParallelPrimeSearch] = None
_DEFAULT_LOCK = Lock()


def default_search() -> ParallelPrimeSearch:
    global _DEFAULT_SEARCH
    if _DEFAULT_SEARCH is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_SEARCH is None:
                _DEFAULT_SEARCH = ParallelPrimeSearch()
    return _DEFAULT_SEARCH


def find_prime(bits: int, *, timeout: Optional[float] = None) -> PrimeSearchResult:
    return default_search().find_prime(bits, timeout=timeout)
