"""Bounded pool of extraction workers fed through an idle-worker queue."""

import itertools
import logging
import queue
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from .constants import Constants
from .exceptions import ExtractionError
from .types import ExtractionResult, FileFailure, WalkedFile

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class ExtractionRequest:
    """Message sent to a worker: one file's bytes and identity."""
    request_id: int
    relative_path: str
    data: bytes
    last_modified: int


@dataclass
class ExtractionResponse:
    """Message returned by a worker for exactly one request."""
    request_id: int
    result: ExtractionResult | None = None
    error: str | None = None


@dataclass
class PoolReport:
    """Outcome of one pool run."""
    results: list[tuple[WalkedFile, ExtractionResult]] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)


class PoolWorker:
    """One extractor reached through a single-slot channel, so it handles one file at a time."""

    def __init__(self, worker_id: int, extractor, logger: logging.Logger):
        self.worker_id = worker_id
        self.extractor = extractor
        self.logger = logger
        self._channel = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"extract-{worker_id}"
        )

    def send(self, request: ExtractionRequest) -> Future:
        """Post a request; the returned future resolves to its ExtractionResponse."""
        return self._channel.submit(self._handle, request)

    def _handle(self, request: ExtractionRequest) -> ExtractionResponse:
        try:
            result = self.extractor.extract(
                request.data, request.relative_path, request.last_modified
            )
        except ExtractionError as e:
            return ExtractionResponse(request.request_id, error=str(e))
        return ExtractionResponse(request.request_id, result=result)

    def terminate(self) -> None:
        self._channel.shutdown(wait=True, cancel_futures=True)


class WorkerPool:
    """
    Fixed-size set of workers processing pending files in batches.

    Each batch holds at most min(pool_size, MAX_IN_FLIGHT) files; all of them are
    dispatched together and the pool waits for the whole batch before starting the
    next one. A dispatch takes a worker from the idle queue (blocking until one is
    free) and the worker goes back to the queue when its response arrives, whether
    the file succeeded or failed.
    """

    def __init__(
        self,
        extractor_factory: Callable[[], object],
        logger: logging.Logger,
        pool_size: int | None = None,
        max_in_flight: int = Constants.MAX_IN_FLIGHT,
    ):
        self.extractor_factory = extractor_factory
        self.logger = logger
        self.pool_size = max(1, pool_size or Constants.DEFAULT_POOL_SIZE)
        self.batch_size = max(1, min(self.pool_size, max_in_flight))
        self._workers: list[PoolWorker] = []
        self._idle: queue.Queue[PoolWorker] = queue.Queue()
        self._request_ids = itertools.count(1)

    @property
    def started(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        if self._workers:
            return
        for worker_id in range(self.pool_size):
            worker = PoolWorker(worker_id, self.extractor_factory(), self.logger)
            self._workers.append(worker)
            self._idle.put(worker)
        self.logger.debug(f"Started {self.pool_size} extraction workers")

    def shutdown(self) -> None:
        """Terminate every worker."""
        for worker in self._workers:
            worker.terminate()
        self._workers = []
        self._idle = queue.Queue()

    def __enter__(self) -> "WorkerPool":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def run(
        self, pending: Sequence[WalkedFile], progress: ProgressCallback | None = None
    ) -> PoolReport:
        """
        Extract every pending file.

        Args:
            pending: Files in dispatch order
            progress: Called with (completed, total) after each file, success or failure

        Returns:
            PoolReport with one entry per file in either results or failures
        """
        if not self._workers:
            raise RuntimeError("Worker pool is not started")

        report = PoolReport()
        total = len(pending)
        completed = 0

        def file_done() -> None:
            nonlocal completed
            completed += 1
            if progress:
                progress(completed, total)

        for start in range(0, total, self.batch_size):
            batch = pending[start:start + self.batch_size]
            in_flight: dict[Future, tuple[WalkedFile, ExtractionRequest]] = {}

            for walked in batch:
                try:
                    data = walked.path.read_bytes()
                except OSError as e:
                    self._record_failure(report, walked, f"cannot read file: {e}")
                    file_done()
                    continue

                request = ExtractionRequest(
                    request_id=next(self._request_ids),
                    relative_path=walked.relative_path,
                    data=data,
                    last_modified=walked.last_modified,
                )
                worker = self._idle.get()
                try:
                    future = worker.send(request)
                except RuntimeError as e:
                    self._idle.put(worker)
                    self._record_failure(report, walked, f"worker unavailable: {e}")
                    file_done()
                    continue
                future.add_done_callback(lambda _future, w=worker: self._idle.put(w))
                in_flight[future] = (walked, request)

            for future in as_completed(in_flight):
                walked, request = in_flight[future]
                self._collect(report, future, walked, request)
                file_done()

        return report

    def _collect(
        self,
        report: PoolReport,
        future: Future,
        walked: WalkedFile,
        request: ExtractionRequest,
    ) -> None:
        try:
            response = future.result()
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._record_failure(report, walked, f"worker error: {e}")
            return

        if response.request_id != request.request_id:
            self._record_failure(
                report, walked, f"response {response.request_id} does not match request"
            )
        elif response.error is not None:
            self._record_failure(report, walked, response.error)
        else:
            report.results.append((walked, response.result))

    def _record_failure(self, report: PoolReport, walked: WalkedFile, reason: str) -> None:
        self.logger.debug(f"Extraction failed for {walked.relative_path}: {reason}")
        report.failures.append(FileFailure(walked.relative_path, reason))
