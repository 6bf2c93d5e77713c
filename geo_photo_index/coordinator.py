"""Scan orchestration: walk, diff against the manifest, extract, merge and persist."""

import enum
import logging
import os
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import GeoPhotoIndexError, ScanInProgressError, ScanRootError
from .export import ArchiveExporter, ExportResult
from .extraction import ExtractionWorker
from .manifest import Manifest, ManifestStore, diff, merge, prune, sort_records
from .pool import PoolReport, WorkerPool
from .search import BoundingBox, SpatialFilter
from .thumbnails import ThumbnailStore
from .types import FileFailure, PhotoRecord, ScanConfig, ScanProgress, WalkedFile
from .utils import PathNormalizer
from .walker import PathWalker

ScanListener = Callable[[ScanProgress], None]


class ScanState(str, enum.Enum):
    IDLE = "idle"
    COUNTING = "counting"
    COLLECTING = "collecting"
    PROCESSING = "processing"
    PERSISTING = "persisting"
    DONE = "done"
    ERROR = "error"


@dataclass
class ScanResult:
    """Summary of a completed scan."""
    root: Path
    photos: list[PhotoRecord]
    walked: int = 0
    processed: int = 0
    updated: list[str] = field(default_factory=list)
    without_gps: list[str] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)


class ScanCoordinator:
    """
    Owns the scan state machine, the worker pool and the in-memory photo collection.

    States run Idle -> Counting -> Collecting -> Processing -> Persisting -> Done,
    with Error reachable from any of them. Only one scan may run at a time; a
    second request raises ScanInProgressError. The manifest is only written in
    Persisting, after every extraction has finished.
    """

    def __init__(self, scan_config: ScanConfig, logger: logging.Logger, pool: WorkerPool | None = None):
        self.scan_config = scan_config
        self.logger = logger
        self.walker = PathWalker.for_scan(logger, scan_config.include_gif)
        self.spatial_filter = SpatialFilter(logger)
        self.exporter = ArchiveExporter(logger)
        self.path_normalizer = PathNormalizer()

        self.pool = pool or WorkerPool(
            lambda: ExtractionWorker(logger, thumbnail_size=scan_config.thumbnail_size),
            logger,
            pool_size=scan_config.pool_size,
        )
        self.pool.start()

        self.state = ScanState.IDLE
        self.error: str | None = None
        self.root: Path | None = None
        self.photos: list[PhotoRecord] = []
        self.thumbnail_store: ThumbnailStore | None = None
        self._scan_lock = threading.Lock()

    def __enter__(self) -> "ScanCoordinator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Terminate all workers."""
        self.pool.shutdown()

    def scan(self, root: str | Path, progress: ScanListener | None = None) -> ScanResult:
        """
        Index root incrementally.

        Args:
            root: Directory to scan
            progress: Receives a ScanProgress after each phase change and each file

        Returns:
            ScanResult holding the merged collection, newest capture first

        Raises:
            ScanInProgressError: If another scan is running on this coordinator
            ScanRootError: If the root cannot be read and written
            ManifestError: If an existing manifest cannot be parsed
            PersistenceError: If the manifest cannot be written; self.photos still
                holds the merged collection
        """
        if not self._scan_lock.acquire(blocking=False):
            raise ScanInProgressError("A scan is already in progress")

        try:
            self.error = None
            return self._run_scan(Path(self.path_normalizer.normalize_path(str(root))), progress)
        except GeoPhotoIndexError as e:
            self.state = ScanState.ERROR
            self.error = str(e)
            self.logger.error(f"Scan failed: {e}")
            raise
        finally:
            self._scan_lock.release()

    def _run_scan(self, root: Path, progress: ScanListener | None) -> ScanResult:
        emit = progress or (lambda event: None)

        self._transition(ScanState.COUNTING, emit)
        self._check_root(root)
        self.logger.info(f"Scanning directory: {root}")

        total = None
        if self.scan_config.count_first:
            total = sum(1 for _ in self.walker.walk(root))
            self.logger.info(f"Found {total} candidate files")
            emit(ScanProgress(ScanState.COUNTING.value, 0, 0, total))

        self._transition(ScanState.COLLECTING, emit, total=total)
        walked = sorted(self.walker.walk(root), key=lambda item: item.relative_path)
        store = ManifestStore(root, self.logger)
        manifest = store.load() or Manifest()
        pending = diff(manifest, walked)

        self.root = root
        self.thumbnail_store = ThumbnailStore(root, self.logger)
        result = ScanResult(root=root, photos=[], walked=len(walked), processed=len(pending))

        if self.scan_config.prune_missing:
            manifest, result.pruned = prune(manifest, walked)
            if result.pruned:
                self.logger.info(f"Pruning {len(result.pruned)} photos no longer on disk")

        self.logger.info(f"{len(walked) - len(pending)} files current, {len(pending)} to process")

        if not pending and not result.pruned:
            self.photos = manifest.records()
            result.photos = self.photos
            self._transition(ScanState.DONE, emit, total=0)
            self.logger.info("No new photos to scan")
            return result

        self._transition(ScanState.PROCESSING, emit, total=len(pending))
        report = self.pool.run(
            pending,
            lambda completed, count: emit(
                ScanProgress(
                    ScanState.PROCESSING.value,
                    round(completed / count * 100),
                    completed,
                    count,
                )
            ),
        )
        manifest = self._merge_report(manifest, report, result)
        self.photos = manifest.records()
        result.photos = self.photos

        if result.failures:
            self.logger.warning(f"{len(result.failures)} files could not be processed:")
            for failure in result.failures:
                self.logger.warning(f"  {failure.relative_path}: {failure.reason}")

        self._transition(ScanState.PERSISTING, emit)
        store.persist(manifest)
        # the previous manifest references these until the new one is in place
        for relative_path in result.pruned:
            self.thumbnail_store.delete(relative_path)

        self._transition(ScanState.DONE, emit, total=len(pending))
        self.logger.info(
            f"Scan complete: {len(self.photos)} photos,"
            f" {len(result.updated)} added or updated"
        )
        return result

    def _check_root(self, root: Path) -> None:
        if not root.exists():
            raise ScanRootError(f"Root directory does not exist: {root}")
        if not root.is_dir():
            raise ScanRootError(f"Root is not a directory: {root}")
        if not os.access(root, os.R_OK | os.W_OK | os.X_OK):
            raise ScanRootError(f"Permission denied: read/write access required on {root}")

    def _merge_report(self, manifest: Manifest, report: PoolReport, result: ScanResult) -> Manifest:
        records = []
        without_gps = {}
        result.failures.extend(report.failures)

        for walked, extraction in report.results:
            if not extraction.has_gps:
                without_gps[walked.relative_path] = walked.last_modified
                continue
            try:
                thumbnail_path = self.thumbnail_store.write(walked.relative_path, extraction.thumbnail)
            except GeoPhotoIndexError as e:
                result.failures.append(FileFailure(walked.relative_path, str(e)))
                continue
            records.append(self._build_record(walked, extraction, thumbnail_path))

        result.updated = sorted(record.relative_path for record in records)
        result.without_gps = sorted(without_gps)
        return merge(manifest, records, without_gps)

    @staticmethod
    def _build_record(walked: WalkedFile, extraction, thumbnail_path: str) -> PhotoRecord:
        latitude, longitude = extraction.coordinates
        return PhotoRecord(
            relative_path=walked.relative_path,
            name=walked.name,
            latitude=latitude,
            longitude=longitude,
            captured_at=extraction.captured_at,
            last_modified=walked.last_modified,
            thumbnail_path=thumbnail_path,
        )

    def _transition(self, state: ScanState, emit: ScanListener, total: int | None = None) -> None:
        self.logger.debug(f"Scan state: {self.state.value} -> {state.value}")
        self.state = state
        percent = 100 if state is ScanState.DONE else 0
        completed = total if state is ScanState.DONE and total else 0
        emit(ScanProgress(state.value, percent, completed, total))

    def select_area(self, bound: BoundingBox) -> list[PhotoRecord]:
        """Photos of the current collection inside bound, newest first."""
        return sort_records(self.spatial_filter.select(bound, self.photos))

    def export(self, records: list[PhotoRecord], destination: str | Path) -> ExportResult:
        """Archive the originals of records from the last scanned root."""
        if self.root is None:
            raise ScanRootError("No directory has been scanned yet")
        return self.exporter.export(records, self.root, destination)

    def thumbnail(self, relative_path: str) -> bytes | None:
        """Thumbnail bytes of one photo, read on demand."""
        if self.thumbnail_store is None:
            return None
        return self.thumbnail_store.read(relative_path)

    def find(self, relative_paths: list[str]) -> list[PhotoRecord]:
        """Records of the current collection matching the given paths."""
        wanted = set(relative_paths)
        return [photo for photo in self.photos if photo.relative_path in wanted]
