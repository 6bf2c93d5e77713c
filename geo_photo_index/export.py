"""Archive export of selected photos."""

import logging
import os
import tempfile
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .constants import Constants
from .exceptions import ExportError, NothingToExportError
from .types import PhotoRecord
from .utils import PathNormalizer


@dataclass
class ExportResult:
    """Outcome of an archive export."""
    archive_path: Path
    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class ExportManager:
    """Base class for export functionality."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.path_normalizer = PathNormalizer()


class ArchiveExporter(ExportManager):
    """Bundles the original files of a selection into one ZIP archive."""

    def export(
        self, records: Iterable[PhotoRecord], root: str | Path, destination: str | Path
    ) -> ExportResult:
        """
        Write the originals of records into a ZIP archive at destination.

        Entry names are the records' relative paths. Originals that cannot be opened
        are skipped with a warning. The archive is built under a temporary name and
        only renamed into place once at least one entry was written.

        Raises:
            NothingToExportError: If the selection is empty or no original could be read
            ExportError: If the archive itself cannot be written
        """
        selection = list(records)
        if not selection:
            raise NothingToExportError("No photos found in the selected area")

        root_path = Path(root)
        destination = Path(destination)
        if destination.is_dir():
            destination = destination / Constants.ARCHIVE_NAME

        result = ExportResult(archive_path=destination)
        tmp_name = None
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as raw, zipfile.ZipFile(
                raw, "w", compression=zipfile.ZIP_STORED
            ) as archive:
                for record in selection:
                    self._add_original(archive, root_path, record, result)

            if not result.written:
                raise NothingToExportError("None of the selected photos could be read")

            os.replace(tmp_name, destination)
            tmp_name = None
        except OSError as e:
            raise ExportError(f"Cannot write archive {destination}: {e}") from e
        finally:
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)

        self.logger.info(
            f"Exported {len(result.written)} photos to {destination}"
            f" ({len(result.skipped)} skipped)"
        )
        return result

    def _add_original(
        self,
        archive: zipfile.ZipFile,
        root: Path,
        record: PhotoRecord,
        result: ExportResult,
    ) -> None:
        if record.relative_path in result.written:
            return
        try:
            source = self.path_normalizer.resolve_relative(root, record.relative_path)
            archive.write(source, arcname=record.relative_path)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Skipping {record.relative_path}: {e}")
            result.skipped.append(record.relative_path)
            return
        result.written.append(record.relative_path)
