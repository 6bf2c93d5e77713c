"""The persisted scan cache: photo records keyed by root-relative path."""

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path

from .constants import Constants
from .exceptions import ManifestError, PersistenceError
from .types import PhotoRecord, WalkedFile
from .utils import DateParser

_date_parser = DateParser()


def record_to_dict(record: PhotoRecord) -> dict:
    """Serialize a record with the sidecar's JSON field names."""
    return {
        "relativePath": record.relative_path,
        "name": record.name,
        "date": _date_parser.to_iso(record.captured_at),
        "latitude": record.latitude,
        "longitude": record.longitude,
        "thumbnailPath": record.thumbnail_path,
        "lastModified": record.last_modified,
    }


def record_from_dict(data: dict) -> PhotoRecord:
    """
    Deserialize a record; date and lastModified may be ISO strings or epoch milliseconds.

    Raises:
        KeyError, TypeError, ValueError: If the entry is malformed
    """
    relative_path = data.get("relativePath") or data["name"]
    name = data.get("name") or relative_path.rsplit("/", 1)[-1]
    last_modified = _date_parser.to_epoch_millis(data["lastModified"])
    date_value = data.get("date")
    captured_at = _date_parser.to_epoch_millis(date_value) if date_value is not None else last_modified
    return PhotoRecord(
        relative_path=relative_path,
        name=name,
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        captured_at=captured_at,
        last_modified=last_modified,
        thumbnail_path=data.get("thumbnailPath"),
    )


def sort_records(records: Iterable[PhotoRecord]) -> list[PhotoRecord]:
    """Order records by capture time, newest first; ties broken by path."""
    by_path = sorted(records, key=lambda record: record.relative_path)
    return sorted(by_path, key=lambda record: record.captured_at, reverse=True)


@dataclass
class Manifest:
    """
    In-memory form of the sidecar file.

    Attributes:
        photos: Records with GPS data, keyed by relative path
        skipped: Modification times of files examined without usable GPS data
        last_scanned: When the manifest was last persisted
    """
    photos: dict[str, PhotoRecord] = field(default_factory=dict)
    skipped: dict[str, int] = field(default_factory=dict)
    last_scanned: datetime | None = None

    def records(self) -> list[PhotoRecord]:
        """All records, newest capture first."""
        return sort_records(self.photos.values())

    def known_modification_time(self, relative_path: str) -> int | None:
        if relative_path in self.photos:
            return self.photos[relative_path].last_modified
        return self.skipped.get(relative_path)

    def to_dict(self) -> dict:
        last_scanned = self.last_scanned or datetime.now(timezone.utc)
        return {
            "photos": [record_to_dict(record) for record in self.records()],
            "skipped": dict(sorted(self.skipped.items())),
            "lastScanned": last_scanned.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Manifest":
        """
        Build a manifest from parsed JSON.

        Raises:
            KeyError, TypeError, ValueError: If the structure is malformed
        """
        if not isinstance(data, dict):
            raise TypeError("manifest root must be a JSON object")

        photos = {}
        for entry in data.get("photos", []):
            record = record_from_dict(entry)
            photos[record.relative_path] = record

        skipped = {
            path: _date_parser.to_epoch_millis(value)
            for path, value in data.get("skipped", {}).items()
        }

        last_scanned = data.get("lastScanned")
        if last_scanned:
            last_scanned = datetime.fromisoformat(last_scanned)
        return cls(photos=photos, skipped=skipped, last_scanned=last_scanned or None)


def diff(manifest: Manifest | None, walked_files: Iterable[WalkedFile]) -> list[WalkedFile]:
    """
    Select walked files that are new or whose modification time changed.

    Manifest entries absent from walked_files are not touched. The result is ordered
    by relative path.
    """
    pending = []
    for walked in walked_files:
        known = manifest.known_modification_time(walked.relative_path) if manifest else None
        if known is None or known != walked.last_modified:
            pending.append(walked)
    return sorted(pending, key=lambda walked: walked.relative_path)


def merge(
    manifest: Manifest | None,
    new_records: Iterable[PhotoRecord],
    skipped: dict[str, int] | None = None,
) -> Manifest:
    """
    Upsert records by path, returning a new manifest.

    A path recorded in skipped (re-extracted without GPS data) leaves photos, and a
    path with a new record leaves skipped.
    """
    base = manifest or Manifest()
    photos = dict(base.photos)
    skipped_paths = dict(base.skipped)

    for record in new_records:
        photos[record.relative_path] = record
        skipped_paths.pop(record.relative_path, None)

    for relative_path, last_modified in (skipped or {}).items():
        photos.pop(relative_path, None)
        skipped_paths[relative_path] = last_modified

    return replace(base, photos=photos, skipped=skipped_paths)


def prune(manifest: Manifest, walked_files: Iterable[WalkedFile]) -> tuple[Manifest, list[str]]:
    """
    Drop entries whose file was not seen by the latest full walk.

    Returns:
        The pruned manifest and the removed photo paths, sorted
    """
    seen = {walked.relative_path for walked in walked_files}
    removed = sorted(path for path in manifest.photos if path not in seen)
    photos = {path: record for path, record in manifest.photos.items() if path in seen}
    skipped = {path: mtime for path, mtime in manifest.skipped.items() if path in seen}
    return replace(manifest, photos=photos, skipped=skipped), removed


class ManifestStore:
    """Loads and atomically rewrites the JSON sidecar inside a scanned root."""

    def __init__(self, root: str | Path, logger: logging.Logger):
        self.root = Path(root)
        self.logger = logger
        self.path = self.root / Constants.MANIFEST_FILENAME

    def load(self) -> Manifest | None:
        """
        Read the sidecar.

        Returns:
            The manifest, or None if the sidecar does not exist

        Raises:
            ManifestError: If the sidecar exists but cannot be read or parsed
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            self.logger.debug(f"No manifest at {self.path}")
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(f"Cannot read manifest {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ManifestError(f"Corrupted manifest {self.path}: {e}") from e

        try:
            manifest = Manifest.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ManifestError(f"Invalid manifest format in {self.path}: {e}") from e

        self.logger.info(
            f"Loaded manifest from {manifest.last_scanned or 'unknown time'}:"
            f" {len(manifest.photos)} photos"
        )
        return manifest

    def persist(self, manifest: Manifest) -> Manifest:
        """
        Write the manifest to a temporary file in the root, then rename it over the sidecar.

        Returns:
            The manifest stamped with its new last_scanned time

        Raises:
            PersistenceError: If writing or renaming fails; the previous sidecar is kept
        """
        stamped = replace(manifest, last_scanned=datetime.now(timezone.utc))
        content = json.dumps(stamped.to_dict(), indent=2)

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.root,
                prefix=f".{Constants.MANIFEST_FILENAME}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write manifest {self.path}: {e}") from e

        self.logger.debug(f"Manifest saved: {len(stamped.photos)} photos")
        return stamped
