"""Utility classes for the geo photo index application."""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath


class LoggingSetup:
    """Handles logging configuration."""

    @staticmethod
    def setup_logging(level: int = logging.INFO) -> logging.Logger:
        """Set up logging configuration."""
        logging.basicConfig(
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        return logging.getLogger(__name__)


class PathNormalizer:
    """Handles conversion between filesystem paths and root-relative identities."""

    @staticmethod
    def normalize_path(path: str) -> str:
        """Normalize a file path for the current platform."""
        if not path:
            return path

        normalized_path = Path(path).expanduser().resolve()
        return str(normalized_path)

    @staticmethod
    def join_relative(parent: str, name: str) -> str:
        """Join a relative directory and an entry name with forward slashes."""
        return f"{parent}/{name}" if parent else name

    @staticmethod
    def resolve_relative(root: Path, relative_path: str) -> Path:
        """
        Resolve a root-relative identity back to a path under root.

        Raises:
            ValueError: If the relative path is absolute or escapes the root.
        """
        pure = PurePosixPath(relative_path)
        if pure.is_absolute() or ".." in pure.parts or not pure.parts:
            raise ValueError(f"Invalid relative path: {relative_path!r}")
        return root.joinpath(*pure.parts)


class DateParser:
    """Handles timestamp parsing and normalization to epoch milliseconds."""

    @staticmethod
    def parse_exif_datetime(value: str | None) -> int | None:
        """
        Parse an EXIF date string ("YYYY:MM:DD HH:MM:SS") to epoch milliseconds.

        The first two colons are replaced with dashes before parsing. EXIF dates carry
        no zone and are read as local time.

        Returns:
            Epoch milliseconds, or None when the value is missing or unparseable
        """
        if not value or not isinstance(value, str):
            return None

        normalized = value.strip().replace("\x00", "").replace(":", "-", 2)
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
        return round(parsed.timestamp() * 1000)

    @staticmethod
    def to_epoch_millis(value) -> int:
        """
        Normalize a stored instant to epoch milliseconds.

        Accepts an int/float of epoch milliseconds, an ISO-8601 string, an EXIF date
        string or a datetime. Naive ISO strings and datetimes are read as UTC; EXIF
        strings, like everywhere else, as local time.

        Raises:
            ValueError: If the value cannot be interpreted as an instant
        """
        if isinstance(value, bool):
            raise ValueError(f"Not a timestamp: {value!r}")
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value.strip())
            except ValueError:
                # manifests of the eager variant store the raw EXIF string
                exif_millis = DateParser.parse_exif_datetime(value)
                if exif_millis is None:
                    raise
                return exif_millis
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return round(value.timestamp() * 1000)
        raise ValueError(f"Not a timestamp: {value!r}")

    @staticmethod
    def to_iso(epoch_millis: int) -> str:
        """Format epoch milliseconds as an ISO-8601 UTC string with millisecond precision."""
        moment = datetime.fromtimestamp(epoch_millis / 1000, tz=timezone.utc)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @staticmethod
    def file_mtime_millis(stat_result: os.stat_result) -> int:
        """Modification time of a stat result in epoch milliseconds."""
        return stat_result.st_mtime_ns // 1_000_000


class ImageMetadata:
    """
    Wrapper class that encapsulates image attribute access.

    This class provides a clean interface for accessing EXIF metadata,
    eliminating the need for direct hasattr/getattr calls and improving
    testability by providing a consistent API.
    """

    DATE_FIELDS = ("datetime_original", "datetime", "datetime_digitized")

    def __init__(self, image):
        self._image = image

    def get(self, attribute: str):
        """Return an EXIF attribute, or None when absent or unreadable."""
        try:
            if hasattr(self._image, attribute):
                return getattr(self._image, attribute)
        except (AttributeError, ValueError, TypeError, KeyError):
            pass
        return None

    def get_gps_latitude(self):
        """Get GPS latitude in (degrees, minutes, seconds) form."""
        return self.get("gps_latitude")

    def get_gps_latitude_ref(self) -> str | None:
        """Get GPS latitude reference (N/S)."""
        return self.get("gps_latitude_ref")

    def get_gps_longitude(self):
        """Get GPS longitude in (degrees, minutes, seconds) form."""
        return self.get("gps_longitude")

    def get_gps_longitude_ref(self) -> str | None:
        """Get GPS longitude reference (E/W)."""
        return self.get("gps_longitude_ref")
