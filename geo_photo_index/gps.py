"""GPS data processing and image metadata extraction."""

import logging
import math

from exif import Image

from .utils import DateParser, ImageMetadata

NEGATIVE_HEMISPHERES = {"S", "W"}


def convert_dms_to_dd(degrees: float, minutes: float, seconds: float, direction: str | None) -> float:
    """
    Convert degrees, minutes, seconds (DMS) to signed decimal degrees.

    The result is negated when direction is South or West.
    """
    dd = degrees + minutes / 60 + seconds / 3600
    if direction in NEGATIVE_HEMISPHERES:
        dd = -dd
    return dd


def _normalize_ref(ref) -> str | None:
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    if not isinstance(ref, str):
        return None
    return ref.strip().strip("\x00").upper() or None


def dms_to_decimal(dms, ref, limit: float) -> float | None:
    """
    Convert an EXIF GPS triple to decimal degrees.

    Args:
        dms: Sequence of (degrees, minutes, seconds); items may be floats or rationals
        ref: Hemisphere letter (N/S/E/W)
        limit: Largest valid absolute value (90 for latitude, 180 for longitude)

    Returns:
        Decimal degrees, or None when the triple is incomplete or malformed
    """
    if dms is None or isinstance(dms, (str, bytes)):
        return None
    try:
        parts = [float(value) for value in dms]
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    if len(parts) < 3:
        return None

    degrees, minutes, seconds = parts[:3]
    if not all(math.isfinite(value) and value >= 0 for value in (degrees, minutes, seconds)):
        return None

    # minutes or seconds of 60 (rounded by some writers) carry over in the sum
    decimal = convert_dms_to_dd(degrees, minutes, seconds, _normalize_ref(ref))
    if abs(decimal) > limit:
        return None
    return decimal


class ExifMetadataReader:
    """Reads GPS coordinates and capture timestamps from raw image bytes."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.date_parser = DateParser()

    def load(self, data: bytes, filename: str):
        """
        Parse the EXIF block of an image.

        Returns:
            The parsed image, or None when parsing fails or no tags are present
        """
        try:
            image = Image(data)
        except (OSError, MemoryError) as e:
            self.logger.debug(f"Error reading tags of {filename}. Corrupt file? {e}")
            return None
        except Exception as e:  # pylint: disable=broad-exception-caught
            self.logger.debug(f"Invalid EXIF block in {filename}: {e}")
            return None

        if not getattr(image, "has_exif", False):
            self.logger.debug(f"No EXIF tags in {filename}")
            return None
        return image

    def get_decimal_coords(self, image) -> tuple[float, float] | None:
        """
        Extract GPS coordinates from a parsed image in decimal degrees.

        Returns:
            (latitude, longitude), or None unless both coordinates are present and valid
        """
        metadata = ImageMetadata(image)

        latitude = dms_to_decimal(
            metadata.get_gps_latitude(), metadata.get_gps_latitude_ref(), 90.0
        )
        if latitude is None:
            return None

        longitude = dms_to_decimal(
            metadata.get_gps_longitude(), metadata.get_gps_longitude_ref(), 180.0
        )
        if longitude is None:
            return None

        return latitude, longitude

    def get_capture_time(self, image) -> int | None:
        """Capture time in epoch milliseconds from the EXIF date tags, if parseable."""
        metadata = ImageMetadata(image)
        for field in ImageMetadata.DATE_FIELDS:
            value = metadata.get(field)
            parsed = self.date_parser.parse_exif_datetime(value)
            if parsed is not None:
                return parsed
        return None
