"""Per-file extraction: coordinates, capture time and thumbnail from raw bytes."""

import logging

from .constants import Constants
from .exceptions import ExtractionError
from .gps import ExifMetadataReader
from .thumbnails import render_thumbnail
from .types import ExtractionResult


class ExtractionWorker:
    """
    Stateless transform from one file's bytes to an ExtractionResult.

    Files without usable GPS data produce a result with coordinates set to None and
    no thumbnail; they are not errors. Undecodable rasters raise ExtractionError.
    """

    def __init__(
        self,
        logger: logging.Logger,
        thumbnail_size: int = Constants.THUMBNAIL_MAX_SIZE,
        quality: int = Constants.THUMBNAIL_QUALITY,
    ):
        self.logger = logger
        self.thumbnail_size = thumbnail_size
        self.quality = quality
        self.metadata_reader = ExifMetadataReader(logger)

    def extract(self, data: bytes, relative_path: str, last_modified: int) -> ExtractionResult:
        """
        Extract metadata and a thumbnail from the raw bytes of one file.

        Args:
            data: Full contents of the file
            relative_path: Identity of the file, used for logging
            last_modified: Filesystem modification time in epoch milliseconds

        Returns:
            ExtractionResult; capture time falls back to last_modified

        Raises:
            ExtractionError: If the file has GPS data but its raster cannot be rendered
        """
        if not data:
            raise ExtractionError(f"{relative_path} is empty")

        image = self.metadata_reader.load(data, relative_path)
        if image is None:
            return ExtractionResult(coordinates=None, captured_at=last_modified)

        coordinates = self.metadata_reader.get_decimal_coords(image)
        if coordinates is None:
            self.logger.debug(f"No GPS data in {relative_path}")
            return ExtractionResult(coordinates=None, captured_at=last_modified)

        thumbnail = render_thumbnail(data, self.thumbnail_size, self.quality)

        captured_at = self.metadata_reader.get_capture_time(image)
        if captured_at is None:
            captured_at = last_modified

        return ExtractionResult(coordinates=coordinates, captured_at=captured_at, thumbnail=thumbnail)
