"""Tests for per-file extraction."""

import io
from unittest.mock import Mock

import pytest
from PIL import Image

from geo_photo_index.constants import Constants
from geo_photo_index.exceptions import ExtractionError
from geo_photo_index.extraction import ExtractionWorker
from geo_photo_index.utils import DateParser


class TestExtractionWorker:
    """Test suite for ExtractionWorker."""

    def setup_method(self):
        """Set up test fixtures."""
        self.mock_logger = Mock()
        self.worker = ExtractionWorker(self.mock_logger)

    @pytest.mark.unit
    def test_extracts_coordinates_date_and_thumbnail(self, test_utils):
        data = test_utils.jpeg_bytes(gps=(10.0, 20.0), taken="2024:01:15 10:30:00", size=(800, 600))

        result = self.worker.extract(data, "trip/beach.jpg", last_modified=1_000)

        assert result.has_gps
        assert result.coordinates == pytest.approx((10.0, 20.0), abs=1e-4)
        assert result.captured_at == DateParser.parse_exif_datetime("2024:01:15 10:30:00")
        with Image.open(io.BytesIO(result.thumbnail)) as img:
            assert img.size == (200, 150)

    @pytest.mark.unit
    def test_capture_time_falls_back_to_modification_time(self, test_utils):
        data = test_utils.jpeg_bytes(gps=(-33.865, 151.2))

        result = self.worker.extract(data, "sydney.jpg", last_modified=1_700_000_000_000)

        assert result.coordinates[0] == pytest.approx(-33.865, abs=1e-4)
        assert result.captured_at == 1_700_000_000_000

    @pytest.mark.unit
    def test_no_gps_is_not_an_error(self, test_utils):
        data = test_utils.jpeg_bytes(taken="2024:01:15 10:30:00")

        result = self.worker.extract(data, "indoor.jpg", last_modified=5)

        assert not result.has_gps
        assert result.thumbnail is None
        assert result.captured_at == 5

    @pytest.mark.unit
    def test_file_without_exif_has_no_gps(self):
        buffer = io.BytesIO()
        Image.new("RGB", (10, 10)).save(buffer, format="PNG")

        result = self.worker.extract(buffer.getvalue(), "plain.png", last_modified=7)

        assert result.coordinates is None
        assert result.captured_at == 7

    @pytest.mark.unit
    def test_empty_file_raises(self):
        with pytest.raises(ExtractionError):
            self.worker.extract(b"", "empty.jpg", last_modified=1)

    @pytest.mark.unit
    def test_eager_thumbnail_size(self, test_utils):
        worker = ExtractionWorker(self.mock_logger, thumbnail_size=Constants.EAGER_THUMBNAIL_MAX_SIZE)
        data = test_utils.jpeg_bytes(gps=(1.0, 1.0), size=(400, 400))

        result = worker.extract(data, "square.jpg", last_modified=1)

        with Image.open(io.BytesIO(result.thumbnail)) as img:
            assert img.size == (100, 100)
