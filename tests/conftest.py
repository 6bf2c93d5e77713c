"""Pytest configuration and shared fixtures for geo_photo_index tests."""

import io
import os
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest
from PIL import Image
from PIL.TiffImagePlugin import IFDRational

from geo_photo_index.types import PhotoRecord, ScanConfig, WalkedFile


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests of a single component")
    config.addinivalue_line("markers", "integration: tests spanning several components")
    config.addinivalue_line("markers", "e2e: full scan, select and export workflows")


# =============================================================================
# Test Configuration
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def photo_root(temp_dir):
    """Empty directory to scan."""
    root = temp_dir / "photos"
    root.mkdir()
    return root


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def basic_scan_config(photo_root):
    """Scan configuration with a small pool."""
    return ScanConfig(root=str(photo_root), pool_size=2)


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def sample_records():
    """Three records spread across two areas, newest first."""
    return [
        PhotoRecord(
            relative_path="trip/beach.jpg",
            name="beach.jpg",
            latitude=10.0,
            longitude=20.0,
            captured_at=1_705_314_600_000,
            last_modified=1_705_314_600_000,
            thumbnail_path="thumbnails/trip/beach.jpg.thumb.jpg",
        ),
        PhotoRecord(
            relative_path="trip/hill.jpg",
            name="hill.jpg",
            latitude=10.5,
            longitude=20.5,
            captured_at=1_705_228_200_000,
            last_modified=1_705_228_200_000,
            thumbnail_path="thumbnails/trip/hill.jpg.thumb.jpg",
        ),
        PhotoRecord(
            relative_path="city.jpg",
            name="city.jpg",
            latitude=40.7128,
            longitude=-74.006,
            captured_at=1_705_141_800_000,
            last_modified=1_705_141_800_000,
            thumbnail_path="thumbnails/city.jpg.thumb.jpg",
        ),
    ]


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_logger():
    """Mock logger for testing."""
    logger = Mock()
    logger.info = Mock()
    logger.warning = Mock()
    logger.error = Mock()
    logger.debug = Mock()
    return logger


@pytest.fixture
def mock_geocoder():
    """Mock geocoder for testing location services."""
    geocoder = Mock()

    mock_location = Mock()
    mock_location.latitude = 40.7128
    mock_location.longitude = -74.0060
    mock_location.address = "New York, NY, USA"
    geocoder.geocode.return_value = mock_location

    return geocoder


@pytest.fixture
def mock_image():
    """Mock EXIF image with GPS and date tags."""
    image = Mock()

    image.has_exif = True
    image.gps_latitude = (40.0, 42.0, 46.08)  # 40°42'46.08"N
    image.gps_longitude = (74.0, 0.0, 21.6)   # 74°0'21.6"W
    image.gps_latitude_ref = "N"
    image.gps_longitude_ref = "W"

    image.datetime_original = "2024:01:15 10:30:00"
    image.datetime = "2024:01:16 11:00:00"

    return image


@pytest.fixture
def mock_image_no_gps():
    """Mock EXIF image without GPS data."""
    image = Mock()

    image.has_exif = True
    del image.gps_latitude
    del image.gps_longitude
    del image.gps_latitude_ref
    del image.gps_longitude_ref

    image.datetime_original = "2024:01:15 10:30:00"

    return image


# =============================================================================
# Test Utilities
# =============================================================================

class TestUtils:
    """Utility functions for tests."""

    @staticmethod
    def to_dms(value: float) -> tuple:
        """Split an absolute decimal degree value into EXIF rationals."""
        value = abs(value)
        degrees = int(value)
        minutes_float = (value - degrees) * 60
        minutes = int(minutes_float)
        seconds = round((minutes_float - minutes) * 60 * 100)
        return IFDRational(degrees, 1), IFDRational(minutes, 1), IFDRational(seconds, 100)

    @staticmethod
    def jpeg_bytes(
        gps: tuple[float, float] | None = None,
        taken: str | None = None,
        size: tuple[int, int] = (320, 240),
        color: str = "steelblue",
    ) -> bytes:
        """Encode a JPEG, optionally tagged with GPS coordinates and DateTimeOriginal."""
        img = Image.new("RGB", size, color)
        exif = Image.Exif()
        exif[0x0110] = "test camera"
        if gps is not None:
            latitude, longitude = gps
            exif[0x8825] = {
                1: "N" if latitude >= 0 else "S",
                2: TestUtils.to_dms(latitude),
                3: "E" if longitude >= 0 else "W",
                4: TestUtils.to_dms(longitude),
            }
        if taken is not None:
            exif[0x8769] = {36867: taken}

        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", exif=exif.tobytes())
        return buffer.getvalue()

    @staticmethod
    def create_photo(
        root: Path,
        relative_path: str,
        gps: tuple[float, float] | None = None,
        taken: str | None = None,
        mtime: float | None = None,
        size: tuple[int, int] = (320, 240),
    ) -> Path:
        """Write a JPEG under root and optionally pin its modification time (seconds)."""
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(TestUtils.jpeg_bytes(gps, taken, size))
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    @staticmethod
    def walked(root: Path, relative_path: str, last_modified: int = 1_000) -> WalkedFile:
        """WalkedFile for a path under root, without touching the disk."""
        return WalkedFile(
            path=root / relative_path,
            relative_path=relative_path,
            last_modified=last_modified,
        )


@pytest.fixture
def test_utils():
    """Test utilities fixture."""
    return TestUtils
