"""Tests for thumbnail rendering and the thumbnail store."""

import io
from unittest.mock import Mock, patch

import pytest
from PIL import Image

from geo_photo_index.exceptions import ExtractionError, PersistenceError
from geo_photo_index.thumbnails import ThumbnailStore, fit_within, render_thumbnail


class TestFitWithin:
    """Test suite for aspect-preserving bounding box fitting."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "size, bound, expected",
        [
            ((400, 200), 200, (200, 100)),
            ((200, 400), 200, (100, 200)),
            ((300, 300), 100, (100, 100)),
            ((50, 20), 200, (50, 20)),
            ((200, 200), 200, (200, 200)),
            ((5000, 1), 100, (100, 1)),
        ],
    )
    def test_known_sizes(self, size, bound, expected):
        assert fit_within(*size, bound) == expected

    @pytest.mark.unit
    def test_never_upscales_and_preserves_aspect(self):
        for width in (1, 7, 99, 100, 101, 640, 4000):
            for height in (1, 13, 100, 480, 3000):
                for bound in (100, 200):
                    fitted_w, fitted_h = fit_within(width, height, bound)
                    assert fitted_w <= width and fitted_h <= height
                    if max(width, height) > bound:
                        long_side, short_side = max(width, height), min(width, height)
                        assert max(fitted_w, fitted_h) == bound
                        assert min(fitted_w, fitted_h) == max(1, round(short_side * bound / long_side))
                    else:
                        assert (fitted_w, fitted_h) == (width, height)

    @pytest.mark.unit
    def test_rejects_empty_sizes(self):
        with pytest.raises(ValueError):
            fit_within(0, 10, 100)


class TestRenderThumbnail:
    """Test suite for render_thumbnail."""

    @pytest.mark.unit
    def test_renders_jpeg_within_bound(self, test_utils):
        data = test_utils.jpeg_bytes(size=(640, 480))
        thumbnail = render_thumbnail(data, 200)

        with Image.open(io.BytesIO(thumbnail)) as img:
            assert img.format == "JPEG"
            assert img.size == (200, 150)

    @pytest.mark.unit
    def test_eager_bound(self, test_utils):
        data = test_utils.jpeg_bytes(size=(480, 640))
        with Image.open(io.BytesIO(render_thumbnail(data, 100))) as img:
            assert img.size == (75, 100)

    @pytest.mark.unit
    def test_converts_png_with_alpha(self):
        buffer = io.BytesIO()
        Image.new("RGBA", (300, 100), (255, 0, 0, 128)).save(buffer, format="PNG")

        with Image.open(io.BytesIO(render_thumbnail(buffer.getvalue(), 200))) as img:
            assert img.mode == "RGB"
            assert img.size == (200, 67)

    @pytest.mark.unit
    def test_undecodable_raster_raises(self):
        with pytest.raises(ExtractionError):
            render_thumbnail(b"\xff\xd8\xff\xe1 truncated", 200)


class TestThumbnailStore:
    """Test suite for ThumbnailStore."""

    def setup_method(self):
        """Set up test fixtures."""
        self.mock_logger = Mock()

    @pytest.mark.unit
    def test_reference_mirrors_relative_path(self):
        assert ThumbnailStore.reference_for("trip/beach.jpg") == "thumbnails/trip/beach.jpg.thumb.jpg"

    @pytest.mark.unit
    def test_write_read_delete(self, temp_dir):
        store = ThumbnailStore(temp_dir, self.mock_logger)

        reference = store.write("trip/beach.jpg", b"jpeg-bytes")

        assert reference == "thumbnails/trip/beach.jpg.thumb.jpg"
        assert (temp_dir / "thumbnails" / "trip" / "beach.jpg.thumb.jpg").read_bytes() == b"jpeg-bytes"
        assert store.read("trip/beach.jpg") == b"jpeg-bytes"

        store.delete("trip/beach.jpg")
        assert store.read("trip/beach.jpg") is None

    @pytest.mark.unit
    def test_read_missing_and_invalid(self, temp_dir):
        store = ThumbnailStore(temp_dir, self.mock_logger)
        assert store.read("nope.jpg") is None
        assert store.read("../outside.jpg") is None

    @pytest.mark.unit
    def test_write_failure_raises_persistence_error(self, temp_dir):
        store = ThumbnailStore(temp_dir, self.mock_logger)
        with patch("pathlib.Path.write_bytes", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                store.write("beach.jpg", b"data")
