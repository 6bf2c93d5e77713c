"""Tests for directory traversal."""

import os
from unittest.mock import Mock, patch

import pytest

from geo_photo_index.exceptions import ScanRootError
from geo_photo_index.walker import PathWalker


class TestPathWalker:
    """Test suite for PathWalker."""

    def setup_method(self):
        """Set up test fixtures."""
        self.mock_logger = Mock()
        self.walker = PathWalker.for_scan(self.mock_logger)

    def _touch(self, root, relative_path, content=b"x"):
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    @pytest.mark.unit
    def test_is_image_file_ignores_case(self):
        for name in ("a.jpg", "b.JPEG", "c.Png"):
            assert self.walker.is_image_file(name)
        for name in ("d.gif", "e.txt", "f.tiff", "jpg"):
            assert not self.walker.is_image_file(name)

    @pytest.mark.unit
    def test_include_gif(self):
        walker = PathWalker.for_scan(self.mock_logger, include_gif=True)
        assert walker.is_image_file("old.GIF")

    @pytest.mark.unit
    def test_walk_yields_relative_paths_recursively(self, photo_root):
        self._touch(photo_root, "a.jpg")
        self._touch(photo_root, "2024/b.png")
        self._touch(photo_root, "2024/deep/c.jpeg")
        self._touch(photo_root, "notes.txt")

        walked = sorted(self.walker.walk(photo_root), key=lambda item: item.relative_path)

        assert [item.relative_path for item in walked] == ["2024/b.png", "2024/deep/c.jpeg", "a.jpg"]
        assert walked[1].name == "c.jpeg"
        assert walked[1].path == photo_root / "2024" / "deep" / "c.jpeg"

    @pytest.mark.unit
    def test_walk_reports_modification_time_in_millis(self, photo_root):
        path = self._touch(photo_root, "a.jpg", b"12345")
        os.utime(path, ns=(1_700_000_000_500_000_000, 1_700_000_000_500_000_000))

        (walked,) = list(self.walker.walk(photo_root))

        assert walked.last_modified == 1_700_000_000_500
        assert walked.size == 5

    @pytest.mark.unit
    def test_walk_skips_thumbnail_directory_at_root_only(self, photo_root):
        self._touch(photo_root, "thumbnails/a.jpg.thumb.jpg")
        self._touch(photo_root, "trip/thumbnails/kept.jpg")

        walked = [item.relative_path for item in self.walker.walk(photo_root)]

        assert walked == ["trip/thumbnails/kept.jpg"]

    @pytest.mark.unit
    def test_walk_is_lazy(self, photo_root):
        for index in range(3):
            self._touch(photo_root, f"{index}.jpg")

        iterator = self.walker.walk(photo_root)
        first = next(iterator)

        assert first.relative_path.endswith(".jpg")

    @pytest.mark.unit
    def test_walk_missing_root_raises(self, temp_dir):
        with pytest.raises(ScanRootError):
            list(self.walker.walk(temp_dir / "missing"))

    @pytest.mark.unit
    def test_walk_unreadable_root_raises(self, photo_root):
        with patch("geo_photo_index.walker.os.scandir", side_effect=PermissionError("denied")):
            with pytest.raises(ScanRootError):
                list(self.walker.walk(photo_root))

    @pytest.mark.unit
    def test_walk_skips_unreadable_subdirectory(self, photo_root):
        self._touch(photo_root, "a.jpg")
        self._touch(photo_root, "locked/b.jpg")
        real_scandir = os.scandir

        def scandir(path):
            if str(path).endswith("locked"):
                raise PermissionError("denied")
            return real_scandir(path)

        with patch("geo_photo_index.walker.os.scandir", side_effect=scandir):
            walked = [item.relative_path for item in self.walker.walk(photo_root)]

        assert walked == ["a.jpg"]
        self.mock_logger.warning.assert_called_once()
