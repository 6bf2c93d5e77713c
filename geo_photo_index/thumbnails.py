"""Thumbnail rendering and the on-disk thumbnail tree."""

import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .constants import Constants
from .exceptions import ExtractionError, PersistenceError
from .utils import PathNormalizer


def fit_within(width: int, height: int, bound: int) -> tuple[int, int]:
    """
    Scale (width, height) to fit a bound x bound box, preserving aspect ratio.

    The longer side is clamped to the bound and the shorter side scaled
    proportionally. Images already inside the box are returned unchanged.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")

    if width > height:
        if width > bound:
            height = max(1, round(height * bound / width))
            width = bound
    elif height > bound:
        width = max(1, round(width * bound / height))
        height = bound
    return width, height


def render_thumbnail(
    data: bytes,
    bound: int = Constants.THUMBNAIL_MAX_SIZE,
    quality: int = Constants.THUMBNAIL_QUALITY,
) -> bytes:
    """
    Decode an image, resize it into the bounding box and re-encode it as JPEG.

    Raises:
        ExtractionError: If the raster cannot be decoded or encoded
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            size = fit_within(img.width, img.height, bound)
            if img.mode != "RGB":
                img = img.convert("RGB")
            if size != img.size:
                img = img.resize(size, Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            img.save(buffer, format="JPEG", quality=quality)
            return buffer.getvalue()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ExtractionError(f"Cannot render thumbnail: {e}") from e


class ThumbnailStore:
    """
    Thumbnails stored in a directory tree mirroring the scanned root.

    The thumbnail of "trip/beach.jpg" lives at "thumbnails/trip/beach.jpg.thumb.jpg".
    """

    def __init__(self, root: Path, logger: logging.Logger):
        self.root = Path(root)
        self.logger = logger
        self.directory = self.root / Constants.THUMBNAIL_DIRNAME
        self.path_normalizer = PathNormalizer()

    @staticmethod
    def reference_for(relative_path: str) -> str:
        """Stored reference (relative to the root, forward slashes) for a photo's thumbnail."""
        return f"{Constants.THUMBNAIL_DIRNAME}/{relative_path}{Constants.THUMBNAIL_SUFFIX}"

    def path_for(self, relative_path: str) -> Path:
        return self.path_normalizer.resolve_relative(self.root, self.reference_for(relative_path))

    def write(self, relative_path: str, data: bytes) -> str:
        """
        Write a thumbnail and return its stored reference.

        Raises:
            PersistenceError: If the file cannot be written
        """
        target = self.path_for(relative_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise PersistenceError(f"Cannot write thumbnail for {relative_path}: {e}") from e
        return self.reference_for(relative_path)

    def read(self, relative_path: str) -> bytes | None:
        """Read a thumbnail on demand; None when it does not exist."""
        try:
            return self.path_for(relative_path).read_bytes()
        except ValueError:
            return None
        except FileNotFoundError:
            return None
        except OSError as e:
            self.logger.warning(f"Cannot read thumbnail for {relative_path}: {e}")
            return None

    def delete(self, relative_path: str) -> None:
        """Remove the thumbnail of a photo that left the index."""
        try:
            self.path_for(relative_path).unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(f"Cannot delete thumbnail for {relative_path}: {e}")
