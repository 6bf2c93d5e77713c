"""Directory traversal producing root-relative candidate image files."""

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from .constants import Constants
from .exceptions import ScanRootError
from .types import WalkedFile
from .utils import DateParser, PathNormalizer

__all__ = ["PathWalker", "WalkedFile"]


class PathWalker:
    """Recursively lists image files under a root, depth first."""

    def __init__(
        self,
        logger: logging.Logger,
        extensions: Iterable[str] | None = None,
        excluded_dirs: Iterable[str] = (Constants.THUMBNAIL_DIRNAME,),
    ):
        self.logger = logger
        self.extensions = {ext.lower() for ext in (extensions or Constants.IMAGE_EXTENSIONS)}
        self.excluded_dirs = set(excluded_dirs)
        self.path_normalizer = PathNormalizer()
        self.date_parser = DateParser()

    @classmethod
    def for_scan(cls, logger: logging.Logger, include_gif: bool = False) -> "PathWalker":
        """Walker with the default allow-list, plus .gif for the legacy variant."""
        extensions = set(Constants.IMAGE_EXTENSIONS)
        if include_gif:
            extensions |= Constants.LEGACY_EXTENSIONS
        return cls(logger, extensions)

    def is_image_file(self, filename: str) -> bool:
        """Check the file extension against the allow-list, ignoring case."""
        return Path(filename).suffix.lower() in self.extensions

    def walk(self, root: str | Path) -> Iterator[WalkedFile]:
        """
        Lazily yield every eligible file under root.

        Excluded directories are only matched directly under root. Sibling order is
        whatever the filesystem returns.

        Raises:
            ScanRootError: If the root cannot be opened or listed
        """
        root_path = Path(root)
        try:
            entries = list(os.scandir(root_path))
        except (FileNotFoundError, NotADirectoryError) as e:
            raise ScanRootError(f"Root directory not found: {root_path}") from e
        except PermissionError as e:
            raise ScanRootError(f"Permission denied reading {root_path}") from e
        except OSError as e:
            raise ScanRootError(f"Cannot read {root_path}: {e}") from e

        yield from self._walk_entries(entries, "")

    def _walk_entries(self, entries: list[os.DirEntry], parent: str) -> Iterator[WalkedFile]:
        for entry in entries:
            relative_path = self.path_normalizer.join_relative(parent, entry.name)
            try:
                if entry.is_dir(follow_symlinks=False):
                    if not parent and entry.name in self.excluded_dirs:
                        continue
                    yield from self._walk_directory(entry.path, relative_path)
                elif entry.is_file() and self.is_image_file(entry.name):
                    stat_result = entry.stat()
                    yield WalkedFile(
                        path=Path(entry.path),
                        relative_path=relative_path,
                        last_modified=self.date_parser.file_mtime_millis(stat_result),
                        size=stat_result.st_size,
                    )
            except OSError as e:
                self.logger.warning(f"Skipping {relative_path}: {e}")

    def _walk_directory(self, path: str, relative_path: str) -> Iterator[WalkedFile]:
        try:
            entries = list(os.scandir(path))
        except OSError as e:
            self.logger.warning(f"Cannot read directory {relative_path}: {e}")
            return
        yield from self._walk_entries(entries, relative_path)
