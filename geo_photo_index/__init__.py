"""
Geo Photo Index - An incremental index of GPS-tagged photos.

This package provides functionality to:
- Walk a directory tree for JPEG and PNG images
- Extract GPS coordinates, capture time and a thumbnail with a worker pool
- Cache results in a manifest beside the photos so re-scans only touch changed files
- Select photos inside a geographic area
- Export a selection as a ZIP archive
- Serve scans, thumbnails and archives over HTTP
"""

__version__ = "2.0.0"
__author__ = "stbrie"

from .main import main

__all__ = ["main"]
