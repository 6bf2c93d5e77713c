"""HTTP scan service exposing one ScanCoordinator."""

import logging
import tempfile
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any
from urllib.parse import quote

from .constants import Constants
from .coordinator import ScanCoordinator
from .exceptions import (
    ExportError,
    GeoPhotoIndexError,
    NothingToExportError,
    ScanInProgressError,
    ScanRootError,
)
from .manifest import record_to_dict
from .types import PhotoRecord, ScanConfig


def photo_payload(record: PhotoRecord) -> dict[str, Any]:
    """Sidecar fields of a record plus the URL of its thumbnail."""
    payload = record_to_dict(record)
    payload["thumbnail"] = f"/api/thumbnail/{quote(record.relative_path, safe='')}"
    return payload


def create_app(scan_config: ScanConfig, logger: logging.Logger, coordinator: ScanCoordinator | None = None):
    """Create a FastAPI app serving scans, thumbnails and archives of one coordinator."""

    from fastapi import BackgroundTasks, FastAPI, HTTPException  # pylint: disable=import-outside-toplevel
    from fastapi.responses import FileResponse, Response  # pylint: disable=import-outside-toplevel

    coordinator = coordinator or ScanCoordinator(scan_config, logger)
    archive_dir = Path(tempfile.mkdtemp(prefix="geo_photo_index-"))
    archives: dict[str, Path] = {}

    @asynccontextmanager
    async def lifespan(_app):
        yield
        coordinator.close()

    app = FastAPI(title="Geo Photo Index API", version="2.0.0", lifespan=lifespan)
    app.state.coordinator = coordinator

    @app.get("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/scan")
    def scan(payload: dict[str, Any]):
        """Scan a directory and return every photo with GPS data, newest first."""
        directory = payload.get("directory")
        if not directory:
            raise HTTPException(status_code=400, detail="Directory path is required")

        logger.info(f"Starting scan of directory: {directory}")
        try:
            result = coordinator.scan(directory)
        except ScanInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        except ScanRootError as e:
            raise HTTPException(status_code=403, detail=str(e)) from e
        except GeoPhotoIndexError as e:
            raise HTTPException(status_code=500, detail=f"Failed to scan directory: {e}") from e

        return {
            "total": len(result.photos),
            "photos": [photo_payload(photo) for photo in result.photos],
            "failures": [
                {"relativePath": failure.relative_path, "reason": failure.reason}
                for failure in result.failures
            ],
        }

    @app.get("/api/thumbnail/{relative_path:path}")
    def thumbnail(relative_path: str):
        data = coordinator.thumbnail(relative_path)
        if data is None:
            raise HTTPException(status_code=404, detail="Thumbnail not found")
        return Response(content=data, media_type="image/jpeg")

    @app.post("/api/create-archive")
    def create_archive(payload: dict[str, Any]):
        """Bundle the given relative paths of the last scan into a downloadable archive."""
        paths = payload.get("photos") or []
        if not isinstance(paths, list) or not all(isinstance(path, str) for path in paths):
            raise HTTPException(status_code=400, detail="photos must be a list of paths")

        archive_id = uuid.uuid4().hex
        destination = archive_dir / f"{archive_id}.zip"
        try:
            coordinator.export(coordinator.find(paths), destination)
        except (NothingToExportError, ScanRootError) as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except ExportError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e

        archives[archive_id] = destination
        return {"archiveId": archive_id}

    @app.get("/api/download-archive/{archive_id}")
    def download_archive(archive_id: str, background_tasks: BackgroundTasks):
        destination = archives.pop(archive_id, None)
        if destination is None or not destination.exists():
            raise HTTPException(status_code=404, detail="Archive not found")

        background_tasks.add_task(destination.unlink, missing_ok=True)
        return FileResponse(
            destination, media_type="application/zip", filename=Constants.ARCHIVE_NAME
        )

    return app
