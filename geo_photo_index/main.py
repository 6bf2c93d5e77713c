"""Main application module for geo photo index."""

import logging
import sys
from pathlib import Path

from .config import ConfigurationManager
from .constants import Constants
from .coordinator import ScanCoordinator, ScanResult
from .exceptions import (
    ConfigurationError,
    ExportError,
    FileOperationError,
    ManifestError,
    NothingToExportError,
    PersistenceError,
    ScanInProgressError,
    ScanRootError,
)
from .search import BoundingBox, LocationResolver
from .types import ApplicationConfig, PhotoRecord, ScanProgress
from .utils import LoggingSetup


class ScanWorkflow:
    """Orchestrates one command-line scan, area selection and export."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.coordinator: ScanCoordinator | None = None
        self._last_phase: str | None = None

    def run(self, app_config: ApplicationConfig) -> ScanResult:
        """Run the scan workflow."""
        if not app_config.scan.root:
            self.logger.error("Root directory not specified")
            sys.exit(Constants.ErrorCodes.NO_ROOT_DIRECTORY)

        with ScanCoordinator(app_config.scan, self.logger) as coordinator:
            self.coordinator = coordinator
            result = coordinator.scan(app_config.scan.root, self._log_progress)
            self._log_summary(result, app_config.output.verbose)

            bound = self._resolve_bound(app_config)
            if bound is None:
                if app_config.export.output_archive:
                    raise ConfigurationError("--output-archive requires an area selection")
                return result

            selection = coordinator.select_area(bound)
            self.logger.info(f"Found {len(selection)} photos in the selected area")
            if app_config.output.verbose:
                for photo in selection:
                    self.logger.info(
                        f"Found: {photo.relative_path} ({photo.latitude:.6f}, {photo.longitude:.6f})"
                    )

            if app_config.export.output_archive:
                self._export(coordinator, selection, app_config.export.output_archive)

        return result

    def _log_progress(self, event: ScanProgress) -> None:
        if event.phase != self._last_phase:
            self._last_phase = event.phase
            self.logger.info(f"Phase: {event.phase}")
        elif event.total:
            self.logger.debug(f"Progress: {event.completed}/{event.total} ({event.percent}%)")

    def _log_summary(self, result: ScanResult, verbose: bool) -> None:
        self.logger.info(f"Scanned {result.walked} files under {result.root}")
        self.logger.info(
            f"{len(result.photos)} photos with GPS data"
            f" ({len(result.updated)} new or updated, {len(result.without_gps)} without GPS,"
            f" {len(result.failures)} failed, {len(result.pruned)} removed)"
        )
        if verbose:
            for photo in result.photos:
                self.logger.debug(f"  {photo.relative_path}")

    def _resolve_bound(self, app_config: ApplicationConfig) -> BoundingBox | None:
        """Area from --area, or from a centre and radius; None when neither was given."""
        area = app_config.area
        if area.is_set:
            return BoundingBox(
                area.min_latitude, area.min_longitude, area.max_latitude, area.max_longitude
            )

        search = app_config.search
        if search.address or (search.latitude is not None and search.longitude is not None):
            resolver = LocationResolver(self.logger)
            return resolver.bound_for(
                search.address, search.latitude, search.longitude, search.radius
            )
        return None

    def _export(
        self, coordinator: ScanCoordinator, selection: list[PhotoRecord], output_archive: str
    ) -> None:
        export_result = coordinator.export(selection, Path(output_archive))
        for skipped in export_result.skipped:
            self.logger.warning(f"Not exported: {skipped}")


def serve(app_config: ApplicationConfig, logger: logging.Logger) -> None:
    """Run the HTTP scan service until interrupted."""
    import uvicorn  # pylint: disable=import-outside-toplevel

    from .server import create_app  # pylint: disable=import-outside-toplevel

    app = create_app(app_config.scan, logger)
    logger.info(f"Serving on http://{app_config.server.host}:{app_config.server.port}")
    uvicorn.run(app, host=app_config.server.host, port=app_config.server.port)


def main(argv: list[str] | None = None) -> None:
    """Main execution function."""
    logging_setup = LoggingSetup()
    logger = logging_setup.setup_logging()

    try:
        config_manager = ConfigurationManager(logger)
        app_config = config_manager.parse_arguments_and_config(argv)

        if app_config.output.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        if app_config.server.serve:
            logger.info("Running in server mode")
            serve(app_config, logger)
            return

        workflow = ScanWorkflow(logger)
        workflow.run(app_config)
        logger.info("Scan completed successfully")

    except KeyboardInterrupt:
        logger.info("Scan interrupted by user")
        sys.exit(Constants.ErrorCodes.INTERRUPTED)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(Constants.ErrorCodes.CONFIGURATION_ERROR)
    except ScanRootError as e:
        logger.error(f"Scan root error: {e}")
        sys.exit(Constants.ErrorCodes.SCAN_ROOT_ERROR)
    except ScanInProgressError as e:
        logger.error(f"Scan in progress: {e}")
        sys.exit(Constants.ErrorCodes.SCAN_IN_PROGRESS)
    except ManifestError as e:
        logger.error(f"Manifest error: {e}")
        sys.exit(Constants.ErrorCodes.MANIFEST_ERROR)
    except PersistenceError as e:
        logger.error(f"Persistence error: {e}")
        sys.exit(Constants.ErrorCodes.PERSISTENCE_ERROR)
    except NothingToExportError as e:
        logger.warning(f"Nothing to export: {e}")
        sys.exit(Constants.ErrorCodes.NOTHING_TO_EXPORT)
    except ExportError as e:
        logger.error(f"Export error: {e}")
        sys.exit(Constants.ErrorCodes.EXPORT_ERROR)
    except FileOperationError as e:
        logger.error(f"File operation error: {e}")
        sys.exit(Constants.ErrorCodes.FILE_OPERATION_ERROR)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error(f"Unexpected error: {e}")
        sys.exit(Constants.ErrorCodes.GENERAL_ERROR)


if __name__ == "__main__":
    main()
