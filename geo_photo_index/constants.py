"""Constants and error codes for the geo photo index application."""

import os


class Constants:
    """
    Constants used throughout the geo_photo_index application.

    Attributes:
        IMAGE_EXTENSIONS (set): File extensions indexed by the walker.
        LEGACY_EXTENSIONS (set): Extra extensions accepted by the legacy variant.
        MANIFEST_FILENAME (str): Name of the JSON sidecar stored inside the scanned root.
        THUMBNAIL_DIRNAME (str): Directory, inside the scanned root, mirroring the photo tree.
        THUMBNAIL_SUFFIX (str): Suffix appended to the original file name for its thumbnail.
        THUMBNAIL_MAX_SIZE (int): Thumbnail bounding box for the worker-pool path, in pixels.
        EAGER_THUMBNAIL_MAX_SIZE (int): Thumbnail bounding box for the eager path, in pixels.
        THUMBNAIL_QUALITY (int): JPEG quality used when re-encoding thumbnails.
        DEFAULT_POOL_SIZE (int): Worker count used when the hardware hint is unavailable.
        MAX_IN_FLIGHT (int): Upper bound on files dispatched together in one batch.
        DEFAULT_RADIUS (float): Default area radius in miles when selecting around a centre.
        DEFAULT_USER_AGENT (str): User agent string for geocoding requests.
        GEOCODING_TIMEOUT_SECONDS (int): Timeout for geocoding operations in seconds.
        ARCHIVE_NAME (str): Default file name for exported archives.

    Classes:
        ErrorCodes: Application exit codes indicating various error and success states.
    """

    IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
    LEGACY_EXTENSIONS = {".gif"}

    MANIFEST_FILENAME = "photos-metadata.json"
    THUMBNAIL_DIRNAME = "thumbnails"
    THUMBNAIL_SUFFIX = ".thumb.jpg"

    # Thumbnail rendering
    THUMBNAIL_MAX_SIZE = 200
    EAGER_THUMBNAIL_MAX_SIZE = 100
    THUMBNAIL_QUALITY = 70

    # Worker pool sizing
    DEFAULT_POOL_SIZE = 4
    MAX_IN_FLIGHT = 4

    DEFAULT_RADIUS = 0.1
    DEFAULT_USER_AGENT = "geo_photo_index"
    GEOCODING_TIMEOUT_SECONDS = 10

    ARCHIVE_NAME = "selected-photos.zip"

    DEFAULT_HOST = "127.0.0.1"
    DEFAULT_PORT = 34567

    @staticmethod
    def default_pool_size() -> int:
        """Return the hardware parallelism hint, or DEFAULT_POOL_SIZE when unknown."""
        return os.cpu_count() or Constants.DEFAULT_POOL_SIZE

    class ErrorCodes:
        """
        ErrorCodes

        A collection of integer constants representing the process exit status of the
            geo_photo_index command line tool.

        Attributes:
            SUCCESS (int): Operation completed successfully.
            INTERRUPTED (int): Operation was interrupted.
            NO_ROOT_DIRECTORY (int): Root directory was not specified.
            CONFIGURATION_ERROR (int): Error in application configuration.
            SCAN_ROOT_ERROR (int): Root directory missing or not accessible.
            MANIFEST_ERROR (int): Existing manifest could not be read.
            PERSISTENCE_ERROR (int): Manifest or thumbnails could not be written.
            NOTHING_TO_EXPORT (int): Area selection contained no exportable photos.
            EXPORT_ERROR (int): Archive could not be produced.
            SCAN_IN_PROGRESS (int): Another scan was already running.
            FILE_OPERATION_ERROR (int): Auxiliary file could not be written.
            GENERAL_ERROR (int): General or unspecified error.
        """

        SUCCESS = 0
        INTERRUPTED = 1
        NO_ROOT_DIRECTORY = 2
        CONFIGURATION_ERROR = 4
        SCAN_ROOT_ERROR = 8
        MANIFEST_ERROR = 13
        PERSISTENCE_ERROR = 14
        NOTHING_TO_EXPORT = 9
        EXPORT_ERROR = 17
        SCAN_IN_PROGRESS = 19
        FILE_OPERATION_ERROR = 7
        GENERAL_ERROR = 20
