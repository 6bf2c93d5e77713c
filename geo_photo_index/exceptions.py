"""Custom exceptions for the geo photo index application."""


class GeoPhotoIndexError(Exception):
    """Base exception for geo photo index operations."""
    pass


class ConfigurationError(GeoPhotoIndexError):
    """Raised when there are configuration-related errors."""
    pass


class ScanRootError(GeoPhotoIndexError):
    """Raised when the scan root is missing or cannot be read and written."""
    pass


class ExtractionError(GeoPhotoIndexError):
    """Raised when metadata or thumbnail extraction fails for a single file."""
    pass


class ManifestError(GeoPhotoIndexError):
    """Raised when an existing manifest cannot be read or parsed."""
    pass


class PersistenceError(GeoPhotoIndexError):
    """Raised when the manifest or thumbnails cannot be written."""
    pass


class ExportError(GeoPhotoIndexError):
    """Raised when an archive cannot be produced."""
    pass


class NothingToExportError(ExportError):
    """Raised when a selection contains no exportable photos."""
    pass


class ScanInProgressError(GeoPhotoIndexError):
    """Raised when a scan is requested while another one is running."""
    pass


class FileOperationError(GeoPhotoIndexError):
    """Raised when auxiliary file operations fail."""
    pass
