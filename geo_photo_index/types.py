"""Type definitions for the geo photo index application."""

from dataclasses import dataclass, field
from pathlib import Path

from .constants import Constants


@dataclass(frozen=True)
class WalkedFile:
    """A candidate image found by the walker, identified by its path relative to the root."""
    path: Path
    relative_path: str
    last_modified: int
    size: int = 0

    @property
    def name(self) -> str:
        return self.relative_path.rsplit("/", 1)[-1]


@dataclass
class PhotoRecord:
    """
    One indexed image.

    Instants (captured_at, last_modified) are epoch milliseconds. Every record in a
    collection has coordinates; files without GPS data never become records.
    """
    relative_path: str
    name: str
    latitude: float
    longitude: float
    captured_at: int
    last_modified: int
    thumbnail_path: str | None = None

    @property
    def coordinates(self) -> tuple[float, float]:
        return self.latitude, self.longitude


@dataclass
class ExtractionResult:
    """Output of a single extraction: coordinates (or None), capture time and thumbnail."""
    coordinates: tuple[float, float] | None
    captured_at: int
    thumbnail: bytes | None = None

    @property
    def has_gps(self) -> bool:
        return self.coordinates is not None


@dataclass
class FileFailure:
    """A file that could not be extracted, read or exported."""
    relative_path: str
    reason: str


@dataclass
class ScanProgress:
    """Progress event emitted while a scan runs."""
    phase: str
    percent: int
    completed: int
    total: int | None


@dataclass
class ScanConfig:
    """Scan configuration parameters."""
    root: str | None = None
    pool_size: int = field(default_factory=Constants.default_pool_size)
    thumbnail_size: int = Constants.THUMBNAIL_MAX_SIZE
    prune_missing: bool = True
    count_first: bool = False
    include_gif: bool = False


@dataclass
class AreaConfig:
    """Explicit rectangular area, in decimal degrees."""
    min_latitude: float | None = None
    min_longitude: float | None = None
    max_latitude: float | None = None
    max_longitude: float | None = None

    @property
    def is_set(self) -> bool:
        return None not in (
            self.min_latitude, self.min_longitude, self.max_latitude, self.max_longitude
        )


@dataclass
class SearchConfig:
    """Centre-and-radius area selection parameters."""
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius: float = Constants.DEFAULT_RADIUS


@dataclass
class ExportConfig:
    """Archive export parameters."""
    output_archive: str | None = None


@dataclass
class OutputConfig:
    """Output configuration parameters."""
    verbose: bool = False


@dataclass
class ServerConfig:
    """Remote scan service parameters."""
    serve: bool = False
    host: str = Constants.DEFAULT_HOST
    port: int = Constants.DEFAULT_PORT


@dataclass
class ApplicationConfig:
    """All configuration sections for one run of the application."""
    scan: ScanConfig = field(default_factory=ScanConfig)
    area: AreaConfig = field(default_factory=AreaConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
