"""Configuration management for the geo photo index application."""

import argparse
import logging
import sys
from pathlib import Path

import tomllib

from .constants import Constants
from .exceptions import ConfigurationError, FileOperationError
from .types import (
    ApplicationConfig,
    AreaConfig,
    ExportConfig,
    OutputConfig,
    ScanConfig,
    SearchConfig,
    ServerConfig,
)


class ConfigurationManager:
    """Manages application configuration by parsing command-line arguments and TOML
        configuration files, merging their values, validating the resulting configuration,
        and providing configuration objects for use throughout the application.
    Responsibilities:
        - Parse command-line arguments using argparse.
        - Load configuration from TOML files, supporting multiple standard locations.
        - Merge configuration file values with command-line arguments, prioritizing
            explicit arguments.
        - Validate configuration for required fields and logical consistency.
        - Handle sample config creation.
    Methods:
        __init__(logger: logging.Logger)
            Initializes the ConfigurationManager with a logger.
        parse_arguments_and_config(argv: list[str] | None = None) -> ApplicationConfig
            Parses command-line arguments and configuration files, merges them, validates,
                and returns an ApplicationConfig object containing all configuration sections.
        _create_argument_parser() -> argparse.ArgumentParser
            Creates and configures the argument parser for command-line options.
        _load_config_file(config_path: str | Path | None = None) -> dict
            Loads configuration from a TOML file, searching standard locations if no path is
            provided.
        _merge_config_with_args(config_data: dict, args: argparse.Namespace) -> None
            Merges configuration file data into command-line arguments based on defined
            field mappings.
        _create_sample_config(output_path: str | Path | None = None) -> None
            Creates a sample TOML configuration file with documentation and example settings.
        _validate_configuration(app_config: ApplicationConfig) -> None
            Validates the complete configuration for required fields and logical consistency.
    Exceptions:
        Raises ConfigurationError for invalid or missing configuration.
        Raises FileOperationError for file creation errors.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def parse_arguments_and_config(self, argv: list[str] | None = None) -> ApplicationConfig:
        """
        Parses command line arguments and configuration file, merges them, and constructs the
            application configuration.

        Raises:
            ConfigurationError: If required arguments are missing or configuration is invalid.

        Returns:
            ApplicationConfig: The fully constructed application configuration object.
        """

        args = self._create_argument_parser().parse_args(argv)

        if args.create_config:
            self._create_sample_config(args.create_config)
            sys.exit(Constants.ErrorCodes.SUCCESS)

        config_data = self._load_config_file(getattr(args, "config", None))
        if config_data:
            self._merge_config_with_args(config_data, args)

        if not args.root and not args.serve:
            raise ConfigurationError("Root directory (-d/--root) is required")

        area = args.area or [None] * 4
        pool_size = args.workers if args.workers is not None else Constants.default_pool_size()
        app_config = ApplicationConfig(
            scan=ScanConfig(
                root=args.root,
                pool_size=pool_size,
                thumbnail_size=args.thumbnail_size,
                prune_missing=not args.no_prune,
                count_first=args.count_first,
                include_gif=args.include_gif,
            ),
            area=AreaConfig(
                min_latitude=area[0],
                min_longitude=area[1],
                max_latitude=area[2],
                max_longitude=area[3],
            ),
            search=SearchConfig(
                address=args.address,
                latitude=args.latitude,
                longitude=args.longitude,
                radius=args.radius,
            ),
            export=ExportConfig(output_archive=args.output_archive),
            output=OutputConfig(verbose=args.verbose),
            server=ServerConfig(serve=args.serve, host=args.host, port=args.port),
        )

        self._validate_configuration(app_config)
        return app_config

    def _create_argument_parser(self) -> argparse.ArgumentParser:
        """
        Creates and configures an argparse.ArgumentParser for the geo_photo_index application.

        Supported Arguments:
            -d, --root                     Root directory to index (required unless --serve).
            -w, --workers                  Number of extraction workers.
            --thumbnail-size               Thumbnail bounding box in pixels.
            --no-prune                     Keep manifest entries of files removed from disk.
            --count-first                  Count files before collecting, for progress totals.
            --include-gif                  Also index .gif files.
            --area                         MIN_LAT MIN_LON MAX_LAT MAX_LON selection box.
            -a, --address                  Address at the centre of the selection.
            -t, --latitude                 Decimal latitude at the centre of the selection.
            -g, --longitude                Decimal longitude at the centre of the selection.
            -r, --radius                   Radius of the selection in miles.
            -o, --output-archive           ZIP archive to write the selection to.
            -v, --verbose                  Print additional information.
            --config                       Path to TOML configuration file.
            --create-config                Create a sample configuration file and exit.
            --serve                        Run the HTTP scan service.
            --host, --port                 Address of the HTTP scan service.
        """

        parser = argparse.ArgumentParser(
            prog="geo-photo-index",
            description="Indexes GPS-tagged photos under a directory and exports them by area.",
            epilog="Examples:\n"
            "  %(prog)s -d /photos\n"
            "  %(prog)s -d /photos --area 40.5 -74.3 41.0 -73.7 -o nyc.zip\n"
            "  %(prog)s -d /photos -a 'Paris' -r 2.0 -o paris.zip -v\n"
            "  %(prog)s --serve --port 34567\n"
            "  %(prog)s --create-config  # Create sample config file\n\n"
            "Configuration files (TOML format) are searched in this order:\n"
            "  1. Path specified with --config\n"
            "  2. ./geo_photo_index.toml\n"
            "  3. ~/.config/geo_photo_index/config.toml\n"
            "  4. ~/.geo_photo_index.toml",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "-d",
            "--root",
            action="store",
            help="(required) the <root directory> to index",
        )
        parser.add_argument(
            "-w",
            "--workers",
            type=int,
            help="number of extraction workers (defaults to the CPU count)",
        )
        parser.add_argument(
            "--thumbnail-size",
            type=int,
            default=Constants.THUMBNAIL_MAX_SIZE,
            help=f"thumbnail bounding box in pixels (defaults to {Constants.THUMBNAIL_MAX_SIZE})",
        )
        parser.add_argument(
            "--no-prune",
            action="store_true",
            help="keep cached entries for files that were removed from disk",
        )
        parser.add_argument(
            "--count-first",
            action="store_true",
            help="count candidate files before collecting them",
        )
        parser.add_argument(
            "--include-gif",
            action="store_true",
            help="also index .gif files",
        )

        # Area selection
        parser.add_argument(
            "--area",
            type=float,
            nargs=4,
            metavar=("MIN_LAT", "MIN_LON", "MAX_LAT", "MAX_LON"),
            help="select photos inside this box",
        )
        parser.add_argument(
            "-a",
            "--address",
            action="store",
            help="(optional) <address> at the centre of the selection",
        )
        parser.add_argument(
            "-t",
            "--latitude",
            type=float,
            help="(optional) decimal latitude at the centre of the selection",
        )
        parser.add_argument(
            "-g",
            "--longitude",
            type=float,
            help="(optional) decimal longitude at the centre of the selection",
        )
        parser.add_argument(
            "-r",
            "--radius",
            type=float,
            default=Constants.DEFAULT_RADIUS,
            help=(
                f"(optional, defaults to {Constants.DEFAULT_RADIUS})"
                " the radius of the selection in miles."
            ),
        )
        parser.add_argument(
            "-o",
            "--output-archive",
            action="store",
            help="write the selected photos to this ZIP archive",
        )
        parser.add_argument(
            "-v", "--verbose", action="store_true", help="print additional information"
        )

        parser.add_argument(
            "--config",
            type=str,
            help="Path to TOML configuration file (optional)",
        )
        parser.add_argument(
            "--create-config",
            type=str,
            nargs="?",
            const="geo_photo_index.toml",
            help="Create a sample configuration file and exit (optionally specify path)",
        )

        # Remote scan service
        parser.add_argument(
            "--serve",
            action="store_true",
            help="run the HTTP scan service instead of a single scan",
        )
        parser.add_argument("--host", default=Constants.DEFAULT_HOST, help="service host")
        parser.add_argument(
            "--port", type=int, default=Constants.DEFAULT_PORT, help="service port"
        )

        return parser

    def _load_config_file(self, config_path: str | Path | None = None) -> dict:
        """
        Loads configuration data from a TOML file.

        Args:
            config_path (str | Path | None): Optional path to a configuration file. If not provided,
                standard locations are checked.

        Returns:
            dict: The loaded configuration as a dictionary. Returns an empty dictionary if no
                configuration file is found or if loading/parsing fails.
        """

        config_locations = []

        if config_path:
            config_locations.append(Path(config_path))

        config_locations.extend(
            [
                Path.cwd() / "geo_photo_index.toml",
                Path.home() / ".config" / "geo_photo_index" / "config.toml",
                Path.home() / ".geo_photo_index.toml",
            ]
        )

        for config_file in config_locations:
            if config_file.exists():
                try:
                    with open(config_file, "rb") as f:
                        config_data = tomllib.load(f)
                    self.logger.info(f"Loaded configuration from: {config_file}")
                    return config_data
                except OSError as e:
                    self.logger.warning(f"Could not load config file {config_file}: {e}")
                    continue
                except tomllib.TOMLDecodeError as e:
                    self.logger.warning(f"Could not parse config file {config_file}: {e}")
                    continue

        return {}

    def _merge_config_with_args(self, config_data: dict, args: argparse.Namespace) -> None:
        """
        Merges configuration data from a TOML file with command-line arguments.

        Each mapping names the TOML section, argument name, TOML field and merge strategy.
        Explicit command-line values always win.
        """

        field_mappings = [
            # (toml_section, arg_name, toml_field, merge_strategy)
            ("scan", "root", "root", "string_not_empty"),
            ("scan", "workers", "workers", "none_check"),
            ("scan", "thumbnail_size", "thumbnail_size", "default_value", Constants.THUMBNAIL_MAX_SIZE),
            ("scan", "count_first", "count_first", "boolean_false_to_true"),
            ("scan", "include_gif", "include_gif", "boolean_false_to_true"),
            ("search", "address", "address", "string_not_empty"),
            ("search", "latitude", "latitude", "none_check"),
            ("search", "longitude", "longitude", "none_check"),
            ("search", "radius", "radius", "default_value", Constants.DEFAULT_RADIUS),
            ("export", "output_archive", "output_archive", "string_not_empty"),
            ("output", "verbose", "verbose", "boolean_false_to_true"),
            ("server", "host", "host", "default_value", Constants.DEFAULT_HOST),
            ("server", "port", "port", "default_value", Constants.DEFAULT_PORT),
        ]

        for mapping in field_mappings:
            self._apply_field_mapping(config_data, args, mapping)

        # prune_missing is stored positively in TOML
        if not args.no_prune and config_data.get("scan", {}).get("prune_missing", True) is False:
            args.no_prune = True

        area_data = config_data.get("area", {})
        area_fields = ("min_latitude", "min_longitude", "max_latitude", "max_longitude")
        if not args.area and all(name in area_data for name in area_fields):
            args.area = [float(area_data[name]) for name in area_fields]

    def _apply_field_mapping(
        self, config_data: dict, args: argparse.Namespace, mapping: tuple
    ) -> None:
        """
        Applies a single field mapping from a configuration dictionary to an argparse.
            Namespace object based on a specified merge strategy.

        Merge Strategies:
            - "string_not_empty": Sets the argument if it is empty/falsy and config value exists.
            - "none_check": Sets the argument if it is None and config value exists.
            - "default_value": Sets the argument if it still holds its default and config value
                                exists.
            - "boolean_false_to_true": Sets the argument if it is False and config value is True.
        """
        toml_section, arg_name, toml_field, merge_strategy = mapping[:4]
        section_data = config_data.get(toml_section, {})

        if merge_strategy == "string_not_empty":
            if not getattr(args, arg_name, None) and toml_field in section_data:
                setattr(args, arg_name, section_data[toml_field])

        elif merge_strategy == "none_check":
            if getattr(args, arg_name, None) is None and toml_field in section_data:
                setattr(args, arg_name, section_data[toml_field])

        elif merge_strategy == "default_value":
            default_value = mapping[4]
            if getattr(args, arg_name) == default_value and toml_field in section_data:
                setattr(args, arg_name, section_data[toml_field])

        elif merge_strategy == "boolean_false_to_true":
            if not getattr(args, arg_name, False) and section_data.get(toml_field, False):
                setattr(args, arg_name, section_data[toml_field])

    def _create_sample_config(self, output_path: str | Path | None = None) -> None:
        """Creates a sample configuration file for Geo Photo Index in TOML format.

        Raises:
            FileOperationError: If the configuration file cannot be created.
        """

        if not output_path:
            output_path = Path.cwd() / "geo_photo_index.toml"
        else:
            output_path = Path(output_path)

        sample_config = f"""# Geo Photo Index Configuration File
# Save this as geo_photo_index.toml in your working directory,
# ~/.config/geo_photo_index/config.toml, or ~/.geo_photo_index.toml

[scan]
root = "/path/to/photos"   # Directory to index
# workers = 4              # Extraction workers (defaults to the CPU count)
thumbnail_size = {Constants.THUMBNAIL_MAX_SIZE}       # Thumbnail bounding box in pixels
prune_missing = true       # Forget photos that were removed from disk
count_first = false        # Count files first for accurate progress
include_gif = false        # Also index .gif files

[area]
# Explicit selection box in decimal degrees
# min_latitude = 40.5
# min_longitude = -74.3
# max_latitude = 41.0
# max_longitude = -73.7

[search]
# Alternative: select around a centre
# address = "New York, NY"
# latitude = 40.7128
# longitude = -74.0060
radius = {Constants.DEFAULT_RADIUS}               # Selection radius in miles

[export]
# output_archive = "selected-photos.zip"

[output]
verbose = false

[server]
host = "{Constants.DEFAULT_HOST}"
port = {Constants.DEFAULT_PORT}

# Example configurations:
# For a quick re-index: count_first = false, prune_missing = true
# For a city export: address = "Paris", radius = 5.0, output_archive = "paris.zip"
"""

        try:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(sample_config)
            self.logger.info(f"Sample configuration file created: {output_path}")
            self.logger.info("Edit this file with your preferred settings.")
        except OSError as e:
            self.logger.error(f"Error creating sample config file: {e}")
            raise FileOperationError(f"Could not create config file: {e}") from e

    def _validate_configuration(self, app_config: ApplicationConfig) -> None:
        """
        Validates the application configuration for required options and constraints.

        Raises:
            ConfigurationError: If any configuration requirement is not met.
        """

        if app_config.scan.pool_size < 1:
            raise ConfigurationError("--workers must be at least 1")
        if app_config.scan.thumbnail_size < 1:
            raise ConfigurationError("--thumbnail-size must be at least 1")
        if app_config.search.radius < 0:
            raise ConfigurationError("--radius must not be negative")

        has_centre = bool(app_config.search.address) or (
            app_config.search.latitude is not None or app_config.search.longitude is not None
        )
        if app_config.area.is_set and has_centre:
            raise ConfigurationError("--area cannot be combined with --address or coordinates")
        if (app_config.search.latitude is None) != (app_config.search.longitude is None):
            raise ConfigurationError("--latitude and --longitude must be given together")
        if app_config.search.address and app_config.search.latitude is not None:
            raise ConfigurationError("--address cannot be combined with coordinates")

        if app_config.area.is_set:
            area = app_config.area
            if area.min_latitude > area.max_latitude or area.min_longitude > area.max_longitude:
                raise ConfigurationError("--area minimums must not exceed maximums")
            if not (-90 <= area.min_latitude and area.max_latitude <= 90):
                raise ConfigurationError("--area latitudes must be within -90..90")
            if not (-180 <= area.min_longitude and area.max_longitude <= 180):
                raise ConfigurationError("--area longitudes must be within -180..180")
