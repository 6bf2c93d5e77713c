"""Area selection over the in-memory photo collection."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from geopy.distance import distance
from geopy.exc import GeocoderServiceError, GeocoderTimedOut
from geopy.geocoders import Nominatim

from .constants import Constants
from .exceptions import ConfigurationError
from .types import PhotoRecord


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle in decimal degrees; containment is inclusive on every edge."""
    min_latitude: float
    min_longitude: float
    max_latitude: float
    max_longitude: float

    def __post_init__(self):
        if self.min_latitude > self.max_latitude:
            raise ConfigurationError(
                f"min latitude {self.min_latitude} exceeds max latitude {self.max_latitude}"
            )
        if self.min_longitude > self.max_longitude:
            raise ConfigurationError(
                f"min longitude {self.min_longitude} exceeds max longitude {self.max_longitude}"
            )
        if not (-90.0 <= self.min_latitude and self.max_latitude <= 90.0):
            raise ConfigurationError("latitudes must be within -90..90")
        if not (-180.0 <= self.min_longitude and self.max_longitude <= 180.0):
            raise ConfigurationError("longitudes must be within -180..180")

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.min_latitude <= latitude <= self.max_latitude
            and self.min_longitude <= longitude <= self.max_longitude
        )

    @classmethod
    def around(cls, latitude: float, longitude: float, radius_miles: float) -> "BoundingBox":
        """Smallest box enclosing a circle of radius_miles around a centre."""
        if radius_miles < 0:
            raise ConfigurationError(f"Radius must not be negative: {radius_miles}")

        reach = distance(miles=radius_miles)
        north = reach.destination((latitude, longitude), bearing=0)
        east = reach.destination((latitude, longitude), bearing=90)
        south = reach.destination((latitude, longitude), bearing=180)
        west = reach.destination((latitude, longitude), bearing=270)

        min_longitude, max_longitude = west.longitude, east.longitude
        if min_longitude > max_longitude:
            # circle crosses the antimeridian
            min_longitude, max_longitude = -180.0, 180.0

        return cls(
            min_latitude=max(-90.0, min(south.latitude, latitude)),
            min_longitude=min_longitude,
            max_latitude=min(90.0, max(north.latitude, latitude)),
            max_longitude=max_longitude,
        )


class SpatialFilter:
    """Linear-scan selection of photos inside a bounding box."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def select(self, bound: BoundingBox, photos: Iterable[PhotoRecord]) -> list[PhotoRecord]:
        """Return every record whose coordinates lie inside bound, in collection order."""
        selected = [photo for photo in photos if bound.contains(photo.latitude, photo.longitude)]
        self.logger.info(f"Selected {len(selected)} photos in {bound}")
        return selected


class LocationResolver:
    """Resolves an address or coordinate centre into a selection box."""

    def __init__(self, logger: logging.Logger, geolocator=None):
        self.logger = logger
        self.geolocator = geolocator or Nominatim(user_agent=Constants.DEFAULT_USER_AGENT)

    def geocode(self, address: str) -> tuple[float, float]:
        """
        Look up the coordinates of an address.

        Raises:
            ConfigurationError: If the address is unknown or the geocoder fails
        """
        try:
            location = self.geolocator.geocode(
                query=address, timeout=Constants.GEOCODING_TIMEOUT_SECONDS
            )
        except (GeocoderTimedOut, GeocoderServiceError) as e:
            raise ConfigurationError(f"Geocoding failed: {e}") from e

        if not location:
            raise ConfigurationError(f"No location found for address: {address}")

        self.logger.info(f"Nominatim address: {location.address}")
        self.logger.info(f"Lat, Lon: {location.latitude}, {location.longitude}")
        return location.latitude, location.longitude

    def bound_for(
        self,
        address: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
        radius: float = Constants.DEFAULT_RADIUS,
    ) -> BoundingBox:
        """Box around an address or explicit coordinates."""
        if address:
            latitude, longitude = self.geocode(address)
        elif latitude is None or longitude is None:
            raise ConfigurationError("Either address or coordinates must be provided")
        return BoundingBox.around(latitude, longitude, radius)
