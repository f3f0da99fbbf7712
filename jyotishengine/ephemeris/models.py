"""Position records returned by the position sources."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import StrEnum

from ..core.angles import normalize_degrees
from ..core.bodies import Body
from ..errors import CalculationFailureError, ValidationError

__all__ = ["BodyPosition", "GeoLocation", "Source"]


class Source(StrEnum):
    """Precision tier that produced a position."""

    PRECISE = "precise"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class GeoLocation:
    """Geographic observer location (degrees, east longitude positive)."""

    latitude: float
    longitude: float
    elevation_m: float = 0.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.latitude) and -90.0 <= self.latitude <= 90.0):
            raise ValidationError(
                "latitude must lie in [-90, 90]", context={"latitude": self.latitude}
            )
        if not (math.isfinite(self.longitude) and -180.0 <= self.longitude <= 360.0):
            raise ValidationError(
                "longitude must lie in [-180, 360]", context={"longitude": self.longitude}
            )


@dataclass(frozen=True)
class BodyPosition:
    """Geocentric ecliptic-of-date position of one body at one instant."""

    body: Body
    longitude: float
    latitude: float
    distance_au: float
    speed: float
    source: Source = Source.FALLBACK

    @property
    def retrograde(self) -> bool:
        return self.speed < 0.0

    @classmethod
    def build(
        cls,
        body: Body,
        longitude: float,
        latitude: float,
        distance_au: float,
        speed: float,
        source: Source,
    ) -> BodyPosition:
        """Validate raw components and return a normalised position."""

        values = (longitude, latitude, distance_au, speed)
        if not all(math.isfinite(v) for v in values):
            raise CalculationFailureError(
                f"non-finite position for {body.value}",
                context={"body": body.value, "source": source.value, "values": values},
            )
        if not -90.0 <= latitude <= 90.0 or distance_au < 0.0:
            raise CalculationFailureError(
                f"out-of-range position for {body.value}",
                context={"body": body.value, "source": source.value, "values": values},
            )
        return cls(
            body=body,
            longitude=normalize_degrees(longitude),
            latitude=float(latitude),
            distance_au=float(distance_au),
            speed=float(speed),
            source=source,
        )

    def opposite(self, body: Body) -> BodyPosition:
        """Return the diametrically opposite point (used for Ketu)."""

        return replace(
            self,
            body=body,
            longitude=normalize_degrees(self.longitude + 180.0),
            latitude=-self.latitude,
        )

    def with_longitude(self, longitude: float) -> BodyPosition:
        return replace(self, longitude=normalize_degrees(longitude))

    def to_dict(self) -> dict[str, object]:
        return {
            "body": self.body.value,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "distance_au": self.distance_au,
            "speed": self.speed,
            "retrograde": self.retrograde,
            "source": self.source.value,
        }
