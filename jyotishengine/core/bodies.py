"""Body identifiers understood by the position sources."""

from __future__ import annotations

from enum import Enum

from ..errors import ValidationError

__all__ = ["Body", "CLASSICAL_GRAHAS", "normalize_body"]


class Body(str, Enum):
    """The twelve bodies a chart is built from.

    ``swe_code`` mirrors the Swiss Ephemeris planet numbering; Ketu has no
    native code and is always derived from Rahu.
    """

    SUN = "sun"
    MOON = "moon"
    MERCURY = "mercury"
    VENUS = "venus"
    MARS = "mars"
    JUPITER = "jupiter"
    SATURN = "saturn"
    URANUS = "uranus"
    NEPTUNE = "neptune"
    PLUTO = "pluto"
    RAHU = "rahu"
    KETU = "ketu"

    @property
    def swe_code(self) -> int | None:
        return _SWE_CODES.get(self)

    @property
    def is_node(self) -> bool:
        return self in (Body.RAHU, Body.KETU)

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


_SWE_CODES: dict[Body, int] = {
    Body.SUN: 0,
    Body.MOON: 1,
    Body.MERCURY: 2,
    Body.VENUS: 3,
    Body.MARS: 4,
    Body.JUPITER: 5,
    Body.SATURN: 6,
    Body.URANUS: 7,
    Body.NEPTUNE: 8,
    Body.PLUTO: 9,
}

SWE_MEAN_NODE = 10
SWE_TRUE_NODE = 11

# Navagraha order used by the dasha and friendship tables.
CLASSICAL_GRAHAS: tuple[Body, ...] = (
    Body.SUN,
    Body.MOON,
    Body.MARS,
    Body.MERCURY,
    Body.JUPITER,
    Body.VENUS,
    Body.SATURN,
    Body.RAHU,
    Body.KETU,
)


def normalize_body(value: Body | str) -> Body:
    """Return the :class:`Body` for ``value`` (case-insensitive names accepted)."""

    if isinstance(value, Body):
        return value
    token = str(value).strip().lower()
    aliases = {"north_node": "rahu", "south_node": "ketu", "mean_node": "rahu"}
    token = aliases.get(token, token)
    try:
        return Body(token)
    except ValueError as exc:
        raise ValidationError(
            f"Unsupported body '{value}'", context={"body": str(value)}
        ) from exc
