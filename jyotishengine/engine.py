"""Public façade wiring sources, corrections and calculators together.

The façade owns no global state: every dependency (configuration, precise
ephemeris provider, rise/set calculator, memoiser) is passed in or built
from the configuration, so several engines with different settings can
coexist in one process.  Results are memoised per
``(operation, identity, instant, location, config)``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, TypeVar

from .config import AstrologyConfig
from .core.bodies import CLASSICAL_GRAHAS, Body, normalize_body
from .core.cache import Memoizer
from .core.time import Instant
from .ephemeris.analytic import AnalyticPositionSource
from .ephemeris.ayanamsha import Ayanamsha
from .ephemeris.ayanamsha import ayanamsha_value as compute_ayanamsha
from .ephemeris.houses import HouseSet, HouseSystem, houses as compute_houses_at
from .ephemeris.models import BodyPosition, GeoLocation
from .ephemeris.precise import (
    PrecisePositionProvider,
    PrecisePositionSource,
    SwissEphemerisCapability,
)
from .ephemeris.sources import DegradingPositionSource
from .errors import AstrologyError
from .observability.metrics import COMPUTE_ERRORS
from .vedic.calendar import CalendarDay, CalendarRuleEngine
from .vedic.classification import Classification, classify
from .vedic.dasha import DashaTimeline, vimshottari_dasha
from .vedic.festivals import FestivalOccurrence, RegionalCalendarVariant
from .vedic.matching import CompatibilityResult, match_charts
from .vedic.riseset import RiseSetCalculator
from .vedic.transits import Transit, compare_transit

__all__ = ["ChartResult", "EngineFacade"]

LOG = logging.getLogger(__name__)

T = TypeVar("T")

MomentLike = datetime | Instant


@dataclass(frozen=True)
class ChartResult:
    """Sidereal positions, their classifications and the house frame."""

    instant: Instant
    location: GeoLocation
    ayanamsha: Ayanamsha
    ayanamsha_value: float
    positions: Mapping[Body, BodyPosition]
    classifications: Mapping[Body, Classification]
    houses: HouseSet

    @property
    def moon(self) -> Classification:
        return self.classifications[Body.MOON]

    @property
    def lagna(self) -> Classification:
        return classify(self.houses.ascendant)

    def house_of(self, body: Body | str) -> int:
        return self.houses.house_of(self.positions[normalize_body(body)].longitude)

    def to_dict(self) -> dict[str, Any]:
        return {
            "instant": self.instant.utc.isoformat(),
            "location": {
                "latitude": self.location.latitude,
                "longitude": self.location.longitude,
            },
            "ayanamsha": self.ayanamsha.value,
            "ayanamsha_value": self.ayanamsha_value,
            "positions": {
                body.value: {
                    **position.to_dict(),
                    "rashi": self.classifications[body].rashi.name,
                    "nakshatra": self.classifications[body].nakshatra.name,
                    "pada": self.classifications[body].pada.number,
                    "house": self.houses.house_of(position.longitude),
                }
                for body, position in self.positions.items()
            },
            "houses": self.houses.to_dict(),
        }


class EngineFacade:
    """Single entry point for positions, charts, transits, dashas, matching and calendars."""

    def __init__(
        self,
        config: AstrologyConfig | None = None,
        *,
        precise_provider: PrecisePositionProvider | None = None,
        rise_set: RiseSetCalculator | None = None,
        memo: Memoizer | None = None,
    ) -> None:
        self.config = config or AstrologyConfig()
        self.analytic = AnalyticPositionSource(node_type=self.config.node_type)
        provider = precise_provider
        if (
            provider is None
            and self.config.native_source_enabled
            and SwissEphemerisCapability.available()
        ):
            provider = SwissEphemerisCapability()
        self.precise: PrecisePositionSource | None = None
        if provider is not None:
            self.precise = PrecisePositionSource(
                provider,
                timeout_s=self.config.precise_timeout_s,
                retries=self.config.precise_retries,
                node_type=self.config.node_type,
            )
        self.source = DegradingPositionSource(
            self.precise, self.analytic, prefer_precise=self.config.prefers_precise
        )
        self.memo = memo or Memoizer(self.config.cache_size, self.config.cache_ttl_s)
        self.calendar = CalendarRuleEngine(
            self.source,
            ayanamsha=self.config.ayanamsha,
            user_ayanamsha=self.config.user_ayanamsha,
            rise_set=rise_set,
            default_variant=self.config.calendar_variant,
        )
        LOG.debug(
            "engine initialised",
            extra={
                "precise": self.precise is not None,
                "ayanamsha": self.config.ayanamsha.value,
                "house_system": self.config.house_system.value,
            },
        )

    def close(self) -> None:
        if self.precise is not None:
            self.precise.close()

    def __enter__(self) -> EngineFacade:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- plumbing -------------------------------------------------------

    def _key(
        self,
        operation: str,
        identity: Hashable,
        instant: Instant | None,
        location: GeoLocation | None = None,
    ) -> tuple[Hashable, ...]:
        return (operation, identity, instant, location, self.config)

    def _run(self, component: str, key: tuple[Hashable, ...], compute: Callable[[], T]) -> T:
        try:
            return self.memo.get_or_compute(key, compute)
        except AstrologyError as exc:
            COMPUTE_ERRORS.labels(component=component, kind=exc.kind.value).inc()
            raise

    # -- positions ------------------------------------------------------

    def position(
        self,
        body: Body | str,
        moment: MomentLike,
        location: GeoLocation | None = None,
    ) -> BodyPosition:
        """Tropical geocentric position, tagged with its precision tier."""

        resolved = normalize_body(body)
        instant = Instant.coerce(moment)
        return self._run(
            "position",
            self._key("position", resolved, instant, location),
            lambda: self.source.position(resolved, instant, location),
        )

    def positions(
        self,
        moment: MomentLike,
        bodies: Iterable[Body | str] = CLASSICAL_GRAHAS,
        location: GeoLocation | None = None,
    ) -> dict[Body, BodyPosition]:
        return {
            normalize_body(body): self.position(body, moment, location) for body in bodies
        }

    def ayanamsha_value(self, moment: MomentLike) -> float:
        instant = Instant.coerce(moment)
        return compute_ayanamsha(
            self.config.ayanamsha, instant.jd_tt, user=self.config.user_ayanamsha
        )

    def sidereal_position(
        self,
        body: Body | str,
        moment: MomentLike,
        location: GeoLocation | None = None,
    ) -> BodyPosition:
        """Position with the configured ayanamsha subtracted from its longitude."""

        instant = Instant.coerce(moment)
        tropical = self.position(body, instant, location)
        return tropical.with_longitude(tropical.longitude - self.ayanamsha_value(instant))

    def classify(
        self,
        body: Body | str,
        moment: MomentLike,
        location: GeoLocation | None = None,
    ) -> Classification:
        return classify(self.sidereal_position(body, moment, location).longitude)

    # -- houses and charts ----------------------------------------------

    def houses(
        self,
        moment: MomentLike,
        latitude: float,
        longitude: float,
        system: HouseSystem | str | None = None,
        *,
        sidereal: bool = True,
    ) -> HouseSet:
        instant = Instant.coerce(moment)
        location = GeoLocation(latitude, longitude)
        chosen = system or self.config.house_system
        offset = self.ayanamsha_value(instant) if sidereal else 0.0
        return self._run(
            "houses",
            self._key("houses", (str(chosen), sidereal), instant, location),
            lambda: compute_houses_at(
                instant, latitude, longitude, chosen, ayanamsha_offset=offset
            ),
        )

    def chart(
        self,
        moment: MomentLike,
        latitude: float,
        longitude: float,
        *,
        bodies: Iterable[Body | str] = CLASSICAL_GRAHAS,
        house_system: HouseSystem | str | None = None,
    ) -> ChartResult:
        instant = Instant.coerce(moment)
        location = GeoLocation(latitude, longitude)
        resolved = tuple(normalize_body(body) for body in bodies)
        positions = {body: self.sidereal_position(body, instant, location) for body in resolved}
        return ChartResult(
            instant=instant,
            location=location,
            ayanamsha=self.config.ayanamsha,
            ayanamsha_value=self.ayanamsha_value(instant),
            positions=positions,
            classifications={
                body: classify(position.longitude) for body, position in positions.items()
            },
            houses=self.houses(instant, latitude, longitude, house_system),
        )

    # -- dasha and matching ---------------------------------------------

    def dasha(
        self,
        birth: MomentLike,
        *,
        levels: int = 1,
        as_of: MomentLike | None = None,
    ) -> DashaTimeline:
        instant = Instant.coerce(birth)
        reference = Instant.coerce(as_of) if as_of is not None else None

        def compute() -> DashaTimeline:
            moon = self.sidereal_position(Body.MOON, instant)
            return vimshottari_dasha(instant, moon.longitude, reference, levels=levels)

        return self._run("dasha", self._key("dasha", (levels, reference), instant), compute)

    def _moon_placement(self, value: MomentLike | Classification) -> Classification:
        if isinstance(value, Classification):
            return value
        return self.classify(Body.MOON, value)

    def match(
        self,
        bride: MomentLike | Classification,
        groom: MomentLike | Classification,
    ) -> CompatibilityResult:
        """Ashta-koota score from two birth moments (or Moon placements)."""

        bride_moon = self._moon_placement(bride)
        groom_moon = self._moon_placement(groom)
        return self._run(
            "match",
            self._key("match", (bride_moon.longitude, groom_moon.longitude), None),
            lambda: match_charts(bride_moon, groom_moon),
        )

    # -- transits -------------------------------------------------------

    def transits(
        self,
        birth: MomentLike,
        as_of: MomentLike,
        latitude: float,
        longitude: float,
        *,
        bodies: Iterable[Body | str] = CLASSICAL_GRAHAS,
        house_system: HouseSystem | str | None = None,
    ) -> tuple[Transit, ...]:
        """Compare the sidereal positions at ``as_of`` against the natal chart."""

        instant = Instant.coerce(birth)
        reference = Instant.coerce(as_of)
        location = GeoLocation(latitude, longitude)
        resolved = tuple(normalize_body(body) for body in bodies)

        def compute() -> tuple[Transit, ...]:
            natal = self.chart(
                instant, latitude, longitude, bodies=resolved, house_system=house_system
            )
            return tuple(
                compare_transit(
                    natal.positions[body],
                    self.sidereal_position(body, reference, location),
                    natal.houses,
                )
                for body in resolved
            )

        identity = (resolved, str(house_system) if house_system else None, reference)
        return self._run("transits", self._key("transits", identity, instant, location), compute)

    # -- calendar -------------------------------------------------------

    def calendar_day(
        self,
        day: date,
        latitude: float,
        longitude: float,
        variant: RegionalCalendarVariant | str | None = None,
    ) -> CalendarDay:
        location = GeoLocation(latitude, longitude)
        identity = (day, variant.name if isinstance(variant, RegionalCalendarVariant) else variant)
        return self._run(
            "calendar",
            self._key("calendar_day", identity, None, location),
            lambda: self.calendar.day(day, latitude, longitude, variant),
        )

    def festivals(
        self,
        year: int,
        latitude: float,
        longitude: float,
        variant: RegionalCalendarVariant | str | None = None,
    ) -> list[FestivalOccurrence]:
        location = GeoLocation(latitude, longitude)
        identity = (year, variant.name if isinstance(variant, RegionalCalendarVariant) else variant)
        occurrences = self._run(
            "calendar",
            self._key("festivals", identity, None, location),
            lambda: tuple(self.calendar.festivals(year, latitude, longitude, variant)),
        )
        return list(occurrences)

    # -- async ----------------------------------------------------------

    async def aposition(
        self, body: Body | str, moment: MomentLike, location: GeoLocation | None = None
    ) -> BodyPosition:
        return await asyncio.to_thread(self.position, body, moment, location)

    async def achart(
        self, moment: MomentLike, latitude: float, longitude: float, **kwargs: Any
    ) -> ChartResult:
        return await asyncio.to_thread(self.chart, moment, latitude, longitude, **kwargs)

    async def adasha(self, birth: MomentLike, **kwargs: Any) -> DashaTimeline:
        return await asyncio.to_thread(self.dasha, birth, **kwargs)

    async def amatch(
        self, bride: MomentLike | Classification, groom: MomentLike | Classification
    ) -> CompatibilityResult:
        return await asyncio.to_thread(self.match, bride, groom)

    async def atransits(
        self,
        birth: MomentLike,
        as_of: MomentLike,
        latitude: float,
        longitude: float,
        **kwargs: Any,
    ) -> tuple[Transit, ...]:
        return await asyncio.to_thread(
            self.transits, birth, as_of, latitude, longitude, **kwargs
        )

    async def acalendar_day(
        self,
        day: date,
        latitude: float,
        longitude: float,
        variant: RegionalCalendarVariant | str | None = None,
    ) -> CalendarDay:
        return await asyncio.to_thread(self.calendar_day, day, latitude, longitude, variant)

    async def afestivals(
        self,
        year: int,
        latitude: float,
        longitude: float,
        variant: RegionalCalendarVariant | str | None = None,
    ) -> list[FestivalOccurrence]:
        return await asyncio.to_thread(self.festivals, year, latitude, longitude, variant)
