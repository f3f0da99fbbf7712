"""Engine configuration model and YAML loader."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .ephemeris.ayanamsha import Ayanamsha, UserAyanamsha, resolve_ayanamsha
from .ephemeris.houses import HouseSystem, resolve_house_system
from .errors import ValidationError

__all__ = ["AstrologyConfig", "load_config"]


def _summarise(exc: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
        for err in exc.errors()
    ]


class AstrologyConfig(BaseModel):
    """Immutable engine settings.

    Construction failures surface as :class:`jyotishengine.errors.ValidationError`
    rather than pydantic's own exception type.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ayanamsha: Ayanamsha = Ayanamsha.LAHIRI
    house_system: HouseSystem = HouseSystem.PLACIDUS
    precision: Literal["precise", "fallback"] = "precise"
    native_source_enabled: bool = True
    node_type: Literal["mean", "true"] = "mean"
    precise_timeout_s: float = Field(default=2.0, gt=0.0)
    precise_retries: int = Field(default=2, ge=0, le=10)
    cache_size: int = Field(default=1024, ge=1)
    cache_ttl_s: float | None = Field(default=None, gt=0.0)
    calendar_variant: str = "north_indian"
    user_ayanamsha_epoch_jd: float | None = None
    user_ayanamsha_value: float | None = None

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as exc:
            raise ValidationError(
                "invalid engine configuration", context={"errors": _summarise(exc)}
            ) from exc

    @field_validator("ayanamsha", mode="before")
    @classmethod
    def _resolve_ayanamsha(cls, value: Any) -> Ayanamsha:
        return resolve_ayanamsha(value)

    @field_validator("house_system", mode="before")
    @classmethod
    def _resolve_house_system(cls, value: Any) -> HouseSystem:
        return resolve_house_system(value)

    @field_validator("calendar_variant", mode="before")
    @classmethod
    def _normalise_variant(cls, value: Any) -> str:
        return str(value).strip().lower().replace("-", "_")

    @model_validator(mode="after")
    def _check_user_ayanamsha(self) -> AstrologyConfig:
        if self.ayanamsha is Ayanamsha.USER and (
            self.user_ayanamsha_epoch_jd is None or self.user_ayanamsha_value is None
        ):
            raise ValueError(
                "user ayanamsha requires user_ayanamsha_epoch_jd and user_ayanamsha_value"
            )
        return self

    @property
    def user_ayanamsha(self) -> UserAyanamsha | None:
        if self.user_ayanamsha_epoch_jd is None or self.user_ayanamsha_value is None:
            return None
        return UserAyanamsha(self.user_ayanamsha_epoch_jd, self.user_ayanamsha_value)

    @property
    def prefers_precise(self) -> bool:
        return self.precision == "precise" and self.native_source_enabled

    def with_overrides(self, **overrides: Any) -> AstrologyConfig:
        """Return a validated copy with ``overrides`` applied."""

        return type(self)(**{**self.model_dump(), **overrides})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> AstrologyConfig:
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValidationError(
                "configuration must be a mapping", context={"type": type(data).__name__}
            )
        return cls(**dict(data))


def load_config(path: str | Path) -> AstrologyConfig:
    """Read an :class:`AstrologyConfig` from a YAML file.

    An empty file yields the defaults.  A top-level ``engine:`` key is
    unwrapped so the settings can live inside a larger document.
    """

    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ValidationError(
            f"cannot read configuration file {source}", context={"path": str(source)}
        ) from exc
    except yaml.YAMLError as exc:
        raise ValidationError(
            f"configuration file {source} is not valid YAML", context={"path": str(source)}
        ) from exc
    if isinstance(raw, Mapping) and isinstance(raw.get("engine"), Mapping):
        raw = raw["engine"]
    return AstrologyConfig.from_mapping(raw)
