from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from jyotishengine.config import AstrologyConfig, load_config
from jyotishengine.ephemeris.ayanamsha import Ayanamsha, UserAyanamsha
from jyotishengine.ephemeris.houses import HouseSystem
from jyotishengine.errors import ValidationError


def test_defaults() -> None:
    config = AstrologyConfig()
    assert config.ayanamsha is Ayanamsha.LAHIRI
    assert config.house_system is HouseSystem.PLACIDUS
    assert config.precision == "precise"
    assert config.node_type == "mean"
    assert config.calendar_variant == "north_indian"
    assert config.user_ayanamsha is None
    assert config.prefers_precise


def test_aliases_are_resolved() -> None:
    config = AstrologyConfig(ayanamsha="KP", house_system="ws", calendar_variant="South-Indian")
    assert config.ayanamsha is Ayanamsha.KRISHNAMURTI
    assert config.house_system is HouseSystem.WHOLE_SIGN
    assert config.calendar_variant == "south_indian"


def test_config_is_hashable_and_frozen() -> None:
    config = AstrologyConfig()
    assert hash(config) == hash(AstrologyConfig())
    with pytest.raises(PydanticValidationError):
        config.cache_size = 5  # type: ignore[misc]


@pytest.mark.parametrize(
    "overrides",
    [
        {"ayanamsha": "sayana-ish"},
        {"house_system": "gauquelin"},
        {"precision": "approximate"},
        {"node_type": "osculating"},
        {"precise_timeout_s": 0},
        {"precise_retries": -1},
        {"cache_size": 0},
        {"unknown_field": True},
    ],
)
def test_invalid_settings_raise_validation_error(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError) as excinfo:
        AstrologyConfig(**overrides)
    assert isinstance(excinfo.value, ValueError)
    assert excinfo.value.context["errors"]


def test_user_ayanamsha_requires_its_values() -> None:
    with pytest.raises(ValidationError):
        AstrologyConfig(ayanamsha="user")
    config = AstrologyConfig(
        ayanamsha="user", user_ayanamsha_epoch_jd=2451545.0, user_ayanamsha_value=23.5
    )
    assert config.user_ayanamsha == UserAyanamsha(2451545.0, 23.5)


def test_with_overrides_revalidates() -> None:
    base = AstrologyConfig()
    changed = base.with_overrides(ayanamsha="raman", cache_size=8)
    assert changed.ayanamsha is Ayanamsha.RAMAN
    assert changed.cache_size == 8
    assert base.ayanamsha is Ayanamsha.LAHIRI
    with pytest.raises(ValidationError):
        base.with_overrides(cache_size=0)


def test_fallback_precision_disables_precise_preference() -> None:
    assert not AstrologyConfig(precision="fallback").prefers_precise
    assert not AstrologyConfig(native_source_enabled=False).prefers_precise


def test_from_mapping() -> None:
    assert AstrologyConfig.from_mapping(None) == AstrologyConfig()
    assert AstrologyConfig.from_mapping({"node_type": "true"}).node_type == "true"
    with pytest.raises(ValidationError):
        AstrologyConfig.from_mapping(["lahiri"])  # type: ignore[arg-type]


def test_load_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text(
        "ayanamsha: fagan-bradley\nhouse_system: koch\nprecise_retries: 4\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.ayanamsha is Ayanamsha.FAGAN_BRADLEY
    assert config.house_system is HouseSystem.KOCH
    assert config.precise_retries == 4


def test_load_config_unwraps_engine_section(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(
        "engine:\n  precision: fallback\n  cache_ttl_s: 60\nother:\n  key: value\n",
        encoding="utf-8",
    )
    config = load_config(str(path))
    assert config.precision == "fallback"
    assert config.cache_ttl_s == 60.0


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == AstrologyConfig()


def test_unreadable_or_invalid_files(tmp_path: Path) -> None:
    with pytest.raises(ValidationError) as excinfo:
        load_config(tmp_path / "missing.yaml")
    assert excinfo.value.context["path"].endswith("missing.yaml")
    broken = tmp_path / "broken.yaml"
    broken.write_text("ayanamsha: [unclosed\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(broken)
    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just a string\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(scalar)
