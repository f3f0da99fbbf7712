from __future__ import annotations

import pytest

from jyotishengine.core.bodies import Body, normalize_body
from jyotishengine.errors import ValidationError


def test_normalize_body_accepts_names_and_members() -> None:
    assert normalize_body("Moon") is Body.MOON
    assert normalize_body(Body.KETU) is Body.KETU
    assert normalize_body(" SATURN ") is Body.SATURN


def test_unknown_body_is_a_validation_error() -> None:
    with pytest.raises(ValidationError):
        normalize_body("vulcan")


def test_nodes_have_no_native_code() -> None:
    assert Body.RAHU.is_node and Body.KETU.is_node
    assert Body.KETU.swe_code is None
    assert Body.SUN.swe_code == 0
