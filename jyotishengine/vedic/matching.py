"""Ashta-koota (eight factor) compatibility scoring.

Every koota is a pure function of the two Moon placements (rashi,
nakshatra and pada).  Scores are integers: the handful of classical half
points (tara with one favourable side, graha maitri neutral/enemy) are
floored.  The bride is always the first argument and the groom the second
because varna and tara are directional.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Final

from ..core.bodies import Body
from .classification import Classification, classify
from .data import SIGN_LORDS, relationship

__all__ = [
    "BANDS",
    "FAVORABLE_THRESHOLD",
    "KOOTA_MAXIMA",
    "CompatibilityResult",
    "KootaScore",
    "band_for",
    "match_charts",
]

KOOTA_MAXIMA: Final[Mapping[str, int]] = {
    "varna": 1,
    "vashya": 2,
    "tara": 3,
    "yoni": 4,
    "graha_maitri": 5,
    "gana": 6,
    "bhakoot": 7,
    "nadi": 8,
}

FAVORABLE_THRESHOLD: Final[int] = 18

# (minimum total, band name), checked from the top.
BANDS: Final[Sequence[tuple[int, str]]] = (
    (28, "excellent"),
    (24, "very_good"),
    (18, "good"),
    (12, "average"),
    (6, "poor"),
    (0, "very_poor"),
)

_BAND_ADVICE: Final[Mapping[str, str]] = {
    "excellent": "Excellent agreement across the kootas; the match is highly recommended.",
    "very_good": "Very good agreement; the match is recommended.",
    "good": "Good agreement; the match is acceptable.",
    "average": "Average agreement; consult an astrologer before proceeding.",
    "poor": "Weak agreement; the match needs careful consideration and remedies.",
    "very_poor": "Very weak agreement; the match is not recommended without remedies.",
}

_DOSHA_ADVICE: Final[Mapping[str, str]] = {
    "nadi_dosha": "Nadi dosha is present; remedial measures are traditionally advised.",
    "bhakoot_dosha": "Bhakoot dosha is present; the Moon signs sit in an unfavourable relation.",
    "gana_dosha": "Gana dosha is present; temperaments are likely to clash.",
}

# rashi index (0 = Aries) -> varna rank; 4 Brahmin, 3 Kshatriya, 2 Vaishya, 1 Shudra
_VARNA_RANK: Final[Sequence[int]] = (3, 2, 1, 4, 3, 2, 1, 4, 3, 2, 1, 4)
_VARNA_NAMES: Final[Mapping[int, str]] = {4: "brahmin", 3: "kshatriya", 2: "vaishya", 1: "shudra"}

# rashi index -> rashis under its control
_VASHYA: Final[Mapping[int, frozenset[int]]] = {
    0: frozenset({4, 7}),
    1: frozenset({3, 6}),
    2: frozenset({5}),
    3: frozenset({7, 8}),
    4: frozenset({6}),
    5: frozenset({11, 2}),
    6: frozenset({5, 9}),
    7: frozenset({3}),
    8: frozenset({11}),
    9: frozenset({0, 10}),
    10: frozenset({0}),
    11: frozenset({9}),
}

_YONI_ANIMALS: Final[Sequence[str]] = (
    "horse", "elephant", "sheep", "serpent", "dog", "cat", "rat",
    "cow", "buffalo", "tiger", "deer", "monkey", "mongoose", "lion",
)

# nakshatra index -> yoni animal index
_NAKSHATRA_YONI: Final[Sequence[int]] = (
    0, 1, 2, 3, 3, 4, 5, 2, 5,
    6, 6, 7, 8, 9, 8, 9, 10, 10,
    4, 11, 12, 11, 13, 0, 13, 7, 1,
)

_YONI_MATRIX: Final[Sequence[Sequence[int]]] = (
    (4, 2, 2, 3, 2, 2, 2, 1, 0, 1, 3, 3, 2, 1),
    (2, 4, 3, 3, 2, 2, 2, 2, 3, 1, 2, 3, 2, 0),
    (2, 3, 4, 2, 1, 2, 1, 3, 3, 1, 2, 0, 3, 1),
    (3, 3, 2, 4, 2, 1, 1, 1, 1, 2, 2, 2, 0, 2),
    (2, 2, 1, 2, 4, 2, 1, 2, 2, 1, 0, 2, 1, 1),
    (2, 2, 2, 1, 2, 4, 0, 2, 2, 1, 3, 3, 2, 1),
    (2, 2, 1, 1, 1, 0, 4, 2, 2, 2, 2, 2, 1, 2),
    (1, 2, 3, 1, 2, 2, 2, 4, 3, 0, 3, 2, 2, 1),
    (0, 3, 3, 1, 2, 2, 2, 3, 4, 1, 2, 2, 2, 1),
    (1, 1, 1, 2, 1, 1, 2, 0, 1, 4, 1, 1, 2, 1),
    (3, 2, 2, 2, 0, 3, 2, 3, 2, 1, 4, 2, 2, 1),
    (3, 3, 0, 2, 2, 3, 2, 2, 2, 1, 2, 4, 3, 2),
    (2, 2, 3, 0, 1, 2, 1, 2, 2, 2, 2, 3, 4, 2),
    (1, 0, 1, 2, 1, 1, 2, 1, 1, 1, 1, 2, 2, 4),
)

_DEVA: Final[frozenset[int]] = frozenset({0, 4, 6, 7, 12, 14, 16, 21, 26})
_RAKSHASA: Final[frozenset[int]] = frozenset({2, 8, 9, 13, 15, 17, 18, 22, 23})

_GANA_SCORES: Final[Mapping[frozenset[str], int]] = {
    frozenset({"deva"}): 6,
    frozenset({"manushya"}): 6,
    frozenset({"rakshasa"}): 6,
    frozenset({"deva", "manushya"}): 5,
    frozenset({"deva", "rakshasa"}): 1,
    frozenset({"manushya", "rakshasa"}): 0,
}

_MAITRI_SCORES: Final[Mapping[tuple[str, str], int]] = {
    ("friend", "friend"): 5,
    ("friend", "neutral"): 4,
    ("neutral", "neutral"): 3,
    ("enemy", "friend"): 1,
    ("enemy", "neutral"): 0,
    ("enemy", "enemy"): 0,
}

_NADI_PATTERN: Final[Sequence[str]] = ("adi", "madhya", "antya", "antya", "madhya", "adi")

# (groom sign - bride sign) mod 12 for the 2/12, 5/9 and 6/8 placements
_BHAKOOT_DOSHA_OFFSETS: Final[frozenset[int]] = frozenset({1, 11, 4, 8, 5, 7})

_BAD_TARAS: Final[frozenset[int]] = frozenset({3, 5, 7})


@dataclass(frozen=True)
class KootaScore:
    name: str
    score: int
    maximum: int
    detail: str


@dataclass(frozen=True)
class CompatibilityResult:
    """Per-koota breakdown plus the total and its band."""

    kootas: tuple[KootaScore, ...]
    total: int
    band: str
    favorable: bool
    doshas: Mapping[str, bool] = field(default_factory=dict)

    @property
    def maximum(self) -> int:
        return sum(k.maximum for k in self.kootas)

    def score(self, name: str) -> int:
        for koota in self.kootas:
            if koota.name == name:
                return koota.score
        raise KeyError(name)

    @property
    def recommendations(self) -> tuple[str, ...]:
        """Advice for the band, then one note per weak koota and per dosha.

        A koota is weak when it earns less than half of its maximum.
        """

        notes = [_BAND_ADVICE[self.band]]
        notes.extend(
            f"Pay special attention to {k.name.replace('_', ' ')} compatibility; it scored "
            f"{k.score} of {k.maximum}."
            for k in self.kootas
            if k.score < k.maximum / 2
        )
        notes.extend(text for dosha, text in _DOSHA_ADVICE.items() if self.doshas.get(dosha))
        return tuple(notes)

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "maximum": self.maximum,
            "band": self.band,
            "favorable": self.favorable,
            "kootas": {
                k.name: {"score": k.score, "maximum": k.maximum, "detail": k.detail}
                for k in self.kootas
            },
            "doshas": dict(self.doshas),
            "recommendations": list(self.recommendations),
        }


def band_for(total: int) -> str:
    """Return the band name for a total score in ``[0, 36]``."""

    for minimum, name in BANDS:
        if total >= minimum:
            return name
    return BANDS[-1][1]


def _sign(placement: Classification) -> int:
    return placement.rashi.number - 1


def _nakshatra(placement: Classification) -> int:
    return placement.nakshatra.number - 1


def _gana(nakshatra_idx: int) -> str:
    if nakshatra_idx in _DEVA:
        return "deva"
    if nakshatra_idx in _RAKSHASA:
        return "rakshasa"
    return "manushya"


def _nadi(nakshatra_idx: int) -> str:
    return _NADI_PATTERN[nakshatra_idx % 6]


def _varna(bride: Classification, groom: Classification) -> KootaScore:
    b_rank = _VARNA_RANK[_sign(bride)]
    g_rank = _VARNA_RANK[_sign(groom)]
    score = 1 if g_rank >= b_rank else 0
    return KootaScore("varna", score, 1, f"{_VARNA_NAMES[b_rank]}/{_VARNA_NAMES[g_rank]}")


def _vashya(bride: Classification, groom: Classification) -> KootaScore:
    b, g = _sign(bride), _sign(groom)
    b_controls_g = g in _VASHYA[b]
    g_controls_b = b in _VASHYA[g]
    if b == g or (b_controls_g and g_controls_b):
        score, detail = 2, "mutual"
    elif b_controls_g or g_controls_b:
        score, detail = 1, "one-way"
    else:
        score, detail = 0, "none"
    return KootaScore("vashya", score, 2, detail)


def _tara_number(start: int, end: int) -> int:
    count = (end - start) % 27 + 1
    return count % 9 or 9


def _tara(bride: Classification, groom: Classification) -> KootaScore:
    b, g = _nakshatra(bride), _nakshatra(groom)
    from_bride = _tara_number(b, g)
    from_groom = _tara_number(g, b)
    good = sum(1 for tara in (from_bride, from_groom) if tara not in _BAD_TARAS)
    score = {2: 3, 1: 1, 0: 0}[good]
    return KootaScore("tara", score, 3, f"{from_bride}/{from_groom}")


def _yoni(bride: Classification, groom: Classification) -> KootaScore:
    b_animal = _NAKSHATRA_YONI[_nakshatra(bride)]
    g_animal = _NAKSHATRA_YONI[_nakshatra(groom)]
    score = _YONI_MATRIX[b_animal][g_animal]
    return KootaScore("yoni", score, 4, f"{_YONI_ANIMALS[b_animal]}/{_YONI_ANIMALS[g_animal]}")


def _graha_maitri(bride: Classification, groom: Classification) -> KootaScore:
    b_lord: Body = SIGN_LORDS[_sign(bride)]
    g_lord: Body = SIGN_LORDS[_sign(groom)]
    if b_lord is g_lord:
        return KootaScore("graha_maitri", 5, 5, f"same lord {b_lord.value}")
    relations = tuple(sorted((relationship(b_lord, g_lord), relationship(g_lord, b_lord))))
    score = _MAITRI_SCORES[relations]  # type: ignore[index]
    return KootaScore(
        "graha_maitri", score, 5, f"{b_lord.value}/{g_lord.value}: {relations[0]}+{relations[1]}"
    )


def _gana_koota(bride: Classification, groom: Classification) -> KootaScore:
    b_gana = _gana(_nakshatra(bride))
    g_gana = _gana(_nakshatra(groom))
    score = _GANA_SCORES[frozenset({b_gana, g_gana})]
    return KootaScore("gana", score, 6, f"{b_gana}/{g_gana}")


def _bhakoot(bride: Classification, groom: Classification) -> KootaScore:
    offset = (_sign(groom) - _sign(bride)) % 12
    dosha = offset in _BHAKOOT_DOSHA_OFFSETS
    return KootaScore("bhakoot", 0 if dosha else 7, 7, f"{offset + 1}/{(12 - offset) % 12 + 1}")


def _nadi_koota(bride: Classification, groom: Classification) -> tuple[KootaScore, bool, bool]:
    """Return the nadi score, whether the dosha applies and whether it was cancelled."""

    b_nadi = _nadi(_nakshatra(bride))
    g_nadi = _nadi(_nakshatra(groom))
    if b_nadi != g_nadi:
        return KootaScore("nadi", 8, 8, f"{b_nadi}/{g_nadi}"), False, False
    same_nakshatra = _nakshatra(bride) == _nakshatra(groom)
    if same_nakshatra and bride.pada.number != groom.pada.number:
        # same nakshatra in different padas cancels the dosha
        return KootaScore("nadi", 8, 8, f"{b_nadi} (cancelled: different pada)"), False, True
    return KootaScore("nadi", 0, 8, f"{b_nadi}/{g_nadi}"), True, False


def _coerce(value: Classification | float) -> Classification:
    if isinstance(value, Classification):
        return value
    return classify(value)


def match_charts(
    bride: Classification | float,
    groom: Classification | float,
) -> CompatibilityResult:
    """Score two Moon placements (classifications or sidereal longitudes)."""

    b = _coerce(bride)
    g = _coerce(groom)
    nadi, nadi_dosha, nadi_cancelled = _nadi_koota(b, g)
    kootas = (
        _varna(b, g),
        _vashya(b, g),
        _tara(b, g),
        _yoni(b, g),
        _graha_maitri(b, g),
        _gana_koota(b, g),
        _bhakoot(b, g),
        nadi,
    )
    total = sum(k.score for k in kootas)
    doshas = {
        "nadi_dosha": nadi_dosha,
        "nadi_dosha_cancelled": nadi_cancelled,
        "bhakoot_dosha": kootas[6].score == 0,
        "gana_dosha": kootas[5].score <= 1,
    }
    return CompatibilityResult(
        kootas=kootas,
        total=total,
        band=band_for(total),
        favorable=total >= FAVORABLE_THRESHOLD,
        doshas=doshas,
    )
