# recipe_share/services/ingredient_screening.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

MIN_VALID_PERCENT = 70.0
MIN_VALID_INGREDIENTS = 2

_COMMON_SHORT_FOODS = {"egg", "tea", "pea", "rye", "oats", "fig", "yam", "nut"}

_RE_REPEAT_CHAR = re.compile(r"(.)\1{2,}")
_RE_REPEAT_PAIR = re.compile(r"(..)\1{2,}")
_RE_CONSONANT_RUN = re.compile(r"[^aeiou\s\-']{4,}", re.IGNORECASE)
_RE_VOWEL = re.compile(r"[aeiou]", re.IGNORECASE)
_RE_ALL_VOWELS = re.compile(r"^[aeiou]+$", re.IGNORECASE)
_RE_KEYBOARD_MASH = [
    re.compile(r"^s[trf]{3,}$", re.IGNORECASE),
    re.compile(r"^[strf]{4,}$", re.IGNORECASE),
    re.compile(r"^.*(ff|tt|rr|ss){2,}", re.IGNORECASE),
]


def clean_ingredients(items: Iterable[object]) -> List[str]:
    out = []
    for x in items:
        s = ("" if x is None else str(x)).strip()
        if s:
            out.append(s)
    return out


def is_likely_gibberish(text: str) -> bool:
    t = (text or "").strip().lower()
    if len(t) < 3:
        return t not in _COMMON_SHORT_FOODS
    if _RE_REPEAT_CHAR.search(t) or _RE_REPEAT_PAIR.search(t):
        return True
    if _RE_CONSONANT_RUN.search(t):
        return True
    if not _RE_VOWEL.search(t):
        return True
    if len(t) > 3 and _RE_ALL_VOWELS.match(t):
        return True
    return any(p.match(t) for p in _RE_KEYBOARD_MASH)


def split_gibberish(items: List[str]) -> Tuple[List[str], List[str]]:
    """Returns (plausible, gibberish)."""
    plausible, gibberish = [], []
    for x in items:
        (gibberish if is_likely_gibberish(x) else plausible).append(x)
    return plausible, gibberish


@dataclass(frozen=True)
class ScreeningResult:
    valid: List[str] = field(default_factory=list)
    invalid: List[str] = field(default_factory=list)
    total: int = 0

    @property
    def valid_percent(self) -> float:
        return (len(self.valid) / self.total) * 100.0 if self.total else 0.0

    def rejection_reason(self) -> str | None:
        if self.valid_percent < MIN_VALID_PERCENT:
            shown = ", ".join(self.invalid[:5])
            more = f"... ({len(self.invalid)} total)" if len(self.invalid) > 5 else ""
            detail = f"Invalid ingredients: {shown}{more}" if self.invalid else "No valid ingredients detected"
            return (
                f"Cannot generate recipes. Only {round(self.valid_percent)}% of your ingredients "
                f"are valid (need at least {int(MIN_VALID_PERCENT)}%). {detail}"
            )
        if len(self.valid) < MIN_VALID_INGREDIENTS:
            return (
                f"Need at least {MIN_VALID_INGREDIENTS} valid ingredients to generate recipes. "
                f"You have only {len(self.valid)} valid ingredient(s)."
            )
        return None

    def to_dict(self) -> dict:
        return {
            "valid_ingredients": list(self.valid),
            "invalid_ingredients": list(self.invalid),
            "validation_percentage": self.valid_percent,
        }
