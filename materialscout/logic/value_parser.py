"""Numeric parsing of free-form property values.

Property values arrive as display strings ("100-200 MPa", ">150 °C",
"1.24 g/cm³", "Non-hazardous"). They are parsed on demand only; a value
with no numeric token yields None and callers fall back to text matching.

Recognized forms, in priority order:
    1. "a - b" / "a – b"   → NumericValue(min=a, max=b)
    2. ">a" / "≥a" / ">=a" → NumericValue(min=a)
    3. "<a" / "≤a" / "<=a" → NumericValue(max=a)
    4. first number found  → NumericValue(exact=a)

Order matters: ">100" must never be read as the bare number 100.
"""

import re
from dataclasses import dataclass
from typing import Optional

_NUMBER = r"-?\d+(?:\.\d+)?"

_RANGE_RE = re.compile(rf"({_NUMBER})\s*[-–—]\s*({_NUMBER})")
_LOWER_BOUND_RE = re.compile(rf"^\s*(?:>=?|≥)\s*({_NUMBER})")
_UPPER_BOUND_RE = re.compile(rf"^\s*(?:<=?|≤)\s*({_NUMBER})")
_FIRST_NUMBER_RE = re.compile(_NUMBER)

# "1,250 MPa" → "1250 MPa"
_THOUSANDS_RE = re.compile(r"(?<=\d),(?=\d{3}(?!\d))")


@dataclass(frozen=True)
class NumericValue:
    min: Optional[float] = None
    max: Optional[float] = None
    exact: Optional[float] = None

    @property
    def is_range(self) -> bool:
        return self.min is not None and self.max is not None

    @property
    def is_exact(self) -> bool:
        return self.exact is not None

    def point(self) -> float:
        """Representative scalar: the exact value, a range midpoint, or the single bound."""
        if self.exact is not None:
            return self.exact
        if self.is_range:
            return (self.min + self.max) / 2
        return self.min if self.min is not None else self.max


def parse_numeric(raw: Optional[str]) -> Optional[NumericValue]:
    """Parse a property value string into an interval, bound, or exact value.

    Returns None when the string carries no numeric token.
    """
    if raw is None:
        return None
    text = _THOUSANDS_RE.sub("", str(raw).strip())
    if not text:
        return None

    range_match = _RANGE_RE.search(text)
    if range_match:
        low, high = float(range_match.group(1)), float(range_match.group(2))
        if low > high:
            low, high = high, low
        return NumericValue(min=low, max=high)

    lower = _LOWER_BOUND_RE.match(text)
    if lower:
        return NumericValue(min=float(lower.group(1)))

    upper = _UPPER_BOUND_RE.match(text)
    if upper:
        return NumericValue(max=float(upper.group(1)))

    number = _FIRST_NUMBER_RE.search(text)
    if number:
        return NumericValue(exact=float(number.group(0)))

    return None
