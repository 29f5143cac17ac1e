"""Compare one actual property value against one required value.

Numeric comparison when both sides parse (see value_parser), otherwise a
tolerant case-insensitive substring check in either direction. Property
names and values in the source data are free text, not a controlled
vocabulary, so a text fallback is always available.
"""

from dataclasses import dataclass
from typing import Optional

from materialscout.config_loader import get_config
from materialscout.logic.value_parser import NumericValue, parse_numeric
from materialscout.models import MatchType


@dataclass(frozen=True)
class MatchVerdict:
    matches: bool
    match_type: MatchType


def _match_numeric(actual: NumericValue, required: NumericValue, tolerance: float) -> MatchVerdict:
    x = actual.point()

    if required.is_range:
        if required.min <= x <= required.max:
            return MatchVerdict(True, MatchType.RANGE)
        return MatchVerdict(False, MatchType.PARTIAL)

    if required.min is not None:
        if x >= required.min:
            return MatchVerdict(True, MatchType.RANGE)
        return MatchVerdict(False, MatchType.PARTIAL)

    if required.max is not None:
        if x <= required.max:
            return MatchVerdict(True, MatchType.RANGE)
        return MatchVerdict(False, MatchType.PARTIAL)

    target = required.exact
    if abs(x - target) <= tolerance * abs(target):
        return MatchVerdict(True, MatchType.EXACT)
    return MatchVerdict(False, MatchType.PARTIAL)


def _match_text(actual: str, required: str) -> MatchVerdict:
    a = actual.lower().strip()
    r = required.lower().strip()
    if not a or not r:
        return MatchVerdict(False, MatchType.PARTIAL)
    return MatchVerdict(r in a or a in r, MatchType.PARTIAL)


def match_value(
    actual: Optional[str],
    required: str,
    tolerance: Optional[float] = None,
) -> MatchVerdict:
    """Decide whether `actual` satisfies `required`.

    Args:
        actual: Property value found for the candidate, or None.
        required: Requirement value ("100-200", ">80", "1.2", "transparent").
        tolerance: Relative tolerance for exact targets. Defaults to config (10%).
    """
    if actual is None:
        return MatchVerdict(False, MatchType.NOT_FOUND)

    if tolerance is None:
        tolerance = get_config().requirements.numeric_tolerance

    required_num = parse_numeric(required)
    actual_num = parse_numeric(actual)
    if required_num is not None and actual_num is not None:
        return _match_numeric(actual_num, required_num, tolerance)

    return _match_text(actual, required)


def verdict_confidence(verdict: MatchVerdict, confidence_map: Optional[dict[str, int]] = None) -> int:
    """Confidence (0-100) reported for a verdict against structured data."""
    if not verdict.matches:
        return 0
    if confidence_map is None:
        confidence_map = get_config().requirements.match_confidence
    return int(confidence_map.get(verdict.match_type.value, 0))
