"""Logic module for material retrieval, reconciliation and requirement validation."""

from .excluded_terms import ExcludedTermCache
from .value_parser import NumericValue, parse_numeric
from .requirement_matcher import MatchVerdict, match_value, verdict_confidence
from .property_categories import categorize_property

__all__ = [
    'ExcludedTermCache',
    'NumericValue',
    'parse_numeric',
    'MatchVerdict',
    'match_value',
    'verdict_confidence',
    'categorize_property',
]
