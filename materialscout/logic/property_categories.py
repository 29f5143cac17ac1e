"""Keyword-based categorization of property names for display grouping."""

from typing import Optional

from materialscout.config_loader import get_config
from materialscout.models import PropertyCategory


def categorize_property(property_name: str, keywords: Optional[dict[str, list[str]]] = None) -> PropertyCategory:
    """Map a property name to a display category.

    Categories are tried in configuration order; the first keyword found
    as a substring of the lowercased name wins. Unmatched names are physical.
    """
    if keywords is None:
        keywords = get_config().property_categories
    lower_name = property_name.lower()

    for category, words in keywords.items():
        for word in words:
            if word in lower_name:
                return PropertyCategory(category)

    return PropertyCategory.PHYSICAL
