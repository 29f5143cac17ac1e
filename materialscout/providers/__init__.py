"""External material data providers.

Each provider takes the user's query (or a derived formula) and returns a
typed result, or None when it has nothing to contribute. Providers never
raise into the search pipeline.
"""

from materialscout.providers.base import (
    DescriptionResult,
    ExternalResult,
    MakeItFromResult,
    MaterialsProjectResult,
    PubChemResult,
    SafetyResult,
)

__all__ = [
    "DescriptionResult",
    "ExternalResult",
    "MakeItFromResult",
    "MaterialsProjectResult",
    "PubChemResult",
    "SafetyResult",
]
