"""Pydantic schemas for the Material Scout search API.

Field names are snake_case in Python and camelCase on the wire
(`match_score` <-> `matchScore`), matching what the form layer and the
report renderer consume.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========================================
# Enumerations
# ========================================

class Importance(str, Enum):
    MUST_HAVE = "must-have"
    PREFERRED = "preferred"
    NICE_TO_HAVE = "nice-to-have"


class MatchType(str, Enum):
    EXACT = "exact"
    RANGE = "range"
    PARTIAL = "partial"
    AI_ESTIMATED = "ai-estimated"
    NOT_FOUND = "not-found"


class PropertyCategory(str, Enum):
    DESCRIPTION = "description"
    PHYSICAL = "physical"
    MECHANICAL = "mechanical"
    THERMAL = "thermal"
    SAFETY = "safety"
    ENVIRONMENTAL = "environmental"


# ========================================
# Material record parts
# ========================================

class Property(CamelModel):
    """One property value with provenance. Value is a display string, never pre-parsed."""
    name: str
    value: str
    source: str
    source_url: Optional[str] = None
    category: PropertyCategory = PropertyCategory.PHYSICAL


class SourcedEntry(CamelModel):
    """Application or regulation label with its originating source."""
    name: str
    source: str


class Supplier(CamelModel):
    company: str
    country: str = ""
    source: str


class SustainabilityBreakdown(CamelModel):
    renewable: int = Field(0, ge=0, le=100)
    carbon_footprint: int = Field(0, ge=0, le=100)
    biodegradability: int = Field(0, ge=0, le=100)
    toxicity: int = Field(0, ge=0, le=100)


class Sustainability(CamelModel):
    score: int = Field(0, ge=0, le=100)
    breakdown: SustainabilityBreakdown = Field(default_factory=SustainabilityBreakdown)
    source: str
    justification: Optional[str] = None


class PropertyMatchResult(CamelModel):
    property: str
    required: str
    actual: Optional[str] = None
    matches: bool = False
    match_type: MatchType = MatchType.NOT_FOUND
    confidence: int = Field(0, ge=0, le=100)


class MaterialRecord(CamelModel):
    """The unit produced and ranked by a search."""
    name: str
    iupac_name: Optional[str] = None
    synonyms: list[str] = Field(default_factory=list)
    chemical_formula: Optional[str] = None
    category: str = ""
    properties: list[Property] = Field(default_factory=list)
    applications: list[SourcedEntry] = Field(default_factory=list)
    regulations: list[SourcedEntry] = Field(default_factory=list)
    sustainability: Optional[Sustainability] = None
    suppliers: list[Supplier] = Field(default_factory=list)
    ai_summary: str = ""
    sources_used: list[str] = Field(default_factory=list)
    match_score: int = Field(0, ge=0, le=100)
    requirement_match_score: Optional[int] = None
    property_matches: Optional[list[PropertyMatchResult]] = None

    def has_property(self, name: str) -> bool:
        lowered = name.lower()
        return any(p.name.lower() == lowered for p in self.properties)

    def add_source(self, source: str) -> None:
        if source not in self.sources_used:
            self.sources_used.append(source)


# ========================================
# Search request / response
# ========================================

class PropertyRequirement(CamelModel):
    property: str = Field(..., min_length=1)
    value: str
    unit: str = ""
    importance: Importance


class SearchRequest(CamelModel):
    query: str
    include_ai_summary: bool = Field(True, alias="includeAISummary")
    property_requirements: list[PropertyRequirement] = Field(default_factory=list)


class SearchResponse(CamelModel):
    query: str
    expanded_terms: list[str]
    results: list[MaterialRecord]
    total_results: int
    sources_used: list[str]
    has_property_requirements: bool


# ========================================
# Literature property lookup
# ========================================

class LiteratureSource(CamelModel):
    title: str
    authors: list[str] = Field(default_factory=list)
    journal: str = ""
    year: Optional[int] = None
    doi: str = ""
    url: str = ""
    abstract: str = ""
    keywords: list[str] = Field(default_factory=list)
    citation_count: int = 0
    source_database: str = ""


class PropertyLookupRequest(CamelModel):
    material_name: str
    property_name: str


class PropertyLookupResult(CamelModel):
    value: Optional[str] = None
    confidence: str = "low"  # high, medium, low
    note: Optional[str] = None
    sources: list[LiteratureSource] = Field(default_factory=list)


# ========================================
# Bibliography search
# ========================================

class BibliographyRequest(CamelModel):
    query: str
    sources: list[str] = Field(default_factory=list)
    max_results: int = Field(default=10, ge=1, le=50)
    include_ai: bool = Field(default=True, alias="includeAI")


class BibliographyEntry(LiteratureSource):
    material_relevance: str = ""


class BibliographyResponse(CamelModel):
    success: bool = True
    entries: list[BibliographyEntry] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    total_found: int = 0
