"""Merge & score: local hits + external provider results -> MaterialRecords.

Local hits are raw dicts produced by the retriever:
    {id, name, category, chemical_formula, matched_term,
     properties: [{property_name, property_value}], applications: [{application}],
     regulations: [{regulation}], sustainability: {...} | None,
     suppliers: [{company_name, country}], synonyms: [str]}

External results are the typed provider variants from providers.base.
Local properties are always written first; an external property is only
added when no existing property shares its case-insensitive name.
"""

import logging
import re
from typing import Iterable, Optional

from materialscout.logic.property_categories import categorize_property
from materialscout.models import (
    MaterialRecord,
    Property,
    SourcedEntry,
    Supplier,
    Sustainability,
    SustainabilityBreakdown,
)
from materialscout.providers.base import (
    ExternalResult,
    MaterialsProjectResult,
    PubChemResult,
)

logger = logging.getLogger(__name__)

LOCAL_SOURCE = "Your Database"
SYNTHETIC_CATEGORY = "Chemical Compound"
SYNTHETIC_MATCH_SCORE = 30

_IUPAC_MARKERS = ("oxan", "yl]", "hydroxy", "amino")
_STEREO_RE = re.compile(r"\[\d[SR],\d[SR]")


def clamp_score(value) -> int:
    """0-100 integer score; anything non-numeric counts as 0."""
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError):
        return 0


def is_long_iupac_name(name: str) -> bool:
    """Long systematic names get a common-name substitution."""
    if not name or len(name) <= 60:
        return False
    lowered = name.lower()
    return any(m in lowered for m in _IUPAC_MARKERS) or bool(_STEREO_RE.search(name))


# =============================================================================
# LOCAL RELEVANCE
# =============================================================================

def score_name_relevance(
    query: str,
    name: str,
    synonyms: Iterable[str] = (),
    matched_term: Optional[str] = None,
) -> int:
    """Relevance of a stored material to the original query (0-100)."""
    q = (query or "").strip().lower()
    n = (name or "").strip().lower()
    syns = [s.strip().lower() for s in synonyms if s]

    if not q:
        return 60
    if n == q:
        return 100
    if n.startswith(q + " ") or n.startswith(q + "-"):
        return 95
    if q in syns:
        return 90
    if q in n:
        return 85
    if any(q in s or s in q for s in syns if s):
        return 75
    if matched_term and matched_term.strip().lower() == q:
        return 70
    return 60


def merge_local_hits(query: str, hits: Iterable[dict]) -> list[tuple[dict, int]]:
    """De-duplicate local hits by entity id, keeping the best relevance score.

    Returns (raw_material, score) pairs in first-discovery order.
    """
    best: dict[str, tuple[dict, int]] = {}
    for raw in hits:
        material_id = raw.get("id") or raw.get("name")
        score = score_name_relevance(
            query, raw.get("name", ""), raw.get("synonyms") or [], raw.get("matched_term"),
        )
        current = best.get(material_id)
        if current is None or score > current[1]:
            best[material_id] = (raw, score)
    return list(best.values())


# =============================================================================
# PROPERTY MERGE
# =============================================================================

def external_properties(result: ExternalResult) -> list[Property]:
    """Convert a provider result into Property entries with provenance."""
    return [
        Property(
            name=name,
            value=value,
            source=result.source,
            source_url=result.url,
            category=categorize_property(name),
        )
        for name, value in result.properties
    ]


def merge_properties(record: MaterialRecord, properties: Iterable[Property]) -> int:
    """Append properties whose name is not already present. Returns count added."""
    added = 0
    for prop in properties:
        if record.has_property(prop.name):
            continue
        record.properties.append(prop)
        added += 1
    return added


def merge_external(record: MaterialRecord, externals: Iterable[Optional[ExternalResult]]) -> None:
    """Fold every available external result into the record, without overwriting."""
    for result in externals:
        if result is None:
            continue
        added = merge_properties(record, external_properties(result))
        if added:
            record.add_source(result.source)
        if not record.chemical_formula and isinstance(result, (PubChemResult, MaterialsProjectResult)):
            record.chemical_formula = result.formula or None


def _local_sustainability(raw: Optional[dict]) -> Optional[Sustainability]:
    if not raw:
        return None
    return Sustainability(
        score=clamp_score(raw.get("overall_score")),
        breakdown=SustainabilityBreakdown(
            renewable=clamp_score(raw.get("renewable_score")),
            carbon_footprint=clamp_score(raw.get("carbon_footprint_score")),
            biodegradability=clamp_score(raw.get("biodegradability_score")),
            toxicity=clamp_score(raw.get("toxicity_score")),
        ),
        source=LOCAL_SOURCE,
        justification=raw.get("calculation_method"),
    )


def build_material_record(
    raw: dict,
    match_score: int,
    externals: Iterable[Optional[ExternalResult]] = (),
) -> MaterialRecord:
    """Unified record for one stored material, enriched by external results."""
    record = MaterialRecord(
        name=raw.get("name") or "",
        category=raw.get("category") or "",
        chemical_formula=raw.get("chemical_formula") or None,
        synonyms=list(dict.fromkeys(s for s in (raw.get("synonyms") or []) if s)),
        match_score=match_score,
        sources_used=[LOCAL_SOURCE],
    )

    merge_properties(record, (
        Property(
            name=p["property_name"],
            value=str(p.get("property_value") or ""),
            source=LOCAL_SOURCE,
            category=categorize_property(p["property_name"]),
        )
        for p in (raw.get("properties") or []) if p.get("property_name")
    ))

    record.applications = [
        SourcedEntry(name=a["application"], source=LOCAL_SOURCE)
        for a in (raw.get("applications") or []) if a.get("application")
    ]
    record.regulations = [
        SourcedEntry(name=r["regulation"], source=LOCAL_SOURCE)
        for r in (raw.get("regulations") or []) if r.get("regulation")
    ]
    record.suppliers = [
        Supplier(company=s["company_name"], country=s.get("country") or "", source=LOCAL_SOURCE)
        for s in (raw.get("suppliers") or []) if s.get("company_name")
    ]
    record.sustainability = _local_sustainability(raw.get("sustainability"))

    merge_external(record, externals)
    return record


def build_synthetic_record(query: str, externals: list[Optional[ExternalResult]]) -> Optional[MaterialRecord]:
    """Record built from external data alone, when the store has no match.

    None when no provider returned anything.
    """
    available = [r for r in externals if r is not None]
    if not available:
        return None

    name = query
    for result in available:
        if isinstance(result, PubChemResult) and result.iupac_name:
            name = result.iupac_name
            break

    record = MaterialRecord(
        name=name,
        category=SYNTHETIC_CATEGORY,
        match_score=SYNTHETIC_MATCH_SCORE,
    )
    merge_external(record, available)
    logger.info(f"[Merge] Synthetic record '{name}' from {record.sources_used}")
    return record
