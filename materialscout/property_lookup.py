"""Literature-grounded lookup of a single material property."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from materialscout.config_loader import get_config
from materialscout.llm_router import DEFAULT_MODEL, extract_json_object, is_llm_configured, llm_call
from materialscout.models import LiteratureSource, PropertyLookupResult
from materialscout.prompts import LITERATURE_EXTRACTION_SYSTEM_PROMPT, LITERATURE_EXTRACTION_USER_PROMPT
from materialscout.providers.literature import search_crossref, search_pubmed

logger = logging.getLogger(__name__)

CONFIDENCE_LEVELS = ("high", "medium", "low")
MAX_CONTEXT_PAPERS = 5
MAX_RETURNED_SOURCES = 3


def dedupe_sources(sources: list[LiteratureSource]) -> list[LiteratureSource]:
    """Drop papers whose lowercased, trimmed title was already seen."""
    seen = set()
    unique = []
    for source in sources:
        key = source.title.lower().strip()
        if key in seen:
            continue
        seen.add(key)
        unique.append(source)
    return unique


def _source_context(sources: list[LiteratureSource]) -> str:
    if not sources:
        return ""
    lines = [
        f'{i}. "{s.title}" ({s.journal or "Unknown journal"}, {s.year or "n.d."}) - DOI: {s.doi or "N/A"}'
        for i, s in enumerate(sources[:MAX_CONTEXT_PAPERS], start=1)
    ]
    return "\nRelevant research papers found:\n" + "\n".join(lines) + "\n"


def extract_property_value(
    material_name: str,
    property_name: str,
    sources: list[LiteratureSource],
    model: Optional[str] = None,
) -> PropertyLookupResult:
    model = model or DEFAULT_MODEL
    if not is_llm_configured(model):
        return PropertyLookupResult(value=None, confidence="low", note="AI service not configured")

    result = llm_call(
        model=model,
        user_prompt=LITERATURE_EXTRACTION_USER_PROMPT.format(material=material_name, property=property_name),
        system_prompt=LITERATURE_EXTRACTION_SYSTEM_PROMPT.format(source_context=_source_context(sources)),
        json_mode=True,
        temperature=get_config().llm.estimation_temperature,
        max_output_tokens=400,
    )
    if not result.ok:
        logger.warning(f"[PropertyLookup] AI error for {material_name}/{property_name}: {result.error}")
        return PropertyLookupResult(value=None, confidence="low", note="AI service error")

    data = extract_json_object(result.text)
    if data is None:
        return PropertyLookupResult(value=None, confidence="low", note="Could not parse response")

    value = data.get("value")
    confidence = str(data.get("confidence") or "medium").lower()
    if confidence not in CONFIDENCE_LEVELS:
        confidence = "medium"
    note = data.get("note")
    return PropertyLookupResult(
        value=str(value) if value not in (None, "") else None,
        confidence=confidence,
        note=note if isinstance(note, str) else None,
        sources=sources[:MAX_RETURNED_SOURCES],
    )


def lookup_property(material_name: str, property_name: str, model: Optional[str] = None) -> PropertyLookupResult:
    """Search PubMed and CrossRef in parallel, then ask the AI for a literature value."""
    logger.info(f"[PropertyLookup] Looking up {property_name} for {material_name}")

    with ThreadPoolExecutor(max_workers=2) as executor:
        pubmed_future = executor.submit(
            search_pubmed, f"{material_name} {property_name} properties characterization",
        )
        crossref_future = executor.submit(search_crossref, f"{material_name} {property_name}")
        sources = dedupe_sources(pubmed_future.result() + crossref_future.result())

    logger.info(f"[PropertyLookup] Found {len(sources)} unique sources")
    result = extract_property_value(material_name, property_name, sources, model)
    logger.info(f"[PropertyLookup] Result: {result.value} ({result.confidence})")
    return result
