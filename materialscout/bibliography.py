"""Research-article search for a material query.

PubMed and CrossRef are always queried; the AI step adds entries from the
wider set of academic databases when a model is configured. Results are
merged by title, newest first.
"""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from pydantic import ValidationError

from materialscout.config_loader import get_config
from materialscout.llm_router import DEFAULT_MODEL, extract_json_object, is_llm_configured, llm_call
from materialscout.models import BibliographyEntry, BibliographyRequest, BibliographyResponse, LiteratureSource
from materialscout.prompts import BIBLIOGRAPHY_SYSTEM_PROMPT, BIBLIOGRAPHY_USER_PROMPT
from materialscout.providers.literature import search_crossref, search_pubmed

logger = logging.getLogger(__name__)

ACADEMIC_SOURCES = [
    "PubMed", "ResearchGate", "Scopus", "MDPI", "Wiley", "Springer", "ScienceDirect",
    "Nature", "ACS Publications", "IOP Science", "Taylor & Francis", "arXiv", "Google Scholar",
]

RELEVANCE_NOTES = {
    "PubMed": "Found via PubMed database search",
    "CrossRef": "Found via CrossRef academic database",
}


def source_hints(sources: list[str]) -> str:
    """Requested databases in their canonical spelling, or a catch-all phrase."""
    if not sources:
        return "all major academic databases"
    canonical = {name.lower(): name for name in ACADEMIC_SOURCES}
    return ", ".join(canonical.get(s.strip().lower(), s.strip()) for s in sources)


def _as_entries(sources: list[LiteratureSource]) -> list[BibliographyEntry]:
    return [
        BibliographyEntry(
            **s.model_dump(),
            material_relevance=RELEVANCE_NOTES.get(s.source_database, ""),
        )
        for s in sources
    ]


def search_pubmed_entries(query: str, max_results: int) -> list[BibliographyEntry]:
    return _as_entries(search_pubmed(f"{query} materials", max_results))


def search_crossref_entries(query: str, max_results: int) -> list[BibliographyEntry]:
    return _as_entries(search_crossref(f"{query} materials science", max_results))


def search_with_ai(
    query: str,
    sources: list[str],
    max_results: int,
    model: Optional[str] = None,
) -> list[BibliographyEntry]:
    """Ask the model for article entries. Empty list when unavailable or unparseable."""
    model = model or DEFAULT_MODEL
    if not is_llm_configured(model):
        logger.info("[Bibliography] AI search skipped: no credential")
        return []

    hints = source_hints(sources)
    result = llm_call(
        model=model,
        user_prompt=BIBLIOGRAPHY_USER_PROMPT.format(max_results=max_results, query=query, source_hints=hints),
        system_prompt=BIBLIOGRAPHY_SYSTEM_PROMPT.format(source_hints=hints),
        json_mode=True,
        temperature=get_config().llm.derivation_temperature,
    )
    if not result.ok:
        logger.warning(f"[Bibliography] AI error: {result.error}")
        return []

    data = extract_json_object(result.text)
    if data is None or not isinstance(data.get("entries"), list):
        logger.warning("[Bibliography] Could not parse AI response")
        return []

    entries = []
    for raw in data["entries"]:
        if not isinstance(raw, dict):
            continue
        raw = {k: v for k, v in raw.items() if v is not None}
        raw.setdefault("sourceDatabase", "AI Search")
        try:
            entries.append(BibliographyEntry.model_validate(raw))
        except ValidationError as e:
            logger.debug(f"[Bibliography] Dropped malformed AI entry: {e.error_count()} errors")
    logger.info(f"[Bibliography] AI returned {len(entries)} entries")
    return entries


def merge_entries(result_sets: list[list[BibliographyEntry]]) -> list[BibliographyEntry]:
    """First occurrence of each title wins; newest first, then most cited."""
    seen = set()
    combined = []
    for entries in result_sets:
        for entry in entries:
            key = entry.title.lower().strip()
            if key in seen:
                continue
            seen.add(key)
            combined.append(entry)
    combined.sort(key=lambda e: (e.year or 0, e.citation_count), reverse=True)
    return combined


def search_bibliography(request: BibliographyRequest) -> BibliographyResponse:
    query = request.query.strip()
    per_index = math.ceil(request.max_results / 2)
    logger.info(f"[Bibliography] Searching for '{query}' from: {', '.join(request.sources) or 'all'}")

    tasks: list[tuple[str, Callable[[], list[BibliographyEntry]]]] = [
        ("PubMed", lambda: search_pubmed_entries(query, per_index)),
        ("CrossRef", lambda: search_crossref_entries(query, per_index)),
    ]
    if request.include_ai:
        tasks.append(("AI", lambda: search_with_ai(query, request.sources, request.max_results)))

    def _timed(name, fn):
        t0 = time.time()
        return name, fn(), round(time.time() - t0, 2)

    with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
        futures = [executor.submit(_timed, name, fn) for name, fn in tasks]
        results = [f.result() for f in futures]

    for name, entries, elapsed in results:
        logger.info(f"[Bibliography] {name}: {len(entries)} entries ({elapsed}s)")

    combined = merge_entries([entries for _, entries, _ in results])
    logger.info(f"[Bibliography] Returning {min(len(combined), request.max_results)} of {len(combined)} unique entries")
    return BibliographyResponse(
        success=True,
        entries=combined[:request.max_results],
        sources=list(ACADEMIC_SOURCES),
        total_found=len(combined),
    )
