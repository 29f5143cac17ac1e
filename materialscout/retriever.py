"""Search pipeline: expand, retrieve in parallel, merge, derive, validate, assemble.

    Expand + external lookups   (BATCH 1, parallel, all against the original query)
    Local search per term       (BATCH 2, parallel, first N expanded terms)
    Merge local + external      (sequential, pure Python)
    AI derivation per record    (parallel across records, sequential within one)
    Requirement validation      (optional)
    Assemble                    (sort, trim, source union)
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from materialscout.config_loader import get_config
from materialscout.database import db
from materialscout.logic.derivation import derive_missing
from materialscout.logic.excluded_terms import ExcludedTermCache
from materialscout.logic.merge import build_material_record, build_synthetic_record, merge_local_hits
from materialscout.logic.query_expander import expand_query
from materialscout.logic.requirement_validator import validate_requirements
from materialscout.models import MaterialRecord, SearchRequest, SearchResponse
from materialscout.providers.ai_augment import generate_description, generate_safety_info
from materialscout.providers.makeitfrom import fetch_makeitfrom
from materialscout.providers.materials_project import fetch_materials_project
from materialscout.providers.pubchem import fetch_pubchem

logger = logging.getLogger(__name__)


# =============================================================================
# LOCAL RETRIEVER
# =============================================================================

def _fetch_related(material: dict) -> dict:
    """Fetch all related records for one material, one query per relation in parallel."""
    material_id = material["id"]
    relations = {
        "properties": db.get_material_properties,
        "applications": db.get_material_applications,
        "regulations": db.get_material_regulations,
        "sustainability": db.get_material_sustainability,
        "suppliers": db.get_material_suppliers,
        "synonyms": db.get_material_synonyms,
    }
    full = dict(material)
    with ThreadPoolExecutor(max_workers=len(relations)) as executor:
        futures = {executor.submit(fn, material_id): key for key, fn in relations.items()}
        for future in as_completed(futures):
            full[futures[future]] = future.result()
    return full


def search_local(term: str) -> list[dict]:
    """All stored materials matching one term, with related records.

    Unions synonym, name/formula (fulltext) and category matches. A store
    failure is logged and yields [] for this term.
    """
    cfg = get_config().retrieval
    try:
        ids: list[str] = []
        for strategy_ids in (
            db.search_material_ids_by_synonym(term),
            db.search_material_ids(term, limit=cfg.local_search_limit),
            db.search_material_ids_by_category(term),
        ):
            for material_id in strategy_ids:
                if material_id not in ids:
                    ids.append(material_id)
        if not ids:
            return []

        materials = db.get_materials_by_ids(ids)
        order = {material_id: i for i, material_id in enumerate(ids)}
        materials.sort(key=lambda m: order.get(m["id"], len(order)))

        workers = max(1, min(cfg.fanout_workers, len(materials)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(_fetch_related, materials))
    except Exception as e:
        logger.warning(f"[Local] Search failed for '{term}': {e}")
        return []

    for raw in results:
        raw["matched_term"] = term
    logger.info(f"[Local] '{term}' -> {len(results)} materials")
    return results


# =============================================================================
# RESULT ASSEMBLER
# =============================================================================

def assemble_response(
    query: str,
    expanded_terms: list[str],
    records: list[MaterialRecord],
    has_requirements: bool,
) -> SearchResponse:
    """Sort, trim and attach the union of sources in first-seen order."""
    if has_requirements:
        records = sorted(records, key=lambda r: r.requirement_match_score or 0, reverse=True)
    else:
        records = sorted(records, key=lambda r: r.match_score, reverse=True)
    records = records[:get_config().retrieval.max_results]

    sources: list[str] = []
    for record in records:
        for source in record.sources_used:
            if source not in sources:
                sources.append(source)

    return SearchResponse(
        query=query,
        expanded_terms=expanded_terms,
        results=records,
        total_results=len(records),
        sources_used=sources,
        has_property_requirements=has_requirements,
    )


# =============================================================================
# SEARCH PIPELINE
# =============================================================================

def search_materials(
    request: SearchRequest,
    excluded_terms: ExcludedTermCache,
    model: Optional[str] = None,
) -> SearchResponse:
    """Run one full search request."""
    cfg = get_config()
    query = request.query.strip()
    timings = {}
    total_start = time.time()

    # ============================================================
    # PARALLEL BATCH 1: Expansion + External providers
    # Materials Project needs PubChem's formula, so they share a task
    # ============================================================
    t_batch1 = time.time()

    def task_expand():
        t = time.time()
        return ("expand", expand_query(query, model), time.time() - t)

    def task_chemistry():
        t = time.time()
        pubchem = fetch_pubchem(query)
        materials_project = fetch_materials_project(pubchem.formula if pubchem else None)
        return ("chemistry", (pubchem, materials_project), time.time() - t)

    def task_makeitfrom():
        t = time.time()
        return ("makeitfrom", fetch_makeitfrom(query), time.time() - t)

    def task_description():
        t = time.time()
        return ("description", generate_description(query, model), time.time() - t)

    def task_safety():
        t = time.time()
        return ("safety", generate_safety_info(query, model), time.time() - t)

    with ThreadPoolExecutor(max_workers=5) as executor:
        futures = [
            executor.submit(task_expand),
            executor.submit(task_chemistry),
            executor.submit(task_makeitfrom),
            executor.submit(task_description),
            executor.submit(task_safety),
        ]
        batch1_results = {}
        for future in as_completed(futures):
            name, result, elapsed = future.result()
            batch1_results[name] = result
            timings[name] = elapsed

    expanded_terms = batch1_results["expand"]
    pubchem, materials_project = batch1_results["chemistry"]
    externals = [
        pubchem,
        materials_project,
        batch1_results["description"],
        batch1_results["safety"],
        batch1_results["makeitfrom"],
    ]
    timings["batch1_total"] = time.time() - t_batch1

    # ============================================================
    # PARALLEL BATCH 2: Local search, one task per expanded term
    # ============================================================
    t_batch2 = time.time()
    search_terms = expanded_terms[:cfg.retrieval.max_local_search_terms]
    per_term: dict[str, list[dict]] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(cfg.retrieval.fanout_workers, len(search_terms)))) as executor:
        futures = {executor.submit(search_local, term): term for term in search_terms}
        for future in as_completed(futures):
            per_term[futures[future]] = future.result()
    local_hits = [raw for term in search_terms for raw in per_term.get(term, [])]
    timings["batch2_total"] = time.time() - t_batch2

    # ============================================================
    # MERGE: local + external into unified records
    # ============================================================
    scored = merge_local_hits(query, local_hits)
    scored.sort(key=lambda pair: pair[1], reverse=True)

    records: list[MaterialRecord] = []
    include_summary = False
    if scored:
        records = [build_material_record(raw, score, externals) for raw, score in scored]
        include_summary = request.include_ai_summary and len(scored) <= cfg.retrieval.summary_max_local_results
    elif any(externals):
        if excluded_terms.is_category_term(query):
            logger.info(f"[Search] '{query}' is a category term, no synthetic record")
        else:
            synthetic = build_synthetic_record(query, externals)
            if synthetic is not None:
                records = [synthetic]
                include_summary = request.include_ai_summary

    # ============================================================
    # DERIVATION: parallel across records, sequential within a record
    # ============================================================
    t_derive = time.time()
    if records:
        workers = max(1, min(cfg.retrieval.fanout_workers, len(records)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            records = list(executor.map(lambda r: derive_missing(r, include_summary, model), records))
    timings["derivation"] = time.time() - t_derive

    # ============================================================
    # REQUIREMENT VALIDATION (optional)
    # ============================================================
    has_requirements = bool(request.property_requirements)
    if has_requirements:
        t = time.time()
        records = validate_requirements(records, request.property_requirements, model)
        timings["requirements"] = time.time() - t

    response = assemble_response(query, expanded_terms, records, has_requirements)

    timings["total"] = time.time() - total_start
    logger.info(
        f"[Search] '{query}': {len(expanded_terms)} terms, {len(scored)} local, "
        f"{sum(1 for e in externals if e)} external, {response.total_results} results "
        f"in {timings['total']:.2f}s (batch1 {timings['batch1_total']:.2f}s, "
        f"batch2 {timings['batch2_total']:.2f}s, derive {timings['derivation']:.2f}s)"
    )
    return response
