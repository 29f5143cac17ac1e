"""AI query expansion: one user query -> related searchable material terms."""

import logging
from typing import Optional

from materialscout.config_loader import get_config
from materialscout.llm_router import DEFAULT_MODEL, extract_json_array, is_llm_configured, llm_call
from materialscout.prompts import QUERY_EXPANSION_SYSTEM_PROMPT, QUERY_EXPANSION_USER_PROMPT

logger = logging.getLogger(__name__)


def expand_query(query: str, model: Optional[str] = None) -> list[str]:
    """Return [query, *related terms].

    Element 0 is always the original query. Additional terms keep the
    model's order, are de-duplicated case-insensitively and capped by
    `retrieval.max_expanded_terms`. Any failure degrades to [query].
    """
    model = model or DEFAULT_MODEL
    if not is_llm_configured(model):
        logger.info("[AI-Expand] No LLM credential configured, using original query only")
        return [query]

    cfg = get_config()
    max_terms = cfg.retrieval.max_expanded_terms

    result = llm_call(
        model=model,
        user_prompt=QUERY_EXPANSION_USER_PROMPT.format(query=query),
        system_prompt=QUERY_EXPANSION_SYSTEM_PROMPT.format(max_terms=max_terms),
        json_mode=False,
        temperature=cfg.llm.expansion_temperature,
        max_output_tokens=500,
    )
    if not result.ok:
        logger.warning(f"[AI-Expand] Expansion failed for '{query}': {result.error}")
        return [query]

    terms = extract_json_array(result.text)
    if not terms:
        logger.warning(f"[AI-Expand] No JSON array in response for '{query}'")
        return [query]

    expanded = [query]
    seen = {query.strip().lower()}
    for term in terms:
        if not isinstance(term, str):
            continue
        cleaned = term.strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        expanded.append(cleaned)
        if len(expanded) > max_terms:
            break

    logger.info(f"[AI-Expand] '{query}' -> {len(expanded) - 1} additional terms")
    return expanded
