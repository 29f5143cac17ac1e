"""AI-generated description and safety data for the query material."""

import logging
from typing import Optional

from materialscout.config_loader import get_config
from materialscout.llm_router import DEFAULT_MODEL, extract_json_object, is_llm_configured, llm_call
from materialscout.prompts import (
    DESCRIPTION_SYSTEM_PROMPT,
    DESCRIPTION_USER_PROMPT,
    SAFETY_SYSTEM_PROMPT,
    SAFETY_USER_PROMPT,
)
from materialscout.providers.base import DescriptionResult, SafetyResult

logger = logging.getLogger(__name__)

SAFETY_FIELD_LABELS = (
    ("hazard_class", "Hazard Classification"),
    ("health_effects", "Health Effects"),
    ("ppe", "Recommended PPE"),
    ("cas_number", "CAS Number"),
)


def truncate_description(text: str, max_chars: int = 180) -> str:
    """Cut at a word boundary so the result, ellipsis included, fits max_chars."""
    text = text.strip()
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars - 3]
    if " " in cut:
        cut = cut[:cut.rfind(" ")]
    return cut.rstrip(" ,;:") + "..."


def generate_description(query: str, model: Optional[str] = None) -> Optional[DescriptionResult]:
    """One or two sentence description of the material. None if too short or unavailable."""
    model = model or DEFAULT_MODEL
    if not is_llm_configured(model):
        return None

    cfg = get_config()
    result = llm_call(
        model=model,
        user_prompt=DESCRIPTION_USER_PROMPT.format(query=query),
        system_prompt=DESCRIPTION_SYSTEM_PROMPT,
        json_mode=False,
        temperature=cfg.llm.description_temperature,
        max_output_tokens=200,
    )
    if not result.ok:
        logger.warning(f"[Description] LLM call failed for '{query}': {result.error}")
        return None

    text = result.text.strip().strip('"').strip()
    if len(text) < cfg.providers.description_min_chars:
        return None

    text = truncate_description(text, cfg.providers.description_max_chars)
    return DescriptionResult(properties=[("Description", text)])


def generate_safety_info(query: str, model: Optional[str] = None) -> Optional[SafetyResult]:
    """Hazard class, health effects, PPE and CAS number. None if nothing usable."""
    model = model or DEFAULT_MODEL
    if not is_llm_configured(model):
        return None

    result = llm_call(
        model=model,
        user_prompt=SAFETY_USER_PROMPT.format(query=query),
        system_prompt=SAFETY_SYSTEM_PROMPT,
        json_mode=True,
        temperature=get_config().llm.safety_temperature,
        max_output_tokens=300,
    )
    if not result.ok:
        logger.warning(f"[Safety] LLM call failed for '{query}': {result.error}")
        return None

    data = extract_json_object(result.text)
    if not data:
        return None

    props = []
    for key, label in SAFETY_FIELD_LABELS:
        value = data.get(key)
        if value and str(value).strip():
            props.append((label, str(value).strip()))

    if not props:
        return None
    return SafetyResult(properties=props)
