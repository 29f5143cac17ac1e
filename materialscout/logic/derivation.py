"""Per-record AI derivation: summary/common name, regulations, sustainability.

Runs after merge, one record at a time (each step reads the record's merged
data). Every step is optional: a missing credential or a failed call leaves
the record unchanged.
"""

import json
import logging
from typing import Optional

from materialscout.config_loader import get_config
from materialscout.llm_router import (
    DEFAULT_MODEL,
    extract_json_array,
    extract_json_object,
    is_llm_configured,
    llm_call,
)
from materialscout.logic.merge import clamp_score, is_long_iupac_name
from materialscout.models import MaterialRecord, SourcedEntry, Sustainability, SustainabilityBreakdown
from materialscout.prompts import (
    REGULATIONS_SYSTEM_PROMPT,
    REGULATIONS_USER_PROMPT,
    SUMMARY_COMMON_NAME_SYSTEM_PROMPT,
    SUMMARY_COMMON_NAME_USER_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    SUMMARY_USER_PROMPT,
    SUSTAINABILITY_SYSTEM_PROMPT,
    SUSTAINABILITY_USER_PROMPT,
)

logger = logging.getLogger(__name__)

AI_SOURCE = "AI Analysis"
LOCAL_SOURCE = "Your Database"

SUSTAINABILITY_AXES = ("renewable", "carbonFootprint", "biodegradability", "toxicity")


def _properties_json(record: MaterialRecord, source: Optional[str] = None, exclude_source: Optional[str] = None) -> str:
    props = {
        p.name: p.value for p in record.properties
        if (source is None or p.source == source) and (exclude_source is None or p.source != exclude_source)
    }
    return json.dumps(props, ensure_ascii=False)


# =============================================================================
# SUMMARY / COMMON NAME
# =============================================================================

def generate_summary(record: MaterialRecord, model: Optional[str] = None) -> None:
    """Set ai_summary and merge AI synonyms. Long IUPAC names get a common display name."""
    model = model or DEFAULT_MODEL
    if not is_llm_configured(model):
        return

    needs_common_name = is_long_iupac_name(record.name)
    external_props = _properties_json(record, exclude_source=LOCAL_SOURCE)

    if needs_common_name:
        system_prompt = SUMMARY_COMMON_NAME_SYSTEM_PROMPT
        user_prompt = SUMMARY_COMMON_NAME_USER_PROMPT.format(
            name=record.name, external_properties=external_props,
        )
    else:
        system_prompt = SUMMARY_SYSTEM_PROMPT
        user_prompt = SUMMARY_USER_PROMPT.format(
            name=record.name,
            local_properties=_properties_json(record, source=LOCAL_SOURCE),
            local_applications=json.dumps([a.name for a in record.applications], ensure_ascii=False),
            external_properties=external_props,
        )

    result = llm_call(
        model=model,
        user_prompt=user_prompt,
        system_prompt=system_prompt,
        json_mode=True,
        temperature=get_config().llm.derivation_temperature,
        max_output_tokens=600,
    )
    if not result.ok:
        logger.warning(f"[AI-Summary] Failed for '{record.name}': {result.error}")
        return

    data = extract_json_object(result.text)
    if not data:
        return

    summary = data.get("summary")
    if isinstance(summary, str) and summary.strip():
        record.ai_summary = summary.strip()

    aliases = [s.strip() for s in (data.get("synonyms") or []) if isinstance(s, str) and s.strip()]

    common_name = data.get("commonName")
    if needs_common_name and isinstance(common_name, str) and common_name.strip():
        common_name = common_name.strip()
        logger.info(f"[AI-Summary] Common name '{common_name}' for IUPAC name '{record.name[:60]}...'")
        record.iupac_name = record.name
        record.name = common_name
        aliases.append(common_name)

    existing = {s.lower() for s in record.synonyms}
    for alias in aliases:
        if alias.lower() not in existing:
            existing.add(alias.lower())
            record.synonyms.append(alias)

    if record.ai_summary or aliases:
        record.add_source(AI_SOURCE)


# =============================================================================
# REGULATIONS
# =============================================================================

def generate_regulations(record: MaterialRecord, model: Optional[str] = None) -> list[SourcedEntry]:
    """Likely applicable regulations/certifications. Empty on any failure."""
    model = model or DEFAULT_MODEL
    if not is_llm_configured(model):
        return []

    cfg = get_config()
    max_items = cfg.regulations.max_items
    result = llm_call(
        model=model,
        user_prompt=REGULATIONS_USER_PROMPT.format(
            name=record.name,
            category=record.category or "Unknown",
            applications=", ".join(a.name for a in record.applications) or "Not specified",
        ),
        system_prompt=REGULATIONS_SYSTEM_PROMPT.format(max_items=max_items),
        json_mode=False,
        temperature=cfg.llm.derivation_temperature,
        max_output_tokens=400,
    )
    if not result.ok:
        logger.warning(f"[AI-Regulations] Failed for '{record.name}': {result.error}")
        return []

    items = extract_json_array(result.text) or []
    regulations = []
    seen = set()
    for item in items:
        if not isinstance(item, str) or not item.strip() or item.strip().lower() in seen:
            continue
        seen.add(item.strip().lower())
        regulations.append(SourcedEntry(name=item.strip(), source=AI_SOURCE))
        if len(regulations) >= max_items:
            break
    return regulations


# =============================================================================
# SUSTAINABILITY
# =============================================================================

def weighted_overall(axes: dict[str, int], weights: Optional[dict[str, float]] = None) -> int:
    """Overall sustainability score as the weighted sum of the four axes."""
    if weights is None:
        weights = get_config().sustainability.weights
    return clamp_score(sum(weights.get(axis, 0.0) * axes.get(axis, 0) for axis in SUSTAINABILITY_AXES))


def sustainability_from_payload(name: str, data: dict) -> Sustainability:
    """Build a Sustainability block; the overall score is always recomputed."""
    cfg = get_config().sustainability
    axes = {axis: clamp_score(data.get(axis)) for axis in SUSTAINABILITY_AXES}
    overall = weighted_overall(axes, cfg.weights)

    model_overall = data.get("overall")
    if model_overall is not None:
        try:
            delta = abs(float(model_overall) - overall)
            if delta > cfg.disagreement_tolerance:
                logger.info(
                    f"[AI-Sustainability] '{name}': model overall {model_overall} vs weighted {overall} "
                    f"(delta {delta:.0f}), using weighted"
                )
        except (TypeError, ValueError):
            pass

    justification = data.get("justification")
    return Sustainability(
        score=overall,
        breakdown=SustainabilityBreakdown(
            renewable=axes["renewable"],
            carbon_footprint=axes["carbonFootprint"],
            biodegradability=axes["biodegradability"],
            toxicity=axes["toxicity"],
        ),
        source=AI_SOURCE,
        justification=justification if isinstance(justification, str) else None,
    )


def generate_sustainability(record: MaterialRecord, model: Optional[str] = None) -> Optional[Sustainability]:
    """Four-axis sustainability estimate. None on any failure."""
    model = model or DEFAULT_MODEL
    if not is_llm_configured(model):
        return None

    result = llm_call(
        model=model,
        user_prompt=SUSTAINABILITY_USER_PROMPT.format(
            name=record.name,
            category=record.category or "Unknown",
            applications=", ".join(a.name for a in record.applications) or "Not specified",
            properties=_properties_json(record),
        ),
        system_prompt=SUSTAINABILITY_SYSTEM_PROMPT,
        json_mode=True,
        temperature=get_config().llm.derivation_temperature,
        max_output_tokens=400,
    )
    if not result.ok:
        logger.warning(f"[AI-Sustainability] Failed for '{record.name}': {result.error}")
        return None

    data = extract_json_object(result.text)
    if not data:
        return None
    return sustainability_from_payload(record.name, data)


# =============================================================================
# PER-RECORD DRIVER
# =============================================================================

def derive_missing(record: MaterialRecord, include_summary: bool = False, model: Optional[str] = None) -> MaterialRecord:
    """Fill AI-derived fields the store did not supply. Steps run in order."""
    if include_summary:
        generate_summary(record, model)

    if not record.regulations:
        regulations = generate_regulations(record, model)
        if regulations:
            record.regulations = regulations
            record.add_source(AI_SOURCE)

    if record.sustainability is None:
        sustainability = generate_sustainability(record, model)
        if sustainability is not None:
            record.sustainability = sustainability
            record.add_source(AI_SOURCE)

    return record
