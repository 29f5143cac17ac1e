"""Score candidates against explicit property requirements.

Each requirement is matched against the candidate's merged properties; the
per-tier match ratios are combined with the configured tier weights into a
0-100 requirementMatchScore. Must-haves with no data get an AI estimate
(capped confidence), and candidates failing too many must-haves are dropped.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from materialscout.config_loader import get_config
from materialscout.llm_router import DEFAULT_MODEL, extract_json_object, is_llm_configured, llm_call
from materialscout.logic.requirement_matcher import match_value, verdict_confidence
from materialscout.models import (
    Importance,
    MaterialRecord,
    MatchType,
    Property,
    PropertyMatchResult,
    PropertyRequirement,
)
from materialscout.prompts import PROPERTY_ESTIMATION_SYSTEM_PROMPT, PROPERTY_ESTIMATION_USER_PROMPT

logger = logging.getLogger(__name__)


def find_property(record: MaterialRecord, property_name: str) -> Optional[Property]:
    """First property whose name contains the requirement name, or vice versa."""
    wanted = property_name.strip().lower()
    if not wanted:
        return None
    for prop in record.properties:
        have = prop.name.lower()
        if wanted in have or have in wanted:
            return prop
    return None


def evaluate_requirement(record: MaterialRecord, requirement: PropertyRequirement) -> PropertyMatchResult:
    """Match one requirement against the record's structured data."""
    prop = find_property(record, requirement.property)
    actual = prop.value if prop else None
    verdict = match_value(actual, requirement.value)
    return PropertyMatchResult(
        property=requirement.property,
        required=f"{requirement.value} {requirement.unit}".strip(),
        actual=actual,
        matches=verdict.matches,
        match_type=verdict.match_type,
        confidence=verdict_confidence(verdict),
    )


def estimate_property(
    record: MaterialRecord,
    requirement: PropertyRequirement,
    model: Optional[str] = None,
) -> Optional[tuple[str, int]]:
    """AI best-guess (value, confidence 0-100) for a property the record lacks."""
    model = model or DEFAULT_MODEL
    if not is_llm_configured(model):
        return None

    result = llm_call(
        model=model,
        user_prompt=PROPERTY_ESTIMATION_USER_PROMPT.format(
            name=record.name,
            category=record.category or "Unknown",
            property=requirement.property,
            unit=requirement.unit or "standard unit",
        ),
        system_prompt=PROPERTY_ESTIMATION_SYSTEM_PROMPT,
        json_mode=True,
        temperature=get_config().llm.estimation_temperature,
        max_output_tokens=200,
    )
    if not result.ok:
        logger.warning(f"[AI-Estimate] '{requirement.property}' for '{record.name}' failed: {result.error}")
        return None

    data = extract_json_object(result.text)
    if not data or data.get("value") in (None, ""):
        return None

    try:
        confidence = max(0, min(100, int(float(data.get("confidence", 0)))))
    except (TypeError, ValueError):
        confidence = 0
    return str(data["value"]).strip(), confidence


def apply_estimate(
    match: PropertyMatchResult,
    requirement: PropertyRequirement,
    estimated_value: str,
    model_confidence: int,
) -> PropertyMatchResult:
    """Re-run the matcher on an estimated value; confidence is capped by outcome."""
    cfg = get_config().requirements
    verdict = match_value(estimated_value, requirement.value)
    cap = cfg.estimated_match_confidence_cap if verdict.matches else cfg.estimated_miss_confidence_cap
    return match.model_copy(update={
        "actual": estimated_value,
        "matches": verdict.matches,
        "match_type": MatchType.AI_ESTIMATED,
        "confidence": min(model_confidence, cap),
    })


def requirement_score(matches: list[PropertyMatchResult], requirements: list[PropertyRequirement]) -> int:
    """Weighted 0-100 score. An empty tier counts as fully satisfied."""
    weights = get_config().requirements.tier_weights
    total = 0.0
    for tier in Importance:
        tier_matches = [m for m, r in zip(matches, requirements) if r.importance == tier]
        ratio = 1.0 if not tier_matches else sum(1 for m in tier_matches if m.matches) / len(tier_matches)
        total += weights.get(tier.value, 0.0) * ratio
    return int(round(total * 100))


def passes_must_haves(matches: list[PropertyMatchResult], requirements: list[PropertyRequirement]) -> bool:
    """At least ceil(ratio * n) must-haves matched. True when there are none."""
    must = [m for m, r in zip(matches, requirements) if r.importance == Importance.MUST_HAVE]
    if not must:
        return True
    needed = math.ceil(get_config().requirements.must_have_pass_ratio * len(must))
    return sum(1 for m in must if m.matches) >= needed


def validate_candidate(
    record: MaterialRecord,
    requirements: list[PropertyRequirement],
    model: Optional[str] = None,
) -> MaterialRecord:
    """Attach property_matches and requirement_match_score to the record."""
    max_estimations = get_config().requirements.max_estimations_per_candidate
    matches = [evaluate_requirement(record, r) for r in requirements]

    estimations = 0
    for i, (match, requirement) in enumerate(zip(matches, requirements)):
        if estimations >= max_estimations:
            break
        if requirement.importance != Importance.MUST_HAVE or match.match_type != MatchType.NOT_FOUND:
            continue
        estimations += 1
        estimate = estimate_property(record, requirement, model)
        if estimate is None:
            continue
        value, confidence = estimate
        matches[i] = apply_estimate(match, requirement, value, confidence)
        logger.info(
            f"[AI-Estimate] {record.name} / {requirement.property}: '{value}' "
            f"matches={matches[i].matches} confidence={matches[i].confidence}"
        )

    record.property_matches = matches
    record.requirement_match_score = requirement_score(matches, requirements)
    return record


def validate_requirements(
    records: list[MaterialRecord],
    requirements: list[PropertyRequirement],
    model: Optional[str] = None,
) -> list[MaterialRecord]:
    """Validate all candidates concurrently, drop must-have failures, rank by score."""
    if not requirements or not records:
        return records

    workers = max(1, min(get_config().retrieval.fanout_workers, len(records)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        validated = list(executor.map(lambda r: validate_candidate(r, requirements, model), records))

    kept = [r for r in validated if passes_must_haves(r.property_matches or [], requirements)]
    logger.info(f"[Requirements] {len(kept)}/{len(validated)} candidates pass must-have filter")
    kept.sort(key=lambda r: r.requirement_match_score or 0, reverse=True)
    return kept
