"""Configuration Loader for the Material Scout search engine.

All tunables (fan-out limits, TTLs, scoring weights, provider endpoints,
property categorization keywords) are externalized to a YAML file and
validated with pydantic. Secrets are NOT read here, see api_keys.py.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


# =============================================================================
# PYDANTIC MODELS FOR CONFIGURATION VALIDATION
# =============================================================================

class ServiceConfig(BaseModel):
    name: str = "Material Scout"
    version: str = "1.0"


class RetrievalConfig(BaseModel):
    """Fan-out bounds for one search request."""
    max_expanded_terms: int = 15
    max_local_search_terms: int = 10
    local_search_limit: int = 50
    fanout_workers: int = 8
    max_results: int = 50
    summary_max_local_results: int = 5


class ExcludedTermsConfig(BaseModel):
    ttl_seconds: float = 300.0


class LLMConfig(BaseModel):
    """Model + sampling temperature per AI step."""
    model: str = "gemini-2.5-flash"
    expansion_temperature: float = 0.3
    description_temperature: float = 0.3
    safety_temperature: float = 0.2
    derivation_temperature: float = 0.3
    estimation_temperature: float = 0.2
    request_timeout_seconds: float = 60.0


class ProvidersConfig(BaseModel):
    """External data provider endpoints and parsing knobs."""
    http_timeout_seconds: float = 20.0
    user_agent: str = "Mozilla/5.0 (compatible; MaterialSearch/1.0)"
    pubchem_base_url: str = "https://pubchem.ncbi.nlm.nih.gov/rest/pug"
    pubchem_compound_url: str = "https://pubchem.ncbi.nlm.nih.gov/compound"
    materials_project_base_url: str = "https://api.materialsproject.org"
    materials_project_page_url: str = "https://next-gen.materialsproject.org/materials"
    makeitfrom_base_url: str = "https://www.makeitfrom.com/material-properties"
    pubmed_base_url: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
    crossref_base_url: str = "https://api.crossref.org"
    crossref_user_agent: str = "MaterialScout/1.0"
    description_max_chars: int = 180
    description_min_chars: int = 20
    makeitfrom_name_mapping: dict[str, str] = Field(default_factory=dict)


class RequirementsConfig(BaseModel):
    """Requirement validation weights and caps."""
    numeric_tolerance: float = 0.10
    must_have_pass_ratio: float = 0.5
    max_estimations_per_candidate: int = 3
    estimated_match_confidence_cap: int = 70
    estimated_miss_confidence_cap: int = 30
    tier_weights: dict[str, float] = Field(default_factory=lambda: {
        "must-have": 0.6, "preferred": 0.3, "nice-to-have": 0.1,
    })
    match_confidence: dict[str, int] = Field(default_factory=lambda: {
        "exact": 100, "range": 90, "partial": 60,
    })


class SustainabilityConfig(BaseModel):
    weights: dict[str, float] = Field(default_factory=lambda: {
        "renewable": 0.25, "carbonFootprint": 0.30,
        "biodegradability": 0.25, "toxicity": 0.20,
    })
    # Points of |model overall - weighted overall| tolerated before logging
    disagreement_tolerance: float = 10.0


class RegulationsConfig(BaseModel):
    max_items: int = 6


class SearchConfig(BaseModel):
    """Root of config/search.yaml."""
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    excluded_terms: ExcludedTermsConfig = Field(default_factory=ExcludedTermsConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    requirements: RequirementsConfig = Field(default_factory=RequirementsConfig)
    sustainability: SustainabilityConfig = Field(default_factory=SustainabilityConfig)
    regulations: RegulationsConfig = Field(default_factory=RegulationsConfig)
    property_categories: dict[str, list[str]] = Field(default_factory=dict)


# =============================================================================
# CONFIGURATION LOADER
# =============================================================================

_PACKAGE_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = _PACKAGE_DIR / "config" / "search.yaml"


def _resolve_config_path() -> Path:
    """Resolve config file path: MATSCOUT_CONFIG env var first, then the bundled file."""
    override = os.environ.get("MATSCOUT_CONFIG")
    if override:
        return Path(override)
    return DEFAULT_CONFIG_PATH


def load_search_config(config_path: Optional[str] = None) -> SearchConfig:
    """Load and validate search configuration from YAML file.

    Args:
        config_path: Path to config file. If None, resolves the default.

    Returns:
        Validated SearchConfig object
    """
    path = Path(config_path) if config_path else _resolve_config_path()

    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}

    config = SearchConfig(**raw)

    # LLM model can be switched per deployment without editing the YAML
    model_override = os.environ.get("MATSCOUT_LLM_MODEL")
    if model_override:
        config.llm.model = model_override

    return config


# =============================================================================
# GLOBAL CONFIG SINGLETON
# =============================================================================

_config: Optional[SearchConfig] = None


def get_config() -> SearchConfig:
    """Get the loaded search configuration (loads on first use)."""
    global _config
    if _config is None:
        _config = load_search_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> SearchConfig:
    """Force reload of configuration.

    Args:
        config_path: Optional specific path to load from.
    """
    global _config
    _config = load_search_config(config_path)
    return _config
