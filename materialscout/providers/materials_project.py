"""Materials Project summary lookup by chemical formula (requires API key)."""

import logging
import re
from typing import Optional

from materialscout.api_keys import api_keys_manager
from materialscout.config_loader import get_config
from materialscout.providers.base import MaterialsProjectResult, http_get

logger = logging.getLogger(__name__)

SUMMARY_FIELDS = (
    "material_id,formula_pretty,symmetry,band_gap,density,volume,"
    "formation_energy_per_atom,energy_above_hull"
)


def normalize_formula(formula: str) -> str:
    """Strip digits and parentheses: "(C3H4O2)n" -> "CHOn"."""
    return re.sub(r"[()\d]", "", formula or "").strip()


def _properties_from_summary(doc: dict) -> list[tuple[str, str]]:
    props = []
    if doc.get("density") is not None:
        props.append(("Density", f"{doc['density']:.3f} g/cm³"))
    if doc.get("band_gap") is not None:
        props.append(("Band Gap", f"{doc['band_gap']:.3f} eV"))
    if doc.get("formation_energy_per_atom") is not None:
        props.append(("Formation Energy", f"{doc['formation_energy_per_atom']:.4f} eV/atom"))
    if doc.get("energy_above_hull") is not None:
        props.append(("Energy Above Hull", f"{doc['energy_above_hull']:.4f} eV/atom"))
    if doc.get("volume") is not None:
        props.append(("Unit Cell Volume", f"{doc['volume']:.3f} ų"))

    symmetry = doc.get("symmetry") or {}
    if symmetry.get("crystal_system"):
        props.append(("Crystal System", str(symmetry["crystal_system"])))
    if symmetry.get("symbol"):
        props.append(("Space Group", str(symmetry["symbol"])))
    return props


def fetch_materials_project(formula: Optional[str]) -> Optional[MaterialsProjectResult]:
    """Look up computed crystal data for a formula.

    Skipped (None) when no key is configured or no formula is known.
    """
    api_key = api_keys_manager.get_key("materials_project")
    if not api_key:
        logger.debug("[MaterialsProject] No API key configured, skipping")
        return None

    clean = normalize_formula(formula or "")
    if not clean:
        return None

    cfg = get_config().providers
    try:
        response = http_get(
            f"{cfg.materials_project_base_url}/materials/summary/",
            headers={"X-API-KEY": api_key, "Accept": "application/json"},
            params={"formula": clean, "_fields": SUMMARY_FIELDS, "_limit": 5},
        )
        response.raise_for_status()
        data = response.json().get("data") or []
    except Exception as e:
        logger.warning(f"[MaterialsProject] Lookup failed for '{clean}': {e}")
        return None

    if not data:
        return None

    doc = data[0]
    material_id = doc.get("material_id")
    return MaterialsProjectResult(
        properties=_properties_from_summary(doc),
        url=f"{cfg.materials_project_page_url}/{material_id}" if material_id else None,
        formula=doc.get("formula_pretty"),
        material_id=material_id,
    )
