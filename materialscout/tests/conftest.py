"""Shared fixtures for the Material Scout test suite.

Loads the REAL bundled config (config/search.yaml) so tests pin actual values.
Provides an in-memory mock DB with realistic return shapes.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure the package is importable without installation
PACKAGE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = PACKAGE_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from materialscout.config_loader import get_config


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def config():
    """Load real SearchConfig from the bundled YAML (not mocked)."""
    return get_config()


# =============================================================================
# SAMPLE STORE CONTENT
# =============================================================================

SAMPLE_MATERIALS = {
    "mat-pla": {
        "id": "mat-pla", "name": "PLA", "category": "Bioplastic", "chemical_formula": "(C3H4O2)n",
        "properties": [
            {"property_name": "Density", "property_value": "1.24 g/cm³"},
            {"property_name": "Tensile Strength", "property_value": "50-70 MPa"},
            {"property_name": "Melting Point", "property_value": "150-160 °C"},
        ],
        "applications": [{"application": "Packaging"}, {"application": "3D Printing"}],
        "regulations": [{"regulation": "EN 13432 (EU Packaging)"}],
        "sustainability": {
            "overall_score": 78, "renewable_score": 95, "carbon_footprint_score": 70,
            "biodegradability_score": 75, "toxicity_score": 90, "calculation_method": "LCA database",
        },
        "suppliers": [{"company_name": "NatureWorks", "country": "USA"}],
        "synonyms": ["Polylactic acid", "Polylactide"],
    },
    "mat-pla-blend": {
        "id": "mat-pla-blend", "name": "PLA-PBAT Blend", "category": "Bioplastic", "chemical_formula": None,
        "properties": [{"property_name": "Elongation at Break", "property_value": "> 200 %"}],
        "applications": [{"application": "Films"}],
        "regulations": [],
        "sustainability": None,
        "suppliers": [],
        "synonyms": [],
    },
    "mat-pha": {
        "id": "mat-pha", "name": "Polyhydroxyalkanoates", "category": "Bioplastic", "chemical_formula": None,
        "properties": [{"property_name": "Tensile Strength", "property_value": "20-40 MPa"}],
        "applications": [],
        "regulations": [],
        "sustainability": None,
        "suppliers": [],
        "synonyms": ["PHA"],
    },
}


# Stored under its full name with the abbreviation as a synonym
POLYLACTIC_ACID_MATERIALS = {
    "mat-polylactic": {
        "id": "mat-polylactic", "name": "Polylactic Acid", "category": "Biopolymer", "chemical_formula": "(C3H4O2)n",
        "properties": [{"property_name": "Density", "property_value": "1.24 g/cm³"}],
        "applications": [{"application": "Packaging"}],
        "regulations": [{"regulation": "EN 13432 (EU Packaging)"}],
        "sustainability": None,
        "suppliers": [],
        "synonyms": ["PLA", "Polylactide"],
    },
}


def _make_mock_db(materials=SAMPLE_MATERIALS):
    """Mock of Neo4jConnection backed by an in-memory material dict.

    Each method returns data in the exact shape the retriever expects.
    """
    db = MagicMock()

    def _ids_where(predicate):
        return [m["id"] for m in materials.values() if predicate(m)]

    db.verify_connection.return_value = True
    db.get_material_count.return_value = len(materials)

    db.search_material_ids_by_synonym.side_effect = lambda term: _ids_where(
        lambda m: any(term.lower() in s.lower() for s in m["synonyms"])
    )
    db.search_material_ids.side_effect = lambda term, limit=50: _ids_where(
        lambda m: term.lower() in m["name"].lower()
        or term.lower() in (m["chemical_formula"] or "").lower()
    )[:limit]
    db.search_material_ids_by_category.side_effect = lambda term: _ids_where(
        lambda m: term.lower() in m["category"].lower()
    )
    db.get_materials_by_ids.side_effect = lambda ids: [
        {k: materials[i][k] for k in ("id", "name", "category", "chemical_formula")}
        for i in ids if i in materials
    ]

    db.get_material_properties.side_effect = lambda i: list(materials[i]["properties"])
    db.get_material_applications.side_effect = lambda i: list(materials[i]["applications"])
    db.get_material_regulations.side_effect = lambda i: list(materials[i]["regulations"])
    db.get_material_sustainability.side_effect = lambda i: materials[i]["sustainability"]
    db.get_material_suppliers.side_effect = lambda i: list(materials[i]["suppliers"])
    db.get_material_synonyms.side_effect = lambda i: list(materials[i]["synonyms"])

    db.get_excluded_terms.return_value = ["bioplastics", "packaging", "biodegradable plastics"]
    return db


@pytest.fixture
def mock_db():
    return _make_mock_db()


@pytest.fixture
def polylactic_db():
    """Store where "PLA" is only a synonym of "Polylactic Acid"."""
    return _make_mock_db(POLYLACTIC_ACID_MATERIALS)


@pytest.fixture
def raw_pla():
    """Raw local hit for PLA as produced by search_local."""
    return {**SAMPLE_MATERIALS["mat-pla"], "matched_term": "PLA"}


@pytest.fixture
def raw_blend():
    return {**SAMPLE_MATERIALS["mat-pla-blend"], "matched_term": "PLA"}


@pytest.fixture
def raw_pha():
    return {**SAMPLE_MATERIALS["mat-pha"], "matched_term": "PHA"}
