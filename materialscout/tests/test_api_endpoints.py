"""API endpoint tests: FastAPI endpoints with mocked pipeline.

Tests the HTTP layer: request validation, camelCase response shapes,
error mapping and CORS. The search pipeline and literature lookup are
mocked; these tests verify the API contract.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from materialscout.models import (
    BibliographyEntry,
    BibliographyResponse,
    LiteratureSource,
    MaterialRecord,
    PropertyLookupResult,
    SearchResponse,
)


@pytest.fixture
def client():
    """FastAPI test client with a stub excluded-term cache."""
    from materialscout.main import app
    original = app.state.excluded_terms
    app.state.excluded_terms = MagicMock()
    yield TestClient(app)
    app.state.excluded_terms = original


def _search_response(query="PLA", has_requirements=False):
    record = MaterialRecord(name="PLA", match_score=100, sources_used=["Your Database"], ai_summary="A bioplastic.")
    return SearchResponse(
        query=query, expanded_terms=[query, "polylactic acid"], results=[record],
        total_results=1, sources_used=["Your Database"], has_property_requirements=has_requirements,
    )


# =============================================================================
# HEALTH & BASIC ENDPOINTS
# =============================================================================

class TestHealthEndpoint:
    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}

    def test_root_returns_200(self, client):
        assert client.get("/").status_code == 200


# =============================================================================
# SEARCH
# =============================================================================

class TestSearchValidation:
    def test_missing_query_is_400(self, client):
        resp = client.post("/search", json={})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Query is required"}

    def test_non_string_query_is_400(self, client):
        resp = client.post("/search", json={"query": 123})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_blank_query_is_400(self, client):
        resp = client.post("/search", json={"query": "   "})
        assert resp.status_code == 400

    def test_missing_body_is_400(self, client):
        resp = client.post("/search")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Query is required"}

    def test_malformed_requirement_is_400(self, client):
        resp = client.post("/search", json={
            "query": "PLA",
            "propertyRequirements": [{"property": "Tensile Strength", "value": ">80", "importance": "critical"}],
        })
        assert resp.status_code == 400
        assert "propertyRequirements" in resp.json()["error"]

    def test_validation_happens_before_search(self, client):
        with patch("materialscout.main.search_materials") as mock_search:
            client.post("/search", json={"query": 42})
        mock_search.assert_not_called()


class TestSearchEndpoint:
    def test_camel_case_response(self, client):
        with patch("materialscout.main.search_materials", return_value=_search_response()):
            resp = client.post("/search", json={"query": "PLA"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["expandedTerms"] == ["PLA", "polylactic acid"]
        assert data["totalResults"] == 1
        assert data["hasPropertyRequirements"] is False
        assert data["sourcesUsed"] == ["Your Database"]
        result = data["results"][0]
        assert result["matchScore"] == 100
        assert result["aiSummary"] == "A bioplastic."
        assert result["requirementMatchScore"] is None

    def test_request_fields_reach_pipeline(self, client):
        with patch("materialscout.main.search_materials", return_value=_search_response(has_requirements=True)) as mock_search:
            client.post("/search", json={
                "query": "PLA",
                "includeAISummary": False,
                "propertyRequirements": [
                    {"property": "Tensile Strength", "value": ">80", "unit": "MPa", "importance": "must-have"},
                ],
            })

        request, cache = mock_search.call_args.args
        assert request.include_ai_summary is False
        assert request.property_requirements[0].property == "Tensile Strength"
        assert request.property_requirements[0].importance.value == "must-have"
        assert cache is not None

    def test_pipeline_error_is_500(self, client):
        with patch("materialscout.main.search_materials", side_effect=RuntimeError("boom")):
            resp = client.post("/search", json={"query": "PLA"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "boom"}


class TestCors:
    def test_cors_header_on_response(self, client):
        resp = client.get("/health", headers={"Origin": "https://app.example.com"})
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_preflight(self, client):
        resp = client.options("/search", headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        })
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"


# =============================================================================
# PROPERTY LOOKUP
# =============================================================================

class TestPropertyLookupEndpoint:
    def test_missing_fields_is_400(self, client):
        resp = client.post("/property-lookup", json={"materialName": "PLA"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Material name and property name are required"}

    def test_returns_lookup_result(self, client):
        result = PropertyLookupResult(
            value="1.24 g/cm³", confidence="high", note="Typical value",
            sources=[LiteratureSource(title="PLA density", journal="Polymer", year=2020, doi="10.1/x")],
        )
        with patch("materialscout.main.lookup_property", return_value=result) as mock_lookup:
            resp = client.post("/property-lookup", json={"materialName": "PLA", "propertyName": "Density"})

        mock_lookup.assert_called_once_with("PLA", "Density")
        data = resp.json()
        assert data["value"] == "1.24 g/cm³"
        assert data["confidence"] == "high"
        assert data["sources"][0]["journal"] == "Polymer"


# =============================================================================
# BIBLIOGRAPHY SEARCH
# =============================================================================

class TestBibliographySearchEndpoint:
    def test_missing_query_is_400(self, client):
        resp = client.post("/bibliography-search", json={"maxResults": 5})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Query is required"}

    def test_blank_query_is_400(self, client):
        with patch("materialscout.main.search_bibliography") as mock_search:
            resp = client.post("/bibliography-search", json={"query": "  "})
        assert resp.status_code == 400
        mock_search.assert_not_called()

    def test_camel_case_response(self, client):
        result = BibliographyResponse(
            entries=[BibliographyEntry(
                title="PLA review", year=2021, citation_count=12,
                source_database="CrossRef", material_relevance="Found via CrossRef academic database",
            )],
            sources=["PubMed", "Scopus"],
            total_found=4,
        )
        with patch("materialscout.main.search_bibliography", return_value=result) as mock_search:
            resp = client.post("/bibliography-search", json={
                "query": "PLA", "sources": ["scopus"], "maxResults": 3, "includeAI": False,
            })

        request = mock_search.call_args.args[0]
        assert request.max_results == 3
        assert request.include_ai is False
        assert request.sources == ["scopus"]
        data = resp.json()
        assert data["success"] is True
        assert data["totalFound"] == 4
        entry = data["entries"][0]
        assert entry["citationCount"] == 12
        assert entry["sourceDatabase"] == "CrossRef"
        assert entry["materialRelevance"].startswith("Found via CrossRef")

    def test_search_error_is_500(self, client):
        with patch("materialscout.main.search_bibliography", side_effect=RuntimeError("boom")):
            resp = client.post("/bibliography-search", json={"query": "PLA"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "boom"}
