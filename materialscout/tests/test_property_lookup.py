"""Literature search parsing and the AI property lookup."""

import json
from unittest.mock import MagicMock, patch

from materialscout.llm_router import LLMResult
from materialscout.models import LiteratureSource
from materialscout.property_lookup import dedupe_sources, extract_property_value, lookup_property
from materialscout.providers.literature import search_crossref, search_pubmed


def _response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    return resp


ESEARCH = {"esearchresult": {"idlist": ["111", "222"]}}
ESUMMARY = {
    "result": {
        "uids": ["111", "222"],
        "111": {
            "title": "Density and crystallinity of poly(lactic acid) films",
            "authors": [{"name": "Auras R"}, {"name": "Harte B"}, {"name": "Selke S"}, {"name": "Hernandez R"}],
            "fulljournalname": "Macromolecular Bioscience",
            "pubdate": "2004 Sep 16",
            "elocationid": "doi: 10.1002/mabi.200400043",
        },
        "222": {"title": "", "authors": []},
    }
}
CROSSREF = {
    "message": {
        "items": [
            {
                "title": ["Poly(lactic acid): a review"],
                "author": [{"given": "Lee-Tin", "family": "Lim"}, {"family": "Auras"}],
                "container-title": ["Progress in Polymer Science"],
                "published": {"date-parts": [[2008, 8]]},
                "DOI": "10.1016/j.progpolymsci.2008.05.004",
                "abstract": "<jats:p>Poly(lactic acid) is a <jats:italic>biodegradable</jats:italic> polyester.</jats:p>",
                "subject": ["Polymers and Plastics"],
                "is-referenced-by-count": 2150,
            },
            {"title": [], "DOI": "10.1/untitled"},
        ]
    }
}


def _sources(n):
    return [LiteratureSource(title=f"Paper {i}", journal="J", year=2000 + i) for i in range(n)]


# =============================================================================
# PUBMED / CROSSREF
# =============================================================================

class TestPubMed:
    def test_two_step_search(self):
        with patch("materialscout.providers.literature.http_get",
                   side_effect=[_response(ESEARCH), _response(ESUMMARY)]) as mock_get:
            sources = search_pubmed("PLA density properties characterization")

        assert mock_get.call_count == 2
        assert len(sources) == 1
        paper = sources[0]
        assert paper.authors == ["Auras R", "Harte B", "Selke S"]
        assert paper.year == 2004
        assert paper.doi == "10.1002/mabi.200400043"
        assert paper.url == "https://pubmed.ncbi.nlm.nih.gov/111/"

    def test_no_ids_skips_summary(self):
        with patch("materialscout.providers.literature.http_get",
                   return_value=_response({"esearchresult": {"idlist": []}})) as mock_get:
            assert search_pubmed("nothing") == []
        assert mock_get.call_count == 1

    def test_failure_is_empty(self):
        with patch("materialscout.providers.literature.http_get", side_effect=ConnectionError("down")):
            assert search_pubmed("PLA") == []


class TestCrossRef:
    def test_parses_items(self):
        with patch("materialscout.providers.literature.http_get", return_value=_response(CROSSREF)) as mock_get:
            sources = search_crossref("PLA density")

        assert "User-Agent" in mock_get.call_args.kwargs["headers"]
        assert len(sources) == 1
        paper = sources[0]
        assert paper.authors == ["Lee-Tin Lim", "Auras"]
        assert paper.journal == "Progress in Polymer Science"
        assert paper.year == 2008
        assert paper.url == "https://doi.org/10.1016/j.progpolymsci.2008.05.004"
        assert paper.abstract == "Poly(lactic acid) is a biodegradable polyester."
        assert paper.keywords == ["Polymers and Plastics"]
        assert paper.citation_count == 2150
        assert paper.source_database == "CrossRef"

    def test_year_falls_back_to_created(self):
        payload = {"message": {"items": [{"title": ["Early view"], "created": {"date-parts": [[2025, 1, 3]]}}]}}
        with patch("materialscout.providers.literature.http_get", return_value=_response(payload)):
            sources = search_crossref("PLA")
        assert sources[0].year == 2025

    def test_failure_is_empty(self):
        with patch("materialscout.providers.literature.http_get", side_effect=ConnectionError("down")):
            assert search_crossref("PLA") == []


# =============================================================================
# LOOKUP
# =============================================================================

class TestDedupeSources:
    def test_title_case_and_whitespace_insensitive(self):
        sources = [
            LiteratureSource(title="PLA Review"),
            LiteratureSource(title="  pla review "),
            LiteratureSource(title="PHA Review"),
        ]
        assert [s.title for s in dedupe_sources(sources)] == ["PLA Review", "PHA Review"]


class TestExtractPropertyValue:
    def test_no_credential(self):
        with patch("materialscout.property_lookup.is_llm_configured", return_value=False):
            result = extract_property_value("PLA", "Density", _sources(2))
        assert result.value is None
        assert result.confidence == "low"
        assert result.note == "AI service not configured"
        assert result.sources == []

    def test_sources_capped_at_three(self):
        payload = {"value": "1.24 g/cm³", "confidence": "HIGH", "note": "Amorphous grade"}
        with patch("materialscout.property_lookup.is_llm_configured", return_value=True), \
             patch("materialscout.property_lookup.llm_call", return_value=LLMResult(text=json.dumps(payload))):
            result = extract_property_value("PLA", "Density", _sources(5))

        assert result.value == "1.24 g/cm³"
        assert result.confidence == "high"
        assert result.note == "Amorphous grade"
        assert [s.title for s in result.sources] == ["Paper 0", "Paper 1", "Paper 2"]

    def test_unknown_confidence_becomes_medium(self):
        payload = {"value": 1.24, "confidence": "certain"}
        with patch("materialscout.property_lookup.is_llm_configured", return_value=True), \
             patch("materialscout.property_lookup.llm_call", return_value=LLMResult(text=json.dumps(payload))):
            result = extract_property_value("PLA", "Density", [])
        assert result.value == "1.24"
        assert result.confidence == "medium"

    def test_unparseable_response(self):
        with patch("materialscout.property_lookup.is_llm_configured", return_value=True), \
             patch("materialscout.property_lookup.llm_call", return_value=LLMResult(text="I am not sure.")):
            result = extract_property_value("PLA", "Density", [])
        assert result.value is None
        assert result.note == "Could not parse response"

    def test_service_error(self):
        with patch("materialscout.property_lookup.is_llm_configured", return_value=True), \
             patch("materialscout.property_lookup.llm_call", return_value=LLMResult(text="", error="quota")):
            result = extract_property_value("PLA", "Density", [])
        assert result.note == "AI service error"


class TestLookupProperty:
    def test_searches_both_indexes(self):
        with patch("materialscout.property_lookup.search_pubmed", return_value=_sources(2)) as pubmed, \
             patch("materialscout.property_lookup.search_crossref", return_value=_sources(1)) as crossref, \
             patch("materialscout.property_lookup.is_llm_configured", return_value=False):
            result = lookup_property("PLA", "Density")

        pubmed.assert_called_once_with("PLA Density properties characterization")
        crossref.assert_called_once_with("PLA Density")
        assert result.note == "AI service not configured"
