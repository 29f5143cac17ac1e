"""External provider adapters with mocked HTTP and LLM calls."""

from unittest.mock import MagicMock, patch

import httpx

from materialscout.llm_router import LLMResult
from materialscout.providers.ai_augment import generate_description, generate_safety_info, truncate_description
from materialscout.providers.base import DescriptionResult, MakeItFromResult, PubChemResult, SafetyResult
from materialscout.providers.makeitfrom import candidate_slugs, fetch_makeitfrom, parse_property_page
from materialscout.providers.materials_project import fetch_materials_project, normalize_formula
from materialscout.providers.pubchem import fetch_pubchem


def _response(status_code=200, json_data=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data or {}
    resp.text = text
    if status_code >= 400:
        resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            f"HTTP {status_code}", request=MagicMock(), response=resp,
        )
    return resp


MAKEITFROM_HTML = (
    '<html><body>'
    '<div class="mech"><p>Tensile Strength: Ultimate (UTS)</p>'
    '<div class="data-bars"></div><div class="data-bars"></div><p>50 <i>MPa</i></p></div>'
    '<div class="therm"><p>Glass Transition Temperature</p>'
    '<div class="data-bars"></div><div class="data-bars"></div><p>60 <i>°C</i></p></div>'
    '<div class="common"><p>Density</p>'
    '<div class="data-bars"></div><div class="data-bars"></div><p>1.3</p></div>'
    '</body></html>'
)


# =============================================================================
# PUBCHEM
# =============================================================================

class TestPubChem:
    def test_maps_properties_and_formula(self):
        payload = {"PropertyTable": {"Properties": [{
            "CID": 612, "MolecularFormula": "C3H6O3", "MolecularWeight": "90.08",
            "IUPACName": "2-hydroxypropanoic acid", "XLogP": -0.7, "TPSA": 57.5,
            "Complexity": 59.1, "HBondDonorCount": 2, "HBondAcceptorCount": 3, "ExactMass": "90.0317",
        }]}}
        with patch("materialscout.providers.pubchem.http_get", return_value=_response(json_data=payload)):
            result = fetch_pubchem("lactic acid")

        assert isinstance(result, PubChemResult)
        assert result.formula == "C3H6O3"
        assert result.url == "https://pubchem.ncbi.nlm.nih.gov/compound/612"
        props = dict(result.properties)
        assert props["Molecular Weight"] == "90.08 g/mol"
        assert props["XLogP (Lipophilicity)"] == "-0.7"
        assert props["Topological Polar Surface Area"] == "57.5 Å²"
        assert props["H-Bond Donors"] == "2"
        assert result.iupac_name == "2-hydroxypropanoic acid"

    def test_slash_in_name_is_one_path_segment(self):
        with patch("materialscout.providers.pubchem.http_get", return_value=_response(status_code=404)) as mock_get:
            fetch_pubchem("PET/PBT")
        url = mock_get.call_args.args[0]
        assert "/compound/name/PET%2FPBT/property/" in url

    def test_not_found_returns_none(self):
        with patch("materialscout.providers.pubchem.http_get", return_value=_response(status_code=404)):
            assert fetch_pubchem("unobtainium") is None

    def test_network_error_returns_none(self):
        with patch("materialscout.providers.pubchem.http_get", side_effect=httpx.ConnectError("down")):
            assert fetch_pubchem("PLA") is None


# =============================================================================
# MATERIALS PROJECT
# =============================================================================

class TestMaterialsProject:
    def test_normalize_formula(self):
        assert normalize_formula("(C3H4O2)n") == "CHOn"
        assert normalize_formula("Fe2O3") == "FeO"

    def test_skipped_without_api_key(self):
        with patch("materialscout.providers.materials_project.api_keys_manager") as keys, \
             patch("materialscout.providers.materials_project.http_get") as mock_get:
            keys.get_key.return_value = None
            assert fetch_materials_project("Fe2O3") is None
            mock_get.assert_not_called()

    def test_skipped_without_formula(self):
        with patch("materialscout.providers.materials_project.api_keys_manager") as keys, \
             patch("materialscout.providers.materials_project.http_get") as mock_get:
            keys.get_key.return_value = "mp-key"
            assert fetch_materials_project(None) is None
            mock_get.assert_not_called()

    def test_formats_summary(self):
        payload = {"data": [{
            "material_id": "mp-19770", "formula_pretty": "Fe2O3", "density": 5.2613,
            "band_gap": 2.0, "formation_energy_per_atom": -1.7052, "energy_above_hull": 0.0,
            "volume": 104.5, "symmetry": {"crystal_system": "Trigonal", "symbol": "R-3c"},
        }]}
        with patch("materialscout.providers.materials_project.api_keys_manager") as keys, \
             patch("materialscout.providers.materials_project.http_get", return_value=_response(json_data=payload)) as mock_get:
            keys.get_key.return_value = "mp-key"
            result = fetch_materials_project("Fe2O3")

        assert mock_get.call_args.kwargs["params"]["formula"] == "FeO"
        assert mock_get.call_args.kwargs["headers"]["X-API-KEY"] == "mp-key"
        props = dict(result.properties)
        assert props["Density"] == "5.261 g/cm³"
        assert props["Formation Energy"] == "-1.7052 eV/atom"
        assert props["Crystal System"] == "Trigonal"
        assert props["Space Group"] == "R-3c"
        assert result.url.endswith("/mp-19770")


# =============================================================================
# MAKEITFROM
# =============================================================================

class TestMakeItFrom:
    def test_parser_extracts_mapped_properties(self):
        props = dict(parse_property_page(MAKEITFROM_HTML))
        assert props["Tensile Strength"] == "50 MPa"
        assert props["Glass Transition (Tg)"] == "60 °C"
        assert props["Density"] == "1.3"

    def test_non_numeric_row_does_not_consume_next_block(self):
        html = (
            '<div class="other"><p>Color</p>'
            '<div class="data-bars"></div><div class="data-bars"></div><p>White</p></div>'
            '<div class="common"><p>Density</p>'
            '<div class="data-bars"></div><div class="data-bars"></div><p>1.3 <i>g/cm3</i></p></div>'
        )
        assert parse_property_page(html, {}) == [("Density", "1.3 g/cm3")]

    def test_whitespace_between_tags(self):
        html = """
        <div class="mech">
          <p>Tensile Strength: Ultimate (UTS)</p>
          <div class="data-bars">
            <div class="bar"></div>
          </div>
          <div class="data-bars"></div>
          <p>
            50 <i>MPa</i>
          </p>
        </div>
        """
        assert parse_property_page(html) == [("Tensile Strength", "50 MPa")]

    def test_parser_without_rows(self):
        assert parse_property_page("<html>Not found</html>") == []

    def test_candidate_slugs_order_and_dedupe(self):
        assert candidate_slugs("polylactic acid") == ["Polylactic-Acid", "polylactic-acid", "POLYLACTIC ACID"]

    def test_falls_through_to_next_slug(self):
        responses = [_response(status_code=404), _response(text=MAKEITFROM_HTML)]
        with patch("materialscout.providers.makeitfrom.http_get", side_effect=responses) as mock_get:
            result = fetch_makeitfrom("polylactic acid")
        assert isinstance(result, MakeItFromResult)
        assert result.url.endswith("/polylactic-acid")
        assert mock_get.call_count == 2

    def test_no_parseable_page_returns_none(self):
        with patch("materialscout.providers.makeitfrom.http_get", return_value=_response(text="<html></html>")):
            assert fetch_makeitfrom("PLA") is None


# =============================================================================
# AI AUGMENTERS
# =============================================================================

class TestDescription:
    def test_truncates_at_word_boundary(self):
        text = " ".join(["biodegradable"] * 30)
        cut = truncate_description(text, 180)
        assert len(cut) <= 180
        assert cut.endswith("...")
        body = cut[:-3]
        assert text.startswith(body)
        assert text[len(body)] == " "

    def test_short_text_unchanged(self):
        assert truncate_description("A short description.", 180) == "A short description."

    def test_too_short_returns_none(self):
        with patch("materialscout.providers.ai_augment.is_llm_configured", return_value=True), \
             patch("materialscout.providers.ai_augment.llm_call", return_value=LLMResult(text="A polymer.")):
            assert generate_description("PLA") is None

    def test_description_property(self):
        text = "A biodegradable thermoplastic derived from corn starch, used in packaging."
        with patch("materialscout.providers.ai_augment.is_llm_configured", return_value=True), \
             patch("materialscout.providers.ai_augment.llm_call", return_value=LLMResult(text=f'"{text}"')):
            result = generate_description("PLA")
        assert isinstance(result, DescriptionResult)
        assert result.properties == [("Description", text)]
        assert result.source == "AI Analysis"

    def test_no_credential(self):
        with patch("materialscout.providers.ai_augment.is_llm_configured", return_value=False):
            assert generate_description("PLA") is None


class TestSafety:
    def test_only_supplied_fields(self):
        text = '{"hazard_class": "Non-hazardous", "ppe": "Safety glasses", "cas_number": ""}'
        with patch("materialscout.providers.ai_augment.is_llm_configured", return_value=True), \
             patch("materialscout.providers.ai_augment.llm_call", return_value=LLMResult(text=text)):
            result = generate_safety_info("PLA")
        assert isinstance(result, SafetyResult)
        assert result.properties == [
            ("Hazard Classification", "Non-hazardous"),
            ("Recommended PPE", "Safety glasses"),
        ]
        assert result.source == "Safety Analysis"

    def test_empty_object_returns_none(self):
        with patch("materialscout.providers.ai_augment.is_llm_configured", return_value=True), \
             patch("materialscout.providers.ai_augment.llm_call", return_value=LLMResult(text="{}")):
            assert generate_safety_info("PLA") is None
