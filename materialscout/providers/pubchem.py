"""PubChem PUG REST lookup by compound name."""

import logging
from typing import Optional
from urllib.parse import quote

from materialscout.config_loader import get_config
from materialscout.providers.base import PubChemResult, http_get

logger = logging.getLogger(__name__)

PUBCHEM_FIELDS = (
    "MolecularFormula,MolecularWeight,IUPACName,XLogP,TPSA,Complexity,"
    "HBondDonorCount,HBondAcceptorCount,ExactMass,MonoisotopicMass"
)


def _properties_from_record(record: dict) -> list[tuple[str, str]]:
    props = []
    if record.get("MolecularWeight") is not None:
        props.append(("Molecular Weight", f"{record['MolecularWeight']} g/mol"))
    if record.get("IUPACName"):
        props.append(("IUPAC Name", str(record["IUPACName"])))
    if record.get("XLogP") is not None:
        props.append(("XLogP (Lipophilicity)", str(record["XLogP"])))
    if record.get("TPSA") is not None:
        props.append(("Topological Polar Surface Area", f"{record['TPSA']} Å²"))
    if record.get("Complexity") is not None:
        props.append(("Molecular Complexity", str(record["Complexity"])))
    if record.get("HBondDonorCount") is not None:
        props.append(("H-Bond Donors", str(record["HBondDonorCount"])))
    if record.get("HBondAcceptorCount") is not None:
        props.append(("H-Bond Acceptors", str(record["HBondAcceptorCount"])))
    if record.get("ExactMass") is not None:
        props.append(("Exact Mass", f"{record['ExactMass']} g/mol"))
    return props


def fetch_pubchem(query: str) -> Optional[PubChemResult]:
    """Look up a compound by name. None when PubChem has no match or is unreachable."""
    cfg = get_config().providers
    name = quote(query, safe="")
    url = f"{cfg.pubchem_base_url}/compound/name/{name}/property/{PUBCHEM_FIELDS}/JSON"

    try:
        response = http_get(url)
        if response.status_code == 404:
            logger.info(f"[PubChem] No compound for '{query}'")
            return None
        response.raise_for_status()
        records = response.json().get("PropertyTable", {}).get("Properties", [])
    except Exception as e:
        logger.warning(f"[PubChem] Lookup failed for '{query}': {e}")
        return None

    if not records:
        return None

    record = records[0]
    cid = record.get("CID")
    return PubChemResult(
        properties=_properties_from_record(record),
        url=f"{cfg.pubchem_compound_url}/{cid}" if cid is not None else None,
        formula=record.get("MolecularFormula"),
        cid=cid,
    )
