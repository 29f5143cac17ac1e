"""MakeItFrom engineering property pages (HTML scrape)."""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from materialscout.config_loader import get_config
from materialscout.providers.base import MakeItFromResult, http_get

logger = logging.getLogger(__name__)

# One block per property; the value <p> follows the two data-bars divs
_PROPERTY_BLOCK_SELECTOR = "div.mech, div.therm, div.ele, div.other, div.common"
_LEADING_NUMBER_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)")


def candidate_slugs(query: str) -> list[str]:
    """URL slugs to try, most likely first, without duplicates."""
    q = query.strip()
    title = "-".join(w.capitalize() for w in q.split())
    title = re.sub(r"[^A-Za-z0-9-]", "", title)
    slugs = [
        title,
        re.sub(r"\s+", "-", q),
        q.upper(),
        re.sub(r"\s+", "-", q.lower()),
    ]
    seen = []
    for slug in slugs:
        if slug and slug not in seen:
            seen.append(slug)
    return seen


def _value_paragraph(block):
    bars = block.find_all("div", class_="data-bars", recursive=False)
    if bars:
        return bars[-1].find_next_sibling("p")
    paragraphs = block.find_all("p", recursive=False)
    return paragraphs[1] if len(paragraphs) > 1 else None


def parse_property_page(html: str, name_mapping: Optional[dict[str, str]] = None) -> list[tuple[str, str]]:
    """Extract (label, "value unit") pairs from a MakeItFrom material page.

    Rows whose value does not start with a number (colors, grades) are skipped.
    """
    if name_mapping is None:
        name_mapping = get_config().providers.makeitfrom_name_mapping

    soup = BeautifulSoup(html, "html.parser")
    props = []
    seen = set()
    for block in soup.select(_PROPERTY_BLOCK_SELECTOR):
        label_p = block.find("p", recursive=False)
        value_p = _value_paragraph(block)
        if label_p is None or value_p is None:
            continue

        label = label_p.get_text(" ", strip=True)
        label = name_mapping.get(label, label)
        unit_tag = value_p.find("i")
        unit = unit_tag.get_text(" ", strip=True) if unit_tag else ""
        if unit_tag:
            unit_tag.extract()
        match = _LEADING_NUMBER_RE.match(value_p.get_text(" ", strip=True))
        if not label or not match or label in seen:
            continue
        seen.add(label)
        props.append((label, f"{match.group(1)} {unit}".strip()))
    return props


def fetch_makeitfrom(query: str) -> Optional[MakeItFromResult]:
    """Try each candidate page in turn; first page with parseable rows wins."""
    cfg = get_config().providers
    headers = {"User-Agent": cfg.user_agent, "Accept": "text/html"}

    for slug in candidate_slugs(query):
        url = f"{cfg.makeitfrom_base_url}/{slug}"
        try:
            response = http_get(url, headers=headers)
        except Exception as e:
            logger.warning(f"[MakeItFrom] Request failed for {url}: {e}")
            continue
        if response.status_code != 200:
            continue

        props = parse_property_page(response.text, cfg.makeitfrom_name_mapping)
        if props:
            logger.info(f"[MakeItFrom] {len(props)} properties from {url}")
            return MakeItFromResult(properties=props, url=url)

    return None
