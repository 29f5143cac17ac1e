"""Scientific literature search: PubMed (NCBI E-utilities) and CrossRef."""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from materialscout.config_loader import get_config
from materialscout.models import LiteratureSource
from materialscout.providers.base import http_get

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"\b(\d{4})\b")


def _year_from_pubdate(pubdate: str) -> Optional[int]:
    match = _YEAR_RE.search(pubdate or "")
    return int(match.group(1)) if match else None


def _crossref_year(date: Optional[dict]) -> Optional[int]:
    parts = (date or {}).get("date-parts") or [[]]
    return parts[0][0] if parts and parts[0] else None


def _strip_markup(text: str) -> str:
    """CrossRef abstracts arrive as JATS XML fragments."""
    if not text:
        return ""
    return BeautifulSoup(text, "html.parser").get_text(" ", strip=True)


def search_pubmed(query: str, max_results: int = 5) -> list[LiteratureSource]:
    """Two-step esearch + esummary. Empty list on any failure."""
    base = get_config().providers.pubmed_base_url
    try:
        search = http_get(
            f"{base}/esearch.fcgi",
            params={"db": "pubmed", "term": query, "retmax": max_results, "retmode": "json"},
        )
        search.raise_for_status()
        ids = search.json().get("esearchresult", {}).get("idlist", [])
        if not ids:
            return []

        summary = http_get(
            f"{base}/esummary.fcgi",
            params={"db": "pubmed", "id": ",".join(ids), "retmode": "json"},
        )
        summary.raise_for_status()
        result = summary.json().get("result", {})
    except Exception as e:
        logger.warning(f"[PubMed] Search failed for '{query}': {e}")
        return []

    sources = []
    for pmid in ids:
        article = result.get(pmid)
        if not article or not article.get("title"):
            continue
        doi = ""
        elocation = article.get("elocationid") or ""
        if elocation.startswith("doi:"):
            doi = elocation[4:].strip()
        sources.append(LiteratureSource(
            title=article["title"],
            authors=[a.get("name", "") for a in (article.get("authors") or [])[:3] if a.get("name")],
            journal=article.get("fulljournalname") or article.get("source") or "",
            year=_year_from_pubdate(article.get("pubdate", "")),
            doi=doi,
            url=f"https://pubmed.ncbi.nlm.nih.gov/{pmid}/",
            source_database="PubMed",
        ))
    return sources


def search_crossref(query: str, max_results: int = 5) -> list[LiteratureSource]:
    """Journal-article search on CrossRef. Empty list on any failure."""
    cfg = get_config().providers
    try:
        response = http_get(
            f"{cfg.crossref_base_url}/works",
            headers={"User-Agent": cfg.crossref_user_agent},
            params={"query": query, "rows": max_results, "filter": "type:journal-article"},
        )
        response.raise_for_status()
        items = response.json().get("message", {}).get("items", [])
    except Exception as e:
        logger.warning(f"[CrossRef] Search failed for '{query}': {e}")
        return []

    sources = []
    for item in items:
        titles = item.get("title") or []
        if not titles:
            continue
        authors = []
        for author in (item.get("author") or [])[:3]:
            name = f"{author.get('given', '')} {author.get('family', '')}".strip()
            if name:
                authors.append(name)
        containers = item.get("container-title") or []
        year = _crossref_year(item.get("published")) or _crossref_year(item.get("created"))
        doi = item.get("DOI", "")
        sources.append(LiteratureSource(
            title=titles[0],
            authors=authors,
            journal=containers[0] if containers else "",
            year=year,
            doi=doi,
            url=item.get("URL") or (f"https://doi.org/{doi}" if doi else ""),
            abstract=_strip_markup(item.get("abstract") or ""),
            keywords=list(item.get("subject") or []),
            citation_count=item.get("is-referenced-by-count") or 0,
            source_database="CrossRef",
        ))
    return sources
