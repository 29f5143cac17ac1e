"""Excluded-term cache: category/use-case words that are never material names.

Queries like "bioplastics" or "packaging materials" describe a category, not
a substance. The search pipeline consults this cache before synthesizing a
record from external data alone.

The cache is an explicit object constructed once at process start. Its
backing set is a frozenset replaced wholesale on refresh, so concurrent
readers see either the previous set or the new one, never a partial set.
"""

import logging
import threading
import time
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)

_MATERIAL_SUFFIXES = (" materials", " material")


def _normalize(term: str) -> str:
    return (term or "").strip().lower()


def _number_variants(term: str) -> set[str]:
    """Singular/plural spellings of a term (naive English rules)."""
    variants = {term + "s"}
    if term.endswith("ies") and len(term) > 3:
        variants.add(term[:-3] + "y")
    if term.endswith("es") and len(term) > 2:
        variants.add(term[:-2])
    if term.endswith("s") and len(term) > 1:
        variants.add(term[:-1])
    if term.endswith("y") and len(term) > 1:
        variants.add(term[:-1] + "ies")
    variants.discard(term)
    return variants


def _in_terms(term: str, terms: frozenset[str]) -> bool:
    return term in terms or any(v in terms for v in _number_variants(term))


class ExcludedTermCache:
    """TTL-bounded, swap-on-expiry cache of excluded search terms."""

    def __init__(
        self,
        loader: Callable[[], Iterable[str]],
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._terms: frozenset[str] = frozenset()
        self._loaded_at: Optional[float] = None
        self._lock = threading.Lock()

    def load(self) -> frozenset[str]:
        """Fetch the persistent term list. Failure yields an empty set."""
        try:
            terms = frozenset(t for t in (_normalize(x) for x in self._loader()) if t)
            logger.info(f"[ExcludedTerms] Loaded {len(terms)} terms")
            return terms
        except Exception as e:
            logger.warning(f"[ExcludedTerms] Load failed, excluding nothing until next refresh: {e}")
            return frozenset()

    def is_stale(self) -> bool:
        if self._loaded_at is None:
            return True
        return self._clock() - self._loaded_at >= self._ttl

    def get_or_refresh(self) -> frozenset[str]:
        """Return the current term set, reloading first if the TTL has expired."""
        if not self.is_stale():
            return self._terms
        with self._lock:
            # Another thread may have refreshed while we waited
            if self.is_stale():
                fresh = self.load()
                self._terms = fresh
                self._loaded_at = self._clock()
            return self._terms

    def invalidate(self) -> None:
        """Force a reload on the next lookup."""
        with self._lock:
            self._loaded_at = None

    def is_category_term(self, query: str) -> bool:
        """True when the query names a category/use-case rather than a material."""
        q = _normalize(query)
        if not q:
            return False
        terms = self.get_or_refresh()
        if _in_terms(q, terms):
            return True
        # "packaging materials" -> "packaging"
        for suffix in _MATERIAL_SUFFIXES:
            if q.endswith(suffix):
                prefix = q[: -len(suffix)].strip()
                return bool(prefix) and _in_terms(prefix, terms)
        return False
