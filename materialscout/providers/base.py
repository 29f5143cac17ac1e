"""Typed provider results and the shared HTTP helper.

Every external source produces one of the result variants below. The merge
step dispatches on the concrete type, so a new provider means a new variant
plus one branch in logic/merge.py.
"""

import logging
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

import httpx

from materialscout.config_loader import get_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PubChemResult:
    source: ClassVar[str] = "PubChem"
    properties: list[tuple[str, str]] = field(default_factory=list)
    url: Optional[str] = None
    formula: Optional[str] = None
    cid: Optional[int] = None

    @property
    def iupac_name(self) -> Optional[str]:
        for name, value in self.properties:
            if name == "IUPAC Name":
                return value
        return None


@dataclass(frozen=True)
class MaterialsProjectResult:
    source: ClassVar[str] = "Materials Project"
    properties: list[tuple[str, str]] = field(default_factory=list)
    url: Optional[str] = None
    formula: Optional[str] = None
    material_id: Optional[str] = None


@dataclass(frozen=True)
class MakeItFromResult:
    source: ClassVar[str] = "MakeItFrom"
    properties: list[tuple[str, str]] = field(default_factory=list)
    url: Optional[str] = None


@dataclass(frozen=True)
class DescriptionResult:
    source: ClassVar[str] = "AI Analysis"
    properties: list[tuple[str, str]] = field(default_factory=list)
    url: Optional[str] = None


@dataclass(frozen=True)
class SafetyResult:
    source: ClassVar[str] = "Safety Analysis"
    properties: list[tuple[str, str]] = field(default_factory=list)
    url: Optional[str] = None


ExternalResult = Union[
    PubChemResult, MaterialsProjectResult, MakeItFromResult, DescriptionResult, SafetyResult,
]


def http_get(url: str, headers: Optional[dict] = None, params: Optional[dict] = None) -> httpx.Response:
    """GET with the configured timeout. Raises httpx errors to the caller."""
    timeout = get_config().providers.http_timeout_seconds
    return httpx.get(url, headers=headers, params=params, timeout=timeout, follow_redirects=True)
