"""
Credentials for the AI completion service and the keyed data providers.

Keys come from the environment (optionally a .env file at the project root).
Only masked forms ever leave this module via get_status().
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), "..", ".env"))


class ProviderCredential(BaseModel):
    env_var: str
    label: str
    kind: str  # "llm" or "data"


PROVIDERS: dict[str, ProviderCredential] = {
    "gemini": ProviderCredential(env_var="GEMINI_API_KEY", label="Google Gemini", kind="llm"),
    "openai": ProviderCredential(env_var="OPENAI_API_KEY", label="OpenAI", kind="llm"),
    "materials_project": ProviderCredential(
        env_var="MATERIALS_PROJECT_API_KEY", label="Materials Project", kind="data",
    ),
}


class ApiKeyStatus(BaseModel):
    provider: str
    label: str
    kind: str
    configured: bool
    masked_key: Optional[str] = None


def mask_key(key: Optional[str]) -> Optional[str]:
    if not key:
        return None
    return f"{key[:4]}...{key[-4:]}" if len(key) > 8 else "***"


class ApiKeysManager:

    def get_key(self, provider: str) -> Optional[str]:
        """Key for `provider`, or None when unknown or unset (blank counts as unset)."""
        credential = PROVIDERS.get(provider)
        if credential is None:
            return None
        value = os.getenv(credential.env_var, "").strip()
        return value or None

    def get_status(self) -> list[ApiKeyStatus]:
        statuses = []
        for provider, credential in PROVIDERS.items():
            key = self.get_key(provider)
            statuses.append(ApiKeyStatus(
                provider=provider,
                label=credential.label,
                kind=credential.kind,
                configured=key is not None,
                masked_key=mask_key(key),
            ))
        return statuses

    def get_configured_providers(self, kind: Optional[str] = None) -> list[str]:
        """Provider names with a key set, optionally limited to one kind."""
        return [
            s.provider for s in self.get_status()
            if s.configured and (kind is None or s.kind == kind)
        ]


api_keys_manager = ApiKeysManager()
