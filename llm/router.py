"""
Reader AI - Provider Router
Resolves a provider identifier to its client and dispatches prompts
"""

import threading
from enum import Enum
from typing import Optional, Dict, Callable, List

from core.logger import log_info
from llm.errors import UnsupportedProvider, MissingApiKey
from llm.providers import ProviderClient, create_client


class AIProvider(Enum):
    """Supported hosted model providers."""
    DEEPSEEK = "deepseek"
    GLM = "glm"
    GEMINI = "gemini"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def help_url(self) -> str:
        import config
        return {
            AIProvider.DEEPSEEK: config.DEEPSEEK_HELP_URL,
            AIProvider.GLM: config.GLM_HELP_URL,
            AIProvider.GEMINI: config.GEMINI_HELP_URL,
        }[self]


_DISPLAY_NAMES = {
    AIProvider.DEEPSEEK: "DeepSeek",
    AIProvider.GLM: "GLM-4",
    AIProvider.GEMINI: "Gemini",
}


def resolve_provider(provider_id: str) -> AIProvider:
    """
    Map a provider identifier to its enum member, ignoring case.

    Raises:
        UnsupportedProvider: If the identifier is not in the catalogue
    """
    normalized = (provider_id or "").strip().lower()
    try:
        return AIProvider(normalized)
    except ValueError:
        raise UnsupportedProvider(provider_id) from None


def display_name(provider_id: str) -> str:
    """Human-readable provider name, or the raw id when unknown."""
    try:
        return resolve_provider(provider_id).display_name
    except UnsupportedProvider:
        return provider_id


class ProviderRouter:
    """
    Routes prompts to the client of the requested provider.

    Handles:
    - Case-insensitive provider selection, validated before any I/O
    - Lazy, cached client construction (clients are stateless)
    """

    def __init__(
        self,
        client_factory: Optional[Callable[[str], ProviderClient]] = None
    ):
        """
        Initialize the router.

        Args:
            client_factory: Builds a client for a lower-case provider id
                (defaults to config-driven construction)
        """
        self._client_factory = client_factory or create_client
        self._clients: Dict[AIProvider, ProviderClient] = {}
        self._lock = threading.Lock()

    def get_client(self, provider: AIProvider) -> ProviderClient:
        """Get or create the client for a provider."""
        with self._lock:
            client = self._clients.get(provider)
            if client is None:
                client = self._client_factory(provider.value)
                self._clients[provider] = client
            return client

    def generate(self, provider_id: str, api_key: str, prompt: str) -> str:
        """
        Send a prompt to the named provider.

        Args:
            provider_id: Provider identifier, any case
            api_key: Credential for that provider
            prompt: Fully rendered prompt

        Returns:
            The generated text, trimmed

        Raises:
            UnsupportedProvider: Unknown provider id (no network call made)
            MissingApiKey: Blank API key (no network call made)
            ProviderHttpError, ProviderResponseError, ProviderConnectionError
        """
        provider = resolve_provider(provider_id)
        if not api_key or not api_key.strip():
            raise MissingApiKey()

        client = self.get_client(provider)
        text = client.generate(api_key.strip(), prompt)
        log_info(f"{provider.display_name} replied with {len(text)} chars", prefix="🤖")
        return text

    @staticmethod
    def list_providers() -> List[Dict[str, str]]:
        """Catalogue of supported providers for settings screens."""
        return [
            {"id": p.value, "name": p.display_name, "help_url": p.help_url}
            for p in AIProvider
        ]


# Global router instance
_router: Optional[ProviderRouter] = None


def get_provider_router() -> ProviderRouter:
    """Get the global provider router instance."""
    global _router
    if _router is None:
        _router = ProviderRouter()
    return _router


def init_provider_router(
    client_factory: Optional[Callable[[str], ProviderClient]] = None
) -> ProviderRouter:
    """Initialize the global provider router."""
    global _router
    _router = ProviderRouter(client_factory=client_factory)
    return _router
