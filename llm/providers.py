"""
Reader AI - Provider Clients
HTTP clients for the hosted language-model backends (DeepSeek, GLM, Gemini)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple

import requests

from core.logger import log_info, log_error
from llm.errors import ProviderHttpError, ProviderResponseError, ProviderConnectionError


@dataclass
class ProviderRequest:
    """Everything needed for one POST to a provider."""
    url: str
    payload: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)


class ProviderClient(ABC):
    """
    One hosted model backend.

    Each call is a single stateless POST: no retries, no conversation
    context, no shared mutable state between calls.
    """

    provider_id: str = ""
    display_name: str = ""

    def __init__(
        self,
        api_url: str,
        model: str,
        connect_timeout: float = 30.0,
        read_timeout: float = 60.0,
        temperature: float = 0.7,
        max_tokens: int = 500
    ):
        """
        Initialize the client.

        Args:
            api_url: Endpoint URL for generation requests
            model: Model name sent to (or embedded in the URL for) the backend
            connect_timeout: Seconds to wait for the TCP/TLS connection
            read_timeout: Seconds to wait for the generated reply
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
        """
        self.api_url = api_url
        self.model = model
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def timeout(self) -> Tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)

    @abstractmethod
    def build_request(self, api_key: str, prompt: str) -> ProviderRequest:
        """Render the provider-specific request envelope."""

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> str:
        """Pull the generated text out of the provider-specific reply envelope."""

    def generate(self, api_key: str, prompt: str) -> str:
        """
        Send one prompt and return the generated text, trimmed.

        Raises:
            ProviderConnectionError: No response (timeout, connection failure)
            ProviderHttpError: Non-2xx status
            ProviderResponseError: 2xx with an empty or unrecognised body
        """
        request = self.build_request(api_key, prompt)

        log_info(
            f"Calling {self.display_name} ({self.model}), prompt {len(prompt)} chars",
            prefix="🤖"
        )

        try:
            response = requests.post(
                request.url,
                json=request.payload,
                headers=request.headers,
                params=request.params or None,
                timeout=self.timeout
            )
        except requests.Timeout:
            log_error(f"{self.display_name} request timed out")
            raise ProviderConnectionError(self.display_name, "Request timed out")
        except requests.ConnectionError as e:
            log_error(f"{self.display_name} connection failed: {e}")
            raise ProviderConnectionError(self.display_name, "Connection failed")
        except requests.RequestException as e:
            log_error(f"{self.display_name} request error: {e}")
            raise ProviderConnectionError(self.display_name, str(e))

        if not 200 <= response.status_code < 300:
            log_error(f"{self.display_name} HTTP {response.status_code}: {response.text[:200]}")
            raise ProviderHttpError(self.display_name, response.status_code, response.reason or "")

        if not response.content:
            raise ProviderResponseError(self.display_name, "empty response body")

        try:
            data = response.json()
        except ValueError:
            raise ProviderResponseError(self.display_name, "body is not JSON", response.text)

        try:
            text = self.extract_text(data)
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderResponseError(
                self.display_name, f"unexpected envelope ({e!r})", response.text
            )

        if not isinstance(text, str) or not text.strip():
            raise ProviderResponseError(self.display_name, "no generated text", response.text)

        return text.strip()


class ChatCompletionClient(ProviderClient):
    """OpenAI-style chat completion: bearer token, choices[0].message.content."""

    def build_request(self, api_key: str, prompt: str) -> ProviderRequest:
        return ProviderRequest(
            url=self.api_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json"
            },
            payload={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens
            }
        )

    def extract_text(self, data: Dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]


class DeepSeekClient(ChatCompletionClient):
    provider_id = "deepseek"
    display_name = "DeepSeek"


class GLMClient(ChatCompletionClient):
    provider_id = "glm"
    display_name = "GLM-4"


class GeminiClient(ProviderClient):
    """
    Google Gemini generateContent.

    The API key travels as the `key` query parameter and the reply nests
    text under candidates[0].content.parts[0].text.
    """

    provider_id = "gemini"
    display_name = "Gemini"

    def build_request(self, api_key: str, prompt: str) -> ProviderRequest:
        return ProviderRequest(
            url=self.api_url.format(model=self.model),
            headers={"Content-Type": "application/json"},
            params={"key": api_key},
            payload={
                "contents": [{"parts": [{"text": prompt}]}]
            }
        )

    def extract_text(self, data: Dict[str, Any]) -> str:
        return data["candidates"][0]["content"]["parts"][0]["text"]


def create_client(provider_id: str, overrides: Optional[Dict[str, Any]] = None) -> ProviderClient:
    """
    Build a client for a known provider id from config values.

    Args:
        provider_id: Lower-case provider id (already validated by the router)
        overrides: Optional constructor keyword overrides (timeouts, model...)
    """
    import config

    settings = {
        "deepseek": (DeepSeekClient, config.DEEPSEEK_API_URL, config.DEEPSEEK_MODEL),
        "glm": (GLMClient, config.GLM_API_URL, config.GLM_MODEL),
        "gemini": (GeminiClient, config.GEMINI_API_URL, config.GEMINI_MODEL),
    }
    client_cls, api_url, model = settings[provider_id]

    kwargs: Dict[str, Any] = {
        "api_url": api_url,
        "model": model,
        "connect_timeout": config.AI_CONNECT_TIMEOUT,
        "read_timeout": config.AI_READ_TIMEOUT,
        "temperature": config.AI_TEMPERATURE,
        "max_tokens": config.AI_MAX_TOKENS,
    }
    if overrides:
        kwargs.update(overrides)
    return client_cls(**kwargs)
