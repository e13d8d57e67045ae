"""
Reader AI - Error Types
Failure taxonomy shared by provider calls, parsing and persistence
"""

from typing import Optional


class AIServiceError(Exception):
    """Base class for every failure surfaced by the AI features."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedProvider(AIServiceError):
    """Provider identifier not in the catalogue. Raised before any I/O."""

    def __init__(self, provider: str):
        super().__init__(f"Unsupported AI provider: {provider}")
        self.provider = provider


class MissingApiKey(AIServiceError):
    """No API key configured for the selected provider."""

    def __init__(self):
        super().__init__("Please configure an AI API key in settings first")


class ProviderHttpError(AIServiceError):
    """Provider answered with a non-2xx status."""

    def __init__(self, provider: str, status: int, message: str):
        super().__init__(f"{provider} API call failed: {status} {message}".rstrip())
        self.provider = provider
        self.status = status
        self.reason = message


class ProviderResponseError(AIServiceError):
    """Provider answered 2xx but the body was empty or not the expected envelope."""

    def __init__(self, provider: str, message: str, body: Optional[str] = None):
        super().__init__(f"{provider} returned an unusable response: {message}")
        self.provider = provider
        self.body = body


class ProviderConnectionError(AIServiceError):
    """The request never produced a response (timeout, DNS, refused connection)."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider} request failed: {message}")
        self.provider = provider


class MalformedRecommendationResponse(AIServiceError):
    """Recommendation reply had no usable JSON payload or lacked required fields."""

    def __init__(self, message: str, raw_text: str):
        super().__init__(f"Failed to parse recommendations: {message}\nRaw response: {raw_text}")
        self.reason = message
        self.raw_text = raw_text


class PersistenceError(AIServiceError):
    """Read or write against the storage substrate failed."""
    pass


class CorruptHistoryEntry(AIServiceError):
    """A single stored chat message could not be decoded. Skipped on load."""

    def __init__(self, index: int, reason: str):
        super().__init__(f"Corrupt chat history entry #{index}: {reason}")
        self.index = index
        self.reason = reason


class RequestInFlight(AIServiceError):
    """A recommendation request was submitted while another is still loading."""

    def __init__(self):
        super().__init__("A recommendation request is already in progress")
