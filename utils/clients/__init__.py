# Clients subpackage - LLM provider clients
from config import settings

from .openrouter import OpenRouterClient
from .gemini import GeminiClient


def get_ai_client():
    """Return the configured LLM client (AI_PROVIDER: openrouter or gemini)."""
    if settings.AI_PROVIDER.lower() == "gemini":
        return GeminiClient()
    return OpenRouterClient()


__all__ = [
    "OpenRouterClient",
    "GeminiClient",
    "get_ai_client",
]
