"""
AI Client Module.

Provides a unified interface for decision providers:
- OpenRouter (every roster model, OpenAI-compatible)
- Simulated (offline, risk-tolerance driven)

Usage:
    from arena.services.ai import AIClientFactory

    client = AIClientFactory.create("openrouter:deepseek/deepseek-r1", api_key="...")
    response = await client.generate(system_prompt, user_prompt)
"""

from .base import (
    AIAuthenticationError,
    AIClientConfig,
    AIClientError,
    AIConnectionError,
    AIProvider,
    AIRateLimitError,
    AIResponse,
    AITimeoutError,
    BaseAIClient,
)
from .factory import AIClientFactory
from .roster import AI_MODELS, RosterModel, get_model_by_identifier

__all__ = [
    "AI_MODELS",
    "AIAuthenticationError",
    "AIClientConfig",
    "AIClientError",
    "AIClientFactory",
    "AIConnectionError",
    "AIProvider",
    "AIRateLimitError",
    "AIResponse",
    "AITimeoutError",
    "BaseAIClient",
    "RosterModel",
    "get_model_by_identifier",
]
