"""
AI Client Factory.

Creates decision provider clients from a "provider:model_id" string, or
directly for a trader based on application settings.
"""

import logging
from typing import Optional

from ...core.config import get_settings
from .base import AIClientConfig, AIClientError, AIProvider, BaseAIClient
from .openrouter_client import OpenRouterClient
from .simulated_client import SimulatedAIClient

logger = logging.getLogger(__name__)

# Client class registry
_CLIENT_CLASSES: dict[AIProvider, type[BaseAIClient]] = {
    AIProvider.OPENROUTER: OpenRouterClient,
    AIProvider.SIMULATED: SimulatedAIClient,
}


class AIClientFactory:
    """
    Factory for creating AI client instances.

    Usage:
        # Create client by model ID
        client = AIClientFactory.create("openrouter:deepseek/deepseek-r1")

        # Create the client a trader should use this cycle
        client = AIClientFactory.for_trader(trader, balance=200, top_assets=[...])
    """

    @staticmethod
    def create(
        model_full_id: str,
        api_key: Optional[str] = None,
        **kwargs,
    ) -> BaseAIClient:
        """
        Create an AI client by model full ID.

        Args:
            model_full_id: Full model ID in format "provider:model_id"
                          e.g., "openrouter:openai/gpt-4-turbo"
            api_key: Optional API key (uses settings if not provided)
            **kwargs: Additional config options (temperature, max_tokens,
                      timeout, base_url, extra_params)

        Returns:
            Configured AI client instance

        Raises:
            AIClientError: If the provider is unknown or client creation fails
        """
        if ":" not in model_full_id:
            raise AIClientError(
                f"Invalid model ID format: {model_full_id}. Expected 'provider:model_id'"
            )

        provider_str, model_id = model_full_id.split(":", 1)
        try:
            provider = AIProvider(provider_str)
        except ValueError:
            raise AIClientError(f"Unknown provider: {provider_str}")

        settings = get_settings()
        if api_key is None and provider == AIProvider.OPENROUTER:
            api_key = settings.openrouter_api_key

        config = AIClientConfig(
            api_key=api_key or "",
            model=model_id,
            base_url=kwargs.get("base_url"),
            max_tokens=kwargs.get("max_tokens", settings.decision_max_tokens),
            temperature=kwargs.get("temperature", settings.decision_temperature),
            timeout=kwargs.get("timeout", settings.decision_timeout_seconds),
            extra_params=kwargs.get("extra_params", {}),
        )
        return AIClientFactory.create_with_config(provider, config)

    @staticmethod
    def create_with_config(
        provider: AIProvider,
        config: AIClientConfig,
    ) -> BaseAIClient:
        """Create an AI client with explicit configuration."""
        client_class = _CLIENT_CLASSES.get(provider)
        if client_class is None:
            raise AIClientError(f"No client registered for provider: {provider.value}")
        return client_class(config)

    @staticmethod
    def for_trader(
        trader,
        balance: float = 0.0,
        top_assets: Optional[list[str]] = None,
    ) -> BaseAIClient:
        """
        Create the client a trader uses for its next decision.

        Real traders go through OpenRouter with their model_name; with
        SIMULATE_DECISIONS enabled the risk-tolerance simulator is used.
        """
        settings = get_settings()
        if settings.simulate_decisions:
            return AIClientFactory.create(
                f"{AIProvider.SIMULATED.value}:{trader.model_name}",
                extra_params={
                    "risk_tolerance": trader.risk_tolerance,
                    "balance": balance,
                    "top_assets": top_assets or [],
                },
            )
        return AIClientFactory.create(
            f"{AIProvider.OPENROUTER.value}:{trader.model_name}",
            base_url=settings.openrouter_base_url,
            extra_params={"referer": settings.app_url, "title": settings.app_title},
        )
