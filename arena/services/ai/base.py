"""
Decision provider interface.

A provider turns a (system prompt, user prompt) pair into raw text that
should contain one JSON trading decision. Providers never parse or
validate that text; DecisionService does, and it maps every
AIClientError to a fallback hold.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class AIProvider(str, Enum):
    """Where decisions come from"""

    OPENROUTER = "openrouter"
    SIMULATED = "simulated"


@dataclass
class AIClientConfig:
    """Per-trader provider settings"""

    api_key: str
    model: str
    base_url: Optional[str] = None
    max_tokens: int = 500
    temperature: float = 0.7
    timeout: float = 60.0
    # referer/title for OpenRouter, risk_tolerance/balance/top_assets for the simulator
    extra_params: dict = field(default_factory=dict)


@dataclass
class AIResponse:
    """Raw provider reply"""

    content: str
    model: str
    provider: AIProvider
    tokens_used: int = 0
    latency_ms: int = 0


class AIClientError(Exception):
    """
    A provider could not produce a reply.

    transient marks failures worth retrying next cycle without operator
    action (rate limits, network, timeouts).
    """

    transient = False

    def __init__(self, message: str, provider: Optional[AIProvider] = None):
        self.message = message
        self.provider = provider
        super().__init__(message)


class AIAuthenticationError(AIClientError):
    """Missing or rejected API key"""


class AIRateLimitError(AIClientError):
    transient = True


class AIConnectionError(AIClientError):
    transient = True


class AITimeoutError(AIConnectionError):
    """Provider-side request timeout"""


class BaseAIClient(ABC):
    """
    One configured provider for one model.

    Subclasses implement provider and generate(); the API key check runs
    at construction so a misconfigured trader fails before any request.
    """

    requires_api_key = True

    def __init__(self, config: AIClientConfig):
        self.config = config
        if self.requires_api_key and not config.api_key:
            raise AIAuthenticationError(
                f"API key is required for {self.provider.value}", self.provider
            )

    @property
    @abstractmethod
    def provider(self) -> AIProvider:
        ...

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = True,
    ) -> AIResponse:
        """
        Ask the model for one decision.

        Args:
            system_prompt: Persona and output contract
            user_prompt: Market, portfolio and headline context
            json_mode: Ask the provider to constrain output to a JSON object

        Raises:
            AIClientError: On any provider failure
        """
