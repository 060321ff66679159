"""
OpenRouter decision provider.

Every roster model is reached through OpenRouter's OpenAI-compatible
chat completions endpoint, so the openai SDK does the transport with a
custom base_url. Retries are disabled: a failed call becomes a hold for
this cycle and the trader is asked again next cycle.
"""

import time

import openai

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

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"

# Checked in order; subclasses before their bases
_ERROR_MAP: list[tuple[type[Exception], type[AIClientError], str]] = [
    (openai.APITimeoutError, AITimeoutError, "Request timed out"),
    (openai.APIConnectionError, AIConnectionError, "Connection failed"),
    (openai.AuthenticationError, AIAuthenticationError, "Authentication failed"),
    (openai.PermissionDeniedError, AIAuthenticationError, "Model access denied"),
    (openai.RateLimitError, AIRateLimitError, "Rate limit exceeded"),
    (openai.APIError, AIClientError, "API error"),
]


class OpenRouterClient(BaseAIClient):
    """
    Usage:
        config = AIClientConfig(api_key="sk-or-...", model="openai/gpt-4-turbo")
        response = await OpenRouterClient(config).generate(system_prompt, user_prompt)
    """

    def __init__(self, config: AIClientConfig):
        super().__init__(config)

        # OpenRouter attribution headers
        headers = {}
        if config.extra_params.get("referer"):
            headers["HTTP-Referer"] = config.extra_params["referer"]
        if config.extra_params.get("title"):
            headers["X-Title"] = config.extra_params["title"]

        self._client = openai.AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url or DEFAULT_BASE_URL,
            timeout=config.timeout,
            max_retries=0,
            default_headers=headers or None,
        )

    @property
    def provider(self) -> AIProvider:
        return AIProvider.OPENROUTER

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = True,
    ) -> AIResponse:
        started = time.monotonic()
        request = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            completion = await self._client.chat.completions.create(**request)
        except Exception as e:
            raise self._translate(e) from e

        if not completion.choices:
            raise AIClientError("No choices in response", self.provider)
        content = completion.choices[0].message.content or ""
        if not content.strip():
            raise AIClientError(f"Empty response from {self.config.model}", self.provider)

        usage = completion.usage
        return AIResponse(
            content=content,
            model=completion.model or self.config.model,
            provider=self.provider,
            tokens_used=(usage.prompt_tokens + usage.completion_tokens) if usage else 0,
            latency_ms=int((time.monotonic() - started) * 1000),
        )

    def _translate(self, error: Exception) -> AIClientError:
        for source, target, label in _ERROR_MAP:
            if isinstance(error, source):
                return target(f"{label} ({self.config.model}): {error}", self.provider)
        return AIClientError(f"Unexpected error ({self.config.model}): {error}", self.provider)
