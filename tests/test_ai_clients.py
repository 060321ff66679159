"""
Tests for the decision provider clients and the client factory.

Covers: SimulatedAIClient, OpenRouterClient, AIClientFactory, roster
"""

import json
import random
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from arena.core.config import get_settings
from arena.services.ai.base import (
    AIAuthenticationError,
    AIClientConfig,
    AIClientError,
    AIConnectionError,
    AIProvider,
    AITimeoutError,
)
from arena.services.ai.factory import AIClientFactory
from arena.services.ai.openrouter_client import OpenRouterClient
from arena.services.ai.roster import AI_MODELS, get_model_by_identifier
from arena.services.ai.simulated_client import SimulatedAIClient
from arena.services.decision_parser import DecisionParser


def simulated(risk_tolerance: str, balance: float, seed: int = 1, top_assets=None) -> SimulatedAIClient:
    return SimulatedAIClient(
        AIClientConfig(
            api_key="",
            model="sim",
            extra_params={
                "risk_tolerance": risk_tolerance,
                "balance": balance,
                "top_assets": top_assets or ["BTC", "ETH", "SOL", "AVAX", "DOGE", "HYPE"],
                "rng": random.Random(seed),
            },
        )
    )


# ============================================================================
# Simulated Client Tests
# ============================================================================

class TestSimulatedClient:
    """Tests for SimulatedAIClient"""

    def test_no_api_key_needed(self):
        client = simulated("moderate", 100.0)
        assert client.provider == AIProvider.SIMULATED

    def test_no_cash_always_holds(self):
        client = simulated("aggressive", 0.0)

        for _ in range(20):
            decision = client.decide()
            assert decision["action"] == "hold"
            assert decision["amount"] == 0

    @pytest.mark.parametrize(
        "risk_tolerance,low,high",
        [("aggressive", 0.3, 0.7), ("moderate", 0.2, 0.5), ("conservative", 0.1, 0.3)],
    )
    def test_buy_size_within_profile(self, risk_tolerance, low, high):
        client = simulated(risk_tolerance, 200.0, seed=3)

        buys = [d for d in (client.decide() for _ in range(200)) if d["action"] == "buy"]

        assert buys
        for decision in buys:
            assert 200.0 * low - 0.01 <= decision["amount"] <= 200.0 * high + 0.01

    def test_conservative_only_buys_btc(self):
        client = simulated("conservative", 200.0, seed=5)

        assets = {d["asset"] for d in (client.decide() for _ in range(200)) if d["action"] == "buy"}

        assert assets == {"BTC"}

    def test_aggressive_picks_from_top_five(self):
        client = simulated("aggressive", 200.0, seed=9)

        assets = {d["asset"] for d in (client.decide() for _ in range(300)) if d["action"] == "buy"}

        assert assets <= {"BTC", "ETH", "SOL", "AVAX", "DOGE"}
        assert "HYPE" not in assets

    def test_unknown_risk_tolerance_uses_moderate(self):
        assert simulated("reckless", 100.0).risk_tolerance == "moderate"

    @pytest.mark.asyncio
    async def test_generate_output_parses(self):
        client = simulated("aggressive", 150.0)
        parser = DecisionParser()

        for _ in range(10):
            response = await client.generate("system", "user")
            decision = parser.parse(response.content)
            assert decision.amount <= 150.0


# ============================================================================
# OpenRouter Client Tests
# ============================================================================

def openrouter_client() -> OpenRouterClient:
    return OpenRouterClient(
        AIClientConfig(
            api_key="sk-or-test",
            model="openai/gpt-4-turbo",
            extra_params={"referer": "https://arena.test", "title": "Arena"},
        )
    )


def completion(content: str):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content), finish_reason="stop")],
        usage=SimpleNamespace(prompt_tokens=120, completion_tokens=30),
        model="openai/gpt-4-turbo",
    )


class TestOpenRouterClient:
    """Tests for OpenRouterClient"""

    def test_requires_api_key(self):
        with pytest.raises(AIAuthenticationError):
            OpenRouterClient(AIClientConfig(api_key="", model="openai/gpt-4-turbo"))

    @pytest.mark.asyncio
    async def test_generate_requests_json_object(self):
        client = openrouter_client()
        create = AsyncMock(return_value=completion('{"asset": "BTC", "action": "hold", "amount": 0}'))
        client._client = MagicMock()
        client._client.chat.completions.create = create

        response = await client.generate("system", "user")

        assert response.content.startswith("{")
        assert response.tokens_used == 150
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "openai/gpt-4-turbo"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    @pytest.mark.asyncio
    async def test_empty_content_raises(self):
        client = openrouter_client()
        client._client = MagicMock()
        client._client.chat.completions.create = AsyncMock(return_value=completion("  "))

        with pytest.raises(AIClientError, match="Empty response"):
            await client.generate("system", "user")

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self):
        client = openrouter_client()
        client._client = MagicMock()
        client._client.chat.completions.create = AsyncMock(side_effect=ValueError("bad"))

        with pytest.raises(AIClientError, match="Unexpected error"):
            await client.generate("system", "user")

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        client = openrouter_client()
        client._client = MagicMock()
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        client._client.chat.completions.create = AsyncMock(
            side_effect=openai.APITimeoutError(request=request)
        )

        with pytest.raises(AITimeoutError) as exc_info:
            await client.generate("system", "user")

        assert exc_info.value.transient is True
        assert exc_info.value.provider == AIProvider.OPENROUTER

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self):
        client = openrouter_client()
        client._client = MagicMock()
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        client._client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=request)
        )

        with pytest.raises(AIConnectionError) as exc_info:
            await client.generate("system", "user")

        assert not isinstance(exc_info.value, AITimeoutError)
        assert exc_info.value.transient is True

    def test_missing_key_is_not_transient(self):
        with pytest.raises(AIAuthenticationError) as exc_info:
            OpenRouterClient(AIClientConfig(api_key="", model="openai/gpt-4-turbo"))

        assert exc_info.value.transient is False


# ============================================================================
# Factory Tests
# ============================================================================

class TestAIClientFactory:
    """Tests for AIClientFactory"""

    def test_create_simulated(self):
        client = AIClientFactory.create("simulated:openai/gpt-4-turbo", extra_params={"balance": 10})

        assert isinstance(client, SimulatedAIClient)
        assert client.config.model == "openai/gpt-4-turbo"

    def test_create_openrouter_with_key(self):
        client = AIClientFactory.create("openrouter:anthropic/claude-4.5-opus", api_key="sk-or-test")

        assert isinstance(client, OpenRouterClient)
        assert client.config.model == "anthropic/claude-4.5-opus"

    def test_invalid_format_raises(self):
        with pytest.raises(AIClientError, match="Invalid model ID format"):
            AIClientFactory.create("gpt-4")

    def test_unknown_provider_raises(self):
        with pytest.raises(AIClientError, match="Unknown provider"):
            AIClientFactory.create("nowhere:model")

    def test_missing_key_raises(self):
        with pytest.raises(AIAuthenticationError):
            AIClientFactory.create("openrouter:openai/gpt-4-turbo", api_key="")

    def test_for_trader_simulated(self, monkeypatch):
        monkeypatch.setenv("SIMULATE_DECISIONS", "true")
        get_settings.cache_clear()
        try:
            trader = SimpleNamespace(model_name="x-ai/grok-4", risk_tolerance="aggressive")
            client = AIClientFactory.for_trader(trader, balance=120.0, top_assets=["BTC"])
        finally:
            get_settings.cache_clear()

        assert isinstance(client, SimulatedAIClient)
        assert client.risk_tolerance == "aggressive"
        assert client.balance == 120.0

    def test_for_trader_openrouter(self, monkeypatch):
        monkeypatch.setenv("SIMULATE_DECISIONS", "false")
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test")
        get_settings.cache_clear()
        try:
            trader = SimpleNamespace(model_name="x-ai/grok-4", risk_tolerance="aggressive")
            client = AIClientFactory.for_trader(trader)
        finally:
            get_settings.cache_clear()

        assert isinstance(client, OpenRouterClient)
        assert client.config.model == "x-ai/grok-4"
        assert client.config.extra_params["referer"]


# ============================================================================
# Roster Tests
# ============================================================================

class TestRoster:
    def test_ten_unique_models(self):
        assert len(AI_MODELS) == 10
        assert len({m.name for m in AI_MODELS}) == 10
        assert len({m.model_identifier for m in AI_MODELS}) == 10

    def test_lookup(self):
        first = AI_MODELS[0]

        assert get_model_by_identifier(first.model_identifier) is first
        assert get_model_by_identifier(first.name) is None
        assert get_model_by_identifier("x-ai/grok-4") is None

    def test_risk_tolerances_are_known(self):
        assert {m.risk_tolerance for m in AI_MODELS} <= {"aggressive", "moderate", "conservative"}
