"""
Simulated decision provider.

Produces plausible decisions without calling any model, driven by the
trader's risk tolerance. Used for local runs and demos
(SIMULATE_DECISIONS=true). The reply goes through the same JSON parser
as a real model response.
"""

import json
import random
from typing import Optional

from .base import AIClientConfig, AIProvider, AIResponse, BaseAIClient

# risk tolerance -> (buy probability, min fraction of cash, max fraction, candidate pool)
_PROFILES: dict[str, tuple[float, float, float, Optional[int]]] = {
    "aggressive": (0.7, 0.3, 0.7, 5),
    "moderate": (0.5, 0.2, 0.5, 3),
    "conservative": (0.3, 0.1, 0.3, None),  # None: BTC only
}

_REASONING = {
    "aggressive": "Market conditions favor aggressive entry. High conviction play!",
    "moderate": "Balanced approach to current market conditions.",
    "conservative": "Safe opportunity identified. Entering with caution.",
}


class SimulatedAIClient(BaseAIClient):
    """
    Offline client.

    extra_params:
        risk_tolerance: aggressive | moderate | conservative
        balance: available cash
        top_assets: symbols ranked by volume
        rng: optional random.Random for reproducible runs
    """

    requires_api_key = False

    def __init__(self, config: AIClientConfig):
        super().__init__(config)
        params = config.extra_params
        self.risk_tolerance = params.get("risk_tolerance", "moderate")
        if self.risk_tolerance not in _PROFILES:
            self.risk_tolerance = "moderate"
        self.balance = float(params.get("balance", 0.0))
        self.top_assets = list(params.get("top_assets") or ["BTC"])
        self._rng: random.Random = params.get("rng") or random.Random()

    @property
    def provider(self) -> AIProvider:
        return AIProvider.SIMULATED

    def decide(self) -> dict:
        """Draw one decision dict for the configured profile."""
        buy_probability, low, high, pool = _PROFILES[self.risk_tolerance]

        if self.balance > 0 and self._rng.random() < buy_probability:
            amount = self.balance * (low + self._rng.random() * (high - low))
            if pool is None:
                asset = "BTC"
            else:
                candidates = self.top_assets[: min(pool, len(self.top_assets))]
                asset = candidates[int(self._rng.random() * len(candidates))]
            return {
                "asset": asset,
                "action": "buy",
                "amount": round(min(amount, self.balance), 2),
                "reasoning": _REASONING[self.risk_tolerance],
            }

        return {
            "asset": "BTC",
            "action": "hold",
            "amount": 0,
            "reasoning": "Waiting for better market conditions.",
        }

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = True,
    ) -> AIResponse:
        return AIResponse(
            content=json.dumps(self.decide()),
            model=self.config.model,
            provider=self.provider,
        )
