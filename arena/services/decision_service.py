"""
Decision Service - one validated decision per trader per cycle.

Coordinates:
- Prompt building from trader state and the market snapshot
- The trader's decision provider call, bounded by a timeout
- Response parsing and validation

Any provider error, timeout or invalid response turns into the
deterministic fallback hold. This service never raises for a provider
problem, so one misbehaving model cannot stall the cycle.
"""

import asyncio
import logging
import time
from datetime import UTC, datetime
from typing import Callable, Optional, Sequence

from ..core.config import get_settings
from ..db.models import PositionDB, TraderDB
from ..models.decision import TradingDecision, fallback_decision
from ..models.market import MarketData
from ..monitoring.metrics import get_metrics_collector
from .ai import AIClientError, AIClientFactory, BaseAIClient
from .decision_parser import DecisionParseError, DecisionParser
from .market_data_cache import get_top_assets
from .prompt_builder import PromptBuilder, headline_for

logger = logging.getLogger(__name__)

# (trader, available cash, top assets) -> client
ClientResolver = Callable[[TraderDB, float, list[str]], BaseAIClient]


def _default_resolver(trader: TraderDB, balance: float, top_assets: list[str]) -> BaseAIClient:
    return AIClientFactory.for_trader(trader, balance=balance, top_assets=top_assets)


class DecisionService:
    """Builds the prompt, asks the trader's model, validates the answer"""

    def __init__(
        self,
        prompt_builder: Optional[PromptBuilder] = None,
        parser: Optional[DecisionParser] = None,
        client_resolver: Optional[ClientResolver] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.prompt_builder = prompt_builder or PromptBuilder(settings.prompt_top_assets)
        self.parser = parser or DecisionParser()
        self.client_resolver = client_resolver or _default_resolver
        self.timeout = timeout if timeout is not None else settings.decision_timeout_seconds
        self._interval_minutes = settings.cycle_interval_minutes

    async def decide(
        self,
        trader: TraderDB,
        market: MarketData,
        portfolio_value: float,
        holdings: Sequence[PositionDB],
        headline: Optional[str] = None,
    ) -> TradingDecision:
        """
        Get one decision for a trader.

        Args:
            trader: Trader asking for a decision
            market: Cycle market snapshot
            portfolio_value: Cash plus marked-to-market positions
            holdings: Open positions of the trader
            headline: Market headline (defaults to the current rotation)

        Returns:
            Validated decision, or the fallback hold on any failure
        """
        start = time.monotonic()
        headline = headline or headline_for(datetime.now(UTC), self._interval_minutes)

        system_prompt = self.prompt_builder.build_system_prompt(trader)
        user_prompt = self.prompt_builder.build_user_prompt(
            trader, market, portfolio_value, holdings, headline
        )

        try:
            client = self.client_resolver(
                trader,
                trader.current_balance,
                get_top_assets(market, 10),
            )
            response = await asyncio.wait_for(
                client.generate(system_prompt, user_prompt, json_mode=True),
                timeout=self.timeout,
            )
            decision = self.parser.parse(response.content)
        except asyncio.TimeoutError:
            logger.warning(
                f"Decision timeout for {trader.name} ({trader.model_name}) "
                f"after {self.timeout:.0f}s, holding"
            )
            decision = fallback_decision()
        except AIClientError as e:
            kind = "transient" if e.transient else "persistent"
            logger.warning(f"Decision provider error ({kind}) for {trader.name}: {e.message}")
            decision = fallback_decision()
        except DecisionParseError as e:
            logger.warning(
                f"Invalid decision from {trader.name}: {e.message} | "
                f"raw={e.raw_response[:200]!r}"
            )
            decision = fallback_decision()
        except Exception as e:
            logger.error(f"Unexpected decision error for {trader.name}: {e}", exc_info=True)
            decision = fallback_decision()

        latency = time.monotonic() - start
        get_metrics_collector().track_decision(
            action=decision.action.value,
            model=trader.model_name,
            latency_seconds=latency,
            fallback=decision.is_fallback,
        )
        logger.info(
            f"{trader.name} decided {decision.action.value} {decision.amount} "
            f"{decision.asset} ({latency * 1000:.0f}ms"
            f"{', fallback' if decision.is_fallback else ''})"
        )
        return decision
