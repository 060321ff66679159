"""
Prompt Builder for AI trading decisions.

System prompt: who the trader is and the exact response contract.
User prompt: account performance, positions with unrealized P/L, the
top assets by volume and one market headline.

The output depends only on its inputs, so the same state always yields
the same prompt.
"""

from datetime import datetime
from typing import Sequence

from ..db.models import PositionDB, TraderDB
from ..models.market import MarketData
from .market_data_cache import get_top_assets

# Rotating headline pool (no live news dependency)
MARKET_HEADLINES: tuple[str, ...] = (
    "Bitcoin sees strong institutional buying",
    "Ethereum network upgrade scheduled",
    "Major exchange reports record trading volume",
    "Crypto market shows resilience amid volatility",
    "Whale accumulation detected in SOL",
    "Market sentiment remains bullish",
    "Technical indicators suggest upward momentum",
    "DeFi protocols report increased activity",
)


def headline_for(moment: datetime, interval_minutes: int = 5) -> str:
    """Headline for the cycle bucket containing `moment`."""
    bucket = int(moment.timestamp() // (max(interval_minutes, 1) * 60))
    return MARKET_HEADLINES[bucket % len(MARKET_HEADLINES)]


def _format_price(price: float) -> str:
    if price >= 1:
        return f"{price:,.2f}"
    return f"{price:.6g}"


class PromptBuilder:
    """
    Builds prompts for AI trading decisions.

    System prompt:
    1. Identity and personality
    2. Action semantics (amount units per action)
    3. Rules
    4. Output format

    User prompt:
    - Account performance
    - Current positions with P/L
    - Market data (top N by volume) and tradable universe size
    - Market headline
    """

    def __init__(self, top_assets: int = 20):
        """
        Initialize prompt builder.

        Args:
            top_assets: Number of assets (ranked by 24h volume) listed in the prompt
        """
        self.top_assets = top_assets

    # ==================== System Prompt ====================

    def build_system_prompt(self, trader: TraderDB) -> str:
        return f"""You are {trader.name}, a professional cryptocurrency trader managing a perpetual futures trading account.

YOUR PERSONALITY & STYLE:
{trader.personality}

TRADING INSTRUCTIONS:
Make ONE trading decision right now:

1. SELECT ASSET: Choose ANY perpetual contract (e.g., BTC, ETH, SOL, AVAX, etc.)
2. CHOOSE ACTION:
   - "buy" = Open or add to long position
   - "sell" = Close or reduce existing position (you must own the asset)
   - "hold" = No action this cycle
3. SPECIFY AMOUNT:
   - If BUYING: Amount in USD to spend (e.g., 50 means spend $50)
   - If SELLING: Quantity of asset to sell (e.g., 0.5 means sell 0.5 BTC)
   - If HOLDING: Set to 0
4. EXPLAIN REASONING: Brief 1-2 sentence explanation

IMPORTANT RULES:
- Your trading style should reflect your personality above
- You CANNOT buy more than your available cash balance
- You CANNOT sell assets you don't own
- Consider your current positions and whether to take profits, cut losses, or hold
- Consider market momentum, trends, and your risk tolerance

Respond ONLY with valid JSON in this exact format:
{{
  "asset": "BTC",
  "action": "buy",
  "amount": 50,
  "reasoning": "Your brief explanation based on market analysis"
}}"""

    # ==================== User Prompt ====================

    def build_user_prompt(
        self,
        trader: TraderDB,
        market: MarketData,
        portfolio_value: float,
        holdings: Sequence[PositionDB],
        headline: str,
    ) -> str:
        sections = [
            self._format_performance(trader, portfolio_value),
            self._format_positions(market, holdings),
            self._format_market(market),
            f"RECENT MARKET NEWS:\n{headline}",
            "Based on the above information, respond with your ONE decision as JSON.",
        ]
        return "\n\n".join(sections)

    def _format_performance(self, trader: TraderDB, portfolio_value: float) -> str:
        initial = trader.initial_balance
        pnl = portfolio_value - initial
        pnl_pct = (pnl / initial * 100) if initial > 0 else 0.0
        return (
            "ACCOUNT PERFORMANCE:\n"
            f"- Starting Balance: ${initial:,.2f}\n"
            f"- Current Portfolio Value: ${portfolio_value:,.2f}\n"
            f"- Profit/Loss: ${pnl:,.2f} ({pnl_pct:.2f}%)\n"
            f"- Available Cash: ${trader.current_balance:,.2f}"
        )

    def _format_positions(
        self, market: MarketData, holdings: Sequence[PositionDB]
    ) -> str:
        if not holdings:
            return "CURRENT POSITIONS:\n   None (all cash)"

        lines = []
        for h in holdings:
            quote = market.get(h.asset)
            # Unpriced asset: mark at cost so P/L reads 0%
            current = quote.price if quote else h.average_buy_price
            pl_pct = (
                (current - h.average_buy_price) / h.average_buy_price * 100
                if h.average_buy_price > 0
                else 0.0
            )
            sign = "+" if pl_pct >= 0 else ""
            lines.append(
                f"   {h.quantity:.4f} {h.asset} @ ${_format_price(h.average_buy_price)} "
                f"(Current: ${_format_price(current)}, P/L: {sign}{pl_pct:.2f}%)"
            )
        return "CURRENT POSITIONS:\n" + "\n".join(lines)

    def _format_market(self, market: MarketData) -> str:
        total = len(market)
        top = get_top_assets(market, self.top_assets)
        lines = []
        for symbol in top:
            quote = market[symbol]
            sign = "+" if quote.change_24h >= 0 else ""
            lines.append(
                f"- {symbol}: ${_format_price(quote.price)} "
                f"(24h: {sign}{quote.change_24h:.2f}%)"
            )
        return (
            f"MARKET DATA - Top {len(top)} by Volume ({total} total assets available):\n"
            + "\n".join(lines)
            + f"\n\nNOTE: You can trade ANY of the {total} perpetual contracts available, "
            "not just those listed above."
        )
