"""Market data models"""

from pydantic import BaseModel, Field


class MarketQuote(BaseModel):
    """Current price of one asset plus best-effort 24h enrichment"""
    price: float = Field(..., gt=0, description="Current mid price in USD")
    change_24h: float = Field(default=0.0, description="24h change in percent")
    volume_24h: float = Field(default=0.0, ge=0, description="24h volume in USD")


# Symbol -> quote, e.g. {"BTC": MarketQuote(price=68432.12, ...)}
MarketData = dict[str, MarketQuote]
