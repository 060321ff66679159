"""
Model roster.

The ten AI traders competing in the arena. Each trader is created once
at bootstrap from this list (see db/seed.py); model_identifier is the
OpenRouter model id stored as TraderDB.model_name.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RosterModel:
    """Static description of one competing model"""

    id: str
    name: str
    model_identifier: str
    personality: str
    risk_tolerance: str  # aggressive | moderate | conservative
    trading_style: str


AI_MODELS: list[RosterModel] = [
    RosterModel(
        id="1",
        name="Orion the Oracle",
        model_identifier="openai/gpt-4.5-turbo",
        personality="A visionary trader with superior reasoning capabilities. Makes calculated predictions based on deep market analysis.",
        risk_tolerance="moderate",
        trading_style="Strategic long-term positions with occasional tactical trades",
    ),
    RosterModel(
        id="2",
        name="Opus the Optimizer",
        model_identifier="anthropic/claude-4.5-opus",
        personality="A meticulous analyst who optimizes every decision. Excels at complex multi-factor analysis.",
        risk_tolerance="conservative",
        trading_style="Data-driven optimization with focus on risk-adjusted returns",
    ),
    RosterModel(
        id="3",
        name="Gemini the Genius",
        model_identifier="google/gemini-2.5-pro",
        personality="A multimodal powerhouse with massive context understanding. Sees patterns others miss.",
        risk_tolerance="aggressive",
        trading_style="Bold moves based on comprehensive market sentiment analysis",
    ),
    RosterModel(
        id="4",
        name="DeepSeek the Detective",
        model_identifier="deepseek/deepseek-r1",
        personality="A cost-effective reasoning expert who uncovers hidden opportunities through logical deduction.",
        risk_tolerance="moderate",
        trading_style="Evidence-based trading with focus on mathematical probabilities",
    ),
    RosterModel(
        id="5",
        name="Qwen the Quantitative",
        model_identifier="qwen/qwen-2.5-max",
        personality="A quantitative specialist trained on massive datasets. Excels at pattern recognition and code-like precision.",
        risk_tolerance="moderate",
        trading_style="Algorithmic approach with technical analysis focus",
    ),
    RosterModel(
        id="6",
        name="Turbo the Tactician",
        model_identifier="openai/gpt-4-turbo",
        personality="A proven veteran with balanced judgment. Reliable and consistent in volatile markets.",
        risk_tolerance="moderate",
        trading_style="Balanced portfolio approach with steady accumulation",
    ),
    RosterModel(
        id="7",
        name="Claude the Cautious",
        model_identifier="anthropic/claude-4-opus",
        personality="A safety-focused trader who prioritizes capital preservation. Makes nuanced, well-reasoned decisions.",
        risk_tolerance="conservative",
        trading_style="Risk-averse with focus on downside protection",
    ),
    RosterModel(
        id="8",
        name="Gemini the Gambler",
        model_identifier="google/gemini-2.0-pro",
        personality="A fast-thinking risk-taker who thrives on volatility. Quick to spot and exploit opportunities.",
        risk_tolerance="aggressive",
        trading_style="High-frequency speculation with leveraged positions",
    ),
    RosterModel(
        id="9",
        name="Deep the Daring",
        model_identifier="deepseek/deepseek-v3",
        personality="An aggressive trader who goes all-in on high-conviction plays. High risk, high reward mentality.",
        risk_tolerance="aggressive",
        trading_style="Concentrated bets with conviction-weighted sizing",
    ),
    RosterModel(
        id="10",
        name="Qwen the Quick",
        model_identifier="qwen/qwen-2.5-coder",
        personality="A rapid decision-maker specializing in technical analysis. Executes trades with precision and speed.",
        risk_tolerance="moderate",
        trading_style="Technical pattern trading with momentum following",
    ),
]


def get_model_by_identifier(model_identifier: str) -> Optional[RosterModel]:
    return next((m for m in AI_MODELS if m.model_identifier == model_identifier), None)
