"""
Decision Parser for AI responses.

Parses and validates the single trading decision a model returns.
Handles markdown fences, smart quotes and prose around the JSON.
"""

import json
import logging
import math
import re
from typing import Any, Optional

from pydantic import ValidationError

from ..models.decision import TradeAction, TradingDecision

logger = logging.getLogger(__name__)


class DecisionParseError(Exception):
    """Error parsing AI decision response"""

    def __init__(self, message: str, raw_response: str = ""):
        self.message = message
        self.raw_response = raw_response
        super().__init__(message)


class DecisionParser:
    """
    Parses AI responses into a validated TradingDecision.

    Handles:
    - JSON extraction from various formats
    - Smart quote fixes
    - Field validation (asset, action, amount)

    Business rules (cash, holdings) are not checked here; that is the
    ledger's job.
    """

    JSON_BLOCK_PATTERN = re.compile(
        r"```(?:json)?\s*\n?([\s\S]*?)\n?```", re.IGNORECASE
    )

    VALID_ACTIONS = {a.value for a in TradeAction}

    SMART_QUOTES = str.maketrans({"\u201c": "\"", "\u201d": "\"", "\u2018": "'", "\u2019": "'"})

    _decoder = json.JSONDecoder()

    def parse(self, raw_response: str) -> TradingDecision:
        """
        Parse AI response into TradingDecision.

        Args:
            raw_response: Raw AI response string

        Returns:
            Validated decision with uppercase asset

        Raises:
            DecisionParseError: If parsing or validation fails
        """
        if not raw_response or not raw_response.strip():
            raise DecisionParseError("Empty response", raw_response)

        cleaned = self._fix_encoding(raw_response)

        data = self._extract_json(cleaned)
        if data is None:
            raise DecisionParseError("No valid JSON found in response", raw_response)

        try:
            return self._build_decision(self._unwrap(data), raw_response)
        except ValidationError as e:
            raise DecisionParseError(f"Validation error: {e}", raw_response)

    def _fix_encoding(self, text: str) -> str:
        """Replace typographic quotes models sometimes emit"""
        return text.translate(self.SMART_QUOTES)

    def _extract_json(self, text: str) -> Optional[Any]:
        """
        Find the decision payload in a reply.

        Order: the whole reply, a fenced ```json block, then the first
        position in the text where a JSON object decodes. Returns the
        decoded value, or None.
        """
        text = text.strip()
        candidates = [text]
        match = self.JSON_BLOCK_PATTERN.search(text)
        if match:
            candidates.append(match.group(1).strip())

        for candidate in candidates:
            try:
                return json.loads(candidate)
            except json.JSONDecodeError:
                continue

        start = text.find("{")
        while start >= 0:
            try:
                data, _ = self._decoder.raw_decode(text, start)
                return data
            except json.JSONDecodeError:
                start = text.find("{", start + 1)

        logger.warning(
            f"[DecisionParser] No JSON object in reply "
            f"(length={len(text)}), preview: {text[:200]!r}"
        )
        return None

    def _unwrap(self, data: Any) -> dict:
        """Accept {"decision": {...}} and single-element lists"""
        if isinstance(data, list) and len(data) == 1:
            data = data[0]
        if isinstance(data, dict) and isinstance(data.get("decision"), dict):
            data = data["decision"]
        if not isinstance(data, dict):
            raise DecisionParseError(
                f"Expected a JSON object, got {type(data).__name__}", str(data)
            )
        return data

    def _build_decision(self, data: dict, raw_response: str) -> TradingDecision:
        asset = data.get("asset")
        if not isinstance(asset, str) or not asset.strip():
            raise DecisionParseError(f"Invalid asset: {asset!r}", raw_response)

        action = data.get("action")
        if not isinstance(action, str) or action.strip().lower() not in self.VALID_ACTIONS:
            raise DecisionParseError(f"Invalid action: {action!r}", raw_response)

        amount = data.get("amount")
        # bool is an int subclass; strings are not accepted as numbers
        if (
            isinstance(amount, bool)
            or not isinstance(amount, (int, float))
            or not math.isfinite(amount)
            or amount < 0
        ):
            raise DecisionParseError(f"Invalid amount: {amount!r}", raw_response)

        reasoning = data.get("reasoning")
        if not isinstance(reasoning, str):
            reasoning = "" if reasoning is None else str(reasoning)

        return TradingDecision(
            asset=asset,
            action=TradeAction(action.strip().lower()),
            amount=float(amount),
            reasoning=reasoning.strip(),
        )
