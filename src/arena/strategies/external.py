"""Language-model-backed decision provider.

Asks an Anthropic model for a JSON trading decision, prompted with the agent's
character file (bio, trading rules) and the current market snapshot. Output
is non-deterministic. When no API key or character file is available, or the
call or parse fails, it falls back to a simple RSI heuristic so the agent
still decides every tick.

Character files live at ``<characters_dir>/<agent_id>.json``:
    {"name": "...", "bio": ["..."], "knowledge": ["..."], "settings": {"model": "..."}}
"""

from __future__ import annotations

import json
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from anthropic import AsyncAnthropic

from arena.config import LLMSettings
from arena.logging import get_logger
from arena.models import Indicators, Portfolio, TradeAction, TradeDecision
from arena.strategies.base import Strategy

logger = get_logger(__name__)

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)

_MIN_PERCENTAGE = Decimal("0.1")
_MAX_PERCENTAGE = Decimal("0.5")

# Fallback heuristic thresholds
_FALLBACK_PERCENTAGE = Decimal("0.3")
_FALLBACK_MIN_CASH = Decimal("50")
_FALLBACK_MIN_ASSET = Decimal("0.1")


def _fmt(value: Decimal | None, places: int = 2) -> str:
    return "n/a" if value is None else f"{value:.{places}f}"


def parse_decision(text: str) -> TradeDecision:
    """Parse a model response into a TradeDecision.

    The first ``{...}`` block is decoded as JSON. Unknown actions become a
    hold; percentages are clamped to [0.1, 0.5].

    Raises:
        ValueError: If no JSON object can be decoded from ``text``.
    """
    match = _JSON_BLOCK.search(text)
    if match is None:
        raise ValueError("No JSON found in response")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("Response JSON is not an object")

    action_raw = str(parsed.get("action") or "HOLD").lower()
    reason = str(parsed.get("reason") or "LLM decision")
    if action_raw not in ("buy", "sell", "hold"):
        return TradeDecision.hold("Invalid action from LLM")
    action = TradeAction(action_raw)
    if action == TradeAction.HOLD:
        return TradeDecision.hold(reason)

    percentage = None
    raw_pct = parsed.get("percentage")
    if isinstance(raw_pct, (int, float)) and not isinstance(raw_pct, bool):
        try:
            percentage = Decimal(str(raw_pct))
        except InvalidOperation:
            percentage = None
        if percentage is not None and percentage.is_finite():
            percentage = max(_MIN_PERCENTAGE, min(_MAX_PERCENTAGE, percentage))
        else:
            percentage = None

    return TradeDecision(action=action, percentage=percentage, reason=reason)


class ExternalProviderStrategy(Strategy):
    """Strategy delegating decisions to a hosted language model.

    Args:
        agent_id: Agent whose character file is loaded.
        settings: LLM provider settings.
        client: Pre-built AsyncAnthropic client (tests inject a mock).
        initial_cash: Basis for the ROI figure shown to the model.
    """

    name = "ExternalProvider"
    kind = "external"

    def __init__(
        self,
        agent_id: str,
        settings: LLMSettings,
        client: Any | None = None,
        initial_cash: Decimal = Decimal("1000"),
    ) -> None:
        super().__init__()
        self._agent_id = agent_id
        self._settings = settings
        self._initial_cash = initial_cash
        self._character: dict | None = None
        self._character_loaded = False

        api_key = settings.api_key.get_secret_value()
        if client is None and api_key:
            client = AsyncAnthropic(api_key=api_key, timeout=settings.timeout_seconds)
        elif client is None:
            logger.warning(
                "llm_api_key_missing",
                agent_id=agent_id,
                note="Decisions will use the RSI fallback.",
            )
        self._client = client

    def _load_character(self) -> dict | None:
        if self._character_loaded:
            return self._character
        self._character_loaded = True

        path = Path(self._settings.characters_dir) / f"{self._agent_id}.json"
        try:
            self._character = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("character_load_failed", agent_id=self._agent_id, error=str(e))
            self._character = None
        return self._character

    async def decide(
        self,
        current_price: Decimal,
        portfolio: Portfolio,
        indicators: Indicators,
    ) -> TradeDecision:
        self._increment_tick()

        character = self._load_character()
        if self._client is None or character is None:
            return self.fallback_decision(portfolio, indicators)

        model = (character.get("settings") or {}).get("model") or self._settings.model
        try:
            response = await self._client.messages.create(
                model=model,
                max_tokens=self._settings.max_tokens,
                temperature=self._settings.temperature,
                system=self._build_system_prompt(character),
                messages=[
                    {
                        "role": "user",
                        "content": self._build_user_prompt(
                            current_price, portfolio, indicators
                        ),
                    }
                ],
            )
            text = "".join(
                getattr(block, "text", "") for block in response.content
            )
            return parse_decision(text)
        except Exception as e:
            logger.warning(
                "llm_decision_failed", agent_id=self._agent_id, error=str(e)
            )
            return self.fallback_decision(portfolio, indicators)

    @staticmethod
    def fallback_decision(portfolio: Portfolio, indicators: Indicators) -> TradeDecision:
        """Simple RSI heuristic used whenever the model cannot answer."""
        rsi = indicators.rsi14
        if rsi is not None and rsi < 30 and portfolio.cash > _FALLBACK_MIN_CASH:
            return TradeDecision(
                action=TradeAction.BUY,
                percentage=_FALLBACK_PERCENTAGE,
                reason="Fallback: RSI oversold",
            )
        if rsi is not None and rsi > 70 and portfolio.asset > _FALLBACK_MIN_ASSET:
            return TradeDecision(
                action=TradeAction.SELL,
                percentage=_FALLBACK_PERCENTAGE,
                reason="Fallback: RSI overbought",
            )
        return TradeDecision.hold("Fallback: No clear signal")

    @staticmethod
    def _build_system_prompt(character: dict) -> str:
        name = character.get("name", "a trading agent")
        bio = " ".join(character.get("bio", []))
        rules = "\n".join(character.get("knowledge", []))
        return (
            f"You are {name}. {bio}\n\n"
            f"Your trading rules:\n{rules}\n\n"
            "You must respond with ONLY valid JSON in this exact format "
            "(no markdown, no explanation):\n"
            '{"action": "BUY", "percentage": 0.5, "reason": "brief explanation"}\n\n'
            "Where:\n"
            '- action: must be exactly "BUY", "SELL", or "HOLD"\n'
            "- percentage: a number between 0.1 and 0.5 (only for BUY/SELL)\n"
            "- reason: a brief explanation of your decision"
        )

    def _build_user_prompt(
        self,
        current_price: Decimal,
        portfolio: Portfolio,
        indicators: Indicators,
    ) -> str:
        value = portfolio.value_at(current_price)
        roi = (value - self._initial_cash) / self._initial_cash * Decimal("100")
        return (
            "Current market data:\n"
            f"- EGLD Price: ${current_price:.2f}\n"
            f"- 20-period EMA: ${_fmt(indicators.ema20)}\n"
            f"- RSI(14): {_fmt(indicators.rsi14, 1)}\n"
            f"- Previous Price: ${_fmt(indicators.previous_price)}\n"
            f"- Portfolio: {portfolio.cash:.2f} USDC, {portfolio.asset:.4f} EGLD\n"
            f"- Portfolio Value: ${value:.2f}\n"
            f"- Current ROI: {roi:.2f}%\n\n"
            "What is your trading decision?"
        )
