"""Strategy factory keyed by strategy kind.

Fails closed: an unknown kind raises UnknownStrategyError before any agent
state is created. Additional decision providers plug in through register()
without touching the scheduler.
"""

from collections.abc import Callable
from decimal import Decimal

from arena.config import LLMSettings
from arena.exceptions import UnknownStrategyError
from arena.models import StrategyKind
from arena.strategies.base import Strategy
from arena.strategies.dca import DCAStrategy
from arena.strategies.external import ExternalProviderStrategy
from arena.strategies.mean_reversion import MeanReversionStrategy
from arena.strategies.momentum import MomentumStrategy

#: Builds a fresh strategy instance for one agent id.
StrategyBuilder = Callable[[str], Strategy]


class StrategyFactory:
    """Creates one fresh strategy instance per registered agent.

    Args:
        llm_settings: Settings for the external provider (defaults from env).
        initial_cash: Initial balance, shown to the external provider as ROI basis.
    """

    def __init__(
        self,
        llm_settings: LLMSettings | None = None,
        initial_cash: Decimal = Decimal("1000"),
    ) -> None:
        llm = llm_settings if llm_settings is not None else LLMSettings()
        self._builders: dict[str, StrategyBuilder] = {
            StrategyKind.MOMENTUM.value: lambda _agent_id: MomentumStrategy(),
            StrategyKind.DCA.value: lambda _agent_id: DCAStrategy(),
            StrategyKind.MEAN_REVERSION.value: lambda _agent_id: MeanReversionStrategy(),
            StrategyKind.EXTERNAL.value: lambda agent_id: ExternalProviderStrategy(
                agent_id, llm, initial_cash=initial_cash
            ),
        }

    def register(self, kind: str, builder: StrategyBuilder) -> None:
        """Add or replace the builder for a strategy kind."""
        self._builders[kind] = builder

    def available_kinds(self) -> list[str]:
        return list(self._builders)

    def validate(self, kind: str) -> None:
        """Raise UnknownStrategyError if ``kind`` has no builder."""
        if kind not in self._builders:
            raise UnknownStrategyError(
                f"Unknown strategy type: {kind}. "
                f"Must be one of: {', '.join(self._builders)}"
            )

    def create(self, kind: str, agent_id: str) -> Strategy:
        """Build a new strategy instance for ``agent_id``.

        Raises:
            UnknownStrategyError: If ``kind`` has no registered builder.
        """
        self.validate(kind)
        return self._builders[kind](agent_id)
