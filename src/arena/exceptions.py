"""Custom exceptions for the tournament engine.

All engine exceptions live here to avoid circular imports between the
oracle, strategies, ledger and scheduler modules.
"""


class ArenaError(Exception):
    """Base exception for all tournament engine errors."""


class ValidationError(ArenaError):
    """Raised for bad registration input. Nothing is mutated when raised."""


class DuplicateAgentError(ValidationError):
    """Raised when registering an agent id that already exists."""


class UnknownStrategyError(ValidationError):
    """Raised when a strategy kind has no registered builder."""


class AgentNotFoundError(ArenaError):
    """Raised when looking up an agent id that was never registered."""


class PriceSourceError(ArenaError):
    """Raised by a single price source when its fetch or response is unusable."""


class PriceUnavailableError(ArenaError):
    """Raised when every price source failed and no cached sample exists."""


class PerAgentExecutionError(ArenaError):
    """Raised when processing one agent fails during a tick.

    The scheduler isolates it to that agent and treats it as a hold.
    """

    def __init__(self, agent_id: str, message: str) -> None:
        super().__init__(f"{agent_id}: {message}")
        self.agent_id = agent_id


class InvalidDecisionError(ArenaError):
    """Raised when a trade decision or execution price is out of range."""
