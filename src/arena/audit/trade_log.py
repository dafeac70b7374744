"""Append-only trade audit log.

One AuditEntry per executed trade, kept in memory per agent and, when a logs
directory is configured, appended as a JSON line to ``<logs_dir>/<agent_id>.jsonl``.
The log is write-only output: it is never read back on startup.
"""

import json
import threading
from pathlib import Path

from arena.logging import get_logger
from arena.models import AuditEntry, Indicators, Trade

logger = get_logger(__name__)


class TradeAuditLog:
    """Thread-safe append-only audit log.

    Args:
        logs_dir: Directory for per-agent JSONL files. None keeps entries in memory only.
    """

    def __init__(self, logs_dir: str | Path | None = None) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir else None
        self._entries: dict[str, list[AuditEntry]] = {}
        self._lock = threading.Lock()
        if self._logs_dir is not None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)

    def append(self, agent_id: str, trade: Trade, indicators: Indicators) -> AuditEntry:
        """Record one executed trade with the indicator snapshot it was decided on."""
        entry = AuditEntry(
            timestamp=trade.timestamp,
            agent_id=agent_id,
            action=trade.action,
            execution_price=trade.execution_price,
            asset_amount=trade.asset_amount,
            cash_value=trade.cash_value,
            reason=trade.reason,
            ema20=indicators.ema20,
            rsi14=indicators.rsi14,
            portfolio_after=trade.portfolio_after,
            trade_id=trade.id,
        )
        with self._lock:
            self._entries.setdefault(agent_id, []).append(entry)
            if self._logs_dir is not None:
                self._write_line(agent_id, entry)
        return entry

    def _write_line(self, agent_id: str, entry: AuditEntry) -> None:
        path = self._logs_dir / f"{agent_id}.jsonl"
        try:
            with path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry.to_dict()) + "\n")
        except OSError as e:
            # The in-memory entry is already recorded; the file is best-effort output.
            logger.error("audit_log_write_failed", agent_id=agent_id, path=str(path), error=str(e))

    def get_entries(self, agent_id: str) -> list[AuditEntry]:
        """Return a copy of an agent's audit entries, oldest first."""
        with self._lock:
            return list(self._entries.get(agent_id, []))

    def count(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._entries.values())
