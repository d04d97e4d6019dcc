"""
State manager for persisting per-pair counters and committing trades.
"""

import logging
import math
import os
from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..ledger.models import Trade
from ..ledger.trade_ledger import TradeLedger
from .models import PendingCommit, PersistedCounters

logger = logging.getLogger(__name__)


class StateManager:
    """
    Manages the persisted holding value and DCA level of one pair.

    Counters are stored as plain text, one scalar per file, and every write
    goes through a temporary file that atomically replaces the target. Trade
    commits are journaled so a crash between the ledger append and the counter
    write can be replayed on the next start.
    """

    VALUE_SUFFIX = "_value.txt"
    DCA_LEVEL_SUFFIX = "_dca_level.txt"
    TRADE_HISTORY_SUFFIX = "_trade_history.jsonl"
    PRICES_SUFFIX = "_prices.csv"
    JOURNAL_SUFFIX = "_pending.json"

    def __init__(self, pair_name: str, state_dir: Optional[str] = None):
        """
        Initialize state manager with specified directory.

        Args:
            pair_name: Pair name used to key the state files
            state_dir: Directory for state files. If None, uses default location.
        """
        if state_dir is None:
            state_dir = os.path.join(os.path.expanduser("~"), ".spot_dca_bot", "state")

        self._pair_name = pair_name
        self._state_dir = Path(state_dir)
        self._state_dir.mkdir(parents=True, exist_ok=True)

        logger.debug(f"StateManager initialized for pair {pair_name} with directory: {self._state_dir}")

    @property
    def state_dir(self) -> Path:
        return self._state_dir

    def _pair_file(self, suffix: str) -> Path:
        return self._state_dir / f"pair_{self._pair_name}{suffix}"

    def get_value_file_path(self) -> Path:
        """Get the path to the holding-value file."""
        return self._pair_file(self.VALUE_SUFFIX)

    def get_dca_level_file_path(self) -> Path:
        """Get the path to the DCA-level file."""
        return self._pair_file(self.DCA_LEVEL_SUFFIX)

    def get_trade_history_path(self) -> Path:
        """Get the path to the trade history file."""
        return self._pair_file(self.TRADE_HISTORY_SUFFIX)

    def get_price_history_path(self) -> Path:
        """Get the path to the price history file."""
        return self._pair_file(self.PRICES_SUFFIX)

    def get_journal_file_path(self) -> Path:
        """Get the path to the pending-commit journal."""
        return self._pair_file(self.JOURNAL_SUFFIX)

    def read_holding_value(self, create_missing: bool = True) -> float:
        """
        Read the persisted holding value.

        A missing file is created holding zero; unparseable or non-finite
        content reads as 0.0.

        Args:
            create_missing: If False, a missing file reads as 0.0 and is not created

        Returns:
            The holding value in base-asset units
        """
        raw = self._read_or_create(self.get_value_file_path(), "0.0", create_missing)
        try:
            value = float(raw)
        except ValueError:
            logger.warning(f"Malformed holding value {raw!r} in {self.get_value_file_path()}, treating as 0.0")
            return 0.0
        if not math.isfinite(value) or value < 0:
            logger.warning(f"Invalid holding value {value} in {self.get_value_file_path()}, treating as 0.0")
            return 0.0
        return value

    def read_dca_level(self, create_missing: bool = True) -> int:
        """Read the persisted DCA level, treating unparseable content as 0."""
        raw = self._read_or_create(self.get_dca_level_file_path(), "0", create_missing)
        try:
            level = int(raw)
        except ValueError:
            logger.warning(f"Malformed DCA level {raw!r} in {self.get_dca_level_file_path()}, treating as 0")
            return 0
        return max(level, 0)

    def load_counters(self, create_missing: bool = True) -> PersistedCounters:
        """Read both counters."""
        return PersistedCounters(
            holding_value=self.read_holding_value(create_missing),
            dca_level=self.read_dca_level(create_missing)
        )

    def write_holding_value(self, value: float) -> None:
        """Atomically replace the holding value, written as plain decimal text."""
        self._atomic_write(self.get_value_file_path(), format(Decimal(repr(float(value))), "f"))

    def write_dca_level(self, level: int) -> None:
        """Atomically replace the DCA level."""
        self._atomic_write(self.get_dca_level_file_path(), str(int(level)))

    def save_counters(self, counters: PersistedCounters) -> None:
        """Write both counters."""
        self.write_holding_value(counters.holding_value)
        self.write_dca_level(counters.dca_level)
        logger.debug(f"Saved counters: holding={counters.holding_value} dca_level={counters.dca_level}")

    def commit_trade(self, ledger: TradeLedger, trade: Trade, counters: PersistedCounters) -> None:
        """
        Record a trade and the counters it produces as one logical step.

        The pair is written to the journal first, then the trade is appended
        to the ledger, then the counters are replaced, and finally the journal
        is removed. If the process dies part-way, recover() finishes the job.

        Args:
            ledger: Ledger to append the trade to
            trade: The executed trade
            counters: Counter values after the trade
        """
        pending = PendingCommit(trade=trade, counters=counters)
        self._atomic_write(self.get_journal_file_path(), pending.model_dump_json())

        ledger.append(trade)
        self.save_counters(counters)

        self.get_journal_file_path().unlink(missing_ok=True)
        logger.info(f"Committed {trade.kind.value} trade {trade.trade_id}; holding={counters.holding_value:.6f} "
                    f"dca_level={counters.dca_level}")

    def recover(self, ledger: TradeLedger) -> bool:
        """
        Replay a commit interrupted by a crash.

        Args:
            ledger: Loaded ledger to reconcile against the journal

        Returns:
            True if a pending commit was replayed
        """
        journal = self.get_journal_file_path()
        if not journal.exists():
            return False

        try:
            pending = PendingCommit.model_validate_json(journal.read_text(encoding='utf-8'))
        except (ValidationError, ValueError) as e:
            logger.error(f"Discarding unreadable commit journal {journal}: {e}")
            journal.unlink(missing_ok=True)
            return False

        if not ledger.contains(pending.trade.trade_id):
            logger.warning(f"Replaying unrecorded {pending.trade.kind.value} trade {pending.trade.trade_id}")
            ledger.append(pending.trade)

        self.save_counters(pending.counters)
        journal.unlink(missing_ok=True)
        logger.info("Recovered interrupted trade commit from journal")
        return True

    def _read_or_create(self, path: Path, default: str, create_missing: bool = True) -> str:
        if not path.exists():
            if create_missing:
                logger.info(f"State file {path} does not exist, creating it")
                self._atomic_write(path, default)
            return default
        try:
            return path.read_text(encoding='utf-8').strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read state file {path}: {e}")
            return default

    def _atomic_write(self, path: Path, content: str) -> None:
        temp_file = path.with_suffix(path.suffix + '.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        temp_file.replace(path)
