"""
Append-only trade ledger with an open-position view.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from .models import Trade


logger = logging.getLogger(__name__)


class TradeLedger:
    """
    Ordered, append-only record of executed trades for one pair.

    The file holds one JSON record per line. Records are written once and
    never rewritten; insertion order is chronological order.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the ledger backed by the given file.

        Args:
            path: Path to the JSON-lines trade history file
        """
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._trades: List[Trade] = []

        logger.debug(f"TradeLedger initialized with file: {self._path}")

    @property
    def path(self) -> Path:
        return self._path

    @property
    def trades(self) -> List[Trade]:
        """All trades in insertion order."""
        return self._trades.copy()

    def __len__(self) -> int:
        return len(self._trades)

    def load(self) -> List[Trade]:
        """
        Rebuild the in-memory sequence from the ledger file.

        A missing file is created empty. Lines that fail to parse (for example
        a record torn by a crash mid-write) are skipped.

        Returns:
            The loaded trades
        """
        if not self._path.exists():
            logger.info(f"Trade history {self._path} does not exist, creating it")
            self._path.touch()
            self._trades = []
            return []

        trades = []
        skipped = 0
        with open(self._path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    trades.append(Trade.model_validate_json(line))
                except ValidationError as e:
                    skipped += 1
                    logger.warning(f"Skipping unreadable ledger line {line_number} in {self._path}: {e.error_count()} error(s)")

        self._trades = trades
        logger.info(f"Loaded {len(trades)} trades from {self._path}" + (f" ({skipped} skipped)" if skipped else ""))
        return self.trades

    def append(self, trade: Trade) -> None:
        """
        Persist a trade, then add it to the in-memory sequence.

        The record is flushed and fsynced before this method returns.

        Args:
            trade: The trade to record
        """
        prefix = "" if self._ends_cleanly() else "\n"
        with open(self._path, 'a', encoding='utf-8') as f:
            f.write(prefix + trade.to_json_line() + "\n")
            f.flush()
            os.fsync(f.fileno())

        self._trades.append(trade)
        logger.info(f"Recorded {trade.kind.value} trade: in={trade.amount_in:.6f} out={trade.amount_out:.6f} "
                    f"dca_level={trade.dca_level}")

    def _ends_cleanly(self) -> bool:
        """True if the file is empty or ends with a newline."""
        if not self._path.exists():
            return True
        size = self._path.stat().st_size
        if size == 0:
            return True
        with open(self._path, 'rb') as f:
            f.seek(size - 1)
            return f.read(1) == b"\n"

    def last_trade(self) -> Optional[Trade]:
        """The most recently appended trade, if any."""
        return self._trades[-1] if self._trades else None

    def open_position(self) -> List[Trade]:
        """
        Trades since the last full exit.

        Returns:
            The suffix after the last SELL, or every trade when no SELL exists
        """
        for index in range(len(self._trades) - 1, -1, -1):
            if self._trades[index].is_sell:
                return self._trades[index + 1:]
        return self._trades.copy()

    def cost_basis(self) -> float:
        """Total quote currency spent on the open position."""
        return sum(trade.amount_in for trade in self.open_position())

    def contains(self, trade_id: str) -> bool:
        """Check whether a trade with the given id has been recorded."""
        return any(trade.trade_id == trade_id for trade in self._trades)
