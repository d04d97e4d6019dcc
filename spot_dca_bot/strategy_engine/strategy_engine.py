"""
Strategy engine implementation for the entry / exit / average-down loop.
"""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from ..config.models import BotConfig
from ..control.trading_switch import TradingSwitch
from ..exceptions import BotError
from ..execution.interfaces import BalanceProvider, SwapCapability
from ..execution.models import ExecutionOutcome, SwapIntent
from ..execution.retry_executor import RetryExecutor
from ..ledger.models import Trade, TradeKind
from ..ledger.trade_ledger import TradeLedger
from ..models import EngineState, MarketStatus
from ..persistence.models import PersistedCounters
from ..persistence.state_manager import StateManager
from ..price_history.price_history import PriceHistoryStore
from ..risk_analyzer.models import RiskAssessment, RiskLabel
from ..risk_analyzer.risk_analyzer import RiskAnalyzer


logger = logging.getLogger(__name__)


class CycleAction(Enum):
    """What a single strategy cycle ended up doing."""

    BUY = "buy"
    SELL = "sell"
    DCA_BUY = "dca_buy"
    WAIT = "wait"
    SKIP = "skip"
    ABORT = "abort"
    PAUSED = "paused"


class CycleResult:
    """Result of one strategy cycle."""

    def __init__(
        self,
        action: CycleAction,
        state: EngineState,
        reason: str = "",
        trade: Optional[Trade] = None,
        assessment: Optional[RiskAssessment] = None,
        outcome: Optional[ExecutionOutcome] = None,
        quoted_proceeds: Optional[float] = None,
        cost_basis: Optional[float] = None
    ):
        self.action = action
        self.state = state
        self.reason = reason
        self.trade = trade
        self.assessment = assessment
        self.outcome = outcome
        self.quoted_proceeds = quoted_proceeds
        self.cost_basis = cost_basis

    @property
    def traded(self) -> bool:
        return self.trade is not None

    def __repr__(self) -> str:
        return f"CycleResult(action={self.action.value}, state={self.state.value}, reason={self.reason!r})"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StrategyEngine:
    """
    Runs the single-pair trading policy.

    With no open position the engine waits out the post-exit cooldown, checks
    how often history has touched the profit target, and buys a slice of the
    quote balance sized by that risk. While holding it quotes a full exit;
    it sells once the quote clears the profit target over cost basis, and
    averages down when the drawdown reaches the DCA trigger.
    """

    def __init__(
        self,
        config: BotConfig,
        swap: SwapCapability,
        balances: BalanceProvider,
        price_history: PriceHistoryStore,
        state_manager: StateManager,
        ledger: Optional[TradeLedger] = None,
        risk_analyzer: Optional[RiskAnalyzer] = None,
        retry_executor: Optional[RetryExecutor] = None,
        switch: Optional[TradingSwitch] = None,
        notifier: Optional[Callable[[str], None]] = None,
        clock: Callable[[], datetime] = _utc_now,
        sleep: Optional[Callable[[float], None]] = None
    ):
        """
        Initialize the strategy engine.

        Args:
            config: Bot configuration
            swap: Quote / execute capability
            balances: Wallet balance capability
            price_history: Bounded history used for entry risk checks
            state_manager: Persisted counters and commit journal
            ledger: Trade ledger (defaults to the state manager's history file)
            risk_analyzer: Touch-count analyzer (defaults from config)
            retry_executor: Swap retry loop (defaults from config)
            switch: Control channel read at cycle boundaries
            notifier: Optional callback for trade notifications
            clock: Source of the current UTC time
            sleep: Function used to wait between cycles and retries. By default
                cycles wait on the switch and retries use time.sleep
        """
        self.config = config
        self.swap = swap
        self.balances = balances
        self.price_history = price_history
        self.state_manager = state_manager
        self.ledger = ledger or TradeLedger(state_manager.get_trade_history_path())
        self.risk_analyzer = risk_analyzer or RiskAnalyzer(config.risk.bucket_width)
        self.switch = switch or TradingSwitch()
        self._sleep = sleep or self.switch.wait
        # retries keep their fixed delay even after shutdown is requested
        self.retry_executor = retry_executor or RetryExecutor(swap, config.retry, sleep=sleep or time.sleep)
        self._notifier = notifier
        self._clock = clock
        self._last_assessment: Optional[RiskAssessment] = None
        self._started = False
        self.last_result: Optional[CycleResult] = None

    @property
    def base_asset(self) -> str:
        return self.config.pair.base_asset

    @property
    def quote_asset(self) -> str:
        return self.config.pair.quote_asset

    @property
    def state(self) -> EngineState:
        counters = self.state_manager.load_counters(create_missing=False)
        return EngineState.HOLDING if counters.has_position else EngineState.AWAIT_ENTRY

    def start(self) -> None:
        """Load the ledger, replay any interrupted commit and warm the price cache."""
        if self._started:
            return
        self.ledger.load()
        self.state_manager.recover(self.ledger)
        self.price_history.load()
        self._started = True

        counters = self.state_manager.load_counters()
        logger.info(f"Strategy engine started for {self.config.pair.name}: holding={counters.holding_value:.6f} "
                    f"dca_level={counters.dca_level} trades={len(self.ledger)}")

    def run(self, max_cycles: Optional[int] = None) -> int:
        """
        Poll until shutdown is requested (or `max_cycles` cycles have run).

        Trading-disabled cycles are counted but do nothing.

        Returns:
            Number of cycles executed
        """
        self.start()
        logger.info("Starting strategy loop")
        cycles = 0

        while not self.switch.shutdown_requested:
            if self.switch.checkpoint():
                try:
                    self.last_result = self.run_cycle()
                except Exception as e:
                    logger.exception(f"Unexpected error in strategy cycle: {e}")
                    self.last_result = CycleResult(CycleAction.ABORT, self.state, reason=str(e))
            else:
                logger.debug("Trading disabled; skipping cycle")
                self.last_result = CycleResult(CycleAction.PAUSED, self.state, reason="trading disabled")

            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            self._sleep(self.config.strategy.poll_interval_seconds)

        logger.info(f"Strategy loop stopped after {cycles} cycles")
        return cycles

    def run_cycle(self) -> CycleResult:
        """
        Execute one strategy cycle.

        Fetch, quote and parse failures abort only this cycle.

        Returns:
            CycleResult describing what happened
        """
        self.start()
        counters = self.state_manager.load_counters()

        try:
            if counters.has_position:
                result = self._holding_cycle(counters)
            else:
                result = self._entry_cycle(counters)
        except BotError as e:
            state = EngineState.HOLDING if counters.has_position else EngineState.AWAIT_ENTRY
            logger.warning(f"Cycle aborted: {e}")
            result = CycleResult(CycleAction.ABORT, state, reason=str(e))

        return result

    def cooldown_remaining(self, now: Optional[datetime] = None) -> float:
        """Seconds left before a new entry is allowed after the last full exit."""
        last = self.ledger.last_trade()
        if last is None or not last.is_sell:
            return 0.0
        now = now or self._clock()
        elapsed = (now - last.timestamp).total_seconds()
        return max(0.0, self.config.strategy.cooldown_seconds - elapsed)

    def _entry_cycle(self, counters: PersistedCounters) -> CycleResult:
        state = EngineState.AWAIT_ENTRY
        strategy = self.config.strategy

        remaining = self.cooldown_remaining()
        if remaining > 0:
            logger.info(f"Cooldown active ({remaining:.0f}s left). Skipping buy...")
            return CycleResult(CycleAction.SKIP, state, reason="cooldown")

        logger.info("Checking market condition...")
        self.price_history.refresh()
        current_price = self.price_history.latest_price()
        assessment = self.risk_analyzer.assess(self.price_history.closes, current_price, strategy.profit_target_pct)
        self._last_assessment = assessment

        if not assessment.tradeable:
            logger.info("Skipping trade due to high risk")
            return CycleResult(CycleAction.SKIP, state, reason="high risk", assessment=assessment)

        balance = self.balances.balance_of(self.quote_asset)
        size = balance * assessment.size_multiplier
        if assessment.label is RiskLabel.WEAK_ZONE:
            logger.info(f"Weak zone detected. Reducing trade size to {size:.2f}")
        else:
            logger.info(f"Risk acceptable. Using adjusted size: {size:.2f}")

        if size <= 0 or size < strategy.min_notional:
            logger.info(f"Adjusted amount {size:.2f} below minimum {strategy.min_notional:.2f}. Skipping.")
            return CycleResult(CycleAction.SKIP, state, reason="below minimum notional", assessment=assessment)

        outcome = self.retry_executor.execute(
            SwapIntent(input_asset=self.quote_asset, output_asset=self.base_asset, amount=size)
        )
        if not outcome.filled:
            return CycleResult(CycleAction.ABORT, state, reason=f"buy {outcome.status.value}",
                               assessment=assessment, outcome=outcome)

        received = outcome.result.received_amount
        trade = Trade(
            kind=TradeKind.BUY,
            amount_in=size,
            amount_out=received,
            timestamp=self._clock(),
            dca_level=counters.dca_level,
            execution_ref=outcome.result.execution_ref
        )
        self.state_manager.commit_trade(
            self.ledger,
            trade,
            PersistedCounters(holding_value=counters.holding_value + received, dca_level=counters.dca_level)
        )
        self._notify(f"Buy successful! Received {received:.6f} {self.base_asset} in tx {outcome.result.execution_ref}")

        return CycleResult(CycleAction.BUY, state, reason="entry", trade=trade,
                           assessment=assessment, outcome=outcome)

    def _holding_cycle(self, counters: PersistedCounters) -> CycleResult:
        state = EngineState.HOLDING
        strategy = self.config.strategy
        holding = counters.holding_value

        cost_basis = self.ledger.cost_basis()
        logger.info(f"Checking sell conditions. Holding: {holding:.6f} {self.base_asset}, "
                    f"cost basis {cost_basis:.6f} over {len(self.ledger.open_position())} trades")
        if cost_basis <= 0:
            logger.warning("Holding value is set but the ledger has no open cost basis")

        quote = self.swap.quote(self.base_asset, self.quote_asset, holding, strategy.quote_slippage_bps)
        proceeds = quote.expected_out
        target_return = cost_basis * (1.0 + strategy.profit_target_pct / 100.0)
        logger.info(f"Would return {proceeds:.6f} for selling {holding:.6f}; "
                    f"need at least {target_return:.6f} (+{strategy.profit_target_pct}%)")

        if proceeds >= target_return:
            return self._sell(counters, cost_basis, proceeds)

        price_change = 100.0 * (proceeds / cost_basis - 1.0)
        logger.info(f"Price is at {price_change:+.2f}%")

        if price_change <= -strategy.dca_trigger_pct:
            return self._average_down(counters, cost_basis, proceeds)

        return CycleResult(CycleAction.WAIT, state, reason="no exit or dca signal",
                           quoted_proceeds=proceeds, cost_basis=cost_basis)

    def _sell(self, counters: PersistedCounters, cost_basis: float, proceeds: float) -> CycleResult:
        holding = counters.holding_value
        logger.info("Sell opportunity detected")

        outcome = self.retry_executor.execute(
            SwapIntent(input_asset=self.base_asset, output_asset=self.quote_asset, amount=holding)
        )
        if not outcome.filled:
            return CycleResult(CycleAction.ABORT, EngineState.HOLDING, reason=f"sell {outcome.status.value}",
                               outcome=outcome, quoted_proceeds=proceeds, cost_basis=cost_basis)

        received = outcome.result.received_amount
        trade = Trade(
            kind=TradeKind.SELL,
            amount_in=holding,
            amount_out=received,
            timestamp=self._clock(),
            dca_level=0,
            execution_ref=outcome.result.execution_ref
        )
        self.state_manager.commit_trade(self.ledger, trade, PersistedCounters(holding_value=0.0, dca_level=0))

        profit = received - cost_basis
        profit_pct = (profit / cost_basis * 100.0) if cost_basis > 0 else 0.0
        logger.info(f"Sell completed: got {received:.6f} {self.quote_asset}, profit {profit:+.6f} ({profit_pct:+.2f}%)")
        self._notify(f"Sell completed! Got {received:.6f} {self.quote_asset} in tx {outcome.result.execution_ref} "
                     f"(profit {profit:+.6f}, {profit_pct:+.2f}%)")

        return CycleResult(CycleAction.SELL, EngineState.HOLDING, reason="profit target reached", trade=trade,
                           outcome=outcome, quoted_proceeds=proceeds, cost_basis=cost_basis)

    def dca_multiplier(self) -> float:
        """Balance multiplier used to size average-down buys."""
        strategy = self.config.strategy
        if strategy.carry_entry_multiplier and self._last_assessment is not None:
            return self._last_assessment.size_multiplier
        return strategy.dca_multiplier

    def dca_size(self, balance: float, level: int, multiplier: Optional[float] = None) -> float:
        """
        Quote amount invested by the average-down buy at `level` (1-based).

        Each level invests (1 + r) times the fraction of the previous one,
        starting at r, and never more than the whole balance.
        """
        if level < 1:
            raise ValueError("DCA level starts at 1")
        r = self.config.strategy.dca_growth_factor
        if multiplier is None:
            multiplier = self.dca_multiplier()
        fraction = multiplier * r * (1.0 + r) ** (level - 1)
        return min(balance, balance * fraction)

    def _average_down(self, counters: PersistedCounters, cost_basis: float, proceeds: float) -> CycleResult:
        state = EngineState.HOLDING
        new_level = counters.dca_level + 1
        logger.info(f"DCA triggered at level {new_level}. Buying the dip...")

        balance = self.balances.balance_of(self.quote_asset)
        size = self.dca_size(balance, new_level)
        if size <= 0 or size < self.config.strategy.min_notional:
            logger.info(f"DCA amount too small ({size:.2f}). Skipping.")
            return CycleResult(CycleAction.SKIP, state, reason="dca below minimum notional",
                               quoted_proceeds=proceeds, cost_basis=cost_basis)

        outcome = self.retry_executor.execute(
            SwapIntent(input_asset=self.quote_asset, output_asset=self.base_asset, amount=size)
        )
        if not outcome.filled:
            return CycleResult(CycleAction.ABORT, state, reason=f"dca buy {outcome.status.value}",
                               outcome=outcome, quoted_proceeds=proceeds, cost_basis=cost_basis)

        received = outcome.result.received_amount
        trade = Trade(
            kind=TradeKind.BUY,
            amount_in=size,
            amount_out=received,
            timestamp=self._clock(),
            dca_level=new_level,
            execution_ref=outcome.result.execution_ref
        )
        self.state_manager.commit_trade(
            self.ledger,
            trade,
            PersistedCounters(holding_value=counters.holding_value + received, dca_level=new_level)
        )
        self._notify(f"DCA buy successful! Got {received:.6f} {self.base_asset} at level {new_level} "
                     f"in tx {outcome.result.execution_ref}")

        return CycleResult(CycleAction.DCA_BUY, state, reason=f"drawdown reached dca level {new_level}",
                           trade=trade, outcome=outcome, quoted_proceeds=proceeds, cost_basis=cost_basis)

    def market_status(self) -> MarketStatus:
        """
        Summarize the open position and its quoted exit without changing any state.

        Returns:
            MarketStatus for the current holding
        """
        counters = self.state_manager.load_counters(create_missing=False)
        open_trades: List[Trade] = self.ledger.open_position()
        cost_basis = sum(trade.amount_in for trade in open_trades)
        pct = self.config.strategy.profit_target_pct
        target_return = cost_basis * (1.0 + pct / 100.0)

        proceeds = None
        price_change = None
        message = None
        if counters.has_position:
            try:
                quote = self.swap.quote(self.base_asset, self.quote_asset, counters.holding_value,
                                        self.config.strategy.quote_slippage_bps)
                proceeds = quote.expected_out
                price_change = 100.0 * (proceeds / cost_basis - 1.0) if cost_basis > 0 else 0.0
            except BotError as e:
                message = f"Failed to get quote: {e}"
                logger.warning(message)

        return MarketStatus(
            pair=self.config.pair.name,
            state=EngineState.HOLDING if counters.has_position else EngineState.AWAIT_ENTRY,
            holding_value=counters.holding_value,
            dca_level=counters.dca_level,
            open_trades=len(open_trades),
            cost_basis=cost_basis,
            average_entry_price=(cost_basis / counters.holding_value) if counters.has_position else None,
            quoted_proceeds=proceeds,
            target_return=target_return,
            profit_target_pct=pct,
            price_change_pct=price_change,
            trading_enabled=self.switch.is_enabled(),
            message=message
        )

    def _notify(self, message: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier(message)
        except Exception as e:
            logger.warning(f"Failed to send notification: {e}")
