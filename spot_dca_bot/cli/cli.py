"""
Command-line interface implementation.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from ..config import BotConfig, ConfigurationManager
from ..control import RemoteCommandHandler, RemoteControlListener
from ..exceptions import ConfigurationError
from ..execution import PaperSwapExecutor
from ..ledger import Trade, TradeLedger
from ..models import MarketStatus
from ..persistence import PersistedCounters, StateManager
from ..price_history import PriceHistoryStore, YFinancePriceFeed
from ..strategy_engine import CycleResult, StrategyEngine


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_engine(config: BotConfig, state_manager: StateManager = None, notifier=None) -> StrategyEngine:
    """
    Wire a strategy engine that trades against the paper executor.

    The simulated base balance starts at least at the persisted holding so an
    open position carried over from a previous run can still be sold.
    """
    state_manager = state_manager or StateManager(config.pair.name, config.state_dir)
    store = PriceHistoryStore(
        YFinancePriceFeed(),
        config.pair.price_symbol,
        timeframe_minutes=config.pair.timeframe_minutes,
        max_samples=config.pair.history_limit,
        path=state_manager.get_price_history_path()
    )

    def reference_price() -> float:
        store.refresh()
        return store.latest_price()

    holding = state_manager.read_holding_value(create_missing=False)
    executor = PaperSwapExecutor(
        config.pair.base_asset,
        config.pair.quote_asset,
        price_source=reference_price,
        starting_quote_balance=config.paper.starting_quote_balance,
        starting_base_balance=max(config.paper.starting_base_balance, holding)
    )
    return StrategyEngine(config, executor, executor, store, state_manager, notifier=notifier)


def build_stdin_listener(engine: StrategyEngine, stream: Optional[TextIO] = None,
                         send_message=print) -> RemoteControlListener:
    """
    Accept remote commands typed on stdin while the strategy loop runs.

    Each line is one command (/status, /start_trading, /stop_trading or
    /market_status). Replies go to `send_message`.
    """
    if stream is None:
        stream = sys.stdin

    def fetch_commands() -> List[str]:
        line = stream.readline()
        return [line] if line.strip() else []

    handler = RemoteCommandHandler(engine.switch, status_provider=engine.market_status)
    return RemoteControlListener(handler, fetch_commands, send_message)


def format_cycle_result(result: CycleResult) -> str:
    """Format a single cycle result for display."""
    lines = []
    lines.append(f"\n🎯 CYCLE RESULT - {result.action.value.upper()}")
    lines.append("=" * 50)
    lines.append(f"State: {result.state.value}")
    lines.append(f"Reason: {result.reason or '-'}")

    if result.assessment is not None:
        a = result.assessment
        lines.append(f"Risk: {a.label.value} ({a.touch_count} touches, size x{a.size_multiplier:.2f})")
    if result.quoted_proceeds is not None:
        lines.append(f"Quoted Proceeds: {result.quoted_proceeds:.6f}")
        lines.append(f"Cost Basis: {result.cost_basis:.6f}")
    if result.outcome is not None:
        lines.append(f"Execution: {result.outcome.status.value} after {result.outcome.attempts} attempts")
    if result.traded:
        t = result.trade
        lines.append(f"Trade: {t.kind.value} {t.amount_in:.6f} -> {t.amount_out:.6f} ({t.execution_ref})")

    return "\n".join(lines)


def format_position_status(config: BotConfig, counters: PersistedCounters, open_trades: List[Trade]) -> str:
    """Format the persisted position for display."""
    lines = []
    lines.append(f"\n📊 POSITION STATUS - {config.pair.name}")
    lines.append("=" * 50)
    if not counters.has_position:
        lines.append("No open position.")
        lines.append(f"DCA Level: {counters.dca_level}")
        return "\n".join(lines)

    cost_basis = sum(t.amount_in for t in open_trades)
    lines.append(f"Holding: {counters.holding_value:.6f}")
    lines.append(f"DCA Level: {counters.dca_level}")
    lines.append(f"Open Trades: {len(open_trades)}")
    lines.append(f"Cost Basis: {cost_basis:.6f}")
    lines.append(f"Average Entry Price: {cost_basis / counters.holding_value:.6f}")
    lines.append(f"Target Return: {cost_basis * (1 + config.strategy.profit_target_pct / 100):.6f} "
                 f"(+{config.strategy.profit_target_pct}%)")
    return "\n".join(lines)


def format_market_status_report(status: MarketStatus) -> str:
    """Format a market status summary for display."""
    lines = []
    lines.append(f"\n🔍 MARKET STATUS - {status.pair}")
    lines.append("=" * 50)
    lines.append(f"State: {status.state.value}")
    lines.append(f"Trading Enabled: {'✅ YES' if status.trading_enabled else '❌ NO'}")
    lines.append(f"Holding: {status.holding_value:.6f}")
    lines.append(f"DCA Level: {status.dca_level}")

    if status.holding_value > 0:
        lines.append(f"Cost Basis: {status.cost_basis:.6f} over {status.open_trades} trades")
        lines.append(f"Target Return: {status.target_return:.6f} (+{status.profit_target_pct}%)")
        if status.quoted_proceeds is not None:
            lines.append(f"Quoted Proceeds: {status.quoted_proceeds:.6f}")
            lines.append(f"Price Change: {status.price_change_pct:+.2f}%")
            lines.append(f"Sell Ready: {'✅ YES' if status.sell_ready else '❌ NO'}")
    if status.message:
        lines.append(f"⚠️  {status.message}")

    return "\n".join(lines)


def format_ledger(trades: List[Trade], limit: int = 20) -> str:
    """Format the trade history as a table."""
    lines = []
    lines.append("\n💰 TRADE HISTORY")
    lines.append("=" * 80)
    if not trades:
        lines.append("No trades recorded.")
        return "\n".join(lines)

    lines.append(f"{'Time':<20} {'Kind':<6} {'In':>16} {'Out':>16} {'Level':>6}")
    lines.append("-" * 80)
    for trade in trades[-limit:]:
        level = "-" if trade.dca_level is None else str(trade.dca_level)
        lines.append(f"{trade.timestamp.strftime('%Y-%m-%d %H:%M:%S'):<20} {trade.kind.value:<6} "
                     f"{trade.amount_in:>16.6f} {trade.amount_out:>16.6f} {level:>6}")
    if len(trades) > limit:
        lines.append(f"... and {len(trades) - limit} earlier trades")
    return "\n".join(lines)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Spot DCA Bot - Risk-sized entries, average-down buys and profit-target exits"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level"
    )

    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit"
    )

    parser.add_argument(
        "--run",
        action="store_true",
        help="Run the strategy loop against the paper executor until interrupted"
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single strategy cycle and print its result"
    )

    parser.add_argument(
        "--stdin-control",
        action="store_true",
        help="With --run, read remote commands from stdin and print trade notifications"
    )

    parser.add_argument(
        "--max-cycles",
        type=int,
        help="Stop the strategy loop after this many cycles (use with --run)"
    )

    parser.add_argument(
        "--status",
        action="store_true",
        help="Show the persisted position without contacting any market"
    )

    parser.add_argument(
        "--market-status",
        action="store_true",
        help="Show the open position with a quoted exit"
    )

    parser.add_argument(
        "--ledger",
        action="store_true",
        help="Show the recorded trade history"
    )

    return parser


def main() -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        # Validate config file exists if specified
        if args.config:
            config_path = Path(args.config)
            if not config_path.exists():
                logger.error(f"Configuration file not found: {args.config}")
                sys.exit(1)

        if args.max_cycles is not None and args.max_cycles < 1:
            logger.error("--max-cycles must be at least 1")
            sys.exit(1)

        config_manager = ConfigurationManager()
        try:
            config = config_manager.load_config(args.config)
        except ConfigurationError as e:
            logger.error(str(e))
            sys.exit(1)

        logger.info(f"Loaded configuration for pair: {config.pair.name}")
        logger.info(f"Profit target: {config.strategy.profit_target_pct}%")
        logger.info(f"DCA trigger: {config.strategy.dca_trigger_pct}%")

        if args.validate_config:
            logger.info("Configuration validation successful")
            return

        state_manager = StateManager(config.pair.name, config.state_dir)

        if args.status:
            ledger = TradeLedger(state_manager.get_trade_history_path())
            ledger.load()
            counters = state_manager.load_counters(create_missing=False)
            print(format_position_status(config, counters, ledger.open_position()))

        elif args.ledger:
            ledger = TradeLedger(state_manager.get_trade_history_path())
            print(format_ledger(ledger.load()))

        elif args.market_status:
            engine = build_engine(config, state_manager)
            engine.ledger.load()
            print(format_market_status_report(engine.market_status()))

        elif args.once:
            engine = build_engine(config, state_manager)
            print(format_cycle_result(engine.run_cycle()))

        elif args.run:
            engine = build_engine(config, state_manager, notifier=print if args.stdin_control else None)
            listener = build_stdin_listener(engine) if args.stdin_control else None
            if listener is not None:
                listener.start()
            try:
                cycles = engine.run(max_cycles=args.max_cycles)
            except KeyboardInterrupt:
                engine.switch.request_shutdown()
                logger.info("Interrupted; stopping after the current cycle")
                return
            finally:
                if listener is not None:
                    listener.stop(timeout=0)
            logger.info(f"Completed {cycles} cycles")

        else:
            # Default: show help
            parser.print_help()

    except Exception as e:
        logger.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
