"""
Execution Layer - Position gating, staged exits and transaction submission.

This module provides:
    - PositionController: Buy and sell workflows (use this!)
    - ControllerConfig: Configuration for the controller
    - PositionGate: At most one position being opened at a time
    - ExitLedger: Which take-profit tranches were sold per asset
    - PriceMatcher: Stop-loss / take-profit decision against a live quote
    - TradeThresholds, TakeProfitTranche: Exit thresholds
    - NoSell, SellStopLoss, SellTakeProfit: Price match results
    - DirectExecutor, FeeSkimmingExecutor: Transaction executors
    - ExecutionOutcome: Result of one submission
    - Exceptions: GateError, LedgerError, ExecutorConfigError

Exit Strategy Logic:
    - Stop-loss: sell when proceeds fall strictly below entry - stop_loss_pct
    - Take-profit: sell tranche one above the first gain target, tranche two
      above the second; each tranche sells a percentage of the current balance
    - Fee skimming: take-profit exits send fee_on_profit_pct of the profit to
      a fixed wallet when the fee skimming executor is active

Usage:
    from sniper_bot.execution import PositionController, ControllerConfig

    controller = PositionController(client, market_cache, pool_cache, venue,
                                    executor, ControllerConfig(...))
    if await controller.validate():
        await controller.buy(pool_id, pool_state)
"""
from .controller import ControllerConfig, PositionController
from .executor import (
    DirectExecutor,
    ExecutionOutcome,
    ExecutorConfigError,
    FeeSkimmingExecutor,
    TransactionExecutor,
    create_executor,
)
from .exit_ledger import ExitLedger, LedgerEntry, LedgerError, Tranche, TrancheDecision
from .gate import GateError, PositionGate
from .price_matcher import (
    MatchAction,
    NoSell,
    PriceMatcher,
    PriceMatchResult,
    SellStopLoss,
    SellTakeProfit,
    TakeProfitTranche,
    TradeThresholds,
    fee_for_profit,
    match_price,
)
from .transactions import BlockhashContext, ComputeBudget, compose_transaction, fetch_blockhash

__all__ = [
    # Controller
    "PositionController",
    "ControllerConfig",
    # Gate
    "PositionGate",
    "GateError",
    # Ledger
    "ExitLedger",
    "LedgerEntry",
    "LedgerError",
    "Tranche",
    "TrancheDecision",
    # Price matching
    "PriceMatcher",
    "PriceMatchResult",
    "MatchAction",
    "NoSell",
    "SellStopLoss",
    "SellTakeProfit",
    "TradeThresholds",
    "TakeProfitTranche",
    "match_price",
    "fee_for_profit",
    # Executors
    "TransactionExecutor",
    "DirectExecutor",
    "FeeSkimmingExecutor",
    "ExecutionOutcome",
    "ExecutorConfigError",
    "create_executor",
    # Transactions
    "BlockhashContext",
    "ComputeBudget",
    "compose_transaction",
    "fetch_blockhash",
]
