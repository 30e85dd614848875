"""
Sniper Bot - Main Entry Point

Buys new AMM pools as they open and sells them in up to two take-profit
tranches (or on stop-loss). Pool discovery, pricing and swap encoding are
provided by a venue adapter loaded from VENUE_PLUGIN.

Usage:
    python -m sniper_bot.main [--venue module:factory] [--log-level LEVEL]

Configuration:
    The bot reads configuration from:
    1. Environment variables (see below)
    2. A .env file in the working directory, if present
    3. Command line arguments

Environment Variables:
    PRIVATE_KEY                     Wallet secret key, base58 (required)
    RPC_ENDPOINT                    Solana RPC URL (default: mainnet-beta)
    COMMITMENT_LEVEL                processed / confirmed / finalized (default: confirmed)
    LOG_LEVEL                       Logging level (DEBUG/INFO/WARNING/ERROR)
    VENUE_PLUGIN                    Venue adapter factory as module:callable
    TRANSACTION_EXECUTOR            direct / fee_skimming (default: direct)
    ONE_TOKEN_AT_A_TIME             Single-position mode (default: true)
    PRE_LOAD_EXISTING_MARKETS       Preload all markets quoted in QUOTE_MINT (default: false)
    QUOTE_MINT                      WSOL or USDC (default: WSOL)
    QUOTE_AMOUNT                    Amount spent per buy, in quote units (default: 0.01)
    MAX_BUY_RETRIES                 Buy attempts per pool (default: 10)
    BUY_SLIPPAGE                    Buy slippage percent (default: 20)
    AUTO_BUY_DELAY                  Delay before buying, ms (default: 0)
    AUTO_SELL                       Sell on wallet balance changes (default: true)
    AUTO_SELL_DELAY                 Delay before selling, ms (default: 0)
    MAX_SELL_RETRIES                Sell attempts per tranche (default: 10)
    SELL_SLIPPAGE                   Sell slippage percent (default: 20)
    STOP_LOSS                       Stop-loss percent, 0 disables (default: 20)
    TAKE_PROFIT                     Enable take-profit (default: true)
    TAKE_PROFIT_1_AFTER_GAIN        First tranche gain target percent (default: 50)
    TAKE_PROFIT_1_PERCENTAGE        First tranche sell percent of balance (default: 50)
    TAKE_PROFIT_2_AFTER_GAIN        Second tranche gain target percent (default: 100)
    TAKE_PROFIT_2_PERCENTAGE        Second tranche sell percent of balance (default: 100)
    TAKE_PROFIT_FEE_PERCENTAGE      Fee on take-profit profit, percent (default: 0)
    TAKE_PROFIT_TRANSFER_WALLET_PUBLIC_ADDRESS  Fee recipient (fee_skimming only)
    CUSTOM_FEE                      Attach compute-budget instructions (default: false)
    COMPUTE_UNIT_LIMIT              Compute unit limit (default: 101337)
    COMPUTE_UNIT_PRICE              Compute unit price, micro-lamports (default: 421197)
    CHECK_IF_MINT_IS_RENOUNCED      Reject mints with a mint authority (default: true)
    CHECK_IF_FREEZABLE              Reject mints with a freeze authority (default: false)
    CHECK_IF_BURNED                 Reject pools whose LP is not burned (default: true)
    MIN_POOL_SIZE                   Minimum quote reserve, 0 disables (default: 0)
    MAX_POOL_SIZE                   Maximum quote reserve, 0 disables (default: 0)
    USE_SNIPE_LIST                  Only buy mints from the snipe list (default: false)
    SNIPE_LIST_PATH                 Snipe list file (default: snipe-list.txt)
    SNIPE_LIST_REFRESH_INTERVAL     Snipe list reload interval, ms (default: 30000)
    RUGCHECK_XYZ_CHECK              Check the rugcheck.xyz risk score (default: false)
    RUGCHECK_XYZ_MAX_SCORE          Highest acceptable risk score (default: 0)
"""

from __future__ import annotations

import argparse
import asyncio
import atexit
import fcntl
import importlib
import logging
import os
import signal
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Generator, Optional, Set

# Configure logging before imports
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

from solana.rpc.async_api import AsyncClient  # noqa: E402
from solders.keypair import Keypair  # noqa: E402
from spl.token.instructions import get_associated_token_address  # noqa: E402

from sniper_bot.execution import (  # noqa: E402
    ComputeBudget,
    ControllerConfig,
    PositionController,
    TakeProfitTranche,
    TradeThresholds,
    create_executor,
)
from sniper_bot.venue import (  # noqa: E402
    MarketCache,
    MarketDiscovered,
    PoolCache,
    PoolDiscovered,
    PoolFilterConfig,
    PoolFilters,
    QuoteToken,
    RugcheckClient,
    SnipeList,
    WalletBalanceChanged,
)

DEFAULT_PID_FILE = "/tmp/sniper-bot.pid"
COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")
TRANSACTION_EXECUTORS = ("direct", "fee_skimming")


class SingletonBotError(Exception):
    """Raised when another bot instance is already running."""
    pass


class BotValidationError(Exception):
    """Raised when pre-flight validation fails at startup."""
    pass


@contextmanager
def singleton_lock(pid_file: str = DEFAULT_PID_FILE) -> Generator[None, None, None]:
    """
    Ensure only one bot instance trades from this machine at a time.

    Two instances on one wallet would race each other's buys and sells.

    Raises:
        SingletonBotError: If another instance holds the lock
    """
    pid_path = Path(pid_file)

    existing_pid = None
    try:
        existing_pid = pid_path.read_text().strip()
    except FileNotFoundError:
        pass

    fp = open(pid_path, "a+")

    try:
        fcntl.flock(fp.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        fp.close()
        if existing_pid:
            raise SingletonBotError(
                f"Another bot instance is already running (PID: {existing_pid}). "
                f"Kill it with: kill {existing_pid}"
            )
        raise SingletonBotError("Another bot instance is already running.")

    fp.seek(0)
    fp.truncate()
    fp.write(str(os.getpid()))
    fp.flush()

    def cleanup():
        try:
            fcntl.flock(fp.fileno(), fcntl.LOCK_UN)
            fp.close()
            pid_path.unlink(missing_ok=True)
        except OSError:
            pass

    atexit.register(cleanup)

    try:
        logger.info(f"Acquired singleton lock (PID: {os.getpid()}, file: {pid_file})")
        yield
    finally:
        cleanup()
        atexit.unregister(cleanup)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() == "true"


def _env_decimal(name: str, default: str) -> Decimal:
    value = Decimal(os.environ.get(name, default))
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


@dataclass
class BotConfig:
    """Complete bot configuration."""

    # Wallet and connection
    private_key: str = ""
    rpc_endpoint: str = "https://api.mainnet-beta.solana.com"
    commitment: str = "confirmed"
    venue_plugin: str = ""

    # Executor
    transaction_executor: str = "direct"
    fee_wallet: Optional[str] = None

    # Bot
    one_token_at_a_time: bool = True
    preload_markets: bool = False
    custom_fee: bool = False
    compute_unit_limit: int = 101337
    compute_unit_price: int = 421197

    # Buy
    quote_mint: str = "WSOL"
    quote_amount: Decimal = Decimal("0.01")
    max_buy_retries: int = 10
    buy_slippage: Decimal = Decimal("20")
    auto_buy_delay_ms: int = 0

    # Sell
    auto_sell: bool = True
    auto_sell_delay_ms: int = 0
    max_sell_retries: int = 10
    sell_slippage: Decimal = Decimal("20")
    stop_loss: Decimal = Decimal("20")
    take_profit: bool = True
    take_profit_1_after_gain: Decimal = Decimal("50")
    take_profit_1_percentage: Decimal = Decimal("50")
    take_profit_2_after_gain: Decimal = Decimal("100")
    take_profit_2_percentage: Decimal = Decimal("100")
    take_profit_fee_percentage: Decimal = Decimal("0")

    # Filters
    check_renounced: bool = True
    check_freezable: bool = False
    check_burned: bool = True
    min_pool_size: Decimal = Decimal("0")
    max_pool_size: Decimal = Decimal("0")

    # Snipe list
    use_snipe_list: bool = False
    snipe_list_path: str = "snipe-list.txt"
    snipe_list_refresh_interval_ms: int = 30000

    # Risk score
    rugcheck_check: bool = False
    rugcheck_max_score: float = 0

    quote_token: QuoteToken = field(init=False)

    def __post_init__(self) -> None:
        self.quote_token = QuoteToken.from_symbol(self.quote_mint)

        if self.commitment not in COMMITMENT_LEVELS:
            raise ValueError(
                f"Invalid commitment level {self.commitment}. "
                f"Possible values are {', '.join(COMMITMENT_LEVELS)}"
            )

        if self.transaction_executor not in TRANSACTION_EXECUTORS:
            raise ValueError(
                f"Invalid transaction executor {self.transaction_executor}. "
                f"Possible values are {', '.join(TRANSACTION_EXECUTORS)}"
            )

        if self.max_buy_retries < 1:
            raise ValueError(f"MAX_BUY_RETRIES must be >= 1, got {self.max_buy_retries}")
        if self.max_sell_retries < 1:
            raise ValueError(f"MAX_SELL_RETRIES must be >= 1, got {self.max_sell_retries}")

        if self.transaction_executor == "fee_skimming":
            if self.quote_token.symbol != "WSOL":
                raise ValueError("Fee skimming executor requires the WSOL quote mint")
            if not self.fee_wallet:
                raise ValueError(
                    "TAKE_PROFIT_TRANSFER_WALLET_PUBLIC_ADDRESS is required for fee skimming"
                )

        # Builds and validates the thresholds eagerly
        self.thresholds

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Load configuration from environment variables."""
        return cls(
            private_key=os.environ.get("PRIVATE_KEY", "").strip(),
            rpc_endpoint=os.environ.get("RPC_ENDPOINT", "https://api.mainnet-beta.solana.com"),
            commitment=os.environ.get("COMMITMENT_LEVEL", "confirmed").strip().lower(),
            venue_plugin=os.environ.get("VENUE_PLUGIN", ""),
            transaction_executor=os.environ.get("TRANSACTION_EXECUTOR", "direct").strip().lower(),
            fee_wallet=os.environ.get("TAKE_PROFIT_TRANSFER_WALLET_PUBLIC_ADDRESS") or None,
            one_token_at_a_time=_env_bool("ONE_TOKEN_AT_A_TIME", "true"),
            preload_markets=_env_bool("PRE_LOAD_EXISTING_MARKETS", "false"),
            custom_fee=_env_bool("CUSTOM_FEE", "false"),
            compute_unit_limit=int(os.environ.get("COMPUTE_UNIT_LIMIT", "101337")),
            compute_unit_price=int(os.environ.get("COMPUTE_UNIT_PRICE", "421197")),
            quote_mint=os.environ.get("QUOTE_MINT", "WSOL"),
            quote_amount=_env_decimal("QUOTE_AMOUNT", "0.01"),
            max_buy_retries=int(os.environ.get("MAX_BUY_RETRIES", "10")),
            buy_slippage=_env_decimal("BUY_SLIPPAGE", "20"),
            auto_buy_delay_ms=int(os.environ.get("AUTO_BUY_DELAY", "0")),
            auto_sell=_env_bool("AUTO_SELL", "true"),
            auto_sell_delay_ms=int(os.environ.get("AUTO_SELL_DELAY", "0")),
            max_sell_retries=int(os.environ.get("MAX_SELL_RETRIES", "10")),
            sell_slippage=_env_decimal("SELL_SLIPPAGE", "20"),
            stop_loss=_env_decimal("STOP_LOSS", "20"),
            take_profit=_env_bool("TAKE_PROFIT", "true"),
            take_profit_1_after_gain=_env_decimal("TAKE_PROFIT_1_AFTER_GAIN", "50"),
            take_profit_1_percentage=_env_decimal("TAKE_PROFIT_1_PERCENTAGE", "50"),
            take_profit_2_after_gain=_env_decimal("TAKE_PROFIT_2_AFTER_GAIN", "100"),
            take_profit_2_percentage=_env_decimal("TAKE_PROFIT_2_PERCENTAGE", "100"),
            take_profit_fee_percentage=_env_decimal("TAKE_PROFIT_FEE_PERCENTAGE", "0"),
            check_renounced=_env_bool("CHECK_IF_MINT_IS_RENOUNCED", "true"),
            check_freezable=_env_bool("CHECK_IF_FREEZABLE", "false"),
            check_burned=_env_bool("CHECK_IF_BURNED", "true"),
            min_pool_size=_env_decimal("MIN_POOL_SIZE", "0"),
            max_pool_size=_env_decimal("MAX_POOL_SIZE", "0"),
            use_snipe_list=_env_bool("USE_SNIPE_LIST", "false"),
            snipe_list_path=os.environ.get("SNIPE_LIST_PATH", "snipe-list.txt"),
            snipe_list_refresh_interval_ms=int(
                os.environ.get("SNIPE_LIST_REFRESH_INTERVAL", "30000")
            ),
            rugcheck_check=_env_bool("RUGCHECK_XYZ_CHECK", "false"),
            rugcheck_max_score=float(os.environ.get("RUGCHECK_XYZ_MAX_SCORE", "0")),
        )

    @property
    def thresholds(self) -> TradeThresholds:
        """Get exit thresholds."""
        return TradeThresholds(
            stop_loss_pct=self.stop_loss,
            take_profit_enabled=self.take_profit,
            take_profit_1=TakeProfitTranche(
                after_gain_pct=self.take_profit_1_after_gain,
                sell_pct=self.take_profit_1_percentage,
            ),
            take_profit_2=TakeProfitTranche(
                after_gain_pct=self.take_profit_2_after_gain,
                sell_pct=self.take_profit_2_percentage,
            ),
            fee_on_profit_pct=self.take_profit_fee_percentage,
        )

    @property
    def filter_config(self) -> PoolFilterConfig:
        """Get pool filter configuration."""
        return PoolFilterConfig(
            check_burned=self.check_burned,
            check_renounced=self.check_renounced,
            check_freezable=self.check_freezable,
            min_pool_size=self.quote_token.to_raw(self.min_pool_size),
            max_pool_size=self.quote_token.to_raw(self.max_pool_size),
        )

    def controller_config(self, wallet: Keypair) -> ControllerConfig:
        """Get position controller configuration for a wallet."""
        return ControllerConfig(
            wallet=wallet,
            quote_mint=self.quote_token.mint,
            quote_ata=get_associated_token_address(wallet.pubkey(), self.quote_token.mint),
            quote_amount=self.quote_token.to_raw(self.quote_amount),
            one_token_at_a_time=self.one_token_at_a_time,
            max_buy_retries=self.max_buy_retries,
            buy_slippage=self.buy_slippage,
            auto_buy_delay_ms=self.auto_buy_delay_ms,
            max_sell_retries=self.max_sell_retries,
            sell_slippage=self.sell_slippage,
            auto_sell_delay_ms=self.auto_sell_delay_ms,
            thresholds=self.thresholds,
            risk_check=self.rugcheck_check,
            risk_max_score=self.rugcheck_max_score,
            use_snipe_list=self.use_snipe_list,
            compute_budget=ComputeBudget(
                enabled=self.custom_fee,
                unit_limit=self.compute_unit_limit,
                unit_price=self.compute_unit_price,
            ),
            commitment=self.commitment,
        )


def load_venue_plugin(path: str) -> Callable[..., Any]:
    """
    Resolve a ``module:factory`` path to the venue adapter factory.

    Raises:
        ValueError: If the path is malformed or the factory is not callable
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Venue plugin must look like 'module:factory', got {path!r}")

    module = importlib.import_module(module_name)
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ValueError(f"Venue plugin {path!r} is not callable")
    return factory


class TradingBot:
    """
    Host for the position controller.

    Manages the lifecycle of all components:
    - RPC client
    - Venue adapter (quotes, swap instructions, discovery events)
    - Market / pool caches, filters, risk client, snipe list
    - Position controller and its executor

    Discovery events are routed to the controller as independent tasks.
    """

    def __init__(
        self,
        config: BotConfig,
        venue_factory: Optional[Callable[..., Any]] = None,
    ):
        self.config = config
        self._venue_factory = venue_factory
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._started_at: Optional[float] = None

        # Components (initialized on start)
        self._client: Optional[Any] = None
        self._venue: Optional[Any] = None
        self._wallet: Optional[Keypair] = None
        self._market_cache: Optional[MarketCache] = None
        self._pool_cache: Optional[PoolCache] = None
        self._rugcheck: Optional[RugcheckClient] = None
        self._snipe_list: Optional[SnipeList] = None
        self._controller: Optional[PositionController] = None

        self._tasks: Set[asyncio.Task] = set()

    @property
    def controller(self) -> Optional[PositionController]:
        return self._controller

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def start(self) -> None:
        """Start the bot and run until the event stream ends or shutdown."""
        logger.info("Bot is starting...")

        self._running = True
        self._started_at = time.time()
        self._shutdown_event.clear()
        self._setup_signal_handlers()

        try:
            await self._init_components()

            if not await self._controller.validate():
                raise BotValidationError("Quote token account not found in wallet")

            self._print_details()

            await self._run_loop()
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop the bot gracefully, letting in-flight trades finish."""
        if not self._running:
            return

        logger.info("Shutting down...")
        self._running = False
        self._shutdown_event.set()

        if self._tasks:
            logger.info(f"Waiting for {len(self._tasks)} in-flight trades")
            await asyncio.gather(*self._tasks, return_exceptions=True)

        if self._snipe_list:
            await self._snipe_list.stop()

        if self._rugcheck:
            try:
                await self._rugcheck.close()
            except Exception as e:
                logger.warning(f"Error closing rugcheck client: {e}")

        if self._client:
            try:
                await self._client.close()
            except Exception as e:
                logger.warning(f"Error closing RPC client: {e}")

        logger.info("Shutdown complete")

    async def _init_components(self) -> None:
        config = self.config

        if not config.private_key:
            raise ValueError("PRIVATE_KEY environment variable is required")
        self._wallet = Keypair.from_base58_string(config.private_key)

        self._client = AsyncClient(config.rpc_endpoint, commitment=config.commitment)

        factory = self._venue_factory or load_venue_plugin(config.venue_plugin)
        self._venue = factory(self._client, config)

        self._market_cache = MarketCache(self._client, commitment=config.commitment)
        if config.preload_markets:
            await self._market_cache.init(config.quote_token.mint)
        self._pool_cache = PoolCache()

        filters = None if config.use_snipe_list else PoolFilters(self._client, config.filter_config)

        if config.rugcheck_check:
            self._rugcheck = RugcheckClient()

        if config.use_snipe_list:
            self._snipe_list = SnipeList(
                config.snipe_list_path,
                refresh_interval_seconds=config.snipe_list_refresh_interval_ms / 1000,
            )
            await self._snipe_list.start()

        executor = create_executor(
            config.transaction_executor,
            self._client,
            commitment=config.commitment,
            fee_wallet=config.fee_wallet,
        )

        self._controller = PositionController(
            client=self._client,
            market_lookup=self._market_cache,
            pool_lookup=self._pool_cache,
            venue=self._venue,
            executor=executor,
            config=config.controller_config(self._wallet),
            filters=filters,
            risk_provider=self._rugcheck,
            snipe_list=self._snipe_list,
        )

    async def _run_loop(self) -> None:
        """Consume discovery events until the stream ends or shutdown."""
        consumer = asyncio.create_task(self._consume_events())
        shutdown = asyncio.create_task(self._shutdown_event.wait())

        try:
            done, _ = await asyncio.wait(
                {consumer, shutdown}, return_when=asyncio.FIRST_COMPLETED
            )
            if consumer in done and consumer.exception() is not None:
                logger.error(f"Event stream failed: {consumer.exception()}")
        finally:
            for task in (consumer, shutdown):
                if not task.done():
                    task.cancel()
            await asyncio.gather(consumer, shutdown, return_exceptions=True)

    async def _consume_events(self) -> None:
        async for event in self._venue.stream():
            if not self._running:
                break
            await self.handle_event(event)

    async def handle_event(self, event: Any) -> None:
        """Route one discovery event; trades run as background tasks."""
        try:
            if isinstance(event, MarketDiscovered):
                self._market_cache.save(str(event.market_id), event.keys)

            elif isinstance(event, PoolDiscovered):
                mint = str(event.state.base_mint)
                exists = await self._pool_cache.get(mint)
                if exists is None and event.state.pool_open_time > int(self._started_at or 0):
                    await self._pool_cache.save(str(event.pool_id), event.state)
                    self._spawn(self._controller.buy(event.pool_id, event.state))

            elif isinstance(event, WalletBalanceChanged):
                if event.account.mint == self.config.quote_token.mint:
                    return
                if not self.config.auto_sell:
                    return
                self._spawn(self._controller.sell(event.account_id, event.account))

            else:
                logger.debug(f"Ignoring unknown event {type(event).__name__}")
        except Exception as e:
            logger.error(f"Error handling event {type(event).__name__}: {e}")

    def _spawn(self, coro: Any) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _print_details(self) -> None:
        config = self.config
        controller_config = self._controller.config

        logger.info("------- CONFIGURATION START -------")
        logger.info(f"Wallet: {self._wallet.pubkey()}")

        logger.info("- Bot -")
        logger.info(f"Using {self._controller.executor.name} executor")
        logger.info(f"Custom fee: {config.custom_fee}")
        logger.info(f"Compute unit limit: {config.compute_unit_limit}")
        logger.info(f"Compute unit price (micro lamports): {config.compute_unit_price}")
        logger.info(f"Single token at a time: {config.one_token_at_a_time}")
        logger.info(f"Pre load existing markets: {config.preload_markets}")

        logger.info("- Buy -")
        logger.info(f"Buy amount: {config.quote_amount} {config.quote_token.symbol}")
        logger.info(f"Auto buy delay: {config.auto_buy_delay_ms} ms")
        logger.info(f"Max buy retries: {config.max_buy_retries}")
        logger.info(f"Buy slippage: {config.buy_slippage}%")

        logger.info("- Sell -")
        logger.info(f"Auto sell: {config.auto_sell}")
        logger.info(f"Auto sell delay: {config.auto_sell_delay_ms} ms")
        logger.info(f"Max sell retries: {config.max_sell_retries}")
        logger.info(f"Sell slippage: {config.sell_slippage}%")
        logger.info(f"Take profit: {config.take_profit}")
        logger.info(f"Take profit after gain - first: {config.take_profit_1_after_gain}%")
        logger.info(f"Take profit percentage - first: {config.take_profit_1_percentage}%")
        logger.info(f"Take profit after gain - second: {config.take_profit_2_after_gain}%")
        logger.info(f"Take profit percentage - second: {config.take_profit_2_percentage}%")
        logger.info(f"Take profit fee: {config.take_profit_fee_percentage}%")
        logger.info(f"Stop loss: {config.stop_loss}%")

        logger.info("- Risk score -")
        logger.info(f"Rugcheck.xyz check: {config.rugcheck_check}")
        logger.info(f"Rugcheck.xyz max score: {config.rugcheck_max_score}")

        logger.info("- Snipe list -")
        logger.info(f"Snipe list: {config.use_snipe_list}")
        logger.info(f"Snipe list refresh interval: {config.snipe_list_refresh_interval_ms} ms")

        logger.info("- Filters -")
        if controller_config.use_snipe_list:
            logger.info("Filters are disabled when snipe list is on")
        else:
            logger.info(f"Check renounced: {config.check_renounced}")
            logger.info(f"Check freezable: {config.check_freezable}")
            logger.info(f"Check burned: {config.check_burned}")
            logger.info(f"Min pool size: {config.min_pool_size}")
            logger.info(f"Max pool size: {config.max_pool_size}")

        logger.info("------- CONFIGURATION END -------")
        logger.info("Bot is running! Press CTRL + C to stop it.")

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def handle_signal(sig):
            logger.info(f"Received signal {sig}")
            self._shutdown_event.set()

        try:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))
        except (NotImplementedError, RuntimeError):
            # Not supported on Windows or outside the main thread
            pass


def load_env_file(path: str = ".env") -> None:
    """Load environment variables from .env file if it exists."""
    env_path = Path(path)
    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, _, value = line.partition("=")
                    value = value.strip().strip('"').strip("'")
                    os.environ.setdefault(key.strip(), value)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="AMM Sniper Bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--venue",
        type=str,
        help="Venue adapter factory as module:callable (overrides VENUE_PLUGIN)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level",
    )
    return parser.parse_args(argv)


async def main_async(args: argparse.Namespace) -> int:
    """Async main function."""
    try:
        config = BotConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if args.venue:
        config.venue_plugin = args.venue

    if not config.private_key:
        logger.error("PRIVATE_KEY environment variable is required")
        return 1

    if not config.venue_plugin:
        logger.error("VENUE_PLUGIN (or --venue) is required")
        return 1

    bot = TradingBot(config)

    try:
        await bot.start()
        return 0
    except BotValidationError as e:
        logger.error(f"{e}. Bot is exiting...")
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


def main() -> int:
    """Main entry point."""
    load_env_file()

    args = parse_args()

    if args.log_level:
        logging.getLogger().setLevel(getattr(logging, args.log_level))

    try:
        with singleton_lock():
            try:
                return asyncio.run(main_async(args))
            except KeyboardInterrupt:
                return 0
    except SingletonBotError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
