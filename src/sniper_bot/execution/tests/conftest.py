"""
Execution layer test fixtures.

The execution layer talks to a Solana RPC node and a venue adapter.
All RPC and venue calls MUST be mocked in tests - never hit a real node.
"""
import pytest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from sniper_bot.execution import (
    BlockhashContext,
    ControllerConfig,
    DirectExecutor,
    ExecutionOutcome,
    PositionController,
    TakeProfitTranche,
    TradeThresholds,
)
from sniper_bot.venue import (
    WSOL_MINT,
    MarketKeys,
    PoolRecord,
    PoolState,
    Quote,
    SwapInstructions,
    TokenAccount,
)


ENTRY_AMOUNT = 1_000_000  # raw quote units paid per buy


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def wallet():
    return Keypair()


@pytest.fixture
def base_mint():
    return Pubkey.new_unique()


@pytest.fixture
def pool_id():
    return Pubkey.new_unique()


@pytest.fixture
def pool_state(base_mint):
    """A decoded pool for base_mint / WSOL."""
    return PoolState(
        base_mint=base_mint,
        quote_mint=WSOL_MINT,
        lp_mint=Pubkey.new_unique(),
        market_id=Pubkey.new_unique(),
        market_program_id=Pubkey.new_unique(),
        base_vault=Pubkey.new_unique(),
        quote_vault=Pubkey.new_unique(),
        open_orders=Pubkey.new_unique(),
        target_orders=Pubkey.new_unique(),
        base_decimals=6,
        quote_decimals=9,
        pool_open_time=1_700_000_000,
    )


@pytest.fixture
def market_keys():
    return MarketKeys(
        event_queue=Pubkey.new_unique(),
        bids=Pubkey.new_unique(),
        asks=Pubkey.new_unique(),
    )


@pytest.fixture
def token_account(base_mint, wallet):
    """Wallet token account holding 1000 base units."""
    return TokenAccount(mint=base_mint, owner=wallet.pubkey(), amount=1000)


@pytest.fixture
def account_id():
    return Pubkey.new_unique()


@pytest.fixture
def blockhash():
    return BlockhashContext(blockhash=Hash.default(), last_valid_block_height=1000)


@pytest.fixture
def thresholds():
    """Stop-loss 20%, tranche one at +50% selling half, tranche two at +100% selling all."""
    return TradeThresholds(
        stop_loss_pct=Decimal("20"),
        take_profit_enabled=True,
        take_profit_1=TakeProfitTranche(Decimal("50"), Decimal("50")),
        take_profit_2=TakeProfitTranche(Decimal("100"), Decimal("100")),
        fee_on_profit_pct=Decimal("10"),
    )


# =============================================================================
# Mock RPC Client Fixtures
# =============================================================================


def rpc_value(value):
    """Wrap a value the way solana-py responses do (response.value)."""
    return SimpleNamespace(value=value)


@pytest.fixture
def mock_rpc_client():
    """Mock solana AsyncClient with a confirmed-by-default happy path."""
    client = MagicMock()

    client.get_latest_blockhash = AsyncMock(
        return_value=rpc_value(
            SimpleNamespace(blockhash=Hash.default(), last_valid_block_height=1000)
        )
    )
    client.get_account_info = AsyncMock(return_value=rpc_value(SimpleNamespace(data=b"")))
    client.send_raw_transaction = AsyncMock(return_value=rpc_value("sig_primary"))
    client.confirm_transaction = AsyncMock(
        return_value=rpc_value([SimpleNamespace(err=None)])
    )

    return client


# =============================================================================
# Mock Collaborator Fixtures
# =============================================================================


@pytest.fixture
def mock_venue():
    """Venue adapter quoting the entry amount back (no gain, no loss)."""
    venue = MagicMock()
    venue.compute_amount_out = AsyncMock(
        return_value=Quote(amount_out=ENTRY_AMOUNT, min_amount_out=ENTRY_AMOUNT // 2)
    )
    venue.build_swap = AsyncMock(return_value=SwapInstructions(instructions=["swap_ix"]))
    return venue


@pytest.fixture
def mock_market_lookup(market_keys):
    lookup = MagicMock()
    lookup.get = AsyncMock(return_value=market_keys)
    return lookup


@pytest.fixture
def mock_pool_lookup(pool_id, pool_state):
    lookup = MagicMock()
    lookup.get = AsyncMock(return_value=PoolRecord(id=pool_id, state=pool_state))
    return lookup


@pytest.fixture
def mock_executor():
    """Direct-style executor that confirms every transaction."""
    executor = MagicMock()
    executor.supports_fee = False
    executor.name = "direct"
    executor.execute_and_confirm = AsyncMock(
        return_value=ExecutionOutcome(confirmed=True, signature="sig_ok")
    )
    return executor


@pytest.fixture
def mock_fee_executor():
    """Fee-skimming-style executor that confirms every transaction."""
    executor = MagicMock()
    executor.supports_fee = True
    executor.name = "fee_skimming"
    executor.execute_and_confirm = AsyncMock(
        return_value=ExecutionOutcome(confirmed=True, signature="sig_ok")
    )
    return executor


@pytest.fixture
def mock_composer():
    """Stands in for compose_transaction so no real signing happens."""
    return MagicMock(return_value=b"raw-tx")


@pytest.fixture
def mock_sleep():
    return AsyncMock()


# =============================================================================
# Controller Fixtures
# =============================================================================


@pytest.fixture
def controller_config(wallet, thresholds):
    return ControllerConfig(
        wallet=wallet,
        quote_mint=WSOL_MINT,
        quote_ata=Pubkey.new_unique(),
        quote_amount=ENTRY_AMOUNT,
        one_token_at_a_time=True,
        max_buy_retries=3,
        max_sell_retries=3,
        thresholds=thresholds,
    )


@pytest.fixture
def make_controller(
    mock_rpc_client,
    mock_market_lookup,
    mock_pool_lookup,
    mock_venue,
    mock_executor,
    controller_config,
    mock_composer,
    mock_sleep,
):
    """Factory building a PositionController with mocked collaborators."""

    def _make(**overrides):
        kwargs = dict(
            client=mock_rpc_client,
            market_lookup=mock_market_lookup,
            pool_lookup=mock_pool_lookup,
            venue=mock_venue,
            executor=mock_executor,
            config=controller_config,
            composer=mock_composer,
            sleep=mock_sleep,
        )
        kwargs.update(overrides)
        return PositionController(**kwargs)

    return _make


@pytest.fixture
def controller(make_controller):
    return make_controller()


@pytest.fixture
def direct_executor(mock_rpc_client):
    return DirectExecutor(mock_rpc_client)
