"""
Transaction executors: submit a signed transaction and wait for confirmation.

Confirmation is bounded by the blockhash validity window: once the chain
passes the blockhash's last valid block height, the RPC client gives up
and the outcome is "not confirmed", never a hang.

Variants:
    - DirectExecutor: submit the transaction, report its outcome.
    - FeeSkimmingExecutor: submit the transaction, then always send one
      fee transfer to a fixed wallet when a fee is given. Only the primary
      outcome is reported; the fee transfer is best-effort and never retried.

The variant is chosen once at startup by create_executor(). Callers check
the supports_fee capability instead of inspecting the executor's type.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from solana.rpc.commitment import Confirmed
from solana.rpc.core import UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer

from .transactions import BlockhashContext, compose_transaction

logger = logging.getLogger(__name__)


class ExecutorConfigError(Exception):
    """Raised when an executor cannot be built from configuration."""


@dataclass(frozen=True)
class ExecutionOutcome:
    """
    Result of one submission.

    confirmed=False without an error means the transaction was sent but not
    confirmed in time. A populated error means the chain rejected it.
    """

    confirmed: bool
    signature: Optional[str] = None
    error: Optional[str] = None


class TransactionExecutor:
    """Shared submit/confirm plumbing over a solana AsyncClient."""

    supports_fee: bool = False
    name: str = "base"

    def __init__(self, client: Any, commitment: str = Confirmed) -> None:
        self._client = client
        self._commitment = commitment

    async def execute_and_confirm(
        self,
        transaction: Any,
        payer: Keypair,
        blockhash: BlockhashContext,
        fee: Optional[int] = None,
    ) -> ExecutionOutcome:
        raise NotImplementedError

    async def _send(self, transaction: Any) -> Any:
        """Submit raw bytes; returns the signature as reported by the RPC."""
        logger.debug("Executing transaction...")
        response = await self._client.send_raw_transaction(
            bytes(transaction),
            opts=TxOpts(skip_confirmation=True, preflight_commitment=self._commitment),
        )
        return response.value

    async def _confirm(self, signature: Any, blockhash: BlockhashContext) -> ExecutionOutcome:
        logger.debug(f"Confirming transaction {signature}...")
        try:
            response = await self._client.confirm_transaction(
                signature,
                self._commitment,
                last_valid_block_height=blockhash.last_valid_block_height,
            )
        except UnconfirmedTxError as e:
            logger.debug(f"Transaction {signature} not confirmed: {e}")
            return ExecutionOutcome(confirmed=False, signature=str(signature))

        statuses = response.value or []
        status = statuses[0] if statuses else None
        if status is None:
            return ExecutionOutcome(confirmed=False, signature=str(signature))
        if status.err is not None:
            return ExecutionOutcome(
                confirmed=False, signature=str(signature), error=str(status.err)
            )
        return ExecutionOutcome(confirmed=True, signature=str(signature))


class DirectExecutor(TransactionExecutor):
    """Submits exactly one transaction and reports its outcome."""

    name = "direct"

    async def execute_and_confirm(
        self,
        transaction: Any,
        payer: Keypair,
        blockhash: BlockhashContext,
        fee: Optional[int] = None,
    ) -> ExecutionOutcome:
        signature = await self._send(transaction)
        return await self._confirm(signature, blockhash)


class FeeSkimmingExecutor(TransactionExecutor):
    """
    Submits the primary transaction, then transfers a fee to a fixed wallet.

    The fee transfer happens whether or not the primary confirmed. It is
    sent as a separate system transfer in lamports, so fee skimming only
    makes sense with a WSOL quote token.
    """

    supports_fee = True
    name = "fee_skimming"

    def __init__(
        self,
        client: Any,
        fee_wallet: Pubkey,
        commitment: str = Confirmed,
    ) -> None:
        super().__init__(client, commitment)
        self._fee_wallet = fee_wallet

    @property
    def fee_wallet(self) -> Pubkey:
        return self._fee_wallet

    async def execute_and_confirm(
        self,
        transaction: Any,
        payer: Keypair,
        blockhash: BlockhashContext,
        fee: Optional[int] = None,
    ) -> ExecutionOutcome:
        signature = await self._send(transaction)

        try:
            outcome = await self._confirm(signature, blockhash)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Error confirming transaction {signature}: {e}")
            outcome = ExecutionOutcome(confirmed=False, signature=str(signature), error=str(e))

        if fee:
            await self._transfer_fee(payer, blockhash, fee)

        return outcome

    async def _transfer_fee(self, payer: Keypair, blockhash: BlockhashContext, fee: int) -> None:
        logger.debug(f"Building fee transaction for {fee} lamports...")
        try:
            instruction = transfer(
                TransferParams(
                    from_pubkey=payer.pubkey(),
                    to_pubkey=self._fee_wallet,
                    lamports=fee,
                )
            )
            fee_tx = compose_transaction(payer, [instruction], blockhash)
            fee_signature = await self._send(fee_tx)
            logger.debug(f"Confirming fee transaction {fee_signature}...")
            fee_outcome = await self._confirm(fee_signature, blockhash)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Fee transfer of {fee} lamports failed: {e}")
            return

        if not fee_outcome.confirmed:
            logger.warning(
                f"Fee transfer {fee_outcome.signature} not confirmed: {fee_outcome.error}"
            )


def create_executor(
    kind: str,
    client: Any,
    commitment: str = Confirmed,
    fee_wallet: Optional[str] = None,
) -> TransactionExecutor:
    """
    Build the executor named in configuration.

    Args:
        kind: "direct" or "fee_skimming"
        client: solana AsyncClient
        commitment: Commitment used for preflight and confirmation
        fee_wallet: Base58 fee recipient, required for fee skimming
    """
    normalized = kind.strip().lower()

    if normalized == DirectExecutor.name:
        return DirectExecutor(client, commitment)

    if normalized == FeeSkimmingExecutor.name:
        if not fee_wallet:
            raise ExecutorConfigError("Fee skimming executor requires a fee wallet address")
        try:
            wallet = Pubkey.from_string(fee_wallet)
        except Exception as e:
            raise ExecutorConfigError(f"Invalid fee wallet address {fee_wallet}: {e}") from e
        return FeeSkimmingExecutor(client, wallet, commitment)

    raise ExecutorConfigError(
        f'Unknown transaction executor "{kind}". Supported values are direct and fee_skimming'
    )
