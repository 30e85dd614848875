"""
Transaction assembly helpers.

Instruction order is fixed: compute-budget instructions (unit price, then
unit limit) when custom fees are on, followed by the venue's swap
instructions exactly as the builder returned them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.transaction import VersionedTransaction


@dataclass(frozen=True)
class BlockhashContext:
    """A recent blockhash and the last block height it is valid for."""

    blockhash: Hash
    last_valid_block_height: int


@dataclass(frozen=True)
class ComputeBudget:
    """Priority fee settings. Disabled budgets add no instructions."""

    enabled: bool = False
    unit_limit: int = 101337
    unit_price: int = 421197  # micro-lamports per compute unit

    def instructions(self) -> List[Any]:
        if not self.enabled:
            return []
        return [
            set_compute_unit_price(self.unit_price),
            set_compute_unit_limit(self.unit_limit),
        ]


async def fetch_blockhash(client: Any, commitment: Optional[str] = None) -> BlockhashContext:
    """Fetch the latest blockhash from the RPC client."""
    response = await client.get_latest_blockhash(commitment)
    return BlockhashContext(
        blockhash=response.value.blockhash,
        last_valid_block_height=response.value.last_valid_block_height,
    )


def compose_transaction(
    payer: Keypair,
    instructions: Sequence[Any],
    blockhash: BlockhashContext,
    signers: Sequence[Keypair] = (),
    compute_budget: Optional[ComputeBudget] = None,
) -> VersionedTransaction:
    """Compile and sign a v0 transaction paid for by ``payer``."""
    budget = compute_budget.instructions() if compute_budget else []
    message = MessageV0.try_compile(
        payer.pubkey(),
        [*budget, *instructions],
        [],
        blockhash.blockhash,
    )
    return VersionedTransaction(message, [payer, *signers])
