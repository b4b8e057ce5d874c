"""Approval and swap settlement for an accepted quote."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from web3 import Web3

from ..abi import encode_approve, erc20_contract
from ..clients.models import ZrxQuote
from ..constants import MAX_UINT256, NATIVE_TOKEN_ADDRESS
from ..exceptions import SettlementError
from ..settings import BroadcastMode
from ..signing.base import BaseSigner, TransactionRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementPlan:
    """Unsigned transactions needed to settle a quote.

    ``allowance`` is the snapshot read right before planning, None when the
    sell asset is the native asset and needs no approval.
    """

    owner: str
    allowance: int | None
    approval: TransactionRequest | None
    swap: TransactionRequest

    @property
    def approval_required(self) -> bool:
        return self.approval is not None

    @property
    def requests(self) -> list[TransactionRequest]:
        """Transactions in the order they must be signed, swap last."""
        return [r for r in (self.approval, self.swap) if r is not None]


@dataclass(frozen=True)
class SettlementResult:
    plan: SettlementPlan
    tx_hashes: list[str]


def is_native_sell(quote: ZrxQuote) -> bool:
    return quote.sell_token_address.lower() == NATIVE_TOKEN_ADDRESS.lower()


def build_approval_request(quote: ZrxQuote) -> TransactionRequest:
    """Infinite approval of ``quote.allowance_target`` on the sell token."""
    to_address, calldata = encode_approve(
        quote.sell_token_address, quote.allowance_target, MAX_UINT256
    )
    return {
        "to": to_address,
        "data": "0x" + calldata.hex(),
        "value": 0,
        "chainId": quote.chain_id,
        "gasPrice": quote.gas_price,
    }


def build_swap_request(quote: ZrxQuote) -> TransactionRequest:
    request: TransactionRequest = {
        "to": Web3.to_checksum_address(quote.to),
        "data": quote.data,
        "value": quote.value,
        "chainId": quote.chain_id,
        "gasPrice": quote.gas_price,
    }
    # Estimating the swap would revert while the approval is still pending
    gas_limit = quote.gas if quote.gas is not None else quote.estimated_gas
    if gas_limit is not None:
        request["gas"] = gas_limit
    return request


class SettlementOrchestrator:
    """Checks the allowance, then signs and broadcasts approval and swap.

    Signing is strictly sequential, approval before swap. Broadcasting is
    either a concurrent fan-out or sequential depending on ``broadcast_mode``;
    in both cases the signer's increasing nonces keep the approval ahead of
    the swap on chain. Nothing already broadcast is rolled back on failure and
    nothing is retried.
    """

    def __init__(
        self,
        signer: BaseSigner | None,
        w3: Web3,
        broadcast_mode: BroadcastMode = BroadcastMode.CONCURRENT,
    ):
        self.signer = signer
        self.w3 = w3
        self.broadcast_mode = broadcast_mode

    async def read_allowance(self, owner: str, quote: ZrxQuote) -> int:
        """Current allowance ``owner`` grants ``quote.allowance_target`` on the sell token."""
        contract = erc20_contract(self.w3, quote.sell_token_address)
        allowance = await asyncio.to_thread(
            contract.functions.allowance(
                Web3.to_checksum_address(owner),
                Web3.to_checksum_address(quote.allowance_target),
            ).call
        )
        return int(allowance)

    def _require_signer(self) -> BaseSigner:
        if self.signer is None:
            raise SettlementError("No signer configured; settlement needs a signing key")
        return self.signer

    async def plan_settlement(
        self, quote: ZrxQuote, owner: str | None = None
    ) -> SettlementPlan:
        """Snapshot the allowance and build the unsigned requests.

        Args:
            quote: Accepted quote
            owner: Address to check the allowance for, defaults to the signer's
        """
        try:
            if owner is None:
                owner = await self._require_signer().get_current_address()
            allowance = (
                None if is_native_sell(quote) else await self.read_allowance(owner, quote)
            )
        except Exception as e:
            raise SettlementError(f"Allowance check failed: {e}") from e

        logger.debug("Existing allowance for %s: %s", quote.allowance_target, allowance)

        approval = None
        if allowance is not None and allowance < quote.sell_amount:
            logger.info(
                "Allowance %d below sell amount %d, approval required",
                allowance,
                quote.sell_amount,
            )
            approval = build_approval_request(quote)

        return SettlementPlan(
            owner=owner,
            allowance=allowance,
            approval=approval,
            swap=build_swap_request(quote),
        )

    async def _sign_all(self, plan: SettlementPlan) -> list[bytes]:
        signer = self._require_signer()
        signed: list[bytes] = []
        for label, request in zip(self._labels(plan), plan.requests):
            try:
                signed.append(await signer.sign_transaction(request))
            except Exception as e:
                raise SettlementError(f"Signing {label} transaction failed: {e}") from e
            logger.debug("Signed %s transaction", label)
        return signed

    @staticmethod
    def _labels(plan: SettlementPlan) -> list[str]:
        return ["approval", "swap"] if plan.approval_required else ["swap"]

    async def _broadcast_all(self, signed: list[bytes]) -> list[str]:
        signer = self._require_signer()
        if self.broadcast_mode is BroadcastMode.SEQUENTIAL:
            hashes: list[str] = []
            for payload in signed:
                try:
                    hashes.append(await signer.broadcast(payload))
                except Exception as e:
                    raise SettlementError(
                        f"Broadcast failed after {len(hashes)} transaction(s): {e}",
                        broadcast_hashes=hashes,
                    ) from e
            return hashes

        results = await asyncio.gather(
            *(signer.broadcast(payload) for payload in signed),
            return_exceptions=True,
        )
        hashes = [r for r in results if isinstance(r, str)]
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            raise SettlementError(
                f"Broadcast failed for {len(errors)} of {len(results)} transaction(s): {errors[0]}",
                broadcast_hashes=hashes,
            ) from errors[0]
        return hashes

    async def approve_and_settle(self, quote: ZrxQuote) -> SettlementResult:
        """Settle ``quote``, approving the allowance target first if needed.

        On a signing or broadcast failure the signer's nonce reservations are
        dropped, so the next settlement starts from the node's pending count
        instead of leaving a gap.

        Raises:
            SettlementError: If the allowance read, any signature or any
                broadcast fails
        """
        plan = await self.plan_settlement(quote)
        signer = self._require_signer()

        try:
            signed = await self._sign_all(plan)
            logger.info(
                "Broadcasting %d transaction(s) (%s)",
                len(signed),
                self.broadcast_mode.value,
            )
            tx_hashes = await self._broadcast_all(signed)
        except SettlementError:
            signer.reset_nonce()
            raise

        return SettlementResult(plan=plan, tx_hashes=tx_hashes)
