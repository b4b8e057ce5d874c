from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from eth_typing import URI
from hexbytes import HexBytes
from web3 import Web3

logger = logging.getLogger(__name__)

TransactionRequest = dict[str, Any]


class BaseSigner(ABC):
    """Abstract signer used by the settlement orchestrator.

    Implementations may sign locally or on an external device; callers only
    see addresses, signed payloads and transaction hashes.

    Consecutive ``sign_transaction`` calls for the same sender must receive
    strictly increasing nonces, so dependent transactions are mined in signing
    order regardless of broadcast timing.
    """

    @property
    @abstractmethod
    def signer_name(self) -> str:
        """Return the name of this signer."""
        ...

    @abstractmethod
    async def get_current_address(self) -> str:
        """Checksummed address transactions are sent from."""
        ...

    @abstractmethod
    async def sign_transaction(self, request: TransactionRequest) -> bytes:
        """Fill in sender-specific fields, sign, and return the raw transaction."""
        ...

    @abstractmethod
    async def broadcast(self, signed_payload: bytes) -> str:
        """Submit a raw signed transaction and return its hash."""
        ...

    def reset_nonce(self) -> None:
        """Forget locally reserved nonces and resync from the node on next use."""


class Web3Signer(BaseSigner):
    """Shared web3 plumbing: nonce assignment, gas estimation and broadcast."""

    def __init__(self, rpc_url: str, chain_id: int, w3: Web3 | None = None):
        self.w3 = w3 or Web3(Web3.HTTPProvider(URI(rpc_url)))
        self.chain_id = chain_id
        self._next_nonce: int | None = None
        self._nonce_lock = asyncio.Lock()

    async def _assign_nonce(self, address: str) -> int:
        """Reserve the next nonce for ``address``.

        A reserved nonce is never handed out again unless it is released.
        """
        async with self._nonce_lock:
            pending = await asyncio.to_thread(
                self.w3.eth.get_transaction_count, address, "pending"
            )
            nonce = pending if self._next_nonce is None else max(pending, self._next_nonce)
            self._next_nonce = nonce + 1
            return nonce

    def release_nonce(self, nonce: int) -> None:
        """Give back ``nonce`` if it is the latest reservation."""
        if self._next_nonce == nonce + 1:
            self._next_nonce = nonce

    def reset_nonce(self) -> None:
        self._next_nonce = None

    @abstractmethod
    async def _sign_prepared(self, tx: TransactionRequest) -> bytes:
        """Sign a transaction that already carries nonce, gas and chain id."""
        ...

    async def sign_transaction(self, request: TransactionRequest) -> bytes:
        tx = await self.prepare_transaction(request)
        try:
            return await self._sign_prepared(tx)
        except Exception:
            self.release_nonce(tx["nonce"])
            raise

    async def prepare_transaction(
        self, request: TransactionRequest
    ) -> TransactionRequest:
        """Complete ``request`` with chain id, nonce and gas limit."""
        address = await self.get_current_address()
        tx: TransactionRequest = dict(request)
        tx.setdefault("chainId", self.chain_id)
        if tx["chainId"] != self.chain_id:
            raise ValueError(
                f"Transaction chainId {tx['chainId']} does not match signer chain {self.chain_id}"
            )

        if "gas" not in tx or tx["gas"] is None:
            estimate_request = {k: v for k, v in tx.items() if k != "gas"}
            estimate_request["from"] = address
            tx["gas"] = await asyncio.to_thread(
                self.w3.eth.estimate_gas, estimate_request
            )

        tx["nonce"] = await self._assign_nonce(address)
        logger.debug(
            "Prepared transaction to %s (nonce %d, gas %d)", tx.get("to"), tx["nonce"], tx["gas"]
        )
        return tx

    async def broadcast(self, signed_payload: bytes) -> str:
        tx_hash = await asyncio.to_thread(
            self.w3.eth.send_raw_transaction, HexBytes(signed_payload)
        )
        tx_hash_hex = HexBytes(tx_hash).to_0x_hex()
        logger.info("Broadcast transaction %s", tx_hash_hex)
        return tx_hash_hex
