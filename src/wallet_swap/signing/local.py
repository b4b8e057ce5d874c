from __future__ import annotations

import logging

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .base import TransactionRequest, Web3Signer

logger = logging.getLogger(__name__)


class LocalAccountSigner(Web3Signer):
    """Signs with a private key held in process memory."""

    def __init__(
        self,
        private_key: str,
        rpc_url: str,
        chain_id: int,
        w3: Web3 | None = None,
    ):
        super().__init__(rpc_url, chain_id, w3=w3)
        self.account: LocalAccount = Account.from_key(private_key)  # pyrefly: ignore

    @property
    def signer_name(self) -> str:
        return "local"

    async def get_current_address(self) -> str:
        return self.account.address

    async def _sign_prepared(self, tx: TransactionRequest) -> bytes:
        signed = self.account.sign_transaction(tx)
        logger.debug("Signed transaction nonce %d as %s", tx["nonce"], self.account.address)
        return bytes(signed.raw_transaction)
