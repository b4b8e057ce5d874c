"""Signer backed by an external signing device.

Device discovery and the transport protocol live behind ``SignatureDevice``;
this module only tracks whether the device is usable and routes signing
requests to it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from web3 import Web3

from ..exceptions import SignerUnavailableError
from .base import TransactionRequest, Web3Signer

logger = logging.getLogger(__name__)


class DeviceState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"


class SignatureDevice(Protocol):
    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def get_address(self) -> str: ...

    async def sign_transaction(self, transaction: TransactionRequest) -> bytes: ...


class HardwareSigner(Web3Signer):
    def __init__(
        self,
        device: SignatureDevice,
        rpc_url: str,
        chain_id: int,
        w3: Web3 | None = None,
    ):
        super().__init__(rpc_url, chain_id, w3=w3)
        self.device = device
        self.state = DeviceState.DISCONNECTED
        self._address: str | None = None

    @property
    def signer_name(self) -> str:
        return "hardware"

    async def connect(self) -> None:
        """Open the device and cache its address. No-op when already ready."""
        if self.state is DeviceState.READY:
            return

        self.state = DeviceState.CONNECTING
        try:
            await self.device.open()
            address = await self.device.get_address()
        except Exception as e:
            self.state = DeviceState.DISCONNECTED
            raise SignerUnavailableError(f"Signing device failed to connect: {e}") from e

        self._address = Web3.to_checksum_address(address)
        self.state = DeviceState.READY
        logger.info("Signing device ready for %s", self._address)

    async def disconnect(self) -> None:
        if self.state is DeviceState.DISCONNECTED:
            return
        try:
            await self.device.close()
        finally:
            self.state = DeviceState.DISCONNECTED
            self._address = None
            self.reset_nonce()

    def _require_ready(self) -> str:
        if self.state is not DeviceState.READY or self._address is None:
            raise SignerUnavailableError(
                f"Signing device is {self.state.value}, connect it first"
            )
        return self._address

    async def get_current_address(self) -> str:
        return self._require_ready()

    async def sign_transaction(self, request: TransactionRequest) -> bytes:
        self._require_ready()
        return await super().sign_transaction(request)

    async def _sign_prepared(self, tx: TransactionRequest) -> bytes:
        logger.info("Waiting for device signature (nonce %d)", tx["nonce"])
        return await self.device.sign_transaction(tx)
