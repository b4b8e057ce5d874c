from .base import BaseSigner, TransactionRequest, Web3Signer
from .hardware import DeviceState, HardwareSigner, SignatureDevice
from .local import LocalAccountSigner

__all__ = [
    "BaseSigner",
    "DeviceState",
    "HardwareSigner",
    "LocalAccountSigner",
    "SignatureDevice",
    "TransactionRequest",
    "Web3Signer",
]
