"""Errors raised to callers of the swap core.

Malformed aggregator payloads and asset discrepancies are never raised; they
are logged and degraded at the client and reconciliation layers.
"""

from __future__ import annotations


class SwapError(Exception):
    """Base class for wallet-swap errors."""


class AmountScalingError(SwapError, ValueError):
    """A human-readable amount could not be scaled to native units."""

    def __init__(self, amount: str, decimals: int, reason: str):
        self.amount = amount
        self.decimals = decimals
        self.reason = reason
        super().__init__(
            f"Cannot scale amount {amount!r} to {decimals} decimals: {reason}"
        )


class SettlementError(SwapError):
    """Allowance read, signing or broadcast failed during settlement.

    Transactions broadcast before the failure are already on the network and
    are listed in ``broadcast_hashes``.
    """

    def __init__(self, message: str, broadcast_hashes: list[str] | None = None):
        super().__init__(message)
        self.broadcast_hashes = broadcast_hashes or []


class SignerUnavailableError(SwapError):
    """The signing device is not connected or not ready."""
