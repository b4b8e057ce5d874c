from .reconciliation import current_trade_price, swappable_assets

__all__ = [
    "current_trade_price",
    "swappable_assets",
]
