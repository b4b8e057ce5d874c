from .models import ZrxAsset, ZrxPrice, ZrxQuote
from .zrx import ZrxClient

__all__ = [
    "ZrxAsset",
    "ZrxClient",
    "ZrxPrice",
    "ZrxQuote",
]
