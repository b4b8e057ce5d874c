"""Token swaps through the 0x aggregator with allowance-aware settlement."""

__version__ = "0.1.0"
