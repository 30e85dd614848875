"""
AMM Sniper Bot Framework.

Buys newly opened liquidity pools and exits them in staged take-profit
tranches or on stop-loss. The framework handles position gating, exit
bookkeeping and transaction submission, while venue-specific AMM math,
instruction encoding and pool discovery are pluggable adapters.
"""

__version__ = "0.1.0"
