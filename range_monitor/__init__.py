"""Out-of-range monitor for concentrated-liquidity positions held by proxy wallets."""

__version__ = "0.1.0"
