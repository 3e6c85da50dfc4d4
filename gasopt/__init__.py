"""GasOpt ledger — gas-optimization report tracking."""

__version__ = "1.0.0"
