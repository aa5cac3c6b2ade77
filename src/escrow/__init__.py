"""Escrow: state machine депозитов (vesting, cooldown, release, cancel)."""

from .ledger import EscrowLedger, LedgerConfig

__all__ = [
    "EscrowLedger",
    "LedgerConfig",
]
