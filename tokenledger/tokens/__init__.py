"""
tokenledger Token Ledger

Provides:
  - LockableToken    : token facade; every balance mutation passes the guard
  - AccessGate       : single owner + paused flag
  - FreezeRegistry   : per-account frozen flag
  - LockLedger       : time-locked escrow records
  - TransferGuard    : pause → freeze → unlock realization → funds move
  - BalanceStore     : available balances, allowances, total supply
"""

from .access import AccessGate
from .balances import BalanceStore
from .events import (
    ApprovalEvent,
    EventLog,
    FrozenEvent,
    LockedEvent,
    OwnershipTransferredEvent,
    PausedEvent,
    TransferEvent,
    UnfrozenEvent,
    UnlockedEvent,
    UnpausedEvent,
)
from .freeze import FreezeRegistry
from .guard import TransferContext, TransferGuard
from .locks import LockLedger, LockRecord
from .token import LockableToken

__all__ = [
    # Facade
    "LockableToken",
    # Components
    "AccessGate",
    "BalanceStore",
    "FreezeRegistry",
    "LockLedger",
    "LockRecord",
    "TransferContext",
    "TransferGuard",
    # Events
    "EventLog",
    "ApprovalEvent",
    "FrozenEvent",
    "LockedEvent",
    "OwnershipTransferredEvent",
    "PausedEvent",
    "TransferEvent",
    "UnfrozenEvent",
    "UnlockedEvent",
    "UnpausedEvent",
]
