"""
tokenledger Exceptions

Custom exception classes for the token ledger.
"""

from enum import Enum
from typing import Optional


class TokenLedgerException(Exception):
    """Base exception for tokenledger."""
    pass


class ConfigurationError(TokenLedgerException):
    """Configuration error."""
    pass


class TokenError(TokenLedgerException):
    """Base exception for token operations. Raised before any state changes."""
    pass


# ── Access gate ───────────────────────────────────────────────────────

class NotOwnerError(TokenError):
    """Caller is not the token owner."""
    pass


class SystemPausedError(TokenError):
    """Token transfers are paused."""
    pass


class AlreadyPausedError(TokenError):
    """pause() called while already paused."""
    pass


class NotPausedError(TokenError):
    """unpause() called while not paused."""
    pass


# ── Freeze registry ───────────────────────────────────────────────────

class FrozenRole(str, Enum):
    """Which participant of a transfer was found frozen."""
    SENDER = "sender"
    SPENDER = "spender"
    RECEIVER = "receiver"


class AccountFrozenError(TokenError):
    """A sender, spender or receiver of a transfer is frozen."""

    def __init__(self, role: FrozenRole, account: str):
        self.role = role
        self.account = account
        super().__init__(f"Freezable: {role.value} {account} frozen")


# ── Balance store ─────────────────────────────────────────────────────

class NullAddressError(TokenError):
    """An operation referenced the null address where an account is required."""
    pass


class ReservedAddressError(NullAddressError):
    """The escrow account cannot take part in a transfer directly."""
    pass


class InvalidAmountError(TokenError):
    """Amount is negative or not an integer."""
    pass


class ZeroAmountError(InvalidAmountError):
    """Amount can not be zero."""
    pass


class InsufficientBalanceError(TokenError):
    """Available balance is too low."""
    pass


class InsufficientAllowanceError(TokenError):
    """Spender allowance is too low."""
    pass


class SupplyCapExceededError(TokenError):
    """Minting would push the total supply over the cap."""
    pass


# ── Lock ledger ───────────────────────────────────────────────────────

class InvalidReasonError(TokenError):
    """Lock reason is not a fixed-size byte tag."""
    pass


class LockAlreadyActiveError(TokenError):
    """An unclaimed lock already exists for (account, reason)."""
    pass


class NoActiveLockError(TokenError):
    """No unclaimed lock exists for (account, reason)."""
    pass


class InvalidBatchLengthError(TokenError):
    """Parallel batch sequences differ in length or exceed the batch limit."""
    pass


class BatchOperationError(TokenError):
    """
    A batch element failed; the whole batch was rolled back.

    The failing element's exception is chained as ``__cause__``.
    """

    def __init__(self, index: int, account: str, error: Optional[TokenError] = None):
        self.index = index
        self.account = account
        self.error = error
        super().__init__(f"Batch element {index} ({account}) failed: {error}")
