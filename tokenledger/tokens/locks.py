"""
Lock Ledger — time-locked escrow sub-ledger.

Implements:
  - LockRecord: one escrow entry per (account, reason)
  - LockLedger: lock records, per-account reason lists, lock queries and
    realization of matured locks

Locked tokens sit on ``ESCROW_ADDRESS`` in the Balance Store. A record is
*active* while it is unclaimed; it is *unlockable* once its release time has
passed. Realization marks unlockable records claimed and moves their amount
from escrow back to the account. Claimed records are never reused.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, Tuple

from ..constants import ESCROW_ADDRESS, LOCK_REASON_SIZE, NULL_ADDRESS
from ..exceptions import (
    InvalidAmountError,
    InvalidReasonError,
    LockAlreadyActiveError,
    NoActiveLockError,
    NullAddressError,
    ZeroAmountError,
)
from ..logger import get_logger
from .balances import BalanceStore, require_amount
from .events import EventLog, LockedEvent, UnlockedEvent

logger = get_logger(__name__)


def require_reason(reason: bytes) -> None:
    if not isinstance(reason, (bytes, bytearray)):
        raise InvalidReasonError(f"Lock reason must be bytes, got {type(reason).__name__}")
    if len(reason) != LOCK_REASON_SIZE:
        raise InvalidReasonError(
            f"Lock reason must be {LOCK_REASON_SIZE} bytes, got {len(reason)}"
        )


def require_timestamp(value: int, name: str = "release") -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidAmountError(f"{name} must be a non-negative integer timestamp")


@dataclass
class LockRecord:
    """
    Escrow entry for one (account, reason).

    Attributes:
        amount:   Locked token units
        release:  Unix timestamp at which the lock matures
        claimed:  True once the amount was returned to the account
    """
    amount: int = 0
    release: int = 0
    claimed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount),
            "release": self.release,
            "claimed": self.claimed,
        }


class LockLedger:
    """Per-account, per-reason escrow records."""

    def __init__(self, store: BalanceStore, events: EventLog, clock: Callable[[], float]):
        self._store = store
        self._events = events
        self._clock = clock
        self._records: Dict[Tuple[str, bytes], LockRecord] = {}
        # account -> ordered set of reasons (dict keys keep insertion order)
        self._reasons: Dict[str, Dict[bytes, None]] = {}

    def now(self) -> int:
        return int(self._clock())

    # ── Queries ───────────────────────────────────────────────────────

    def locked(self, account: str, reason: bytes) -> LockRecord:
        """Copy of the record for (account, reason); a zero record if none."""
        record = self._records.get((account, bytes(reason)))
        return replace(record) if record is not None else LockRecord()

    def lock_reasons(self, account: str) -> Tuple[bytes, ...]:
        return tuple(self._reasons.get(account, ()))

    def tokens_locked(self, account: str, reason: bytes) -> int:
        """Amount of an unclaimed lock, whether or not it has matured."""
        record = self._records.get((account, bytes(reason)))
        if record is None or record.claimed:
            return 0
        return record.amount

    def tokens_locked_at_time(self, account: str, reason: bytes, time: int) -> int:
        """Amount locked at *time*; claimed records still answer for times before their release."""
        record = self._records.get((account, bytes(reason)))
        if record is None or record.release <= time:
            return 0
        return record.amount

    def tokens_unlockable(self, account: str, reason: bytes) -> int:
        record = self._records.get((account, bytes(reason)))
        if record is None or record.claimed or record.release > self.now():
            return 0
        return record.amount

    def get_unlockable_tokens(self, account: str) -> int:
        return sum(self.tokens_unlockable(account, r) for r in self.lock_reasons(account))

    def total_locked(self, account: str) -> int:
        """Sum of every unclaimed lock on *account*."""
        return sum(self.tokens_locked(account, r) for r in self.lock_reasons(account))

    def total_escrowed(self) -> int:
        return sum(r.amount for r in self._records.values() if not r.claimed)

    def has_active_lock(self, account: str, reason: bytes) -> bool:
        return self.tokens_locked(account, reason) > 0

    # ── Precondition checks ───────────────────────────────────────────

    def require_can_lock(self, account: str, amount: int, reason: bytes, release: int) -> None:
        """Validate a new lock without touching any state."""
        if not account or account in (NULL_ADDRESS, ESCROW_ADDRESS):
            raise NullAddressError("Lockable: lock account the null address")
        require_amount(amount)
        if amount == 0:
            raise ZeroAmountError("Lockable: Amount can not be zero")
        require_reason(reason)
        require_timestamp(release)
        if self.has_active_lock(account, reason):
            raise LockAlreadyActiveError(
                f"Lockable: Tokens already locked for {account} reason={bytes(reason).hex()[:16]}…"
            )

    def require_active(self, account: str, reason: bytes) -> None:
        require_reason(reason)
        if not self.has_active_lock(account, reason):
            raise NoActiveLockError("Lockable: No tokens locked")

    # ── Mutations ─────────────────────────────────────────────────────
    # Callers move the funds into escrow first; these only touch records.

    def record_lock(self, account: str, reason: bytes, amount: int, release: int) -> LockRecord:
        reason = bytes(reason)
        record = LockRecord(amount=amount, release=release, claimed=False)
        self._records[(account, reason)] = record
        self._reasons.setdefault(account, {})[reason] = None
        self._events.emit(
            LockedEvent, account=account, reason=reason, amount=amount, release=release,
        )
        logger.info(
            f"Locked: {account} reason={reason.hex()[:16]}… amount={amount} release={release}"
        )
        return replace(record)

    def set_release(self, account: str, reason: bytes, new_release: int) -> LockRecord:
        """Replace the release time of an active lock."""
        require_timestamp(new_release)
        self.require_active(account, reason)
        reason = bytes(reason)
        record = self._records[(account, reason)]
        record.release = new_release
        self._events.emit(
            LockedEvent, account=account, reason=reason,
            amount=record.amount, release=record.release,
        )
        logger.info(f"Lock release changed: {account} reason={reason.hex()[:16]}… release={new_release}")
        return replace(record)

    def add_amount(self, account: str, reason: bytes, amount: int) -> LockRecord:
        self.require_active(account, reason)
        reason = bytes(reason)
        record = self._records[(account, reason)]
        record.amount += amount
        self._events.emit(
            LockedEvent, account=account, reason=reason,
            amount=record.amount, release=record.release,
        )
        logger.info(f"Lock increased: {account} reason={reason.hex()[:16]}… amount={record.amount}")
        return replace(record)

    def realize_unlocks(self, account: str) -> int:
        """
        Claim every matured lock of *account* and return the tokens to it.

        Emits one Unlocked event per record, then a single escrow → account
        transfer for the sum. Returns the amount realized.
        """
        now = self.now()
        total = 0
        for reason in self.lock_reasons(account):
            record = self._records[(account, reason)]
            if record.claimed or record.release > now:
                continue
            record.claimed = True
            total += record.amount
            self._events.emit(UnlockedEvent, account=account, reason=reason, amount=record.amount)

        if total:
            self._store.move_funds(ESCROW_ADDRESS, account, total)
            logger.info(f"Unlocked: {account} amount={total}")
        return total

    # ── Rollback support ──────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        return {
            "records": {key: replace(rec) for key, rec in self._records.items()},
            "reasons": {acct: dict(rs) for acct, rs in self._reasons.items()},
        }

    def restore(self, state: Dict[str, Any]) -> None:
        self._records = {key: replace(rec) for key, rec in state["records"].items()}
        self._reasons = {acct: dict(rs) for acct, rs in state["reasons"].items()}

    def accounts(self) -> Iterable[str]:
        return tuple(self._reasons)
