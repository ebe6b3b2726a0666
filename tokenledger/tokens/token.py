"""
Lockable Token — fungible token with ownable, pausable, freezable and
time-lockable extensions.

Implements:
  - ERC-20–style interface (transfer, approve, transferFrom, balanceOf)
  - Burnable (burn / burnFrom) and owner-only, optionally capped, mint
  - Pausable: owner can halt every balance mutation
  - Freezable: owner can bar an account from sending, receiving or spending
  - Time-lockable: owner can escrow an account's tokens until a release time

Every balance mutation goes through the Transfer Guard (pause → freeze →
realization of matured locks → funds move). Mutating methods are coroutines
serialised by one ``asyncio.Lock``; each either commits completely or leaves
no trace, including in the event log. Queries are synchronous and never
mutate state.
"""

import asyncio
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from ..constants import DEFAULT_DECIMALS, ESCROW_ADDRESS, MAX_BATCH_SIZE, MAX_DECIMALS, NULL_ADDRESS
from ..exceptions import (
    BatchOperationError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidBatchLengthError,
    NoActiveLockError,
    ReservedAddressError,
    TokenError,
    ZeroAmountError,
)
from ..logger import get_logger
from .access import AccessGate
from .balances import BalanceStore, require_amount
from .events import (
    EventLog,
    FrozenEvent,
    OwnershipTransferredEvent,
    PausedEvent,
    UnfrozenEvent,
    UnpausedEvent,
)
from .freeze import FreezeRegistry
from .guard import TransferContext, TransferGuard
from .locks import LockLedger, LockRecord

logger = get_logger(__name__)


class LockableToken:
    """
    Fungible token ledger with lock escrow.

    Balance views:
        - balance_of(account)       → spendable now (includes matured locks)
        - total_balance_of(account) → spendable now + still-locked escrow

    Every mutating method takes the acting account as its first argument
    (``caller``); owner-only methods check it against the Access Gate.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        access: AccessGate,
        decimals: int = DEFAULT_DECIMALS,
        premint: int = 0,
        *,
        cap: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            name: Human-readable token name
            symbol: Short ticker
            access: Owner / paused-flag gate for this token
            decimals: Fractional digits
            premint: Base units credited to the owner at deployment
            cap: Maximum total supply in base units (None for uncapped)
            clock: Callable returning the current unix time (defaults to time.time)
        """
        if not name:
            raise TokenError("Token name cannot be empty")
        if not symbol:
            raise TokenError("Token symbol cannot be empty")
        if decimals < 0 or decimals > MAX_DECIMALS:
            raise TokenError(f"Decimals must be 0-{MAX_DECIMALS}, got {decimals}")
        require_amount(premint)

        self.name = name
        self.symbol = symbol
        self.decimals = decimals

        self._clock = clock or time.time
        self._access = access
        self._events = EventLog(symbol, self._clock)
        self._store = BalanceStore(self._events, cap=cap)
        self._freezes = FreezeRegistry()
        self._locks = LockLedger(self._store, self._events, self._clock)
        self._guard = TransferGuard(self._access, self._freezes, self._locks)
        self._mutex = asyncio.Lock()

        if premint:
            self._store.mint(access.owner, premint)

        self._created_at = self.now()
        logger.info(f"Token deployed: {symbol} ({name}), supply={premint}, owner={access.owner}")

    @classmethod
    def from_config(cls, config, clock: Optional[Callable[[], float]] = None) -> "LockableToken":
        """Build a token from a :class:`tokenledger.config.LedgerConfig`."""
        tc = config.token
        unit = 10 ** tc.decimals
        return cls(
            name=tc.name,
            symbol=tc.symbol,
            access=AccessGate(tc.owner, paused=tc.paused),
            decimals=tc.decimals,
            premint=tc.premint * unit,
            cap=tc.cap * unit if tc.cap is not None else None,
            clock=clock,
        )

    # ── Read-only views ───────────────────────────────────────────────

    def now(self) -> int:
        return int(self._clock())

    @property
    def total_supply(self) -> int:
        return self._store.total_supply

    @property
    def cap(self) -> Optional[int]:
        return self._store.cap

    @property
    def owner(self) -> str:
        return self._access.owner

    @property
    def access(self) -> AccessGate:
        return self._access

    @property
    def is_paused(self) -> bool:
        return self._access.is_paused()

    def is_frozen(self, account: str) -> bool:
        return self._freezes.is_frozen(account)

    def allowance(self, owner: str, spender: str) -> int:
        return self._store.allowance(owner, spender)

    def available_balance(self, account: str) -> int:
        """Balance held outside escrow, without counting matured locks."""
        return self._store.available_balance(account)

    def balance_of(self, account: str) -> int:
        """Spendable balance, including locks that matured but were not realized yet."""
        return self._store.available_balance(account) + self._locks.get_unlockable_tokens(account)

    def total_balance_of(self, account: str) -> int:
        """Everything the account owns: available balance plus every unclaimed lock."""
        return self._store.available_balance(account) + self._locks.total_locked(account)

    def locked(self, account: str, reason: bytes) -> LockRecord:
        return self._locks.locked(account, reason)

    def lock_reasons(self, account: str) -> Tuple[bytes, ...]:
        return self._locks.lock_reasons(account)

    def tokens_locked(self, account: str, reason: bytes) -> int:
        return self._locks.tokens_locked(account, reason)

    def tokens_locked_at_time(self, account: str, reason: bytes, at: int) -> int:
        return self._locks.tokens_locked_at_time(account, reason, at)

    def tokens_unlockable(self, account: str, reason: bytes) -> int:
        return self._locks.tokens_unlockable(account, reason)

    def get_unlockable_tokens(self, account: str) -> int:
        return self._locks.get_unlockable_tokens(account)

    def accounts(self) -> List[str]:
        """Every account holding an available balance or a lock record."""
        seen = dict.fromkeys(self._store.holders())
        seen.update(dict.fromkeys(self._locks.accounts()))
        return list(seen)

    @property
    def events(self) -> List[Any]:
        return self._events.events

    # ── Atomicity ─────────────────────────────────────────────────────

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        """Undo every store, lock and event change if a TokenError escapes."""
        store_state = self._store.snapshot()
        lock_state = self._locks.snapshot()
        event_count = len(self._events)
        try:
            yield
        except TokenError:
            self._store.restore(store_state)
            self._locks.restore(lock_state)
            self._events.truncate(event_count)
            raise

    @staticmethod
    def _require_not_escrow(*accounts: str) -> None:
        if ESCROW_ADDRESS in accounts:
            raise ReservedAddressError("escrow account cannot transact directly")

    # ── Core ERC-20 operations ────────────────────────────────────────

    async def transfer(self, caller: str, recipient: str, amount: int) -> None:
        async with self._mutex:
            with self._atomic():
                self._transfer(caller, recipient, amount)

    def _transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._require_not_escrow(sender, recipient)
        ctx = TransferContext("transfer", sender=sender, receiver=recipient)
        self._guard.run(ctx, lambda: self._store.move_funds(sender, recipient, amount))
        logger.debug(f"Transfer: {sender} → {recipient} amount={amount} {self.symbol}")

    async def approve(self, caller: str, spender: str, amount: int) -> None:
        async with self._mutex:
            self._require_not_escrow(caller, spender)
            self._store.approve(caller, spender, amount)
            logger.debug(f"Approve: {caller} → {spender} allowance={amount} {self.symbol}")

    async def increase_allowance(self, caller: str, spender: str, added: int) -> None:
        require_amount(added)
        async with self._mutex:
            self._require_not_escrow(caller, spender)
            self._store.approve(caller, spender, self._store.allowance(caller, spender) + added)

    async def decrease_allowance(self, caller: str, spender: str, subtracted: int) -> None:
        require_amount(subtracted)
        async with self._mutex:
            self._require_not_escrow(caller, spender)
            current = self._store.allowance(caller, spender)
            if current < subtracted:
                raise InsufficientAllowanceError("decreased allowance below zero")
            self._store.approve(caller, spender, current - subtracted)

    async def transfer_from(self, caller: str, sender: str, recipient: str, amount: int) -> None:
        """Move *sender*'s tokens using the allowance granted to *caller*."""
        async with self._mutex:
            with self._atomic():
                self._require_not_escrow(caller, sender, recipient)
                ctx = TransferContext("transferFrom", sender=sender, receiver=recipient, spender=caller)

                def action() -> None:
                    self._store.require_allowance(sender, caller, amount)
                    self._store.move_funds(sender, recipient, amount)
                    self._store.spend_allowance(sender, caller, amount)

                self._guard.run(ctx, action)
                logger.debug(
                    f"transferFrom: spender={caller} {sender} → {recipient} amount={amount} {self.symbol}"
                )

    # ── Mint / burn ───────────────────────────────────────────────────

    async def mint(self, caller: str, recipient: str, amount: int) -> None:
        async with self._mutex:
            self._access.require_owner(caller)
            self._require_not_escrow(recipient)
            with self._atomic():
                ctx = TransferContext("mint", sender=NULL_ADDRESS, receiver=recipient)
                self._guard.run(ctx, lambda: self._store.mint(recipient, amount))
            logger.info(f"Mint: {amount} {self.symbol} → {recipient}")

    async def burn(self, caller: str, amount: int) -> None:
        async with self._mutex:
            with self._atomic():
                self._require_not_escrow(caller)
                ctx = TransferContext("burn", sender=caller, receiver=NULL_ADDRESS)
                self._guard.run(ctx, lambda: self._store.burn(caller, amount))
            logger.info(f"Burn: {caller} burned {amount} {self.symbol}")

    async def burn_from(self, caller: str, account: str, amount: int) -> None:
        async with self._mutex:
            with self._atomic():
                self._require_not_escrow(caller, account)
                ctx = TransferContext("burnFrom", sender=account, receiver=NULL_ADDRESS, spender=caller)

                def action() -> None:
                    self._store.require_allowance(account, caller, amount)
                    self._store.burn(account, amount)
                    self._store.spend_allowance(account, caller, amount)

                self._guard.run(ctx, action)
            logger.info(f"BurnFrom: spender={caller} burned {amount} {self.symbol} of {account}")

    # ── Ownership ─────────────────────────────────────────────────────

    async def transfer_ownership(self, caller: str, new_owner: str) -> None:
        async with self._mutex:
            previous = self._access.transfer_ownership(caller, new_owner)
            self._events.emit(OwnershipTransferredEvent, previous_owner=previous, new_owner=new_owner)
            logger.info(f"Ownership of {self.symbol}: {previous} → {new_owner}")

    async def renounce_ownership(self, caller: str) -> None:
        async with self._mutex:
            previous = self._access.renounce_ownership(caller)
            self._events.emit(OwnershipTransferredEvent, previous_owner=previous, new_owner=NULL_ADDRESS)
            logger.warning(f"Ownership of {self.symbol} renounced by {previous}")

    # ── Pause / freeze (owner only) ───────────────────────────────────

    async def pause(self, caller: str) -> None:
        async with self._mutex:
            self._access.pause(caller)
            self._events.emit(PausedEvent, account=caller)
            logger.warning(f"Token {self.symbol} PAUSED by {caller}")

    async def unpause(self, caller: str) -> None:
        async with self._mutex:
            self._access.unpause(caller)
            self._events.emit(UnpausedEvent, account=caller)
            logger.info(f"Token {self.symbol} UNPAUSED by {caller}")

    async def freeze(self, caller: str, account: str) -> None:
        async with self._mutex:
            self._access.require_owner(caller)
            if self._freezes.freeze(account):
                self._events.emit(FrozenEvent, account=account)
                logger.warning(f"Account {account} FROZEN on {self.symbol}")

    async def unfreeze(self, caller: str, account: str) -> None:
        async with self._mutex:
            self._access.require_owner(caller)
            if self._freezes.unfreeze(account):
                self._events.emit(UnfrozenEvent, account=account)
                logger.info(f"Account {account} UNFROZEN on {self.symbol}")

    # ── Time locks (owner only) ───────────────────────────────────────

    async def lock(self, caller: str, account: str, amount: int, reason: bytes, release: int) -> LockRecord:
        """Escrow *amount* of *account*'s available tokens until *release*."""
        async with self._mutex:
            self._access.require_owner(caller)
            self._guard.require_not_paused()
            with self._atomic():
                return self._lock(account, amount, reason, release)

    def _lock(self, account: str, amount: int, reason: bytes, release: int) -> LockRecord:
        self._locks.require_can_lock(account, amount, reason, release)
        ctx = TransferContext("lock", sender=account, receiver=ESCROW_ADDRESS)
        self._guard.run(ctx, lambda: self._escrow(account, amount))
        return self._locks.record_lock(account, reason, amount, release)

    async def transfer_with_lock(
        self,
        caller: str,
        account: str,
        amount: int,
        reason: bytes,
        release: int,
    ) -> LockRecord:
        """Send *amount* from *caller* straight into *account*'s escrow."""
        async with self._mutex:
            self._access.require_owner(caller)
            self._guard.require_not_paused()
            with self._atomic():
                return self._transfer_with_lock(caller, account, amount, reason, release)

    def _transfer_with_lock(
        self,
        sender: str,
        account: str,
        amount: int,
        reason: bytes,
        release: int,
    ) -> LockRecord:
        self._locks.require_can_lock(account, amount, reason, release)

        def action() -> None:
            # runs after the guard realized the sender's matured locks
            available = self._store.available_balance(sender)
            if available < amount:
                raise InsufficientBalanceError(
                    f"Lockable: Not enough amount, {sender} balance {available} < {amount}"
                )
            self._store.move_funds(sender, account, amount)
            self._escrow(account, amount)

        ctx = TransferContext("transferWithLock", sender=sender, receiver=account)
        self._guard.run(ctx, action)
        return self._locks.record_lock(account, reason, amount, release)

    async def extend_lock(self, caller: str, account: str, reason: bytes, new_release: int) -> LockRecord:
        """Replace the release time of an active lock with *new_release*."""
        async with self._mutex:
            self._access.require_owner(caller)
            self._guard.require_not_paused()
            return self._locks.set_release(account, reason, new_release)

    async def increase_lock_amount(self, caller: str, account: str, reason: bytes, amount: int) -> LockRecord:
        """Move *amount* more of *account*'s available tokens into an active lock."""
        async with self._mutex:
            self._access.require_owner(caller)
            self._guard.require_not_paused()
            self._locks.require_active(account, reason)
            require_amount(amount)
            if amount == 0:
                raise ZeroAmountError("Lockable: Amount can not be zero")
            if self._locks.tokens_unlockable(account, reason):
                raise NoActiveLockError("Lockable: lock already released")

            with self._atomic():
                ctx = TransferContext("increaseLockAmount", sender=account, receiver=ESCROW_ADDRESS)
                self._guard.run(ctx, lambda: self._escrow(account, amount))
                return self._locks.add_amount(account, reason, amount)

    def _escrow(self, account: str, amount: int) -> None:
        if self._store.available_balance(account) < amount:
            raise InsufficientBalanceError(
                f"Lockable: Not enough amount, {account} available "
                f"{self._store.available_balance(account)} < {amount}"
            )
        self._store.move_funds(account, ESCROW_ADDRESS, amount)

    # ── Batch locks (owner only, all-or-nothing) ──────────────────────

    async def batch_lock(
        self,
        caller: str,
        accounts: Sequence[str],
        amounts: Sequence[int],
        reasons: Sequence[bytes],
        releases: Sequence[int],
    ) -> List[LockRecord]:
        async with self._mutex:
            self._access.require_owner(caller)
            self._guard.require_not_paused()
            self._require_batch(accounts, amounts, reasons, releases)
            return self._run_batch(
                accounts,
                lambda i: self._lock(accounts[i], amounts[i], reasons[i], releases[i]),
            )

    async def batch_transfer_with_lock(
        self,
        caller: str,
        accounts: Sequence[str],
        amounts: Sequence[int],
        reasons: Sequence[bytes],
        releases: Sequence[int],
    ) -> List[LockRecord]:
        async with self._mutex:
            self._access.require_owner(caller)
            self._guard.require_not_paused()
            self._require_batch(accounts, amounts, reasons, releases)
            return self._run_batch(
                accounts,
                lambda i: self._transfer_with_lock(caller, accounts[i], amounts[i], reasons[i], releases[i]),
            )

    @staticmethod
    def _require_batch(*columns: Sequence[Any]) -> None:
        lengths = {len(c) for c in columns}
        if len(lengths) != 1:
            raise InvalidBatchLengthError(f"Batch sequences differ in length: {sorted(lengths)}")
        size = lengths.pop()
        if size > MAX_BATCH_SIZE:
            raise InvalidBatchLengthError(f"Batch size {size} exceeds max {MAX_BATCH_SIZE}")

    def _run_batch(self, accounts: Sequence[str], step: Callable[[int], LockRecord]) -> List[LockRecord]:
        results: List[LockRecord] = []
        with self._atomic():
            for i, account in enumerate(accounts):
                try:
                    results.append(step(i))
                except TokenError as e:
                    logger.warning(f"Batch rolled back at element {i} ({account}): {e}")
                    raise BatchOperationError(i, account, e) from e
        return results

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "totalSupply": str(self.total_supply),
            "cap": str(self.cap) if self.cap is not None else None,
            "owner": self.owner,
            "paused": self.is_paused,
            "frozen": sorted(self._freezes.frozen_accounts),
            "escrowed": str(self._locks.total_escrowed()),
            "holders": len(self._store.holders()),
            "createdAt": self._created_at,
        }

    def __repr__(self) -> str:
        return f"<LockableToken {self.symbol} supply={self.total_supply}>"
