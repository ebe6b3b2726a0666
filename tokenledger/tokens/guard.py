"""
Transfer Guard — the pre-transfer validation pipeline.

Every balance mutation (transfer, transferFrom, mint, burn, burnFrom and the
escrow moves behind lock / transferWithLock / increaseLockAmount) runs the
same fixed sequence of stages before the Balance Store is touched:

    1. pause:        SystemPausedError while the token is paused
    2. freeze:       AccountFrozenError for a frozen sender, spender or receiver
    3. realization:  matured locks of the accounts being debited or credited
                     are returned to their available balance
    4. action:       the funds movement itself

Pause short-circuits before freeze, and freeze before realization, so a
frozen account's matured locks are not realized by a rejected attempt.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, TypeVar

from ..constants import ESCROW_ADDRESS, NULL_ADDRESS
from ..exceptions import AccountFrozenError, FrozenRole, SystemPausedError
from ..logger import get_logger
from .access import AccessGate
from .freeze import FreezeRegistry
from .locks import LockLedger

logger = get_logger(__name__)

T = TypeVar("T")

_INTERNAL_ACCOUNTS = (NULL_ADDRESS, ESCROW_ADDRESS)


@dataclass(frozen=True)
class TransferContext:
    """Participants of one guarded operation."""
    operation: str
    sender: Optional[str] = None
    receiver: Optional[str] = None
    spender: Optional[str] = None

    def participants(self) -> List[Tuple[FrozenRole, str]]:
        """(role, account) pairs subject to freeze checks, in check order."""
        pairs = [
            (FrozenRole.SENDER, self.sender),
            (FrozenRole.SPENDER, self.spender),
            (FrozenRole.RECEIVER, self.receiver),
        ]
        return [(role, acct) for role, acct in pairs if acct and acct not in _INTERNAL_ACCOUNTS]

    def touched_accounts(self) -> List[str]:
        """Accounts whose available balance is read or credited."""
        accounts: List[str] = []
        for acct in (self.sender, self.receiver):
            if acct and acct not in _INTERNAL_ACCOUNTS and acct not in accounts:
                accounts.append(acct)
        return accounts


Stage = Callable[[TransferContext], None]


class TransferGuard:

    def __init__(self, access: AccessGate, freezes: FreezeRegistry, locks: LockLedger):
        self._access = access
        self._freezes = freezes
        self._locks = locks
        self._stages: List[Stage] = [
            self._check_paused,
            self._check_frozen,
            self._realize_unlocks,
        ]

    def require_not_paused(self) -> None:
        if self._access.is_paused():
            raise SystemPausedError("Pausable: token transfer while paused")

    def run(self, ctx: TransferContext, action: Callable[[], T]) -> T:
        """Run every stage for *ctx*, then *action*; returns the action's result."""
        for stage in self._stages:
            stage(ctx)
        return action()

    # ── Stages ────────────────────────────────────────────────────────

    def _check_paused(self, ctx: TransferContext) -> None:
        self.require_not_paused()

    def _check_frozen(self, ctx: TransferContext) -> None:
        for role, account in ctx.participants():
            if self._freezes.is_frozen(account):
                logger.debug(f"[{ctx.operation}] rejected: {role.value} {account} FROZEN")
                raise AccountFrozenError(role, account)

    def _realize_unlocks(self, ctx: TransferContext) -> None:
        for account in ctx.touched_accounts():
            self._locks.realize_unlocks(account)
