"""
Balance Store — plain fungible-token bookkeeping.

Holds available balances, allowances and the total supply. Every mutation is
validated completely before any field changes, so a raised error leaves the
store untouched. Locked tokens live on ``ESCROW_ADDRESS`` like any other
balance; it is the Lock Ledger that knows whom they belong to.
"""

from typing import Any, Dict, Optional, Tuple

from ..constants import ESCROW_ADDRESS, NULL_ADDRESS
from ..exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAmountError,
    NullAddressError,
    SupplyCapExceededError,
)
from .events import ApprovalEvent, EventLog, TransferEvent


def require_amount(amount: int) -> None:
    """Token amounts are non-negative integers in base units."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise InvalidAmountError(f"Amount cannot be negative, got {amount}")


class BalanceStore:
    """
    Available balances, allowances and total supply.

    ``move_funds`` conserves supply; ``mint`` and ``burn`` adjust it.
    Transfer and Approval events are written to the shared event log.
    """

    def __init__(self, events: EventLog, cap: Optional[int] = None):
        if cap is not None:
            require_amount(cap)
        self._events = events
        self._cap = cap
        self._total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    @property
    def cap(self) -> Optional[int]:
        return self._cap

    def available_balance(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def holders(self) -> Dict[str, int]:
        """Non-zero available balances, escrow excluded."""
        return {
            account: balance
            for account, balance in self._balances.items()
            if balance > 0 and account != ESCROW_ADDRESS
        }

    # ── Funds movement ────────────────────────────────────────────────

    def move_funds(self, sender: str, recipient: str, amount: int) -> None:
        require_amount(amount)
        if not sender or sender == NULL_ADDRESS:
            raise NullAddressError("transfer from the null address")
        if not recipient or recipient == NULL_ADDRESS:
            raise NullAddressError("transfer to the null address")

        bal = self.available_balance(sender)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )

        self._balances[sender] = bal - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        self._events.emit(TransferEvent, sender=sender, recipient=recipient, amount=amount)

    def mint(self, recipient: str, amount: int) -> None:
        require_amount(amount)
        if not recipient or recipient == NULL_ADDRESS:
            raise NullAddressError("mint to the null address")

        new_supply = self._total_supply + amount
        if self._cap is not None and new_supply > self._cap:
            raise SupplyCapExceededError(
                f"Minting {amount} would exceed cap {self._cap}"
            )

        self._total_supply = new_supply
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        self._events.emit(TransferEvent, sender=NULL_ADDRESS, recipient=recipient, amount=amount)

    def burn(self, sender: str, amount: int) -> None:
        require_amount(amount)
        if not sender or sender == NULL_ADDRESS:
            raise NullAddressError("burn from the null address")

        bal = self.available_balance(sender)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < burn amount {amount}"
            )

        self._balances[sender] = bal - amount
        self._total_supply -= amount
        self._events.emit(TransferEvent, sender=sender, recipient=NULL_ADDRESS, amount=amount)

    # ── Allowances ────────────────────────────────────────────────────

    def approve(self, owner: str, spender: str, amount: int) -> None:
        require_amount(amount)
        if not owner or owner == NULL_ADDRESS:
            raise NullAddressError("approve from the null address")
        if not spender or spender == NULL_ADDRESS:
            raise NullAddressError("approve to the null address")

        self._allowances[(owner, spender)] = amount
        self._events.emit(ApprovalEvent, owner=owner, spender=spender, amount=amount)

    def require_allowance(self, owner: str, spender: str, amount: int) -> None:
        allow = self.allowance(owner, spender)
        if allow < amount:
            raise InsufficientAllowanceError(
                f"Allowance {allow} < transfer amount {amount}"
            )

    def spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        self.require_allowance(owner, spender, amount)
        self.approve(owner, spender, self.allowance(owner, spender) - amount)

    # ── Rollback support ──────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        return {
            "total_supply": self._total_supply,
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
        }

    def restore(self, state: Dict[str, Any]) -> None:
        self._total_supply = state["total_supply"]
        self._balances = dict(state["balances"])
        self._allowances = dict(state["allowances"])
