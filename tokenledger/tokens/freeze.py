"""Freeze Registry — per-account frozen flag."""

from typing import Set

from ..constants import NULL_ADDRESS
from ..exceptions import NullAddressError


class FreezeRegistry:

    def __init__(self) -> None:
        self._frozen: Set[str] = set()

    def is_frozen(self, account: str) -> bool:
        return account in self._frozen

    def freeze(self, account: str) -> bool:
        """Mark *account* frozen. Returns False if it already was."""
        if not account or account == NULL_ADDRESS:
            raise NullAddressError("Freezable: freeze the null address")
        if account in self._frozen:
            return False
        self._frozen.add(account)
        return True

    def unfreeze(self, account: str) -> bool:
        """Clear the frozen flag. Returns False if it was not set."""
        if account not in self._frozen:
            return False
        self._frozen.discard(account)
        return True

    @property
    def frozen_accounts(self) -> Set[str]:
        return set(self._frozen)
