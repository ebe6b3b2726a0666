"""
Access Gate — single owner and the system-wide paused flag.

The gate is a plain value injected into the token at construction. It only
holds state and answers authorization questions; the token facade emits the
corresponding events.
"""

from ..constants import NULL_ADDRESS
from ..exceptions import (
    AlreadyPausedError,
    NotOwnerError,
    NotPausedError,
    NullAddressError,
)


class AccessGate:
    """Ownable + Pausable state for one token."""

    def __init__(self, owner: str, paused: bool = False):
        if not owner or owner == NULL_ADDRESS:
            raise NullAddressError("owner is the null address")
        self._owner = owner
        self._paused = paused

    # ── Ownership ─────────────────────────────────────────────────────

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, caller: str) -> bool:
        return self._owner != NULL_ADDRESS and caller == self._owner

    def require_owner(self, caller: str) -> None:
        if not self.is_owner(caller):
            raise NotOwnerError(f"Ownable: caller {caller} is not the owner")

    def transfer_ownership(self, caller: str, new_owner: str) -> str:
        """Hand ownership to *new_owner*. Returns the previous owner."""
        self.require_owner(caller)
        if not new_owner or new_owner == NULL_ADDRESS:
            raise NullAddressError("Ownable: new owner is the null address")
        previous, self._owner = self._owner, new_owner
        return previous

    def renounce_ownership(self, caller: str) -> str:
        """Leave the token without an owner. Returns the previous owner."""
        self.require_owner(caller)
        previous, self._owner = self._owner, NULL_ADDRESS
        return previous

    # ── Pausable ──────────────────────────────────────────────────────

    def is_paused(self) -> bool:
        return self._paused

    def pause(self, caller: str) -> None:
        self.require_owner(caller)
        if self._paused:
            raise AlreadyPausedError("Pausable: paused")
        self._paused = True

    def unpause(self, caller: str) -> None:
        self.require_owner(caller)
        if not self._paused:
            raise NotPausedError("Pausable: not paused")
        self._paused = False

    def __repr__(self) -> str:
        return f"<AccessGate owner={self._owner} paused={self._paused}>"
