"""
Token events.

Every successful mutation appends one or more of these records to the token's
event log, in the order the state changes happened.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Type, TypeVar

E = TypeVar("E")


class EventLog:
    """
    Append-only event log shared by the token's components.

    ``emit`` stamps each event with the token symbol and the current ledger
    time so callers only pass the event-specific fields.
    """

    def __init__(self, token_symbol: str, clock: Callable[[], float]):
        self._token_symbol = token_symbol
        self._clock = clock
        self._events: List[Any] = []

    def emit(self, event_cls: Type[E], **fields: Any) -> E:
        event = event_cls(
            token_symbol=self._token_symbol,
            timestamp=int(self._clock()),
            **fields,
        )
        self._events.append(event)
        return event

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def truncate(self, length: int) -> None:
        """Drop every event recorded after the first *length*."""
        del self._events[length:]


@dataclass(frozen=True)
class TransferEvent:
    """Emitted on every balance movement between accounts, mint and burn."""
    token_symbol: str
    sender: str
    recipient: str
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "token": self.token_symbol,
            "from": self.sender,
            "to": self.recipient,
            "amount": str(self.amount),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ApprovalEvent:
    """Emitted whenever an allowance is set or consumed."""
    token_symbol: str
    owner: str
    spender: str
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Approval",
            "token": self.token_symbol,
            "owner": self.owner,
            "spender": self.spender,
            "amount": str(self.amount),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class LockedEvent:
    """Emitted on lock creation, release change and amount increase."""
    token_symbol: str
    account: str
    reason: bytes
    amount: int
    release: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Locked",
            "token": self.token_symbol,
            "account": self.account,
            "reason": self.reason.hex(),
            "amount": str(self.amount),
            "release": self.release,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class UnlockedEvent:
    """Emitted once per lock record when it is realized."""
    token_symbol: str
    account: str
    reason: bytes
    amount: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Unlocked",
            "token": self.token_symbol,
            "account": self.account,
            "reason": self.reason.hex(),
            "amount": str(self.amount),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class PausedEvent:
    token_symbol: str
    account: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Paused",
            "token": self.token_symbol,
            "account": self.account,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class UnpausedEvent:
    token_symbol: str
    account: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Unpaused",
            "token": self.token_symbol,
            "account": self.account,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class FrozenEvent:
    token_symbol: str
    account: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Frozen",
            "token": self.token_symbol,
            "account": self.account,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class UnfrozenEvent:
    token_symbol: str
    account: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Unfrozen",
            "token": self.token_symbol,
            "account": self.account,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class OwnershipTransferredEvent:
    token_symbol: str
    previous_owner: str
    new_owner: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "OwnershipTransferred",
            "token": self.token_symbol,
            "previousOwner": self.previous_owner,
            "newOwner": self.new_owner,
            "timestamp": self.timestamp,
        }
