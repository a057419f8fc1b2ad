"""
Contract events and the append-only sink they are written to
"""

import logging
from dataclasses import dataclass, asdict
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Created:
    """A token asset or a proposal was created"""
    id: int
    creator: str
    admin: str


@dataclass(frozen=True)
class Transfer:
    """Funds moved between accounts"""
    from_account: Optional[str]
    to_account: Optional[str]
    value: int


@dataclass(frozen=True)
class Approval:
    """Spending acknowledgment for the treasury"""
    owner: str
    spender: str
    value: int


@dataclass(frozen=True)
class Voted:
    """A member cast a ballot"""
    who: str
    when: int


class EventSink:
    """Append-only event log; the engine only ever writes to it"""

    def __init__(self):
        self._events = []

    def emit(self, event) -> None:
        logger.debug("event %s %s", type(event).__name__, event)
        self._events.append(event)

    @property
    def events(self) -> List[object]:
        return list(self._events)

    def last_event(self):
        """Most recent event, or None when nothing was emitted"""
        return self._events[-1] if self._events else None

    def __len__(self) -> int:
        return len(self._events)

    @staticmethod
    def to_dict(event) -> dict:
        """Serialize an event for JSON surfaces"""
        data = asdict(event)
        data['event'] = type(event).__name__
        return data
