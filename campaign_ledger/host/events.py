"""
campaign_ledger.host.events — structured ledger events with checkpoint support.

Every state transition of the ledger emits one `Event` (name + flat args).
The sink keeps events in emission order and participates in
`Host.atomic()`: events emitted by an operation that is later rolled back
are discarded together with its state writes.

Arg values are restricted to str / int / bool so events serialize to JSON
and CBOR unchanged.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional

log = logging.getLogger(__name__)

MAX_EVENT_NAME_LEN = 64
_NAME_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

INITIALIZED = "Initialized"
CAMPAIGN_CREATED = "CampaignCreated"
REWARD_ACCRUED = "RewardAccrued"
REWARDS_DISTRIBUTED = "RewardsDistributed"
REWARDS_CLAIMED = "RewardsClaimed"
CAMPAIGN_STATUS_UPDATED = "CampaignStatusUpdated"
CAMPAIGN_SHUTDOWN = "CampaignShutdown"


class EventError(ValueError):
    """Malformed event name or args."""


@dataclass
class Event:
    seq: int
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"seq": self.seq, "name": self.name, "args": dict(self.args), "timestamp": self.timestamp}

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Event":
        return Event(
            seq=int(d["seq"]),
            name=str(d["name"]),
            args=dict(d.get("args") or {}),
            timestamp=int(d.get("timestamp", 0)),
        )


def _check_name(name: Any) -> str:
    if not isinstance(name, str) or not name or len(name) > MAX_EVENT_NAME_LEN:
        raise EventError(f"invalid event name {name!r}")
    if not _NAME_RE.match(name):
        raise EventError(f"event name must be CamelCase: {name!r}")
    return name


def _check_args(args: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in args.items():
        if not isinstance(k, str) or not _KEY_RE.match(k):
            raise EventError(f"invalid event arg key {k!r}")
        if not isinstance(v, (str, int, bool)):
            raise EventError(f"unsupported event arg type for {k!r}: {type(v).__name__}")
        out[k] = v
    return out


class EventSink:
    """
    Append-only event log with a stack of checkpoint positions.

    Markers follow the journal convention: `begin()` returns the number of
    open checkpoints *before* the new one is pushed, and `commit_to(m)` /
    `revert_to(m)` unwind back to that count.
    """

    def __init__(self, initial: Optional[List[Event]] = None) -> None:
        self._events: List[Event] = list(initial or [])
        self._marks: List[int] = []

    def begin(self) -> int:
        marker = len(self._marks)
        self._marks.append(len(self._events))
        return marker

    def commit_to(self, marker: int) -> None:
        del self._marks[marker:]

    def revert_to(self, marker: int) -> None:
        if len(self._marks) <= marker:
            return
        pos = self._marks[marker]
        dropped = len(self._events) - pos
        del self._events[pos:]
        del self._marks[marker:]
        if dropped:
            log.debug("events: discarded %d event(s) on revert", dropped)

    def emit(self, name: str, args: Mapping[str, Any], *, timestamp: int = 0) -> Event:
        ev = Event(
            seq=self._next_seq(),
            name=_check_name(name),
            args=_check_args(args),
            timestamp=int(timestamp),
        )
        self._events.append(ev)
        return ev

    def _next_seq(self) -> int:
        return self._events[-1].seq + 1 if self._events else 1

    def all(self) -> List[Event]:
        return list(self._events)

    def by_name(self, name: str) -> List[Event]:
        return [e for e in self._events if e.name == name]

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)


__all__ = [
    "Event",
    "EventError",
    "EventSink",
    "INITIALIZED",
    "CAMPAIGN_CREATED",
    "REWARD_ACCRUED",
    "REWARDS_DISTRIBUTED",
    "REWARDS_CLAIMED",
    "CAMPAIGN_STATUS_UPDATED",
    "CAMPAIGN_SHUTDOWN",
]
