"""
campaign_ledger.host.context — clock and per-transaction caller context.

The ledger never reads wall-clock time directly. The host injects a `Clock`
whose `now()` returns integer seconds; the core only compares that value with
stored deadlines. Tests and the CLI use `ManualClock` so expiry can be driven
deterministically.

`TxContext` carries the set of principals that authorized the current
transaction (a transaction may be co-signed, e.g. by a creator and the
admin). It holds pure data only and performs strict validation.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Protocol, runtime_checkable


class ContextError(Exception):
    """Validation failure for clocks or transaction contexts."""


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


# ----------------------------- clocks ------------------------------ #


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock seconds since epoch."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """A settable clock for tests, simulations and the CLI state file."""

    def __init__(self, start: int = 0) -> None:
        self._now = _require_non_negative_int("start", start)

    def now(self) -> int:
        return self._now

    def set(self, ts: int) -> None:
        ts = _require_non_negative_int("timestamp", ts)
        if ts < self._now:
            raise ContextError(f"clock cannot move backwards ({ts} < {self._now})")
        self._now = ts

    def advance(self, seconds: int) -> int:
        self.set(self._now + _require_non_negative_int("seconds", seconds))
        return self._now


# ----------------------------- tx context ------------------------------ #


@dataclass(frozen=True)
class TxContext:
    """
    Principals that signed the current transaction.

    Fields
    ------
    signers: principals whose authorization the host has verified.
    """
    signers: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        for s in self.signers:
            if not isinstance(s, str) or not s:
                raise ContextError("signers must be non-empty strings")

    @classmethod
    def of(cls, principals: Iterable[str]) -> "TxContext":
        return cls(signers=frozenset(principals))

    def signed_by(self, principal: str) -> bool:
        return principal in self.signers


EMPTY_CONTEXT = TxContext()


__all__ = [
    "ContextError",
    "Clock",
    "SystemClock",
    "ManualClock",
    "TxContext",
    "EMPTY_CONTEXT",
]
