"""
campaign_ledger.host — the host environment the ledger core runs against.

`Host` bundles the four host collaborators (KV store, caller
authentication, payment capability, clock) plus the event sink, and provides
the atomicity wrapper every public operation runs inside.

Atomicity
---------
`Host.atomic()` opens a checkpoint on each checkpointed participant (the
journaled store, the payment capability when it supports checkpoints, and the
event sink). On normal exit it commits them; on any exception it reverts them
in reverse order and re-raises. Nesting is supported, which gives
`claim_all_rewards` its per-campaign sub-units.

Public API
----------
- Host(...), Host.in_memory(...)
- Host.atomic(op) / Host.signed_by(*principals)
- Clock / ManualClock / SystemClock / TxContext
- AuthorizationGate / SignerSetAuth / MockAllAuths
- PaymentCapability / TokenLedger / PaymentError
- EventSink / Event
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol, Tuple, runtime_checkable

from campaign_ledger.config import LedgerConfig
from campaign_ledger.state.journal import Journal
from campaign_ledger.state.kv import MemoryBackend, StorageBackend
from campaign_ledger.state.stores import (
    CampaignStore,
    InstanceSlots,
    PoolAssetIndexStore,
    UserRewardStore,
)

from .auth import AuthorizationGate, CallerAuth, MockAllAuths, SignerSetAuth
from .context import EMPTY_CONTEXT, Clock, ManualClock, SystemClock, TxContext
from .events import Event, EventSink
from .payments import PaymentCapability, PaymentError, TokenLedger

log = logging.getLogger(__name__)


@runtime_checkable
class Checkpointed(Protocol):
    def begin(self) -> int: ...
    def commit_to(self, marker: int) -> None: ...
    def revert_to(self, marker: int) -> None: ...


class Host:
    """Host collaborators for one ledger instance."""

    def __init__(
        self,
        *,
        backend: StorageBackend,
        payments: PaymentCapability,
        clock: Clock,
        config: Optional[LedgerConfig] = None,
        auth: Optional[CallerAuth] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        self.config = config or LedgerConfig()
        self.config.validate()
        self.store = Journal(backend)
        self.slots = InstanceSlots(self.store)
        self.campaigns = CampaignStore(self.store)
        self.rewards = UserRewardStore(self.store)
        self.pool_index = PoolAssetIndexStore(self.store)
        self.payments = payments
        self.clock = clock
        self.events = events if events is not None else EventSink()
        self._context: TxContext = EMPTY_CONTEXT
        self.gate = AuthorizationGate(auth if auth is not None else SignerSetAuth(lambda: self._context))

    @classmethod
    def in_memory(
        cls,
        *,
        clock: Optional[Clock] = None,
        config: Optional[LedgerConfig] = None,
        payments: Optional[PaymentCapability] = None,
        mock_all_auths: bool = False,
    ) -> "Host":
        """A fully in-process host: memory store, token ledger, manual clock."""
        return cls(
            backend=MemoryBackend(),
            payments=payments if payments is not None else TokenLedger(),
            clock=clock if clock is not None else ManualClock(),
            config=config,
            auth=MockAllAuths() if mock_all_auths else None,
        )

    # ---- environment ---- #

    @property
    def contract_address(self) -> str:
        return self.config.contract_address

    def now(self) -> int:
        return int(self.clock.now())

    @property
    def context(self) -> TxContext:
        return self._context

    @contextmanager
    def signed_by(self, *principals: str) -> Iterator[TxContext]:
        """Run the enclosed calls as a transaction signed by `principals`."""
        prev = self._context
        self._context = TxContext.of(principals)
        try:
            yield self._context
        finally:
            self._context = prev

    # ---- atomicity ---- #

    def _participants(self) -> List[Checkpointed]:
        out: List[Checkpointed] = [self.store]
        if isinstance(self.payments, Checkpointed):
            out.append(self.payments)
        out.append(self.events)
        return out

    @contextmanager
    def atomic(self, op: str = "operation") -> Iterator["Host"]:
        markers: List[Tuple[Checkpointed, int]] = [(p, p.begin()) for p in self._participants()]
        try:
            yield self
        except BaseException as e:
            for p, m in reversed(markers):
                p.revert_to(m)
            log.warning("%s rolled back: %s", op, e)
            raise
        for p, m in markers:
            p.commit_to(m)


__all__ = [
    "Host",
    "Checkpointed",
    "AuthorizationGate",
    "CallerAuth",
    "SignerSetAuth",
    "MockAllAuths",
    "Clock",
    "ManualClock",
    "SystemClock",
    "TxContext",
    "EMPTY_CONTEXT",
    "Event",
    "EventSink",
    "PaymentCapability",
    "PaymentError",
    "TokenLedger",
]
