"""
campaign_ledger.cli.state — JSON state file behind the local CLI ledger.

The CLI simulates a whole host between invocations. Everything that host
holds is persisted in one JSON document:

    {
      "version": 1,
      "clock": <int seconds>,
      "store": {"<hex key>": "<hex value>", ...},
      "tokens": {"<token>": {"<account>": <int>, ...}, ...},
      "events": [{"seq": ..., "name": ..., "args": {...}, "timestamp": ...}, ...]
    }

Store keys and values are the ledger's canonical bytes, hex-encoded.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from campaign_ledger.config import LedgerConfig
from campaign_ledger.contract import RewardCampaignContract
from campaign_ledger.host import Host
from campaign_ledger.host.context import ManualClock
from campaign_ledger.host.events import Event, EventSink
from campaign_ledger.host.payments import TokenLedger
from campaign_ledger.state.kv import MemoryBackend

STATE_VERSION = 1
DEFAULT_STATE_PATH = Path("campaign_ledger_state.json")
STATE_FILE_ENV = "CAMPAIGN_LEDGER_STATE_FILE"


class StateFileError(RuntimeError):
    """The state file is unreadable or has an unsupported layout."""


@dataclass
class Session:
    path: Path
    host: Host
    contract: RewardCampaignContract
    clock: ManualClock
    tokens: TokenLedger

    def save(self) -> None:
        doc: Dict[str, Any] = {
            "version": STATE_VERSION,
            "clock": self.clock.now(),
            "store": {k.hex(): v.hex() for k, v in self.host.store.items()},
            "tokens": self.tokens.snapshot(),
            "events": [e.to_dict() for e in self.host.events.all()],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(doc, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self.path)


def _read(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {"version": STATE_VERSION, "clock": 0, "store": {}, "tokens": {}, "events": []}
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise StateFileError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(doc, dict) or doc.get("version") != STATE_VERSION:
        raise StateFileError(f"{path}: unsupported state file (expected version {STATE_VERSION})")
    return doc


def open_session(path: Path, config: Optional[LedgerConfig] = None) -> Session:
    doc = _read(path)
    try:
        backend = MemoryBackend({bytes.fromhex(k): bytes.fromhex(v) for k, v in doc.get("store", {}).items()})
    except ValueError as e:
        raise StateFileError(f"{path}: corrupt store entry ({e})") from e

    tokens = TokenLedger()
    for token, accounts in (doc.get("tokens") or {}).items():
        for account, amount in accounts.items():
            tokens.mint(token, account, int(amount))
    tokens.commit_to(1)

    clock = ManualClock(int(doc.get("clock", 0)))
    events = EventSink([Event.from_dict(e) for e in doc.get("events", [])])
    host = Host(backend=backend, payments=tokens, clock=clock, config=config, events=events)
    return Session(path=path, host=host, contract=RewardCampaignContract(host), clock=clock, tokens=tokens)


__all__ = [
    "STATE_VERSION",
    "DEFAULT_STATE_PATH",
    "STATE_FILE_ENV",
    "StateFileError",
    "Session",
    "open_session",
]
