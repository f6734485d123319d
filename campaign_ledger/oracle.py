"""
campaign_ledger.oracle — off-chain helper that submits distribution rounds.

The ledger never discovers balances itself. An external oracle reads each
participant's position in the pool and reports a snapshot through
`distribute_rewards`. This module is the Python side of that oracle:

- `load_participants(path)` reads a snapshot from JSON or CSV.
- `build_round(participants, total)` shapes it into the call arguments; the
  pool total defaults to the sum of reported balances.
- `DistributionOracle.run(...)` submits the round under the admin's
  signature and summarizes the outcome.

Snapshot formats
----------------
JSON: either a list of {"address": str, "balance": int} objects, or an
object {"participants": [...], "total_pool_deposits": int}.

CSV: a header row with `address,balance` columns (extra columns ignored).

Duplicate addresses are kept as separate entries; each accrues on its own.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from campaign_ledger.contract import RewardCampaignContract
from campaign_ledger.distribution import preview_allocations

log = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Malformed participant snapshot."""


@dataclass(frozen=True)
class Participant:
    address: str
    balance: int

    def to_dict(self) -> dict:
        return {"address": self.address, "balance": self.balance}


@dataclass(frozen=True)
class DistributionRound:
    users: Tuple[str, ...]
    balances: Tuple[int, ...]
    total_pool_deposits: int

    def __len__(self) -> int:
        return len(self.users)


@dataclass
class RoundReport:
    campaign_id: int
    participants: int
    total_pool_deposits: int
    daily_reward_amount: int
    allocated: int = 0
    accrued_users: int = 0
    skipped: List[str] = field(default_factory=list)
    noop_reason: Optional[str] = None

    @property
    def dust(self) -> int:
        """Part of the daily budget left in the campaign by flooring/skips."""
        if self.noop_reason is not None:
            return 0
        return max(0, self.daily_reward_amount - self.allocated)

    def to_dict(self) -> dict:
        return {
            "campaign_id": self.campaign_id,
            "participants": self.participants,
            "total_pool_deposits": self.total_pool_deposits,
            "daily_reward_amount": self.daily_reward_amount,
            "allocated": self.allocated,
            "dust": self.dust,
            "accrued_users": self.accrued_users,
            "skipped": list(self.skipped),
            "noop_reason": self.noop_reason,
        }


def _as_int(v: Any, where: str) -> int:
    if isinstance(v, bool):
        raise SnapshotError(f"{where}: balance must be an integer")
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        s = v.strip().replace("_", "")
        try:
            return int(s, 10)
        except ValueError:
            raise SnapshotError(f"{where}: balance {v!r} is not an integer") from None
    raise SnapshotError(f"{where}: balance must be an integer, got {type(v).__name__}")


def _participant(obj: Mapping[str, Any], where: str) -> Participant:
    try:
        address = obj["address"]
        balance = obj["balance"]
    except KeyError as e:
        raise SnapshotError(f"{where}: missing field {e.args[0]!r}") from None
    if not isinstance(address, str) or not address.strip():
        raise SnapshotError(f"{where}: address must be a non-empty string")
    return Participant(address=address.strip(), balance=_as_int(balance, where))


def parse_participants(data: Any) -> Tuple[List[Participant], Optional[int]]:
    """Parse decoded JSON into (participants, explicit_total_or_None)."""
    total: Optional[int] = None
    if isinstance(data, Mapping):
        if "total_pool_deposits" in data and data["total_pool_deposits"] is not None:
            total = _as_int(data["total_pool_deposits"], "total_pool_deposits")
        data = data.get("participants", [])
    if not isinstance(data, list):
        raise SnapshotError("snapshot must be a list of participants")
    return [_participant(p, f"participants[{i}]") for i, p in enumerate(data)], total


def load_participants(path: Union[str, Path]) -> List[Participant]:
    """Read participants from a .json or .csv snapshot file."""
    participants, _ = load_snapshot(path)
    return participants


def load_snapshot(path: Union[str, Path]) -> Tuple[List[Participant], Optional[int]]:
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".csv":
        reader = csv.DictReader(text.splitlines())
        if not reader.fieldnames or not {"address", "balance"} <= set(reader.fieldnames):
            raise SnapshotError("CSV snapshot needs 'address' and 'balance' columns")
        rows = [_participant(row, f"{p.name}:{i + 2}") for i, row in enumerate(reader)]
        return rows, None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"{p.name}: invalid JSON ({e})") from e
    return parse_participants(data)


def build_round(
    participants: Iterable[Participant], total_pool_deposits: Optional[int] = None
) -> DistributionRound:
    items = list(participants)
    users = tuple(p.address for p in items)
    balances = tuple(p.balance for p in items)
    total = sum(balances) if total_pool_deposits is None else int(total_pool_deposits)
    return DistributionRound(users=users, balances=balances, total_pool_deposits=total)


class DistributionOracle:
    """Submits snapshot rounds to a ledger as its admin."""

    def __init__(self, contract: RewardCampaignContract, admin: str) -> None:
        self.contract = contract
        self.admin = admin

    def preview(
        self, campaign_id: int, participants: Sequence[Participant], total: Optional[int] = None
    ) -> List[int]:
        campaign = self.contract.get_campaign(campaign_id)
        if campaign is None:
            return [0] * len(participants)
        rnd = build_round(participants, total)
        return preview_allocations(campaign.daily_reward_amount, rnd.balances, rnd.total_pool_deposits)

    def run(
        self, campaign_id: int, participants: Sequence[Participant], total: Optional[int] = None
    ) -> RoundReport:
        """Submit a round signed by the oracle's admin."""
        with self.contract.host.signed_by(self.admin):
            return self.submit(campaign_id, participants, total)

    def submit(
        self, campaign_id: int, participants: Sequence[Participant], total: Optional[int] = None
    ) -> RoundReport:
        """Submit a round under whatever transaction context is current."""
        rnd = build_round(participants, total)
        log.info(
            "oracle: submitting round for campaign %d (%d participants, total=%d)",
            campaign_id, len(rnd), rnd.total_pool_deposits,
        )
        result = self.contract.distribute_rewards(
            campaign_id, list(rnd.users), list(rnd.balances), rnd.total_pool_deposits
        )
        campaign = self.contract.get_campaign(campaign_id)
        return RoundReport(
            campaign_id=campaign_id,
            participants=len(rnd),
            total_pool_deposits=rnd.total_pool_deposits,
            daily_reward_amount=campaign.daily_reward_amount if campaign is not None else 0,
            allocated=result.total_distributed,
            accrued_users=result.accrued_users,
            skipped=[a.user for a in result.allocations if a.skipped is not None],
            noop_reason=result.noop_reason,
        )


__all__ = [
    "SnapshotError",
    "Participant",
    "DistributionRound",
    "RoundReport",
    "parse_participants",
    "load_participants",
    "load_snapshot",
    "build_round",
    "DistributionOracle",
    "preview_allocations",
]
