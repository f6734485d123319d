from __future__ import annotations

"""
Ledger record types.

- Campaign: one funded, time-bounded reward program for a (pool, asset) pair.
- UserReward: one participant's accrual state inside one campaign.

This module is intentionally small and pure (no storage/IO). Records are
mutable dataclasses; repositories copy them in and out of the KV store, so
mutating a returned record has no effect until it is saved.

Conventions
-----------
- Principals (admin, creators, users, pools, assets, tokens) are opaque
  strings (e.g. chain addresses).
- Monetary values are integers in the token's smallest unit.
- Timestamps are UNIX seconds.
"""


from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, NewType

Principal = NewType("Principal", str)
TokenAmount = NewType("TokenAmount", int)
Timestamp = NewType("Timestamp", int)
CampaignId = NewType("CampaignId", int)


@dataclass
class Campaign:
    campaign_id: CampaignId
    pool_address: Principal
    asset: Principal
    reward_token: Principal
    daily_reward_amount: TokenAmount
    total_funded_amount: TokenAmount
    remaining_funds: TokenAmount
    duration_days: int
    start_time: Timestamp
    end_time: Timestamp
    is_active: bool
    creator: Principal

    def is_expired(self, now: Timestamp) -> bool:
        """Time-based expiry; independent of the `is_active` toggle."""
        return now > self.end_time

    @property
    def distributed_amount(self) -> TokenAmount:
        """Funds moved out of the campaign pool (accrued to users or refunded)."""
        return TokenAmount(self.total_funded_amount - self.remaining_funds)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Campaign":
        return Campaign(
            campaign_id=CampaignId(int(d["campaign_id"])),
            pool_address=Principal(str(d["pool_address"])),
            asset=Principal(str(d["asset"])),
            reward_token=Principal(str(d["reward_token"])),
            daily_reward_amount=TokenAmount(int(d["daily_reward_amount"])),
            total_funded_amount=TokenAmount(int(d["total_funded_amount"])),
            remaining_funds=TokenAmount(int(d["remaining_funds"])),
            duration_days=int(d["duration_days"]),
            start_time=Timestamp(int(d["start_time"])),
            end_time=Timestamp(int(d["end_time"])),
            is_active=bool(d["is_active"]),
            creator=Principal(str(d["creator"])),
        )


@dataclass
class UserReward:
    user: Principal
    campaign_id: CampaignId
    unclaimed_amount: TokenAmount = TokenAmount(0)
    total_claimed: TokenAmount = TokenAmount(0)
    last_update: Timestamp = Timestamp(0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "UserReward":
        return UserReward(
            user=Principal(str(d["user"])),
            campaign_id=CampaignId(int(d["campaign_id"])),
            unclaimed_amount=TokenAmount(int(d.get("unclaimed_amount", 0))),
            total_claimed=TokenAmount(int(d.get("total_claimed", 0))),
            last_update=Timestamp(int(d.get("last_update", 0))),
        )


__all__ = [
    "Principal",
    "TokenAmount",
    "Timestamp",
    "CampaignId",
    "Campaign",
    "UserReward",
]
