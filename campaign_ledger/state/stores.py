"""
campaign_ledger.state.stores — typed repositories over the generic KV store.

Each entity gets its own repository with its own key construction and
(de)serialization; there is no shared polymorphic key type.

Storage tiers
-------------
The host distinguishes two tiers. They share one backend and are kept apart
by a key prefix:

    I/...   instance singletons   admin, campaign counter
    P/...   per-entity records    campaigns, user rewards, pool/asset index

Composite key components are canonical-CBOR encoded so that, e.g., the
(user, campaign_id) pair can never collide with another pair whose string
concatenation is identical.
"""

from __future__ import annotations

from typing import Iterator, Optional

from campaign_ledger import codec
from campaign_ledger.types import Campaign, UserReward

from .kv import StorageBackend, get_int, set_int

TIER_INSTANCE = b"I/"
TIER_PERSISTENT = b"P/"

K_ADMIN = TIER_INSTANCE + b"admin"
K_CAMPAIGN_COUNT = TIER_INSTANCE + b"campaign_count"

P_CAMPAIGN = TIER_PERSISTENT + b"campaign/"
P_USER_REWARD = TIER_PERSISTENT + b"user_reward/"
P_POOL_ASSET = TIER_PERSISTENT + b"pool_asset/"


class InstanceSlots:
    """Singleton slots: the admin principal and the campaign counter."""

    def __init__(self, store: StorageBackend) -> None:
        self._store = store

    def has_admin(self) -> bool:
        return self._store.has(K_ADMIN)

    def get_admin(self) -> Optional[str]:
        raw = self._store.get(K_ADMIN)
        return raw.decode("utf-8") if raw is not None else None

    def set_admin(self, admin: str) -> None:
        self._store.set(K_ADMIN, admin.encode("utf-8"))

    def get_campaign_count(self) -> int:
        return get_int(self._store, K_CAMPAIGN_COUNT) or 0

    def set_campaign_count(self, n: int) -> None:
        set_int(self._store, K_CAMPAIGN_COUNT, n)


class CampaignStore:
    """Campaign records keyed by campaign id."""

    def __init__(self, store: StorageBackend) -> None:
        self._store = store

    @staticmethod
    def key(campaign_id: int) -> bytes:
        return P_CAMPAIGN + codec.dumps(int(campaign_id))

    def has(self, campaign_id: int) -> bool:
        return self._store.has(self.key(campaign_id))

    def get(self, campaign_id: int) -> Optional[Campaign]:
        raw = self._store.get(self.key(campaign_id))
        if raw is None:
            return None
        return Campaign.from_dict(codec.loads(raw))

    def put(self, campaign: Campaign) -> None:
        self._store.set(self.key(campaign.campaign_id), codec.dumps(campaign.to_dict()))

    def iter_range(self, count: int) -> Iterator[Campaign]:
        """Yield campaigns with ids 1..count, ascending, skipping gaps."""
        for campaign_id in range(1, count + 1):
            c = self.get(campaign_id)
            if c is not None:
                yield c


class UserRewardStore:
    """UserReward records keyed by (user, campaign_id)."""

    def __init__(self, store: StorageBackend) -> None:
        self._store = store

    @staticmethod
    def key(user: str, campaign_id: int) -> bytes:
        return P_USER_REWARD + codec.dumps([str(user), int(campaign_id)])

    def get(self, user: str, campaign_id: int) -> Optional[UserReward]:
        raw = self._store.get(self.key(user, campaign_id))
        if raw is None:
            return None
        return UserReward.from_dict(codec.loads(raw))

    def get_or_default(self, user: str, campaign_id: int, *, now: int = 0) -> UserReward:
        rec = self.get(user, campaign_id)
        if rec is None:
            rec = UserReward(user=user, campaign_id=campaign_id, last_update=now)
        return rec

    def put(self, reward: UserReward) -> None:
        self._store.set(
            self.key(reward.user, reward.campaign_id), codec.dumps(reward.to_dict())
        )

    def iter_campaign(self, campaign_id: int) -> Iterator[UserReward]:
        """All records for one campaign. Full scan; used by audits and tests."""
        for k, raw in self._store.items():
            if not k.startswith(P_USER_REWARD):
                continue
            rec = UserReward.from_dict(codec.loads(raw))
            if rec.campaign_id == campaign_id:
                yield rec


class PoolAssetIndexStore:
    """Secondary index (pool_address, asset) -> campaign_id. Write-once."""

    def __init__(self, store: StorageBackend) -> None:
        self._store = store

    @staticmethod
    def key(pool_address: str, asset: str) -> bytes:
        return P_POOL_ASSET + codec.dumps([str(pool_address), str(asset)])

    def has(self, pool_address: str, asset: str) -> bool:
        return self._store.has(self.key(pool_address, asset))

    def get(self, pool_address: str, asset: str) -> Optional[int]:
        return get_int(self._store, self.key(pool_address, asset))

    def put(self, pool_address: str, asset: str, campaign_id: int) -> None:
        k = self.key(pool_address, asset)
        if self._store.has(k):
            raise ValueError("pool/asset index entries are write-once")
        set_int(self._store, k, campaign_id)


__all__ = [
    "TIER_INSTANCE",
    "TIER_PERSISTENT",
    "InstanceSlots",
    "CampaignStore",
    "UserRewardStore",
    "PoolAssetIndexStore",
]
