from __future__ import annotations

"""
Campaign Registry
-----------------

Campaign lifecycle: one-time ledger initialization, funded campaign creation
(one campaign per pool/asset pair), activation toggling, and post-expiry
shutdown with recovery of the unallocated funds.

Design goals
  • Deterministic, integer-only accounting.
  • Every mutation is authorized by the Authorization Gate before any write.
  • Transfers and writes share one atomic unit (see `Host.atomic`); this
    module assumes it runs inside one and never commits on its own.

Lifecycle of a Campaign
  created (is_active=True) ──toggle──▶ paused ──toggle──▶ active ...
        │                                   │
        └──────── now > end_time ───────────┴──▶ shutdown (remaining := 0)

`is_active` and time-based expiry are orthogonal: a paused campaign may be
shut down after expiry, and an active one may not be shut down before it.
"""

import logging
from typing import List, Optional

from campaign_ledger.errors import (
    AlreadyInitialized,
    CampaignAlreadyExists,
    CampaignNotActive,
    CampaignNotFound,
    InsufficientFunds,
    InvalidAmount,
    InvalidDuration,
)
from campaign_ledger.host import Host
from campaign_ledger.host import events as ev
from campaign_ledger.types import Campaign

log = logging.getLogger(__name__)


class CampaignRegistry:
    def __init__(self, host: Host) -> None:
        self.host = host

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def initialize(self, admin: str) -> None:
        slots = self.host.slots
        if slots.has_admin():
            raise AlreadyInitialized("ledger already has an admin", details={"admin": slots.get_admin()})
        self.host.gate.require(admin)

        slots.set_admin(admin)
        slots.set_campaign_count(0)
        self.host.events.emit(ev.INITIALIZED, {"admin": admin}, timestamp=self.host.now())
        log.info("ledger initialized with admin %s", admin)

    def create_campaign(
        self,
        pool_address: str,
        asset: str,
        reward_token: str,
        daily_reward_amount: int,
        duration_days: int,
        creator: str,
    ) -> int:
        host = self.host
        host.gate.require(creator)

        limits = host.config.limits
        if daily_reward_amount <= 0:
            raise InvalidAmount(
                "daily reward amount must be positive",
                details={"daily_reward_amount": daily_reward_amount},
            )
        if not limits.fits(daily_reward_amount):
            raise InvalidAmount(
                f"daily reward amount exceeds {limits.max_amount_bits}-bit limit",
                details={"daily_reward_amount": daily_reward_amount},
            )
        if duration_days <= 0:
            raise InvalidDuration("duration must be at least one day", details={"duration_days": duration_days})
        if host.pool_index.has(pool_address, asset):
            raise CampaignAlreadyExists(
                "a campaign already exists for this pool/asset pair",
                details={
                    "pool_address": pool_address,
                    "asset": asset,
                    "campaign_id": host.pool_index.get(pool_address, asset),
                },
            )

        total = daily_reward_amount * duration_days
        if not limits.fits(total):
            raise InvalidAmount(
                f"total funding exceeds {limits.max_amount_bits}-bit limit",
                details={"total_funded_amount": total},
            )

        # Pull funds into custody first; a refused transfer aborts before any write.
        host.payments.transfer(reward_token, creator, host.contract_address, total)

        now = host.now()
        campaign_id = host.slots.get_campaign_count() + 1
        campaign = Campaign(
            campaign_id=campaign_id,
            pool_address=pool_address,
            asset=asset,
            reward_token=reward_token,
            daily_reward_amount=daily_reward_amount,
            total_funded_amount=total,
            remaining_funds=total,
            duration_days=duration_days,
            start_time=now,
            end_time=now + duration_days * host.config.seconds_per_day,
            is_active=True,
            creator=creator,
        )
        host.campaigns.put(campaign)
        host.pool_index.put(pool_address, asset, campaign_id)
        host.slots.set_campaign_count(campaign_id)

        host.events.emit(
            ev.CAMPAIGN_CREATED,
            {
                "id": campaign_id,
                "pool": pool_address,
                "asset": asset,
                "token": reward_token,
                "total": total,
                "creator": creator,
            },
            timestamp=now,
        )
        log.info(
            "campaign created: id=%d pool=%s asset=%s total=%d ends=%d",
            campaign_id, pool_address, asset, total, campaign.end_time,
        )
        return campaign_id

    def update_campaign_status(self, campaign_id: int, is_active: bool) -> None:
        host = self.host
        campaign = self.require_campaign(campaign_id)
        host.gate.require_any([host.slots.get_admin(), campaign.creator])

        campaign.is_active = bool(is_active)
        host.campaigns.put(campaign)
        host.events.emit(
            ev.CAMPAIGN_STATUS_UPDATED,
            {"id": campaign_id, "is_active": campaign.is_active},
            timestamp=host.now(),
        )
        log.info("campaign %d status updated to %s", campaign_id, campaign.is_active)

    def shutdown_campaign(self, campaign_id: int) -> int:
        host = self.host
        campaign = self.require_campaign(campaign_id)
        host.gate.require(campaign.creator)

        now = host.now()
        if not campaign.is_expired(now):
            raise CampaignNotActive(
                "campaign has not ended yet",
                details={"campaign_id": campaign_id, "now": now, "end_time": campaign.end_time},
            )
        remaining = campaign.remaining_funds
        if remaining <= 0:
            raise InsufficientFunds("no remaining funds to recover", details={"campaign_id": campaign_id})

        host.payments.transfer(campaign.reward_token, host.contract_address, campaign.creator, remaining)
        campaign.remaining_funds = 0
        host.campaigns.put(campaign)

        host.events.emit(
            ev.CAMPAIGN_SHUTDOWN,
            {"id": campaign_id, "amount": remaining, "creator": campaign.creator},
            timestamp=now,
        )
        log.info("campaign %d shut down; %d returned to %s", campaign_id, remaining, campaign.creator)
        return remaining

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def require_campaign(self, campaign_id: int) -> Campaign:
        campaign = self.host.campaigns.get(campaign_id)
        if campaign is None:
            raise CampaignNotFound(campaign_id=campaign_id)
        return campaign

    def get_campaign(self, campaign_id: int) -> Optional[Campaign]:
        return self.host.campaigns.get(campaign_id)

    def get_campaign_by_pool_asset(self, pool_address: str, asset: str) -> Optional[int]:
        return self.host.pool_index.get(pool_address, asset)

    def get_active_campaigns(self) -> List[Campaign]:
        """Campaigns with the `is_active` flag set, by id. Expiry is not considered."""
        return [c for c in self.all_campaigns() if c.is_active]

    def all_campaigns(self) -> List[Campaign]:
        return list(self.host.campaigns.iter_range(self.get_campaign_count()))

    def get_campaign_count(self) -> int:
        return self.host.slots.get_campaign_count()

    def get_admin(self) -> Optional[str]:
        return self.host.slots.get_admin()


__all__ = ["CampaignRegistry"]
