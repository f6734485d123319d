"""
campaign_ledger.claims — withdrawal of accrued rewards.

A claim moves a user's whole `unclaimed_amount` for one campaign into
`total_claimed` and pays it out of custody in the campaign's reward token.

Ordering: the payout is requested *before* the UserReward record is written.
Combined with the enclosing atomic unit this means a refused transfer never
leaves a record zeroed. `claim_all_rewards` additionally wraps each campaign
in a nested checkpoint.

Errors
  • NotAuthorized      : caller is not `user`
  • CampaignNotFound   : unknown campaign id (single claim only)
  • InsufficientFunds  : no record, or nothing unclaimed (single claim only)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from campaign_ledger.errors import InsufficientFunds
from campaign_ledger.host import Host
from campaign_ledger.host import events as ev
from campaign_ledger.registry import CampaignRegistry
from campaign_ledger.types import Campaign, UserReward

log = logging.getLogger(__name__)


class ClaimProcessor:
    def __init__(self, host: Host, registry: CampaignRegistry) -> None:
        self.host = host
        self.registry = registry

    def _pay_and_record(self, campaign: Campaign, rec: UserReward) -> int:
        host = self.host
        amount = rec.unclaimed_amount
        host.payments.transfer(campaign.reward_token, host.contract_address, rec.user, amount)
        rec.unclaimed_amount = 0
        rec.total_claimed += amount
        host.rewards.put(rec)
        host.events.emit(
            ev.REWARDS_CLAIMED,
            {"id": campaign.campaign_id, "user": rec.user, "amount": amount},
            timestamp=host.now(),
        )
        return amount

    def claim_rewards(self, user: str, campaign_id: int) -> int:
        host = self.host
        host.gate.require(user)

        campaign = self.registry.require_campaign(campaign_id)
        rec = host.rewards.get(user, campaign_id)
        if rec is None:
            raise InsufficientFunds(
                "no rewards recorded for user", details={"user": user, "campaign_id": campaign_id}
            )
        if rec.unclaimed_amount <= 0:
            raise InsufficientFunds("nothing to claim", details={"user": user, "campaign_id": campaign_id})

        amount = self._pay_and_record(campaign, rec)
        log.info("user %s claimed %d from campaign %d", user, amount, campaign_id)
        return amount

    def claim_all_rewards(self, user: str) -> List[Tuple[int, int]]:
        host = self.host
        host.gate.require(user)

        claimed: List[Tuple[int, int]] = []
        for campaign_id in range(1, self.registry.get_campaign_count() + 1):
            rec = host.rewards.get(user, campaign_id)
            if rec is None or rec.unclaimed_amount <= 0:
                continue
            campaign = host.campaigns.get(campaign_id)
            if campaign is None:
                continue
            with host.atomic(f"claim_all_rewards[{campaign_id}]"):
                amount = self._pay_and_record(campaign, rec)
            claimed.append((campaign_id, amount))

        log.info("user %s claimed rewards from %d campaign(s)", user, len(claimed))
        return claimed

    # ---- reads ---- #

    def get_user_rewards(self, user: str, campaign_id: int) -> int:
        rec = self.host.rewards.get(user, campaign_id)
        return rec.unclaimed_amount if rec is not None else 0

    def get_user_reward_record(self, user: str, campaign_id: int) -> Optional[UserReward]:
        return self.host.rewards.get(user, campaign_id)

    def get_user_all_rewards(self, user: str) -> List[Tuple[int, int]]:
        out: List[Tuple[int, int]] = []
        for campaign_id in range(1, self.registry.get_campaign_count() + 1):
            amount = self.get_user_rewards(user, campaign_id)
            if amount > 0:
                out.append((campaign_id, amount))
        return out


__all__ = ["ClaimProcessor"]
