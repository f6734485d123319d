"""
campaign_ledger.distribution — pro-rata allocation of one day's reward budget.

Given a balance snapshot reported by the oracle, each participant receives

    reward_i = floor(balance_i * daily_reward_amount / total_pool_deposits)

computed with exact integer arithmetic. Pairs with a non-positive balance or
a non-positive computed reward are skipped. The flooring dust stays in the
campaign's `remaining_funds`.

The arithmetic is exposed as pure functions (`compute_allocations`,
`preview_allocations`) so that off-chain tooling can preview a round with
exactly the numbers the engine will accrue.

Rounding safety: if Σ balance_i ≤ total_pool_deposits then
Σ reward_i ≤ daily_reward_amount. When the reported total understates the
snapshot, the round can allocate more than the daily amount. The engine
checks `remaining_funds ≥ daily` up front and rejects (InsufficientFunds) a
round that would drive `remaining_funds` below zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from campaign_ledger.errors import (
    CampaignEnded,
    CampaignNotActive,
    InsufficientFunds,
    InvalidAmount,
)
from campaign_ledger.host import Host
from campaign_ledger.host import events as ev
from campaign_ledger.registry import CampaignRegistry

log = logging.getLogger(__name__)

SKIP_NON_POSITIVE_BALANCE = "non_positive_balance"
SKIP_ZERO_REWARD = "zero_reward"


@dataclass(frozen=True)
class Allocation:
    index: int
    user: str
    balance: int
    reward: int
    skipped: Optional[str] = None


@dataclass
class DistributionResult:
    """Outcome of one `distribute_rewards` call."""
    campaign_id: int
    allocations: List[Allocation] = field(default_factory=list)
    total_distributed: int = 0
    noop_reason: Optional[str] = None

    @property
    def accrued_users(self) -> int:
        return sum(1 for a in self.allocations if a.skipped is None)

    @property
    def is_noop(self) -> bool:
        return self.noop_reason is not None


def share(balance: int, daily_reward_amount: int, total_pool_deposits: int) -> int:
    """floor(balance * daily / total) for positive inputs, else 0."""
    if balance <= 0 or total_pool_deposits <= 0:
        return 0
    return (balance * daily_reward_amount) // total_pool_deposits


def compute_allocations(
    daily_reward_amount: int,
    users: Sequence[str],
    balances: Sequence[int],
    total_pool_deposits: int,
) -> List[Allocation]:
    """Per-pair allocation for one round, in input order, including skips."""
    if len(users) != len(balances):
        raise ValueError("users and balances must have the same length")
    out: List[Allocation] = []
    for i, (user, balance) in enumerate(zip(users, balances)):
        if balance <= 0:
            out.append(Allocation(i, user, balance, 0, SKIP_NON_POSITIVE_BALANCE))
            continue
        reward = share(balance, daily_reward_amount, total_pool_deposits)
        if reward <= 0:
            out.append(Allocation(i, user, balance, 0, SKIP_ZERO_REWARD))
            continue
        out.append(Allocation(i, user, balance, reward))
    return out


def preview_allocations(daily_reward_amount: int, balances: Sequence[int], total_pool_deposits: int) -> List[int]:
    """Reward per balance (0 for skipped entries)."""
    return [share(b, daily_reward_amount, total_pool_deposits) for b in balances]


class DistributionEngine:
    def __init__(self, host: Host, registry: CampaignRegistry) -> None:
        self.host = host
        self.registry = registry

    def distribute_rewards(
        self,
        campaign_id: int,
        user_addresses: Sequence[str],
        user_balances: Sequence[int],
        total_pool_deposits: int,
    ) -> DistributionResult:
        host = self.host
        host.gate.require(host.slots.get_admin())

        campaign = self.registry.require_campaign(campaign_id)
        if not campaign.is_active:
            raise CampaignNotActive("campaign is paused", details={"campaign_id": campaign_id})
        now = host.now()
        if campaign.is_expired(now):
            raise CampaignEnded(
                "campaign has ended",
                details={"campaign_id": campaign_id, "now": now, "end_time": campaign.end_time},
            )

        result = DistributionResult(campaign_id=campaign_id)
        if total_pool_deposits <= 0:
            log.info("campaign %d: no pool deposits reported; nothing distributed", campaign_id)
            result.noop_reason = "no_deposits"
            return result
        if not user_addresses or not user_balances or len(user_addresses) != len(user_balances):
            log.info("campaign %d: empty or mismatched snapshot; nothing distributed", campaign_id)
            result.noop_reason = "empty_snapshot"
            return result

        self._check_bounds(user_addresses, user_balances, total_pool_deposits)

        daily = campaign.daily_reward_amount
        if campaign.remaining_funds < daily:
            raise InsufficientFunds(
                "remaining funds below the daily reward amount",
                details={"campaign_id": campaign_id, "remaining_funds": campaign.remaining_funds, "daily": daily},
            )

        result.allocations = compute_allocations(daily, user_addresses, user_balances, total_pool_deposits)
        planned = sum(a.reward for a in result.allocations)
        if planned > campaign.remaining_funds:
            raise InsufficientFunds(
                "round allocates more than the remaining funds",
                details={
                    "campaign_id": campaign_id,
                    "remaining_funds": campaign.remaining_funds,
                    "total_distributed": planned,
                },
            )
        for a in result.allocations:
            if a.skipped is not None:
                log.debug("campaign %d: skipping %s (%s, balance=%d)", campaign_id, a.user, a.skipped, a.balance)
                continue
            rec = host.rewards.get_or_default(a.user, campaign_id, now=now)
            rec.unclaimed_amount += a.reward
            rec.last_update = now
            host.rewards.put(rec)
            result.total_distributed += a.reward
            host.events.emit(ev.REWARD_ACCRUED, {"id": campaign_id, "user": a.user, "amount": a.reward}, timestamp=now)
            log.debug("campaign %d: %s allocated %d", campaign_id, a.user, a.reward)

        campaign.remaining_funds -= result.total_distributed
        host.campaigns.put(campaign)

        host.events.emit(
            ev.REWARDS_DISTRIBUTED,
            {"id": campaign_id, "total": result.total_distributed, "participants": len(user_addresses)},
            timestamp=now,
        )
        log.info(
            "campaign %d: distributed %d to %d users (remaining %d)",
            campaign_id, result.total_distributed, len(user_addresses), campaign.remaining_funds,
        )
        return result

    def _check_bounds(self, users: Sequence[str], balances: Sequence[int], total: int) -> None:
        limits = self.host.config.limits
        if len(users) > limits.max_round_participants:
            raise InvalidAmount(
                "too many participants in one round",
                details={"participants": len(users), "max": limits.max_round_participants},
            )
        if not limits.fits(total):
            raise InvalidAmount("total pool deposits out of range", details={"total_pool_deposits": total})
        for i, b in enumerate(balances):
            if not limits.fits(b):
                raise InvalidAmount("balance out of range", details={"index": i, "balance": b})


__all__ = [
    "Allocation",
    "DistributionResult",
    "DistributionEngine",
    "share",
    "compute_allocations",
    "preview_allocations",
    "SKIP_NON_POSITIVE_BALANCE",
    "SKIP_ZERO_REWARD",
]
