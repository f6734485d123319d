"""
campaign_ledger.contract — the public operation surface of the ledger.

`RewardCampaignContract` wires the Campaign Registry, Distribution Engine and
Claim Processor to one `Host` and runs every mutating operation as a single
atomic unit: authorization failures, violated preconditions and refused
transfers all roll back every write (including emitted events) of that call.

Reads are pure and need no authorization.

Example
-------
    host = Host.in_memory()
    ledger = RewardCampaignContract(host)
    with host.signed_by("admin"):
        ledger.initialize("admin")
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple

from campaign_ledger import metrics
from campaign_ledger.claims import ClaimProcessor
from campaign_ledger.distribution import DistributionEngine, DistributionResult
from campaign_ledger.errors import LedgerError
from campaign_ledger.host import Host
from campaign_ledger.registry import CampaignRegistry
from campaign_ledger.types import Campaign


class RewardCampaignContract:
    def __init__(self, host: Host) -> None:
        self.host = host
        self.registry = CampaignRegistry(host)
        self.engine = DistributionEngine(host, self.registry)
        self.claims = ClaimProcessor(host, self.registry)

    @contextmanager
    def _operation(self, op: str) -> Iterator[None]:
        with metrics.time_operation(op):
            try:
                with self.host.atomic(op):
                    yield
            except LedgerError:
                metrics.record_operation(op, "error")
                raise
            except Exception:
                metrics.record_operation(op, "failed")
                raise
        metrics.record_operation(op, "ok")

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def initialize(self, admin: str) -> None:
        with self._operation("initialize"):
            self.registry.initialize(admin)

    def create_campaign(
        self,
        pool_address: str,
        asset: str,
        reward_token: str,
        daily_reward_amount: int,
        duration_days: int,
        creator: str,
    ) -> int:
        with self._operation("create_campaign"):
            campaign_id = self.registry.create_campaign(
                pool_address, asset, reward_token, daily_reward_amount, duration_days, creator
            )
        metrics.record_campaign_created()
        return campaign_id

    def distribute_rewards(
        self,
        campaign_id: int,
        user_addresses: Sequence[str],
        user_balances: Sequence[int],
        total_pool_deposits: int,
    ) -> DistributionResult:
        with self._operation("distribute_rewards"):
            result = self.engine.distribute_rewards(
                campaign_id, user_addresses, user_balances, total_pool_deposits
            )
        metrics.record_distributed(result.total_distributed)
        return result

    def claim_rewards(self, user: str, campaign_id: int) -> int:
        with self._operation("claim_rewards"):
            amount = self.claims.claim_rewards(user, campaign_id)
        metrics.record_claimed(amount)
        return amount

    def claim_all_rewards(self, user: str) -> List[Tuple[int, int]]:
        with self._operation("claim_all_rewards"):
            claimed = self.claims.claim_all_rewards(user)
        metrics.record_claimed(sum(amount for _, amount in claimed))
        return claimed

    def update_campaign_status(self, campaign_id: int, is_active: bool) -> None:
        with self._operation("update_campaign_status"):
            self.registry.update_campaign_status(campaign_id, is_active)

    def shutdown_campaign(self, campaign_id: int) -> int:
        with self._operation("shutdown_campaign"):
            amount = self.registry.shutdown_campaign(campaign_id)
        metrics.record_refunded(amount)
        return amount

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_user_rewards(self, user: str, campaign_id: int) -> int:
        return self.claims.get_user_rewards(user, campaign_id)

    def get_user_all_rewards(self, user: str) -> List[Tuple[int, int]]:
        return self.claims.get_user_all_rewards(user)

    def get_campaign(self, campaign_id: int) -> Optional[Campaign]:
        return self.registry.get_campaign(campaign_id)

    def get_campaign_by_pool_asset(self, pool_address: str, asset: str) -> Optional[int]:
        return self.registry.get_campaign_by_pool_asset(pool_address, asset)

    def get_active_campaigns(self) -> List[Campaign]:
        return self.registry.get_active_campaigns()

    def get_campaign_count(self) -> int:
        return self.registry.get_campaign_count()

    def get_admin(self) -> Optional[str]:
        return self.registry.get_admin()


__all__ = ["RewardCampaignContract"]
