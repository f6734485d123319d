from __future__ import annotations

from typing import Callable

import pytest

from campaign_ledger.config import LedgerConfig
from campaign_ledger.contract import RewardCampaignContract
from campaign_ledger.host import Host
from campaign_ledger.host.context import ManualClock
from campaign_ledger.host.payments import TokenLedger

ADMIN = "GADMIN"
CREATOR = "GCREATOR"
POOL = "CPOOL"
ASSET = "USDC"
TOKEN = "XLM"
ALICE = "GALICE"
BOB = "GBOB"
CAROL = "GCAROL"

T0 = 1_700_000_000
DAY = 86_400


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture
def tokens() -> TokenLedger:
    t = TokenLedger()
    t.mint(TOKEN, CREATOR, 10**9)
    return t


@pytest.fixture
def host(clock: ManualClock, tokens: TokenLedger) -> Host:
    return Host.in_memory(clock=clock, payments=tokens, config=LedgerConfig())


@pytest.fixture
def ledger(host: Host) -> RewardCampaignContract:
    """A ledger initialized with ADMIN; CREATOR holds 10**9 TOKEN."""
    c = RewardCampaignContract(host)
    with host.signed_by(ADMIN):
        c.initialize(ADMIN)
    return c


@pytest.fixture
def make_campaign(ledger: RewardCampaignContract, host: Host) -> Callable[..., int]:
    def _make(daily: int = 1000, days: int = 1, pool: str = POOL, asset: str = ASSET, creator: str = CREATOR) -> int:
        with host.signed_by(creator):
            return ledger.create_campaign(pool, asset, TOKEN, daily, days, creator)

    return _make


def distribute(ledger: RewardCampaignContract, campaign_id: int, users, balances, total: int):
    with ledger.host.signed_by(ADMIN):
        return ledger.distribute_rewards(campaign_id, list(users), list(balances), total)


def claim(ledger: RewardCampaignContract, user: str, campaign_id: int) -> int:
    with ledger.host.signed_by(user):
        return ledger.claim_rewards(user, campaign_id)


def conservation_holds(ledger: RewardCampaignContract, campaign_id: int, users) -> bool:
    """remaining + Σunclaimed + Σclaimed == total_funded. Holds until shutdown refunds the creator."""
    c = ledger.get_campaign(campaign_id)
    unclaimed = claimed = 0
    for u in set(users):
        rec = ledger.claims.get_user_reward_record(u, campaign_id)
        if rec is not None:
            unclaimed += rec.unclaimed_amount
            claimed += rec.total_claimed
    return c.remaining_funds + unclaimed + claimed == c.total_funded_amount
