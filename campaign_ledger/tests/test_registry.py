from __future__ import annotations

import pytest

from campaign_ledger.config import LedgerConfig
from campaign_ledger.contract import RewardCampaignContract
from campaign_ledger.errors import (
    AlreadyInitialized,
    CampaignAlreadyExists,
    CampaignNotFound,
    InvalidAmount,
    NotAuthorized,
)
from campaign_ledger.host import Host
from campaign_ledger.host import events as ev
from campaign_ledger.host.payments import PaymentError

from .conftest import ADMIN, ASSET, CREATOR, DAY, POOL, TOKEN


def test_get_admin_is_none_before_initialize(host):
    ledger = RewardCampaignContract(host)
    assert ledger.get_admin() is None
    assert ledger.get_campaign_count() == 0


def test_initialize_sets_admin_once(ledger, host):
    assert ledger.get_admin() == ADMIN
    assert ledger.get_campaign_count() == 0
    with host.signed_by(ADMIN, "GOTHER"):
        with pytest.raises(AlreadyInitialized):
            ledger.initialize("GOTHER")
    assert ledger.get_admin() == ADMIN


def test_initialize_requires_declared_admin_signature(host):
    ledger = RewardCampaignContract(host)
    with host.signed_by("GMALLORY"):
        with pytest.raises(NotAuthorized):
            ledger.initialize(ADMIN)
    assert ledger.get_admin() is None


def test_duplicate_pool_asset_is_rejected_even_after_shutdown(ledger, make_campaign, clock, host):
    cid = make_campaign(daily=10, days=1)
    with pytest.raises(CampaignAlreadyExists) as ei:
        make_campaign(daily=20, days=3)
    assert ei.value.details["campaign_id"] == cid

    clock.advance(DAY + 1)
    with host.signed_by(CREATOR):
        ledger.shutdown_campaign(cid)
    with pytest.raises(CampaignAlreadyExists):
        make_campaign(daily=20, days=3)

    # other pairs are independent
    assert make_campaign(daily=20, days=3, asset="EURC") == 2
    assert make_campaign(daily=20, days=3, pool="CPOOL2") == 3


def test_ids_are_monotonic_and_failed_creates_do_not_consume_ids(ledger, make_campaign):
    assert make_campaign(asset="A") == 1
    with pytest.raises(InvalidAmount):
        make_campaign(asset="B", daily=-1)
    assert make_campaign(asset="C") == 2
    assert ledger.get_campaign_by_pool_asset(POOL, "B") is None


def test_failed_funding_transfer_leaves_no_trace(ledger, host, tokens):
    n_events = len(host.events)
    with host.signed_by("GPOOR"):
        with pytest.raises(PaymentError):
            ledger.create_campaign(POOL, ASSET, TOKEN, 1000, 5, "GPOOR")
    assert ledger.get_campaign_count() == 0
    assert ledger.get_campaign(1) is None
    assert ledger.get_campaign_by_pool_asset(POOL, ASSET) is None
    assert len(host.events) == n_events
    assert tokens.balance(TOKEN, host.contract_address) == 0


def test_amount_above_bit_limit_is_invalid(ledger, make_campaign):
    limit = ledger.host.config.limits.max_amount
    with pytest.raises(InvalidAmount):
        make_campaign(daily=limit + 1, days=1)
    with pytest.raises(InvalidAmount):
        make_campaign(daily=limit, days=2)


def test_status_toggle_is_independent_of_expiry(ledger, make_campaign, host, clock):
    a = make_campaign(asset="A")
    b = make_campaign(asset="B")
    with host.signed_by(ADMIN):
        ledger.update_campaign_status(a, False)
    assert [c.campaign_id for c in ledger.get_active_campaigns()] == [b]

    clock.advance(10 * DAY)
    # expired campaigns still show as active while their flag is set
    assert [c.campaign_id for c in ledger.get_active_campaigns()] == [b]
    with host.signed_by(CREATOR):
        ledger.update_campaign_status(a, True)
    assert [c.campaign_id for c in ledger.get_active_campaigns()] == [a, b]


def test_status_update_on_missing_campaign(ledger, host):
    with host.signed_by("GSTRANGER"):
        with pytest.raises(CampaignNotFound) as ei:
            ledger.update_campaign_status(42, False)
    assert ei.value.details == {"campaign_id": 42}


def test_paused_campaign_can_still_be_shut_down_after_expiry(ledger, make_campaign, host, clock):
    cid = make_campaign(daily=7, days=2)
    with host.signed_by(ADMIN):
        ledger.update_campaign_status(cid, False)
    clock.advance(2 * DAY + 1)
    with host.signed_by(CREATOR):
        assert ledger.shutdown_campaign(cid) == 14


def test_shutdown_missing_campaign(ledger, host):
    with host.signed_by(CREATOR):
        with pytest.raises(CampaignNotFound):
            ledger.shutdown_campaign(3)


def test_lifecycle_events(ledger, make_campaign, host, clock):
    cid = make_campaign(daily=5, days=1)
    with host.signed_by(ADMIN):
        ledger.update_campaign_status(cid, False)
    clock.advance(DAY + 1)
    with host.signed_by(CREATOR):
        ledger.shutdown_campaign(cid)

    names = [e.name for e in host.events]
    assert names == [
        ev.INITIALIZED,
        ev.CAMPAIGN_CREATED,
        ev.CAMPAIGN_STATUS_UPDATED,
        ev.CAMPAIGN_SHUTDOWN,
    ]
    created = host.events.by_name(ev.CAMPAIGN_CREATED)[0]
    assert created.args == {
        "id": cid,
        "pool": POOL,
        "asset": ASSET,
        "token": TOKEN,
        "total": 5,
        "creator": CREATOR,
    }
    assert [e.seq for e in host.events] == [1, 2, 3, 4]


def test_custom_seconds_per_day(clock, tokens):
    host = Host.in_memory(clock=clock, payments=tokens, config=LedgerConfig(seconds_per_day=60))
    ledger = RewardCampaignContract(host)
    with host.signed_by(ADMIN):
        ledger.initialize(ADMIN)
    with host.signed_by(CREATOR):
        cid = ledger.create_campaign(POOL, ASSET, TOKEN, 1, 3, CREATOR)
    c = ledger.get_campaign(cid)
    assert c.end_time - c.start_time == 180
