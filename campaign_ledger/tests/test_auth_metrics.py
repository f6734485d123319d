from __future__ import annotations

import pytest

from campaign_ledger import metrics
from campaign_ledger.contract import RewardCampaignContract
from campaign_ledger.errors import InsufficientFunds, NotAuthorized
from campaign_ledger.host import Host
from campaign_ledger.host.auth import AuthorizationGate, MockAllAuths, SignerSetAuth
from campaign_ledger.host.context import ContextError, ManualClock, SystemClock, TxContext

from .conftest import ADMIN, ALICE, CREATOR, DAY, POOL, TOKEN, distribute


# ===================================================
# Authorization Gate
# ===================================================

def test_gate_require_and_require_any():
    ctx = TxContext.of(["B"])
    gate = AuthorizationGate(SignerSetAuth(lambda: ctx))
    gate.require("B")
    with pytest.raises(NotAuthorized) as ei:
        gate.require("A")
    assert ei.value.details == {"required": "A"}
    assert gate.require_any(["A", None, "B"]) == "B"
    with pytest.raises(NotAuthorized) as ei:
        gate.require_any(["A", "C"])
    assert ei.value.details == {"required_any": ["A", "C"]}


def test_gate_rejects_missing_principal():
    gate = AuthorizationGate(MockAllAuths())
    with pytest.raises(NotAuthorized):
        gate.require(None)
    gate.require("anyone")


def test_signed_by_restores_previous_context(host):
    with host.signed_by("A"):
        with host.signed_by("B", "C"):
            assert host.context.signers == frozenset({"B", "C"})
        assert host.context.signers == frozenset({"A"})
    assert host.context.signers == frozenset()


def test_mock_all_auths_host(tokens, clock):
    host = Host.in_memory(clock=clock, payments=tokens, mock_all_auths=True)
    ledger = RewardCampaignContract(host)
    ledger.initialize(ADMIN)
    cid = ledger.create_campaign(POOL, "A", TOKEN, 10, 1, CREATOR)
    ledger.distribute_rewards(cid, [ALICE], [1], 1)
    assert ledger.claim_rewards(ALICE, cid) == 10


def test_creator_cannot_act_for_admin_and_admin_cannot_shut_down(ledger, make_campaign, host, clock):
    cid = make_campaign()
    clock.advance(DAY + 1)
    with host.signed_by(ADMIN):
        with pytest.raises(NotAuthorized):
            ledger.shutdown_campaign(cid)
    with host.signed_by("GSTRANGER"):
        with pytest.raises(NotAuthorized):
            ledger.update_campaign_status(cid, False)
    assert ledger.get_campaign(cid).is_active


def test_create_requires_creator_signature(ledger, host):
    with host.signed_by(ADMIN):
        with pytest.raises(NotAuthorized) as ei:
            ledger.create_campaign(POOL, "A", TOKEN, 10, 1, CREATOR)
    assert ei.value.details == {"required": CREATOR}
    assert ledger.get_campaign_count() == 0


def test_system_clock_is_wall_time():
    assert SystemClock().now() > 1_600_000_000


def test_manual_clock_never_moves_backwards():
    clock = ManualClock(10)
    clock.advance(5)
    with pytest.raises(ContextError):
        clock.set(14)
    with pytest.raises(ContextError):
        ManualClock(-1)


# ===================================================
# Metrics
# ===================================================

def _sample(name: str, **labels) -> float:
    return metrics.REGISTRY.get_sample_value(name, labels) or 0.0


def test_operation_metrics(ledger, make_campaign):
    ok0 = _sample("campaign_ledger_operations_total", op="claim_rewards", result="ok")
    err0 = _sample("campaign_ledger_operations_total", op="claim_rewards", result="error")
    claimed0 = _sample("campaign_ledger_rewards_claimed_total")
    dist0 = _sample("campaign_ledger_rewards_distributed_total")

    cid = make_campaign(daily=40, days=1)
    distribute(ledger, cid, [ALICE], [1], 1)
    with ledger.host.signed_by(ALICE):
        ledger.claim_rewards(ALICE, cid)
        with pytest.raises(InsufficientFunds):
            ledger.claim_rewards(ALICE, cid)

    assert _sample("campaign_ledger_operations_total", op="claim_rewards", result="ok") == ok0 + 1
    assert _sample("campaign_ledger_operations_total", op="claim_rewards", result="error") == err0 + 1
    assert _sample("campaign_ledger_rewards_claimed_total") == claimed0 + 40
    assert _sample("campaign_ledger_rewards_distributed_total") == dist0 + 40
    assert _sample("campaign_ledger_operation_seconds_count", op="claim_rewards") >= 2
    assert "campaign_ledger_campaigns_created_total" in metrics.generate_latest_text()
