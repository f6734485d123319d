# -*- coding: utf-8 -*-
"""
Property tests for the accounting laws of the ledger.

1) Rounding safety: a round over a snapshot whose balances sum to at most
   the reported total never allocates more than the daily amount.

2) Conservation: remaining + Σunclaimed + Σclaimed == total_funded after any
   interleaving of rounds and claims (successful or rejected).

3) Monotonicity: remaining never increases and total_claimed never
   decreases, step by step.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

from hypothesis import given, settings, strategies as st

from campaign_ledger.contract import RewardCampaignContract
from campaign_ledger.distribution import compute_allocations, preview_allocations
from campaign_ledger.errors import LedgerError
from campaign_ledger.host import Host
from campaign_ledger.host.context import ManualClock
from campaign_ledger.host.payments import TokenLedger

from .conftest import ADMIN, ASSET, CREATOR, DAY, POOL, TOKEN, conservation_holds

USERS = ["U0", "U1", "U2", "U3", "U4"]

BALANCE = st.integers(min_value=-10, max_value=10**12)
BALANCES = st.lists(BALANCE, min_size=1, max_size=12)
DAILY = st.integers(min_value=1, max_value=10**9)


@settings(max_examples=200, deadline=None)
@given(daily=DAILY, balances=BALANCES, slack=st.integers(min_value=0, max_value=10**6))
def test_round_never_exceeds_daily(daily: int, balances: List[int], slack: int) -> None:
    total = sum(b for b in balances if b > 0) + slack
    if total <= 0:
        return
    rewards = preview_allocations(daily, balances, total)
    assert sum(rewards) <= daily
    assert all(r >= 0 for r in rewards)


@settings(max_examples=100, deadline=None)
@given(daily=DAILY, balances=BALANCES)
def test_allocations_match_preview(daily: int, balances: List[int]) -> None:
    total = max(1, sum(b for b in balances if b > 0))
    users = [f"U{i}" for i in range(len(balances))]
    allocs = compute_allocations(daily, users, balances, total)
    assert [a.reward for a in allocs] == preview_allocations(daily, balances, total)


_STEP = st.one_of(
    st.tuples(
        st.just("distribute"),
        st.lists(st.tuples(st.sampled_from(USERS), BALANCE), min_size=0, max_size=6),
        st.integers(min_value=-5, max_value=10**13),
    ),
    st.tuples(st.just("claim"), st.sampled_from(USERS), st.just(0)),
    st.tuples(st.just("claim_all"), st.sampled_from(USERS), st.just(0)),
    st.tuples(st.just("tick"), st.integers(min_value=0, max_value=DAY), st.just(0)),
)


def _fresh(daily: int, days: int) -> Tuple[Host, RewardCampaignContract, int]:
    tokens = TokenLedger()
    tokens.mint(TOKEN, CREATOR, daily * days)
    host = Host.in_memory(clock=ManualClock(1_000), payments=tokens)
    ledger = RewardCampaignContract(host)
    with host.signed_by(ADMIN):
        ledger.initialize(ADMIN)
    with host.signed_by(CREATOR):
        cid = ledger.create_campaign(POOL, ASSET, TOKEN, daily, days, CREATOR)
    return host, ledger, cid


@settings(max_examples=75, deadline=None)
@given(
    daily=st.integers(min_value=1, max_value=10**6),
    days=st.integers(min_value=1, max_value=5),
    steps=st.lists(_STEP, min_size=1, max_size=25),
)
def test_conservation_and_monotonicity(daily: int, days: int, steps) -> None:
    host, ledger, cid = _fresh(daily, days)
    clock = host.clock
    prev_remaining = ledger.get_campaign(cid).remaining_funds
    prev_claimed: Dict[str, int] = {u: 0 for u in USERS}

    for op, arg, extra in steps:
        try:
            if op == "distribute":
                users = [u for u, _ in arg]
                balances = [b for _, b in arg]
                with host.signed_by(ADMIN):
                    ledger.distribute_rewards(cid, users, balances, extra)
            elif op == "claim":
                with host.signed_by(arg):
                    ledger.claim_rewards(arg, cid)
            elif op == "claim_all":
                with host.signed_by(arg):
                    ledger.claim_all_rewards(arg)
            else:
                clock.advance(arg)
        except LedgerError:
            pass

        c = ledger.get_campaign(cid)
        assert 0 <= c.remaining_funds <= prev_remaining
        prev_remaining = c.remaining_funds
        assert conservation_holds(ledger, cid, USERS)
        for u in USERS:
            rec = ledger.claims.get_user_reward_record(u, cid)
            claimed = rec.total_claimed if rec is not None else 0
            assert rec is None or rec.unclaimed_amount >= 0
            assert claimed >= prev_claimed[u]
            prev_claimed[u] = claimed

    # custody holds exactly what is still owed or unallocated
    owed = sum(ledger.get_user_rewards(u, cid) for u in USERS)
    assert host.payments.balance(TOKEN, host.contract_address) == owed + prev_remaining
