from __future__ import annotations

import pytest

from campaign_ledger import codec
from campaign_ledger.errors import (
    CampaignAlreadyExists,
    LedgerError,
    NotAuthorized,
    error_for_number,
    error_to_receipt_fields,
)
from campaign_ledger.state.kv import MemoryBackend
from campaign_ledger.state.stores import (
    TIER_INSTANCE,
    TIER_PERSISTENT,
    CampaignStore,
    InstanceSlots,
    PoolAssetIndexStore,
    UserRewardStore,
)
from campaign_ledger.types import Campaign, UserReward


def _campaign(cid: int, **kw) -> Campaign:
    base = dict(
        campaign_id=cid,
        pool_address="P",
        asset=f"A{cid}",
        reward_token="XLM",
        daily_reward_amount=10,
        total_funded_amount=30,
        remaining_funds=30,
        duration_days=3,
        start_time=0,
        end_time=3 * 86_400,
        is_active=True,
        creator="C",
    )
    base.update(kw)
    return Campaign(**base)


# ===================================================
# Codec
# ===================================================

def test_codec_is_canonical_for_maps():
    assert codec.dumps({"b": 1, "a": 2}) == codec.dumps({"a": 2, "b": 1})


def test_codec_handles_amounts_beyond_64_bits():
    v = (1 << 127) - 1
    assert codec.loads(codec.dumps({"x": v})) == {"x": v}


@pytest.mark.parametrize("bad", [1.5, {1.5: 1}, object()])
def test_codec_rejects_non_canonical_values(bad):
    with pytest.raises(codec.CodecError):
        codec.dumps(bad)


def test_codec_rejects_non_bytes_input():
    with pytest.raises(codec.CodecError):
        codec.loads("not bytes")  # type: ignore[arg-type]


# ===================================================
# Repositories
# ===================================================

def test_instance_slots_defaults_and_tier():
    kv = MemoryBackend()
    slots = InstanceSlots(kv)
    assert slots.get_admin() is None
    assert slots.get_campaign_count() == 0
    slots.set_admin("ADMIN")
    slots.set_campaign_count(3)
    assert (slots.get_admin(), slots.get_campaign_count()) == ("ADMIN", 3)
    assert all(k.startswith(TIER_INSTANCE) for k, _ in kv.items())


def test_campaign_store_roundtrip_and_range():
    kv = MemoryBackend()
    store = CampaignStore(kv)
    store.put(_campaign(1))
    store.put(_campaign(3, is_active=False))
    assert store.get(1) == _campaign(1)
    assert store.get(2) is None
    assert [c.campaign_id for c in store.iter_range(3)] == [1, 3]
    assert all(k.startswith(TIER_PERSISTENT) for k, _ in kv.items())


def test_returned_records_are_detached_copies():
    store = CampaignStore(MemoryBackend())
    store.put(_campaign(1))
    c = store.get(1)
    c.remaining_funds = 0
    assert store.get(1).remaining_funds == 30


def test_user_reward_keys_do_not_collide():
    assert UserRewardStore.key("ab", 1) != UserRewardStore.key("a", 11)
    assert PoolAssetIndexStore.key("a|b", "c") != PoolAssetIndexStore.key("a", "b|c")


def test_user_reward_store_default_and_scan():
    kv = MemoryBackend()
    store = UserRewardStore(kv)
    assert store.get("U", 1) is None
    fresh = store.get_or_default("U", 1, now=77)
    assert fresh == UserReward(user="U", campaign_id=1, last_update=77)
    store.put(UserReward("U", 1, unclaimed_amount=5))
    store.put(UserReward("V", 1, unclaimed_amount=6))
    store.put(UserReward("U", 2, unclaimed_amount=7))
    assert sorted(r.user for r in store.iter_campaign(1)) == ["U", "V"]


def test_pool_asset_index_is_write_once():
    idx = PoolAssetIndexStore(MemoryBackend())
    idx.put("P", "A", 1)
    assert idx.get("P", "A") == 1
    assert idx.has("P", "A") and not idx.has("P", "B")
    with pytest.raises(ValueError):
        idx.put("P", "A", 2)


# ===================================================
# Errors
# ===================================================

def test_error_numbers_round_trip():
    for n in range(1, 10):
        cls = error_for_number(n)
        assert issubclass(cls, LedgerError)
        assert cls.number == n
    assert error_for_number(9) is CampaignAlreadyExists
    with pytest.raises(ValueError):
        error_for_number(10)


def test_error_receipt_fields():
    e = NotAuthorized(required="GADMIN")
    assert error_to_receipt_fields(e) == {
        "status": "ERROR",
        "error": {
            "code": "NOT_AUTHORIZED",
            "number": 1,
            "message": "caller not authorized",
            "details": {"required": "GADMIN"},
        },
    }
    assert error_to_receipt_fields(RuntimeError("boom"))["status"] == "FAILED"
    assert str(e).startswith("NOT_AUTHORIZED: caller not authorized")
