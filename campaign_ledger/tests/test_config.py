from __future__ import annotations

import json

import pytest

from campaign_ledger import config as cfgmod
from campaign_ledger.config import LedgerConfig, Limits


def test_defaults_validate():
    cfg = LedgerConfig()
    cfg.validate()
    assert cfg.seconds_per_day == 86_400
    assert cfg.limits.max_amount == (1 << 127) - 1
    assert cfg.contract_address == "ledger:custody"


def test_limits_fit_signed_range():
    lim = Limits(max_amount_bits=8)
    assert lim.fits(255) and lim.fits(-256)
    assert not lim.fits(256) and not lim.fits(-257)


@pytest.mark.parametrize(
    "cfg",
    [
        LedgerConfig(seconds_per_day=0),
        LedgerConfig(limits=Limits(max_amount_bits=4)),
        LedgerConfig(limits=Limits(max_round_participants=0)),
        LedgerConfig(contract_address=""),
        LedgerConfig(log_level="CHATTY"),
    ],
)
def test_invalid_configs(cfg):
    with pytest.raises(ValueError):
        cfg.validate()


def test_from_env(monkeypatch):
    monkeypatch.setenv("CAMPAIGN_LEDGER_SECONDS_PER_DAY", "3_600")
    monkeypatch.setenv("CAMPAIGN_LEDGER_MAX_ROUND_PARTICIPANTS", "50")
    monkeypatch.setenv("CAMPAIGN_LEDGER_CONTRACT_ADDRESS", "CCUSTODY")
    monkeypatch.setenv("CAMPAIGN_LEDGER_LOG_LEVEL", "debug")
    cfg = cfgmod.from_env()
    assert cfg.seconds_per_day == 3600
    assert cfg.limits.max_round_participants == 50
    assert cfg.limits.max_amount_bits == 127
    assert cfg.contract_address == "CCUSTODY"
    assert cfg.log_level == "DEBUG"


def test_from_env_rejects_garbage(monkeypatch):
    monkeypatch.setenv("CAMPAIGN_LEDGER_SECONDS_PER_DAY", "one day")
    with pytest.raises(ValueError):
        cfgmod.from_env()


def test_yaml_file_then_env_precedence(tmp_path, monkeypatch):
    p = tmp_path / "ledger.yaml"
    p.write_text("seconds_per_day: 60\nlimits:\n  max_round_participants: 5\ncontract_address: FILE\n")
    monkeypatch.setenv("CAMPAIGN_LEDGER_CONFIG_FILE", str(p))
    monkeypatch.setenv("CAMPAIGN_LEDGER_CONTRACT_ADDRESS", "ENV")
    cfg = cfgmod.load()
    assert cfg.seconds_per_day == 60
    assert cfg.limits.max_round_participants == 5
    assert cfg.contract_address == "ENV"


def test_json_file(tmp_path):
    p = tmp_path / "ledger.json"
    p.write_text(json.dumps({"limits": {"max_amount_bits": 63}}))
    cfg = cfgmod.from_file(p)
    assert cfg.limits.max_amount == (1 << 63) - 1
    assert cfg.seconds_per_day == 86_400


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        cfgmod.from_file(tmp_path / "nope.yaml")


def test_pretty_is_json():
    out = json.loads(cfgmod.pretty(LedgerConfig()))
    assert out["limits"]["max_round_participants"] == 10_000
