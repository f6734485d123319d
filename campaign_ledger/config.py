from __future__ import annotations
"""
campaign_ledger.config — configuration for the reward-campaign ledger

Covers:
- Campaign clock granularity (seconds per reward day)
- Numeric caps (amount bit-width, participants per distribution round)
- Host identity (custody principal used as the contract's own address)
- Logging level for CLI/tools

Environment overrides (all optional; sensible defaults provided):

  CAMPAIGN_LEDGER_SECONDS_PER_DAY=86400
  CAMPAIGN_LEDGER_MAX_AMOUNT_BITS=127
  CAMPAIGN_LEDGER_MAX_ROUND_PARTICIPANTS=10000
  CAMPAIGN_LEDGER_CONTRACT_ADDRESS=ledger:custody
  CAMPAIGN_LEDGER_LOG_LEVEL=INFO

You can also load from a JSON or YAML file via
`CAMPAIGN_LEDGER_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional
import json
import logging
import os
from pathlib import Path

import yaml


# -------------------------- Data classes --------------------------


@dataclass
class Limits:
    """Numeric caps enforced by the registry and distribution engine."""
    max_amount_bits: int = 127          # amounts fit a signed 128-bit integer
    max_round_participants: int = 10_000

    @property
    def max_amount(self) -> int:
        return (1 << self.max_amount_bits) - 1

    def fits(self, value: int) -> bool:
        """True if `value` fits the signed amount range."""
        return -(self.max_amount + 1) <= value <= self.max_amount

    def validate(self) -> None:
        if not (8 <= self.max_amount_bits <= 255):
            raise ValueError(f"max_amount_bits must be in [8, 255] (got {self.max_amount_bits}).")
        if self.max_round_participants <= 0:
            raise ValueError("max_round_participants must be positive.")


@dataclass
class LedgerConfig:
    """Top-level configuration container."""
    seconds_per_day: int = 86_400
    limits: Limits = field(default_factory=Limits)
    contract_address: str = "ledger:custody"
    log_level: str = "INFO"

    def validate(self) -> None:
        if self.seconds_per_day <= 0:
            raise ValueError("seconds_per_day must be positive.")
        self.limits.validate()
        if not self.contract_address:
            raise ValueError("contract_address must be non-empty.")
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ValueError(f"Unknown log_level {self.log_level!r}.")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def from_env(base: Optional[LedgerConfig] = None, prefix: str = "CAMPAIGN_LEDGER_") -> LedgerConfig:
    """
    Build a LedgerConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or LedgerConfig()

    new_cfg = LedgerConfig(
        seconds_per_day=_getenv_int(f"{prefix}SECONDS_PER_DAY", cfg.seconds_per_day),
        limits=Limits(
            max_amount_bits=_getenv_int(f"{prefix}MAX_AMOUNT_BITS", cfg.limits.max_amount_bits),
            max_round_participants=_getenv_int(
                f"{prefix}MAX_ROUND_PARTICIPANTS", cfg.limits.max_round_participants
            ),
        ),
        contract_address=os.getenv(f"{prefix}CONTRACT_ADDRESS") or cfg.contract_address,
        log_level=(os.getenv(f"{prefix}LOG_LEVEL") or cfg.log_level).upper(),
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> LedgerConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")

    defaults = LedgerConfig()
    limits = data.get("limits", {})

    cfg = LedgerConfig(
        seconds_per_day=int(data.get("seconds_per_day", defaults.seconds_per_day)),
        limits=Limits(
            max_amount_bits=int(limits.get("max_amount_bits", defaults.limits.max_amount_bits)),
            max_round_participants=int(
                limits.get("max_round_participants", defaults.limits.max_round_participants)
            ),
        ),
        contract_address=str(data.get("contract_address", defaults.contract_address)),
        log_level=str(data.get("log_level", defaults.log_level)).upper(),
    )
    cfg.validate()
    return cfg


def load() -> LedgerConfig:
    """
    Load configuration using the following precedence:
      1) File at $CAMPAIGN_LEDGER_CONFIG_FILE (JSON/YAML)
      2) Environment variables (CAMPAIGN_LEDGER_*), applied on top of defaults or file values
    """
    file_path = os.getenv("CAMPAIGN_LEDGER_CONFIG_FILE")
    base = from_file(file_path) if file_path else LedgerConfig()
    return from_env(base=base)


def pretty(cfg: Optional[LedgerConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "Limits",
    "LedgerConfig",
    "from_env",
    "from_file",
    "load",
    "pretty",
]
