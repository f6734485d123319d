"""
campaign_ledger — reward-accounting ledger for liquidity-provider campaigns.

A creator funds a campaign with a fixed daily reward budget over a fixed
number of days. An oracle reports participant balance snapshots; the ledger
accrues each participant's pro-rata share of the day's budget, and
participants later claim what has accrued.

Common symbols are lazily re-exported from their submodules on first access.

Submodules:
- types:         Campaign / UserReward records
- errors:        typed ledger errors (numbered as the on-chain contract)
- config:        LedgerConfig + env/file loaders
- state:         KV backends, journal, typed repositories
- host:          Host (store, auth, payments, clock, events) and atomicity
- registry:      campaign lifecycle
- distribution:  pro-rata accrual engine
- claims:        reward withdrawal
- contract:      RewardCampaignContract (public operation surface)
- oracle:        snapshot loading and round submission
- metrics:       Prometheus counters/histograms
- cli:           `campaign-ledger` command line
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

from .version import __version__

_exports: Dict[str, Tuple[str, str]] = {
    "Campaign": ("types", "Campaign"),
    "UserReward": ("types", "UserReward"),
    "LedgerError": ("errors", "LedgerError"),
    "LedgerConfig": ("config", "LedgerConfig"),
    "Host": ("host", "Host"),
    "RewardCampaignContract": ("contract", "RewardCampaignContract"),
    "DistributionOracle": ("oracle", "DistributionOracle"),
    "Participant": ("oracle", "Participant"),
    "preview_allocations": ("distribution", "preview_allocations"),
}

__all__ = tuple(["__version__", *_exports.keys()])


def __getattr__(name: str) -> Any:
    """
    Lazy attribute loader to avoid import-time dependency tangles.
    """
    if name in _exports:
        submod, symbol = _exports[name]
        mod = _imp(f"{__name__}.{submod}")
        return getattr(mod, symbol)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover
    return sorted(list(globals().keys()) + list(__all__))
