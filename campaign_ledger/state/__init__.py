"""
campaign_ledger.state — storage subsystem (KV backends, journal, repositories).

Common symbols are lazily re-exported from their submodules on first access
to keep import-time overhead low and avoid circulars.

Submodules:
- kv:       StorageBackend protocol, in-memory backend, int helpers
- journal:  journaling writes, checkpoints, revert/commit
- stores:   typed repositories (instance slots, campaigns, user rewards, index)
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

_exports: Dict[str, Tuple[str, str]] = {
    "StorageBackend": ("kv", "StorageBackend"),
    "MemoryBackend": ("kv", "MemoryBackend"),
    "Journal": ("journal", "Journal"),
    "InstanceSlots": ("stores", "InstanceSlots"),
    "CampaignStore": ("stores", "CampaignStore"),
    "UserRewardStore": ("stores", "UserRewardStore"),
    "PoolAssetIndexStore": ("stores", "PoolAssetIndexStore"),
}

__all__ = tuple(_exports.keys())


def __getattr__(name: str) -> Any:
    if name in _exports:
        submod, symbol = _exports[name]
        mod = _imp(f"{__name__}.{submod}")
        return getattr(mod, symbol)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover
    return sorted(list(globals().keys()) + list(__all__))
