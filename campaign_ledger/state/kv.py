"""
campaign_ledger.state.kv — host key/value storage for ledger records.

Design goals
------------
- Simple default: in-process memory backend for local runs & tests.
- Pluggable: a tiny backend interface so the host can swap in a real store.
- Bytes-in / bytes-out; all inputs are copied to immutable `bytes`.

Backend API
-----------
- get(key: bytes) -> Optional[bytes]
- set(key: bytes, value: bytes) -> None
- has(key: bytes) -> bool
- delete(key: bytes) -> None
- items() -> Iterator[(key, value)]     # sorted by key; used for snapshots

Typed int helpers (`get_int` / `set_int`) store unsigned big-endian values,
mirroring the VM storage API.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterator, Mapping, Optional, Protocol, Tuple, runtime_checkable

MAX_KEY_BYTES = 1024


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for ledger storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def has(self, key: bytes) -> bool: ...
    def delete(self, key: bytes) -> None: ...
    def items(self) -> Iterator[Tuple[bytes, bytes]]: ...


def check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise TypeError("storage key must be bytes-like")
    k = bytes(key)
    if len(k) == 0:
        raise ValueError("storage key must be non-empty")
    if len(k) > MAX_KEY_BYTES:
        raise ValueError(f"storage key too long (>{MAX_KEY_BYTES} bytes)")
    return k


def check_value(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError("storage value must be bytes-like")
    return bytes(value)


class MemoryBackend(StorageBackend):
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self, initial: Optional[Mapping[bytes, bytes]] = None) -> None:
        self._store: Dict[bytes, bytes] = {}
        self._lock = threading.RLock()
        for k, v in (initial or {}).items():
            self._store[check_key(k)] = check_value(v)

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._store.get(check_key(key))

    def set(self, key: bytes, value: bytes) -> None:
        k, v = check_key(key), check_value(value)
        with self._lock:
            self._store[k] = v

    def has(self, key: bytes) -> bool:
        with self._lock:
            return check_key(key) in self._store

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._store.pop(check_key(key), None)

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        with self._lock:
            snapshot = sorted(self._store.items())
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# ------------------------------ Typed helpers ----------------------------- #

_U256_MAX = (1 << 256) - 1


def get_int(store: StorageBackend, key: bytes) -> Optional[int]:
    """Read a big-endian unsigned integer at `key`. Returns None if not set."""
    raw = store.get(key)
    if raw is None:
        return None
    if len(raw) == 0:
        return 0
    return int.from_bytes(raw, byteorder="big", signed=False)


def set_int(store: StorageBackend, key: bytes, value: int) -> None:
    """Store `value` as a minimal big-endian unsigned integer."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError("set_int value must be int")
    if value < 0 or value > _U256_MAX:
        raise ValueError("set_int out of range (must fit in 256 bits)")
    if value == 0:
        encoded = b"\x00"
    else:
        encoded = value.to_bytes((value.bit_length() + 7) // 8, "big")
    store.set(key, encoded)


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "MAX_KEY_BYTES",
    "check_key",
    "check_value",
    "get_int",
    "set_int",
]
