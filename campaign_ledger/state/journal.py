"""
campaign_ledger.state.journal — journaling writes, checkpoints, revert/commit.

A deterministic, in-memory write journal layered over a `StorageBackend`.
It supports nested checkpoints via a stack of overlays. Writes go to the top
overlay; reads consult overlays from top → base. `commit()` merges the top
overlay into the next layer (or the base store if it is the last layer).
`revert()` discards the top overlay.

Key properties
--------------
- Pure Python, no I/O beyond the base backend; safe for unit tests.
- Per-key overlay with explicit deletion markers (`None`).
- Nested checkpoints (begin/commit/revert) with O(changes) merge cost.
- The journal itself satisfies the `StorageBackend` protocol, so typed
  repositories sit on top of it unchanged.

Intended usage
--------------
    j = Journal(MemoryBackend())
    j.begin()                       # start a checkpoint
    j.set(b"k", b"v")
    j.commit()                      # apply to parent/base

Use `revert()` to discard staged changes in the top checkpoint, or
`revert_to(marker)` to unwind several at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .kv import StorageBackend, check_key, check_value


@dataclass
class _Overlay:
    """A single journal layer. `None` means deletion for that key."""

    writes: Dict[bytes, Optional[bytes]] = field(default_factory=dict)


class Journal(StorageBackend):
    """
    A copy-on-write write journal with nested checkpoints over a base store.

    API highlights
    --------------
    - begin() / commit() / revert()
    - commit_to(marker) / revert_to(marker)
    - get() / set() / has() / delete() / items()

    The root overlay (depth 1) is always present; writes outside any
    checkpoint stage there until `flush()` applies them to the base.
    """

    def __init__(self, base: StorageBackend) -> None:
        self._base = base
        self._layers: List[_Overlay] = [_Overlay()]

    @property
    def base(self) -> StorageBackend:
        return self._base

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the depth marker *before* it was opened."""
        marker = len(self._layers)
        self._layers.append(_Overlay())
        return marker

    def commit(self) -> None:
        """
        Commit the top overlay into its parent. Committing the root layer
        applies it to the base store.
        """
        if len(self._layers) == 1:
            self.flush()
            return
        top = self._layers.pop()
        self._layers[-1].writes.update(top.writes)

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    def commit_to(self, marker: int) -> None:
        """
        Commit repeatedly until the current depth equals `marker`.
        Committing to depth==1 applies everything to the base store.
        """
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.commit()
        if marker == 1:
            self.flush()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    def flush(self) -> None:
        """Apply the root overlay to the base store and reset it."""
        root = self._layers[0]
        for k, v in root.writes.items():
            if v is None:
                self._base.delete(k)
            else:
                self._base.set(k, v)
        self._layers[0] = _Overlay()

    # --------------------------------------------------------------------- #
    # Storage API
    # --------------------------------------------------------------------- #

    def get(self, key: bytes) -> Optional[bytes]:
        k = check_key(key)
        for layer in reversed(self._layers):
            if k in layer.writes:
                return layer.writes[k]
        return self._base.get(k)

    def has(self, key: bytes) -> bool:
        return self.get(key) is not None

    def set(self, key: bytes, value: bytes) -> None:
        self._layers[-1].writes[check_key(key)] = check_value(value)

    def delete(self, key: bytes) -> None:
        self._layers[-1].writes[check_key(key)] = None

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        """Visible (key, value) pairs with overlay precedence, sorted by key."""
        visible: Dict[bytes, bytes] = dict(self._base.items())
        for layer in self._layers:
            for k, v in layer.writes.items():
                if v is None:
                    visible.pop(k, None)
                else:
                    visible[k] = v
        for k in sorted(visible):
            yield k, visible[k]

    # --------------------------------------------------------------------- #
    # Debug/Introspection
    # --------------------------------------------------------------------- #

    def pending_keys(self) -> int:
        """Total number of staged key writes across layers."""
        return sum(len(layer.writes) for layer in self._layers)


__all__ = ["Journal"]
