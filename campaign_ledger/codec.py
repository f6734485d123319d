"""
campaign_ledger.codec
=====================

Canonical CBOR encode/decode helpers used for ledger records and composite
storage keys:

- Deterministic, canonical map ordering (RFC 8949 "core deterministic" CBOR)
- Shortest integer encodings (amounts may exceed 64 bits; bignums are fine)
- Stable bytes/strings handling

Public API
----------
dumps(obj) -> bytes
loads(data: (bytes|bytearray|memoryview)) -> Any

Notes
-----
* Keys in mappings MUST be of type (str | int | bytes). Floats or other
  non-canonical keys are rejected.
* Dataclasses are converted to plain dicts before encoding.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Mapping, Union

import cbor2


class CodecError(Exception):
    """Raised for canonical CBOR violations or encode/decode failures."""


_KeyType = Union[str, int, bytes]


def _is_key_type(k: Any) -> bool:
    return isinstance(k, (str, int, bytes)) and not isinstance(k, bool)


def _to_plain(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, int, str, bytes)):
        return obj
    if isinstance(obj, float):
        raise CodecError("floats are not allowed in ledger records")
    if isinstance(obj, (bytearray, memoryview)):
        return bytes(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: _to_plain(v) for k, v in asdict(obj).items()}
    if isinstance(obj, Mapping):
        out: Dict[_KeyType, Any] = {}
        for k, v in obj.items():
            if not _is_key_type(k):
                raise CodecError(
                    f"Non-canonical mapping key type {type(k).__name__}; "
                    "only str|int|bytes are allowed"
                )
            out[k] = _to_plain(v)
        return out
    if isinstance(obj, (tuple, list)):
        return [_to_plain(x) for x in obj]
    raise CodecError(f"cannot encode value of type {type(obj).__name__}")


def dumps(obj: Any) -> bytes:
    """Encode to canonical CBOR bytes."""
    plain = _to_plain(obj)
    try:
        return cbor2.dumps(plain, canonical=True)
    except Exception as e:
        raise CodecError(f"canonical encode failed: {e}") from e


def loads(data: Union[bytes, bytearray, memoryview]) -> Any:
    """
    Decode CBOR bytes into standard Python types. Bytes are preserved as `bytes`.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CodecError("loads() expects bytes-like input")
    try:
        return cbor2.loads(bytes(data))
    except Exception as e:
        raise CodecError(f"CBOR decode failed: {e}") from e


__all__ = ["dumps", "loads", "CodecError"]
