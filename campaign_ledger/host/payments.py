"""
campaign_ledger.host.payments — payment capability and an in-memory token ledger.

The ledger core never moves tokens itself. It asks the host's payment
capability to `transfer(token, from_, to, amount)` and treats any exception
raised from that call as an unconditional abort of the whole operation.

`TokenLedger` is a simulation-only, multi-token balance book for local runs,
tests and the CLI. Hosts embedding the ledger next to a real chain or
custodian should provide their own `PaymentCapability`.

Notes
-----
* Deterministic: pure integer arithmetic with explicit caps.
* Balances live in a `Journal`, so the ledger takes part in `Host.atomic()`
  checkpoints: a transfer made by an operation that later fails is undone.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional, Protocol, Tuple, runtime_checkable

from campaign_ledger import codec
from campaign_ledger.state.journal import Journal
from campaign_ledger.state.kv import MemoryBackend, StorageBackend, get_int, set_int

log = logging.getLogger(__name__)

MAX_BALANCE_BITS = 256


class PaymentError(Exception):
    """A transfer could not be performed (insufficient balance, bad input, ...)."""


@runtime_checkable
class PaymentCapability(Protocol):
    def transfer(self, token: str, from_: str, to: str, amount: int) -> None: ...


def _check_account(name: str, addr: str) -> None:
    if not isinstance(addr, str) or not addr:
        raise PaymentError(f"{name} must be a non-empty string")


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise PaymentError("amount must be int")
    if amount < 0:
        raise PaymentError("amount must be non-negative")
    if amount.bit_length() > MAX_BALANCE_BITS:
        raise PaymentError(f"amount exceeds {MAX_BALANCE_BITS}-bit limit")


class TokenLedger(PaymentCapability):
    """In-memory balances keyed by (token, account), with checkpoint support."""

    def __init__(self, base: Optional[StorageBackend] = None) -> None:
        self._journal = Journal(base if base is not None else MemoryBackend())

    @staticmethod
    def _key(token: str, account: str) -> bytes:
        return b"bal/" + codec.dumps([token, account])

    @property
    def backend(self) -> StorageBackend:
        return self._journal.base

    # ---- checkpoints (driven by Host.atomic) ---- #

    def begin(self) -> int:
        return self._journal.begin()

    def commit_to(self, marker: int) -> None:
        self._journal.commit_to(marker)

    def revert_to(self, marker: int) -> None:
        self._journal.revert_to(marker)

    # ---- reads ---- #

    def balance(self, token: str, account: str) -> int:
        return get_int(self._journal, self._key(token, account)) or 0

    def balances(self) -> Iterator[Tuple[str, str, int]]:
        """Yield (token, account, balance) for every non-zero entry."""
        for k, raw in self._journal.items():
            token, account = codec.loads(k[len(b"bal/"):])
            amount = int.from_bytes(raw, "big")
            if amount:
                yield token, account, amount

    def total_supply(self, token: str) -> int:
        return sum(amt for tok, _, amt in self.balances() if tok == token)

    # ---- writes ---- #

    def mint(self, token: str, to: str, amount: int) -> None:
        """Host/testing helper: create `amount` of `token` in `to`'s balance."""
        _check_account("token", token)
        _check_account("to", to)
        _check_amount(amount)
        cur = self.balance(token, to)
        if (cur + amount).bit_length() > MAX_BALANCE_BITS:
            raise PaymentError("balance overflow")
        set_int(self._journal, self._key(token, to), cur + amount)

    def transfer(self, token: str, from_: str, to: str, amount: int) -> None:
        """Debit `from_` and credit `to` by `amount` of `token`."""
        _check_account("token", token)
        _check_account("from", from_)
        _check_account("to", to)
        _check_amount(amount)
        if amount == 0 or from_ == to:
            return

        cur_from = self.balance(token, from_)
        if amount > cur_from:
            raise PaymentError(
                f"insufficient {token} balance for {from_}: have {cur_from}, need {amount}"
            )
        cur_to = self.balance(token, to)
        if (cur_to + amount).bit_length() > MAX_BALANCE_BITS:
            raise PaymentError("balance overflow")
        set_int(self._journal, self._key(token, from_), cur_from - amount)
        set_int(self._journal, self._key(token, to), cur_to + amount)
        log.debug("payments: %s %s -> %s amount=%d", token, from_, to, amount)

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        """{token: {account: balance}} of all non-zero balances."""
        out: Dict[str, Dict[str, int]] = {}
        for token, account, amount in self.balances():
            out.setdefault(token, {})[account] = amount
        return out


__all__ = [
    "PaymentError",
    "PaymentCapability",
    "TokenLedger",
]
