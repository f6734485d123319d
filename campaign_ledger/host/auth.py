"""
campaign_ledger.host.auth — caller authentication and the authorization gate.

Two layers:

- `CallerAuth` is the host capability: given a principal, report whether the
  current transaction was authorized by it. `SignerSetAuth` answers from the
  host's `TxContext`; `MockAllAuths` approves everything (local tooling only).

- `AuthorizationGate` turns those answers into preconditions. It has no state
  of its own and never returns a value; it either passes or raises
  `NotAuthorized`, aborting the enclosing operation.

Policies per operation are a small closed set of principals; "admin OR
creator" is expressed with `require_any`.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Protocol, runtime_checkable

from campaign_ledger.errors import NotAuthorized

from .context import TxContext

log = logging.getLogger(__name__)


@runtime_checkable
class CallerAuth(Protocol):
    def is_authorized(self, principal: str) -> bool: ...


class SignerSetAuth:
    """Authorize principals that signed the current transaction."""

    def __init__(self, context: Callable[[], TxContext]) -> None:
        self._context = context

    def is_authorized(self, principal: str) -> bool:
        return self._context().signed_by(principal)


class MockAllAuths:
    """Approve every principal. Mirrors a test host's mock-all-auths mode."""

    def is_authorized(self, principal: str) -> bool:
        return True


class AuthorizationGate:
    def __init__(self, auth: CallerAuth) -> None:
        self._auth = auth

    def require(self, principal: Optional[str]) -> None:
        """Raise NotAuthorized unless `principal` authorized this transaction."""
        if principal is None or not self._auth.is_authorized(principal):
            log.debug("auth: denied required=%s", principal)
            raise NotAuthorized(required=principal)

    def require_any(self, principals: Iterable[Optional[str]]) -> str:
        """
        Pass if any of `principals` authorized this transaction.

        Returns the first authorizing principal (in the given order).
        """
        candidates = [p for p in principals if p is not None]
        for p in candidates:
            if self._auth.is_authorized(p):
                return p
        log.debug("auth: denied required_any=%s", candidates)
        raise NotAuthorized(details={"required_any": candidates})


__all__ = [
    "CallerAuth",
    "SignerSetAuth",
    "MockAllAuths",
    "AuthorizationGate",
]
