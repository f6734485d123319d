from __future__ import annotations
# campaign_ledger/errors.py
"""
Error kinds raised by the reward-campaign ledger.

Every precondition failure surfaces as a subclass of `LedgerError`. The
enclosing operation is rolled back by `Host.atomic()` before the error
reaches the caller, so no partial ledger mutation survives it.

Each kind carries:
- `code`:   stable machine string (safe for logs/RPC)
- `number`: numeric code matching the on-chain contract's error enum
- `details`: optional JSON-friendly context

Exports:
- LedgerError (base)
- NotAuthorized, CampaignNotFound, InsufficientFunds, AlreadyInitialized,
  InvalidAmount, CampaignEnded, CampaignNotActive, InvalidDuration,
  CampaignAlreadyExists
- error_for_number
- error_to_receipt_fields
"""


import json
from typing import Any, Dict, Mapping, Optional, Type


class LedgerError(Exception):
    """Base class for ledger domain errors."""

    code: str = "LEDGER_ERROR"
    number: int = 0

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "number": self.number,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class NotAuthorized(LedgerError):
    """The authenticated caller is not the principal the operation requires."""
    code = "NOT_AUTHORIZED"
    number = 1

    def __init__(
        self,
        message: str = "caller not authorized",
        *,
        required: Optional[Any] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if required is not None:
            d.setdefault("required", required)
        super().__init__(message, details=d)


class CampaignNotFound(LedgerError):
    code = "CAMPAIGN_NOT_FOUND"
    number = 2

    def __init__(
        self,
        message: str = "campaign not found",
        *,
        campaign_id: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if campaign_id is not None:
            d.setdefault("campaign_id", int(campaign_id))
        super().__init__(message, details=d)


class InsufficientFunds(LedgerError):
    """
    Not enough funds for the requested movement.

    Deliberately overloaded: a claim with no UserReward record and a claim
    with a zero unclaimed balance both raise this kind.
    """
    code = "INSUFFICIENT_FUNDS"
    number = 3


class AlreadyInitialized(LedgerError):
    code = "ALREADY_INITIALIZED"
    number = 4


class InvalidAmount(LedgerError):
    code = "INVALID_AMOUNT"
    number = 5


class CampaignEnded(LedgerError):
    code = "CAMPAIGN_ENDED"
    number = 6


class CampaignNotActive(LedgerError):
    """Raised for a paused campaign, and by shutdown before natural expiry."""
    code = "CAMPAIGN_NOT_ACTIVE"
    number = 7


class InvalidDuration(LedgerError):
    code = "INVALID_DURATION"
    number = 8


class CampaignAlreadyExists(LedgerError):
    code = "CAMPAIGN_ALREADY_EXISTS"
    number = 9


_BY_NUMBER: Dict[int, Type[LedgerError]] = {
    cls.number: cls
    for cls in (
        NotAuthorized,
        CampaignNotFound,
        InsufficientFunds,
        AlreadyInitialized,
        InvalidAmount,
        CampaignEnded,
        CampaignNotActive,
        InvalidDuration,
        CampaignAlreadyExists,
    )
}


def error_for_number(number: int) -> Type[LedgerError]:
    """Map a contract error number back to its Python kind."""
    try:
        return _BY_NUMBER[int(number)]
    except KeyError:
        raise ValueError(f"unknown ledger error number: {number!r}") from None


def error_to_receipt_fields(err: BaseException) -> Dict[str, Any]:
    """
    Canonical failure envelope for an aborted operation:

        {"status": "ERROR" | "FAILED", "error": {...}}

    "ERROR" marks a typed ledger error; "FAILED" anything else (e.g. a
    payment capability that refused the transfer).
    """
    if isinstance(err, LedgerError):
        return {"status": "ERROR", "error": err.to_dict()}
    return {
        "status": "FAILED",
        "error": {"code": type(err).__name__, "message": str(err)},
    }


__all__ = [
    "LedgerError",
    "NotAuthorized",
    "CampaignNotFound",
    "InsufficientFunds",
    "AlreadyInitialized",
    "InvalidAmount",
    "CampaignEnded",
    "CampaignNotActive",
    "InvalidDuration",
    "CampaignAlreadyExists",
    "error_for_number",
    "error_to_receipt_fields",
]
