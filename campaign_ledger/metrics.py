from __future__ import annotations

"""
Prometheus metrics for the reward-campaign ledger.

We expose counters and histograms covering:
- operations: public ledger calls by op and result (ok / error / failed)
- campaigns: campaigns created
- amounts: reward units distributed, claimed, and refunded at shutdown
- latencies: wall time per public operation

Amount counters are in the reward token's smallest unit. Metrics are only
recorded for operations that commit; a rolled-back operation increments the
operations counter with a non-"ok" result and nothing else.
"""


import time
from contextlib import contextmanager
from typing import Iterator, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   op:     public operation name, e.g. "create_campaign"
#   result: "ok" | "error" (typed LedgerError) | "failed" (anything else)
# ────────────────────────────────────────────────────────────────────────────────

OPERATIONS = Counter(
    "campaign_ledger_operations_total",
    "Public ledger operations by op and result.",
    labelnames=("op", "result"),
    registry=REGISTRY,
)

CAMPAIGNS_CREATED = Counter(
    "campaign_ledger_campaigns_created_total",
    "Total campaigns created.",
    registry=REGISTRY,
)

REWARDS_DISTRIBUTED = Counter(
    "campaign_ledger_rewards_distributed_total",
    "Reward units accrued to participants by distribution rounds.",
    registry=REGISTRY,
)

REWARDS_CLAIMED = Counter(
    "campaign_ledger_rewards_claimed_total",
    "Reward units paid out to participants.",
    registry=REGISTRY,
)

FUNDS_REFUNDED = Counter(
    "campaign_ledger_funds_refunded_total",
    "Unallocated reward units returned to creators at shutdown.",
    registry=REGISTRY,
)

_LATENCY_BUCKETS = (0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)

OPERATION_SECONDS = Histogram(
    "campaign_ledger_operation_seconds",
    "Wall time spent in a public ledger operation, by op.",
    labelnames=("op",),
    buckets=_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_operation(op: str, result: str) -> None:
    OPERATIONS.labels(op=op, result=result).inc()


def record_campaign_created() -> None:
    CAMPAIGNS_CREATED.inc()


def record_distributed(amount: int) -> None:
    if amount > 0:
        REWARDS_DISTRIBUTED.inc(amount)


def record_claimed(amount: int) -> None:
    if amount > 0:
        REWARDS_CLAIMED.inc(amount)


def record_refunded(amount: int) -> None:
    if amount > 0:
        FUNDS_REFUNDED.inc(amount)


@contextmanager
def time_operation(op: str) -> Iterator[None]:
    """Context manager to observe the latency of one public operation."""
    start = time.perf_counter()
    try:
        yield
    finally:
        OPERATION_SECONDS.labels(op=op).observe(time.perf_counter() - start)


def generate_latest_text(registry: Optional[CollectorRegistry] = None) -> str:
    """Prometheus text exposition of the ledger registry."""
    return generate_latest(registry or REGISTRY).decode("utf-8")


__all__ = [
    "REGISTRY",
    "OPERATIONS",
    "CAMPAIGNS_CREATED",
    "REWARDS_DISTRIBUTED",
    "REWARDS_CLAIMED",
    "FUNDS_REFUNDED",
    "OPERATION_SECONDS",
    "record_operation",
    "record_campaign_created",
    "record_distributed",
    "record_claimed",
    "record_refunded",
    "time_operation",
    "generate_latest_text",
]
