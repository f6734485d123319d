"""
campaign_ledger.cli
-------------------
Command-line entrypoint for driving a local ledger:

    campaign-ledger --help
    python -m campaign_ledger.cli --help
"""
from __future__ import annotations

from .main import app

__all__ = ["app"]
