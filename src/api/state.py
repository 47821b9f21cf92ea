"""
Shared state for the revenue ledger API.

This module holds the ledger instance used by every blueprint. It is built
from environment variables on import and can be rebuilt or reset for tests.
"""

import logging
import os

from ledger_clock import get_clock
from ownership import FixedOwnership, InMemoryOwnershipRegistry, OwnershipLookup
from revenue_distribution import RevenueLedger
from scaling import get_lock_manager

logger = logging.getLogger(__name__)

# ============================================================
# Configuration
# ============================================================

DEFAULT_OWNER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"

LEDGER_OWNER = os.getenv("LEDGER_OWNER", DEFAULT_OWNER)
LEDGER_CLOCK = os.getenv("LEDGER_CLOCK", "block")
LEDGER_DEFAULT_OWNERSHIP_BPS = os.getenv("LEDGER_DEFAULT_OWNERSHIP_BPS")


def build_ownership(default_bps: str | None = LEDGER_DEFAULT_OWNERSHIP_BPS) -> OwnershipLookup:
    """
    Build the ownership lookup.

    A fixed share for every investor when default_bps is set, otherwise an
    empty in-memory registry filled through the API.
    """
    if default_bps:
        return FixedOwnership(int(default_bps))
    return InMemoryOwnershipRegistry()


def build_ledger(
    owner: str = LEDGER_OWNER,
    clock_mode: str = LEDGER_CLOCK,
    default_bps: str | None = LEDGER_DEFAULT_OWNERSHIP_BPS,
) -> RevenueLedger:
    """Build a ledger from configuration values."""
    ledger = RevenueLedger(
        owner=owner,
        ownership=build_ownership(default_bps),
        clock=get_clock(clock_mode),
        lock_manager=get_lock_manager(),
    )
    logger.info(
        f"Revenue ledger ready (owner={owner}, clock={clock_mode}, "
        f"ownership={type(ledger.ownership).__name__})"
    )
    return ledger


# ============================================================
# Shared State
# ============================================================

ledger: RevenueLedger = build_ledger()


def reset_state() -> None:
    """Return the shared ledger and ownership registry to an empty state."""
    ledger.reset()
    if isinstance(ledger.ownership, InMemoryOwnershipRegistry):
        ledger.ownership.clear()
