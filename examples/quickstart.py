#!/usr/bin/env python3
"""
Revenue Ledger Quickstart Example

Walks one revenue period through its whole life:
1. Register investor ownership
2. Record revenue for a period
3. Distribute the period
4. Let investors claim their shares

Run this example:
    python examples/quickstart.py
"""

import os
import sys

# Add src to path so we can import the ledger
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from ledger_clock import BlockHeightClock
from ownership import InMemoryOwnershipRegistry
from revenue_distribution import RevenueLedger

OWNER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
ALICE = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
BOB = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"


def main():
    print("=" * 60)
    print("Revenue Ledger Quickstart")
    print("=" * 60)
    print()

    print("Step 1: Registering ownership...")
    registry = InMemoryOwnershipRegistry()
    registry.set_ownership(1, ALICE, 1000)  # 10%
    registry.set_ownership(1, BOB, 2500)    # 25%
    print(f"  Project 1 holders: {registry.get_project_holders(1)}")
    print()

    clock = BlockHeightClock(start_height=100)
    ledger = RevenueLedger(owner=OWNER, ownership=registry, clock=clock)

    print("Step 2: Recording revenue for period 202301...")
    success, result = ledger.record_revenue(OWNER, 1, 202301, 50000)
    print(f"  Recorded: {success} {result}")

    print("  Claiming before distribution...")
    success, result = ledger.claim_revenue(ALICE, 1, 202301)
    print(f"  Claim accepted: {success} ({result.get('error_type')})")
    print()

    print("Step 3: Distributing...")
    clock.advance()
    success, result = ledger.distribute_revenue(OWNER, 1, 202301)
    print(f"  Distributed at block {result['distribution_timestamp']}")
    print()

    print("Step 4: Claiming...")
    for investor in (ALICE, BOB):
        success, result = ledger.claim_revenue(investor, 1, 202301)
        print(f"  {investor[:8]}... claimed {result['amount']}")

    success, result = ledger.claim_revenue(ALICE, 1, 202301)
    print(f"  Second claim accepted: {success} ({result.get('error_type')})")
    print()

    print("Statistics:")
    for section, values in ledger.get_statistics().items():
        print(f"  {section}: {values}")


if __name__ == "__main__":
    main()
