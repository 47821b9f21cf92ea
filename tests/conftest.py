"""
Pytest configuration and shared fixtures for the revenue ledger tests.

This module provides shared fixtures and test configuration including:
- Test environment variables (set before any imports)
- Ledger instances with a deterministic block clock
- Flask app and client with a freshly reset shared ledger
- API authentication headers
"""

import os
import sys

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

OWNER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
INVESTOR_A = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
INVESTOR_B = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"
OUTSIDER = "ST3AM1A56AK2C1XAFJ4115ZSV26EB49BVQ10MGCS0"

# Set up test environment before any imports
os.environ["LEDGER_OWNER"] = OWNER
os.environ["LEDGER_CLOCK"] = "block"
os.environ.pop("LEDGER_DEFAULT_OWNERSHIP_BPS", None)
os.environ["REVENUE_API_KEY"] = "test-api-key-12345"
os.environ["REVENUE_REQUIRE_AUTH"] = "false"


@pytest.fixture
def clock():
    """Block clock starting at height 123."""
    from ledger_clock import BlockHeightClock
    return BlockHeightClock(start_height=123)


@pytest.fixture
def registry():
    """Ownership registry where investor A holds 10% of project 1."""
    from ownership import InMemoryOwnershipRegistry
    return InMemoryOwnershipRegistry({1: {INVESTOR_A: 1000}})


@pytest.fixture
def ledger(registry, clock):
    """Fresh ledger owned by OWNER."""
    from revenue_distribution import RevenueLedger
    return RevenueLedger(owner=OWNER, ownership=registry, clock=clock)


@pytest.fixture
def stub_ledger(clock):
    """Ledger using the fixed 10% ownership of the on-chain contract stub."""
    from ownership import FixedOwnership
    from revenue_distribution import RevenueLedger
    return RevenueLedger(owner=OWNER, ownership=FixedOwnership(1000), clock=clock)


@pytest.fixture(scope="function")
def flask_app():
    """Create Flask test app with a reset shared ledger for each test."""
    from api import create_app, state

    state.reset_state()
    app = create_app(testing=True)
    yield app
    state.reset_state()


@pytest.fixture(scope="function")
def flask_client(flask_app):
    """Create Flask test client."""
    return flask_app.test_client()


@pytest.fixture
def test_auth_headers():
    """Headers for authenticated requests."""
    return {
        "Content-Type": "application/json",
        "X-API-Key": "test-api-key-12345"
    }
