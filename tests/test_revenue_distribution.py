"""
Tests for the revenue ledger (src/revenue_distribution.py)

Tests cover:
- Investment contract reference
- Recording revenue and amount validation
- Distribution and timestamps
- Share calculation
- Claims and double-claim protection
- Authorization and error ordering
- Audit trail, queries, statistics and reset
"""

import sys
import threading
import time
from decimal import Decimal

import pytest

sys.path.insert(0, "src")

from ownership import FixedOwnership, InMemoryOwnershipRegistry, OwnershipLookup
from revenue_distribution import (
    ERROR_CODES,
    EVENT_INVESTMENT_CONTRACT_SET,
    EVENT_REVENUE_CLAIMED,
    EVENT_REVENUE_DISTRIBUTED,
    EVENT_REVENUE_RECORDED,
    InvestorClaim,
    LedgerError,
    RevenueLedger,
    RevenuePeriod,
    coerce_amount,
)

OWNER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
INVESTOR_A = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
INVESTOR_B = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"
OUTSIDER = "ST3AM1A56AK2C1XAFJ4115ZSV26EB49BVQ10MGCS0"


def snapshot(ledger):
    """Comparable copy of the mutable ledger state."""
    return (
        {k: v.to_dict() for k, v in ledger.periods.items()},
        {k: v.to_dict() for k, v in ledger.claims.items()},
        ledger.investment_contract,
        len(ledger.events),
    )


# ============================================================
# Initialization Tests
# ============================================================

class TestLedgerInitialization:
    """Tests for ledger construction."""

    def test_initialize_empty(self, ledger):
        """Should start with no periods, claims or contract."""
        assert ledger.owner == OWNER
        assert ledger.periods == {}
        assert ledger.claims == {}
        assert ledger.investment_contract is None
        assert ledger.events == []

    def test_owner_required(self):
        """Should refuse to build a ledger without an owner."""
        with pytest.raises(ValueError):
            RevenueLedger(owner="")

    def test_default_collaborators(self):
        """Should default to an empty registry and a block clock."""
        ledger = RevenueLedger(owner=OWNER)

        assert isinstance(ledger.ownership, InMemoryOwnershipRegistry)
        assert ledger.clock.now() == 1


# ============================================================
# Investment Contract Tests
# ============================================================

class TestSetInvestmentContract:
    """Tests for setting the investment contract reference."""

    def test_owner_sets_reference(self, ledger):
        """Owner should be able to set the reference."""
        success, result = ledger.set_investment_contract(OWNER, INVESTOR_A)

        assert success is True
        assert result["investment_contract"] == INVESTOR_A
        assert ledger.investment_contract == INVESTOR_A

    def test_overwrites_previous_reference(self, ledger):
        """A second call should replace the reference."""
        ledger.set_investment_contract(OWNER, "ST1.investment-v1")
        ledger.set_investment_contract(OWNER, "ST1.investment-v2")

        assert ledger.investment_contract == "ST1.investment-v2"
        assert ledger.events[-1].data["previous"] == "ST1.investment-v1"

    def test_non_owner_rejected(self, ledger):
        """Non-owners should get Unauthorized and change nothing."""
        success, result = ledger.set_investment_contract(OUTSIDER, INVESTOR_A)

        assert success is False
        assert result["error_type"] == LedgerError.UNAUTHORIZED.value
        assert result["code"] == 403
        assert ledger.investment_contract is None
        assert ledger.events == []


# ============================================================
# Record Revenue Tests
# ============================================================

class TestRecordRevenue:
    """Tests for recording revenue."""

    def test_record_revenue(self, ledger):
        """Should create an undistributed period."""
        success, result = ledger.record_revenue(OWNER, 1, 202301, 50000)

        assert success is True
        assert result["total_revenue"] == 50000
        assert result["distributed"] is False

        period = ledger.get_revenue_period(1, 202301)
        assert isinstance(period, RevenuePeriod)
        assert period.total_revenue == 50000
        assert period.distributed is False
        assert period.distribution_timestamp == 0

    def test_record_twice_rejected(self, ledger):
        """A second record for the same key should yield AlreadyRecorded."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)

        success, result = ledger.record_revenue(OWNER, 1, 202301, 99999)

        assert success is False
        assert result["error_type"] == LedgerError.ALREADY_RECORDED.value
        assert result["code"] == 1
        assert ledger.get_revenue_period(1, 202301).total_revenue == 50000

    def test_same_period_different_projects(self, ledger):
        """Keys are (project, period): other projects are independent."""
        assert ledger.record_revenue(OWNER, 1, 202301, 100)[0] is True
        assert ledger.record_revenue(OWNER, 2, 202301, 200)[0] is True
        assert ledger.record_revenue(OWNER, 1, 202302, 300)[0] is True

        assert len(ledger.periods) == 3

    def test_zero_revenue_allowed(self, ledger):
        """Zero is a valid non-negative amount."""
        success, result = ledger.record_revenue(OWNER, 1, 202301, 0)

        assert success is True
        assert result["total_revenue"] == 0

    def test_non_owner_rejected(self, ledger):
        """Non-owners should get Unauthorized."""
        success, result = ledger.record_revenue(INVESTOR_A, 1, 202301, 50000)

        assert success is False
        assert result["error_type"] == LedgerError.UNAUTHORIZED.value
        assert ledger.get_revenue_period(1, 202301) is None

    @pytest.mark.parametrize("amount", [-1, 10.5, "50000", None, True, float("nan"), Decimal("1.5")])
    def test_invalid_amount_rejected(self, ledger, amount):
        """Negative, fractional or non-numeric amounts should be rejected."""
        success, result = ledger.record_revenue(OWNER, 1, 202301, amount)

        assert success is False
        assert result["error_type"] == LedgerError.INVALID_AMOUNT.value
        assert ledger.periods == {}

    def test_integral_decimal_accepted(self, ledger):
        """Integral Decimal and float amounts are normalized to int."""
        ledger.record_revenue(OWNER, 1, 202301, Decimal("50000"))
        ledger.record_revenue(OWNER, 1, 202302, 70000.0)

        assert ledger.get_revenue_period(1, 202301).total_revenue == 50000
        assert type(ledger.get_revenue_period(1, 202302).total_revenue) is int

    def test_unauthorized_checked_before_amount(self, ledger):
        """Authorization is checked before anything else."""
        success, result = ledger.record_revenue(OUTSIDER, 1, 202301, -5)

        assert result["error_type"] == LedgerError.UNAUTHORIZED.value

    def test_unauthorized_checked_before_existence(self, ledger):
        """A non-owner gets Unauthorized even for an existing period."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)

        success, result = ledger.record_revenue(OUTSIDER, 1, 202301, 50000)

        assert result["error_type"] == LedgerError.UNAUTHORIZED.value


class TestCoerceAmount:
    """Tests for amount normalization."""

    def test_values(self):
        assert coerce_amount(0) == 0
        assert coerce_amount(50000) == 50000
        assert coerce_amount(Decimal("12")) == 12
        assert coerce_amount(3.0) == 3
        assert coerce_amount(-3) is None
        assert coerce_amount(float("inf")) is None
        assert coerce_amount(False) is None
        assert coerce_amount([1]) is None


# ============================================================
# Distribution Tests
# ============================================================

class TestDistributeRevenue:
    """Tests for distributing a period."""

    def test_distribute(self, ledger, clock):
        """Should flip distributed and stamp the clock value."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)

        success, result = ledger.distribute_revenue(OWNER, 1, 202301)

        assert success is True
        period = ledger.get_revenue_period(1, 202301)
        assert period.distributed is True
        assert period.distribution_timestamp == 123
        assert result["distribution_timestamp"] == 123

    def test_timestamp_follows_clock(self, ledger, clock):
        """Each distribution uses the clock value at that moment."""
        ledger.record_revenue(OWNER, 1, 202301, 100)
        ledger.record_revenue(OWNER, 1, 202302, 100)

        ledger.distribute_revenue(OWNER, 1, 202301)
        clock.advance(10)
        ledger.distribute_revenue(OWNER, 1, 202302)

        assert ledger.get_revenue_period(1, 202301).distribution_timestamp == 123
        assert ledger.get_revenue_period(1, 202302).distribution_timestamp == 133

    def test_unrecorded_period(self, ledger):
        """Distributing an unrecorded key should yield PeriodNotFound."""
        success, result = ledger.distribute_revenue(OWNER, 1, 202301)

        assert success is False
        assert result["error_type"] == LedgerError.PERIOD_NOT_FOUND.value
        assert result["code"] == 404

    def test_distribute_twice(self, ledger, clock):
        """The second distribution should yield AlreadyDistributed."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        ledger.distribute_revenue(OWNER, 1, 202301)
        clock.advance(5)

        success, result = ledger.distribute_revenue(OWNER, 1, 202301)

        assert success is False
        assert result["error_type"] == LedgerError.ALREADY_DISTRIBUTED.value
        assert result["code"] == 2
        assert ledger.get_revenue_period(1, 202301).distribution_timestamp == 123

    def test_non_owner_rejected(self, ledger):
        """Non-owners get Unauthorized, even for a missing period."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        before = snapshot(ledger)

        assert ledger.distribute_revenue(INVESTOR_A, 1, 202301)[1]["error_type"] == "unauthorized"
        assert ledger.distribute_revenue(INVESTOR_A, 9, 1)[1]["error_type"] == "unauthorized"
        assert snapshot(ledger) == before


# ============================================================
# Share Calculation Tests
# ============================================================

class TestCalculateInvestorShare:
    """Tests for share calculation."""

    def test_ten_percent_of_fifty_thousand(self, ledger):
        """50000 at 1000 bps should be 5000."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)

        assert ledger.calculate_investor_share(1, 202301, INVESTOR_A) == 5000

    def test_unrecorded_period_is_zero(self, ledger):
        """No period means a zero share, not an error."""
        assert ledger.calculate_investor_share(1, 202301, INVESTOR_A) == 0

    def test_investor_without_ownership_is_zero(self, ledger):
        """Investors missing from the registry own 0 bps."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)

        assert ledger.calculate_investor_share(1, 202301, INVESTOR_B) == 0

    def test_floor_division(self, ledger, registry):
        """Shares are truncated, never rounded up."""
        registry.set_ownership(1, INVESTOR_B, 3333)
        ledger.record_revenue(OWNER, 1, 202301, 99)

        # 99 * 3333 / 10000 = 32.9967
        assert ledger.calculate_investor_share(1, 202301, INVESTOR_B) == 32

    def test_full_ownership(self, clock):
        """10000 bps gets the whole revenue."""
        ledger = RevenueLedger(OWNER, ownership=FixedOwnership(10000), clock=clock)
        ledger.record_revenue(OWNER, 1, 202301, 123457)

        assert ledger.calculate_investor_share(1, 202301, INVESTOR_A) == 123457

    def test_large_values_exact(self, clock):
        """Integer arithmetic stays exact for large revenue."""
        ledger = RevenueLedger(OWNER, ownership=FixedOwnership(1), clock=clock)
        ledger.record_revenue(OWNER, 1, 1, 10**30 + 9999)

        assert ledger.calculate_investor_share(1, 1, INVESTOR_A) == 10**26

    def test_share_is_pure(self, ledger):
        """Calculating a share should not change state."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        before = snapshot(ledger)

        ledger.calculate_investor_share(1, 202301, INVESTOR_A)
        ledger.calculate_investor_share(1, 202301, INVESTOR_A)

        assert snapshot(ledger) == before

    def test_out_of_range_lookup_raises(self, clock):
        """A lookup outside [0, 10000] is a collaborator bug."""

        class BrokenLookup(OwnershipLookup):
            def lookup(self, project_id, investor):
                return 20000

        ledger = RevenueLedger(OWNER, ownership=BrokenLookup(), clock=clock)
        ledger.record_revenue(OWNER, 1, 202301, 50000)

        with pytest.raises(ValueError):
            ledger.calculate_investor_share(1, 202301, INVESTOR_A)

    def test_none_lookup_treated_as_zero(self, clock):
        """A lookup returning None means no ownership."""

        class SparseLookup(OwnershipLookup):
            def lookup(self, project_id, investor):
                return None

        ledger = RevenueLedger(OWNER, ownership=SparseLookup(), clock=clock)
        ledger.record_revenue(OWNER, 1, 202301, 50000)

        assert ledger.calculate_investor_share(1, 202301, INVESTOR_A) == 0


# ============================================================
# Claim Tests
# ============================================================

class TestClaimRevenue:
    """Tests for investor claims."""

    @pytest.fixture
    def distributed(self, ledger):
        """Ledger with project 1 / 202301 recorded and distributed."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        ledger.distribute_revenue(OWNER, 1, 202301)
        return ledger

    def test_claim(self, distributed):
        """First claim returns the share and stores a claimed record."""
        success, result = distributed.claim_revenue(INVESTOR_A, 1, 202301)

        assert success is True
        assert result["amount"] == 5000

        claim = distributed.get_investor_claim(1, 202301, INVESTOR_A)
        assert isinstance(claim, InvestorClaim)
        assert claim.amount == 5000
        assert claim.claimed is True

    def test_double_claim(self, distributed):
        """A second claim should yield AlreadyClaimed."""
        distributed.claim_revenue(INVESTOR_A, 1, 202301)

        success, result = distributed.claim_revenue(INVESTOR_A, 1, 202301)

        assert success is False
        assert result["error_type"] == LedgerError.ALREADY_CLAIMED.value
        assert result["code"] == 3
        assert len(distributed.claims) == 1

    def test_claim_before_distribution(self, ledger):
        """Claiming a recorded but undistributed period yields NotYetDistributed."""
        ledger.record_revenue(OWNER, 1, 202301, 50000)

        success, result = ledger.claim_revenue(INVESTOR_A, 1, 202301)

        assert success is False
        assert result["error_type"] == LedgerError.NOT_YET_DISTRIBUTED.value
        assert result["code"] == 2
        assert ledger.claims == {}

    def test_claim_unrecorded_period(self, ledger):
        """Claiming an unknown period yields PeriodNotFound."""
        success, result = ledger.claim_revenue(INVESTOR_A, 1, 202301)

        assert success is False
        assert result["error_type"] == LedgerError.PERIOD_NOT_FOUND.value

    def test_each_investor_claims_once(self, distributed, registry):
        """Claims are tracked per investor."""
        registry.set_ownership(1, INVESTOR_B, 2500)

        assert distributed.claim_revenue(INVESTOR_A, 1, 202301)[1]["amount"] == 5000
        assert distributed.claim_revenue(INVESTOR_B, 1, 202301)[1]["amount"] == 12500
        assert distributed.claim_revenue(INVESTOR_B, 1, 202301)[0] is False

    def test_zero_share_claim_still_recorded(self, distributed):
        """An investor with no ownership can claim 0, once."""
        success, result = distributed.claim_revenue(OUTSIDER, 1, 202301)

        assert success is True
        assert result["amount"] == 0
        assert distributed.claim_revenue(OUTSIDER, 1, 202301)[1]["error_type"] == "already_claimed"

    def test_owner_can_claim(self, distributed):
        """No authorization check: the owner is just another caller."""
        success, result = distributed.claim_revenue(OWNER, 1, 202301)

        assert success is True

    def test_claim_uses_ownership_at_claim_time(self, distributed, registry):
        """The share is computed when the claim is made."""
        registry.set_ownership(1, INVESTOR_A, 2000)

        assert distributed.claim_revenue(INVESTOR_A, 1, 202301)[1]["amount"] == 10000

    def test_failed_lookup_leaves_no_claim(self, clock):
        """A collaborator error during claim leaves the ledger unchanged."""

        class BrokenLookup(OwnershipLookup):
            def lookup(self, project_id, investor):
                return -1

        ledger = RevenueLedger(OWNER, ownership=BrokenLookup(), clock=clock)
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        ledger.distribute_revenue(OWNER, 1, 202301)

        with pytest.raises(ValueError):
            ledger.claim_revenue(INVESTOR_A, 1, 202301)
        assert ledger.claims == {}


# ============================================================
# End-to-End Scenarios
# ============================================================

class TestRevenueLifecycle:
    """Full record -> distribute -> claim flows."""

    def test_contract_scenario(self, stub_ledger):
        """Contract, record, distribute and claim with the 10% stub."""
        ledger = stub_ledger

        assert ledger.set_investment_contract(OWNER, INVESTOR_A)[0] is True
        assert ledger.record_revenue(OWNER, 1, 202301, 50000)[0] is True

        success, _ = ledger.distribute_revenue(OWNER, 1, 202301)
        assert success is True
        assert ledger.get_revenue_period(1, 202301).distributed is True
        assert ledger.get_revenue_period(1, 202301).distribution_timestamp == 123

        success, result = ledger.claim_revenue(INVESTOR_A, 1, 202301)
        assert success is True
        assert result["amount"] == 5000

        success, result = ledger.claim_revenue(INVESTOR_A, 1, 202301)
        assert success is False
        assert result["error_type"] == LedgerError.ALREADY_CLAIMED.value

    def test_claim_before_any_distribution(self, stub_ledger):
        """Claiming before distribute yields NotYetDistributed."""
        stub_ledger.record_revenue(OWNER, 1, 202301, 50000)

        success, result = stub_ledger.claim_revenue(INVESTOR_A, 1, 202301)

        assert success is False
        assert result["error_type"] == LedgerError.NOT_YET_DISTRIBUTED.value

    def test_ledger_usable_after_rejections(self, ledger):
        """Rejected calls never poison the ledger."""
        ledger.record_revenue(OUTSIDER, 1, 202301, 50000)
        ledger.distribute_revenue(OWNER, 1, 202301)
        ledger.claim_revenue(INVESTOR_A, 1, 202301)

        assert ledger.record_revenue(OWNER, 1, 202301, 50000)[0] is True
        assert ledger.distribute_revenue(OWNER, 1, 202301)[0] is True
        assert ledger.claim_revenue(INVESTOR_A, 1, 202301)[1]["amount"] == 5000


# ============================================================
# Errors
# ============================================================

class TestErrorResults:
    """Tests for the shape of failure results."""

    def test_every_error_has_code(self):
        assert set(ERROR_CODES) == set(LedgerError)

    def test_failure_shape(self, ledger):
        success, result = ledger.distribute_revenue(OWNER, 7, 202312)

        assert success is False
        assert isinstance(result["error"], str)
        assert result["error_type"] == "period_not_found"
        assert result["project_id"] == 7
        assert result["period"] == 202312


# ============================================================
# Queries, Audit Trail and Reset
# ============================================================

class TestQueriesAndAudit:
    """Tests for read accessors, events, statistics and reset."""

    def test_events_for_successful_calls_only(self, ledger):
        ledger.set_investment_contract(OWNER, "ST1.investment")
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        ledger.distribute_revenue(OWNER, 1, 202301)
        ledger.claim_revenue(INVESTOR_A, 1, 202301)
        ledger.claim_revenue(INVESTOR_A, 1, 202301)

        assert [e.event_type for e in ledger.events] == [
            EVENT_INVESTMENT_CONTRACT_SET,
            EVENT_REVENUE_RECORDED,
            EVENT_REVENUE_DISTRIBUTED,
            EVENT_REVENUE_CLAIMED,
        ]
        assert ledger.events[-1].data["amount"] == 5000
        assert ledger.events[-1].timestamp == 123
        assert ledger.events[0].to_dict()["event_id"].startswith("evt_")

    def test_list_periods_sorted_and_filtered(self, ledger):
        ledger.record_revenue(OWNER, 2, 202301, 1)
        ledger.record_revenue(OWNER, 1, 202302, 1)
        ledger.record_revenue(OWNER, 1, 202301, 1)

        keys = [(p.project_id, p.period) for p in ledger.list_periods()]
        assert keys == [(1, 202301), (1, 202302), (2, 202301)]
        assert [p.period for p in ledger.list_periods(1)] == [202301, 202302]

    def test_list_claims(self, ledger, registry):
        registry.set_ownership(1, INVESTOR_B, 500)
        ledger.record_revenue(OWNER, 1, 202301, 1000)
        ledger.record_revenue(OWNER, 1, 202302, 1000)
        ledger.distribute_revenue(OWNER, 1, 202301)
        ledger.distribute_revenue(OWNER, 1, 202302)
        ledger.claim_revenue(INVESTOR_A, 1, 202301)
        ledger.claim_revenue(INVESTOR_B, 1, 202301)
        ledger.claim_revenue(INVESTOR_A, 1, 202302)

        claims = ledger.list_claims(1, 202301)
        assert {c.investor for c in claims} == {INVESTOR_A, INVESTOR_B}

    def test_statistics(self, ledger):
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        ledger.record_revenue(OWNER, 1, 202302, 20000)
        ledger.distribute_revenue(OWNER, 1, 202301)
        ledger.claim_revenue(INVESTOR_A, 1, 202301)

        stats = ledger.get_statistics()

        assert stats["periods"] == {"total": 2, "distributed": 1, "pending_distribution": 1}
        assert stats["revenue"]["total_recorded"] == 70000
        assert stats["revenue"]["total_distributed"] == 50000
        assert stats["revenue"]["total_claimed"] == 5000
        assert stats["claims"] == {"total": 1, "investors": 1}

    def test_reset(self, ledger):
        ledger.set_investment_contract(OWNER, "ST1.investment")
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        ledger.distribute_revenue(OWNER, 1, 202301)
        ledger.claim_revenue(INVESTOR_A, 1, 202301)

        ledger.reset()

        assert ledger.periods == {}
        assert ledger.claims == {}
        assert ledger.investment_contract is None
        assert ledger.events == []
        assert ledger.owner == OWNER
        assert ledger.record_revenue(OWNER, 1, 202301, 50000)[0] is True

    def test_independent_ledgers(self, clock):
        """Two ledgers never share state."""
        first = RevenueLedger(OWNER, clock=clock)
        second = RevenueLedger(OWNER, clock=clock)

        first.record_revenue(OWNER, 1, 202301, 50000)

        assert second.get_revenue_period(1, 202301) is None


# ============================================================
# Key Validation
# ============================================================

class TestKeyValidation:
    """project_id and period must be ints."""

    @pytest.mark.parametrize("project_id,period", [("1", 1), (1, "202301"), (True, 1), (1, 2.0), (None, 1)])
    def test_record_rejects_non_int_keys(self, ledger, project_id, period):
        success, result = ledger.record_revenue(OWNER, project_id, period, 5)

        assert success is False
        assert result["error_type"] == LedgerError.INVALID_PERIOD.value
        assert result["code"] == 5
        assert ledger.periods == {}

    def test_listing_after_rejected_key(self, ledger):
        """A rejected string key never poisons sorted listings."""
        ledger.record_revenue(OWNER, 1, 1, 5)
        ledger.record_revenue(OWNER, "1", 1, 5)

        assert [(p.project_id, p.period) for p in ledger.list_periods()] == [(1, 1)]

    def test_unauthorized_checked_before_key(self, ledger):
        success, result = ledger.record_revenue(OUTSIDER, "1", 1, 5)

        assert result["error_type"] == LedgerError.UNAUTHORIZED.value

    def test_distribute_and_claim_reject_non_int_keys(self, ledger):
        assert ledger.distribute_revenue(OWNER, 1, "1")[1]["error_type"] == "invalid_period"
        assert ledger.claim_revenue(INVESTOR_A, [1], 1)[1]["error_type"] == "invalid_period"

    def test_share_of_non_int_key_is_zero(self, ledger):
        assert ledger.calculate_investor_share("1", 1, INVESTOR_A) == 0

    def test_no_locks_left_behind(self, ledger):
        """Calls on unknown periods do not grow the lock table."""
        for period in range(500):
            ledger.distribute_revenue(OWNER, 9, period)
            ledger.claim_revenue(INVESTOR_A, 9, period)

        assert ledger.lock_manager.lock_count() == 0


# ============================================================
# Reset Under Load
# ============================================================

class TestResetWaitsForTransactions:
    """reset() never interleaves with an in-flight call."""

    def test_reset_waits_for_claim(self, clock):
        entered = threading.Event()
        proceed = threading.Event()

        class SlowLookup(OwnershipLookup):
            def lookup(self, project_id, investor):
                entered.set()
                proceed.wait(5)
                return 1000

        ledger = RevenueLedger(OWNER, ownership=SlowLookup(), clock=clock)
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        ledger.distribute_revenue(OWNER, 1, 202301)

        claimer = threading.Thread(target=ledger.claim_revenue, args=(INVESTOR_A, 1, 202301))
        claimer.start()
        assert entered.wait(5)

        resetter = threading.Thread(target=ledger.reset)
        resetter.start()
        time.sleep(0.05)
        assert resetter.is_alive()

        proceed.set()
        claimer.join(5)
        resetter.join(5)

        assert not resetter.is_alive()
        assert ledger.claims == {}
        assert ledger.periods == {}
        assert ledger.events == []

    def test_calls_after_reset_proceed(self, ledger):
        ledger.record_revenue(OWNER, 1, 202301, 50000)
        ledger.reset()

        assert ledger.record_revenue(OWNER, 1, 202301, 50000)[0] is True
        assert ledger.distribute_revenue(OWNER, 1, 202301)[0] is True
