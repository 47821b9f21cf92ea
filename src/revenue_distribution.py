"""
Revenue Ledger - Per-Period Revenue Distribution

Records project revenue per accounting period, distributes each period once,
and lets every investor claim their ownership share of a distributed period
exactly once.

Key Concepts:
- A period is keyed by (project_id, period) and recorded once by the owner
- Distribution is a one-way switch stamped with the logical clock
- An investor's share is floor(total_revenue * basis_points / 10000)
- A claim is created once per (project_id, period, investor) and never changes

State machines:
- Period: Unrecorded -> Recorded -> Distributed
- Claim:  Unclaimed -> Claimed

Every mutating method returns (success, result). On failure the result
carries the LedgerError value in "error_type" and the ledger is unchanged.
"""

import logging
import math
import secrets
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from ledger_clock import BlockHeightClock, LogicalClock
from ownership import (
    BASIS_POINTS_DENOMINATOR,
    InMemoryOwnershipRegistry,
    OwnershipLookup,
    is_valid_basis_points,
)
from scaling.locking import LocalLockManager, LockManager, period_lock_name

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

INVESTMENT_CONTRACT_LOCK = "investment_contract"

# Event types recorded in the audit trail
EVENT_INVESTMENT_CONTRACT_SET = "investment_contract_set"
EVENT_REVENUE_RECORDED = "revenue_recorded"
EVENT_REVENUE_DISTRIBUTED = "revenue_distributed"
EVENT_REVENUE_CLAIMED = "revenue_claimed"


# =============================================================================
# Errors
# =============================================================================


class LedgerError(Enum):
    """Reasons a ledger call is rejected."""

    UNAUTHORIZED = "unauthorized"  # Caller is not the owner
    ALREADY_RECORDED = "already_recorded"
    PERIOD_NOT_FOUND = "period_not_found"
    ALREADY_DISTRIBUTED = "already_distributed"
    NOT_YET_DISTRIBUTED = "not_yet_distributed"
    ALREADY_CLAIMED = "already_claimed"
    INVALID_AMOUNT = "invalid_amount"  # Negative or non-integral revenue
    INVALID_PERIOD = "invalid_period"  # project_id or period is not an int


# Error codes of the on-chain contract; invalid_amount and invalid_period have no on-chain twin
ERROR_CODES = {
    LedgerError.UNAUTHORIZED: 403,
    LedgerError.ALREADY_RECORDED: 1,
    LedgerError.PERIOD_NOT_FOUND: 404,
    LedgerError.ALREADY_DISTRIBUTED: 2,
    LedgerError.NOT_YET_DISTRIBUTED: 2,
    LedgerError.ALREADY_CLAIMED: 3,
    LedgerError.INVALID_AMOUNT: 4,
    LedgerError.INVALID_PERIOD: 5,
}

ERROR_MESSAGES = {
    LedgerError.UNAUTHORIZED: "Only the contract owner can perform this action",
    LedgerError.ALREADY_RECORDED: "Revenue already recorded for this period",
    LedgerError.PERIOD_NOT_FOUND: "No revenue recorded for this period",
    LedgerError.ALREADY_DISTRIBUTED: "Revenue for this period has already been distributed",
    LedgerError.NOT_YET_DISTRIBUTED: "Revenue for this period has not been distributed yet",
    LedgerError.ALREADY_CLAIMED: "Revenue for this period has already been claimed",
    LedgerError.INVALID_AMOUNT: "Amount must be a non-negative integer",
    LedgerError.INVALID_PERIOD: "project_id and period must be integers",
}


def _failure(error: LedgerError, **context: Any) -> tuple[bool, dict[str, Any]]:
    """Build the (False, info) result for a rejected call."""
    return False, {
        "error": ERROR_MESSAGES[error],
        "error_type": error.value,
        "code": ERROR_CODES[error],
        **context,
    }


def is_valid_key(project_id: Any, period: Any) -> bool:
    """Check that project_id and period are plain ints (bool excluded)."""
    return all(
        isinstance(value, int) and not isinstance(value, bool)
        for value in (project_id, period)
    )


def coerce_amount(amount: Any) -> int | None:
    """
    Normalize a revenue amount to an int.

    Accepts ints and integral Decimal/float values. Returns None for
    anything negative, fractional, non-finite or non-numeric.
    """
    if isinstance(amount, bool):
        return None
    if isinstance(amount, int):
        return amount if amount >= 0 else None
    if isinstance(amount, float):
        if not math.isfinite(amount) or not amount.is_integer() or amount < 0:
            return None
        return int(amount)
    if isinstance(amount, Decimal):
        if not amount.is_finite() or amount != amount.to_integral_value() or amount < 0:
            return None
        return int(amount)
    return None


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class RevenuePeriod:
    """Revenue recorded for one project and accounting period."""

    project_id: int
    period: int
    total_revenue: int
    distributed: bool = False
    distribution_timestamp: int = 0  # Logical clock value, 0 until distributed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "project_id": self.project_id,
            "period": self.period,
            "total_revenue": self.total_revenue,
            "distributed": self.distributed,
            "distribution_timestamp": self.distribution_timestamp,
        }


@dataclass
class InvestorClaim:
    """An investor's claim on a distributed period."""

    project_id: int
    period: int
    investor: str
    amount: int
    claimed: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "project_id": self.project_id,
            "period": self.period,
            "investor": self.investor,
            "amount": self.amount,
            "claimed": self.claimed,
        }


@dataclass
class LedgerEvent:
    """Audit trail entry for a successful state change."""

    event_id: str
    event_type: str
    timestamp: int
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp,
            "data": self.data,
        }


# =============================================================================
# Revenue Ledger
# =============================================================================


class RevenueLedger:
    """
    Owner-administered ledger of revenue periods and investor claims.

    The ledger is a plain object: build one per deployment (or per test) and
    call reset() to return it to an empty state.
    """

    def __init__(
        self,
        owner: str,
        ownership: OwnershipLookup | None = None,
        clock: LogicalClock | None = None,
        lock_manager: LockManager | None = None,
    ):
        """
        Initialize the ledger.

        Args:
            owner: Principal allowed to run owner-only actions
            ownership: Ownership lookup used for share calculation
            clock: Logical clock stamped on distributions and events
            lock_manager: Named lock provider for per-period serialization
        """
        if not owner:
            raise ValueError("Ledger owner is required")

        self.owner = owner
        self.ownership = ownership if ownership is not None else InMemoryOwnershipRegistry()
        self.clock = clock if clock is not None else BlockHeightClock()
        self.lock_manager = lock_manager if lock_manager is not None else LocalLockManager()

        # Storage
        self.periods: dict[tuple[int, int], RevenuePeriod] = {}
        self.claims: dict[tuple[int, int, str], InvestorClaim] = {}
        self._investment_contract: str | None = None

        # Audit trail
        self.events: list[LedgerEvent] = []

        # Guards the mappings themselves; per-key locks guard transactions
        self._state_lock = threading.RLock()

        # Lets reset() wait for in-flight transactions and hold off new ones
        self._gate = threading.Condition()
        self._in_flight = 0
        self._resetting = False

    @property
    def investment_contract(self) -> str | None:
        """Reference to the investment contract, if one has been set."""
        return self._investment_contract

    # =========================================================================
    # Owner Actions
    # =========================================================================

    def set_investment_contract(self, caller: str, ref: str) -> tuple[bool, dict[str, Any]]:
        """
        Point the ledger at an investment contract.

        Args:
            caller: Principal making the call
            ref: Opaque investment contract reference

        Returns:
            Tuple of (success, info)
        """
        if caller != self.owner:
            logger.warning(f"Unauthorized set_investment_contract by {caller}")
            return _failure(LedgerError.UNAUTHORIZED, caller=caller)

        with self._transaction(INVESTMENT_CONTRACT_LOCK):
            previous = self._investment_contract
            self._investment_contract = ref

            self._emit_event(EVENT_INVESTMENT_CONTRACT_SET, {
                "investment_contract": ref,
                "previous": previous,
            })

        logger.info(f"Investment contract set to {ref}")
        return True, {"investment_contract": ref}

    def record_revenue(
        self,
        caller: str,
        project_id: int,
        period: int,
        amount: Any,
    ) -> tuple[bool, dict[str, Any]]:
        """
        Record the total revenue of a project for one period.

        Args:
            caller: Principal making the call
            project_id: Project identifier
            period: Accounting period (e.g. 202301)
            amount: Revenue in the smallest currency unit

        Returns:
            Tuple of (success, period_info)
        """
        if caller != self.owner:
            logger.warning(f"Unauthorized record_revenue by {caller} for {project_id}/{period}")
            return _failure(LedgerError.UNAUTHORIZED, caller=caller)

        if not is_valid_key(project_id, period):
            return _failure(LedgerError.INVALID_PERIOD, project_id=project_id, period=period)

        total_revenue = coerce_amount(amount)
        if total_revenue is None:
            return _failure(LedgerError.INVALID_AMOUNT, amount=str(amount))

        key = (project_id, period)
        with self._transaction(period_lock_name(project_id, period)):
            if key in self.periods:
                logger.info(f"Revenue for {project_id}/{period} already recorded")
                return _failure(LedgerError.ALREADY_RECORDED, project_id=project_id, period=period)

            revenue_period = RevenuePeriod(
                project_id=project_id,
                period=period,
                total_revenue=total_revenue,
            )
            with self._state_lock:
                self.periods[key] = revenue_period

            self._emit_event(EVENT_REVENUE_RECORDED, {
                "project_id": project_id,
                "period": period,
                "total_revenue": total_revenue,
            })

        logger.info(f"Recorded revenue {total_revenue} for {project_id}/{period}")
        return True, revenue_period.to_dict()

    def distribute_revenue(
        self,
        caller: str,
        project_id: int,
        period: int,
    ) -> tuple[bool, dict[str, Any]]:
        """
        Open a recorded period for claims.

        Args:
            caller: Principal making the call
            project_id: Project identifier
            period: Accounting period

        Returns:
            Tuple of (success, period_info)
        """
        if caller != self.owner:
            logger.warning(f"Unauthorized distribute_revenue by {caller} for {project_id}/{period}")
            return _failure(LedgerError.UNAUTHORIZED, caller=caller)

        if not is_valid_key(project_id, period):
            return _failure(LedgerError.INVALID_PERIOD, project_id=project_id, period=period)

        with self._transaction(period_lock_name(project_id, period)):
            revenue_period = self.periods.get((project_id, period))
            if revenue_period is None:
                return _failure(LedgerError.PERIOD_NOT_FOUND, project_id=project_id, period=period)

            if revenue_period.distributed:
                return _failure(LedgerError.ALREADY_DISTRIBUTED, project_id=project_id, period=period)

            timestamp = self.clock.now()
            revenue_period.distribution_timestamp = timestamp
            revenue_period.distributed = True

            self._emit_event(EVENT_REVENUE_DISTRIBUTED, {
                "project_id": project_id,
                "period": period,
                "total_revenue": revenue_period.total_revenue,
                "distribution_timestamp": timestamp,
            })

        logger.info(f"Distributed revenue for {project_id}/{period} at {timestamp}")
        return True, revenue_period.to_dict()

    # =========================================================================
    # Investor Actions
    # =========================================================================

    def calculate_investor_share(self, project_id: int, period: int, investor: str) -> int:
        """
        Calculate what an investor is owed for a period.

        Returns 0 when no revenue has been recorded for the period.

        Raises:
            ValueError: If the ownership lookup returns an out-of-range value
        """
        if not is_valid_key(project_id, period):
            return 0

        revenue_period = self.periods.get((project_id, period))
        if revenue_period is None:
            return 0

        basis_points = self.ownership.lookup(project_id, investor)
        if basis_points is None:
            basis_points = 0
        if not is_valid_basis_points(basis_points):
            raise ValueError(
                f"Ownership lookup returned {basis_points!r} for {investor} in project {project_id}"
            )

        return revenue_period.total_revenue * basis_points // BASIS_POINTS_DENOMINATOR

    def claim_revenue(
        self,
        caller: str,
        project_id: int,
        period: int,
    ) -> tuple[bool, dict[str, Any]]:
        """
        Claim the caller's share of a distributed period.

        Args:
            caller: Investor principal claiming
            project_id: Project identifier
            period: Accounting period

        Returns:
            Tuple of (success, claim_info); claim_info["amount"] is the share
        """
        if not is_valid_key(project_id, period):
            return _failure(LedgerError.INVALID_PERIOD, project_id=project_id, period=period)

        with self._transaction(period_lock_name(project_id, period)):
            revenue_period = self.periods.get((project_id, period))
            if revenue_period is None:
                return _failure(LedgerError.PERIOD_NOT_FOUND, project_id=project_id, period=period)

            if not revenue_period.distributed:
                return _failure(LedgerError.NOT_YET_DISTRIBUTED, project_id=project_id, period=period)

            claim_key = (project_id, period, caller)
            existing = self.claims.get(claim_key)
            if existing is not None and existing.claimed:
                logger.info(f"{caller} already claimed {project_id}/{period}")
                return _failure(
                    LedgerError.ALREADY_CLAIMED,
                    project_id=project_id,
                    period=period,
                    investor=caller,
                )

            share = self.calculate_investor_share(project_id, period, caller)

            claim = InvestorClaim(
                project_id=project_id,
                period=period,
                investor=caller,
                amount=share,
                claimed=True,
            )
            with self._state_lock:
                self.claims[claim_key] = claim

            self._emit_event(EVENT_REVENUE_CLAIMED, {
                "project_id": project_id,
                "period": period,
                "investor": caller,
                "amount": share,
            })

        logger.info(f"{caller} claimed {share} for {project_id}/{period}")
        return True, claim.to_dict()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_revenue_period(self, project_id: int, period: int) -> RevenuePeriod | None:
        """Get a recorded period."""
        return self.periods.get((project_id, period))

    def get_investor_claim(self, project_id: int, period: int, investor: str) -> InvestorClaim | None:
        """Get an investor's claim on a period."""
        return self.claims.get((project_id, period, investor))

    def list_periods(self, project_id: int | None = None) -> list[RevenuePeriod]:
        """List recorded periods, optionally for one project, ordered by key."""
        with self._state_lock:
            items = sorted(self.periods.items())
        return [p for key, p in items if project_id is None or key[0] == project_id]

    def list_claims(self, project_id: int, period: int) -> list[InvestorClaim]:
        """List all claims made against one period."""
        with self._state_lock:
            items = sorted(self.claims.items())
        return [c for key, c in items if key[0] == project_id and key[1] == period]

    def get_statistics(self) -> dict[str, Any]:
        """Get ledger-wide totals."""
        with self._state_lock:
            periods = list(self.periods.values())
            claims = list(self.claims.values())

        return {
            "periods": {
                "total": len(periods),
                "distributed": sum(1 for p in periods if p.distributed),
                "pending_distribution": sum(1 for p in periods if not p.distributed),
            },
            "revenue": {
                "total_recorded": sum(p.total_revenue for p in periods),
                "total_distributed": sum(p.total_revenue for p in periods if p.distributed),
                "total_claimed": sum(c.amount for c in claims if c.claimed),
            },
            "claims": {
                "total": len(claims),
                "investors": len({c.investor for c in claims}),
            },
            "investment_contract": self._investment_contract,
            "events": len(self.events),
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def reset(self) -> None:
        """
        Drop all periods, claims, the contract reference and the audit trail.

        Waits for transactions already in progress to finish and holds new
        ones back until the ledger is empty. Must not be called from inside
        a ledger transaction.
        """
        with self._gate:
            while self._resetting:
                self._gate.wait()
            self._resetting = True
            while self._in_flight:
                self._gate.wait()

        try:
            with self._state_lock:
                self.periods.clear()
                self.claims.clear()
                self._investment_contract = None
                self.events.clear()
        finally:
            with self._gate:
                self._resetting = False
                self._gate.notify_all()

        logger.info("Revenue ledger reset")

    # =========================================================================
    # Internal Methods
    # =========================================================================

    @contextmanager
    def _transaction(self, lock_name: str):
        """Run a mutating call under its named lock, outside any reset."""
        with self._gate:
            while self._resetting:
                self._gate.wait()
            self._in_flight += 1

        try:
            with self.lock_manager.lock(lock_name):
                yield
        finally:
            with self._gate:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._gate.notify_all()

    def _emit_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Append an event to the audit trail."""
        event = LedgerEvent(
            event_id=f"evt_{secrets.token_hex(8)}",
            event_type=event_type,
            timestamp=self.clock.now(),
            data=data,
        )
        with self._state_lock:
            self.events.append(event)
