"""
Revenue Ledger - Ownership Lookups

Investor ownership is expressed in basis points (1/10000). The ledger only
needs a single read: how many basis points does an investor hold in a
project. Where those numbers come from (an investment contract, a cap table,
a fixture) is the business of the lookup implementation.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any

# =============================================================================
# Constants
# =============================================================================

BASIS_POINTS_DENOMINATOR = 10000  # 10000 bps = 100%
MIN_BASIS_POINTS = 0
MAX_BASIS_POINTS = BASIS_POINTS_DENOMINATOR

# Ownership returned by the on-chain contract stub (10%)
DEFAULT_STUB_BASIS_POINTS = 1000


def is_valid_basis_points(value: Any) -> bool:
    """Check that a value is an int within [0, 10000]."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_BASIS_POINTS <= value <= MAX_BASIS_POINTS


class OwnershipLookup(ABC):
    """Read-only view of investor ownership per project."""

    @abstractmethod
    def lookup(self, project_id: int, investor: str) -> int:
        """
        Get the ownership of an investor in a project.

        Args:
            project_id: Project identifier
            investor: Investor principal

        Returns:
            Basis points in [0, 10000]; 0 when the investor holds nothing
        """
        pass


class FixedOwnership(OwnershipLookup):
    """Every investor holds the same share of every project."""

    def __init__(self, basis_points: int = DEFAULT_STUB_BASIS_POINTS):
        if not is_valid_basis_points(basis_points):
            raise ValueError(
                f"basis_points must be an int between {MIN_BASIS_POINTS} and {MAX_BASIS_POINTS}"
            )
        self.basis_points = basis_points

    def lookup(self, project_id: int, investor: str) -> int:
        return self.basis_points


class InMemoryOwnershipRegistry(OwnershipLookup):
    """
    Mutable ownership table kept in memory.

    A project's holdings never sum to more than 100%. Thread-safe.
    """

    def __init__(self, holdings: dict[int, dict[str, int]] | None = None):
        self._holdings: dict[int, dict[str, int]] = {}
        self._lock = threading.RLock()

        for project_id, investors in (holdings or {}).items():
            for investor, basis_points in investors.items():
                success, result = self.set_ownership(project_id, investor, basis_points)
                if not success:
                    raise ValueError(result["error"])

    def lookup(self, project_id: int, investor: str) -> int:
        with self._lock:
            return self._holdings.get(project_id, {}).get(investor, 0)

    def set_ownership(
        self,
        project_id: int,
        investor: str,
        basis_points: int,
    ) -> tuple[bool, dict[str, Any]]:
        """
        Set (or replace) an investor's ownership in a project.

        Args:
            project_id: Project identifier
            investor: Investor principal
            basis_points: Ownership in basis points

        Returns:
            Tuple of (success, ownership_info)
        """
        if not investor:
            return False, {"error": "Investor is required"}

        if not is_valid_basis_points(basis_points):
            return False, {
                "error": f"Basis points must be an integer between {MIN_BASIS_POINTS} and {MAX_BASIS_POINTS}"
            }

        with self._lock:
            project = self._holdings.setdefault(project_id, {})
            others = sum(bps for holder, bps in project.items() if holder != investor)
            if others + basis_points > BASIS_POINTS_DENOMINATOR:
                if not project:
                    del self._holdings[project_id]
                return False, {
                    "error": "Total ownership would exceed 100%",
                    "allocated_basis_points": others,
                    "available_basis_points": BASIS_POINTS_DENOMINATOR - others,
                }

            project[investor] = basis_points

            return True, {
                "project_id": project_id,
                "investor": investor,
                "basis_points": basis_points,
                "total_basis_points": others + basis_points,
            }

    def remove_ownership(self, project_id: int, investor: str) -> bool:
        """Remove an investor from a project. Returns False if not present."""
        with self._lock:
            project = self._holdings.get(project_id)
            if not project or investor not in project:
                return False
            del project[investor]
            if not project:
                del self._holdings[project_id]
            return True

    def get_project_holders(self, project_id: int) -> dict[str, int]:
        """Get a copy of all holdings for a project."""
        with self._lock:
            return dict(self._holdings.get(project_id, {}))

    def total_basis_points(self, project_id: int) -> int:
        """Sum of allocated basis points for a project."""
        with self._lock:
            return sum(self._holdings.get(project_id, {}).values())

    def clear(self) -> None:
        """Drop all holdings."""
        with self._lock:
            self._holdings.clear()
