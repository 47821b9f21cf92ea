"""
Revenue Ledger - Revenue Distribution API Blueprint

REST API endpoints for recording, distributing and claiming period revenue.

Provides access to:
- Set the investment contract reference
- Record revenue for a project period
- Distribute a recorded period
- Preview and claim investor shares
- Manage the in-memory ownership registry
- Read and advance the block height clock
- View statistics and the audit trail

The caller identity is the "sender" field of the request body.
"""

from flask import Blueprint, jsonify, request

from ledger_clock import BlockHeightClock
from ownership import InMemoryOwnershipRegistry

from . import state
from .utils import (
    MAX_PRINCIPAL_LENGTH,
    bounded_limit,
    require_api_key,
    validate_json_schema,
)

revenue_bp = Blueprint("revenue", __name__)

# HTTP status per LedgerError value; anything else is a state conflict
ERROR_STATUS = {
    "unauthorized": 403,
    "period_not_found": 404,
    "invalid_amount": 400,
    "invalid_period": 400,
}


def _ledger_response(success, result, success_status=200):
    """Turn a ledger (success, result) tuple into a Flask response."""
    if success:
        return jsonify(result), success_status
    return jsonify(result), ERROR_STATUS.get(result.get("error_type"), 409)


def _sender_payload():
    """
    Parse a body that must carry a sender.

    Returns:
        Tuple of (data, error_response)
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(
        data,
        required_fields={"sender": str},
        max_lengths={"sender": MAX_PRINCIPAL_LENGTH},
    )
    if not is_valid:
        return None, (jsonify({"error": error}), 400)
    return data, None


# =============================================================================
# Investment Contract
# =============================================================================


@revenue_bp.route("/revenue/investment-contract", methods=["POST"])
@require_api_key
def set_investment_contract():
    """
    Set the investment contract reference (owner only).

    Request body:
        {
            "sender": "ST1...",
            "contract": "ST2....investment"
        }
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(
        data,
        required_fields={"sender": str, "contract": str},
        max_lengths={"sender": MAX_PRINCIPAL_LENGTH, "contract": MAX_PRINCIPAL_LENGTH},
    )
    if not is_valid:
        return jsonify({"error": error}), 400

    success, result = state.ledger.set_investment_contract(data["sender"], data["contract"])
    return _ledger_response(success, result)


@revenue_bp.route("/revenue/investment-contract", methods=["GET"])
def get_investment_contract():
    """Get the current investment contract reference (null if unset)."""
    return jsonify({"investment_contract": state.ledger.investment_contract})


# =============================================================================
# Revenue Periods
# =============================================================================


@revenue_bp.route("/revenue/periods", methods=["POST"])
@require_api_key
def record_revenue():
    """
    Record revenue for a project period (owner only).

    Request body:
        {
            "sender": "ST1...",
            "project_id": 1,
            "period": 202301,
            "amount": 50000          // Smallest currency unit
        }

    Returns:
        The recorded period (201)
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(
        data,
        required_fields={"sender": str, "project_id": int, "period": int},
        max_lengths={"sender": MAX_PRINCIPAL_LENGTH},
    )
    if not is_valid:
        return jsonify({"error": error}), 400
    if "amount" not in data:
        return jsonify({"error": "Missing required field: amount"}), 400

    success, result = state.ledger.record_revenue(
        data["sender"],
        data["project_id"],
        data["period"],
        data["amount"],
    )
    return _ledger_response(success, result, success_status=201)


@revenue_bp.route("/revenue/periods", methods=["GET"])
def list_periods():
    """
    List recorded periods.

    Query params:
        project_id: Optional project filter
    """
    project_id = request.args.get("project_id", type=int)
    periods = state.ledger.list_periods(project_id)
    return jsonify({
        "count": len(periods),
        "periods": [p.to_dict() for p in periods],
    })


@revenue_bp.route("/revenue/periods/<int:project_id>/<int:period>", methods=["GET"])
def get_revenue_period(project_id, period):
    """Get one recorded period."""
    revenue_period = state.ledger.get_revenue_period(project_id, period)
    if revenue_period is None:
        return jsonify({"error": "No revenue recorded for this period"}), 404
    return jsonify(revenue_period.to_dict())


@revenue_bp.route("/revenue/periods/<int:project_id>/<int:period>/distribute", methods=["POST"])
@require_api_key
def distribute_revenue(project_id, period):
    """
    Distribute a recorded period (owner only).

    Request body:
        {
            "sender": "ST1..."
        }
    """
    data, error_response = _sender_payload()
    if error_response:
        return error_response

    success, result = state.ledger.distribute_revenue(data["sender"], project_id, period)
    return _ledger_response(success, result)


# =============================================================================
# Investor Shares and Claims
# =============================================================================


@revenue_bp.route(
    "/revenue/periods/<int:project_id>/<int:period>/share/<investor>", methods=["GET"]
)
def calculate_investor_share(project_id, period, investor):
    """Preview an investor's share of a period (0 if unrecorded)."""
    share = state.ledger.calculate_investor_share(project_id, period, investor)
    claim = state.ledger.get_investor_claim(project_id, period, investor)
    return jsonify({
        "project_id": project_id,
        "period": period,
        "investor": investor,
        "share": share,
        "claimed": bool(claim and claim.claimed),
    })


@revenue_bp.route("/revenue/periods/<int:project_id>/<int:period>/claim", methods=["POST"])
@require_api_key
def claim_revenue(project_id, period):
    """
    Claim the sender's share of a distributed period.

    Request body:
        {
            "sender": "ST2..."
        }

    Returns:
        The claim, with "amount" set to the paid share
    """
    data, error_response = _sender_payload()
    if error_response:
        return error_response

    success, result = state.ledger.claim_revenue(data["sender"], project_id, period)
    return _ledger_response(success, result)


@revenue_bp.route("/revenue/periods/<int:project_id>/<int:period>/claims", methods=["GET"])
def list_claims(project_id, period):
    """List claims made against a period."""
    claims = state.ledger.list_claims(project_id, period)
    return jsonify({
        "count": len(claims),
        "total_claimed": sum(c.amount for c in claims),
        "claims": [c.to_dict() for c in claims],
    })


# =============================================================================
# Ownership
# =============================================================================


@revenue_bp.route("/revenue/ownership", methods=["POST"])
@require_api_key
def set_ownership():
    """
    Set an investor's ownership in a project (owner only).

    Request body:
        {
            "sender": "ST1...",
            "project_id": 1,
            "investor": "ST2...",
            "basis_points": 1000     // 10%
        }
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(
        data,
        required_fields={"sender": str, "project_id": int, "investor": str, "basis_points": int},
        max_lengths={"sender": MAX_PRINCIPAL_LENGTH, "investor": MAX_PRINCIPAL_LENGTH},
    )
    if not is_valid:
        return jsonify({"error": error}), 400

    if data["sender"] != state.ledger.owner:
        return jsonify({"error": "Only the contract owner can set ownership"}), 403

    registry = state.ledger.ownership
    if not isinstance(registry, InMemoryOwnershipRegistry):
        return jsonify({"error": "Ownership is fixed by configuration"}), 409

    success, result = registry.set_ownership(
        data["project_id"], data["investor"], data["basis_points"]
    )
    if success:
        return jsonify(result)
    return jsonify(result), 400


@revenue_bp.route("/revenue/ownership/<int:project_id>", methods=["GET"])
def get_ownership(project_id):
    """Get the ownership table of a project."""
    registry = state.ledger.ownership
    if not isinstance(registry, InMemoryOwnershipRegistry):
        return jsonify({
            "project_id": project_id,
            "fixed_basis_points": getattr(registry, "basis_points", None),
        })

    return jsonify({
        "project_id": project_id,
        "holders": registry.get_project_holders(project_id),
        "total_basis_points": registry.total_basis_points(project_id),
    })


# =============================================================================
# Clock
# =============================================================================


def _clock_info():
    clock = state.ledger.clock
    return {
        "clock": type(clock).__name__,
        "now": clock.now(),
        "adjustable": isinstance(clock, BlockHeightClock),
    }


@revenue_bp.route("/revenue/clock", methods=["GET"])
def get_clock():
    """Get the logical time stamped on distributions."""
    return jsonify(_clock_info())


@revenue_bp.route("/revenue/clock", methods=["POST"])
@require_api_key
def update_clock():
    """
    Move the block height clock forward (owner only).

    Request body (exactly one of advance / height):
        {
            "sender": "ST1...",
            "advance": 1,            // Blocks to add
            "height": 1200           // Or: absolute block height
        }
    """
    data = request.get_json(silent=True)
    is_valid, error = validate_json_schema(
        data,
        required_fields={"sender": str},
        optional_fields={"advance": int, "height": int},
        max_lengths={"sender": MAX_PRINCIPAL_LENGTH},
    )
    if not is_valid:
        return jsonify({"error": error}), 400

    advance = data.get("advance")
    height = data.get("height")
    if (advance is None) == (height is None):
        return jsonify({"error": "Provide exactly one of: advance, height"}), 400

    if data["sender"] != state.ledger.owner:
        return jsonify({"error": "Only the contract owner can move the clock"}), 403

    clock = state.ledger.clock
    if not isinstance(clock, BlockHeightClock):
        return jsonify({"error": "Clock follows the system time and cannot be moved"}), 409

    try:
        if advance is not None:
            clock.advance(advance)
        else:
            clock.set_height(height)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(_clock_info())


# =============================================================================
# Analytics
# =============================================================================


@revenue_bp.route("/revenue/stats", methods=["GET"])
def get_statistics():
    """Get ledger statistics."""
    return jsonify(state.ledger.get_statistics())


@revenue_bp.route("/revenue/events", methods=["GET"])
def get_events():
    """
    Get the most recent audit trail events.

    Query params:
        limit: Maximum events to return (default 100)
    """
    limit = bounded_limit(request.args.get("limit"))
    events = state.ledger.events[-limit:]
    return jsonify({
        "count": len(events),
        "events": [e.to_dict() for e in events],
    })
