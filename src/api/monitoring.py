"""
Health endpoints blueprint.

Provides:
- /health: Basic health check with ledger counts
- /health/live: Liveness probe
- /health/ready: Readiness probe
"""

import time

from flask import Blueprint, jsonify

from . import state

# Create the blueprint
monitoring_bp = Blueprint('monitoring', __name__)

# Track startup time
_startup_time = time.time()


@monitoring_bp.route('/health', methods=['GET'])
def health():
    """
    Basic health check endpoint.

    Returns service status and key ledger counts.
    """
    ledger = state.ledger
    return jsonify({
        "status": "healthy",
        "service": "Revenue Ledger API",
        "version": get_version(),
        "uptime_seconds": time.time() - _startup_time,
        "ledger": {
            "owner": ledger.owner,
            "periods": len(ledger.periods),
            "claims": len(ledger.claims),
            "clock": type(ledger.clock).__name__,
            "logical_time": ledger.clock.now(),
        },
    })


@monitoring_bp.route('/health/live', methods=['GET'])
def liveness():
    """Liveness probe. Returns 200 while the process is running."""
    return jsonify({"status": "alive"})


@monitoring_bp.route('/health/ready', methods=['GET'])
def readiness():
    """
    Readiness probe.

    Ready once the shared ledger is built and its clock answers.
    """
    issues = []

    try:
        state.ledger.clock.now()
    except Exception as e:
        issues.append(f"clock: {e}")

    if issues:
        return jsonify({
            "status": "not_ready",
            "issues": issues,
        }), 503

    return jsonify({"status": "ready"})


def get_version() -> str:
    """Get application version."""
    try:
        from importlib.metadata import version
        return version("revenue-ledger")
    except Exception:
        return "0.1.0"
