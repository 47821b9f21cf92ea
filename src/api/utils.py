"""
Shared utilities for the revenue ledger API.

This module contains common utilities, decorators, and helpers
used across all API blueprints.
"""

import os
import secrets
from functools import wraps
from typing import Any

from flask import jsonify, request

# ============================================================
# Security Configuration
# ============================================================

# API key for mutating endpoints
API_KEY = os.getenv("REVENUE_API_KEY", None)
# Default to requiring authentication
API_KEY_REQUIRED = os.getenv("REVENUE_REQUIRE_AUTH", "true").lower() == "true"

# Bounded parameters
MAX_RESULTS = 500
DEFAULT_EVENT_LIMIT = 100
MAX_PRINCIPAL_LENGTH = 256


# ============================================================
# Validation Utilities
# ============================================================

def bounded_limit(limit: Any, default: int = DEFAULT_EVENT_LIMIT, max_limit: int = MAX_RESULTS) -> int:
    """
    Clamp a requested result limit to [1, max_limit].

    Non-numeric input falls back to the default.
    """
    try:
        value = int(limit) if limit is not None else default
    except (TypeError, ValueError):
        value = default
    return max(1, min(value, max_limit))


def validate_json_schema(
    data: Any,
    required_fields: dict[str, type],
    optional_fields: dict[str, type] | None = None,
    max_lengths: dict[str, int] | None = None
) -> tuple:
    """
    Validate JSON payload against a simple schema.

    Args:
        data: The JSON data to validate
        required_fields: Dict mapping field names to expected types
        optional_fields: Dict mapping optional field names to expected types
        max_lengths: Dict mapping field names to maximum string lengths

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    def _matches(value, expected_type):
        # bool is an int subclass but never a valid id
        if expected_type is int and isinstance(value, bool):
            return False
        return isinstance(value, expected_type)

    for field_name, expected_type in required_fields.items():
        if field_name not in data:
            return False, f"Missing required field: {field_name}"
        if not _matches(data[field_name], expected_type):
            return False, f"Field '{field_name}' must be of type {expected_type.__name__}"

    if optional_fields:
        for field_name, expected_type in optional_fields.items():
            if field_name in data and data[field_name] is not None:
                if not _matches(data[field_name], expected_type):
                    return False, f"Field '{field_name}' must be of type {expected_type.__name__}"

    if max_lengths:
        for field_name, max_len in max_lengths.items():
            if field_name in data and isinstance(data[field_name], str):
                if len(data[field_name]) > max_len:
                    return False, f"Field '{field_name}' exceeds maximum length of {max_len}"

    return True, None


# ============================================================
# Authentication Decorator
# ============================================================

def require_api_key(f):
    """Decorator to require API key authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not API_KEY_REQUIRED:
            return f(*args, **kwargs)

        provided_key = request.headers.get('X-API-Key')

        if not provided_key:
            return jsonify({
                "error": "API key required",
                "hint": "Provide API key in X-API-Key header"
            }), 401

        if not API_KEY:
            return jsonify({
                "error": "Server API key not configured",
                "hint": "Set REVENUE_API_KEY environment variable"
            }), 503

        if not secrets.compare_digest(provided_key, API_KEY):
            return jsonify({"error": "Invalid API key"}), 403

        return f(*args, **kwargs)
    return decorated_function
