"""
Revenue Ledger API Package.

This package contains the Flask blueprints for the revenue ledger API.

Blueprints:
- monitoring: Health and readiness endpoints
- revenue: Revenue periods, distribution, claims and ownership
"""

from flask import Flask

from api.monitoring import monitoring_bp
from api.revenue import revenue_bp

# List of all blueprints for registration
# Tuple format: (blueprint, url_prefix)
ALL_BLUEPRINTS = [
    (monitoring_bp, ''),
    (revenue_bp, ''),
]


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    for blueprint, url_prefix in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=url_prefix)


def create_app(testing: bool = False) -> Flask:
    """
    Create the Flask application.

    Args:
        testing: Enable Flask testing mode

    Returns:
        Configured Flask app
    """
    from monitoring import setup_request_logging

    app = Flask(__name__)
    app.config['TESTING'] = testing
    app.json.sort_keys = False

    register_blueprints(app)
    setup_request_logging(app)

    @app.errorhandler(404)
    def not_found(_error):
        return {"error": "Endpoint not found"}, 404

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(500)
    def internal_error(_error):
        return {"error": "Internal server error"}, 500

    return app
