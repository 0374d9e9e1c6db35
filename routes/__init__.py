"""
Flask route blueprints for the Printful fulfillment bridge.

- fulfillment: Submit orders to Printful, read their Printful record
- webhooks: Receive Printful webhook deliveries
- api: Operator diagnostics, audit log, health check

Each blueprint is registered with the Flask app in create_app().
"""

from .fulfillment import fulfillment_bp
from .webhooks import webhooks_bp
from .api import api_bp

__all__ = [
    "fulfillment_bp",
    "webhooks_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(fulfillment_bp)
    app.register_blueprint(webhooks_bp)
    app.register_blueprint(api_bp)
