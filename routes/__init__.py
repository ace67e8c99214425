"""
Flask route blueprints for Sticker Dream.

- generate: POST /api/generate (image generation + background print)
- api: health check, printer listing, print job status

Each blueprint is registered with the Flask app in create_app().
"""

from .generate import generate_bp
from .api import api_bp

__all__ = [
    "generate_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(generate_bp)
    app.register_blueprint(api_bp)
