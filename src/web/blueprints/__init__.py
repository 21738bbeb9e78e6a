"""
Flask Blueprints for the NetCtl Web API

Modular routing for the web API, organized by domain.
"""

from .session import session_bp
from .participants import participants_bp
from .log import log_bp
from .callsign import callsign_bp
from .export import export_bp

__all__ = [
    'session_bp',
    'participants_bp',
    'log_bp',
    'callsign_bp',
    'export_bp',
]


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    app.register_blueprint(session_bp, url_prefix='/api')
    app.register_blueprint(participants_bp, url_prefix='/api')
    app.register_blueprint(log_bp, url_prefix='/api')
    app.register_blueprint(callsign_bp, url_prefix='/api')
    app.register_blueprint(export_bp, url_prefix='/api')
