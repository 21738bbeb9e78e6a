#!/usr/bin/env python3
"""
NetCtl - Web API

JSON API over the net control store, for browser front ends and
scripted logging stations.

Usage:
    python3 src/main_web.py                    # Localhost on port 5309
    python3 src/main_web.py --port 8888        # Custom port
    python3 src/main_web.py --host 0.0.0.0     # Listen on all interfaces
"""

import argparse
import logging
import socket
import sys
from pathlib import Path
from typing import Optional

# Add src to path
sys.path.insert(0, str(Path(__file__).parent))

from flask import Flask, jsonify

from __version__ import __version__
from commands import net
from utils.env_config import get_config, get_config_int, initialize_config
from utils.logging_config import setup_logging
from web.blueprints import register_blueprints

logger = logging.getLogger(__name__)

DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 5309


def create_app(data_dir: Optional[Path] = None, backend=None, strict_tokens: Optional[bool] = None) -> Flask:
    """
    Build the Flask app and configure the shared store.

    Args:
        data_dir: Directory for session JSON files
        backend: Storage backend overriding data_dir (tests use MemoryBackend)
        strict_tokens: Reject colliding tactical renames

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    net.configure(data_dir=data_dir, backend=backend, strict_tokens=strict_tokens)
    register_blueprints(app)

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    @app.route('/')
    def index():
        return jsonify({
            'name': 'netctl',
            'version': __version__,
            'api': '/api',
        })

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Unhandled error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


def check_port_available(host: str, port: int) -> bool:
    """Check if a port is available for binding."""
    test_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    test_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        test_socket.bind((host, port))
        return True
    except OSError:
        return False
    finally:
        test_socket.close()


def find_available_port(host: str, start_port: int, max_tries: int = 10) -> Optional[int]:
    """Find the first free port at or above start_port."""
    for port in range(start_port, start_port + max_tries):
        if check_port_available(host, port):
            return port
    return None


def main(argv=None):
    initialize_config()

    default_port = get_config_int('WEB_PORT', DEFAULT_PORT)
    # Default to localhost, require explicit --host 0.0.0.0 for network access
    default_host = get_config('WEB_HOST', DEFAULT_HOST)

    parser = argparse.ArgumentParser(
        description='NetCtl - Web API',
        epilog='''
Examples:
  python3 src/main_web.py                          # Localhost only
  python3 src/main_web.py --host 0.0.0.0           # Network access
  python3 src/main_web.py --port 9000              # Custom port
  python3 src/main_web.py --data-dir ./netdata     # Separate session store

Environment variables:
  WEB_PORT=9000           # Set default port
  WEB_HOST=0.0.0.0        # Set bind address
  NETCTL_DATA_DIR=path    # Session storage directory
'''
    )
    parser.add_argument('--host', default=default_host,
                        help=f'Host to bind to (default: {default_host}, env: WEB_HOST)')
    parser.add_argument('--port', '-p', type=int, default=default_port,
                        help=f'Port to listen on (default: {default_port}, env: WEB_PORT)')
    parser.add_argument('--data-dir', type=Path, default=None,
                        help='Directory for session storage (env: NETCTL_DATA_DIR)')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug mode')
    parser.add_argument('--auto-port', action='store_true',
                        help='Automatically find an available port if default is in use')
    args = parser.parse_args(argv)

    setup_logging(level='DEBUG' if args.debug else get_config('LOG_LEVEL'),
                  log_file=get_config('LOG_FILE') or None)

    port = args.port
    if not check_port_available(args.host, port):
        if not args.auto_port:
            print(f"ERROR: Port {port} is already in use (try --port or --auto-port)")
            sys.exit(1)
        new_port = find_available_port(args.host, port + 1, max_tries=20)
        if new_port is None:
            print(f"ERROR: Could not find available port in range {port + 1}-{port + 20}")
            sys.exit(1)
        print(f"Port {port} is in use, using {new_port}")
        port = new_port

    if args.host in ('0.0.0.0', '::'):
        print("WARNING: Listening on all interfaces. Anyone on the network can edit the log.")

    app = create_app(data_dir=args.data_dir)

    print("=" * 60)
    print(f"NetCtl Web API v{__version__}")
    print("=" * 60)
    print(f"  http://{args.host}:{port}/api/session")
    print("Press Ctrl+C to stop")
    print("=" * 60)

    app.run(
        host=args.host,
        port=port,
        debug=args.debug,
        threaded=True,
        use_reloader=False  # Prevent duplicate processes
    )


if __name__ == '__main__':
    main()
