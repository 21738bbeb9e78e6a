"""
Session Blueprint - net lifecycle

Create, open, close, load and reset the current net.
"""

from flask import Blueprint, jsonify, request

from commands import net
from web.utils import http_status, result_payload

session_bp = Blueprint('session', __name__)


@session_bp.route('/session')
def api_get_session():
    """Current session, roster, log and elapsed time."""
    result = net.get_status()
    return jsonify(result_payload(result)), http_status(result)


@session_bp.route('/session', methods=['POST'])
def api_create_session():
    """Start a new pending session."""
    data = request.get_json(silent=True) or {}
    result = net.create_session(
        name=str(data.get('name', '')),
        net_control_op=str(data.get('netControlOp', '')),
        frequency=str(data.get('frequency', '')),
        net_control_name=str(data.get('netControlName', '')),
        prepared_by=str(data.get('preparedBy', '')),
    )
    return jsonify(result_payload(result)), http_status(result, created=True)


@session_bp.route('/session/open', methods=['POST'])
def api_open_session():
    result = net.open_session()
    return jsonify(result_payload(result)), http_status(result)


@session_bp.route('/session/close', methods=['POST'])
def api_close_session():
    result = net.close_session()
    return jsonify(result_payload(result)), http_status(result)


@session_bp.route('/session/reset', methods=['POST'])
def api_reset_session():
    result = net.reset()
    return jsonify(result_payload(result)), http_status(result)


@session_bp.route('/sessions')
def api_list_sessions():
    """All stored sessions, newest first."""
    result = net.list_sessions()
    return jsonify(result_payload(result)), http_status(result)


@session_bp.route('/sessions/<session_id>/load', methods=['POST'])
def api_load_session(session_id):
    result = net.load_session(session_id)
    return jsonify(result_payload(result)), http_status(result)
