"""
Callsign Blueprint - cached HamDB lookup
"""

import re

from flask import Blueprint, jsonify

from commands import net
from web.utils import http_status, result_payload

callsign_bp = Blueprint('callsign', __name__)


def validate_callsign_token(callsign: str) -> bool:
    """Letters, digits and '/' portable suffixes only."""
    return bool(re.match(r'^[A-Za-z0-9/]{3,12}$', callsign or ''))


@callsign_bp.route('/callsign/<callsign>')
def api_lookup(callsign):
    if not validate_callsign_token(callsign):
        return jsonify({'error': 'Invalid callsign'}), 400
    result = net.lookup_callsign(callsign)
    return jsonify(result_payload(result)), http_status(result)
