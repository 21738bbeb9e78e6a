"""
Log Blueprint - communications log entries and acknowledgement
"""

from flask import Blueprint, jsonify, request

from commands import net
from web.utils import http_status, result_payload

log_bp = Blueprint('log', __name__)

# Keep in step with the ICS-309 remarks column; longer text still wraps
MAX_MESSAGE_LENGTH = 2000


@log_bp.route('/log')
def api_log():
    result = net.get_status()
    return jsonify({
        'logEntries': result.data.get('logEntries', []),
        'lastAcknowledgedEntryId': result.data.get('lastAcknowledgedEntryId'),
    })


@log_bp.route('/log', methods=['POST'])
def api_add_log_entry():
    data = request.get_json(silent=True) or {}
    message = str(data.get('message', ''))

    if len(message) > MAX_MESSAGE_LENGTH:
        return jsonify({'error': f'Message too long (max {MAX_MESSAGE_LENGTH} chars)'}), 400

    result = net.log_message(
        str(data.get('fromCallsign', '')),
        str(data.get('toCallsign', '')),
        message,
    )
    return jsonify(result_payload(result)), http_status(result, created=True)


@log_bp.route('/log/<entry_id>/ack', methods=['POST'])
def api_acknowledge(entry_id):
    result = net.acknowledge(entry_id)
    return jsonify(result_payload(result)), http_status(result)
