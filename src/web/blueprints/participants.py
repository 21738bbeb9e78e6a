"""
Participants Blueprint - check-ins and roster edits
"""

from flask import Blueprint, jsonify, request

from commands import net
from web.utils import http_status, participant_updates, result_payload

participants_bp = Blueprint('participants', __name__)


@participants_bp.route('/participants')
def api_participants():
    result = net.get_status()
    return jsonify({'participants': result.data.get('participants', [])})


@participants_bp.route('/participants', methods=['POST'])
def api_check_in():
    """Check a station in. Set "lookup": true to fill name/location from HamDB."""
    data = request.get_json(silent=True) or {}
    callsign = str(data.get('callsign', '')).strip()
    if not callsign:
        return jsonify({'error': 'Callsign required'}), 400

    result = net.check_in(
        callsign,
        tactical_call=str(data.get('tacticalCall', '')),
        name=str(data.get('name', '')),
        location=str(data.get('location', '')),
        lookup=bool(data.get('lookup', False)),
    )
    return jsonify(result_payload(result)), http_status(result, created=True)


@participants_bp.route('/participants/<participant_id>', methods=['PATCH'])
def api_update_participant(participant_id):
    updates, unknown = participant_updates(request.get_json(silent=True))
    if unknown:
        return jsonify({'error': f"Unknown field(s): {', '.join(sorted(unknown))}"}), 400

    result = net.update_participant(participant_id, **updates)
    return jsonify(result_payload(result)), http_status(result)


@participants_bp.route('/participants/<participant_id>', methods=['DELETE'])
def api_remove_participant(participant_id):
    result = net.remove_participant(participant_id)
    return jsonify(result_payload(result)), http_status(result)
