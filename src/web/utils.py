"""
Web Utilities - helpers shared by the blueprints

The mapping functions here don't depend on Flask and can be tested
independently.
"""

from typing import Any, Dict, Optional, Tuple

from commands.base import CommandResult, ResultStatus

# HTTP status per command outcome
STATUS_CODES = {
    ResultStatus.SUCCESS: 200,
    ResultStatus.WARNING: 200,
    ResultStatus.ERROR: 400,
    ResultStatus.NOT_FOUND: 404,
}

# Participant fields accepted from JSON bodies (camelCase as sent by the UI)
PARTICIPANT_FIELDS = {
    'callsign': 'callsign',
    'tacticalCall': 'tactical_call',
    'tactical_call': 'tactical_call',
    'name': 'name',
    'location': 'location',
}


def http_status(result: CommandResult, created: bool = False) -> int:
    """Pick the HTTP status for a command result"""
    if created and result.status == ResultStatus.SUCCESS:
        return 201
    return STATUS_CODES.get(result.status, 500)


def result_payload(result: CommandResult) -> Dict[str, Any]:
    """JSON body for a command result"""
    payload = {
        'success': result.success,
        'status': result.status.value,
        'message': result.message,
    }
    if result.error:
        payload['error'] = result.error
    payload.update(result.data)
    return payload


def participant_updates(body: Optional[Dict[str, Any]]) -> Tuple[Dict[str, str], list]:
    """
    Translate a JSON body into update_participant keyword arguments.

    Returns:
        (updates, unknown field names)
    """
    updates = {}
    unknown = []
    for key, value in (body or {}).items():
        field = PARTICIPANT_FIELDS.get(key)
        if field is None:
            unknown.append(key)
        elif value is not None:
            updates[field] = str(value)
    return updates, unknown
