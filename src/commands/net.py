"""
Net Control Commands

Unified interface over the NetStore for the CLI and the web API.
Every function returns a CommandResult; validation problems come back
as failures rather than exceptions.

A single store serves the whole process. Calls are serialized with a
lock so the threaded web server still applies one mutation at a time.
"""

import logging
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from netctl.callsign import CallsignCache, CallsignLookup, DEFAULT_LOOKUP_URL, DEFAULT_TIMEOUT
from netctl.csv_codec import CSV_MIME_TYPE, csv_filename
from netctl.exceptions import ValidationError
from netctl.models import to_iso, utc_now
from netctl.storage import JsonFileBackend, SessionRepository, StorageBackend
from netctl.store import NetStore, format_duration

from .base import CommandResult

logger = logging.getLogger(__name__)

# Module-level store state
_store: Optional[NetStore] = None
_lock = threading.RLock()


def configure(data_dir: Optional[Path] = None, backend: Optional[StorageBackend] = None,
              strict_tokens: Optional[bool] = None, lookup_url: Optional[str] = None,
              lookup_timeout: Optional[float] = None,
              clock: Callable[[], datetime] = utc_now) -> CommandResult:
    """
    Build the process-wide store.

    Unset arguments come from the environment (see utils.env_config).

    Args:
        data_dir: Directory for JSON files (ignored if backend is given)
        backend: Storage backend to use instead of files
        strict_tokens: Reject colliding participant renames
        lookup_url: Callsign directory URL template with {callsign}
        lookup_timeout: Seconds before a lookup is abandoned
        clock: Source of "now"

    Returns:
        CommandResult with the data directory and restored session id
    """
    global _store
    from utils.env_config import get_config, get_config_bool, get_config_float
    from utils.paths import NetCtlPaths

    if backend is None:
        data_dir = Path(data_dir) if data_dir else NetCtlPaths.get_data_dir()
        backend = JsonFileBackend(data_dir)
    if strict_tokens is None:
        strict_tokens = get_config_bool('NETCTL_STRICT_TOKENS')
    lookup_url = lookup_url or get_config('CALLSIGN_LOOKUP_URL', DEFAULT_LOOKUP_URL)
    if lookup_timeout is None:
        lookup_timeout = get_config_float('CALLSIGN_LOOKUP_TIMEOUT', DEFAULT_TIMEOUT)
    if lookup_timeout <= 0:
        lookup_timeout = DEFAULT_TIMEOUT

    lookup = CallsignLookup(CallsignCache(backend, clock=clock), url_template=lookup_url,
                            timeout=lookup_timeout)
    with _lock:
        _store = NetStore(SessionRepository(backend), lookup=lookup, clock=clock,
                          strict_tokens=strict_tokens)
        session = _store.session

    return CommandResult.ok(
        "Store configured",
        data={
            'data_dir': str(data_dir) if data_dir else None,
            'session_id': session.id if session else None,
        },
    )


def get_store() -> NetStore:
    """Return the process-wide store, configuring it from the environment if needed"""
    with _lock:
        if _store is None:
            configure()
        return _store


# ----------------------------------------------------------------------
# Serialization for API/CLI output
# ----------------------------------------------------------------------

def _participant_dict(store: NetStore, participant) -> Dict[str, Any]:
    data = participant.to_dict()
    last = store.get_last_transmission(participant.callsign)
    data['lastTransmission'] = to_iso(last) if last else None
    data['displayCallsign'] = store.get_display_callsign(participant.callsign)
    return data


def _entry_dict(store: NetStore, entry) -> Dict[str, Any]:
    data = entry.to_dict()
    data['acknowledged'] = entry.id == store.last_acknowledged_entry_id
    for side, token in (('fromParticipant', entry.from_callsign), ('toParticipant', entry.to_callsign)):
        match = store.find_participant(token)
        data[side] = match.id if match else None
    return data


def _state(store: NetStore) -> Dict[str, Any]:
    elapsed = store.get_elapsed_time()
    return {
        'session': store.session.to_dict() if store.session else None,
        'participants': [_participant_dict(store, p) for p in store.participants],
        'logEntries': [_entry_dict(store, e) for e in store.log_entries],
        'lastAcknowledgedEntryId': store.last_acknowledged_entry_id,
        'elapsedSeconds': int(elapsed.total_seconds()),
        'elapsed': format_duration(elapsed),
        'error': store.error,
    }


def _require_session(store: NetStore) -> Optional[CommandResult]:
    if store.session is None:
        return CommandResult.fail("No active session", error="Create or load a session first")
    return None


# ----------------------------------------------------------------------
# Session lifecycle
# ----------------------------------------------------------------------

def get_status() -> CommandResult:
    """Current session, roster, log and elapsed time."""
    with _lock:
        store = get_store()
        data = _state(store)
    if data['session'] is None:
        return CommandResult.warn("No active session", data=data)
    return CommandResult.ok(f"Session {data['session']['name']} ({data['session']['status']})", data=data)


def create_session(name: str, net_control_op: str, frequency: str = "",
                   net_control_name: str = "", prepared_by: str = "") -> CommandResult:
    """Start a new pending session with the operator checked in as #1."""
    with _lock:
        store = get_store()
        try:
            session = store.create_session(name, net_control_op, frequency=frequency,
                                           net_control_name=net_control_name,
                                           prepared_by=prepared_by)
        except ValidationError as e:
            return CommandResult.fail(str(e))
        return CommandResult.ok(f"Created session {session.name}", data=_state(store))


def open_session() -> CommandResult:
    with _lock:
        store = get_store()
        missing = _require_session(store)
        if missing is not None:
            return missing
        if not store.open_session():
            return CommandResult.warn(
                f"Session is {store.session.status.value}, not pending", data=_state(store))
        return CommandResult.ok("Net opened", data=_state(store))


def close_session() -> CommandResult:
    with _lock:
        store = get_store()
        missing = _require_session(store)
        if missing is not None:
            return missing
        store.close_session()
        return CommandResult.ok("Net closed", data=_state(store))


def load_session(session_id: str) -> CommandResult:
    with _lock:
        store = get_store()
        if not store.load_session(session_id):
            return CommandResult.not_found(store.error or "Session not found")
        return CommandResult.ok(f"Loaded session {store.session.name}", data=_state(store))


def list_sessions() -> CommandResult:
    with _lock:
        store = get_store()
        sessions = [s.to_dict() for s in store.list_sessions()]
        active_id = store.session.id if store.session else None
    return CommandResult.ok(f"{len(sessions)} session(s)",
                            data={'sessions': sessions, 'activeSessionId': active_id})


def reset() -> CommandResult:
    """Discard the current session from memory and disk."""
    with _lock:
        store = get_store()
        name = store.session.name if store.session else None
        store.reset()
    return CommandResult.ok(f"Discarded session {name}" if name else "Nothing to reset")


# ----------------------------------------------------------------------
# Participants and log
# ----------------------------------------------------------------------

def check_in(callsign: str, tactical_call: str = "", name: str = "", location: str = "",
             lookup: bool = False) -> CommandResult:
    """
    Check a station in.

    Args:
        callsign: Station callsign
        tactical_call: Optional role alias
        name: Operator name
        location: Station location
        lookup: Fill a blank name/location from the callsign directory
    """
    with _lock:
        store = get_store()
        missing = _require_session(store)
    if missing is not None:
        return missing

    # Directory lookup runs without holding the lock
    looked_up = None
    if lookup and callsign and not name and not location:
        looked_up = store.lookup_callsign(callsign)
        if looked_up:
            name = looked_up.name
            location = looked_up.location

    with _lock:
        store = get_store()
        missing = _require_session(store)
        if missing is not None:
            return missing
        try:
            participant = store.add_participant(callsign, tactical_call=tactical_call,
                                                name=name, location=location)
        except ValidationError as e:
            return CommandResult.fail(str(e))

        data = _state(store)
        data['participant'] = _participant_dict(store, participant)
        data['lookup'] = looked_up.to_dict() if looked_up else None
        return CommandResult.ok(
            f"Checked in #{participant.check_in_number} {participant.callsign}", data=data)


def update_participant(participant_id: str, **updates) -> CommandResult:
    with _lock:
        store = get_store()
        try:
            participant = store.update_participant(participant_id, **updates)
        except ValidationError as e:
            return CommandResult.fail(str(e))
        if participant is None:
            return CommandResult.not_found(f"Participant {participant_id} not found")
        data = _state(store)
        data['participant'] = _participant_dict(store, participant)
        return CommandResult.ok(f"Updated {participant.callsign}", data=data)


def remove_participant(participant_id: str) -> CommandResult:
    with _lock:
        store = get_store()
        if not store.remove_participant(participant_id):
            return CommandResult.not_found(f"Participant {participant_id} not found")
        return CommandResult.ok("Participant removed", data=_state(store))


def log_message(from_callsign: str, to_callsign: str = "", message: str = "") -> CommandResult:
    with _lock:
        store = get_store()
        missing = _require_session(store)
        if missing is not None:
            return missing
        entry = store.add_log_entry(from_callsign, to_callsign, message)
        data = _state(store)
        data['entry'] = _entry_dict(store, entry)
        return CommandResult.ok(f"Logged #{entry.entry_number}", data=data)


def acknowledge(entry_id: str) -> CommandResult:
    """Mark a log entry as the last one net control acknowledged."""
    with _lock:
        store = get_store()
        if not any(e.id == entry_id for e in store.log_entries):
            return CommandResult.not_found(f"Log entry {entry_id} not found")
        store.set_last_acknowledged_entry(entry_id)
        return CommandResult.ok("Entry acknowledged", data=_state(store))


def lookup_callsign(callsign: str) -> CommandResult:
    with _lock:
        store = get_store()
    # Network call happens outside the lock; CallsignCache serializes its own writes
    result = store.lookup_callsign(callsign)
    if result is None:
        return CommandResult.not_found(f"No directory record for {callsign.strip().upper()}")
    return CommandResult.ok(f"Found {result.callsign}", data=result.to_dict())


# ----------------------------------------------------------------------
# Export / import
# ----------------------------------------------------------------------

def export_csv(today: Optional[date] = None) -> CommandResult:
    with _lock:
        store = get_store()
        missing = _require_session(store)
        if missing is not None:
            return missing
        content = store.export_csv()
        filename = csv_filename(store.session, today)
    return CommandResult.ok(f"Exported {filename}",
                            data={'content': content, 'filename': filename, 'mimetype': CSV_MIME_TYPE})


def export_pdf(today: Optional[date] = None) -> CommandResult:
    # reportlab is only needed here
    from netctl.pdf_export import PDF_MIME_TYPE, generate_ics309_pdf, pdf_filename

    with _lock:
        store = get_store()
        missing = _require_session(store)
        if missing is not None:
            return missing
        bundle = store.bundle()
        filename = pdf_filename(store.session, today)
    try:
        content = generate_ics309_pdf(bundle)
    except Exception as e:
        logger.error(f"PDF export failed: {e}")
        return CommandResult.fail("PDF export failed", error=str(e))
    return CommandResult.ok(f"Exported {filename}",
                            data={'content': content, 'filename': filename, 'mimetype': PDF_MIME_TYPE})


def import_csv(text: str) -> CommandResult:
    """Replace the current session with one parsed from ICS-309 CSV."""
    with _lock:
        store = get_store()
        if not store.import_csv(text):
            return CommandResult.fail(store.error or "Failed to import CSV")
        return CommandResult.ok(f"Imported session {store.session.name}", data=_state(store))
