"""
Net Control Store

Holds the current session, its roster and its communications log, and
writes the whole bundle back through the SessionRepository after every
change.

Lifecycle:
    pending --open_session()--> active --close_session()--> closed

Log entries point at stations by text (callsign, tactical call, "NC",
"ALL", ...), not by participant id. Renaming a participant therefore
rewrites matching tokens across the whole log.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from . import csv_codec
from .callsign import CallsignLookup
from .exceptions import TokenCollisionError, ValidationError
from .models import (
    NET_CONTROL_TACTICAL,
    NET_CONTROL_TOKEN,
    CallsignLookupResult,
    LogEntry,
    NetSession,
    Participant,
    SessionBundle,
    SessionStatus,
    utc_now,
)
from .storage import SessionRepository

logger = logging.getLogger(__name__)

CHECK_IN_MESSAGE = "check in"
SESSION_NOT_FOUND = "Session not found"

EDITABLE_FIELDS = ('callsign', 'tactical_call', 'name', 'location')


def format_duration(elapsed: timedelta) -> str:
    """Render elapsed time as HH:MM:SS"""
    total = max(0, int(elapsed.total_seconds()))
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class NetStore:
    """
    State container for one net at a time.

    Args:
        repository: Persistence adapter; failures there never reach callers
        lookup: Optional callsign directory client
        clock: Source of "now" (UTC-aware datetimes)
        strict_tokens: Reject renames that reuse another participant's
            callsign or tactical call instead of merging their log history
        restore: Load the last active session from the repository
    """

    def __init__(self, repository: SessionRepository, lookup: Optional[CallsignLookup] = None,
                 clock: Callable[[], datetime] = utc_now, strict_tokens: bool = False,
                 restore: bool = True):
        self.repository = repository
        self.lookup = lookup
        self.clock = clock
        self.strict_tokens = strict_tokens

        self.session: Optional[NetSession] = None
        self.participants: List[Participant] = []
        self.log_entries: List[LogEntry] = []
        self.last_acknowledged_entry_id: Optional[str] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self.start_time: Optional[datetime] = None

        if restore:
            self.restore_active()

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def bundle(self) -> Optional[SessionBundle]:
        """Snapshot of the current session, or None if there is none"""
        if self.session is None:
            return None
        return SessionBundle(
            session=self.session,
            participants=list(self.participants),
            log_entries=list(self.log_entries),
            last_acknowledged_entry_id=self.last_acknowledged_entry_id,
        )

    def _persist(self) -> None:
        bundle = self.bundle()
        if bundle is not None:
            self.repository.save(bundle)

    def _apply(self, bundle: SessionBundle) -> None:
        self.session = bundle.session
        self.participants = list(bundle.participants)
        self.log_entries = list(bundle.log_entries)
        self.last_acknowledged_entry_id = bundle.last_acknowledged_entry_id
        self.start_time = bundle.session.date_time if bundle.session.is_active else None

    def restore_active(self) -> bool:
        """Reload whichever session was active when the store last saved"""
        bundle = self.repository.load_active()
        if bundle is None:
            return False
        self._apply(bundle)
        logger.info(f"Restored session '{bundle.session.name}' ({bundle.session.status.value})")
        return True

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def create_session(self, name: str, net_control_op: str, frequency: str = "",
                       net_control_name: str = "", prepared_by: str = "") -> NetSession:
        """
        Start a new pending session with the operator checked in as #1.

        Raises:
            ValidationError: if name or operator callsign is blank
        """
        name = (name or "").strip()
        net_control_op = (net_control_op or "").strip().upper()
        if not name:
            raise ValidationError("Session name is required")
        if not net_control_op:
            raise ValidationError("Net control callsign is required")

        now = self.clock()
        session = NetSession(
            name=name,
            frequency=(frequency or "").strip(),
            net_control_op=net_control_op,
            net_control_name=(net_control_name or "").strip(),
            prepared_by=(prepared_by or "").strip(),
            date_time=now,
        )
        net_control = Participant(
            callsign=net_control_op,
            tactical_call=NET_CONTROL_TACTICAL,
            name=session.net_control_name,
            check_in_time=now,
            check_in_number=1,
        )

        self.session = session
        self.participants = [net_control]
        self.log_entries = []
        self.last_acknowledged_entry_id = None
        self.start_time = None
        self.error = None
        self._persist()

        logger.info(f"Created session '{name}' with net control {net_control_op}")
        return session

    def open_session(self) -> bool:
        """Move a pending session to active. Any other state is left alone."""
        if self.session is None or self.session.status != SessionStatus.PENDING:
            return False
        self.session.status = SessionStatus.ACTIVE
        self.session.end_time = None
        self.start_time = self.clock()
        self._persist()
        logger.info(f"Opened session '{self.session.name}'")
        return True

    def close_session(self) -> bool:
        """Close the session and stamp its end time"""
        if self.session is None:
            return False
        self.session.status = SessionStatus.CLOSED
        self.session.end_time = self.clock()
        self.start_time = None
        self._persist()
        logger.info(f"Closed session '{self.session.name}'")
        return True

    def load_session(self, session_id: str) -> bool:
        """
        Make a stored session current.

        Sets ``error`` to "Session not found" when the id is unknown.
        """
        self.is_loading = True
        self.error = None
        bundle = self.repository.load(session_id)
        self.is_loading = False

        if bundle is None:
            self.error = SESSION_NOT_FOUND
            logger.warning(f"Session {session_id} not found")
            return False

        self._apply(bundle)
        self.repository.set_active_session_id(bundle.session.id)
        return True

    def list_sessions(self) -> List[NetSession]:
        return self.repository.list_sessions()

    def reset(self) -> None:
        """Forget the current session, in memory and on disk"""
        session_id = self.session.id if self.session else None
        self.repository.delete(session_id)
        self.session = None
        self.participants = []
        self.log_entries = []
        self.last_acknowledged_entry_id = None
        self.is_loading = False
        self.error = None
        self.start_time = None

    def get_elapsed_time(self) -> timedelta:
        """Time since the net opened, zero unless it is running"""
        if self.start_time is None:
            return timedelta(0)
        return self.clock() - self.start_time

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        return next((p for p in self.participants if p.id == participant_id), None)

    def add_participant(self, callsign: str, tactical_call: str = "", name: str = "",
                        location: str = "") -> Participant:
        """
        Check a station in.

        While the net is active this also logs "check in" from the
        station to NC.

        Raises:
            ValidationError: if callsign is blank
        """
        callsign = (callsign or "").strip().upper()
        if not callsign:
            raise ValidationError("Callsign is required")

        participant = Participant(
            callsign=callsign,
            tactical_call=(tactical_call or "").strip(),
            name=(name or "").strip(),
            location=(location or "").strip(),
            check_in_time=self.clock(),
            check_in_number=len(self.participants) + 1,
        )
        self.participants.append(participant)
        self._persist()
        logger.info(f"Checked in #{participant.check_in_number} {callsign}")

        if self.session is not None and self.session.is_active:
            self.add_log_entry(callsign, NET_CONTROL_TOKEN, CHECK_IN_MESSAGE)

        return participant

    def _check_collision(self, participant: Participant, token: str) -> None:
        for other in self.participants:
            if other.id == participant.id:
                continue
            if token in (other.callsign, other.tactical_call):
                raise TokenCollisionError(token, other.id)

    def update_participant(self, participant_id: str, **updates) -> Optional[Participant]:
        """
        Edit a participant and carry renames through the log.

        Accepts callsign, tactical_call, name and location. When the
        callsign changes, every log token equal to the old callsign becomes
        the new one. When the tactical call changes, tokens equal to the old
        tactical call become the new tactical call, or the callsign if the
        tactical call was cleared.

        Returns:
            The updated participant, or None if the id is unknown

        Raises:
            ValidationError: on a blank callsign or an unknown field
            TokenCollisionError: on a colliding rename with strict_tokens
        """
        unknown = set(updates) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        current = self.get_participant(participant_id)
        if current is None:
            return None

        new_callsign = current.callsign
        if updates.get('callsign') is not None:
            new_callsign = updates['callsign'].strip().upper()
            if not new_callsign:
                raise ValidationError("Callsign is required")
        new_tactical = current.tactical_call
        if updates.get('tactical_call') is not None:
            new_tactical = updates['tactical_call'].strip()

        callsign_changed = new_callsign != current.callsign
        tactical_changed = new_tactical != current.tactical_call

        if self.strict_tokens:
            if callsign_changed:
                self._check_collision(current, new_callsign)
            if tactical_changed and new_tactical:
                self._check_collision(current, new_tactical)

        old_callsign, old_tactical = current.callsign, current.tactical_call
        current.callsign = new_callsign
        current.tactical_call = new_tactical
        if updates.get('name') is not None:
            current.name = updates['name'].strip()
        if updates.get('location') is not None:
            current.location = updates['location'].strip()

        if callsign_changed or tactical_changed:
            def replace(token: str) -> str:
                if callsign_changed and token == old_callsign:
                    return new_callsign
                if tactical_changed and old_tactical and token == old_tactical:
                    return new_tactical or new_callsign
                return token

            rewritten = 0
            for entry in self.log_entries:
                new_from, new_to = replace(entry.from_callsign), replace(entry.to_callsign)
                if (new_from, new_to) != (entry.from_callsign, entry.to_callsign):
                    entry.from_callsign, entry.to_callsign = new_from, new_to
                    rewritten += 1
            if rewritten:
                logger.info(f"Renamed {old_callsign} in {rewritten} log entries")

        self._persist()
        return current

    def remove_participant(self, participant_id: str) -> bool:
        """Drop a participant. Numbers and log entries are left as they are."""
        before = len(self.participants)
        self.participants = [p for p in self.participants if p.id != participant_id]
        if len(self.participants) == before:
            return False
        self._persist()
        return True

    def find_participant(self, token: str) -> Optional[Participant]:
        """
        Resolve a log token to a participant.

        Exact callsign or tactical call first; "NC" then falls back to the
        net control operator. A blank token matches nobody.
        """
        if not token:
            return None
        for p in self.participants:
            if p.callsign == token or p.tactical_call == token:
                return p
        if token == NET_CONTROL_TOKEN and self.session is not None:
            for p in self.participants:
                if p.callsign == self.session.net_control_op or p.tactical_call == NET_CONTROL_TACTICAL:
                    return p
        return None

    def get_display_callsign(self, callsign: str) -> str:
        """"TAC (CALL)" when the station has a tactical call, else the callsign"""
        participant = next((p for p in self.participants if p.callsign == callsign), None)
        if participant is not None and participant.tactical_call:
            return f"{participant.tactical_call} ({callsign})"
        return callsign

    def get_last_transmission(self, callsign: str) -> Optional[datetime]:
        """Time of the latest log entry sent or received by callsign"""
        for entry in reversed(self.log_entries):
            if callsign in (entry.from_callsign, entry.to_callsign):
                return entry.time
        return None

    # ------------------------------------------------------------------
    # Log
    # ------------------------------------------------------------------

    def add_log_entry(self, from_callsign: str, to_callsign: str = "", message: str = "") -> LogEntry:
        """Append a log entry. A blank recipient means net control."""
        entry = LogEntry(
            entry_number=len(self.log_entries) + 1,
            time=self.clock(),
            from_callsign=(from_callsign or "").strip(),
            to_callsign=(to_callsign or "").strip() or NET_CONTROL_TOKEN,
            message=(message or "").strip(),
        )
        self.log_entries.append(entry)
        self._persist()
        return entry

    def set_last_acknowledged_entry(self, entry_id: str) -> None:
        self.last_acknowledged_entry_id = entry_id
        self._persist()

    # ------------------------------------------------------------------
    # Lookup / export / import
    # ------------------------------------------------------------------

    def lookup_callsign(self, callsign: str) -> Optional[CallsignLookupResult]:
        if self.lookup is None:
            return None
        return self.lookup.lookup(callsign)

    def export_csv(self) -> str:
        return csv_codec.export_csv(self.bundle())

    def import_csv(self, text: str) -> bool:
        """
        Replace the current session with one parsed from CSV.

        The imported session is always active, with elapsed time counted
        from its recorded start.
        """
        try:
            bundle = csv_codec.import_csv(text, clock=self.clock)
        except Exception as e:
            logger.warning(f"CSV import failed: {e}")
            self.error = f"Failed to import CSV: {e}"
            return False

        self._apply(bundle)
        self.is_loading = False
        self.error = None
        self._persist()
        return True
