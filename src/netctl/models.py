"""
Net Control Data Model

Session, participant and log entry records plus the bundle that is
persisted per session. Field names on disk are camelCase so data written
by earlier releases of the logger stays readable.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

NET_CONTROL_TACTICAL = "NET"
NET_CONTROL_TOKEN = "NC"
BROADCAST_TOKEN = "ALL"


class SessionStatus(Enum):
    """Lifecycle states of a net session"""
    PENDING = "pending"
    ACTIVE = "active"
    CLOSED = "closed"


def new_id() -> str:
    """Generate an opaque record id"""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """
    Format an instant the way browsers do (``toISOString``).

    Example: 2025-01-05T18:30:00.000Z
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"


def parse_iso(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp.

    Returns:
        Aware UTC datetime, or None if the value is empty or malformed
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class NetSession:
    """A single net: who ran it, where, and its lifecycle state"""

    name: str
    net_control_op: str
    frequency: str = ""
    net_control_name: str = ""
    prepared_by: str = ""
    date_time: datetime = field(default_factory=utc_now)
    end_time: Optional[datetime] = None
    status: SessionStatus = SessionStatus.PENDING
    id: str = field(default_factory=new_id)

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def is_closed(self) -> bool:
        return self.status == SessionStatus.CLOSED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'frequency': self.frequency,
            'netControlOp': self.net_control_op,
            'netControlName': self.net_control_name,
            'preparedBy': self.prepared_by,
            'dateTime': to_iso(self.date_time),
            'endTime': to_iso(self.end_time) if self.end_time else None,
            'status': self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NetSession':
        """
        Create from dictionary.

        Raises:
            KeyError, ValueError, TypeError: if required fields are missing
        """
        date_time = parse_iso(data['dateTime'])
        if date_time is None:
            raise ValueError(f"Invalid session dateTime: {data.get('dateTime')!r}")
        status = SessionStatus(data.get('status', SessionStatus.PENDING.value))
        end_time = parse_iso(data.get('endTime'))
        if status == SessionStatus.CLOSED and end_time is None:
            end_time = date_time
        elif status != SessionStatus.CLOSED:
            end_time = None
        return cls(
            id=str(data['id']),
            name=str(data.get('name') or ''),
            frequency=str(data.get('frequency') or ''),
            net_control_op=str(data.get('netControlOp') or ''),
            net_control_name=str(data.get('netControlName') or ''),
            prepared_by=str(data.get('preparedBy') or ''),
            date_time=date_time,
            end_time=end_time,
            status=status,
        )


@dataclass
class Participant:
    """A station checked in to the net"""

    callsign: str
    check_in_number: int
    tactical_call: str = ""
    name: str = ""
    location: str = ""
    check_in_time: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'callsign': self.callsign,
            'tacticalCall': self.tactical_call,
            'name': self.name,
            'location': self.location,
            'checkInTime': to_iso(self.check_in_time),
            'checkInNumber': self.check_in_number,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Participant':
        """Create from dictionary"""
        return cls(
            id=str(data['id']),
            callsign=str(data['callsign']),
            tactical_call=str(data.get('tacticalCall') or ''),
            name=str(data.get('name') or ''),
            location=str(data.get('location') or ''),
            check_in_time=parse_iso(data.get('checkInTime')) or utc_now(),
            check_in_number=int(data['checkInNumber']),
        )


@dataclass
class LogEntry:
    """
    One line of the ICS-309 communications log.

    from_callsign and to_callsign are plain text tokens. They usually name a
    participant's callsign or tactical call but may also be "NC", "ALL" or
    anything the operator typed.
    """

    entry_number: int
    from_callsign: str
    to_callsign: str
    message: str = ""
    time: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'entryNumber': self.entry_number,
            'time': to_iso(self.time),
            'fromCallsign': self.from_callsign,
            'toCallsign': self.to_callsign,
            'message': self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LogEntry':
        """Create from dictionary"""
        return cls(
            id=str(data['id']),
            entry_number=int(data['entryNumber']),
            time=parse_iso(data.get('time')) or utc_now(),
            from_callsign=str(data.get('fromCallsign') or ''),
            to_callsign=str(data.get('toCallsign') or ''),
            message=str(data.get('message') or ''),
        )


@dataclass
class SessionBundle:
    """Everything persisted for one session id"""

    session: NetSession
    participants: List[Participant] = field(default_factory=list)
    log_entries: List[LogEntry] = field(default_factory=list)
    last_acknowledged_entry_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'session': self.session.to_dict(),
            'participants': [p.to_dict() for p in self.participants],
            'logEntries': [e.to_dict() for e in self.log_entries],
            'lastAcknowledgedEntryId': self.last_acknowledged_entry_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SessionBundle':
        """Create from dictionary"""
        return cls(
            session=NetSession.from_dict(data['session']),
            participants=[Participant.from_dict(p) for p in data.get('participants') or []],
            log_entries=[LogEntry.from_dict(e) for e in data.get('logEntries') or []],
            last_acknowledged_entry_id=data.get('lastAcknowledgedEntryId'),
        )


@dataclass
class CallsignLookupResult:
    """Flattened directory record for a callsign"""

    callsign: str
    name: str = ""
    city: str = ""
    state: str = ""
    country: str = "USA"
    grid: str = ""

    @property
    def location(self) -> str:
        """City and state as shown on the check-in form"""
        return ", ".join(part for part in (self.city, self.state) if part)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'callsign': self.callsign,
            'name': self.name,
            'city': self.city,
            'state': self.state,
            'country': self.country,
            'grid': self.grid,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CallsignLookupResult':
        """Create from dictionary"""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
