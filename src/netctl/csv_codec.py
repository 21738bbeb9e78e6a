"""
ICS-309 CSV Export/Import

Section-based layout shared with the browser build of the logger:

    ICS 309 Communications Log
    Net Name,<name>
    Frequency,<frequency>
    Net Control,<callsign> - <name>
    Date/Time,<iso>

    Participants
    Check-In #,Callsign,Tactical,Name,Location,Time
    ...

    Communications Log
    Entry #,Time,From,To,Message
    ...

The message column is always quoted. Other columns are quoted only when
they contain a comma, quote or line break; the browser build never quoted
them, so its files misalign on such values.
"""

import csv
import io
import logging
import re
from datetime import date, datetime
from typing import Callable, List, Optional

from .callsign import normalize_callsign
from .models import (
    NET_CONTROL_TACTICAL,
    LogEntry,
    NetSession,
    Participant,
    SessionBundle,
    SessionStatus,
    parse_iso,
    to_iso,
    utc_now,
)

logger = logging.getLogger(__name__)

CSV_MIME_TYPE = 'text/csv'

TITLE = 'ICS 309 Communications Log'
PARTICIPANTS_SECTION = 'Participants'
LOG_SECTION = 'Communications Log'
PARTICIPANT_HEADER = ['Check-In #', 'Callsign', 'Tactical', 'Name', 'Location', 'Time']
LOG_HEADER = ['Entry #', 'Time', 'From', 'To', 'Message']

DEFAULT_IMPORT_NAME = 'Imported Net'
DEFAULT_IMPORT_OPERATOR = 'NET'


def quote(value: str) -> str:
    """Wrap a value in double quotes, doubling embedded quotes"""
    return '"' + value.replace('"', '""') + '"'


def _field(value: str) -> str:
    value = value or ''
    if any(ch in value for ch in (',', '"', '\n', '\r')):
        return quote(value)
    return value


def _row(*values: str) -> str:
    return ','.join(_field(str(v)) for v in values)


def export_csv(bundle: Optional[SessionBundle]) -> str:
    """
    Serialize a session to ICS-309 CSV text.

    Args:
        bundle: Session to export

    Returns:
        CSV text with newline separators, or '' when there is no session
    """
    if bundle is None:
        return ''
    session = bundle.session

    lines = [
        TITLE,
        _row('Net Name', session.name),
        _row('Frequency', session.frequency),
        _row('Net Control', f"{session.net_control_op} - {session.net_control_name}"),
        _row('Date/Time', to_iso(session.date_time)),
        '',
        PARTICIPANTS_SECTION,
        ','.join(PARTICIPANT_HEADER),
    ]
    for p in bundle.participants:
        lines.append(_row(
            p.check_in_number, p.callsign, p.tactical_call, p.name, p.location,
            to_iso(p.check_in_time),
        ))

    lines.extend(['', LOG_SECTION, ','.join(LOG_HEADER)])
    for e in bundle.log_entries:
        lines.append(
            _row(e.entry_number, to_iso(e.time), e.from_callsign, e.to_callsign)
            + ',' + quote(e.message)
        )

    return '\n'.join(lines)


def _parse_int(value: str) -> Optional[int]:
    match = re.match(r'\s*([+-]?\d+)', value or '')
    return int(match.group(1)) if match else None


def _cell(row: List[str], index: int) -> str:
    return row[index].strip() if index < len(row) and row[index] else ''


def import_csv(text: str, clock: Callable[[], datetime] = utc_now) -> SessionBundle:
    """
    Rebuild a session from ICS-309 CSV text.

    Missing header values fall back to defaults, rows without a callsign
    (participants) or without any content (log) are skipped, and
    non-numeric sequence numbers are replaced by the running position.
    The result always has a fresh id and ``active`` status.

    Args:
        text: CSV document as produced by export_csv
        clock: Source of "now" for missing timestamps

    Returns:
        The reconstructed SessionBundle
    """
    normalized = text.replace('\r\n', '\n').replace('\r', '\n')
    rows = list(csv.reader(io.StringIO(normalized)))

    def value_after(label: str) -> str:
        for row in rows:
            if row and row[0] == label:
                return ','.join(row[1:]).strip()
        return ''

    name = value_after('Net Name') or DEFAULT_IMPORT_NAME
    frequency = value_after('Frequency')
    # A blank name leaves a trailing " -" once the row is trimmed
    op_raw, _, op_name = value_after('Net Control').partition(' -')
    net_control_op = normalize_callsign(op_raw) or DEFAULT_IMPORT_OPERATOR
    net_control_name = op_name.strip()
    date_time = parse_iso(value_after('Date/Time')) or clock()

    participants: List[Participant] = []
    log_entries: List[LogEntry] = []
    section = None

    for row in rows:
        if not any(cell.strip() for cell in row):
            continue
        first = row[0]
        if first == PARTICIPANTS_SECTION and len(row) == 1:
            section = 'participants'
            continue
        if first == LOG_SECTION and len(row) == 1:
            section = 'log'
            continue
        if first.startswith('Check-In #') or first.startswith('Entry #'):
            continue
        if section is None:
            continue

        if section == 'participants':
            callsign = normalize_callsign(_cell(row, 1))
            if not callsign:
                continue
            number = _parse_int(_cell(row, 0))
            participants.append(Participant(
                callsign=callsign,
                tactical_call=_cell(row, 2),
                name=_cell(row, 3),
                location=_cell(row, 4),
                check_in_time=parse_iso(_cell(row, 5)) or date_time,
                check_in_number=number if number is not None else len(participants) + 1,
            ))
        else:
            from_call, to_call, message = _cell(row, 2), _cell(row, 3), _cell(row, 4)
            if not (from_call or to_call or message):
                continue
            number = _parse_int(_cell(row, 0))
            log_entries.append(LogEntry(
                entry_number=number if number is not None else len(log_entries) + 1,
                time=parse_iso(_cell(row, 1)) or date_time,
                from_callsign=from_call,
                to_callsign=to_call,
                message=message,
            ))

    if not any(p.callsign == net_control_op for p in participants):
        next_number = max((p.check_in_number for p in participants), default=0) + 1
        participants.insert(0, Participant(
            callsign=net_control_op,
            tactical_call=NET_CONTROL_TACTICAL,
            name=net_control_name,
            check_in_time=date_time,
            check_in_number=next_number,
        ))

    session = NetSession(
        name=name,
        frequency=frequency,
        net_control_op=net_control_op,
        net_control_name=net_control_name,
        date_time=date_time,
        status=SessionStatus.ACTIVE,
    )
    logger.info(f"Imported '{name}': {len(participants)} participants, {len(log_entries)} log entries")
    return SessionBundle(session=session, participants=participants, log_entries=log_entries)


def filename_slug(name: str) -> str:
    """Session name with whitespace runs replaced by underscores"""
    return re.sub(r'\s+', '_', name)


def csv_filename(session: NetSession, today: Optional[date] = None) -> str:
    """Download name, e.g. Morning_Net_2025-01-05.csv"""
    today = today or utc_now().date()
    return f"{filename_slug(session.name)}_{today.isoformat()}.csv"
