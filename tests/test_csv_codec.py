"""
Tests for ICS-309 CSV export and import.

Run: python3 -m pytest tests/test_csv_codec.py -v
"""

import sys
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from netctl.csv_codec import (
    DEFAULT_IMPORT_NAME,
    DEFAULT_IMPORT_OPERATOR,
    csv_filename,
    export_csv,
    import_csv,
    quote,
)
from netctl.models import SessionStatus


@pytest.fixture
def morning_net(store, clock):
    """Closed net with a tactical station and awkward messages"""
    store.create_session('Morning Net', 'W1ABC', frequency='146.520', net_control_name='Jane')
    store.open_session()
    clock.advance(minutes=1)
    store.add_participant('K2XYZ', tactical_call='Shelter', name='Bob', location='Albany, NY')
    clock.advance(minutes=1)
    store.add_log_entry('Shelter', 'NC', 'Need 20 cots, "urgent"')
    store.add_log_entry('NC', 'ALL', 'Line one\nline two')
    store.close_session()
    return store


class TestExport:
    """Tests for export_csv"""

    def test_no_session(self):
        assert export_csv(None) == ''

    def test_layout(self, morning_net):
        lines = export_csv(morning_net.bundle()).split('\n')
        assert lines[0] == 'ICS 309 Communications Log'
        assert lines[1] == 'Net Name,Morning Net'
        assert lines[2] == 'Frequency,146.520'
        assert lines[3] == 'Net Control,W1ABC - Jane'
        assert lines[4] == 'Date/Time,2025-01-05T18:30:00.000Z'
        assert lines[5] == ''
        assert lines[6] == 'Participants'
        assert lines[7] == 'Check-In #,Callsign,Tactical,Name,Location,Time'
        assert lines[8] == '1,W1ABC,NET,Jane,,2025-01-05T18:30:00.000Z'
        assert lines[9] == '2,K2XYZ,Shelter,Bob,"Albany, NY",2025-01-05T18:31:00.000Z'
        assert lines[10] == ''
        assert lines[11] == 'Communications Log'
        assert lines[12] == 'Entry #,Time,From,To,Message'
        assert lines[13] == '1,2025-01-05T18:31:00.000Z,K2XYZ,NC,"check in"'
        assert lines[14] == '2,2025-01-05T18:32:00.000Z,Shelter,NC,"Need 20 cots, ""urgent"""'

    def test_message_always_quoted(self, morning_net):
        text = export_csv(morning_net.bundle())
        assert '"check in"' in text

    def test_quote(self):
        assert quote('say "hi"') == '"say ""hi"""'


class TestRoundTrip:
    """Export then import preserves the log"""

    def test_round_trip(self, morning_net):
        bundle = morning_net.bundle()
        imported = import_csv(export_csv(bundle))

        assert imported.session.name == 'Morning Net'
        assert imported.session.frequency == '146.520'
        assert imported.session.net_control_op == 'W1ABC'
        assert imported.session.net_control_name == 'Jane'
        assert imported.session.date_time == bundle.session.date_time
        assert len(imported.participants) == len(bundle.participants)
        assert imported.participants[1].location == 'Albany, NY'

        def key(e):
            return (e.entry_number, e.from_callsign, e.to_callsign, e.message)

        assert [key(e) for e in imported.log_entries] == [key(e) for e in bundle.log_entries]

    def test_import_is_always_active(self, morning_net):
        assert morning_net.session.status == SessionStatus.CLOSED
        imported = import_csv(export_csv(morning_net.bundle()))
        assert imported.session.status == SessionStatus.ACTIVE
        assert imported.session.end_time is None

    def test_import_gets_fresh_ids(self, morning_net):
        bundle = morning_net.bundle()
        imported = import_csv(export_csv(bundle))
        assert imported.session.id != bundle.session.id
        assert imported.participants[0].id != bundle.participants[0].id


class TestImportTolerance:
    """Import fallbacks for hand-edited or foreign files"""

    def test_empty_document(self, clock):
        bundle = import_csv('', clock=clock)
        assert bundle.session.name == DEFAULT_IMPORT_NAME
        assert bundle.session.net_control_op == DEFAULT_IMPORT_OPERATOR
        assert bundle.session.date_time == clock.now
        assert len(bundle.participants) == 1
        assert bundle.participants[0].tactical_call == 'NET'
        assert bundle.log_entries == []

    def test_net_control_inserted_first(self):
        text = '\n'.join([
            'ICS 309 Communications Log',
            'Net Name,Drill',
            'Net Control,n0nc - Pat',
            '',
            'Participants',
            'Check-In #,Callsign,Tactical,Name,Location,Time',
            '1,K2XYZ,,Bob,,',
            '4,N3DEF,,,,',
        ])
        bundle = import_csv(text)
        nc = bundle.participants[0]
        assert nc.callsign == 'N0NC'
        assert nc.name == 'Pat'
        assert nc.check_in_number == 5
        assert [p.callsign for p in bundle.participants] == ['N0NC', 'K2XYZ', 'N3DEF']

    def test_blank_net_control_name(self):
        text = 'Net Name,Drill\nNet Control,W1ABC - \n'
        bundle = import_csv(text)
        assert bundle.session.net_control_op == 'W1ABC'
        assert bundle.session.net_control_name == ''

    def test_sequential_fallbacks(self, clock):
        text = '\n'.join([
            'Net Name,Drill',
            'Date/Time,garbage',
            '',
            'Participants',
            'Check-In #,Callsign,Tactical,Name,Location,Time',
            'x,k2xyz,,,,',
            ',,,,,',
            '?,N3DEF,,,,',
            '',
            'Communications Log',
            'Entry #,Time,From,To,Message',
            'a,,K2XYZ,NC,"hello"',
            ',,,,',
            'b,,N3DEF,NC,"world"',
        ])
        bundle = import_csv(text, clock=clock)
        assert bundle.session.date_time == clock.now
        numbers = [(p.callsign, p.check_in_number) for p in bundle.participants]
        assert ('K2XYZ', 1) in numbers
        assert ('N3DEF', 2) in numbers
        assert [e.entry_number for e in bundle.log_entries] == [1, 2]
        assert bundle.log_entries[0].time == clock.now

    def test_rows_before_sections_ignored(self):
        text = 'Net Name,Drill\n7,W9XYZ,,,,\n'
        bundle = import_csv(text)
        assert [p.callsign for p in bundle.participants] == ['NET']

    def test_windows_line_endings(self, morning_net):
        text = export_csv(morning_net.bundle()).replace('\n', '\r\n')
        imported = import_csv(text)
        assert len(imported.log_entries) == 3

    def test_message_trimmed(self):
        text = 'Communications Log\nEntry #,Time,From,To,Message\n1,,K2XYZ,NC,"  spaced  "\n'
        assert import_csv(text).log_entries[0].message == 'spaced'


class TestFilename:
    """Tests for csv_filename"""

    def test_whitespace_runs_replaced(self, store):
        store.create_session('Morning   Net  Drill', 'W1ABC')
        name = csv_filename(store.session, today=date(2025, 1, 5))
        assert name == 'Morning_Net_Drill_2025-01-05.csv'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
