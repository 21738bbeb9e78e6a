"""
Tests for the Flask Blueprint API

Exercises every endpoint through the Flask test client against an
in-memory store.
"""

import io
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

# Check if Flask is available
try:
    import flask
    FLASK_AVAILABLE = True
except ImportError:
    FLASK_AVAILABLE = False

from netctl.models import CallsignLookupResult
from netctl.storage import MemoryBackend

pytestmark = pytest.mark.skipif(not FLASK_AVAILABLE, reason="Flask not installed")


@pytest.fixture
def client():
    from commands import net
    from main_web import create_app

    app = create_app(backend=MemoryBackend(), strict_tokens=False)
    app.config['TESTING'] = True
    with app.test_client() as test_client:
        yield test_client
    net._store = None


@pytest.fixture
def open_net(client):
    client.post('/api/session', json={'name': 'Morning Net', 'netControlOp': 'W1ABC',
                                      'netControlName': 'Jane', 'frequency': '146.520'})
    client.post('/api/session/open')
    return client


class TestBlueprintRegistration:
    """Test blueprint wiring"""

    def test_register_blueprints(self):
        from flask import Flask
        from web.blueprints import register_blueprints

        app = Flask(__name__)
        register_blueprints(app)
        rules = {rule.rule for rule in app.url_map.iter_rules()}
        assert '/api/session' in rules
        assert '/api/participants/<participant_id>' in rules
        assert '/api/log/<entry_id>/ack' in rules
        assert '/api/callsign/<callsign>' in rules
        assert '/api/export/pdf' in rules
        assert '/api/import/csv' in rules

    def test_index_and_headers(self, client):
        response = client.get('/')
        assert response.status_code == 200
        assert response.get_json()['api'] == '/api'
        assert response.headers['X-Content-Type-Options'] == 'nosniff'

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/nothing-here')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Not found'}


class TestSessionEndpoints:
    """Test /api/session*"""

    def test_no_session(self, client):
        response = client.get('/api/session')
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'warning'
        assert data['session'] is None

    def test_create(self, client):
        response = client.post('/api/session', json={'name': 'Morning Net', 'netControlOp': 'w1abc'})
        assert response.status_code == 201
        data = response.get_json()
        assert data['session']['netControlOp'] == 'W1ABC'
        assert data['session']['status'] == 'pending'

    def test_create_missing_name(self, client):
        response = client.post('/api/session', json={'netControlOp': 'W1ABC'})
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_open_close(self, open_net):
        assert open_net.get('/api/session').get_json()['session']['status'] == 'active'
        response = open_net.post('/api/session/close')
        assert response.get_json()['session']['status'] == 'closed'

    def test_open_without_session(self, client):
        assert client.post('/api/session/open').status_code == 400

    def test_roster_and_log_without_session(self, client):
        response = client.post('/api/participants', json={'callsign': 'K2XYZ'})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'No active session'
        assert client.post('/api/log', json={'fromCallsign': 'K2XYZ', 'message': 'hi'}).status_code == 400
        assert client.post('/api/session/close').status_code == 400
        assert client.get('/api/participants').get_json()['participants'] == []

    def test_sessions_and_load(self, open_net):
        sessions = open_net.get('/api/sessions').get_json()
        assert len(sessions['sessions']) == 1
        session_id = sessions['sessions'][0]['id']
        assert sessions['activeSessionId'] == session_id

        response = open_net.post(f'/api/sessions/{session_id}/load')
        assert response.status_code == 200
        assert open_net.post('/api/sessions/missing/load').status_code == 404

    def test_reset(self, open_net):
        assert open_net.post('/api/session/reset').status_code == 200
        assert open_net.get('/api/session').get_json()['session'] is None


class TestParticipantEndpoints:
    """Test /api/participants*"""

    def test_check_in(self, open_net):
        response = open_net.post('/api/participants', json={'callsign': 'k2xyz', 'tacticalCall': 'Shelter'})
        assert response.status_code == 201
        participant = response.get_json()['participant']
        assert participant['callsign'] == 'K2XYZ'
        assert participant['checkInNumber'] == 2

        roster = open_net.get('/api/participants').get_json()['participants']
        assert [p['callsign'] for p in roster] == ['W1ABC', 'K2XYZ']

    def test_check_in_requires_callsign(self, open_net):
        assert open_net.post('/api/participants', json={}).status_code == 400

    def test_check_in_with_lookup(self, open_net):
        found = CallsignLookupResult(callsign='K2XYZ', name='Bob Smith', city='Albany', state='NY')
        with patch('netctl.callsign.CallsignLookup.lookup', return_value=found):
            response = open_net.post('/api/participants', json={'callsign': 'K2XYZ', 'lookup': True})
        assert response.get_json()['participant']['location'] == 'Albany, NY'

    def test_patch_renames_in_log(self, open_net):
        pid = open_net.post('/api/participants', json={'callsign': 'K2XYZ'}).get_json()['participant']['id']
        response = open_net.patch(f'/api/participants/{pid}', json={'callsign': 'K2XYA'})
        assert response.status_code == 200
        log = open_net.get('/api/log').get_json()['logEntries']
        assert log[0]['fromCallsign'] == 'K2XYA'

    def test_patch_unknown_field(self, open_net):
        pid = open_net.post('/api/participants', json={'callsign': 'K2XYZ'}).get_json()['participant']['id']
        response = open_net.patch(f'/api/participants/{pid}', json={'checkInNumber': 1})
        assert response.status_code == 400

    def test_patch_unknown_participant(self, open_net):
        assert open_net.patch('/api/participants/nope', json={'name': 'x'}).status_code == 404

    def test_delete(self, open_net):
        pid = open_net.post('/api/participants', json={'callsign': 'K2XYZ'}).get_json()['participant']['id']
        assert open_net.delete(f'/api/participants/{pid}').status_code == 200
        assert open_net.delete(f'/api/participants/{pid}').status_code == 404


class TestLogEndpoints:
    """Test /api/log*"""

    def test_add_and_ack(self, open_net):
        response = open_net.post('/api/log', json={'fromCallsign': 'K2XYZ', 'message': 'Traffic'})
        assert response.status_code == 201
        entry = response.get_json()['entry']
        assert entry['toCallsign'] == 'NC'

        response = open_net.post(f"/api/log/{entry['id']}/ack")
        assert response.get_json()['lastAcknowledgedEntryId'] == entry['id']
        assert open_net.get('/api/log').get_json()['lastAcknowledgedEntryId'] == entry['id']

    def test_ack_unknown(self, open_net):
        assert open_net.post('/api/log/nope/ack').status_code == 404

    def test_message_too_long(self, open_net):
        response = open_net.post('/api/log', json={'fromCallsign': 'K2XYZ', 'message': 'x' * 5000})
        assert response.status_code == 400


class TestCallsignEndpoint:
    """Test /api/callsign/<callsign>"""

    def test_found(self, client):
        found = CallsignLookupResult(callsign='W1AW', name='Hiram Maxim')
        with patch('netctl.callsign.CallsignLookup.lookup', return_value=found):
            response = client.get('/api/callsign/w1aw')
        assert response.status_code == 200
        assert response.get_json()['name'] == 'Hiram Maxim'

    def test_not_found(self, client):
        with patch('netctl.callsign.CallsignLookup.lookup', return_value=None):
            assert client.get('/api/callsign/ZZ9ZZ').status_code == 404

    def test_invalid(self, client):
        assert client.get('/api/callsign/a!').status_code == 400


class TestExportEndpoints:
    """Test export and import"""

    def test_export_csv(self, open_net):
        response = open_net.get('/api/export/csv')
        assert response.status_code == 200
        assert response.mimetype == 'text/csv'
        assert 'attachment; filename="Morning_Net_' in response.headers['Content-Disposition']
        assert response.data.startswith(b'ICS 309 Communications Log')

    def test_export_pdf(self, open_net):
        pytest.importorskip('reportlab')
        response = open_net.get('/api/export/pdf')
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')

    def test_export_without_session(self, client):
        assert client.get('/api/export/csv').status_code == 400

    def test_import_raw_body(self, open_net):
        csv_text = open_net.get('/api/export/csv').data
        open_net.post('/api/session/reset')
        response = open_net.post('/api/import/csv', data=csv_text, content_type='text/csv')
        assert response.status_code == 201
        assert response.get_json()['session']['status'] == 'active'

    def test_import_upload(self, open_net):
        csv_text = open_net.get('/api/export/csv').data
        response = open_net.post(
            '/api/import/csv',
            data={'file': (io.BytesIO(csv_text), 'net.csv')},
            content_type='multipart/form-data',
        )
        assert response.status_code == 201
        assert response.get_json()['session']['name'] == 'Morning Net'

    def test_import_empty(self, client):
        assert client.post('/api/import/csv', data='', content_type='text/csv').status_code == 400


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
