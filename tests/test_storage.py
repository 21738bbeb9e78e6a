"""
Tests for session persistence.

Run: python3 -m pytest tests/test_storage.py -v
"""

import json
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from netctl.models import NetSession, Participant, SessionBundle
from netctl.storage import (
    ACTIVE_SESSION_KEY,
    SESSIONS_KEY,
    JsonFileBackend,
    MemoryBackend,
    SessionRepository,
)


def make_bundle(name='Morning Net', offset_minutes=0):
    start = datetime(2025, 1, 5, 18, 30, tzinfo=timezone.utc) + timedelta(minutes=offset_minutes)
    session = NetSession(name=name, net_control_op='W1AW', date_time=start)
    return SessionBundle(
        session=session,
        participants=[Participant(callsign='W1AW', check_in_number=1, tactical_call='NET',
                                  check_in_time=start)],
    )


class TestMemoryBackend:
    """Tests for MemoryBackend"""

    def test_read_missing_returns_fallback(self):
        backend = MemoryBackend()
        assert backend.read('nothing') is None
        assert backend.read('nothing', {}) == {}

    def test_values_are_copied(self):
        """Test callers never share mutable state with the backend"""
        backend = MemoryBackend()
        value = {'a': [1, 2]}
        backend.write('key', value)
        value['a'].append(3)
        assert backend.read('key') == {'a': [1, 2]}

    def test_initial_and_remove(self):
        backend = MemoryBackend({'x': 1})
        assert backend.keys() == ['x']
        backend.remove('x')
        backend.remove('x')
        assert backend.read('x') is None

    def test_unserializable_value_is_ignored(self):
        backend = MemoryBackend()
        backend.write('bad', {'when': object()})
        assert backend.read('bad') is None


class TestJsonFileBackend:
    """Tests for JsonFileBackend"""

    @pytest.fixture
    def temp_dir(self):
        """Create temporary data directory"""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    def test_write_then_read(self, temp_dir):
        backend = JsonFileBackend(temp_dir)
        backend.write('sessions', {'abc': {'n': 1}})
        assert (temp_dir / 'sessions.json').exists()
        assert backend.read('sessions') == {'abc': {'n': 1}}

    def test_creates_directory(self, temp_dir):
        target = temp_dir / 'nested' / 'netctl'
        backend = JsonFileBackend(target)
        assert backend.available
        assert target.is_dir()

    def test_no_temp_files_left_behind(self, temp_dir):
        backend = JsonFileBackend(temp_dir)
        backend.write('active_session_id', 'abc')
        assert [p.name for p in temp_dir.iterdir()] == ['active_session_id.json']

    def test_corrupt_file_returns_fallback(self, temp_dir):
        (temp_dir / 'sessions.json').write_text('{not json')
        backend = JsonFileBackend(temp_dir)
        assert backend.read('sessions', {}) == {}

    def test_unavailable_directory(self, temp_dir):
        """Test a directory that cannot be created degrades to no-ops"""
        blocker = temp_dir / 'file'
        blocker.write_text('x')
        backend = JsonFileBackend(blocker / 'sub')
        assert backend.available is False
        backend.write('sessions', {'a': 1})
        assert backend.read('sessions', 'fallback') == 'fallback'
        backend.remove('sessions')

    def test_remove_missing_key(self, temp_dir):
        backend = JsonFileBackend(temp_dir)
        backend.remove('never_written')


class TestSessionRepository:
    """Tests for SessionRepository"""

    @pytest.fixture
    def backend(self):
        return MemoryBackend()

    @pytest.fixture
    def repo(self, backend):
        return SessionRepository(backend)

    def test_save_sets_active_pointer(self, repo):
        bundle = make_bundle()
        repo.save(bundle)
        assert repo.get_active_session_id() == bundle.session.id
        loaded = repo.load_active()
        assert loaded.session.name == 'Morning Net'
        assert loaded.participants[0].callsign == 'W1AW'

    def test_save_overwrites(self, repo):
        bundle = make_bundle()
        repo.save(bundle)
        bundle.session.name = 'Renamed'
        repo.save(bundle)
        assert repo.load(bundle.session.id).session.name == 'Renamed'
        assert len(repo.list_sessions()) == 1

    def test_load_missing(self, repo):
        assert repo.load('nope') is None

    def test_load_unreadable_bundle(self, repo, backend):
        backend.write(SESSIONS_KEY, {'bad': {'session': {'id': 'bad'}}})
        assert repo.load('bad') is None

    def test_malformed_index(self, repo, backend):
        backend.write(SESSIONS_KEY, ['not', 'a', 'dict'])
        assert repo.list_sessions() == []
        assert repo.load('anything') is None

    def test_delete_clears_active(self, repo):
        bundle = make_bundle()
        repo.save(bundle)
        repo.delete(bundle.session.id)
        assert repo.load(bundle.session.id) is None
        assert repo.get_active_session_id() is None
        assert repo.load_active() is None

    def test_delete_none_only_clears_pointer(self, repo):
        bundle = make_bundle()
        repo.save(bundle)
        repo.delete(None)
        assert repo.get_active_session_id() is None
        assert repo.load(bundle.session.id) is not None

    def test_list_newest_first_skips_bad(self, repo, backend):
        older = make_bundle('Older', offset_minutes=0)
        newer = make_bundle('Newer', offset_minutes=60)
        repo.save(older)
        repo.save(newer)
        sessions = backend.read(SESSIONS_KEY)
        sessions['junk'] = {'session': {'name': 'no id'}}
        backend.write(SESSIONS_KEY, sessions)

        names = [s.name for s in repo.list_sessions()]
        assert names == ['Newer', 'Older']

    def test_active_pointer_ignores_non_string(self, repo, backend):
        backend.write(ACTIVE_SESSION_KEY, 42)
        assert repo.get_active_session_id() is None

    def test_file_layout(self):
        """Test the three-file layout in the data directory"""
        with tempfile.TemporaryDirectory() as tmpdir:
            repo = SessionRepository(JsonFileBackend(Path(tmpdir)))
            bundle = make_bundle()
            repo.save(bundle)
            index = json.loads((Path(tmpdir) / 'sessions.json').read_text())
            assert index[bundle.session.id]['session']['netControlOp'] == 'W1AW'
            assert json.loads((Path(tmpdir) / 'active_session_id.json').read_text()) == bundle.session.id


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
