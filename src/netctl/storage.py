"""
Session Persistence

Two layers:
- StorageBackend: JSON blobs by key (a directory of files, or memory)
- SessionRepository: session bundles by session id, plus the active pointer

Every operation is best-effort. A full disk, a read-only directory or a
corrupt file is logged and the caller carries on with in-memory state.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import NetSession, SessionBundle

logger = logging.getLogger(__name__)

SESSIONS_KEY = 'sessions'
ACTIVE_SESSION_KEY = 'active_session_id'
CALLSIGN_CACHE_KEY = 'callsign_cache'


class StorageBackend(ABC):
    """Key-value store of JSON-serializable values"""

    @abstractmethod
    def read(self, key: str, fallback: Any = None) -> Any:
        """Return the stored value, or fallback if absent or unreadable"""

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        """Store value under key, silently giving up on failure"""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key if present"""


class MemoryBackend(StorageBackend):
    """Dictionary-backed storage, used for tests and when disk is unavailable"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.write(key, value)

    def read(self, key: str, fallback: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return fallback
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return fallback

    def write(self, key: str, value: Any) -> None:
        # Round-trip through JSON so callers never share mutable state
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cannot serialize {key}: {e}")

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class JsonFileBackend(StorageBackend):
    """
    One ``<key>.json`` file per key inside a data directory.

    Writes go to a temp file first and are renamed into place, so a crash
    mid-write leaves the previous value intact.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.available = True
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Storage unavailable at {self.directory}: {e}")
            self.available = False

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str, fallback: Any = None) -> Any:
        if not self.available:
            return fallback
        path = self._path(key)
        if not path.exists():
            return fallback
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt data in {path}: {e}")
            return fallback
        except OSError as e:
            logger.warning(f"Failed to read {path}: {e}")
            return fallback

    def write(self, key: str, value: Any) -> None:
        if not self.available:
            return
        path = self._path(key)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=str(self.directory), prefix=f".{key}.", suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(value, f, indent=2)
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save {path}: {e}")
        finally:
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

    def remove(self, key: str) -> None:
        if not self.available:
            return
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove {self._path(key)}: {e}")


class SessionRepository:
    """
    Persistence adapter for session bundles.

    Layout inside the backend:
        sessions          -> {session_id: bundle dict}
        active_session_id -> session id string (absent when none)
    """

    def __init__(self, backend: StorageBackend):
        self.backend = backend

    def _read_sessions(self) -> Dict[str, Any]:
        sessions = self.backend.read(SESSIONS_KEY, {})
        if not isinstance(sessions, dict):
            logger.warning("Ignoring malformed session index")
            return {}
        return sessions

    def load(self, session_id: str) -> Optional[SessionBundle]:
        """
        Load a session bundle.

        Returns:
            The bundle, or None if missing or unreadable
        """
        raw = self._read_sessions().get(session_id)
        if not raw:
            return None
        try:
            return SessionBundle.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding unreadable session {session_id}: {e}")
            return None

    def save(self, bundle: SessionBundle) -> None:
        """Overwrite the bundle for its session id and mark it active"""
        sessions = self._read_sessions()
        sessions[bundle.session.id] = bundle.to_dict()
        self.backend.write(SESSIONS_KEY, sessions)
        self.set_active_session_id(bundle.session.id)

    def delete(self, session_id: Optional[str]) -> None:
        """Remove a session bundle and clear the active pointer"""
        if session_id:
            sessions = self._read_sessions()
            if sessions.pop(session_id, None) is not None:
                self.backend.write(SESSIONS_KEY, sessions)
        self.set_active_session_id(None)

    def get_active_session_id(self) -> Optional[str]:
        active = self.backend.read(ACTIVE_SESSION_KEY)
        return active if isinstance(active, str) and active else None

    def set_active_session_id(self, session_id: Optional[str]) -> None:
        if session_id:
            self.backend.write(ACTIVE_SESSION_KEY, session_id)
        else:
            self.backend.remove(ACTIVE_SESSION_KEY)

    def load_active(self) -> Optional[SessionBundle]:
        """Load whichever session the active pointer names"""
        active_id = self.get_active_session_id()
        if not active_id:
            return None
        return self.load(active_id)

    def list_sessions(self) -> List[NetSession]:
        """All readable sessions, newest first"""
        sessions = []
        for session_id, raw in self._read_sessions().items():
            try:
                sessions.append(NetSession.from_dict(raw['session']))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.debug(f"Skipping unreadable session {session_id}: {e}")
        sessions.sort(key=lambda s: s.date_time, reverse=True)
        return sessions

