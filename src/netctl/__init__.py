"""
NetCtl - Net Control Logger

Provides the core of the ICS-309 net logger:
- Session lifecycle and roster/log bookkeeping (NetStore)
- Best-effort JSON persistence (SessionRepository)
- Cached HamDB callsign lookup
- ICS-309 CSV export/import and PDF export
"""

from .models import (
    NetSession,
    Participant,
    LogEntry,
    SessionBundle,
    SessionStatus,
    CallsignLookupResult,
)
from .storage import StorageBackend, MemoryBackend, JsonFileBackend, SessionRepository
from .callsign import CallsignCache, CallsignLookup
from .store import NetStore, format_duration
from .exceptions import NetCtlError, ValidationError, TokenCollisionError

__all__ = [
    'NetSession',
    'Participant',
    'LogEntry',
    'SessionBundle',
    'SessionStatus',
    'CallsignLookupResult',
    'StorageBackend',
    'MemoryBackend',
    'JsonFileBackend',
    'SessionRepository',
    'CallsignCache',
    'CallsignLookup',
    'NetStore',
    'format_duration',
    'NetCtlError',
    'ValidationError',
    'TokenCollisionError',
]
