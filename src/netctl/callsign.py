"""
Callsign Lookup for NetCtl

Looks up station details in the HamDB directory (https://hamdb.org) and
keeps every answer in a local cache. Cache entries never expire.
"""

import json
import logging
import threading
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .models import CallsignLookupResult, to_iso, utc_now
from .storage import CALLSIGN_CACHE_KEY, StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_URL = "https://api.hamdb.org/v1/{callsign}/json/netctl"
DEFAULT_TIMEOUT = 10  # seconds
USER_AGENT = "NetCtl/1.0 (Amateur Radio Net Control)"
NOT_FOUND = "NOT_FOUND"
STATION_FIELDS = ('call', 'fname', 'name', 'addr2', 'state', 'country', 'grid')


def normalize_callsign(callsign: str) -> str:
    """Uppercase and strip a callsign"""
    return (callsign or "").strip().upper()


class CallsignCache:
    """
    Persistent callsign -> lookup result cache.

    Stored as {CALLSIGN: {"result": {...}, "cachedAt": "<iso>"}} so files
    written by the browser build of the logger load unchanged.
    """

    def __init__(self, backend: StorageBackend, clock: Callable[[], datetime] = utc_now):
        self.backend = backend
        self.clock = clock
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        cache = self.backend.read(CALLSIGN_CACHE_KEY, {})
        return cache if isinstance(cache, dict) else {}

    def get(self, callsign: str) -> Optional[CallsignLookupResult]:
        entry = self._read().get(normalize_callsign(callsign))
        if not isinstance(entry, dict) or not isinstance(entry.get('result'), dict):
            return None
        try:
            return CallsignLookupResult.from_dict(entry['result'])
        except TypeError as e:
            logger.debug(f"Ignoring bad cache entry for {callsign}: {e}")
            return None

    def put(self, callsign: str, result: CallsignLookupResult) -> None:
        # Read-modify-write of the whole cache; concurrent puts must not drop entries
        with self._lock:
            cache = self._read()
            cache[normalize_callsign(callsign)] = {
                'result': result.to_dict(),
                'cachedAt': to_iso(self.clock()),
            }
            self.backend.write(CALLSIGN_CACHE_KEY, cache)

    def __contains__(self, callsign: str) -> bool:
        return self.get(callsign) is not None

    def __len__(self) -> int:
        return len(self._read())


def parse_hamdb_response(data: Any, callsign: str) -> Optional[CallsignLookupResult]:
    """
    Flatten a HamDB JSON document.

    HamDB answers {"hamdb": {"callsign": {...}, "messages": {"status": ...}}}.
    Unknown calls come back with call/status set to NOT_FOUND.

    Args:
        data: Decoded JSON document
        callsign: Normalized callsign that was queried

    Returns:
        CallsignLookupResult, or None if the document holds no station
    """
    if not isinstance(data, dict):
        return None
    hamdb = data.get('hamdb')
    if not isinstance(hamdb, dict):
        return None

    messages = hamdb.get('messages')
    if isinstance(messages, dict) and messages.get('status') == NOT_FOUND:
        return None

    cs = hamdb.get('callsign')
    if not isinstance(cs, dict) or cs.get('call') == NOT_FOUND:
        return None

    if any(cs.get(key) is not None and not isinstance(cs.get(key), str) for key in STATION_FIELDS):
        logger.warning(f"Malformed HamDB record for {callsign}")
        return None

    def field(key: str) -> str:
        return (cs.get(key) or '').strip()

    name = " ".join(part for part in (field('fname'), field('name')) if part)

    return CallsignLookupResult(
        callsign=field('call') or callsign,
        name=name,
        city=field('addr2'),
        state=field('state'),
        country=field('country') or 'USA',
        grid=field('grid'),
    )


class CallsignLookup:
    """
    Cached callsign directory client.

    Lookups never raise: network trouble, HTTP errors, timeouts and
    malformed answers all come back as None and nothing is cached.
    """

    def __init__(self, cache: CallsignCache, url_template: str = DEFAULT_LOOKUP_URL,
                 timeout: float = DEFAULT_TIMEOUT):
        self.cache = cache
        self.url_template = url_template
        self.timeout = timeout

    def lookup(self, callsign: str) -> Optional[CallsignLookupResult]:
        """
        Look up a callsign, consulting the cache first.

        Args:
            callsign: Callsign in any case, surrounding spaces allowed

        Returns:
            CallsignLookupResult if found, None otherwise
        """
        normalized = normalize_callsign(callsign)
        if not normalized:
            return None

        cached = self.cache.get(normalized)
        if cached:
            logger.debug(f"Callsign {normalized} found in cache")
            return cached

        result = self._query(normalized)
        if result:
            self.cache.put(normalized, result)
        return result

    def _query(self, callsign: str) -> Optional[CallsignLookupResult]:
        url = self.url_template.format(callsign=urllib.parse.quote(callsign))
        logger.info(f"HamDB lookup for {callsign}")

        try:
            request = urllib.request.Request(url, headers={'User-Agent': USER_AGENT})
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                data = json.loads(response.read().decode('utf-8'))
        except urllib.error.HTTPError as e:
            logger.warning(f"HamDB HTTP error for {callsign}: {e.code}")
            return None
        except urllib.error.URLError as e:
            logger.warning(f"HamDB network error for {callsign}: {e.reason}")
            return None
        except json.JSONDecodeError as e:
            logger.warning(f"HamDB JSON parse error for {callsign}: {e}")
            return None
        except Exception as e:
            logger.warning(f"HamDB lookup error for {callsign}: {e}")
            return None

        result = parse_hamdb_response(data, callsign)
        if result:
            logger.info(f"HamDB found: {result.callsign} - {result.name}")
        else:
            logger.info(f"No HamDB record for {callsign}")
        return result
