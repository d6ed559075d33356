"""
Magazyn rekordów - interfejs współpracownika przechowującego zdarzenia i crashe
oraz implementacja w pamięci dla sesji CLI.
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from core.models import CrashRecord, NormalizedEvent
from correlation.crash_correlation import (
    DEFAULT_RELATED_LIMIT,
    DEFAULT_WINDOW_MINUTES,
    correlate_crash_events,
)
from utils.logger import get_logger
from utils.timestamps import parse_timestamp, to_utc_iso

logger = get_logger()

DEFAULT_EVENT_LIMIT = 2000
MAX_EVENT_LIMIT = 10000
DEFAULT_CRASH_LIMIT = 250
MAX_CRASH_LIMIT = 5000


def clamp_read_limit(limit, default, ceiling):
    if limit is None:
        return default
    return max(0, min(ceiling, int(limit)))


def _time_key(timestamp):
    parsed = parse_timestamp(timestamp)
    return parsed.timestamp() if parsed else float("-inf")


class RecordStore(ABC):
    """Interfejs magazynu: upsert po id, odczyt po czasie, korelacja, retencja."""

    @abstractmethod
    def upsert_events(self, events: Iterable[NormalizedEvent]) -> int:
        ...

    @abstractmethod
    def upsert_crashes(self, crashes: Iterable[CrashRecord]) -> int:
        ...

    @abstractmethod
    def get_events(self, limit=None) -> List[NormalizedEvent]:
        ...

    @abstractmethod
    def get_crashes(self, limit=None) -> List[CrashRecord]:
        ...

    @abstractmethod
    def get_crash(self, crash_id) -> Optional[CrashRecord]:
        ...

    @abstractmethod
    def related_events(self, crash_id, window_minutes=DEFAULT_WINDOW_MINUTES,
                       limit=DEFAULT_RELATED_LIMIT) -> List[NormalizedEvent]:
        ...

    @abstractmethod
    def prune_events_before(self, cutoff) -> int:
        ...


class InMemoryRecordStore(RecordStore):
    """Magazyn w pamięci - dane żyją tylko do końca procesu."""

    def __init__(self):
        self._events: Dict[str, NormalizedEvent] = {}
        self._crashes: Dict[str, CrashRecord] = {}

    def upsert_events(self, events):
        count = 0
        for event in events:
            self._events[event.id] = event
            count += 1
        return count

    def upsert_crashes(self, crashes):
        count = 0
        for crash in crashes:
            self._crashes[crash.id] = crash
            count += 1
        return count

    def get_events(self, limit=None):
        limit = clamp_read_limit(limit, DEFAULT_EVENT_LIMIT, MAX_EVENT_LIMIT)
        ordered = sorted(self._events.values(), key=lambda e: _time_key(e.timestamp),
                         reverse=True)
        return ordered[:limit]

    def get_crashes(self, limit=None):
        limit = clamp_read_limit(limit, DEFAULT_CRASH_LIMIT, MAX_CRASH_LIMIT)
        ordered = sorted(self._crashes.values(), key=lambda c: _time_key(c.timestamp),
                         reverse=True)
        return ordered[:limit]

    def get_crash(self, crash_id):
        return self._crashes.get(crash_id)

    def related_events(self, crash_id, window_minutes=DEFAULT_WINDOW_MINUTES,
                       limit=DEFAULT_RELATED_LIMIT):
        crash = self._crashes.get(crash_id)
        if crash is None:
            logger.debug(f"[STORAGE] Unknown crash id {crash_id}")
            return []
        return correlate_crash_events(crash, self._events.values(), window_minutes, limit)

    def prune_events_before(self, cutoff):
        """
        Usuwa zdarzenia starsze niż cutoff.

        Args:
            cutoff (datetime): Granica (zdarzenia dokładnie w cutoff zostają)

        Returns:
            int: Liczba usuniętych zdarzeń
        """
        cutoff_key = _time_key(to_utc_iso(cutoff))
        stale = [event_id for event_id, event in self._events.items()
                 if _time_key(event.timestamp) < cutoff_key]
        for event_id in stale:
            del self._events[event_id]
        if stale:
            logger.info(f"[STORAGE] Pruned {len(stale)} events older than {cutoff}")
        return len(stale)
