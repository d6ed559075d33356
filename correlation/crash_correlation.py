"""
Crash Correlation - łączy crash ze zdarzeniami z tego samego systemu w oknie czasowym.
"""
from typing import List

from core.models import CrashRecord, NormalizedEvent
from utils.logger import get_logger
from utils.timestamps import parse_timestamp

logger = get_logger()

DEFAULT_WINDOW_MINUTES = 15
MIN_WINDOW_MINUTES = 1
MAX_WINDOW_MINUTES = 180

DEFAULT_RELATED_LIMIT = 200
MAX_RELATED_LIMIT = 2000


def clamp_window_minutes(window_minutes):
    if window_minutes is None:
        return DEFAULT_WINDOW_MINUTES
    return max(MIN_WINDOW_MINUTES, min(MAX_WINDOW_MINUTES, int(window_minutes)))


def clamp_related_limit(limit):
    if limit is None:
        return DEFAULT_RELATED_LIMIT
    return max(0, min(MAX_RELATED_LIMIT, int(limit)))


def correlate_crash_events(crash: CrashRecord, events: List[NormalizedEvent],
                           window_minutes=DEFAULT_WINDOW_MINUTES,
                           limit=DEFAULT_RELATED_LIMIT) -> List[NormalizedEvent]:
    """
    Zwraca zdarzenia powiązane z crashem.

    Zdarzenie pasuje gdy ma ten sam os co crash i różnica czasu (w minutach,
    wartość bezwzględna) mieści się w oknie. Kolejność: najbliższe w czasie
    najpierw, przy remisie nowsze najpierw.

    Args:
        crash (CrashRecord): Crash
        events (list): Kandydaci (NormalizedEvent)
        window_minutes (int): Okno czasowe (przycinane do [1, 180])
        limit (int): Maksymalna liczba wyników (przycinana do [0, 2000])

    Returns:
        list: Lista NormalizedEvent
    """
    window = clamp_window_minutes(window_minutes)
    limit = clamp_related_limit(limit)
    crash_time = parse_timestamp(crash.timestamp)
    if crash_time is None or limit == 0:
        return []

    matches = []
    for event in events:
        if event.os != crash.os:
            continue
        event_time = parse_timestamp(event.timestamp)
        if event_time is None:
            continue
        distance = abs((event_time - crash_time).total_seconds()) / 60.0
        if distance <= window:
            matches.append((distance, event_time, event))

    # Stabilne sortowanie: najpierw po czasie malejąco, potem po odległości
    matches.sort(key=lambda item: item[1], reverse=True)
    matches.sort(key=lambda item: item[0])

    related = [event for _, _, event in matches[:limit]]
    logger.debug(
        f"[CORRELATION] Crash {crash.id}: {len(matches)} events within {window} min, "
        f"returning {len(related)}")
    return related
