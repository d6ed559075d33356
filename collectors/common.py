"""
Wspólne funkcje adapterów: limity, rozwiązywanie pól z listą kluczy zapasowych,
finalizacja listy crashy i przykładowe crashe.
"""
import os

from core.models import OS_LINUX, OS_MACOS, OS_WINDOWS, CrashRecord, new_record_id
from utils.logger import get_logger
from utils.timestamps import from_epoch_seconds, utc_now_iso

logger = get_logger()

DEFAULT_MAX_EVENTS = 2000
MAX_EVENTS_CEILING = 10000

DEFAULT_CRASH_LIMIT = 250
MIN_CRASH_LIMIT = 1
MAX_CRASH_LIMIT = 2000
# Nadmiarowy skan - deduplikacja nie może wygłodzić rankingu
SCAN_CAP_MULTIPLIER = 4


def clamp_max_events(max_events):
    """
    Limit zdarzeń: None → 2000, wartości ujemne → 0, maksymalnie 10000.

    Args:
        max_events: Żądany limit (int lub None)

    Returns:
        int: Limit po przycięciu (0 oznacza pusty wynik)
    """
    if max_events is None:
        return DEFAULT_MAX_EVENTS
    return max(0, min(MAX_EVENTS_CEILING, int(max_events)))


def clamp_crash_limit(limit):
    if limit is None:
        return DEFAULT_CRASH_LIMIT
    return max(MIN_CRASH_LIMIT, min(MAX_CRASH_LIMIT, int(limit)))


def scan_cap_for(limit):
    return limit * SCAN_CAP_MULTIPLIER


def _non_empty(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def pick_value(fields, keys):
    """
    Zwraca pierwszą niepustą wartość spośród kluczy (kolejność = priorytet).

    Args:
        fields (dict): Pola rekordu
        keys (iterable): Klucze w kolejności zapasowej

    Returns:
        str: Wartość lub None
    """
    for key in keys:
        value = _non_empty(fields.get(key))
        if value is not None:
            return value
    return None


def file_name_of(value):
    """Ostatni człon ścieżki (obsługuje separatory / i \\)."""
    if not value:
        return value
    name = value.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
    return name or value


def component_from_path(value):
    """Podejrzany komponent: nazwa pliku z wyciągniętej ścieżki lub sam tekst."""
    value = _non_empty(value)
    if value is None:
        return None
    return file_name_of(value)


def file_timestamp(path):
    """mtime pliku jako ISO UTC, czas bieżący gdy niedostępny."""
    try:
        return from_epoch_seconds(os.stat(path).st_mtime)
    except (OSError, OverflowError, ValueError):
        return utc_now_iso()


def finalize_crashes(crashes, limit):
    """
    Deduplikuje po id (pierwszy wygrywa), sortuje po czasie malejąco, przycina do limitu.

    Args:
        crashes (list): Lista CrashRecord
        limit (int): Limit po przycięciu

    Returns:
        list: Lista CrashRecord
    """
    seen = set()
    unique = []
    for crash in crashes:
        if crash.id in seen:
            continue
        seen.add(crash.id)
        unique.append(crash)
    unique.sort(key=lambda crash: crash.timestamp, reverse=True)
    return unique[:limit]


SAMPLE_CRASHES = {
    OS_WINDOWS: {
        "source": "WER",
        "crash_type": "BSOD",
        "code": "0x0000009F",
        "summary": "Bugcheck indicates DRIVER_POWER_STATE_FAILURE during resume.",
        "suspected_component": "nvlddmkm.sys",
        "raw_path": r"C:\Windows\Minidump\sample.dmp",
    },
    OS_MACOS: {
        "source": "DiagnosticReports",
        "crash_type": "Kernel Panic",
        "code": "panic(cpu 0 caller 0xffff...)",
        "summary": "Kernel panic appears related to GPU watchdog timeout.",
        "suspected_component": "AppleGPUWrangler",
        "raw_path": "/Library/Logs/DiagnosticReports/Kernel_sample.panic",
    },
    OS_LINUX: {
        "source": "kdump",
        "crash_type": "Kernel Panic",
        "code": "kernel panic - not syncing",
        "summary": "Kernel panic likely triggered by filesystem I/O timeout.",
        "suspected_component": "ext4",
        "raw_path": "/var/crash/vmcore",
    },
}


def build_sample_crash(os_name):
    """
    Przykładowy crash do testów interfejsu (losowe id, imported=False).

    Args:
        os_name (str): windows / macos / linux

    Returns:
        CrashRecord: Przykładowy rekord
    """
    if os_name not in SAMPLE_CRASHES:
        os_name = OS_LINUX
    sample = SAMPLE_CRASHES[os_name]
    return CrashRecord(
        id=new_record_id(),
        timestamp=utc_now_iso(),
        os=os_name,
        imported=False,
        **sample,
    )
