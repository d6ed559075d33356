"""
Pomocnicze funkcje czasu - wszystkie rekordy dostają znacznik UTC w ISO-8601 z offsetem.
"""
from datetime import datetime, timezone

from dateutil import parser as date_parser

# Format czasu lokalnego dla journalctl --since/--until i log show --start/--end
LOCAL_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now():
    return datetime.now(timezone.utc)


def utc_now_iso():
    """Czas zbierania danych jako ISO-8601 UTC."""
    return utc_now().isoformat()


def ensure_utc(value):
    """
    Zwraca datetime w UTC. Naiwne daty są traktowane jako UTC.

    Args:
        value (datetime): Data do konwersji

    Returns:
        datetime: Data ze strefą UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc_iso(value):
    return ensure_utc(value).isoformat()


def format_local_time(value):
    """Formatuje instant jako lokalny czas 'YYYY-MM-DD HH:MM:SS'."""
    return ensure_utc(value).astimezone().strftime(LOCAL_TIME_FORMAT)


def format_evt_time(value):
    """Formatuje instant dla filtra XPath na @SystemTime (UTC, milisekundy, Z)."""
    utc = ensure_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_timestamp(value):
    """
    Parsuje timestamp z natywnego źródła (Windows SystemTime, log show, itp.).

    Obsługuje np. '2025-11-29T12:22:15.1234567Z' oraz '2025-11-29 12:22:15.123456-0800'.

    Args:
        value (str): Tekst timestampu

    Returns:
        datetime: Data w UTC lub None jeśli nie można sparsować
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return ensure_utc(date_parser.parse(text))
    except (ValueError, OverflowError):
        return None


def normalize_timestamp(value):
    """ISO-8601 UTC z natywnego tekstu lub None."""
    parsed = parse_timestamp(value)
    return parsed.isoformat() if parsed else None


def from_epoch_micros(value):
    """
    Konwertuje mikrosekundy od epoki (string lub liczba) na ISO-8601 UTC.

    Returns:
        str: Timestamp RFC-3339 lub None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value.lstrip("-").isdigit():
            return None
        micros = int(value)
    elif isinstance(value, (int, float)):
        try:
            micros = int(value)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    seconds, remainder = divmod(micros, 1_000_000)
    try:
        moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return moment.replace(microsecond=remainder).isoformat()


def from_epoch_seconds(value):
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()
