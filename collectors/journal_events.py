"""
Collector zdarzeń journald (Linux) - journalctl -o json, jeden obiekt JSON na linię.
"""
from collectors.common import clamp_max_events, pick_value
from core.models import (
    NO_LOG_MESSAGE,
    OS_LINUX,
    UNKNOWN_PROVIDER,
    CollectionResult,
    NormalizedEvent,
    sanitize_message,
)
from core.taxonomy import classify_category, severity_from_priority
from utils.logger import get_logger, log_collector_end, log_collector_start
from utils.subprocess_helper import stream_json_lines
from utils.timestamps import format_local_time, from_epoch_micros, utc_now_iso

logger = get_logger()

JOURNALCTL = "journalctl"

LOG_NAME_KEYS = ("SYSLOG_IDENTIFIER", "_COMM", "_SYSTEMD_UNIT", "_TRANSPORT")
PROVIDER_KEYS = ("_COMM", "SYSLOG_IDENTIFIER", "_EXE")
CATEGORY_KEYS = ("SYSLOG_IDENTIFIER", "_COMM", "_SYSTEMD_UNIT", "_TRANSPORT")
PRIORITY_KEYS = ("PRIORITY", "SYSLOG_PRIORITY")
TIMESTAMP_KEYS = ("__REALTIME_TIMESTAMP", "_SOURCE_REALTIME_TIMESTAMP")


def build_command(start_time=None, end_time=None, max_events=2000):
    """
    Buduje komendę journalctl.

    Args:
        start_time (datetime, optional): Początek zakresu
        end_time (datetime, optional): Koniec zakresu
        max_events (int): Limit wpisów (-n)

    Returns:
        list: Argumenty procesu
    """
    cmd = [JOURNALCTL, "--no-pager", "-o", "json"]
    if start_time is not None:
        cmd += ["--since", format_local_time(start_time)]
    if end_time is not None:
        cmd += ["--until", format_local_time(end_time)]
    cmd += ["-n", str(max_events)]
    return cmd


def _message_text(value):
    # journald wysyła MESSAGE jako tablicę bajtów gdy tekst nie jest poprawnym UTF-8
    if isinstance(value, list) and all(
            isinstance(item, int) and not isinstance(item, bool) and 0 <= item <= 255
            for item in value):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    return None


def _journal_timestamp(entry):
    for key in TIMESTAMP_KEYS:
        if key in entry:
            return from_epoch_micros(entry[key])
    return None


def parse_journal_entry(entry):
    """
    Zamienia jeden obiekt JSON z journalctl na NormalizedEvent.

    Args:
        entry (dict): Sparsowana linia JSON

    Returns:
        NormalizedEvent: Znormalizowane zdarzenie
    """
    provider = pick_value(entry, PROVIDER_KEYS) or UNKNOWN_PROVIDER
    category_values = [entry.get(key) for key in CATEGORY_KEYS] + [provider]

    return NormalizedEvent(
        os=OS_LINUX,
        log_name=pick_value(entry, LOG_NAME_KEYS) or "journal",
        category=classify_category(*category_values),
        provider=provider,
        event_id=None,
        severity=severity_from_priority(pick_value(entry, PRIORITY_KEYS)),
        message=sanitize_message(_message_text(entry.get("MESSAGE")), NO_LOG_MESSAGE),
        timestamp=_journal_timestamp(entry) or utc_now_iso(),
    )


def collect(start_time=None, end_time=None, max_events=None):
    """
    Zbiera zdarzenia z journald.

    Args:
        start_time (datetime, optional): Początek zakresu (UTC)
        end_time (datetime, optional): Koniec zakresu (UTC)
        max_events (int, optional): Limit zdarzeń (domyślnie 2000, maks. 10000)

    Returns:
        CollectionResult: Zdarzenia, ostrzeżenia i błędy
    """
    limit = clamp_max_events(max_events)
    if limit == 0:
        return CollectionResult()

    log_collector_start("journal")
    events, warnings, errors = stream_json_lines(
        build_command(start_time, end_time, limit),
        parse_journal_entry,
        limit,
        tool_label=JOURNALCTL,
        entry_label="journal",
    )

    if errors:
        log_collector_end("journal", success=False, error="; ".join(errors))
        return CollectionResult(events=[], warnings=warnings, errors=errors)

    for warning in warnings:
        logger.warning(f"[JOURNAL] {warning}")
    log_collector_end("journal", data_count=len(events), warnings_count=len(warnings))
    return CollectionResult(events=events, warnings=warnings)
