"""
Collector zdarzeń Unified Logging (macOS) - log show --style ndjson.
"""
from collectors.common import clamp_max_events, pick_value
from core.models import (
    NO_LOG_MESSAGE,
    OS_MACOS,
    UNKNOWN_PROVIDER,
    CollectionResult,
    NormalizedEvent,
    sanitize_message,
)
from core.taxonomy import classify_category, severity_from_level_name
from utils.logger import get_logger, log_collector_end, log_collector_start
from utils.subprocess_helper import stream_json_lines
from utils.timestamps import format_local_time, normalize_timestamp, utc_now_iso

logger = get_logger()

LOG_BINARY = "log"
TOOL_LABEL = "macOS log collector"

MESSAGE_KEYS = ("eventMessage", "message", "formattedMessage")
LOG_NAME_KEYS = ("subsystem", "category", "process", "sender")
PROVIDER_KEYS = ("process", "sender", "subsystem")
LEVEL_KEYS = ("messageType", "level")

MAX_EVENT_ID = 0xFFFFFFFF


def build_command(start_time=None, end_time=None):
    cmd = [LOG_BINARY, "show", "--style", "ndjson"]
    if start_time is not None:
        cmd += ["--start", format_local_time(start_time)]
    if end_time is not None:
        cmd += ["--end", format_local_time(end_time)]
    return cmd


def _event_id(value):
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if 0 <= value <= MAX_EVENT_ID:
        return value
    return None


def parse_log_entry(entry):
    """
    Zamienia obiekt z log show na NormalizedEvent.

    Obiekt podsumowania na końcu strumienia ({"finished": 1, ...}) daje None.

    Args:
        entry (dict): Sparsowana linia JSON

    Returns:
        NormalizedEvent lub None
    """
    if "finished" in entry and not any(key in entry for key in MESSAGE_KEYS):
        return None

    subsystem = entry.get("subsystem")
    category = entry.get("category")
    provider = pick_value(entry, PROVIDER_KEYS) or UNKNOWN_PROVIDER
    raw_timestamp = entry.get("timestamp")

    return NormalizedEvent(
        os=OS_MACOS,
        log_name=pick_value(entry, LOG_NAME_KEYS) or "system",
        category=classify_category(category, subsystem, provider),
        provider=provider,
        event_id=_event_id(entry.get("eventID")),
        severity=severity_from_level_name(pick_value(entry, LEVEL_KEYS)),
        message=sanitize_message(pick_value(entry, MESSAGE_KEYS), NO_LOG_MESSAGE),
        timestamp=normalize_timestamp(raw_timestamp) or utc_now_iso(),
    )


def collect(start_time=None, end_time=None, max_events=None):
    """
    Zbiera zdarzenia z Unified Logging.

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

    log_collector_start("unified_log")
    events, warnings, errors = stream_json_lines(
        build_command(start_time, end_time),
        parse_log_entry,
        limit,
        tool_label=TOOL_LABEL,
        entry_label="macOS log",
    )

    if errors:
        log_collector_end("unified_log", success=False, error="; ".join(errors))
        return CollectionResult(events=[], warnings=warnings, errors=errors)

    for warning in warnings:
        logger.warning(f"[UNIFIED_LOG] {warning}")
    log_collector_end("unified_log", data_count=len(events), warnings_count=len(warnings))
    return CollectionResult(events=events, warnings=warnings)
