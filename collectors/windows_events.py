"""
Collector zdarzeń Windows Event Log - natywne API Evt* (pywin32 win32evtlog).

Zdarzenia są renderowane do XML, a pola wyciągane wyszukiwaniem tekstowym -
potrzebujemy tylko kilku elementów o stałym kształcie.
"""
import html
import re
import sys

from collectors.common import clamp_max_events
from core.config_loader import normalize_windows_channels
from core.models import (
    NO_EVENT_MESSAGE,
    OS_WINDOWS,
    UNKNOWN_PROVIDER,
    CollectionResult,
    NormalizedEvent,
    sanitize_message,
)
from core.taxonomy import WINDOWS_CATEGORY_ORDER, classify_category, severity_from_windows_level
from utils.logger import get_logger, log_collector_end, log_collector_start
from utils.timestamps import format_evt_time, normalize_timestamp, utc_now_iso

if sys.platform == "win32":
    import pywintypes
    import win32evtlog
else:
    pywintypes = None
    win32evtlog = None

logger = get_logger()

SECURITY_CHANNEL = "Security"
ERROR_ACCESS_DENIED = 5
BATCH_SIZE = 16

PROVIDER_RE = re.compile(r"<Provider\b[^>]*?\bName=(['\"])(.*?)\1", re.DOTALL)
CHANNEL_RE = re.compile(r"<Channel>(.*?)</Channel>", re.DOTALL)
EVENT_ID_RE = re.compile(r"<EventID\b[^>]*>\s*(\d+)\s*</EventID>")
LEVEL_RE = re.compile(r"<Level>\s*(\d+)\s*</Level>")
TIME_CREATED_RE = re.compile(r"<TimeCreated\b[^>]*?\bSystemTime=(['\"])(.*?)\1", re.DOTALL)
DATA_RE = re.compile(
    r"<Data\b(?:\s+Name=(['\"])(.*?)\1)?\s*(?:/>|>(.*?)</Data>)", re.DOTALL)


def build_time_filter(start_time=None, end_time=None):
    """
    Buduje wyrażenie XPath na System/TimeCreated/@SystemTime.

    Returns:
        str: Zapytanie XPath ("*" gdy brak zakresu)
    """
    conditions = []
    if start_time is not None:
        conditions.append(f"@SystemTime>='{format_evt_time(start_time)}'")
    if end_time is not None:
        conditions.append(f"@SystemTime<='{format_evt_time(end_time)}'")
    if not conditions:
        return "*"
    return f"*[System[TimeCreated[{' and '.join(conditions)}]]]"


def _search(pattern, xml, group=1):
    match = pattern.search(xml)
    if not match:
        return None
    value = html.unescape(match.group(group)).strip()
    return value or None


def data_fallback_message(xml):
    """
    Składa wiadomość 'Data: name=value, ...' z elementów <Data> zdarzenia.

    Returns:
        str: Wiadomość lub None gdy zdarzenie nie ma danych
    """
    parts = []
    for match in DATA_RE.finditer(xml):
        name = html.unescape(match.group(2) or "").strip()
        value = html.unescape(match.group(3) or "").strip()
        if not name and not value:
            continue
        parts.append(f"{name}={value}" if name else value)
    if not parts:
        return None
    return "Data: " + ", ".join(parts)


def parse_event_xml(xml, message=None, channel=None):
    """
    Zamienia XML zdarzenia (EvtRenderEventXml) na NormalizedEvent.

    Args:
        xml (str): XML zdarzenia
        message (str, optional): Wiadomość z EvtFormatMessage
        channel (str, optional): Kanał zapytania (gdy XML go nie zawiera)

    Returns:
        NormalizedEvent: Znormalizowane zdarzenie
    """
    provider = _search(PROVIDER_RE, xml, group=2) or UNKNOWN_PROVIDER
    log_name = _search(CHANNEL_RE, xml) or channel or "Application"
    event_id = _search(EVENT_ID_RE, xml)
    timestamp = normalize_timestamp(_search(TIME_CREATED_RE, xml, group=2))

    if not message or not message.strip():
        message = data_fallback_message(xml)

    return NormalizedEvent(
        os=OS_WINDOWS,
        log_name=log_name,
        category=classify_category(log_name, provider, order=WINDOWS_CATEGORY_ORDER),
        provider=provider,
        event_id=int(event_id) if event_id else None,
        severity=severity_from_windows_level(_search(LEVEL_RE, xml)),
        message=sanitize_message(message, NO_EVENT_MESSAGE),
        timestamp=timestamp or utc_now_iso(),
    )


def _close_handle(handle):
    close = getattr(handle, "Close", None)
    if close is not None:
        close()


class _MessageFormatter:
    """Formatuje wiadomości przez metadane providerów (cache na czas jednego collect)."""

    def __init__(self):
        self._metadata = {}

    def format(self, event_handle, provider):
        if not provider:
            return None
        if provider not in self._metadata:
            try:
                self._metadata[provider] = win32evtlog.EvtOpenPublisherMetadata(provider)
            except pywintypes.error as e:
                logger.debug(f"[WINDOWS_EVENTS] No publisher metadata for {provider}: {e}")
                self._metadata[provider] = None
        metadata = self._metadata[provider]
        if metadata is None:
            return None
        try:
            return win32evtlog.EvtFormatMessage(
                metadata, event_handle, win32evtlog.EvtFormatMessageEvent)
        except pywintypes.error as e:
            logger.debug(f"[WINDOWS_EVENTS] Cannot format message for {provider}: {e}")
            return None

    def close(self):
        for metadata in self._metadata.values():
            if metadata is not None:
                _close_handle(metadata)
        self._metadata.clear()


def _query_channel(channel, query, remaining, formatter):
    """
    Czyta do `remaining` zdarzeń z kanału, najnowsze najpierw.

    Raises:
        pywintypes.error: Gdy zapytania nie da się otworzyć lub odczytać
    """
    events = []
    result_set = win32evtlog.EvtQuery(
        channel,
        win32evtlog.EvtQueryChannelPath | win32evtlog.EvtQueryReverseDirection,
        query,
    )
    try:
        while len(events) < remaining:
            batch = win32evtlog.EvtNext(result_set, min(BATCH_SIZE, remaining - len(events)))
            if not batch:
                break
            for event_handle in batch:
                try:
                    if len(events) >= remaining:
                        continue
                    xml = win32evtlog.EvtRender(event_handle, win32evtlog.EvtRenderEventXml)
                    provider = _search(PROVIDER_RE, xml, group=2)
                    message = formatter.format(event_handle, provider)
                    events.append(parse_event_xml(xml, message=message, channel=channel))
                finally:
                    _close_handle(event_handle)
    finally:
        _close_handle(result_set)
    return events


def _winerror(error):
    code = getattr(error, "winerror", None)
    if code is None and error.args:
        code = error.args[0]
    return code


def collect(start_time=None, end_time=None, max_events=None, channels=None):
    """
    Zbiera zdarzenia z kanałów Windows Event Log (sekwencyjnie).

    Odmowa dostępu do kanału Security daje ostrzeżenie i zero zdarzeń z tego kanału.
    Każdy inny błąd kanału przerywa wywołanie i odrzuca zebrane zdarzenia.

    Args:
        start_time (datetime, optional): Początek zakresu (UTC)
        end_time (datetime, optional): Koniec zakresu (UTC)
        max_events (int, optional): Limit zdarzeń (domyślnie 2000, maks. 10000)
        channels (list, optional): Podzbiór Application/System/Security

    Returns:
        CollectionResult: Zdarzenia, ostrzeżenia i błędy
    """
    limit = clamp_max_events(max_events)
    if limit == 0:
        return CollectionResult()

    if win32evtlog is None:
        error = "Windows event log API is unavailable on this host."
        logger.error(f"[WINDOWS_EVENTS] {error}")
        return CollectionResult.failed(error)

    log_collector_start("windows_events")
    query = build_time_filter(start_time, end_time)
    events = []
    warnings = []
    formatter = _MessageFormatter()

    try:
        for channel in normalize_windows_channels(channels):
            if len(events) >= limit:
                break
            try:
                channel_events = _query_channel(channel, query, limit - len(events), formatter)
            except pywintypes.error as e:
                code = _winerror(e)
                if channel == SECURITY_CHANNEL and code == ERROR_ACCESS_DENIED:
                    message = "Access denied to the Security event log; security events were skipped."
                    logger.warning(f"[WINDOWS_EVENTS] {message}")
                    warnings.append(message)
                    continue
                error = f"Failed to query {channel} event log: {e}"
                log_collector_end("windows_events", success=False, error=error)
                return CollectionResult(events=[], warnings=warnings, errors=[error])
            logger.debug(f"[WINDOWS_EVENTS] {channel}: {len(channel_events)} events")
            events.extend(channel_events)
    finally:
        formatter.close()

    log_collector_end("windows_events", data_count=len(events), warnings_count=len(warnings))
    return CollectionResult(events=events, warnings=warnings)
