"""
Orchestrator - jedno pełne zbieranie: zdarzenia + crashe z adaptera hosta, zapis do magazynu.
"""
import time
from datetime import timedelta

from core.collector_registry import get_host_adapter
from core.config_loader import get_config
from core.models import OS_WINDOWS
from utils.logger import get_logger, log_performance
from utils.timestamps import utc_now

logger = get_logger()


def run_collection(start_time=None, end_time=None, max_events=None, crash_limit=None,
                   store=None, config=None, os_name=None):
    """
    Zbiera zdarzenia i crashe dla systemu hosta.

    Brakujące parametry są brane z profilu ingestu w konfiguracji
    (okno = ostatnie ingest_window_days dni).

    Args:
        start_time (datetime, optional): Początek zakresu (UTC)
        end_time (datetime, optional): Koniec zakresu (UTC)
        max_events (int, optional): Limit zdarzeń
        crash_limit (int, optional): Limit crashy
        store (RecordStore, optional): Magazyn do zapisu wyników
        config (ConfigLoader, optional): Konfiguracja (domyślnie get_config())
        os_name (str, optional): Wymuszony system (domyślnie wykryty host)

    Returns:
        dict: {
            "os": str,
            "collection": CollectionResult,
            "crashes": list,
            "events_count": int,
            "crashes_count": int,
            "warnings": list,
            "errors": list
        }
    """
    config = config or get_config()
    profile = config.ingest_profile()
    adapter = get_host_adapter(os_name)

    if end_time is None:
        end_time = utc_now()
    if start_time is None:
        start_time = end_time - timedelta(days=profile["ingest_window_days"])
    if max_events is None:
        max_events = profile["max_events_per_sync"]
    if crash_limit is None:
        crash_limit = config.get("crashes.import_limit", 250)

    logger.info(
        f"[ORCHESTRATOR] Collecting {adapter.os} events from {start_time.isoformat()} "
        f"to {end_time.isoformat()} (max {max_events})")

    started = time.perf_counter()
    kwargs = {"channels": profile["windows_channels"]} if adapter.os == OS_WINDOWS else {}
    collection = adapter.collect(start_time, end_time, max_events, **kwargs)
    log_performance("event collection", time.perf_counter() - started,
                    f"{len(collection.events)} events")

    started = time.perf_counter()
    crashes = adapter.import_crashes(crash_limit)
    log_performance("crash import", time.perf_counter() - started,
                    f"{len(crashes)} crashes")

    if store is not None:
        store.upsert_events(collection.events)
        store.upsert_crashes(crashes)

    logger.info(
        f"[ORCHESTRATOR] Done: {len(collection.events)} events, {len(crashes)} crashes, "
        f"{len(collection.warnings)} warnings, {len(collection.errors)} errors")

    return {
        "os": adapter.os,
        "collection": collection,
        "crashes": crashes,
        "events_count": len(collection.events),
        "crashes_count": len(crashes),
        "warnings": list(collection.warnings),
        "errors": list(collection.errors),
    }
