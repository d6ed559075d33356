"""
Collector Registry - rejestr adapterów platform.
Każdy system ma jeden adapter {collect, import_crashes}; wybór następuje po wykryciu hosta.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from core.host import detect_host_os
from core.models import OS_LINUX, OS_MACOS, OS_WINDOWS, SUPPORTED_OS
from utils.logger import get_logger

logger = get_logger()


@dataclass(frozen=True)
class PlatformAdapter:
    """Zestaw operacji dla jednego systemu."""

    os: str
    collect: Callable
    import_crashes: Callable
    description: str = ""


class CollectorRegistry:
    """
    Rejestr adapterów - centralne miejsce rejestracji i wyboru adaptera platformy.
    """

    def __init__(self):
        """Inicjalizuje rejestr adapterów."""
        self._adapters: Dict[str, PlatformAdapter] = {}
        logger.debug("[COLLECTOR_REGISTRY] Initialized")

    def register(self, adapter: PlatformAdapter):
        """
        Rejestruje adapter platformy (nadpisuje poprzedni dla tego samego os).

        Args:
            adapter: Adapter do rejestracji

        Raises:
            ValueError: Gdy system adaptera nie jest obsługiwany
        """
        if adapter.os not in SUPPORTED_OS:
            raise ValueError(f"Unsupported adapter os: {adapter.os}")
        self._adapters[adapter.os] = adapter
        logger.debug(
            f"[COLLECTOR_REGISTRY] Registered adapter: {adapter.os} "
            f"({adapter.description or 'no description'})")

    def get(self, os_name: str) -> Optional[PlatformAdapter]:
        """
        Pobiera adapter dla systemu.

        Args:
            os_name: windows / linux / macos

        Returns:
            PlatformAdapter lub None
        """
        return self._adapters.get(os_name)

    def get_all(self) -> Dict[str, PlatformAdapter]:
        return self._adapters.copy()


# Globalna instancja rejestru
_registry_instance: Optional[CollectorRegistry] = None


def get_registry() -> CollectorRegistry:
    """Zwraca globalną instancję rejestru adapterów."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = CollectorRegistry()
        register_all_collectors(_registry_instance)
    return _registry_instance


def register_all_collectors(registry: CollectorRegistry):
    """
    Rejestruje adaptery wszystkich obsługiwanych systemów.
    Wywoływane przy pierwszym użyciu rejestru.
    """
    from collectors import (
        diagnostic_reports,
        journal_events,
        linux_crashes,
        unified_log_events,
        wer,
        windows_events,
    )

    registry.register(PlatformAdapter(
        OS_WINDOWS, windows_events.collect, wer.import_crashes,
        "Windows Event Log + WER reports and memory dumps"))
    registry.register(PlatformAdapter(
        OS_LINUX, journal_events.collect, linux_crashes.import_crashes,
        "journald + apport / systemd-coredump / kdump"))
    registry.register(PlatformAdapter(
        OS_MACOS, unified_log_events.collect, diagnostic_reports.import_crashes,
        "Unified Logging + DiagnosticReports"))

    logger.debug(f"[COLLECTOR_REGISTRY] Registered {len(registry.get_all())} adapters")


def get_host_adapter(os_name: Optional[str] = None) -> PlatformAdapter:
    """Adapter dla systemu hosta (lub wskazanego os_name)."""
    return get_registry().get(os_name or detect_host_os())
