"""
Config Loader - wczytuje i zarządza konfiguracją kolektora.
"""
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from utils.logger import get_logger

logger = get_logger()

DEFAULT_CONFIG_FILE = "hermes_config.json"

WINDOWS_CHANNEL_ALLOWLIST = ("Application", "System", "Security")

DEFAULT_MAX_EVENTS_PER_SYNC = 2000
MIN_MAX_EVENTS_PER_SYNC = 100
MAX_MAX_EVENTS_PER_SYNC = 20000

DEFAULT_INGEST_WINDOW_DAYS = 7
MIN_INGEST_WINDOW_DAYS = 1
MAX_INGEST_WINDOW_DAYS = 365

# Domyślna konfiguracja
DEFAULT_CONFIG = {
    "app": {
        "name": "Hermes Collector",
        "version": "1.0.0"
    },
    "ingest": {
        "max_events_per_sync": DEFAULT_MAX_EVENTS_PER_SYNC,
        "windows_channels": list(WINDOWS_CHANNEL_ALLOWLIST),
        "ingest_window_days": DEFAULT_INGEST_WINDOW_DAYS
    },
    "crashes": {
        "import_limit": 250
    },
    "correlation": {
        "window_minutes": 15,
        "max_events": 200
    },
    "logging": {
        "log_dir": "logs",
        "retention_days": 7,
        "console_level": "INFO"
    }
}


def normalize_windows_channels(channels):
    """
    Normalizuje listę kanałów Windows względem allow-listy.

    Nazwy są porównywane bez wielkości liter, duplikaty i nieznane kanały są
    usuwane. Pusta lista daje wszystkie trzy kanały.

    Args:
        channels: Lista nazw kanałów (lub None)

    Returns:
        list: Kanały w kanonicznej pisowni
    """
    canonical = {name.lower(): name for name in WINDOWS_CHANNEL_ALLOWLIST}
    result = []
    for channel in channels or []:
        if not isinstance(channel, str):
            continue
        name = canonical.get(channel.strip().lower())
        if name and name not in result:
            result.append(name)
    return result or list(WINDOWS_CHANNEL_ALLOWLIST)


def _as_int(value):
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def sanitize_ingest_profile(profile):
    """
    Sprowadza profil ingestu do dozwolonych wartości.

    Args:
        profile (dict): Sekcja 'ingest' z konfiguracji

    Returns:
        dict: Oczyszczony profil
    """
    profile = profile if isinstance(profile, dict) else {}

    max_events = _as_int(profile.get("max_events_per_sync"))
    if max_events is None:
        max_events = DEFAULT_MAX_EVENTS_PER_SYNC
    max_events = max(MIN_MAX_EVENTS_PER_SYNC, min(MAX_MAX_EVENTS_PER_SYNC, max_events))

    window_days = _as_int(profile.get("ingest_window_days"))
    if window_days is None or not MIN_INGEST_WINDOW_DAYS <= window_days <= MAX_INGEST_WINDOW_DAYS:
        window_days = DEFAULT_INGEST_WINDOW_DAYS

    return {
        "max_events_per_sync": max_events,
        "windows_channels": normalize_windows_channels(profile.get("windows_channels")),
        "ingest_window_days": window_days,
    }


def resolve_config_path(config_path=None):
    """Ścieżka pliku konfiguracyjnego: argument, HERMES_CONFIG lub hermes_config.json."""
    if config_path:
        return Path(config_path)
    return Path(os.environ.get("HERMES_CONFIG") or DEFAULT_CONFIG_FILE)


class ConfigLoader:
    """Klasa do wczytywania i zarządzania konfiguracją."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Inicjalizuje ConfigLoader.

        Args:
            config_path: Ścieżka do pliku konfiguracyjnego (domyślnie hermes_config.json)
        """
        self.config_path = resolve_config_path(config_path)
        self.config = copy.deepcopy(DEFAULT_CONFIG)
        self.load_config()

    def load_config(self) -> Dict[str, Any]:
        """
        Wczytuje konfigurację z pliku lub używa domyślnej.

        Returns:
            dict: Wczytana konfiguracja
        """
        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = json.load(f)
                if not isinstance(file_config, dict):
                    raise ValueError("top-level value is not an object")
                # Merge z domyślną konfiguracją
                self.config = self._merge_config(DEFAULT_CONFIG, file_config)
                logger.info(f"[CONFIG] Loaded configuration from {self.config_path}")
            except (OSError, ValueError) as e:
                logger.warning(
                    f"[CONFIG] Failed to load config file: {e}, using defaults")
                self.config = copy.deepcopy(DEFAULT_CONFIG)
        else:
            logger.debug(f"[CONFIG] Config file {self.config_path} not found, using defaults")

        self.config["ingest"] = sanitize_ingest_profile(self.config.get("ingest"))
        return self.config

    def _merge_config(self, default: Dict, override: Dict) -> Dict:
        """Rekurencyjnie łączy konfiguracje."""
        result = copy.deepcopy(default)
        for key, value in override.items():
            if key in result and isinstance(
                    result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Pobiera wartość z konfiguracji używając ścieżki kluczy (np. "ingest.max_events_per_sync").

        Args:
            key_path: Ścieżka do wartości
            default: Wartość domyślna jeśli klucz nie istnieje

        Returns:
            Wartość z konfiguracji lub default
        """
        keys = key_path.split(".")
        value = self.config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value: Any) -> bool:
        """
        Ustawia wartość w konfiguracji używając ścieżki kluczy.

        Args:
            key_path: Ścieżka do wartości
            value: Nowa wartość

        Returns:
            bool: True jeśli ustawienie się powiodło
        """
        keys = key_path.split(".")
        config = self.config
        for key in keys[:-1]:
            if not isinstance(config.get(key), dict):
                config[key] = {}
            config = config[key]
        config[keys[-1]] = value
        if keys[0] == "ingest":
            self.config["ingest"] = sanitize_ingest_profile(self.config["ingest"])
        return True

    def ingest_profile(self) -> Dict[str, Any]:
        return dict(self.config["ingest"])


# Globalna instancja konfiguracji
_config_instance: Optional[ConfigLoader] = None


def get_config() -> ConfigLoader:
    """Zwraca globalną instancję konfiguracji."""
    global _config_instance
    if _config_instance is None:
        _config_instance = ConfigLoader()
    return _config_instance
