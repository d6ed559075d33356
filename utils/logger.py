"""
Logger dla kolektora logów - jeden globalny logger procesu z plikiem dziennym.
"""
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path

# Katalog na logi (można nadpisać zmienną środowiskową)
DEFAULT_LOG_DIR = "logs"
LOG_FILE_PREFIX = "diagnostics"
LOG_FILE_EXTENSION = ".log"
LOG_RETENTION_DAYS = 7


def resolve_log_dir():
    """Zwraca katalog logów (HERMES_LOG_DIR lub domyślny)."""
    return Path(os.environ.get("HERMES_LOG_DIR") or DEFAULT_LOG_DIR)


def prune_old_logs(log_dir, retention_days=LOG_RETENTION_DAYS):
    """
    Usuwa pliki *.log starsze niż okno retencji.

    Args:
        log_dir (Path): Katalog logów
        retention_days (int): Liczba dni przechowywania

    Returns:
        int: Liczba usuniętych plików
    """
    cutoff = time.time() - retention_days * 24 * 60 * 60
    removed = 0
    try:
        entries = list(Path(log_dir).iterdir())
    except OSError:
        return 0

    for path in entries:
        if path.suffix.lower() != LOG_FILE_EXTENSION or not path.is_file():
            continue
        try:
            if path.stat().st_mtime >= cutoff:
                continue
            path.unlink()
            removed += 1
        except OSError as e:
            sys.stderr.write(
                f"[warn] [LOGGER] Failed to prune old log file {path}: {e}\n")
    return removed


class DailyFileHandler(logging.FileHandler):
    """
    Handler pliku z nazwą zawierającą datę; przy zmianie daty otwiera nowy plik
    i czyści stare logi. Zapis jest chroniony lockiem handlera.
    """

    def __init__(self, log_dir, retention_days=LOG_RETENTION_DAYS):
        self.log_dir = Path(log_dir)
        self.retention_days = retention_days
        self.log_dir.mkdir(parents=True, exist_ok=True)
        prune_old_logs(self.log_dir, retention_days)
        self.date_key = self._current_date_key()
        super().__init__(self._path_for(self.date_key), mode="a", encoding="utf-8")

    @staticmethod
    def _current_date_key():
        return datetime.now().strftime("%Y-%m-%d")

    def _path_for(self, date_key):
        return self.log_dir / f"{LOG_FILE_PREFIX}-{date_key}{LOG_FILE_EXTENSION}"

    def _rotate_if_needed(self):
        current = self._current_date_key()
        if current == self.date_key:
            return
        if self.stream:
            self.stream.close()
            self.stream = None
        self.date_key = current
        self.baseFilename = os.path.abspath(self._path_for(current))
        prune_old_logs(self.log_dir, self.retention_days)

    def emit(self, record):
        # handle() trzyma już self.lock
        self._rotate_if_needed()
        super().emit(record)


def setup_logger(name="HermesCollector", level=logging.DEBUG, log_dir=None,
                 retention_days=LOG_RETENTION_DAYS, console_level=logging.INFO):
    """
    Konfiguruje i zwraca logger.

    Args:
        name (str): Nazwa loggera
        level: Poziom logowania (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Katalog na pliki logów (domyślnie resolve_log_dir())
        retention_days (int): Ile dni trzymać stare pliki logów
        console_level: Poziom dla handlera konsoli

    Returns:
        logging.Logger: Skonfigurowany logger
    """
    logger = logging.getLogger(name)

    # Jeśli logger już ma handlery, nie konfiguruj ponownie
    if logger.handlers:
        return logger

    logger.setLevel(level)

    detailed_format = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    simple_format = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        file_handler = DailyFileHandler(
            log_dir or resolve_log_dir(), retention_days=retention_days)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_format)
        logger.addHandler(file_handler)
    except OSError as e:
        # Brak zapisu do katalogu logów - zostaje tylko konsola
        sys.stderr.write(f"[warn] [LOGGER] File logging disabled: {e}\n")

    # stdout jest zarezerwowany dla wyników CLI
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(simple_format)
    logger.addHandler(console_handler)

    return logger


# Globalny logger
_logger = None


def get_logger():
    """Zwraca globalny logger (tworzy jeśli nie istnieje)."""
    global _logger
    if _logger is None:
        _logger = setup_logger()
    return _logger


def reconfigure_logger(log_dir=None, retention_days=LOG_RETENTION_DAYS,
                       console_level=logging.INFO):
    """
    Przebudowuje handlery globalnego loggera (np. po wczytaniu konfiguracji).

    HERMES_LOG_DIR ma pierwszeństwo przed log_dir z konfiguracji.
    """
    logger = get_logger()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    env_dir = os.environ.get("HERMES_LOG_DIR")
    if isinstance(console_level, str):
        console_level = logging.getLevelName(console_level.upper())
        if not isinstance(console_level, int):
            console_level = logging.INFO
    return setup_logger(logger.name, log_dir=env_dir or log_dir,
                        retention_days=retention_days, console_level=console_level)


def log_collector_start(collector_name):
    """Loguje start collectora."""
    logger = get_logger()
    logger.info(f"[COLLECTOR] Starting: {collector_name}")


def log_collector_end(collector_name, success=True, error=None, data_count=0,
                      warnings_count=0):
    """Loguje zakończenie collectora."""
    logger = get_logger()
    if success:
        logger.info(
            f"[COLLECTOR] Completed: {collector_name} (collected {data_count} items, "
            f"{warnings_count} warnings)")
    else:
        logger.error(f"[COLLECTOR] Failed: {collector_name} - {error}")


def log_performance(operation, duration_seconds, details=None):
    """Loguje metryki wydajności."""
    logger = get_logger()
    msg = f"[PERFORMANCE] {operation} took {duration_seconds:.2f}s"
    if details:
        msg += f" | {details}"
    logger.debug(msg)
