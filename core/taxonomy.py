"""
Klasyfikacja zdarzeń - mapowanie natywnych poziomów i nazw kanałów na wspólną taksonomię.
"""
import re

from core.models import (
    CATEGORY_APPLICATION,
    CATEGORY_AUDIT,
    CATEGORY_SECURITY,
    CATEGORY_SYSTEM,
    SEVERITY_CRITICAL,
    SEVERITY_ERROR,
    SEVERITY_INFORMATION,
    SEVERITY_WARNING,
)

AUDIT_KEYWORDS = ("audit",)
SECURITY_KEYWORDS = ("auth", "ssh", "sudo", "security")
SYSTEM_KEYWORDS = ("kernel", "systemd", "dbus", "udev", "system")

# Kolejność sprawdzania rozstrzyga remisy
DEFAULT_CATEGORY_ORDER = (
    (CATEGORY_AUDIT, AUDIT_KEYWORDS),
    (CATEGORY_SECURITY, SECURITY_KEYWORDS),
    (CATEGORY_SYSTEM, SYSTEM_KEYWORDS),
)

# Kanał Security w Windows niesie zdarzenia audytu (Microsoft-Windows-Security-Auditing)
WINDOWS_CATEGORY_ORDER = (
    (CATEGORY_SECURITY, SECURITY_KEYWORDS),
    (CATEGORY_AUDIT, AUDIT_KEYWORDS),
    (CATEGORY_SYSTEM, SYSTEM_KEYWORDS),
)

WINDOWS_LEVELS = {
    1: SEVERITY_CRITICAL,
    2: SEVERITY_ERROR,
    3: SEVERITY_WARNING,
}


def classify_category(*values, order=DEFAULT_CATEGORY_ORDER):
    """
    Klasyfikuje kategorię na podstawie słów kluczowych w nazwie kanału, podsystemu, providera.

    Args:
        *values: Teksty do sprawdzenia (None jest pomijane)
        order: Uporządkowana lista (kategoria, słowa kluczowe)

    Returns:
        str: system / security / application / audit
    """
    combined = " ".join(value for value in values if isinstance(value, str)).lower()
    for category, keywords in order:
        if any(keyword in combined for keyword in keywords):
            return category
    return CATEGORY_APPLICATION


def severity_from_priority(priority):
    """
    Priorytet syslog/journald: 0-2 critical, 3 error, 4 warning, reszta information.

    Args:
        priority: Priorytet (str lub int), None gdy brak

    Returns:
        str: Znormalizowany poziom
    """
    if isinstance(priority, bool) or priority is None:
        return SEVERITY_INFORMATION
    try:
        value = int(str(priority).strip())
    except ValueError:
        return SEVERITY_INFORMATION
    if value in (0, 1, 2):
        return SEVERITY_CRITICAL
    if value == 3:
        return SEVERITY_ERROR
    if value == 4:
        return SEVERITY_WARNING
    return SEVERITY_INFORMATION


def severity_from_windows_level(level):
    """Poziom Windows Event Log (1 Critical, 2 Error, 3 Warning, 0/4/5 Information)."""
    if isinstance(level, bool) or level is None:
        return SEVERITY_INFORMATION
    try:
        value = int(str(level).strip())
    except ValueError:
        return SEVERITY_INFORMATION
    return WINDOWS_LEVELS.get(value, SEVERITY_INFORMATION)


def severity_from_level_name(level):
    """
    Tekstowy poziom (macOS messageType/level): fault/critical, error, warn, reszta information.
    """
    if not isinstance(level, str):
        return SEVERITY_INFORMATION
    # Całe słowa: "Default" zawiera "fault"
    words = re.findall(r"[a-z]+", level.lower())
    if any(word in ("fault", "critical") for word in words):
        return SEVERITY_CRITICAL
    if any(word.startswith("error") for word in words):
        return SEVERITY_ERROR
    if any(word.startswith("warn") for word in words):
        return SEVERITY_WARNING
    return SEVERITY_INFORMATION
