"""
Wspólne rekordy znormalizowane - zdarzenie logu i raport crasha - oraz wynik zbierania.
"""
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from utils.timestamps import utc_now_iso

OS_WINDOWS = "windows"
OS_LINUX = "linux"
OS_MACOS = "macos"
SUPPORTED_OS = (OS_WINDOWS, OS_LINUX, OS_MACOS)

SEVERITY_CRITICAL = "critical"
SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_INFORMATION = "information"
SEVERITIES = (SEVERITY_CRITICAL, SEVERITY_ERROR, SEVERITY_WARNING, SEVERITY_INFORMATION)

CATEGORY_SYSTEM = "system"
CATEGORY_SECURITY = "security"
CATEGORY_APPLICATION = "application"
CATEGORY_AUDIT = "audit"
CATEGORIES = (CATEGORY_SYSTEM, CATEGORY_SECURITY, CATEGORY_APPLICATION, CATEGORY_AUDIT)

NO_LOG_MESSAGE = "No log message."
NO_EVENT_MESSAGE = "No event message."
UNKNOWN_PROVIDER = "unknown"


def new_record_id():
    return str(uuid.uuid4())


def sanitize_message(message, placeholder=NO_LOG_MESSAGE):
    """Zwraca wiadomość lub placeholder gdy jest pusta/brak."""
    if not isinstance(message, str) or not message.strip():
        return placeholder
    return message


def _check_choice(name, value, allowed):
    if value not in allowed:
        raise ValueError(f"Invalid {name} '{value}', expected one of {', '.join(allowed)}")


@dataclass(frozen=True)
class NormalizedEvent:
    """Pojedynczy wpis logu w jednolitym formacie."""

    os: str
    log_name: str
    category: str
    provider: str
    severity: str
    message: str
    event_id: Optional[int] = None
    timestamp: str = field(default_factory=utc_now_iso)
    id: str = field(default_factory=new_record_id)
    imported: bool = False

    def __post_init__(self):
        _check_choice("os", self.os, SUPPORTED_OS)
        _check_choice("severity", self.severity, SEVERITIES)
        _check_choice("category", self.category, CATEGORIES)

    def to_dict(self):
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "os": self.os,
            "logName": self.log_name,
            "category": self.category,
            "provider": self.provider,
            "eventId": self.event_id,
            "severity": self.severity,
            "message": self.message,
            "imported": self.imported,
        }


@dataclass(frozen=True)
class CrashRecord:
    """Pojedynczy artefakt crasha / panic / dump."""

    id: str
    timestamp: str
    os: str
    source: str
    crash_type: str
    summary: str
    code: Optional[str] = None
    suspected_component: Optional[str] = None
    raw_path: Optional[str] = None
    imported: bool = True

    def __post_init__(self):
        _check_choice("os", self.os, SUPPORTED_OS)

    def to_dict(self):
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "os": self.os,
            "source": self.source,
            "crashType": self.crash_type,
            "code": self.code,
            "summary": self.summary,
            "suspectedComponent": self.suspected_component,
            "rawPath": self.raw_path,
            "imported": self.imported,
        }


@dataclass
class CollectionResult:
    """
    Wynik jednego wywołania collect().

    errors - wywołanie nie dało żadnych użytecznych zdarzeń (events jest wtedy puste),
    warnings - częściowa degradacja, zebrane zdarzenia zostają.
    """

    events: List[NormalizedEvent] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @classmethod
    def failed(cls, message):
        return cls(errors=[message])

    def to_dict(self):
        return {
            "events": [event.to_dict() for event in self.events],
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }
