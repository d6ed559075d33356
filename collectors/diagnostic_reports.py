"""
Importer crashy macOS - raporty DiagnosticReports (.crash, .panic, .ips).
"""
import re
from pathlib import Path

from collectors.common import (
    clamp_crash_limit,
    component_from_path,
    file_timestamp,
    finalize_crashes,
    scan_cap_for,
)
from core.models import OS_MACOS, CrashRecord
from utils.fs_scanner import scan_recent_files
from utils.logger import get_logger
from utils.safe_read import read_lines_capped
from utils.stable_id import stable_crash_id

logger = get_logger()

REPORT_MAX_LINES = 300
REPORT_MAX_BYTES = 256 * 1024
MAX_SUMMARY_CHARS = 240

SOURCE = "DiagnosticReports"
REPORT_SUFFIXES = (".crash", ".panic", ".ips")

CRASH_TYPES = {
    ".panic": "Kernel Panic",
    ".ips": "Crash Report",
}
DEFAULT_CRASH_TYPE = "Application Crash"

# Prefiksy linii klasycznego formatu raportu
LINE_PREFIXES = {
    "process": "Process:",
    "path": "Path:",
    "identifier": "Identifier:",
    "exception_type": "Exception Type:",
    "exception_codes": "Exception Codes:",
    "panic": "panicString:",
}

# Klucze JSON raportów .ips (nagłówek i treść)
IPS_KEYS = {
    "process": ("procName", "app_name"),
    "path": ("procPath",),
    "identifier": ("bundleID",),
    "exception_type": ("type",),
    "panic": ("panicString",),
}

PID_SUFFIX_RE = re.compile(r"\s*\[\d+\]$")


def diagnostic_report_roots():
    return [
        Path("/Library/Logs/DiagnosticReports"),
        Path.home() / "Library" / "Logs" / "DiagnosticReports",
    ]


def is_diagnostic_report(path):
    return Path(path).suffix.lower() in REPORT_SUFFIXES


def _json_value(line, key):
    match = re.search(r'"%s"\s*:\s*"((?:[^"\\]|\\.)*)"' % re.escape(key), line)
    if not match:
        return None
    value = match.group(1).replace('\\n', ' ').replace('\\/', '/').replace('\\"', '"').strip()
    return value or None


def extract_report_fields(lines):
    """
    Wyciąga pola raportu przez wyszukiwanie prefiksów linii i kluczy JSON.

    Pierwsze niepuste wystąpienie pola wygrywa.

    Args:
        lines (list): Linie raportu

    Returns:
        dict: process, path, identifier, exception_type, exception_codes, panic
    """
    fields = {}
    for raw_line in lines:
        line = raw_line.strip()
        if not line:
            continue

        for name, prefix in LINE_PREFIXES.items():
            if name not in fields and line.startswith(prefix):
                value = line[len(prefix):].strip()
                if value:
                    fields[name] = value

        # Legacy .panic - linia zaczyna się od panic(cpu ...)
        if "panic" not in fields and line.startswith("panic("):
            fields["panic"] = line

        if '"' in line:
            for name, keys in IPS_KEYS.items():
                if name in fields:
                    continue
                for key in keys:
                    value = _json_value(line, key)
                    if value:
                        fields[name] = value
                        break

    if "process" in fields:
        fields["process"] = PID_SUFFIX_RE.sub("", fields["process"])
    return fields


def _truncate(text):
    if len(text) <= MAX_SUMMARY_CHARS:
        return text
    return text[:MAX_SUMMARY_CHARS - 3].rstrip() + "..."


def parse_diagnostic_report(path):
    """
    Buduje CrashRecord z raportu DiagnosticReports.

    Args:
        path (Path): Ścieżka do raportu

    Returns:
        CrashRecord (pusty lub nieczytelny plik daje podsumowanie z nazwy pliku)
    """
    lines = read_lines_capped(path, REPORT_MAX_LINES, REPORT_MAX_BYTES)
    fields = extract_report_fields(lines)
    crash_type = CRASH_TYPES.get(path.suffix.lower(), DEFAULT_CRASH_TYPE)
    process = fields.get("process") or fields.get("identifier")
    exception_type = fields.get("exception_type")

    if fields.get("panic"):
        summary = _truncate(fields["panic"])
    elif process and exception_type:
        summary = f"{process}: {exception_type}"
    elif process:
        summary = f"{crash_type}: {process}"
    else:
        summary = path.name

    raw_path = str(path)
    return CrashRecord(
        id=stable_crash_id(OS_MACOS, SOURCE, crash_type, raw_path),
        timestamp=file_timestamp(path),
        os=OS_MACOS,
        source=SOURCE,
        crash_type=crash_type,
        code=fields.get("exception_codes") or exception_type,
        summary=summary,
        suspected_component=component_from_path(
            fields.get("path") or fields.get("process") or fields.get("identifier")),
        raw_path=raw_path,
    )


def import_crashes(limit=250, roots=None):
    """
    Importuje raporty crashy macOS.

    Args:
        limit (int): Maksymalna liczba rekordów (przycinana do [1, 2000])
        roots (list, optional): Katalogi do przeszukania

    Returns:
        list: Lista CrashRecord, najnowsze najpierw
    """
    limit = clamp_crash_limit(limit)
    roots = diagnostic_report_roots() if roots is None else roots
    files = scan_recent_files(roots, is_diagnostic_report, scan_cap_for(limit))

    crashes = [parse_diagnostic_report(path) for path in files]

    result = finalize_crashes(crashes, limit)
    logger.info(
        f"[DIAGNOSTIC_REPORTS] Imported {len(result)} crash records from {len(files)} files")
    return result
