"""
Importer crashy Linux - apport (.crash), systemd-coredump (core.*) i kdump (vmcore, dmesg.*).
"""
from pathlib import Path

from collectors.common import (
    clamp_crash_limit,
    component_from_path,
    file_timestamp,
    finalize_crashes,
    pick_value,
    scan_cap_for,
)
from core.models import OS_LINUX, CrashRecord
from utils.fs_scanner import scan_recent_files
from utils.logger import get_logger
from utils.safe_read import read_lines_capped
from utils.stable_id import stable_crash_id

logger = get_logger()

APPORT_MAX_LINES = 400
APPORT_MAX_BYTES = 256 * 1024
KDUMP_MAX_LINES = 4000
KDUMP_MAX_BYTES = 512 * 1024

APPORT_SOURCE = "apport"
COREDUMP_SOURCE = "systemd-coredump"
KDUMP_SOURCE = "kdump"

APPORT_DEFAULT_TYPE = "Application Crash"
EXECUTABLE_KEYS = ("ExecutablePath", "InterpreterPath", "Package", "SourcePackage")

PANIC_MARKER = "kernel panic"


def linux_crash_roots():
    return [Path("/var/crash"), Path("/var/lib/systemd/coredump")]


def _is_kdump_file(name):
    return name == "vmcore" or name.startswith("dmesg.") or name == "vmcore-dmesg.txt"


def is_linux_crash_file(path):
    name = Path(path).name
    return name.endswith(".crash") or name.startswith("core.") or _is_kdump_file(name)


def parse_apport_fields(lines):
    """
    Parsuje nagłówki 'Klucz: wartość' raportu apport.

    Linie kontynuacji (zaczynające się spacją) są pomijane.

    Returns:
        dict: Pola raportu
    """
    fields = {}
    for line in lines:
        if not line or line[0].isspace() or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip()
        if key and key not in fields:
            fields[key] = value.strip()
    return fields


def parse_apport_report(path):
    lines = read_lines_capped(path, APPORT_MAX_LINES, APPORT_MAX_BYTES)
    fields = parse_apport_fields(lines)
    crash_type = pick_value(fields, ("ProblemType",)) or APPORT_DEFAULT_TYPE
    executable = pick_value(fields, EXECUTABLE_KEYS)

    summary = pick_value(fields, ("Title",))
    if not summary:
        summary = f"{crash_type}: {executable}" if executable else path.name

    raw_path = str(path)
    return CrashRecord(
        id=stable_crash_id(OS_LINUX, APPORT_SOURCE, crash_type, raw_path),
        timestamp=file_timestamp(path),
        os=OS_LINUX,
        source=APPORT_SOURCE,
        crash_type=crash_type,
        code=pick_value(fields, ("Signal",)),
        summary=summary,
        suspected_component=component_from_path(executable),
        raw_path=raw_path,
    )


def coredump_process_name(file_name):
    """core.<proces>.<uid>.<boot_id>.<pid>.<czas>[.zst] → nazwa procesu."""
    parts = file_name.split(".")
    if len(parts) > 1 and parts[1]:
        return parts[1]
    return None


def parse_coredump(path):
    crash_type = "Core Dump"
    process = coredump_process_name(path.name)
    raw_path = str(path)
    return CrashRecord(
        id=stable_crash_id(OS_LINUX, COREDUMP_SOURCE, crash_type, raw_path),
        timestamp=file_timestamp(path),
        os=OS_LINUX,
        source=COREDUMP_SOURCE,
        crash_type=crash_type,
        summary=f"Core dump of {process}" if process else path.name,
        suspected_component=process,
        raw_path=raw_path,
    )


def _dmesg_files(path):
    """Pliki dmesg zrzutu; dla vmcore - rodzeństwo w tym samym katalogu."""
    if path.name != "vmcore":
        return [path]
    try:
        siblings = sorted(path.parent.iterdir())
    except OSError:
        return []
    return [sibling for sibling in siblings
            if sibling.name != "vmcore" and _is_kdump_file(sibling.name)
            and not sibling.is_symlink() and sibling.is_file()]


def _panic_line(path):
    for dmesg in _dmesg_files(path):
        for line in read_lines_capped(dmesg, KDUMP_MAX_LINES, KDUMP_MAX_BYTES):
            if PANIC_MARKER in line.lower():
                # Prefiks dmesg "[  123.456] " nie jest częścią komunikatu
                return line.split("] ", 1)[-1].strip()
    return None


def parse_kdump(path):
    """
    Katalog kdump (/var/crash/<data>/) to jeden crash - id liczone z katalogu,
    więc vmcore i dmesg z jednego zrzutu łączą się przy deduplikacji.
    """
    crash_type = "Kernel Panic"
    crash_dir = str(path.parent)
    summary = _panic_line(path) or f"Kernel crash dump {path.parent.name}/{path.name}"
    return CrashRecord(
        id=stable_crash_id(OS_LINUX, KDUMP_SOURCE, crash_type, crash_dir),
        timestamp=file_timestamp(path),
        os=OS_LINUX,
        source=KDUMP_SOURCE,
        crash_type=crash_type,
        summary=summary,
        raw_path=crash_dir,
    )


def parse_linux_crash(path):
    name = path.name
    if name.endswith(".crash"):
        return parse_apport_report(path)
    if name.startswith("core."):
        return parse_coredump(path)
    return parse_kdump(path)


def import_crashes(limit=250, roots=None):
    """
    Importuje crashe Linux z apport, systemd-coredump i kdump.

    Args:
        limit (int): Maksymalna liczba rekordów (przycinana do [1, 2000])
        roots (list, optional): Katalogi do przeszukania

    Returns:
        list: Lista CrashRecord, najnowsze najpierw
    """
    limit = clamp_crash_limit(limit)
    roots = linux_crash_roots() if roots is None else roots
    files = scan_recent_files(roots, is_linux_crash_file, scan_cap_for(limit))

    crashes = [parse_linux_crash(path) for path in files]

    result = finalize_crashes(crashes, limit)
    logger.info(f"[LINUX_CRASHES] Imported {len(result)} crash records from {len(files)} files")
    return result
