"""
Importer crashy Windows - raporty Windows Error Reporting (.wer) oraz zrzuty pamięci (.dmp).
"""
import os
import re
from pathlib import Path

from collectors.common import (
    clamp_crash_limit,
    component_from_path,
    file_timestamp,
    finalize_crashes,
    pick_value,
    scan_cap_for,
)
from core.models import OS_WINDOWS, CrashRecord
from utils.fs_scanner import scan_recent_files
from utils.logger import get_logger
from utils.minidump_parser import format_stop_code, read_bugcheck_code, stop_code_name
from utils.safe_read import read_lines_capped
from utils.stable_id import stable_crash_id

logger = get_logger()

WER_MAX_LINES = 600
WER_MAX_BYTES = 512 * 1024

WER_SOURCE = "WER"
KERNEL_DUMP_SOURCE = "KernelDump"
MINIDUMP_SOURCE = "Minidump"
KERNEL_DUMP_NAME = "memory.dmp"

DEFAULT_WER_CRASH_TYPE = "Windows Error Report"

CRASH_TYPE_KEYS = (
    "FriendlyEventName",
    "ProblemType",
    "ProblemSignatures.EventType",
    "Signature.EventType",
    "EventType",
)
APP_NAME_KEYS = ("AppName", "sig:Application Name")
DESCRIPTION_KEYS = ("ReportDescription", "Description")
CODE_KEYS = ("ExceptionCode", "sig:Exception Code", "BugCheckCode")
COMPONENT_KEYS = ("AppPath", "AppName", "sig:Application Name", "sig:Fault Module Name")

SIGNATURE_RE = re.compile(r"^(?:Sig|DynamicSig|UI)\[(\d+)\]\.(Name|Value)$", re.IGNORECASE)
SECTION_RE = re.compile(r"^\[(.+)\]$")
# contoso.exe.1234.dmp (LocalDumps)
LOCAL_DUMP_RE = re.compile(r"^(.+?\.exe)\.\d+\.dmp$", re.IGNORECASE)


def windows_crash_roots():
    """
    Katalogi (i pliki) z artefaktami crashy Windows.

    Returns:
        list: Lista Path
    """
    programdata = os.environ.get("ProgramData", r"C:\ProgramData")
    system_root = os.environ.get("SystemRoot", r"C:\Windows")
    localappdata = os.environ.get("LOCALAPPDATA", "")

    roots = [
        Path(programdata) / "Microsoft" / "Windows" / "WER" / "ReportArchive",
        Path(programdata) / "Microsoft" / "Windows" / "WER" / "ReportQueue",
        Path(system_root) / "Minidump",
        Path(system_root) / "MEMORY.DMP",
    ]

    # LOCALAPPDATA tylko jeśli zmienna środowiskowa istnieje
    if localappdata:
        roots.extend([
            Path(localappdata) / "CrashDumps",
            Path(localappdata) / "Microsoft" / "Windows" / "WER",
        ])
    return roots


def is_windows_crash_file(path):
    suffix = Path(path).suffix.lower()
    return suffix in (".wer", ".dmp")


def parse_wer_fields(lines):
    """
    Parsuje linie klucz=wartość pliku .wer.

    Klucze w sekcjach INI są dostępne też jako 'Sekcja.Klucz'. Pary Sig[n].Name /
    Sig[n].Value trafiają pod 'sig:<Name>'. Pierwsze wystąpienie klucza wygrywa.

    Args:
        lines (list): Linie pliku

    Returns:
        dict: Pola raportu
    """
    fields = {}
    signature_names = {}
    signature_values = {}
    section = None

    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith(";"):
            continue

        section_match = SECTION_RE.match(line)
        if section_match:
            section = section_match.group(1).strip()
            continue

        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue

        signature = SIGNATURE_RE.match(key)
        if signature:
            index = (key.split("[", 1)[0].lower(), signature.group(1))
            if signature.group(2).lower() == "name":
                signature_names.setdefault(index, value)
            else:
                signature_values.setdefault(index, value)
            continue

        fields.setdefault(key, value)
        if section:
            fields.setdefault(f"{section}.{key}", value)

    for index, name in signature_names.items():
        value = signature_values.get(index)
        if name and value:
            fields.setdefault(f"sig:{name}", value)

    return fields


def parse_wer_report(path):
    """
    Buduje CrashRecord z pliku .wer.

    Args:
        path (Path): Ścieżka do raportu

    Returns:
        CrashRecord (pusty lub nieczytelny plik daje podsumowanie z nazwy pliku)
    """
    lines = read_lines_capped(path, WER_MAX_LINES, WER_MAX_BYTES)
    fields = parse_wer_fields(lines)
    crash_type = pick_value(fields, CRASH_TYPE_KEYS) or DEFAULT_WER_CRASH_TYPE
    app_name = pick_value(fields, APP_NAME_KEYS)

    if app_name:
        summary = f"{crash_type}: {app_name}"
    else:
        summary = pick_value(fields, DESCRIPTION_KEYS) or path.name

    raw_path = str(path)
    return CrashRecord(
        id=stable_crash_id(OS_WINDOWS, WER_SOURCE, crash_type, raw_path),
        timestamp=file_timestamp(path),
        os=OS_WINDOWS,
        source=WER_SOURCE,
        crash_type=crash_type,
        code=pick_value(fields, CODE_KEYS),
        summary=summary,
        suspected_component=component_from_path(pick_value(fields, COMPONENT_KEYS)),
        raw_path=raw_path,
    )


def parse_dump_file(path):
    """
    Buduje CrashRecord ze zrzutu pamięci (MEMORY.DMP lub minidump).

    Args:
        path (Path): Ścieżka do pliku .dmp

    Returns:
        CrashRecord: Rekord crasha
    """
    if path.name.lower() == KERNEL_DUMP_NAME:
        source, crash_type = KERNEL_DUMP_SOURCE, "Kernel Memory Dump"
    else:
        source, crash_type = MINIDUMP_SOURCE, "Minidump"

    bugcheck = read_bugcheck_code(path)
    code = format_stop_code(bugcheck) if bugcheck is not None else None
    if code:
        name = stop_code_name(bugcheck)
        summary = f"{name} ({code})" if name else f"Bugcheck {code}"
    else:
        summary = path.name

    local_dump = LOCAL_DUMP_RE.match(path.name)
    raw_path = str(path)
    return CrashRecord(
        id=stable_crash_id(OS_WINDOWS, source, crash_type, raw_path),
        timestamp=file_timestamp(path),
        os=OS_WINDOWS,
        source=source,
        crash_type=crash_type,
        code=code,
        summary=summary,
        suspected_component=local_dump.group(1) if local_dump else None,
        raw_path=raw_path,
    )


def import_crashes(limit=250, roots=None):
    """
    Importuje crashe Windows z katalogów WER i zrzutów pamięci.

    Args:
        limit (int): Maksymalna liczba rekordów (przycinana do [1, 2000])
        roots (list, optional): Katalogi do przeszukania (domyślnie windows_crash_roots())

    Returns:
        list: Lista CrashRecord, najnowsze najpierw
    """
    limit = clamp_crash_limit(limit)
    roots = windows_crash_roots() if roots is None else roots
    files = scan_recent_files(roots, is_windows_crash_file, scan_cap_for(limit))

    crashes = []
    for path in files:
        if path.suffix.lower() == ".wer":
            crash = parse_wer_report(path)
        else:
            crash = parse_dump_file(path)
        crashes.append(crash)

    result = finalize_crashes(crashes, limit)
    logger.info(f"[WER] Imported {len(result)} crash records from {len(files)} files")
    return result
