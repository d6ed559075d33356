"""
Minidump parser - czyta nagłówek pliku zrzutu jądra i wyciąga STOP code (bugcheck).
"""
import struct

from utils.logger import get_logger

logger = get_logger()

HEADER_READ_BYTES = 4096

# Offsety BugCheckCode w DUMP_HEADER / DUMP_HEADER64
DUMP_SIGNATURES = {
    b'PAGEDU64': 0x38,
    b'PAGEDUMP': 0x28,
}

# STOP codes mapping
STOP_CODES = {
    0x0000007E: "SYSTEM_THREAD_EXCEPTION_NOT_HANDLED",
    0x0000007F: "UNEXPECTED_KERNEL_MODE_TRAP",
    0x0000008E: "KERNEL_MODE_EXCEPTION_NOT_HANDLED",
    0x00000050: "PAGE_FAULT_IN_NONPAGED_AREA",
    0x000000D1: "DRIVER_IRQL_NOT_LESS_OR_EQUAL",
    0x0000000A: "IRQL_NOT_LESS_OR_EQUAL",
    0x0000001E: "KMODE_EXCEPTION_NOT_HANDLED",
    0x0000003B: "SYSTEM_SERVICE_EXCEPTION",
    0x000000EF: "CRITICAL_PROCESS_DIED",
    0x000000C2: "BAD_POOL_CALLER",
    0x000000BE: "ATTEMPTED_WRITE_TO_READONLY_MEMORY",
    0x00000024: "NTFS_FILE_SYSTEM",
    0x00000077: "KERNEL_STACK_INPAGE_ERROR",
    0x0000007A: "KERNEL_DATA_INPAGE_ERROR",
    0x000000F4: "CRITICAL_OBJECT_TERMINATION",
    0x0000009F: "DRIVER_POWER_STATE_FAILURE",
    0x000000A5: "ACPI_BIOS_ERROR",
    0x000000C4: "DRIVER_VERIFIER_DETECTED_VIOLATION",
    0x000000CE: "DRIVER_UNLOADED_WITHOUT_CANCELLING_PENDING_OPERATIONS",
    0x000000ED: "UNMOUNTABLE_BOOT_VOLUME",
    0x000000F2: "HARDWARE_INTERRUPT_STORM",
    0x00000124: "WHEA_UNCORRECTABLE_ERROR",
    0x00000133: "DPC_WATCHDOG_VIOLATION",
    0x00000139: "KERNEL_SECURITY_CHECK_FAILURE",
}


def read_bugcheck_code(dump_file_path):
    """
    Czyta BugCheckCode z nagłówka zrzutu jądra (PAGEDU64 / PAGEDUMP).

    Minidumpy aplikacji (MDMP) nie mają bugchecka - wtedy zwraca None.

    Args:
        dump_file_path: Ścieżka do pliku .dmp

    Returns:
        int: Kod bugchecka lub None
    """
    try:
        with open(dump_file_path, 'rb') as f:
            header = f.read(HEADER_READ_BYTES)
    except OSError as e:
        logger.debug(f"[MINIDUMP_PARSER] Cannot read {dump_file_path}: {e}")
        return None

    offset = DUMP_SIGNATURES.get(header[:8])
    if offset is None or len(header) < offset + 4:
        return None

    code = struct.unpack_from('<I', header, offset)[0]
    if code == 0:
        return None
    logger.debug(f"[MINIDUMP_PARSER] {dump_file_path}: bugcheck 0x{code:08X}")
    return code


def format_stop_code(code):
    return f"0x{code:08X}"


def stop_code_name(code):
    return STOP_CODES.get(code)
