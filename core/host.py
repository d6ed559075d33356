"""
Wykrywanie systemu hosta.
"""
import sys
from pathlib import Path

from core.models import OS_LINUX, OS_MACOS, OS_WINDOWS
from utils.subprocess_helper import run_command, run_powershell_hidden

OS_RELEASE_PATH = Path("/etc/os-release")

WINDOWS_VERSION_QUERY = (
    "(Get-CimInstance Win32_OperatingSystem | Select-Object -ExpandProperty Caption) + ' ' + "
    "(Get-CimInstance Win32_OperatingSystem | Select-Object -ExpandProperty Version)"
)


def detect_host_os(platform_name=None):
    """
    Zwraca system hosta: windows, macos lub linux (wszystko inne traktujemy jak linux).

    Args:
        platform_name (str, optional): Wartość sys.platform (do testów)
    """
    platform_name = platform_name or sys.platform
    if platform_name.startswith("win"):
        return OS_WINDOWS
    if platform_name == "darwin":
        return OS_MACOS
    return OS_LINUX


def _pretty_name_from_os_release(path=None):
    try:
        content = Path(path or OS_RELEASE_PATH).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    for line in content.splitlines():
        if line.startswith("PRETTY_NAME="):
            value = line[len("PRETTY_NAME="):].strip().strip('"').strip()
            return value or None
    return None


def detect_host_os_version(os_name=None):
    """Czytelna nazwa i wersja systemu hosta."""
    os_name = os_name or detect_host_os()

    if os_name == OS_MACOS:
        name = run_command("sw_vers", ["-productName"]) or "macOS"
        version = run_command("sw_vers", ["-productVersion"]) or "Unknown"
        return f"{name} {version}"

    if os_name == OS_WINDOWS:
        return run_powershell_hidden(WINDOWS_VERSION_QUERY) or "Windows (version unavailable)"

    pretty = _pretty_name_from_os_release()
    if pretty:
        return pretty
    kernel = run_command("uname", ["-r"]) or "unknown-kernel"
    return f"Linux ({kernel})"
