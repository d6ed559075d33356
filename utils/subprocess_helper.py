"""
Helper do uruchamiania procesów zewnętrznych: krótkie komendy oraz strumień JSON-lines z limitem.
"""
import json
import subprocess
import sys

from utils.logger import get_logger

logger = get_logger()

# Dłuższe wyjście krótkiej komendy traktujemy jako śmieci
MAX_COMMAND_OUTPUT_CHARS = 300


def get_hidden_startupinfo():
    """
    Zwraca STARTUPINFO z ukrytym oknem dla Windows.

    Returns:
        subprocess.STARTUPINFO lub None (dla nie-Windows)
    """
    if sys.platform != "win32":
        return None

    startupinfo = subprocess.STARTUPINFO()
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    startupinfo.wShowWindow = subprocess.SW_HIDE
    return startupinfo


def _creation_flags():
    return subprocess.CREATE_NO_WINDOW if sys.platform == "win32" else 0


def run_command(binary, args, timeout=15):
    """
    Uruchamia krótką komendę i zwraca jej wyjście (jedna wartość tekstowa).

    Args:
        binary (str): Program do uruchomienia
        args (list): Argumenty
        timeout (int): Timeout w sekundach

    Returns:
        str: Przycięte wyjście lub None (błąd, kod != 0, puste lub za długie)
    """
    try:
        completed = subprocess.run(
            [binary, *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            startupinfo=get_hidden_startupinfo(),
            creationflags=_creation_flags(),
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"[SUBPROCESS] {binary} failed to run: {e}")
        return None

    if completed.returncode != 0:
        logger.debug(f"[SUBPROCESS] {binary} exited with code {completed.returncode}")
        return None

    value = completed.stdout.decode("utf-8", errors="replace").strip()
    if not value or len(value) > MAX_COMMAND_OUTPUT_CHARS:
        return None
    return value


def run_powershell_hidden(command, timeout=30):
    """
    Uruchamia PowerShell z ukrytym oknem.

    Args:
        command (str): Komenda PowerShell
        timeout (int): Timeout w sekundach (domyślnie 30)

    Returns:
        str: Output z PowerShell lub None
    """
    return run_command(
        "powershell", ["-NoProfile", "-NonInteractive", "-Command", command],
        timeout=timeout)


def _reject_constant(name):
    # NaN / Infinity nie są poprawnym JSON-em
    raise ValueError(f"non-finite JSON constant {name}")


def stream_json_lines(cmd, build_record, max_records, tool_label, entry_label=None):
    """
    Uruchamia proces wypisujący jeden obiekt JSON na linię i zbiera rekordy.

    Wyjście jest czytane synchronicznie. Po osiągnięciu max_records proces jest
    zabijany. Proces i jego stdout są zawsze zamykane, także przy wyjątku.

    Args:
        cmd (list): Komenda do uruchomienia
        build_record (callable): dict -> rekord lub None (rekord pomijany bez ostrzeżenia)
        max_records (int): Limit rekordów
        tool_label (str): Nazwa narzędzia w komunikatach
        entry_label (str, optional): Nazwa wpisów w ostrzeżeniu o błędnych liniach

    Returns:
        tuple: (records, warnings, errors)
    """
    records = []
    warnings = []
    errors = []

    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            startupinfo=get_hidden_startupinfo(),
            creationflags=_creation_flags(),
        )
    except (OSError, ValueError) as e:
        logger.warning(f"[SUBPROCESS] Failed to run {tool_label}: {e}")
        errors.append(f"Failed to run {tool_label}: {e}")
        return records, warnings, errors

    if process.stdout is None:
        process.kill()
        process.wait()
        errors.append(f"{tool_label} did not expose stdout.")
        return records, warnings, errors

    parse_failures = 0
    read_failures = 0
    cap_reached = False
    drained = False

    try:
        for raw_line in process.stdout:
            try:
                line = raw_line.decode("utf-8")
            except UnicodeDecodeError:
                read_failures += 1
                continue

            line = line.strip()
            if not line:
                continue

            try:
                payload = json.loads(line, parse_constant=_reject_constant)
            except ValueError:
                parse_failures += 1
                continue
            if not isinstance(payload, dict):
                parse_failures += 1
                continue

            record = build_record(payload)
            if record is None:
                continue

            records.append(record)
            if len(records) >= max_records:
                cap_reached = True
                break
        else:
            drained = True
    finally:
        if not drained and process.poll() is None:
            process.kill()
        process.stdout.close()
        returncode = process.wait()

    if cap_reached:
        logger.debug(
            f"[SUBPROCESS] {tool_label} terminated after reaching {max_records} records")

    if read_failures:
        warnings.append(
            f"Encountered {read_failures} {tool_label} stdout read failure(s).")
    if parse_failures:
        warnings.append(
            f"Skipped {parse_failures} non-JSON or malformed {entry_label or tool_label} entries.")

    # Kod wyjścia po celowym zabiciu procesu nie jest degradacją
    if not cap_reached and returncode != 0:
        message = f"{tool_label} exited with status {returncode}."
        if records:
            warnings.append(message)
        else:
            errors.append(message)

    return records, warnings, errors
