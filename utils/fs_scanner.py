"""
Skaner drzewa katalogów - znajduje pliki raportów, najnowsze najpierw, z limitem.
"""
import os
import stat
from pathlib import Path

from utils.logger import get_logger

logger = get_logger()


def scan_recent_files(roots, predicate, cap):
    """
    Przechodzi drzewa katalogów (DFS z jawnym stosem) i zwraca najnowsze pasujące pliki.

    Dowiązania symboliczne nie są śledzone (lstat), więc nie ma cykli.
    Nieczytelne wpisy są pomijane.

    Args:
        roots (list): Katalogi (lub pliki) startowe
        predicate (callable): Funkcja Path -> bool akceptująca plik
        cap (int): Maksymalna liczba zwróconych plików

    Returns:
        list: Lista Path posortowana po mtime malejąco
    """
    if cap <= 0:
        return []

    stack = [Path(root) for root in roots if root]
    found = []
    visited = 0

    while stack:
        path = stack.pop()
        visited += 1
        try:
            info = os.lstat(path)
        except OSError:
            continue

        if stat.S_ISDIR(info.st_mode):
            try:
                with os.scandir(path) as entries:
                    stack.extend(Path(entry.path) for entry in entries)
            except OSError as e:
                logger.debug(f"[SCANNER] Cannot list {path}: {e}")
            continue

        if stat.S_ISREG(info.st_mode) and predicate(path):
            found.append((path, info.st_mtime))

    found.sort(key=lambda item: item[1], reverse=True)
    logger.debug(
        f"[SCANNER] Visited {visited} paths, matched {len(found)} files, cap {cap}")
    return [path for path, _ in found[:cap]]
