"""
Deterministyczne identyfikatory crashy - ten sam artefakt zawsze daje ten sam id.
"""

FNV64_OFFSET_BASIS = 0xcbf29ce484222325
FNV64_PRIME = 0x100000001b3
MASK_64 = 0xFFFFFFFFFFFFFFFF

IMPORTED_ID_PREFIX = "imported-"


def fnv1a_64(data):
    """FNV-1a 64-bit dla bajtów."""
    value = FNV64_OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * FNV64_PRIME) & MASK_64
    return value


def stable_crash_id(os_name, source, crash_type, path_or_summary):
    """
    Buduje id 'imported-<16 hex>' z ziarna 'os|source|crashType|pathOrSummary'.

    Args:
        os_name (str): windows / linux / macos
        source (str): Źródło (np. WER, apport)
        crash_type (str): Typ crasha
        path_or_summary (str): Ścieżka artefaktu lub podsumowanie

    Returns:
        str: Identyfikator crasha
    """
    seed = "|".join([os_name, source, crash_type, path_or_summary or ""])
    return f"{IMPORTED_ID_PREFIX}{fnv1a_64(seed.encode('utf-8')):016x}"
