"""
Bezpieczne, ograniczone czytanie plików raportów (limit linii i bajtów) z wykrywaniem kodowania.
"""
import codecs

import chardet

from utils.logger import get_logger

logger = get_logger()

# latin1 dekoduje każdy bajt
FALLBACK_ENCODING = 'latin1'

BOMS = (
    (codecs.BOM_UTF8, 'utf-8-sig'),
    (codecs.BOM_UTF16_LE, 'utf-16'),
    (codecs.BOM_UTF16_BE, 'utf-16'),
)

CHARDET_MIN_CONFIDENCE = 0.5


def detect_encoding(sample):
    """
    Wykrywa kodowanie próbki bajtów.

    Kolejność: BOM → UTF-16 bez BOM → czyste UTF-8 → chardet → fallback latin1.

    Args:
        sample (bytes): Próbka danych

    Returns:
        str: Nazwa kodowania
    """
    for bom, encoding in BOMS:
        if sample.startswith(bom):
            return encoding

    # UTF-16 bez BOM - dużo zer na nieparzystych pozycjach (zera są też poprawnym UTF-8)
    if sample and sample[1::2].count(0) > len(sample) // 4:
        return 'utf-16-le'

    # Niekompletny znak na końcu próbki (ucięty limitem bajtów) nie jest błędem
    try:
        codecs.getincrementaldecoder('utf-8')().decode(sample, final=False)
        return 'utf-8'
    except UnicodeDecodeError:
        pass

    result = chardet.detect(sample)
    encoding = result.get('encoding')
    confidence = result.get('confidence') or 0
    if encoding and confidence >= CHARDET_MIN_CONFIDENCE:
        try:
            codecs.lookup(encoding)
            logger.debug(
                f"[SAFE_READ] Detected encoding: {encoding} (confidence: {confidence:.2f})")
            return encoding
        except LookupError:
            pass

    return FALLBACK_ENCODING


def read_lines_capped(file_path, max_lines, max_bytes):
    """
    Czyta plik tekstowy do max_lines linii lub max_bytes bajtów (co nastąpi pierwsze).

    Nieczytelny plik daje pustą listę - brak lub uszkodzenie raportu nie może
    przerwać skanowania całej partii.

    Args:
        file_path: Ścieżka do pliku
        max_lines (int): Maksymalna liczba linii
        max_bytes (int): Maksymalna liczba bajtów do odczytu

    Returns:
        list: Lista linii (bez znaków końca linii)
    """
    if max_lines <= 0 or max_bytes <= 0:
        return []

    try:
        with open(file_path, 'rb') as f:
            raw = f.read(max_bytes)
    except OSError as e:
        logger.debug(f"[SAFE_READ] Cannot read {file_path}: {e}")
        return []

    if not raw:
        return []

    encoding = detect_encoding(raw[:8192])
    decoder = codecs.getincrementaldecoder(encoding)(errors='replace')
    # final=False - ucięta końcówka wielobajtowego znaku jest pomijana
    text = decoder.decode(raw, final=False)
    text = text.replace('\x00', '')

    return text.splitlines()[:max_lines]
