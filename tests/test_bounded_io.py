"""
Testy skanera katalogów i ograniczonego czytania plików.
"""
import codecs
import os
import sys

import pytest

from utils.fs_scanner import scan_recent_files
from utils.safe_read import detect_encoding, read_lines_capped


def _touch(path, mtime, content="x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    os.utime(path, (mtime, mtime))
    return path


class TestScanner:
    def test_orders_by_mtime_and_applies_cap(self, tmp_path):
        old = _touch(tmp_path / "a" / "old.wer", 1_000_000)
        new = _touch(tmp_path / "b" / "deep" / "new.wer", 3_000_000)
        mid = _touch(tmp_path / "mid.wer", 2_000_000)
        _touch(tmp_path / "ignored.txt", 4_000_000)

        is_wer = lambda p: p.suffix == ".wer"
        assert scan_recent_files([tmp_path], is_wer, 10) == [new, mid, old]
        assert scan_recent_files([tmp_path], is_wer, 2) == [new, mid]

    def test_missing_roots_and_zero_cap(self, tmp_path):
        _touch(tmp_path / "x.wer", 1_000_000)
        assert scan_recent_files([tmp_path / "missing"], lambda p: True, 5) == []
        assert scan_recent_files([tmp_path], lambda p: True, 0) == []

    def test_file_root(self, tmp_path):
        dump = _touch(tmp_path / "MEMORY.DMP", 1_000_000)
        assert scan_recent_files([dump], lambda p: True, 5) == [dump]

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_symlinked_directories_are_not_followed(self, tmp_path):
        real = tmp_path / "real"
        _touch(real / "a.crash", 1_000_000)
        os.symlink(real, tmp_path / "loop")
        os.symlink(tmp_path, real / "back")

        found = scan_recent_files([tmp_path], lambda p: p.suffix == ".crash", 10)
        assert found == [real / "a.crash"]


class TestReadLinesCapped:
    def test_line_cap(self, tmp_path):
        path = tmp_path / "r.txt"
        path.write_text("\n".join(f"line{i}" for i in range(50)), encoding="utf-8")
        assert read_lines_capped(path, 3, 1024) == ["line0", "line1", "line2"]

    def test_byte_cap(self, tmp_path):
        path = tmp_path / "r.txt"
        path.write_text("aaaa\nbbbb\ncccc\n", encoding="utf-8")
        assert read_lines_capped(path, 100, 7) == ["aaaa", "bb"]

    def test_unreadable_file_gives_empty_list(self, tmp_path):
        assert read_lines_capped(tmp_path / "nope.txt", 10, 100) == []

    def test_utf16_with_bom(self, tmp_path):
        path = tmp_path / "Report.wer"
        path.write_bytes(codecs.BOM_UTF16_LE + "Version=1\r\nAppName=contoso.exe\r\n"
                         .encode("utf-16-le"))
        assert read_lines_capped(path, 10, 4096) == ["Version=1", "AppName=contoso.exe"]

    def test_nul_bytes_are_stripped(self, tmp_path):
        path = tmp_path / "r.txt"
        path.write_bytes(b"Key=va\x00lue\n")
        assert read_lines_capped(path, 10, 100) == ["Key=value"]

    def test_detect_encoding(self):
        assert detect_encoding(codecs.BOM_UTF8 + b"abc") == "utf-8-sig"
        assert detect_encoding("zażółć".encode("utf-8")) == "utf-8"
        assert detect_encoding("Version=1".encode("utf-16-le")) == "utf-16-le"
