"""
Testy dziennego pliku logów (rotacja po zmianie daty, retencja).
"""
import logging
import os
import time

from utils.logger import DailyFileHandler, prune_old_logs


def _age(path, days):
    stamp = time.time() - days * 24 * 60 * 60
    os.utime(path, (stamp, stamp))


class TestPruneOldLogs:
    def test_removes_only_old_log_files(self, tmp_path):
        old_log = tmp_path / "diagnostics-2020-01-01.log"
        fresh_log = tmp_path / "diagnostics-2099-01-01.log"
        old_other = tmp_path / "notes.txt"
        for path in (old_log, fresh_log, old_other):
            path.write_text("x", encoding="utf-8")
        _age(old_log, 30)
        _age(old_other, 30)

        assert prune_old_logs(tmp_path, retention_days=7) == 1
        assert not old_log.exists()
        assert fresh_log.exists()
        assert old_other.exists()

    def test_missing_directory(self, tmp_path):
        assert prune_old_logs(tmp_path / "missing") == 0


class TestDailyFileHandler:
    def test_rotates_on_date_change(self, tmp_path, monkeypatch):
        dates = iter(["2024-01-01", "2024-01-01", "2024-01-02"])
        monkeypatch.setattr(DailyFileHandler, "_current_date_key",
                            staticmethod(lambda: next(dates)))
        handler = DailyFileHandler(tmp_path)
        logger = logging.getLogger("hermes-test-rotation")
        logger.propagate = False
        logger.addHandler(handler)
        try:
            logger.warning("first")
            logger.warning("second")
        finally:
            logger.removeHandler(handler)
            handler.close()

        first = (tmp_path / "diagnostics-2024-01-01.log").read_text(encoding="utf-8")
        second = (tmp_path / "diagnostics-2024-01-02.log").read_text(encoding="utf-8")
        assert "first" in first and "second" not in first
        assert "second" in second
