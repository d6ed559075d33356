"""
Testy konfiguracji i sanityzacji profilu ingestu.
"""
import json

from core.config_loader import ConfigLoader, normalize_windows_channels, sanitize_ingest_profile


class TestIngestProfile:
    def test_defaults(self):
        profile = sanitize_ingest_profile(None)
        assert profile == {
            "max_events_per_sync": 2000,
            "windows_channels": ["Application", "System", "Security"],
            "ingest_window_days": 7,
        }

    def test_clamping(self):
        assert sanitize_ingest_profile({"max_events_per_sync": 5})["max_events_per_sync"] == 100
        assert sanitize_ingest_profile(
            {"max_events_per_sync": 999999})["max_events_per_sync"] == 20000
        assert sanitize_ingest_profile({"ingest_window_days": 0})["ingest_window_days"] == 7
        assert sanitize_ingest_profile({"ingest_window_days": 400})["ingest_window_days"] == 7
        assert sanitize_ingest_profile({"ingest_window_days": 30})["ingest_window_days"] == 30

    def test_channels(self):
        assert normalize_windows_channels([" system", "SYSTEM", "Setup", "security"]) == [
            "System", "Security"]
        assert normalize_windows_channels([]) == ["Application", "System", "Security"]
        assert normalize_windows_channels(["Bogus"]) == ["Application", "System", "Security"]


class TestConfigLoader:
    def test_missing_file_uses_defaults(self, tmp_path):
        config = ConfigLoader(str(tmp_path / "missing.json"))
        assert config.get("crashes.import_limit") == 250
        assert config.get("correlation.window_minutes") == 15
        assert config.get("nope.nothing", "fallback") == "fallback"
        assert not (tmp_path / "missing.json").exists()

    def test_file_is_merged_and_sanitized(self, tmp_path):
        path = tmp_path / "hermes_config.json"
        path.write_text(json.dumps({
            "ingest": {"max_events_per_sync": 50, "windows_channels": ["application"]},
            "correlation": {"window_minutes": 30},
        }), encoding="utf-8")
        config = ConfigLoader(str(path))
        assert config.get("ingest.max_events_per_sync") == 100
        assert config.get("ingest.windows_channels") == ["Application"]
        assert config.get("correlation.window_minutes") == 30
        assert config.get("correlation.max_events") == 200

    def test_invalid_file_falls_back(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        config = ConfigLoader(str(path))
        assert config.get("ingest.max_events_per_sync") == 2000

    def test_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"crashes": {"import_limit": 42}}), encoding="utf-8")
        monkeypatch.setenv("HERMES_CONFIG", str(path))
        assert ConfigLoader().get("crashes.import_limit") == 42

    def test_set_sanitizes_ingest(self, tmp_path):
        config = ConfigLoader(str(tmp_path / "none.json"))
        config.set("ingest.max_events_per_sync", 1)
        assert config.ingest_profile()["max_events_per_sync"] == 100
        config.set("crashes.import_limit", 10)
        assert config.get("crashes.import_limit") == 10

    def test_defaults_are_not_shared(self, tmp_path):
        first = ConfigLoader(str(tmp_path / "a.json"))
        first.set("correlation.window_minutes", 99)
        second = ConfigLoader(str(tmp_path / "b.json"))
        assert second.get("correlation.window_minutes") == 15
