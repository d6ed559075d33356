"""
Testy rejestru adapterów, wykrywania hosta, orkiestracji i CLI.
"""
import json
from datetime import datetime, timezone

import pytest

import cli
from core import host, orchestrator
from core.collector_registry import CollectorRegistry, PlatformAdapter, get_host_adapter
from core.config_loader import ConfigLoader
from core.models import CollectionResult, NormalizedEvent
from core.storage import InMemoryRecordStore
from collectors.common import build_sample_crash


class TestHost:
    @pytest.mark.parametrize("platform, expected", [
        ("win32", "windows"), ("darwin", "macos"), ("linux", "linux"), ("freebsd13", "linux"),
    ])
    def test_detect_host_os(self, platform, expected):
        assert host.detect_host_os(platform) == expected

    def test_linux_version_from_os_release(self, tmp_path, monkeypatch):
        release = tmp_path / "os-release"
        release.write_text('NAME="Ubuntu"\nPRETTY_NAME="Ubuntu 24.04 LTS"\n', encoding="utf-8")
        monkeypatch.setattr(host, "OS_RELEASE_PATH", release)
        assert host.detect_host_os_version("linux") == "Ubuntu 24.04 LTS"

    def test_linux_version_falls_back_to_kernel(self, tmp_path, monkeypatch):
        monkeypatch.setattr(host, "OS_RELEASE_PATH", tmp_path / "missing")
        monkeypatch.setattr(host, "run_command", lambda binary, args: "6.8.0-generic")
        assert host.detect_host_os_version("linux") == "Linux (6.8.0-generic)"

    def test_macos_version(self, monkeypatch):
        answers = {"-productName": "macOS", "-productVersion": "14.5"}
        monkeypatch.setattr(host, "run_command", lambda binary, args: answers[args[0]])
        assert host.detect_host_os_version("macos") == "macOS 14.5"


class TestRegistry:
    def test_adapters_for_every_os(self):
        for os_name in ("windows", "linux", "macos"):
            adapter = get_host_adapter(os_name)
            assert adapter.os == os_name
            assert callable(adapter.collect) and callable(adapter.import_crashes)

    def test_register_replaces_by_os(self):
        registry = CollectorRegistry()
        registry.register(PlatformAdapter("linux", lambda *a: None, lambda *a: []))
        replacement = PlatformAdapter("linux", lambda *a: None, lambda *a: [])
        registry.register(replacement)
        assert registry.get("linux") is replacement
        assert list(registry.get_all()) == ["linux"]
        assert registry.get("windows") is None

    def test_register_rejects_unsupported_os(self):
        with pytest.raises(ValueError):
            CollectorRegistry().register(PlatformAdapter("solaris", lambda *a: None, lambda *a: []))


def _fake_adapter(os_name, calls):
    def collect(start, end, max_events, **kwargs):
        calls["collect"] = (start, end, max_events, kwargs)
        event = NormalizedEvent(os=os_name, log_name="System", category="system",
                                provider="p", severity="error", message="m")
        return CollectionResult(events=[event], warnings=["partial"])

    def import_crashes(limit):
        calls["import"] = limit
        return [build_sample_crash(os_name)]

    return PlatformAdapter(os_name, collect, import_crashes)


class TestRunCollection:
    def test_defaults_from_config_and_store(self, tmp_path, monkeypatch):
        calls = {}
        monkeypatch.setattr(orchestrator, "get_host_adapter",
                            lambda os_name=None: _fake_adapter("windows", calls))
        config = ConfigLoader(str(tmp_path / "none.json"))
        config.set("ingest.windows_channels", ["System"])
        store = InMemoryRecordStore()
        end = datetime(2024, 1, 10, tzinfo=timezone.utc)

        summary = orchestrator.run_collection(end_time=end, store=store, config=config)

        start, passed_end, max_events, kwargs = calls["collect"]
        assert passed_end == end
        assert (end - start).days == 7
        assert max_events == 2000
        assert kwargs == {"channels": ["System"]}
        assert calls["import"] == 250
        assert summary["events_count"] == 1 and summary["crashes_count"] == 1
        assert summary["warnings"] == ["partial"]
        assert len(store.get_events()) == 1 and len(store.get_crashes()) == 1

    def test_non_windows_gets_no_channels(self, tmp_path, monkeypatch):
        calls = {}
        monkeypatch.setattr(orchestrator, "get_host_adapter",
                            lambda os_name=None: _fake_adapter("linux", calls))
        orchestrator.run_collection(max_events=10, crash_limit=5,
                                    config=ConfigLoader(str(tmp_path / "none.json")))
        assert calls["collect"][2] == 10
        assert calls["collect"][3] == {}
        assert calls["import"] == 5

    def test_collection_warnings_are_not_logged_again(self, tmp_path, monkeypatch, caplog):
        monkeypatch.setattr(orchestrator, "get_host_adapter",
                            lambda os_name=None: _fake_adapter("linux", {}))
        orchestrator.run_collection(config=ConfigLoader(str(tmp_path / "none.json")))
        assert not [r for r in caplog.records if "partial" in r.getMessage()]
        assert any("[ORCHESTRATOR] Done" in r.getMessage() for r in caplog.records)


class TestCli:
    def test_sample_crash(self, capsys, tmp_path):
        code = cli.main(["--config", str(tmp_path / "none.json"), "sample-crash", "--os", "macos"])
        payload = json.loads(capsys.readouterr().out)
        assert code == 0
        assert payload["os"] == "macos"
        assert payload["crashType"] == "Kernel Panic"
        assert payload["imported"] is False

    def test_events_exit_code_on_error(self, capsys, tmp_path, monkeypatch):
        adapter = PlatformAdapter(
            "linux", lambda *a, **k: CollectionResult.failed("Failed to run journalctl: x"),
            lambda limit: [])
        monkeypatch.setattr(cli, "get_host_adapter", lambda: adapter)
        code = cli.main(["--config", str(tmp_path / "none.json"), "events", "--max", "5"])
        payload = json.loads(capsys.readouterr().out)
        assert code == 1
        assert payload == {"events": [], "warnings": [], "errors": ["Failed to run journalctl: x"]}

    def test_scan_correlates(self, capsys, tmp_path, monkeypatch):
        calls = {}
        monkeypatch.setattr(orchestrator, "get_host_adapter",
                            lambda os_name=None: _fake_adapter("linux", calls))
        code = cli.main(["--config", str(tmp_path / "none.json"), "scan"])
        payload = json.loads(capsys.readouterr().out)
        assert code == 0
        assert payload["eventsCount"] == 1
        assert len(payload["crashes"]) == 1
        assert len(payload["crashes"][0]["relatedEvents"]) == 1

    def test_scan_uses_configured_crash_limit(self, capsys, tmp_path, monkeypatch):
        calls = {}
        monkeypatch.setattr(orchestrator, "get_host_adapter",
                            lambda os_name=None: _fake_adapter("linux", calls))
        config_path = tmp_path / "hermes_config.json"
        config_path.write_text(json.dumps({"crashes": {"import_limit": 7}}), encoding="utf-8")
        code = cli.main(["--config", str(config_path), "scan"])
        capsys.readouterr()
        assert code == 0
        assert calls["import"] == 7
