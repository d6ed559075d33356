"""
Testy kolektorów journald i Unified Logging (proces zastąpiony fake'iem).
"""
import json
from datetime import datetime, timezone

from collectors import journal_events, unified_log_events
from collectors.journal_events import parse_journal_entry
from collectors.unified_log_events import parse_log_entry


def _line(payload):
    return json.dumps(payload)


class TestJournalEntry:
    def test_full_entry(self):
        event = parse_journal_entry({
            "MESSAGE": "Accepted publickey for admin",
            "SYSLOG_IDENTIFIER": "sshd",
            "_COMM": "sshd",
            "_SYSTEMD_UNIT": "ssh.service",
            "PRIORITY": "3",
            "__REALTIME_TIMESTAMP": "1700000000123456",
        })
        assert event.os == "linux"
        assert event.log_name == "sshd"
        assert event.provider == "sshd"
        assert event.category == "security"
        assert event.severity == "error"
        assert event.event_id is None
        assert event.imported is False
        assert event.timestamp == "2023-11-14T22:13:20.123456+00:00"

    def test_fallback_chains(self):
        event = parse_journal_entry({
            "_SYSTEMD_UNIT": "",
            "_TRANSPORT": "kernel",
            "_EXE": "/usr/lib/systemd/systemd",
            "SYSLOG_PRIORITY": 4,
            "_SOURCE_REALTIME_TIMESTAMP": 1700000000000000,
        })
        assert event.log_name == "kernel"
        assert event.provider == "/usr/lib/systemd/systemd"
        assert event.category == "system"
        assert event.severity == "warning"
        assert event.message == "No log message."
        assert event.timestamp == "2023-11-14T22:13:20+00:00"

    def test_defaults(self):
        event = parse_journal_entry({"MESSAGE": "   "})
        assert event.log_name == "journal"
        assert event.provider == "unknown"
        assert event.severity == "information"
        assert event.category == "application"
        assert event.message == "No log message."
        assert event.id and event.timestamp

    def test_byte_array_message(self):
        event = parse_journal_entry({"MESSAGE": list("héllo".encode("utf-8"))})
        assert event.message == "héllo"

    def test_non_finite_timestamp_falls_back(self):
        event = parse_journal_entry({"MESSAGE": "x", "__REALTIME_TIMESTAMP": float("nan"),
                                     "_SOURCE_REALTIME_TIMESTAMP": float("inf")})
        assert event.message == "x"
        assert event.timestamp

    def test_ids_are_unique(self):
        first = parse_journal_entry({"MESSAGE": "x"})
        second = parse_journal_entry({"MESSAGE": "x"})
        assert first.id != second.id


class TestJournalCollect:
    def test_command_line(self, fake_popen):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        end = datetime(2024, 1, 2, tzinfo=timezone.utc)
        journal_events.collect(start, end, 50)
        cmd = fake_popen.commands[0]
        assert cmd[:4] == ["journalctl", "--no-pager", "-o", "json"]
        assert "--since" in cmd and "--until" in cmd
        assert cmd[-2:] == ["-n", "50"]
        since = cmd[cmd.index("--since") + 1]
        datetime.strptime(since, "%Y-%m-%d %H:%M:%S")

    def test_zero_max_events_does_not_spawn(self, fake_popen):
        result = journal_events.collect(max_events=0)
        assert result.events == [] and result.warnings == [] and result.errors == []
        assert fake_popen.commands == []

    def test_limit_is_clamped(self, fake_popen):
        journal_events.collect(max_events=50000)
        assert fake_popen.commands[0][-1] == "10000"
        journal_events.collect()
        assert fake_popen.commands[1][-1] == "2000"

    def test_degraded_but_non_empty(self, fake_popen):
        fake_popen.lines = [
            _line({"MESSAGE": "a", "PRIORITY": "6"}),
            "garbage",
            _line({"MESSAGE": "b", "PRIORITY": "3"}),
            "{oops",
            _line({"MESSAGE": "c"}),
        ]
        fake_popen.returncode = 1
        result = journal_events.collect(max_events=100)
        assert [e.message for e in result.events] == ["a", "b", "c"]
        assert result.errors == []
        malformed = [w for w in result.warnings if "malformed" in w]
        assert malformed == ["Skipped 2 non-JSON or malformed journal entries."]

    def test_non_finite_numbers_are_malformed(self, fake_popen):
        fake_popen.lines = [
            _line({"MESSAGE": "ok"}),
            '{"MESSAGE": "bad", "__REALTIME_TIMESTAMP": NaN}',
            '{"MESSAGE": "worse", "PRIORITY": Infinity}',
        ]
        result = journal_events.collect(max_events=10)
        assert [e.message for e in result.events] == ["ok"]
        assert result.errors == []
        assert result.warnings == ["Skipped 2 non-JSON or malformed journal entries."]

    def test_missing_binary_is_an_error(self, fake_popen):
        fake_popen.error = FileNotFoundError("journalctl")
        result = journal_events.collect()
        assert result.events == []
        assert result.errors and result.errors[0].startswith("Failed to run journalctl")

    def test_cap_terminates_process(self, fake_popen):
        fake_popen.lines = [_line({"MESSAGE": str(i)}) for i in range(20)]
        result = journal_events.collect(max_events=5)
        assert len(result.events) == 5
        assert fake_popen.processes[0].killed
        assert result.warnings == []


class TestUnifiedLogEntry:
    def test_full_entry(self):
        event = parse_log_entry({
            "eventMessage": "Authentication failed",
            "subsystem": "com.apple.securityd",
            "category": "auth",
            "process": "securityd",
            "messageType": "Error",
            "eventID": 12345,
            "timestamp": "2025-01-02 03:04:05.123456-0800",
        })
        assert event.os == "macos"
        assert event.log_name == "com.apple.securityd"
        assert event.provider == "securityd"
        assert event.category == "security"
        assert event.severity == "error"
        assert event.event_id == 12345
        assert event.timestamp == "2025-01-02T11:04:05.123456+00:00"

    def test_fallbacks(self):
        event = parse_log_entry({
            "formattedMessage": "hello",
            "sender": "kernel",
            "level": "Fault",
            "eventID": 2 ** 40,
        })
        assert event.message == "hello"
        assert event.log_name == "kernel"
        assert event.provider == "kernel"
        assert event.category == "system"
        assert event.severity == "critical"
        assert event.event_id is None

    def test_defaults(self):
        event = parse_log_entry({"messageType": "Default", "timestamp": "not a time"})
        assert event.log_name == "system"
        assert event.provider == "unknown"
        assert event.message == "No log message."
        assert event.severity == "information"
        assert event.timestamp

    def test_trailer_is_skipped(self):
        assert parse_log_entry({"count": 10, "finished": 1}) is None


class TestUnifiedLogCollect:
    def test_command_and_trailer(self, fake_popen):
        fake_popen.lines = [
            _line({"eventMessage": "one", "process": "Finder"}),
            _line({"eventMessage": "two", "process": "Finder"}),
            _line({"count": 2, "finished": 1}),
        ]
        start = datetime(2024, 5, 1, tzinfo=timezone.utc)
        result = unified_log_events.collect(start_time=start)
        cmd = fake_popen.commands[0]
        assert cmd[:4] == ["log", "show", "--style", "ndjson"]
        assert "--start" in cmd and "--end" not in cmd
        assert [e.message for e in result.events] == ["one", "two"]
        assert result.warnings == [] and result.errors == []

    def test_exit_status_without_events_is_an_error(self, fake_popen):
        fake_popen.lines = ["nope"]
        fake_popen.returncode = 64
        result = unified_log_events.collect()
        assert result.events == []
        assert result.errors == ["macOS log collector exited with status 64."]
        assert result.warnings == ["Skipped 1 non-JSON or malformed macOS log entries."]
