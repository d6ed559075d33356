import argparse
import json
import sys

from collectors.common import build_sample_crash
from core.collector_registry import get_host_adapter
from core.config_loader import ConfigLoader
from core.host import detect_host_os, detect_host_os_version
from core.models import OS_WINDOWS, SUPPORTED_OS
from core.orchestrator import run_collection
from core.storage import InMemoryRecordStore
from utils.logger import get_logger, reconfigure_logger
from utils.timestamps import parse_timestamp


def _print_json(payload):
    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def _timestamp_arg(value):
    parsed = parse_timestamp(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid timestamp: {value}")
    return parsed


def cmd_host(args, config):
    os_name = detect_host_os()
    _print_json({"os": os_name, "osVersion": detect_host_os_version(os_name)})
    return 0


def cmd_events(args, config):
    adapter = get_host_adapter()
    kwargs = {}
    if adapter.os == OS_WINDOWS:
        kwargs["channels"] = args.channel or config.ingest_profile()["windows_channels"]
    result = adapter.collect(args.since, args.until, args.max, **kwargs)
    _print_json(result.to_dict())
    return 1 if result.errors else 0


def cmd_crashes(args, config):
    adapter = get_host_adapter()
    limit = args.limit if args.limit is not None else config.get("crashes.import_limit", 250)
    crashes = adapter.import_crashes(limit)
    _print_json([crash.to_dict() for crash in crashes])
    return 0


def cmd_sample_crash(args, config):
    _print_json(build_sample_crash(args.os or detect_host_os()).to_dict())
    return 0


def cmd_scan(args, config):
    store = InMemoryRecordStore()
    crash_limit = args.limit if args.limit is not None else config.get("crashes.import_limit", 250)
    summary = run_collection(
        max_events=args.max, crash_limit=crash_limit, store=store, config=config)

    window = args.window_minutes
    if window is None:
        window = config.get("correlation.window_minutes", 15)
    related_limit = config.get("correlation.max_events", 200)

    _print_json({
        "os": summary["os"],
        "eventsCount": summary["events_count"],
        "crashes": [
            {
                "crash": crash.to_dict(),
                "relatedEvents": [
                    event.to_dict()
                    for event in store.related_events(crash.id, window, related_limit)
                ],
            }
            for crash in store.get_crashes(crash_limit)
        ],
        "warnings": summary["warnings"],
        "errors": summary["errors"],
    })
    return 1 if summary["errors"] and not summary["events_count"] else 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="hermes-collect",
        description="Collect OS log events and crash reports as normalized JSON")
    parser.add_argument('--config', help='Path to the JSON configuration file')
    subparsers = parser.add_subparsers(dest="command", required=True)

    host = subparsers.add_parser('host', help='Show host OS and version')
    host.set_defaults(func=cmd_host)

    events = subparsers.add_parser('events', help='Collect live log events')
    events.add_argument('--since', type=_timestamp_arg, help='Start time (ISO-8601, UTC if naive)')
    events.add_argument('--until', type=_timestamp_arg, help='End time (ISO-8601, UTC if naive)')
    events.add_argument('--max', type=int, help='Maximum number of events (default 2000)')
    events.add_argument('--channel', action='append',
                        help='Windows channel (Application, System, Security); repeatable')
    events.set_defaults(func=cmd_events)

    crashes = subparsers.add_parser('crashes', help='Import crash reports')
    crashes.add_argument('--limit', type=int, help='Maximum number of crash records')
    crashes.set_defaults(func=cmd_crashes)

    sample = subparsers.add_parser('sample-crash', help='Print a synthetic sample crash')
    sample.add_argument('--os', choices=SUPPORTED_OS)
    sample.set_defaults(func=cmd_sample_crash)

    scan = subparsers.add_parser('scan', help='Collect events and crashes, correlate them')
    scan.add_argument('--max', type=int, help='Maximum number of events')
    scan.add_argument('--limit', type=int, help='Maximum number of crash records')
    scan.add_argument('--window-minutes', type=int, help='Correlation window in minutes')
    scan.set_defaults(func=cmd_scan)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    config = ConfigLoader(args.config)
    reconfigure_logger(
        log_dir=config.get("logging.log_dir"),
        retention_days=config.get("logging.retention_days", 7),
        console_level=config.get("logging.console_level", "INFO"),
    )
    get_logger().debug(
        f"[CLI] {config.get('app.name')} {config.get('app.version')}: {args.command}")
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
