import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from .config import REFRESH_INTERVAL, PORT_RANGES, Settings
from .deck import ServiceDeck
from .errors import PortDeckError
from .events import ActionLog
from .models import ActionResult, Service

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="portdeck",
        description="List, stop and restart local development services on ports 8000-9999",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: WARNING or $PORTDECK_LOG_LEVEL)")
    log_group = parser.add_mutually_exclusive_group()
    log_group.add_argument("--action-log", type=Path, default=None, help="JSONL file recording stop/restart outcomes")
    log_group.add_argument("--no-action-log", action="store_true", help="Do not write the action log to disk")
    parser.set_defaults(json=False)

    subparsers = parser.add_subparsers(dest="command")
    list_parser = subparsers.add_parser("list", help="List listening services (default)")
    list_parser.add_argument("--json", action="store_true", help="Print services as JSON")

    stop_parser = subparsers.add_parser("stop", help="Gracefully stop a service by PID")
    stop_parser.add_argument("pid", help="Process ID of the service")
    stop_parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    restart_parser = subparsers.add_parser("restart", help="Stop a service and relaunch its command")
    restart_parser.add_argument("pid", help="Process ID of the service")
    restart_parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    top_parser = subparsers.add_parser("top", help="Interactive service console")
    top_parser.add_argument(
        "--interval", type=float, default=REFRESH_INTERVAL, help=f"Refresh interval in seconds (default: {REFRESH_INTERVAL})"
    )
    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "list"
    return args


def build_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.log_level:
        settings.log_level = args.log_level.upper()
    if args.no_action_log:
        settings.action_log_path = None
    elif args.action_log is not None:
        settings.action_log_path = args.action_log.expanduser()
    return settings


def format_table(services: Sequence[Service]) -> str:
    if not services:
        ranges = ", ".join(f"{low}-{high}" for low, high in PORT_RANGES)
        return f"No services listening on ports {ranges}"
    name_w = max(len("NAME"), max(len(service.name) for service in services))
    pid_w = max(len("PID"), max(len(service.pid) for service in services))
    lines = [f"{'PORT':<6} {'PID':>{pid_w}} {'NAME':<{name_w}} ADDRESS"]
    for service in services:
        lines.append(f"{service.port:<6} {service.pid:>{pid_w}} {service.name:<{name_w}} {service.address}")
    return "\n".join(lines)


def _emit(services: List[Service], result: Optional[ActionResult], as_json: bool, out: TextIO) -> None:
    if as_json:
        service_dicts = [service.as_dict() for service in services]
        if result is None:
            payload = service_dicts
        else:
            payload = {"result": result.as_dict(), "services": service_dicts}
        out.write(json.dumps(payload, indent=2) + "\n")
        return
    if result is not None:
        if result.action == "restart":
            out.write(f"Restarted PID {result.pid}: {result.command}\n")
        else:
            suffix = " (force-killed)" if result.forced else ""
            out.write(f"Stopped PID {result.pid}{suffix}\n")
    out.write(format_table(services) + "\n")


def run(args: argparse.Namespace, deck: ServiceDeck, out: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    if args.command == "top":
        from .dashboard import ServiceDashboard

        ServiceDashboard(deck, interval=args.interval).run()
        return 0
    result = None
    if args.command == "stop":
        result = deck.stop_service(args.pid)
        # give the OS a moment to release the port before listing again
        time.sleep(deck.settings.release_delay)
    elif args.command == "restart":
        result = deck.restart_service(args.pid)
    if result is None:
        _emit(deck.list_services(), None, args.json, out)
        return 0
    try:
        services = deck.list_services()
    except PortDeckError as exc:
        # the action already happened; lsof also exits 1 once nothing listens
        logger.warning("Could not refresh services after %s: %s", result.action, exc)
        services = []
    _emit(services, result, args.json, out)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = build_settings(args)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    action_log = ActionLog(file_path=settings.action_log_path)
    deck = ServiceDeck(settings=settings, action_log=action_log)
    try:
        return run(args, deck)
    except PortDeckError as exc:
        print(f"portdeck: error: {exc}", file=sys.stderr)
        return exc.exit_code


if __name__ == "__main__":
    sys.exit(main())
