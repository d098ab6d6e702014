"""
CLI interface for gitbot-ssh.

Usage:
    python -m gitbot_ssh github.com              # Credential for a host
    python -m gitbot_ssh git@github.com          # ... for a specific user
    python -m gitbot_ssh -G github.com           # Print merged ssh_config
    python -m gitbot_ssh -F ./ssh_config host    # Use a specific config file
    python -m gitbot_ssh --overrides hosts.json host
    python -m gitbot_ssh --events host           # JSONL events on stderr
    python -m gitbot_ssh --events-file ev.jsonl host
    python -m gitbot_ssh --check github.com      # Also load the keys
    python -m gitbot_ssh --help
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from gitbot_ssh.auth import describe_key
from gitbot_ssh.config import SettingsMap
from gitbot_ssh.credentials import CredentialResolver
from gitbot_ssh.errors import SSHError
from gitbot_ssh.events import EventCollector, EventEmitter


def parse_target(target: str) -> tuple[str, str | None]:
    """
    Parse user@host target string.

    Returns:
        Tuple of (host, username) where username may be None.
    """
    if "@" in target:
        username, host = target.rsplit("@", 1)
        return host, username
    return target, None


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def format_settings(settings: SettingsMap) -> list[str]:
    """
    Render merged settings as ``key value`` lines, like ``ssh -G``.

    List options produce one line per entry; the proxy slot is printed
    under the directive it came from.
    """
    lines = []
    for key, value in settings.items():
        if key == "proxy":
            kind, proxy_value = value
            lines.append(f"{kind} {_format_value(proxy_value)}")
        elif isinstance(value, list):
            lines.extend(f"{key} {_format_value(v)}" for v in value)
        else:
            lines.append(f"{key} {_format_value(value)}")
    return lines


def load_overrides(path: str) -> dict[str, dict[str, Any]]:
    """Load a host override table from a JSON object file."""
    with open(path, "r", encoding="utf-8") as f:
        table = json.load(f)
    if not isinstance(table, dict) or not all(isinstance(v, dict) for v in table.values()):
        raise ValueError(f"{path}: expected an object of host -> object")
    return table


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for gitbot-ssh CLI."""
    parser = argparse.ArgumentParser(
        prog="gitbot-ssh",
        description="Resolve the SSH credential git operations use for a host",
        epilog="Example: python -m gitbot_ssh git@github.com",
    )

    parser.add_argument(
        "target",
        metavar="[user@]host",
        help="Target host (optionally with username)",
    )

    parser.add_argument(
        "-l", "--login",
        metavar="USER",
        help="Login username (alternative to user@host)",
    )

    parser.add_argument(
        "-F", "--config-file",
        metavar="FILE",
        action="append",
        dest="config_files",
        help="ssh_config file to read instead of the defaults (repeatable, "
             "earlier files take precedence)",
    )

    parser.add_argument(
        "--overrides",
        metavar="JSON",
        help="JSON file mapping hostnames (or \"*\") to static credentials",
    )

    parser.add_argument(
        "-G", "--print-config",
        action="store_true",
        help="Print the merged ssh_config settings for the host and exit",
    )

    parser.add_argument(
        "--events",
        action="store_true",
        help="Output JSONL events to stderr",
    )

    parser.add_argument(
        "--events-file",
        metavar="PATH",
        help="Append JSONL events to PATH",
    )

    parser.add_argument(
        "--check",
        action="store_true",
        help="Load the chosen credential's keys and report their fingerprints",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for info, -vv for debug)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors",
    )

    return parser


def setup_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def run_command(args: argparse.Namespace) -> int:
    """Run the CLI for parsed arguments and return the exit code."""
    setup_logging(args.verbose, args.quiet)

    host, target_user = parse_target(args.target)
    username = args.login or target_user

    event_collector = EventCollector() if args.events else None
    emitter: EventEmitter | None = None

    try:
        if event_collector or args.events_file:
            emitter = EventEmitter(collector=event_collector, jsonl_path=args.events_file)
        resolver = CredentialResolver(config_files=args.config_files, emitter=emitter)
        if args.overrides:
            resolver.set_host_config_overrides(load_overrides(args.overrides))

        if args.print_config:
            for line in format_settings(resolver.ssh_config.resolve(host)):
                print(line)
        else:
            credential = resolver.find_for_user_and_host(username, host)
            report = credential.to_dict()
            if args.check:
                keys = asyncio.run(credential.load_keys())
                report["keys"] = [describe_key(key) for key in keys]
            print(json.dumps(report, indent=2))
        exit_code = 0
    except (SSHError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1
    finally:
        if emitter:
            emitter.close()
        if event_collector:
            for event in event_collector.events:
                print(event.to_json(), file=sys.stderr)

    return exit_code


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    return run_command(args)


if __name__ == "__main__":
    sys.exit(main())
