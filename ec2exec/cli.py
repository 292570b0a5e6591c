"""Command-line entry point.

    ec2exec [COMMANDS_FILE] [--key PEM] [--key-name NAME] [--continue-on-error]

Exit status: 0 when every command succeeded, 1 on any failure, 2 on usage
errors, 130 when interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from ec2exec.app import run
from ec2exec.config import RawConfig, load_settings
from ec2exec.console import RunConsole
from ec2exec.core.exceptions import Ec2ExecError
from ec2exec.logging import LogConfig, _setup_logging, _teardown_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ec2exec",
        description="Run shell commands on a running (or freshly created) EC2 instance.",
    )
    parser.add_argument(
        "commands_file", nargs="?", type=Path, default=None,
        help="File with one command per line (default: ./cmd)",
    )
    parser.add_argument("--config", type=Path, default=None, help="TOML config file")
    parser.add_argument("--key", type=Path, default=None, help="PEM private key (default: $PEM_PATH)")
    parser.add_argument("--user", default=None, help="SSH login (default: ubuntu)")
    parser.add_argument("--region", default=None, help="AWS region")
    parser.add_argument("--profile", default=None, help="AWS credentials profile")
    parser.add_argument("--key-name", default=None, help="EC2 key pair used when creating an instance")
    parser.add_argument(
        "--continue-on-error", action="store_true",
        help="Keep running the remaining commands after a failure",
    )
    parser.add_argument("--max-attempts", type=int, default=None, help="SSH dial attempts")
    parser.add_argument("--retry-interval", type=float, default=None, help="Seconds between dial attempts")
    parser.add_argument(
        "--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Enable diagnostic logging on stderr",
    )
    parser.add_argument("--log-file", default=None, help="Write DEBUG logs to this file")
    return parser


def _overrides(args: argparse.Namespace) -> RawConfig:
    sections: dict[str, dict[str, object]] = {"aws": {}, "ssh": {}, "run": {}}
    pairs = [
        ("aws", "region", args.region),
        ("aws", "profile", args.profile),
        ("aws", "key_name", args.key_name),
        ("ssh", "key_path", str(args.key) if args.key else None),
        ("ssh", "username", args.user),
        ("ssh", "max_attempts", args.max_attempts),
        ("ssh", "retry_interval", args.retry_interval),
        ("run", "commands_file", str(args.commands_file) if args.commands_file else None),
        ("run", "on_failure", "continue" if args.continue_on_error else None),
    ]
    for section, key, value in pairs:
        if value is not None:
            sections[section][key] = value
    return {name: values for name, values in sections.items() if values}


def _log_config(args: argparse.Namespace, configured: LogConfig | None) -> LogConfig | None:
    if args.log_level is None and args.log_file is None:
        return configured
    base = configured or LogConfig(console=args.log_level is not None)
    return LogConfig(
        level=args.log_level or base.level,
        file=args.log_file or base.file,
        console=base.console or args.log_level is not None,
        rotation=base.rotation,
        retention=base.retention,
        compression=base.compression,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    console = RunConsole()

    try:
        settings = load_settings(overrides=_overrides(args), config_path=args.config)
    except Ec2ExecError as e:
        console.error(e)
        return 1

    log_config = _log_config(args, settings.log)
    handler_ids = _setup_logging(log_config) if log_config else []
    try:
        results = asyncio.run(run(settings, console))
    except Ec2ExecError as e:
        console.error(e)
        return 1
    except KeyboardInterrupt:
        console.error("interrupted")
        return 130
    finally:
        _teardown_logging(handler_ids)

    return 0 if all(r.success for r in results) else 1
