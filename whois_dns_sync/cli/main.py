#!/usr/bin/env python3
"""
WHOIS DNS Sync - Command Line Interface

Main entry point for the DNS sync. This is the only place that reads the
process environment; the engine receives an explicit TriggerContext.
"""

import argparse
import copy
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml
from rich.console import Console

from ..core.models import ChangeSource, SyncResult, TriggerContext
from ..core.reconciler import AddPolicy
from ..core.reporter import DEFAULT_RESULT_FILE, ResultReporter, read_result, render_result
from ..core.sync_engine import DNSSyncEngine
from ..exceptions import DNSSyncError, InputError
from ..parsers.registry import load_changed_files

console = Console()
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "configs/config.yaml"
DEFAULT_PR_FILES = "pr-files.json"

TRIGGER_SOURCES = {
    "pr_merge": ChangeSource.REVIEWED_CHANGE,
    "reviewed-change": ChangeSource.REVIEWED_CHANGE,
    "manual": ChangeSource.MANUAL,
}


def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None):
    """Main CLI entry point."""
    environ = os.environ if environ is None else environ
    args = build_parser(environ).parse_args(argv)

    if args.command == "show-result":
        sys.exit(show_result(args.result_file))

    config = load_config(args.config)
    config = apply_overrides(config, environ, args)

    try:
        config_logger(config, args.verbose)
        engine = DNSSyncEngine(config)
    except InputError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(report_failure(config, e).exit_code)

    try:
        context = build_trigger_context(args, environ)
    except InputError as e:
        logger.error(f"Invalid trigger metadata: {e}")
        sys.exit(report_failure(config, e).exit_code)

    result = engine.run(context)
    if result.success:
        print("DNS sync completed successfully")
    elif result.skipped:
        print("DNS sync skipped (force sync)")
    else:
        print("DNS sync failed")
    sys.exit(result.exit_code)


def build_parser(environ: Mapping[str, str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dns-sync",
        description="WHOIS DNS Sync - Sync registry changes to PowerDNS Admin",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Sync one registry change")
    sync.add_argument(
        "--config",
        "-c",
        default=environ.get("DNS_SYNC_CONFIG", DEFAULT_CONFIG_FILE),
        help=f"Configuration file path (default: {DEFAULT_CONFIG_FILE})",
    )
    sync.add_argument(
        "--source",
        choices=sorted(TRIGGER_SOURCES),
        default=environ.get("TRIGGER_TYPE") or None,
        help="Trigger type (default: manual when a domain or file is given)",
    )
    sync.add_argument(
        "--title",
        default=environ.get("PR_TITLE", ""),
        help="Change title used to classify the operation",
    )
    sync.add_argument(
        "--operation",
        default=environ.get("MANUAL_OPERATION") or environ.get("OPERATION") or None,
        help="Explicit operation: add, update, delete or auto",
    )
    sync.add_argument(
        "--domain", default=environ.get("MANUAL_DOMAIN") or None, help="Domain to sync"
    )
    sync.add_argument(
        "--whois-file",
        default=environ.get("MANUAL_WHOIS_FILE") or None,
        help="WHOIS file path relative to the registry directory",
    )
    sync.add_argument(
        "--pr-files",
        default=environ.get("PR_FILES", DEFAULT_PR_FILES),
        help=f"Changed files of the pull request as JSON (default: {DEFAULT_PR_FILES})",
    )
    sync.add_argument(
        "--force-sync",
        action="store_true",
        default=_parse_bool(environ.get("FORCE_SYNC")),
        help="Skip invalid or missing records without failing (manual only)",
    )
    sync.add_argument(
        "--triggered-by",
        default=environ.get("TRIGGERED_BY") or environ.get("GITHUB_ACTOR") or "unknown",
        help="Who triggered the sync",
    )
    sync.add_argument("--result-file", help="Where to write the sync result")
    sync.add_argument(
        "--add-policy",
        choices=[policy.value for policy in AddPolicy],
        help="How add treats existing records",
    )
    sync.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    show = subparsers.add_parser("show-result", help="Display a sync result")
    show.add_argument("result_file", nargs="?", default=DEFAULT_RESULT_FILE)

    return parser


def _parse_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def build_trigger_context(args, environ: Mapping[str, str]) -> TriggerContext:
    """Capture trigger metadata once as an immutable value."""
    if args.source:
        if args.source not in TRIGGER_SOURCES:
            raise InputError(f"Unknown trigger type '{args.source}'")
        source = TRIGGER_SOURCES[args.source]
    elif args.domain or args.whois_file:
        source = ChangeSource.MANUAL
    else:
        source = ChangeSource.REVIEWED_CHANGE

    if source is ChangeSource.MANUAL:
        return TriggerContext(
            source=source,
            title=args.title,
            operation=args.operation,
            domain=args.domain,
            whois_file=args.whois_file,
            force_sync=args.force_sync,
            triggered_by=args.triggered_by,
        )

    files = tuple(load_changed_files(args.pr_files))
    return TriggerContext(
        source=source,
        title=args.title,
        operation=args.operation,
        files=files,
        force_sync=False,
        triggered_by=args.triggered_by,
    )


def load_config(config_path: str) -> Dict:
    """Load configuration from YAML file."""
    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            print(f"Error parsing config file: {config_path} must contain a mapping")
            sys.exit(1)
        logger.info(f"Configuration loaded from {config_path}")
        return config
    except FileNotFoundError:
        logger.warning(f"Config file {config_path} not found, using defaults")
        return get_default_config()
    except yaml.YAMLError as e:
        print(f"Error parsing config file: {e}")
        sys.exit(1)


def get_default_config() -> Dict:
    """Return default configuration."""
    return {
        "dns_providers": {
            "powerdns_admin": {
                "api_url": "",
                "api_key": "",
                "server_id": "localhost",
                "ttl": 3600,
                "timeout": 10,
            }
        },
        "default_provider": "powerdns_admin",
        "registry": {"root": ".", "directory": "whois", "staging_dir": None},
        "sync": {
            "add_policy": "strict",
            "result_file": DEFAULT_RESULT_FILE,
            "retry": {"max_attempts": 3, "base_delay": 1.0, "max_delay": 10.0},
        },
        "logging": {"level": "INFO"},
    }


def apply_overrides(config: Dict, environ: Mapping[str, str], args) -> Dict:
    """Apply environment credentials and command-line overrides to the config."""
    config = copy.deepcopy(config)
    providers = config.setdefault("dns_providers", {})
    pda = providers.setdefault("powerdns_admin", {}) or {}
    providers["powerdns_admin"] = pda

    for env_name, key in (
        ("PDA_API_URL", "api_url"),
        ("PDA_API_KEY", "api_key"),
        ("PDA_ZONE", "zone"),
    ):
        if environ.get(env_name):
            pda[key] = environ[env_name]

    sync_config = config.setdefault("sync", {}) or {}
    config["sync"] = sync_config
    if getattr(args, "result_file", None):
        sync_config["result_file"] = args.result_file
    if getattr(args, "add_policy", None):
        sync_config["add_policy"] = args.add_policy

    return config


def config_logger(config: Dict, verbose: bool = False):
    """Configure logging."""
    logging_config = config.get("logging", None) or {}
    log_level = "DEBUG" if verbose else str(logging_config.get("level", "INFO")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise InputError(f"Unknown logging level '{log_level}'")
    handlers = [logging.StreamHandler(sys.stdout)]

    log_file = logging_config.get("file")
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            raise InputError(f"Cannot open log file {log_file}: {e}") from e

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def report_failure(config: Dict, error: DNSSyncError) -> SyncResult:
    """Write a failure artifact for an error raised before the sync started."""
    sync_config = config.get("sync", {}) or {}
    reporter = ResultReporter(
        sync_config.get("result_file") or DEFAULT_RESULT_FILE, console=console
    )
    result = SyncResult.failed(str(error))
    console.print(f"[red]DNS sync failed: {error}[/red]")
    reporter.write(result)
    reporter.render(result)
    return result


def show_result(result_file: str) -> int:
    """Render a stored sync result; returns the matching exit status."""
    if not Path(result_file).exists():
        console.print(f"[yellow]Result file '{result_file}' not found[/yellow]")
    data = read_result(result_file)
    render_result(data, console)
    return 0 if data.get("success") else 1


if __name__ == "__main__":
    main()
