"""
Main CLI entry point for web-audit.

Provides command-line interface with YAML configuration support,
environment variable overrides and individual commands.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from colorama import init, Fore, Style

from ..__version__ import __version__
from ..config import settings_to_dict, validate_settings
from ..exceptions import WebAuditError
from ..utils import fingerprint, mask_bearer_header
from .config import create_default_config, settings_from_config

init()

DEFAULT_ENV_FILE = ".env"


def print_ok(msg):
    """Print success message in green."""
    print(f"{Fore.GREEN}[OK] {msg}{Style.RESET_ALL}")


def print_error(msg):
    """Print error message in red."""
    print(f"{Fore.RED}[ERROR] {msg}{Style.RESET_ALL}", file=sys.stderr)


def print_warn(msg):
    """Print warning message in yellow."""
    print(f"{Fore.YELLOW}[WARN] {msg}{Style.RESET_ALL}")


def print_info(msg):
    """Print info message in cyan."""
    print(f"{Fore.CYAN}[INFO] {msg}{Style.RESET_ALL}")


def print_line(line):
    """Print a report line, highlighting section rules."""
    if line.startswith("==="):
        print(f"{Fore.GREEN}{line}{Style.RESET_ALL}")
    elif "LOOKS LIKE" in line:
        print(f"{Fore.YELLOW}{line}{Style.RESET_ALL}")
    else:
        print(line)


def setup_logging(verbose=0):
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")


def _env_file(args):
    """Explicit ``--env-file``, else ``./.env`` when present."""
    if args.env_file:
        return args.env_file
    return DEFAULT_ENV_FILE if Path(DEFAULT_ENV_FILE).is_file() else None


def _run_overrides(args):
    overrides = {
        "target_url": args.target,
        "target_hints": args.hint or None,
        "output_file": args.output,
        "repeat_interval_ms": args.interval_ms,
    }
    if args.headed:
        overrides["headless"] = False
    if args.skip_erp:
        overrides["audit_erp"] = False
    return overrides


def cmd_run(args):
    """Run the browser audit."""
    from ..report import build_report
    from ..scanners.browser_scanner import run_audit

    try:
        settings = validate_settings(settings_from_config(
            args.config, overrides=_run_overrides(args), env_file=_env_file(args),
        ))
    except (WebAuditError, OSError) as e:
        print_error(str(e))
        return 1

    print_info("Starting web audit")
    print(f"  User:     {settings.erp_user or '-'}")
    print(f"  Headless: {settings.headless}")
    print(f"  Target:   {settings.target_url}")
    print(f"  Output:   {settings.output_file}")

    try:
        results = run_audit(settings, emit=print_line, iterations=args.iterations)
    except KeyboardInterrupt:
        print_warn("Audit interrupted by user")
        return 1
    except Exception as e:
        print_error(f"Audit failed: {e}")
        logging.getLogger(__name__).debug("Audit failed", exc_info=True)
        return 1

    captured = sum(r.captured for r in results)
    if any(r.login_failed for r in results):
        print_warn("ERP login failed (see log and erp-error.png)")
    print_ok(f"Audit finished: {len(results)} session(s), {captured} capture(s) written to {settings.output_file}")

    if args.report:
        last = results[-1]
        report = build_report(
            last.hits_by_phase(),
            storage=last.storage,
            target_hits=last.target_hits(),
            settings=settings_to_dict(settings),
        )
        with open(args.report, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)
        print_ok(f"Report saved to: {args.report}")
    return 0


def cmd_captures(args):
    """List the pairs stored in a capture file without revealing tokens."""
    from ..scanners.capture import parse_captures

    path = args.file
    if not path:
        try:
            path = settings_from_config(args.config, env_file=_env_file(args)).output_file
        except (WebAuditError, OSError) as e:
            print_error(str(e))
            return 1

    if not Path(path).exists():
        print_warn(f"Capture file not found: {path}")
        return 1

    try:
        pairs = parse_captures(path)
    except OSError as e:
        print_error(f"Could not read capture file: {e}")
        return 1

    rows = [
        {
            "tenant_id": p.tenant_id,
            "tenant_hash": fingerprint(p.tenant_id),
            "bearer_masked": mask_bearer_header(f"Bearer {p.bearer_token}"),
            "bearer_hash": fingerprint(p.bearer_token),
        }
        for p in pairs
    ]

    if args.json:
        print(json.dumps({"captures": rows}, indent=2))
        return 0

    print_info(f"{len(rows)} capture(s) in {path}")
    for i, row in enumerate(rows, 1):
        print(f"  {Fore.CYAN}#{i}{Style.RESET_ALL} tenant={row['tenant_id']} (hash:{row['tenant_hash']})")
        print(f"     {row['bearer_masked']} (hash:{row['bearer_hash']})")
    return 0


def cmd_init_config(args):
    """Create default configuration file."""
    output = args.output or "web-audit.yaml"
    try:
        create_default_config(output)
        print_ok(f"Created configuration file: {output}")
        print_info(f"Edit this file and use: web-audit run --config {output}")
        return 0
    except OSError as e:
        print_error(f"Failed to create config: {e}")
        return 1


def cmd_version(args):
    """Show version information."""
    from ..__version__ import __title__, __description__
    print(f"{Fore.CYAN}{__title__}{Style.RESET_ALL} v{Fore.GREEN}{__version__}{Style.RESET_ALL}")
    print(__description__)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="web-audit",
        description="Passive browser traffic auditor for bearer tokens and tenant identifiers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the browser audit")
    run_parser.add_argument("--config", "-c", help="YAML configuration file")
    run_parser.add_argument("--env-file", help="dotenv file with audit variables (default: .env if present)")
    run_parser.add_argument("--target", help="Exact target API URL")
    run_parser.add_argument("--hint", action="append", help="Target URL hint (repeatable)")
    run_parser.add_argument("--output", "-o", help="Capture file for tenant/token pairs")
    run_parser.add_argument("--headed", action="store_true", help="Show the browser window")
    run_parser.add_argument("--skip-erp", action="store_true", help="Skip the ERP login phase")
    run_parser.add_argument("--interval-ms", type=int, help="Repeat the audit every N ms")
    run_parser.add_argument("--iterations", type=int, help="Stop after N runs in repeat mode")
    run_parser.add_argument("--report", help="Write a masked JSON report to this file")
    run_parser.add_argument("--verbose", "-v", action="count", default=0, help="More logging (-vv for debug)")
    run_parser.set_defaults(func=cmd_run)

    captures_parser = subparsers.add_parser("captures", help="List captured tenant/token pairs (masked)")
    captures_parser.add_argument("file", nargs="?", help="Capture file (default: configured output file)")
    captures_parser.add_argument("--config", "-c", help="YAML configuration file")
    captures_parser.add_argument("--env-file", help="dotenv file with audit variables (default: .env if present)")
    captures_parser.add_argument("--json", action="store_true", help="Print JSON")
    captures_parser.set_defaults(func=cmd_captures)

    config_parser = subparsers.add_parser("init-config", help="Create default configuration file")
    config_parser.add_argument("--output", "-o", help="Output config file path")
    config_parser.set_defaults(func=cmd_init_config)

    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(getattr(args, "verbose", 0))
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
