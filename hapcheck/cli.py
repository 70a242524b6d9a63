"""Command-line interface for hapcheck.

Exit codes:
    0 - OK, all in-scope entities healthy
    1 - WARNING (not produced by the current classification)
    2 - CRITICAL, entities DOWN, expected entities missing, or stats unreachable
    3 - UNKNOWN, conflicting options, bad configuration, or no way to query
"""

import argparse
import sys
from pathlib import Path
from typing import Any

from hapcheck import __version__
from hapcheck.core.config import CheckSettings, ConfigError, resolve_settings
from hapcheck.core.context import Context
from hapcheck.core.engine import evaluate
from hapcheck.core.logging import NullLogger, ScriptLogger, get_log_path
from hapcheck.core.models import ConfigurationConflict, EvaluationRequest, EvaluationResult, Severity
from hapcheck.core.output import Output
from hapcheck.lib.sources import fetch_payload, load_snapshot
from hapcheck.lib.stats import StatsError


SCRIPT_NAME = "haproxy_check"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Every option defaults to None so unset flags fall through to the
    environment and config files.
    """
    parser = argparse.ArgumentParser(
        prog="hapcheck",
        description="Check HAProxy backend and server status via stats socket or HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                        # Auto-detect socket
  %(prog)s --socket /run/haproxy/admin.sock       # Specific socket
  %(prog)s --socket 10.0.0.5:9999                 # Remote stats socket
  %(prog)s --url http://localhost:8404/stats      # HTTP stats page
  %(prog)s --backends --check-missing web,api     # Backends must all exist
  %(prog)s --servers --list                       # List servers
        """,
    )
    parser.add_argument("--version", action="version", version=f"hapcheck {__version__}")

    # Connection options
    parser.add_argument("-S", "--socket", help="Stats socket path or host:port")
    parser.add_argument("-u", "--url", help="URL of the HAProxy stats page")
    parser.add_argument(
        "-a", "--admin-user", help="Username for HTTP basic auth, optional"
    )
    parser.add_argument(
        "-p", "--admin-pass", help="Password for HTTP basic auth, optional"
    )
    parser.add_argument(
        "--timeout", type=int, default=None, help="Query timeout in seconds (default: 10)"
    )

    # Scope options
    parser.add_argument(
        "--backends", action="store_true", default=None, help="Only check backends"
    )
    parser.add_argument(
        "--servers", action="store_true", default=None, help="Only check servers"
    )
    parser.add_argument("--backend", help="Only report this backend as DOWN")
    parser.add_argument("--server", help="Only report this server as DOWN")
    parser.add_argument(
        "--check-missing",
        action="append",
        default=None,
        metavar="NAME",
        help="Entity that must be present (repeatable, comma lists allowed)",
    )
    parser.add_argument(
        "--list", action="store_true", default=None, help="List entities instead of checking"
    )

    # Output options
    parser.add_argument(
        "-f", "--format", choices=["plain", "json"], default=None, help="Output format (default: plain)"
    )
    parser.add_argument(
        "-w", "--warn-only", action="store_true", default=None, help="Only print when not OK"
    )
    parser.add_argument(
        "--log", action="store_true", default=None, help="Write a JSONL run log"
    )
    parser.add_argument("--log-dir", help="Directory for the JSONL run log")

    # Allow passing stats data directly for testing
    parser.add_argument("--stats-data", help=argparse.SUPPRESS)
    return parser


def open_logger(settings: CheckSettings) -> ScriptLogger | NullLogger:
    if not settings.log:
        return NullLogger()
    base_path = Path(settings.log_dir).expanduser() if settings.log_dir else None
    return ScriptLogger(SCRIPT_NAME, log_path=get_log_path(SCRIPT_NAME, base_path))


def build_request(settings: CheckSettings) -> EvaluationRequest:
    """
    Build the evaluation request from resolved settings.

    Raises:
        ConfigurationConflict: If mutually exclusive options are set together
    """
    if settings.socket and settings.url:
        raise ConfigurationConflict("--socket and --url are mutually exclusive")

    return EvaluationRequest.from_flags(
        backends=settings.backends,
        servers=settings.servers,
        backend=settings.backend,
        server=settings.server,
        expected=settings.check_missing,
        list_only=settings.list_only,
    )


def summarize(result: EvaluationResult, list_only: bool = False) -> str:
    """One-line summary for the status line."""
    name = result.severity.name
    if result.severity == Severity.OK:
        if list_only:
            return f"HAProxy {name}: {len(result.entities)} entities"
        return f"HAProxy {name}: all systems UP"

    parts = [
        f"{result.backends_down} backends down",
        f"{result.servers_down} servers down",
    ]
    diff = result.missing_diff
    if diff is not None and (diff.missing or diff.unexpected):
        parts.append(f"{len(diff.missing)} missing")
        parts.append(f"{len(diff.unexpected)} unexpected")
    return f"HAProxy {name}: " + ", ".join(parts)


def result_data(result: EvaluationResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "severity": result.severity.name,
        "findings": list(result.findings),
        "backends_down": result.backends_down,
        "servers_down": result.servers_down,
    }
    if result.missing_diff is not None:
        data["missing"] = list(result.missing_diff.missing)
        data["unexpected"] = list(result.missing_diff.unexpected)
        if result.missing_diff.missing or result.missing_diff.unexpected:
            data["diff"] = result.missing_diff.text
    return data


def fail(output: Output, severity: Severity, message: str) -> Severity:
    """Record a failure that prevented evaluation."""
    output.error(message)
    output.emit({"severity": severity.name, "findings": []})
    output.set_summary(f"HAProxy {severity.name}: {message}")
    return severity


def run(args: list[str], output: Output, context: Context) -> int:
    """
    Main entry point.

    Args:
        args: Command-line arguments
        output: Output helper
        context: Execution context

    Returns:
        Exit code matching the check severity
    """
    parser = create_parser()
    opts = parser.parse_args(args)
    cli_values = vars(opts)
    stats_data = cli_values.pop("stats_data")

    try:
        settings = resolve_settings(cli_values, context)
    except ConfigError as e:
        severity = fail(output, Severity.UNKNOWN, str(e))
        output.render(opts.format or "plain")
        return int(severity)

    logger = open_logger(settings)
    try:
        severity = check(settings, output, context, logger, stats_data)
    finally:
        logger.close()

    output.render(settings.format, warn_only=settings.warn_only)
    return int(severity)


def check(
    settings: CheckSettings,
    output: Output,
    context: Context,
    logger: ScriptLogger | NullLogger,
    stats_data: str | None = None,
) -> Severity:
    """Acquire, evaluate and record one snapshot."""
    try:
        request = build_request(settings)
    except ConfigurationConflict as e:
        logger.error("configuration conflict", error=str(e))
        return fail(output, Severity.UNKNOWN, str(e))

    try:
        if stats_data is not None:
            target, payload = "stats-data", stats_data
        else:
            target, payload = fetch_payload(settings, context)
        logger.debug("stats acquired", target=target, size=len(payload))
        records = load_snapshot(payload)
    except StatsError as e:
        severity = Severity.UNKNOWN if e.unavailable else Severity.CRITICAL
        logger.error("stats acquisition failed", error=str(e), severity=severity.name)
        return fail(output, severity, str(e))

    result = evaluate(records, request)
    logger.info(
        "evaluation complete",
        target=target,
        records=len(records),
        scope=request.scope.value,
        severity=result.severity.name,
        backends_down=result.backends_down,
        servers_down=result.servers_down,
    )

    output.emit(result_data(result))
    output.set_summary(summarize(result, request.list_only))
    return result.severity


def main(argv: list[str] | None = None) -> int:
    """Console script entry point."""
    return run(sys.argv[1:] if argv is None else argv, Output(), Context())


if __name__ == "__main__":
    sys.exit(main())
