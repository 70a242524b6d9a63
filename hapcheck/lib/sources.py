"""Acquisition of HAProxy stats snapshots over a socket or HTTP."""

import base64
import csv
import re
import subprocess
from typing import TYPE_CHECKING
from urllib.error import HTTPError, URLError

from hapcheck import __version__
from hapcheck.core.models import StatusRecord
from hapcheck.lib.stats import StatsError, decode_records, parse_stats

if TYPE_CHECKING:
    from hapcheck.core.config import CheckSettings
    from hapcheck.core.context import Context


DEFAULT_SOCKET_PATHS = [
    "/run/haproxy/admin.sock",
    "/var/run/haproxy/admin.sock",
    "/var/lib/haproxy/stats",
    "/run/haproxy.sock",
    "/var/run/haproxy.sock",
]

SHOW_STAT = "show stat\n"

USER_AGENT = f"hapcheck/{__version__}"

HOST_PORT = re.compile(r"^(?:tcp://)?(?P<host>[^/:]+|\[[0-9a-fA-F:]+\]):(?P<port>\d+)$")


def _default_context(context: "Context | None") -> "Context":
    if context is None:
        from hapcheck.core.context import Context
        context = Context()
    return context


def find_haproxy_socket(context: "Context | None" = None) -> str | None:
    """Find the HAProxy stats socket."""
    context = _default_context(context)
    for path in DEFAULT_SOCKET_PATHS:
        if context.file_exists(path):
            return path
    return None


def socket_address(target: str) -> str:
    """
    Translate a socket target into a socat address.

    ``/path`` and ``unix:///path`` become UNIX-CONNECT, ``host:port`` and
    ``tcp://host:port`` become TCP.
    """
    if target.startswith("unix://"):
        return f"UNIX-CONNECT:{target[len('unix://'):]}"

    match = HOST_PORT.match(target)
    if match and not target.startswith("/"):
        return f"TCP:{match.group('host')}:{match.group('port')}"

    return f"UNIX-CONNECT:{target}"


def query_socket(target: str, context: "Context | None" = None, timeout: int = 10) -> str:
    """
    Send ``show stat`` to a stats socket and return the CSV reply.

    Raises:
        StatsError: If socat is missing, the socket is absent or the query fails
    """
    context = _default_context(context)

    if not context.check_tool("socat"):
        raise StatsError("socat not found. Install socat package.", unavailable=True)

    address = socket_address(target)
    if address.startswith("UNIX-CONNECT:"):
        path = address[len("UNIX-CONNECT:"):]
        if not context.file_exists(path):
            raise StatsError(f"Socket not found: {path}")

    try:
        result = context.run(
            ["socat", "-", address],
            check=False,
            timeout=timeout,
            input=SHOW_STAT,
        )
    except subprocess.TimeoutExpired:
        raise StatsError(f"Timed out querying HAProxy socket {target}")

    if result.returncode != 0:
        detail = (result.stderr or "").strip() or f"socat exited with {result.returncode}"
        raise StatsError(f"Cannot connect to HAProxy socket {target}: {detail}")

    return result.stdout


def stats_url(url: str) -> str:
    """Append ``;json`` unless the URL already selects a format."""
    if url.endswith((";json", ";csv")):
        return url
    return url + ";json"


def basic_auth_header(username: str, password: str) -> str:
    credentials = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return f"Basic {credentials}"


def query_http(
    url: str,
    context: "Context | None" = None,
    username: str | None = None,
    password: str | None = None,
    timeout: int = 10,
) -> str:
    """
    Fetch the HAProxy stats page.

    Basic auth is only sent when both username and password are set.

    Raises:
        StatsError: On an invalid URL, connection failure or a non-200 response
    """
    context = _default_context(context)
    url = stats_url(url)

    headers = {
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
    }
    if username and password:
        headers["Authorization"] = basic_auth_header(username, password)

    try:
        status, body = context.http_get(url, headers=headers, timeout=timeout)
    except HTTPError as e:
        raise StatsError(f"Bad HTTP status from {url}: {e.code}")
    except (URLError, OSError) as e:
        raise StatsError(f"Cannot connect to HAProxy stats at {url}: {e}")
    except ValueError as e:
        raise StatsError(f"Invalid HAProxy stats URL {url}: {e}")

    if status != 200:
        raise StatsError(f"Bad HTTP status from {url}: {status}")

    return body


def fetch_payload(settings: "CheckSettings", context: "Context | None" = None) -> tuple[str, str]:
    """
    Query whichever source the settings select.

    The URL wins when set; otherwise the configured or auto-detected socket.

    Returns:
        Tuple of (target, raw payload)
    """
    context = _default_context(context)

    if settings.url:
        payload = query_http(
            settings.url,
            context,
            username=settings.admin_user,
            password=settings.admin_pass,
            timeout=settings.timeout,
        )
        return settings.url, payload

    target = settings.socket or find_haproxy_socket(context)
    if not target:
        raise StatsError(
            "HAProxy stats socket not found. Tried: " + ", ".join(DEFAULT_SOCKET_PATHS),
            unavailable=True,
        )
    return target, query_socket(target, context, timeout=settings.timeout)


def load_snapshot(payload: str) -> list[StatusRecord]:
    """
    Decode a raw payload into status records.

    Raises:
        StatsError: If decoding fails or the snapshot is empty
    """
    try:
        stats = parse_stats(payload)
    except (csv.Error, ValueError) as e:
        raise StatsError(f"Failed to parse HAProxy stats: {e}")

    records = decode_records(stats)
    if not records:
        raise StatsError("No stats data received from HAProxy")
    return records

