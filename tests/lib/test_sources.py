"""Tests for stats sources."""

import base64
import subprocess
from urllib.error import HTTPError, URLError

import pytest

from hapcheck.core.config import CheckSettings
from hapcheck.lib.sources import (
    USER_AGENT,
    fetch_payload,
    find_haproxy_socket,
    load_snapshot,
    query_http,
    query_socket,
    socket_address,
    stats_url,
)
from hapcheck.lib.stats import StatsError


@pytest.fixture
def healthy_csv(fixtures_dir):
    return (fixtures_dir / "haproxy" / "stats_healthy.csv").read_text()


class TestSocketAddress:
    @pytest.mark.parametrize(
        "target,expected",
        [
            ("/run/haproxy/admin.sock", "UNIX-CONNECT:/run/haproxy/admin.sock"),
            ("unix:///var/lib/haproxy/stats", "UNIX-CONNECT:/var/lib/haproxy/stats"),
            ("10.0.0.5:9999", "TCP:10.0.0.5:9999"),
            ("tcp://lb1.example.com:9999", "TCP:lb1.example.com:9999"),
            ("haproxy.sock", "UNIX-CONNECT:haproxy.sock"),
        ],
    )
    def test_translates_targets(self, target, expected):
        assert socket_address(target) == expected


class TestQuerySocket:
    def test_missing_socat_is_unavailable(self, mock_context):
        ctx = mock_context(tools_available=[])

        with pytest.raises(StatsError) as exc:
            query_socket("/run/haproxy/admin.sock", ctx)

        assert exc.value.unavailable is True
        assert "socat" in str(exc.value)

    def test_missing_socket_file(self, mock_context):
        ctx = mock_context(tools_available=["socat"])

        with pytest.raises(StatsError) as exc:
            query_socket("/custom/haproxy.sock", ctx)

        assert exc.value.unavailable is False
        assert "Socket not found" in str(exc.value)

    def test_sends_show_stat(self, mock_context, healthy_csv):
        ctx = mock_context(
            tools_available=["socat"],
            file_contents={"/custom/haproxy.sock": ""},
            command_outputs={
                ("socat", "-", "UNIX-CONNECT:/custom/haproxy.sock"): healthy_csv,
            },
        )

        data = query_socket("/custom/haproxy.sock", ctx)

        assert data == healthy_csv
        assert ctx.command_inputs == ["show stat\n"]

    def test_remote_socket_skips_file_check(self, mock_context, healthy_csv):
        ctx = mock_context(
            tools_available=["socat"],
            command_outputs={("socat", "-", "TCP:10.0.0.5:9999"): healthy_csv},
        )

        assert query_socket("10.0.0.5:9999", ctx) == healthy_csv

    def test_socat_failure(self, mock_context):
        cmd = ["socat", "-", "UNIX-CONNECT:/run/haproxy/admin.sock"]
        ctx = mock_context(
            tools_available=["socat"],
            file_contents={"/run/haproxy/admin.sock": ""},
            command_outputs={
                tuple(cmd): subprocess.CompletedProcess(
                    cmd, returncode=1, stdout="", stderr="Connection refused"
                ),
            },
        )

        with pytest.raises(StatsError) as exc:
            query_socket("/run/haproxy/admin.sock", ctx)

        assert "Connection refused" in str(exc.value)

    def test_socat_timeout(self, mock_context):
        cmd = ("socat", "-", "TCP:lb:9999")
        ctx = mock_context(
            tools_available=["socat"],
            command_outputs={cmd: subprocess.TimeoutExpired(list(cmd), 10)},
        )

        with pytest.raises(StatsError) as exc:
            query_socket("lb:9999", ctx)

        assert "Timed out" in str(exc.value)


class TestFindSocket:
    def test_finds_first_existing(self, mock_context):
        ctx = mock_context(file_contents={"/var/lib/haproxy/stats": ""})

        assert find_haproxy_socket(ctx) == "/var/lib/haproxy/stats"

    def test_none_when_absent(self, mock_context):
        assert find_haproxy_socket(mock_context()) is None


class TestQueryHttp:
    def test_appends_json_suffix(self):
        assert stats_url("http://lb:8404/stats") == "http://lb:8404/stats;json"
        assert stats_url("http://lb:8404/stats;csv") == "http://lb:8404/stats;csv"
        assert stats_url("http://demo.haproxy.org/;json") == "http://demo.haproxy.org/;json"

    def test_basic_auth_needs_both_credentials(self, mock_context):
        ctx = mock_context(http_responses={"http://lb/stats;json": "[]"})

        query_http("http://lb/stats", ctx, username="admin")

        _, headers = ctx.requests[0]
        assert "Authorization" not in headers
        assert headers["User-Agent"] == USER_AGENT

    def test_basic_auth_header(self, mock_context):
        ctx = mock_context(http_responses={"http://lb/stats;json": "[]"})

        query_http("http://lb/stats", ctx, username="admin", password="secret")

        _, headers = ctx.requests[0]
        expected = base64.b64encode(b"admin:secret").decode("ascii")
        assert headers["Authorization"] == f"Basic {expected}"

    def test_non_200_status(self, mock_context):
        ctx = mock_context(http_responses={"http://lb/stats;json": (204, "")})

        with pytest.raises(StatsError) as exc:
            query_http("http://lb/stats", ctx)

        assert "204" in str(exc.value)

    def test_http_error(self, mock_context):
        error = HTTPError("http://lb/stats;json", 401, "Unauthorized", {}, None)
        ctx = mock_context(http_responses={"http://lb/stats;json": error})

        with pytest.raises(StatsError) as exc:
            query_http("http://lb/stats", ctx)

        assert "401" in str(exc.value)

    def test_connection_error(self, mock_context):
        ctx = mock_context(http_responses={"http://lb/stats;json": URLError("refused")})

        with pytest.raises(StatsError) as exc:
            query_http("http://lb/stats", ctx)

        assert "Cannot connect" in str(exc.value)

    def test_url_without_scheme(self, mock_context):
        error = ValueError("unknown url type: 'lb01/stats;json'")
        ctx = mock_context(http_responses={"lb01/stats;json": error})

        with pytest.raises(StatsError) as exc:
            query_http("lb01/stats", ctx)

        assert exc.value.unavailable is False
        assert "Invalid HAProxy stats URL" in str(exc.value)


class TestFetchPayload:
    def test_url_wins(self, mock_context):
        ctx = mock_context(http_responses={"http://lb/stats;json": "[]"})
        settings = CheckSettings(url="http://lb/stats")

        target, payload = fetch_payload(settings, ctx)

        assert (target, payload) == ("http://lb/stats", "[]")

    def test_autodetects_socket(self, mock_context, healthy_csv):
        ctx = mock_context(
            tools_available=["socat"],
            file_contents={"/run/haproxy.sock": ""},
            command_outputs={("socat", "-", "UNIX-CONNECT:/run/haproxy.sock"): healthy_csv},
        )

        target, payload = fetch_payload(CheckSettings(), ctx)

        assert target == "/run/haproxy.sock"
        assert payload == healthy_csv

    def test_no_socket_found_is_unavailable(self, mock_context):
        ctx = mock_context(tools_available=["socat"])

        with pytest.raises(StatsError) as exc:
            fetch_payload(CheckSettings(), ctx)

        assert exc.value.unavailable is True


class TestLoadSnapshot:
    def test_decodes_records(self, healthy_csv):
        records = load_snapshot(healthy_csv)

        assert len(records) == 6

    def test_empty_snapshot_raises(self):
        with pytest.raises(StatsError) as exc:
            load_snapshot("# pxname,svname,status\n")

        assert "No stats data" in str(exc.value)

    def test_bad_json_raises(self):
        with pytest.raises(StatsError):
            load_snapshot("[[{")
