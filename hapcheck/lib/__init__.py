"""Stats acquisition and decoding."""

from hapcheck.lib.sources import fetch_payload, find_haproxy_socket, load_snapshot, query_http, query_socket
from hapcheck.lib.stats import StatsError, decode_records, parse_csv_stats, parse_json_stats, parse_stats

__all__ = [
    "StatsError",
    "decode_records",
    "fetch_payload",
    "find_haproxy_socket",
    "load_snapshot",
    "parse_csv_stats",
    "parse_json_stats",
    "parse_stats",
    "query_http",
    "query_socket",
]
