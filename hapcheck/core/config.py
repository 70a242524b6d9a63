"""Configuration loading with layered overrides.

Precedence, highest first: command line, environment, project config
(``.hapcheck.yaml``), user config (``~/.config/hapcheck/config.yaml``),
built-in defaults.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from hapcheck.core.context import Context


PROJECT_CONFIG = ".hapcheck.yaml"

DEFAULT_TIMEOUT = 10

TRUE_VALUES = {"1", "true", "yes", "on"}

# config key -> environment variable
ENV_VARS = {
    "socket": "HAPROXY_SOCKET",
    "url": "HAPROXY_URL",
    "admin_user": "HAPROXY_ADMIN_USER",
    "admin_pass": "HAPROXY_ADMIN_PASS",
    "backends": "HAPROXY_BACKENDS",
    "servers": "HAPROXY_SERVERS",
    "backend": "HAPROXY_BACKEND",
    "server": "HAPROXY_SERVER",
    "check_missing": "HAPROXY_CHECK_MISSING",
    "list": "HAPROXY_LIST",
    "timeout": "HAPROXY_TIMEOUT",
    "log_dir": "HAPCHECK_LOG_DIR",
}

BOOL_KEYS = {"backends", "servers", "list", "warn_only", "log"}


class ConfigError(Exception):
    """Error loading or validating configuration."""

    pass


@dataclass(frozen=True)
class CheckSettings:
    """Fully resolved options for one run."""

    socket: str | None = None
    url: str | None = None
    admin_user: str | None = None
    admin_pass: str | None = None
    backends: bool = False
    servers: bool = False
    backend: str | None = None
    server: str | None = None
    check_missing: tuple[str, ...] = ()
    list_only: bool = False
    timeout: int = DEFAULT_TIMEOUT
    format: str = "plain"
    warn_only: bool = False
    log: bool = False
    log_dir: str | None = None


def user_config_path() -> Path:
    return Path.home() / ".config" / "hapcheck" / "config.yaml"


def load_config_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML config file if it exists.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping
    """
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a YAML mapping: {path}")

    # Allow dashed keys to mirror the flag names
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def load_layered_config(
    project_path: Path | None = None,
    user_path: Path | None = None,
) -> dict[str, Any]:
    """Merge user config under project config."""
    merged = load_config_file(user_path or user_config_path())
    merged.update(load_config_file(project_path or Path(PROJECT_CONFIG)))
    return merged


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def parse_names(value: Any) -> list[str]:
    """Split a name list given as a list, a comma string, or a mix."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]

    names = []
    for item in value:
        for name in str(item).split(","):
            name = name.strip()
            if name:
                names.append(name)
    return names


def _lookup(key: str, cli: dict[str, Any], config: dict[str, Any], context: "Context") -> Any:
    """Return the highest-precedence value for a key, or None."""
    value = cli.get(key)
    if value is not None:
        return value

    env_var = ENV_VARS.get(key)
    if env_var:
        value = context.get_env(env_var)
        if value not in (None, ""):
            return value

    return config.get(key)


def resolve_settings(
    cli: dict[str, Any],
    context: "Context",
    config: dict[str, Any] | None = None,
) -> CheckSettings:
    """
    Resolve settings from command line, environment and config files.

    Args:
        cli: Parsed command-line values, None where not given
        context: Execution context (environment access)
        config: Merged config file contents (default: load layered config)

    Returns:
        CheckSettings

    Raises:
        ConfigError: If a config file or value is invalid
    """
    if config is None:
        config = load_layered_config()

    values: dict[str, Any] = {}
    for key in ("socket", "url", "admin_user", "admin_pass", "backend", "server", "log_dir"):
        value = _lookup(key, cli, config, context)
        values[key] = str(value) if value not in (None, "") else None

    for key in BOOL_KEYS:
        value = _lookup(key, cli, config, context)
        values[key] = parse_bool(value) if value is not None else False

    timeout = _lookup("timeout", cli, config, context)
    try:
        timeout = int(timeout) if timeout is not None else DEFAULT_TIMEOUT
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout: {timeout!r}")
    if timeout <= 0:
        raise ConfigError(f"Timeout must be positive: {timeout}")

    output_format = _lookup("format", cli, config, context) or "plain"
    if output_format not in ("plain", "json"):
        raise ConfigError(f"Invalid format: {output_format!r}")

    return CheckSettings(
        socket=values["socket"],
        url=values["url"],
        admin_user=values["admin_user"],
        admin_pass=values["admin_pass"],
        backends=values["backends"],
        servers=values["servers"],
        backend=values["backend"],
        server=values["server"],
        check_missing=tuple(parse_names(_lookup("check_missing", cli, config, context))),
        list_only=values["list"],
        timeout=timeout,
        format=output_format,
        warn_only=values["warn_only"],
        log=values["log"] or values["log_dir"] is not None,
        log_dir=values["log_dir"],
    )
