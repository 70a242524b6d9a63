"""Execution context for testability."""

import os
import shutil
import subprocess
from pathlib import Path
from urllib.request import Request, urlopen


class Context:
    """
    Wraps external calls for testability.

    In production: executes real commands and HTTP requests
    In tests: can be replaced with MockContext
    """

    def check_tool(self, name: str) -> bool:
        """Check if a tool exists in PATH."""
        return shutil.which(name) is not None

    def run(
        self,
        cmd: list[str],
        check: bool = False,
        timeout: int | None = 60,
        **kwargs,
    ) -> subprocess.CompletedProcess:
        """
        Run a command and return result.

        Args:
            cmd: Command and arguments as list
            check: Raise on non-zero exit code
            timeout: Timeout in seconds
            **kwargs: Additional subprocess.run arguments (e.g. input)

        Returns:
            CompletedProcess with stdout, stderr, returncode
        """
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=check,
            timeout=timeout,
            **kwargs,
        )

    def http_get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: int = 10,
    ) -> tuple[int, str]:
        """
        Perform an HTTP GET.

        Args:
            url: URL to fetch
            headers: Extra request headers
            timeout: Timeout in seconds

        Returns:
            Tuple of (status_code, body)

        Raises:
            urllib.error.URLError: On connection failure or HTTP error status
            ValueError: If the URL has no usable scheme
        """
        req = Request(url, headers=headers or {})
        with urlopen(req, timeout=timeout) as response:
            body = response.read().decode("utf-8", errors="replace")
            return response.status, body

    def file_exists(self, path: str) -> bool:
        """Check if file exists."""
        return Path(path).exists()

    def get_env(self, key: str, default: str | None = None) -> str | None:
        """Get environment variable."""
        return os.environ.get(key, default)
