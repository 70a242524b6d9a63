"""HAProxy status check for monitoring pipelines."""

__version__ = "0.1.0"
