"""HTTP transport shared by the keeper engine and the CLI."""

from .client import GrafanaClient

__all__ = ["GrafanaClient"]
