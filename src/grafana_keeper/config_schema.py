"""Configuration file schema for grafana_keeper.

Defines Pydantic models for the YAML config structure with dedicated
sections for the Grafana connection, the keeper loop, and logging.

Usage:
    from grafana_keeper.config_loader import load_hierarchical_config
    from grafana_keeper.config_schema import build_config

    unified = build_config(load_hierarchical_config())
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class GrafanaConfig(BaseModel):
    """Grafana server connection settings.

    All fields are optional to support zero-config: CLI args can supply
    them at runtime instead.
    """

    url: str | None = Field(default=None, description="Grafana server URL")
    work_dir: str | None = Field(
        default=None,
        description="Directory holding *-datasource.json and *-dashboard.json files",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request connect/read timeout in seconds",
    )

    model_config = {"frozen": True}


class KeeperConfig(BaseModel):
    """Polling and retry settings."""

    retry_interval: float = Field(
        default=30.0,
        ge=0,
        description="Seconds between poll passes and bootstrap retries",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: "text" or "json".
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: str = Field(
        default="text", pattern="^(text|json)$", description="Log format"
    )

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    grafana: GrafanaConfig = Field(default_factory=GrafanaConfig)
    keeper: KeeperConfig = Field(default_factory=KeeperConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully -- anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.

    Raises:
        pydantic.ValidationError: If a section holds invalid values.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
