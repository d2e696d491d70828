"""Runtime configuration for the keeper process.

Reads Grafana connection settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    GRAFANA_USER: Basic-auth user injected into the Grafana URL (optional)
    GRAFANA_PASSWORD: Basic-auth password, used only with GRAFANA_USER (optional)
    KEEPER_RETRY_INTERVAL: Seconds between poll passes and bootstrap retries
        (optional, default: 30)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote, urlsplit, urlunsplit

from .errors import ConfigError

if TYPE_CHECKING:
    from .config_schema import UnifiedConfig

logger = logging.getLogger(__name__)

DEFAULT_RETRY_INTERVAL = 30.0
DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass
class Config:
    grafana_url: str
    work_dir: str
    save_script: bool = False
    retry_interval: float = DEFAULT_RETRY_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def parse_save_flag(value: str | None) -> bool:
    """Return True unless *value* is the literal string ``"false"``."""
    if value is None:
        return False
    return value != "false"


def inject_credentials(
    url: str, user: str | None, password: str | None
) -> str:
    """Embed basic-auth userinfo into *url*.

    Nothing changes when *user* is empty.  An empty *password* produces
    ``user@host`` without a colon.
    """
    if not user:
        return url
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    userinfo = quote(user, safe="")
    if password:
        userinfo += ":" + quote(password, safe="")
    return urlunsplit(
        (
            parts.scheme,
            f"{userinfo}@{host}",
            parts.path,
            parts.query,
            parts.fragment,
        )
    )


def redact_url(url: str) -> str:
    """Return *url* with any password replaced by ``***`` for logging."""
    parts = urlsplit(url)
    if parts.password is None:
        return url
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return urlunsplit(
        (
            parts.scheme,
            f"{parts.username}:***@{host}",
            parts.path,
            parts.query,
            parts.fragment,
        )
    )


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ConfigError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ConfigError: If the URL cannot be parsed, the work directory is
            empty, or a numeric setting is out of range.
    """
    config.grafana_url = config.grafana_url.strip()

    if not config.grafana_url.startswith(("http://", "https://")):
        raise ConfigError(
            f"Grafana URL could not be parsed: '{config.grafana_url}' "
            "must start with http:// or https://"
        )

    try:
        parsed = urlsplit(config.grafana_url)
        parsed.port  # noqa: B018 - raises ValueError on a bad port
    except ValueError as exc:
        raise ConfigError(
            f"Grafana URL could not be parsed: '{config.grafana_url}' ({exc})"
        ) from None
    if not parsed.hostname:
        raise ConfigError(
            f"Grafana URL could not be parsed: '{config.grafana_url}' "
            "must include a hostname"
        )

    # Strip trailing slash after validation so endpoint paths join cleanly
    config.grafana_url = config.grafana_url.removesuffix("/")

    if not config.work_dir.strip():
        raise ConfigError("Missing parameter work-dir")

    if config.retry_interval < 0:
        raise ConfigError(
            f"Invalid retry interval {config.retry_interval}: must not be negative"
        )
    if config.request_timeout <= 0:
        raise ConfigError(
            f"Invalid request timeout {config.request_timeout}: must be positive"
        )


def load_config(
    grafana_url: str | None = None,
    work_dir: str | None = None,
    save_script: str | None = None,
    retry_interval: float | None = None,
    fallbacks: UnifiedConfig | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > YAML fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        grafana_url: Grafana base URL from ``--grafana-url``.
        work_dir: Definition directory from ``--work-dir``.
        save_script: Raw ``--save-script`` value.
        retry_interval: Seconds between passes from ``--retry-interval``.
        fallbacks: Parsed YAML config used when CLI and env are unset.

    Returns:
        Validated Config instance with credentials injected into the URL.

    Raises:
        ConfigError: If a required value is missing after checking all
            sources, or a value fails validation.
    """
    from .config_schema import UnifiedConfig

    fb = fallbacks or UnifiedConfig()

    url = grafana_url or fb.grafana.url
    if not url:
        raise ConfigError("Missing parameter grafana-url")

    directory = work_dir or fb.grafana.work_dir
    if not directory:
        raise ConfigError("Missing parameter work-dir")

    if retry_interval is not None:
        final_interval = float(retry_interval)
    else:
        raw_interval = os.getenv("KEEPER_RETRY_INTERVAL")
        if raw_interval is not None:
            try:
                final_interval = float(raw_interval)
            except ValueError:
                raise ConfigError(
                    f"Invalid KEEPER_RETRY_INTERVAL '{raw_interval}': must be a number of seconds"
                ) from None
        else:
            final_interval = fb.keeper.retry_interval

    config = Config(
        grafana_url=url,
        work_dir=directory,
        save_script=parse_save_flag(save_script),
        retry_interval=final_interval,
        request_timeout=fb.grafana.request_timeout,
    )

    validate_config(config)

    config.grafana_url = inject_credentials(
        config.grafana_url,
        os.getenv("GRAFANA_USER"),
        os.getenv("GRAFANA_PASSWORD"),
    )

    return config
