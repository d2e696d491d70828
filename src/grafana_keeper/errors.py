"""Error taxonomy shared by the transport, sanitizer, and keeper engine.

Every failure the keeper can retry or report derives from ``KeeperError``
so the engine can treat them uniformly:

- ``TransportError``: network or connection failure talking to Grafana.
- ``UpstreamStatus``: Grafana answered with a status other than 200.
- ``MalformedPayload``: JSON decode/encode failure or unexpected shape.
- ``FilesystemError``: reading, writing, or globbing definition files failed.

``ConfigError`` is separate: it is raised at startup only and is always
fatal.
"""

from __future__ import annotations


class KeeperError(Exception):
    """Base class for all recoverable keeper failures.

    ``context`` names the operation and object being handled when the
    error surfaced, e.g. ``Fetch dashboard 'Latency'``.  It is set once by
    ``annotate`` and prefixed to the message.
    """

    context: str | None = None

    def annotate(self, context: str) -> KeeperError:
        """Attach *context* unless an inner step already did."""
        if self.context is None:
            self.context = context
        return self

    def __str__(self) -> str:
        message = super().__str__()
        if self.context:
            return f"{self.context}: {message}"
        return message


class TransportError(KeeperError):
    """The request never produced an HTTP response."""


class UpstreamStatus(KeeperError):
    """Grafana returned a non-200 status code.

    Attributes:
        code: HTTP status code returned by Grafana.
        message: Reason phrase or response body excerpt.
    """

    _HINTS: dict[int, str] = {
        401: "[Invalid credentials] ",
        409: "[Creating duplicate object] ",
    }

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(
            f"{self.hint}Status code returned from Grafana API "
            f"(got: {code}, expected: 200, msg: {message})"
        )

    @property
    def hint(self) -> str:
        """Human-readable prefix for well-known status codes."""
        return self._HINTS.get(self.code, "")


class MalformedPayload(KeeperError):
    """A payload was not valid JSON or lacked the expected structure."""


class FilesystemError(KeeperError):
    """A definition file could not be listed, read, or written."""


class ConfigError(ValueError):
    """Startup configuration is missing or invalid."""
