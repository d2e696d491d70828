"""Strip server-assigned identity from fetched payloads.

A payload fetched from Grafana carries the identity the server assigned
to it.  Before it is written to disk (and later replayed as a creation
request) that identity must go:

* data sources: the numeric ``id`` is removed, Grafana rejects creation
  requests that carry one;
* dashboards: ``dashboard.id`` and ``dashboard.uid`` are set to ``null``,
  Grafana needs an explicit null to allocate a fresh identity on import.

Both functions are pure and return canonically encoded bytes.
"""

from __future__ import annotations

from typing import Any

from grafana_keeper.errors import MalformedPayload
from grafana_keeper.keeper.checksum import decode, encode


def _as_object(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise MalformedPayload(
            f"Expected {what} to be a JSON object, got {type(value).__name__}"
        )
    return value


def sanitize_datasource(payload: bytes | str) -> bytes:
    """Remove the top-level ``id`` from a data-source payload."""
    data = _as_object(decode(payload), "data source payload")
    data.pop("id", None)
    return encode(data)


def sanitize_dashboard(payload: bytes | str) -> bytes:
    """Null out ``dashboard.id`` and ``dashboard.uid`` in a dashboard payload."""
    data = _as_object(decode(payload), "dashboard payload")
    if "dashboard" not in data:
        raise MalformedPayload("Dashboard payload has no 'dashboard' section")
    dashboard = _as_object(data["dashboard"], "'dashboard' section")
    dashboard["id"] = None
    dashboard["uid"] = None
    return encode(data)
