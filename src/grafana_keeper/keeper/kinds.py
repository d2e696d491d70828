"""Strategy table for the two resource kinds the keeper manages.

Each ``ResourceKind`` supplies everything that differs between data
sources and dashboards: endpoints, how listing entries become
``ResourceSummary`` records, the definition filename suffix, and the
payload sanitizer.  The engine runs one algorithm over ``ALL_KINDS``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import quote

from pydantic import ValidationError

from grafana_keeper.errors import MalformedPayload
from grafana_keeper.keeper.models import ResourceSummary
from grafana_keeper.keeper.sanitizer import (
    sanitize_dashboard,
    sanitize_datasource,
)

# Grafana's /api/search also returns folders; only these are dashboards.
_DASHBOARD_TYPE = "dash-db"
_DASHBOARD_URI_PREFIX = "db/"

# Characters that would move a definition file out of the work directory
# or that the OS refuses in a filename.
_FORBIDDEN_SLUG_CHARS = ("/", "\\", "\x00")


@dataclass(frozen=True)
class ResourceKind:
    """Per-kind endpoints and conversion functions.

    Attributes:
        name: Short kind name used in filenames and logs.
        list_path: Endpoint returning the listing.
        create_path: Endpoint accepting creation payloads.
        item_path_template: Per-object endpoint with a ``{key}`` field.
        file_suffix: Definition filename suffix, including ``.json``.
        summarize: Turns one listing entry into a summary, or ``None`` to
            skip the entry.
        sanitize: Strips server identity from a fetched payload.
    """

    name: str
    list_path: str
    create_path: str
    item_path_template: str
    file_suffix: str
    summarize: Callable[[dict], ResourceSummary | None]
    sanitize: Callable[[bytes], bytes]

    @property
    def file_pattern(self) -> str:
        return f"*{self.file_suffix}"

    def item_path(self, key: int | str) -> str:
        return self.item_path_template.format(key=quote(str(key), safe=""))

    def filename(self, summary: ResourceSummary) -> str:
        """Return the definition filename for *summary*.

        Raises:
            MalformedPayload: If the slug contains a path separator or NUL.
        """
        if any(char in summary.slug for char in _FORBIDDEN_SLUG_CHARS):
            raise MalformedPayload(
                f"Unusable {self.name} filename slug: {summary.slug!r}"
            )
        return f"{summary.slug}{self.file_suffix}"

    def parse_listing(self, data: Any) -> list[ResourceSummary]:
        """Convert a decoded list response into summaries.

        Raises:
            MalformedPayload: If the listing is not an array of objects
                with the fields this kind needs.
        """
        if not isinstance(data, list):
            raise MalformedPayload(
                f"Expected {self.list_path} to return a JSON array"
            )
        summaries = []
        for entry in data:
            if not isinstance(entry, dict):
                raise MalformedPayload(
                    f"Unexpected {self.name} listing entry: {entry!r}"
                )
            try:
                summary = self.summarize(entry)
            except (KeyError, ValidationError) as exc:
                raise MalformedPayload(
                    f"Incomplete {self.name} listing entry: {exc}"
                ) from exc
            if summary is not None:
                summaries.append(summary)
        return summaries


def _summarize_datasource(entry: dict) -> ResourceSummary:
    return ResourceSummary(
        key=entry["id"], name=entry["name"], slug=entry["name"]
    )


def _summarize_dashboard(entry: dict) -> ResourceSummary | None:
    if entry.get("type", _DASHBOARD_TYPE) != _DASHBOARD_TYPE:
        return None
    uid = entry["uid"]
    uri = entry.get("uri") or ""
    slug = uri.removeprefix(_DASHBOARD_URI_PREFIX) or uid
    return ResourceSummary(key=uid, name=entry.get("title", uid), slug=slug)


DATASOURCE = ResourceKind(
    name="datasource",
    list_path="/api/datasources",
    create_path="/api/datasources",
    item_path_template="/api/datasources/{key}",
    file_suffix="-datasource.json",
    summarize=_summarize_datasource,
    sanitize=sanitize_datasource,
)

DASHBOARD = ResourceKind(
    name="dashboard",
    list_path="/api/search",
    create_path="/api/dashboards/db",
    item_path_template="/api/dashboards/uid/{key}",
    file_suffix="-dashboard.json",
    summarize=_summarize_dashboard,
    sanitize=sanitize_dashboard,
)

ALL_KINDS: tuple[ResourceKind, ...] = (DATASOURCE, DASHBOARD)
