"""Per-kind resource operations on top of ``GrafanaClient``.

``ResourceClient`` binds the transport to one ``ResourceKind`` and offers
the five operations the engine needs.  Nothing here retries: every error
propagates to the caller unchanged.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

from grafana_keeper.core.client import GrafanaClient
from grafana_keeper.keeper.checksum import decode
from grafana_keeper.keeper.files import read_definition
from grafana_keeper.keeper.kinds import DATASOURCE, ResourceKind
from grafana_keeper.keeper.models import ResourceSummary


class ResourceClient:
    """List, fetch, create, and delete resources of a single kind.

    Args:
        client: Transport used for every request.
        kind: Strategy entry describing the resource kind.
    """

    def __init__(self, client: GrafanaClient, kind: ResourceKind) -> None:
        self.client = client
        self.kind = kind

    def list(self) -> list[ResourceSummary]:
        """Return summaries of every resource of this kind on the server."""
        body = self.client.get(self.kind.list_path)
        return self.kind.parse_listing(decode(body))

    def fetch_payload(self, key: int | str) -> bytes:
        """Return the raw JSON body of the resource identified by *key*."""
        return self.client.get(self.kind.item_path(key))

    def create_from_payload(self, payload: bytes) -> None:
        """POST an already sanitized *payload* as a new resource."""
        self.client.post(self.kind.create_path, payload)

    def create_from_file(self, path: Path) -> None:
        """POST the bytes of definition file *path* unchanged."""
        self.client.post(self.kind.create_path, read_definition(path))

    def delete_by_key(self, key: int | str) -> None:
        self.client.delete(self.kind.item_path(key))

    def fetch_datasource_by_name(self, name: str) -> bytes:
        """Return a data source payload looked up by its unique name."""
        if self.kind is not DATASOURCE:
            raise TypeError(
                f"Lookup by name is only supported for data sources, not {self.kind.name}"
            )
        return self.client.get(
            f"/api/datasources/name/{quote(name, safe='')}"
        )
