"""Reconciliation engine for Grafana data sources and dashboards.

Architecture
------------
Server objects are compared against the checksums recorded on the
previous pass, never against the files on disk.  Payloads are sanitized
(server identity removed) and canonicalized before hashing, so Grafana
re-ordering fields between requests does not register as a change.

Modules:

- ``engine``    -- ``Keeper``: snapshot, bootstrap, and polling.
- ``kinds``     -- ``ResourceKind`` strategy table (``DATASOURCE``,
  ``DASHBOARD``).
- ``resources`` -- ``ResourceClient``: per-kind list/fetch/create/delete.
- ``checksum``  -- canonical JSON encoding and the 32-bit checksum.
- ``sanitizer`` -- identity stripping for each kind.
- ``ledger``    -- ``ChecksumLedger``: immutable per-kind checksums.
- ``retry``     -- ``RetryPolicy``: constant-interval retries.
- ``files``     -- definition file read/write/glob.
- ``models``    -- ``ResourceSummary``, ``KindPassResult``, ``PollReport``.

Usage example
-------------
::

    from pathlib import Path
    from grafana_keeper.core.client import GrafanaClient
    from grafana_keeper.keeper import Keeper, RetryPolicy

    keeper = Keeper(GrafanaClient(config), Path("/var/grafana-dashboards"))
    keeper.keep(RetryPolicy(interval=30))
"""

from .checksum import canonicalize, checksum32
from .engine import Keeper, KeeperState
from .kinds import ALL_KINDS, DASHBOARD, DATASOURCE, ResourceKind
from .ledger import ChecksumLedger
from .models import KindPassResult, PollReport, ResourceSummary
from .resources import ResourceClient
from .retry import RetryPolicy
from .sanitizer import sanitize_dashboard, sanitize_datasource

__all__ = [
    "ALL_KINDS",
    "ChecksumLedger",
    "DASHBOARD",
    "DATASOURCE",
    "Keeper",
    "KeeperState",
    "KindPassResult",
    "PollReport",
    "ResourceClient",
    "ResourceKind",
    "ResourceSummary",
    "RetryPolicy",
    "canonicalize",
    "checksum32",
    "sanitize_dashboard",
    "sanitize_datasource",
]
