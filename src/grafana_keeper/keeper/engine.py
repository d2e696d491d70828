"""Reconciliation engine that keeps Grafana in step with the work directory.

The ``Keeper`` drives the resource clients, sanitizers, and checksum
utility through one of two modes:

Snapshot
    List every resource of every kind, write each one to the work
    directory, done.  Errors propagate to the caller.

Keep
    1. Bootstrap: delete everything on the server, create every definition
       file found on disk, then checksum what the server now holds.  Any
       failure discards the attempt and the whole sequence starts over from
       the delete stage after the retry interval.
    2. Poll forever: each pass re-checksums every resource and writes only
       those whose checksum differs from the ledger.  A failed pass over a
       kind leaves that kind's ledger section untouched.

State transitions::

    IDLE -> BOOTSTRAP_DELETING -> BOOTSTRAP_LOADING -> BOOTSTRAP_CHECKSUM
         -> STEADY_POLL (loops)
    IDLE -> SNAPSHOT
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from enum import Enum
from pathlib import Path

from grafana_keeper.core.client import GrafanaClient
from grafana_keeper.errors import KeeperError
from grafana_keeper.keeper.checksum import checksum32
from grafana_keeper.keeper.files import list_definitions, write_definition
from grafana_keeper.keeper.kinds import ALL_KINDS, ResourceKind
from grafana_keeper.keeper.ledger import ChecksumLedger, Key
from grafana_keeper.keeper.models import (
    KindPassResult,
    PollReport,
    ResourceSummary,
)
from grafana_keeper.keeper.resources import ResourceClient
from grafana_keeper.keeper.retry import RetryPolicy

logger = logging.getLogger(__name__)


class KeeperState(str, Enum):
    """Lifecycle states of the keeper engine."""

    IDLE = "idle"
    BOOTSTRAP_DELETING = "bootstrap_deleting"
    BOOTSTRAP_LOADING = "bootstrap_loading"
    BOOTSTRAP_CHECKSUM = "bootstrap_checksum"
    STEADY_POLL = "steady_poll"
    SNAPSHOT = "snapshot"


class Keeper:
    """Reconcile Grafana objects with definition files in *work_dir*.

    Args:
        client: Transport for the Grafana API.
        work_dir: Directory holding the definition files.
        kinds: Resource kinds to manage, processed in this order.
    """

    def __init__(
        self,
        client: GrafanaClient,
        work_dir: Path,
        kinds: tuple[ResourceKind, ...] = ALL_KINDS,
    ) -> None:
        self.work_dir = work_dir
        self.kinds = kinds
        self.resources = {
            kind.name: ResourceClient(client, kind) for kind in kinds
        }
        self.state = KeeperState.IDLE

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def snapshot(self) -> PollReport:
        """Write every resource currently on the server to the work directory.

        Existing files are overwritten.  Any error propagates.
        """
        self.state = KeeperState.SNAPSHOT
        results = []
        for kind in self.kinds:
            try:
                section, written = self._capture_kind(kind, {})
            except KeeperError as exc:
                logger.error("Save %ss error: %s", kind.name, exc)
                raise
            results.append(
                KindPassResult(
                    kind=kind.name, listed=len(section), written=written
                )
            )
        return PollReport(results=results)

    def keep(
        self, policy: RetryPolicy, max_passes: int | None = None
    ) -> ChecksumLedger:
        """Bootstrap, then poll until the process is stopped.

        ``max_passes`` bounds the polling loop; the default runs forever.
        """
        ledger = self.bootstrap(policy)
        return self.poll_forever(ledger, policy, max_passes=max_passes)

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def bootstrap(self, policy: RetryPolicy) -> ChecksumLedger:
        """Replace server state with the definition files on disk.

        Runs delete, load, and checksum stages in order.  When any stage
        fails the attempt is abandoned and, after ``policy`` waits, the
        next attempt restarts from the delete stage.

        Returns:
            The baseline ledger of the objects now on the server.

        Raises:
            KeeperError: The last failure, once ``policy`` runs out of
                attempts.  Never raised with an unbounded policy.
        """
        last_error: KeeperError | None = None
        for attempt in policy.attempts():
            try:
                self.state = KeeperState.BOOTSTRAP_DELETING
                self._delete_all()
                self.state = KeeperState.BOOTSTRAP_LOADING
                self._load_all()
                self.state = KeeperState.BOOTSTRAP_CHECKSUM
                ledger = self._checksum_all()
            except KeeperError as exc:
                last_error = exc
                logger.error(
                    "Bootstrap attempt %d failed in stage %s: %s",
                    attempt,
                    self.state.value,
                    exc,
                )
                continue
            logger.info(
                "Bootstrap complete: %d objects loaded from %s",
                len(ledger),
                self.work_dir,
            )
            return ledger

        assert last_error is not None
        raise last_error

    def _delete_all(self) -> None:
        for kind in self.kinds:
            resources = self.resources[kind.name]
            for summary in self._list(kind):
                logger.info("Delete %s: '%s'", kind.name, summary.name)
                try:
                    resources.delete_by_key(summary.key)
                except KeeperError as exc:
                    exc.annotate(f"Delete {kind.name} '{summary.name}'")
                    raise

    def _load_all(self) -> None:
        for kind in self.kinds:
            resources = self.resources[kind.name]
            for path in list_definitions(self.work_dir, kind.file_pattern):
                logger.info("Create %s from: '%s'", kind.name, path)
                try:
                    resources.create_from_file(path)
                except KeeperError as exc:
                    exc.annotate(f"Create {kind.name} from '{path}'")
                    raise

    def _checksum_all(self) -> ChecksumLedger:
        ledger = ChecksumLedger.empty()
        for kind in self.kinds:
            section = {
                summary.key: checksum
                for summary, _, checksum in self._observe(kind)
            }
            ledger = ledger.replace(kind.name, section)
        return ledger

    # ------------------------------------------------------------------
    # Steady-state polling
    # ------------------------------------------------------------------

    def poll_once(
        self, ledger: ChecksumLedger
    ) -> tuple[ChecksumLedger, PollReport]:
        """Run one pass over every kind and persist changed objects.

        Args:
            ledger: Checksums observed on the previous pass.

        Returns:
            The new ledger and a report of the pass.  A kind whose pass
            failed keeps its section from *ledger*.
        """
        self.state = KeeperState.STEADY_POLL
        results = []
        for kind in self.kinds:
            try:
                section, written = self._capture_kind(
                    kind, ledger.section(kind.name)
                )
            except KeeperError as exc:
                logger.error("Save %ss error: %s", kind.name, exc)
                results.append(KindPassResult(kind=kind.name, error=str(exc)))
                continue
            ledger = ledger.replace(kind.name, section)
            results.append(
                KindPassResult(
                    kind=kind.name, listed=len(section), written=written
                )
            )
        return ledger, PollReport(results=results)

    def poll_forever(
        self,
        ledger: ChecksumLedger,
        policy: RetryPolicy,
        max_passes: int | None = None,
    ) -> ChecksumLedger:
        """Poll every ``policy.interval`` seconds.

        Returns the final ledger only when ``max_passes`` is reached.
        """
        passes = 0
        while max_passes is None or passes < max_passes:
            if passes:
                policy.wait()
            ledger, report = self.poll_once(ledger)
            passes += 1
            if report.written or report.errors:
                logger.info("Poll pass %d: %s", passes, report.summary())
            else:
                logger.debug("Poll pass %d: no changes", passes)
        return ledger

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _observe(
        self, kind: ResourceKind
    ) -> Iterator[tuple[ResourceSummary, bytes, int]]:
        """Yield (summary, sanitized payload, checksum) for each resource."""
        resources = self.resources[kind.name]
        for summary in self._list(kind):
            try:
                payload = kind.sanitize(resources.fetch_payload(summary.key))
            except KeeperError as exc:
                exc.annotate(f"Fetch {kind.name} '{summary.name}'")
                raise
            yield summary, payload, checksum32(payload)

    def _list(self, kind: ResourceKind) -> list[ResourceSummary]:
        try:
            return self.resources[kind.name].list()
        except KeeperError as exc:
            exc.annotate(f"List {kind.name}s")
            raise

    def _capture_kind(
        self, kind: ResourceKind, previous: Mapping[Key, int]
    ) -> tuple[dict[Key, int], list[str]]:
        """Write resources of *kind* whose checksum differs from *previous*.

        Returns the freshly computed section and the filenames written.
        """
        section: dict[Key, int] = {}
        written: list[str] = []
        for summary, payload, checksum in self._observe(kind):
            if previous.get(summary.key) != checksum:
                try:
                    filename = kind.filename(summary)
                    logger.info("Save %s: '%s'", kind.name, summary.name)
                    write_definition(self.work_dir / filename, payload)
                except KeeperError as exc:
                    exc.annotate(f"Save {kind.name} '{summary.name}'")
                    raise
                written.append(filename)
            section[summary.key] = checksum
        return section, written
