"""Pydantic models for the keeper engine.

- ``ResourceSummary``: one entry of a list endpoint response.
- ``KindPassResult``: outcome of one pass over a single resource kind.
- ``PollReport``: aggregate of one steady-state pass over every kind.

All models are frozen (immutable).
"""

from __future__ import annotations

from pydantic import BaseModel, StrictInt, StrictStr


class ResourceSummary(BaseModel):
    """Minimal listing record for a data source or dashboard.

    Attributes:
        key: Identity used by per-object endpoints (data-source ``id``,
            dashboard ``uid``).
        name: Human-readable name or title, used in log lines.
        slug: Stem of the definition filename.
    """

    key: StrictInt | StrictStr
    name: str
    slug: str

    model_config = {"frozen": True}


class KindPassResult(BaseModel):
    """Result of one pass over one resource kind.

    Attributes:
        kind: Resource kind name (``datasource`` or ``dashboard``).
        listed: Number of resources seen on the server.
        written: Definition file names written during the pass.
        error: Error message if the pass was abandoned.
    """

    kind: str
    listed: int = 0
    written: list[str] = []
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.error is None


class PollReport(BaseModel):
    """Aggregate result of one steady-state polling pass."""

    results: list[KindPassResult] = []

    model_config = {"frozen": True}

    @property
    def written(self) -> list[str]:
        """All files written during the pass, across kinds."""
        return [name for r in self.results for name in r.written]

    @property
    def errors(self) -> list[KindPassResult]:
        return [r for r in self.results if not r.success]

    def summary(self) -> str:
        """One-line summary suitable for an INFO log record."""
        parts = []
        for r in self.results:
            if r.success:
                parts.append(
                    f"{r.kind}: {r.listed} listed, {len(r.written)} saved"
                )
            else:
                parts.append(f"{r.kind}: failed ({r.error})")
        return "; ".join(parts)
