"""In-memory checksum ledger.

The ledger maps each resource kind to ``{identity key: checksum}`` as
observed on the last successful pass over that kind.  It is immutable:
``replace()`` returns a new ledger with one section swapped wholesale, so
a pass builds its section locally and commits it in a single step, and
keys of objects that disappeared from the server never survive.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

Key = int | str


class ChecksumLedger:
    """Immutable per-kind record of last-observed content checksums."""

    def __init__(
        self, sections: Mapping[str, Mapping[Key, int]] | None = None
    ) -> None:
        self._sections: dict[str, Mapping[Key, int]] = {
            kind: MappingProxyType(dict(section))
            for kind, section in (sections or {}).items()
        }

    @classmethod
    def empty(cls) -> ChecksumLedger:
        return cls()

    def section(self, kind: str) -> Mapping[Key, int]:
        """Return the read-only section for *kind* (empty if never set)."""
        return self._sections.get(kind, MappingProxyType({}))

    def get(self, kind: str, key: Key) -> int | None:
        return self.section(kind).get(key)

    def replace(self, kind: str, section: Mapping[Key, int]) -> ChecksumLedger:
        """Return a new ledger whose *kind* section is exactly *section*."""
        sections = dict(self._sections)
        sections[kind] = section
        return ChecksumLedger(sections)

    def kinds(self) -> Iterator[str]:
        return iter(self._sections)

    def __len__(self) -> int:
        return sum(len(s) for s in self._sections.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChecksumLedger):
            return NotImplemented
        mine = {k: dict(v) for k, v in self._sections.items() if v}
        theirs = {k: dict(v) for k, v in other._sections.items() if v}
        return mine == theirs

    def __repr__(self) -> str:
        body = ", ".join(
            f"{kind}={dict(section)!r}"
            for kind, section in self._sections.items()
        )
        return f"ChecksumLedger({body})"
