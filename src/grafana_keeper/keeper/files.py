"""Definition file I/O for the work directory.

Definitions are pretty-printed JSON indented with tabs.  Writes go to a
temporary file in the same directory which then replaces the target, so
a reader never sees a half-written definition.  OS failures surface as
``FilesystemError``.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from grafana_keeper.errors import FilesystemError, MalformedPayload
from grafana_keeper.keeper.checksum import decode


def format_definition(payload: bytes | str) -> bytes:
    """Return *payload* pretty-printed with tab indentation.

    Key order of the payload is kept as is.
    """
    try:
        text = json.dumps(decode(payload), indent="\t", ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise MalformedPayload(f"Cannot format definition: {exc}") from exc
    return text.encode("utf-8")


def write_definition(path: Path, payload: bytes | str) -> int:
    """(Re)write the definition file at *path*.

    Args:
        path: Target file; its parent directory must exist.
        payload: JSON payload to store.

    Returns:
        Number of bytes written.
    """
    content = format_definition(payload)
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=".", suffix=".tmp"
        )
    except OSError as exc:
        raise FilesystemError(f"Cannot write {path}: {exc}") from exc
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        os.replace(tmp_path, path)
    except BaseException as exc:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        if isinstance(exc, OSError):
            raise FilesystemError(f"Cannot write {path}: {exc}") from exc
        raise
    return len(content)


def list_definitions(work_dir: Path, pattern: str) -> list[Path]:
    """Return definition files in *work_dir* matching *pattern*, sorted."""
    if not work_dir.is_dir():
        raise FilesystemError(f"Work directory not found: {work_dir}")
    try:
        return sorted(p for p in work_dir.glob(pattern) if p.is_file())
    except OSError as exc:
        raise FilesystemError(
            f"Cannot list {pattern} in {work_dir}: {exc}"
        ) from exc


def read_definition(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FilesystemError(f"Cannot read {path}: {exc}") from exc
