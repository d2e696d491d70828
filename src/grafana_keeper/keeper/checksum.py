"""Content checksums for Grafana payloads.

Grafana may serialize the same object with its fields in a different
order from one request to the next, so payloads are canonicalized
(decoded, then re-encoded with sorted keys and compact separators) before
hashing.  Array order is kept: it is part of the content.

The hash is a reflected CRC-32 built from the polynomial
``CHECKSUM_POLYNOMIAL`` rather than the IEEE one used by ``zlib.crc32``.
"""

from __future__ import annotations

import json
from typing import Any

from grafana_keeper.errors import MalformedPayload

CHECKSUM_POLYNOMIAL = 0xD5828281


def make_table(polynomial: int) -> tuple[int, ...]:
    """Build the 256-entry lookup table for a reflected CRC-32 polynomial."""
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ polynomial
            else:
                crc >>= 1
        table.append(crc)
    return tuple(table)


_TABLE = make_table(CHECKSUM_POLYNOMIAL)


def crc32(data: bytes, table: tuple[int, ...] = _TABLE) -> int:
    """Compute a CRC-32 of *data* with the given lookup *table*."""
    crc = 0xFFFFFFFF
    for byte in data:
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


def decode(payload: bytes | str) -> Any:
    """Decode a JSON payload, raising ``MalformedPayload`` on failure."""
    try:
        return json.loads(payload)
    except ValueError as exc:
        raise MalformedPayload(f"Invalid JSON payload: {exc}") from exc


def encode(value: Any) -> bytes:
    """Encode *value* in canonical form: sorted keys, no whitespace."""
    try:
        text = json.dumps(
            value,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )
    except (TypeError, ValueError) as exc:
        raise MalformedPayload(f"Cannot encode payload: {exc}") from exc
    return text.encode("utf-8")


def canonicalize(payload: bytes | str) -> bytes:
    """Return the canonical byte form of a JSON *payload*."""
    return encode(decode(payload))


def checksum32(payload: bytes | str) -> int:
    """Return the 32-bit content checksum of a JSON *payload*.

    Raises:
        MalformedPayload: If *payload* is not valid JSON.
    """
    return crc32(canonicalize(payload))
