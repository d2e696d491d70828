"""Tests for canonical JSON encoding and the 32-bit content checksum.

Covers:
- Canonicalization is idempotent
- Key order does not change the checksum
- Array order and values do change it
- The table builder reproduces zlib's CRC-32 for the IEEE polynomial
- The pinned polynomial differs from zlib's and has a fixed check value
- Invalid JSON raises MalformedPayload
"""

from __future__ import annotations

import zlib

import pytest

from grafana_keeper.errors import MalformedPayload
from grafana_keeper.keeper.checksum import (
    CHECKSUM_POLYNOMIAL,
    canonicalize,
    checksum32,
    crc32,
    make_table,
)

IEEE_REFLECTED = 0xEDB88320


class TestCanonicalize:
    def test_sorts_keys_and_drops_whitespace(self):
        raw = b'{ "b": 1,\n  "a": {"d": [3, 1], "c": null} }'
        assert canonicalize(raw) == b'{"a":{"c":null,"d":[3,1]},"b":1}'

    def test_is_idempotent(self):
        raw = b'{"title": "CPU", "panels": [{"z": 1, "a": 2}], "id": 7}'
        once = canonicalize(raw)
        assert canonicalize(once) == once
        assert checksum32(once) == checksum32(canonicalize(once))

    def test_keeps_non_ascii_as_utf8(self):
        assert canonicalize('{"name": "Überblick"}') == (
            '{"name":"Überblick"}'.encode("utf-8")
        )

    def test_accepts_str_payload(self):
        assert canonicalize('[1, 2]') == b"[1,2]"


class TestChecksum32:
    def test_key_order_insensitive(self):
        a = b'{"name": "prom", "type": "prometheus", "jsonData": {"x": 1, "y": 2}}'
        b = b'{"jsonData": {"y": 2, "x": 1}, "type": "prometheus", "name": "prom"}'
        assert checksum32(a) == checksum32(b)

    def test_array_order_matters(self):
        assert checksum32(b"[1, 2]") != checksum32(b"[2, 1]")

    def test_value_change_detected(self):
        assert checksum32(b'{"url": "a"}') != checksum32(b'{"url": "b"}')

    def test_result_is_32_bit(self):
        value = checksum32(b'{"a": "' + b"x" * 1000 + b'"}')
        assert 0 <= value <= 0xFFFFFFFF

    def test_invalid_json_raises(self):
        with pytest.raises(MalformedPayload, match="Invalid JSON"):
            checksum32(b"{not json")

    def test_invalid_utf8_raises(self):
        with pytest.raises(MalformedPayload):
            checksum32(b'"\xff\xfe"')


class TestCrcTable:
    def test_ieee_table_matches_zlib(self):
        table = make_table(IEEE_REFLECTED)
        for data in (b"", b"a", b"123456789", b'{"id":null}'):
            assert crc32(data, table) == zlib.crc32(data)

    def test_pinned_polynomial_differs_from_zlib(self):
        data = b'{"name":"prom"}'
        assert CHECKSUM_POLYNOMIAL == 0xD5828281
        assert crc32(data) != zlib.crc32(data)

    def test_known_answer_for_pinned_polynomial(self):
        # Standard CRC check input.
        assert crc32(b"123456789") == 0xA9CC8179

    def test_ieee_known_answer(self):
        assert crc32(b"123456789", make_table(IEEE_REFLECTED)) == 0xCBF43926

    def test_empty_input_is_zero(self):
        assert crc32(b"") == 0

    def test_table_has_256_entries(self):
        table = make_table(CHECKSUM_POLYNOMIAL)
        assert len(table) == 256
        assert table[0] == 0
        assert table[128] == CHECKSUM_POLYNOMIAL
