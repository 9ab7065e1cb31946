"""
Test suite for the RLP encoder and hex helpers.
"""

import pytest

from ethtx.codec import hexutil
from ethtx.codec.rlp import (
    ByteString,
    RLPList,
    _length_prefix,
    encode,
    encode_bytes,
    encode_list,
    encode_uint,
)
from ethtx.errors import EncodingError


LOREM = b"Lorem ipsum dolor sit amet, consectetur adipisicing elit"


# ============================================================================
# Test Byte Strings
# ============================================================================

class TestByteStrings:
    """Tests for string encoding and the single-byte rule."""

    def test_empty_string(self):
        assert encode(ByteString()) == b"\x80"

    def test_single_low_byte_encodes_as_itself(self):
        assert encode_bytes(b"\x00") == b"\x00"
        assert encode_bytes(b"\x7f") == b"\x7f"

    def test_single_high_byte_gets_prefix(self):
        assert encode_bytes(b"\x80") == b"\x81\x80"

    def test_short_string(self):
        assert encode_bytes(b"dog") == bytes.fromhex("83646f67")

    def test_55_byte_string_uses_short_form(self):
        data = b"a" * 55
        assert encode_bytes(data) == bytes([0x80 + 55]) + data

    def test_56_byte_string_uses_long_form(self):
        assert len(LOREM) == 56
        assert encode_bytes(LOREM) == b"\xb8\x38" + LOREM

    def test_1024_byte_string(self):
        data = b"\x01" * 1024
        assert encode_bytes(data) == b"\xb9\x04\x00" + data

    def test_rejects_non_bytes(self):
        with pytest.raises(EncodingError):
            ByteString("dog")


# ============================================================================
# Test Integers
# ============================================================================

class TestIntegers:
    """Integers are minimal big-endian byte strings."""

    @pytest.mark.parametrize("value,expected", [
        (0, "80"),
        (1, "01"),
        (15, "0f"),
        (127, "7f"),
        (128, "8180"),
        (1024, "820400"),
        (0xFFFFFF, "83ffffff"),
    ])
    def test_encode_uint(self, value, expected):
        assert encode_uint(value).hex() == expected

    def test_zero_int_differs_from_zero_byte(self):
        assert encode(ByteString.from_int(0)) == b"\x80"
        assert encode(ByteString(b"\x00")) == b"\x00"

    def test_large_integer(self):
        value = 2 ** 256 - 1
        assert encode_uint(value) == b"\xa0" + b"\xff" * 32

    def test_negative_rejected(self):
        with pytest.raises(EncodingError):
            ByteString.from_int(-1)

    def test_bool_rejected(self):
        with pytest.raises(EncodingError):
            ByteString.from_int(True)

    def test_fixed_width_keeps_leading_zeros(self):
        item = ByteString.fixed(b"\x01", 20)
        assert len(item) == 20
        assert encode(item) == b"\x94" + b"\x00" * 19 + b"\x01"

    def test_fixed_width_overflow(self):
        with pytest.raises(EncodingError):
            ByteString.fixed(b"\x01" * 21, 20)

    def test_from_hex_preserves_leading_zeros(self):
        assert ByteString.from_hex("0x0001").data == b"\x00\x01"


# ============================================================================
# Test Lists
# ============================================================================

class TestLists:
    """Tests for list encoding."""

    def test_empty_list(self):
        assert encode(RLPList()) == b"\xc0"

    def test_string_list(self):
        items = [ByteString(b"cat"), ByteString(b"dog")]
        assert encode_list(items) == bytes.fromhex("c88363617483646f67")

    def test_set_theoretic_nesting(self):
        # [ [], [[]], [ [], [[]] ] ]
        empty = RLPList()
        item = RLPList([
            empty,
            RLPList([empty]),
            RLPList([empty, RLPList([empty])]),
        ])
        assert encode(item) == bytes.fromhex("c7c0c1c0c3c0c1c0")

    def test_long_list(self):
        items = [ByteString(LOREM)]
        payload = b"\xb8\x38" + LOREM
        assert encode_list(items) == bytes([0xF8, len(payload)]) + payload

    def test_list_items_are_frozen_to_tuple(self):
        source = [ByteString(b"a")]
        item = RLPList(source)
        source.append(ByteString(b"b"))
        assert len(item) == 1

    def test_unsupported_nested_item(self):
        with pytest.raises(EncodingError):
            encode(RLPList([b"raw bytes"]))

    def test_unsupported_top_level_item(self):
        with pytest.raises(EncodingError):
            encode(42)

    def test_length_of_length_bound(self):
        with pytest.raises(EncodingError):
            _length_prefix(2 ** 64, 0x80, 0xB7)


# ============================================================================
# Test Hex Helpers
# ============================================================================

class TestHexHelpers:
    """Tests for canonical hex conversion."""

    @pytest.mark.parametrize("value,expected", [
        (0, "0x0"),
        (21000, "0x5208"),
        ("21000", "0x5208"),
        ("0x0005208", "0x5208"),
    ])
    def test_to_hex(self, value, expected):
        assert hexutil.to_hex(value) == expected

    @pytest.mark.parametrize("value", [-1, "-5", "12abc", "0xzz", True, 1.5])
    def test_to_hex_rejects(self, value):
        with pytest.raises(EncodingError):
            hexutil.to_hex(value)

    def test_is_hex(self):
        assert hexutil.is_hex("0xdeadBEEF")
        assert hexutil.is_hex("deadbeef")
        assert not hexutil.is_hex("0x")
        assert hexutil.is_hex("0x", allow_empty=True)
        assert not hexutil.is_hex("0xgg")
        assert not hexutil.is_hex(12)

    def test_hex_to_bytes_pads_odd_length(self):
        assert hexutil.hex_to_bytes("0x123") == b"\x01\x23"
        assert hexutil.hex_to_bytes("0x") == b""

    def test_data_to_bytes_is_strict(self):
        assert hexutil.data_to_bytes("0xa9059cbb") == bytes.fromhex("a9059cbb")
        assert hexutil.data_to_bytes("0x") == b""
        with pytest.raises(EncodingError):
            hexutil.data_to_bytes("0xa9059cb")

    def test_is_hex_data(self):
        assert hexutil.is_hex_data("0x")
        assert hexutil.is_hex_data("0xa9059cbb")
        assert not hexutil.is_hex_data("0xa9059cb")
        assert not hexutil.is_hex_data("a9059cbb")

    def test_format_block_identifier(self):
        assert hexutil.format_block_identifier("latest") == "latest"
        assert hexutil.format_block_identifier(100) == "0x64"
        assert hexutil.format_block_identifier("0x64") == "0x64"
        assert hexutil.format_block_identifier("100") == "0x64"

    def test_strip_and_pad(self):
        assert hexutil.strip_leading_zeros("0x000a") == "0xa"
        assert hexutil.strip_leading_zeros("0x0000") == "0x0"
        assert hexutil.pad_hex("0xa", 4) == "0x000a"
