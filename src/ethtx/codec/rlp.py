"""
Recursive Length Prefix encoder.

Items are an explicit tagged union: a `ByteString` holds opaque bytes and an
`RLPList` holds nested items. Integers are turned into minimal big-endian
byte strings before encoding; fixed-width fields (addresses, optionally
signature components) are zero-padded and never stripped.

Only encoding is implemented. Signing is write-only.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple, Union

from ethtx.codec.hexutil import hex_to_bytes
from ethtx.errors import EncodingError

SHORT_STRING_OFFSET = 0x80
LONG_STRING_OFFSET = 0xB7
SHORT_LIST_OFFSET = 0xC0
LONG_LIST_OFFSET = 0xF7

# Payloads up to this length use the single-byte prefix form
SHORT_PAYLOAD_MAX = 55


@dataclass(frozen=True)
class ByteString:
    """An opaque byte sequence. No implicit sign or width."""

    data: bytes = b""

    def __post_init__(self):
        if not isinstance(self.data, (bytes, bytearray)):
            raise EncodingError(f"ByteString requires bytes, got {type(self.data).__name__}")
        object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def from_int(cls, value: int) -> "ByteString":
        """
        Minimal big-endian representation of an unsigned integer.

        Zero becomes the empty byte string.
        """
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodingError(f"Expected an unsigned integer, got {value!r}")
        if value < 0:
            raise EncodingError(f"Cannot RLP-encode negative integer {value}")
        if value == 0:
            return cls(b"")
        return cls(value.to_bytes((value.bit_length() + 7) // 8, "big"))

    @classmethod
    def from_hex(cls, value: str) -> "ByteString":
        """Raw bytes of a hex string, leading zeros preserved."""
        return cls(hex_to_bytes(value))

    @classmethod
    def fixed(cls, data: bytes, width: int) -> "ByteString":
        """
        Left zero-pad `data` to exactly `width` bytes.

        Raises:
            EncodingError: If the data is longer than the width
        """
        if len(data) > width:
            raise EncodingError(f"Value of {len(data)} bytes does not fit in {width} bytes")
        return cls(bytes(data).rjust(width, b"\x00"))

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class RLPList:
    """An ordered sequence of RLP items."""

    items: Tuple["RLPItem", ...] = ()

    def __init__(self, items: Iterable["RLPItem"] = ()):
        object.__setattr__(self, "items", tuple(items))

    def __len__(self) -> int:
        return len(self.items)


RLPItem = Union[ByteString, RLPList]


def encode(item: RLPItem) -> bytes:
    """
    Encode an RLP item.

    Args:
        item: A ByteString or RLPList (nested to any depth)

    Returns:
        Canonical RLP bytes

    Raises:
        EncodingError: If the item (or a nested element) is of another type
    """
    if isinstance(item, ByteString):
        return _encode_bytes(item.data)
    if isinstance(item, RLPList):
        payload = b"".join(encode(element) for element in item.items)
        return _length_prefix(len(payload), SHORT_LIST_OFFSET, LONG_LIST_OFFSET) + payload
    raise EncodingError(f"Unsupported RLP item type: {type(item).__name__}")


def encode_uint(value: int) -> bytes:
    return encode(ByteString.from_int(value))


def encode_bytes(data: bytes) -> bytes:
    return encode(ByteString(data))


def encode_list(items: Iterable[RLPItem]) -> bytes:
    return encode(RLPList(items))


def _encode_bytes(data: bytes) -> bytes:
    if len(data) == 1 and data[0] < SHORT_STRING_OFFSET:
        return data
    return _length_prefix(len(data), SHORT_STRING_OFFSET, LONG_STRING_OFFSET) + data


def _length_prefix(length: int, short_offset: int, long_offset: int) -> bytes:
    if length <= SHORT_PAYLOAD_MAX:
        return bytes([short_offset + length])

    length_bytes = length.to_bytes((length.bit_length() + 7) // 8, "big")
    if len(length_bytes) > 8:
        raise EncodingError(f"Payload too long for RLP: {length} bytes")
    return bytes([long_offset + len(length_bytes)]) + length_bytes
