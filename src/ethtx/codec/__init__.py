"""
Codec layer.

RLP encoding and hex helpers used to build signing preimages and wire bytes.
"""

from ethtx.codec.rlp import ByteString, RLPItem, RLPList, encode

__all__ = [
    "ByteString",
    "RLPItem",
    "RLPList",
    "encode",
]
