"""
Cryptographic collaborators: keccak digest and secp256k1 signer.
"""

from ethtx.crypto.digest import keccak256, keccak256_hex
from ethtx.crypto.signer import EthKeysSigner, Signature, Signer

__all__ = [
    "EthKeysSigner",
    "Signature",
    "Signer",
    "keccak256",
    "keccak256_hex",
]
