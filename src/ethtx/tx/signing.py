"""
Signing pipeline - builds preimages, signs them and assembles wire bytes.

Two paths, picked by the transaction's fee model:

Legacy (EIP-155):
    preimage = RLP([nonce, gasPrice, gas, to, value, data, chainId, "", ""])
    v        = recovery_id + chainId * 2 + 35
    wire     = RLP([nonce, gasPrice, gas, to, value, data, v, r, s])

Typed fee-market (EIP-1559):
    preimage = 0x02 || RLP([chainId, nonce, tip, feeCap, gas, to, value, data, []])
    v        = recovery_id
    wire     = 0x02 || RLP([chainId, nonce, tip, feeCap, gas, to, value, data, [], v, r, s])
"""

from dataclasses import dataclass
from typing import List, Optional

import structlog

from ethtx.codec.rlp import ByteString, RLPItem, RLPList, encode
from ethtx.core.address import ADDRESS_LENGTH, address_to_bytes
from ethtx.core.transaction import FeeModel, Transaction
from ethtx.crypto.digest import keccak256, keccak256_hex
from ethtx.crypto.signer import Signature
from ethtx.errors import EncodingError, ValidationError
from ethtx.wallet import Wallet

logger = structlog.get_logger(__name__)

EIP1559_TX_TYPE = 0x02
EIP155_V_OFFSET = 35
SIGNATURE_COMPONENT_LENGTH = 32


def legacy_v(recovery_id: int, chain_id: int) -> int:
    """EIP-155 v value: chain id folded into the recovery id."""
    return recovery_id + chain_id * 2 + EIP155_V_OFFSET


def typed_v(recovery_id: int) -> int:
    """Typed transactions carry the bare y-parity."""
    return recovery_id


@dataclass(frozen=True)
class SignedTransaction:
    """
    A signed, broadcast-ready transaction.

    Attributes:
        raw: Wire bytes
        tx_hash: keccak256 of the wire bytes
        signature: Signer output
        v: Encoded v value
        fee_model: Legacy or EIP-1559
    """
    raw: bytes
    tx_hash: str
    signature: Signature
    v: int
    fee_model: FeeModel

    @property
    def raw_hex(self) -> str:
        return "0x" + self.raw.hex()


class SigningPipeline:
    """
    Stateless transaction signer.

    Reads a fully resolved Transaction (nonce, chain id, fee fields set) and
    never mutates it.
    """

    def __init__(self, pad_signature_components: bool = False):
        """
        Initialize the signing pipeline.

        Args:
            pad_signature_components: Encode r and s as fixed 32-byte strings
                rather than minimal integers
        """
        self.pad_signature_components = pad_signature_components

    def signing_items(self, tx: Transaction) -> List[RLPItem]:
        """The ordered preimage fields for the transaction's fee model."""
        self._check_ready(tx)
        chain_id = tx.quantity("chain_id")

        if tx.fee_model == FeeModel.EIP1559:
            return [
                ByteString.from_int(chain_id),
                *self._common_head(tx, FeeModel.EIP1559),
                RLPList(),
            ]

        return [
            *self._common_head(tx, FeeModel.LEGACY),
            ByteString.from_int(chain_id),
            ByteString(),
            ByteString(),
        ]

    def signing_preimage(self, tx: Transaction) -> bytes:
        """Bytes that get hashed; typed transactions include the type byte."""
        encoded = encode(RLPList(self.signing_items(tx)))
        if tx.fee_model == FeeModel.EIP1559:
            return bytes([EIP1559_TX_TYPE]) + encoded
        return encoded

    def signing_hash(self, tx: Transaction) -> bytes:
        return keccak256(self.signing_preimage(tx))

    def sign(self, tx: Transaction, wallet: Wallet) -> SignedTransaction:
        """
        Sign a transaction with the wallet's key.

        Args:
            tx: Resolved transaction
            wallet: Key holder

        Returns:
            SignedTransaction with wire bytes and hash

        Raises:
            ValidationError: If nonce, chain id or fee fields are missing
            EncodingError: If a field cannot be encoded
            SigningError: If the signer rejects the digest or key
        """
        digest = self.signing_hash(tx)
        signature = wallet.sign_digest(digest)
        return self.assemble(tx, signature)

    def assemble(self, tx: Transaction, signature: Signature) -> SignedTransaction:
        """Combine the transaction fields and a signature into wire bytes."""
        fee_model = tx.fee_model
        if fee_model == FeeModel.EIP1559:
            v = typed_v(signature.recovery_id)
            items = self.signing_items(tx) + self._signature_items(v, signature)
            raw = bytes([EIP1559_TX_TYPE]) + encode(RLPList(items))
        else:
            v = legacy_v(signature.recovery_id, tx.quantity("chain_id"))
            items = self._common_head(tx, FeeModel.LEGACY) + self._signature_items(v, signature)
            raw = encode(RLPList(items))

        signed = SignedTransaction(
            raw=raw,
            tx_hash=keccak256_hex(raw),
            signature=signature,
            v=v,
            fee_model=fee_model,
        )
        logger.debug("transaction_signed", tx_hash=signed.tx_hash, fee_model=fee_model.value)
        return signed

    def _common_head(self, tx: Transaction, fee_model: FeeModel) -> List[RLPItem]:
        """nonce, fee field(s), gas, to, value, data."""
        if fee_model == FeeModel.EIP1559:
            fees = [
                ByteString.from_int(tx.quantity("max_priority_fee_per_gas")),
                ByteString.from_int(tx.quantity("max_fee_per_gas")),
            ]
        else:
            fees = [ByteString.from_int(tx.quantity("gas_price"))]

        return [
            ByteString.from_int(tx.quantity("nonce")),
            *fees,
            ByteString.from_int(tx.quantity("gas")),
            self._recipient(tx.to),
            ByteString.from_int(tx.quantity("value") or 0),
            ByteString(tx.data_bytes()),
        ]

    def _signature_items(self, v: int, signature: Signature) -> List[RLPItem]:
        if self.pad_signature_components:
            r = ByteString.fixed(_int_bytes(signature.r), SIGNATURE_COMPONENT_LENGTH)
            s = ByteString.fixed(_int_bytes(signature.s), SIGNATURE_COMPONENT_LENGTH)
        else:
            r = ByteString.from_int(signature.r)
            s = ByteString.from_int(signature.s)
        return [ByteString.from_int(v), r, s]

    @staticmethod
    def _recipient(to: Optional[str]) -> ByteString:
        if not to:
            return ByteString()
        try:
            return ByteString.fixed(address_to_bytes(to), ADDRESS_LENGTH)
        except ValidationError as e:
            raise EncodingError(str(e)) from e

    @staticmethod
    def _check_ready(tx: Transaction) -> None:
        if tx.nonce is None:
            raise ValidationError("Nonce must be resolved before signing")
        if tx.chain_id is None:
            raise ValidationError("Chain id must be resolved before signing")
        if tx.has_eip1559_fields and tx.has_gas_price:
            raise ValidationError("gasPrice cannot be combined with EIP-1559 fee fields")
        if tx.fee_model == FeeModel.NONE:
            raise ValidationError("No fee model set: provide gasPrice or EIP-1559 fee fields")


def _int_bytes(value: int) -> bytes:
    return ByteString.from_int(value).data
