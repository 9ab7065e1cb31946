"""
Test suite for the signing pipeline and signer.

Tests preimage construction, v encoding and wire assembly for legacy
(EIP-155) and fee-market (EIP-1559) transactions.
"""

from types import SimpleNamespace

import pytest
from eth_keys import keys

from ethtx.codec.rlp import ByteString, RLPList, encode
from ethtx.core.transaction import FeeModel, Transaction
from ethtx.crypto.digest import keccak256
from ethtx.crypto.signer import SECP256K1_N, EthKeysSigner, Signature
from ethtx.errors import EncodingError, SigningError, ValidationError
from ethtx.tx.signing import SigningPipeline, legacy_v, typed_v


TO = "0x" + "35" * 20

# Worked example from EIP-155
EIP155_SIGNING_DATA = (
    "ec098504a817c800825208943535353535353535353535353535353535353535"
    "880de0b6b3a764000080018080"
)
EIP155_SIGNING_HASH = "daf5a779ae972f972197303d7b574746c7ef83eadac0f2791ad23db92e4c8e53"
EIP155_SIGNED_TX = (
    "0xf86c098504a817c800825208943535353535353535353535353535353535353535"
    "880de0b6b3a76400008025a028ef61340bd939bc2195fe537567866003e1a15d3c71"
    "ff63e1590620aa636276a067cbe9d8997f761aecb703304b3800ccf555c9f3dc6421"
    "4b297fb1966a3b6d83"
)


def eip155_transaction() -> Transaction:
    return Transaction(
        to=TO,
        value=10 ** 18,
        gas=21000,
        gas_price=20 * 10 ** 9,
        nonce=9,
        chain_id=1,
    )


def fee_market_transaction(chain_id: int = 1) -> Transaction:
    return Transaction(
        to=TO,
        value=1,
        gas=21000,
        max_fee_per_gas=30 * 10 ** 9,
        max_priority_fee_per_gas=2 * 10 ** 9,
        nonce=0,
        chain_id=chain_id,
    )


# ============================================================================
# Test v Encoding
# ============================================================================

class TestVEncoding:
    """Tests for recovery id to v mapping."""

    def test_legacy_v_mainnet(self):
        assert legacy_v(0, 1) == 37
        assert legacy_v(1, 1) == 38

    def test_legacy_v_sepolia(self):
        assert legacy_v(0, 11155111) == 11155111 * 2 + 35

    def test_typed_v(self):
        assert typed_v(0) == 0
        assert typed_v(1) == 1


# ============================================================================
# Test Legacy Transactions
# ============================================================================

class TestLegacySigning:
    """Tests for EIP-155 signing."""

    def test_transfer_preimage(self):
        tx = Transaction(to=TO, value=1, gas_price=1, nonce=0, chain_id=1)
        pipeline = SigningPipeline()

        expected = encode(RLPList([
            ByteString.from_int(0),
            ByteString.from_int(1),
            ByteString.from_int(0x5208),
            ByteString(bytes.fromhex("35" * 20)),
            ByteString.from_int(1),
            ByteString(),
            ByteString.from_int(1),
            ByteString(),
            ByteString(),
        ]))

        assert pipeline.signing_preimage(tx) == expected
        assert expected.hex() == "df800182520894" + "35" * 20 + "0180018080"

    def test_transfer_preimage_with_sender(self):
        sender = "0x742d35Cc6634C0532925a3b8D4C9db96C4b4d8b6"
        to = "0x8ba1f109551bD432803012645aac136c4c4c4c40"
        tx = Transaction.create_transfer(sender, to, 1, gas_price=1, gas=21000, nonce=0, chain_id=1)
        tx.validate(require_fee=True)

        preimage = SigningPipeline().signing_preimage(tx)

        assert preimage.hex() == "df800182520894" + to[2:].lower() + "0180018080"

    def test_chain_id_changes_digest(self):
        pipeline = SigningPipeline()
        mainnet = Transaction(to=TO, value=1, gas_price=1, nonce=0, chain_id=1)
        sepolia = Transaction(to=TO, value=1, gas_price=1, nonce=0, chain_id=11155111)

        assert pipeline.signing_hash(mainnet) != pipeline.signing_hash(sepolia)

    def test_eip155_signing_data(self):
        pipeline = SigningPipeline()
        tx = eip155_transaction()

        assert pipeline.signing_preimage(tx).hex() == EIP155_SIGNING_DATA
        assert pipeline.signing_hash(tx).hex() == EIP155_SIGNING_HASH

    def test_eip155_signed_transaction(self, eip155_wallet):
        signed = SigningPipeline().sign(eip155_transaction(), eip155_wallet)

        assert signed.raw_hex == EIP155_SIGNED_TX
        assert signed.v == 37
        assert signed.fee_model == FeeModel.LEGACY
        assert signed.tx_hash == "0x" + keccak256(signed.raw).hex()

    def test_legacy_v_range(self, wallet):
        signed = SigningPipeline().sign(eip155_transaction(), wallet)
        assert signed.v in (37, 38)

    def test_sign_does_not_mutate(self, wallet):
        tx = eip155_transaction()
        before = tx.to_dict()
        SigningPipeline().sign(tx, wallet)
        assert tx.to_dict() == before

    def test_contract_creation_has_empty_to(self):
        tx = Transaction(data="0x6000", gas=60000, gas_price=1, nonce=0, chain_id=1)
        items = SigningPipeline().signing_items(tx)
        assert items[3] == ByteString()

    def test_recipient_keeps_leading_zero_bytes(self):
        to = "0x00000000000000000000000000000000000000aa"
        tx = Transaction(to=to, gas_price=1, nonce=0, chain_id=1)
        items = SigningPipeline().signing_items(tx)
        assert len(items[3]) == 20


# ============================================================================
# Test Typed Transactions
# ============================================================================

class TestTypedSigning:
    """Tests for type 0x02 fee-market signing."""

    def test_preimage_has_type_prefix(self):
        preimage = SigningPipeline().signing_preimage(fee_market_transaction())
        assert preimage[0] == 0x02
        # Payload is an RLP list
        assert preimage[1] >= 0xC0

    def test_field_order(self):
        items = SigningPipeline().signing_items(fee_market_transaction(chain_id=5))

        assert len(items) == 9
        assert items[0] == ByteString.from_int(5)
        assert items[1] == ByteString.from_int(0)
        assert items[2] == ByteString.from_int(2 * 10 ** 9)
        assert items[3] == ByteString.from_int(30 * 10 ** 9)
        assert items[8] == RLPList()

    def test_signed_wire_format(self, wallet):
        signed = SigningPipeline().sign(fee_market_transaction(), wallet)

        assert signed.raw[0] == 0x02
        assert signed.v in (0, 1)
        assert signed.fee_model == FeeModel.EIP1559

    def test_signature_recovers_wallet_key(self, wallet):
        pipeline = SigningPipeline()
        tx = fee_market_transaction()
        signed = pipeline.sign(tx, wallet)

        signature = keys.Signature(vrs=(signed.v, signed.signature.r, signed.signature.s))
        recovered = signature.recover_public_key_from_msg_hash(pipeline.signing_hash(tx))

        assert recovered.to_bytes() == wallet.public_key

    def test_chain_id_changes_digest(self):
        pipeline = SigningPipeline()
        assert pipeline.signing_hash(fee_market_transaction(1)) != pipeline.signing_hash(
            fee_market_transaction(11155111)
        )


# ============================================================================
# Test Readiness Checks
# ============================================================================

class TestSigningPreconditions:
    """The pipeline refuses unresolved transactions."""

    def test_missing_nonce(self, wallet):
        tx = Transaction(to=TO, gas_price=1, chain_id=1)
        with pytest.raises(ValidationError, match="Nonce"):
            SigningPipeline().sign(tx, wallet)

    def test_missing_chain_id(self, wallet):
        tx = Transaction(to=TO, gas_price=1, nonce=0)
        with pytest.raises(ValidationError, match="Chain id"):
            SigningPipeline().sign(tx, wallet)

    def test_missing_fee(self, wallet):
        tx = Transaction(to=TO, nonce=0, chain_id=1)
        with pytest.raises(ValidationError, match="No fee model"):
            SigningPipeline().sign(tx, wallet)

    def test_conflicting_fees(self, wallet):
        tx = fee_market_transaction()
        tx.set_gas_price(1)
        with pytest.raises(ValidationError, match="cannot be combined"):
            SigningPipeline().sign(tx, wallet)

    def test_invalid_recipient(self):
        tx = Transaction(to="0x1234", gas_price=1, nonce=0, chain_id=1)
        with pytest.raises(EncodingError):
            SigningPipeline().signing_preimage(tx)


# ============================================================================
# Test Signature Components
# ============================================================================

class TestSignatureComponents:
    """Tests for r / s encoding."""

    SIGNATURE = Signature(r=0x01, s=0xFF00, recovery_id=1)

    def test_minimal_components_by_default(self):
        signed = SigningPipeline().assemble(eip155_transaction(), self.SIGNATURE)
        # ... v=38, r=0x01, s=0x82ff00
        assert signed.raw.endswith(bytes.fromhex("2601" + "82ff00"))
        assert signed.v == 38

    def test_padded_components(self):
        pipeline = SigningPipeline(pad_signature_components=True)
        signed = pipeline.assemble(eip155_transaction(), self.SIGNATURE)

        r = b"\xa0" + (1).to_bytes(32, "big")
        s = b"\xa0" + (0xFF00).to_bytes(32, "big")
        assert signed.raw.endswith(r + s)

    def test_signature_to_bytes(self):
        assert len(self.SIGNATURE.to_bytes()) == 65
        assert self.SIGNATURE.to_bytes()[-1] == 1


# ============================================================================
# Test Signer
# ============================================================================

class TestEthKeysSigner:
    """Tests for the eth-keys backed signer."""

    def test_low_s_normalization(self, monkeypatch):
        high_s = SimpleNamespace(r=5, s=SECP256K1_N - 1, v=0)
        monkeypatch.setattr(keys.PrivateKey, "sign_msg_hash", lambda self, digest: high_s)

        signature = EthKeysSigner().sign(b"\x11" * 32, b"\x01" * 32)

        assert signature.s == 1
        assert signature.recovery_id == 1
        assert signature.r == 5

    def test_produces_low_s(self):
        signature = EthKeysSigner().sign(b"\x22" * 32, b"\x01" * 32)
        assert signature.s <= SECP256K1_N // 2

    def test_deterministic(self):
        signer = EthKeysSigner()
        assert signer.sign(b"\x33" * 32, b"\x01" * 32) == signer.sign(b"\x33" * 32, b"\x01" * 32)

    def test_rejects_short_digest(self):
        with pytest.raises(SigningError, match="digest"):
            EthKeysSigner().sign(b"\x00" * 31, b"\x01" * 32)

    def test_rejects_short_key(self):
        with pytest.raises(SigningError, match="private key"):
            EthKeysSigner().sign(b"\x00" * 32, b"\x01" * 31)

    def test_rejects_out_of_range_key(self):
        with pytest.raises(SigningError):
            EthKeysSigner().public_key(b"\xff" * 32)
