"""
Transaction model.

Holds the logical fields of a transaction. Numeric fields are kept as
canonical hex strings; the orchestrator fills in nonce, gas and fee fields
and the signing pipeline reads them without mutating anything.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Optional, Union

from ethtx.codec.hexutil import data_to_bytes, hex_to_int, is_hex, is_hex_data, to_hex
from ethtx.core.address import is_valid_address
from ethtx.errors import EncodingError, ValidationError

DEFAULT_GAS_LIMIT = 21_000

Quantity = Union[int, str]

_QUANTITY_FIELDS = (
    "value",
    "gas",
    "gas_price",
    "nonce",
    "chain_id",
    "max_fee_per_gas",
    "max_priority_fee_per_gas",
)

# JSON-RPC (camelCase) key for each field
_RPC_KEYS = {
    "from_address": "from",
    "to": "to",
    "value": "value",
    "gas": "gas",
    "gas_price": "gasPrice",
    "max_fee_per_gas": "maxFeePerGas",
    "max_priority_fee_per_gas": "maxPriorityFeePerGas",
    "data": "data",
    "nonce": "nonce",
    "chain_id": "chainId",
}


class FeeModel(str, Enum):
    """Which fee fields a transaction carries."""
    NONE = "none"            # Nothing usable yet (zero/unset gas price)
    LEGACY = "legacy"        # Single gasPrice, EIP-155 signing
    EIP1559 = "eip1559"      # maxFeePerGas + maxPriorityFeePerGas, type 0x02


@dataclass
class Transaction:
    """
    A transaction under construction.

    Attributes:
        from_address: Sender address (defaulted from the wallet if unset)
        to: Recipient address, None for contract creation
        value: Amount in wei
        gas: Gas limit
        gas_price: Legacy gas price; "0x0" means resolve later
        max_fee_per_gas: EIP-1559 fee cap
        max_priority_fee_per_gas: EIP-1559 tip
        data: Call data as hex
        nonce: Sender nonce, resolved from the node if unset
        chain_id: Chain id, resolved from config or node if unset
    """

    from_address: Optional[str] = None
    to: Optional[str] = None
    value: Optional[Quantity] = "0x0"
    gas: Optional[Quantity] = hex(DEFAULT_GAS_LIMIT)
    gas_price: Optional[Quantity] = "0x0"
    max_fee_per_gas: Optional[Quantity] = None
    max_priority_fee_per_gas: Optional[Quantity] = None
    data: Optional[Union[str, bytes]] = None
    nonce: Optional[Quantity] = None
    chain_id: Optional[Quantity] = None

    def __post_init__(self):
        """Normalize numeric fields and keep fee models exclusive."""
        for name in _QUANTITY_FIELDS:
            setattr(self, name, _normalize_quantity(getattr(self, name)))
        self.data = _normalize_data(self.data)

        if self.has_eip1559_fields and _is_zero(self.gas_price):
            self.gas_price = None

    @classmethod
    def create_transfer(
        cls,
        from_address: str,
        to: str,
        value: Quantity,
        **options: Any,
    ) -> "Transaction":
        """Build a plain value transfer."""
        return cls(from_address=from_address, to=to, value=value, **options)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        """
        Build a transaction from a dict with JSON-RPC or snake_case keys.

        Args:
            data: e.g. {"from": ..., "gasPrice": ...} or {"from_address": ..., "gas_price": ...}
        """
        reverse = {rpc: name for name, rpc in _RPC_KEYS.items()}
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key == "input":
                key = "data"
            name = reverse.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown transaction field: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_from(self, address: str) -> None:
        self.from_address = address

    def set_to(self, address: Optional[str]) -> None:
        self.to = address

    def set_value(self, value: Quantity) -> None:
        self.value = _normalize_quantity(value)

    def set_gas(self, gas: Quantity) -> None:
        self.gas = _normalize_quantity(gas)

    def set_gas_price(self, gas_price: Quantity) -> None:
        self.gas_price = _normalize_quantity(gas_price)

    def set_data(self, data: Union[str, bytes]) -> None:
        self.data = _normalize_data(data)

    def set_nonce(self, nonce: Quantity) -> None:
        self.nonce = _normalize_quantity(nonce)

    def set_chain_id(self, chain_id: Quantity) -> None:
        self.chain_id = _normalize_quantity(chain_id)

    def set_eip1559_gas(self, max_fee_per_gas: Quantity, max_priority_fee_per_gas: Quantity) -> None:
        """Switch to the fee-market model. Clears the legacy gas price."""
        self.max_fee_per_gas = _normalize_quantity(max_fee_per_gas)
        self.max_priority_fee_per_gas = _normalize_quantity(max_priority_fee_per_gas)
        self.gas_price = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def has_eip1559_fields(self) -> bool:
        return self.max_fee_per_gas is not None or self.max_priority_fee_per_gas is not None

    @property
    def has_gas_price(self) -> bool:
        """True when a non-zero legacy gas price is set."""
        return self.gas_price is not None and not _is_zero(self.gas_price)

    @property
    def is_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None and self.max_priority_fee_per_gas is not None

    @property
    def fee_model(self) -> FeeModel:
        if self.is_eip1559:
            return FeeModel.EIP1559
        if self.has_gas_price:
            return FeeModel.LEGACY
        return FeeModel.NONE

    @property
    def is_contract_creation(self) -> bool:
        return not self.to

    @property
    def has_data(self) -> bool:
        return bool(self.data) and self.data not in ("0x", "0X")

    @property
    def is_value_transfer(self) -> bool:
        """A plain transfer to an existing account with no call data."""
        return not self.is_contract_creation and not self.has_data

    def quantity(self, name: str) -> Optional[int]:
        """
        Integer value of a numeric field.

        Raises:
            EncodingError: If the stored value is not valid hex
        """
        if name not in _QUANTITY_FIELDS:
            raise KeyError(name)
        value = getattr(self, name)
        if value is None:
            return None
        return hex_to_int(value)

    def data_bytes(self) -> bytes:
        if not self.data:
            return b""
        return data_to_bytes(self.data)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, require_sender: bool = True, require_fee: bool = False) -> None:
        """
        Check field formats and fee model consistency.

        Args:
            require_sender: Fail when `from` is unset
            require_fee: Fail when neither fee model is usable (signing time)

        Raises:
            ValidationError: On the first problem found
        """
        if not self.from_address:
            if require_sender:
                raise ValidationError("From address is required")
        elif not is_valid_address(self.from_address):
            raise ValidationError(f"Invalid from address: {self.from_address!r}")

        if self.to and not is_valid_address(self.to):
            raise ValidationError(f"Invalid to address: {self.to!r}")

        for name in _QUANTITY_FIELDS:
            value = getattr(self, name)
            if value is not None and not _is_prefixed_hex(value):
                raise ValidationError(f"Invalid {name} format: {value!r}")

        if self.data and not is_hex_data(self.data):
            raise ValidationError(f"Invalid data format: {self.data!r}")

        if self.has_eip1559_fields and self.has_gas_price:
            raise ValidationError("gasPrice cannot be combined with EIP-1559 fee fields")

        if self.has_eip1559_fields and not self.is_eip1559:
            raise ValidationError("maxFeePerGas and maxPriorityFeePerGas must be set together")

        if require_fee and self.fee_model == FeeModel.NONE:
            raise ValidationError("No fee model set: provide gasPrice or EIP-1559 fee fields")

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_rpc_dict(self) -> Dict[str, str]:
        """JSON-RPC transaction object with only the populated fields."""
        result = {}
        for name, key in _RPC_KEYS.items():
            value = getattr(self, name)
            if value is None or value == "":
                continue
            if name == "data" and not self.has_data:
                continue
            result[key] = value
        return result

    def to_call_dict(self) -> Dict[str, str]:
        """
        Call object for eth_call / eth_estimateGas.

        Nodes treat `gas` as the ceiling of an estimate, so the limit is left
        out together with the signing-only fields.
        """
        result = self.to_rpc_dict()
        for key in ("gas", "nonce", "chainId"):
            result.pop(key, None)
        return result

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _normalize_quantity(value: Optional[Quantity]) -> Optional[str]:
    """Canonical hex for valid input; anything else is kept for validate() to report."""
    if value is None:
        return None
    try:
        return to_hex(value)
    except EncodingError:
        return value if isinstance(value, str) else str(value)


def _normalize_data(data: Optional[Union[str, bytes]]) -> Optional[str]:
    if data is None:
        return None
    if isinstance(data, (bytes, bytearray)):
        return "0x" + bytes(data).hex()
    if data and not data.startswith(("0x", "0X")) and is_hex(data):
        return "0x" + data
    return data


def _is_prefixed_hex(value: str) -> bool:
    # Unprefixed strings were read as decimal on the way in; leftovers are invalid
    return isinstance(value, str) and value.startswith(("0x", "0X")) and is_hex(value)


def _is_zero(value: Optional[str]) -> bool:
    if value is None:
        return True
    return is_hex(value) and hex_to_int(value) == 0
