"""
Chain Adapters - Shared Types.

============================================================
PURPOSE
============================================================
Request/response types shared by every chain adapter.

Amounts are decimal strings (base units) so on-chain integers are
never rounded through floats.

============================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from caip import AssetIdentifier, ChainIdentifier


# ============================================================
# ENUMS
# ============================================================

class TxStatus(Enum):
    """Normalized transaction status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TransferType(Enum):
    """Direction of a transfer relative to the subscribed address."""

    SEND = "send"
    RECEIVE = "receive"
    SELF = "self"
    UNKNOWN = "unknown"


class ProviderKind(Enum):
    """Provider transport servicing an operation."""

    HTTP = "http"
    WS = "ws"


class FeeTierName(Enum):
    """Named fee tiers."""

    SLOW = "slow"
    AVERAGE = "average"
    FAST = "fast"


# ============================================================
# DERIVATION
# ============================================================

@dataclass(frozen=True)
class BIP44Params:
    """BIP44 derivation parameters."""

    coin_type: int
    """SLIP-44 coin type."""

    purpose: int = 44
    """Derivation purpose."""

    account: int = 0
    """Account index."""

    is_change: bool = False
    """Internal (change) chain."""

    index: int = 0
    """Address index."""


# ============================================================
# ACCOUNT
# ============================================================

@dataclass
class Account:
    """Point-in-time account state. Built fresh per query."""

    balance: str
    """Native balance in base units."""

    chain_id: ChainIdentifier
    """Chain the account lives on."""

    asset_id: AssetIdentifier
    """Native asset of the chain."""

    pubkey: str
    """Public key or address queried."""

    chain_specific: Dict[str, Any] = field(default_factory=dict)
    """Family-specific payload (sequence, nonce, tokens...)."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balance": self.balance,
            "chain_id": str(self.chain_id),
            "asset_id": str(self.asset_id),
            "pubkey": self.pubkey,
            "chain_specific": self.chain_specific,
        }


@dataclass
class TokenBalance:
    """Balance of a token held by an account."""

    asset_id: AssetIdentifier
    balance: str
    name: str = ""
    symbol: str = ""
    precision: Optional[int] = None


# ============================================================
# TX HISTORY
# ============================================================

@dataclass
class TxHistoryQuery:
    """Paginated transaction history request."""

    pubkey: str
    page: Optional[int] = None
    page_size: Optional[int] = None
    contract: Optional[str] = None


@dataclass
class Transaction:
    """History entry tagged with chain context."""

    txid: str
    chain_id: ChainIdentifier
    status: TxStatus = TxStatus.PENDING
    block_hash: Optional[str] = None
    block_height: Optional[int] = None
    block_time: Optional[int] = None
    confirmations: int = 0
    fee: Optional[str] = None
    value: Optional[str] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    """Provider fields with no normalized counterpart."""


@dataclass
class TxHistoryResponse:
    """One page of history, in provider order."""

    page: int
    total_pages: int
    transactions: List[Transaction] = field(default_factory=list)


# ============================================================
# FEES
# ============================================================

@dataclass(frozen=True)
class FeeTier:
    """Fee for one tier."""

    tx_fee: str
    """Total fee in native base units."""

    chain_specific: Dict[str, Any] = field(default_factory=dict)
    """E.g. gas_limit, gas_price."""


@dataclass(frozen=True)
class FeeEstimate:
    """Three named fee tiers."""

    slow: FeeTier
    average: FeeTier
    fast: FeeTier

    def tier(self, name: FeeTierName) -> FeeTier:
        return getattr(self, name.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            name.value: {
                "tx_fee": self.tier(name).tx_fee,
                "chain_specific": dict(self.tier(name).chain_specific),
            }
            for name in FeeTierName
        }


@dataclass
class GetFeeDataInput:
    """Fee estimation request."""

    to: str
    value: str = "0"
    send_max: bool = False
    chain_specific: Dict[str, Any] = field(default_factory=dict)
    """EVM: from, contract_address, contract_data."""


# ============================================================
# WALLET INPUTS
# ============================================================

@dataclass
class GetAddressInput:
    """Address derivation request."""

    wallet: Any
    bip44_params: Optional[BIP44Params] = None
    show_on_device: bool = False


@dataclass
class SignTxInput:
    """Signing request."""

    wallet: Any
    tx_to_sign: Any
    """Family-specific unsigned transaction payload."""


# ============================================================
# SUBSCRIPTIONS
# ============================================================

@dataclass
class SubscribeTxsInput:
    """Transaction subscription request."""

    wallet: Any
    bip44_params: Optional[BIP44Params] = None
    topic: str = "txs"


@dataclass(frozen=True)
class Transfer:
    """Normalized transfer inside a TxEvent."""

    asset_id: AssetIdentifier
    from_address: str
    to_address: str
    type: TransferType
    value: str


@dataclass(frozen=True)
class TxEvent:
    """
    Normalized push-subscription payload.

    A new instance is emitted for every raw message, including
    confirmation-count updates of an already seen txid.
    """

    address: str
    block_hash: Optional[str]
    block_height: Optional[int]
    block_time: Optional[int]
    chain_id: ChainIdentifier
    confirmations: int
    fee: Optional[str]
    status: TxStatus
    transfers: Tuple[Transfer, ...]
    txid: str


@dataclass(frozen=True)
class SubscriptionError:
    """Normalized error handed to subscription ``on_error`` callbacks."""

    message: str
    kind: str = "ProviderUnavailable"
