"""
Chain Adapters Package - Uniform async interface over blockchains.

Query balances, estimate fees, sign and broadcast transactions and
subscribe to transaction events without knowing each chain's API.

Features:
- One ChainAdapter interface for every chain family
- CAIP2/CAIP19 tagged results (see the ``caip`` package)
- Three-tier fee estimates
- Cancellable transaction subscriptions
- Single normalized error shape (ChainAdapterException)

Quick Start:
    from chain_adapters import AdapterFactory, GetFeeDataInput

    async def main():
        async with AdapterFactory.create("eip155") as adapter:
            chain_id = await adapter.get_chain_id()
            fees = await adapter.get_fee_data(
                GetFeeDataInput(to="0x...", value="1000", chain_specific={"from": "0x..."})
            )
            print(chain_id, fees.fast.tx_fee)

Adding New Chain Families:
    class NewChainAdapter(ChainAdapter):
        ...

    AdapterFactory.register("newfamily", lambda config: NewChainAdapter(...))
"""

from chain_adapters.base import AdapterBase, ChainAdapter, ChainIdCache
from chain_adapters.bip44 import (
    HARDENED_OFFSET,
    bip32_to_address_n_list,
    to_path,
    to_root_derivation_path,
    validate_bip44_params,
)
from chain_adapters.config import AdapterConfig, CosmosFeeConfig
from chain_adapters.cosmos import CosmosChainAdapter
from chain_adapters.errors import (
    ActionCancelled,
    AdapterError,
    ChainAdapterException,
    ErrorKind,
    ProviderError,
    RetryEligibility,
    WalletError,
    create_error,
    normalize_error,
)
from chain_adapters.ethereum import EthereumChainAdapter
from chain_adapters.factory import AdapterFactory, ChainAdapterManager
from chain_adapters.fees import TierPrices, build_fee_estimate, select_oracle_tiers
from chain_adapters.providers import (
    GasOracle,
    HttpProvider,
    Providers,
    UnchainedHttpClient,
    UnchainedWebSocketClient,
    WsProvider,
    ZrxGasOracle,
)
from chain_adapters.subscription import TxSubscription, normalize_tx_message
from chain_adapters.types import (
    Account,
    BIP44Params,
    FeeEstimate,
    FeeTier,
    FeeTierName,
    GetAddressInput,
    GetFeeDataInput,
    SignTxInput,
    SubscribeTxsInput,
    SubscriptionError,
    TokenBalance,
    Transaction,
    Transfer,
    TransferType,
    TxEvent,
    TxHistoryQuery,
    TxHistoryResponse,
    TxStatus,
)
from chain_adapters.wallet import supports


__all__ = [
    # Interface
    "ChainAdapter",
    "AdapterBase",
    "ChainIdCache",

    # Adapters
    "CosmosChainAdapter",
    "EthereumChainAdapter",

    # Factory
    "AdapterFactory",
    "ChainAdapterManager",
    "AdapterConfig",
    "CosmosFeeConfig",

    # Providers
    "HttpProvider",
    "WsProvider",
    "GasOracle",
    "Providers",
    "UnchainedHttpClient",
    "UnchainedWebSocketClient",
    "ZrxGasOracle",

    # Derivation
    "HARDENED_OFFSET",
    "to_path",
    "to_root_derivation_path",
    "bip32_to_address_n_list",
    "validate_bip44_params",

    # Fees
    "TierPrices",
    "select_oracle_tiers",
    "build_fee_estimate",

    # Subscriptions
    "TxSubscription",
    "normalize_tx_message",

    # Errors
    "ErrorKind",
    "RetryEligibility",
    "AdapterError",
    "ChainAdapterException",
    "ProviderError",
    "WalletError",
    "ActionCancelled",
    "create_error",
    "normalize_error",

    # Types
    "Account",
    "BIP44Params",
    "FeeEstimate",
    "FeeTier",
    "FeeTierName",
    "GetAddressInput",
    "GetFeeDataInput",
    "SignTxInput",
    "SubscribeTxsInput",
    "SubscriptionError",
    "TokenBalance",
    "Transaction",
    "Transfer",
    "TransferType",
    "TxEvent",
    "TxHistoryQuery",
    "TxHistoryResponse",
    "TxStatus",

    # Wallet
    "supports",
]
