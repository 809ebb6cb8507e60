"""
Cosmos Chain Adapter.

============================================================
PURPOSE
============================================================
ChainAdapter for Cosmos-SDK chains (cosmoshub-4, vega-testnet).

- Chain id from provider info: mainnet -> cosmoshub-4,
  testnet -> vega-testnet; anything else is UnsupportedNetwork
- Account chain_specific: sequence, account_number
- Fees: static gas-price tiers (CosmosFeeConfig) x configured gas limit
- Wallet: cosmos_get_address / cosmos_sign_tx / cosmos_send_tx

============================================================
"""

import logging
from typing import Any, Dict, Optional

from caip import (
    ChainFamily,
    ChainIdentifier,
    Network,
    UnsupportedNetwork,
    native_asset_id,
    to_chain_identifier,
)

from .base import AdapterBase, ChainAdapter
from .config import CosmosFeeConfig
from .errors import ErrorKind, create_error, normalized_errors
from .fees import TierPrices, build_fee_estimate
from .providers.interfaces import Providers
from .subscription import SubscriptionErrorHandler, TxEventHandler, TxSubscription
from .types import (
    Account,
    BIP44Params,
    FeeEstimate,
    GetAddressInput,
    GetFeeDataInput,
    SignTxInput,
    SubscribeTxsInput,
    TxHistoryQuery,
    TxHistoryResponse,
)


logger = logging.getLogger(__name__)


class CosmosChainAdapter(ChainAdapter):
    """Cosmos-SDK chain adapter."""

    DEFAULT_BIP44_PARAMS = BIP44Params(coin_type=118)

    # Provider network name -> network
    NETWORKS: Dict[str, Network] = {
        "mainnet": Network.COSMOS_COSMOSHUB_4,
        "testnet": Network.COSMOS_VEGA_TESTNET,
    }

    def __init__(
        self,
        providers: Providers,
        fee_config: Optional[CosmosFeeConfig] = None,
        default_bip44_params: Optional[BIP44Params] = None,
    ):
        self._base = AdapterBase(
            chain_family=ChainFamily.COSMOS,
            providers=providers,
            default_bip44_params=default_bip44_params or self.DEFAULT_BIP44_PARAMS,
            chain_id_resolver=self._resolve_chain_id,
        )
        self._fee_config = fee_config or CosmosFeeConfig()

    @property
    def chain_family(self) -> ChainFamily:
        return ChainFamily.COSMOS

    @property
    def base(self) -> AdapterBase:
        return self._base

    # --------------------------------------------------------
    # QUERIES
    # --------------------------------------------------------

    async def _resolve_chain_id(self) -> ChainIdentifier:
        info = await self._base.select_provider("get_chain_id").get_info()
        network = (info or {}).get("network")
        if network not in self.NETWORKS:
            raise UnsupportedNetwork(
                f"CosmosChainAdapter: network is not supported: {network}",
                value=network,
            )
        chain_id = to_chain_identifier(ChainFamily.COSMOS, self.NETWORKS[network])
        logger.info(f"[cosmos] Resolved chain id {chain_id}")
        return chain_id

    @normalized_errors("get_chain_id")
    async def get_chain_id(self) -> ChainIdentifier:
        return await self._base.chain_id_cache.get()

    @normalized_errors("get_account")
    async def get_account(self, pubkey: str) -> Account:
        chain_id = await self.get_chain_id()
        data = await self._base.select_provider("get_account").get_account(pubkey)
        if not data:
            raise create_error(
                ErrorKind.ACCOUNT_NOT_FOUND,
                f"Account not found: {pubkey}",
                "get_account",
                self.chain_family.value,
            )

        return Account(
            balance=str(data["balance"]),
            chain_id=chain_id,
            asset_id=native_asset_id(chain_id),
            pubkey=data.get("pubkey") or pubkey,
            chain_specific={
                "sequence": data.get("sequence"),
                "account_number": data.get("accountNumber"),
            },
        )

    @normalized_errors("get_tx_history")
    async def get_tx_history(self, query: TxHistoryQuery) -> TxHistoryResponse:
        chain_id = await self.get_chain_id()
        return await self._base.fetch_tx_history(query, chain_id)

    # --------------------------------------------------------
    # FEES
    # --------------------------------------------------------

    @normalized_errors("get_fee_data")
    async def get_fee_data(self, fee_input: GetFeeDataInput) -> FeeEstimate:
        """
        Static tiers from CosmosFeeConfig.

        chain_specific:
            gas_limit: Override the configured gas limit
            from: Sender pubkey, required for send_max
        """
        prices = TierPrices.from_values(
            self._fee_config.slow,
            self._fee_config.average,
            self._fee_config.fast,
        )
        gas_limit = fee_input.chain_specific.get("gas_limit") or self._fee_config.gas_limit

        balance = None
        if fee_input.send_max:
            sender = fee_input.chain_specific.get("from")
            if not sender:
                raise create_error(
                    ErrorKind.FEE_DATA_UNAVAILABLE,
                    "send_max requires chain_specific['from']",
                    "get_fee_data",
                    self.chain_family.value,
                )
            balance = (await self.get_account(sender)).balance

        return build_fee_estimate(prices, gas_limit, send_max_balance=balance)

    # --------------------------------------------------------
    # WALLET
    # --------------------------------------------------------

    @normalized_errors("get_address")
    async def get_address(self, address_input: GetAddressInput) -> str:
        return await self._base.wallet_address(
            address_input.wallet,
            "cosmos_get_address",
            address_input.bip44_params,
            address_input.show_on_device,
        )

    @normalized_errors("sign_transaction")
    async def sign_transaction(self, sign_input: SignTxInput) -> str:
        return await self._base.wallet_sign(sign_input.wallet, "cosmos_sign_tx", sign_input.tx_to_sign)

    @normalized_errors("sign_and_broadcast_transaction")
    async def sign_and_broadcast_transaction(self, sign_input: SignTxInput) -> str:
        return await self._base.wallet_send(sign_input.wallet, "cosmos_send_tx", sign_input.tx_to_sign)

    @normalized_errors("broadcast_transaction")
    async def broadcast_transaction(self, raw_tx_hex: str) -> Dict[str, Any]:
        return await self._base.broadcast(raw_tx_hex)

    # --------------------------------------------------------
    # SUBSCRIPTIONS
    # --------------------------------------------------------

    @normalized_errors("subscribe_txs")
    async def subscribe_txs(
        self,
        subscribe_input: SubscribeTxsInput,
        on_message: TxEventHandler,
        on_error: SubscriptionErrorHandler,
    ) -> TxSubscription:
        params = self._base.bip44_params(subscribe_input.bip44_params)
        address = await self.get_address(GetAddressInput(wallet=subscribe_input.wallet, bip44_params=params))
        chain_id = await self.get_chain_id()

        return await self._base.subscribe(
            address,
            chain_id,
            params,
            subscribe_input.topic,
            on_message,
            on_error,
        )

    async def close(self) -> None:
        await self._base.close()

    def __repr__(self) -> str:
        return f"<CosmosChainAdapter(chain_id={self._base.chain_id_cache.value})>"
