"""
Ethereum Chain Adapter.

============================================================
PURPOSE
============================================================
ChainAdapter for EVM chains (eip155:1, :3, :4).

- Account chain_specific: nonce, tokens (TokenBalance with erc20 ids)
- Fees: 0x gas oracle MEDIAN tiers x simulated gas limit
- ERC20 transfers: gas estimated against the token contract with
  value 0 and transfer(address,uint256) calldata
- Send-max: token balance for tokens; balance - fee per tier for native
- Wallet: eth_get_address / eth_sign_tx / eth_send_tx

============================================================
"""

import logging
from typing import Any, Dict, List, Optional

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from caip import (
    AssetIdentifier,
    AssetNamespace,
    ChainFamily,
    ChainIdentifier,
    Network,
    UnsupportedNetwork,
    decode_asset_id,
    native_asset_id,
    normalize_reference,
    to_asset_identifier,
    to_chain_identifier,
)

from .base import AdapterBase, ChainAdapter
from .errors import ChainAdapterException, ErrorKind, create_error, normalized_errors
from .fees import build_fee_estimate, select_oracle_tiers
from .providers.interfaces import GasOracle, Providers
from .subscription import SubscriptionErrorHandler, TxEventHandler, TxSubscription
from .types import (
    Account,
    BIP44Params,
    FeeEstimate,
    GetAddressInput,
    GetFeeDataInput,
    SignTxInput,
    SubscribeTxsInput,
    TokenBalance,
    TxHistoryQuery,
    TxHistoryResponse,
)


logger = logging.getLogger(__name__)


ERC20_TRANSFER_SELECTOR = function_signature_to_4byte_selector("transfer(address,uint256)")


def erc20_transfer_data(to: str, value: str) -> str:
    """ABI-encoded calldata for ERC20 transfer(to, value)."""
    arguments = encode(["address", "uint256"], [to_checksum_address(to), int(value)])
    return "0x" + (ERC20_TRANSFER_SELECTOR + arguments).hex()


def _token_asset(raw: Dict[str, Any], chain_id: ChainIdentifier) -> AssetIdentifier:
    reference = raw.get("assetId") or raw.get("caip19")
    if reference:
        return decode_asset_id(reference)
    return to_asset_identifier(chain_id, AssetNamespace.ERC20, raw["contract"])


class EthereumChainAdapter(ChainAdapter):
    """EVM chain adapter."""

    DEFAULT_BIP44_PARAMS = BIP44Params(coin_type=60)

    # Provider network name -> network
    NETWORKS: Dict[str, Network] = {
        "mainnet": Network.ETH_MAINNET,
        "ropsten": Network.ETH_ROPSTEN,
        "rinkeby": Network.ETH_RINKEBY,
    }

    def __init__(
        self,
        providers: Providers,
        gas_oracle: GasOracle,
        default_bip44_params: Optional[BIP44Params] = None,
    ):
        self._base = AdapterBase(
            chain_family=ChainFamily.ETHEREUM,
            providers=providers,
            default_bip44_params=default_bip44_params or self.DEFAULT_BIP44_PARAMS,
            chain_id_resolver=self._resolve_chain_id,
        )
        self._gas_oracle = gas_oracle

    @property
    def chain_family(self) -> ChainFamily:
        return ChainFamily.ETHEREUM

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
                f"EthereumChainAdapter: network is not supported: {network}",
                value=network,
            )
        chain_id = to_chain_identifier(ChainFamily.ETHEREUM, self.NETWORKS[network])
        logger.info(f"[eip155] Resolved chain id {chain_id}")
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

        tokens: List[TokenBalance] = [
            TokenBalance(
                asset_id=_token_asset(token, chain_id),
                balance=str(token.get("balance", "0")),
                name=token.get("name") or "",
                symbol=token.get("symbol") or "",
                precision=token.get("precision"),
            )
            for token in data.get("tokens") or []
        ]

        return Account(
            balance=str(data["balance"]),
            chain_id=chain_id,
            asset_id=native_asset_id(chain_id),
            pubkey=data.get("pubkey") or pubkey,
            chain_specific={
                "nonce": data.get("nonce"),
                "tokens": tokens,
            },
        )

    @normalized_errors("get_tx_history")
    async def get_tx_history(self, query: TxHistoryQuery) -> TxHistoryResponse:
        chain_id = await self.get_chain_id()
        return await self._base.fetch_tx_history(query, chain_id)

    # --------------------------------------------------------
    # FEES
    # --------------------------------------------------------

    async def _token_balance(self, pubkey: str, reference: str) -> str:
        """Balance of the token with normalized erc20 ``reference``."""
        account = await self.get_account(pubkey)

        for token in account.chain_specific.get("tokens") or []:
            if token.asset_id.asset_reference == reference:
                return token.balance

        raise create_error(
            ErrorKind.FEE_DATA_UNAVAILABLE,
            f"No balance for token {reference}",
            "get_fee_data",
            self.chain_family.value,
        )

    async def _estimate_gas(self, from_address: str, to: str, value: str, data: str) -> str:
        try:
            return await self._base.select_provider("get_fee_data").estimate_gas(from_address, to, value, data)
        except ChainAdapterException:
            raise
        except Exception as e:
            raise create_error(
                ErrorKind.GAS_ESTIMATION_FAILED,
                f"Gas estimation failed: {e}",
                "get_fee_data",
                self.chain_family.value,
                getattr(e, "status_code", None),
            ) from e

    @normalized_errors("get_fee_data")
    async def get_fee_data(self, fee_input: GetFeeDataInput) -> FeeEstimate:
        """
        Oracle-priced tiers for a simulated transaction.

        chain_specific:
            from: Sender address
            contract_address: ERC20 contract for token transfers
            contract_data: Explicit calldata (skips ERC20 encoding)
        """
        chain_specific = fee_input.chain_specific
        from_address = chain_specific.get("from")
        contract_address = chain_specific.get("contract_address")
        contract_data = chain_specific.get("contract_data")
        is_token_send = bool(contract_address)

        if is_token_send:
            # Rejects a malformed contract before the oracle is queried
            chain_id = await self.get_chain_id()
            contract_address = normalize_reference(chain_id, AssetNamespace.ERC20, contract_address)

        # One oracle fetch per call
        prices = select_oracle_tiers(await self._gas_oracle.get_gas_prices())

        if fee_input.send_max and not from_address:
            raise create_error(
                ErrorKind.FEE_DATA_UNAVAILABLE,
                "send_max requires chain_specific['from']",
                "get_fee_data",
                self.chain_family.value,
            )

        value = fee_input.value
        send_max_balance = None
        if fee_input.send_max and is_token_send:
            value = await self._token_balance(from_address, contract_address)
        elif fee_input.send_max:
            send_max_balance = (await self.get_account(from_address)).balance

        if contract_data:
            data = contract_data
        elif is_token_send:
            data = erc20_transfer_data(fee_input.to, value)
        else:
            data = "0x"

        gas_limit = await self._estimate_gas(
            from_address,
            contract_address if is_token_send else fee_input.to,
            "0" if is_token_send else value,
            data,
        )

        return build_fee_estimate(prices, gas_limit, send_max_balance=send_max_balance)

    # --------------------------------------------------------
    # WALLET
    # --------------------------------------------------------

    @normalized_errors("get_address")
    async def get_address(self, address_input: GetAddressInput) -> str:
        return await self._base.wallet_address(
            address_input.wallet,
            "eth_get_address",
            address_input.bip44_params,
            address_input.show_on_device,
        )

    @normalized_errors("sign_transaction")
    async def sign_transaction(self, sign_input: SignTxInput) -> str:
        return await self._base.wallet_sign(sign_input.wallet, "eth_sign_tx", sign_input.tx_to_sign)

    @normalized_errors("sign_and_broadcast_transaction")
    async def sign_and_broadcast_transaction(self, sign_input: SignTxInput) -> str:
        return await self._base.wallet_send(sign_input.wallet, "eth_send_tx", sign_input.tx_to_sign)

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
        await self._gas_oracle.close()

    def __repr__(self) -> str:
        return f"<EthereumChainAdapter(chain_id={self._base.chain_id_cache.value})>"
