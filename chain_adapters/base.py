"""
Base Chain Adapter - Uniform interface plus shared helpers.

``ChainAdapter`` is the single abstract interface callers program
against; they never branch on chain family.

``AdapterBase`` is composed into each concrete adapter (not inherited):
- default BIP44 params and path helpers
- provider selection (subscriptions -> websocket, the rest -> HTTP)
- lazily resolved chain id (``ChainIdCache``)
- live subscription registry
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from caip import ChainFamily, ChainIdentifier

from .bip44 import bip32_to_address_n_list, to_path, to_root_derivation_path, validate_bip44_params
from .errors import ErrorKind, create_error
from .providers.interfaces import HttpProvider, Providers, WsProvider
from .subscription import (
    SubscriptionErrorHandler,
    SubscriptionRegistry,
    TxEventHandler,
    TxSubscription,
    parse_status,
)
from .types import (
    Account,
    BIP44Params,
    FeeEstimate,
    GetAddressInput,
    GetFeeDataInput,
    ProviderKind,
    SignTxInput,
    SubscribeTxsInput,
    Transaction,
    TxHistoryQuery,
    TxHistoryResponse,
    TxStatus,
)
from .wallet import call_wallet, supports


logger = logging.getLogger(__name__)


# Operations serviced by the websocket provider
WS_OPERATIONS = frozenset({"subscribe_txs"})

_TX_FIELDS = frozenset({
    "txid", "status", "blockHash", "blockHeight", "blockTime",
    "confirmations", "fee", "value", "from", "to",
})


def to_transaction(raw: Dict[str, Any], chain_id: ChainIdentifier) -> Transaction:
    """History entry from a provider tx; unmapped fields kept in ``details``."""
    fee = raw.get("fee")
    if isinstance(fee, dict):
        fee = fee.get("value")

    status = raw.get("status")
    return Transaction(
        txid=raw["txid"],
        chain_id=chain_id,
        status=TxStatus.PENDING if status is None else parse_status(status),
        block_hash=raw.get("blockHash"),
        block_height=None if raw.get("blockHeight") is None else int(raw["blockHeight"]),
        block_time=None if raw.get("blockTime") is None else int(raw["blockTime"]),
        confirmations=int(raw.get("confirmations") or 0),
        fee=None if fee is None else str(fee),
        value=None if raw.get("value") is None else str(raw["value"]),
        from_address=raw.get("from"),
        to_address=raw.get("to"),
        details={key: value for key, value in raw.items() if key not in _TX_FIELDS},
    )


class ChainIdCache:
    """
    Lazily resolved chain identifier.

    Concurrent first callers share one in-flight resolution. Only a
    successful result is cached; a failure is delivered to every
    waiter and the next call resolves again.
    """

    def __init__(self, resolver: Callable[[], Awaitable[ChainIdentifier]]):
        self._resolver = resolver
        self._value: Optional[ChainIdentifier] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def value(self) -> Optional[ChainIdentifier]:
        return self._value

    async def get(self) -> ChainIdentifier:
        if self._value is not None:
            return self._value

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._resolve())

        # One caller being cancelled must not cancel the shared resolution
        return await asyncio.shield(self._pending)

    async def _resolve(self) -> ChainIdentifier:
        try:
            value = await self._resolver()
        finally:
            self._pending = None
        self._value = value
        return value


class AdapterBase:
    """Chain-family-independent helpers composed into every adapter."""

    def __init__(
        self,
        chain_family: ChainFamily,
        providers: Providers,
        default_bip44_params: BIP44Params,
        chain_id_resolver: Callable[[], Awaitable[ChainIdentifier]],
    ):
        validate_bip44_params(default_bip44_params)
        self.chain_family = chain_family
        self.providers = providers
        self.default_bip44_params = default_bip44_params
        self.chain_id_cache = ChainIdCache(chain_id_resolver)
        self.subscriptions = SubscriptionRegistry()

    # --------------------------------------------------------
    # DERIVATION
    # --------------------------------------------------------

    def bip44_params(self, params: Optional[BIP44Params] = None) -> BIP44Params:
        """Explicit params, else the family default; always validated."""
        resolved = params or self.default_bip44_params
        validate_bip44_params(resolved)
        return resolved

    def to_path(self, params: Optional[BIP44Params] = None) -> str:
        return to_path(self.bip44_params(params))

    def to_root_derivation_path(self, params: Optional[BIP44Params] = None) -> str:
        return to_root_derivation_path(self.bip44_params(params))

    def address_n_list(self, params: Optional[BIP44Params] = None) -> List[int]:
        return bip32_to_address_n_list(self.to_path(params))

    # --------------------------------------------------------
    # PROVIDERS
    # --------------------------------------------------------

    @staticmethod
    def provider_kind(operation: str) -> ProviderKind:
        return ProviderKind.WS if operation in WS_OPERATIONS else ProviderKind.HTTP

    def select_provider(self, operation: str) -> Union[HttpProvider, WsProvider]:
        """Websocket for subscriptions, HTTP for everything else."""
        if self.provider_kind(operation) is ProviderKind.WS:
            return self.providers.ws
        return self.providers.http

    # --------------------------------------------------------
    # HISTORY / BROADCAST
    # --------------------------------------------------------

    async def fetch_tx_history(self, query: TxHistoryQuery, chain_id: ChainIdentifier) -> TxHistoryResponse:
        """One page of history; provider order kept, each tx tagged with ``chain_id``."""
        data = await self.select_provider("get_tx_history").get_tx_history(
            query.pubkey,
            page=query.page,
            page_size=query.page_size,
            contract=query.contract,
        )
        return TxHistoryResponse(
            page=int(data.get("page") or 1),
            total_pages=int(data.get("totalPages") or 0),
            transactions=[to_transaction(tx, chain_id) for tx in data.get("transactions") or []],
        )

    async def broadcast(self, raw_tx_hex: str) -> Dict[str, Any]:
        result = await self.select_provider("broadcast_transaction").send_tx(raw_tx_hex)
        if isinstance(result, dict):
            return result
        return {"txid": result}

    # --------------------------------------------------------
    # WALLET
    # --------------------------------------------------------

    def require_capability(self, wallet: Any, capability: str, operation: str) -> None:
        if not supports(wallet, capability):
            raise create_error(
                ErrorKind.WALLET_UNAVAILABLE,
                f"Wallet does not support {capability}",
                operation,
                self.chain_family.value,
            )

    async def wallet_address(
        self,
        wallet: Any,
        capability: str,
        params: Optional[BIP44Params] = None,
        show_on_device: bool = False,
    ) -> str:
        """BIP44 params -> path -> address_n list -> wallet."""
        self.require_capability(wallet, capability, "get_address")
        address_n_list = self.address_n_list(params)

        address = await call_wallet(wallet, capability, address_n_list, show_display=bool(show_on_device))
        if not address:
            raise create_error(
                ErrorKind.WALLET_UNAVAILABLE,
                "Wallet returned no address",
                "get_address",
                self.chain_family.value,
            )
        return address

    async def wallet_sign(self, wallet: Any, capability: str, tx: Any) -> str:
        self.require_capability(wallet, capability, "sign_transaction")

        signed = await call_wallet(wallet, capability, tx)
        if not signed:
            raise create_error(
                ErrorKind.SIGNING_FAILED,
                "Error signing tx",
                "sign_transaction",
                self.chain_family.value,
            )
        if isinstance(signed, (dict, list)):
            return json.dumps(signed)
        return str(signed)

    async def wallet_send(self, wallet: Any, capability: str, tx: Any) -> str:
        """Combined sign+send; returns the txid."""
        self.require_capability(wallet, capability, "sign_and_broadcast_transaction")

        result = await call_wallet(wallet, capability, tx)
        txid = result.get("hash") if isinstance(result, dict) else result
        if not txid:
            raise create_error(
                ErrorKind.BROADCAST_FAILED,
                "Error signing & broadcasting tx",
                "sign_and_broadcast_transaction",
                self.chain_family.value,
            )
        return str(txid)

    # --------------------------------------------------------
    # SUBSCRIPTIONS
    # --------------------------------------------------------

    async def subscribe(
        self,
        address: str,
        chain_id: ChainIdentifier,
        params: BIP44Params,
        topic: str,
        on_message: TxEventHandler,
        on_error: SubscriptionErrorHandler,
    ) -> TxSubscription:
        """Start a subscription, replacing any live one for (address, topic)."""
        subscription = TxSubscription(
            ws=self.select_provider("subscribe_txs"),
            subscription_id=f"{self.to_path(params)}:{topic}",
            address=address,
            chain_id=chain_id,
            on_message=on_message,
            on_error=on_error,
            topic=topic,
        )
        return await self.subscriptions.replace(subscription)

    # --------------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------------

    async def close(self) -> None:
        """Stop live subscriptions and close owned providers."""
        await self.subscriptions.stop_all()
        await self.providers.ws.close()
        await self.providers.http.close()
        logger.info(f"[{self.chain_family.value}] Adapter closed")


class ChainAdapter(ABC):
    """
    Uniform async interface over one chain family.

    All failures surface as ChainAdapterException carrying a
    normalized AdapterError.
    """

    @property
    @abstractmethod
    def chain_family(self) -> ChainFamily:
        """Chain family this adapter serves."""
        pass

    @abstractmethod
    async def get_chain_id(self) -> ChainIdentifier:
        """Chain identifier of the connected network (cached after first success)."""
        pass

    @abstractmethod
    async def get_account(self, pubkey: str) -> Account:
        pass

    @abstractmethod
    async def get_tx_history(self, query: TxHistoryQuery) -> TxHistoryResponse:
        pass

    @abstractmethod
    async def get_fee_data(self, fee_input: GetFeeDataInput) -> FeeEstimate:
        pass

    @abstractmethod
    async def get_address(self, address_input: GetAddressInput) -> str:
        pass

    @abstractmethod
    async def sign_transaction(self, sign_input: SignTxInput) -> str:
        pass

    @abstractmethod
    async def sign_and_broadcast_transaction(self, sign_input: SignTxInput) -> str:
        """Sign and submit in one wallet call; returns the txid."""
        pass

    @abstractmethod
    async def broadcast_transaction(self, raw_tx_hex: str) -> Dict[str, Any]:
        """Submit a signed transaction. Never retried."""
        pass

    @abstractmethod
    async def subscribe_txs(
        self,
        subscribe_input: SubscribeTxsInput,
        on_message: TxEventHandler,
        on_error: SubscriptionErrorHandler,
    ) -> TxSubscription:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

    async def __aenter__(self) -> "ChainAdapter":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
