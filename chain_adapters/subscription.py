"""
Chain Adapters - Subscription Normalizer.

============================================================
PURPOSE
============================================================
Translates raw push messages into TxEvent values and owns the
lifecycle of one subscription.

FLOW:
    raw message -> transfers (asset ids via caip) -> TxEvent -> on_message
    transport / decode failure -> SubscriptionError -> on_error

Asset resolution per transfer:
- full asset id string ("eip155:1/erc20:0x...")  -> decoded
- bare token contract ("0x...")                  -> encoded as erc20
- nothing                                        -> chain's native asset

Nothing raised inside a callback path escapes the subscription; no
retry happens here.

============================================================
"""

import inspect
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from caip import (
    AssetIdentifier,
    AssetNamespace,
    ChainIdentifier,
    decode_asset_id,
    native_asset_id,
    to_asset_identifier,
)

from .providers.interfaces import WsProvider
from .types import SubscriptionError, Transfer, TransferType, TxEvent, TxStatus


logger = logging.getLogger(__name__)


TxEventHandler = Callable[[TxEvent], Any]
SubscriptionErrorHandler = Callable[[SubscriptionError], Any]

# Provider numeric status codes
_NUMERIC_STATUS = {
    1: TxStatus.CONFIRMED,
    0: TxStatus.FAILED,
    -1: TxStatus.PENDING,
}

_TRANSFER_TYPES = {transfer_type.value: transfer_type for transfer_type in TransferType}


# ============================================================
# NORMALIZATION
# ============================================================

def parse_status(raw: Any) -> TxStatus:
    """Map a provider status onto TxStatus; unknown values raise ValueError."""
    if isinstance(raw, TxStatus):
        return raw
    if isinstance(raw, int) and not isinstance(raw, bool) and raw in _NUMERIC_STATUS:
        return _NUMERIC_STATUS[raw]
    if isinstance(raw, str):
        try:
            return TxStatus(raw.strip().lower())
        except ValueError:
            pass
    raise ValueError(f"Unrecognized transaction status: {raw!r}")


def resolve_transfer_asset(transfer: Dict[str, Any], chain_id: ChainIdentifier) -> AssetIdentifier:
    """Resolve the asset a raw transfer moves."""
    reference = transfer.get("asset_id") or transfer.get("assetId") or transfer.get("caip19")
    if reference:
        return decode_asset_id(reference)

    contract = transfer.get("contract") or transfer.get("token")
    if contract:
        return to_asset_identifier(chain_id, AssetNamespace.ERC20, contract)

    return native_asset_id(chain_id)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def normalize_tx_message(raw: Dict[str, Any], chain_id: ChainIdentifier) -> TxEvent:
    """
    Build a TxEvent from one raw push message.

    Raises:
        ValueError / KeyError / CaipError: The message cannot be decoded
    """
    transfers = tuple(
        Transfer(
            asset_id=resolve_transfer_asset(transfer, chain_id),
            from_address=transfer.get("from") or "",
            to_address=transfer.get("to") or "",
            type=_TRANSFER_TYPES.get(str(transfer.get("type", "")).lower(), TransferType.UNKNOWN),
            value=str(transfer.get("value", "0")),
        )
        for transfer in raw.get("transfers") or []
    )

    fee = raw.get("fee")
    if isinstance(fee, dict):
        fee = fee.get("value")

    return TxEvent(
        address=raw["address"],
        block_hash=raw.get("blockHash"),
        block_height=_optional_int(raw.get("blockHeight")),
        block_time=_optional_int(raw.get("blockTime")),
        chain_id=chain_id,
        confirmations=int(raw.get("confirmations") or 0),
        fee=None if fee is None else str(fee),
        status=parse_status(raw.get("status")),
        transfers=transfers,
        txid=raw["txid"],
    )


def describe_error(error: Any) -> str:
    if isinstance(error, BaseException):
        text = str(error).strip()
        return text or error.__class__.__name__
    return str(error)


# ============================================================
# SUBSCRIPTION HANDLE
# ============================================================

class TxSubscription:
    """
    Cancellable handle for one (address, topic) subscription.

    start() registers with the websocket provider; stop() releases it.
    Both are idempotent. Once stopped, no callback fires again even if
    the provider delivers a late message.
    """

    def __init__(
        self,
        ws: WsProvider,
        subscription_id: str,
        address: str,
        chain_id: ChainIdentifier,
        on_message: TxEventHandler,
        on_error: SubscriptionErrorHandler,
        topic: str = "txs",
    ):
        self._ws = ws
        self._subscription_id = subscription_id
        self._address = address
        self._chain_id = chain_id
        self._on_message = on_message
        self._on_error = on_error
        self._topic = topic
        self._active = False
        self._on_stop: Optional[Callable[["TxSubscription"], None]] = None

    @property
    def subscription_id(self) -> str:
        return self._subscription_id

    @property
    def key(self) -> Tuple[str, str]:
        return (self._address, self._topic)

    @property
    def is_active(self) -> bool:
        return self._active

    async def start(self) -> "TxSubscription":
        if self._active:
            return self

        self._active = True
        try:
            await self._ws.subscribe_txs(
                self._subscription_id,
                {"topic": self._topic, "addresses": [self._address]},
                self._handle_message,
                self._handle_error,
            )
        except Exception:
            self._active = False
            raise

        logger.info(f"[subscription] Started {self._subscription_id} for {self._address}")
        return self

    async def stop(self) -> None:
        if not self._active:
            return

        self._active = False
        try:
            await self._ws.unsubscribe(self._subscription_id)
        finally:
            if self._on_stop is not None:
                self._on_stop(self)
            logger.info(f"[subscription] Stopped {self._subscription_id}")

    # --------------------------------------------------------
    # PROVIDER CALLBACKS
    # --------------------------------------------------------

    async def _handle_message(self, raw: Dict[str, Any]) -> None:
        if not self._active:
            return

        try:
            event = normalize_tx_message(raw, self._chain_id)
        except Exception as e:
            logger.warning(f"[subscription] Undecodable message on {self._subscription_id}: {e}")
            await self._deliver(self._on_error, SubscriptionError(message=describe_error(e)))
            return

        await self._deliver(self._on_message, event)

    async def _handle_error(self, error: Any) -> None:
        if not self._active:
            return
        await self._deliver(self._on_error, SubscriptionError(message=describe_error(error)))

    async def _deliver(self, callback: Callable[[Any], Any], value: Any) -> None:
        try:
            result = callback(value)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"[subscription] Callback error on {self._subscription_id}: {e}")

    def __repr__(self) -> str:
        state = "active" if self._active else "stopped"
        return f"<TxSubscription({self._subscription_id}, {self._address}, {state})>"


class SubscriptionRegistry:
    """At most one live subscription per (address, topic)."""

    def __init__(self):
        self._subscriptions: Dict[Tuple[str, str], TxSubscription] = {}

    def get(self, address: str, topic: str = "txs") -> Optional[TxSubscription]:
        return self._subscriptions.get((address, topic))

    def __len__(self) -> int:
        return len(self._subscriptions)

    async def replace(self, subscription: TxSubscription) -> TxSubscription:
        """Stop any subscription holding the same key, then start ``subscription``."""
        previous = self._subscriptions.get(subscription.key)
        if previous is not None and previous is not subscription:
            logger.info(f"[subscription] Replacing {previous.subscription_id}")
            await previous.stop()

        subscription._on_stop = self._discard
        self._subscriptions[subscription.key] = subscription
        try:
            await subscription.start()
        except Exception:
            self._discard(subscription)
            raise
        return subscription

    async def stop_all(self) -> None:
        for subscription in list(self._subscriptions.values()):
            await subscription.stop()
        self._subscriptions.clear()

    def _discard(self, subscription: TxSubscription) -> None:
        if self._subscriptions.get(subscription.key) is subscription:
            del self._subscriptions[subscription.key]
