"""
Unchained WebSocket Client.

============================================================
PURPOSE
============================================================
Push-subscription client implementing the WsProvider contract.

FEATURES:
- Persistent connection management
- Automatic reconnection with backoff (dropped connections only)
- Heartbeat via aiohttp ping/pong
- Subscription routing by subscription id
- Resubscribe after reconnect

Reconnection lives here, in the transport; adapters never retry.

============================================================
USAGE
============================================================
```python
ws = UnchainedWebSocketClient("wss://api.cosmos.example/websocket")
await ws.subscribe_txs(
    "m/44'/118'/0'/0/0",
    {"topic": "txs", "addresses": ["cosmos1..."]},
    on_message,
    on_error,
)
...
await ws.unsubscribe("m/44'/118'/0'/0/0")
await ws.close()
```

============================================================
"""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import aiohttp

from .interfaces import ErrorHandler, MessageHandler


logger = logging.getLogger(__name__)


# ============================================================
# CONNECTION STATE
# ============================================================

class ConnectionState(Enum):
    """WebSocket connection states."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    RECONNECTING = "RECONNECTING"
    CLOSING = "CLOSING"


@dataclass
class WebSocketConfig:
    """WebSocket configuration."""

    # Connection
    url: str
    reconnect: bool = True
    max_reconnect_attempts: int = 10
    reconnect_interval_ms: int = 1000
    max_reconnect_interval_ms: int = 30000

    # Heartbeat
    ping_interval_ms: int = 20000


@dataclass
class _Subscription:
    filter: Dict[str, Any]
    on_message: MessageHandler
    on_error: ErrorHandler


# ============================================================
# WEBSOCKET CLIENT
# ============================================================

class UnchainedWebSocketClient:
    """
    WebSocket client for unchained transaction subscriptions.

    Wire format:
    - {"subscriptionId", "method": "subscribe", "data": {topic, addresses}}
    - {"subscriptionId", "method": "unsubscribe", "data": {topic}}
    - inbound {"subscriptionId", "data": {...}} or
      {"subscriptionId", "type": "error", "message": "..."}
    """

    def __init__(
        self,
        url: str,
        config: Optional[WebSocketConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._url = url
        self._config = config or WebSocketConfig(url=url)

        # Connection state
        self._state = ConnectionState.DISCONNECTED
        self._session = session
        self._owns_session = session is None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._connect_lock = asyncio.Lock()

        # Reconnection
        self._reconnect_count = 0
        self._reconnect_task: Optional[asyncio.Task] = None

        # Message handling
        self._receive_task: Optional[asyncio.Task] = None

        # Subscriptions
        self._subscriptions: Dict[str, _Subscription] = {}

    # --------------------------------------------------------
    # PROPERTIES
    # --------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if connected."""
        return self._state == ConnectionState.CONNECTED and self._ws is not None

    @property
    def url(self) -> str:
        return self._url

    @property
    def subscription_ids(self) -> list:
        return list(self._subscriptions)

    # --------------------------------------------------------
    # CONNECTION
    # --------------------------------------------------------

    async def connect(self) -> None:
        """
        Establish WebSocket connection.

        Raises:
            ConnectionError: If connection fails
        """
        async with self._connect_lock:
            if self.is_connected:
                return

            self._state = ConnectionState.CONNECTING

            try:
                if self._session is None or self._session.closed:
                    self._session = aiohttp.ClientSession()
                    self._owns_session = True

                self._ws = await self._session.ws_connect(
                    self._url,
                    heartbeat=self._config.ping_interval_ms / 1000,
                )
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                self._state = ConnectionState.DISCONNECTED
                logger.error(f"[ws] WebSocket connection failed: {e}")
                raise ConnectionError(f"WebSocket connection failed: {e}") from e

            self._state = ConnectionState.CONNECTED
            self._reconnect_count = 0

            logger.info(f"[ws] WebSocket connected: {self._url}")

            self._receive_task = asyncio.create_task(self._receive_loop())

        if self._subscriptions:
            await self._resubscribe()

    async def close(self) -> None:
        """Close WebSocket connection and drop all subscriptions."""
        self._state = ConnectionState.CLOSING
        self._subscriptions.clear()

        for task in (self._reconnect_task, self._receive_task):
            if task and not task.done() and task is not asyncio.current_task():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._reconnect_task = None
        self._receive_task = None

        if self._ws and not self._ws.closed:
            await self._ws.close()
        self._ws = None

        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

        self._state = ConnectionState.DISCONNECTED
        logger.info("[ws] WebSocket disconnected")

    async def _reconnect_loop(self) -> None:
        """Reconnect with exponential backoff."""
        while self._config.reconnect and self._subscriptions:
            if self._reconnect_count >= self._config.max_reconnect_attempts:
                logger.error("[ws] Max reconnection attempts reached")
                await self._notify_all(ConnectionError("Max reconnection attempts reached"))
                return

            self._state = ConnectionState.RECONNECTING
            self._reconnect_count += 1

            delay_ms = min(
                self._config.reconnect_interval_ms * (2 ** (self._reconnect_count - 1)),
                self._config.max_reconnect_interval_ms,
            )

            logger.info(f"[ws] Reconnecting in {delay_ms}ms (attempt {self._reconnect_count})")
            await asyncio.sleep(delay_ms / 1000)

            try:
                await self.connect()
                return
            except ConnectionError as e:
                logger.warning(f"[ws] Reconnect attempt {self._reconnect_count} failed: {e}")

    # --------------------------------------------------------
    # MESSAGE HANDLING
    # --------------------------------------------------------

    async def _receive_loop(self) -> None:
        """Main receive loop."""
        close_reason: Optional[BaseException] = None
        try:
            async for msg in self._ws:

                if msg.type == aiohttp.WSMsgType.TEXT:
                    await self._handle_message(msg.data)

                elif msg.type == aiohttp.WSMsgType.CLOSE:
                    logger.warning(f"[ws] WebSocket closed: {msg.data}")
                    break

                elif msg.type == aiohttp.WSMsgType.ERROR:
                    close_reason = self._ws.exception()
                    logger.error(f"[ws] WebSocket error: {close_reason}")
                    break

        except asyncio.CancelledError:
            raise

        except aiohttp.ClientError as e:
            close_reason = e
            logger.error(f"[ws] Error in receive loop: {e}")

        if self._state == ConnectionState.CONNECTED:
            self._state = ConnectionState.DISCONNECTED
            self._ws = None
            await self._notify_all(close_reason or ConnectionError("WebSocket closed"))
            if self._config.reconnect and self._subscriptions:
                self._reconnect_task = asyncio.create_task(self._reconnect_loop())

    async def _handle_message(self, data: str) -> None:
        """Route a text message to its subscription."""
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning(f"[ws] Undecodable websocket message: {data[:100]}")
            await self._notify_all(ValueError(f"Failed to decode message: {e}"))
            return

        subscription_id = parsed.get("subscriptionId") if isinstance(parsed, dict) else None
        subscription = self._subscriptions.get(subscription_id) if subscription_id else None
        if subscription is None:
            logger.debug(f"[ws] Message for unknown subscription: {subscription_id}")
            return

        if parsed.get("type") == "error":
            await _invoke(subscription.on_error, ConnectionError(parsed.get("message") or "subscription error"))
            return

        payload = parsed.get("data")
        if payload is None:
            return
        await _invoke(subscription.on_message, payload)

    async def _notify_all(self, error: BaseException) -> None:
        for subscription in list(self._subscriptions.values()):
            await _invoke(subscription.on_error, error)

    # --------------------------------------------------------
    # SENDING
    # --------------------------------------------------------

    async def send(self, message: Dict[str, Any]) -> None:
        """Send JSON message."""
        if not self.is_connected:
            raise ConnectionError("Not connected")

        await self._ws.send_json(message)

    # --------------------------------------------------------
    # SUBSCRIPTIONS
    # --------------------------------------------------------

    async def subscribe_txs(
        self,
        subscription_id: str,
        filter: Dict[str, Any],
        on_message: MessageHandler,
        on_error: ErrorHandler,
    ) -> None:
        """
        Subscribe to transactions matching ``filter``.

        Args:
            subscription_id: Client-chosen id used to route messages
            filter: {"topic": ..., "addresses": [...]}
            on_message: Called with each message payload
            on_error: Called with transport errors
        """
        self._subscriptions[subscription_id] = _Subscription(filter, on_message, on_error)

        if not self.is_connected:
            # connect() resubscribes everything registered
            await self.connect()
            return

        await self._send_subscribe(subscription_id, filter)

    async def unsubscribe(self, subscription_id: str) -> None:
        """Stop routing and ask the server to drop the subscription."""
        subscription = self._subscriptions.pop(subscription_id, None)
        if subscription is None:
            return

        if self.is_connected:
            await self.send({
                "subscriptionId": subscription_id,
                "method": "unsubscribe",
                "data": {"topic": subscription.filter.get("topic")},
            })

        if not self._subscriptions:
            await self.close()

    async def _send_subscribe(self, subscription_id: str, filter: Dict[str, Any]) -> None:
        await self.send({
            "subscriptionId": subscription_id,
            "method": "subscribe",
            "data": filter,
        })

    async def _resubscribe(self) -> None:
        """Resubscribe to all streams after (re)connection."""
        for subscription_id, subscription in list(self._subscriptions.items()):
            await self._send_subscribe(subscription_id, subscription.filter)


async def _invoke(callback, *args: Any) -> None:
    """Call a sync or async callback; callback failures are logged."""
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.error(f"[ws] Subscription callback error: {e}")
