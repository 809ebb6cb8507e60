"""
Unchained WebSocket Client Tests.

============================================================
PURPOSE
============================================================
Message routing and subscribe/unsubscribe framing of
UnchainedWebSocketClient with a mocked aiohttp connection.

TEST CATEGORIES:
- Routing by subscriptionId
- Error delivery
- Subscribe / unsubscribe messages
- Connection failures

============================================================
"""

import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from chain_adapters.providers.websocket import ConnectionState, UnchainedWebSocketClient


SUB_ID = "m/44'/118'/0'/0/0:txs"
FILTER = {"topic": "txs", "addresses": ["cosmos1abc"]}


@pytest.fixture
def client():
    """Client with a mocked, already open connection."""
    client = UnchainedWebSocketClient("wss://example.test")
    ws = MagicMock()
    ws.closed = False
    ws.send_json = AsyncMock()
    ws.close = AsyncMock()
    client._ws = ws
    client._state = ConnectionState.CONNECTED
    return client


# ============================================================
# ROUTING
# ============================================================

class TestMessageRouting:
    """Tests for _handle_message."""

    @pytest.mark.asyncio
    async def test_routes_payload_by_subscription_id(self, client):
        on_message = MagicMock()
        other = MagicMock()
        await client.subscribe_txs(SUB_ID, FILTER, on_message, MagicMock())
        await client.subscribe_txs("other", FILTER, other, MagicMock())

        await client._handle_message(json.dumps({"subscriptionId": SUB_ID, "data": {"txid": "A"}}))

        on_message.assert_called_once_with({"txid": "A"})
        other.assert_not_called()

    @pytest.mark.asyncio
    async def test_async_handler_awaited(self, client):
        on_message = AsyncMock()
        await client.subscribe_txs(SUB_ID, FILTER, on_message, MagicMock())

        await client._handle_message(json.dumps({"subscriptionId": SUB_ID, "data": {"txid": "A"}}))

        on_message.assert_awaited_once_with({"txid": "A"})

    @pytest.mark.asyncio
    async def test_server_error_goes_to_on_error(self, client):
        on_message = MagicMock()
        on_error = MagicMock()
        await client.subscribe_txs(SUB_ID, FILTER, on_message, on_error)

        await client._handle_message(json.dumps({"subscriptionId": SUB_ID, "type": "error", "message": "bad filter"}))

        on_message.assert_not_called()
        assert str(on_error.call_args.args[0]) == "bad filter"

    @pytest.mark.asyncio
    async def test_undecodable_message_notifies_all(self, client):
        on_error = MagicMock()
        await client.subscribe_txs(SUB_ID, FILTER, MagicMock(), on_error)

        await client._handle_message("{not json")

        assert isinstance(on_error.call_args.args[0], ValueError)

    @pytest.mark.asyncio
    async def test_unknown_subscription_ignored(self, client):
        on_message = MagicMock()
        await client.subscribe_txs(SUB_ID, FILTER, on_message, MagicMock())

        await client._handle_message(json.dumps({"subscriptionId": "gone", "data": {}}))

        on_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_handler_failure_contained(self, client):
        on_message = MagicMock(side_effect=RuntimeError("boom"))
        await client.subscribe_txs(SUB_ID, FILTER, on_message, MagicMock())

        await client._handle_message(json.dumps({"subscriptionId": SUB_ID, "data": {}}))

        on_message.assert_called_once()


# ============================================================
# SUBSCRIBE / UNSUBSCRIBE
# ============================================================

class TestSubscriptions:
    """Subscribe and unsubscribe framing."""

    @pytest.mark.asyncio
    async def test_subscribe_sends_filter(self, client):
        await client.subscribe_txs(SUB_ID, FILTER, MagicMock(), MagicMock())

        client._ws.send_json.assert_awaited_once_with({
            "subscriptionId": SUB_ID,
            "method": "subscribe",
            "data": FILTER,
        })
        assert client.subscription_ids == [SUB_ID]

    @pytest.mark.asyncio
    async def test_subscribe_connects_when_disconnected(self):
        client = UnchainedWebSocketClient("wss://example.test")
        client.connect = AsyncMock()

        await client.subscribe_txs(SUB_ID, FILTER, MagicMock(), MagicMock())

        client.connect.assert_awaited_once()
        assert client.subscription_ids == [SUB_ID]

    @pytest.mark.asyncio
    async def test_unsubscribe_sends_message_and_closes_when_idle(self, client):
        ws = client._ws
        await client.subscribe_txs(SUB_ID, FILTER, MagicMock(), MagicMock())

        await client.unsubscribe(SUB_ID)

        ws.send_json.assert_awaited_with({
            "subscriptionId": SUB_ID,
            "method": "unsubscribe",
            "data": {"topic": "txs"},
        })
        ws.close.assert_awaited_once()
        assert client.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_unsubscribe_keeps_connection_for_others(self, client):
        await client.subscribe_txs(SUB_ID, FILTER, MagicMock(), MagicMock())
        await client.subscribe_txs("other", FILTER, MagicMock(), MagicMock())

        await client.unsubscribe(SUB_ID)

        assert client.is_connected
        assert client.subscription_ids == ["other"]

    @pytest.mark.asyncio
    async def test_unsubscribe_unknown_is_noop(self, client):
        await client.unsubscribe("never-subscribed")

        client._ws.send_json.assert_not_awaited()


class TestConnection:
    """Connection failures."""

    @pytest.mark.asyncio
    async def test_connect_failure_raises_connection_error(self):
        session = MagicMock()
        session.closed = False
        session.ws_connect = AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))
        client = UnchainedWebSocketClient("wss://example.test", session=session)

        with pytest.raises(ConnectionError):
            await client.connect()

        assert client.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_send_requires_connection(self):
        client = UnchainedWebSocketClient("wss://example.test")

        with pytest.raises(ConnectionError):
            await client.send({"method": "ping"})
