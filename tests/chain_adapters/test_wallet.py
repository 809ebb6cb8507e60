"""
Wallet Capability Tests.
"""

from unittest.mock import AsyncMock

import pytest

from chain_adapters.wallet import call_wallet, supports


class SyncCosmosWallet:
    """Plain wallet object with synchronous methods."""

    def cosmos_get_address(self, address_n_list, show_display=False):
        return f"cosmos1-{address_n_list[-1]}-{show_display}"

    cosmos_send_tx = None


class TestSupports:
    """Capability detection is duck-typed."""

    def test_callable_capability(self):
        assert supports(SyncCosmosWallet(), "cosmos_get_address")

    def test_missing_or_non_callable(self):
        wallet = SyncCosmosWallet()

        assert not supports(wallet, "eth_get_address")
        assert not supports(wallet, "cosmos_send_tx")
        assert not supports(None, "cosmos_get_address")


class TestCallWallet:
    """Sync and async wallet implementations."""

    @pytest.mark.asyncio
    async def test_sync_method(self):
        address = await call_wallet(SyncCosmosWallet(), "cosmos_get_address", [0, 7], show_display=True)

        assert address == "cosmos1-7-True"

    @pytest.mark.asyncio
    async def test_async_method(self):
        wallet = AsyncMock()
        wallet.eth_sign_tx.return_value = "0xsigned"

        assert await call_wallet(wallet, "eth_sign_tx", {"nonce": "0x0"}) == "0xsigned"
        wallet.eth_sign_tx.assert_awaited_once_with({"nonce": "0x0"})
