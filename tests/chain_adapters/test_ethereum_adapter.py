"""
Ethereum Chain Adapter Tests.

============================================================
PURPOSE
============================================================
EthereumChainAdapter against mocked providers, gas oracle and wallet.

TEST CATEGORIES:
- Chain id resolution
- Account tokens
- Oracle-priced fees (native, ERC20, send-max)
- Fee failures
- Wallet and lifecycle

============================================================
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from chain_adapters.errors import ChainAdapterException, ErrorKind, ProviderError
from chain_adapters.ethereum import ERC20_TRANSFER_SELECTOR, EthereumChainAdapter, erc20_transfer_data
from chain_adapters.providers.interfaces import Providers
from chain_adapters.types import FeeTierName, GetAddressInput, GetFeeDataInput, SignTxInput, TokenBalance


SENDER = "0x" + "11" * 20
RECIPIENT = "0x" + "ab" * 20
TOKEN = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"

ORACLE_RESULT = [
    {"source": "ETH_GAS_STATION", "instant": 999, "fast": 998, "standard": 997, "low": 996},
    {"source": "MEDIAN", "instant": 150000000000, "fast": 120000000000, "standard": 100000000000, "low": 90000000000},
]


@pytest.fixture
def providers():
    """Create mock HTTP and websocket providers."""
    http = MagicMock()
    http.get_info = AsyncMock(return_value={"network": "mainnet"})
    http.get_account = AsyncMock(return_value={
        "balance": "5000000000000000000",
        "pubkey": SENDER,
        "nonce": 3,
        "tokens": [
            {"contract": TOKEN, "balance": "1000", "name": "USD Coin", "symbol": "USDC", "precision": 6},
        ],
    })
    http.estimate_gas = AsyncMock(return_value="21000")
    http.send_tx = AsyncMock(return_value="0xhash")
    http.close = AsyncMock()

    ws = MagicMock()
    ws.subscribe_txs = AsyncMock()
    ws.unsubscribe = AsyncMock()
    ws.close = AsyncMock()
    return Providers(http=http, ws=ws)


@pytest.fixture
def gas_oracle():
    """Create mock 0x gas oracle."""
    oracle = MagicMock()
    oracle.get_gas_prices = AsyncMock(return_value=ORACLE_RESULT)
    oracle.close = AsyncMock()
    return oracle


@pytest.fixture
def adapter(providers, gas_oracle):
    return EthereumChainAdapter(providers=providers, gas_oracle=gas_oracle)


# ============================================================
# CHAIN ID / ACCOUNT
# ============================================================

class TestQueries:
    """Chain id and account queries."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("network, expected", [
        ("mainnet", "eip155:1"),
        ("ropsten", "eip155:3"),
        ("rinkeby", "eip155:4"),
    ])
    async def test_chain_id(self, adapter, providers, network, expected):
        providers.http.get_info.return_value = {"network": network}

        assert str(await adapter.get_chain_id()) == expected

    @pytest.mark.asyncio
    async def test_unknown_network(self, adapter, providers):
        providers.http.get_info.return_value = {"network": "goerli"}

        with pytest.raises(ChainAdapterException) as exc_info:
            await adapter.get_chain_id()

        assert exc_info.value.kind is ErrorKind.UNSUPPORTED_NETWORK

    @pytest.mark.asyncio
    async def test_account_tokens(self, adapter):
        account = await adapter.get_account(SENDER)

        assert str(account.asset_id) == "eip155:1/slip44:60"
        assert account.chain_specific["nonce"] == 3

        token = account.chain_specific["tokens"][0]
        assert isinstance(token, TokenBalance)
        assert str(token.asset_id) == f"eip155:1/erc20:{TOKEN.lower()}"
        assert token.balance == "1000"
        assert token.symbol == "USDC"


# ============================================================
# FEES
# ============================================================

class TestGetFeeData:
    """Tests for oracle-priced fee estimation."""

    @pytest.mark.asyncio
    async def test_native_transfer(self, adapter, providers, gas_oracle):
        estimate = await adapter.get_fee_data(
            GetFeeDataInput(to=RECIPIENT, value="1", chain_specific={"from": SENDER})
        )

        assert estimate.fast.tx_fee == str(150000000000 * 21000)
        assert estimate.average.chain_specific["gas_price"] == "120000000000"
        assert estimate.slow.chain_specific["gas_limit"] == "21000"
        providers.http.estimate_gas.assert_awaited_once_with(SENDER, RECIPIENT, "1", "0x")
        gas_oracle.get_gas_prices.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_tiers_ordered(self, adapter):
        estimate = await adapter.get_fee_data(GetFeeDataInput(to=RECIPIENT, chain_specific={"from": SENDER}))

        fees = [Decimal(estimate.tier(name).tx_fee) for name in FeeTierName]
        assert fees == sorted(fees)

    @pytest.mark.asyncio
    async def test_token_send_max(self, adapter, providers):
        """Token balance is encoded as the transfer amount; value sent is 0."""
        await adapter.get_fee_data(GetFeeDataInput(
            to=RECIPIENT,
            send_max=True,
            chain_specific={"from": SENDER, "contract_address": TOKEN},
        ))

        from_address, to, value, data = providers.http.estimate_gas.call_args.args
        assert from_address == SENDER
        assert to == TOKEN.lower()
        assert value == "0"
        assert data.startswith("0x" + ERC20_TRANSFER_SELECTOR.hex())
        assert data.endswith(format(1000, "064x"))
        assert RECIPIENT[2:] in data

    @pytest.mark.asyncio
    async def test_token_transfer_uses_input_value(self, adapter, providers):
        await adapter.get_fee_data(GetFeeDataInput(
            to=RECIPIENT,
            value="42",
            chain_specific={"from": SENDER, "contract_address": TOKEN},
        ))

        data = providers.http.estimate_gas.call_args.args[3]
        assert data == erc20_transfer_data(RECIPIENT, "42")

    @pytest.mark.asyncio
    async def test_explicit_contract_data(self, adapter, providers):
        await adapter.get_fee_data(GetFeeDataInput(
            to=RECIPIENT,
            chain_specific={"from": SENDER, "contract_data": "0xfeed"},
        ))

        assert providers.http.estimate_gas.call_args.args[3] == "0xfeed"

    @pytest.mark.asyncio
    async def test_native_send_max(self, adapter):
        estimate = await adapter.get_fee_data(GetFeeDataInput(
            to=RECIPIENT,
            send_max=True,
            chain_specific={"from": SENDER},
        ))

        fee = 90000000000 * 21000
        assert estimate.slow.chain_specific["send_max_value"] == str(5000000000000000000 - fee)

    @pytest.mark.asyncio
    async def test_send_max_requires_sender(self, adapter):
        with pytest.raises(ChainAdapterException) as exc_info:
            await adapter.get_fee_data(GetFeeDataInput(to=RECIPIENT, send_max=True))

        assert exc_info.value.kind is ErrorKind.FEE_DATA_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_unknown_token_balance(self, adapter):
        with pytest.raises(ChainAdapterException) as exc_info:
            await adapter.get_fee_data(GetFeeDataInput(
                to=RECIPIENT,
                send_max=True,
                chain_specific={"from": SENDER, "contract_address": "0x" + "22" * 20},
            ))

        assert exc_info.value.kind is ErrorKind.FEE_DATA_UNAVAILABLE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("send_max", [False, True])
    async def test_malformed_contract_rejected_before_oracle(self, adapter, providers, gas_oracle, send_max):
        """A non-hex contract is InvalidReference; no oracle or gas call is made."""
        with pytest.raises(ChainAdapterException) as exc_info:
            await adapter.get_fee_data(GetFeeDataInput(
                to=RECIPIENT,
                value="5",
                send_max=send_max,
                chain_specific={"from": SENDER, "contract_address": "0xNOT-A-CONTRACT"},
            ))

        assert exc_info.value.kind is ErrorKind.INVALID_REFERENCE
        assert exc_info.value.error.operation == "get_fee_data"
        assert gas_oracle.get_gas_prices.await_count == 0
        providers.http.get_account.assert_not_awaited()
        providers.http.estimate_gas.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_median_source(self, adapter, gas_oracle, providers):
        gas_oracle.get_gas_prices.return_value = ORACLE_RESULT[:1]

        with pytest.raises(ChainAdapterException) as exc_info:
            await adapter.get_fee_data(GetFeeDataInput(to=RECIPIENT, chain_specific={"from": SENDER}))

        assert exc_info.value.kind is ErrorKind.FEE_DATA_UNAVAILABLE
        assert exc_info.value.error.is_retryable()
        providers.http.estimate_gas.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_tier(self, adapter, gas_oracle):
        median = dict(ORACLE_RESULT[1])
        del median["instant"]
        gas_oracle.get_gas_prices.return_value = [median]

        with pytest.raises(ChainAdapterException) as exc_info:
            await adapter.get_fee_data(GetFeeDataInput(to=RECIPIENT, chain_specific={"from": SENDER}))

        assert exc_info.value.kind is ErrorKind.FEE_DATA_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_oracle_unreachable(self, adapter, gas_oracle):
        gas_oracle.get_gas_prices.side_effect = ProviderError("HTTP 503", status_code=503)

        with pytest.raises(ChainAdapterException) as exc_info:
            await adapter.get_fee_data(GetFeeDataInput(to=RECIPIENT, chain_specific={"from": SENDER}))

        assert exc_info.value.kind is ErrorKind.FEE_DATA_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_gas_estimation_failure(self, adapter, providers):
        providers.http.estimate_gas.side_effect = ProviderError("execution reverted", status_code=400)

        with pytest.raises(ChainAdapterException) as exc_info:
            await adapter.get_fee_data(GetFeeDataInput(to=RECIPIENT, chain_specific={"from": SENDER}))

        assert exc_info.value.kind is ErrorKind.GAS_ESTIMATION_FAILED
        assert exc_info.value.error.provider_status == 400
        assert exc_info.value.error.operation == "get_fee_data"


def test_erc20_transfer_data_layout():
    data = erc20_transfer_data(RECIPIENT, "1000")

    # selector + two 32-byte words
    assert len(data) == 2 + 8 + 64 + 64
    assert data[:10] == "0xa9059cbb"
    assert data[10:74] == "0" * 24 + RECIPIENT[2:]


# ============================================================
# WALLET / LIFECYCLE
# ============================================================

class TestWalletOperations:
    """Tests for EVM wallet calls."""

    @pytest.mark.asyncio
    async def test_get_address_uses_coin_type_60(self, adapter):
        wallet = MagicMock(spec=["eth_get_address", "eth_sign_tx"])
        wallet.eth_get_address = AsyncMock(return_value=SENDER)

        assert await adapter.get_address(GetAddressInput(wallet=wallet)) == SENDER
        assert wallet.eth_get_address.call_args.args[0][1] == 0x80000000 + 60

    @pytest.mark.asyncio
    async def test_cosmos_wallet_rejected(self, adapter):
        wallet = MagicMock(spec=["cosmos_get_address"])

        with pytest.raises(ChainAdapterException) as exc_info:
            await adapter.get_address(GetAddressInput(wallet=wallet))

        assert exc_info.value.kind is ErrorKind.WALLET_UNAVAILABLE
        assert exc_info.value.error.chain_family == "eip155"

    @pytest.mark.asyncio
    async def test_sign_transaction_string_result(self, adapter):
        wallet = MagicMock(spec=["eth_sign_tx"])
        wallet.eth_sign_tx = AsyncMock(return_value="0xsigned")

        assert await adapter.sign_transaction(SignTxInput(wallet=wallet, tx_to_sign={"nonce": "0x0"})) == "0xsigned"

    @pytest.mark.asyncio
    async def test_close_closes_oracle(self, adapter, providers, gas_oracle):
        await adapter.close()

        gas_oracle.close.assert_awaited_once()
        providers.http.close.assert_awaited_once()
