"""
Chain Adapters - Provider clients.

Contracts (interfaces) plus the aiohttp implementations adapters
use by default. Any object satisfying the protocols can be injected.
"""

from chain_adapters.providers.gas_oracle import ZrxGasOracle
from chain_adapters.providers.http import UnchainedHttpClient
from chain_adapters.providers.interfaces import (
    ErrorHandler,
    GasOracle,
    HttpProvider,
    MessageHandler,
    Providers,
    WsProvider,
)
from chain_adapters.providers.websocket import (
    ConnectionState,
    UnchainedWebSocketClient,
    WebSocketConfig,
)


__all__ = [
    # Contracts
    "HttpProvider",
    "WsProvider",
    "GasOracle",
    "Providers",
    "MessageHandler",
    "ErrorHandler",

    # Clients
    "UnchainedHttpClient",
    "UnchainedWebSocketClient",
    "WebSocketConfig",
    "ConnectionState",
    "ZrxGasOracle",
]
