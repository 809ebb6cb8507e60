"""
Chain Adapters - Provider Contracts.

============================================================
PURPOSE
============================================================
Explicit interfaces for the external collaborators an adapter
consumes. Adapters depend on these protocols, never on a concrete
client type; tests substitute AsyncMock fakes.

HTTP (node/indexer):
- get_info, get_account, get_tx_history, send_tx, estimate_gas

WebSocket:
- subscribe_txs(subscription_id, filter, on_message, on_error)
- unsubscribe(subscription_id)

Gas oracle:
- get_gas_prices() -> [{source, instant, fast, low, ...}]

Failures are raised as ProviderError (or raw transport errors);
adapters normalize them.

============================================================
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable


MessageHandler = Callable[[Dict[str, Any]], Any]
ErrorHandler = Callable[[BaseException], Any]


@runtime_checkable
class HttpProvider(Protocol):
    """Node/indexer HTTP API."""

    async def get_info(self) -> Dict[str, Any]:
        """Network info; at least {"network": "mainnet" | "testnet" ...}."""
        ...

    async def get_account(self, pubkey: str) -> Dict[str, Any]:
        """Account balance and family-specific fields."""
        ...

    async def get_tx_history(
        self,
        pubkey: str,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        contract: Optional[str] = None,
    ) -> Dict[str, Any]:
        """{"page", "totalPages", "transactions": [...]}."""
        ...

    async def send_tx(self, hex: str) -> Any:
        """Submit a signed raw transaction."""
        ...

    async def estimate_gas(
        self,
        from_address: str,
        to: str,
        value: str,
        data: str,
    ) -> str:
        """Simulate a transaction and return its gas limit."""
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class WsProvider(Protocol):
    """Push-subscription websocket API."""

    async def subscribe_txs(
        self,
        subscription_id: str,
        filter: Dict[str, Any],
        on_message: MessageHandler,
        on_error: ErrorHandler,
    ) -> None:
        ...

    async def unsubscribe(self, subscription_id: str) -> None:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class GasOracle(Protocol):
    """Tiered gas price oracle."""

    async def get_gas_prices(self) -> List[Dict[str, Any]]:
        ...

    async def close(self) -> None:
        ...


@dataclass
class Providers:
    """Provider pair owned by one adapter instance."""

    http: HttpProvider
    ws: WsProvider
