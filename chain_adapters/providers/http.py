"""
Unchained HTTP Client - Node/indexer REST API over aiohttp.

Implements the HttpProvider contract for the unchained v1 API shared by
the Cosmos and Ethereum indexers:

- GET  /api/v1/info
- GET  /api/v1/account/{pubkey}
- GET  /api/v1/account/{pubkey}/txs
- POST /api/v1/send
- GET  /api/v1/gas/estimate

Transport failures and HTTP errors are raised as ProviderError; the
adapter decides what they mean.
"""

import asyncio
import logging
import time
from typing import Any, Optional

import aiohttp

from ..errors import ProviderError


logger = logging.getLogger(__name__)


class UnchainedHttpClient:
    """aiohttp client for one chain's unchained API."""

    DEFAULT_TIMEOUT = 30.0
    API_PREFIX = "/api/v1"

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        name: str = "unchained",
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._name = name
        self.last_latency_ms: Optional[float] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    # --------------------------------------------------------
    # PROVIDER CONTRACT
    # --------------------------------------------------------

    async def get_info(self) -> dict[str, Any]:
        return await self._make_request("GET", "/info")

    async def get_account(self, pubkey: str) -> dict[str, Any]:
        return await self._make_request("GET", f"/account/{pubkey}")

    async def get_tx_history(
        self,
        pubkey: str,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        contract: Optional[str] = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if page is not None:
            params["page"] = page
        if page_size is not None:
            params["pageSize"] = page_size
        if contract:
            params["contract"] = contract
        return await self._make_request("GET", f"/account/{pubkey}/txs", params=params or None)

    async def send_tx(self, hex: str) -> Any:
        return await self._make_request("POST", "/send", json_body={"hex": hex})

    async def estimate_gas(
        self,
        from_address: str,
        to: str,
        value: str,
        data: str,
    ) -> str:
        result = await self._make_request(
            "GET",
            "/gas/estimate",
            params={
                name: param
                for name, param in (("from", from_address), ("to", to), ("value", value), ("data", data))
                if param is not None
            },
        )
        if isinstance(result, dict):
            result = result.get("gasLimit") or result.get("gas_limit")
        if result is None:
            raise ProviderError("Gas estimate response missing gas limit", request_url=self._url("/gas/estimate"))
        return str(result)

    # --------------------------------------------------------
    # HTTP HELPERS
    # --------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._base_url}{self.API_PREFIX}{path}"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def _make_request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make HTTP request with error handling."""
        session = await self._get_session()
        url = self._url(path)

        start_time = time.time()
        try:
            async with session.request(method, url, params=params, json=json_body) as response:
                self.last_latency_ms = (time.time() - start_time) * 1000
                logger.debug(
                    f"[{self._name}] {method} {path} -> {response.status} "
                    f"({self.last_latency_ms:.0f}ms)"
                )

                if response.status >= 400:
                    body = await response.text()
                    raise ProviderError(
                        message=f"HTTP {response.status} from {self._name}",
                        status_code=response.status,
                        response_body=body[:500],
                        request_url=url,
                    )

                return await response.json(content_type=None)

        except aiohttp.ClientError as e:
            raise ProviderError(
                message=f"Connection error: {e}",
                request_url=url,
            ) from e

        except asyncio.TimeoutError as e:
            raise ProviderError(
                message=f"Timeout after {self._timeout}s",
                request_url=url,
            ) from e

    # --------------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------------

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "UnchainedHttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self._name}, url={self._base_url})>"
