"""
0x Gas Oracle client.

Fetches tiered gas prices from the 0x gas API:

    GET https://gas.api.0x.org/
    {"result": [{"source": "MEDIAN", "instant": 1.2e11, "fast": ..., "standard": ..., "low": ...}, ...]}

Prices are wei per gas. The response is returned as-is; tier selection
happens in the fee pipeline. No caching: one request per call.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..errors import ProviderError


logger = logging.getLogger(__name__)


class ZrxGasOracle:
    """aiohttp client for the 0x gas price oracle."""

    DEFAULT_URL = "https://gas.api.0x.org/"
    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        url: str = DEFAULT_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def url(self) -> str:
        return self._url

    async def get_gas_prices(self) -> List[Dict[str, Any]]:
        """
        Fetch the current per-source gas prices.

        Raises:
            ProviderError: Transport failure, HTTP error or unexpected body
        """
        session = await self._get_session()

        try:
            async with session.get(self._url) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise ProviderError(
                        message=f"HTTP {response.status} from gas oracle",
                        status_code=response.status,
                        response_body=body[:500],
                        request_url=self._url,
                    )
                data = await response.json(content_type=None)

        except aiohttp.ClientError as e:
            raise ProviderError(f"Connection error: {e}", request_url=self._url) from e

        except asyncio.TimeoutError as e:
            raise ProviderError(f"Timeout after {self._timeout}s", request_url=self._url) from e

        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, list):
            raise ProviderError("Gas oracle response missing result list", request_url=self._url)

        logger.debug(f"[gas_oracle] {len(result)} price sources")
        return result

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
