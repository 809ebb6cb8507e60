"""
Chain Adapters - Configuration.

============================================================
PURPOSE
============================================================
Per-family adapter configuration with environment defaults.

ENVIRONMENT (.env supported):
    <FAMILY>_HTTP_URL          e.g. COSMOS_HTTP_URL
    <FAMILY>_WS_URL            e.g. EIP155_WS_URL
    <FAMILY>_TIMEOUT_SECONDS   HTTP transport timeout
    GAS_ORACLE_URL             0x gas API endpoint
    COSMOS_GAS_PRICE_SLOW / _AVERAGE / _FAST
    COSMOS_GAS_LIMIT

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv

from caip import ChainFamily

from .providers.gas_oracle import ZrxGasOracle


# Load environment variables
load_dotenv()


DEFAULT_HTTP_URLS: Dict[ChainFamily, str] = {
    ChainFamily.COSMOS: "https://api.cosmos.shapeshift.com",
    ChainFamily.ETHEREUM: "https://api.ethereum.shapeshift.com",
}

DEFAULT_WS_URLS: Dict[ChainFamily, str] = {
    ChainFamily.COSMOS: "wss://api.cosmos.shapeshift.com",
    ChainFamily.ETHEREUM: "wss://api.ethereum.shapeshift.com",
}


def _family(chain_family: Union[ChainFamily, str]) -> ChainFamily:
    if isinstance(chain_family, ChainFamily):
        return chain_family
    return ChainFamily(chain_family.lower())


@dataclass
class CosmosFeeConfig:
    """
    Static gas-price tiers for Cosmos-SDK chains.

    Prices are in uatom per gas unit.
    """

    slow: str = "0.01"
    average: str = "0.025"
    fast: str = "0.04"

    gas_limit: str = "250000"
    """Gas units charged for a standard transfer."""

    @classmethod
    def from_env(cls) -> "CosmosFeeConfig":
        """Load fee tiers from environment variables."""
        defaults = cls()
        return cls(
            slow=os.getenv("COSMOS_GAS_PRICE_SLOW", defaults.slow),
            average=os.getenv("COSMOS_GAS_PRICE_AVERAGE", defaults.average),
            fast=os.getenv("COSMOS_GAS_PRICE_FAST", defaults.fast),
            gas_limit=os.getenv("COSMOS_GAS_LIMIT", defaults.gas_limit),
        )


@dataclass
class AdapterConfig:
    """
    Configuration for one chain adapter.

    Each adapter built from a config gets its own provider clients.
    """

    chain_family: ChainFamily = ChainFamily.COSMOS

    # Providers
    http_url: Optional[str] = None
    ws_url: Optional[str] = None
    gas_oracle_url: str = ZrxGasOracle.DEFAULT_URL

    # Connection
    timeout_seconds: float = 30.0
    """HTTP transport timeout; adapters add none of their own."""

    # Fees (Cosmos only)
    cosmos_fees: CosmosFeeConfig = field(default_factory=CosmosFeeConfig)

    # Family-specific options
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.chain_family = _family(self.chain_family)
        if self.http_url is None:
            self.http_url = DEFAULT_HTTP_URLS.get(self.chain_family)
        if self.ws_url is None:
            self.ws_url = DEFAULT_WS_URLS.get(self.chain_family)

    @classmethod
    def from_env(cls, chain_family: Union[ChainFamily, str]) -> "AdapterConfig":
        """
        Create config from environment variables.

        Args:
            chain_family: Chain family (enum or namespace string)

        Returns:
            AdapterConfig
        """
        family = _family(chain_family)
        prefix = family.value.upper()

        return cls(
            chain_family=family,
            http_url=os.getenv(f"{prefix}_HTTP_URL"),
            ws_url=os.getenv(f"{prefix}_WS_URL"),
            gas_oracle_url=os.getenv("GAS_ORACLE_URL", ZrxGasOracle.DEFAULT_URL),
            timeout_seconds=float(os.getenv(f"{prefix}_TIMEOUT_SECONDS", "30")),
            cosmos_fees=CosmosFeeConfig.from_env(),
        )

    def validate(self) -> None:
        """
        Raises:
            ValueError: If a required provider URL is missing
        """
        if not self.http_url:
            raise ValueError(f"No HTTP provider URL configured for {self.chain_family.value}")
        if not self.ws_url:
            raise ValueError(f"No websocket provider URL configured for {self.chain_family.value}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive: {self.timeout_seconds}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain_family": self.chain_family.value,
            "http_url": self.http_url,
            "ws_url": self.ws_url,
            "gas_oracle_url": self.gas_oracle_url,
            "timeout_seconds": self.timeout_seconds,
        }
