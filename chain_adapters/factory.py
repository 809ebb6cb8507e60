"""
Chain Adapter Factory.

============================================================
PURPOSE
============================================================
Factory pattern for creating chain adapter instances.

FEATURES:
- Centralized adapter creation
- Configuration injection
- Environment-based defaults
- Creator registry for extension
- Fresh provider clients per adapter (never shared)

============================================================
USAGE
============================================================
```python
# Create adapter by chain family
adapter = AdapterFactory.create("cosmos")

# Create with explicit config
config = AdapterConfig(
    chain_family=ChainFamily.ETHEREUM,
    http_url="https://api.ethereum.example",
    ws_url="wss://api.ethereum.example",
)
adapter = AdapterFactory.create(ChainFamily.ETHEREUM, config=config)

# Manage several adapters
async with ChainAdapterManager() as manager:
    cosmos = manager.add("cosmos")
    chain_id = await cosmos.get_chain_id()
```

============================================================
"""

import logging
from typing import Callable, Dict, List, Optional, Union

from caip import ChainFamily, UnsupportedNetwork

from .base import ChainAdapter
from .config import AdapterConfig
from .cosmos import CosmosChainAdapter
from .ethereum import EthereumChainAdapter
from .providers.gas_oracle import ZrxGasOracle
from .providers.http import UnchainedHttpClient
from .providers.interfaces import Providers
from .providers.websocket import UnchainedWebSocketClient


logger = logging.getLogger(__name__)


AdapterCreator = Callable[[AdapterConfig], ChainAdapter]


def _family_key(chain_family: Union[ChainFamily, str]) -> str:
    if isinstance(chain_family, ChainFamily):
        return chain_family.value
    return chain_family.lower()


# ============================================================
# DEFAULT CREATORS
# ============================================================

def build_providers(config: AdapterConfig) -> Providers:
    """Fresh HTTP + websocket clients for one adapter."""
    if "providers" in config.options:
        return config.options["providers"]

    config.validate()
    return Providers(
        http=UnchainedHttpClient(
            config.http_url,
            timeout=config.timeout_seconds,
            name=config.chain_family.value,
        ),
        ws=UnchainedWebSocketClient(config.ws_url),
    )


def create_cosmos_adapter(config: AdapterConfig) -> CosmosChainAdapter:
    return CosmosChainAdapter(
        providers=build_providers(config),
        fee_config=config.cosmos_fees,
        default_bip44_params=config.options.get("default_bip44_params"),
    )


def create_ethereum_adapter(config: AdapterConfig) -> EthereumChainAdapter:
    gas_oracle = config.options.get("gas_oracle") or ZrxGasOracle(config.gas_oracle_url)
    return EthereumChainAdapter(
        providers=build_providers(config),
        gas_oracle=gas_oracle,
        default_bip44_params=config.options.get("default_bip44_params"),
    )


# ============================================================
# ADAPTER FACTORY
# ============================================================

class AdapterFactory:
    """
    Factory for creating chain adapters.

    Provides centralized adapter creation with configuration
    injection and extension support.
    """

    # Chain family namespace -> creator
    _creators: Dict[str, AdapterCreator] = {
        ChainFamily.COSMOS.value: create_cosmos_adapter,
        ChainFamily.ETHEREUM.value: create_ethereum_adapter,
    }

    @classmethod
    def register(cls, chain_family: Union[ChainFamily, str], creator: AdapterCreator) -> None:
        """
        Register a creator for a chain family.

        Args:
            chain_family: Chain family (enum or namespace string)
            creator: Callable building an adapter from an AdapterConfig
        """
        cls._creators[_family_key(chain_family)] = creator

    @classmethod
    def unregister(cls, chain_family: Union[ChainFamily, str]) -> None:
        """Unregister a creator."""
        cls._creators.pop(_family_key(chain_family), None)

    @classmethod
    def create(
        cls,
        chain_family: Union[ChainFamily, str],
        config: Optional[AdapterConfig] = None,
        **overrides,
    ) -> ChainAdapter:
        """
        Create a chain adapter.

        Args:
            chain_family: Chain family (enum or namespace string)
            config: Adapter configuration (defaults to environment)
            **overrides: Config fields, or options such as ``providers``,
                ``gas_oracle`` and ``default_bip44_params``

        Returns:
            ChainAdapter instance

        Raises:
            UnsupportedNetwork: If no creator is registered for the family
        """
        key = _family_key(chain_family)
        creator = cls._creators.get(key)
        if creator is None:
            raise UnsupportedNetwork(f"Unsupported chain family: {key}", value=key)

        # Create default config if not provided
        if config is None:
            config = AdapterConfig.from_env(key)

        # Merge overrides into config or its options
        for name, value in overrides.items():
            if hasattr(config, name):
                setattr(config, name, value)
            else:
                config.options[name] = value

        adapter = creator(config)
        logger.info(f"[factory] Created {adapter.__class__.__name__} for {key}")
        return adapter

    @classmethod
    def list_supported(cls) -> List[str]:
        """List chain families with a registered creator."""
        return sorted(cls._creators)


# ============================================================
# ADAPTER MANAGER
# ============================================================

class ChainAdapterManager:
    """
    One adapter per chain family.

    Manages the lifecycle of the adapters it holds.
    """

    def __init__(self):
        self._adapters: Dict[str, ChainAdapter] = {}

    def add(
        self,
        chain_family: Union[ChainFamily, str],
        adapter: Optional[ChainAdapter] = None,
        config: Optional[AdapterConfig] = None,
        **overrides,
    ) -> ChainAdapter:
        """
        Add adapter to the manager.

        Args:
            chain_family: Chain family
            adapter: Existing adapter (or create new)
            config: Config for a new adapter

        Returns:
            Adapter instance
        """
        key = _family_key(chain_family)
        if key in self._adapters:
            raise ValueError(f"Adapter already registered for {key}")

        if adapter is None:
            adapter = AdapterFactory.create(key, config, **overrides)

        self._adapters[key] = adapter
        return adapter

    async def remove(self, chain_family: Union[ChainFamily, str]) -> None:
        """Remove and close an adapter."""
        adapter = self._adapters.pop(_family_key(chain_family), None)
        if adapter is not None:
            await adapter.close()

    def get(self, chain_family: Union[ChainFamily, str]) -> Optional[ChainAdapter]:
        """Get adapter by chain family."""
        return self._adapters.get(_family_key(chain_family))

    def __getitem__(self, chain_family: Union[ChainFamily, str]) -> ChainAdapter:
        key = _family_key(chain_family)
        if key not in self._adapters:
            raise KeyError(f"Adapter not found: {key}")
        return self._adapters[key]

    def __contains__(self, chain_family: Union[ChainFamily, str]) -> bool:
        return _family_key(chain_family) in self._adapters

    def list_families(self) -> List[str]:
        """List chain families in the manager."""
        return list(self._adapters.keys())

    async def close_all(self) -> None:
        """Close every adapter; the first failure is re-raised after all are closed."""
        first_error: Optional[Exception] = None
        for key in list(self._adapters):
            adapter = self._adapters.pop(key)
            try:
                await adapter.close()
            except Exception as e:
                logger.error(f"[manager] Failed to close {key} adapter: {e}")
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    async def __aenter__(self) -> "ChainAdapterManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all()
