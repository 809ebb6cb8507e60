"""
CAIP Codec - Chain, network and asset namespace tables.

============================================================
PURPOSE
============================================================
The closed set of chain families, networks and asset namespaces the
codec knows about. Anything outside these tables is rejected rather
than passed through.

============================================================
"""

import re
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple


# ============================================================
# CHAIN FAMILIES
# ============================================================

class ChainFamily(Enum):
    """Chain families, valued by their CAIP2 namespace."""

    COSMOS = "cosmos"
    ETHEREUM = "eip155"
    BITCOIN = "bip122"


# ============================================================
# NETWORKS
# ============================================================

class Network(Enum):
    """Deployed networks, valued by their CAIP2 reference."""

    COSMOS_COSMOSHUB_4 = "cosmoshub-4"
    COSMOS_VEGA_TESTNET = "vega-testnet"

    ETH_MAINNET = "1"
    ETH_ROPSTEN = "3"
    ETH_RINKEBY = "4"

    BTC_MAINNET = "000000000019d6689c085ae165831e93"
    BTC_TESTNET = "000000000933ea01ad0ee984209779ba"


# Supported (family, network) pairs
SUPPORTED_NETWORKS: Dict[ChainFamily, FrozenSet[Network]] = {
    ChainFamily.COSMOS: frozenset({
        Network.COSMOS_COSMOSHUB_4,
        Network.COSMOS_VEGA_TESTNET,
    }),
    ChainFamily.ETHEREUM: frozenset({
        Network.ETH_MAINNET,
        Network.ETH_ROPSTEN,
        Network.ETH_RINKEBY,
    }),
    ChainFamily.BITCOIN: frozenset({
        Network.BTC_MAINNET,
        Network.BTC_TESTNET,
    }),
}


# ============================================================
# ASSET NAMESPACES
# ============================================================

class AssetNamespace(Enum):
    """Asset namespaces used in CAIP19 identifiers."""

    SLIP44 = "slip44"
    ERC20 = "erc20"

    @property
    def is_native(self) -> bool:
        return self is AssetNamespace.SLIP44


# SLIP-44 coin type of each family's native asset
SLIP44_COIN_TYPES: Dict[ChainFamily, int] = {
    ChainFamily.COSMOS: 118,
    ChainFamily.ETHEREUM: 60,
    ChainFamily.BITCOIN: 0,
}

# Token-standard namespaces per family, with the hex digit count of
# the contract reference (excluding the 0x prefix)
TOKEN_NAMESPACES: Dict[ChainFamily, Dict[AssetNamespace, int]] = {
    ChainFamily.ETHEREUM: {
        AssetNamespace.ERC20: 40,
    },
}


# ============================================================
# GRAMMAR
# ============================================================

CHAIN_FAMILY_PATTERN = re.compile(r"[a-z0-9][a-z0-9-]{2,7}")
NETWORK_PATTERN = re.compile(r"[a-z0-9][a-z0-9-]{0,31}")
ASSET_NAMESPACE_PATTERN = re.compile(r"[a-z0-9][a-z0-9-]{2,7}")
ASSET_REFERENCE_PATTERN = re.compile(r"[A-Za-z0-9-]{1,64}")
SLIP44_REFERENCE_PATTERN = re.compile(r"(0|[1-9][0-9]*)")


def lookup_chain_family(value: str) -> Optional[ChainFamily]:
    """Find a chain family by namespace string."""
    for family in ChainFamily:
        if family.value == value:
            return family
    return None


def lookup_network(family: ChainFamily, value: str) -> Optional[Network]:
    """Find a supported network of ``family`` by reference string."""
    for network in SUPPORTED_NETWORKS.get(family, frozenset()):
        if network.value == value:
            return network
    return None


def lookup_asset_namespace(value: str) -> Optional[AssetNamespace]:
    """Find an asset namespace by string."""
    for namespace in AssetNamespace:
        if namespace.value == value:
            return namespace
    return None


def token_reference_length(
    family: ChainFamily,
    namespace: AssetNamespace,
) -> Optional[int]:
    """Hex digit count for a token reference, or None if unsupported."""
    return TOKEN_NAMESPACES.get(family, {}).get(namespace)


def supported_pairs() -> Tuple[Tuple[ChainFamily, Network], ...]:
    """All supported (family, network) pairs in a stable order."""
    pairs = []
    for family in ChainFamily:
        for network in sorted(SUPPORTED_NETWORKS[family], key=lambda n: n.value):
            pairs.append((family, network))
    return tuple(pairs)
