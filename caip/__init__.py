"""
CAIP Package - Chain-agnostic identifier codec.

Canonical, parseable names for chains (CAIP2) and assets (CAIP19).
Identifiers are the join key between adapters, wallets and market
data lookups, so every adapter-exposed asset must encode and no two
distinct assets may share a string.

Quick Start:
    from caip import ChainFamily, Network, encode_chain_id, decode_asset_id

    encode_chain_id(ChainFamily.COSMOS, Network.COSMOS_COSMOSHUB_4)
    # 'cosmos:cosmoshub-4'

    asset = decode_asset_id("eip155:1/erc20:0xC770EEfAd204B5180dF6a14Ee197D99d808ee52d")
    str(asset)
    # 'eip155:1/erc20:0xc770eefad204b5180df6a14ee197d99d808ee52d'
"""

from caip.caip2 import (
    ChainIdentifier,
    decode_chain_id,
    encode_chain_id,
    is_chain_id,
    to_chain_identifier,
)
from caip.caip19 import (
    AssetIdentifier,
    decode_asset_id,
    encode_asset_id,
    native_asset_id,
    normalize_reference,
    to_asset_identifier,
)
from caip.constants import (
    SLIP44_COIN_TYPES,
    SUPPORTED_NETWORKS,
    AssetNamespace,
    ChainFamily,
    Network,
    supported_pairs,
)
from caip.exceptions import (
    CaipError,
    InvalidReference,
    MalformedIdentifier,
    UnsupportedNetwork,
)


__version__ = "1.0.0"

__all__ = [
    # Constants
    "ChainFamily",
    "Network",
    "AssetNamespace",
    "SUPPORTED_NETWORKS",
    "SLIP44_COIN_TYPES",
    "supported_pairs",

    # CAIP2
    "ChainIdentifier",
    "encode_chain_id",
    "decode_chain_id",
    "to_chain_identifier",
    "is_chain_id",

    # CAIP19
    "AssetIdentifier",
    "encode_asset_id",
    "decode_asset_id",
    "to_asset_identifier",
    "native_asset_id",
    "normalize_reference",

    # Exceptions
    "CaipError",
    "MalformedIdentifier",
    "UnsupportedNetwork",
    "InvalidReference",
]
