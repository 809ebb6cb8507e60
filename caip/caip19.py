"""
CAIP Codec - Asset identifiers (CAIP19).

============================================================
PURPOSE
============================================================
Canonical asset names of the form
``<chainFamily>:<network>/<assetNamespace>:<assetReference>``.

Examples:
- cosmos:cosmoshub-4/slip44:118
- eip155:1/slip44:60
- eip155:1/erc20:0xc770eefad204b5180df6a14ee197d99d808ee52d

NORMALIZATION:
- Token references are lower-cased before encoding, so two
  spellings of one contract never yield two identifiers.
- Native (slip44) references must be the family's coin type.

============================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from .caip2 import ChainIdentifier, decode_chain_id, encode_chain_id
from .constants import (
    ASSET_NAMESPACE_PATTERN,
    ASSET_REFERENCE_PATTERN,
    SLIP44_COIN_TYPES,
    SLIP44_REFERENCE_PATTERN,
    AssetNamespace,
    lookup_asset_namespace,
    token_reference_length,
)
from .exceptions import InvalidReference, MalformedIdentifier


ASSET_SEPARATOR = "/"
NAMESPACE_SEPARATOR = ":"
HEX_DIGITS = frozenset("0123456789abcdef")


# ============================================================
# ASSET IDENTIFIER
# ============================================================

@dataclass(frozen=True)
class AssetIdentifier:
    """
    Immutable asset identifier.

    The reference is normalized on construction; equal assets compare
    equal regardless of the casing they were built from.
    """

    chain: ChainIdentifier
    """Chain the asset lives on."""

    asset_namespace: AssetNamespace
    """Native (slip44) or token standard."""

    asset_reference: str
    """Coin type or contract address."""

    def __post_init__(self) -> None:
        normalized = normalize_reference(self.chain, self.asset_namespace, self.asset_reference)
        object.__setattr__(self, "asset_reference", normalized)

    @property
    def is_native(self) -> bool:
        return self.asset_namespace.is_native

    def __str__(self) -> str:
        return (
            f"{encode_chain_id(self.chain.chain_family, self.chain.network)}"
            f"{ASSET_SEPARATOR}{self.asset_namespace.value}"
            f"{NAMESPACE_SEPARATOR}{self.asset_reference}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "chain": self.chain.to_dict(),
            "asset_namespace": self.asset_namespace.value,
            "asset_reference": self.asset_reference,
            "caip19": str(self),
        }


# ============================================================
# NORMALIZATION
# ============================================================

def normalize_reference(
    chain: ChainIdentifier,
    asset_namespace: AssetNamespace,
    asset_reference: str,
) -> str:
    """
    Validate and normalize an asset reference for its namespace.

    Raises:
        InvalidReference: If the reference has the wrong shape, or the
            namespace is not available on the chain family
    """
    family = chain.chain_family
    reference = str(asset_reference).strip() if asset_reference is not None else ""

    if asset_namespace is AssetNamespace.SLIP44:
        if not SLIP44_REFERENCE_PATTERN.fullmatch(reference):
            raise InvalidReference(
                f"slip44 reference must be a decimal coin type: {asset_reference!r}",
                value=str(asset_reference),
            )
        expected = SLIP44_COIN_TYPES.get(family)
        if expected is None or int(reference) != expected:
            raise InvalidReference(
                f"slip44:{reference} is not the native asset of {family.value}",
                value=reference,
                context={"expected": expected},
            )
        return reference

    length = token_reference_length(family, asset_namespace)
    if length is None:
        raise InvalidReference(
            f"Namespace {asset_namespace.value} is not supported for {family.value}",
            value=reference,
        )

    lowered = reference.lower()
    digits = lowered[2:]
    if not lowered.startswith("0x") or len(digits) != length or not set(digits) <= HEX_DIGITS:
        raise InvalidReference(
            f"{asset_namespace.value} reference must be 0x followed by {length} hex digits: "
            f"{asset_reference!r}",
            value=reference,
        )
    return lowered


def _coerce_chain(chain: Union[ChainIdentifier, str]) -> ChainIdentifier:
    if isinstance(chain, ChainIdentifier):
        return chain
    return decode_chain_id(chain)


def _coerce_namespace(asset_namespace: Union[AssetNamespace, str]) -> AssetNamespace:
    if isinstance(asset_namespace, AssetNamespace):
        return asset_namespace
    namespace = lookup_asset_namespace(str(asset_namespace))
    if namespace is None:
        raise InvalidReference(
            f"Unsupported asset namespace: {asset_namespace}",
            value=str(asset_namespace),
        )
    return namespace


# ============================================================
# ENCODE / DECODE
# ============================================================

def to_asset_identifier(
    chain: Union[ChainIdentifier, str],
    asset_namespace: Union[AssetNamespace, str],
    asset_reference: str,
) -> AssetIdentifier:
    """Build a normalized AssetIdentifier from loose inputs."""
    return AssetIdentifier(
        chain=_coerce_chain(chain),
        asset_namespace=_coerce_namespace(asset_namespace),
        asset_reference=asset_reference,
    )


def encode_asset_id(
    chain: Union[ChainIdentifier, str],
    asset_namespace: Union[AssetNamespace, str],
    asset_reference: str,
) -> str:
    """
    Encode an asset to its CAIP19 string.

    Args:
        chain: ChainIdentifier or CAIP2 string
        asset_namespace: AssetNamespace or its string value
        asset_reference: Coin type or contract address (any hex casing)

    Returns:
        Canonical CAIP19 string

    Raises:
        InvalidReference: If the reference does not fit the namespace
        UnsupportedNetwork: If ``chain`` is an unsupported CAIP2 string
    """
    return str(to_asset_identifier(chain, asset_namespace, asset_reference))


def decode_asset_id(value: str) -> AssetIdentifier:
    """
    Decode a CAIP19 string.

    Raises:
        MalformedIdentifier: On grammar violations
        UnsupportedNetwork: On a well-formed but unknown chain
        InvalidReference: On an unknown namespace or bad reference
    """
    if not isinstance(value, str) or not value:
        raise MalformedIdentifier("Asset id must be a non-empty string", value=str(value))

    parts = value.split(ASSET_SEPARATOR)
    if len(parts) != 2:
        raise MalformedIdentifier(
            f"Asset id must have exactly one '{ASSET_SEPARATOR}': {value}",
            value=value,
        )

    chain_part, asset_part = parts
    chain = decode_chain_id(chain_part)

    asset_parts = asset_part.split(NAMESPACE_SEPARATOR)
    if len(asset_parts) != 2:
        raise MalformedIdentifier(
            f"Asset segment must be <namespace>{NAMESPACE_SEPARATOR}<reference>: {asset_part}",
            value=value,
        )

    namespace, reference = asset_parts
    if not ASSET_NAMESPACE_PATTERN.fullmatch(namespace):
        raise MalformedIdentifier(f"Invalid asset namespace: {namespace!r}", value=value)
    if not ASSET_REFERENCE_PATTERN.fullmatch(reference):
        raise MalformedIdentifier(f"Invalid asset reference: {reference!r}", value=value)

    return to_asset_identifier(chain, namespace, reference)


def native_asset_id(chain: Union[ChainIdentifier, str]) -> AssetIdentifier:
    """Get the slip44 asset of a chain."""
    resolved = _coerce_chain(chain)
    coin_type = SLIP44_COIN_TYPES[resolved.chain_family]
    return AssetIdentifier(
        chain=resolved,
        asset_namespace=AssetNamespace.SLIP44,
        asset_reference=str(coin_type),
    )
