"""
CAIP Codec - Chain identifiers (CAIP2).

============================================================
PURPOSE
============================================================
Canonical chain names of the form ``<chainFamily>:<network>``,
e.g. ``cosmos:cosmoshub-4`` or ``eip155:1``.

The mapping is bijective over SUPPORTED_NETWORKS: every supported
pair has exactly one string and every accepted string decodes to
exactly one pair.

============================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from .constants import (
    CHAIN_FAMILY_PATTERN,
    NETWORK_PATTERN,
    SUPPORTED_NETWORKS,
    ChainFamily,
    Network,
    lookup_chain_family,
    lookup_network,
)
from .exceptions import MalformedIdentifier, UnsupportedNetwork


SEPARATOR = ":"


# ============================================================
# CHAIN IDENTIFIER
# ============================================================

@dataclass(frozen=True)
class ChainIdentifier:
    """Immutable (chain family, network) pair."""

    chain_family: ChainFamily
    """Consensus/account model category."""

    network: Network
    """Deployed instance of the family."""

    def __str__(self) -> str:
        return encode_chain_id(self.chain_family, self.network)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "chain_family": self.chain_family.value,
            "network": self.network.value,
            "caip2": str(self),
        }


# ============================================================
# ENCODE / DECODE
# ============================================================

def _coerce_family(chain_family: Union[ChainFamily, str]) -> ChainFamily:
    if isinstance(chain_family, ChainFamily):
        return chain_family
    family = lookup_chain_family(str(chain_family))
    if family is None:
        raise UnsupportedNetwork(
            f"Unsupported chain family: {chain_family}",
            value=str(chain_family),
        )
    return family


def _coerce_network(family: ChainFamily, network: Union[Network, str]) -> Network:
    if isinstance(network, Network):
        if network not in SUPPORTED_NETWORKS.get(family, frozenset()):
            raise UnsupportedNetwork(
                f"Network {network.value} is not supported for {family.value}",
                value=network.value,
                context={"chain_family": family.value},
            )
        return network
    resolved = lookup_network(family, str(network))
    if resolved is None:
        raise UnsupportedNetwork(
            f"Network {network} is not supported for {family.value}",
            value=str(network),
            context={"chain_family": family.value},
        )
    return resolved


def to_chain_identifier(
    chain_family: Union[ChainFamily, str],
    network: Union[Network, str],
) -> ChainIdentifier:
    """
    Build a validated ChainIdentifier.

    Raises:
        UnsupportedNetwork: If the pair has no canonical mapping
    """
    family = _coerce_family(chain_family)
    return ChainIdentifier(chain_family=family, network=_coerce_network(family, network))


def encode_chain_id(
    chain_family: Union[ChainFamily, str],
    network: Union[Network, str],
) -> str:
    """
    Encode a chain family / network pair to its CAIP2 string.

    Args:
        chain_family: ChainFamily or its namespace string
        network: Network or its reference string

    Returns:
        Canonical ``<chainFamily>:<network>`` string

    Raises:
        UnsupportedNetwork: If the pair has no canonical mapping
    """
    family = _coerce_family(chain_family)
    resolved = _coerce_network(family, network)
    return f"{family.value}{SEPARATOR}{resolved.value}"


def split_chain_id(value: str) -> Tuple[str, str]:
    """Split a CAIP2 string into its two syntactically valid segments."""
    if not isinstance(value, str) or not value:
        raise MalformedIdentifier("Chain id must be a non-empty string", value=str(value))

    parts = value.split(SEPARATOR)
    if len(parts) != 2:
        raise MalformedIdentifier(
            f"Chain id must have exactly one '{SEPARATOR}': {value}",
            value=value,
        )

    namespace, reference = parts
    if not CHAIN_FAMILY_PATTERN.fullmatch(namespace):
        raise MalformedIdentifier(f"Invalid chain namespace: {namespace!r}", value=value)
    if not NETWORK_PATTERN.fullmatch(reference):
        raise MalformedIdentifier(f"Invalid network reference: {reference!r}", value=value)

    return namespace, reference


def decode_chain_id(value: str) -> ChainIdentifier:
    """
    Decode a CAIP2 string.

    Raises:
        MalformedIdentifier: On grammar violations
        UnsupportedNetwork: On a well-formed but unknown pair
    """
    namespace, reference = split_chain_id(value)
    return to_chain_identifier(namespace, reference)


def is_chain_id(value: str) -> bool:
    """Check whether ``value`` decodes to a supported chain."""
    try:
        decode_chain_id(value)
    except (MalformedIdentifier, UnsupportedNetwork):
        return False
    return True
