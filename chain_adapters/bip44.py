"""
Chain Adapters - BIP44 path helpers.

Turns BIP44Params into the path string form (m/44'/118'/0'/0/0) and
the integer address_n list wallets expect.
"""

from typing import List

from .errors import ErrorKind, create_error
from .types import BIP44Params


HARDENED_OFFSET = 0x80000000


def validate_bip44_params(params: BIP44Params) -> None:
    """
    Reject components outside [0, 2**31).

    Raises:
        ChainAdapterException: InvalidDerivationParams
    """
    components = {
        "purpose": params.purpose,
        "coin_type": params.coin_type,
        "account": params.account,
        "index": params.index,
    }
    for name, value in components.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise create_error(
                ErrorKind.INVALID_DERIVATION_PARAMS,
                f"BIP44 {name} must be an integer, got {value!r}",
            )
        if value < 0 or value >= HARDENED_OFFSET:
            raise create_error(
                ErrorKind.INVALID_DERIVATION_PARAMS,
                f"BIP44 {name} out of range: {value}",
            )


def to_root_derivation_path(params: BIP44Params) -> str:
    """Account-level path, e.g. m/44'/118'/0'."""
    validate_bip44_params(params)
    return f"m/{params.purpose}'/{params.coin_type}'/{params.account}'"


def to_path(params: BIP44Params) -> str:
    """Full address path, e.g. m/44'/118'/0'/0/0."""
    root = to_root_derivation_path(params)
    return f"{root}/{int(params.is_change)}/{params.index}"


def bip32_to_address_n_list(path: str) -> List[int]:
    """
    Convert a BIP32 path string to an address_n list.

    Hardened segments (trailing ') get HARDENED_OFFSET added.
    """
    segments = path.split("/")
    if not segments or segments[0] != "m":
        raise create_error(
            ErrorKind.INVALID_DERIVATION_PARAMS,
            f"Path must start with 'm': {path}",
        )

    address_n: List[int] = []
    for segment in segments[1:]:
        hardened = segment.endswith("'")
        digits = segment[:-1] if hardened else segment
        if not (digits.isascii() and digits.isdigit()):
            raise create_error(
                ErrorKind.INVALID_DERIVATION_PARAMS,
                f"Invalid path segment {segment!r} in {path}",
            )
        value = int(digits)
        if value >= HARDENED_OFFSET:
            raise create_error(
                ErrorKind.INVALID_DERIVATION_PARAMS,
                f"Path segment out of range: {segment}",
            )
        address_n.append(value + HARDENED_OFFSET if hardened else value)
    return address_n
