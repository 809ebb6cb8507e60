"""
CAIP19 Asset Identifier Tests.

============================================================
PURPOSE
============================================================
Encode/decode and normalization of asset identifiers.

TEST CATEGORIES:
- Native (slip44) assets
- Token (erc20) references and casing
- Error classification

============================================================
"""

import pytest

from caip import (
    AssetIdentifier,
    AssetNamespace,
    ChainFamily,
    InvalidReference,
    MalformedIdentifier,
    Network,
    UnsupportedNetwork,
    decode_asset_id,
    encode_asset_id,
    native_asset_id,
    to_chain_identifier,
)


USDC_MIXED = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
USDC = USDC_MIXED.lower()

COSMOSHUB = to_chain_identifier(ChainFamily.COSMOS, Network.COSMOS_COSMOSHUB_4)
ETH_MAINNET = to_chain_identifier(ChainFamily.ETHEREUM, Network.ETH_MAINNET)


# ============================================================
# NATIVE ASSETS
# ============================================================

class TestNativeAssets:
    """slip44 assets."""

    def test_atom(self):
        """ATOM on cosmoshub-4."""
        assert encode_asset_id(COSMOSHUB, AssetNamespace.SLIP44, "118") == "cosmos:cosmoshub-4/slip44:118"

    def test_ether(self):
        assert encode_asset_id("eip155:1", "slip44", "60") == "eip155:1/slip44:60"

    def test_bitcoin(self):
        assert (
            encode_asset_id("bip122:000000000019d6689c085ae165831e93", "slip44", "0")
            == "bip122:000000000019d6689c085ae165831e93/slip44:0"
        )

    def test_native_asset_id(self):
        asset = native_asset_id(COSMOSHUB)

        assert asset.is_native
        assert str(asset) == "cosmos:cosmoshub-4/slip44:118"

    def test_native_asset_id_from_string(self):
        assert str(native_asset_id("eip155:3")) == "eip155:3/slip44:60"

    def test_wrong_coin_type_rejected(self):
        """slip44 reference must be the family's own coin type."""
        with pytest.raises(InvalidReference):
            encode_asset_id(COSMOSHUB, AssetNamespace.SLIP44, "60")

    @pytest.mark.parametrize("reference", ["", "abc", "0118", "-1", "1.5"])
    def test_non_numeric_coin_type_rejected(self, reference):
        with pytest.raises(InvalidReference):
            encode_asset_id(ETH_MAINNET, AssetNamespace.SLIP44, reference)


# ============================================================
# TOKEN ASSETS
# ============================================================

class TestTokenAssets:
    """erc20 assets."""

    def test_reference_lower_cased(self):
        """Checksummed and lower-case spellings yield one identifier."""
        mixed = encode_asset_id(ETH_MAINNET, AssetNamespace.ERC20, USDC_MIXED)
        lower = encode_asset_id(ETH_MAINNET, AssetNamespace.ERC20, USDC)

        assert mixed == lower == f"eip155:1/erc20:{USDC}"

    def test_decode_mixed_case_normalizes(self):
        asset = decode_asset_id(f"eip155:1/erc20:{USDC_MIXED}")

        assert asset.asset_reference == USDC
        assert str(asset) == f"eip155:1/erc20:{USDC}"

    def test_round_trip(self):
        """encode -> decode -> encode is the identity."""
        encoded = encode_asset_id(ETH_MAINNET, AssetNamespace.ERC20, USDC_MIXED)

        assert str(decode_asset_id(encoded)) == encoded

    def test_equal_regardless_of_input_casing(self):
        first = AssetIdentifier(ETH_MAINNET, AssetNamespace.ERC20, USDC_MIXED)
        second = AssetIdentifier(ETH_MAINNET, AssetNamespace.ERC20, USDC)

        assert first == second
        assert not first.is_native

    @pytest.mark.parametrize("reference", [
        USDC[2:],                 # missing 0x
        USDC[:-1],                # 39 hex digits
        USDC + "0",               # 41 hex digits
        "0x" + "g" * 40,          # not hex
    ])
    def test_bad_shape_rejected(self, reference):
        with pytest.raises(InvalidReference):
            encode_asset_id(ETH_MAINNET, AssetNamespace.ERC20, reference)

    def test_erc20_not_available_on_cosmos(self):
        """Token namespaces are per family."""
        with pytest.raises(InvalidReference):
            encode_asset_id(COSMOSHUB, AssetNamespace.ERC20, USDC)

    def test_unknown_namespace_rejected(self):
        with pytest.raises(InvalidReference):
            decode_asset_id(f"eip155:1/erc721:{USDC}")


# ============================================================
# DECODE ERRORS
# ============================================================

class TestDecodeAssetId:
    """Error classification of decode_asset_id."""

    @pytest.mark.parametrize("value", [
        "",
        "eip155:1",
        "eip155:1/slip44",
        "eip155:1/slip44:60/extra",
        "eip155:1/slip44:60:1",
        "eip155:1/SLIP44:60",
        "eip155:1/slip44:",
    ])
    def test_malformed(self, value):
        with pytest.raises(MalformedIdentifier):
            decode_asset_id(value)

    def test_malformed_chain_segment(self):
        with pytest.raises(MalformedIdentifier):
            decode_asset_id("eip155/slip44:60")

    def test_unsupported_chain(self):
        with pytest.raises(UnsupportedNetwork):
            decode_asset_id("eip155:56/slip44:60")

    def test_decode_fields(self):
        asset = decode_asset_id("cosmos:cosmoshub-4/slip44:118")

        assert asset.chain == COSMOSHUB
        assert asset.asset_namespace is AssetNamespace.SLIP44
        assert asset.asset_reference == "118"
        assert asset.to_dict()["caip19"] == "cosmos:cosmoshub-4/slip44:118"
