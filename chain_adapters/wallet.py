"""
Chain Adapters - Wallet contract.

Adapters talk to wallets through per-family method names:

    cosmos:  cosmos_get_address / cosmos_sign_tx / cosmos_send_tx
    eip155:  eth_get_address / eth_sign_tx / eth_send_tx

``*_get_address`` takes the BIP32 address_n list and a ``show_display``
keyword. The combined sign+send capability is optional; adapters check
for it with ``supports`` before use and raise WalletUnavailable when absent.
"""

import inspect
from typing import Any


def supports(wallet: Any, capability: str) -> bool:
    """True if ``wallet`` exposes ``capability`` as a callable."""
    if wallet is None:
        return False
    method = getattr(wallet, capability, None)
    return callable(method)


async def call_wallet(wallet: Any, capability: str, *args: Any, **kwargs: Any) -> Any:
    """Invoke a wallet capability; sync and async implementations both accepted."""
    result = getattr(wallet, capability)(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
