"""
daovote Wallets

Provides:
  - BaseWallet / WalletType        (base.py)
  - ProviderWallet                 (provider.py)
  - LocalAccountWallet             (local.py)
  - connect_wallet                 pick a wallet for the configured mode
"""

from ..config import ClientConfig
from ..exceptions import WalletUnavailable
from ..rpc import JSONRPCClient
from .base import BaseWallet, WalletType
from .local import LocalAccountWallet
from .provider import ProviderWallet


def connect_wallet(config: ClientConfig, rpc: JSONRPCClient) -> BaseWallet:
    """
    Build the wallet the configuration asks for.

    Raises:
        WalletUnavailable: wallet mode is "none", or "local" without a key
    """
    mode = config.wallet.mode
    if mode == "provider":
        return ProviderWallet(rpc)
    if mode == "local":
        if not config.wallet.private_key:
            raise WalletUnavailable("No wallet available: DAOVOTE_PRIVATE_KEY is not set")
        return LocalAccountWallet(rpc, config.wallet.private_key, chain_id=config.contract.chain_id)
    raise WalletUnavailable()


__all__ = [
    "BaseWallet",
    "LocalAccountWallet",
    "ProviderWallet",
    "WalletType",
    "connect_wallet",
]
