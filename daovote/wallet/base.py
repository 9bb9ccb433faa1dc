"""
daovote Base Wallet

Defines the interface every wallet offers the client: account discovery and
a signing capability bound to the active address.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from ..exceptions import ConnectionRejected, MutationRejected


class WalletType(Enum):
    """Wallet type enumeration."""
    PROVIDER = "provider"  # external signer behind a JSON-RPC provider
    LOCAL = "local"        # secp256k1 key held in process


class BaseWallet(ABC):
    """
    Abstract base class for all wallet types.

    ``request_accounts`` must be awaited before anything is signed; it
    selects the first returned account as the active address.
    """

    def __init__(self):
        self._address: Optional[str] = None

    @property
    @abstractmethod
    def wallet_type(self) -> WalletType:
        """Get wallet type."""
        pass

    @property
    def address(self) -> Optional[str]:
        """Active address, or None until accounts have been requested."""
        return self._address

    @property
    def is_connected(self) -> bool:
        return self._address is not None

    async def request_accounts(self) -> List[str]:
        """
        Ask the wallet for its accounts and select the first.

        Raises:
            ConnectionRejected: the user declined or no account is exposed
            WalletUnavailable: there is no signing capability at all
        """
        accounts = await self._request_accounts()
        if not accounts:
            raise ConnectionRejected("Wallet returned no accounts")
        self._address = accounts[0]
        return accounts

    @abstractmethod
    async def _request_accounts(self) -> List[str]:
        pass

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        """
        Sign *tx* with the active address and broadcast it.

        Returns:
            The transaction hash

        Raises:
            MutationRejected: not connected, user declined, or node refused
        """
        if self._address is None:
            raise MutationRejected("Wallet is not connected")
        return await self._send_transaction(dict(tx, **{"from": self._address}))

    @abstractmethod
    async def _send_transaction(self, tx: Dict[str, Any]) -> str:
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} address={self._address}>"
