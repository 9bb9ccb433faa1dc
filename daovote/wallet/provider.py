"""
Provider-backed wallet

Uses an external signer exposed over JSON-RPC (a browser-extension bridge,
a node with unlocked accounts, a wallet daemon). Key material never enters
this process; the provider prompts the user and may refuse.
"""

from typing import Any, Dict, List

from eth_utils import is_address, to_checksum_address

from ..constants import EIP1193_UNSUPPORTED_METHOD, EIP1193_USER_REJECTED
from ..exceptions import (
    ConnectionRejected,
    FetchError,
    MutationRejected,
    RPCError,
    TransportError,
    WalletUnavailable,
)
from ..logger import get_logger
from ..rpc import JSONRPCClient
from .base import BaseWallet, WalletType

logger = get_logger(__name__)

# JSON-RPC "method not found"
_METHOD_NOT_FOUND = -32601


class ProviderWallet(BaseWallet):
    """Wallet whose accounts and signatures come from the RPC provider."""

    def __init__(self, rpc: JSONRPCClient):
        super().__init__()
        self.rpc = rpc

    @property
    def wallet_type(self) -> WalletType:
        return WalletType.PROVIDER

    async def _request_accounts(self) -> List[str]:
        try:
            accounts = await self.rpc.call("eth_requestAccounts")
        except RPCError as e:
            if e.code == EIP1193_USER_REJECTED:
                raise ConnectionRejected("User rejected the connection request") from e
            if e.code in (EIP1193_UNSUPPORTED_METHOD, _METHOD_NOT_FOUND):
                raise WalletUnavailable() from e
            raise ConnectionRejected(f"Account request failed: {e.message}") from e
        except TransportError as e:
            raise WalletUnavailable(f"No wallet available: {e}") from e

        if not isinstance(accounts, list) or not all(
            isinstance(a, str) and is_address(a) for a in accounts
        ):
            raise FetchError(f"Malformed account list: {accounts!r}")
        return [to_checksum_address(a) for a in accounts]

    async def _send_transaction(self, tx: Dict[str, Any]) -> str:
        try:
            tx_hash = await self.rpc.call("eth_sendTransaction", [tx])
        except RPCError as e:
            if e.code == EIP1193_USER_REJECTED:
                raise MutationRejected("User declined to sign the transaction") from e
            raise MutationRejected(e.message) from e
        except TransportError as e:
            raise MutationRejected(str(e)) from e

        if not isinstance(tx_hash, str):
            raise MutationRejected(f"Provider returned no transaction hash: {tx_hash!r}")
        return tx_hash
