"""
Local account wallet (secp256k1)

Holds an Ethereum private key in process, fills in nonce/gas/chain id from
the node, signs with eth_account and broadcasts the raw transaction.
"""

from typing import Any, Dict, List, Optional

from eth_account import Account
from eth_utils import ValidationError, encode_hex, is_hex, remove_0x_prefix, to_int

from ..exceptions import (
    DAOClientError,
    MutationRejected,
    RPCError,
    WalletUnavailable,
)
from ..logger import get_logger
from ..rpc import JSONRPCClient
from .base import BaseWallet, WalletType

logger = get_logger(__name__)


def _quantity(name: str, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return to_int(hexstr=value)
    except (TypeError, ValueError) as e:
        raise MutationRejected(f"Node returned a malformed {name}: {value!r}") from e


class LocalAccountWallet(BaseWallet):
    """
    Wallet backed by a private key loaded from the environment.

    Example:
        wallet = LocalAccountWallet(rpc, os.environ["DAOVOTE_PRIVATE_KEY"])
        await wallet.request_accounts()
        tx_hash = await wallet.send_transaction({"to": dao, "data": data})
    """

    def __init__(self, rpc: JSONRPCClient, private_key: str, chain_id: Optional[int] = None):
        super().__init__()
        if not isinstance(private_key, str) or len(remove_0x_prefix(private_key)) != 64 \
                or not is_hex(private_key):
            raise WalletUnavailable("No wallet available: private key is invalid")
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise WalletUnavailable("No wallet available: private key is invalid") from e
        self.rpc = rpc
        self.chain_id = chain_id

    @property
    def wallet_type(self) -> WalletType:
        return WalletType.LOCAL

    async def _request_accounts(self) -> List[str]:
        return [self._account.address]

    async def _send_transaction(self, tx: Dict[str, Any]) -> str:
        try:
            signable = await self._prepare(tx)
        except RPCError as e:
            # eth_estimateGas reverts when the contract would reject the call
            raise MutationRejected(f"Transaction would fail: {e.message}") from e
        except DAOClientError as e:
            raise MutationRejected(f"Could not prepare transaction: {e}") from e

        try:
            signed = self._account.sign_transaction(signable)
        except (TypeError, ValueError, ValidationError) as e:
            raise MutationRejected(f"Could not sign transaction: {e}") from e
        try:
            tx_hash = await self.rpc.call(
                "eth_sendRawTransaction", [encode_hex(signed.raw_transaction)]
            )
        except DAOClientError as e:
            raise MutationRejected(f"Node refused transaction: {e}") from e
        if not isinstance(tx_hash, str):
            raise MutationRejected(f"Node returned no transaction hash: {tx_hash!r}")
        return tx_hash

    async def _prepare(self, tx: Dict[str, Any]) -> Dict[str, Any]:
        sender = self._account.address
        nonce = await self.rpc.call("eth_getTransactionCount", [sender, "pending"])
        gas = await self.rpc.call("eth_estimateGas", [{"from": sender, "to": tx["to"], "data": tx["data"]}])
        gas_price = await self.rpc.call("eth_gasPrice")
        if self.chain_id is None:
            self.chain_id = _quantity("chain id", await self.rpc.call("eth_chainId"))
        return {
            "to": tx["to"],
            "data": tx["data"],
            "value": 0,
            "nonce": _quantity("nonce", nonce),
            "gas": _quantity("gas estimate", gas),
            "gasPrice": _quantity("gas price", gas_price),
            "chainId": self.chain_id,
        }
