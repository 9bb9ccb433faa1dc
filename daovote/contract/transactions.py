"""
Submitted transactions and their confirmation.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from eth_utils import to_int

from ..constants import CONFIRMATION_TIMEOUT, RECEIPT_POLL_INTERVAL
from ..exceptions import DAOClientError, MutationRejected
from ..logger import get_logger
from ..rpc import JSONRPCClient

logger = get_logger(__name__)


class PendingTransaction:
    """
    Handle to a transaction the wallet has broadcast.

    ``wait()`` polls ``eth_getTransactionReceipt`` until the transaction is
    mined, then checks its status. There is no cancellation: the wait either
    returns a successful receipt or raises MutationRejected.
    """

    def __init__(
        self,
        tx_hash: str,
        rpc: JSONRPCClient,
        description: str = "",
        poll_interval: float = RECEIPT_POLL_INTERVAL,
        timeout: float = CONFIRMATION_TIMEOUT,
    ):
        self.tx_hash = tx_hash
        self.description = description
        self._rpc = rpc
        self._poll_interval = poll_interval
        self._timeout = timeout
        self.receipt: Optional[Dict[str, Any]] = None

    async def wait(self) -> Dict[str, Any]:
        if self.receipt is not None:
            return self.receipt

        deadline = time.monotonic() + self._timeout
        while True:
            try:
                receipt = await self._rpc.call("eth_getTransactionReceipt", [self.tx_hash])
            except DAOClientError as e:
                raise MutationRejected(f"Could not confirm {self.tx_hash}: {e}") from e

            if receipt is not None:
                break
            if time.monotonic() >= deadline:
                raise MutationRejected(
                    f"Transaction {self.tx_hash} not confirmed within {self._timeout:.0f}s"
                )
            await asyncio.sleep(self._poll_interval)

        if not isinstance(receipt, dict) or "status" not in receipt:
            raise MutationRejected(f"Malformed receipt for {self.tx_hash}")
        status = receipt["status"]
        try:
            status = to_int(hexstr=status) if isinstance(status, str) else int(status)
        except (TypeError, ValueError) as e:
            raise MutationRejected(f"Malformed receipt status for {self.tx_hash}") from e
        if status != 1:
            raise MutationRejected(f"Transaction reverted: {self.description or self.tx_hash}")

        logger.debug(f"Receipt for {self.tx_hash}: block {receipt.get('blockNumber')}")
        self.receipt = receipt
        return receipt

    def __repr__(self) -> str:
        return f"<PendingTransaction {self.tx_hash} {self.description!r}>"
