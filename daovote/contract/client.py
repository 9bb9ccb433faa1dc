"""
Governance contract client

Async wrapper around the deployed governance contract. Reads go through
``eth_call``; writes are handed to the connected wallet, which signs and
broadcasts them, and come back as PendingTransaction handles.
"""

from typing import Optional

from eth_utils import is_address, to_checksum_address

from ..constants import (
    CONFIRMATION_TIMEOUT,
    FN_CREATE_PROPOSAL,
    FN_EXECUTE_PROPOSAL,
    FN_GET_PROPOSAL,
    FN_GET_PROPOSAL_COUNT,
    FN_HAS_VOTED,
    FN_VOTE,
    FN_VOTING_DURATION,
    GET_PROPOSAL_COUNT_RETURNS,
    GET_PROPOSAL_RETURNS,
    HAS_VOTED_RETURNS,
    RECEIPT_POLL_INTERVAL,
    VOTING_DURATION_RETURNS,
)
from ..exceptions import (
    ConfigurationError,
    DAOClientError,
    FetchError,
    MutationRejected,
    WalletUnavailable,
)
from ..governance.proposals import ProposalRecord
from ..logger import get_logger
from ..rpc import JSONRPCClient
from ..wallet.base import BaseWallet
from .abi import decode_return_data, encode_function_call
from .transactions import PendingTransaction

logger = get_logger(__name__)


class GovernanceContract:
    """
    Implements the synchronizer's GovernanceService against a live contract.

    Example:
        async with JSONRPCClient("http://127.0.0.1:8545") as rpc:
            contract = GovernanceContract(rpc, "0x1234...", wallet)
            count = await contract.get_proposal_count()
    """

    def __init__(
        self,
        rpc: JSONRPCClient,
        address: str,
        wallet: Optional[BaseWallet] = None,
        poll_interval: float = RECEIPT_POLL_INTERVAL,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT,
    ):
        if not is_address(address):
            raise ConfigurationError(f"Invalid contract address: {address!r}")
        self.rpc = rpc
        self.address = to_checksum_address(address)
        self.wallet = wallet
        self._poll_interval = poll_interval
        self._confirmation_timeout = confirmation_timeout

    # ── Reads ─────────────────────────────────────────────────────────

    async def _call(self, signature: str, return_types, *args) -> tuple:
        data = encode_function_call(signature, *args)
        try:
            result = await self.rpc.call(
                "eth_call", [{"to": self.address, "data": data}, "latest"]
            )
        except DAOClientError as e:
            raise FetchError(f"{signature} failed: {e}") from e
        return decode_return_data(signature, return_types, result)

    async def get_proposal_count(self) -> int:
        (count,) = await self._call(FN_GET_PROPOSAL_COUNT, GET_PROPOSAL_COUNT_RETURNS)
        return count

    async def get_proposal(self, proposal_id: int) -> ProposalRecord:
        values = await self._call(FN_GET_PROPOSAL, GET_PROPOSAL_RETURNS, proposal_id)
        return ProposalRecord.from_contract(proposal_id, values)

    async def has_voted(self, proposal_id: int, voter: str) -> bool:
        (voted,) = await self._call(
            FN_HAS_VOTED, HAS_VOTED_RETURNS, proposal_id, to_checksum_address(voter)
        )
        return voted

    async def voting_duration(self) -> int:
        """Seconds the contract adds to creation time to get a deadline."""
        (duration,) = await self._call(FN_VOTING_DURATION, VOTING_DURATION_RETURNS)
        return duration

    # ── Writes ────────────────────────────────────────────────────────

    async def _transact(self, signature: str, description: str, *args) -> PendingTransaction:
        if self.wallet is None:
            raise WalletUnavailable()
        data = encode_function_call(signature, *args)
        try:
            tx_hash = await self.wallet.send_transaction({"to": self.address, "data": data})
        except MutationRejected:
            raise
        except DAOClientError as e:
            raise MutationRejected(f"{description} failed: {e}") from e
        logger.debug(f"{description} broadcast as {tx_hash}")
        return PendingTransaction(
            tx_hash,
            self.rpc,
            description=description,
            poll_interval=self._poll_interval,
            timeout=self._confirmation_timeout,
        )

    async def create_proposal(self, description: str) -> PendingTransaction:
        return await self._transact(FN_CREATE_PROPOSAL, "create proposal", description)

    async def vote(self, proposal_id: int, support: bool) -> PendingTransaction:
        return await self._transact(
            FN_VOTE, f"vote {'yes' if support else 'no'} on #{proposal_id}", proposal_id, support
        )

    async def execute_proposal(self, proposal_id: int) -> PendingTransaction:
        return await self._transact(FN_EXECUTE_PROPOSAL, f"execute #{proposal_id}", proposal_id)
