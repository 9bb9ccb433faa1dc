"""
Governance session

Ties one wallet, one contract client and one synchronizer together for the
connected account. Connecting loads the proposals straight away; every
action afterwards goes through the synchronizer on behalf of that account.
"""

import time
from typing import Callable, Optional, Tuple

from .config import ClientConfig
from .contract import GovernanceContract
from .exceptions import (
    DAOClientError,
    LocalValidationError,
    WalletUnavailable,
)
from .governance.proposals import ProposalSnapshot
from .governance.synchronizer import GovernanceService, OperationResult, ProposalSynchronizer
from .logger import get_logger, set_log_level
from .presentation import ProposalView, build_views
from .rpc import JSONRPCClient
from .wallet import BaseWallet, connect_wallet

logger = get_logger(__name__)


class GovernanceSession:
    """
    Session state for one viewer.

    Example:
        async with GovernanceSession.from_config(load_config()) as session:
            await session.connect()
            for view in session.views():
                print(view.id, view.status.value, view.approval_label)
    """

    def __init__(
        self,
        service: GovernanceService,
        wallet: Optional[BaseWallet],
        rpc: Optional[JSONRPCClient] = None,
        max_concurrent_fetches: Optional[int] = None,
        clock: Callable[[], float] = time.time,
        wallet_error: Optional[WalletUnavailable] = None,
    ):
        self.service = service
        self.wallet = wallet
        self.rpc = rpc
        self.clock = clock
        if max_concurrent_fetches is None:
            self.synchronizer = ProposalSynchronizer(service)
        else:
            self.synchronizer = ProposalSynchronizer(service, max_concurrent_fetches)
        self._wallet_error = wallet_error
        self._account: Optional[str] = None
        self.last_error: Optional[str] = None

    @classmethod
    def from_config(cls, config: ClientConfig) -> "GovernanceSession":
        """
        Build the transport, wallet and contract client described by *config*.

        A missing wallet is not fatal here; it is reported when ``connect``
        is called so that read-only callers can still be constructed.
        """
        set_log_level(config.logging.level)
        rpc = JSONRPCClient(config.rpc.url, timeout=config.rpc.timeout)
        wallet: Optional[BaseWallet] = None
        wallet_error: Optional[WalletUnavailable] = None
        try:
            wallet = connect_wallet(config, rpc)
        except WalletUnavailable as e:
            wallet_error = e
        contract = GovernanceContract(
            rpc,
            config.contract_address,
            wallet,
            poll_interval=config.sync.poll_interval,
            confirmation_timeout=config.sync.confirmation_timeout,
        )
        return cls(
            contract,
            wallet,
            rpc=rpc,
            max_concurrent_fetches=config.sync.max_concurrent_fetches,
            wallet_error=wallet_error,
        )

    # ── State ─────────────────────────────────────────────────────────

    @property
    def account(self) -> Optional[str]:
        return self._account

    @property
    def is_connected(self) -> bool:
        return self._account is not None

    @property
    def busy(self) -> bool:
        return self.synchronizer.busy

    @property
    def snapshot(self) -> ProposalSnapshot:
        return self.synchronizer.snapshot

    def views(self, now: Optional[float] = None) -> Tuple[ProposalView, ...]:
        return build_views(self.snapshot, self.clock() if now is None else now)

    # ── Operations ────────────────────────────────────────────────────

    async def connect(self) -> OperationResult:
        """Request the wallet's accounts, then load every proposal for the first."""
        try:
            if self.wallet is None:
                raise self._wallet_error or WalletUnavailable()
            accounts = await self.wallet.request_accounts()
        except DAOClientError as e:
            logger.warning(f"Wallet connection failed: {e.user_message}")
            return self._record(OperationResult(ok=False, error=e))

        self._account = accounts[0]
        logger.info(f"Connected as {self._account}")
        return await self.refresh()

    async def refresh(self) -> OperationResult:
        if self._account is None:
            return self._not_connected()
        return self._record(await self.synchronizer.refresh_all(self._account))

    async def create(self, description: str) -> OperationResult:
        if self._account is None:
            return self._not_connected()
        return self._record(await self.synchronizer.submit_create(description, self._account))

    async def vote(self, proposal_id: int, support: bool) -> OperationResult:
        if self._account is None:
            return self._not_connected()
        return self._record(
            await self.synchronizer.submit_vote(proposal_id, support, self._account)
        )

    async def execute(self, proposal_id: int) -> OperationResult:
        if self._account is None:
            return self._not_connected()
        return self._record(await self.synchronizer.submit_execute(proposal_id, self._account))

    async def voting_duration(self) -> Optional[int]:
        """Voting window in seconds, or None (with last_error set) if unreadable."""
        try:
            duration = await self.service.voting_duration()
        except DAOClientError as e:
            self.last_error = e.user_message
            return None
        return duration

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def close(self) -> None:
        if self.rpc is not None:
            await self.rpc.aclose()

    async def __aenter__(self) -> "GovernanceSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── Helpers ───────────────────────────────────────────────────────

    def _record(self, result: OperationResult) -> OperationResult:
        self.last_error = result.message
        return result

    def _not_connected(self) -> OperationResult:
        return self._record(
            OperationResult(ok=False, error=LocalValidationError("Connect a wallet first"))
        )
