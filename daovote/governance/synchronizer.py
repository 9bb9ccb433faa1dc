"""
Proposal Store Synchronizer

Keeps an ordered, in-memory snapshot of every proposal consistent with the
governance contract and serializes mutating requests.

Every mutation follows the same cycle: send → await confirmation → refetch
everything → swap the snapshot. The snapshot is an immutable tuple assigned
in one statement, so readers never see a half-built collection. ``busy`` is
checked and set before the first ``await`` of a mutation, which is what makes
it a sufficient lock on a single event loop.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, Tuple

from eth_utils import is_address, to_checksum_address

from ..constants import MAX_CONCURRENT_FETCHES, MAX_PROPOSAL_ID
from ..exceptions import (
    DAOClientError,
    FetchError,
    LocalValidationError,
    MutationRejected,
)
from ..logger import get_logger
from .proposals import ProposalRecord, ProposalSnapshot, ViewerProposal

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  REMOTE COLLABORATOR
# ══════════════════════════════════════════════════════════════════════

class TransactionHandle(Protocol):
    tx_hash: str

    async def wait(self) -> dict:
        """Suspend until the transaction is final; raise MutationRejected on failure."""
        ...


class GovernanceService(Protocol):
    """What the synchronizer needs from the governance contract."""

    async def get_proposal_count(self) -> int: ...

    async def get_proposal(self, proposal_id: int) -> ProposalRecord: ...

    async def has_voted(self, proposal_id: int, voter: str) -> bool: ...

    async def create_proposal(self, description: str) -> TransactionHandle: ...

    async def vote(self, proposal_id: int, support: bool) -> TransactionHandle: ...

    async def execute_proposal(self, proposal_id: int) -> TransactionHandle: ...

    async def voting_duration(self) -> int: ...


# ══════════════════════════════════════════════════════════════════════
#  RESULTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of a synchronizer operation.

    ``confirmed`` is True once the contract finalized a mutation, even if the
    refresh that followed failed (the snapshot is then stale, not corrupt).
    """
    ok: bool
    error: Optional[DAOClientError] = None
    tx_hash: Optional[str] = None
    confirmed: bool = False

    @property
    def message(self) -> Optional[str]:
        return self.error.user_message if self.error is not None else None


def _as_fetch_error(exc: DAOClientError) -> FetchError:
    if isinstance(exc, FetchError):
        return exc
    return FetchError(f"{FetchError.default_message}: {exc}")


def _as_mutation_rejected(exc: DAOClientError) -> MutationRejected:
    if isinstance(exc, MutationRejected):
        return exc
    return MutationRejected(f"{MutationRejected.default_message}: {exc}")


# ══════════════════════════════════════════════════════════════════════
#  SYNCHRONIZER
# ══════════════════════════════════════════════════════════════════════

class ProposalSynchronizer:
    """
    Owns the proposal snapshot, the ``busy`` flag and the last error.

    Public operations never raise DAOClientError; they record
    ``last_error`` and return an OperationResult.
    """

    def __init__(
        self,
        service: GovernanceService,
        max_concurrent_fetches: int = MAX_CONCURRENT_FETCHES,
    ):
        self._service = service
        self._max_concurrent_fetches = max(1, max_concurrent_fetches)
        self._snapshot = ProposalSnapshot()
        self._busy = False
        self._generation = 0
        self._installed_generation = 0
        self.last_error: Optional[str] = None

    # ── Properties ────────────────────────────────────────────────────

    @property
    def snapshot(self) -> ProposalSnapshot:
        return self._snapshot

    @property
    def cache(self) -> Tuple[ViewerProposal, ...]:
        return self._snapshot.proposals

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def max_concurrent_fetches(self) -> int:
        return self._max_concurrent_fetches

    # ── Read path ─────────────────────────────────────────────────────

    async def refresh_all(self, viewer: str) -> OperationResult:
        """Refetch every proposal for *viewer* and replace the snapshot."""
        try:
            viewer = self._check_viewer(viewer)
            await self._refresh(viewer)
        except DAOClientError as e:
            return self._fail("refresh", e)
        self.last_error = None
        return OperationResult(ok=True)

    async def _refresh(self, viewer: str) -> None:
        self._generation += 1
        generation = self._generation

        try:
            count = await self._service.get_proposal_count()
        except DAOClientError as e:
            raise _as_fetch_error(e) from e
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise FetchError(f"Malformed proposal count: {count!r}")

        semaphore = asyncio.Semaphore(self._max_concurrent_fetches)

        async def fetch_one(index: int) -> ViewerProposal:
            async with semaphore:
                record, voted = await asyncio.gather(
                    self._service.get_proposal(index),
                    self._service.has_voted(index, viewer),
                    return_exceptions=True,
                )
            for outcome in (record, voted):
                if isinstance(outcome, BaseException):
                    raise outcome
            if record.id != index:
                raise FetchError(f"Proposal index mismatch: asked #{index}, got #{record.id}")
            if not isinstance(voted, bool):
                raise FetchError(f"Malformed has-voted flag for #{index}: {voted!r}")
            return ViewerProposal(record=record, has_voted=voted)

        # Every fetch completes before anything is installed
        results = await asyncio.gather(
            *(fetch_one(i) for i in range(count)), return_exceptions=True
        )
        for result in results:
            if isinstance(result, DAOClientError):
                raise _as_fetch_error(result) from result
            if isinstance(result, BaseException):
                raise result

        if generation < self._installed_generation:
            logger.debug(f"Discarding stale refresh (generation {generation})")
            return

        self._snapshot = ProposalSnapshot(viewer=viewer, proposals=tuple(results))
        self._installed_generation = generation
        logger.info(f"Loaded {count} proposal(s) for {viewer}")

    # ── Write path ────────────────────────────────────────────────────

    async def submit_create(self, description: str, viewer: str) -> OperationResult:
        if not isinstance(description, str) or not description.strip():
            return self._fail("create", LocalValidationError("Proposal description cannot be empty"))
        return await self._mutate(
            "create",
            lambda: self._service.create_proposal(description),
            viewer,
        )

    async def submit_vote(self, proposal_id: int, support: bool, viewer: str) -> OperationResult:
        if not isinstance(support, bool):
            return self._fail("vote", LocalValidationError("Vote support must be yes or no"))
        return await self._mutate(
            f"vote #{proposal_id} {'yes' if support else 'no'}",
            lambda: self._service.vote(proposal_id, support),
            viewer,
            proposal_id=proposal_id,
        )

    async def submit_execute(self, proposal_id: int, viewer: str) -> OperationResult:
        return await self._mutate(
            f"execute #{proposal_id}",
            lambda: self._service.execute_proposal(proposal_id),
            viewer,
            proposal_id=proposal_id,
        )

    async def _mutate(
        self,
        label: str,
        send: Callable[[], Awaitable[TransactionHandle]],
        viewer: str,
        proposal_id: Optional[int] = None,
    ) -> OperationResult:
        if self._busy:
            return self._fail(label, LocalValidationError("Another transaction is already in progress"))
        try:
            viewer = self._check_viewer(viewer)
            if proposal_id is not None:
                self._check_proposal_id(proposal_id)
        except LocalValidationError as e:
            return self._fail(label, e)

        self._busy = True
        try:
            tx_hash = None
            try:
                handle = await send()
                tx_hash = handle.tx_hash
                logger.info(f"Submitted {label}: {tx_hash}")
                await handle.wait()
            except DAOClientError as e:
                return self._fail(label, _as_mutation_rejected(e), tx_hash=tx_hash)
            logger.info(f"Confirmed {label}: {tx_hash}")

            try:
                await self._refresh(viewer)
            except DAOClientError as e:
                return self._fail(
                    f"refresh after {label}", e, tx_hash=tx_hash, confirmed=True
                )
            self.last_error = None
            return OperationResult(ok=True, tx_hash=tx_hash, confirmed=True)
        finally:
            self._busy = False

    # ── Helpers ───────────────────────────────────────────────────────

    def _fail(
        self,
        label: str,
        error: DAOClientError,
        tx_hash: Optional[str] = None,
        confirmed: bool = False,
    ) -> OperationResult:
        self.last_error = error.user_message
        logger.warning(f"{label} failed: {error.user_message}")
        return OperationResult(ok=False, error=error, tx_hash=tx_hash, confirmed=confirmed)

    @staticmethod
    def _check_viewer(viewer: str) -> str:
        if not isinstance(viewer, str) or not is_address(viewer):
            raise LocalValidationError(f"Invalid viewer address: {viewer!r}")
        return to_checksum_address(viewer)

    @staticmethod
    def _check_proposal_id(proposal_id: int) -> None:
        if isinstance(proposal_id, bool) or not isinstance(proposal_id, int) \
                or not 0 <= proposal_id <= MAX_PROPOSAL_ID:
            raise LocalValidationError(f"Invalid proposal id: {proposal_id!r}")
