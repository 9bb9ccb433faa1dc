"""
Shared fixtures: an in-memory governance contract that behaves like the
deployed one (index-assigned ids, one vote per address, strict-majority
execution after the deadline) and records every remote call it receives.
"""

import asyncio
import os
import sys
from dataclasses import replace
from typing import List, Optional, Set, Tuple

import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from daovote.exceptions import FetchError, MutationRejected
from daovote.governance.proposals import ProposalRecord


ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20

NOW = 1_700_000_000
VOTING_DURATION = 3 * 24 * 3600


class FakeTransaction:
    def __init__(self, tx_hash: str, apply, gate: Optional[asyncio.Event] = None):
        self.tx_hash = tx_hash
        self._apply = apply
        self._gate = gate

    async def wait(self) -> dict:
        if self._gate is not None:
            await self._gate.wait()
        self._apply()
        return {"status": 1, "transactionHash": self.tx_hash}


class FakeGovernance:
    """GovernanceService double with failure switches."""

    def __init__(self, sender: str = ALICE, now: int = NOW):
        self.sender = sender
        self.now = now
        self.records: List[ProposalRecord] = []
        self.votes: Set[Tuple[int, str]] = set()
        self.calls: List[str] = []
        self.fail_reads = False
        self.fail_read_index: Optional[int] = None
        self.reject_writes = False
        self.gate: Optional[asyncio.Event] = None
        self._tx_counter = 0

    # ── seeding ───────────────────────────────────────────────────────

    def add(self, description="Fund the treasury", yes=0, no=0, deadline=None,
            executed=False, proposer=BOB) -> ProposalRecord:
        record = ProposalRecord(
            id=len(self.records),
            description=description,
            yes_votes=yes,
            no_votes=no,
            deadline=self.now + VOTING_DURATION if deadline is None else deadline,
            executed=executed,
            proposer=proposer,
        )
        self.records.append(record)
        return record

    @property
    def write_calls(self) -> List[str]:
        return [c for c in self.calls if c in ("create_proposal", "vote", "execute_proposal")]

    # ── reads ─────────────────────────────────────────────────────────

    async def get_proposal_count(self) -> int:
        self.calls.append("get_proposal_count")
        await asyncio.sleep(0)
        if self.fail_reads:
            raise FetchError("node unreachable")
        return len(self.records)

    async def get_proposal(self, proposal_id: int) -> ProposalRecord:
        self.calls.append("get_proposal")
        await asyncio.sleep(0)
        if self.fail_read_index == proposal_id:
            raise FetchError(f"getProposal({proposal_id}) returned garbage")
        return self.records[proposal_id]

    async def has_voted(self, proposal_id: int, voter: str) -> bool:
        self.calls.append("has_voted")
        await asyncio.sleep(0)
        return (proposal_id, voter.lower()) in self.votes

    async def voting_duration(self) -> int:
        self.calls.append("voting_duration")
        if self.fail_reads:
            raise FetchError("node unreachable")
        return VOTING_DURATION

    # ── writes ────────────────────────────────────────────────────────

    def _tx(self, apply) -> FakeTransaction:
        self._tx_counter += 1
        return FakeTransaction("0x" + f"{self._tx_counter:064x}", apply, self.gate)

    def _replace(self, proposal_id: int, **changes) -> None:
        self.records[proposal_id] = replace(self.records[proposal_id], **changes)

    async def create_proposal(self, description: str) -> FakeTransaction:
        self.calls.append("create_proposal")
        if self.reject_writes:
            raise MutationRejected("User declined to sign the transaction")
        return self._tx(lambda: self.add(description, proposer=self.sender))

    async def vote(self, proposal_id: int, support: bool) -> FakeTransaction:
        self.calls.append("vote")
        if self.reject_writes:
            raise MutationRejected("User declined to sign the transaction")

        def apply():
            key = (proposal_id, self.sender.lower())
            record = self.records[proposal_id]
            if key in self.votes:
                raise MutationRejected("Transaction reverted: Already voted")
            if self.now > record.deadline:
                raise MutationRejected("Transaction reverted: Voting ended")
            self.votes.add(key)
            if support:
                self._replace(proposal_id, yes_votes=record.yes_votes + 1)
            else:
                self._replace(proposal_id, no_votes=record.no_votes + 1)

        return self._tx(apply)

    async def execute_proposal(self, proposal_id: int) -> FakeTransaction:
        self.calls.append("execute_proposal")
        if self.reject_writes:
            raise MutationRejected("User declined to sign the transaction")

        def apply():
            record = self.records[proposal_id]
            if record.executed or self.now <= record.deadline or record.yes_votes <= record.no_votes:
                raise MutationRejected("Transaction reverted: Cannot execute")
            self._replace(proposal_id, executed=True)

        return self._tx(apply)


@pytest.fixture
def governance() -> FakeGovernance:
    return FakeGovernance()
