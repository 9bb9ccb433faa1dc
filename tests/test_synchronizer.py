"""
Proposal synchronizer test suite

Coverage:
  - refresh_all: ordering, viewer-relative flags, idempotence, all-or-nothing
    replacement, stale overlapping refreshes
  - submit_create / submit_vote / submit_execute happy paths
  - local rejection (empty description, busy, bad ids) without remote calls
  - remote rejection surfaced as MutationRejected with busy released
  - confirmed mutation followed by a failed refresh
"""

import asyncio

import pytest

from daovote.exceptions import FetchError, LocalValidationError, MutationRejected
from daovote.governance.classifier import classify_for_viewer
from daovote.governance.proposals import ProposalStatus
from daovote.governance.synchronizer import ProposalSynchronizer

from conftest import ALICE, BOB, NOW, FakeGovernance


async def spin(times: int = 10):
    for _ in range(times):
        await asyncio.sleep(0)


# ══════════════════════════════════════════════════════════════════════
#  REFRESH
# ══════════════════════════════════════════════════════════════════════

class TestRefreshAll:

    @pytest.mark.asyncio
    async def test_loads_every_proposal_in_index_order(self, governance):
        for i in range(5):
            governance.add(f"Proposal {i}")
        sync = ProposalSynchronizer(governance)

        result = await sync.refresh_all(ALICE)

        assert result.ok
        assert [p.id for p in sync.cache] == [0, 1, 2, 3, 4]
        assert [p.record.description for p in sync.cache] == [f"Proposal {i}" for i in range(5)]
        assert sync.last_error is None

    @pytest.mark.asyncio
    async def test_order_kept_when_fetches_finish_out_of_order(self):
        class SlowFirst(FakeGovernance):
            async def get_proposal(self, proposal_id):
                await spin(len(self.records) - proposal_id)
                return await super().get_proposal(proposal_id)

        governance = SlowFirst()
        for i in range(6):
            governance.add(f"Proposal {i}")
        sync = ProposalSynchronizer(governance, max_concurrent_fetches=6)

        await sync.refresh_all(ALICE)
        assert [p.id for p in sync.cache] == list(range(6))

    @pytest.mark.asyncio
    async def test_has_voted_is_per_viewer(self, governance):
        governance.add()
        governance.votes.add((0, ALICE.lower()))
        sync = ProposalSynchronizer(governance)

        await sync.refresh_all(ALICE)
        assert sync.cache[0].has_voted is True

        await sync.refresh_all(BOB)
        assert sync.cache[0].has_voted is False
        assert sync.snapshot.viewer.lower() == BOB.lower()

    @pytest.mark.asyncio
    async def test_empty_contract(self, governance):
        sync = ProposalSynchronizer(governance)
        result = await sync.refresh_all(ALICE)
        assert result.ok
        assert sync.cache == ()

    @pytest.mark.asyncio
    async def test_refresh_is_idempotent(self, governance):
        governance.add("A", yes=2, no=1)
        governance.add("B", executed=True)
        sync = ProposalSynchronizer(governance)

        await sync.refresh_all(ALICE)
        first = sync.cache
        await sync.refresh_all(ALICE)

        assert sync.cache == first
        assert sync.snapshot == sync.snapshot

    @pytest.mark.asyncio
    async def test_failed_count_keeps_previous_cache(self, governance):
        governance.add("A")
        governance.add("B")
        sync = ProposalSynchronizer(governance)
        await sync.refresh_all(ALICE)
        before = sync.cache

        governance.add("C")
        governance.fail_reads = True
        result = await sync.refresh_all(ALICE)

        assert not result.ok
        assert isinstance(result.error, FetchError)
        assert sync.cache is before
        assert sync.last_error == "node unreachable"

    @pytest.mark.asyncio
    async def test_one_bad_record_keeps_previous_cache(self, governance):
        for i in range(4):
            governance.add(f"Proposal {i}")
        sync = ProposalSynchronizer(governance)
        await sync.refresh_all(ALICE)
        before = sync.cache

        governance.add("New")
        governance.fail_read_index = 2
        result = await sync.refresh_all(ALICE)

        assert isinstance(result.error, FetchError)
        assert sync.cache == before
        assert len(sync.cache) == 4

    @pytest.mark.asyncio
    async def test_failed_record_waits_for_sibling_flag_read(self):
        class BothFail(FakeGovernance):
            flag_reads_finished = 0

            async def has_voted(self, proposal_id, voter):
                await spin(5)
                self.flag_reads_finished += 1
                raise FetchError("hasVoted reverted")

        governance = BothFail()
        governance.add()
        governance.fail_read_index = 0
        sync = ProposalSynchronizer(governance)

        result = await sync.refresh_all(ALICE)

        assert isinstance(result.error, FetchError)
        assert "getProposal(0)" in sync.last_error
        assert governance.flag_reads_finished == 1

    @pytest.mark.asyncio
    async def test_malformed_count(self, governance):
        async def bad_count():
            return -1
        governance.get_proposal_count = bad_count
        sync = ProposalSynchronizer(governance)

        result = await sync.refresh_all(ALICE)
        assert isinstance(result.error, FetchError)

    @pytest.mark.asyncio
    async def test_invalid_viewer_rejected_without_remote_call(self, governance):
        sync = ProposalSynchronizer(governance)
        result = await sync.refresh_all("not-an-address")
        assert isinstance(result.error, LocalValidationError)
        assert governance.calls == []

    @pytest.mark.asyncio
    async def test_stale_overlapping_refresh_is_discarded(self):
        release = asyncio.Event()

        class HeldCount(FakeGovernance):
            held = False

            async def get_proposal_count(self):
                count = len(self.records)
                if not self.held:
                    self.held = True
                    await release.wait()
                return count

        governance = HeldCount()
        governance.add("A")
        sync = ProposalSynchronizer(governance)

        older = asyncio.create_task(sync.refresh_all(ALICE))
        await spin()
        governance.add("B")
        await sync.refresh_all(ALICE)
        assert len(sync.cache) == 2

        release.set()
        result = await older

        assert result.ok
        assert len(sync.cache) == 2


# ══════════════════════════════════════════════════════════════════════
#  CREATE
# ══════════════════════════════════════════════════════════════════════

class TestSubmitCreate:

    @pytest.mark.asyncio
    async def test_create_then_refresh(self, governance):
        sync = ProposalSynchronizer(governance)

        result = await sync.submit_create("Add a second multisig signer", ALICE)

        assert result.ok
        assert result.confirmed
        assert result.tx_hash.startswith("0x")
        assert len(sync.cache) == 1
        assert sync.cache[0].record.description == "Add a second multisig signer"
        assert sync.cache[0].record.proposer == ALICE
        assert sync.busy is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("description", ["", "   ", "\n\t"])
    async def test_blank_description_rejected_locally(self, governance, description):
        governance.add("Existing")
        sync = ProposalSynchronizer(governance)
        await sync.refresh_all(ALICE)
        before = sync.cache
        governance.calls.clear()

        result = await sync.submit_create(description, ALICE)

        assert isinstance(result.error, LocalValidationError)
        assert governance.calls == []
        assert sync.cache is before
        assert sync.last_error == "Proposal description cannot be empty"

    @pytest.mark.asyncio
    async def test_signature_declined(self, governance):
        governance.reject_writes = True
        sync = ProposalSynchronizer(governance)

        result = await sync.submit_create("Something", ALICE)

        assert isinstance(result.error, MutationRejected)
        assert result.confirmed is False
        assert sync.busy is False
        assert sync.last_error == "User declined to sign the transaction"


# ══════════════════════════════════════════════════════════════════════
#  VOTE / EXECUTE
# ══════════════════════════════════════════════════════════════════════

class TestSubmitVote:

    @pytest.mark.asyncio
    async def test_vote_yes_updates_tally_and_flag(self, governance):
        governance.add("A", yes=1, no=1)
        sync = ProposalSynchronizer(governance)
        await sync.refresh_all(ALICE)

        result = await sync.submit_vote(0, True, ALICE)

        assert result.ok
        entry = sync.cache[0]
        assert entry.record.yes_votes == 2
        assert entry.has_voted is True
        assert classify_for_viewer(entry, NOW).can_vote is False

    @pytest.mark.asyncio
    async def test_vote_no(self, governance):
        governance.add("A")
        sync = ProposalSynchronizer(governance)

        await sync.submit_vote(0, False, ALICE)
        assert sync.cache[0].record.no_votes == 1

    @pytest.mark.asyncio
    async def test_second_vote_rejected_remotely_without_corrupting_cache(self, governance):
        for i in range(4):
            governance.add(f"Proposal {i}", yes=1)
        governance.votes.add((3, ALICE.lower()))
        sync = ProposalSynchronizer(governance)
        await sync.refresh_all(ALICE)
        before = sync.cache

        assert classify_for_viewer(sync.cache[3], NOW).can_vote is False

        result = await sync.submit_vote(3, True, ALICE)

        assert not result.ok
        assert isinstance(result.error, MutationRejected)
        assert sync.cache is before
        assert sync.cache[3].record.yes_votes == 1
        assert sync.busy is False
        assert "Already voted" in sync.last_error

    @pytest.mark.asyncio
    @pytest.mark.parametrize("proposal_id", [-1, "3", True, 1.5, 2**256])
    async def test_invalid_id_rejected_locally(self, governance, proposal_id):
        sync = ProposalSynchronizer(governance)
        result = await sync.submit_vote(proposal_id, True, ALICE)
        assert isinstance(result.error, LocalValidationError)
        assert governance.write_calls == []

    @pytest.mark.asyncio
    async def test_non_bool_support_rejected_locally(self, governance):
        governance.add()
        sync = ProposalSynchronizer(governance)
        result = await sync.submit_vote(0, 1, ALICE)
        assert isinstance(result.error, LocalValidationError)
        assert governance.write_calls == []


class TestSubmitExecute:

    @pytest.mark.asyncio
    async def test_execute_passed_proposal(self, governance):
        governance.add("A", yes=5, no=2, deadline=NOW - 10)
        sync = ProposalSynchronizer(governance)
        await sync.refresh_all(ALICE)
        assert classify_for_viewer(sync.cache[0], NOW).can_execute is True

        result = await sync.submit_execute(0, ALICE)

        assert result.ok
        assert sync.cache[0].record.executed is True
        assert classify_for_viewer(sync.cache[0], NOW).status is ProposalStatus.EXECUTED

    @pytest.mark.asyncio
    async def test_execute_failed_proposal_is_rejected(self, governance):
        governance.add("A", yes=2, no=5, deadline=NOW - 10)
        sync = ProposalSynchronizer(governance)
        await sync.refresh_all(ALICE)
        before = sync.cache

        result = await sync.submit_execute(0, ALICE)

        assert isinstance(result.error, MutationRejected)
        assert sync.cache is before
        assert sync.busy is False

    @pytest.mark.asyncio
    async def test_confirmed_but_refresh_failed(self, governance):
        governance.add("A", yes=5, no=2, deadline=NOW - 10)
        sync = ProposalSynchronizer(governance)
        await sync.refresh_all(ALICE)
        before = sync.cache

        original = governance.execute_proposal

        async def execute_then_go_offline(proposal_id):
            tx = await original(proposal_id)
            governance.fail_reads = True
            return tx

        governance.execute_proposal = execute_then_go_offline

        result = await sync.submit_execute(0, ALICE)

        assert not result.ok
        assert result.confirmed is True
        assert isinstance(result.error, FetchError)
        # stale but intact
        assert sync.cache is before
        assert governance.records[0].executed is True
        assert sync.busy is False


# ══════════════════════════════════════════════════════════════════════
#  MUTUAL EXCLUSION
# ══════════════════════════════════════════════════════════════════════

class TestBusy:

    @pytest.mark.asyncio
    async def test_second_mutation_rejected_while_first_in_flight(self, governance):
        governance.add("A")
        governance.gate = asyncio.Event()
        sync = ProposalSynchronizer(governance)

        first = asyncio.create_task(sync.submit_create("First", ALICE))
        await spin()
        assert sync.busy is True

        vote = await sync.submit_vote(0, True, ALICE)
        execute = await sync.submit_execute(0, ALICE)
        create = await sync.submit_create("Second", ALICE)

        for result in (vote, execute, create):
            assert isinstance(result.error, LocalValidationError)
        assert governance.write_calls == ["create_proposal"]

        governance.gate.set()
        result = await first

        assert result.ok
        assert sync.busy is False
        assert [p.record.description for p in sync.cache] == ["A", "First"]

    @pytest.mark.asyncio
    async def test_busy_held_through_trailing_refresh(self, governance):
        observed = []

        class Watching(FakeGovernance):
            async def get_proposal_count(self):
                observed.append(sync.busy)
                return await super().get_proposal_count()

        governance = Watching()
        sync = ProposalSynchronizer(governance)

        await sync.submit_create("Watched", ALICE)
        assert observed == [True]
        assert sync.busy is False

    @pytest.mark.asyncio
    async def test_refresh_not_gated_by_busy(self, governance):
        governance.add("A")
        governance.gate = asyncio.Event()
        sync = ProposalSynchronizer(governance)

        pending = asyncio.create_task(sync.submit_vote(0, True, ALICE))
        await spin()
        assert sync.busy

        result = await sync.refresh_all(ALICE)
        assert result.ok
        assert len(sync.cache) == 1

        governance.gate.set()
        assert (await pending).ok

    @pytest.mark.asyncio
    async def test_busy_released_after_failure(self, governance):
        governance.reject_writes = True
        sync = ProposalSynchronizer(governance)
        await sync.submit_create("X", ALICE)
        governance.reject_writes = False

        result = await sync.submit_create("Y", ALICE)
        assert result.ok
