"""
Governance Proposals

Immutable snapshots of proposals as returned by the governance contract, the
viewer-relative wrapper that carries the has-voted flag, and the snapshot
type held by the synchronizer cache.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from eth_utils import is_address, to_checksum_address

from ..exceptions import FetchError


class ProposalStatus(Enum):
    """Display status derived from deadline, executed flag and current time."""
    ACTIVE = "Active"
    EXPIRED = "Expired"
    EXECUTED = "Executed"


@dataclass(frozen=True)
class ProposalRecord:
    """
    A proposal as stored by the governance contract.

    Fields:
        id:           Index assigned by the contract at creation
        description:  Free text set at creation
        yes_votes:    Votes in favour (never decreases)
        no_votes:     Votes against (never decreases)
        deadline:     Voting close, epoch seconds
        executed:     True once executed, permanently
        proposer:     Checksum address of the creator
    """
    id: int
    description: str
    yes_votes: int
    no_votes: int
    deadline: int
    executed: bool
    proposer: str

    @property
    def total_votes(self) -> int:
        return self.yes_votes + self.no_votes

    @property
    def approval_ratio(self) -> float:
        """yes / (yes + no); 0.0 when nobody has voted."""
        total = self.total_votes
        if total == 0:
            return 0.0
        return self.yes_votes / total

    @classmethod
    def from_contract(cls, proposal_id: int, values: Sequence[Any]) -> "ProposalRecord":
        """
        Build a record from the decoded ``getProposal`` return tuple
        ``(description, yesVotes, noVotes, deadline, executed, proposer)``.

        Raises FetchError when the tuple does not have that shape.
        """
        if len(values) != 6:
            raise FetchError(
                f"Malformed proposal #{proposal_id}: expected 6 fields, got {len(values)}"
            )
        description, yes_votes, no_votes, deadline, executed, proposer = values
        if not isinstance(description, str):
            raise FetchError(f"Malformed proposal #{proposal_id}: description is not text")
        for name, value in (("yesVotes", yes_votes), ("noVotes", no_votes), ("deadline", deadline)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise FetchError(f"Malformed proposal #{proposal_id}: bad {name} {value!r}")
        if not isinstance(executed, bool):
            raise FetchError(f"Malformed proposal #{proposal_id}: executed is not a bool")
        if not isinstance(proposer, str) or not is_address(proposer):
            raise FetchError(f"Malformed proposal #{proposal_id}: bad proposer {proposer!r}")
        return cls(
            id=proposal_id,
            description=description,
            yes_votes=yes_votes,
            no_votes=no_votes,
            deadline=deadline,
            executed=executed,
            proposer=to_checksum_address(proposer),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "yesVotes": self.yes_votes,
            "noVotes": self.no_votes,
            "deadline": self.deadline,
            "executed": self.executed,
            "proposer": self.proposer,
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.id} yes={self.yes_votes} no={self.no_votes} "
            f"deadline={self.deadline} executed={self.executed}>"
        )


@dataclass(frozen=True)
class ViewerProposal:
    """A record paired with whether one specific viewer has voted on it."""
    record: ProposalRecord
    has_voted: bool

    @property
    def id(self) -> int:
        return self.record.id


@dataclass(frozen=True)
class ProposalSnapshot:
    """
    Ordered, immutable view of every proposal for one viewer.

    ``proposals[i].id == i``; the synchronizer replaces the whole snapshot,
    it never edits one in place.
    """
    viewer: Optional[str] = None
    proposals: Tuple[ViewerProposal, ...] = ()
    fetched_at: float = field(default_factory=time.time, compare=False)

    def __len__(self) -> int:
        return len(self.proposals)

    def __iter__(self):
        return iter(self.proposals)

    def get(self, proposal_id: int) -> Optional[ViewerProposal]:
        if 0 <= proposal_id < len(self.proposals):
            return self.proposals[proposal_id]
        return None

    @property
    def records(self) -> Tuple[ProposalRecord, ...]:
        return tuple(p.record for p in self.proposals)
