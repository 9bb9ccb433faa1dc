"""
Presentation helpers

Display-ready views of proposals. Everything here is derived on read from
a ViewerProposal and an explicit timestamp; nothing is cached.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .constants import ADDRESS_PREFIX_CHARS, ADDRESS_SUFFIX_CHARS
from .governance.classifier import classify_for_viewer
from .governance.proposals import ProposalSnapshot, ProposalStatus, ViewerProposal

# rich style strings
STATUS_STYLES = {
    ProposalStatus.ACTIVE: "green",
    ProposalStatus.EXECUTED: "blue",
    ProposalStatus.EXPIRED: "red",
}
DEFAULT_STATUS_STYLE = "dim"


def format_address(address: str) -> str:
    """0x1234567890abcdef... -> 0x1234...cdef"""
    if len(address) <= ADDRESS_PREFIX_CHARS + ADDRESS_SUFFIX_CHARS:
        return address
    return f"{address[:ADDRESS_PREFIX_CHARS]}...{address[-ADDRESS_SUFFIX_CHARS:]}"


def status_style(status: Optional[ProposalStatus]) -> str:
    return STATUS_STYLES.get(status, DEFAULT_STATUS_STYLE)


def format_deadline(deadline: int) -> str:
    return datetime.fromtimestamp(deadline, tz=timezone.utc).strftime("%Y-%m-%d")


@dataclass(frozen=True)
class ProposalView:
    """One proposal as a card would show it."""
    id: int
    description: str
    proposer: str
    proposer_short: str
    deadline: int
    ends_on: str
    status: ProposalStatus
    status_style: str
    yes_votes: int
    no_votes: int
    total_votes: int
    approval_percentage: float
    can_vote: bool
    can_execute: bool
    has_voted: bool

    @classmethod
    def build(cls, entry: ViewerProposal, now: float) -> "ProposalView":
        record = entry.record
        actions = classify_for_viewer(entry, now)
        return cls(
            id=record.id,
            description=record.description,
            proposer=record.proposer,
            proposer_short=format_address(record.proposer),
            deadline=record.deadline,
            ends_on=format_deadline(record.deadline),
            status=actions.status,
            status_style=status_style(actions.status),
            yes_votes=record.yes_votes,
            no_votes=record.no_votes,
            total_votes=record.total_votes,
            approval_percentage=round(record.approval_ratio * 100, 1),
            can_vote=actions.can_vote,
            can_execute=actions.can_execute,
            has_voted=actions.has_voted,
        )

    @property
    def approval_label(self) -> str:
        return f"{self.approval_percentage:.1f}% approval ({self.total_votes} total votes)"

    @property
    def actions(self) -> Tuple[str, ...]:
        """Buttons to offer, in display order."""
        offered = []
        if self.can_vote:
            offered.extend(["vote_yes", "vote_no"])
        if self.can_execute:
            offered.append("execute")
        return tuple(offered)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "proposer": self.proposer,
            "proposerShort": self.proposer_short,
            "deadline": self.deadline,
            "endsOn": self.ends_on,
            "status": self.status.value,
            "statusStyle": self.status_style,
            "yesVotes": self.yes_votes,
            "noVotes": self.no_votes,
            "totalVotes": self.total_votes,
            "approvalPercentage": self.approval_percentage,
            "actions": list(self.actions),
            "hasVoted": self.has_voted,
        }


def build_views(snapshot: ProposalSnapshot, now: float) -> Tuple[ProposalView, ...]:
    return tuple(ProposalView.build(entry, now) for entry in snapshot)
