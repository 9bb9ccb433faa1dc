"""
Proposal Classifier

Pure functions deriving display status and the actions a viewer may take.
The current time is always passed in; nothing here reads a clock.

The execute gate mirrors the contract's own rule (strict majority after the
deadline) and is advisory only. The contract remains the authority and may
still reject the transaction.
"""

from dataclasses import dataclass

from .proposals import ProposalRecord, ProposalStatus, ViewerProposal


def derive_status(record: ProposalRecord, now: float) -> ProposalStatus:
    if record.executed:
        return ProposalStatus.EXECUTED
    if now > record.deadline:
        return ProposalStatus.EXPIRED
    return ProposalStatus.ACTIVE


@dataclass(frozen=True)
class Classification:
    status: ProposalStatus
    can_execute: bool

    def can_vote(self, viewer_has_voted: bool) -> bool:
        return self.status is ProposalStatus.ACTIVE and not viewer_has_voted


@dataclass(frozen=True)
class ProposalActions:
    """Classification bound to one viewer's has-voted flag."""
    status: ProposalStatus
    can_vote: bool
    can_execute: bool
    has_voted: bool


def classify(record: ProposalRecord, now: float) -> Classification:
    status = derive_status(record, now)
    can_execute = (
        status is ProposalStatus.EXPIRED
        and not record.executed
        and record.yes_votes > record.no_votes
    )
    return Classification(status=status, can_execute=can_execute)


def classify_for_viewer(entry: ViewerProposal, now: float) -> ProposalActions:
    classification = classify(entry.record, now)
    return ProposalActions(
        status=classification.status,
        can_vote=classification.can_vote(entry.has_voted),
        can_execute=classification.can_execute,
        has_voted=entry.has_voted,
    )
