"""
daovote Governance Core

Provides:
  - ProposalRecord / ViewerProposal / ProposalSnapshot / ProposalStatus  (proposals.py)
  - classify / classify_for_viewer / Classification / ProposalActions    (classifier.py)
  - ProposalSynchronizer / OperationResult / GovernanceService           (synchronizer.py)
"""

from .proposals import (
    ProposalRecord,
    ProposalSnapshot,
    ProposalStatus,
    ViewerProposal,
)
from .classifier import (
    Classification,
    ProposalActions,
    classify,
    classify_for_viewer,
    derive_status,
)
from .synchronizer import (
    GovernanceService,
    OperationResult,
    ProposalSynchronizer,
    TransactionHandle,
)

__all__ = [
    # Proposals
    "ProposalRecord",
    "ProposalSnapshot",
    "ProposalStatus",
    "ViewerProposal",
    # Classifier
    "Classification",
    "ProposalActions",
    "classify",
    "classify_for_viewer",
    "derive_status",
    # Synchronizer
    "GovernanceService",
    "OperationResult",
    "ProposalSynchronizer",
    "TransactionHandle",
]
