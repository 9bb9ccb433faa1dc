"""
daovote: governance proposal client.

View, create, vote on and execute proposals held by an on-chain governance
contract, through a connected wallet.
"""

__version__ = "1.0.0"

from .exceptions import (
    ConfigurationError,
    ConnectionRejected,
    DAOClientError,
    FetchError,
    LocalValidationError,
    MutationRejected,
    WalletUnavailable,
)
from .governance import (
    ProposalRecord,
    ProposalStatus,
    ProposalSynchronizer,
    classify,
)
from .session import GovernanceSession

__all__ = [
    "ConfigurationError",
    "ConnectionRejected",
    "DAOClientError",
    "FetchError",
    "GovernanceSession",
    "LocalValidationError",
    "MutationRejected",
    "ProposalRecord",
    "ProposalStatus",
    "ProposalSynchronizer",
    "WalletUnavailable",
    "classify",
]
