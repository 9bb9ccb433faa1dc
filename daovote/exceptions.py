"""
daovote Exceptions

Custom exception classes for the governance client. Every error the client
reports to a user is a DAOClientError; `user_message` is the single line the
caller shows.
"""

from typing import Any, Optional


class DAOClientError(Exception):
    """Base exception for daovote."""

    default_message = "Unexpected governance client error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        return str(self)


class ConfigurationError(DAOClientError):
    """Configuration error."""
    default_message = "Invalid client configuration"


class WalletUnavailable(ConfigurationError):
    """No signing capability is present."""
    default_message = "No wallet available. Install or enable a wallet to continue."


class ConnectionRejected(DAOClientError):
    """The user declined the account/permission request."""
    default_message = "Wallet connection was rejected"


class FetchError(DAOClientError):
    """A remote read failed or returned data of the wrong shape."""
    default_message = "Failed to load proposals"


class MutationRejected(DAOClientError):
    """A remote write failed, was reverted, or was not signed."""
    default_message = "Transaction was rejected"


class LocalValidationError(DAOClientError):
    """Request rejected before any remote call was made."""
    default_message = "Invalid request"


class TransportError(DAOClientError):
    """The RPC endpoint could not be reached or answered with garbage."""
    default_message = "RPC endpoint unreachable"


class RPCError(DAOClientError):
    """JSON-RPC error envelope returned by the remote endpoint."""

    def __init__(self, code: int, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def __repr__(self) -> str:
        return f"RPCError(code={self.code}, message={self.message!r})"
