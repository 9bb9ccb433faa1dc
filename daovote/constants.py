"""
daovote Constants

This module consolidates global constants and environment configuration used
throughout the client. Constants are organized by category for easy reference
and maintenance.
"""
from dotenv import dotenv_values

from .exceptions import ConfigurationError

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

CLIENT_DEFAULTS = {
    'DAOVOTE_RPC_URL':                 'http://127.0.0.1:8545',
    'DAOVOTE_CONTRACT_ADDRESS':        '0x1234567890123456789012345678901234567890',
    'DAOVOTE_WALLET_MODE':             'provider',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# CONTRACT INTERFACE
# ==================================================================================
# Function signatures of the governance contract. Selectors are derived from
# these strings, so they must match the deployed contract exactly.
FN_GET_PROPOSAL_COUNT = 'getProposalCount()'
FN_GET_PROPOSAL = 'getProposal(uint256)'
FN_HAS_VOTED = 'hasVoted(uint256,address)'
FN_CREATE_PROPOSAL = 'createProposal(string)'
FN_VOTE = 'vote(uint256,bool)'
FN_EXECUTE_PROPOSAL = 'executeProposal(uint256)'
FN_VOTING_DURATION = 'VOTING_DURATION()'

# Return types, in declaration order
GET_PROPOSAL_COUNT_RETURNS = ['uint256']
GET_PROPOSAL_RETURNS = ['string', 'uint256', 'uint256', 'uint256', 'bool', 'address']
HAS_VOTED_RETURNS = ['bool']
VOTING_DURATION_RETURNS = ['uint256']

# Proposal ids are uint256 on chain
MAX_PROPOSAL_ID = 2**256 - 1


# ==================================================================================
# NETWORK AND SYNC CONSTANTS
# ==================================================================================
CONNECTION_TIMEOUT = 10.0  # seconds

# Per-record reads issued concurrently during a refresh
MAX_CONCURRENT_FETCHES = 8

# Transaction confirmation polling
RECEIPT_POLL_INTERVAL = 1.0  # seconds
CONFIRMATION_TIMEOUT = 120.0  # seconds

# EIP-1193 provider error raised when the user declines a wallet prompt
EIP1193_USER_REJECTED = 4001
# EIP-1193 provider error raised when the requested method is not supported
EIP1193_UNSUPPORTED_METHOD = 4200

# Display
ADDRESS_PREFIX_CHARS = 6
ADDRESS_SUFFIX_CHARS = 4


# ==================================================================================
# SETTINGS FROM .env
# ==================================================================================
class ConfigString(str):
    """A setting's effective value that still knows its built-in default."""

    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default


_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off", ""}


def parse_bool(key, raw):
    """'True' / 'off' / ... from .env -> bool; anything else is a config mistake."""
    word = raw.strip().casefold()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}")


# Flags are plain bools; every other setting is a ConfigString
_BOOL_SETTINGS = {'LOG_CONSOLE_HIGHLIGHTING', 'LOG_FILE_OUTPUT'}

for _key, _default in (CLIENT_DEFAULTS | LOGGER_DEFAULTS).items():
    # dotenv_values yields None for keys without a value
    _raw = _config.get(_key)
    _value = _default if _raw is None else _raw
    if _key in _BOOL_SETTINGS:
        globals()[_key] = parse_bool(_key, _value)
    else:
        globals()[_key] = ConfigString(_value, _default)
