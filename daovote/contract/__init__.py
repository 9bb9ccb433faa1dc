"""
Governance contract access: ABI helpers, the async contract client and
pending-transaction handles.
"""

from .abi import (
    compute_function_selector,
    decode_return_data,
    encode_function_call,
)
from .client import GovernanceContract
from .transactions import PendingTransaction

__all__ = [
    "GovernanceContract",
    "PendingTransaction",
    "compute_function_selector",
    "decode_return_data",
    "encode_function_call",
]
