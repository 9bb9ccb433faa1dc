"""
Contract ABI helpers

Function selectors, call-data encoding and return-data decoding for the
governance contract.
"""

from typing import Any, List, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import decode_hex, encode_hex, keccak

from ..exceptions import FetchError, LocalValidationError


def compute_function_selector(function_signature: str) -> bytes:
    """
    Compute Ethereum function selector (first 4 bytes of keccak256(sig)).

    Args:
        function_signature: Function signature like "vote(uint256,bool)"

    Returns:
        4-byte function selector
    """
    return keccak(text=function_signature)[:4]


def parse_argument_types(function_signature: str) -> List[str]:
    """"vote(uint256,bool)" -> ['uint256', 'bool']"""
    args_start = function_signature.index('(') + 1
    args_end = function_signature.rindex(')')
    arg_types_str = function_signature[args_start:args_end]
    if not arg_types_str:
        return []
    return [t.strip() for t in arg_types_str.split(',')]


def encode_function_call(function_signature: str, *args) -> str:
    """
    Encode function call data (selector + ABI-encoded arguments) as a
    0x-prefixed hex string ready for ``eth_call`` / ``eth_sendTransaction``.

    Raises LocalValidationError when an argument does not fit its ABI type.
    """
    selector = compute_function_selector(function_signature)
    arg_types = parse_argument_types(function_signature)
    if len(arg_types) != len(args):
        raise ValueError(
            f"{function_signature} takes {len(arg_types)} argument(s), got {len(args)}"
        )
    try:
        encoded_args = encode(arg_types, args) if arg_types else b''
    except EncodingError as e:
        raise LocalValidationError(f"{function_signature}: {e}") from e
    return encode_hex(selector + encoded_args)


def decode_return_data(function_signature: str, return_types: Sequence[str], data: Any) -> tuple:
    """
    Decode the hex string returned by ``eth_call``.

    Raises FetchError on anything that is not valid ABI data for
    *return_types*, including the empty ``0x`` a missing contract returns.
    """
    if not isinstance(data, str):
        raise FetchError(f"{function_signature}: expected hex return data, got {type(data).__name__}")
    try:
        raw = decode_hex(data)
    except (ValueError, TypeError) as e:
        raise FetchError(f"{function_signature}: return data is not hex") from e
    if not raw:
        raise FetchError(f"{function_signature}: empty return data (is the contract address right?)")
    try:
        return tuple(decode(list(return_types), raw))
    except (DecodingError, OverflowError, ValueError) as e:
        raise FetchError(f"{function_signature}: malformed return data: {e}") from e
