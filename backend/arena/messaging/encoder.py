"""
MessagePack codec for arena WebSocket frames.

Every frame carries exactly one map. Outbound payloads come from pydantic
model_dump(), inbound payloads are size-checked before they reach the router.
"""

from typing import Any

import msgpack


def _stringify_keys(obj: object) -> object:
    """Recursively turn integer map keys into strings (msgpack strict mode wants str keys)."""
    if isinstance(obj, dict):
        return {str(k) if isinstance(k, int) else k: _stringify_keys(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_stringify_keys(item) for item in obj]
    return obj


def encode(data: dict[str, Any]) -> bytes:
    return msgpack.packb(_stringify_keys(data))


class DecodeError(Exception):
    """Raised when an inbound frame is not a valid, bounded MessagePack map."""


# Arena messages are tiny; anything near these limits is garbage or abuse.
MAX_BUFFER_LEN = 16 * 1024
MAX_STR_LEN = 4 * 1024
MAX_BIN_LEN = 1024
MAX_ARRAY_LEN = 64
MAX_MAP_LEN = 32
MAX_EXT_LEN = 64


def decode(data: bytes) -> dict[str, Any]:
    """
    Decode one inbound frame.

    Raises DecodeError on oversize payloads, malformed MessagePack, or a top-level
    value that is not a map.
    """
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_BUFFER_LEN})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected map, got {type(result).__name__}")

    return result
