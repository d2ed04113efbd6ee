"""Decoding of the standard revert reason payload."""

from __future__ import annotations

from .abi_type import AbiError, new_type
from .decode import decode

REVERT_ID = bytes([0x08, 0xC3, 0x79, 0xA0])


def unpack_revert_error(data: bytes) -> str:
    """Return the reason string of an ``Error(string)`` revert payload."""
    data = bytes(data)
    if not data.startswith(REVERT_ID):
        raise AbiError("revert error prefix not found")
    values = decode(new_type("tuple(string)"), data[len(REVERT_ID):])
    return values["0"]