"""ABI encoding of Python values."""

from __future__ import annotations

import binascii
import dataclasses
import re
from collections.abc import Mapping

from .abi_type import AbiError, Kind, Type, type_size
from .primitives import Address

_WORD = 32
_U256_MASK = (1 << 256) - 1
_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")
_HEX_RE = re.compile(r"[+-]?[0-9a-fA-F]+")
_BYTES_LIKE = (bytes, bytearray, memoryview)


def encode_hex(data: bytes) -> str:
    """Return ``data`` as a ``0x`` prefixed hex string."""
    return "0x" + bytes(data).hex()


def decode_hex(text: str) -> bytes:
    """Decode a hex string, with or without a ``0x`` prefix."""
    body = text[2:] if text.startswith("0x") else text
    try:
        return binascii.unhexlify(body)
    except (binascii.Error, ValueError) as exc:
        raise AbiError(f"could not decode hex: {exc}") from exc


def encode(value, typ: Type) -> bytes:
    """Encode ``value`` according to the ABI type ``typ``."""
    return _encode(value, typ)


def _encode(value, typ: Type) -> bytes:
    kind = typ.kind
    if kind in (Kind.SLICE, Kind.ARRAY):
        return _encode_sequence(value, typ)
    if kind is Kind.TUPLE:
        return _encode_tuple(value, typ)
    if kind is Kind.STRING:
        return _encode_string(value)
    if kind is Kind.BOOL:
        return _encode_bool(value)
    if kind is Kind.ADDRESS:
        return _encode_address(value)
    if kind in (Kind.INT, Kind.UINT):
        return _encode_num(value)
    if kind is Kind.BYTES:
        return _encode_bytes(value)
    if kind in (Kind.FIXED_BYTES, Kind.FUNCTION):
        return _right_pad(_as_bytes(value, str(kind)), _WORD)
    raise AbiError(f"encoding not available for type '{kind}'")


def _encode_error(value, target: str) -> AbiError:
    return AbiError(f"failed to encode {type(value).__name__} as {target}")


def _encode_sequence(value, typ: Type) -> bytes:
    if not isinstance(value, (list, tuple, bytes, bytearray)):
        raise _encode_error(value, str(typ.kind))
    items = list(value)
    if typ.kind is Kind.ARRAY and typ.size != len(items):
        raise AbiError("array len incompatible")

    head = bytearray()
    tail = bytearray()
    if typ.is_variable_input():
        head += _pack_num(len(items))

    dynamic = typ.elem.is_dynamic()
    offset = type_size(typ.elem) * len(items) if dynamic else 0
    for item in items:
        encoded = _encode(item, typ.elem)
        if dynamic:
            head += _pack_num(offset)
            offset += len(encoded)
            tail += encoded
        else:
            head += encoded
    return bytes(head + tail)


def _struct_to_map(obj) -> dict:
    result: dict = {}
    for item in dataclasses.fields(obj):
        if item.name.startswith("_"):
            continue
        tag = item.metadata.get("abi", "")
        if tag == "-":
            continue
        result.setdefault(tag or item.name.lower(), getattr(obj, item.name))
    return result


def _encode_tuple(value, typ: Type) -> bytes:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = _struct_to_map(value)
    if isinstance(value, Mapping):
        by_name = True
    elif isinstance(value, (list, tuple)):
        by_name = False
    else:
        raise _encode_error(value, "tuple")

    elems = typ.tuple_elems
    if len(value) < len(elems):
        raise AbiError("expected at least the same length")

    offset = sum(type_size(item.elem) for item in elems)
    head = bytearray()
    tail = bytearray()
    for index, item in enumerate(elems):
        if by_name:
            key = item.name or str(index)
            if key not in value:
                raise AbiError(f"cannot get key {item.name}")
            member = value[key]
        else:
            member = value[index]

        encoded = _encode(member, item.elem)
        if item.elem.is_dynamic():
            head += _pack_num(offset)
            tail += encoded
            offset += len(encoded)
        else:
            head += encoded
    return bytes(head + tail)


def _as_bytes(value, target: str) -> bytes:
    if isinstance(value, str):
        return decode_hex(value)
    if isinstance(value, _BYTES_LIKE):
        return bytes(value)
    if isinstance(value, (list, tuple)):
        try:
            return bytes(value)
        except (TypeError, ValueError) as exc:
            raise _encode_error(value, target) from exc
    raise _encode_error(value, target)


def _encode_address(value) -> bytes:
    if isinstance(value, str):
        try:
            value = Address.from_hex(value)
        except ValueError as exc:
            raise AbiError(str(exc)) from exc
    return _left_pad(_as_bytes(value, "address"), _WORD)


def _encode_bytes(value) -> bytes:
    return _pack_bytes(_as_bytes(value, "bytes"))


def _encode_string(value) -> bytes:
    if not isinstance(value, str):
        raise _encode_error(value, "string")
    return _pack_bytes(value.encode("utf-8", "surrogateescape"))


def _pack_bytes(data: bytes) -> bytes:
    length = len(data)
    return _pack_num(length) + _right_pad(data, (length + 31) // 32 * 32)


def _pack_num(number: int) -> bytes:
    return _to_u256(number)


def _parse_number(text: str) -> int:
    if _DECIMAL_RE.fullmatch(text):
        return int(text, 10)
    body = text[2:]
    if _HEX_RE.fullmatch(body):
        return int(body, 16)
    raise _encode_error(text, "number")


def _encode_num(value) -> bytes:
    if isinstance(value, bool):
        raise _encode_error(value, "number")
    if isinstance(value, int):
        return _to_u256(value)
    if isinstance(value, float):
        try:
            return _to_u256(int(value))
        except (ValueError, OverflowError) as exc:
            raise _encode_error(value, "number") from exc
    if isinstance(value, str):
        return _to_u256(_parse_number(value))
    raise _encode_error(value, "number")


def _encode_bool(value) -> bytes:
    if not isinstance(value, bool):
        raise _encode_error(value, "bool")
    return _to_u256(1 if value else 0)


def _to_u256(number: int) -> bytes:
    return (number & _U256_MASK).to_bytes(_WORD, "big")


def _pad(data: bytes, size: int, left: bool) -> bytes:
    length = len(data)
    if length == size:
        return data
    if length > size:
        return data[length - size:]
    filler = bytes(size - length)
    return filler + data if left else data + filler


def _left_pad(data: bytes, size: int) -> bytes:
    return _pad(data, size, True)


def _right_pad(data: bytes, size: int) -> bytes:
    return _pad(data, size, False)