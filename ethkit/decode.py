"""ABI decoding into Python values."""

from __future__ import annotations

import dataclasses

from .abi_type import AbiError, Kind, Type
from .primitives import Address

_WORD = 32
_MAX_INT256 = (1 << 255) - 1
_SMALL_SIZES = (8, 16, 32, 64)


def decode(typ: Type, data: bytes):
    """Decode ``data`` according to the ABI type ``typ``."""
    data = bytes(data)
    if not data:
        raise AbiError("empty input")
    value, _ = _decode(typ, data)
    return value


def decode_struct(typ: Type, data: bytes, cls):
    """Decode ``data`` as a tuple and build an instance of the dataclass ``cls``."""
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise TypeError(f"{cls!r} is not a dataclass")
    value = decode(typ, data)
    if not isinstance(value, dict):
        raise AbiError("decoded value is not a tuple")
    return _build(cls, value)


def _build(cls, values: dict):
    lowered: dict = {}
    for key in values:
        lowered.setdefault(key.lower(), key)

    kwargs = {}
    for item in dataclasses.fields(cls):
        if not item.init:
            continue
        tag = item.metadata.get("abi", "")
        if tag == "-":
            continue
        key = tag or item.name
        actual = key if key in values else lowered.get(key.lower())
        if actual is None:
            continue
        member = values[actual]
        hint = item.type
        if isinstance(hint, type) and dataclasses.is_dataclass(hint) and isinstance(member, dict):
            member = _build(hint, member)
        kwargs[item.name] = member
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise AbiError(f"cannot build {cls.__name__}: {exc}") from exc


def _decode(typ: Type, data: bytes):
    if len(data) < _WORD:
        raise AbiError("incorrect length")

    length = _read_length(data) if typ.is_variable_input() else 0
    word = data[:_WORD]
    kind = typ.kind

    if kind is Kind.TUPLE:
        return _decode_tuple(typ, data)
    if kind is Kind.SLICE:
        return _decode_sequence(typ, data[_WORD:], length)
    if kind is Kind.ARRAY:
        return _decode_sequence(typ, data, typ.size)

    if kind is Kind.BOOL:
        value = _decode_bool(word)
    elif kind in (Kind.INT, Kind.UINT):
        value = _read_integer(typ, word)
    elif kind is Kind.STRING:
        value = data[_WORD:_WORD + length].decode("utf-8", "surrogateescape")
    elif kind is Kind.BYTES:
        value = data[_WORD:_WORD + length]
    elif kind is Kind.ADDRESS:
        value = Address(word[12:])
    elif kind is Kind.FIXED_BYTES:
        value = word[:typ.size]
    elif kind is Kind.FUNCTION:
        value = _read_function(word)
    else:
        raise AbiError(f"decoding not available for type '{kind}'")
    return value, data[_WORD:]


def _read_integer(typ: Type, word: bytes) -> int:
    signed = typ.kind is Kind.INT
    if typ.size in _SMALL_SIZES:
        return int.from_bytes(word[-(typ.size // 8):], "big", signed=signed)
    value = int.from_bytes(word, "big")
    if signed and value > _MAX_INT256:
        value -= 1 << 256
    return value


def _read_function(word: bytes) -> bytes:
    if any(word[24:32]):
        raise AbiError(
            f"function type expects the last 8 bytes to be empty but found: {word[24:32].hex()}"
        )
    return word[:24]


def _decode_bool(word: bytes) -> bool:
    last = word[31]
    if last == 0:
        return False
    if last == 1:
        return True
    raise AbiError("bad boolean")


def _read_offset(data: bytes, limit: int) -> int:
    offset = int.from_bytes(data[:_WORD], "big")
    if offset.bit_length() > 63:
        raise AbiError("offset larger than int64")
    if offset > limit:
        raise AbiError(f"offset insufficient {limit} require {offset}")
    return offset


def _read_length(data: bytes) -> int:
    length = int.from_bytes(data[:_WORD], "big")
    if length.bit_length() > 63:
        raise AbiError("length larger than int64")
    if length > len(data) - _WORD:
        raise AbiError(f"length insufficient {len(data)} require {length}")
    return length


def _decode_member(elem: Type, data: bytes, orig: bytes):
    """Decode one head entry and return the value and the remaining head."""
    if len(data) < _WORD:
        raise AbiError("incorrect length")
    dynamic = elem.is_dynamic()
    entry = orig[_read_offset(data, len(orig)):] if dynamic else data
    value, tail = _decode(elem, entry)
    return value, (data[_WORD:] if dynamic else tail)


def _decode_tuple(typ: Type, data: bytes):
    result: dict = {}
    orig = data
    for index, item in enumerate(typ.tuple_elems):
        value, data = _decode_member(item.elem, data, orig)
        name = item.name or str(index)
        if name in result:
            raise AbiError("tuple with repeated values")
        result[name] = value
    return result, data


def _decode_sequence(typ: Type, data: bytes, size: int):
    if size < 0:
        raise AbiError("size is lower than zero")
    if _WORD * size > len(data):
        raise AbiError("size is too big")
    result = []
    orig = data
    for _ in range(size):
        value, data = _decode_member(typ.elem, data, orig)
        result.append(value)
    return result, data