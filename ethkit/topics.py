"""Encoding and parsing of indexed event topics."""

from __future__ import annotations

from .abi_type import AbiError, Kind, TupleElem, Type, new_tuple_type
from .decode import decode
from .encode import encode
from .primitives import Hash, Log

TOPIC_TRUE = Hash(bytes(31) + b"\x01")
TOPIC_FALSE = Hash(bytes(32))


def parse_log(typ: Type, log: Log) -> dict:
    """Parse the topics and data of ``log`` with the tuple type ``typ``."""
    indexed: list[TupleElem] = []
    non_indexed: list[TupleElem] = []
    for item in typ.tuple_elems:
        (indexed if item.indexed else non_indexed).append(item)

    indexed_values = iter(parse_topics(new_tuple_type(indexed), log.topics[1:]))

    non_indexed_values: dict = {}
    if non_indexed:
        raw = decode(new_tuple_type(non_indexed), log.data)
        if not isinstance(raw, dict):
            raise AbiError("bad decoding")
        non_indexed_values = raw

    result: dict = {}
    position = 0
    for item in typ.tuple_elems:
        if item.indexed:
            result[item.name] = next(indexed_values)
        else:
            key = item.name or str(position)
            result[item.name] = non_indexed_values.get(key)
            position += 1
    return result


def parse_topics(typ: Type, topics) -> list:
    """Parse each topic with the matching element of the tuple type ``typ``."""
    if typ.kind is not Kind.TUPLE:
        raise AbiError("expected a tuple type")
    topics = list(topics)
    if len(typ.tuple_elems) != len(topics):
        raise AbiError("bad length")
    return [parse_topic(item.elem, topic) for item, topic in zip(typ.tuple_elems, topics)]


def parse_topic(typ: Type, topic: bytes):
    """Parse a single topic with the type ``typ``."""
    word = bytes(topic)
    if typ.kind is Kind.BOOL:
        if word == TOPIC_TRUE:
            return True
        if word == TOPIC_FALSE:
            return False
        raise AbiError("is not a boolean")
    if typ.kind in (Kind.INT, Kind.UINT, Kind.ADDRESS, Kind.FIXED_BYTES):
        if len(word) != 32:
            raise AbiError("len is not correct")
        return decode(typ, word)
    raise AbiError(f"topic parsing for type {typ} not supported")


def encode_topic(typ: Type, value) -> Hash:
    """Encode ``value`` as a topic of type ``typ``."""
    if typ.kind is Kind.BOOL:
        if not isinstance(value, bool):
            raise AbiError(f"failed to encode {type(value).__name__} as bool")
        return TOPIC_TRUE if value else TOPIC_FALSE
    if typ.kind in (Kind.INT, Kind.UINT, Kind.ADDRESS):
        return Hash(encode(value, typ))
    raise AbiError("not found")