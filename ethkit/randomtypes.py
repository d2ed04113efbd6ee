"""Random ABI types and values, and a contract source generator for them."""

from __future__ import annotations

import random
import string

from .abi_type import AbiError, Kind, Type
from .primitives import Address

LETTERS = string.ascii_lowercase + string.ascii_uppercase

_RANDOM_KINDS = (
    "bool",
    "int",
    "uint",
    "array",
    "slice",
    "tuple",
    "address",
    "string",
    "bytes",
    "fixedBytes",
)
_BASIC_KINDS = ("bool", "address", "string", "bytes")
_MAX_DEPTH = 3

_CONTRACT_TEMPLATE = """pragma solidity ^0.5.5;
pragma experimental ABIEncoderV2;

contract Sample {{
\t// structs
\t{structs}
\tfunction set({inputs}) public view returns ({outputs}) {{
\t\treturn ({body});
\t}}
}}"""


def _random_int(low: int, high: int) -> int:
    """Return a random integer in ``[low, high)``."""
    return random.randrange(low, high)


def _number_bits() -> int:
    return _random_int(1, 31) * 8


def random_type() -> str:
    """Return the textual form of a random ABI type."""
    return _pick_type(1)


def _pick_type(depth: int) -> str:
    while True:
        kind = random.choice(_RANDOM_KINDS)
        if kind in _BASIC_KINDS:
            return kind
        if kind == "int":
            return f"int{_number_bits()}"
        if kind == "uint":
            return f"uint{_number_bits()}"
        if kind == "fixedBytes":
            return f"bytes{_random_int(1, 32)}"
        if depth <= _MAX_DEPTH:
            break

    if kind == "slice":
        return f"{_pick_type(depth + 1)}[]"
    if kind == "array":
        return f"{_pick_type(depth + 1)}[{_random_int(1, 3)}]"
    if kind == "tuple":
        elems = [
            f"{_pick_type(depth + 1)} arg{index}"
            for index in range(_random_int(1, 5))
        ]
        return f"tuple({','.join(elems)})"
    raise AbiError(f"type not implemented: {kind}")


def _random_number(typ: Type) -> int:
    raw = bytearray(random.randbytes(typ.size // 8))
    if typ.kind is Kind.INT and raw:
        raw[0] = 0  # keep signed values positive
    return int.from_bytes(raw, "big")


def generate_random_value(typ: Type):
    """Return a random value that can be encoded with ``typ``."""
    kind = typ.kind
    if kind in (Kind.INT, Kind.UINT):
        return _random_number(typ)
    if kind is Kind.BOOL:
        return random.choice((True, False))
    if kind is Kind.ADDRESS:
        return Address(random.randbytes(20))
    if kind is Kind.STRING:
        return "".join(random.choices(LETTERS, k=_random_int(1, 100)))
    if kind is Kind.BYTES:
        return random.randbytes(_random_int(1, 100))
    if kind in (Kind.FIXED_BYTES, Kind.FUNCTION):
        return random.randbytes(typ.size)
    if kind is Kind.SLICE:
        return [generate_random_value(typ.elem) for _ in range(_random_int(0, 5))]
    if kind is Kind.ARRAY:
        return [generate_random_value(typ.elem) for _ in range(typ.size)]
    if kind is Kind.TUPLE:
        return {
            item.name or str(index): generate_random_value(item.elem)
            for index, item in enumerate(typ.tuple_elems)
        }
    raise AbiError(f"type not implemented: {kind}")


class ContractGenerator:
    """Builds a contract whose ``set`` function echoes arguments of a tuple type."""

    def __init__(self) -> None:
        self.structs: list[str] = []

    def run(self, typ: Type) -> str:
        """Return the contract source for the tuple type ``typ``."""
        inputs, outputs, body = [], [], []
        for index, item in enumerate(typ.tuple_elems):
            value = self._solidity_type(item.elem)
            memory = ""
            if value == "bytes" or any(part in value for part in ("[", "struct", "string")):
                memory = " memory"
            inputs.append(f"{value}{memory} arg{index}")
            outputs.append(f"{value}{memory}")
            body.append(f"arg{index}")

        return _CONTRACT_TEMPLATE.format(
            structs="\n".join(self.structs),
            inputs=",".join(inputs),
            outputs=",".join(outputs),
            body=",".join(body),
        )

    def _solidity_type(self, typ: Type) -> str:
        if typ.kind is Kind.TUPLE:
            attrs = [
                f"{self._solidity_type(item.elem)} attr{index};"
                for index, item in enumerate(typ.tuple_elems)
            ]
            struct_id = len(self.structs)
            joined = "\n".join(attrs)
            self.structs.append(f"struct struct{struct_id} {{\n{joined}\n}}\n")
            return f"struct{struct_id}"
        if typ.kind is Kind.SLICE:
            return f"{self._solidity_type(typ.elem)}[]"
        if typ.kind is Kind.ARRAY:
            return f"{self._solidity_type(typ.elem)}[{typ.size}]"
        return str(typ)