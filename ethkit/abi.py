"""Contract ABI: methods, events and errors, from JSON or human readable lists."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from .abi_type import (
    AbiError,
    ArgumentStr,
    Type,
    new_tuple_type,
    new_tuple_type_from_args,
    new_type,
)
from .decode import decode
from .encode import encode
from .primitives import Hash, Log, keccak256
from .topics import parse_log as _parse_log_with_type


def _empty_tuple() -> Type:
    return new_tuple_type([])


def _build_signature(name: str, typ: Type) -> str:
    types = [str(item.elem).replace("tuple", "") for item in typ.tuple_elems]
    return f"{name}({','.join(types)})"


@dataclass
class Method:
    """A callable function of a contract."""

    name: str = ""
    const: bool = False
    inputs: Type = field(default_factory=_empty_tuple)
    outputs: Optional[Type] = None

    def sig(self) -> str:
        """Return the canonical signature."""
        return _build_signature(self.name, self.inputs)

    def id(self) -> bytes:
        """Return the 4 byte selector."""
        return keccak256(self.sig().encode())[:4]

    def encode(self, args) -> bytes:
        """Encode the call data for ``args``, selector included."""
        return self.id() + encode(args, self.inputs)

    def decode(self, data: bytes) -> dict:
        """Decode the return data of a call."""
        if not data:
            raise AbiError("empty response")
        if self.outputs is None:
            raise AbiError("method has no outputs")
        return decode(self.outputs, data)


@dataclass
class Event:
    """A log event of a contract."""

    name: str = ""
    inputs: Type = field(default_factory=_empty_tuple)
    anonymous: bool = False

    def sig(self) -> str:
        """Return the canonical signature."""
        return _build_signature(self.name, self.inputs)

    def id(self) -> Hash:
        """Return the topic that identifies the event in logs."""
        return Hash(keccak256(self.sig().encode()))

    def match(self, log: Log) -> bool:
        """True if the log was emitted by this event."""
        return bool(log.topics) and bytes(log.topics[0]) == bytes(self.id())

    def parse_log(self, log: Log) -> dict:
        """Parse a log emitted by this event."""
        if not self.match(log):
            raise AbiError("log does not match this event")
        return _parse_log_with_type(self.inputs, log)


@dataclass
class ContractError:
    """A custom error declared by a contract."""

    name: str = ""
    inputs: Type = field(default_factory=_empty_tuple)


def _overloaded_name(raw: str, taken: Callable[[str], bool]) -> str:
    name = raw
    index = 0
    while taken(name):
        name = f"{raw}{index}"
        index += 1
    return name


@dataclass
class ABI:
    """A parsed contract ABI."""

    constructor: Optional[Method] = None
    methods: dict = field(default_factory=dict)
    methods_by_signature: dict = field(default_factory=dict)
    events: dict = field(default_factory=dict)
    errors: dict = field(default_factory=dict)

    def get_method(self, name: str) -> Optional[Method]:
        """Return the method stored under ``name``, or None."""
        return self.methods.get(name)

    def get_method_by_signature(self, signature: str) -> Optional[Method]:
        """Return the method with the given signature, or None."""
        return self.methods_by_signature.get(signature)

    def _add_method(self, method: Method) -> None:
        name = _overloaded_name(method.name, self.methods.__contains__)
        self.methods[name] = method
        self.methods_by_signature[method.sig()] = method

    def _add_event(self, event: Event) -> None:
        name = _overloaded_name(event.name, self.events.__contains__)
        self.events[name] = event

    def _add_error(self, error: ContractError) -> None:
        self.errors[error.name] = error


def _lower_keys(obj) -> dict:
    if not isinstance(obj, dict):
        raise AbiError(f"expected a JSON object but found {type(obj).__name__}")
    result: dict = {}
    for key, value in obj.items():
        result.setdefault(key.lower(), value)
    return result


def _argument(obj) -> ArgumentStr:
    fields = _lower_keys(obj)
    return ArgumentStr(
        name=fields.get("name") or "",
        type=fields.get("type") or "",
        indexed=bool(fields.get("indexed") or False),
        components=[_argument(item) for item in fields.get("components") or []],
        internal_type=fields.get("internaltype") or "",
    )


def _arguments(items) -> Type:
    return new_tuple_type_from_args([_argument(item) for item in items or []])


def new_abi(text) -> ABI:
    """Parse a JSON ABI document."""
    try:
        entries = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise AbiError(f"invalid ABI JSON: {exc}") from exc
    if not isinstance(entries, list):
        raise AbiError("ABI must be a JSON list")

    abi = ABI()
    for entry in entries:
        fields = _lower_keys(entry)
        kind = fields.get("type") or ""
        if kind == "constructor":
            if abi.constructor is not None:
                raise AbiError("multiple constructor declaration")
            abi.constructor = Method(inputs=_arguments(fields.get("inputs")))
        elif kind in ("function", ""):
            const = bool(fields.get("constant") or False)
            if fields.get("statemutability") in ("view", "pure"):
                const = True
            abi._add_method(
                Method(
                    name=fields.get("name") or "",
                    const=const,
                    inputs=_arguments(fields.get("inputs")),
                    outputs=_arguments(fields.get("outputs")),
                )
            )
        elif kind == "event":
            abi._add_event(
                Event(
                    name=fields.get("name") or "",
                    inputs=_arguments(fields.get("inputs")),
                    anonymous=bool(fields.get("anonymous") or False),
                )
            )
        elif kind == "error":
            abi._add_error(
                ContractError(
                    name=fields.get("name") or "",
                    inputs=_arguments(fields.get("inputs")),
                )
            )
        elif kind in ("fallback", "receive"):
            continue
        else:
            raise AbiError(f"unknown field type '{kind}'")
    return abi


_FUNC_WITH_RETURN = re.compile(r"(\w*)\s*\((.*)\)(.*)\s*returns\s*\((.*)\)", re.ASCII)
_FUNC_WITHOUT_RETURN = re.compile(r"(\w*)\s*\((.*)\)(.*)", re.ASCII)


def _parse_method_signature(text: str) -> tuple[str, Type, Type]:
    text = text.replace("\n", " ").replace("\t", " ")
    if text.startswith("function "):
        text = text[len("function "):]
    text = text.strip()

    output_args = ""
    if "returns" in text:
        match = _FUNC_WITH_RETURN.search(text)
        if match is None:
            raise AbiError("no matches found")
        output_args = match.group(4).strip()
    else:
        match = _FUNC_WITHOUT_RETURN.search(text)
        if match is None:
            raise AbiError("no matches found")
    name = match.group(1).strip()
    input_args = match.group(2).strip()

    inputs = new_type(f"tuple({input_args})")
    outputs = new_type(f"tuple({output_args})")
    return name, inputs, outputs


def new_method(signature: str) -> Method:
    """Create a method from a human readable function signature."""
    name, inputs, outputs = _parse_method_signature(signature)
    return Method(name=name, inputs=inputs, outputs=outputs)


def _parse_event_or_error(prefix: str, text: str) -> tuple[str, Type]:
    if not text.startswith(prefix):
        raise AbiError(f"prefix '{prefix}' not found")
    text = text[len(prefix):]
    if not text.endswith(")"):
        raise AbiError("failed to parse input, expected 'name(types)'")
    index = text.find("(")
    if index == -1:
        raise AbiError("failed to parse input, expected 'name(types)'")
    return text[:index], new_type("tuple" + text[index:])


def new_event(signature: str) -> Event:
    """Create an event from a signature such as ``event Name(types)``."""
    name, typ = _parse_event_or_error("event ", signature)
    return Event(name=name, inputs=typ)


def new_error(signature: str) -> ContractError:
    """Create a custom error from a signature such as ``error Name(types)``."""
    name, typ = _parse_event_or_error("error ", signature)
    return ContractError(name=name, inputs=typ)


def new_abi_from_list(items) -> ABI:
    """Build an ABI from human readable declarations."""
    abi = ABI()
    for item in items:
        if item.startswith("constructor"):
            abi.constructor = Method(inputs=new_type("tuple" + item[len("constructor"):]))
        elif item.startswith("function "):
            abi._add_method(new_method(item))
        elif item.startswith("event "):
            abi._add_event(new_event(item))
        elif item.startswith("error "):
            abi._add_error(new_error(item))
        else:
            raise AbiError("either event or function expected")
    return abi