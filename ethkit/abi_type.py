"""ABI type model and the parser for type strings."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Iterator, Optional


class AbiError(ValueError):
    """Raised when an ABI type or value cannot be handled."""


class Kind(enum.Enum):
    """The kind of an ABI type."""

    BOOL = "Bool"
    UINT = "Uint"
    INT = "Int"
    STRING = "String"
    ARRAY = "Array"
    SLICE = "Slice"
    ADDRESS = "Address"
    BYTES = "Bytes"
    FIXED_BYTES = "FixedBytes"
    FIXED_POINT = "FixedPoint"
    TUPLE = "Tuple"
    FUNCTION = "Function"

    def __str__(self) -> str:
        return self.value


@dataclass
class TupleElem:
    """One element of a tuple type."""

    name: str
    elem: "Type"
    indexed: bool = False


@dataclass
class ArgumentStr:
    """An argument as described in a JSON ABI."""

    name: str = ""
    type: str = ""
    indexed: bool = False
    components: list["ArgumentStr"] = field(default_factory=list)
    internal_type: str = ""


@dataclass
class Type:
    """An ABI type."""

    kind: Kind
    size: int = 0
    elem: Optional["Type"] = None
    tuple_elems: list[TupleElem] = field(default_factory=list)
    internal_type: str = ""

    def __str__(self) -> str:
        return self.format(False)

    def format(self, include_args: bool) -> str:
        """Return the textual form, optionally with argument names."""
        kind = self.kind
        if kind is Kind.TUPLE:
            parts = []
            for item in self.tuple_elems:
                text = item.elem.format(include_args)
                if item.indexed:
                    text += " indexed"
                if include_args and item.name:
                    text += " " + item.name
                parts.append(text)
            return f"tuple({','.join(parts)})"
        if kind is Kind.ARRAY:
            return f"{self.elem.format(include_args)}[{self.size}]"
        if kind is Kind.SLICE:
            return f"{self.elem.format(include_args)}[]"
        if kind is Kind.BYTES:
            return "bytes"
        if kind is Kind.FIXED_BYTES:
            return f"bytes{self.size}"
        if kind is Kind.STRING:
            return "string"
        if kind is Kind.BOOL:
            return "bool"
        if kind is Kind.ADDRESS:
            return "address"
        if kind is Kind.FUNCTION:
            return "function"
        if kind is Kind.UINT:
            return f"uint{self.size}"
        if kind is Kind.INT:
            return f"int{self.size}"
        raise AbiError(f"abi type not supported: {kind}")

    def is_variable_input(self) -> bool:
        """True for types whose encoding starts with a length word."""
        return self.kind in (Kind.SLICE, Kind.BYTES, Kind.STRING)

    def is_dynamic(self) -> bool:
        """True for types encoded through an offset."""
        if self.kind is Kind.TUPLE:
            return any(item.elem.is_dynamic() for item in self.tuple_elems)
        if self.kind in (Kind.STRING, Kind.BYTES, Kind.SLICE):
            return True
        return self.kind is Kind.ARRAY and self.elem.is_dynamic()


def new_tuple_type(inputs) -> Type:
    """Build a tuple type from tuple elements."""
    return Type(Kind.TUPLE, tuple_elems=list(inputs))


def new_tuple_type_from_args(inputs) -> Type:
    """Build a tuple type from JSON ABI arguments."""
    return new_tuple_type(
        TupleElem(name=arg.name, elem=new_type_from_argument(arg), indexed=arg.indexed)
        for arg in inputs
    )


def _argument_type_string(arg: ArgumentStr) -> str:
    if not arg.type.startswith("tuple"):
        return arg.type
    if not arg.components:
        return "tuple()"
    parts = []
    for component in arg.components:
        text = _argument_type_string(component)
        if component.indexed:
            parts.append(f"{text} indexed {component.name}")
        else:
            parts.append(f"{text} {component.name}")
    return f"tuple({','.join(parts)}){arg.type[len('tuple'):]}"


def _fill_internal_types(typ: Type, arg: ArgumentStr) -> None:
    typ.internal_type = arg.internal_type
    if not arg.components:
        return
    # tuple slices and arrays carry their components on the outer argument
    while typ.kind is not Kind.TUPLE:
        if typ.kind not in (Kind.ARRAY, Kind.SLICE):
            return
        typ = typ.elem
    if len(arg.components) != len(typ.tuple_elems):
        return
    for item, component in zip(typ.tuple_elems, arg.components):
        _fill_internal_types(item.elem, component)


def new_type_from_argument(arg: ArgumentStr) -> Type:
    """Parse a type from a JSON ABI argument, keeping internal types."""
    typ = new_type(_argument_type_string(arg))
    _fill_internal_types(typ, arg)
    return typ


def type_size(typ: Type) -> int:
    """Return the size in bytes of the head part of the encoding."""
    if typ.kind is Kind.ARRAY and not typ.elem.is_dynamic():
        if typ.elem.kind in (Kind.ARRAY, Kind.TUPLE):
            return typ.size * type_size(typ.elem)
        return typ.size * 32
    if typ.kind is Kind.TUPLE and not typ.is_dynamic():
        return sum(type_size(item.elem) for item in typ.tuple_elems)
    return 32


class _Tok(enum.Enum):
    EOF = "eof"
    STR = "string"
    NUMBER = "number"
    TUPLE = "tuple"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    INDEXED = "indexed"
    INVALID = "<invalid>"


@dataclass(frozen=True)
class _Token:
    kind: _Tok
    literal: str = ""


_EOF = _Token(_Tok.EOF)
_PUNCTUATION = {
    ",": _Tok.COMMA,
    "(": _Tok.LPAREN,
    ")": _Tok.RPAREN,
    "[": _Tok.LBRACKET,
    "]": _Tok.RBRACKET,
}
_TOKEN_RE = re.compile(
    r"[ \t\n\r]*(?:([,()\[\]])|([A-Za-z_][A-Za-z0-9_]*)|([0-9]+)|(.))", re.DOTALL
)
_SIMPLE_TYPE_RE = re.compile(r"([A-Za-z]+)([0-9]*)")


def _tokenize(text: str) -> Iterator[_Token]:
    for match in _TOKEN_RE.finditer(text):
        punct, ident, number, other = match.groups()
        if punct:
            yield _Token(_PUNCTUATION[punct], punct)
        elif ident:
            if ident == "tuple":
                yield _Token(_Tok.TUPLE, ident)
            elif ident == "indexed":
                yield _Token(_Tok.INDEXED, ident)
            else:
                yield _Token(_Tok.STR, ident)
        elif number:
            yield _Token(_Tok.NUMBER, number)
        elif other == "\x00":
            break
        else:
            yield _Token(_Tok.INVALID, other)
    while True:
        yield _EOF


class _Lexer:
    def __init__(self, text: str):
        self._tokens = _tokenize(text)
        self.current = _EOF
        self.peek = _EOF
        self.next_token()

    def next_token(self) -> _Token:
        self.current = self.peek
        self.peek = next(self._tokens)
        return self.current


def _expected(kind: _Tok) -> AbiError:
    return AbiError(f"expected token {kind.value}")


def _not_expected(kind: _Tok) -> AbiError:
    return AbiError(f"token '{kind.value}' not expected")


def _read_tuple(lexer: _Lexer) -> Type:
    elems: list[TupleElem] = []
    while True:
        try:
            elem = _read_type(lexer)
        except AbiError as exc:
            if lexer.current.kind is _Tok.RPAREN and not elems:
                break  # empty tuple
            raise AbiError(f"failed to decode type: {exc}") from exc

        name = ""
        indexed = False
        if lexer.peek.kind is _Tok.STR:
            name = lexer.next_token().literal
        elif lexer.peek.kind is _Tok.INDEXED:
            lexer.next_token()
            indexed = True
            if lexer.peek.kind is _Tok.STR:
                name = lexer.next_token().literal
        elems.append(TupleElem(name=name, elem=elem, indexed=indexed))

        following = lexer.next_token()
        if following.kind is _Tok.COMMA:
            continue
        if following.kind is _Tok.RPAREN:
            break
        raise _not_expected(following.kind)
    return Type(Kind.TUPLE, tuple_elems=elems)


def _read_type(lexer: _Lexer) -> Type:
    tok = lexer.next_token()
    if tok.kind is _Tok.TUPLE:
        if lexer.next_token().kind is not _Tok.LPAREN:
            raise _expected(_Tok.LPAREN)
        typ = _read_tuple(lexer)
    elif tok.kind is _Tok.LPAREN:
        typ = _read_tuple(lexer)
    elif tok.kind is not _Tok.STR:
        raise _expected(_Tok.STR)
    else:
        typ = _decode_simple_type(tok.literal)

    while lexer.peek.kind is _Tok.LBRACKET:
        lexer.next_token()
        size_tok = lexer.next_token()
        if size_tok.kind is _Tok.RBRACKET:
            typ = Type(Kind.SLICE, elem=typ)
        elif size_tok.kind is _Tok.NUMBER:
            size = int(size_tok.literal)
            if size > 0xFFFFFFFF:
                raise AbiError(
                    f"failed to read array size '{size_tok.literal}': value out of range"
                )
            if lexer.next_token().kind is not _Tok.RBRACKET:
                raise _expected(_Tok.RBRACKET)
            typ = Type(Kind.ARRAY, size=size, elem=typ)
        else:
            raise _not_expected(size_tok.kind)
    return typ


def _decode_simple_type(text: str) -> Type:
    match = _SIMPLE_TYPE_RE.fullmatch(text)
    if match is None:
        raise AbiError(
            f"type format is incorrect. Expected 'type''bytes' but found '{text}'"
        )
    name, digits = match.groups()
    has_size = digits != ""
    size = int(digits) if has_size else 0

    if name in ("int", "uint"):
        if not has_size:
            size = 256
    elif name != "bytes" and has_size:
        raise AbiError(f"type {name} does not expect bytes")

    if name in ("int", "uint"):
        if size % 8 != 0:
            raise AbiError("number of bytes has to be M mod 8")
        return Type(Kind.UINT if name == "uint" else Kind.INT, size=size)
    if name == "byte":
        return Type(Kind.FIXED_BYTES, size=1)
    if name == "bytes":
        if size == 0:
            return Type(Kind.BYTES)
        return Type(Kind.FIXED_BYTES, size=size)
    if name == "string":
        return Type(Kind.STRING)
    if name == "bool":
        return Type(Kind.BOOL)
    if name == "address":
        return Type(Kind.ADDRESS, size=20)
    if name == "function":
        return Type(Kind.FUNCTION, size=24)
    raise AbiError(f"unknown type '{name}'")


def new_type(text: str) -> Type:
    """Parse a type from its textual form."""
    return _read_type(_Lexer(text))