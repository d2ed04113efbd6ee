from dataclasses import dataclass, field

import pytest

from ethkit.abi_type import AbiError, ArgumentStr, new_type, new_type_from_argument
from ethkit.decode import decode, decode_struct
from ethkit.encode import decode_hex, encode
from ethkit.primitives import Address

STR_ADDRESS = "0xdbb881a51CD4023E4400CEF3ef73046743f08da3"
ETH_ADDRESS = Address.from_hex(STR_ADDRESS)
OVERFLOW = 50000000000000000000000000000000000000


def addr(first):
    return Address(bytes([first]) + bytes(19))


def b32(first):
    return bytes([first]) + bytes(31)


NESTED = [
    [[1, 2], [3, 4], [5, 6]],
    [[7, 8], [9, 10], [11, 12]],
    [[13, 14], [15, 16], [17, 18]],
    [[19, 20], [21, 22], [23, 24]],
]

ENCODING_CASES = [
    ("uint40", 50),
    ("int256", 2),
    ("int256[]", [1, 2]),
    ("int256", -10),
    ("bytes5", b"\x01\x02\x03\x04\x05"),
    ("bytes", decode_hex("0x12345678911121314151617181920211")),
    ("string", "foobar"),
    ("uint8[][2]", [[1], [1]]),
    ("address[]", [addr(1), addr(2)]),
    ("bytes10[]", [bytes.fromhex("01020304050607080910")] * 2),
    ("bytes[]", [decode_hex("0x11"), decode_hex("0x22")]),
    ("uint32[2][3][4]", NESTED),
    ("uint8[]", [1, 2]),
    ("string[]", ["hello", "foobar"]),
    ("string[2]", ["hello", "foobar"]),
    ("bytes32[][]", [[b32(1), b32(2)], [b32(3), b32(4), b32(5)]]),
    ("bytes32[][2]", [[b32(1), b32(2)], [b32(3), b32(4), b32(5)]]),
    ("bytes32[3][2]", [[b32(1), b32(2), b32(3)], [b32(3), b32(4), b32(5)]]),
    ("uint16[][2][]", [[[0, 1], [2, 3]], [[4, 5], [6, 7]]]),
    ("tuple(bytes[] a)", {"a": [b"\xf0\xf0\xf0", b"\xf0\xf0\xf0"]}),
    ("tuple(uint32[2][][] a)", {"a": [[[1, 200], [1, 1000]], [[1, 200], [1, 1000]]]}),
    ("tuple(uint64[2] a)", {"a": [1, 2]}),
    ("tuple(uint32[2][3][4] a)", {"a": NESTED}),
    ("tuple(int32[] a)", {"a": [1, 2]}),
    ("tuple(int32 a, int32 b)", {"a": 1, "b": 2}),
    (
        "tuple(string a, int32 b)",
        {
            "a": "Hello Worldxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx",
            "b": 2,
        },
    ),
    ("tuple(int32[2] a, int32[] b)", {"a": [1, 2], "b": [4, 5, 6]}),
    ("tuple(address[] a)", {"a": [addr(1)]}),
    ("tuple(int32[] a, int32[2] b)", {"a": [1, 2, 3], "b": [4, 5]}),
    ("tuple(int32[] a, int32[] b)", {"a": [1, 2, 3], "b": [4, 5, 6]}),
    ("tuple(string a, int64 b)", {"a": "hello World", "b": 266}),
    ("tuple(int32 a, int32 b)[2]", [{"a": 1, "b": 2}, {"a": 3, "b": 4}]),
    ("tuple(int32[] a)[2]", [{"a": [1, 2, 3]}, {"a": [4, 5, 6]}]),
    ("tuple(int32 a, int32[] b)[]", [{"a": 1, "b": [2, 3]}, {"a": 4, "b": [5, 6]}]),
    (
        "tuple(tuple(int32 c, int32[] d) a, int32[] b)",
        {"a": {"c": 5, "d": [3, 4]}, "b": [1, 2]},
    ),
    (
        "tuple(uint8[2] a, tuple(uint8 e, uint32 f)[2] b, uint16 c, uint64[2][1] d)",
        {
            "a": [1, 2],
            "b": [{"e": 10, "f": 11}, {"e": 20, "f": 21}],
            "c": 3,
            "d": [[4, 5]],
        },
    ),
    (
        "tuple(uint16 a, uint16 b)[1][]",
        [
            [{"a": 1, "b": 2}],
            [{"a": 3, "b": 4}],
            [{"a": 5, "b": 6}],
            [{"a": 7, "b": 8}],
        ],
    ),
    (
        "tuple(uint64[][] a, tuple(uint8 a, uint32 b)[1] b, uint64 c)",
        {"a": [[3, 4]], "b": [{"a": 1, "b": 2}], "c": 10},
    ),
]


@pytest.mark.parametrize("type_text,value", ENCODING_CASES)
def test_encoding_round_trip(type_text, value):
    typ = new_type(type_text)
    assert decode(typ, encode(value, typ)) == value


BEST_EFFORT_CASES = [
    ("uint40", 50.0, 50),
    ("uint40", "50", 50),
    ("uint40", "0x32", 50),
    ("int256", 2.0, 2),
    ("int256", "50000000000000000000000000000000000000", OVERFLOW),
    ("int256", "0x259DA6542D43623D04C5112000000000", OVERFLOW),
    ("int256[]", [1.0, 2.0], [1, 2]),
    ("int256[]", ["1", "2"], [1, 2]),
    ("int256", -10.0, -10),
    ("int256", "-10", -10),
    ("address[]", [STR_ADDRESS, STR_ADDRESS], [ETH_ADDRESS, ETH_ADDRESS]),
    ("uint8[]", [1.0, 2.0], [1, 2]),
    ("uint8[]", ["1", "2"], [1, 2]),
    ("bytes", "0x11", bytes([17])),
    ("bytes32", "0x11", bytes([17]) + bytes(31)),
    ("tuple(address a)", {"a": STR_ADDRESS}, {"a": ETH_ADDRESS}),
    (
        "tuple(address[] a)",
        {"a": [STR_ADDRESS, STR_ADDRESS]},
        {"a": [ETH_ADDRESS, ETH_ADDRESS]},
    ),
    (
        "tuple(address a, int64 b)",
        {"a": STR_ADDRESS, "b": 266.0},
        {"a": ETH_ADDRESS, "b": 266},
    ),
    (
        "tuple(address a, int256 b)",
        {"a": STR_ADDRESS, "b": "50000000000000000000000000000000000000"},
        {"a": ETH_ADDRESS, "b": OVERFLOW},
    ),
    (
        "tuple(address a, int256 b)",
        {"a": STR_ADDRESS, "b": "0x259DA6542D43623D04C5112000000000"},
        {"a": ETH_ADDRESS, "b": OVERFLOW},
    ),
]


@pytest.mark.parametrize("type_text,value,expected", BEST_EFFORT_CASES)
def test_encoding_best_effort(type_text, value, expected):
    typ = new_type(type_text)
    assert decode(typ, encode(value, typ)) == expected


@pytest.mark.parametrize(
    "arg,value",
    [
        (
            ArgumentStr(
                type="tuple",
                components=[ArgumentStr(name="", type="int32"), ArgumentStr(name="", type="int32")],
            ),
            {"0": 1, "1": 2},
        ),
        (
            ArgumentStr(
                type="tuple",
                components=[ArgumentStr(name="a", type="int32"), ArgumentStr(name="", type="int32")],
            ),
            {"a": 1, "1": 2},
        ),
    ],
)
def test_encoding_arguments(arg, value):
    typ = new_type_from_argument(arg)
    assert decode(typ, encode(value, typ)) == value


@dataclass
class Obj:
    a: Address = field(default_factory=Address, metadata={"abi": "aa"})
    b: int = 0


@dataclass
class CamelObj:
    a: Address = field(default_factory=Address, metadata={"abi": "aA"})
    b: int = 0


def test_encoding_struct():
    typ = new_type("tuple(address aa, uint256 b)")
    obj = Obj(a=addr(1), b=1)
    assert decode_struct(typ, encode(obj, typ), Obj) == obj


def test_encoding_struct_camel_case():
    typ = new_type("tuple(address aA, uint256 b)")
    obj = CamelObj(a=addr(1), b=1)
    assert decode_struct(typ, encode(obj, typ), CamelObj) == obj


def test_decode_struct_needs_dataclass():
    typ = new_type("tuple(uint256 b)")
    with pytest.raises(TypeError):
        decode_struct(typ, encode([1], typ), dict)


def test_decode_bytes_bound():
    typ = new_type("tuple(string)")
    with pytest.raises(AbiError, match="empty input"):
        decode(typ, b"")
    with pytest.raises(AbiError, match="incorrect length"):
        decode(typ, bytes(31))


def test_decode_dynamic_length_out_of_bounds():
    data = b"0" * 32 + b"\x00" * 31 + b" " + b"0" * 26
    with pytest.raises(AbiError):
        decode(new_type("tuple(bytes32, bytes, bytes)"), data)


def test_bad_boolean():
    with pytest.raises(AbiError, match="bad boolean"):
        decode(new_type("bool"), bytes(31) + b"\x02")


def test_function_type():
    word = bytes(range(1, 25)) + bytes(8)
    assert decode(new_type("function"), word) == bytes(range(1, 25))
    with pytest.raises(AbiError, match="function type"):
        decode(new_type("function"), bytes(31) + b"\x01")


def test_repeated_tuple_names():
    typ = new_type("tuple(int32 a, int32 a)")
    with pytest.raises(AbiError, match="repeated"):
        decode(typ, bytes(64))


def test_slice_size_too_big():
    data = (5).to_bytes(32, "big") + bytes(64)
    with pytest.raises(AbiError, match="size is too big"):
        decode(new_type("uint8[]"), data)


@pytest.mark.parametrize(
    "type_text,value",
    [
        ("tuple(string a, int32[] b, bytes c)", {"a": "hello", "b": [1, 2], "c": b"\x01\x02"}),
        ("tuple(tuple(int32 c, int32[] d) a, bytes32[][] b)", {"a": {"c": 5, "d": [3]}, "b": [[b32(1)]]}),
    ],
)
def test_decode_corrupted_input(type_text, value):
    typ = new_type(type_text)
    encoded = encode(value, typ)
    decoded_keys = []
    failures = 0
    for position in range(len(encoded)):
        corrupted = bytearray(encoded)
        corrupted[position] = 0xFF
        try:
            outcome = decode(typ, bytes(corrupted))
        except AbiError:
            failures += 1
        else:
            decoded_keys.append(set(outcome))
    assert failures > 0
    assert decoded_keys
    assert all(keys == set(value) for keys in decoded_keys)