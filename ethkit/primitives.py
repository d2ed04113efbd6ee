"""Core value types: addresses, hashes, logs, blocks and keccak hashing."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

from Crypto.Hash import keccak


def keccak256(data: bytes) -> bytes:
    """Return the legacy Keccak-256 digest of ``data``."""
    hasher = keccak.new(digest_bits=256)
    hasher.update(bytes(data))
    return hasher.digest()


def _parse_hex(text: str, size: int, name: str) -> bytes:
    """Decode a hex string of exactly ``size`` bytes, ``0x`` prefix optional."""
    body = text[2:] if text.startswith(("0x", "0X")) else text
    try:
        data = bytes.fromhex(body)
    except ValueError as exc:
        raise ValueError(f"invalid hex string {text!r}") from exc
    if len(data) != size:
        raise ValueError(f"{name} expects {size} bytes but got {len(data)}")
    return data


class _FixedBytes(bytes):
    """Immutable byte string of a fixed length."""

    SIZE = 0

    def __new__(cls, value: bytes = b""):
        data = bytes(value)
        if not data:
            data = bytes(cls.SIZE)
        if len(data) != cls.SIZE:
            raise ValueError(
                f"{cls.__name__} expects {cls.SIZE} bytes but got {len(data)}"
            )
        return super().__new__(cls, data)

    def __str__(self) -> str:
        return "0x" + self.hex()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


class Address(_FixedBytes):
    """A 20 byte account address."""

    SIZE = 20

    @classmethod
    def from_hex(cls, text: str) -> "Address":
        """Parse a hex address, with or without a ``0x`` prefix."""
        return cls(_parse_hex(text, cls.SIZE, cls.__name__))

    def __str__(self) -> str:
        plain = self.hex()
        digest = keccak256(plain.encode("ascii")).hex()
        return "0x" + "".join(
            char.upper() if int(nibble, 16) >= 8 else char
            for char, nibble in zip(plain, digest)
        )


class Hash(_FixedBytes):
    """A 32 byte hash."""

    SIZE = 32

    @classmethod
    def from_hex(cls, text: str) -> "Hash":
        """Parse a hex hash, with or without a ``0x`` prefix."""
        return cls(_parse_hex(text, cls.SIZE, cls.__name__))


@dataclass
class Log:
    """A log entry emitted by a contract."""

    address: Address = field(default_factory=Address)
    topics: list[Hash] = field(default_factory=list)
    data: bytes = b""
    block_number: int = 0
    block_hash: Hash = field(default_factory=Hash)
    transaction_hash: Hash = field(default_factory=Hash)
    log_index: int = 0
    removed: bool = False


@dataclass
class Block:
    """A block header as seen by the block tracker."""

    number: int = 0
    hash: Hash = field(default_factory=Hash)
    parent_hash: Hash = field(default_factory=Hash)
    timestamp: int = 0
    miner: Address = field(default_factory=Address)
    gas_limit: int = 0
    gas_used: int = 0
    extra_data: bytes = b""

    def copy(self) -> "Block":
        """Return an independent copy of the block."""
        return dataclasses.replace(self)