"""Ethereum ABI types, encoding and decoding, log parsing, block tracking and ENS hashing."""

__version__ = "0.1.0"