"""Lookup of method and event selectors in the public signature directory."""

from __future__ import annotations

import json
import urllib.request

FOUR_BYTE_URL = "https://www.4byte.directory"
_TIMEOUT = 30


def resolve(signature: str) -> str:
    """Return the text signature for a hex selector, or "" if none is known."""
    return _get("/api/v1/signatures/?hex_signature=" + signature)


def resolve_bytes(data: bytes) -> str:
    """Return the text signature for a selector given as bytes."""
    return resolve(bytes(data).hex())


def _get(path: str) -> str:
    with urllib.request.urlopen(FOUR_BYTE_URL + path, timeout=_TIMEOUT) as response:
        payload = response.read()
    document = json.loads(payload)
    if not isinstance(document, dict):
        raise ValueError("unexpected response from the signature directory")
    fields = {key.lower(): value for key, value in document.items()}
    results = fields.get("results") or []
    if not results:
        return ""
    return results[0].get("text_signature", "")