"""
Electrum scripthash encoding.

Electrum servers index outputs by SHA256(scriptPubKey) with the digest bytes
reversed, hex encoded.
"""

from __future__ import annotations

import hashlib
import re

_HEX_PAIRS = re.compile(r"(?:[0-9a-fA-F]{2})*")


class ScriptHashEncodingError(ValueError):
    """Raised when a script cannot be decoded as hex."""


def encode_scripthash(script_pubkey_hex: str) -> str:
    """
    Convert a hex encoded scriptPubKey to its Electrum scripthash.

    Args:
        script_pubkey_hex: Output script as hex

    Returns:
        64 character lowercase hex scripthash

    Raises:
        ScriptHashEncodingError: If the input is not an even-length hex string
    """
    if not isinstance(script_pubkey_hex, str) or not _HEX_PAIRS.fullmatch(script_pubkey_hex):
        raise ScriptHashEncodingError(f"Invalid script hex: {script_pubkey_hex!r}")

    digest = hashlib.sha256(bytes.fromhex(script_pubkey_hex)).digest()
    return digest[::-1].hex()
