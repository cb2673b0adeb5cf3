"""
invoicecommit Digest Engine

All digests are SHA-256. Hex output is lowercase with no prefix so it is
byte-for-byte identical to what the authority and third-party verifiers
compute.
"""

import hashlib
import hmac
from typing import Union


DIGEST_SIZE = hashlib.sha256().digest_size


def digest(data: Union[bytes, str]) -> bytes:
    """
    Compute the raw SHA-256 digest of a payload.

    Strings are encoded as UTF-8 first.
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).digest()


def digest_hex(data: Union[bytes, str]) -> str:
    """Compute the SHA-256 digest as lowercase hexadecimal."""
    return digest(data).hex()


def verify_digest(declared_hex: str, data: Union[bytes, str]) -> bool:
    """
    Verify that data matches a declared hex digest.

    Verifiers MUST recompute digests from source bytes; the declared value
    is never trusted on its own.
    """
    if not isinstance(declared_hex, str):
        return False
    computed = digest_hex(data)
    return hmac.compare_digest(computed, declared_hex.lower())
