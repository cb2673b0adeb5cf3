"""
invoicecommit Identity and Signing

Ed25519 (RFC 8032) user identities. The submitter signs the ASCII hex
Merkle root of the bundle; the authority signs the hex root followed by
the censorship token.
"""

import base64
import binascii
import json
import os
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey

from .errors import SigningError
from .merkle import files_merkle_root
from .records import FileDescriptor


PUBLIC_KEY_SIZE = 32
SIGNATURE_SIZE = 64


@dataclass(frozen=True)
class Identity:
    """Ed25519 key pair of a submitter (or, in tests, of the authority)."""
    signing_key: bytes
    verify_key: bytes
    kid: str = "user-identity"

    @classmethod
    def generate(cls, kid: str = "user-identity") -> 'Identity':
        """Generate a new random identity."""
        sk = SigningKey.generate()
        return cls(signing_key=bytes(sk), verify_key=bytes(sk.verify_key), kid=kid)

    @classmethod
    def from_seed(cls, seed: bytes, kid: str = "user-identity") -> 'Identity':
        """Derive an identity from a 32-byte seed."""
        sk = SigningKey(seed)
        return cls(signing_key=bytes(sk), verify_key=bytes(sk.verify_key), kid=kid)

    @property
    def public_key_hex(self) -> str:
        return self.verify_key.hex()

    def sign_message(self, message: bytes) -> bytes:
        """Sign a message, returning the detached 64-byte signature."""
        return SigningKey(self.signing_key).sign(message).signature

    def to_dict(self) -> dict:
        return {
            "kid": self.kid,
            "private_key_b64": base64.b64encode(self.signing_key).decode('ascii'),
            "public_key": self.public_key_hex,
        }

    def save(self, path: Union[str, os.PathLike]) -> None:
        """Write the identity as JSON, readable only by the owner."""
        fd = os.open(os.fspath(path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


def load_identity(path: Union[str, os.PathLike]) -> Identity:
    """
    Load an identity file written by Identity.save.

    Raises:
        SigningError: if the file is missing, unreadable or inconsistent
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        raise SigningError(f"user identity not found: {path}")
    except (OSError, ValueError) as e:
        raise SigningError(f"cannot read user identity {path}: {e}")

    try:
        seed = base64.b64decode(raw["private_key_b64"], validate=True)
        identity = Identity.from_seed(seed, kid=raw.get("kid", "user-identity"))
    except (KeyError, TypeError, binascii.Error, ValueError, CryptoError) as e:
        raise SigningError(f"invalid user identity {path}: {e}")

    declared = raw.get("public_key")
    if declared and declared.lower() != identity.public_key_hex:
        raise SigningError(f"invalid user identity {path}: public key does not match private key")
    return identity


def sign_merkle_root(files: Sequence[FileDescriptor], identity: Optional[Identity]) -> str:
    """
    Compute the bundle's Merkle root and sign it.

    The signature covers the hex root string only, never the files, so
    verification cost does not depend on bundle size.

    Returns:
        Hex-encoded signature

    Raises:
        SigningError: no identity, no files, or an undecodable payload
    """
    if identity is None:
        raise SigningError("user identity not found")
    if not files:
        raise SigningError("no invoice files found")

    try:
        root = files_merkle_root(files)
    except ValueError as e:
        raise SigningError(f"cannot compute merkle root: {e}")
    return identity.sign_message(root.encode('ascii')).hex()


def verify_message(public_key_hex: str, message: bytes, signature_hex: str) -> bool:
    """
    Verify a detached Ed25519 signature given hex key and signature.

    Malformed keys or signatures verify as False.
    """
    try:
        key = bytes.fromhex(public_key_hex)
        signature = bytes.fromhex(signature_hex)
    except (TypeError, ValueError):
        return False
    if len(key) != PUBLIC_KEY_SIZE or len(signature) != SIGNATURE_SIZE:
        return False

    try:
        VerifyKey(key).verify(message, signature)
        return True
    except (BadSignatureError, CryptoError, ValueError):
        return False
