"""
invoicecommit Merkle Root

Computes a single root over the ordered file digests of a bundle. The
signer and the verifier both call merkle_root, so the pairing rule below
is the one both sides use:

- leaves are the 32-byte SHA-256 digests, in bundle order
- a parent is SHA-256(left || right) over the raw bytes
- when a level has an odd number of nodes the last node is paired with
  itself
- a single leaf is its own root
"""

from typing import List, Sequence

from .hashing import DIGEST_SIZE, digest
from .records import FileDescriptor


def _hash_pair(left: bytes, right: bytes) -> bytes:
    return digest(left + right)


def merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Compute the Merkle root from ordered 32-byte leaf digests.

    Raises:
        ValueError: if leaves is empty or a leaf has the wrong size
    """
    if not leaves:
        raise ValueError("Cannot compute Merkle root from empty list")
    for leaf in leaves:
        if len(leaf) != DIGEST_SIZE:
            raise ValueError(f"Merkle leaf must be {DIGEST_SIZE} bytes, got {len(leaf)}")

    level: List[bytes] = list(leaves)
    while len(level) > 1:
        next_level: List[bytes] = []
        for i in range(0, len(level), 2):
            left = level[i]
            right = level[i + 1] if i + 1 < len(level) else level[i]
            next_level.append(_hash_pair(left, right))
        level = next_level

    return level[0]


def files_merkle_root(files: Sequence[FileDescriptor]) -> str:
    """
    Hex Merkle root of a bundle.

    Leaves are recomputed from each file's decoded payload; declared
    digests are not used.
    """
    return merkle_root([digest(f.raw_payload()) for f in files]).hex()
