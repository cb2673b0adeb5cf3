"""
invoicecommit Censorship Record Verification

Confirms, independently of the authority, that a censorship record binds
to exactly the files that were submitted:

1. The bundle is non-empty
2. Every declared digest matches its payload
3. The Merkle root is recomputed from the payloads
4. The root echoed by the authority (if any) matches the recomputed root
5. The submitter's signature covers the recomputed root
6. The authority's signature covers root || token

A receipt that fails any step must not be trusted, even though the
authority accepted the request.
"""

import hmac
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from .errors import VerificationError
from .hashing import verify_digest
from .merkle import files_merkle_root
from .records import CensorshipRecord, FileDescriptor
from .signing import verify_message


logger = logging.getLogger(__name__)


class VerificationOutcome(str, Enum):
    """
    VALID: the record binds to the submitted files
    INVALID: the record must not be trusted; reason provided
    """
    VALID = "VALID"
    INVALID = "INVALID"


@dataclass
class VerificationResult:
    """Result of verifying a censorship record."""
    outcome: VerificationOutcome
    reason: Optional[str] = None
    stage: Optional[str] = None
    merkle_root: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def is_valid(self) -> bool:
        return self.outcome == VerificationOutcome.VALID

    @classmethod
    def valid(cls, merkle_root: str) -> 'VerificationResult':
        return cls(outcome=VerificationOutcome.VALID, merkle_root=merkle_root)

    @classmethod
    def invalid(
        cls,
        stage: str,
        reason: str,
        details: Dict[str, Any] = None,
        merkle_root: Optional[str] = None,
    ) -> 'VerificationResult':
        return cls(
            outcome=VerificationOutcome.INVALID,
            reason=reason,
            stage=stage,
            merkle_root=merkle_root,
            details=details,
        )


def authority_message(merkle_root: str, token: str) -> bytes:
    """Bytes the authority signs: hex merkle root followed by the token."""
    return (merkle_root + token).encode('utf-8')


class CensorshipRecordVerifier:
    """Verifies censorship records against locally held files."""

    def verify(
        self,
        files: Sequence[FileDescriptor],
        public_key: str,
        signature: str,
        censorship_record: CensorshipRecord,
        authority_public_key: str,
    ) -> VerificationResult:
        """
        Verify a censorship record.

        Args:
            files: Files in submission order
            public_key: Submitter's public key (hex)
            signature: Submitter's signature over the Merkle root (hex)
            censorship_record: Receipt returned by the authority
            authority_public_key: Authority key from the version handshake (hex)

        Returns:
            VerificationResult; never raises for bad input
        """
        if not files:
            return VerificationResult.invalid("files", "no files to verify")

        for index, f in enumerate(files):
            try:
                payload = f.raw_payload()
            except ValueError as e:
                return VerificationResult.invalid(
                    "digest", str(e), {"index": index, "name": f.name}
                )
            if not verify_digest(f.digest, payload):
                return VerificationResult.invalid(
                    "digest",
                    f"digest mismatch for {f.name}",
                    {"index": index, "name": f.name, "declared": f.digest},
                )

        root = files_merkle_root(files)

        if censorship_record.merkle and not hmac.compare_digest(
            censorship_record.merkle.lower(), root
        ):
            return VerificationResult.invalid(
                "merkle",
                "merkle roots do not match",
                {"computed": root, "declared": censorship_record.merkle},
                merkle_root=root,
            )

        if not verify_message(public_key, root.encode('ascii'), signature):
            return VerificationResult.invalid(
                "signature",
                "invalid invoice signature",
                {"public_key": public_key},
                merkle_root=root,
            )

        if not verify_message(
            authority_public_key,
            authority_message(root, censorship_record.token),
            censorship_record.signature,
        ):
            return VerificationResult.invalid(
                "censorship_record",
                "invalid censorship record signature",
                {"token": censorship_record.token},
                merkle_root=root,
            )

        return VerificationResult.valid(root)


def verify_censorship_record(
    files: Sequence[FileDescriptor],
    public_key: str,
    signature: str,
    censorship_record: CensorshipRecord,
    authority_public_key: str,
) -> VerificationResult:
    """
    Verify a censorship record, raising on failure.

    Raises:
        VerificationError: the record does not bind to these files
    """
    result = CensorshipRecordVerifier().verify(
        files, public_key, signature, censorship_record, authority_public_key
    )
    if not result.is_valid():
        logger.warning(
            "censorship record %s failed verification at %s: %s",
            censorship_record.token, result.stage, result.reason,
        )
        raise VerificationError(
            f"unable to verify invoice {censorship_record.token}: {result.reason}",
            token=censorship_record.token,
            result=result,
        )
    return result
