"""
invoicecommit: Signed Invoice Submission and Censorship Record Verification

Version: 1.0.0

Turns an invoice table and its attachments into a content-addressed
bundle, signs the Merkle root of that bundle with the contractor's
Ed25519 identity, submits it to the authority and verifies that the
returned censorship record commits to exactly the files that were sent.

A censorship record is trusted only when:
    merkle == MerkleRoot(files)
    VerifyEd25519(user_key, merkle, signature)
    VerifyEd25519(authority_key, merkle || token, record.signature)

Usage:
    from invoicecommit import (
        InvoiceClient,
        InvoiceSubmitter,
        load_identity,
    )

    client = InvoiceClient("https://cms.example.org")
    submitter = InvoiceSubmitter(client, load_identity("identity.json"))

    result = submitter.submit(4, 2019, "invoice.csv", ["receipt.png"])
    print(result.token)
"""

__version__ = "1.0.0"
__license__ = "ISC"

# Errors
from .errors import (
    InvoiceCommitError,
    ConfigurationError,
    MalformedRecord,
    BundleIOError,
    PolicyViolation,
    SigningError,
    TransportError,
    ServerError,
    VerificationError,
)

# Canonicalization and hashing
from .canonicalization import canonicalize, canonicalize_str
from .hashing import digest, digest_hex, verify_digest

# Records and policy
from .policy import InvoicePolicy, DEFAULT_POLICY, INVOICE_FILE_NAME
from .records import (
    LineItemType,
    LineItem,
    InvoicePeriod,
    InvoiceInput,
    FileDescriptor,
    SubmissionBundle,
    CensorshipRecord,
    VersionReply,
    NewInvoiceReply,
)

# Parsing and bundling
from .parser import parse_invoice_csv, serialize_invoice_csv
from .mime import detect_mime_type
from .bundle import (
    attachment_file,
    build_bundle_files,
    file_descriptor,
    invoice_file,
)

# Merkle commitment and signing
from .merkle import merkle_root, files_merkle_root
from .signing import Identity, load_identity, sign_merkle_root, verify_message

# Verification
from .verifier import (
    CensorshipRecordVerifier,
    VerificationResult,
    VerificationOutcome,
    verify_censorship_record,
)

# Transport and pipeline
from .client import InvoiceClient
from .submission import InvoiceSubmitter, SubmissionResult, parse_period


__all__ = [
    # Version
    "__version__",

    # Errors
    "InvoiceCommitError",
    "ConfigurationError",
    "MalformedRecord",
    "BundleIOError",
    "PolicyViolation",
    "SigningError",
    "TransportError",
    "ServerError",
    "VerificationError",

    # Canonicalization and hashing
    "canonicalize",
    "canonicalize_str",
    "digest",
    "digest_hex",
    "verify_digest",

    # Records and policy
    "InvoicePolicy",
    "DEFAULT_POLICY",
    "INVOICE_FILE_NAME",
    "LineItemType",
    "LineItem",
    "InvoicePeriod",
    "InvoiceInput",
    "FileDescriptor",
    "SubmissionBundle",
    "CensorshipRecord",
    "VersionReply",
    "NewInvoiceReply",

    # Parsing and bundling
    "parse_invoice_csv",
    "serialize_invoice_csv",
    "detect_mime_type",
    "attachment_file",
    "build_bundle_files",
    "file_descriptor",
    "invoice_file",

    # Merkle commitment and signing
    "merkle_root",
    "files_merkle_root",
    "Identity",
    "load_identity",
    "sign_merkle_root",
    "verify_message",

    # Verification
    "CensorshipRecordVerifier",
    "VerificationResult",
    "VerificationOutcome",
    "verify_censorship_record",

    # Transport and pipeline
    "InvoiceClient",
    "InvoiceSubmitter",
    "SubmissionResult",
    "parse_period",
]
