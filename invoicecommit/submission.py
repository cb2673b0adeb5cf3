"""
invoicecommit Submission Pipeline

Runs one invoice submission end to end:

    parse -> build -> sign -> submit -> verify

Every stage completes before the next starts and raises on failure; no
stage hands a partial result to the next. Nothing leaves the machine
until the bundle is fully built and signed.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .bundle import build_bundle_files, read_file
from .client import InvoiceClient
from .errors import InvoiceCommitError, MalformedRecord, SigningError, VerificationError
from .logging_config import AuditLogger, audit_log, set_submission_id
from .merkle import files_merkle_root
from .parser import parse_invoice_csv
from .policy import DEFAULT_POLICY, InvoicePolicy
from .records import InvoicePeriod, NewInvoiceReply, SubmissionBundle
from .signing import Identity, sign_merkle_root
from .verifier import VerificationResult, verify_censorship_record


logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass
class SubmissionResult:
    """A submission whose censorship record has been verified."""
    submission_id: str
    bundle: SubmissionBundle
    reply: NewInvoiceReply
    verification: VerificationResult

    @property
    def token(self) -> str:
        return self.reply.censorship_record.token


def parse_period(month: Union[int, str], year: Union[int, str]) -> InvoicePeriod:
    """
    Build an InvoicePeriod from user input.

    Raises:
        MalformedRecord: month or year is not a number or out of range
    """
    try:
        return InvoicePeriod(month=int(month), year=int(year))
    except (TypeError, ValueError) as e:
        raise MalformedRecord(f"invalid invoice period {month}/{year}: {e}")


class InvoiceSubmitter:
    """
    Submits invoices for one identity to one authority.

    Args:
        client: Authority client
        identity: Submitter identity; None fails every submission with
            SigningError before the network is touched
        policy: Invoice policy
        audit: Audit logger
    """

    def __init__(
        self,
        client: InvoiceClient,
        identity: Optional[Identity],
        policy: InvoicePolicy = DEFAULT_POLICY,
        audit: AuditLogger = audit_log,
    ):
        self.client = client
        self.identity = identity
        self.policy = policy
        self.audit = audit

    def prepare(
        self,
        month: Union[int, str],
        year: Union[int, str],
        csv_path: PathLike,
        attachment_paths: Sequence[PathLike] = (),
    ) -> SubmissionBundle:
        """
        Parse, build and sign a bundle without contacting the authority.

        Raises:
            MalformedRecord, BundleIOError, PolicyViolation, SigningError
        """
        period = parse_period(month, year)
        if self.identity is None:
            raise SigningError("user identity not found")

        invoice = parse_invoice_csv(read_file(csv_path), self.policy).with_period(period)
        self.audit.invoice_parsed(len(invoice.line_items), period.month, period.year)

        files = build_bundle_files(invoice, attachment_paths, self.policy)
        self.audit.bundle_built([f.name for f in files])

        signature = sign_merkle_root(files, self.identity)
        self.audit.bundle_signed(files_merkle_root(files), self.identity.public_key_hex)

        return SubmissionBundle(
            files=files,
            public_key=self.identity.public_key_hex,
            signature=signature,
            period=period,
        )

    def submit(
        self,
        month: Union[int, str],
        year: Union[int, str],
        csv_path: PathLike,
        attachment_paths: Sequence[PathLike] = (),
    ) -> SubmissionResult:
        """
        Submit an invoice and verify the authority's censorship record.

        Raises:
            MalformedRecord, BundleIOError, PolicyViolation, SigningError:
                nothing was sent
            TransportError, ServerError: the authority did not accept it
            VerificationError: the authority accepted it but the receipt
                does not bind to the submitted files; err.reply holds it
        """
        submission_id = set_submission_id()

        try:
            bundle = self.prepare(month, year, csv_path, attachment_paths)
            version = self.client.version()

            self.audit.submission_sent(self.client.base_url, files_merkle_root(bundle.files))
            reply = self.client.new_invoice(bundle)
        except InvoiceCommitError as e:
            self.audit.submission_rejected(e.stage, e.message, e.retryable)
            raise

        record = reply.censorship_record
        try:
            verification = verify_censorship_record(
                bundle.files, bundle.public_key, bundle.signature, record, version.pubkey
            )
        except VerificationError as e:
            result = e.result
            self.audit.verification_failed(
                record.token, result.stage, result.reason, result.merkle_root
            )
            e.reply = reply
            raise

        self.audit.record_verified(record.token, verification.merkle_root)
        logger.info("invoice %s submitted and verified", record.token)
        return SubmissionResult(
            submission_id=submission_id,
            bundle=bundle,
            reply=reply,
            verification=verification,
        )
