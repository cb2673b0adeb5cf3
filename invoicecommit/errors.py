"""
invoicecommit Error Taxonomy

Every failure raised by the submission pipeline names the stage it came
from, so a caller can tell "nothing happened" (parse, bundle, sign) apart
from "something was sent but is unverified" (verify).
"""

from typing import Any, List, Optional


class InvoiceCommitError(Exception):
    """Base class for all pipeline errors."""
    stage = "pipeline"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


class ConfigurationError(InvoiceCommitError):
    """A setting from the environment or the command line is invalid."""
    stage = "config"


class MalformedRecord(InvoiceCommitError):
    """
    The invoice table (or the invoice period) does not match the schema.

    User fixable; resubmitting the same input fails the same way.
    """
    stage = "parse"

    def __init__(self, reason: str, line: Optional[int] = None):
        self.reason = reason
        self.line = line
        if line is not None:
            message = f"malformed invoice file: line {line}: {reason}"
        else:
            message = f"malformed invoice file: {reason}"
        super().__init__(message)


class BundleIOError(InvoiceCommitError, OSError):
    """An input file could not be read; the bundle was not built."""
    stage = "bundle"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        InvoiceCommitError.__init__(self, f"ReadFile {path}: {reason}")


class PolicyViolation(InvoiceCommitError):
    """The bundle breaks the authority's file policy (count or media type)."""
    stage = "bundle"


class SigningError(InvoiceCommitError):
    """The local identity is missing or unusable."""
    stage = "sign"


class TransportError(InvoiceCommitError):
    """The authority could not be reached. Safe to retry."""
    stage = "submit"
    retryable = True


class ServerError(InvoiceCommitError):
    """The authority rejected the request."""
    stage = "submit"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[int] = None,
        error_context: Optional[List[str]] = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.error_context = error_context or []
        super().__init__(message)


class VerificationError(InvoiceCommitError):
    """
    The censorship record does not bind to the submitted content.

    The authority may already hold the submission; it must not be trusted
    until investigated.
    """
    stage = "verify"

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        result: Any = None,
        reply: Any = None,
    ):
        self.token = token
        self.result = result
        self.reply = reply
        super().__init__(message)
