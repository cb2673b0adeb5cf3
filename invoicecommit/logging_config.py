"""
Logging configuration for invoicecommit.

Provides structured JSON logging and an audit logger with one method per
submission pipeline event.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import List, Optional

# Context variable for submission ID tracking
submission_id_var: ContextVar[str] = ContextVar('submission_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    One JSON object per line, suitable for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        submission_id = submission_id_var.get()
        if submission_id:
            log_data["submission_id"] = submission_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


class AuditLogger:
    """
    Logger for submission pipeline events.

    Events carry structured fields (merkle root, token, stage) so a failed
    verification can be traced back to the exact bundle that was sent.
    """

    def __init__(self, name: str = "invoicecommit.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        extra = {
            "event_type": event_type,
            "submission_id": submission_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def invoice_parsed(self, line_items: int, month: int, year: int) -> None:
        self._log(
            logging.INFO,
            "INVOICE_PARSED",
            line_items=line_items,
            month=month,
            year=year,
            message=f"Parsed {line_items} line items for {month:02d}/{year}"
        )

    def bundle_built(self, files: List[str]) -> None:
        self._log(
            logging.INFO,
            "BUNDLE_BUILT",
            files=files,
            message=f"Bundle built with {len(files)} files"
        )

    def bundle_signed(self, merkle_root: str, public_key: str) -> None:
        self._log(
            logging.INFO,
            "BUNDLE_SIGNED",
            merkle_root=merkle_root,
            public_key=public_key,
            message=f"Signed merkle root {merkle_root}"
        )

    def submission_sent(self, url: str, merkle_root: str) -> None:
        self._log(
            logging.INFO,
            "SUBMISSION_SENT",
            url=url,
            merkle_root=merkle_root,
            message=f"Invoice submitted to {url}"
        )

    def submission_rejected(self, stage: str, reason: str, retryable: bool) -> None:
        self._log(
            logging.WARNING,
            "SUBMISSION_REJECTED",
            stage=stage,
            reason=reason,
            retryable=retryable,
            message=f"Submission failed at {stage}: {reason}"
        )

    def record_verified(self, token: str, merkle_root: str) -> None:
        self._log(
            logging.INFO,
            "RECORD_VERIFIED",
            token=token,
            merkle_root=merkle_root,
            message=f"Censorship record {token} verified"
        )

    def verification_failed(
        self,
        token: str,
        stage: Optional[str],
        reason: Optional[str],
        merkle_root: Optional[str] = None
    ) -> None:
        """Submission was accepted but cannot be trusted."""
        self._log(
            logging.ERROR,
            "VERIFICATION_FAILED",
            token=token,
            stage=stage,
            reason=reason,
            merkle_root=merkle_root,
            message=f"Censorship record {token} failed verification: {reason}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # stdout carries command output, so logs go to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def set_submission_id(submission_id: Optional[str] = None) -> str:
    """
    Set the submission ID for the current context.

    Returns:
        The submission ID that was set
    """
    if submission_id is None:
        submission_id = str(uuid.uuid4())
    submission_id_var.set(submission_id)
    return submission_id


def get_submission_id() -> str:
    """Get the current submission ID."""
    return submission_id_var.get()


# Global audit logger instance
audit_log = AuditLogger()
