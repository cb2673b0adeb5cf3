"""Structured logging and audit event tests."""

import json
import logging
import sys
import unittest

from invoicecommit.logging_config import (
    AuditLogger,
    StructuredFormatter,
    get_submission_id,
    set_submission_id,
)


def make_record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("invoicecommit.test", logging.INFO, __file__, 10, message, (), None)
    if extra:
        record.extra_fields = extra
    return record


class TestStructuredFormatter(unittest.TestCase):

    def test_basic_fields(self):
        data = json.loads(StructuredFormatter().format(make_record()))
        self.assertEqual(data["level"], "INFO")
        self.assertEqual(data["logger"], "invoicecommit.test")
        self.assertEqual(data["message"], "hello")
        self.assertTrue(data["timestamp"].endswith("Z"))
        self.assertNotIn("submission_id", data)

    def test_submission_id_and_extra_fields(self):
        set_submission_id("sub-1")
        data = json.loads(StructuredFormatter().format(make_record(token="abc")))
        self.assertEqual(data["submission_id"], "sub-1")
        self.assertEqual(data["token"], "abc")

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()
        data = json.loads(StructuredFormatter().format(record))
        self.assertIn("ValueError: boom", data["exception"])


class TestSubmissionId(unittest.TestCase):

    def test_generated(self):
        first = set_submission_id()
        self.assertEqual(get_submission_id(), first)
        self.assertNotEqual(set_submission_id(), first)

    def test_explicit(self):
        self.assertEqual(set_submission_id("fixed"), "fixed")
        self.assertEqual(get_submission_id(), "fixed")


class TestAuditLogger(unittest.TestCase):

    def setUp(self):
        self.audit = AuditLogger("invoicecommit.audit.test")

    def test_verification_failed_is_error(self):
        set_submission_id("sub-2")
        with self.assertLogs("invoicecommit.audit.test", level=logging.INFO) as logs:
            self.audit.verification_failed("tok", "merkle", "merkle root mismatch", "ab" * 32)

        record = logs.records[0]
        self.assertEqual(record.levelno, logging.ERROR)
        self.assertEqual(record.extra_fields["event_type"], "VERIFICATION_FAILED")
        self.assertEqual(record.extra_fields["stage"], "merkle")
        self.assertEqual(record.extra_fields["submission_id"], "sub-2")
        self.assertIn("merkle root mismatch", record.getMessage())

    def test_submission_rejected(self):
        with self.assertLogs("invoicecommit.audit.test", level=logging.INFO) as logs:
            self.audit.submission_rejected("submit", "connection refused", True)

        record = logs.records[0]
        self.assertEqual(record.levelno, logging.WARNING)
        self.assertTrue(record.extra_fields["retryable"])

    def test_bundle_events(self):
        with self.assertLogs("invoicecommit.audit.test", level=logging.INFO) as logs:
            self.audit.invoice_parsed(3, 4, 2019)
            self.audit.bundle_built(["invoice.json", "receipt.png"])

        parsed, built = logs.records
        self.assertIn("04/2019", parsed.getMessage())
        self.assertEqual(built.extra_fields["files"], ["invoice.json", "receipt.png"])


if __name__ == "__main__":
    unittest.main()
