"""File bundle builder and media type detection tests."""

import base64
import hashlib
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from invoicecommit import (
    BundleIOError,
    InvoiceInput,
    InvoicePeriod,
    InvoicePolicy,
    PolicyViolation,
    attachment_file,
    build_bundle_files,
    detect_mime_type,
    invoice_file,
    parse_invoice_csv,
)
from invoicecommit.policy import MIME_PNG, MIME_TEXT_UTF8

from authority import PNG_BYTES, SAMPLE_CSV


class TestMimeDetection(unittest.TestCase):

    def test_png(self):
        self.assertEqual(detect_mime_type(PNG_BYTES), MIME_PNG)

    def test_text(self):
        self.assertEqual(detect_mime_type(b"hello world\n"), MIME_TEXT_UTF8)
        self.assertEqual(detect_mime_type(b'{"a": 1}'), MIME_TEXT_UTF8)
        self.assertEqual(detect_mime_type("naïve\r\n".encode()), MIME_TEXT_UTF8)
        self.assertEqual(detect_mime_type(b""), MIME_TEXT_UTF8)

    def test_other_formats(self):
        self.assertEqual(detect_mime_type(b"%PDF-1.7\n"), "application/pdf")
        self.assertEqual(detect_mime_type(b"\xff\xd8\xff\xe0rest"), "image/jpeg")
        self.assertEqual(detect_mime_type(b"GIF89a..."), "image/gif")
        self.assertEqual(detect_mime_type(b"\x00\x01\x02binary"), "application/octet-stream")


class TestBundleBuilder(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.invoice = parse_invoice_csv(SAMPLE_CSV).with_period(InvoicePeriod(4, 2019))

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name: str, data: bytes) -> Path:
        path = self.tmp / name
        path.write_bytes(data)
        return path

    def test_invoice_file(self):
        f = invoice_file(self.invoice)
        raw = base64.b64decode(f.payload)

        self.assertEqual(f.name, "invoice.json")
        self.assertEqual(f.mime, MIME_TEXT_UTF8)
        self.assertEqual(f.digest, hashlib.sha256(raw).hexdigest())

        decoded = json.loads(raw)
        self.assertEqual(decoded["month"], 4)
        self.assertEqual(decoded["year"], 2019)
        self.assertEqual(len(decoded["lineitems"]), 3)
        self.assertEqual(decoded["lineitems"][0]["type"], 1)

    def test_invoice_payload_decodes_to_parsed_invoice(self):
        raw = invoice_file(self.invoice).raw_payload()
        self.assertEqual(InvoiceInput.from_dict(json.loads(raw)), self.invoice)

    def test_invoice_encoding_is_canonical(self):
        self.assertEqual(invoice_file(self.invoice), invoice_file(self.invoice))
        raw = base64.b64decode(invoice_file(self.invoice).payload)
        self.assertTrue(raw.startswith(b'{"lineitems":[{"description":'))

    def test_attachment_media_type_from_content(self):
        """A PNG named .txt is still a PNG."""
        f = attachment_file(self.write("notes.txt", PNG_BYTES))
        self.assertEqual(f.name, "notes.txt")
        self.assertEqual(f.mime, MIME_PNG)
        self.assertEqual(f.digest, hashlib.sha256(PNG_BYTES).hexdigest())

    def test_bundle_order(self):
        a = self.write("b-receipt.png", PNG_BYTES)
        b = self.write("a-notes.txt", b"worked hard\n")
        files = build_bundle_files(self.invoice, [a, b])

        self.assertEqual([f.name for f in files], ["invoice.json", "b-receipt.png", "a-notes.txt"])
        self.assertIsInstance(files, tuple)

    def test_missing_attachment_aborts(self):
        good = self.write("ok.txt", b"ok")
        with self.assertRaises(BundleIOError) as ctx:
            build_bundle_files(self.invoice, [good, self.tmp / "missing.png"])
        self.assertIsInstance(ctx.exception, OSError)
        self.assertEqual(ctx.exception.stage, "bundle")
        self.assertIn("missing.png", str(ctx.exception))

    def test_too_many_attachments(self):
        policy = InvoicePolicy(max_attachments=1)
        paths = [self.write("a.txt", b"a"), self.write("b.txt", b"b")]
        with self.assertRaises(PolicyViolation):
            build_bundle_files(self.invoice, paths, policy)

    def test_disallowed_media_type(self):
        pdf = self.write("doc.pdf", b"%PDF-1.4\n")
        with self.assertRaises(PolicyViolation) as ctx:
            build_bundle_files(self.invoice, [pdf])
        self.assertIn("application/pdf", str(ctx.exception))

        allowed = InvoicePolicy(allowed_media_types=frozenset({"application/pdf"}))
        files = build_bundle_files(self.invoice, [pdf], allowed)
        self.assertEqual(files[1].mime, "application/pdf")

    def test_duplicate_names_rejected(self):
        first = self.write("notes.txt", b"one")
        sub = self.tmp / "sub"
        sub.mkdir()
        second = sub / "notes.txt"
        second.write_bytes(b"two")
        with self.assertRaises(PolicyViolation):
            build_bundle_files(self.invoice, [first, second])

    def test_attachment_named_like_invoice_rejected(self):
        clash = self.write("invoice.json", b"{}")
        with self.assertRaises(PolicyViolation):
            build_bundle_files(self.invoice, [clash])

    def test_home_directory_expanded(self):
        self.write("receipt.png", PNG_BYTES)
        with mock.patch.dict(os.environ, {"HOME": str(self.tmp)}):
            f = attachment_file("~/receipt.png")
        self.assertEqual(f.name, "receipt.png")
        self.assertEqual(f.mime, MIME_PNG)


if __name__ == "__main__":
    unittest.main()
