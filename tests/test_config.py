"""Settings tests."""

import os
import unittest
from unittest import mock

from invoicecommit.config import DEFAULT_HOST, Settings
from invoicecommit.errors import ConfigurationError


class TestSettings(unittest.TestCase):

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.host, DEFAULT_HOST)
        self.assertEqual(settings.timeout, 30.0)
        self.assertIsNone(settings.ca_cert_path)
        self.assertIs(settings.tls_verify, True)

    def test_from_env(self):
        env = {
            "INVOICECOMMIT_HOST": "https://cms.example.org",
            "INVOICECOMMIT_IDENTITY": "/tmp/id.json",
            "INVOICECOMMIT_TIMEOUT": "2.5",
            "INVOICECOMMIT_CA_CERT": "/etc/ssl/authority.pem",
            "INVOICECOMMIT_LOG_JSON": "true",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.host, "https://cms.example.org")
        self.assertEqual(settings.identity_path, "/tmp/id.json")
        self.assertEqual(settings.timeout, 2.5)
        self.assertTrue(settings.log_json)
        self.assertEqual(settings.tls_verify, "/etc/ssl/authority.pem")

    def test_skip_verify_wins(self):
        env = {"INVOICECOMMIT_CA_CERT": "/etc/ssl/authority.pem", "INVOICECOMMIT_SKIP_VERIFY": "1"}
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        self.assertIs(settings.tls_verify, False)

    def test_bad_timeout(self):
        for value in ("abc", "0", "-1", "nan"):
            with mock.patch.dict(os.environ, {"INVOICECOMMIT_TIMEOUT": value}, clear=True):
                with self.assertRaises(ConfigurationError) as ctx:
                    Settings.from_env()
            self.assertEqual(ctx.exception.stage, "config")

    def test_bad_log_level(self):
        with mock.patch.dict(os.environ, {"INVOICECOMMIT_LOG_LEVEL": "verbose"}, clear=True):
            with self.assertRaises(ConfigurationError) as ctx:
                Settings.from_env()
        self.assertIn("verbose", str(ctx.exception))

    def test_log_level_case_insensitive(self):
        Settings(log_level="debug").validate()


if __name__ == "__main__":
    unittest.main()
