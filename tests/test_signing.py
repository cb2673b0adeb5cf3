"""Identity and Merkle commitment signing tests."""

import json
import os
import tempfile
import unittest

from nacl.signing import VerifyKey

from invoicecommit import (
    Identity,
    SigningError,
    file_descriptor,
    files_merkle_root,
    load_identity,
    sign_merkle_root,
    verify_message,
)


class TestIdentity(unittest.TestCase):

    def test_generate(self):
        identity = Identity.generate()
        self.assertEqual(len(identity.signing_key), 32)
        self.assertEqual(len(identity.public_key_hex), 64)

    def test_from_seed_is_deterministic(self):
        seed = bytes(range(32))
        self.assertEqual(Identity.from_seed(seed), Identity.from_seed(seed))

    def test_save_and_load(self):
        identity = Identity.generate(kid="contractor-7")
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "identity.json")
            identity.save(path)

            self.assertEqual(os.stat(path).st_mode & 0o777, 0o600)
            loaded = load_identity(path)

        self.assertEqual(loaded, identity)
        self.assertEqual(loaded.kid, "contractor-7")

    def test_load_missing(self):
        with self.assertRaises(SigningError) as ctx:
            load_identity("/nonexistent/identity.json")
        self.assertIn("not found", str(ctx.exception))

    def test_load_corrupt(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "identity.json")
            with open(path, "w") as f:
                f.write("{not json")
            with self.assertRaises(SigningError):
                load_identity(path)

            with open(path, "w") as f:
                json.dump({"kid": "x", "private_key_b64": "c2hvcnQ="}, f)
            with self.assertRaises(SigningError):
                load_identity(path)

    def test_load_mismatched_public_key(self):
        identity = Identity.generate()
        data = identity.to_dict()
        data["public_key"] = Identity.generate().public_key_hex
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "identity.json")
            with open(path, "w") as f:
                json.dump(data, f)
            with self.assertRaises(SigningError):
                load_identity(path)


class TestSignMerkleRoot(unittest.TestCase):

    def setUp(self):
        self.identity = Identity.generate()
        self.files = (
            file_descriptor("invoice.json", b'{"lineitems":[]}'),
            file_descriptor("notes.txt", b"notes"),
        )

    def test_signature_covers_hex_root(self):
        signature = sign_merkle_root(self.files, self.identity)
        root = files_merkle_root(self.files)

        VerifyKey(self.identity.verify_key).verify(root.encode("ascii"), bytes.fromhex(signature))
        self.assertTrue(verify_message(self.identity.public_key_hex, root.encode(), signature))

    def test_missing_identity(self):
        with self.assertRaises(SigningError) as ctx:
            sign_merkle_root(self.files, None)
        self.assertEqual(ctx.exception.stage, "sign")

    def test_no_files(self):
        with self.assertRaises(SigningError):
            sign_merkle_root((), self.identity)

    def test_signature_depends_on_order(self):
        root = files_merkle_root(self.files)
        reversed_sig = sign_merkle_root(tuple(reversed(self.files)), self.identity)
        self.assertFalse(verify_message(self.identity.public_key_hex, root.encode(), reversed_sig))


class TestVerifyMessage(unittest.TestCase):

    def setUp(self):
        self.identity = Identity.generate()
        self.signature = self.identity.sign_message(b"message").hex()

    def test_valid(self):
        self.assertTrue(verify_message(self.identity.public_key_hex, b"message", self.signature))

    def test_wrong_message(self):
        self.assertFalse(verify_message(self.identity.public_key_hex, b"messagf", self.signature))

    def test_wrong_key(self):
        other = Identity.generate()
        self.assertFalse(verify_message(other.public_key_hex, b"message", self.signature))

    def test_malformed_inputs(self):
        key = self.identity.public_key_hex
        self.assertFalse(verify_message("zz", b"message", self.signature))
        self.assertFalse(verify_message(key[:-2], b"message", self.signature))
        self.assertFalse(verify_message(key, b"message", "not hex"))
        self.assertFalse(verify_message(key, b"message", self.signature[:-2]))
        self.assertFalse(verify_message(key, b"message", ""))


if __name__ == "__main__":
    unittest.main()
