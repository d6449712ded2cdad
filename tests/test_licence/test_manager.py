"""Tests for the licence manager and its context."""

import tempfile
import unittest
from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from licence.errors import ConfigurationError, SecurityError
from licence.keystore import FileKeyStore
from licence.manager import LicenceContext, LicenceManager, create_context
from licence.productkey.alphabet import ALPHABET_64
from licence.signature import generate_key_pair
from licence.templates.defaults import TEMPLATES

SIGNATURE = "0e3623140a072447203a3b2a042e300c173e280f32191e102b213d3739314a034540152c34082712382226254f060b29"


class TestLicenceManager(unittest.TestCase):
    """Test LicenceManager methods."""

    @classmethod
    def setUpClass(cls):
        cls.public_der, cls.private_der = generate_key_pair()

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.store = FileKeyStore(self._tmpdir.name)
        self.store.write("public-key.der", self.public_der)
        self.store.write("private-key.der", self.private_der)
        self.context = create_context(
            self.store, "public-key.der", "private-key.der", signature=SIGNATURE
        )
        self.manager = LicenceManager(self.context)

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_context_is_frozen(self):
        with self.assertRaises(FrozenInstanceError):
            self.context.key_length = 10

    def test_issue_and_load(self):
        expire_at = datetime(2031, 5, 1, tzinfo=timezone.utc)
        document = self.manager.issue("Alice", expire_at=expire_at, features=["x", "y"])
        licence = self.manager.load(document)
        self.assertEqual(licence.owner, "Alice")
        self.assertEqual(licence.expire_at, expire_at)
        self.assertEqual(licence.features, ("x", "y"))

    def test_issue_requires_expiry(self):
        with self.assertRaises(ValueError):
            self.manager.issue("Alice")

    def test_issue_from_template(self):
        document = self.manager.issue_from_template("professional", "Corp Inc")
        licence = self.manager.load(document)
        self.assertEqual(list(licence.features), TEMPLATES["professional"]["features"])
        remaining = licence.expire_at - datetime.now(timezone.utc)
        self.assertGreater(remaining, timedelta(days=364))

    def test_invalid_tier(self):
        with self.assertRaises(ValueError):
            self.manager.issue_from_template("gold", "Corp Inc")

    def test_validate(self):
        document = self.manager.issue("Alice", valid_days=30)
        result = self.manager.validate(document)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.licence.owner, "Alice")

    def test_validate_expired(self):
        document = self.manager.issue("Alice", valid_days=30)
        later = datetime.now(timezone.utc) + timedelta(days=31)
        result = self.manager.validate(document, now=later)
        self.assertFalse(result.is_valid)
        self.assertTrue(result.is_expired)

    def test_validate_invalid(self):
        result = self.manager.validate("not a licence")
        self.assertFalse(result.is_valid)
        self.assertEqual(result.error, "Invalid licence")

    def test_validate_file(self):
        path = self.store.directory / "licence.txt"
        path.write_text(self.manager.issue("Alice", valid_days=30))
        self.assertEqual(self.manager.load_file(str(path)).owner, "Alice")
        result = self.manager.validate_file(str(path))
        self.assertTrue(result.is_valid)
        self.assertEqual(result.licence.owner, "Alice")

    def test_validate_file_missing(self):
        missing = str(self.store.directory / "missing.txt")
        with self.assertRaises(SecurityError):
            self.manager.validate_file(missing)
        with self.assertRaises(SecurityError):
            self.manager.load_file(missing)

    def test_product_key_round_trip(self):
        key = self.manager.generate_product_key("Alice", [3, 12, 25])
        self.assertEqual(len(key), 35 + 6)
        self.assertEqual(key.count("-"), 6)
        self.assertEqual(self.manager.read_product_key("Alice", key), [3, 12, 25])

    def test_product_key_bound_to_owner(self):
        key = self.manager.generate_product_key("Alice", [3, 12, 25])
        self.assertNotEqual(self.manager.read_product_key("Bob", key), [3, 12, 25])

    def test_template_key(self):
        key = self.manager.generate_template_key("standard", "Alice")
        self.assertEqual(self.manager.read_product_key("Alice", key), [2, 12, 5])

    def test_verify_only_context(self):
        document = self.manager.issue("Alice", valid_days=1)
        context = create_context(self.store, "public-key.der")
        reader = LicenceManager(context)
        self.assertEqual(reader.load(document).owner, "Alice")
        self.assertIsNone(context.codec.signature)

    def test_alphabet_and_passes(self):
        context = create_context(
            self.store,
            "public-key.der",
            "private-key.der",
            signature=SIGNATURE[:64],
            alphabet=ALPHABET_64,
            passes=2,
            key_length=20,
            group_size=4,
        )
        manager = LicenceManager(context)
        key = manager.generate_product_key("Alice", [9, 200], sizes=[4, 8])
        self.assertEqual(key.count("-"), 4)
        self.assertEqual(manager.read_product_key("Alice", key, sizes=[4, 8]), [9, 200])

    def test_missing_public_key(self):
        with self.assertRaises(SecurityError):
            create_context(self.store, "absent.der")

    def test_bad_signature_setting(self):
        with self.assertRaises(ConfigurationError):
            create_context(self.store, "public-key.der", signature="abc")


class TestContextFromSettings(unittest.TestCase):
    """Test LicenceContext.from_settings."""

    @classmethod
    def setUpClass(cls):
        cls.public_der, cls.private_der = generate_key_pair()

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.store = FileKeyStore(self._tmpdir.name)
        self.store.write("public-key.der", self.public_der)

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_verify_only_without_private_key_file(self):
        with patch("config.settings.LICENCE_KEYS_DIR", self.store.directory):
            context = LicenceContext.from_settings()
        self.assertFalse(context.engine.can_sign)
        self.assertEqual(len(context.codec.signature), 48)

    def test_signing_with_private_key_file(self):
        self.store.write("private-key.der", self.private_der)
        with patch("config.settings.LICENCE_KEYS_DIR", self.store.directory):
            context = LicenceContext.from_settings()
        self.assertTrue(context.engine.can_sign)

    def test_unknown_alphabet(self):
        with patch("config.settings.LICENCE_KEYS_DIR", self.store.directory), \
                patch("config.settings.PRODUCT_KEY_ALPHABET", "16"):
            with self.assertRaises(ConfigurationError):
                LicenceContext.from_settings()


if __name__ == "__main__":
    unittest.main()
