"""Tests for permutation signatures."""

import random
import unittest

from licence.errors import ConfigurationError
from licence.productkey.alphabet import ALPHABET_32, ALPHABET_64, Alphabet
from licence.productkey.permutation import (
    MAX_SLOTS,
    PermutationSignature,
    load_signature,
    randomize,
)


class TestRandomize(unittest.TestCase):
    """Test signature generation."""

    def test_length_and_range(self):
        signature = randomize(16, 35, ALPHABET_32, 3)
        self.assertEqual(len(signature), 48)
        self.assertTrue(all(0 <= slot < 175 for slot in signature))

    def test_slots_are_distinct(self):
        for _ in range(20):
            signature = randomize(16, 35, ALPHABET_32, 3)
            self.assertEqual(len(set(signature)), len(signature))

    def test_full_buffer(self):
        signature = randomize(4, 4, Alphabet("ABCD"), 2)
        self.assertEqual(sorted(signature), list(range(8)))

    def test_capacity_exceeded(self):
        with self.assertRaises(ConfigurationError):
            randomize(5, 4, Alphabet("ABCD"), 2)
        with self.assertRaises(ConfigurationError):
            randomize(60, 35, ALPHABET_32, 3)

    def test_slot_ceiling(self):
        with self.assertRaises(ConfigurationError):
            randomize(16, 50, ALPHABET_64, 3)

    def test_seeded_rng_is_reproducible(self):
        first = randomize(16, 35, ALPHABET_32, 3, rng=random.Random(7))
        second = randomize(16, 35, ALPHABET_32, 3, rng=random.Random(7))
        self.assertEqual(first, second)


class TestSerialization(unittest.TestCase):
    """Test signature (de)serialization."""

    def test_serialize_format(self):
        signature = PermutationSignature([5, 6, 255, 0, 171])
        self.assertEqual(signature.serialize(), "0506ff00ab")

    def test_load(self):
        signature = load_signature("0506FF00ab")
        self.assertEqual(signature.slots, (5, 6, 255, 0, 171))

    def test_generated_signature_survives_serialization(self):
        signature = randomize(16, 35, ALPHABET_32, 3)
        serialized = signature.serialize()
        self.assertEqual(len(serialized), 2 * len(signature))
        self.assertEqual(serialized, serialized.lower())
        self.assertEqual(load_signature(serialized), signature)

    def test_odd_length(self):
        with self.assertRaises(ConfigurationError):
            load_signature("05060")

    def test_not_hex(self):
        with self.assertRaises(ConfigurationError):
            load_signature("05zz")
        with self.assertRaises(ConfigurationError):
            load_signature("+5")

    def test_duplicates_rejected(self):
        with self.assertRaises(ConfigurationError):
            load_signature("050605")

    def test_out_of_range_slot(self):
        with self.assertRaises(ConfigurationError):
            PermutationSignature([MAX_SLOTS])
        with self.assertRaises(ConfigurationError):
            PermutationSignature([-1])


if __name__ == "__main__":
    unittest.main()
