"""
Product Key Module.

Packs small integers (plan tier, duration, seats...) into short keys that
can be checked offline.
"""

from licence.productkey.alphabet import ALPHABET_32, ALPHABET_64, Alphabet
from licence.productkey.codec import ProductKeyCodec, format_key, normalize, salt
from licence.productkey.permutation import (
    PermutationSignature,
    load_signature,
    randomize,
)

__all__ = [
    "ALPHABET_32",
    "ALPHABET_64",
    "Alphabet",
    "PermutationSignature",
    "ProductKeyCodec",
    "format_key",
    "load_signature",
    "normalize",
    "randomize",
    "salt",
]
