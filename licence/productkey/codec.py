"""Product keys: small integers hidden in a short printable string.

Packing writes the payload bits ``passes`` times into a buffer of random
noise, at the positions named by the permutation signature, XORs the
buffer with the bits of an owner derived salt and prints it with an
alphabet. Unpacking reverses the steps and rejects the key when the
passes disagree. This deters guessing; it is not encryption.
"""

import hashlib
import logging
import re
import secrets
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from licence.errors import ConfigurationError
from licence.productkey.alphabet import ALPHABET_32, SEPARATOR, Alphabet
from licence.productkey.permutation import (
    PermutationSignature,
    available_slots,
    randomize,
)

logger = logging.getLogger(__name__)

DEFAULT_PASSES = 3
KEY_LENGTH = 35
GROUP_SIZE = 5
MAX_FIELD_BITS = 32
OVERLOAD_RATIO = 40

_STRIP = re.compile(rf"[{re.escape(SEPARATOR)}\s]")


@dataclass(frozen=True)
class KeyStatistics:
    """How much of a key buffer carries payload bits."""

    information_bits: int
    total_bits: int

    @property
    def noise_bits(self) -> int:
        return self.total_bits - self.information_bits

    @property
    def ratio(self) -> int:
        """Percentage of buffer bits holding payload."""
        return 100 * self.information_bits // self.total_bits

    @property
    def overloaded(self) -> bool:
        return self.ratio > OVERLOAD_RATIO


def to_bits(value: int, size: int) -> list[int]:
    """Unsigned big-endian bits of ``value`` on ``size`` bits."""
    return [(value >> shift) & 1 for shift in range(size - 1, -1, -1)]


def from_bits(bits: Sequence[int]) -> int:
    value = 0
    for bit in bits:
        value = (value << 1) | bit
    return value


def salt(text: str) -> bytes:
    """Derive the salt binding a key to ``text`` (usually the owner name)."""
    return hashlib.sha1(text.encode("utf-8")).digest()


def normalize(key: str) -> str:
    """Remove separators and whitespace from a typed key."""
    return _STRIP.sub("", key)


def format_key(key: str, group_size: int = GROUP_SIZE) -> str:
    """Split a key in dash separated groups for display."""
    if group_size < 1:
        raise ConfigurationError("Group size must be positive")
    normalized = normalize(key)
    return SEPARATOR.join(
        normalized[i:i + group_size] for i in range(0, len(normalized), group_size)
    )


def _salt_bits(salt_bytes: bytes) -> list[int]:
    if not salt_bytes:
        raise ConfigurationError("Salt cannot be empty")
    bits = []
    for byte in salt_bytes:
        bits.extend(to_bits(byte, 8))
    return bits


def _apply_salt(buffer: list[int], salt_bytes: bytes) -> None:
    salted = _salt_bits(salt_bytes)
    for i in range(len(buffer)):
        buffer[i] ^= salted[i % len(salted)]


def _check_layout(sizes: Sequence[int]) -> int:
    if not sizes:
        raise ConfigurationError("At least one field size is required")
    for size in sizes:
        if not 1 <= size <= MAX_FIELD_BITS:
            raise ConfigurationError(
                f"Field size must be between 1 and {MAX_FIELD_BITS} bits (got {size})"
            )
    return sum(sizes)


class ProductKeyCodec:
    """Pack and unpack integer fields into product keys.

    Args:
        alphabet: Symbols used to print the key.
        signature: Permutation shared with the verifier.
        passes: Copies of the payload written in the key.
        random_bits: ``random_bits(n)`` returns an ``n`` bit integer used as
            buffer noise. Defaults to :func:`secrets.randbits`.
    """

    def __init__(
        self,
        alphabet: Alphabet = ALPHABET_32,
        signature: Optional[PermutationSignature] = None,
        passes: int = DEFAULT_PASSES,
        random_bits: Optional[Callable[[int], int]] = None,
    ):
        if passes < 1:
            raise ConfigurationError("At least one pass is required")
        self._alphabet = alphabet
        self._signature = signature
        self._passes = passes
        self._random_bits = random_bits or secrets.randbits

    @property
    def alphabet(self) -> Alphabet:
        return self._alphabet

    @property
    def signature(self) -> Optional[PermutationSignature]:
        return self._signature

    @property
    def passes(self) -> int:
        return self._passes

    def with_signature(self, signature: PermutationSignature) -> "ProductKeyCodec":
        return ProductKeyCodec(
            self._alphabet, signature, self._passes, self._random_bits
        )

    def randomize(
        self, payload_bits: int, character_count: int = KEY_LENGTH, rng=None
    ) -> PermutationSignature:
        """Draw a signature sized for this codec's alphabet and passes."""
        return randomize(
            payload_bits, character_count, self._alphabet, self._passes, rng=rng
        )

    def statistics(
        self, sizes: Sequence[int], character_count: int = KEY_LENGTH
    ) -> KeyStatistics:
        return KeyStatistics(
            information_bits=sum(sizes) * self._passes,
            total_bits=available_slots(self._alphabet, character_count),
        )

    def pack(
        self,
        values: Sequence[int],
        sizes: Sequence[int],
        salt: bytes,
        character_count: int = KEY_LENGTH,
        show_statistics: bool = False,
        signature: Optional[PermutationSignature] = None,
    ) -> str:
        """Hide ``values`` in a new key of ``character_count`` symbols.

        Args:
            values: Unsigned integers to hide.
            sizes: Bit width of each value.
            salt: Owner derived bytes, see :func:`salt`.
            character_count: Key length in characters.
            show_statistics: Log the information ratio of the key.
            signature: Overrides the codec's signature. When neither is set
                a new one is drawn and logged.

        Raises:
            ConfigurationError: On a bad field layout, an empty salt or a
                signature that cannot hold the payload.
        """
        passes = self._passes
        bits_per_pass = _check_layout(sizes)
        if len(values) != len(sizes):
            raise ConfigurationError("Each value needs a size")

        to_hide = []
        for value, size in zip(values, sizes):
            if not 0 <= value < 1 << size:
                raise ConfigurationError(
                    f"Value {value} does not fit in {size} bits"
                )
            to_hide.extend(to_bits(value, size))

        bits_per_character = self._alphabet.bits_per_character
        buffer_size = character_count * bits_per_character
        bits_to_hide = bits_per_pass * passes
        if bits_to_hide > buffer_size:
            raise ConfigurationError(
                "There are more bits to hide than available bits in the key "
                f"({bits_to_hide} > {buffer_size})"
            )

        if signature is None:
            signature = self._signature
        if signature is None:
            signature = randomize(
                bits_per_pass, character_count, self._alphabet, passes
            )
        if len(signature) < bits_to_hide:
            raise ConfigurationError(
                "Signature length must match the number of bits to hide * passes"
            )
        if max(signature[:bits_to_hide]) >= buffer_size:
            raise ConfigurationError("Signature addresses slots outside the key")

        if show_statistics:
            stats = self.statistics(sizes, character_count)
            logger.info(
                "%d%% of bits hold licence information (%d/%d), %d random bits",
                stats.ratio,
                stats.information_bits,
                stats.total_bits,
                stats.noise_bits,
            )
            if stats.overloaded:
                logger.warning(
                    "A useful bits ratio above %d%% makes the pattern much "
                    "easier to guess, aim for about 30%%",
                    OVERLOAD_RATIO,
                )

        buffer = to_bits(self._random_bits(buffer_size), buffer_size)
        for p in range(passes):
            offset = p * bits_per_pass
            for i, bit in enumerate(to_hide):
                buffer[signature[offset + i]] = bit

        _apply_salt(buffer, salt)

        return "".join(
            self._alphabet[from_bits(buffer[i:i + bits_per_character])]
            for i in range(0, buffer_size, bits_per_character)
        )

    def unpack(
        self, key: str, salt: bytes, sizes: Sequence[int]
    ) -> Optional[list[int]]:
        """Read the values hidden in ``key``.

        Returns:
            The decoded values, or None if the key is too short or its
            redundant copies disagree.

        Raises:
            IllegalCharacterError: If the key holds a symbol outside the
                alphabet.
            ConfigurationError: If no signature is loaded or it is too short
                for ``sizes``.
        """
        if self._signature is None:
            raise ConfigurationError("No signature loaded")
        bits_per_pass = _check_layout(sizes)
        bits_to_read = bits_per_pass * self._passes
        if len(self._signature) < bits_to_read:
            raise ConfigurationError(
                "Signature length must match the number of bits to hide * passes"
            )

        bits_per_character = self._alphabet.bits_per_character
        buffer = []
        for symbol in normalize(key):
            buffer.extend(to_bits(self._alphabet.lookup(symbol), bits_per_character))

        if not buffer or max(self._signature[:bits_to_read]) >= len(buffer):
            logger.warning("Product key is too short")
            return None

        _apply_salt(buffer, salt)

        unpacked = []
        for p in range(self._passes):
            slots = self._signature[p * bits_per_pass:(p + 1) * bits_per_pass]
            values = []
            offset = 0
            for size in sizes:
                values.append(
                    from_bits([buffer[slot] for slot in slots[offset:offset + size]])
                )
                offset += size
            unpacked.append(values)

        for current, following in zip(unpacked, unpacked[1:]):
            if current != following:
                logger.warning("Redundancy check failed")
                return None
        return unpacked[0]
