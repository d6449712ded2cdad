"""Secret bit permutation shared by product key issuer and verifier."""

import logging
import random
import string
from typing import Iterable, Optional

from licence.errors import ConfigurationError
from licence.productkey.alphabet import Alphabet

logger = logging.getLogger(__name__)

# Two hex digits per slot index.
MAX_SLOTS = 256


class PermutationSignature:
    """Ordered key buffer positions receiving the payload bits.

    Entry ``pass * payload_bits + i`` is the slot written with payload bit
    ``i`` during ``pass``. No slot appears twice.
    """

    def __init__(self, slots: Iterable[int]):
        slots = tuple(slots)
        for slot in slots:
            if not 0 <= slot < MAX_SLOTS:
                raise ConfigurationError(
                    f"Signature slot {slot} outside [0, {MAX_SLOTS})"
                )
        if len(set(slots)) != len(slots):
            raise ConfigurationError("Signature slots must be distinct")
        self._slots = slots

    @property
    def slots(self) -> tuple[int, ...]:
        return self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> int:
        return self._slots[index]

    def __iter__(self):
        return iter(self._slots)

    def __eq__(self, other) -> bool:
        return isinstance(other, PermutationSignature) and other._slots == self._slots

    def __hash__(self) -> int:
        return hash(self._slots)

    def __repr__(self) -> str:
        return f"PermutationSignature({self.serialize()!r})"

    def serialize(self) -> str:
        return "".join(f"{slot:02x}" for slot in self._slots)


def available_slots(alphabet: Alphabet, character_count: int) -> int:
    return alphabet.bits_per_character * character_count


def randomize(
    payload_bits: int,
    character_count: int,
    alphabet: Alphabet,
    passes: int,
    rng: Optional[random.Random] = None,
) -> PermutationSignature:
    """Draw a new permutation signature.

    Args:
        payload_bits: Bits hidden per pass (sum of the field sizes).
        character_count: Length of the product key in characters.
        alphabet: Alphabet the key is printed with.
        passes: Number of redundant copies of the payload.
        rng: Random source; pass a seeded ``random.Random`` for repeatable
            output.

    Raises:
        ConfigurationError: If the payload does not fit in the key or the key
            buffer is larger than the serialization can address.
    """
    if payload_bits < 1 or passes < 1:
        raise ConfigurationError("Payload bits and passes must be positive")
    slots = available_slots(alphabet, character_count)
    signature_size = payload_bits * passes
    if signature_size > slots:
        raise ConfigurationError(
            "There are more bits to hide than available bits in the key "
            f"({signature_size} > {slots})"
        )
    if slots > MAX_SLOTS:
        raise ConfigurationError(
            f"Key buffer of {slots} bits exceeds the {MAX_SLOTS} addressable slots"
        )

    rng = rng or random.SystemRandom()
    chosen = rng.sample(range(slots), signature_size)
    rng.shuffle(chosen)
    signature = PermutationSignature(chosen)
    logger.info("Generated signature: %s", signature.serialize())
    return signature


def load_signature(serialized: str) -> PermutationSignature:
    """Parse a signature produced by :meth:`PermutationSignature.serialize`.

    Raises:
        ConfigurationError: On odd length, non-hex content or duplicate slots.
    """
    serialized = serialized.strip()
    if len(serialized) % 2 != 0:
        raise ConfigurationError("Signature length does not match")
    if any(c not in string.hexdigits for c in serialized):
        raise ConfigurationError("Signature is not hexadecimal")
    slots = [int(serialized[i:i + 2], 16) for i in range(0, len(serialized), 2)]
    return PermutationSignature(slots)
