"""Symbol sets used to print product keys."""

from licence.errors import ConfigurationError, IllegalCharacterError

SEPARATOR = "-"


class Alphabet:
    """Ordered set of distinct printable symbols.

    The size must be a power of two so that each symbol carries exactly
    ``bits_per_character`` bits of the key buffer.
    """

    def __init__(self, symbols: str):
        size = len(symbols)
        if len(set(symbols)) != size:
            raise ConfigurationError("Alphabet symbols must be distinct")
        if size < 2 or size & (size - 1):
            raise ConfigurationError(
                "The character set must contain a number of characters that "
                f"is a power of 2 (got {size})"
            )
        for symbol in symbols:
            if symbol == SEPARATOR or symbol.isspace() or not symbol.isprintable():
                raise ConfigurationError(f"Unusable alphabet symbol: {symbol!r}")
        self._symbols = symbols
        self._index = {symbol: i for i, symbol in enumerate(symbols)}
        self._bits = size.bit_length() - 1

    @property
    def symbols(self) -> str:
        return self._symbols

    @property
    def bits_per_character(self) -> int:
        return self._bits

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._index

    def __getitem__(self, index: int) -> str:
        return self._symbols[index]

    def __eq__(self, other) -> bool:
        return isinstance(other, Alphabet) and other._symbols == self._symbols

    def __hash__(self) -> int:
        return hash(self._symbols)

    def __repr__(self) -> str:
        return f"Alphabet({self._symbols!r})"

    def lookup(self, symbol: str) -> int:
        """Return the position of ``symbol``.

        Raises:
            IllegalCharacterError: If the symbol is not in the alphabet.
        """
        try:
            return self._index[symbol]
        except KeyError:
            raise IllegalCharacterError(f"Illegal character: {symbol!r}") from None


# Letters without L, N and O, then digits without 0.
ALPHABET_32 = Alphabet("ABCDEFGHIJKMPQRSTUVWXYZ123456789")

ALPHABET_64 = Alphabet(
    "ABCDEFGHIJKMPQRSTUVWXYZ"
    "abcdefghijkmpqrstuvwxyz"
    "0123456789"
    "#+=[]()@"
)

ALPHABETS = {
    "32": ALPHABET_32,
    "64": ALPHABET_64,
}


def get_alphabet(name: str) -> Alphabet:
    """Return the named alphabet ("32" or "64")."""
    try:
        return ALPHABETS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown alphabet '{name}'. Must be one of: {tuple(ALPHABETS)}"
        ) from None
