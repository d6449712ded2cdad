"""Exceptions raised by the licence and product key modules.

Verification failures are never raised: a bad signature or a key whose
redundant passes disagree comes back as ``False`` / ``None``.
"""


class LicenceError(Exception):
    """Base class for every licence related error."""


class ConfigurationError(LicenceError, ValueError):
    """Invalid key material, alphabet, signature or field layout."""


class IllegalCharacterError(ConfigurationError):
    """A product key contains a symbol outside the alphabet."""


class LicenceCorruptedError(LicenceError):
    """A payload passed signature verification but could not be parsed."""


class SecurityError(LicenceError):
    """Key material or licence file could not be read from storage."""
