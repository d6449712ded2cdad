"""
Licence Management Module.

Provides signed licence documents and offline product keys.
"""

from licence.document import LicenceDocumentCodec, ProductLicence
from licence.errors import (
    ConfigurationError,
    IllegalCharacterError,
    LicenceCorruptedError,
    LicenceError,
    SecurityError,
)
from licence.manager import LicenceContext, LicenceManager, create_context
from licence.signature import SignatureEngine, generate_key_pair

__all__ = [
    "ConfigurationError",
    "IllegalCharacterError",
    "LicenceContext",
    "LicenceCorruptedError",
    "LicenceDocumentCodec",
    "LicenceError",
    "LicenceManager",
    "ProductLicence",
    "SecurityError",
    "SignatureEngine",
    "create_context",
    "generate_key_pair",
]
