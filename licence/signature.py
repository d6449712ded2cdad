"""Asymmetric signing of licence payloads."""

import logging
from typing import Optional

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, padding, rsa

from licence.errors import ConfigurationError

logger = logging.getLogger(__name__)

HASH_ALGORITHMS = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

DEFAULT_HASH = "sha256"


def _load_public_key(data: bytes):
    if data.lstrip().startswith(b"-----BEGIN"):
        return serialization.load_pem_public_key(data)
    return serialization.load_der_public_key(data)


def _load_private_key(data: bytes):
    if data.lstrip().startswith(b"-----BEGIN"):
        return serialization.load_pem_private_key(data, password=None)
    return serialization.load_der_private_key(data, password=None)


def generate_key_pair(key_size: int = 2048) -> tuple[bytes, bytes]:
    """Create a new RSA key pair.

    Args:
        key_size: RSA modulus size in bits.

    Returns:
        ``(public_der, private_der)``: X.509 SubjectPublicKeyInfo and
        unencrypted PKCS#8, both DER encoded.
    """
    private_key = rsa.generate_private_key(
        public_exponent=65537, key_size=key_size
    )
    public_der = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    private_der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return public_der, private_der


class SignatureEngine:
    """Sign and verify payloads with a loaded key pair.

    The engine is built once by :meth:`load` and never modified afterwards,
    so a single instance can be shared between threads.
    """

    def __init__(self, public_key, private_key=None, hash_name: str = DEFAULT_HASH):
        if hash_name not in HASH_ALGORITHMS:
            raise ConfigurationError(
                f"Unknown hash algorithm '{hash_name}'. "
                f"Must be one of: {tuple(HASH_ALGORITHMS)}"
            )
        if not isinstance(public_key, (rsa.RSAPublicKey, ed25519.Ed25519PublicKey)):
            raise ConfigurationError("Public key must be an RSA or Ed25519 key")
        if private_key is not None and not isinstance(
            private_key, (rsa.RSAPrivateKey, ed25519.Ed25519PrivateKey)
        ):
            raise ConfigurationError("Private key must be an RSA or Ed25519 key")
        self._public_key = public_key
        self._private_key = private_key
        self._hash_name = hash_name

    @classmethod
    def load(
        cls,
        public_key: Optional[bytes],
        private_key: Optional[bytes] = None,
        hash_name: str = DEFAULT_HASH,
    ) -> "SignatureEngine":
        """Parse DER or PEM key material.

        Args:
            public_key: Encoded public key, always required.
            private_key: Encoded private key; without it the engine can
                only verify.
            hash_name: Digest used with RSA keys.

        Raises:
            ConfigurationError: If a key is missing or cannot be parsed.
        """
        if not public_key:
            raise ConfigurationError("Public key cannot be empty")
        try:
            public = _load_public_key(public_key)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise ConfigurationError("Invalid public key") from exc

        private = None
        if private_key is not None:
            try:
                private = _load_private_key(private_key)
            except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
                raise ConfigurationError("Invalid private key") from exc

        logger.debug(
            "Loaded %s key material (%s)",
            type(public).__name__,
            "sign and verify" if private is not None else "verify only",
        )
        return cls(public, private, hash_name)

    @property
    def can_sign(self) -> bool:
        return self._private_key is not None

    @property
    def hash_name(self) -> str:
        return self._hash_name

    def sign(self, payload: bytes) -> bytes:
        """Return the signature of ``payload``.

        Raises:
            ConfigurationError: If no private key was loaded.
        """
        if self._private_key is None:
            raise ConfigurationError("Cannot sign the licence (private key is missing)")
        if isinstance(self._private_key, ed25519.Ed25519PrivateKey):
            return self._private_key.sign(payload)
        return self._private_key.sign(
            payload, padding.PKCS1v15(), HASH_ALGORITHMS[self._hash_name]()
        )

    def verify(self, payload: bytes, signature: bytes) -> bool:
        """Check ``signature`` against ``payload``; never raises on mismatch."""
        try:
            if isinstance(self._public_key, ed25519.Ed25519PublicKey):
                self._public_key.verify(signature, payload)
            else:
                self._public_key.verify(
                    signature,
                    payload,
                    padding.PKCS1v15(),
                    HASH_ALGORITHMS[self._hash_name](),
                )
        except (InvalidSignature, ValueError):
            return False
        return True
