"""Licence issuing and checking built on a single immutable context."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from licence.document import LicenceDocumentCodec, ProductLicence
from licence.keystore import FileKeyStore, load_engine
from licence.productkey.alphabet import ALPHABET_32, Alphabet, get_alphabet
from licence.productkey.codec import (
    DEFAULT_PASSES,
    GROUP_SIZE,
    KEY_LENGTH,
    ProductKeyCodec,
    format_key,
    salt,
)
from licence.productkey.permutation import load_signature
from licence.signature import DEFAULT_HASH, SignatureEngine
from licence.templates.defaults import PRODUCT_KEY_SIZES, TEMPLATES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LicenceContext:
    """Key material and product key settings, fixed at start-up."""

    engine: SignatureEngine
    codec: ProductKeyCodec
    key_length: int = KEY_LENGTH
    group_size: int = GROUP_SIZE

    @classmethod
    def from_settings(cls) -> "LicenceContext":
        """Build the context described by ``config.settings``.

        The private key is loaded only when its file exists, so a deployed
        application holding just the public key runs verify-only.
        """
        from config import settings

        store = FileKeyStore(str(settings.LICENCE_KEYS_DIR))
        private_name = settings.LICENCE_PRIVATE_KEY
        if not (store.directory / private_name).exists():
            private_name = None
        alphabet = get_alphabet(settings.PRODUCT_KEY_ALPHABET)
        return create_context(
            store,
            public_name=settings.LICENCE_PUBLIC_KEY,
            private_name=private_name,
            hash_name=settings.LICENCE_SIGNATURE_HASH,
            signature=settings.PRODUCT_KEY_SIGNATURE,
            alphabet=alphabet,
            passes=settings.PRODUCT_KEY_PASSES,
            key_length=settings.PRODUCT_KEY_LENGTH,
            group_size=settings.PRODUCT_KEY_GROUP_SIZE,
        )


def create_context(
    store: FileKeyStore,
    public_name: str,
    private_name: Optional[str] = None,
    hash_name: str = DEFAULT_HASH,
    signature: Optional[str] = None,
    alphabet: Alphabet = ALPHABET_32,
    passes: int = DEFAULT_PASSES,
    key_length: int = KEY_LENGTH,
    group_size: int = GROUP_SIZE,
) -> LicenceContext:
    """Load key material and the product key signature once.

    Raises:
        SecurityError: If a key file cannot be read.
        ConfigurationError: If a key or the signature is malformed.
    """
    engine = load_engine(store, public_name, private_name, hash_name=hash_name)
    permutation = load_signature(signature) if signature else None
    codec = ProductKeyCodec(alphabet=alphabet, signature=permutation, passes=passes)
    return LicenceContext(
        engine=engine, codec=codec, key_length=key_length, group_size=group_size
    )


@dataclass
class ValidationResult:
    """Result of a licence document check."""

    is_valid: bool
    licence: Optional[ProductLicence] = None
    error: Optional[str] = None
    is_expired: bool = False


class LicenceManager:
    """High-level licence operations: issue, load and validate documents and keys."""

    def __init__(self, context: LicenceContext):
        self._context = context
        self._documents = LicenceDocumentCodec(context.engine)

    @property
    def context(self) -> LicenceContext:
        return self._context

    def issue(
        self,
        owner: str,
        valid_days: Optional[int] = None,
        expire_at: Optional[datetime] = None,
        features: Optional[Sequence[str]] = None,
    ) -> str:
        """Issue a signed licence document.

        Args:
            owner: Licensee name.
            valid_days: Validity from now, used when ``expire_at`` is unset.
            expire_at: Explicit expiry date.
            features: Enabled feature flags.

        Returns:
            The document text.
        """
        if expire_at is None:
            if valid_days is None:
                raise ValueError("Either valid_days or expire_at is required")
            expire_at = datetime.now(timezone.utc) + timedelta(days=valid_days)
        licence = ProductLicence(
            owner=owner, expire_at=expire_at, features=tuple(features or ())
        )
        return self._documents.encode(licence)

    def issue_from_template(self, tier: str, owner: str) -> str:
        """Issue a licence using one of the default tier templates."""
        template = self._template(tier)
        return self.issue(
            owner,
            valid_days=template["valid_days"],
            features=template["features"],
        )

    def load(self, text: str) -> Optional[ProductLicence]:
        return self._documents.decode(text)

    def load_file(self, path: str) -> Optional[ProductLicence]:
        return self._documents.decode_file(path)

    def validate(self, text: str, now: Optional[datetime] = None) -> ValidationResult:
        """Check signature and expiry of a licence document."""
        return self._check(self.load(text), now)

    def validate_file(
        self, path: str, now: Optional[datetime] = None
    ) -> ValidationResult:
        """Check a licence document stored in ``path``.

        Raises:
            SecurityError: If the file cannot be read.
        """
        return self._check(self.load_file(path), now)

    @staticmethod
    def _check(
        licence: Optional[ProductLicence], now: Optional[datetime]
    ) -> ValidationResult:
        if licence is None:
            return ValidationResult(is_valid=False, error="Invalid licence")
        if licence.is_expired(now):
            return ValidationResult(
                is_valid=False,
                licence=licence,
                error="Licence has expired",
                is_expired=True,
            )
        return ValidationResult(is_valid=True, licence=licence)

    def generate_product_key(
        self,
        owner: str,
        values: Sequence[int],
        sizes: Optional[Sequence[int]] = None,
    ) -> str:
        """Pack ``values`` in a display formatted product key bound to ``owner``."""
        key = self._context.codec.pack(
            values,
            sizes or PRODUCT_KEY_SIZES,
            salt(owner),
            character_count=self._context.key_length,
        )
        return format_key(key, self._context.group_size)

    def generate_template_key(self, tier: str, owner: str) -> str:
        """Product key carrying tier, duration in months and seats of a template."""
        template = self._template(tier)
        months = min(template["valid_days"] // 30, 15)
        return self.generate_product_key(
            owner, [template["tier"], months, template["seats"]]
        )

    def read_product_key(
        self,
        owner: str,
        key: str,
        sizes: Optional[Sequence[int]] = None,
    ) -> Optional[list[int]]:
        """Values hidden in ``key`` for ``owner``, or None if the key is invalid."""
        return self._context.codec.unpack(key, salt(owner), sizes or PRODUCT_KEY_SIZES)

    @staticmethod
    def _template(tier: str) -> dict:
        if tier not in TEMPLATES:
            raise ValueError(
                f"Invalid licence tier '{tier}'. Must be one of: {tuple(TEMPLATES)}"
            )
        return TEMPLATES[tier]
