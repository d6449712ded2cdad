"""Signed licence documents.

A document is plain text::

    ---------------------- my-application licence - START ----------------------
    <base64 lines>
    ---------------------- my-application licence -  END  ----------------------

The base64 body is an envelope ``u32 signature length | signature | payload``
with every byte XOR-ed with ``0x26``. The XOR only hides the payload from a
casual look at the text. The payload itself uses a fixed schema::

    u32 owner length | owner (UTF-8)
    i64 expiry, milliseconds since the Unix epoch
    u32 feature count | (u32 length | feature (UTF-8)) * count

All integers are big-endian. Text outside the markers is ignored on load.
"""

import base64
import binascii
import logging
import struct
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from licence.errors import LicenceCorruptedError, SecurityError
from licence.signature import SignatureEngine

logger = logging.getLogger(__name__)

LICENCE_START = "---------------------- my-application licence - START ----------------------"
LICENCE_END = "---------------------- my-application licence -  END  ----------------------"

XOR_MASK = 38
LINE_WIDTH = len(LICENCE_START)

_U32 = struct.Struct(">I")
_I64 = struct.Struct(">q")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class ProductLicence:
    """Owner, expiry and enabled features of a licence."""

    owner: str
    expire_at: datetime
    features: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        expire_at = self.expire_at
        if expire_at.tzinfo is None:
            expire_at = expire_at.replace(tzinfo=timezone.utc)
        # The payload stores milliseconds.
        expire_at = expire_at.replace(
            microsecond=expire_at.microsecond // 1000 * 1000
        )
        object.__setattr__(self, "expire_at", expire_at)
        object.__setattr__(self, "features", tuple(self.features))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return self.expire_at < now


def _to_millis(value: datetime) -> int:
    delta = value - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


def _from_millis(millis: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=millis)


def _pack_text(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return _U32.pack(len(encoded)) + encoded


def encode_payload(licence: ProductLicence) -> bytes:
    """Serialize a licence with the fixed payload schema."""
    parts = [
        _pack_text(licence.owner),
        _I64.pack(_to_millis(licence.expire_at)),
        _U32.pack(len(licence.features)),
    ]
    parts.extend(_pack_text(feature) for feature in licence.features)
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes):
        self._data = data
        self._offset = 0

    def take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise LicenceCorruptedError("Licence payload is truncated")
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def u32(self) -> int:
        return _U32.unpack(self.take(_U32.size))[0]

    def i64(self) -> int:
        return _I64.unpack(self.take(_I64.size))[0]

    def text(self) -> str:
        try:
            return self.take(self.u32()).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise LicenceCorruptedError("Licence payload holds invalid text") from exc

    @property
    def exhausted(self) -> bool:
        return self._offset == len(self._data)


def decode_payload(payload: bytes) -> ProductLicence:
    """Parse a payload produced by :func:`encode_payload`.

    Raises:
        LicenceCorruptedError: If the bytes do not follow the schema.
    """
    reader = _Reader(payload)
    owner = reader.text()
    try:
        expire_at = _from_millis(reader.i64())
    except OverflowError as exc:
        raise LicenceCorruptedError("Licence expiry is out of range") from exc
    features = tuple(reader.text() for _ in range(reader.u32()))
    if not reader.exhausted:
        raise LicenceCorruptedError("Unexpected bytes after licence payload")
    return ProductLicence(owner=owner, expire_at=expire_at, features=features)


def _xor(data: bytes) -> bytes:
    return bytes(b ^ XOR_MASK for b in data)


class LicenceDocumentCodec:
    """Write and read signed licence documents."""

    def __init__(self, engine: SignatureEngine):
        self._engine = engine

    def encode(self, licence: ProductLicence) -> str:
        """Sign ``licence`` and return the document text.

        Raises:
            ConfigurationError: If the engine has no private key.
        """
        payload = encode_payload(licence)
        signature = self._engine.sign(payload)
        envelope = _U32.pack(len(signature)) + signature + payload
        encoded = base64.b64encode(_xor(envelope)).decode("ascii")

        lines = [LICENCE_START]
        lines.extend(
            encoded[i:i + LINE_WIDTH] for i in range(0, len(encoded), LINE_WIDTH)
        )
        lines.append(LICENCE_END)
        return "\n".join(lines) + "\n\n"

    save_licence = encode

    def decode(self, text: str) -> Optional[ProductLicence]:
        """Return the licence held in ``text``, or None if it is not valid.

        Raises:
            LicenceCorruptedError: If the payload is correctly signed but
                cannot be parsed.
        """
        body = self._extract_body(text)
        if body is None:
            logger.info("Licence markers not found")
            return None

        try:
            raw = base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            logger.info("Licence body is not valid base64")
            return None
        # The decoder ignores the unused bits of the last quantum.
        if base64.b64encode(raw).decode("ascii") != body:
            logger.info("Licence body is not canonical base64")
            return None
        envelope = _xor(raw)

        if len(envelope) < _U32.size:
            return None
        signature_length = _U32.unpack(envelope[:_U32.size])[0]
        if _U32.size + signature_length > len(envelope):
            logger.info("Licence envelope is truncated")
            return None
        signature = envelope[_U32.size:_U32.size + signature_length]
        payload = envelope[_U32.size + signature_length:]

        if not self._engine.verify(payload, signature):
            logger.info("Licence signature verification failed")
            return None

        return decode_payload(payload)

    load_licence = decode

    def decode_file(self, path: str) -> Optional[ProductLicence]:
        """Read a licence document from disk and decode it.

        Raises:
            SecurityError: If the file cannot be read.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SecurityError("Licence error") from exc
        return self.decode(text)

    @staticmethod
    def _extract_body(text: str) -> Optional[str]:
        collected = []
        started = False
        for line in text.splitlines():
            if not started:
                started = LICENCE_START in line
                continue
            if LICENCE_END in line:
                return "".join(part.strip() for part in collected)
            collected.append(line)
        return None
