"""Read key material from storage by logical name."""

import logging
from pathlib import Path
from typing import Optional

from licence.errors import SecurityError
from licence.signature import DEFAULT_HASH, SignatureEngine

logger = logging.getLogger(__name__)


class FileKeyStore:
    """Key files kept in a single directory."""

    def __init__(self, directory: str):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def read(self, name: str) -> bytes:
        """Return the raw bytes stored under ``name``.

        Raises:
            SecurityError: If the file cannot be read for any reason.
        """
        path = self._directory / name
        try:
            return path.read_bytes()
        except OSError as exc:
            raise SecurityError(f"Invalid key material: {name}") from exc

    def write(self, name: str, data: bytes) -> Path:
        """Store ``data`` under ``name`` and return the file path."""
        path = self._directory / name
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise SecurityError(f"Cannot write key material: {name}") from exc
        return path


def load_engine(
    store: FileKeyStore,
    public_name: str,
    private_name: Optional[str] = None,
    hash_name: str = DEFAULT_HASH,
) -> SignatureEngine:
    """Build a SignatureEngine from the keys held in ``store``.

    Leave ``private_name`` unset on the verifying side; the engine is then
    verify-only.
    """
    public_key = store.read(public_name)
    private_key = store.read(private_name) if private_name else None
    logger.debug("Loading key material from %s", store.directory)
    return SignatureEngine.load(public_key, private_key, hash_name=hash_name)
