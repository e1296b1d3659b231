"""
Encryption service for secrets kept on disk.

WHAT: Symmetric encryption using Fernet.

WHY: When no platform secret store is available, the database passphrase
is written to a file. That file must never hold the passphrase in clear.

HOW: Fernet (from the cryptography library) provides AES-128-CBC with
HMAC-SHA256 authentication, so a tampered or wrong-key file fails loudly
instead of yielding garbage.
"""

import logging

from cryptography.fernet import Fernet, InvalidToken

from propman.core.exceptions import EncryptionError

logger = logging.getLogger(__name__)


class EncryptionService:
    """
    Encrypts and decrypts short secrets.

    Security notes:
    - Never log plaintext values
    - Invalid tokens raise EncryptionError (no silent failures)
    """

    def __init__(self, key: str):
        """
        Args:
            key: Fernet key (32 bytes, URL-safe base64-encoded)

        Raises:
            EncryptionError: If key is missing or invalid.
        """
        if not key:
            raise EncryptionError(message="Encryption key not configured")

        try:
            self._fernet = Fernet(key.encode())
        except (ValueError, TypeError) as e:
            logger.error(f"Invalid encryption key format: {type(e).__name__}")
            raise EncryptionError(message="Invalid encryption key format")

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            raise EncryptionError(message="Cannot encrypt empty value")
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """
        Raises:
            EncryptionError: If the token is invalid or the key is wrong
        """
        if not ciphertext:
            raise EncryptionError(message="Cannot decrypt empty value")

        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            logger.warning("Decryption failed: invalid token or wrong key")
            raise EncryptionError(message="Failed to decrypt data")

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode()
