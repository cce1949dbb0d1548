"""Encryption of third-party credentials stored on user records."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from loguru import logger


class CredentialCipher:
    """Fernet encryption keyed by ``security.secret_key``.

    Any string can serve as the secret; it is stretched to a Fernet key with
    SHA-256, so rotating the secret makes previously stored tokens unreadable.
    """

    def __init__(self, secret_key: str) -> None:
        key = base64.urlsafe_b64encode(hashlib.sha256(secret_key.encode("utf-8")).digest())
        self._fernet = Fernet(key)

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("ascii")

    def decrypt(self, value: str) -> str | None:
        """Plaintext of ``value``, or None when it was encrypted with another key."""
        try:
            return self._fernet.decrypt(value.encode("ascii")).decode("utf-8")
        except InvalidToken:
            logger.warning("Stored credential cannot be decrypted, it must be entered again")
            return None
