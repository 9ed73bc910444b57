from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from .errors import CipherError
from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class FernetEncrypter:
    """
    Symmetric field cipher backed by Fernet (AES-128-CBC + HMAC-SHA256).

    Ciphertexts are url-safe base64 text, so they can be stored in plain
    TEXT columns. Fernet instances hold no mutable state and are safe to
    share between threads.
    """

    def __init__(self, key: Union[str, bytes]) -> None:
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise CipherError("invalid encryption key") from e

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as e:
            raise CipherError("ciphertext could not be decrypted") from e


# PUBLIC_INTERFACE
def get_encrypter(key: Optional[str]) -> FernetEncrypter:
    """
    Build the configured encrypter. Without a key an ephemeral one is
    generated, which makes anything stored unreadable after a restart.
    """
    if not key:
        logger.warning("ENCRYPTION_KEY is not set; using an ephemeral key")
        key = FernetEncrypter.generate_key()
    return FernetEncrypter(key)


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_configured_encrypter() -> FernetEncrypter:
    """Process-wide encrypter built from settings, shared by storage and readers."""
    return get_encrypter(get_settings().encryption_key)
