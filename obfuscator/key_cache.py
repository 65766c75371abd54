"""
Cache of password-derived keys, one per algorithm name.
"""

import logging
import threading

from .exceptions import PasswordTooShortError
from .primitives import derive_key, get_cipher_info
from .settings import MIN_PASSWORD_LENGTH, AlgSettings

logger = logging.getLogger(__name__)


class KeyDerivationCache:
    """Derives each algorithm's key once and keeps it until cleared."""

    def __init__(self):
        self._keys: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def __contains__(self, alg: str) -> bool:
        return alg in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def get_or_derive(self, settings: AlgSettings) -> bytes:
        """
        Look up the key for `settings.name`, deriving it on first use.

        A cached key is returned even if `settings` differ from the ones it
        was derived with; the owner clears the cache when the registry changes.

        Raises:
            PasswordTooShortError: If the password is shorter than 8 characters
        """
        with self._lock:
            key = self._keys.get(settings.name)
            if key is None:
                key = self.generate_key(settings)
                self._keys[settings.name] = key
            return key

    @staticmethod
    def generate_key(settings: AlgSettings) -> bytes:
        """Derive a key for an algorithm, bypassing the cache."""
        if len(settings.password or "") < MIN_PASSWORD_LENGTH:
            raise PasswordTooShortError(settings.name)

        info = get_cipher_info(settings.cipher)
        logger.debug(f"Deriving {info.key_length}-byte key for alg {settings.name} ({settings.iterations} iterations)")
        return derive_key(settings.password, settings.salt, settings.iterations, settings.hash, info.key_length)

    def clear(self) -> None:
        with self._lock:
            self._keys.clear()
