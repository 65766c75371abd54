"""
Token encoding and decoding.

A token has the form `<alg>:<iv>:<ciphertext>`, where the IV and ciphertext
use the algorithm's binary encoding. Keys are derived lazily per algorithm
and cached until the registry is replaced.
"""

import logging
import threading
from typing import NamedTuple, Optional, Union

from .codecs import bytes_to_string, decode_binary, encode_binary, string_to_bytes
from .exceptions import AlgExpiredError, AlreadyConfiguredError, MalformedTokenError, UnknownAlgError
from .expiry import Clock, is_expired, utc_now
from .key_cache import KeyDerivationCache
from .primitives import decrypt, encrypt, get_cipher_info, random_bytes
from .resolver import ConfigResolver, Layer
from .settings import DEFAULT_CONFIG, AlgSettings, ObfuscatorConfig

logger = logging.getLogger(__name__)

BinaryLike = Union[bytes, bytearray, memoryview]

TOKEN_SEPARATOR = ":"


class Decoded(NamedTuple):
    """Result of decoding a token."""
    settings: AlgSettings
    data: bytes


class Obfuscator:
    """
    Encodes and decodes configuration secrets.

    Passing override layers to the constructor consumes the one allowed
    configuration. An instance created without overrides uses the default
    registry and may still be configured once with `configure`.
    """

    def __init__(
        self,
        *overrides: Optional[Layer],
        defaults: Union[ObfuscatorConfig, Layer] = DEFAULT_CONFIG,
        clock: Clock = utc_now,
    ):
        """
        Initialize the obfuscator.

        Args:
            *overrides: Configuration layers merged over `defaults`
            defaults: Base registry for every resolution
            clock: Returns the current instant, used for expiry checks
        """
        self._resolver = ConfigResolver(defaults)
        self._clock = clock
        self._lock = threading.Lock()
        self._configured = bool(overrides)
        # Registry and cache are swapped together
        self._state: tuple[ObfuscatorConfig, KeyDerivationCache] = (
            self._resolver.resolve(*overrides),
            KeyDerivationCache(),
        )

    def configure(self, *overrides: Optional[Layer]) -> None:
        """
        Replace the registry with one built from `overrides`.

        Raises:
            AlreadyConfiguredError: If configuration was already applied
            ConfigurationError: If the overrides do not resolve; the current
                registry is kept and configuration may be retried
        """
        with self._lock:
            if self._configured:
                logger.warning("Refusing to reconfigure an already configured obfuscator")
                raise AlreadyConfiguredError()

            registry = self._resolver.resolve(*overrides)
            _, old_cache = self._state
            self._state = (registry, KeyDerivationCache())
            old_cache.clear()
            self._configured = True

        logger.debug(f"Obfuscator configured with {len(registry.alg_settings)} alg(s)")

    @property
    def is_configured(self) -> bool:
        return self._configured

    @property
    def registry(self) -> ObfuscatorConfig:
        return self._state[0]

    @property
    def default_alg(self) -> str:
        return self.registry.default_alg

    @property
    def algorithms(self) -> list[str]:
        return list(self.registry.alg_settings)

    def settings(self, alg: Optional[str] = None) -> Optional[AlgSettings]:
        """Resolved settings for `alg` (default alg if omitted), or None."""
        registry = self.registry
        return registry.alg_settings.get(registry.default_alg if alg is None else alg)

    def get_key(self, settings: AlgSettings) -> bytes:
        """Derived key for an algorithm, via the cache."""
        return self._state[1].get_or_derive(settings)

    def encode(self, value: BinaryLike, alg: Optional[str] = None) -> str:
        """
        Encrypt raw bytes into a token.

        Args:
            value: Bytes to protect
            alg: Algorithm name; the default alg if omitted

        Raises:
            UnknownAlgError: If the algorithm is not registered
            AlgExpiredError: If the algorithm is past its expiry date
            PasswordTooShortError: If the algorithm password is too short
        """
        registry, cache = self._state
        settings = self._lookup(registry, registry.default_alg if alg is None else alg)
        return self._encode(settings, cache, bytes(value))

    def decode(self, token: str) -> Decoded:
        """
        Decrypt a token produced by `encode`.

        Raises:
            MalformedTokenError: If the token does not have three segments
            UnknownAlgError: If the token's algorithm is not registered
            PasswordTooShortError: If the algorithm password is too short
        """
        parts = token.split(TOKEN_SEPARATOR)
        if len(parts) != 3:
            raise MalformedTokenError()

        registry, cache = self._state
        settings = self._lookup(registry, parts[0])

        key = cache.get_or_derive(settings)
        iv = decode_binary(parts[1], settings.bin_encoding)
        ciphertext = decode_binary(parts[2], settings.bin_encoding)

        return Decoded(settings, decrypt(settings.cipher, key, iv, ciphertext))

    def encode_buffer(self, value: BinaryLike, alg: Optional[str] = None) -> str:
        return self.encode(value, alg)

    def decode_buffer(self, token: str) -> bytes:
        return self.decode(token).data

    def encode_string(self, value: str, alg: Optional[str] = None) -> str:
        """Encode text using the algorithm's string encoding."""
        registry, cache = self._state
        settings = self._lookup(registry, registry.default_alg if alg is None else alg)
        return self._encode(settings, cache, string_to_bytes(value, settings.string_encoding))

    def decode_string(self, token: str) -> str:
        settings, data = self.decode(token)
        return bytes_to_string(data, settings.string_encoding)

    @staticmethod
    def _lookup(registry: ObfuscatorConfig, alg: str) -> AlgSettings:
        settings = registry.alg_settings.get(alg)
        if settings is None:
            raise UnknownAlgError(alg)
        return settings

    def _encode(self, settings: AlgSettings, cache: KeyDerivationCache, data: bytes) -> str:
        if is_expired(settings.do_not_encode_after, self._clock()):
            logger.warning(f"Attempt to encode with expired alg {settings.name} (limit {settings.do_not_encode_after})")
            raise AlgExpiredError(settings.name)

        key = cache.get_or_derive(settings)
        iv = random_bytes(get_cipher_info(settings.cipher).iv_length)
        ciphertext = encrypt(settings.cipher, key, iv, data)

        return TOKEN_SEPARATOR.join([
            settings.name,
            encode_binary(iv, settings.bin_encoding),
            encode_binary(ciphertext, settings.bin_encoding),
        ])


# Shared instance using the default registry
default_obfuscator = Obfuscator()
