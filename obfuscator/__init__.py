"""
Config value obfuscation.

Handles:
- Algorithm registry resolution (overrides, `base` inheritance)
- Password-based key derivation (PBKDF2), cached per algorithm
- Token encoding/decoding (`alg:iv:ciphertext`)
- Expiry of algorithms for encoding
"""

from .engine import Decoded, Obfuscator, default_obfuscator
from .exceptions import (
    AlgExpiredError,
    AlreadyConfiguredError,
    CircularDependencyError,
    ConfigFileError,
    ConfigurationError,
    InvalidAlgNameError,
    MalformedTokenError,
    NameMismatchError,
    ObfuscatorError,
    PasswordTooShortError,
    UnknownAlgError,
    UnknownCipherError,
    UnknownEncodingError,
    UnknownHashError,
)
from .key_cache import KeyDerivationCache
from .resolver import ConfigResolver
from .settings import DEFAULT_CONFIG, AlgSettings, ObfuscatorConfig

__all__ = [
    "Obfuscator",
    "Decoded",
    "default_obfuscator",
    "ConfigResolver",
    "KeyDerivationCache",
    "AlgSettings",
    "ObfuscatorConfig",
    "DEFAULT_CONFIG",
    "ObfuscatorError",
    "ConfigurationError",
    "NameMismatchError",
    "InvalidAlgNameError",
    "UnknownAlgError",
    "CircularDependencyError",
    "AlreadyConfiguredError",
    "ConfigFileError",
    "PasswordTooShortError",
    "AlgExpiredError",
    "MalformedTokenError",
    "UnknownCipherError",
    "UnknownHashError",
    "UnknownEncodingError",
]
