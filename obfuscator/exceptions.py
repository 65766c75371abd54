"""
Exception hierarchy for the obfuscator.

All errors are fatal and signal misconfiguration or policy violations.
Cipher integrity failures raised by the `cryptography` package are not
wrapped and surface unchanged from decode.
"""


class ObfuscatorError(Exception):
    """Base class for all obfuscator errors."""


class ConfigurationError(ObfuscatorError):
    """Raised when algorithm configuration cannot be resolved or applied."""


class NameMismatchError(ConfigurationError):
    """An algorithm entry's `name` differs from its registry key."""

    def __init__(self, alg: str):
        self.alg = alg
        super().__init__(f"Name incorrectly set for alg: {alg}")


class InvalidAlgNameError(ConfigurationError):
    """An algorithm name cannot be carried in a token."""

    def __init__(self, alg: str):
        self.alg = alg
        super().__init__(f"Invalid alg name (must not contain ':'): {alg}")


class UnknownAlgError(ConfigurationError):
    """An algorithm name is not present in the registry."""

    def __init__(self, alg: str):
        self.alg = alg
        super().__init__(f"Unknown alg: {alg}")


class CircularDependencyError(ConfigurationError):
    """Raised when `base` references form a cycle.

    Attributes:
        pending: Names of the algorithms that could not be resolved
    """

    def __init__(self, pending: list[str]):
        self.pending = pending
        super().__init__("Circular dependency in alg config")


class AlreadyConfiguredError(ConfigurationError):
    """The obfuscator has already consumed its one configuration."""

    def __init__(self):
        super().__init__("Already configured")


class ConfigFileError(ConfigurationError):
    """An override layer could not be read from its source."""

    def __init__(self, source: str, details: str):
        self.source = source
        super().__init__(f"Unable to load config from {source}: {details}")


class PasswordTooShortError(ObfuscatorError):
    """The password of an algorithm is shorter than the minimum length."""

    def __init__(self, alg: str):
        self.alg = alg
        super().__init__(f"Password is too short: {alg}")


class AlgExpiredError(ObfuscatorError):
    """The algorithm is past its `doNotEncodeAfter` date."""

    def __init__(self, alg: str):
        self.alg = alg
        super().__init__(f"Alg has expired for encoding: {alg}")


class MalformedTokenError(ObfuscatorError):
    """A token does not have exactly three `:` separated segments."""

    def __init__(self):
        super().__init__("Malformed encoded string")


class UnknownCipherError(ObfuscatorError):
    def __init__(self, cipher: str):
        self.cipher = cipher
        super().__init__(f"Unknown cipher: {cipher}")


class UnknownHashError(ObfuscatorError):
    def __init__(self, hash_name: str):
        self.hash_name = hash_name
        super().__init__(f"Unknown hash: {hash_name}")


class UnknownEncodingError(ObfuscatorError):
    def __init__(self, encoding: str):
        self.encoding = encoding
        super().__init__(f"Unknown encoding: {encoding}")
