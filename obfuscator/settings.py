"""
Algorithm settings and the built-in default registry.

Configuration arrives as plain mappings using the wire keys
(`stringEncoding`, `binEncoding`, `doNotEncodeAfter`, `alg`, ...). Once
resolved, every algorithm is an immutable `AlgSettings` and the registry is
an immutable `ObfuscatorConfig`.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

# Wire key -> attribute name. Attribute names are accepted on input as well.
FIELD_ALIASES = {
    "name": "name",
    "base": "base",
    "notes": "notes",
    "password": "password",
    "salt": "salt",
    "iterations": "iterations",
    "hash": "hash",
    "alg": "cipher",
    "cipher": "cipher",
    "stringEncoding": "string_encoding",
    "string_encoding": "string_encoding",
    "binEncoding": "bin_encoding",
    "bin_encoding": "bin_encoding",
    "doNotEncodeAfter": "do_not_encode_after",
    "do_not_encode_after": "do_not_encode_after",
}

CONFIG_ALIASES = {
    "defaultAlg": "default_alg",
    "default_alg": "default_alg",
    "algSettings": "alg_settings",
    "alg_settings": "alg_settings",
}

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class AlgSettings:
    """A fully resolved algorithm bundle (no `base` reference left)."""
    name: str
    notes: Optional[str] = None
    password: Optional[str] = None
    salt: Optional[str] = None
    iterations: Optional[int] = None
    hash: Optional[str] = None
    cipher: Optional[str] = None
    string_encoding: Optional[str] = None
    bin_encoding: Optional[str] = None
    do_not_encode_after: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AlgSettings":
        """Build settings from a flattened entry (wire or attribute keys)."""
        entry = normalize_entry(data)
        entry.pop("base", None)
        return cls(**entry)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a wire-keyed dictionary, omitting unset fields."""
        wire = {
            "name": self.name,
            "notes": self.notes,
            "password": self.password,
            "salt": self.salt,
            "iterations": self.iterations,
            "hash": self.hash,
            "alg": self.cipher,
            "stringEncoding": self.string_encoding,
            "binEncoding": self.bin_encoding,
            "doNotEncodeAfter": self.do_not_encode_after,
        }
        return {key: value for key, value in wire.items() if value is not None}

    def describe(self) -> dict[str, Any]:
        """Public view of the settings with key material removed."""
        data = self.to_dict()
        data.pop("password", None)
        data.pop("salt", None)
        return data


@dataclass(frozen=True)
class ObfuscatorConfig:
    """A resolved registry: default algorithm name plus flattened settings."""
    default_alg: str
    alg_settings: Mapping[str, AlgSettings] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "alg_settings", MappingProxyType(dict(self.alg_settings)))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a raw configuration layer usable as resolver input."""
        return {
            "defaultAlg": self.default_alg,
            "algSettings": {name: settings.to_dict() for name, settings in self.alg_settings.items()},
        }


def normalize_entry(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map an algorithm entry onto attribute names, keeping declared `None` values.

    Unknown keys are dropped with a warning.
    """
    entry: dict[str, Any] = {}
    for key, value in data.items():
        attr = FIELD_ALIASES.get(key)
        if attr is None:
            logger.warning(f"Ignoring unknown alg setting: {key}")
            continue
        entry[attr] = value
    return entry


def normalize_layer(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Map a configuration layer onto `default_alg` / `alg_settings` keys."""
    normalized: dict[str, Any] = {}
    for key, value in layer.items():
        attr = CONFIG_ALIASES.get(key)
        if attr is None:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        if attr == "alg_settings":
            value = {name: normalize_entry(entry or {}) for name, entry in (value or {}).items()}
        normalized[attr] = value
    return normalized


DEFAULT_CONFIG = ObfuscatorConfig(
    default_alg="DEFAULT",
    alg_settings={
        "DEFAULT": AlgSettings(
            name="DEFAULT",
            notes=(
                "This is a default obfuscation password - it should only be used for insensitive data "
                "as anybody with source access can decode this - override it with a private "
                "password for production usage"
            ),
            password="fiQ7YCt7BTQ47aDotBFxpzSfibBjiI5BX21MeMUNugPRC9RQSwjDyWd4abiq0SNwhZbVmASGC6OxrJuS",
            salt="zDvGZz2epkEeSbxAeMFxobCfcjG2GAHIcZZ8WX3SfEYX4g2idD3VTQsrCQIC7QsyYE4B36tRKEm1hUib",
            iterations=100_000,
            hash="sha256",
            cipher="aes-256-cbc",
            string_encoding="utf8",
            bin_encoding="base64",
            do_not_encode_after=None,
        ),
    },
)
