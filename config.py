"""
Configuration for the config obfuscator tooling.
"""

import os
import json
from pathlib import Path
from typing import Any, Optional
from dataclasses import dataclass, field

from obfuscator.exceptions import ConfigFileError

# Application version - update this for each release
VERSION = "1.0.0"


def _split_paths(value: Optional[str]) -> list[Path]:
    if not value:
        return []
    return [Path(p) for p in value.split(os.pathsep) if p]


@dataclass
class Config:
    """Process configuration, read from the environment."""

    # JSON override files, applied in order (os.pathsep separated)
    CONFIG_FILES: list[Path] = field(default_factory=lambda: _split_paths(os.getenv("OBFUSCATOR_CONFIG_FILE")))

    # Inline JSON override, applied after the files
    CONFIG_JSON: Optional[str] = field(default_factory=lambda: os.getenv("OBFUSCATOR_CONFIG_JSON"))

    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("OBFUSCATOR_LOG_LEVEL", "WARNING"))

    def load_overrides(self, extra_files: Optional[list[Path]] = None) -> list[dict[str, Any]]:
        """
        Read the override layers for the obfuscator.

        Args:
            extra_files: Additional JSON files applied after the environment layers

        Returns:
            Layers in the order they should be applied

        Raises:
            ConfigFileError: If a source is missing or not a JSON object
        """
        layers = [load_layer_file(path) for path in self.CONFIG_FILES]

        if self.CONFIG_JSON:
            layers.append(parse_layer(self.CONFIG_JSON, "OBFUSCATOR_CONFIG_JSON"))

        layers.extend(load_layer_file(path) for path in extra_files or [])
        return layers


def parse_layer(text: str, source: str) -> dict[str, Any]:
    try:
        layer = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigFileError(source, f"invalid JSON ({e})") from e

    if not isinstance(layer, dict):
        raise ConfigFileError(source, "expected a JSON object")
    return layer


def load_layer_file(path: Path) -> dict[str, Any]:
    """Load one JSON override layer from disk."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(str(path), e.strerror or str(e)) from e
    return parse_layer(text, str(path))


# Global config instance
config = Config()
