"""Shared fixtures for obfuscator tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from obfuscator import DEFAULT_CONFIG, Obfuscator

# Keeps key derivation fast; production defaults use 100k iterations
FAST_ITERATIONS = 1000

LONG_STRING = "1234567890" * 10


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def fast_defaults_layer() -> dict[str, Any]:
    """The default registry as a raw layer with a low iteration count."""
    layer = DEFAULT_CONFIG.to_dict()
    layer["algSettings"]["DEFAULT"]["iterations"] = FAST_ITERATIONS
    return layer


def write_layer(directory: Path, name: str, layer: dict[str, Any]) -> Path:
    """Write a JSON override layer to disk."""
    path = directory / name
    path.write_text(json.dumps(layer), encoding="utf-8")
    return path


def swap_alg(token: str, new_alg: str) -> str:
    """Replace the algorithm prefix of a token."""
    _, rest = token.split(":", 1)
    return f"{new_alg}:{rest}"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fast_defaults() -> dict[str, Any]:
    return fast_defaults_layer()


@pytest.fixture
def make_obfuscator(fast_defaults) -> Callable[..., Obfuscator]:
    """Factory for obfuscators built on the fast default registry."""
    def factory(*overrides, **kwargs) -> Obfuscator:
        kwargs.setdefault("defaults", fast_defaults)
        return Obfuscator(*overrides, **kwargs)
    return factory


@pytest.fixture
def inherited_obfuscator(make_obfuscator) -> Obfuscator:
    """`foo` inherits everything from DEFAULT, `bar` inherits from foo with its own password."""
    return make_obfuscator({
        "algSettings": {
            "foo": {"name": "foo", "base": "DEFAULT"},
            "bar": {"name": "bar", "base": "foo", "password": "UnitTests"},
        }
    })
