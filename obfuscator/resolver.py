"""
Resolution of algorithm configuration into a flat, immutable registry.

Override layers are merged over the defaults, then `base` references are
flattened with an iterative fixed point so cycles are detected without
recursion.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from .exceptions import (
    CircularDependencyError,
    ConfigurationError,
    InvalidAlgNameError,
    NameMismatchError,
    UnknownAlgError,
)
from .settings import DEFAULT_CONFIG, AlgSettings, ObfuscatorConfig, normalize_layer

logger = logging.getLogger(__name__)

Layer = Mapping[str, Any]

# Fields an entry may declare as empty without falling back to its base
DECLARED_FIELDS = ("password",)


def merge_fields(target: dict[str, Any], source: Mapping[str, Any], declared: Iterable[str] = ()) -> dict[str, Any]:
    """
    Merge `source` into `target`, field by field.

    A `None` value in `source` means "not set" and leaves `target` alone,
    unless the key is listed in `declared`, in which case presence alone wins.

    Returns:
        The updated `target`
    """
    declared = set(declared)
    for key, value in source.items():
        if value is None and key not in declared:
            continue
        target[key] = value
    return target


class ConfigResolver:
    """Builds a resolved registry from defaults plus override layers."""

    def __init__(self, defaults: Union[ObfuscatorConfig, Layer] = DEFAULT_CONFIG):
        self.defaults = defaults

    def resolve(self, *layers: Optional[Layer]) -> ObfuscatorConfig:
        """
        Merge, validate and flatten the configuration.

        Args:
            *layers: Override layers applied in order over the defaults;
                `None` layers are skipped

        Returns:
            A new resolved registry

        Raises:
            NameMismatchError: An entry's name differs from its key
            InvalidAlgNameError: A name contains ':'
            UnknownAlgError: A `base` refers to a missing algorithm
            CircularDependencyError: `base` references form a cycle
        """
        defaults = self.defaults.to_dict() if isinstance(self.defaults, ObfuscatorConfig) else self.defaults
        overrides = [normalize_layer(layer) for layer in layers if layer is not None]

        default_alg, candidates = self._merge_layers([normalize_layer(defaults), *overrides])
        self._check_names(candidates)
        self._guard_passwords(candidates, overrides)
        flattened = self._flatten(candidates)

        if not default_alg:
            raise ConfigurationError("No default alg configured")

        return ObfuscatorConfig(
            default_alg=default_alg,
            alg_settings={name: AlgSettings.from_dict(entry) for name, entry in flattened.items()},
        )

    @staticmethod
    def _merge_layers(layers: list[dict[str, Any]]) -> tuple[Optional[str], dict[str, dict[str, Any]]]:
        default_alg = None
        candidates: dict[str, dict[str, Any]] = {}

        for layer in layers:
            if layer.get("default_alg") is not None:
                default_alg = layer["default_alg"]
            for name, entry in (layer.get("alg_settings") or {}).items():
                merge_fields(candidates.setdefault(name, {}), entry)

        return default_alg, candidates

    @staticmethod
    def _check_names(candidates: Mapping[str, Mapping[str, Any]]) -> None:
        for name, entry in candidates.items():
            if entry.get("name") != name:
                raise NameMismatchError(name)
            if ":" in name:
                raise InvalidAlgNameError(name)

    @staticmethod
    def _guard_passwords(candidates: dict[str, dict[str, Any]], overrides: list[dict[str, Any]]) -> None:
        # A layer that declares a password owns it, even when the value is empty
        for layer in overrides:
            for name, entry in (layer.get("alg_settings") or {}).items():
                if "password" in entry:
                    candidates[name]["password"] = entry["password"]

    @staticmethod
    def _flatten(candidates: Mapping[str, Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
        resolved: dict[str, dict[str, Any]] = {}
        pending = list(candidates)
        passes = 0

        while pending:
            passes += 1
            processed = 0
            waiting = []

            for name in pending:
                entry = candidates[name]
                base = entry.get("base")

                if base:
                    if base not in candidates:
                        raise UnknownAlgError(base)
                    if base not in resolved:
                        waiting.append(name)
                        continue

                flat = dict(resolved[base]) if base else {}
                merge_fields(flat, entry, declared=DECLARED_FIELDS)
                flat.pop("base", None)
                resolved[name] = flat
                processed += 1

            if waiting and not processed:
                raise CircularDependencyError(waiting)
            pending = waiting

        logger.debug(f"Resolved {len(resolved)} alg(s) in {passes} pass(es)")
        return resolved
