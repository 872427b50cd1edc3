"""Helpers for reading and writing nested, JSON-like configuration trees."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

_log = logging.getLogger(__name__)


def _json_path(fields: Sequence[str]) -> str:
    return "." + ".".join(fields)


def _lookup(obj: Mapping[str, Any], fields: Sequence[str]) -> tuple[Any, bool]:
    """Walk ``fields`` into ``obj`` without copying.

    Returns ``(value, found)``; raises ``TypeError`` when an intermediate
    value is not a mapping.
    """
    value: Any = obj
    for depth, name in enumerate(fields):
        if not isinstance(value, Mapping):
            raise TypeError(
                f"{_json_path(fields[: depth + 1])} accessor error: {value!r} "
                f"is of the type {type(value).__name__}, expected map"
            )
        if name not in value:
            return None, False
        value = value[name]
    return value, True


def nested_field_copy(obj: Mapping[str, Any] | None, *fields: str) -> tuple[Any, bool]:
    """Return a deep copy of the value at ``fields`` and whether it was found."""
    if obj is None:
        return None, False
    value, found = _lookup(obj, fields)
    if not found:
        return None, False
    return copy.deepcopy(value), True


def nested_string(obj: Mapping[str, Any] | None, *fields: str) -> tuple[str, bool]:
    """Return the string at ``fields`` and whether it was found."""
    if obj is None:
        return "", False
    value, found = _lookup(obj, fields)
    if not found:
        return "", False
    if not isinstance(value, str):
        raise TypeError(
            f"{_json_path(fields)} accessor error: {value!r} "
            f"is of the type {type(value).__name__}, expected string"
        )
    return value, True


def nested_slice(obj: Mapping[str, Any] | None, *fields: str) -> tuple[list[Any] | None, bool]:
    """Return a copy of the list at ``fields`` and whether it was found."""
    if obj is None:
        return None, False
    value, found = _lookup(obj, fields)
    if not found:
        return None, False
    if not isinstance(value, list):
        raise TypeError(
            f"{_json_path(fields)} accessor error: {value!r} "
            f"is of the type {type(value).__name__}, expected list"
        )
    return copy.deepcopy(value), True


def set_nested_field(obj: dict[str, Any], value: Any, *fields: str) -> None:
    """Store a deep copy of ``value`` at ``fields``, creating maps on the way."""
    if not fields:
        raise ValueError("at least one field is required")
    current = obj
    for depth, name in enumerate(fields[:-1]):
        if name in current:
            child = current[name]
            if not isinstance(child, dict):
                raise TypeError(
                    f"value cannot be set because {_json_path(fields[: depth + 1])} is not a map"
                )
        else:
            child = {}
            current[name] = child
        current = child
    current[fields[-1]] = copy.deepcopy(value)


def pruned(config: Mapping[str, Any] | None, *paths: Sequence[str]) -> Any:
    """Return a new tree holding only the values found under ``paths``."""
    if config is None or not paths:
        return config
    result: dict[str, Any] = {}
    for path in paths:
        try:
            value, found = nested_field_copy(config, *path)
        except TypeError:
            continue
        if found:
            set_nested_field(result, value, *path)
    return result


def unstructured_config_from(observed_bytes: bytes, *prefix: str) -> bytes:
    """Return the JSON of the observed configuration subtree under ``prefix``."""
    if not prefix:
        return observed_bytes

    try:
        decoded = json.loads(observed_bytes)
    except (ValueError, TypeError) as err:
        _log.debug("decode of existing config failed with error: %s", err)
        decoded = {}
    if decoded is not None and not isinstance(decoded, dict):
        _log.debug("decode of existing config failed: not a JSON object")
        decoded = {}

    actual, _ = nested_field_copy(decoded, *prefix)
    return json.dumps(actual, separators=(",", ":"), sort_keys=True).encode()


def _object_name(obj: Any) -> str | None:
    if isinstance(obj, Mapping):
        metadata = obj.get("metadata")
        if isinstance(metadata, Mapping):
            name = metadata.get("name")
            return name if isinstance(name, str) else None
        return None
    metadata = getattr(obj, "metadata", None)
    if metadata is None:
        return None
    name = metadata.get("name") if isinstance(metadata, Mapping) else getattr(metadata, "name", None)
    return name if isinstance(name, str) else None


def names_filter(*names: str) -> Callable[[Any], bool]:
    """Build an event filter that accepts objects whose metadata name is in ``names``."""
    name_set = frozenset(names)

    def _filter(obj: Any) -> bool:
        name = _object_name(obj)
        return name is not None and name in name_set

    return _filter