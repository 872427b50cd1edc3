"""In-memory object stores, an event recorder and the lister bundle used by observers."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from authop.conditions import NotFoundError

OAUTH_SERVER_CONFIG_PREFIX = "oauthServer"


def _metadata(obj: Any) -> tuple[str, str | None]:
    """Return ``(namespace, name)`` from an object's metadata."""
    if isinstance(obj, Mapping):
        metadata = obj.get("metadata")
    else:
        metadata = getattr(obj, "metadata", None)
    if metadata is None:
        return "", None
    if isinstance(metadata, Mapping):
        namespace = metadata.get("namespace") or ""
        name = metadata.get("name")
    else:
        namespace = getattr(metadata, "namespace", "") or ""
        name = getattr(metadata, "name", None)
    return namespace, name if isinstance(name, str) and name else None


class ObjectStore:
    """A read cache of objects keyed by namespace and name."""

    def __init__(self, resource: str = "", objects: Iterable[Any] = ()) -> None:
        self.resource = resource
        self._objects: dict[tuple[str, str], Any] = {}
        for obj in objects:
            self.add(obj)

    def add(self, obj: Any) -> None:
        """Store ``obj``, replacing any object with the same namespace and name."""
        namespace, name = _metadata(obj)
        if name is None:
            raise ValueError("object has no metadata name")
        self._objects[(namespace, name)] = obj

    def get(self, name: str, namespace: str = "") -> Any:
        """Return the object with ``name`` in ``namespace``; raise NotFoundError if absent."""
        try:
            return self._objects[(namespace, name)]
        except KeyError:
            raise NotFoundError(self.resource, name) from None

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, key: object) -> bool:
        return key in self._objects


@dataclass(frozen=True)
class Event:
    reason: str
    message: str


class InMemoryRecorder:
    """Records events in memory, in the order they were emitted."""

    def __init__(self, source: str = "") -> None:
        self.source = source
        self._events: list[Event] = []

    def eventf(self, reason: str, message: str, *args: Any) -> None:
        """Record an event whose message is formatted printf-style with ``args``."""
        self._events.append(Event(reason, message % args if args else message))

    def events(self) -> list[Event]:
        """Return a copy of the recorded events."""
        return list(self._events)


@dataclass
class Listers:
    """The caches that config observers read from."""

    secrets_lister: Any = None
    config_map_lister: Any = None
    api_server_lister: Any = None
    console_lister: Any = None
    infrastructure_lister: Any = None
    oauth_lister: Any = None
    ingress_lister: Any = None
    resource_sync: Any = None
    pre_run_caches_synced: list[Callable[[], bool]] = field(default_factory=list)