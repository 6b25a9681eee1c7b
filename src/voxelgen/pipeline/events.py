"""Fire-and-forget notifications announcing the decoration phase of a chunk."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple, Type, TypeVar

from .models import Chunk
from .populators.base import Populator


@dataclass(frozen=True)
class PopulateChunkPre:
    """Posted before decoration with the resolved populators, in run order."""

    populators: Tuple[Populator, ...]
    chunk: Chunk


@dataclass(frozen=True)
class PopulateChunkPost:
    """Posted after decoration with the flags left set by the pass."""

    applied_flags: Tuple[str, ...]
    chunk: Chunk


E = TypeVar("E")
Listener = Callable[[E], None]


class EventManager:
    """Type-keyed listener table; listener return values are ignored."""

    def __init__(self) -> None:
        self._listeners: Dict[type, List[Callable[[object], None]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type[E], listener: Listener) -> None:
        with self._lock:
            self._listeners.setdefault(event_type, []).append(listener)

    def unsubscribe(self, event_type: Type[E], listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(event_type, [])
            if listener in listeners:
                listeners.remove(listener)

    def post(self, event: object) -> None:
        with self._lock:
            listeners = list(self._listeners.get(type(event), ()))
        for listener in listeners:
            listener(event)


__all__ = ["EventManager", "PopulateChunkPost", "PopulateChunkPre"]
