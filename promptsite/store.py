"""In-process project table plus its append-only activity log.

Nothing here is durable: records and events live for the lifetime of the
process. Callers that read a record, modify it and save it back race with
each other; the later ``save`` wins.
"""
from __future__ import annotations

import copy
import itertools
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

EVENT_CREATE = "create"
EVENT_UPDATE = "update"
EVENT_DELETE = "delete"
EVENT_TYPES = (EVENT_CREATE, EVENT_UPDATE, EVENT_DELETE)


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ProjectEvent:
    id: str
    type: str
    timestamp: str
    seq: int

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "type": self.type, "timestamp": self.timestamp}


class ProjectStore(ABC):
    @abstractmethod
    def save(self, project_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def exists(self, project_id: str) -> bool:
        ...

    @abstractmethod
    def list(self) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def delete(self, project_id: str) -> bool:
        ...

    @abstractmethod
    def events(self, limit: int = 100) -> List[ProjectEvent]:
        ...


class MemoryProjectStore(ProjectStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._projects: Dict[str, Dict[str, Any]] = {}
        self._events: List[ProjectEvent] = []
        self._seq = itertools.count(1)

    def _append_event(self, project_id: str, event_type: str) -> None:
        self._events.append(ProjectEvent(project_id, event_type, utc_now_iso(), next(self._seq)))

    def save(self, project_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(record)
        with self._lock:
            is_new = project_id not in self._projects
            self._projects[project_id] = stored
            self._append_event(project_id, EVENT_CREATE if is_new else EVENT_UPDATE)
        return copy.deepcopy(stored)

    def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._projects.get(project_id)
            return copy.deepcopy(record) if record is not None else None

    def exists(self, project_id: str) -> bool:
        with self._lock:
            return project_id in self._projects

    def list(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._projects.values()]

    def delete(self, project_id: str) -> bool:
        with self._lock:
            if project_id not in self._projects:
                return False
            del self._projects[project_id]
            self._append_event(project_id, EVENT_DELETE)
            return True

    def events(self, limit: int = 100) -> List[ProjectEvent]:
        if limit <= 0:
            return []
        with self._lock:
            ordered = sorted(self._events, key=lambda e: (e.timestamp, e.seq), reverse=True)
        return ordered[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._projects)


_default_store: ProjectStore = MemoryProjectStore()


def get_store() -> ProjectStore:
    return _default_store


def _reset() -> None:
    """Used by tests to start from an empty table."""
    global _default_store
    _default_store = MemoryProjectStore()
