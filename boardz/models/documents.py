# Rev 0.1.0
"""Raw documents, write operations and the logical path layout.

Layout:
    contacts/{contactId}
    tasks/{taskId}
    tasks/{taskId}/subtasks/{subtaskId}
    tasks/{taskId}/assigns/{assignId}
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .types import WriteKind

CONTACTS = "contacts"
TASKS = "tasks"
SUBTASKS = "subtasks"
ASSIGNS = "assigns"


def split_path(path: str) -> List[str]:
    parts = path.strip("/").split("/")
    if not path or any(not p for p in parts):
        raise ValueError(f"malformed document path: {path!r}")
    return parts


def is_collection_path(path: str) -> bool:
    return len(split_path(path)) % 2 == 1


def parent_collection(path: str) -> str:
    """Collection path holding the document at `path`."""
    return "/".join(split_path(path)[:-1])


def contact_path(contact_id: str) -> str:
    return f"{CONTACTS}/{contact_id}"


def task_path(task_id: str) -> str:
    return f"{TASKS}/{task_id}"


def subtasks_path(task_id: str) -> str:
    return f"{TASKS}/{task_id}/{SUBTASKS}"


def assigns_path(task_id: str) -> str:
    return f"{TASKS}/{task_id}/{ASSIGNS}"


@dataclass(frozen=True)
class Document:
    path: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return split_path(self.path)[-1]

    @property
    def collection_path(self) -> str:
        return parent_collection(self.path)

    @property
    def collection_id(self) -> str:
        return split_path(self.path)[-2]


@dataclass(frozen=True)
class WriteOp:
    kind: WriteKind
    path: str
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def set(cls, path: str, data: Dict[str, Any]) -> "WriteOp":
        return cls("set", path, dict(data))

    @classmethod
    def update(cls, path: str, data: Dict[str, Any]) -> "WriteOp":
        return cls("update", path, dict(data))

    @classmethod
    def delete(cls, path: str) -> "WriteOp":
        return cls("delete", path)
