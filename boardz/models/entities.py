# Rev 0.1.0
"""Entities decoded at the store boundary (Rev 0.1.0)

Raw documents are untyped dicts. Everything above the repositories layer
works with these frozen dataclasses; decode_* fills missing optional fields
with their defaults, encode_* produces the persisted field names.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Dict, Iterable, Optional, Tuple

from ..utils.logging_setup import get_logger
from .documents import Document
from .types import TaskStatus, TaskType, PRIORITY_MEDIUM

_log = get_logger("entities")


@dataclass(frozen=True)
class Contact:
    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    color: str = ""
    is_user: bool = False


@dataclass(frozen=True)
class Task:
    id: str
    type: TaskType = TaskType.USER_STORY
    status: TaskStatus = TaskStatus.TODO
    date: Optional[date] = None
    title: str = ""
    description: str = ""
    priority: int = PRIORITY_MEDIUM


@dataclass(frozen=True)
class Subtask:
    id: str
    title: str = ""
    done: bool = False


@dataclass(frozen=True)
class SubtaskDraft:
    """A subtask row as typed into the editor: no document id yet."""
    title: str
    done: bool = False


@dataclass(frozen=True)
class Assignment:
    id: str
    contact_id: str


@dataclass(frozen=True)
class Assignee:
    contact_id: str
    name: str
    initials: str
    color: str


@dataclass(frozen=True)
class BoardTask(Task):
    assigns: Tuple[Assignee, ...] = ()
    subtasks: Tuple[Subtask, ...] = ()
    subtasks_total: int = 0
    subtasks_done: int = 0
    progress: int = 0

    @classmethod
    def build(cls, task: Task, subtasks: Iterable[Subtask], assigns: Iterable[Assignee]) -> "BoardTask":
        subs = tuple(subtasks)
        done = sum(1 for s in subs if s.done)
        return cls(
            id=task.id,
            type=task.type,
            status=task.status,
            date=task.date,
            title=task.title,
            description=task.description,
            priority=task.priority,
            assigns=tuple(assigns),
            subtasks=subs,
            subtasks_total=len(subs),
            subtasks_done=done,
            progress=progress_percent(done, len(subs)),
        )

    def with_task(self, task: Task) -> "BoardTask":
        return replace(
            self,
            type=task.type,
            status=task.status,
            date=task.date,
            title=task.title,
            description=task.description,
            priority=task.priority,
        )


# ---- derived values ---------------------------------------------------------

def progress_percent(done: int, total: int) -> int:
    """Whole percent, half rounded up; 0 when there is nothing to do."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


def initials_for(name: Optional[str]) -> str:
    if not name or not isinstance(name, str):
        return "G"
    parts = name.split()
    if not parts:
        return "G"
    first = parts[0][0].upper()
    last = parts[-1][0].upper() if len(parts) > 1 else ""
    return first + last


def unknown_contact(contact_id: str) -> Contact:
    return Contact(id=contact_id)


def to_assignee(contact: Contact) -> Assignee:
    return Assignee(
        contact_id=contact.id,
        name=contact.name,
        initials=initials_for(contact.name),
        color=contact.color,
    )


# ---- decoding ---------------------------------------------------------------

def _str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _status(raw: Any, path: str) -> TaskStatus:
    if raw is None:
        return TaskStatus.TODO
    try:
        return TaskStatus(raw)
    except ValueError:
        _log.warning("Unknown task status %r at %s; using todo", raw, path)
        return TaskStatus.TODO


def _type(raw: Any, path: str) -> TaskType:
    if raw is None:
        return TaskType.USER_STORY
    try:
        return TaskType(int(raw))
    except (TypeError, ValueError):
        _log.warning("Unknown task type %r at %s; using user story", raw, path)
        return TaskType.USER_STORY


def _priority(raw: Any) -> int:
    if isinstance(raw, bool):
        return PRIORITY_MEDIUM
    try:
        return int(raw)
    except (TypeError, ValueError):
        return PRIORITY_MEDIUM


def _date(raw: Any, path: str) -> Optional[date]:
    if not raw:
        return None
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        _log.warning("Unparseable task date %r at %s", raw, path)
        return None


def decode_contact(doc: Document) -> Contact:
    d = doc.data
    return Contact(
        id=doc.id,
        name=_str(d, "name"),
        email=_str(d, "email"),
        phone=_str(d, "phone"),
        color=_str(d, "color"),
        is_user=d.get("isUser") is True,
    )


def decode_task(doc: Document) -> Task:
    d = doc.data
    return Task(
        id=doc.id,
        type=_type(d.get("type"), doc.path),
        status=_status(d.get("status"), doc.path),
        date=_date(d.get("date"), doc.path),
        title=_str(d, "title"),
        description=_str(d, "description"),
        priority=_priority(d.get("priority", PRIORITY_MEDIUM)),
    )


def decode_subtask(doc: Document) -> Subtask:
    return Subtask(id=doc.id, title=_str(doc.data, "title"), done=doc.data.get("done") is True)


def decode_assignment(doc: Document) -> Assignment:
    return Assignment(id=doc.id, contact_id=_str(doc.data, "contactId"))


# ---- encoding ---------------------------------------------------------------

def encode_contact(contact: Contact) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "name": contact.name,
        "email": contact.email,
        "phone": contact.phone,
        "color": contact.color,
    }
    if contact.is_user:
        out["isUser"] = True
    return out


def encode_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def encode_task(task: Task) -> Dict[str, Any]:
    return {
        "type": int(task.type),
        "status": task.status.value,
        "date": encode_date(task.date),
        "title": task.title,
        "description": task.description,
        "priority": int(task.priority),
    }


def encode_subtask(title: str, done: bool) -> Dict[str, Any]:
    return {"title": title, "done": bool(done)}


def encode_assignment(contact_id: str) -> Dict[str, Any]:
    return {"contactId": contact_id}
