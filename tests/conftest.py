# Rev 0.1.0

"""Pytest fixtures for boardZ (Rev 0.1.0)"""
from __future__ import annotations
from datetime import date
from pathlib import Path
from typing import Any, List, Optional

import pytest
from PySide6.QtCore import QCoreApplication

from boardz.models.documents import WriteOp, assigns_path, contact_path, subtasks_path, task_path
from boardz.models.types import TaskStatus
from boardz.repositories.memory_store import MemoryDocumentStore
from boardz.repositories.sqlite_store import SQLiteDocumentStore
from boardz.services.board_aggregator import BoardAggregator
from boardz.services.cascade import CascadeCoordinator
from boardz.services.contact_directory import ContactDirectory
from boardz.services.session import SessionService


class Recorder:
    """Slot that remembers every value it was called with."""

    def __init__(self) -> None:
        self.values: List[Any] = []

    def __call__(self, value: Any) -> None:
        self.values.append(value)

    @property
    def last(self) -> Any:
        return self.values[-1]


class Seeder:
    """Writes raw documents straight through the store, one batch each."""

    def __init__(self, store) -> None:
        self.store = store

    def contact(self, cid: str, name: str, color: str = "#29abe2", *, is_user: bool = False) -> str:
        data = {"name": name, "email": f"{cid}@example.com", "phone": "", "color": color}
        if is_user:
            data["isUser"] = True
        self.store.batch_write([WriteOp.set(contact_path(cid), data)])
        return cid

    def task(self, tid: str, title: str = "Task", *, status: TaskStatus = TaskStatus.TODO,
             priority: int = 2, due: Optional[date] = None) -> str:
        data = {
            "type": 1,
            "status": status.value,
            "date": due.isoformat() if due else None,
            "title": title,
            "description": "",
            "priority": priority,
        }
        self.store.batch_write([WriteOp.set(task_path(tid), data)])
        return tid

    def subtask(self, tid: str, sid: str, title: str, done: bool = False) -> str:
        self.store.batch_write([WriteOp.set(f"{subtasks_path(tid)}/{sid}", {"title": title, "done": done})])
        return sid

    def assign(self, tid: str, aid: str, contact_id: str) -> str:
        self.store.batch_write([WriteOp.set(f"{assigns_path(tid)}/{aid}", {"contactId": contact_id})])
        return aid


class FlakyStore(MemoryDocumentStore):
    """In-memory store whose commits fail when `fail_on(op)` is true for any op."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_on = None

    def _commit(self, ops):
        if self.fail_on is not None and any(self.fail_on(op) for op in ops):
            raise IOError("simulated backend failure")
        super()._commit(ops)


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture()
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path: Path):
    if request.param == "memory":
        yield MemoryDocumentStore()
        return
    s = SQLiteDocumentStore(tmp_path / "test.db")
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def seed(store) -> Seeder:
    return Seeder(store)


@pytest.fixture()
def session() -> SessionService:
    return SessionService()


@pytest.fixture()
def directory(store) -> ContactDirectory:
    return ContactDirectory(store)


@pytest.fixture()
def board(store, directory, session):
    agg = BoardAggregator(store, directory, session)
    try:
        yield agg
    finally:
        agg.close()


@pytest.fixture()
def cascade(store, session) -> CascadeCoordinator:
    return CascadeCoordinator(store, session)


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def make_recorder():
    return Recorder


@pytest.fixture()
def any_seed(any_store) -> Seeder:
    return Seeder(any_store)


@pytest.fixture()
def any_cascade(any_store, session) -> CascadeCoordinator:
    return CascadeCoordinator(any_store, session)


@pytest.fixture()
def any_board(any_store, session):
    agg = BoardAggregator(any_store, ContactDirectory(any_store), session)
    try:
        yield agg
    finally:
        agg.close()
