# Rev 0.1.0
"""Board aggregator (Rev 0.1.0)

Recomputation triggers:
  session changed   -> open/close the task subscription
  task set changed  -> rebuild the join set (one join per live task id)
  task fields moved -> push into the existing join
  any join emitted  -> recombine the latest value of every join
Status columns filter the combined list; they never build joins of their own.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from ..models.documents import TASKS, Document
from ..models.entities import BoardTask, decode_task
from ..models.live import LiveValue
from ..models.types import TaskStatus
from ..repositories.document_store import DocumentStore, Subscription
from ..utils.logging_setup import get_logger
from .contact_directory import ContactDirectory
from .session import SessionService
from .task_join import TaskEnrichmentJoin


class StatusColumn(LiveValue):
    def __init__(self, board: "BoardAggregator", status: TaskStatus) -> None:
        super().__init__(f"column:{status.value}")
        self.status = status
        self._board = board
        board.listen(self._on_board)

    def _on_board(self, tasks: List[BoardTask]) -> None:
        self._publish([t for t in tasks if t.status == self.status])

    def _on_close(self) -> None:
        try:
            self._board.changed.disconnect(self._on_board)
        except (RuntimeError, TypeError):
            pass


class BoardAggregator(LiveValue):
    def __init__(self, store: DocumentStore, directory: ContactDirectory, session: SessionService) -> None:
        super().__init__("board")
        self._log = get_logger("BoardAggregator")
        self._store = store
        self._directory = directory
        self._session = session

        self._tasks_sub: Optional[Subscription] = None
        self._joins: Dict[str, TaskEnrichmentJoin] = {}
        self._order: List[str] = []
        self._applying = False
        self._columns: Dict[TaskStatus, StatusColumn] = {}

        session.listen(self._on_session)

    # ---- public API
    def board_tasks(self) -> LiveValue:
        return self

    def by_status(self, status: TaskStatus) -> StatusColumn:
        status = TaskStatus(status)
        column = self._columns.get(status)
        if column is None or column.closed:
            column = StatusColumn(self, status)
            self._columns[status] = column
        return column

    def active_joins(self) -> List[str]:
        return list(self._joins)

    def join_for(self, task_id: str) -> Optional[TaskEnrichmentJoin]:
        return self._joins.get(task_id)

    # ---- triggers
    def _on_session(self, identity: Optional[str]) -> None:
        if self._closed:
            return
        if identity is None:
            self._teardown()
            self._publish([])
            return
        if self._tasks_sub is None:
            self._log.info("session %s: subscribing to tasks", identity)
            self._tasks_sub = self._store.subscribe_collection(TASKS)
            self._tasks_sub.listen(self._on_tasks)

    def _on_tasks(self, docs: List[Document]) -> None:
        if self._closed:
            return
        tasks = [decode_task(d) for d in docs]
        live_ids = {t.id for t in tasks}

        self._applying = True
        try:
            for task_id in [tid for tid in self._joins if tid not in live_ids]:
                self._joins.pop(task_id).close()
                self._log.debug("join closed for %s", task_id)
            for task in tasks:
                join = self._joins.get(task.id)
                if join is None:
                    join = TaskEnrichmentJoin(self._store, self._directory, task)
                    join.changed.connect(self._on_join)
                    self._joins[task.id] = join
                    self._log.debug("join opened for %s", task.id)
                else:
                    join.update_task(task)
            self._order = [t.id for t in tasks]
        finally:
            self._applying = False
        self._recombine()

    def _on_join(self, _task: BoardTask) -> None:
        if not self._applying:
            self._recombine()

    def _recombine(self) -> None:
        if self._closed:
            return
        joins = [self._joins[tid] for tid in self._order]
        if not all(j.has_value() for j in joins):
            return
        self._publish([j.value() for j in joins])

    # ---- teardown
    def _teardown(self) -> None:
        if self._tasks_sub is not None:
            self._tasks_sub.close()
            self._tasks_sub = None
        for join in self._joins.values():
            join.close()
        if self._joins:
            self._log.info("released %d task joins", len(self._joins))
        self._joins.clear()
        self._order = []

    def _on_close(self) -> None:
        try:
            self._session.changed.disconnect(self._on_session)
        except (RuntimeError, TypeError):
            pass
        self._teardown()
        for column in self._columns.values():
            column.close()
        self._columns.clear()
