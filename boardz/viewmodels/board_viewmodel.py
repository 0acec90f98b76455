# Rev 0.1.0: columns share one aggregator; errors become notifications
from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional

from PySide6.QtCore import QObject, Signal

from ..errors import BoardError, is_auth_error
from ..models.entities import BoardTask
from ..models.types import TaskStatus
from ..services.board_aggregator import BoardAggregator
from ..services.cascade import CascadeCoordinator
from ..utils.logging_setup import get_logger


def _disconnect(live, slot) -> None:
    try:
        live.changed.disconnect(slot)
    except (RuntimeError, TypeError):
        pass


def notification_kind(exc: BoardError) -> str:
    """'auth' lets the UI prompt for re-authentication; anything else is generic."""
    return "auth" if is_auth_error(exc) else "error"


class BoardViewModel(QObject):
    boardReloaded = Signal(list)
    columnReloaded = Signal(str, list)
    notify = Signal(str, str)

    def __init__(self, board: BoardAggregator, cascade: CascadeCoordinator):
        super().__init__()
        self._log = get_logger("BoardViewModel")
        self._board = board
        self._cascade = cascade
        self._columns = {status: board.by_status(status) for status in TaskStatus}

        self._column_slots = {}
        board.listen(self._on_board)
        for status, column in self._columns.items():
            slot = (lambda tasks, s=status: self.columnReloaded.emit(s.value, tasks))
            self._column_slots[status] = slot
            column.listen(slot)

    # ---- queries
    def tasks(self) -> List[BoardTask]:
        return list(self._board.value([]))

    def column(self, status: TaskStatus) -> List[BoardTask]:
        return list(self._columns[TaskStatus(status)].value([]))

    def find(self, task_id: str) -> Optional[BoardTask]:
        return next((t for t in self.tasks() if t.id == task_id), None)

    # ---- commands
    def create_task(self, *, title: str, description: str = "", priority: int = 2,
                    due: Optional[date] = None, status: TaskStatus = TaskStatus.TODO,
                    assignee_ids: Iterable[str] = (), subtasks: Iterable[Any] = ()) -> Optional[str]:
        return self._run("create_task", lambda: self._cascade.create_task(
            title, description=description, priority=priority, due=due, status=status,
            assignee_ids=assignee_ids, subtasks=subtasks))

    def move_task(self, task_id: str, status: TaskStatus) -> bool:
        return self._ok("move_task", lambda: self._cascade.change_status(task_id, status))

    def toggle_subtask(self, task_id: str, subtask_id: str) -> bool:
        task = self.find(task_id)
        sub = next((s for s in task.subtasks if s.id == subtask_id), None) if task else None
        if sub is None:
            return False
        return self._ok("toggle_subtask", lambda: self._cascade.set_subtask_done(task_id, subtask_id, not sub.done))

    def delete_task(self, task_id: str) -> bool:
        # an already-deleted task counts as success
        return self._ok("delete_task", lambda: self._cascade.delete_task(task_id))

    def save_task_edits(self, task_id: str, fields: Dict[str, Any],
                        assignee_ids: Iterable[str], subtasks: Iterable[Any]) -> bool:
        result = self._run("save_task_edits",
                           lambda: self._cascade.save_task_edits(task_id, fields, assignee_ids, subtasks))
        if result is None:
            return False
        if not result.complete:
            self.notify.emit("error", "Some changes to the task could not be saved.")
        return result.complete

    def close(self) -> None:
        """Detach from the shared board; the aggregator keeps running for other views."""
        _disconnect(self._board, self._on_board)
        for status, slot in self._column_slots.items():
            _disconnect(self._columns[status], slot)
        self._column_slots.clear()

    # ---- internals
    def _on_board(self, tasks: List[BoardTask]) -> None:
        self.boardReloaded.emit(tasks)

    def _run(self, label: str, action: Callable[[], Any]) -> Any:
        try:
            return action()
        except BoardError as exc:
            self._log.error("%s failed: %s (%s)", label, exc, exc.code)
            self.notify.emit(notification_kind(exc), str(exc))
            return None

    def _ok(self, label: str, action: Callable[[], Any]) -> bool:
        try:
            action()
            return True
        except BoardError as exc:
            self._log.error("%s failed: %s (%s)", label, exc, exc.code)
            self.notify.emit(notification_kind(exc), str(exc))
            return False
