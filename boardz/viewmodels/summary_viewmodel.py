# Rev 0.1.0
"""Summary counters over the shared board stream (Rev 0.1.0)"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from PySide6.QtCore import QObject, Signal

from ..models.entities import Task
from ..models.live import LiveValue
from ..models.types import ACTIVE_STATUSES, PRIORITY_URGENT, TaskStatus


@dataclass(frozen=True)
class BoardSummary:
    todo: int = 0
    in_progress: int = 0
    await_feedback: int = 0
    done: int = 0
    urgent: int = 0
    total: int = 0
    next_due: Optional[date] = None


def is_urgent_and_active(task: Task) -> bool:
    return task.priority == PRIORITY_URGENT and task.status in ACTIVE_STATUSES


def summarize(tasks: Iterable[Task]) -> BoardSummary:
    tasks = list(tasks)
    if not tasks:
        return BoardSummary()
    dates = [t.date for t in tasks if t.date is not None]
    return BoardSummary(
        todo=sum(1 for t in tasks if t.status == TaskStatus.TODO),
        in_progress=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        await_feedback=sum(1 for t in tasks if t.status == TaskStatus.AWAIT_FEEDBACK),
        done=sum(1 for t in tasks if t.status == TaskStatus.DONE),
        urgent=sum(1 for t in tasks if is_urgent_and_active(t)),
        total=len(tasks),
        next_due=min(dates) if dates else None,
    )


class SummaryViewModel(QObject):
    summaryReloaded = Signal(object)

    def __init__(self, board: LiveValue):
        super().__init__()
        self._board = board
        self._summary = BoardSummary()
        board.listen(self._on_board)

    def summary(self) -> BoardSummary:
        return self._summary

    def _on_board(self, tasks) -> None:
        summary = summarize(tasks)
        if summary != self._summary:
            self._summary = summary
            self.summaryReloaded.emit(summary)
