# Rev 0.1.0
"""Task enrichment join (Rev 0.1.0)

One join per task. Inputs:
  - tasks/{id}/subtasks  (collection stream)
  - tasks/{id}/assigns   (collection stream)
  - one contact projection per distinct assigned contact id
Output: the current BoardTask, re-emitted whenever any input moves.
"""
from __future__ import annotations

from functools import partial
from typing import Dict, List, Optional, Tuple

from ..models.documents import Document, assigns_path, subtasks_path
from ..models.entities import (
    Assignment,
    BoardTask,
    Contact,
    Subtask,
    Task,
    decode_assignment,
    decode_subtask,
    to_assignee,
    unknown_contact,
)
from ..models.live import LiveValue
from ..repositories.document_store import DocumentStore
from ..utils.logging_setup import get_logger
from .contact_directory import ContactDirectory


class TaskEnrichmentJoin(LiveValue):
    def __init__(self, store: DocumentStore, directory: ContactDirectory, task: Task) -> None:
        super().__init__(f"task:{task.id}")
        self._log = get_logger("TaskJoin")
        self._directory = directory
        self._task = task

        self._subtasks: Optional[Tuple[Subtask, ...]] = None
        self._assignments: Optional[List[Assignment]] = None
        self._contacts: Dict[str, LiveValue] = {}
        self._resolved: Dict[str, Contact] = {}
        self._attaching = False

        self._subtask_sub = store.subscribe_collection(subtasks_path(task.id))
        self._assign_sub = store.subscribe_collection(assigns_path(task.id))
        self._subtask_sub.listen(self._on_subtasks)
        self._assign_sub.listen(self._on_assigns)

    @property
    def task_id(self) -> str:
        return self._task.id

    def watched_contacts(self) -> List[str]:
        return list(self._contacts)

    def update_task(self, task: Task) -> None:
        """Push new scalar fields for the same task id."""
        if task == self._task:
            return
        self._task = task
        self._recompute()

    # ---- inputs
    def _on_subtasks(self, docs: List[Document]) -> None:
        self._subtasks = tuple(decode_subtask(d) for d in docs)
        self._recompute()

    def _on_assigns(self, docs: List[Document]) -> None:
        assignments = [decode_assignment(d) for d in docs]
        wanted = {a.contact_id for a in assignments}

        for contact_id in [c for c in self._contacts if c not in wanted]:
            self._contacts.pop(contact_id).close()
            self._resolved.pop(contact_id, None)

        self._assignments = assignments
        self._attaching = True
        try:
            for a in assignments:
                if not a.contact_id:
                    self._resolved[""] = unknown_contact("")
                    continue
                if a.contact_id in self._contacts:
                    continue
                projection = self._directory.watch(a.contact_id)
                self._contacts[a.contact_id] = projection
                projection.listen(partial(self._on_contact, a.contact_id))
        finally:
            self._attaching = False
        self._recompute()

    def _on_contact(self, contact_id: str, contact: Contact) -> None:
        if contact_id not in self._contacts:
            return
        self._resolved[contact_id] = contact
        self._recompute()

    # ---- output
    def _recompute(self) -> None:
        if self._attaching or self._closed:
            return
        if self._subtasks is None or self._assignments is None:
            return
        if any(a.contact_id not in self._resolved for a in self._assignments):
            return
        assignees = [to_assignee(self._resolved[a.contact_id]) for a in self._assignments]
        if self._publish(BoardTask.build(self._task, self._subtasks, assignees)):
            self._log.debug("task %s re-emitted", self._task.id)

    def _on_close(self) -> None:
        self._subtask_sub.close()
        self._assign_sub.close()
        for projection in self._contacts.values():
            projection.close()
        self._contacts.clear()
        self._resolved.clear()
