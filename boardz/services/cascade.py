# Rev 0.1.0
"""Cascade coordinator (Rev 0.1.0)
Multi-collection mutations that keep tasks, subtasks, assignments and
contacts relationally consistent:
  - delete_task:      task + every subtask + every assignment, one batch
  - delete_contact:   contact + every assignment pointing at it, one batch
  - save_task_edits:  minimal diff of assignments/subtasks against an edit
Plus the child-aware create and the status/subtask toggles the board uses.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from ..errors import BoardError, InvalidArgument, NotFound, PermissionDenied
from ..models.documents import (
    ASSIGNS,
    WriteOp,
    assigns_path,
    contact_path,
    subtasks_path,
    task_path,
)
from ..models.entities import (
    SubtaskDraft,
    Task,
    decode_assignment,
    decode_subtask,
    encode_assignment,
    encode_date,
    encode_subtask,
    encode_task,
)
from ..models.types import PRIORITY_MEDIUM, ReconcileMode, TaskStatus, TaskType
from ..repositories.document_store import DocumentStore
from ..utils.logging_setup import get_logger
from .reconcile import ReconciliationPlan, plan_reconciliation
from .session import SessionService

EDITABLE_FIELDS = ("title", "description", "priority", "date")


@dataclass
class ReconcileResult:
    plan: ReconciliationPlan
    applied: int
    total: int
    complete: bool
    error: Optional[BoardError] = None

    @property
    def ok(self) -> bool:
        return self.complete and self.error is None


def _require_id(label: str, value: str) -> None:
    if not value:
        raise InvalidArgument(f"{label} is missing")
    if "/" in value:
        raise InvalidArgument(f"{label} may not contain '/': {value!r}")


def _drafts(items: Iterable[Any]) -> List[SubtaskDraft]:
    out: List[SubtaskDraft] = []
    for item in items:
        if isinstance(item, dict):
            title, done = item.get("title"), item.get("done", False)
        else:
            title, done = getattr(item, "title", None), getattr(item, "done", False)
        if not isinstance(title, str) or not title.strip():
            raise InvalidArgument(f"subtask without a title: {item!r}")
        out.append(SubtaskDraft(title=title, done=bool(done)))
    return out


def _encode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
    if unknown:
        raise InvalidArgument(f"fields not editable: {', '.join(unknown)}")
    out: Dict[str, Any] = {}
    for key, value in fields.items():
        if key == "priority":
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidArgument(f"priority must be an int, got {value!r}")
            out[key] = value
        elif key == "date":
            if isinstance(value, str):
                try:
                    value = date.fromisoformat(value)
                except ValueError as exc:
                    raise InvalidArgument(f"bad date {value!r}") from exc
            if value is not None and not isinstance(value, date):
                raise InvalidArgument(f"bad date {value!r}")
            out[key] = encode_date(value)
        else:
            if not isinstance(value, str):
                raise InvalidArgument(f"{key} must be a string")
            out[key] = value
    return out


class CascadeCoordinator:
    """
    Writes that span several collections.

    reconcile_mode "atomic" (the default) commits an edit as one batch, so a
    failure raises WriteFailed and leaves the task untouched. "best_effort"
    applies the ops one by one, logs the first failure, stops there and
    reports it in the returned ReconcileResult.
    """

    def __init__(self, store: DocumentStore, session: SessionService, reconcile_mode: ReconcileMode = "atomic"):
        if reconcile_mode not in ("atomic", "best_effort"):
            raise InvalidArgument(f"unknown reconcile mode {reconcile_mode!r}")
        self._store = store
        self._session = session
        self.reconcile_mode = reconcile_mode
        self._log = get_logger("Cascade")

    # ---- deletes
    def delete_task(self, task_id: str) -> bool:
        """Delete a task with all of its children. False if it was already gone."""
        _require_id("delete_task: task_id", task_id)

        subtasks = self._store.read_once(subtasks_path(task_id))
        assigns = self._store.read_once(assigns_path(task_id))
        task_doc = self._store.read_once(task_path(task_id))

        if task_doc is None and not subtasks and not assigns:
            self._log.info("delete_task %s: already absent", task_id)
            return False

        ops = [WriteOp.delete(d.path) for d in subtasks]
        ops += [WriteOp.delete(d.path) for d in assigns]
        ops.append(WriteOp.delete(task_path(task_id)))
        self._store.batch_write(ops)
        self._log.info("deleted task %s (%d subtasks, %d assignments)", task_id, len(subtasks), len(assigns))
        return True

    def delete_contact(self, contact_id: str, actor_id: Optional[str] = None) -> int:
        """
        Delete a contact and every assignment that references it.
        Registered-user contacts may only be deleted by that user.
        Returns the number of assignments purged.
        """
        _require_id("delete_contact: contact_id", contact_id)
        actor = actor_id if actor_id is not None else self._session.current_identity()

        doc = self._store.read_once(contact_path(contact_id))
        if doc is not None and doc.data.get("isUser") is True and actor != contact_id:
            self._log.warning("delete_contact %s refused for actor %s", contact_id, actor)
            raise PermissionDenied(f"cannot delete registered user {contact_id}", path=doc.path)

        refs = self._store.query_group(ASSIGNS, "contactId", contact_id)
        ops = [WriteOp.delete(d.path) for d in refs]
        if doc is not None:
            ops.append(WriteOp.delete(doc.path))
        if ops:
            self._store.batch_write(ops)
        self._log.info("deleted contact %s (%d assignments)", contact_id, len(refs))

        if self._session.current_identity() == contact_id:
            self._session.delete_credential(contact_id)
        return len(refs)

    # ---- edits
    def save_task_edits(
        self,
        task_id: str,
        fields: Dict[str, Any],
        assignee_ids: Iterable[str],
        subtasks: Iterable[Any],
        *,
        mode: Optional[ReconcileMode] = None,
    ) -> ReconcileResult:
        _require_id("save_task_edits: task_id", task_id)
        encoded = _encode_fields(fields or {})
        desired_subtasks = _drafts(subtasks)
        desired_assignees = list(assignee_ids)
        mode = mode or self.reconcile_mode
        empty = ReconciliationPlan(task_id=task_id)

        try:
            task_doc = self._store.read_once(task_path(task_id))
            current_assigns = [decode_assignment(d) for d in self._store.read_once(assigns_path(task_id))]
            current_subtasks = [decode_subtask(d) for d in self._store.read_once(subtasks_path(task_id))]
        except BoardError as exc:
            if mode == "atomic":
                raise
            self._log.error("save_task_edits %s: read failed, nothing applied: %s", task_id, exc)
            return ReconcileResult(empty, 0, 0, False, exc)

        if task_doc is None:
            self._log.info("save_task_edits %s: task no longer exists", task_id)
            return ReconcileResult(empty, 0, 0, False, NotFound(task_id, path=task_path(task_id)))

        plan = plan_reconciliation(
            task_id, encoded, current_assigns, desired_assignees, current_subtasks, desired_subtasks
        )
        ops = plan.to_ops(self._store.new_id)
        if not ops:
            return ReconcileResult(plan, 0, 0, True)

        if mode == "atomic":
            self._store.batch_write(ops)
            self._log.info("save_task_edits %s: %d ops committed", task_id, len(ops))
            return ReconcileResult(plan, len(ops), len(ops), True)

        applied = 0
        for op in ops:
            try:
                self._store.batch_write([op])
            except BoardError as exc:
                self._log.error(
                    "save_task_edits %s: stopped after %d/%d ops at %s %s: %s",
                    task_id, applied, len(ops), op.kind, op.path, exc,
                )
                return ReconcileResult(plan, applied, len(ops), False, exc)
            applied += 1
        self._log.info("save_task_edits %s: %d ops applied", task_id, applied)
        return ReconcileResult(plan, applied, len(ops), True)

    # ---- creates / small moves
    def create_task(
        self,
        title: str,
        *,
        description: str = "",
        task_type: TaskType = TaskType.USER_STORY,
        priority: int = PRIORITY_MEDIUM,
        due: Optional[date] = None,
        status: Optional[TaskStatus] = None,
        assignee_ids: Iterable[str] = (),
        subtasks: Iterable[Any] = (),
    ) -> str:
        """Write a task and its children in one batch. Status defaults to todo."""
        if not title or not title.strip():
            raise InvalidArgument("create_task: title is missing")
        task_id = self._store.new_id()
        task = Task(
            id=task_id,
            type=TaskType(task_type),
            status=TaskStatus(status) if status is not None else TaskStatus.TODO,
            date=due,
            title=title,
            description=description,
            priority=priority,
        )
        ops = [WriteOp.set(task_path(task_id), encode_task(task))]
        seen = set()
        for contact_id in assignee_ids:
            if contact_id and contact_id not in seen:
                seen.add(contact_id)
                ops.append(WriteOp.set(f"{assigns_path(task_id)}/{self._store.new_id()}", encode_assignment(contact_id)))
        for d in _drafts(subtasks):
            ops.append(WriteOp.set(f"{subtasks_path(task_id)}/{self._store.new_id()}", encode_subtask(d.title, d.done)))
        self._store.batch_write(ops)
        self._log.info("created task %s with %d child rows", task_id, len(ops) - 1)
        return task_id

    def change_status(self, task_id: str, status: TaskStatus) -> None:
        _require_id("change_status: task_id", task_id)
        try:
            status = TaskStatus(status)
        except ValueError as exc:
            raise InvalidArgument(f"unknown status {status!r}") from exc
        self._store.batch_write([WriteOp.update(task_path(task_id), {"status": status.value})])

    def set_subtask_done(self, task_id: str, subtask_id: str, done: bool) -> None:
        _require_id("set_subtask_done: task_id", task_id)
        _require_id("set_subtask_done: subtask_id", subtask_id)
        path = f"{subtasks_path(task_id)}/{subtask_id}"
        self._store.batch_write([WriteOp.update(path, {"done": bool(done)})])

