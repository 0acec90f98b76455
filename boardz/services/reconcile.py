# Rev 0.1.0
"""Edit-time reconciliation planning (Rev 0.1.0)

Pure functions: given the stored child rows of a task and the edited
(desired) state, compute the minimal set of creates/deletes. Nothing here
touches the store; CascadeCoordinator turns a plan into WriteOps.

Assignments are keyed by contact id. Subtasks are keyed by title, and a
stored subtask survives only when a desired row has the same title and the
same done flag. Duplicate titles are matched as a multiset: each stored row
can satisfy at most one desired row, in desired order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Sequence

from ..models.documents import WriteOp, assigns_path, subtasks_path, task_path
from ..models.entities import (
    Assignment,
    Subtask,
    SubtaskDraft,
    encode_assignment,
    encode_subtask,
)


@dataclass
class ReconciliationPlan:
    task_id: str
    task_fields: Dict[str, Any] = field(default_factory=dict)
    assign_deletes: List[Assignment] = field(default_factory=list)
    assign_creates: List[str] = field(default_factory=list)
    assign_kept: List[Assignment] = field(default_factory=list)
    subtask_deletes: List[Subtask] = field(default_factory=list)
    subtask_creates: List[SubtaskDraft] = field(default_factory=list)
    subtask_kept: List[Subtask] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not (self.task_fields or self.assign_deletes or self.assign_creates
                    or self.subtask_deletes or self.subtask_creates)

    def to_ops(self, new_id: Callable[[], str]) -> List[WriteOp]:
        """Field update first, then deletes before creates, assignments before subtasks."""
        ops: List[WriteOp] = []
        if self.task_fields:
            ops.append(WriteOp.update(task_path(self.task_id), self.task_fields))
        a_path = assigns_path(self.task_id)
        s_path = subtasks_path(self.task_id)
        ops += [WriteOp.delete(f"{a_path}/{a.id}") for a in self.assign_deletes]
        ops += [WriteOp.set(f"{a_path}/{new_id()}", encode_assignment(cid)) for cid in self.assign_creates]
        ops += [WriteOp.delete(f"{s_path}/{s.id}") for s in self.subtask_deletes]
        ops += [WriteOp.set(f"{s_path}/{new_id()}", encode_subtask(d.title, d.done)) for d in self.subtask_creates]
        return ops


def _unique(items: Iterable[str]) -> List[str]:
    seen, out = set(), []
    for i in items:
        if i and i not in seen:
            seen.add(i)
            out.append(i)
    return out


def diff_assignments(current: Sequence[Assignment], desired_contact_ids: Iterable[str]):
    """Return (deletes, creates, kept). Surplus rows for one contact are deleted."""
    desired = _unique(desired_contact_ids)
    wanted = set(desired)
    deletes: List[Assignment] = []
    kept: Dict[str, Assignment] = {}
    for a in current:
        if a.contact_id in wanted and a.contact_id not in kept:
            kept[a.contact_id] = a
        else:
            deletes.append(a)
    creates = [cid for cid in desired if cid not in kept]
    return deletes, creates, list(kept.values())


def diff_subtasks(current: Sequence[Subtask], desired: Iterable[SubtaskDraft]):
    """Return (deletes, creates, kept)."""
    pool: List[Subtask] = list(current)
    kept: List[Subtask] = []
    creates: List[SubtaskDraft] = []
    for d in desired:
        match = next((s for s in pool if s.title == d.title and s.done == d.done), None)
        if match is None:
            creates.append(d)
        else:
            pool.remove(match)
            kept.append(match)
    return pool, creates, kept


def plan_reconciliation(
    task_id: str,
    task_fields: Dict[str, Any],
    current_assigns: Sequence[Assignment],
    desired_contact_ids: Iterable[str],
    current_subtasks: Sequence[Subtask],
    desired_subtasks: Iterable[SubtaskDraft],
) -> ReconciliationPlan:
    a_del, a_new, a_kept = diff_assignments(current_assigns, desired_contact_ids)
    s_del, s_new, s_kept = diff_subtasks(current_subtasks, desired_subtasks)
    return ReconciliationPlan(
        task_id=task_id,
        task_fields=dict(task_fields),
        assign_deletes=a_del,
        assign_creates=a_new,
        assign_kept=a_kept,
        subtask_deletes=s_del,
        subtask_creates=s_new,
        subtask_kept=s_kept,
    )
