# tests/test_cascade.py
from __future__ import annotations

from datetime import date

import pytest

from boardz.errors import InvalidArgument, NotFound, PermissionDenied, WriteFailed
from boardz.models.documents import ASSIGNS, assigns_path, contact_path, subtasks_path, task_path
from boardz.models.entities import SubtaskDraft
from boardz.models.types import TaskStatus
from boardz.services.cascade import CascadeCoordinator


def _children(store, tid):
    subs = {d.id: (d.data["title"], d.data["done"]) for d in store.read_once(subtasks_path(tid))}
    assigns = {d.id: d.data["contactId"] for d in store.read_once(assigns_path(tid))}
    return subs, assigns


@pytest.fixture()
def populated(seed):
    seed.contact("A", "Ann Able")
    seed.contact("B", "Ben Baker")
    seed.contact("C", "Cat Cole")
    seed.task("t1", "Ship it")
    seed.assign("t1", "a1", "A")
    seed.assign("t1", "a2", "B")
    seed.subtask("t1", "s1", "x", False)
    seed.subtask("t1", "s2", "y", True)
    return "t1"


# ---- delete_task

def test_delete_task_removes_children(store, cascade, populated):
    assert cascade.delete_task("t1") is True
    assert store.read_once(task_path("t1")) is None
    assert _children(store, "t1") == ({}, {})


def test_delete_task_twice_is_quiet(store, cascade, populated):
    cascade.delete_task("t1")
    assert cascade.delete_task("t1") is False


def test_delete_task_requires_id(cascade):
    with pytest.raises(InvalidArgument):
        cascade.delete_task("")


def test_delete_task_failure_deletes_nothing(store, cascade, populated):
    store.fail_on = lambda op: op.path == task_path("t1")
    with pytest.raises(WriteFailed):
        cascade.delete_task("t1")
    assert store.read_once(task_path("t1")) is not None
    subs, assigns = _children(store, "t1")
    assert len(subs) == 2 and len(assigns) == 2


# ---- delete_contact

def test_delete_contact_purges_assignments(store, seed, cascade, populated):
    seed.task("t2")
    seed.assign("t2", "a3", "A")
    assert cascade.delete_contact("A") == 2
    assert store.read_once(contact_path("A")) is None
    assert store.query_group(ASSIGNS, "contactId", "A") == []
    assert _children(store, "t1")[1] == {"a2": "B"}


def test_delete_contact_purges_dangling_assignments(store, seed, cascade):
    seed.task("t1")
    seed.assign("t1", "a1", "ghost")
    assert cascade.delete_contact("ghost") == 1
    assert store.query_group(ASSIGNS, "contactId", "ghost") == []


@pytest.mark.parametrize(
    "is_user, actor, allowed",
    [
        (False, None, True),
        (False, "someone", True),
        (True, "someone", False),
        (True, None, False),
        (True, "u1", True),
    ],
)
def test_delete_contact_permissions(store, seed, cascade, is_user, actor, allowed):
    seed.contact("u1", "Uma User", is_user=is_user)
    seed.task("t1")
    seed.assign("t1", "a1", "u1")
    if allowed:
        cascade.delete_contact("u1", actor_id=actor)
        assert store.read_once(contact_path("u1")) is None
    else:
        with pytest.raises(PermissionDenied):
            cascade.delete_contact("u1", actor_id=actor)
        assert store.read_once(contact_path("u1")) is not None
        assert _children(store, "t1")[1] == {"a1": "u1"}


def test_deleting_own_account_signs_out(store, seed, session, cascade):
    seed.contact("u1", "Uma User", is_user=True)
    session.sign_in("u1")
    cascade.delete_contact("u1")
    assert store.read_once(contact_path("u1")) is None
    assert session.current_identity() is None
    assert not session.has_account("u1")


def test_delete_contact_requires_id(cascade):
    with pytest.raises(InvalidArgument):
        cascade.delete_contact("")


# ---- save_task_edits

def test_edit_keeps_surviving_assignment(store, cascade, populated):
    result = cascade.save_task_edits("t1", {}, ["B", "C"], [SubtaskDraft("x"), SubtaskDraft("y", True)])
    assert result.ok
    assigns = _children(store, "t1")[1]
    assert assigns["a2"] == "B"
    assert "a1" not in assigns
    assert sorted(assigns.values()) == ["B", "C"]


def test_edit_recreates_subtask_with_new_state(store, cascade, populated):
    cascade.save_task_edits("t1", {}, ["A", "B"], [{"title": "x", "done": True}, {"title": "y", "done": True}])
    subs = _children(store, "t1")[0]
    assert "s1" not in subs
    assert subs["s2"] == ("y", True)
    assert sorted(subs.values()) == [("x", True), ("y", True)]


def test_edit_updates_fields(store, cascade, populated):
    result = cascade.save_task_edits(
        "t1", {"title": "Renamed", "priority": 1, "date": date(2024, 5, 1)}, ["A", "B"],
        [SubtaskDraft("x"), SubtaskDraft("y", True)],
    )
    assert result.applied == 1
    data = store.read_once(task_path("t1")).data
    assert (data["title"], data["priority"], data["date"]) == ("Renamed", 1, "2024-05-01")


def test_noop_edit_writes_nothing(store, cascade, populated):
    result = cascade.save_task_edits("t1", {}, ["A", "B"], [SubtaskDraft("x"), SubtaskDraft("y", True)])
    assert result.plan.is_noop
    assert (result.applied, result.total, result.complete) == (0, 0, True)


def test_edit_rejects_unknown_field(cascade, populated):
    with pytest.raises(InvalidArgument):
        cascade.save_task_edits("t1", {"status": "done"}, [], [])


def test_edit_of_missing_task_reports_not_found(store, cascade):
    result = cascade.save_task_edits("gone", {"title": "x"}, ["A"], [SubtaskDraft("s")])
    assert isinstance(result.error, NotFound)
    assert not result.complete
    assert len(store) == 0


def test_atomic_edit_failure_changes_nothing(store, cascade, populated):
    store.fail_on = lambda op: op.kind == "delete" and "/subtasks/" in op.path
    with pytest.raises(WriteFailed):
        cascade.save_task_edits("t1", {}, ["B", "C"], [SubtaskDraft("z")])
    assert _children(store, "t1") == (
        {"s1": ("x", False), "s2": ("y", True)},
        {"a1": "A", "a2": "B"},
    )


def test_best_effort_edit_stops_at_first_failure(store, session, populated):
    cascade = CascadeCoordinator(store, session, "best_effort")
    store.fail_on = lambda op: op.kind == "delete" and "/subtasks/" in op.path
    result = cascade.save_task_edits("t1", {}, ["B", "C"], [SubtaskDraft("z")])

    assert not result.complete
    assert isinstance(result.error, WriteFailed)
    assert (result.applied, result.total) == (2, 5)
    subs, assigns = _children(store, "t1")
    assert sorted(assigns.values()) == ["B", "C"]
    assert subs == {"s1": ("x", False), "s2": ("y", True)}


def test_unknown_reconcile_mode_rejected(store, session):
    with pytest.raises(InvalidArgument):
        CascadeCoordinator(store, session, "eventually")


# ---- create / move

def test_create_task_writes_children(store, cascade):
    tid = cascade.create_task(
        "Plan sprint", priority=1, due=date(2024, 6, 1),
        assignee_ids=["A", "A", "B"], subtasks=[SubtaskDraft("one"), {"title": "two", "done": True}],
    )
    data = store.read_once(task_path(tid)).data
    assert data["status"] == "todo"
    assert data["date"] == "2024-06-01"
    subs, assigns = _children(store, tid)
    assert sorted(assigns.values()) == ["A", "B"]
    assert sorted(subs.values()) == [("one", False), ("two", True)]


def test_create_task_requires_title(cascade):
    with pytest.raises(InvalidArgument):
        cascade.create_task("  ")


def test_change_status_of_missing_task_fails(cascade):
    with pytest.raises(WriteFailed):
        cascade.change_status("nope", TaskStatus.DONE)


def test_set_subtask_done(store, cascade, populated):
    cascade.set_subtask_done("t1", "s1", True)
    assert _children(store, "t1")[0]["s1"] == ("x", True)


@pytest.mark.parametrize("bad", ["a/b", "tasks/t1", "/"])
def test_ids_with_slashes_rejected(store, cascade, populated, bad):
    with pytest.raises(InvalidArgument):
        cascade.delete_task(bad)
    with pytest.raises(InvalidArgument):
        cascade.delete_contact(bad)
    with pytest.raises(InvalidArgument):
        cascade.save_task_edits(bad, {}, [], [])
    with pytest.raises(InvalidArgument):
        cascade.set_subtask_done("t1", bad, True)
    with pytest.raises(InvalidArgument):
        cascade.set_subtask_done(bad, "s1", True)
    with pytest.raises(InvalidArgument):
        cascade.change_status(bad, TaskStatus.DONE)
    assert store.read_once(task_path("t1")) is not None
    assert len(_children(store, "t1")[0]) == 2


def test_default_reconcile_mode_is_atomic(store, session):
    assert CascadeCoordinator(store, session).reconcile_mode == "atomic"


# ---- both backends

def test_delete_task_on_each_backend(any_store, any_seed, any_cascade):
    any_seed.task("t1")
    any_seed.subtask("t1", "s1", "x")
    any_seed.assign("t1", "a1", "A")
    assert any_cascade.delete_task("t1") is True
    assert any_store.read_once(task_path("t1")) is None
    assert _children(any_store, "t1") == ({}, {})
    assert any_cascade.delete_task("t1") is False


def test_delete_contact_on_each_backend(any_store, any_seed, any_cascade):
    any_seed.contact("A", "Ann Able")
    any_seed.contact("U", "Uma User", is_user=True)
    for tid in ("t1", "t2"):
        any_seed.task(tid)
        any_seed.assign(tid, f"a-{tid}", "A")
        any_seed.assign(tid, f"u-{tid}", "U")

    assert any_cascade.delete_contact("A") == 2
    assert any_store.query_group(ASSIGNS, "contactId", "A") == []
    assert any_store.read_once(contact_path("A")) is None

    with pytest.raises(PermissionDenied):
        any_cascade.delete_contact("U", actor_id="A")
    assert len(any_store.query_group(ASSIGNS, "contactId", "U")) == 2
