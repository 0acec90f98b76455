# tests/test_board_aggregator.py
from __future__ import annotations

from boardz.models.documents import WriteOp, contact_path, task_path
from boardz.models.types import TaskStatus


def test_unauthenticated_board_is_empty_and_holds_nothing(store, seed, board):
    seed.task("t1")
    assert board.value() == []
    assert store.active_subscriptions() == {}
    assert board.active_joins() == []


def test_sign_in_opens_one_join_per_task(store, seed, board, session):
    seed.task("t1", "first")
    seed.task("t2", "second")
    session.sign_in("u1")
    assert [t.title for t in board.value()] == ["first", "second"]
    assert sorted(board.active_joins()) == ["t1", "t2"]
    assert store.active_subscriptions()["tasks"] == 1


def test_single_task_with_no_children(seed, board, session):
    seed.task("t1")
    session.sign_in("u1")
    (bt,) = board.value()
    assert (bt.assigns, bt.subtasks_total, bt.progress) == ((), 0, 0)


def test_removing_last_task_clears_board_and_joins(store, seed, board, session, cascade):
    seed.contact("c1", "Ada")
    seed.task("t1")
    seed.subtask("t1", "s1", "write")
    seed.assign("t1", "a1", "c1")
    session.sign_in("u1")
    assert len(board.value()) == 1

    cascade.delete_task("t1")
    assert board.value() == []
    assert board.active_joins() == []
    assert store.active_subscriptions() == {"tasks": 1}


def test_new_task_appears(store, seed, board, session, make_recorder):
    session.sign_in("u1")
    rec = make_recorder()
    board.listen(rec)
    seed.task("t1", "fresh")
    assert rec.values[0] == []
    assert [t.title for t in rec.last] == ["fresh"]


def test_contact_rename_reaches_every_task(store, seed, board, session):
    seed.contact("c1", "Ada Lovelace")
    for tid in ("t1", "t2"):
        seed.task(tid)
        seed.assign(tid, f"a-{tid}", "c1")
    session.sign_in("u1")
    store.batch_write([WriteOp.update(contact_path("c1"), {"name": "Grace Hopper"})])
    assert [t.assigns[0].initials for t in board.value()] == ["GH", "GH"]


def test_field_change_keeps_join(store, seed, board, session):
    seed.task("t1", "old")
    session.sign_in("u1")
    join = board.join_for("t1")
    store.batch_write([WriteOp.update(task_path("t1"), {"title": "new"})])
    assert board.join_for("t1") is join
    assert board.value()[0].title == "new"


def test_columns_filter_and_are_shared(seed, board, session, cascade):
    seed.task("t1", "a")
    seed.task("t2", "b", status=TaskStatus.DONE)
    session.sign_in("u1")
    todo = board.by_status(TaskStatus.TODO)
    assert board.by_status(TaskStatus.TODO) is todo
    assert [t.id for t in todo.value()] == ["t1"]
    assert [t.id for t in board.by_status(TaskStatus.DONE).value()] == ["t2"]

    cascade.change_status("t1", TaskStatus.IN_PROGRESS)
    assert todo.value() == []
    assert [t.id for t in board.by_status(TaskStatus.IN_PROGRESS).value()] == ["t1"]


def test_columns_do_not_open_extra_subscriptions(store, seed, board, session):
    seed.task("t1")
    session.sign_in("u1")
    before = store.active_subscriptions()
    for status in TaskStatus:
        board.by_status(status)
    assert store.active_subscriptions() == before


def test_sign_out_tears_everything_down(store, seed, board, session):
    seed.contact("c1", "Ada")
    seed.task("t1")
    seed.assign("t1", "a1", "c1")
    session.sign_in("u1")
    assert store.active_subscriptions()

    session.sign_out()
    assert board.value() == []
    assert store.active_subscriptions() == {}


def test_close_releases_subscriptions(store, seed, board, session):
    seed.task("t1")
    session.sign_in("u1")
    board.close()
    assert store.active_subscriptions() == {}
    session.sign_out()
    session.sign_in("u2")
    assert store.active_subscriptions() == {}


def test_contact_delete_never_shows_unresolved_assignee(seed, board, session, cascade, make_recorder):
    seed.contact("c1", "Ada Lovelace")
    seed.contact("c2", "Bob Stone")
    seed.task("t1")
    seed.assign("t1", "a1", "c1")
    seed.assign("t1", "a2", "c2")
    session.sign_in("u1")
    rec = make_recorder()
    board.listen(rec)

    cascade.delete_contact("c1")
    assignees = [a for tasks in rec.values for t in tasks for a in t.assigns]
    assert assignees
    assert all(a.name for a in assignees)
    assert [a.contact_id for a in board.value()[0].assigns] == ["c2"]

    cascade.delete_contact("c2")
    assert all(a.name for tasks in rec.values for t in tasks for a in t.assigns)
    assert board.value()[0].assigns == ()


def test_removing_last_task_on_each_backend(any_store, any_seed, any_board, session, any_cascade):
    any_seed.contact("c1", "Ada")
    any_seed.task("t1")
    any_seed.subtask("t1", "s1", "write")
    any_seed.assign("t1", "a1", "c1")
    session.sign_in("u1")
    assert [t.assigns[0].name for t in any_board.value()] == ["Ada"]

    any_cascade.delete_task("t1")
    assert any_board.value() == []
    assert any_store.active_subscriptions() == {"tasks": 1}
