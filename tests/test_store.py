"""Tests for the in-memory store."""

import pytest

from task_manager_api.app.core.domain import Priority, Role
from task_manager_api.app.core.store import Store


@pytest.fixture
def empty_store(credentials):
    return Store(password_hasher=credentials.hash_password)


def test_records_are_copies(empty_store):
    user = empty_store.create_user(name="Ann", email="ann@test.com", password="h", role=Role.USER)
    user.name = "Mutated"
    assert empty_store.get_user(user.id).name == "Ann"

    fetched = empty_store.get_user(user.id)
    fetched.role = Role.ADMIN
    assert empty_store.count_admins() == 0


def test_email_lookup_is_case_sensitive(empty_store):
    empty_store.create_user(name="Ann", email="Ann@test.com", password="h")
    assert empty_store.get_user_by_email("Ann@test.com") is not None
    assert empty_store.get_user_by_email("ann@test.com") is None


def test_update_user_refreshes_timestamp(empty_store):
    user = empty_store.create_user(name="Ann", email="ann@test.com", password="h")
    updated = empty_store.update_user(user.id, name="Annie", role="admin")
    assert updated.name == "Annie"
    assert updated.role is Role.ADMIN
    assert updated.created_at == user.created_at
    assert updated.updated_at >= user.updated_at


def test_update_rejects_unknown_fields(empty_store):
    user = empty_store.create_user(name="Ann", email="ann@test.com", password="h")
    with pytest.raises(ValueError):
        empty_store.update_user(user.id, id="other")
    task = empty_store.create_task(title="T", user_id=user.id)
    with pytest.raises(ValueError):
        empty_store.update_task(task.id, user_id="someone-else")


def test_update_missing_records_return_none(empty_store):
    assert empty_store.update_user("missing", name="x") is None
    assert empty_store.update_task("missing", title="x") is None


def test_delete_user_keeps_tasks(empty_store):
    user = empty_store.create_user(name="Ann", email="ann@test.com", password="h")
    task = empty_store.create_task(title="T", user_id=user.id)
    assert empty_store.delete_user(user.id) is True
    assert empty_store.delete_user(user.id) is False
    assert empty_store.get_task(task.id).user_id == user.id


def test_list_tasks_in_insertion_order_and_by_owner(empty_store):
    ann = empty_store.create_user(name="Ann", email="ann@test.com", password="h")
    bob = empty_store.create_user(name="Bob", email="bob@test.com", password="h")
    first = empty_store.create_task(title="1", user_id=ann.id)
    empty_store.create_task(title="2", user_id=bob.id)
    third = empty_store.create_task(title="3", user_id=ann.id, priority=Priority.HIGH)

    assert [t.title for t in empty_store.list_tasks()] == ["1", "2", "3"]
    assert [t.id for t in empty_store.list_tasks(owner_id=ann.id)] == [first.id, third.id]


def test_seed_and_reset(empty_store, credentials):
    empty_store.seed()
    admin = empty_store.get_user_by_email("admin@test.com")
    user = empty_store.get_user_by_email("user@test.com")
    assert admin.role is Role.ADMIN
    assert credentials.verify_password("admin123", admin.password)
    assert credentials.verify_password("user123", user.password)

    tasks = empty_store.list_tasks()
    assert [t.title for t in tasks] == ["Sample task 1", "Completed task"]
    assert all(t.user_id == user.id for t in tasks)
    assert tasks[1].completed and tasks[1].priority is Priority.HIGH

    empty_store.create_task(title="extra", user_id=user.id)
    empty_store.reset()
    assert len(empty_store.list_tasks()) == 2
    assert len(empty_store.list_users()) == 2

    empty_store.clear()
    assert empty_store.list_users() == []


def test_seed_needs_hasher():
    with pytest.raises(RuntimeError):
        Store().seed()
