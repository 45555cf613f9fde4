"""Tests for the GraphQL surface at /graphql."""

import pytest
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, USER_EMAIL, USER_PASSWORD, bearer
from fastapi.testclient import TestClient

LOGIN = """
mutation Login($email: String!, $password: String!) {
  login(input: {email: $email, password: $password}) {
    token
    expiresIn
    user { id email role }
  }
}
"""


def gql(client, query, variables=None, headers=None):
    response = client.post("/graphql", json={"query": query, "variables": variables or {}}, headers=headers or {})
    assert response.status_code == 200, response.text
    return response.json()


def error_code(body):
    return body["errors"][0]["extensions"]["code"]


def gql_login(client, email, password):
    body = gql(client, LOGIN, {"email": email, "password": password})
    return bearer(body["data"]["login"]["token"])


@pytest.fixture
def user_auth(client):
    return gql_login(client, USER_EMAIL, USER_PASSWORD)


@pytest.fixture
def admin_auth(client):
    return gql_login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


def test_login_returns_uppercase_role(client, user):
    body = gql(client, LOGIN, {"email": USER_EMAIL, "password": USER_PASSWORD})
    payload = body["data"]["login"]
    assert payload["user"] == {"id": user.id, "email": USER_EMAIL, "role": "USER"}
    assert payload["expiresIn"] == "24h"


def test_login_failure(client):
    body = gql(client, LOGIN, {"email": USER_EMAIL, "password": "wrong!"})
    assert body["data"] is None
    assert body["errors"][0]["message"] == "Invalid credentials"
    assert error_code(body) == "UNAUTHENTICATED"


def test_register(client, store):
    body = gql(
        client,
        """
        mutation {
          register(input: {name: "Gina", email: "gina@test.com", password: "secret1"}) {
            token
            user { name role }
          }
        }
        """,
    )
    assert body["data"]["register"]["user"] == {"name": "Gina", "role": "USER"}
    assert store.get_user_by_email("gina@test.com") is not None


def test_register_validation(client, store):
    body = gql(
        client,
        'mutation { register(input: {name: "G", email: "bad", password: "1"}) { token } }',
    )
    assert error_code(body) == "BAD_USER_INPUT"
    assert len(body["errors"][0]["extensions"]["details"]) == 3
    assert store.get_user_by_email("bad") is None


def test_me_requires_authentication(client):
    body = gql(client, "{ me { id } }")
    assert error_code(body) == "UNAUTHENTICATED"


def test_me(client, user_auth, user):
    body = gql(client, "{ me { id name } }", headers=user_auth)
    assert body["data"]["me"] == {"id": user.id, "name": "Test User"}


def test_tasks_connection(client, user_auth, user):
    body = gql(
        client,
        """
        {
          tasks(limit: 1, page: 2) {
            tasks { title priority userId user { email } }
            pagination { current total count totalItems }
          }
        }
        """,
        headers=user_auth,
    )
    data = body["data"]["tasks"]
    assert data["pagination"] == {"current": 2, "total": 2, "count": 1, "totalItems": 2}
    assert data["tasks"] == [
        {"title": "Completed task", "priority": "HIGH", "userId": user.id, "user": {"email": USER_EMAIL}}
    ]


def test_tasks_filter_by_priority_enum(client, user_auth):
    body = gql(client, "{ tasks(priority: MEDIUM) { tasks { title } } }", headers=user_auth)
    assert body["data"]["tasks"]["tasks"] == [{"title": "Sample task 1"}]


def test_tasks_bad_limit(client, user_auth):
    body = gql(client, "{ tasks(limit: 500) { tasks { id } } }", headers=user_auth)
    assert error_code(body) == "BAD_USER_INPUT"


def test_create_update_delete_task(client, user_auth, store):
    created = gql(
        client,
        'mutation { createTask(input: {title: "X", priority: HIGH}) { id completed priority } }',
        headers=user_auth,
    )["data"]["createTask"]
    assert created["completed"] is False
    assert created["priority"] == "HIGH"

    updated = gql(
        client,
        "mutation($id: ID!) { updateTask(id: $id, input: {completed: true}) { title completed } }",
        {"id": created["id"]},
        headers=user_auth,
    )["data"]["updateTask"]
    assert updated == {"title": "X", "completed": True}

    deleted = gql(client, "mutation($id: ID!) { deleteTask(id: $id) }", {"id": created["id"]}, headers=user_auth)
    assert deleted["data"]["deleteTask"] is True
    assert store.get_task(created["id"]) is None


def test_cross_owner_task_is_forbidden(client, admin_auth, user_auth):
    created = gql(client, 'mutation { createTask(input: {title: "Admin only"}) { id } }', headers=admin_auth)
    task_id = created["data"]["createTask"]["id"]

    body = gql(client, "query($id: ID!) { task(id: $id) { id } }", {"id": task_id}, headers=user_auth)
    assert error_code(body) == "FORBIDDEN"
    assert body["errors"][0]["extensions"]["errorCode"] == "ACCESS_DENIED"


def test_missing_task_is_bad_user_input(client, user_auth):
    body = gql(client, '{ task(id: "nope") { id } }', headers=user_auth)
    assert error_code(body) == "BAD_USER_INPUT"
    assert body["errors"][0]["message"] == "Task not found"


def test_my_tasks(client, user_auth):
    body = gql(client, "{ myTasks(completed: true) { title } }", headers=user_auth)
    assert body["data"]["myTasks"] == [{"title": "Completed task"}]


def test_users_admin_only(client, admin_auth, user_auth):
    admin_body = gql(client, "{ users { email role } }", headers=admin_auth)
    assert {"email": ADMIN_EMAIL, "role": "ADMIN"} in admin_body["data"]["users"]

    user_body = gql(client, "{ users { email } }", headers=user_auth)
    assert error_code(user_body) == "FORBIDDEN"


def test_user_by_id(client, user_auth, admin):
    body = gql(client, "query($id: ID!) { user(id: $id) { id email role } }", {"id": admin.id}, headers=user_auth)
    assert body["data"]["user"] == {"id": admin.id, "email": ADMIN_EMAIL, "role": "ADMIN"}


def test_missing_user_is_bad_user_input(client, admin_auth):
    body = gql(client, '{ user(id: "nope") { id } }', headers=admin_auth)
    assert error_code(body) == "BAD_USER_INPUT"
    assert body["errors"][0]["extensions"]["errorCode"] == "USER_NOT_FOUND"
    assert body["data"] == {"user": None}


def test_task_owner_is_null_after_owner_deleted(client, store, admin_auth, admin):
    owner = store.create_user(name="Gone Soon", email="gone@test.com", password="x")
    task = store.create_task(title="Orphan", user_id=owner.id)
    store.delete_user(owner.id)

    body = gql(
        client,
        "query($id: ID!) { task(id: $id) { title userId user { id } } }",
        {"id": task.id},
        headers=admin_auth,
    )
    assert "errors" not in body
    assert body["data"]["task"] == {"title": "Orphan", "userId": owner.id, "user": None}


def test_update_user_role_requires_admin(client, user_auth, user):
    body = gql(
        client,
        "mutation($id: ID!) { updateUser(id: $id, input: {role: ADMIN}) { role } }",
        {"id": user.id},
        headers=user_auth,
    )
    assert error_code(body) == "FORBIDDEN"


def test_delete_last_admin(client, admin_auth, admin):
    body = gql(client, "mutation($id: ID!) { deleteUser(id: $id) }", {"id": admin.id}, headers=admin_auth)
    assert error_code(body) == "BAD_USER_INPUT"
    assert body["errors"][0]["extensions"]["errorCode"] == "LAST_ADMIN_CANNOT_BE_DELETED"


def test_change_password(client, user_auth):
    body = gql(
        client,
        """
        mutation {
          changePassword(input: {currentPassword: "user123", newPassword: "newpass", confirmPassword: "newpass"})
        }
        """,
        headers=user_auth,
    )
    assert body["data"]["changePassword"] is True
    assert gql_login(client, USER_EMAIL, "newpass")


def test_refresh_token(client, user_auth, credentials, user):
    body = gql(client, "mutation { refreshToken { token user { id } } }", headers=user_auth)
    payload = body["data"]["refreshToken"]
    assert payload["user"]["id"] == user.id
    assert credentials.verify_token(payload["token"]).sub == user.id


def test_unexpected_error_is_masked(app, user_auth, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(app.state.task_service, "my_tasks", explode)
    with TestClient(app) as client:
        bodies = [gql(client, "{ myTasks { id } }", headers=user_auth) for _ in range(2)]
    for body in bodies:
        assert body["errors"][0]["message"] == "Internal server error"
        assert error_code(body) == "INTERNAL_SERVER_ERROR"
