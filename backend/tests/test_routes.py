"""End-to-end tests of the HTTP routes."""

from collections.abc import Iterator

import pytest
from conftest import TEST_PASSWORD, TEST_SECRET_KEY
from fastapi.testclient import TestClient

from reportcard import AppConfig, configure_fastapi_app

ROOT_EMAIL = "root@school.test"


@pytest.fixture
def client(tmp_path) -> Iterator[TestClient]:
    config = AppConfig(
        database_path=str(tmp_path / "data" / "directory.db"),
        logging_level="DEBUG",
        root_path="",
        super_admin_email=ROOT_EMAIL,
        super_admin_password=TEST_PASSWORD,
        secret_key=TEST_SECRET_KEY,
        algorithm="HS512",
        access_token_expire_minutes=5,
        password_min_length=6,
    )
    with TestClient(configure_fastapi_app(config)) as test_client:
        yield test_client


def login(client: TestClient, email: str, password: str = TEST_PASSWORD) -> dict:
    response = client.post("/auth/login", data={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}


def invite_and_register(
    client: TestClient,
    headers: dict,
    email: str,
    role: str,
    **scope: object,
) -> dict:
    response = client.post(
        "/directory/invites",
        json={"email": email, "role": role, **scope},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    response = client.post(
        "/auth/register",
        json={"email": email, "password": TEST_PASSWORD, "name": email.split("@")[0]},
    )
    assert response.status_code == 200, response.text
    return login(client, email)


def test_read_root(client: TestClient) -> None:
    assert client.get("/").json() == "Report Card Directory API"


def test_super_admin_is_bootstrapped(client: TestClient) -> None:
    headers = login(client, ROOT_EMAIL)

    account = client.get("/auth/account", headers=headers).json()

    assert account["email"] == ROOT_EMAIL
    assert account["role"] == "super-admin"


def test_login_failure(client: TestClient) -> None:
    response = client.post(
        "/auth/login",
        data={"email": ROOT_EMAIL, "password": "wrong-password"},
    )
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "message": "Invalid email or password",
        "error": "authentication",
    }


def test_malformed_request_uses_result_envelope(client: TestClient) -> None:
    response = client.post(
        "/auth/register",
        json={"email": "kofi@school.test", "password": TEST_PASSWORD},
    )

    assert response.status_code == 422
    body = response.json()
    assert "detail" not in body
    assert body["success"] is False
    assert body["error"] == "validation"
    assert body["message"].startswith("name: ")

    response = client.post("/auth/login", data={"email": ROOT_EMAIL})
    assert response.status_code == 422
    assert response.json()["message"].startswith("password: ")


def test_long_password_is_a_validation_failure(client: TestClient) -> None:
    response = client.post(
        "/auth/register",
        json={"email": "kofi@school.test", "password": "x" * 100, "name": "Kofi"},
    )
    assert response.status_code == 422
    assert response.json()["error"] == "validation"

    response = client.post(
        "/auth/login",
        data={"email": ROOT_EMAIL, "password": "x" * 100},
    )
    assert response.status_code == 401


def test_routes_require_token(client: TestClient) -> None:
    assert client.get("/directory/users").status_code in {401, 403}
    response = client.get(
        "/directory/users",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


def test_provisioning_chain(client: TestClient) -> None:
    root = login(client, ROOT_EMAIL)
    district = invite_and_register(
        client,
        root,
        "district@school.test",
        "big-admin",
        region="Ashanti",
        district="Kumasi Metro",
        circuit="ignored",
    )
    head = invite_and_register(
        client,
        district,
        "head@school.test",
        "admin",
        region="Greater Accra",
        district="Accra Metro",
        school_name="Prempeh College",
    )

    account = client.get("/auth/account", headers=head).json()
    assert account["scope"] == {
        "region": "Ashanti",
        "district": "Kumasi Metro",
        "circuit": None,
        "school_name": "Prempeh College",
        "class_names": None,
    }

    # an admin may not invite another admin
    response = client.post(
        "/directory/invites",
        json={"email": "peer@school.test", "role": "admin"},
        headers=head,
    )
    assert response.status_code == 403
    assert response.json()["error"] == "permission"

    users = client.get("/directory/users", headers=district).json()["data"]
    assert [user["email"] for user in users] == ["head@school.test"]


def test_unassigned_invite_flow(client: TestClient) -> None:
    root = login(client, ROOT_EMAIL)
    created = client.post(
        "/directory/invites",
        json={"email": "later@school.test"},
        headers=root,
    ).json()
    assert created["success"]
    assert created["data"]["role"] is None

    response = client.post(
        "/auth/register",
        json={"email": "later@school.test", "password": TEST_PASSWORD, "name": "Later"},
    )
    assert response.status_code == 409
    assert "pending role assignment" in response.json()["message"]

    invite_id = created["data"]["id"]
    response = client.patch(
        f"/directory/invites/{invite_id}",
        json={"role": "user", "school_name": "Prempeh College", "class_names": ["1A"]},
        headers=root,
    )
    assert response.status_code == 200, response.text

    response = client.post(
        "/auth/register",
        json={"email": "later@school.test", "password": TEST_PASSWORD, "name": "Later"},
    )
    assert response.status_code == 200

    invites = client.get("/directory/invites", headers=root).json()["data"]
    assert invites[0]["status"] == "completed"


def test_deactivate_then_delete(client: TestClient) -> None:
    root = login(client, ROOT_EMAIL)
    invite_and_register(client, root, "gone@school.test", "user")
    users = client.get("/directory/users", headers=root).json()["data"]
    user_id = users[0]["id"]

    response = client.delete(f"/directory/users/{user_id}", headers=root)
    assert response.status_code == 409

    response = client.patch(
        f"/directory/users/{user_id}/status",
        json={"status": "inactive"},
        headers=root,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "inactive"

    # an inactive account can no longer sign in
    response = client.post(
        "/auth/login",
        data={"email": "gone@school.test", "password": TEST_PASSWORD},
    )
    assert response.status_code == 403

    response = client.delete(f"/directory/users/{user_id}", headers=root)
    assert response.status_code == 200
    assert client.get("/directory/users", headers=root).json()["data"] == []


def test_update_user_role(client: TestClient) -> None:
    root = login(client, ROOT_EMAIL)
    invite_and_register(client, root, "promote@school.test", "user")
    user_id = client.get("/directory/users", headers=root).json()["data"][0]["id"]

    response = client.patch(
        f"/directory/users/{user_id}",
        json={"role": "big-admin", "region": "Ashanti", "district": "Kumasi Metro"},
        headers=root,
    )
    assert response.status_code == 200, response.text
    assert response.json()["data"]["role"] == "big-admin"

    response = client.patch(
        f"/directory/users/{user_id}",
        json={"role": "wizard"},
        headers=root,
    )
    assert response.status_code == 422
    assert response.json()["message"].startswith("role:")


def test_delete_invite_route(client: TestClient) -> None:
    root = login(client, ROOT_EMAIL)
    invite_id = client.post(
        "/directory/invites",
        json={"email": "drop@school.test", "role": "user"},
        headers=root,
    ).json()["data"]["id"]

    assert client.delete(f"/directory/invites/{invite_id}", headers=root).status_code == 200
    assert client.delete(f"/directory/invites/{invite_id}", headers=root).status_code == 404
