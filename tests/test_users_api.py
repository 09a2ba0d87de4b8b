import pytest

from conftest import STRONG_PASSWORD, create_menu_item, register_customer
from services.user_service.models import User
from services.user_service.schemas import UserLogin
from services.user_service.service import UserService
from shared.errors import Forbidden, NotFound
from shared.security import Role


def test_register_returns_client_without_password(client):
    resp = client.post(
        "/auth/register",
        json={"name": "Ana Torres", "email": "ana@example.com", "password": STRONG_PASSWORD},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["role"] == "CLIENT"
    assert body["email"] == "ana@example.com"
    assert "password" not in body and "hashed_password" not in body


def test_register_duplicate_email_conflicts(client):
    payload = {"name": "Ana", "email": "ana@example.com", "password": STRONG_PASSWORD}
    assert client.post("/auth/register", json=payload).status_code == 201

    resp = client.post("/auth/register", json={**payload, "name": "Other Ana"})

    assert resp.status_code == 409
    assert resp.json()["error"] == "Conflict"


@pytest.mark.parametrize(
    "password",
    ["Sh1!", "alllowercase1!", "ALLUPPERCASE1!", "NoDigitsHere!", "NoSpecial123", "Aa1!" + "x" * 70],
)
def test_register_rejects_weak_passwords(client, password):
    resp = client.post(
        "/auth/register", json={"name": "Ana", "email": "ana@example.com", "password": password}
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "ValidationError"
    assert password not in resp.text


def test_authenticate(client):
    user = register_customer(client, name="Ana", email="ana@example.com")

    ok = client.post("/auth/authenticate", json={"email": "ana@example.com", "password": STRONG_PASSWORD})
    assert ok.status_code == 200
    assert ok.json() == {"id": user.id, "email": "ana@example.com", "name": "Ana", "role": "CLIENT"}

    wrong = client.post("/auth/authenticate", json={"email": "ana@example.com", "password": "Wr0ng$pass"})
    assert wrong.status_code == 200
    assert wrong.json() is None

    unknown = client.post("/auth/authenticate", json={"email": "bob@example.com", "password": STRONG_PASSWORD})
    assert unknown.status_code == 404


def test_login_and_me(client):
    user = register_customer(client, name="Ana", email="ana@example.com")

    me = client.get("/auth/me", headers=user.headers())

    assert me.status_code == 200
    assert me.json()["id"] == user.id
    assert client.get("/auth/me").status_code == 401


@pytest.mark.parametrize(
    "email,password",
    [("ana@example.com", "Wr0ng$pass"), ("nobody@example.com", STRONG_PASSWORD)],
)
def test_login_failures_are_unauthenticated(client, email, password):
    register_customer(client, email="ana@example.com")

    resp = client.post("/auth/login", json={"email": email, "password": password})

    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthenticated"


def test_list_users_by_name_descending(client, admin_headers):
    for name in ("Beto", "Ana", "Carla"):
        register_customer(client, name=name)

    resp = client.get("/admin/users/", headers=admin_headers)

    assert resp.status_code == 200
    assert [u["name"] for u in resp.json()] == ["Carla", "Beto", "Ana"]


def test_change_role(client, admin_headers):
    user = register_customer(client)

    resp = client.patch(f"/admin/users/{user.id}/role", json={"new_role": "EMPLOYEE"}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["role"] == "EMPLOYEE"

    missing = client.patch("/admin/users/nope/role", json={"new_role": "ADMIN"}, headers=admin_headers)
    assert missing.status_code == 404

    bad_role = client.patch(f"/admin/users/{user.id}/role", json={"new_role": "OWNER"}, headers=admin_headers)
    assert bad_role.status_code == 400


def test_promotion_takes_effect_on_next_login(client, admin_headers):
    user = register_customer(client, email="ana@example.com")
    client.patch(f"/admin/users/{user.id}/role", json={"new_role": "ADMIN"}, headers=admin_headers)

    # the old token still carries the CLIENT role
    assert client.get("/admin/users/", headers=user.headers()).status_code == 403

    login = client.post("/auth/login", json={"email": "ana@example.com", "password": STRONG_PASSWORD})
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
    assert client.get("/admin/users/", headers=headers).status_code == 200


def test_delete_user(client, admin_headers):
    user = register_customer(client)

    resp = client.delete(f"/admin/users/{user.id}", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["id"] == user.id
    assert client.get("/admin/users/", headers=admin_headers).json() == []
    assert client.delete(f"/admin/users/{user.id}", headers=admin_headers).status_code == 404


def test_delete_user_with_orders_conflicts(client, admin_headers, customer):
    item = create_menu_item(client, admin_headers)
    order = client.post(
        "/orders/",
        json={
            "menu_item_ids": [item["id"]],
            "address": "123 Main St",
            "phone": "5551234567",
            "payment_method": "cash",
        },
        headers=customer.headers(),
    )
    assert order.status_code == 201

    resp = client.delete(f"/admin/users/{customer.id}", headers=admin_headers)

    assert resp.status_code == 409
    assert [u["id"] for u in client.get("/admin/users/", headers=admin_headers).json()] == [customer.id]


# --- Service level ---

@pytest.mark.anyio
async def test_inactive_account_cannot_log_in(db_session):
    user = User(
        name="Ana",
        email="ana@example.com",
        hashed_password=UserService._hash_password(STRONG_PASSWORD),
        role=Role.CLIENT,
        is_active=False,
    )
    db_session.add(user)
    await db_session.commit()

    with pytest.raises(Forbidden):
        await UserService.login(db_session, UserLogin(email="ana@example.com", password=STRONG_PASSWORD))


@pytest.mark.anyio
async def test_get_unknown_user(db_session):
    with pytest.raises(NotFound):
        await UserService.get_user_by_id(db_session, "nope")
