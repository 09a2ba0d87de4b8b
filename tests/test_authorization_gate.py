from datetime import timedelta

import pytest

from conftest import bearer
from services.menu_service.repository import MenuItemRepository
from shared.errors import Forbidden, Unauthenticated
from shared.security import Principal, Role, Tier, authorize, create_access_token
from shared.security.dependencies import principal_from_token

CLIENT = Principal(id="u-client", role=Role.CLIENT)
EMPLOYEE = Principal(id="u-employee", role=Role.EMPLOYEE)
ADMIN = Principal(id="u-admin", role=Role.ADMIN)


@pytest.mark.parametrize("principal", [None, CLIENT, EMPLOYEE, ADMIN])
def test_public_tier_always_proceeds(principal):
    assert authorize(principal, Tier.PUBLIC) == principal


def test_authenticated_tier_requires_a_principal():
    with pytest.raises(Unauthenticated):
        authorize(None, Tier.AUTHENTICATED)
    assert authorize(CLIENT, Tier.AUTHENTICATED) is CLIENT
    assert authorize(EMPLOYEE, Tier.AUTHENTICATED) is EMPLOYEE


def test_admin_tier():
    with pytest.raises(Unauthenticated):
        authorize(None, Tier.ADMIN)
    with pytest.raises(Forbidden):
        authorize(CLIENT, Tier.ADMIN)
    # EMPLOYEE carries no extra grant
    with pytest.raises(Forbidden):
        authorize(EMPLOYEE, Tier.ADMIN)
    assert authorize(ADMIN, Tier.ADMIN) is ADMIN


def test_principal_is_immutable():
    with pytest.raises(Exception):
        CLIENT.role = Role.ADMIN


def test_token_resolution():
    token = create_access_token({"sub": "u-1", "role": "ADMIN"})
    assert principal_from_token(token) == Principal(id="u-1", role=Role.ADMIN)

    assert principal_from_token(None) is None
    assert principal_from_token("not-a-jwt") is None
    assert principal_from_token(create_access_token({"sub": "u-1"})) is None
    assert principal_from_token(create_access_token({"sub": "u-1", "role": "OWNER"})) is None
    expired = create_access_token({"sub": "u-1", "role": "ADMIN"}, expires_delta=timedelta(minutes=-1))
    assert principal_from_token(expired) is None


# --- Route-level tiers ---

def test_checkout_without_principal_is_rejected_before_catalog_read(client, monkeypatch):
    async def must_not_be_called(*args, **kwargs):
        raise AssertionError("catalog read before authorization")

    monkeypatch.setattr(MenuItemRepository, "get_by_ids", must_not_be_called)

    resp = client.post(
        "/orders/",
        json={
            "menu_item_ids": ["x"],
            "address": "123 Main St",
            "phone": "5551234567",
            "payment_method": "cash",
        },
    )

    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthenticated"
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_token_counts_as_anonymous(client):
    headers = {"Authorization": "Bearer garbage"}
    assert client.get("/admin/orders/", headers=headers).status_code == 401
    assert client.get("/menu/", headers=headers).status_code == 200


@pytest.mark.parametrize(
    "method,path,body",
    [
        ("get", "/admin/orders/", None),
        ("patch", "/admin/orders/some-order/status", {"status": "READY"}),
        ("get", "/admin/users/", None),
        ("delete", "/admin/users/some-user", None),
        ("patch", "/admin/users/some-user/role", {"new_role": "ADMIN"}),
        ("get", "/admin/menu/", None),
        ("delete", "/admin/menu/some-item", None),
    ],
)
@pytest.mark.parametrize("role", ["CLIENT", "EMPLOYEE"])
def test_admin_routes_forbid_non_admins(client, method, path, body, role):
    kwargs = {"headers": bearer("u-1", role)}
    if body is not None:
        kwargs["json"] = body

    resp = client.request(method.upper(), path, **kwargs)

    assert resp.status_code == 403
    assert resp.json()["error"] == "Forbidden"


def test_admin_routes_require_authentication(client):
    resp = client.get("/admin/orders/")
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthenticated"


def test_public_routes_need_no_principal(client):
    assert client.get("/menu/").status_code == 200
    resp = client.get("/menu/does-not-exist")
    assert resp.status_code == 200
    assert resp.json() is None
