"""
API tests for staff and admin endpoints.
"""

import pytest

from bank_ledger.models.enums import AccountType, RoleName
from bank_ledger.services.account_service import AccountService


def bearer(client, username, password="secret123"):
    token = client.post(
        "/auth/login", json={"username": username, "password": password}
    ).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers(client, user_factory):
    user_factory("sam", roles=(RoleName.STAFF,))
    return bearer(client, "sam")


@pytest.fixture
def admin_headers(client, user_factory):
    user_factory("root", roles=(RoleName.ADMIN,))
    return bearer(client, "root")


@pytest.fixture
def pending_account(db_session, user_factory):
    user = user_factory("carol")
    account = AccountService(db_session).create_account(user.id, AccountType.SAVINGS)
    db_session.commit()
    return account


# --- Staff ---

class TestStaff:

    def test_pending_users_listed(self, client, staff_headers, pending_account, customer_factory):
        customer_factory("alice")

        response = client.get("/staff/users/pending-accounts", headers=staff_headers)

        assert response.status_code == 200
        assert [u["username"] for u in response.json()] == ["carol"]
        assert response.json()[0]["account_status"] == "PENDING_APPROVAL"

    def test_approve_account(self, client, staff_headers, pending_account):
        response = client.put(
            f"/staff/account/{pending_account.id}/approve", headers=staff_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == f"Account {pending_account.id} approved successfully."
        assert body["account"]["status"] == "ACTIVE"
        assert body["account"]["approved_by_staff"] is True

    def test_approve_twice_is_409(self, client, staff_headers, pending_account):
        client.put(f"/staff/account/{pending_account.id}/approve", headers=staff_headers)
        response = client.put(
            f"/staff/account/{pending_account.id}/approve", headers=staff_headers
        )
        assert response.status_code == 409

    def test_approve_unknown_is_404(self, client, staff_headers):
        response = client.put("/staff/account/9999/approve", headers=staff_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Account not found with ID: 9999"

    def test_freeze_and_unfreeze(self, client, staff_headers, customer_factory):
        _, account = customer_factory("alice")

        frozen = client.put(f"/staff/account/{account.id}/freeze", headers=staff_headers)
        assert frozen.status_code == 200
        assert frozen.json()["account"]["status"] == "FROZEN"

        again = client.put(f"/staff/account/{account.id}/freeze", headers=staff_headers)
        assert again.status_code == 409

        thawed = client.put(f"/staff/account/{account.id}/unfreeze", headers=staff_headers)
        assert thawed.status_code == 200
        assert thawed.json()["account"]["status"] == "ACTIVE"

    def test_all_accounts(self, client, staff_headers, pending_account, customer_factory):
        customer_factory("alice")

        response = client.get("/staff/accounts/all", headers=staff_headers)

        assert response.status_code == 200
        assert {a["username"] for a in response.json()} == {"carol", "alice"}

    def test_admin_may_use_staff_endpoints(self, client, admin_headers, pending_account):
        response = client.put(
            f"/staff/account/{pending_account.id}/approve", headers=admin_headers
        )
        assert response.status_code == 200

    def test_customer_forbidden(self, client, customer_factory):
        customer_factory("alice")
        response = client.get("/staff/accounts/all", headers=bearer(client, "alice"))
        assert response.status_code == 403


# --- Admin ---

class TestAdmin:

    def test_list_users(self, client, admin_headers, customer_factory):
        customer_factory("alice")

        response = client.get("/admin/users", headers=admin_headers)

        assert response.status_code == 200
        users = {u["username"]: u for u in response.json()}
        assert set(users) == {"root", "alice"}
        assert users["root"]["roles"] == ["ADMIN"]
        assert users["alice"]["account_number"] is not None

    def test_staff_forbidden(self, client, staff_headers):
        response = client.get("/admin/users", headers=staff_headers)
        assert response.status_code == 403

    def test_disable_blocks_login_and_enable_restores(self, client, admin_headers, user_factory):
        user = user_factory("alice")

        response = client.put(f"/admin/user/{user.id}/disable", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["message"] == f"User {user.id} disabled successfully."

        login = client.post("/auth/login", json={"username": "alice", "password": "secret123"})
        assert login.status_code == 401

        client.put(f"/admin/user/{user.id}/enable", headers=admin_headers)
        login = client.post("/auth/login", json={"username": "alice", "password": "secret123"})
        assert login.status_code == 200

    def test_reset_password(self, client, admin_headers, user_factory):
        user = user_factory("alice")

        response = client.put(
            f"/admin/user/{user.id}/reset-password",
            json={"new_password": "fresh-pass"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        old = client.post("/auth/login", json={"username": "alice", "password": "secret123"})
        new = client.post("/auth/login", json={"username": "alice", "password": "fresh-pass"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_reset_password_unknown_user_is_404(self, client, admin_headers):
        response = client.put(
            "/admin/user/9999/reset-password",
            json={"new_password": "fresh-pass"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_admin_freeze(self, client, admin_headers, customer_factory):
        _, account = customer_factory("alice")

        response = client.put(f"/admin/account/{account.id}/freeze", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["account"]["status"] == "FROZEN"

        response = client.put(f"/admin/account/{account.id}/unfreeze", headers=admin_headers)
        assert response.json()["account"]["status"] == "ACTIVE"

    def test_audit(self, client, db_session, admin_headers, customer_factory):
        customer_factory("alice")
        _, bob_account = customer_factory("bob")
        service = AccountService(db_session)
        service.deposit("alice", 100)
        service.transfer("alice", bob_account.account_number, 40)
        db_session.commit()

        response = client.get("/admin/transactions/audit", headers=admin_headers)

        assert response.status_code == 200
        types = [t["transaction_type"] for t in response.json()]
        assert sorted(types) == ["DEPOSIT", "TRANSFER", "TRANSFER"]

    def test_audit_bad_date_is_400(self, client, admin_headers):
        response = client.get(
            "/admin/transactions/audit",
            params={"end_date": "2025-13-01"},
            headers=admin_headers,
        )
        assert response.status_code == 400
