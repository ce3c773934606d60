"""
API tests for customer self-service account endpoints.
"""

from decimal import Decimal

import pytest

from bank_ledger.models.enums import RoleName
from bank_ledger.services.account_service import AccountService


def auth_header(client, username, password="secret123"):
    token = client.post(
        "/auth/login", json={"username": username, "password": password}
    ).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client, customer_factory):
    _, account = customer_factory("alice")
    return account, auth_header(client, "alice")


@pytest.fixture
def bob(client, customer_factory):
    _, account = customer_factory("bob")
    return account, auth_header(client, "bob")


def test_me_returns_primary_account(client, alice):
    account, headers = alice

    response = client.get("/account/me", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["account_number"] == account.account_number
    assert data["status"] == "ACTIVE"
    assert data["username"] == "alice"
    assert Decimal(data["balance"]) == Decimal("0")


def test_deposit_and_withdraw(client, alice):
    _, headers = alice

    deposit = client.post("/account/deposit", json={"amount": "150.25"}, headers=headers)
    assert deposit.status_code == 200
    assert deposit.json()["transaction_type"] == "DEPOSIT"
    assert deposit.json()["source_account_number"] is None

    withdraw = client.post("/account/withdraw", json={"amount": "50"}, headers=headers)
    assert withdraw.status_code == 200
    assert withdraw.json()["transaction_type"] == "WITHDRAWAL"

    me = client.get("/account/me", headers=headers).json()
    assert Decimal(me["balance"]) == Decimal("100.25")


def test_overdraw_is_400_with_error_body(client, alice):
    _, headers = alice

    response = client.post("/account/withdraw", json={"amount": "10"}, headers=headers)

    assert response.status_code == 400
    body = response.json()
    assert "Insufficient funds" in body["message"]
    assert body["details"] == "/account/withdraw"


@pytest.mark.parametrize("amount", ["0", "-1", "abc"])
def test_non_positive_amount_is_422(client, alice, amount):
    _, headers = alice
    response = client.post("/account/deposit", json={"amount": amount}, headers=headers)
    assert response.status_code == 422


def test_transfer_returns_both_legs(client, alice, bob):
    alice_account, alice_headers = alice
    bob_account, bob_headers = bob
    client.post("/account/deposit", json={"amount": "300"}, headers=alice_headers)

    response = client.post(
        "/account/transfer",
        json={"destination_account_number": bob_account.account_number, "amount": "120"},
        headers=alice_headers,
    )

    assert response.status_code == 200
    debit, credit = response.json()
    assert debit["reference_id"] == credit["reference_id"]
    assert Decimal(debit["amount"]) == Decimal("-120")
    assert Decimal(credit["amount"]) == Decimal("120")
    assert debit["source_account_number"] == alice_account.account_number
    assert credit["destination_account_number"] == bob_account.account_number

    bob_me = client.get("/account/me", headers=bob_headers).json()
    assert Decimal(bob_me["balance"]) == Decimal("120")


def test_transfer_to_self_is_400(client, alice):
    account, headers = alice
    client.post("/account/deposit", json={"amount": "10"}, headers=headers)

    response = client.post(
        "/account/transfer",
        json={"destination_account_number": account.account_number, "amount": "1"},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot transfer funds to the same account."


def test_transfer_bad_account_number_shape_is_422(client, alice):
    _, headers = alice
    response = client.post(
        "/account/transfer",
        json={"destination_account_number": "12345", "amount": "1"},
        headers=headers,
    )
    assert response.status_code == 422


def test_transaction_history(client, alice):
    _, headers = alice
    client.post("/account/deposit", json={"amount": "10"}, headers=headers)
    client.post("/account/deposit", json={"amount": "20"}, headers=headers)

    response = client.get("/account/transactions", headers=headers)

    assert response.status_code == 200
    amounts = [Decimal(t["amount"]) for t in response.json()]
    assert amounts == [Decimal("20"), Decimal("10")]


def test_transaction_history_bad_date_is_400(client, alice):
    _, headers = alice
    response = client.get(
        "/account/transactions", params={"start_date": "01/02/2025"}, headers=headers
    )
    assert response.status_code == 400


def test_frozen_account_deposit_is_400(client, db_session, alice):
    account, headers = alice
    AccountService(db_session).freeze_account(account.id)
    db_session.commit()

    response = client.post("/account/deposit", json={"amount": "10"}, headers=headers)

    assert response.status_code == 400
    assert "frozen" in response.json()["message"]


def test_staff_can_open_account(client, user_factory):
    customer = user_factory("carol")
    user_factory("sam", roles=(RoleName.STAFF,))
    headers = auth_header(client, "sam")

    response = client.post(
        f"/account/create/{customer.id}",
        json={"account_type": "CURRENT"},
        headers=headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING_APPROVAL"
    assert data["username"] == "carol"


def test_customer_cannot_open_account(client, alice):
    _, headers = alice
    response = client.post(
        "/account/create/1", json={"account_type": "SAVINGS"}, headers=headers
    )
    assert response.status_code == 403


def test_pending_account_deposit_is_403(client, user_factory):
    customer = user_factory("carol")
    user_factory("sam", roles=(RoleName.STAFF,))
    client.post(
        f"/account/create/{customer.id}",
        json={"account_type": "SAVINGS"},
        headers=auth_header(client, "sam"),
    )

    response = client.post(
        "/account/deposit", json={"amount": "10"}, headers=auth_header(client, "carol")
    )

    assert response.status_code == 403
