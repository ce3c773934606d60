"""
Tests for the TransactionService: history, audit, and reconciliation.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from bank_ledger.exceptions import InvalidArgumentError, NotFoundError
from bank_ledger.models.enums import TransactionType
from bank_ledger.services.account_service import AccountService
from bank_ledger.services.transaction_service import (
    TransactionService,
    parse_date_bound,
)


@pytest.fixture
def funded_pair(db_session, customer_factory, clock):
    """
    alice and bob with activity spread over three days:

        Mar 1  alice deposits 500
        Mar 2  alice sends bob 120
        Mar 3  bob withdraws 20
    """
    _, alice_account = customer_factory("alice")
    _, bob_account = customer_factory("bob")
    service = AccountService(db_session, clock=clock)

    service.deposit("alice", 500)
    clock.advance(days=1)
    service.transfer("alice", bob_account.account_number, 120)
    clock.advance(days=1)
    service.withdraw("bob", 20)
    db_session.commit()
    return alice_account, bob_account


class TestParseDateBound:

    def test_empty_means_unbounded(self):
        assert parse_date_bound(None, "start") is None
        assert parse_date_bound("", "end", end_of_day=True) is None

    def test_start_is_midnight(self):
        assert parse_date_bound("2025-03-02", "start") == datetime(2025, 3, 2, 0, 0)

    def test_end_is_last_second_of_day(self):
        bound = parse_date_bound("2025-03-02", "end", end_of_day=True)
        assert bound == datetime(2025, 3, 2, 23, 59, 59)

    @pytest.mark.parametrize("value", [
        "02-03-2025", "2025/03/02", "yesterday", "2025-02-30",
        "2025-1-5", "2025-01-5", "2025-1-05", "20250105", " 2025-01-05",
    ])
    def test_malformed_date_rejected(self, value):
        with pytest.raises(InvalidArgumentError, match="Use YYYY-MM-DD"):
            parse_date_bound(value, "start")


class TestHistory:

    def test_history_is_newest_first(self, db_session, funded_pair):
        service = TransactionService(db_session)

        rows = service.history_for_user("alice")

        assert [r.transaction_type for r in rows] == [
            TransactionType.TRANSFER,
            TransactionType.TRANSFER,
            TransactionType.DEPOSIT,
        ]
        assert rows[0].timestamp >= rows[-1].timestamp

    def test_history_includes_both_transfer_legs_for_each_side(self, db_session, funded_pair):
        service = TransactionService(db_session)

        bob_rows = service.history_for_user("bob")

        transfer_amounts = sorted(
            r.amount for r in bob_rows if r.transaction_type == TransactionType.TRANSFER
        )
        assert transfer_amounts == [Decimal("-120"), Decimal("120")]

    def test_date_range_is_inclusive(self, db_session, funded_pair):
        service = TransactionService(db_session)

        rows = service.history_for_user("alice", "2025-03-02", "2025-03-02")
        assert len(rows) == 2
        assert all(r.transaction_type == TransactionType.TRANSFER for r in rows)

        rows = service.history_for_user("alice", start_date="2025-03-03")
        assert rows == []

        rows = service.history_for_user("alice", end_date="2025-03-01")
        assert [r.transaction_type for r in rows] == [TransactionType.DEPOSIT]

    def test_end_date_includes_last_second(self, db_session, customer_factory, clock):
        customer_factory("alice")
        clock.now = datetime(2025, 3, 1, 23, 59, 59)
        AccountService(db_session, clock=clock).deposit("alice", 5)
        db_session.commit()

        rows = TransactionService(db_session).history_for_user("alice", end_date="2025-03-01")

        assert [r.timestamp for r in rows] == [datetime(2025, 3, 1, 23, 59, 59)]

    def test_history_for_user_without_account(self, db_session, user_factory):
        user_factory("carol")
        with pytest.raises(NotFoundError):
            TransactionService(db_session).history_for_user("carol")

    def test_malformed_date_in_history(self, db_session, funded_pair):
        with pytest.raises(InvalidArgumentError):
            TransactionService(db_session).history_for_user("alice", end_date="03/02/2025")


class TestAudit:

    def test_audit_sees_every_row(self, db_session, funded_pair):
        rows = TransactionService(db_session).audit()
        assert len(rows) == 4

    def test_audit_respects_range(self, db_session, funded_pair):
        rows = TransactionService(db_session).audit("2025-03-03", "2025-03-31")
        assert [r.transaction_type for r in rows] == [TransactionType.WITHDRAWAL]


class TestReferencesAndResponses:

    def test_transfer_legs_share_reference(self, db_session, funded_pair):
        service = TransactionService(db_session)
        transfer = next(
            r for r in service.audit() if r.transaction_type == TransactionType.TRANSFER
        )

        legs = service.find_by_reference_id(transfer.reference_id)

        assert len(legs) == 2
        assert sum(leg.amount for leg in legs) == Decimal("0")

    def test_responses_carry_account_numbers(self, db_session, funded_pair):
        alice_account, bob_account = funded_pair
        service = TransactionService(db_session)

        responses = service.to_responses(service.audit())
        by_type = {}
        for r in responses:
            by_type.setdefault(r.transaction_type, []).append(r)

        deposit = by_type[TransactionType.DEPOSIT][0]
        assert deposit.source_account_number is None
        assert deposit.destination_account_number == alice_account.account_number

        for leg in by_type[TransactionType.TRANSFER]:
            assert leg.source_account_number == alice_account.account_number
            assert leg.destination_account_number == bob_account.account_number

    def test_ledger_balance_matches_stored_balance(self, db_session, funded_pair):
        alice_account, bob_account = funded_pair
        service = TransactionService(db_session)

        assert service.ledger_balance(alice_account.id) == Decimal("380")
        assert service.ledger_balance(bob_account.id) == Decimal("100")
        assert alice_account.balance == Decimal("380")
        assert bob_account.balance == Decimal("100")
