from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from sqlmodel import Session

from ..core.db import create_engine_for_url
from ..core.errors import StoreError, StoreUnavailableError
from ..models import AccountModel, TransactionModel
from ..services import LedgerRepository


def make_transaction(receipt: str, from_card: str, to_card: str, minutes: int) -> TransactionModel:
    return TransactionModel(
        receipt=receipt,
        occurred_at=datetime(2024, 1, 1, tzinfo=UTC) + timedelta(minutes=minutes),
        from_card=from_card,
        to_card=to_card,
        amount=Decimal("10.00"),
        description="Transfer",
    )


def test_load_all_accounts_returns_seeded_rows(seeded_store, session_factory) -> None:
    with session_factory() as session:
        rows = LedgerRepository(session).load_all_accounts()
    assert [row.account_number for row in rows] == ["1111222233", "1234567890"]
    assert rows[1].balance == Decimal("1000.00")


def test_load_all_accounts_unreachable_store(tmp_path) -> None:
    engine = create_engine_for_url(f"sqlite:///{tmp_path / 'missing' / 'store.db'}")
    with Session(engine) as session:
        with pytest.raises(StoreUnavailableError):
            LedgerRepository(session).load_all_accounts()


def test_save_balance_and_pin_need_commit(seeded_store, session_factory) -> None:
    with session_factory() as session:
        repository = LedgerRepository(session)
        repository.save_balance("1234567890", Decimal("1.23"))
        repository.save_pin("1234567890", "9999")
        repository.rollback()

    with session_factory() as session:
        repository = LedgerRepository(session)
        repository.save_balance("1234567890", Decimal("4.56"))
        repository.commit()

    with session_factory() as session:
        row = session.get(AccountModel, "1234567890")
        assert row.balance == Decimal("4.56")
        assert row.pin == "1234"


def test_save_balance_unknown_account(seeded_store, session_factory) -> None:
    with session_factory() as session:
        with pytest.raises(StoreError):
            LedgerRepository(session).save_balance("0000000000", Decimal("1"))


def test_duplicate_card_number_is_a_store_error(seeded_store, session_factory) -> None:
    with session_factory() as session:
        repository = LedgerRepository(session)
        with pytest.raises(StoreError):
            repository.add_account(
                AccountModel(
                    account_number="5555666677",
                    card_no="CARD-0001",
                    pin="1",
                    name="Dup",
                    ifsc_code="IFSC0000000",
                    balance=Decimal("0"),
                )
            )


def test_query_transactions_matches_either_side(session_factory) -> None:
    with session_factory() as session:
        repository = LedgerRepository(session)
        repository.append_transaction(make_transaction("AAAA0001", "A", "B", 1))
        repository.append_transaction(make_transaction("AAAA0002", "B", "A", 3))
        repository.append_transaction(make_transaction("AAAA0003", "B", "C", 2))
        repository.append_transaction(make_transaction("AAAA0004", "C", "A", 0))
        repository.commit()

    with session_factory() as session:
        repository = LedgerRepository(session)
        receipts = [row.receipt for row in repository.query_transactions("A", 10)]
        limited = [row.receipt for row in repository.query_transactions("A", 2)]
        assert repository.get_transaction("AAAA0003").from_card == "B"
        assert repository.get_transaction("ZZZZ9999") is None

    assert receipts == ["AAAA0002", "AAAA0001", "AAAA0004"]
    assert limited == ["AAAA0002", "AAAA0001"]


def test_duplicate_receipt_is_rejected(session_factory) -> None:
    with session_factory() as session:
        repository = LedgerRepository(session)
        repository.append_transaction(make_transaction("BBBB0001", "A", "B", 0))
        with pytest.raises(StoreError):
            repository.append_transaction(make_transaction("BBBB0001", "A", "B", 1))
