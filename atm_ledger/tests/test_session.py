from decimal import Decimal

import pytest

from ..core.errors import AuthenticationError, NotAuthenticatedError
from ..services import AtmSession


@pytest.fixture
def atm(ledger) -> AtmSession:
    return AtmSession(ledger)


def test_operations_require_login(atm) -> None:
    assert atm.is_authenticated is False
    with pytest.raises(NotAuthenticatedError):
        atm.balance()
    with pytest.raises(NotAuthenticatedError):
        atm.transfer("1111222233", "10")
    with pytest.raises(NotAuthenticatedError):
        atm.history()
    with pytest.raises(NotAuthenticatedError):
        atm.account_details("1234")
    with pytest.raises(NotAuthenticatedError):
        atm.change_pin("CARD-0001", "0000", confirmed=True)
    assert atm.ledger.authenticate("CARD-0001", "1234").account_number == "1234567890"


def test_failed_login_leaves_session_empty(atm) -> None:
    with pytest.raises(AuthenticationError):
        atm.login("CARD-0001", "0000")
    assert atm.current_account is None


def test_login_transfer_history_logout(atm) -> None:
    account = atm.login("CARD-0001", "1234")
    assert account.name == "John Doe"

    receipt = atm.transfer("1111222233", " 200.00 ")
    assert receipt.sender_balance == Decimal("800.00")
    assert atm.balance().balance == Decimal("800.00")

    history = atm.history()
    assert [item.receipt for item in history.items] == [receipt.receipt]

    atm.logout()
    assert atm.is_authenticated is False
    with pytest.raises(NotAuthenticatedError):
        atm.balance()


def test_second_login_replaces_user(atm) -> None:
    atm.login("CARD-0001", "1234")
    atm.login("1111222233", "4321")
    assert atm.current_account.account_number == "1111222233"
    assert atm.balance().balance == Decimal("500.00")


def test_account_details_require_pin(atm) -> None:
    atm.login("1234567890", "1234")
    with pytest.raises(AuthenticationError):
        atm.account_details("4321")

    details = atm.account_details("1234")
    assert details.ifsc_code == "IFSC1234567"
    assert details.card_number == "CARD-0001"


def test_change_pin_through_session(atm) -> None:
    atm.login("CARD-0002", "4321")
    atm.change_pin("CARD-0002", "2468", confirmed=True)
    atm.logout()

    assert atm.login("CARD-0002", "2468").account_number == "1111222233"
