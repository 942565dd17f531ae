from __future__ import annotations

from collections.abc import Iterable, Iterator
from decimal import Decimal
from typing import Optional

from ..core.errors import DuplicateAccountError
from ..models import Account, AccountModel


def fallback_accounts() -> list[Account]:
    """Fixed demo pair used when the account store cannot be reached."""
    return [
        Account(
            account_number="1234567890",
            card_number="CARD-0001",
            pin="1234",
            balance=Decimal("1000.00"),
            name="John Doe",
            ifsc_code="IFSC1234567",
            address="123 Main St, Anytown",
        ),
        Account(
            account_number="1111222233",
            card_number="CARD-0002",
            pin="4321",
            balance=Decimal("500.00"),
            name="Jane Smith",
            ifsc_code="IFSC7654321",
            address="456 Oak Ave, Somewhere",
        ),
    ]


class AccountCache:
    """Accounts indexed by account number and by card number.

    Both indices hold the same objects, so an in-place mutation is visible
    through either key. Account and card numbers never change after insert.
    """

    def __init__(self, accounts: Iterable[Account] = ()) -> None:
        self._by_number: dict[str, Account] = {}
        self._by_card: dict[str, Account] = {}
        for account in accounts:
            self.add(account)

    def add(self, account: Account) -> None:
        if account.account_number in self._by_number:
            raise DuplicateAccountError(
                f"Account number {account.account_number} is already loaded"
            )
        if account.card_number in self._by_card:
            raise DuplicateAccountError(
                f"Card number {account.card_number} is already loaded"
            )
        self._by_number[account.account_number] = account
        self._by_card[account.card_number] = account

    def replace_all(self, accounts: Iterable[Account]) -> None:
        fresh = AccountCache(accounts)
        self._by_number = fresh._by_number
        self._by_card = fresh._by_card

    def by_account_number(self, account_number: str) -> Optional[Account]:
        return self._by_number.get(account_number)

    def by_card_number(self, card_number: str) -> Optional[Account]:
        return self._by_card.get(card_number)

    def resolve(self, identifier: str, *, prefer_card: bool = False) -> Optional[Account]:
        key = identifier.strip()
        if prefer_card:
            return self.by_card_number(key) or self.by_account_number(key)
        return self.by_account_number(key) or self.by_card_number(key)

    def __contains__(self, account_number: object) -> bool:
        return account_number in self._by_number

    def __iter__(self) -> Iterator[Account]:
        return iter(list(self._by_number.values()))

    def __len__(self) -> int:
        return len(self._by_number)


def account_from_model(row: AccountModel) -> Account:
    return Account(
        account_number=row.account_number,
        card_number=row.card_no,
        pin=row.pin,
        balance=row.balance,
        name=row.name,
        ifsc_code=row.ifsc_code,
        address=row.address,
    )


def account_to_model(account: Account) -> AccountModel:
    return AccountModel(
        account_number=account.account_number,
        card_no=account.card_number,
        pin=account.pin,
        balance=account.balance,
        name=account.name,
        ifsc_code=account.ifsc_code,
        address=account.address,
    )
