from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, or_, select

from ..core.errors import StoreError, StoreUnavailableError
from ..models import AccountModel, TransactionModel


logger = logging.getLogger(__name__)


class LedgerRepository:
    """Thin data access layer around the SQLModel session.

    Nothing here commits on its own; the caller decides where the
    transaction boundary lies and calls :meth:`commit` or :meth:`rollback`.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # Account store ------------------------------------------------------
    def load_all_accounts(self) -> list[AccountModel]:
        try:
            stmt = select(AccountModel).order_by(AccountModel.account_number)
            return list(self.session.exec(stmt))
        except SQLAlchemyError as exc:
            logger.warning("store.load_failed", extra={"error": str(exc)})
            raise StoreUnavailableError("Account store is unavailable") from exc

    def add_account(self, account: AccountModel) -> AccountModel:
        try:
            self.session.add(account)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("Could not save account") from exc
        return account

    def _get_account(self, account_number: str) -> AccountModel:
        try:
            account = self.session.get(AccountModel, account_number)
        except SQLAlchemyError as exc:
            raise StoreError("Could not read account") from exc
        if account is None:
            raise StoreError(f"Account {account_number} is missing from the store")
        return account

    def save_balance(self, account_number: str, balance: Decimal) -> None:
        account = self._get_account(account_number)
        account.balance = balance
        try:
            self.session.add(account)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("Could not save balance") from exc

    def save_pin(self, account_number: str, pin: str) -> None:
        account = self._get_account(account_number)
        account.pin = pin
        try:
            self.session.add(account)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("Could not save PIN") from exc

    # Transaction log ----------------------------------------------------
    def append_transaction(self, transaction: TransactionModel) -> TransactionModel:
        try:
            self.session.add(transaction)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("Could not record transaction") from exc
        return transaction

    def get_transaction(self, receipt: str) -> Optional[TransactionModel]:
        try:
            stmt = select(TransactionModel).where(TransactionModel.receipt == receipt)
            return self.session.exec(stmt).first()
        except SQLAlchemyError as exc:
            raise StoreError("Could not read transactions") from exc

    def query_transactions(
        self, account_number: str, limit: int
    ) -> list[TransactionModel]:
        stmt = (
            select(TransactionModel)
            .where(
                or_(
                    TransactionModel.from_card == account_number,
                    TransactionModel.to_card == account_number,
                )
            )
            .order_by(TransactionModel.occurred_at.desc(), TransactionModel.id.desc())
            .limit(limit)
        )
        try:
            return list(self.session.exec(stmt))
        except SQLAlchemyError as exc:
            raise StoreError("Could not read transactions") from exc

    # Transaction boundary -----------------------------------------------
    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("Could not commit changes") from exc

    def rollback(self) -> None:
        self.session.rollback()
