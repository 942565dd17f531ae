from __future__ import annotations

import hmac
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import UTC, datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import uuid4

from pydantic import ValidationError
from sqlmodel import Session

from ..core.config import Settings, get_settings
from ..core.db import create_engine_for_url, create_session_factory
from ..core.errors import (
    AccountNotFoundError,
    AuthenticationError,
    BalanceLimitError,
    EmptyPinError,
    InsufficientFundsError,
    InvalidAmountError,
    PinChangeNotConfirmedError,
    RecipientNotFoundError,
    StoreError,
    StoreUnavailableError,
)
from ..models import (
    Account,
    AccountDetails,
    BalanceInquiry,
    BalanceUpdate,
    TransactionHistory,
    TransactionModel,
    TransactionView,
    TransferReceipt,
    TransferRequest,
)
from .accounts import AccountCache, account_from_model, fallback_accounts
from .repository import LedgerRepository


logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]
AmountInput = Union[Decimal, str, int, float]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class LedgerService:
    """Sole owner and writer of account state.

    Accounts are cached in memory after :meth:`load_accounts`. Every write
    goes to the store inside one database transaction first; the cache is
    only touched once that transaction has committed. When the store was
    unreachable at load time the service runs in degraded mode on the
    fallback accounts and keeps writes in memory.
    """

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        settings: Optional[Settings] = None,
        accounts: Optional[AccountCache] = None,
    ) -> None:
        self.settings = settings or get_settings()
        if session_factory is None:
            session_factory = create_session_factory(
                create_engine_for_url(self.settings.database_url)
            )
        self.session_factory = session_factory
        self.accounts = accounts if accounts is not None else AccountCache()
        self.degraded = False
        self._issued_receipts: set[str] = set()

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _live(self, account: Account) -> Account:
        cached = self.accounts.by_account_number(account.account_number)
        if cached is None:
            raise AccountNotFoundError("Account not found.")
        return cached

    def _is_low(self, balance: Decimal) -> bool:
        return balance < self.settings.minimum_balance

    def _format_amount(self, amount: Decimal) -> str:
        return f"{self.settings.currency_symbol}{amount:.2f}"

    def _parse_request(self, recipient: Account, amount: AmountInput) -> TransferRequest:
        if isinstance(amount, str):
            amount = amount.strip()
        try:
            return TransferRequest(recipient=recipient.account_number, amount=amount)
        except ValidationError as exc:
            raise InvalidAmountError("Invalid amount.") from exc

    def _check_balances(self, balances: dict[str, Decimal]) -> None:
        for account_number, balance in balances.items():
            try:
                BalanceUpdate(account_number=account_number, balance=balance)
            except ValidationError as exc:
                raise BalanceLimitError(
                    f"Transfer would exceed the balance limit of account {account_number}."
                ) from exc

    def _generate_receipt(self, repository: Optional[LedgerRepository]) -> str:
        while True:
            receipt = uuid4().hex[:8].upper()
            if receipt in self._issued_receipts:
                continue
            if repository is not None and repository.get_transaction(receipt) is not None:
                continue
            self._issued_receipts.add(receipt)
            return receipt

    def _persist_transfer(
        self,
        balances: dict[str, Decimal],
        source: Account,
        recipient: Account,
        request: TransferRequest,
        occurred_at: datetime,
    ) -> str:
        if self.degraded:
            receipt = self._generate_receipt(None)
            logger.warning(
                "ledger.persist_skipped",
                extra={"operation": "transfer", "receipt": receipt},
            )
            return receipt

        with self.session_factory() as session:
            repository = LedgerRepository(session)
            try:
                receipt = self._generate_receipt(repository)
                for account_number, balance in balances.items():
                    repository.save_balance(account_number, balance)
                repository.append_transaction(
                    TransactionModel(
                        receipt=receipt,
                        occurred_at=occurred_at,
                        from_card=source.account_number,
                        to_card=recipient.account_number,
                        amount=request.amount,
                        description=request.description,
                    )
                )
                repository.commit()
            except StoreError as exc:
                repository.rollback()
                logger.error(
                    "ledger.transfer_failed",
                    extra={
                        "from_account": source.account_number,
                        "to_account": recipient.account_number,
                        "error": str(exc),
                    },
                )
                raise StoreError(
                    "Transfer could not be recorded. No money was moved."
                ) from exc
        return receipt

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def load_accounts(self) -> int:
        """Fill the cache from the store, or from the fallback pair."""
        try:
            with self.session_factory() as session:
                rows = LedgerRepository(session).load_all_accounts()
                accounts = [account_from_model(row) for row in rows]
        except StoreUnavailableError:
            accounts = fallback_accounts()
            self.degraded = True
            logger.warning(
                "ledger.degraded_mode",
                extra={"accounts": len(accounts)},
            )
        else:
            self.degraded = False

        self.accounts.replace_all(accounts)
        logger.info(
            "ledger.accounts_loaded",
            extra={"accounts": len(self.accounts), "degraded": self.degraded},
        )
        return len(self.accounts)

    def find_account(self, identifier: str) -> Optional[Account]:
        return self.accounts.resolve(identifier)

    def authenticate(self, identifier: str, pin: str) -> Account:
        # PINs are stored in plain text; compare_digest only removes the timing signal.
        account = self.accounts.resolve(identifier, prefer_card=True)
        supplied = pin.strip().encode()
        if account is None or not hmac.compare_digest(account.pin.encode(), supplied):
            logger.info("ledger.auth_failed")
            raise AuthenticationError("Invalid card number or PIN.")
        logger.info(
            "ledger.auth_succeeded", extra={"account_number": account.account_number}
        )
        return account

    def check_balance(self, account: Account) -> BalanceInquiry:
        account = self._live(account)
        low = self._is_low(account.balance)
        if low:
            logger.info(
                "ledger.low_balance",
                extra={
                    "account_number": account.account_number,
                    "balance": str(account.balance),
                },
            )
        return BalanceInquiry(
            balance=account.balance,
            minimum_balance=self.settings.minimum_balance,
            low_balance=low,
        )

    def transfer(
        self,
        sender: Account,
        recipient_identifier: str,
        amount: AmountInput,
    ) -> TransferReceipt:
        source = self._live(sender)
        recipient = self.accounts.resolve(recipient_identifier)
        if recipient is None:
            raise RecipientNotFoundError("Recipient account not found.")

        request = self._parse_request(recipient, amount)
        if source.balance < request.amount:
            raise InsufficientFundsError("Insufficient funds.")

        # Self-transfers are permitted; the two legs then cancel out.
        balances = {source.account_number: source.balance - request.amount}
        balances[recipient.account_number] = (
            balances.get(recipient.account_number, recipient.balance) + request.amount
        )
        self._check_balances(balances)

        occurred_at = datetime.now(UTC)
        receipt = self._persist_transfer(
            balances, source, recipient, request, occurred_at
        )

        for account_number, balance in balances.items():
            self.accounts.by_account_number(account_number).balance = balance

        stamp = occurred_at.strftime(TIMESTAMP_FORMAT)
        shown = self._format_amount(request.amount)
        source.add_transaction(
            f"Receipt#{receipt} [{stamp}]: Transferred {shown} to {recipient.account_number}"
        )
        recipient.add_transaction(
            f"Receipt#{receipt} [{stamp}]: Received {shown} from {source.account_number}"
        )

        logger.info(
            "ledger.transfer",
            extra={
                "receipt": receipt,
                "from_account": source.account_number,
                "to_account": recipient.account_number,
                "amount": str(request.amount),
            },
        )
        return TransferReceipt(
            receipt=receipt,
            occurred_at=occurred_at,
            from_account=source.account_number,
            to_account=recipient.account_number,
            amount=request.amount,
            description=request.description,
            sender_balance=source.balance,
            low_balance=self._is_low(source.balance),
        )

    def change_pin(
        self,
        identifier: str,
        new_pin: str,
        *,
        confirmed: bool = False,
    ) -> Account:
        """Replace the PIN of the account named by account or card number.

        ``confirmed`` stands for the cardholder's explicit yes; the caller
        must ask before passing it.
        """
        account = self.accounts.resolve(identifier)
        if account is None:
            raise AccountNotFoundError("Account not found for that card no.")

        pin = (new_pin or "").strip()
        if not pin:
            raise EmptyPinError("PIN cannot be empty.")
        if not confirmed:
            raise PinChangeNotConfirmedError(
                f"PIN change for account {account.account_number} was not confirmed."
            )

        if self.degraded:
            logger.warning(
                "ledger.persist_skipped",
                extra={"operation": "change_pin", "account_number": account.account_number},
            )
        else:
            with self.session_factory() as session:
                repository = LedgerRepository(session)
                try:
                    repository.save_pin(account.account_number, pin)
                    repository.commit()
                except StoreError as exc:
                    repository.rollback()
                    logger.error(
                        "ledger.pin_change_failed",
                        extra={"account_number": account.account_number, "error": str(exc)},
                    )
                    raise StoreError("PIN could not be updated.") from exc

        account.pin = pin
        logger.info(
            "ledger.pin_changed", extra={"account_number": account.account_number}
        )
        return account

    def transaction_history(
        self,
        account: Account,
        limit: Optional[int] = None,
    ) -> TransactionHistory:
        cap = self.settings.history_limit
        limit = cap if limit is None else max(1, min(limit, cap))

        if self.degraded:
            return TransactionHistory(error="Transaction history is unavailable.")

        try:
            with self.session_factory() as session:
                rows = LedgerRepository(session).query_transactions(
                    account.account_number, limit
                )
                items = [
                    TransactionView(
                        receipt=row.receipt,
                        occurred_at=row.occurred_at,
                        from_account=row.from_card,
                        to_account=row.to_card,
                        amount=row.amount,
                        description=row.description,
                    )
                    for row in rows
                ]
        except StoreError as exc:
            logger.error(
                "ledger.history_failed",
                extra={"account_number": account.account_number, "error": str(exc)},
            )
            return TransactionHistory(error="Failed to load transactions.")

        return TransactionHistory(items=items)

    def account_details(self, account: Account) -> AccountDetails:
        account = self._live(account)
        return AccountDetails(
            name=account.name,
            account_number=account.account_number,
            card_number=account.card_number,
            ifsc_code=account.ifsc_code,
            address=account.address,
            balance=account.balance,
        )
