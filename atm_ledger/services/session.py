from __future__ import annotations

import hmac
import logging
from typing import Optional

from ..core.errors import AuthenticationError, NotAuthenticatedError
from ..models import (
    Account,
    AccountDetails,
    BalanceInquiry,
    TransactionHistory,
    TransferReceipt,
)
from .ledger import AmountInput, LedgerService


logger = logging.getLogger(__name__)


class AtmSession:
    """The single cardholder context a terminal works with at a time.

    A presentation layer drives one of these and issues one call at a time.
    Logging in while somebody is already logged in replaces that user.
    """

    def __init__(self, ledger: LedgerService) -> None:
        self.ledger = ledger
        self.current_account: Optional[Account] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_account is not None

    def _require_user(self) -> Account:
        if self.current_account is None:
            raise NotAuthenticatedError("No user is currently logged in.")
        return self.current_account

    def login(self, identifier: str, pin: str) -> Account:
        account = self.ledger.authenticate(identifier, pin)
        if self.current_account is not None:
            logger.info(
                "session.replaced",
                extra={"account_number": self.current_account.account_number},
            )
        self.current_account = account
        return account

    def logout(self) -> None:
        if self.current_account is not None:
            logger.info(
                "session.logout",
                extra={"account_number": self.current_account.account_number},
            )
        self.current_account = None

    def balance(self) -> BalanceInquiry:
        return self.ledger.check_balance(self._require_user())

    def transfer(self, recipient_identifier: str, amount_text: AmountInput) -> TransferReceipt:
        return self.ledger.transfer(self._require_user(), recipient_identifier, amount_text)

    def change_pin(
        self, card_or_account: str, new_pin: str, *, confirmed: bool = False
    ) -> Account:
        self._require_user()
        return self.ledger.change_pin(card_or_account, new_pin, confirmed=confirmed)

    def history(self) -> TransactionHistory:
        return self.ledger.transaction_history(self._require_user())

    def account_details(self, pin: str) -> AccountDetails:
        account = self._require_user()
        if not hmac.compare_digest(account.pin.encode(), pin.strip().encode()):
            raise AuthenticationError("Invalid PIN.")
        return self.ledger.account_details(account)
