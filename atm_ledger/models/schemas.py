from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Account(BaseModel):
    """In-memory view of one account, owned and mutated by the ledger."""

    model_config = ConfigDict(validate_assignment=True)

    account_number: str = Field(..., min_length=1)
    card_number: str = Field(..., min_length=1)
    pin: str = Field(..., repr=False)
    balance: Decimal = Field(..., max_digits=15, decimal_places=2)
    name: str
    ifsc_code: str
    address: Optional[str] = None
    transaction_history: list[str] = Field(
        default_factory=list,
        description="Session-local lines for display; the transactions table is authoritative",
    )

    def add_transaction(self, line: str) -> None:
        self.transaction_history.append(line)


class TransferRequest(BaseModel):
    recipient: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    description: str = "Transfer"


class BalanceUpdate(BaseModel):
    account_number: str
    balance: Decimal = Field(..., max_digits=15, decimal_places=2)


class BalanceInquiry(BaseModel):
    balance: Decimal
    minimum_balance: Decimal
    low_balance: bool = Field(..., description="Advisory only, never blocks an operation")


class TransferReceipt(BaseModel):
    receipt: str
    occurred_at: datetime
    from_account: str
    to_account: str
    amount: Decimal
    description: str
    sender_balance: Decimal
    low_balance: bool = False


class TransactionView(BaseModel):
    receipt: str
    occurred_at: datetime
    from_account: str
    to_account: str
    amount: Decimal
    description: str

    def summary(self, currency_symbol: str = "$") -> str:
        when = self.occurred_at.strftime("%Y-%m-%d %H:%M:%S")
        return (
            f"{self.receipt} [{when}]: {self.description} "
            f"{self.from_account}->{self.to_account} {currency_symbol}{self.amount:.2f}"
        )


class TransactionHistory(BaseModel):
    items: list[TransactionView] = Field(default_factory=list)
    error: Optional[str] = Field(
        default=None, description="Set when the transaction log could not be read"
    )

    @property
    def available(self) -> bool:
        return self.error is None

    @property
    def is_empty(self) -> bool:
        return self.available and not self.items


class AccountDetails(BaseModel):
    name: str
    account_number: str
    card_number: str
    ifsc_code: str
    address: Optional[str] = None
    balance: Decimal
