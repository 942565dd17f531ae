from __future__ import annotations
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, SQLModel

class Account(SQLModel, table=True):
    __tablename__ = "accounts"

    account_number: str = Field(primary_key=True)
    card_no: str = Field(unique=True, index=True)
    pin: str
    name: str
    ifsc_code: str
    balance: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2)
    address: Optional[str] = None

class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    # Tie-breaker for rows sharing an occurred_at value.
    id: Optional[int] = Field(default=None, primary_key=True)
    receipt: str = Field(unique=True, index=True)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    from_card: str = Field(index=True)
    to_card: str = Field(index=True)
    amount: Decimal = Field(max_digits=15, decimal_places=2)
    description: str = "Transfer"
