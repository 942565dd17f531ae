from .db import Account as AccountModel
from .db import Transaction as TransactionModel
from .schemas import (
    Account,
    AccountDetails,
    BalanceInquiry,
    BalanceUpdate,
    TransactionHistory,
    TransactionView,
    TransferReceipt,
    TransferRequest,
)

__all__ = [
    "Account",
    "AccountDetails",
    "BalanceInquiry",
    "BalanceUpdate",
    "TransactionHistory",
    "TransactionView",
    "TransferReceipt",
    "TransferRequest",
    "AccountModel",
    "TransactionModel",
]
