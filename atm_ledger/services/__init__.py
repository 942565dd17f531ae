from .accounts import AccountCache, fallback_accounts
from .ledger import LedgerService
from .repository import LedgerRepository
from .session import AtmSession

__all__ = [
    "AccountCache",
    "AtmSession",
    "LedgerRepository",
    "LedgerService",
    "fallback_accounts",
]
