from .core.errors import LedgerError
from .main import build_ledger
from .services import AtmSession, LedgerService

__all__ = ["AtmSession", "LedgerError", "LedgerService", "build_ledger"]
