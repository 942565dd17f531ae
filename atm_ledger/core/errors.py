class LedgerError(Exception):
    """Base class for every failure the ledger reports to its caller."""


class AuthenticationError(LedgerError):
    """Raised when no account matches the identifier or the PIN is wrong.

    The two cases share one message so the caller cannot tell them apart.
    """


class RecipientNotFoundError(LedgerError):
    """Raised when a transfer names an account that does not exist."""


class InvalidAmountError(LedgerError):
    """Raised when a transfer amount is not a positive currency value."""


class InsufficientFundsError(LedgerError):
    """Raised when a transfer would exceed the sender's balance."""


class BalanceLimitError(LedgerError):
    """Raised when a transfer would push a balance past what the ledger can hold."""


class AccountNotFoundError(LedgerError):
    """Raised when a PIN change targets an unknown account or card."""


class EmptyPinError(LedgerError):
    """Raised when the new PIN is blank."""


class PinChangeNotConfirmedError(LedgerError):
    """Raised when a PIN change reaches the ledger without confirmation."""


class NotAuthenticatedError(LedgerError):
    """Raised when a session operation runs with nobody logged in."""


class DuplicateAccountError(LedgerError):
    """Raised when an account number or card number is already cached."""


class StoreError(LedgerError):
    """Raised when the relational store rejects a read or write."""


class StoreUnavailableError(StoreError):
    """Raised when the account table cannot be loaded at startup."""
