"""
Domain-specific exceptions for the credits app.

Every exception carries a stable ``code`` that views return to clients,
so callers can tell "top up credits" apart from other failures.
"""


class CreditsServiceError(Exception):
    """Base exception for all recoverable credits service errors."""
    code = 'credits_error'


class InsufficientCreditsError(CreditsServiceError):
    """Raised when a debit would take the balance below zero."""
    code = 'insufficient_credits'

    def __init__(self, *, balance: int, required: int):
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient credits: balance is {balance}, {required} required"
        )


class InvalidMovementError(CreditsServiceError):
    """Raised when a movement has a zero amount or an unknown kind."""
    code = 'invalid_movement'


class UnknownCreditPackError(CreditsServiceError):
    """Raised when a credit pack id is not in the catalogue."""
    code = 'unknown_credit_pack'


class AccountNotFoundError(CreditsServiceError):
    """Raised when the ledger is asked to move credits for an unknown user."""
    code = 'account_not_found'


class WriteConflictError(CreditsServiceError):
    """Raised when a write keeps conflicting after the bounded retries."""
    code = 'write_conflict'


class LedgerIntegrityError(Exception):
    """
    A ledger invariant was violated (negative balance, balance not equal to
    the sum of movements). Fatal: never retried and never caught by views.
    """
    code = 'ledger_integrity'
