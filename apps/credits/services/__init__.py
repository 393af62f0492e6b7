"""
Credits app services layer.

The ledger is the single writer of account balances; every other app
moves credits through ``apply_movement``.
"""

from .exceptions import (
    CreditsServiceError,
    InsufficientCreditsError,
    InvalidMovementError,
    UnknownCreditPackError,
    AccountNotFoundError,
    WriteConflictError,
    LedgerIntegrityError,
)

from .concurrency import retry_on_conflict

from .ledger import (
    apply_movement,
    get_balance,
    get_movements,
    purchase_credit_pack,
    adjust_balance,
    audit_account,
    apply_capped_debit,
)

from .publication_cost import (
    BASIC_SERVICE_CODE,
    HIGHLIGHT_SERVICE_CODE,
    total_cost,
    get_price_table,
    quote_publication,
)


__all__ = [
    # Exceptions
    'CreditsServiceError',
    'InsufficientCreditsError',
    'InvalidMovementError',
    'UnknownCreditPackError',
    'AccountNotFoundError',
    'WriteConflictError',
    'LedgerIntegrityError',

    # Concurrency
    'retry_on_conflict',

    # Ledger
    'apply_movement',
    'get_balance',
    'get_movements',
    'purchase_credit_pack',
    'adjust_balance',
    'audit_account',
    'apply_capped_debit',

    # Publication cost
    'BASIC_SERVICE_CODE',
    'HIGHLIGHT_SERVICE_CODE',
    'total_cost',
    'get_price_table',
    'quote_publication',
]
