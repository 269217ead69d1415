#!/usr/bin/env python3
"""
Behodler Error Taxonomy

Every protocol failure derives from BehodlerError and aborts the enclosing
ledger transaction. Messages are stable so callers can match on them.
"""


class BehodlerError(Exception):
    """Base class for all protocol failures"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AuthorizationError(BehodlerError):
    """Caller is not the owner, migrator or minter of the target"""


class UnlistedTokenError(BehodlerError):
    """Token was never classified valid"""


class ClassificationError(BehodlerError):
    """Pair lookup or classification rule failed"""


class TransferFailure(BehodlerError):
    """An underlying token transfer or approval failed"""


class InsufficientBalanceError(TransferFailure):
    """Holder balance does not cover the requested amount"""


class InsufficientAllowanceError(TransferFailure):
    """Spender allowance does not cover the requested amount"""


class SlippageError(BehodlerError):
    """Trade result is worse than the caller's limit"""


class ReserveUnderflowError(BehodlerError):
    """Reserve cannot cover the requested withdrawal or swap"""


class FlashLoanRejectedError(BehodlerError):
    """Arbiter refused the flash loan"""


class FlashLoanRepaymentError(BehodlerError):
    """Borrower left too little index token to burn back"""


class ReentrancyError(BehodlerError):
    """Guarded operation was entered while already executing"""


class NotSeededError(BehodlerError):
    """Engine used before its companion components were wired"""
