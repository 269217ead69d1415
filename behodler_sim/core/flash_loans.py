#!/usr/bin/env python3
"""
Flash Loan Policies and Receivers

An arbiter decides who may borrow freshly minted index token, and a
receiver is the borrower-side callback that runs while the loan is out.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .primitives import Address


class FlashLoanArbiter(ABC):
    """Policy consulted before and after every flash loan"""

    @abstractmethod
    def approve(self, borrower: Address, amount: int) -> bool:
        """Return True to allow `borrower` to take `amount`"""

    def approve_settlement(self, borrower: Address, amount: int) -> bool:
        """Second look once the receiver callback has run"""
        return True


class OpenArbiter(FlashLoanArbiter):
    """Approves every loan"""

    def approve(self, borrower: Address, amount: int) -> bool:
        return True


class RejectionArbiter(FlashLoanArbiter):
    """Refuses every loan"""

    def approve(self, borrower: Address, amount: int) -> bool:
        return False


class CappedArbiter(FlashLoanArbiter):
    """Approves loans up to a fixed size"""

    def __init__(self, max_amount: int):
        if max_amount < 0:
            raise ValueError("max_amount must be non-negative")
        self.max_amount = max_amount

    def approve(self, borrower: Address, amount: int) -> bool:
        return amount <= self.max_amount


class FlashLoanReceiver(ABC):
    """Borrower callback; must leave `amount` index token at its address"""

    address: Address

    @abstractmethod
    def execute(self, engine, borrower: Address, amount: int) -> None:
        """Called once the loan has been minted to self.address"""


class InertFlashLoanReceiver(FlashLoanReceiver):
    """Receiver that does nothing, so the minted loan repays itself"""

    def __init__(self, address: Address = "inert_receiver"):
        self.address = address
        self.calls = 0

    def execute(self, engine, borrower: Address, amount: int) -> None:
        self.calls += 1


@dataclass
class FlashLoanSession:
    """
    Bookkeeping for a single loan in flight.

    Repayment is judged on the receiver's whole balance, so Scarcity it held
    before the loan can cover what the callback spent; drawn_from_existing
    records how much of it did.
    """
    borrower: Address
    receiver: Address
    amount: int
    index_balance_before: int
    approved_pre: bool = False
    settled: bool = False
    repaid: Optional[int] = None
    drawn_from_existing: int = 0
