#!/usr/bin/env python3
"""
Fungible Token Ledgers

ERC-20 style ledgers living inside a LedgerState, a fee-on-transfer variant
that models non-conforming tokens, and the BalanceDeltaGuard that every
component uses to learn how much a transfer really delivered.
"""

import logging
from typing import Dict, Optional, Tuple

from .errors import (
    AuthorizationError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    TransferFailure,
)
from .ledger import LedgerState, Stateful, atomic
from .primitives import MILLI, Address, require_amount

logger = logging.getLogger(__name__)


class ERC20Token(Stateful):
    """Standard fungible token ledger"""

    _state_fields = ("balances", "allowances", "total_supply")

    def __init__(self, ledger: LedgerState, address: Address, name: str, symbol: str,
                 decimals: int = 18, minter: Optional[Address] = None):
        self.ledger = ledger
        self.address = address
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.minter = minter

        self.balances: Dict[Address, int] = {}
        self.allowances: Dict[Tuple[Address, Address], int] = {}
        self.total_supply = 0

        ledger.register(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol} @ {self.address}, supply={self.total_supply})"

    # --- Reads ---

    def balance_of(self, holder: Address) -> int:
        return self.balances.get(holder, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self.allowances.get((owner, spender), 0)

    # --- Mutations ---

    @atomic
    def approve(self, caller: Address, spender: Address, amount) -> bool:
        amount = require_amount(amount)
        self.allowances[(caller, spender)] = amount
        self.ledger.emit(self.address, "Approval", owner=caller, spender=spender, value=amount)
        return True

    @atomic
    def transfer(self, caller: Address, recipient: Address, amount) -> bool:
        self._transfer(caller, recipient, require_amount(amount))
        return True

    @atomic
    def transfer_from(self, caller: Address, owner: Address, recipient: Address, amount) -> bool:
        amount = require_amount(amount)
        allowed = self.allowance(owner, caller)
        if allowed < amount:
            raise InsufficientAllowanceError("ERC20: transfer amount exceeds allowance")
        self._transfer(owner, recipient, amount)
        self.allowances[(owner, caller)] = allowed - amount
        return True

    @atomic
    def mint(self, caller: Address, recipient: Address, amount) -> None:
        if self.minter is None or caller != self.minter:
            raise AuthorizationError(f"{self.symbol}: caller is not the minter")
        self._mint(recipient, require_amount(amount))

    @atomic
    def burn(self, caller: Address, amount) -> None:
        self._burn(caller, require_amount(amount))

    # --- Internal bookkeeping ---

    def _transfer(self, sender: Address, recipient: Address, amount: int) -> None:
        self._debit(sender, amount)
        self._credit(recipient, amount)
        self.ledger.emit(self.address, "Transfer", sender=sender, recipient=recipient, value=amount)

    def _debit(self, holder: Address, amount: int) -> None:
        balance = self.balance_of(holder)
        if balance < amount:
            raise InsufficientBalanceError("ERC20: transfer amount exceeds balance")
        self.balances[holder] = balance - amount

    def _credit(self, holder: Address, amount: int) -> None:
        if amount:
            self.balances[holder] = self.balance_of(holder) + amount

    def _mint(self, recipient: Address, amount: int) -> None:
        self._credit(recipient, amount)
        self.total_supply += amount
        self.ledger.emit(self.address, "Transfer", sender=None, recipient=recipient, value=amount)

    def _burn(self, holder: Address, amount: int) -> None:
        balance = self.balance_of(holder)
        if balance < amount:
            raise InsufficientBalanceError("ERC20: burn amount exceeds balance")
        self.balances[holder] = balance - amount
        self.total_supply -= amount
        self.ledger.emit(self.address, "Transfer", sender=holder, recipient=None, value=amount)


class FeeOnTransferToken(ERC20Token):
    """Non-conforming token that burns a cut of every transfer"""

    def __init__(self, ledger: LedgerState, address: Address, name: str, symbol: str,
                 fee_milli: int, decimals: int = 18, minter: Optional[Address] = None):
        if not 0 <= fee_milli <= MILLI:
            raise ValueError(f"fee_milli must be within [0, {MILLI}], got {fee_milli}")
        self.fee_milli = fee_milli
        super().__init__(ledger, address, name, symbol, decimals, minter)

    def _transfer(self, sender: Address, recipient: Address, amount: int) -> None:
        fee = amount * self.fee_milli // MILLI
        self._debit(sender, amount)
        self._credit(recipient, amount - fee)
        self.total_supply -= fee
        self.ledger.emit(self.address, "Transfer", sender=sender, recipient=recipient, value=amount - fee)


class BalanceDeltaGuard:
    """Measures what a token transfer actually delivered to a holder"""

    @staticmethod
    def measured_transfer_in(token: ERC20Token, holder: Address, sender: Address,
                             amount: int, exact: bool = False) -> int:
        """
        Pull `amount` of `token` from `sender` into `holder` and return the
        observed balance delta.

        Args:
            token: Token ledger to pull from
            holder: Account receiving the tokens (also the spender)
            sender: Account whose allowance is consumed
            amount: Requested amount
            exact: Require the delta to equal the request (non-burnable tokens)

        Returns:
            Amount the holder's balance actually grew by
        """
        before = token.balance_of(holder)
        token.transfer_from(holder, sender, holder, amount)
        after = token.balance_of(holder)

        if after < before:
            raise TransferFailure(f"{token.symbol}: balance of {holder} fell during transfer in")
        actual = after - before
        if exact and actual != amount:
            raise TransferFailure(f"{token.symbol}: delivered {actual} of {amount} requested")
        if actual != amount:
            logger.debug("%s delivered %d of %d requested to %s", token.symbol, actual, amount, holder)
        return actual
