#!/usr/bin/env python3
"""
Behodler Liquidity Engine

A single balance sheet holding every whitelisted token. Liquidity is priced
on a square-root bonding curve per token and paid out in Scarcity; swaps
run the constant product invariant directly between two of the engine's
own reserves, so any listed token trades against any other without a pool
per pair.
"""

import logging
from typing import List, Optional, Tuple

from ..engine.config import BehodlerConfig
from .errors import (
    AuthorizationError,
    FlashLoanRejectedError,
    FlashLoanRepaymentError,
    NotSeededError,
    ReserveUnderflowError,
    SlippageError,
    UnlistedTokenError,
)
from .flash_loans import FlashLoanArbiter, FlashLoanReceiver, FlashLoanSession
from .lachesis import Lachesis
from .ledger import LedgerState, Stateful, atomic, non_reentrant
from .math import BehodlerMath
from .primitives import MILLI, Address, require_amount
from .pyrotoken import LiquidityReceiver
from .scarcity import Scarcity
from .tokens import BalanceDeltaGuard, ERC20Token

logger = logging.getLogger(__name__)


class Behodler(Stateful):
    """Bonding curve, swap engine and flash loan lender"""

    _state_fields = ("lachesis", "flash_loan_arbiter", "liquidity_receiver", "tokens_seen")

    def __init__(self, ledger: LedgerState, owner: Address, config: Optional[BehodlerConfig] = None,
                 address: Address = "behodler", scarcity_address: Address = "scarcity"):
        self.ledger = ledger
        self.owner = owner
        self.address = address
        self.config = config or BehodlerConfig()

        self.lachesis: Optional[Lachesis] = None
        self.flash_loan_arbiter: Optional[FlashLoanArbiter] = None
        self.liquidity_receiver: Optional[LiquidityReceiver] = None
        self.tokens_seen: List[Address] = []

        ledger.register(self)
        self.scarcity = Scarcity(ledger, owner, minter=address, address=scarcity_address)

    @property
    def precision_bits(self) -> int:
        return self.config.precision_bits

    @property
    def swap_fee_milli(self) -> int:
        return self.config.swap_fee_milli

    # --- Administration ---

    def _only_owner(self, caller: Address) -> None:
        if caller != self.owner:
            raise AuthorizationError("Ownable: caller is not the owner")

    @atomic
    def seed(self, caller: Address, lachesis: Lachesis, flash_loan_arbiter: FlashLoanArbiter,
             liquidity_receiver: LiquidityReceiver) -> None:
        """Wire the engine to its companion components; may be re-run"""
        self._only_owner(caller)
        self.lachesis = lachesis
        self.flash_loan_arbiter = flash_loan_arbiter
        self.liquidity_receiver = liquidity_receiver
        self.ledger.emit(self.address, "Seeded", lachesis=lachesis.address,
                         arbiter=type(flash_loan_arbiter).__name__,
                         liquidity_receiver=liquidity_receiver.address)
        logger.info("Behodler seeded with %s arbiter", type(flash_loan_arbiter).__name__)

    @atomic
    def configure_scarcity(self, caller: Address, fee_rate_milli: int, burn_rate_milli: int,
                           fee_destination: Optional[Address]) -> None:
        self._only_owner(caller)
        self.scarcity.configure(caller, fee_rate_milli, burn_rate_milli, fee_destination)

    def _require_seeded(self) -> None:
        if self.lachesis is None or self.flash_loan_arbiter is None or self.liquidity_receiver is None:
            raise NotSeededError("BEHODLER: not seeded")

    def _listed_token(self, token: Address) -> Tuple[ERC20Token, bool]:
        """Resolve a token the classifier lists as valid, plus its burnable flag"""
        valid, burnable = self.lachesis.query(token)
        if not valid:
            raise UnlistedTokenError(f"BEHODLER: token {token} is not valid")
        return self.ledger.token(token), burnable

    def _track(self, token: Address) -> None:
        if token not in self.tokens_seen:
            self.tokens_seen.append(token)

    # --- Liquidity ---

    @atomic
    @non_reentrant
    def add_liquidity(self, caller: Address, token: Address, amount) -> int:
        """
        Deposit `amount` of token and mint Scarcity for the reserve growth.

        The deposit is measured, then skimmed at the Scarcity burn rate:
        burnable tokens burn the skim, others route it to the liquidity
        receiver. Scarcity is minted for what actually stays in the reserve.

        Returns:
            Scarcity minted to caller
        """
        self._require_seeded()
        amount = require_amount(amount)
        erc20, burnable = self._listed_token(token)

        balance_before = erc20.balance_of(self.address)
        actual = BalanceDeltaGuard.measured_transfer_in(erc20, self.address, caller, amount,
                                                        exact=not burnable)

        skim = actual * self.scarcity.burn_fee // MILLI
        if skim:
            if burnable:
                erc20.burn(self.address, skim)
            else:
                erc20.transfer(self.address, self.liquidity_receiver.address, skim)

        balance_after = erc20.balance_of(self.address)
        minted = BehodlerMath.liquidity_delta(balance_before, balance_after, self.precision_bits)
        self.scarcity.mint(self.address, caller, minted)
        self._track(token)

        self.ledger.emit(self.address, "LiquidityAdded", provider=caller, token=token,
                         amount=actual, skim=skim, minted=minted)
        logger.debug("%s added %d %s (skim %d) for %d SCX", caller, actual, erc20.symbol, skim, minted)
        return minted

    @atomic
    @non_reentrant
    def withdraw_liquidity(self, caller: Address, token: Address, index_amount) -> int:
        """
        Burn `index_amount` Scarcity and release the matching slice of token.

        Scarcity's transfer economics apply to the burn, so only its net
        portion is redeemed against the bonding curve.

        Returns:
            Amount of token sent to caller
        """
        self._require_seeded()
        index_amount = require_amount(index_amount, "index_amount")
        erc20, _ = self._listed_token(token)

        old_balance = erc20.balance_of(self.address)
        _, _, net = self.scarcity.apportion(index_amount)
        new_balance = BehodlerMath.withdrawal_balance(old_balance, net, self.precision_bits)
        token_amount = old_balance - new_balance

        self.scarcity.burn_for_exit(self.address, caller, index_amount)
        if token_amount:
            erc20.transfer(self.address, caller, token_amount)

        self.ledger.emit(self.address, "LiquidityWithdrawn", provider=caller, token=token,
                         amount=token_amount, burned=index_amount)
        logger.debug("%s withdrew %d %s for %d SCX", caller, token_amount, erc20.symbol, index_amount)
        return token_amount

    @atomic
    @non_reentrant
    def withdraw_exact_tokens(self, caller: Address, token: Address, token_amount,
                              max_index_amount) -> int:
        """
        Release exactly `token_amount`, burning as little Scarcity as the
        curve allows.

        Returns:
            Gross Scarcity burned from caller
        """
        self._require_seeded()
        token_amount = require_amount(token_amount, "token_amount")
        max_index_amount = require_amount(max_index_amount, "max_index_amount")
        erc20, _ = self._listed_token(token)

        old_balance = erc20.balance_of(self.address)
        if token_amount > old_balance:
            raise ReserveUnderflowError("BEHODLER: withdrawal exceeds reserve")

        net_required = (BehodlerMath.scaled_root(old_balance, self.precision_bits)
                        - BehodlerMath.scaled_root(old_balance - token_amount, self.precision_bits))
        index_amount = self.scarcity.gross_for_net(net_required)
        if index_amount > max_index_amount:
            raise SlippageError(
                f"BEHODLER: {index_amount} SCX required exceeds maximum of {max_index_amount}"
            )

        self.scarcity.burn_for_exit(self.address, caller, index_amount)
        if token_amount:
            erc20.transfer(self.address, caller, token_amount)

        self.ledger.emit(self.address, "LiquidityWithdrawn", provider=caller, token=token,
                         amount=token_amount, burned=index_amount)
        logger.debug("%s withdrew exactly %d %s for %d SCX", caller, token_amount, erc20.symbol, index_amount)
        return index_amount

    # --- Swaps ---

    @atomic
    @non_reentrant
    def swap(self, caller: Address, token_in: Address, token_out: Address, amount_in,
             min_amount_out=0) -> int:
        """
        Trade token_in for token_out against the engine's own reserves.

        The fee is taken from the input before pricing but the whole input
        stays in the reserve, so the product of the two reserves grows.

        Returns:
            Amount of token_out sent to caller
        """
        self._require_seeded()
        if token_in == token_out:
            raise ValueError("token_in and token_out must differ")
        amount_in = require_amount(amount_in, "amount_in")
        min_amount_out = require_amount(min_amount_out, "min_amount_out")
        erc20_in, burnable_in = self._listed_token(token_in)
        erc20_out, _ = self._listed_token(token_out)

        reserve_in = erc20_in.balance_of(self.address)
        reserve_out = erc20_out.balance_of(self.address)
        actual_in = BalanceDeltaGuard.measured_transfer_in(erc20_in, self.address, caller, amount_in,
                                                           exact=not burnable_in)

        net_in = BehodlerMath.apply_fee(actual_in, self.swap_fee_milli)
        amount_out = BehodlerMath.constant_product_output(reserve_in, reserve_out, net_in)
        if amount_out < min_amount_out:
            raise SlippageError(f"BEHODLER: output {amount_out} below minimum {min_amount_out}")

        if amount_out:
            erc20_out.transfer(self.address, caller, amount_out)
        self._track(token_in)
        self._track(token_out)

        self.ledger.emit(self.address, "Swap", trader=caller, token_in=token_in, token_out=token_out,
                         amount_in=actual_in, amount_out=amount_out)
        logger.debug("%s swapped %d %s for %d %s", caller, actual_in, erc20_in.symbol,
                     amount_out, erc20_out.symbol)
        return amount_out

    # --- Flash loans ---

    @atomic
    def grant_flash_loan(self, caller: Address, amount, receiver: FlashLoanReceiver) -> FlashLoanSession:
        """
        Mint `amount` Scarcity to the receiver, run its callback, burn it back.

        The receiver may trade through the engine during its callback. It
        must leave at least `amount` Scarcity at its address; anything it
        spent, including transfer burn, is its own cost.
        """
        self._require_seeded()
        amount = require_amount(amount)

        if not self.flash_loan_arbiter.approve(caller, amount):
            raise FlashLoanRejectedError("BEHODLER: cannot borrow flashloan")

        session = FlashLoanSession(
            borrower=caller,
            receiver=receiver.address,
            amount=amount,
            index_balance_before=self.scarcity.balance_of(receiver.address),
            approved_pre=True,
        )
        self.scarcity.mint(self.address, receiver.address, amount)

        receiver.execute(self, caller, amount)

        if not self.flash_loan_arbiter.approve_settlement(caller, amount):
            raise FlashLoanRejectedError("BEHODLER: cannot borrow flashloan")
        if self.scarcity.balance_of(receiver.address) < amount:
            raise FlashLoanRepaymentError("BEHODLER: Flashloan repayment failed")

        self.scarcity.burn_from(self.address, receiver.address, amount)
        session.repaid = amount
        remaining = self.scarcity.balance_of(receiver.address)
        session.drawn_from_existing = max(0, session.index_balance_before - remaining)
        session.settled = True
        if session.drawn_from_existing:
            logger.info("Receiver %s covered %d of its loan from its existing balance",
                        receiver.address, session.drawn_from_existing)

        self.ledger.emit(self.address, "FlashLoan", borrower=caller, receiver=receiver.address, amount=amount)
        logger.debug("Flash loan of %d SCX to %s settled", amount, receiver.address)
        return session

    # --- Reads and quotes ---

    def reserve(self, token: Address) -> int:
        return self.ledger.token(token).balance_of(self.address)

    def sqrt_sum(self) -> int:
        """Sum of scaled square roots over every reserve the engine has held"""
        return sum(BehodlerMath.scaled_root(self.reserve(token), self.precision_bits)
                   for token in self.tokens_seen)

    def quote_add_liquidity(self, token: Address, amount: int) -> int:
        """Scarcity minted for a deposit delivered in full"""
        reserve = self.reserve(token)
        skim = amount * self.scarcity.burn_fee // MILLI
        return BehodlerMath.liquidity_delta(reserve, reserve + amount - skim, self.precision_bits)

    def quote_withdraw_liquidity(self, token: Address, index_amount: int) -> int:
        reserve = self.reserve(token)
        _, _, net = self.scarcity.apportion(index_amount)
        return reserve - BehodlerMath.withdrawal_balance(reserve, net, self.precision_bits)

    def quote_swap(self, token_in: Address, token_out: Address, amount_in: int) -> int:
        if token_in == token_out:
            raise ValueError("token_in and token_out must differ")
        net_in = BehodlerMath.apply_fee(amount_in, self.swap_fee_milli)
        return BehodlerMath.constant_product_output(self.reserve(token_in), self.reserve(token_out), net_in)
