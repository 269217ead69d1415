#!/usr/bin/env python3
"""
Indirect Swap Router

Periphery account that trades on a caller's behalf: it pulls the input
under its own allowance, swaps against Behodler as itself and forwards the
output. For conforming tokens the caller ends up exactly where a direct
swap would have left them.
"""

import logging

from .ledger import LedgerState, Stateful, atomic
from .primitives import Address, require_amount
from .tokens import BalanceDeltaGuard

logger = logging.getLogger(__name__)


class IndirectSwap(Stateful):
    """Router forwarding swaps to a Behodler engine"""

    def __init__(self, ledger: LedgerState, engine, address: Address = "indirect_swap"):
        self.ledger = ledger
        self.engine = engine
        self.address = address

        ledger.register(self)

    @atomic
    def swap(self, caller: Address, token_in: Address, token_out: Address, amount_in,
             min_amount_out=0) -> int:
        """
        Swap through the router.

        The caller must have approved the router for `amount_in`. Fee tokens
        are charged once on the way into the router and again on the way
        into the engine.

        Returns:
            Amount of token_out forwarded to caller
        """
        amount_in = require_amount(amount_in, "amount_in")
        erc20_in = self.ledger.token(token_in)
        erc20_out = self.ledger.token(token_out)

        received = BalanceDeltaGuard.measured_transfer_in(erc20_in, self.address, caller, amount_in)
        erc20_in.approve(self.address, self.engine.address, received)
        amount_out = self.engine.swap(self.address, token_in, token_out, received, min_amount_out)

        if amount_out:
            erc20_out.transfer(self.address, caller, amount_out)
        logger.debug("Routed %d %s into %d %s for %s", received, erc20_in.symbol,
                     amount_out, erc20_out.symbol, caller)
        return amount_out
