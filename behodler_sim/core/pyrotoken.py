#!/usr/bin/env python3
"""
Liquidity Receiver and Pyrotokens

The LiquidityReceiver collects the deposit skims Behodler takes from
non-burnable tokens. Each base token has at most one Pyrotoken, a wrapper
whose redeem rate rises whenever the skims sitting in the receiver are
absorbed into its backing.
"""

import logging
from typing import Dict, Optional

from .errors import AuthorizationError, ClassificationError, UnlistedTokenError
from .ledger import LedgerState, Stateful, atomic, non_reentrant
from .lachesis import Lachesis
from .primitives import ONE, Address, require_amount
from .tokens import BalanceDeltaGuard, ERC20Token

logger = logging.getLogger(__name__)


class LiquidityReceiver(Stateful):
    """Holds undistributed skims and the base token -> Pyrotoken mapping"""

    _state_fields = ("base_token_mapping",)

    def __init__(self, ledger: LedgerState, lachesis: Lachesis, address: Address = "liquidity_receiver"):
        self.ledger = ledger
        self.lachesis = lachesis
        self.address = address
        self.base_token_mapping: Dict[Address, Address] = {}

        ledger.register(self)

    @atomic
    def register_pyrotoken(self, caller: Address, base_token: Address) -> "Pyrotoken":
        """
        Create the Pyrotoken for base_token, or return the existing one.

        Only valid, non-burnable tokens can back a Pyrotoken: the skim they
        feed it is measured exactly.
        """
        existing = self.pyrotoken_for(base_token)
        if existing is not None:
            return existing

        valid, burnable = self.lachesis.query(base_token)
        if not valid:
            raise UnlistedTokenError(f"LIQUIDITY RECEIVER: {base_token} is not a valid token")
        if burnable:
            raise ClassificationError("LIQUIDITY RECEIVER: burnable tokens cannot back a pyrotoken")

        base = self.ledger.token(base_token)
        pyrotoken = Pyrotoken(self.ledger, base_token, self,
                              name=f"Pyro{base.name}", symbol=f"p{base.symbol}",
                              decimals=base.decimals)
        self.base_token_mapping[base_token] = pyrotoken.address
        self.ledger.emit(self.address, "PyrotokenRegistered", base_token=base_token,
                         pyrotoken=pyrotoken.address, caller=caller)
        logger.info("Registered %s for base token %s", pyrotoken.symbol, base_token)
        return pyrotoken

    def pyrotoken_for(self, base_token: Address) -> Optional["Pyrotoken"]:
        address = self.base_token_mapping.get(base_token)
        return self.ledger.token(address) if address is not None else None

    def pending(self, base_token: Address) -> int:
        """Skims of base_token not yet absorbed by its Pyrotoken"""
        return self.ledger.token(base_token).balance_of(self.address)

    @atomic
    def drain(self, caller: Address, base_token: Address) -> int:
        """Hand every pending skim of base_token to its Pyrotoken"""
        if self.base_token_mapping.get(base_token) != caller:
            raise AuthorizationError("LIQUIDITY RECEIVER: only the pyrotoken may drain its base token")
        amount = self.pending(base_token)
        if amount:
            self.ledger.token(base_token).transfer(self.address, caller, amount)
            self.ledger.emit(self.address, "SkimDrained", base_token=base_token, amount=amount)
            logger.debug("Drained %d of %s into %s", amount, base_token, caller)
        return amount


class Pyrotoken(ERC20Token):
    """Compounding wrapper backed by its base token"""

    def __init__(self, ledger: LedgerState, base_token: Address, receiver: LiquidityReceiver,
                 name: str, symbol: str, decimals: int = 18):
        self.base_token = base_token
        self.receiver = receiver
        super().__init__(ledger, f"pyro:{base_token}", name, symbol, decimals)

    @property
    def backing(self) -> int:
        return self.ledger.token(self.base_token).balance_of(self.address)

    def redeem_rate(self) -> int:
        """Base token per Pyrotoken, scaled by ONE; parity while supply is zero"""
        if self.total_supply == 0:
            return ONE
        return self.backing * ONE // self.total_supply

    @atomic
    @non_reentrant
    def mint(self, caller: Address, amount) -> int:
        """
        Wrap `amount` of the base token.

        Pending skims are absorbed first, so they lift the rate for existing
        holders rather than for the depositor.

        Returns:
            Pyrotokens minted to caller
        """
        amount = require_amount(amount)
        self.receiver.drain(self.address, self.base_token)

        supply = self.total_supply
        backing_before = self.backing
        actual = BalanceDeltaGuard.measured_transfer_in(
            self.ledger.token(self.base_token), self.address, caller, amount
        )

        if supply == 0 or backing_before == 0:
            minted = actual
        else:
            minted = actual * supply // backing_before

        self._mint(caller, minted)
        logger.debug("%s minted %d for %d base from %s", self.symbol, minted, actual, caller)
        return minted

    @atomic
    @non_reentrant
    def redeem(self, caller: Address, amount) -> int:
        """Burn `amount` Pyrotokens for their share of the backing"""
        amount = require_amount(amount)
        self.receiver.drain(self.address, self.base_token)

        supply = self.total_supply
        payout = amount * self.backing // supply if supply else 0
        self._burn(caller, amount)
        if payout:
            self.ledger.token(self.base_token).transfer(self.address, caller, payout)
        logger.debug("%s redeemed %d for %d base by %s", self.symbol, amount, payout, caller)
        return payout
