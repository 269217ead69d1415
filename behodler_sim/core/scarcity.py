#!/usr/bin/env python3
"""
Scarcity Index Token

The fungible claim on all liquidity deposited in Behodler. Every transfer
pays a fee to a configurable destination and burns a further cut, so the
sum of balances always equals the total supply even though supply shrinks
as the token moves.
"""

import logging
from typing import Optional, Tuple

from ..engine.config import ScarcityFeeConfig
from .errors import AuthorizationError, InsufficientBalanceError
from .ledger import LedgerState, atomic
from .math import BehodlerMath
from .primitives import Address, require_amount
from .tokens import ERC20Token

logger = logging.getLogger(__name__)


class Scarcity(ERC20Token):
    """Index token minted and burned by the liquidity engine"""

    _state_fields = ERC20Token._state_fields + (
        "transfer_fee", "burn_fee", "fee_destination", "migrator",
    )

    def __init__(self, ledger: LedgerState, owner: Address, minter: Address, address: Address = "scarcity"):
        self.owner = owner
        self.transfer_fee = 0
        self.burn_fee = 0
        self.fee_destination: Optional[Address] = None
        self.migrator: Optional[Address] = None
        super().__init__(ledger, address, "Scarcity", "SCX", 18, minter)

    def _only_owner(self, caller: Address) -> None:
        if caller != self.owner:
            raise AuthorizationError("Ownable: caller is not the owner")

    def _only_minter(self, caller: Address) -> None:
        if caller != self.minter:
            raise AuthorizationError("SCARCITY: caller is not the minter")

    # --- Administration ---

    @atomic
    def configure(self, caller: Address, fee_rate_milli: int, burn_rate_milli: int,
                  fee_destination: Optional[Address]) -> ScarcityFeeConfig:
        self._only_owner(caller)
        config = ScarcityFeeConfig(
            transfer_fee_milli=fee_rate_milli,
            burn_fee_milli=burn_rate_milli,
            fee_destination=fee_destination,
        )
        self.transfer_fee = config.transfer_fee_milli
        self.burn_fee = config.burn_fee_milli
        self.fee_destination = config.fee_destination
        self.ledger.emit(self.address, "ScarcityConfigured", transfer_fee=self.transfer_fee,
                         burn_fee=self.burn_fee, fee_destination=self.fee_destination)
        logger.info("Scarcity configured: fee=%d burn=%d destination=%s",
                    self.transfer_fee, self.burn_fee, self.fee_destination)
        return config

    @atomic
    def set_migrator(self, caller: Address, migrator: Address) -> None:
        self._only_owner(caller)
        self.migrator = migrator

    @atomic
    def migrate_mint(self, caller: Address, recipient: Address, amount) -> None:
        """One-time bootstrap mint that skips fees and burning"""
        if self.migrator is None or caller != self.migrator:
            raise AuthorizationError("SCARCITY: Migration contract only")
        self._mint(recipient, require_amount(amount))

    # --- Engine hooks ---

    @atomic
    def mint(self, caller: Address, recipient: Address, amount) -> None:
        self._only_minter(caller)
        self._mint(recipient, require_amount(amount))

    @atomic
    def burn_from(self, caller: Address, holder: Address, amount) -> None:
        """Burn a holder's balance outright, without transfer economics"""
        self._only_minter(caller)
        self._burn(holder, require_amount(amount))

    @atomic
    def burn_for_exit(self, caller: Address, holder: Address, amount) -> int:
        """
        Burn a holder's balance the way a transfer would charge it.

        The fee portion goes to fee_destination; everything else leaves the
        supply.

        Returns:
            Net amount (gross minus fee and burn cut) that prices the exit
        """
        self._only_minter(caller)
        amount = require_amount(amount)
        if self.balance_of(holder) < amount:
            raise InsufficientBalanceError("SCARCITY: burn amount exceeds balance")
        fee, _, net = self.apportion(amount)
        if fee:
            self._transfer_raw(holder, self.fee_destination, fee)
        self._burn(holder, amount - fee)
        return net

    def apportion(self, amount: int) -> Tuple[int, int, int]:
        """Split an amount into (fee, burn, net) at the current rates"""
        return BehodlerMath.apportion(amount, self.transfer_fee, self.burn_fee)

    def gross_for_net(self, net_required: int) -> int:
        return BehodlerMath.gross_for_net(net_required, self.transfer_fee, self.burn_fee)

    # --- Transfer economics ---

    def _transfer_raw(self, sender: Address, recipient: Address, amount: int) -> None:
        super()._transfer(sender, recipient, amount)

    def _transfer(self, sender: Address, recipient: Address, amount: int) -> None:
        fee, burn, net = self.apportion(amount)
        self._debit(sender, amount)
        self._credit(recipient, net)
        if fee:
            self._credit(self.fee_destination, fee)
        self.total_supply -= burn
        self.ledger.emit(self.address, "Transfer", sender=sender, recipient=recipient, value=net)
        if fee or burn:
            self.ledger.emit(self.address, "TransferSkim", sender=sender, fee=fee, burned=burn)
