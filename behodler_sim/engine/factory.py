#!/usr/bin/env python3
"""
Deployment factory for building a wired Behodler instance.

Routes a validated DeploymentConfig into a ledger holding the classifier,
engine, index token, liquidity receiver and flash loan arbiter, seeded and
configured the way a live deployment is.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core.behodler import Behodler
from ..core.flash_loans import CappedArbiter, FlashLoanArbiter, OpenArbiter, RejectionArbiter
from ..core.indirect_swap import IndirectSwap
from ..core.lachesis import InMemoryPairRegistry, Lachesis
from ..core.ledger import LedgerState
from ..core.pyrotoken import LiquidityReceiver
from ..core.scarcity import Scarcity
from ..core.tokens import ERC20Token, FeeOnTransferToken
from ..core.primitives import Address
from .config import ArbiterType, DeploymentConfig

logger = logging.getLogger(__name__)


@dataclass
class BehodlerDeployment:
    """Every component of one in-process deployment"""
    config: DeploymentConfig
    ledger: LedgerState
    lachesis: Lachesis
    registries: List[InMemoryPairRegistry]
    behodler: Behodler
    liquidity_receiver: LiquidityReceiver
    arbiter: FlashLoanArbiter
    indirect_swap: IndirectSwap
    tokens: Dict[Address, ERC20Token] = field(default_factory=dict)

    @property
    def owner(self) -> Address:
        return self.config.owner

    @property
    def scarcity(self) -> Scarcity:
        return self.behodler.scarcity

    def create_token(self, address: Address, symbol: Optional[str] = None, fee_milli: int = 0,
                     balances: Optional[Dict[Address, int]] = None, valid: bool = True,
                     burnable: Optional[bool] = None) -> ERC20Token:
        """
        Deploy a token, fund holders and classify it.

        A non-zero fee_milli deploys a fee-on-transfer token, classified
        burnable unless told otherwise.
        """
        symbol = symbol or address.upper()
        if fee_milli:
            token = FeeOnTransferToken(self.ledger, address, symbol, symbol, fee_milli, minter=self.owner)
        else:
            token = ERC20Token(self.ledger, address, symbol, symbol, minter=self.owner)

        for holder, amount in (balances or {}).items():
            token.mint(self.owner, holder, amount)

        if valid:
            if burnable is None:
                burnable = fee_milli > 0
            self.lachesis.classify(self.owner, address, True, burnable)

        self.tokens[address] = token
        return token


class DeploymentFactory:
    """Factory for creating deployments from configuration"""

    @staticmethod
    def deploy(config: Optional[DeploymentConfig] = None) -> BehodlerDeployment:
        """
        Create a complete deployment from configuration

        Args:
            config: Validated deployment configuration (defaults apply if None)

        Returns:
            Seeded BehodlerDeployment with Scarcity configured
        """
        config = config or DeploymentConfig()
        owner = config.owner
        ledger = LedgerState()

        registries = [InMemoryPairRegistry(f"registry_{i}") for i in range(config.registry_count)]
        lachesis = Lachesis(ledger, owner, registries)
        behodler = Behodler(ledger, owner, config.behodler)
        liquidity_receiver = LiquidityReceiver(ledger, lachesis)
        arbiter = DeploymentFactory._create_arbiter(config)
        indirect_swap = IndirectSwap(ledger, behodler)

        behodler.seed(owner, lachesis, arbiter, liquidity_receiver)
        behodler.configure_scarcity(
            owner,
            config.scarcity.transfer_fee_milli,
            config.scarcity.burn_fee_milli,
            config.scarcity.fee_destination,
        )

        logger.info("Deployed Behodler with %d registries and %s arbiter",
                    len(registries), config.arbiter.value)

        return BehodlerDeployment(
            config=config,
            ledger=ledger,
            lachesis=lachesis,
            registries=registries,
            behodler=behodler,
            liquidity_receiver=liquidity_receiver,
            arbiter=arbiter,
            indirect_swap=indirect_swap,
        )

    @staticmethod
    def _create_arbiter(config: DeploymentConfig) -> FlashLoanArbiter:
        if config.arbiter == ArbiterType.REJECTION:
            return RejectionArbiter()
        if config.arbiter == ArbiterType.CAPPED:
            return CappedArbiter(config.arbiter_cap)
        return OpenArbiter()
