#!/usr/bin/env python3
"""
Scarcity Index Token Tests

Administration, migration minting and the fee/burn economics applied to
every transfer.
"""

import pytest
from pydantic import ValidationError

from behodler_sim.core.errors import AuthorizationError, InsufficientAllowanceError, InsufficientBalanceError
from behodler_sim.core.ledger import LedgerState
from behodler_sim.core.scarcity import Scarcity

OWNER = "owner"
NOT_OWNER = "not_owner"
MIGRATOR = "migrator"
FEE_DESTINATION = "fee_destination"
ENGINE = "behodler"


class TestScarcityAdministration:
    """Owner and migrator permissions"""

    def setup_method(self):
        self.ledger = LedgerState()
        self.scarcity = Scarcity(self.ledger, OWNER, minter=ENGINE)

    def test_non_owner_fails_to_configure(self):
        with pytest.raises(AuthorizationError, match="Ownable: caller is not the owner"):
            self.scarcity.configure(NOT_OWNER, 10, 10, OWNER)

    def test_non_owner_fails_to_set_migrator(self):
        with pytest.raises(AuthorizationError, match="Ownable: caller is not the owner"):
            self.scarcity.set_migrator(NOT_OWNER, OWNER)

    def test_minting_fails_for_non_migrator(self):
        with pytest.raises(AuthorizationError, match="SCARCITY: Migration contract only"):
            self.scarcity.migrate_mint(MIGRATOR, OWNER, 10)

        self.scarcity.set_migrator(OWNER, MIGRATOR)
        with pytest.raises(AuthorizationError, match="SCARCITY: Migration contract only"):
            self.scarcity.migrate_mint(FEE_DESTINATION, OWNER, 10)

    def test_minting_by_migrator_increases_supply(self):
        assert self.scarcity.total_supply == 0
        self.scarcity.set_migrator(OWNER, MIGRATOR)
        self.scarcity.migrate_mint(MIGRATOR, NOT_OWNER, 10_000)

        assert self.scarcity.total_supply == 10_000
        assert self.scarcity.balance_of(NOT_OWNER) == 10_000

    def test_only_engine_mints(self):
        with pytest.raises(AuthorizationError, match="SCARCITY: caller is not the minter"):
            self.scarcity.mint(OWNER, OWNER, 1)
        self.scarcity.mint(ENGINE, OWNER, 1)
        assert self.scarcity.balance_of(OWNER) == 1

    def test_metadata(self):
        assert self.scarcity.name == "Scarcity"
        assert self.scarcity.symbol == "SCX"
        assert self.scarcity.decimals == 18

    def test_invalid_rates_rejected(self):
        with pytest.raises(ValidationError):
            self.scarcity.configure(OWNER, 600, 400, FEE_DESTINATION)
        with pytest.raises(ValidationError):
            self.scarcity.configure(OWNER, 10, 0, None)
        assert (self.scarcity.transfer_fee, self.scarcity.burn_fee) == (0, 0)


class TestScarcityEconomics:
    """Fees and burning on transfer"""

    def setup_method(self):
        self.ledger = LedgerState()
        self.scarcity = Scarcity(self.ledger, OWNER, minter=ENGINE)
        self.scarcity.set_migrator(OWNER, MIGRATOR)
        self.scarcity.migrate_mint(MIGRATOR, NOT_OWNER, 10_000)

    def test_transfer_from_requires_approval(self):
        with pytest.raises(InsufficientAllowanceError, match="ERC20: transfer amount exceeds allowance"):
            self.scarcity.transfer_from(OWNER, NOT_OWNER, OWNER, 100)

        self.scarcity.approve(NOT_OWNER, OWNER, 100)
        assert self.scarcity.allowance(NOT_OWNER, OWNER) == 100

        self.scarcity.transfer_from(OWNER, NOT_OWNER, OWNER, 100)
        assert self.scarcity.balance_of(NOT_OWNER) == 9900
        assert self.scarcity.balance_of(OWNER) == 100
        assert self.scarcity.allowance(NOT_OWNER, OWNER) == 0

    def test_transfer_and_transfer_from_charge_fees(self):
        self.scarcity.configure(OWNER, 20, 300, FEE_DESTINATION)
        assert self.scarcity.total_supply == 10_000

        self.scarcity.transfer(NOT_OWNER, OWNER, 2000)
        assert self.scarcity.total_supply == 9400
        assert self.scarcity.balance_of(NOT_OWNER) == 8000
        assert self.scarcity.balance_of(OWNER) == 1360
        assert self.scarcity.balance_of(FEE_DESTINATION) == 40

        self.scarcity.approve(NOT_OWNER, OWNER, 100)
        self.scarcity.transfer_from(OWNER, NOT_OWNER, OWNER, 60)
        assert self.scarcity.allowance(NOT_OWNER, OWNER) == 40
        assert self.scarcity.total_supply == 9382
        assert self.scarcity.balance_of(OWNER) == 1401

    def test_balances_sum_to_supply(self):
        self.scarcity.configure(OWNER, 110, 25, FEE_DESTINATION)
        for amount in (1, 999, 1234, 3333):
            self.scarcity.transfer(NOT_OWNER, OWNER, amount)
            self.scarcity.transfer(OWNER, NOT_OWNER, amount // 2)
        assert sum(self.scarcity.balances.values()) == self.scarcity.total_supply

    def test_burn_for_exit_routes_fee(self):
        self.scarcity.configure(OWNER, 20, 300, FEE_DESTINATION)
        net = self.scarcity.burn_for_exit(ENGINE, NOT_OWNER, 1000)

        assert net == 680
        assert self.scarcity.balance_of(NOT_OWNER) == 9000
        assert self.scarcity.balance_of(FEE_DESTINATION) == 20
        assert self.scarcity.total_supply == 9020

    def test_burn_for_exit_restricted(self):
        with pytest.raises(AuthorizationError):
            self.scarcity.burn_for_exit(OWNER, NOT_OWNER, 10)
        with pytest.raises(InsufficientBalanceError):
            self.scarcity.burn_for_exit(ENGINE, OWNER, 10)
