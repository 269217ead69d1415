#!/usr/bin/env python3
"""
Stress Test Scenario Definitions

Named scenarios that drive a fresh deployment through the protocol's
risky paths: liquidity cycling, swap fee accrual, defaulted flash loans,
Pyrotoken compounding and fee-on-transfer deposits.
"""

import logging
from typing import Callable, Dict, List, Optional

from ..analysis.metrics import BehodlerMetricsCalculator
from ..core.errors import FlashLoanRepaymentError, TransferFailure
from ..core.flash_loans import FlashLoanReceiver, InertFlashLoanReceiver
from ..core.primitives import Address
from ..engine.config import DeploymentConfig, ScarcityFeeConfig
from ..engine.factory import BehodlerDeployment, DeploymentFactory

logger = logging.getLogger(__name__)

FINNEY = 10 ** 15
TEN = 10 ** 18

TRADER = "trader"
PROVIDER = "provider"
FEE_DESTINATION = "fee_destination"


def _fee_config(transfer_fee_milli: int = 110, burn_fee_milli: int = 25) -> DeploymentConfig:
    return DeploymentConfig(scarcity=ScarcityFeeConfig(
        transfer_fee_milli=transfer_fee_milli,
        burn_fee_milli=burn_fee_milli,
        fee_destination=FEE_DESTINATION,
    ))


class DefaultingReceiver(FlashLoanReceiver):
    """Borrower that moves part of its loan away and cannot repay"""

    def __init__(self, address: Address = "defaulting_receiver", sink: Address = "sink", spend_milli: int = 100):
        self.address = address
        self.sink = sink
        self.spend_milli = spend_milli

    def execute(self, engine, borrower: Address, amount: int) -> None:
        engine.scarcity.transfer(self.address, self.sink, amount * self.spend_milli // 1000)


class StressTestScenario:
    """Individual stress test scenario"""

    def __init__(self, name: str, description: str, run_func: Callable[[BehodlerDeployment], Dict],
                 config_factory: Callable[[], DeploymentConfig] = DeploymentConfig):
        self.name = name
        self.description = description
        self.run_func = run_func
        self.config_factory = config_factory
        self.results = None

    def run(self, deployment: Optional[BehodlerDeployment] = None) -> Dict:
        """Run the scenario against a fresh deployment unless one is given"""
        logger.info("Running scenario: %s", self.name)
        deployment = deployment or DeploymentFactory.deploy(self.config_factory())

        results = self.run_func(deployment)
        results["invariants"] = BehodlerMetricsCalculator(deployment).invariant_report()
        self.results = results
        return results


class BehodlerScenarioSuite:
    """Complete scenario suite for the Behodler protocol"""

    def __init__(self):
        self.scenarios = self._create_scenarios()
        self.results = {}

    def _create_scenarios(self) -> List[StressTestScenario]:
        return [
            StressTestScenario(
                "liquidity_cycling",
                "Repeated add/withdraw of the same token under 11% fee and 2.5% burn",
                self._liquidity_cycling,
                _fee_config,
            ),
            StressTestScenario(
                "swap_fee_accrual",
                "Round-trip swaps between two reserves; the reserve product must only grow",
                self._swap_fee_accrual,
            ),
            StressTestScenario(
                "flash_loan_default",
                "A borrower spends part of its loan; the whole loan reverts",
                self._flash_loan_default,
                _fee_config,
            ),
            StressTestScenario(
                "pyrotoken_compounding",
                "Deposit skims accumulate in the liquidity receiver and lift the redeem rate",
                self._pyrotoken_compounding,
                _fee_config,
            ),
            StressTestScenario(
                "fee_on_transfer_deposit",
                "Deposits of a 5% fee-on-transfer token are priced on the measured amount",
                self._fee_on_transfer_deposit,
            ),
        ]

    # --- Scenario bodies ---

    def _liquidity_cycling(self, deployment: BehodlerDeployment, cycles: int = 3,
                           deposit: int = 1000 * TEN) -> Dict:
        behodler = deployment.behodler
        token = deployment.create_token("eye", "EYE", balances={TRADER: 1_000_000 * TEN})
        token.approve(TRADER, behodler.address, 1_000_000 * TEN)
        starting_balance = token.balance_of(TRADER)

        returned = []
        for _ in range(cycles):
            minted = behodler.add_liquidity(TRADER, token.address, deposit)
            returned.append(behodler.withdraw_liquidity(TRADER, token.address, minted))

        return {
            "cycles": cycles,
            "deposit_per_cycle": deposit,
            "returned_per_cycle": returned,
            "net_token_change": token.balance_of(TRADER) - starting_balance,
            "fee_destination_scx": deployment.scarcity.balance_of(FEE_DESTINATION),
        }

    def _swap_fee_accrual(self, deployment: BehodlerDeployment, rounds: int = 10,
                          trade: int = 100 * TEN) -> Dict:
        behodler = deployment.behodler
        token_a = deployment.create_token("token_a", "TKA", balances={PROVIDER: 100_000 * TEN, TRADER: 10_000 * TEN})
        token_b = deployment.create_token("token_b", "TKB", balances={PROVIDER: 100_000 * TEN, TRADER: 10_000 * TEN})
        for token in (token_a, token_b):
            token.approve(PROVIDER, behodler.address, 100_000 * TEN)
            token.approve(TRADER, behodler.address, 10_000 * TEN)
            behodler.add_liquidity(PROVIDER, token.address, 10_000 * TEN)

        def product() -> int:
            return behodler.reserve(token_a.address) * behodler.reserve(token_b.address)

        products = [product()]
        amount_in, pair = trade, (token_a.address, token_b.address)
        for _ in range(rounds):
            amount_in = behodler.swap(TRADER, pair[0], pair[1], amount_in)
            products.append(product())
            pair = (pair[1], pair[0])

        return {
            "rounds": rounds,
            "reserve_products": products,
            "product_strictly_increasing": all(b > a for a, b in zip(products, products[1:])),
            "trader_token_a_change": token_a.balance_of(TRADER) - 10_000 * TEN,
            "trader_token_b_change": token_b.balance_of(TRADER) - 10_000 * TEN,
        }

    def _flash_loan_default(self, deployment: BehodlerDeployment, amount: int = 1000 * TEN) -> Dict:
        behodler = deployment.behodler
        scarcity = deployment.scarcity

        inert = InertFlashLoanReceiver()
        behodler.grant_flash_loan(TRADER, amount, inert)

        supply_before = scarcity.total_supply
        events_before = len(deployment.ledger.events)
        error = None
        try:
            behodler.grant_flash_loan(TRADER, amount, DefaultingReceiver())
        except FlashLoanRepaymentError as exc:
            error = exc.reason

        return {
            "inert_loan_calls": inert.calls,
            "default_error": error,
            "supply_unchanged": scarcity.total_supply == supply_before,
            "events_unchanged": len(deployment.ledger.events) == events_before,
        }

    def _pyrotoken_compounding(self, deployment: BehodlerDeployment, rounds: int = 4) -> Dict:
        behodler = deployment.behodler
        receiver = deployment.liquidity_receiver
        token = deployment.create_token("regular", "REG", balances={TRADER: 2_000_000 * TEN})
        pyrotoken = receiver.register_pyrotoken(deployment.owner, token.address)
        token.approve(TRADER, behodler.address, 2_000_000 * TEN)
        token.approve(TRADER, pyrotoken.address, 2_000_000 * TEN)

        rates = [pyrotoken.redeem_rate()]
        skims = []
        for _ in range(rounds):
            behodler.add_liquidity(TRADER, token.address, 2 * FINNEY)
            skims.append(receiver.pending(token.address))
            pyrotoken.mint(TRADER, FINNEY)
            rates.append(pyrotoken.redeem_rate())

        return {
            "pyrotoken": pyrotoken.address,
            "skims_absorbed": skims,
            "redeem_rates": rates,
            "redeem_rate_monotone": all(b >= a for a, b in zip(rates, rates[1:])),
            "pyrotoken_supply": pyrotoken.total_supply,
            "backing": pyrotoken.backing,
        }

    def _fee_on_transfer_deposit(self, deployment: BehodlerDeployment, amount: int = 1000 * TEN) -> Dict:
        behodler = deployment.behodler
        token = deployment.create_token("taxed", "TAX", fee_milli=50, balances={TRADER: 10_000 * TEN})
        token.approve(TRADER, behodler.address, 10_000 * TEN)

        naive_quote = behodler.quote_add_liquidity(token.address, amount)
        minted = behodler.add_liquidity(TRADER, token.address, amount)
        reserve = behodler.reserve(token.address)

        # misclassified as conforming, the shortfall is caught
        deployment.lachesis.classify(deployment.owner, token.address, True, False)
        rejected = None
        try:
            behodler.add_liquidity(TRADER, token.address, amount)
        except TransferFailure as exc:
            rejected = exc.reason

        return {
            "requested": amount,
            "reserve": reserve,
            "minted": minted,
            "naive_quote": naive_quote,
            "overpayment_avoided": naive_quote - minted,
            "misclassified_deposit_error": rejected,
        }

    # --- Execution ---

    def run_all_scenarios(self) -> Dict[str, dict]:
        """Run every scenario, each against its own deployment"""
        for scenario in self.scenarios:
            try:
                self.results[scenario.name] = scenario.run()
                logger.info("Completed: %s", scenario.name)
            except Exception as e:
                logger.error("Failed: %s - %s", scenario.name, e)
                self.results[scenario.name] = {"error": str(e)}
        return self.results

    def run_scenario(self, scenario_name: str) -> dict:
        scenario = next((s for s in self.scenarios if s.name == scenario_name), None)
        if not scenario:
            raise ValueError(f"Scenario '{scenario_name}' not found")
        self.results[scenario.name] = scenario.run()
        return self.results[scenario.name]

    def get_scenario_names(self) -> List[str]:
        return [scenario.name for scenario in self.scenarios]
