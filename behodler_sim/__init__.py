"""
Behodler Protocol Simulation

An in-process model of the Behodler automated market maker: a shared
reserve swap engine, the Scarcity index token priced on a square-root
bonding curve, Lachesis token classification, flash loans and
auto-compounding Pyrotokens.
"""

__version__ = "1.0.0"
__author__ = "Behodler Simulation Team"

# Core components
from .core.ledger import LedgerState
from .core.tokens import ERC20Token, FeeOnTransferToken, BalanceDeltaGuard
from .core.lachesis import Lachesis, InMemoryPairRegistry
from .core.scarcity import Scarcity
from .core.behodler import Behodler
from .core.indirect_swap import IndirectSwap
from .core.pyrotoken import LiquidityReceiver, Pyrotoken
from .core.flash_loans import OpenArbiter, RejectionArbiter, CappedArbiter, InertFlashLoanReceiver
from .core.math import BehodlerMath

# Engine
from .engine.config import BehodlerConfig, ScarcityFeeConfig, DeploymentConfig, ArbiterType
from .engine.factory import DeploymentFactory, BehodlerDeployment

# Stress Testing
from .stress_testing.scenarios import BehodlerScenarioSuite

# Analysis
from .analysis.metrics import BehodlerMetricsCalculator

__all__ = [
    # Core
    "LedgerState", "ERC20Token", "FeeOnTransferToken", "BalanceDeltaGuard",
    "Lachesis", "InMemoryPairRegistry", "Scarcity", "Behodler", "IndirectSwap",
    "LiquidityReceiver", "Pyrotoken",
    "OpenArbiter", "RejectionArbiter", "CappedArbiter", "InertFlashLoanReceiver",
    "BehodlerMath",

    # Engine
    "BehodlerConfig", "ScarcityFeeConfig", "DeploymentConfig", "ArbiterType",
    "DeploymentFactory", "BehodlerDeployment",

    # Stress Testing
    "BehodlerScenarioSuite",

    # Analysis
    "BehodlerMetricsCalculator"
]
