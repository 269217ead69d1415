"""Core Behodler protocol components"""

from .ledger import LedgerState
from .tokens import ERC20Token, FeeOnTransferToken, BalanceDeltaGuard
from .lachesis import Lachesis, TokenRecord, PairRegistry, InMemoryPairRegistry
from .scarcity import Scarcity
from .flash_loans import (
    FlashLoanArbiter, OpenArbiter, RejectionArbiter, CappedArbiter,
    FlashLoanReceiver, InertFlashLoanReceiver,
)
from .pyrotoken import LiquidityReceiver, Pyrotoken
from .behodler import Behodler
from .indirect_swap import IndirectSwap

__all__ = [
    "LedgerState", "ERC20Token", "FeeOnTransferToken", "BalanceDeltaGuard",
    "Lachesis", "TokenRecord", "PairRegistry", "InMemoryPairRegistry",
    "Scarcity",
    "FlashLoanArbiter", "OpenArbiter", "RejectionArbiter", "CappedArbiter",
    "FlashLoanReceiver", "InertFlashLoanReceiver",
    "LiquidityReceiver", "Pyrotoken",
    "Behodler", "IndirectSwap",
]
