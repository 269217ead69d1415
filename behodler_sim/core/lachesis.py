#!/usr/bin/env python3
"""
Lachesis Token Classifier

Admin-curated validity and burnability flags for every token the engine
may touch, plus permissionless admission of pooled-liquidity tokens whose
pair is known to one of the external pair registries.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Sequence, Tuple

from .errors import AuthorizationError, ClassificationError, UnlistedTokenError
from .ledger import LedgerState, Stateful, atomic
from .primitives import ZERO_ADDRESS, Address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenRecord:
    """Classification flags; unknown tokens are neither valid nor burnable"""
    valid: bool = False
    burnable: bool = False


class PairRegistry(ABC):
    """External service mapping a token pair to its pooled-liquidity token"""

    @abstractmethod
    def lookup_pair(self, token_a: Address, token_b: Address) -> Optional[Address]:
        """Return the pooled-liquidity token for the pair, or None"""


class InMemoryPairRegistry(PairRegistry):
    """Pair registry held in process; lookups are order-independent"""

    def __init__(self, name: str = "registry"):
        self.name = name
        self.pairs: Dict[FrozenSet[Address], Address] = {}

    def register_pair(self, token_a: Address, token_b: Address, pair: Address) -> None:
        if token_a == token_b:
            raise ValueError("A pair needs two distinct tokens")
        self.pairs[frozenset((token_a, token_b))] = pair

    def lookup_pair(self, token_a: Address, token_b: Address) -> Optional[Address]:
        return self.pairs.get(frozenset((token_a, token_b)))


class Lachesis(Stateful):
    """Token classifier consulted by the liquidity engine"""

    _state_fields = ("records", "registries")

    def __init__(self, ledger: LedgerState, owner: Address,
                 registries: Sequence[PairRegistry] = (), address: Address = "lachesis"):
        self.ledger = ledger
        self.owner = owner
        self.address = address
        self.registries: Tuple[PairRegistry, ...] = tuple(registries)
        self.records: Dict[Address, TokenRecord] = {}

        ledger.register(self)

    def _only_owner(self, caller: Address) -> None:
        if caller != self.owner:
            raise AuthorizationError("Ownable: caller is not the owner")

    @atomic
    def classify(self, caller: Address, token: Address, valid: bool, burnable: bool) -> None:
        """Set or overwrite both flags for token"""
        self._only_owner(caller)
        self.records[token] = TokenRecord(bool(valid), bool(burnable))
        self.ledger.emit(self.address, "TokenClassified", token=token, valid=bool(valid), burnable=bool(burnable))
        logger.info("Classified %s: valid=%s burnable=%s", token, valid, burnable)

    def query(self, token: Address) -> Tuple[bool, bool]:
        record = self.records.get(token, TokenRecord())
        return record.valid, record.burnable

    def record(self, token: Address) -> TokenRecord:
        return self.records.get(token, TokenRecord())

    @atomic
    def add_registry(self, caller: Address, registry: PairRegistry) -> None:
        """Append a registry at the lowest priority"""
        self._only_owner(caller)
        self.registries = self.registries + (registry,)
        self.ledger.emit(self.address, "RegistryAdded", registry=getattr(registry, "name", type(registry).__name__),
                         priority=len(self.registries) - 1)
        logger.info("Added pair registry at priority %d", len(self.registries) - 1)

    @atomic
    def classify_pair(self, token_a: Address, token_b: Address) -> Address:
        """
        Admit the pooled-liquidity token of two valid tokens.

        Registries are consulted in priority order; the first one that knows
        the pair wins.

        Returns:
            Address of the newly classified pooled-liquidity token
        """
        for token in (token_a, token_b):
            if not self.record(token).valid:
                raise UnlistedTokenError(f"LACHESIS: {token} is not a valid token")

        pair = None
        for registry in self.registries:
            candidate = registry.lookup_pair(token_a, token_b)
            if candidate and candidate != ZERO_ADDRESS:
                pair = candidate
                break

        if pair is None:
            raise ClassificationError("not a valid pair")

        self.records[pair] = TokenRecord(valid=True, burnable=False)
        self.ledger.emit(self.address, "TokenClassified", token=pair, valid=True, burnable=False)
        logger.info("Admitted pair token %s for %s/%s", pair, token_a, token_b)
        return pair
