#!/usr/bin/env python3
"""
Ledger State and Transaction Semantics

The LedgerState is the single owned store of a deployment. Components
register with it by address and declare which of their fields take part in
rollbacks. Every public mutating operation runs inside a transaction: if it
raises, all registered components and the event log are restored to the
state they had when the transaction began.
"""

import copy
import functools
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Tuple

from .errors import ReentrancyError, UnlistedTokenError
from .primitives import Address, Event

logger = logging.getLogger(__name__)


class Stateful:
    """Component whose declared fields are snapshotted by the ledger"""

    _state_fields: Tuple[str, ...] = ()

    def snapshot_state(self) -> Dict[str, Any]:
        snapshot = {}
        for name in self._state_fields:
            value = getattr(self, name)
            if isinstance(value, (dict, list, set)):
                value = copy.deepcopy(value)
            snapshot[name] = value
        return snapshot

    def restore_state(self, snapshot: Dict[str, Any]) -> None:
        for name, value in snapshot.items():
            setattr(self, name, value)


class LedgerState:
    """Owned store holding every contract-like component of a deployment"""

    def __init__(self):
        self.contracts: Dict[Address, Stateful] = {}
        self.events: List[Event] = []
        self._sequence = 0
        self._depth = 0

    def register(self, contract: Stateful) -> None:
        address = contract.address
        if address in self.contracts:
            raise ValueError(f"Address {address} is already registered")
        self.contracts[address] = contract

    def contract(self, address: Address) -> Stateful:
        if address not in self.contracts:
            raise KeyError(f"No contract at {address}")
        return self.contracts[address]

    def token(self, address: Address):
        """Resolve a token ledger by address"""
        # Imported here, tokens depend on this module
        from .tokens import ERC20Token

        contract = self.contracts.get(address)
        if not isinstance(contract, ERC20Token):
            raise UnlistedTokenError(f"LEDGER: {address} is not a token")
        return contract

    def emit(self, emitter: Address, name: str, **args) -> Event:
        self._sequence += 1
        event = Event(self._sequence, emitter, name, dict(args))
        self.events.append(event)
        return event

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def snapshot(self) -> dict:
        return {
            "contracts": {address: (contract, contract.snapshot_state())
                          for address, contract in self.contracts.items()},
            "events": len(self.events),
            "sequence": self._sequence,
        }

    def restore(self, snapshot: dict) -> None:
        saved = snapshot["contracts"]
        self.contracts = {address: contract for address, (contract, _) in saved.items()}
        for contract, state in saved.values():
            contract.restore_state(state)
        del self.events[snapshot["events"]:]
        self._sequence = snapshot["sequence"]

    @contextmanager
    def transaction(self):
        """All-or-nothing block; nested blocks revert independently"""
        snapshot = self.snapshot()
        self._depth += 1
        try:
            yield self
        except Exception as exc:
            self.restore(snapshot)
            if self._depth == 1:
                logger.info("Transaction reverted: %s", exc)
            raise
        finally:
            self._depth -= 1


def atomic(method):
    """Run a component method inside a ledger transaction"""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.ledger.transaction():
            return method(self, *args, **kwargs)

    return wrapper


def non_reentrant(method):
    """Reject calls into any guarded method of a component already executing one"""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if getattr(self, "_entered", False):
            raise ReentrancyError(f"{type(self).__name__.upper()}: reentrant call to {method.__name__}")
        self._entered = True
        try:
            return method(self, *args, **kwargs)
        finally:
            self._entered = False

    return wrapper
