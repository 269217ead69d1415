#!/usr/bin/env python3
"""
Core primitives shared by every ledger component.
"""

import numbers
from dataclasses import dataclass, field
from typing import Any, Dict

Address = str

ZERO_ADDRESS: Address = "0x0000000000000000000000000000000000000000"

MILLI = 1000
ONE = 10 ** 18


@dataclass(frozen=True)
class Event:
    """Execution record emitted by a component"""
    sequence: int
    emitter: Address
    name: str
    args: Dict[str, Any] = field(default_factory=dict)

    def as_row(self) -> Dict[str, Any]:
        row = {"sequence": self.sequence, "emitter": self.emitter, "event": self.name}
        row.update(self.args)
        return row


def require_amount(value, param_name: str = "amount") -> int:
    """
    Validate a token amount and normalise it to a Python int.

    Accepts any integral type (numpy integers included); rejects bools,
    floats and negatives.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise TypeError(f"{param_name} must be an integer, got {type(value).__name__}")
    value = int(value)
    if value < 0:
        raise ValueError(f"{param_name} must be non-negative, got {value}")
    return value
