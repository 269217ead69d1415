#!/usr/bin/env python3
"""
Behodler Mathematical Functions

Pure integer functions for the square-root bonding curve that prices the
index token and the constant product curve that prices swaps. Nothing here
touches ledger state.
"""

import math
from typing import Tuple

from .errors import ReserveUnderflowError
from .primitives import MILLI


def mul_div(a: int, b: int, denominator: int) -> int:
    """Multiply two numbers and divide by denominator, rounding down"""
    if denominator == 0:
        raise ValueError("Division by zero")
    return (a * b) // denominator


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """Multiply and divide with rounding up"""
    if denominator == 0:
        raise ValueError("Division by zero")
    return (a * b + denominator - 1) // denominator


class BehodlerMath:
    """Pure integer functions for Behodler pricing"""

    DEFAULT_PRECISION_BITS = 64

    # --- Square-root bonding curve ---

    @staticmethod
    def scaled_root(balance: int, precision_bits: int = DEFAULT_PRECISION_BITS) -> int:
        """floor(2**precision_bits * sqrt(balance))"""
        if balance < 0:
            raise ValueError("balance must be non-negative")
        return math.isqrt(balance << (2 * precision_bits))

    @staticmethod
    def balance_for_root(root: int, precision_bits: int = DEFAULT_PRECISION_BITS) -> int:
        """
        Smallest balance whose scaled root reaches `root`.

        Rounding up keeps the engine's side of a withdrawal: the reserve left
        behind is never smaller than the curve requires.
        """
        if root < 0:
            raise ValueError("root must be non-negative")
        shift = 2 * precision_bits
        return (root * root + (1 << shift) - 1) >> shift

    @staticmethod
    def liquidity_delta(old_balance: int, new_balance: int,
                        precision_bits: int = DEFAULT_PRECISION_BITS) -> int:
        """Index tokens minted when a reserve grows from old_balance to new_balance"""
        if new_balance < old_balance:
            raise ValueError("new_balance must not be below old_balance")
        return (BehodlerMath.scaled_root(new_balance, precision_bits)
                - BehodlerMath.scaled_root(old_balance, precision_bits))

    @staticmethod
    def withdrawal_balance(old_balance: int, index_amount: int,
                           precision_bits: int = DEFAULT_PRECISION_BITS) -> int:
        """Reserve left after redeeming `index_amount` (net of fees) against old_balance"""
        remaining_root = BehodlerMath.scaled_root(old_balance, precision_bits) - index_amount
        if remaining_root < 0:
            raise ReserveUnderflowError("BEHODLER: withdrawal exceeds reserve")
        return BehodlerMath.balance_for_root(remaining_root, precision_bits)

    # --- Index token fee apportionment ---

    @staticmethod
    def apportion(amount: int, transfer_fee_milli: int, burn_fee_milli: int) -> Tuple[int, int, int]:
        """Split a transfer into (fee, burn, net)"""
        fee = amount * transfer_fee_milli // MILLI
        burn = amount * burn_fee_milli // MILLI
        return fee, burn, amount - fee - burn

    @staticmethod
    def gross_for_net(net_required: int, transfer_fee_milli: int, burn_fee_milli: int) -> int:
        """Smallest gross amount whose net after apportion() covers net_required"""
        if net_required <= 0:
            return 0
        kept = MILLI - transfer_fee_milli - burn_fee_milli
        if kept <= 0:
            raise ValueError("Fees consume the whole transfer")
        gross = mul_div_rounding_up(net_required, MILLI, kept)
        # floors in apportion() can leave a little slack
        while gross > 0 and BehodlerMath.apportion(gross - 1, transfer_fee_milli, burn_fee_milli)[2] >= net_required:
            gross -= 1
        return gross

    # --- Constant product swaps ---

    @staticmethod
    def apply_fee(amount: int, fee_milli: int) -> int:
        """Amount left after a per-mille fee, rounding down"""
        return amount * (MILLI - fee_milli) // MILLI

    @staticmethod
    def constant_product_output(reserve_in: int, reserve_out: int, net_in: int) -> int:
        """
        Solve reserve_in * reserve_out == (reserve_in + net_in) * (reserve_out - amount_out).

        The post-trade output reserve is rounded up, so the product never
        decreases through rounding.

        Args:
            reserve_in: Engine balance of the input token before the trade
            reserve_out: Engine balance of the output token before the trade
            net_in: Input amount after the swap fee

        Returns:
            Output amount
        """
        if reserve_in <= 0 or reserve_out <= 0:
            raise ReserveUnderflowError("BEHODLER: swap against an empty reserve")
        final_out = mul_div_rounding_up(reserve_in, reserve_out, reserve_in + net_in)
        return reserve_out - final_out
