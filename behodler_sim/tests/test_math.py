#!/usr/bin/env python3
"""
Bonding Curve and Swap Math Tests

Exact integer checks for the square-root curve, fee apportionment and the
constant product solve, plus a floating-point reference for swaps.
"""

import math
import pytest

from behodler_sim.core.errors import ReserveUnderflowError
from behodler_sim.core.math import BehodlerMath, mul_div, mul_div_rounding_up

TEN = 10 ** 18


class TestSquareRootCurve:
    """Scaled square roots and their inverse"""

    def test_scaled_root_of_1000(self):
        assert BehodlerMath.scaled_root(1000) == math.isqrt(1000 << 128)

    def test_liquidity_delta_matches_root_difference(self):
        expected = math.isqrt(2000 << 128) - math.isqrt(1000 << 128)
        assert BehodlerMath.liquidity_delta(1000, 2000) == expected

    def test_first_deposit_is_root_of_deposit(self):
        assert BehodlerMath.liquidity_delta(0, 7 * TEN) == BehodlerMath.scaled_root(7 * TEN)

    def test_balance_for_root_inverts_scaled_root(self):
        for balance in (0, 1, 2, 1000, 999_999, TEN, 21_450 * 10 ** 12, 10 ** 30):
            root = BehodlerMath.scaled_root(balance)
            assert BehodlerMath.balance_for_root(root) == balance, f"inverse failed for {balance}"

    def test_withdrawal_balance_returns_to_old_reserve(self):
        old, deposit = 5 * TEN, 3 * TEN
        minted = BehodlerMath.liquidity_delta(old, old + deposit)
        assert BehodlerMath.withdrawal_balance(old + deposit, minted) == old

    def test_withdrawal_beyond_reserve_underflows(self):
        root = BehodlerMath.scaled_root(1000)
        with pytest.raises(ReserveUnderflowError):
            BehodlerMath.withdrawal_balance(1000, root + 1)

    def test_whole_reserve_withdrawal_leaves_zero(self):
        root = BehodlerMath.scaled_root(1000)
        assert BehodlerMath.withdrawal_balance(1000, root) == 0

    def test_smaller_precision(self):
        assert BehodlerMath.scaled_root(16, precision_bits=8) == 4 * 256

    def test_negative_inputs_rejected(self):
        with pytest.raises(ValueError):
            BehodlerMath.scaled_root(-1)
        with pytest.raises(ValueError):
            BehodlerMath.liquidity_delta(10, 5)


class TestFeeApportionment:
    """Transfer fee and burn splits"""

    def test_apportion(self):
        assert BehodlerMath.apportion(2000, 20, 300) == (40, 600, 1360)
        assert BehodlerMath.apportion(60, 20, 300) == (1, 18, 41)

    def test_zero_rates(self):
        assert BehodlerMath.apportion(12345, 0, 0) == (0, 0, 12345)

    def test_gross_for_net_is_minimal(self):
        for net_required in (1, 7, 1000, 10 ** 21 + 3):
            gross = BehodlerMath.gross_for_net(net_required, 110, 25)
            assert BehodlerMath.apportion(gross, 110, 25)[2] >= net_required, "gross does not cover net"
            assert BehodlerMath.apportion(gross - 1, 110, 25)[2] < net_required, "gross is not minimal"

    def test_gross_for_zero_net(self):
        assert BehodlerMath.gross_for_net(0, 110, 25) == 0


class TestConstantProduct:
    """Swap pricing between two reserves"""

    def test_sixteen_to_one_matches_float_reference(self):
        net_in = BehodlerMath.apply_fee(TEN, 25)
        assert net_in == 975 * 10 ** 15

        amount_out = BehodlerMath.constant_product_output(16 * TEN, TEN, net_in)
        reference = TEN * (1 - 16 / (16 + 0.975))
        assert amount_out == pytest.approx(reference, rel=1e-12)

        engine_favoured = TEN - (16 * TEN * TEN + (16 * TEN + net_in) - 1) // (16 * TEN + net_in)
        assert amount_out == engine_favoured

    def test_product_never_decreases(self):
        cases = [(16 * TEN, TEN, TEN), (1000, 7, 13), (3, 3, 1), (10 ** 24, 10 ** 6, 10 ** 20)]
        for reserve_in, reserve_out, amount_in in cases:
            net_in = BehodlerMath.apply_fee(amount_in, 25)
            out = BehodlerMath.constant_product_output(reserve_in, reserve_out, net_in)
            assert (reserve_in + net_in) * (reserve_out - out) >= reserve_in * reserve_out
            assert (reserve_in + amount_in) * (reserve_out - out) > reserve_in * reserve_out

    def test_empty_reserve_rejected(self):
        with pytest.raises(ReserveUnderflowError):
            BehodlerMath.constant_product_output(0, TEN, TEN)
        with pytest.raises(ReserveUnderflowError):
            BehodlerMath.constant_product_output(TEN, 0, TEN)

    def test_mul_div_rounding(self):
        assert mul_div(7, 3, 2) == 10
        assert mul_div_rounding_up(7, 3, 2) == 11
        assert mul_div_rounding_up(4, 3, 2) == 6
        with pytest.raises(ValueError):
            mul_div(1, 1, 0)
