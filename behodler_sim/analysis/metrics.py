#!/usr/bin/env python3
"""
Protocol Accounting Metrics

Tabular views of reserves and the event log, a floating-point reference for
the swap curve and a report of the accounting invariants.
"""

import numpy as np
import pandas as pd
from typing import Dict, Sequence

from ..core.math import BehodlerMath
from ..core.primitives import Address
from ..core.tokens import ERC20Token
from ..engine.factory import BehodlerDeployment


class BehodlerMetricsCalculator:
    """Accounting metrics for one deployment"""

    def __init__(self, deployment: BehodlerDeployment):
        self.deployment = deployment
        self.behodler = deployment.behodler
        self.ledger = deployment.ledger

    def reserves_frame(self) -> pd.DataFrame:
        """One row per token the engine has held"""
        bits = self.behodler.precision_bits
        rows = []
        for address in self.behodler.tokens_seen:
            token = self.ledger.token(address)
            reserve = self.behodler.reserve(address)
            rows.append({
                "token": address,
                "symbol": token.symbol,
                "reserve": reserve,
                "scaled_root": BehodlerMath.scaled_root(reserve, bits),
            })

        # reserves and roots overflow int64, keep them as Python ints
        frame = pd.DataFrame(rows, columns=["token", "symbol", "reserve", "scaled_root"], dtype=object)
        total_root = sum(frame["scaled_root"]) if len(frame) else 0
        frame["sqrt_share"] = [root / total_root if total_root else 0.0 for root in frame["scaled_root"]]
        return frame

    def events_frame(self) -> pd.DataFrame:
        """The ledger event log, one row per event"""
        rows = [event.as_row() for event in self.ledger.events]
        if not rows:
            return pd.DataFrame(columns=["sequence", "emitter", "event"])
        return pd.DataFrame(rows)

    def swap_curve(self, token_in: Address, token_out: Address, amounts: Sequence[float]) -> np.ndarray:
        """Floating-point constant product output for each input amount"""
        amounts = np.asarray(amounts, dtype=float)
        reserve_in = float(self.behodler.reserve(token_in))
        reserve_out = float(self.behodler.reserve(token_out))
        net_in = amounts * (1.0 - self.behodler.swap_fee_milli / 1000.0)
        return reserve_out - reserve_in * reserve_out / (reserve_in + net_in)

    def invariant_report(self) -> Dict:
        """Check the accounting invariants of the current state"""
        scarcity = self.deployment.scarcity
        balance_sum = sum(scarcity.balances.values())

        lachesis = self.deployment.lachesis
        tracked_valid = all(lachesis.query(address)[0] for address in self.behodler.tokens_seen)

        # engine holdings the engine has never priced, e.g. direct transfers
        untracked = {}
        for address, contract in self.ledger.contracts.items():
            if not isinstance(contract, ERC20Token) or address in self.behodler.tokens_seen:
                continue
            held = contract.balance_of(self.behodler.address)
            if held:
                untracked[address] = held

        receiver = self.deployment.liquidity_receiver
        redeem_rates = {}
        pending_skims = {}
        for base_token in receiver.base_token_mapping:
            redeem_rates[base_token] = receiver.pyrotoken_for(base_token).redeem_rate()
            pending_skims[base_token] = receiver.pending(base_token)

        sqrt_sum = self.behodler.sqrt_sum()
        supply = scarcity.total_supply

        return {
            "index_supply": supply,
            "index_balance_sum": balance_sum,
            "index_supply_conserved": balance_sum == supply,
            "sqrt_sum": sqrt_sum,
            "backing_ratio": sqrt_sum / supply if supply else 0.0,
            "tracked_tokens_valid": tracked_valid,
            "reserves_match_ledger": not untracked,
            "untracked_holdings": untracked,
            "redeem_rates": redeem_rates,
            "pending_skims": pending_skims,
        }
