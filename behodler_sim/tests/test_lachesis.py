#!/usr/bin/env python3
"""
Lachesis Token Classifier Tests
"""

import pytest

from behodler_sim.core.errors import AuthorizationError, ClassificationError, UnlistedTokenError
from behodler_sim.core.lachesis import InMemoryPairRegistry, Lachesis
from behodler_sim.core.ledger import LedgerState
from behodler_sim.core.primitives import ZERO_ADDRESS

OWNER = "owner"


class TestClassification:
    """Admin-curated flags"""

    def setup_method(self):
        self.ledger = LedgerState()
        self.lachesis = Lachesis(self.ledger, OWNER)

    def test_non_owner_cannot_classify(self):
        with pytest.raises(AuthorizationError, match="Ownable: caller is not the owner"):
            self.lachesis.classify("mallory", "dai", True, False)
        assert self.lachesis.query("dai") == (False, False)

    def test_unknown_token_fails_closed(self):
        assert self.lachesis.query("never_seen") == (False, False)

    def test_classify_then_query_round_trip(self):
        self.lachesis.classify(OWNER, "dai", True, False)
        assert self.lachesis.query("dai") == (True, False)

    def test_reclassify_overwrites(self):
        self.lachesis.classify(OWNER, "dai", True, True)
        assert self.lachesis.query("dai") == (True, True)

        self.lachesis.classify(OWNER, "dai", False, False)
        assert self.lachesis.query("dai") == (False, False), "flags should be overwritten, not merged"

        self.lachesis.classify(OWNER, "dai", True, False)
        assert self.lachesis.query("dai") == (True, False)

    def test_classification_is_idempotent(self):
        self.lachesis.classify(OWNER, "dai", True, False)
        self.lachesis.classify(OWNER, "dai", True, False)
        assert self.lachesis.query("dai") == (True, False)

    def test_classify_emits_event(self):
        self.lachesis.classify(OWNER, "dai", True, False)
        event = self.ledger.events[-1]
        assert event.name == "TokenClassified"
        assert event.args["token"] == "dai"


class TestPairClassification:
    """Permissionless admission of pooled-liquidity tokens"""

    def setup_method(self):
        self.ledger = LedgerState()
        self.first = InMemoryPairRegistry("first")
        self.second = InMemoryPairRegistry("second")
        self.lachesis = Lachesis(self.ledger, OWNER, [self.first, self.second])
        self.lachesis.classify(OWNER, "eye", True, False)
        self.lachesis.classify(OWNER, "dai", True, False)

    def test_pair_from_first_registry(self):
        self.first.register_pair("eye", "dai", "eye_dai_lp")
        pair = self.lachesis.classify_pair("eye", "dai")
        assert pair == "eye_dai_lp"
        assert self.lachesis.query("eye_dai_lp") == (True, False)

    def test_pair_from_second_registry(self):
        self.second.register_pair("dai", "eye", "sushi_lp")
        assert self.lachesis.classify_pair("eye", "dai") == "sushi_lp"
        assert self.lachesis.query("sushi_lp") == (True, False)

    def test_first_registry_has_priority(self):
        self.first.register_pair("eye", "dai", "uni_lp")
        self.second.register_pair("eye", "dai", "sushi_lp")
        assert self.lachesis.classify_pair("eye", "dai") == "uni_lp"
        assert self.lachesis.query("sushi_lp") == (False, False)

    def test_zero_address_treated_as_unknown(self):
        self.first.register_pair("eye", "dai", ZERO_ADDRESS)
        self.second.register_pair("eye", "dai", "sushi_lp")
        assert self.lachesis.classify_pair("eye", "dai") == "sushi_lp"

    def test_unknown_pair_rejected(self):
        with pytest.raises(ClassificationError, match="not a valid pair"):
            self.lachesis.classify_pair("eye", "dai")

    def test_both_tokens_must_be_valid(self):
        self.first.register_pair("eye", "scam", "scam_lp")
        with pytest.raises(UnlistedTokenError):
            self.lachesis.classify_pair("eye", "scam")
        assert self.lachesis.query("scam_lp") == (False, False)

    def test_pair_classification_burnable_flag_cleared(self):
        self.lachesis.classify(OWNER, "lp", True, True)
        self.first.register_pair("eye", "dai", "lp")
        self.lachesis.classify_pair("eye", "dai")
        assert self.lachesis.query("lp") == (True, False)

    def test_added_registry_is_consulted_last(self):
        third = InMemoryPairRegistry("third")
        third.register_pair("eye", "dai", "third_lp")
        with pytest.raises(AuthorizationError):
            self.lachesis.add_registry("mallory", third)
        self.lachesis.add_registry(OWNER, third)
        assert self.lachesis.classify_pair("eye", "dai") == "third_lp"

        added = [e for e in self.ledger.events if e.name == "RegistryAdded"]
        assert len(added) == 1
        assert added[0].args["registry"] == "third"

    def test_added_registry_reverts_with_transaction(self):
        registries_before = self.lachesis.registries
        third = InMemoryPairRegistry("third")
        third.register_pair("eye", "dai", "third_lp")

        with pytest.raises(RuntimeError):
            with self.ledger.transaction():
                self.lachesis.add_registry(OWNER, third)
                raise RuntimeError("outer operation failed")

        assert self.lachesis.registries == registries_before
        assert not any(e.name == "RegistryAdded" for e in self.ledger.events)
        with pytest.raises(ClassificationError):
            self.lachesis.classify_pair("eye", "dai")

    def test_registry_lookup_is_symmetric(self):
        self.first.register_pair("eye", "dai", "lp")
        assert self.first.lookup_pair("dai", "eye") == "lp"
        with pytest.raises(ValueError):
            self.first.register_pair("eye", "eye", "lp")
