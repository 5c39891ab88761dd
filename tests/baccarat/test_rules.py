"""
Tests for baccarat hands and the third-card table.

Tests cover:
- Hand value calculation (modulo 10)
- Natural and pair detection
- Player drawing rules
- Banker drawing rules (the full table)
- Draw table registration
"""

import pytest

from punto.baccarat.hand import BaccaratHand, Side
from punto.baccarat.rules import (
    BaccaratRules,
    DrawDecision,
    DrawRuleVariant,
    banker_draws_third_card,
    decide_draws,
    default_big_predicate,
    player_draws_third_card,
    register_draw_table,
)
from punto.common.card import Card


def hand(side, *codes):
    return BaccaratHand(side, [Card.parse(code) for code in codes])


class TestBaccaratHand:
    """Tests for BaccaratHand value calculation."""

    def test_empty_hand(self):
        empty = BaccaratHand()
        assert empty.value() == 0
        assert empty.card_count() == 0
        assert empty.third_card_value() == -1

    def test_modulo_10_calculation(self):
        assert hand(Side.PLAYER, "9H", "8S").value() == 7
        assert hand(Side.PLAYER, "10H", "KS").value() == 0
        assert hand(Side.PLAYER, "9H", "9S", "9D").points == 7

    def test_natural(self):
        assert hand(Side.BANKER, "4H", "4S").is_natural()
        assert hand(Side.BANKER, "KH", "9S").is_natural()
        assert not hand(Side.BANKER, "4H", "3S").is_natural()
        # three cards totalling eight is not a natural
        assert not hand(Side.BANKER, "2H", "3S", "3D").is_natural()

    def test_pair_uses_rank_only(self):
        assert hand(Side.PLAYER, "QH", "QS").is_pair()
        assert not hand(Side.PLAYER, "QH", "KS").is_pair()
        assert not hand(Side.PLAYER, "QH").is_pair()

    def test_initial_value_ignores_third_card(self):
        three = hand(Side.PLAYER, "2H", "3S", "4D")
        assert three.initial_value() == 5
        assert three.value() == 9
        assert three.third_card_value() == 4

    def test_fourth_card_rejected(self):
        full = hand(Side.BANKER, "2H", "3S", "4D")
        with pytest.raises(ValueError):
            full.add_card(Card.parse("5C"))
        assert len(full) == 3

    def test_copy_is_independent(self):
        original = hand(Side.BANKER, "2H", "3S")
        duplicate = original.copy()
        duplicate.add_card(Card.parse("4D"))
        assert len(original) == 2
        assert duplicate.side is Side.BANKER

    def test_str(self):
        assert str(hand(Side.BANKER, "AS", "7H")) == "Banker: [♠A, ♥7] = 8"


class TestPlayerRules:
    @pytest.mark.parametrize("value", range(0, 6))
    def test_draws_on_0_to_5(self, value):
        assert player_draws_third_card(value)

    @pytest.mark.parametrize("value", [6, 7, 8, 9])
    def test_stands_on_6_and_above(self, value):
        assert not player_draws_third_card(value)


# Banker total -> Player third-card values on which the Banker draws
BANKER_DRAWS_ON = {
    0: set(range(10)),
    1: set(range(10)),
    2: set(range(10)),
    3: set(range(10)) - {8},
    4: set(range(2, 8)),
    5: set(range(4, 8)),
    6: {6, 7},
    7: set(),
}


class TestBankerRules:
    @pytest.mark.parametrize("banker_value", range(0, 8))
    @pytest.mark.parametrize("third", range(0, 10))
    def test_full_table_when_player_drew(self, banker_value, third):
        expected = third in BANKER_DRAWS_ON[banker_value]
        assert banker_draws_third_card(banker_value, True, third) is expected

    @pytest.mark.parametrize("banker_value,expected", [(0, True), (5, True), (6, False), (7, False)])
    def test_player_stood(self, banker_value, expected):
        assert banker_draws_third_card(banker_value, False, -1) is expected

    @pytest.mark.parametrize(
        "banker_value,third,expected",
        [(3, 8, False), (3, 7, True), (4, 1, False), (5, 4, True), (6, 7, True), (6, 5, False)],
    )
    def test_edge_cases(self, banker_value, third, expected):
        assert banker_draws_third_card(banker_value, True, third) is expected


class TestDecideDraws:
    def test_natural_stops_both(self):
        decision = decide_draws(hand(Side.BANKER, "2H", "3S"), hand(Side.PLAYER, "9H", "KS"))
        assert decision == DrawDecision(False, False, "natural")
        assert not decision.any_draws

    def test_banker_natural_stops_player(self):
        decision = decide_draws(hand(Side.BANKER, "8H", "KS"), hand(Side.PLAYER, "AH", "2S"))
        assert not decision.player_draws
        assert not decision.banker_draws

    def test_player_stands_banker_draws(self):
        decision = decide_draws(hand(Side.BANKER, "2H", "3S"), hand(Side.PLAYER, "3H", "3S"))
        assert not decision.player_draws
        assert decision.banker_draws
        assert not decision.banker_pending
        assert "player stands on 6" in decision.reason

    def test_player_stands_banker_stands(self):
        decision = decide_draws(hand(Side.BANKER, "3H", "3S"), hand(Side.PLAYER, "4H", "3S"))
        assert not decision.any_draws

    def test_player_draws_leaves_banker_pending(self):
        decision = decide_draws(hand(Side.BANKER, "3H", "3S"), hand(Side.PLAYER, "2H", "3S"))
        assert decision.player_draws
        assert decision.banker_pending
        assert not decision.banker_draws
        assert decision.any_draws

    def test_resolve_pending(self):
        decision = decide_draws(hand(Side.BANKER, "3H", "3S"), hand(Side.PLAYER, "2H", "3S"))
        assert decision.resolve(6, 7).banker_draws
        resolved = decision.resolve(6, 5)
        assert not resolved.banker_draws
        assert not resolved.banker_pending
        assert resolved.reason.endswith("banker stands on 6 against 5")
        assert resolved.resolve(6, 7) is resolved

    def test_player_third_card_already_dealt(self):
        decision = decide_draws(hand(Side.BANKER, "2H", "AS"), hand(Side.PLAYER, "2H", "3S", "8D"))
        assert decision.player_draws
        assert not decision.banker_pending
        assert not decision.banker_draws

    def test_requires_two_cards(self):
        with pytest.raises(ValueError):
            decide_draws(hand(Side.BANKER, "2H"), hand(Side.PLAYER, "2H", "3S"))

    def test_unregistered_variant(self):
        with pytest.raises(ValueError):
            decide_draws(
                hand(Side.BANKER, "2H", "3S"),
                hand(Side.PLAYER, "2H", "3S"),
                DrawRuleVariant.NO_THIRD_CARD,
            )


class TestDrawTableRegistry:
    def test_register_and_remove(self):
        def never_draw(banker_hand, player_hand):
            return DrawDecision(False, False, "no third card")

        register_draw_table(DrawRuleVariant.NO_THIRD_CARD, never_draw)
        try:
            decision = decide_draws(
                hand(Side.BANKER, "AH", "AS"),
                hand(Side.PLAYER, "AH", "AS"),
                DrawRuleVariant.NO_THIRD_CARD,
            )
            assert decision.reason == "no third card"
        finally:
            register_draw_table(DrawRuleVariant.NO_THIRD_CARD, None)

        with pytest.raises(ValueError):
            decide_draws(
                hand(Side.BANKER, "AH", "AS"),
                hand(Side.PLAYER, "AH", "AS"),
                DrawRuleVariant.NO_THIRD_CARD,
            )

    def test_standard_cannot_be_removed(self):
        with pytest.raises(ValueError):
            register_draw_table(DrawRuleVariant.STANDARD, None)


class TestBaccaratRules:
    def test_defaults(self):
        rules = BaccaratRules()
        assert rules.num_decks == 8
        assert rules.commission_enabled
        assert rules.commission_rate == 0.05
        assert rules.rule_variant is DrawRuleVariant.STANDARD

    def test_no_commission(self):
        rules = BaccaratRules.no_commission(enable_super6=True)
        assert not rules.commission_enabled
        assert rules.enable_super6

    def test_limits_are_per_instance(self):
        first = BaccaratRules()
        second = BaccaratRules()
        assert first.bet_limits is not second.bet_limits

    @pytest.mark.parametrize("cards,big", [(4, False), (5, True), (6, True)])
    def test_default_big_predicate(self, cards, big):
        assert default_big_predicate(cards) is big
