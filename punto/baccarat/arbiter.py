"""
Deal arbitration for one round of Baccarat.

The arbiter deals the initial four cards, applies the third-card table and
scores the finished hands. Each step is a separate call so a live table can
pause between them; ``play`` runs the whole round at once.
"""

import logging
from enum import Enum
from typing import Optional

from punto.baccarat.hand import BaccaratHand, Side
from punto.baccarat.result import RoundResult, build_result
from punto.baccarat.rules import BaccaratRules, DrawDecision, decide_draws
from punto.common.shoe import Shoe, ShoeExhausted
from punto.events.emitter import EventEmitter, TableEventType

logger = logging.getLogger("punto.arbiter")


class ArbiterState(Enum):
    AWAITING_INITIAL_DEAL = "awaiting_initial_deal"
    INITIAL_DEALT = "initial_dealt"
    DRAW_DECIDED = "draw_decided"
    COMPLETE = "complete"
    FAILED = "failed"


class ArbiterStateError(Exception):
    """Raised when an arbiter step is called out of order."""

    pass


class DealArbiter:
    """
    Deals and scores one round at a time.

    Events emitted (payload keys):
    - CARD_DEALT: round_id, side, card, index, points
    - DRAW_DECIDED: round_id, player_draws, banker_draws, banker_pending, reason.
      Sent again once the Player's third card settles a pending Banker decision.
    """

    def __init__(
        self,
        shoe: Shoe,
        rules: Optional[BaccaratRules] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        """
        Args:
            shoe: The shoe to deal from
            rules: Table rules (draw variant and Big/Small predicate)
            emitter: Where to send deal events; a private emitter is used if omitted
        """
        self.shoe = shoe
        self.rules = rules if rules else BaccaratRules()
        self.emitter = emitter if emitter is not None else EventEmitter()

        self.banker_hand = BaccaratHand(Side.BANKER)
        self.player_hand = BaccaratHand(Side.PLAYER)
        self.state = ArbiterState.AWAITING_INITIAL_DEAL
        self.decision: Optional[DrawDecision] = None
        self.round_id = 0

    def _require(self, *states: ArbiterState) -> None:
        if self.state not in states:
            expected = " or ".join(s.value for s in states)
            raise ArbiterStateError(f"Arbiter is {self.state.value}, expected {expected}")

    def _deal_to(self, hand: BaccaratHand) -> None:
        card = self.shoe.deal()
        hand.add_card(card)
        self.emitter.emit(
            TableEventType.CARD_DEALT,
            {
                "round_id": self.round_id,
                "side": hand.side,
                "card": card,
                "index": hand.card_count() - 1,
                "points": hand.value(),
            },
        )

    def _fail(self, error: ShoeExhausted) -> None:
        logger.error("Shoe exhausted during round %d: %s", self.round_id, error)
        self.banker_hand.clear()
        self.player_hand.clear()
        self.decision = None
        self.state = ArbiterState.FAILED

    def reset(self) -> None:
        """Prepare for the next round."""
        self.banker_hand = BaccaratHand(Side.BANKER)
        self.player_hand = BaccaratHand(Side.PLAYER)
        self.decision = None
        self.state = ArbiterState.AWAITING_INITIAL_DEAL

    def deal_initial(self, round_id: Optional[int] = None) -> None:
        """
        Deal initial four cards (2 to Player, 2 to Banker).

        Order: Player, Banker, Player, Banker

        Raises:
            ArbiterStateError: If a round is already under way
            ShoeExhausted: If the shoe runs out; the arbiter is then FAILED
        """
        self._require(ArbiterState.AWAITING_INITIAL_DEAL)
        self.round_id = round_id if round_id is not None else self.round_id + 1
        try:
            for hand in (self.player_hand, self.banker_hand) * 2:
                self._deal_to(hand)
        except ShoeExhausted as e:
            self._fail(e)
            raise
        self.state = ArbiterState.INITIAL_DEALT
        logger.debug(
            "Round %d initial deal: %s / %s", self.round_id, self.player_hand, self.banker_hand
        )

    def _emit_decision(self, decision: DrawDecision) -> None:
        self.emitter.emit(
            TableEventType.DRAW_DECIDED,
            {
                "round_id": self.round_id,
                "player_draws": decision.player_draws,
                "banker_draws": decision.banker_draws,
                "banker_pending": decision.banker_pending,
                "reason": decision.reason,
            },
        )

    def decide_draws(self) -> DrawDecision:
        """Apply the third-card table to the initial hands."""
        self._require(ArbiterState.INITIAL_DEALT)
        self.decision = decide_draws(self.banker_hand, self.player_hand, self.rules.rule_variant)
        self._emit_decision(self.decision)
        self.state = ArbiterState.DRAW_DECIDED
        return self.decision

    def apply_draws(self) -> DrawDecision:
        """
        Deal the third cards the decision calls for, Player before Banker.

        Returns:
            The final decision, with any pending Banker decision settled
        """
        self._require(ArbiterState.DRAW_DECIDED)
        decision = self.decision
        try:
            if decision.player_draws:
                self._deal_to(self.player_hand)
                decision = decision.resolve(
                    self.banker_hand.initial_value(), self.player_hand.third_card_value()
                )
                if self.decision.banker_pending:
                    self._emit_decision(decision)
            if decision.banker_draws:
                self._deal_to(self.banker_hand)
        except ShoeExhausted as e:
            self._fail(e)
            raise
        self.decision = decision
        self.state = ArbiterState.COMPLETE
        return decision

    def finalize(self) -> RoundResult:
        """Score the finished hands."""
        self._require(ArbiterState.COMPLETE)
        result = build_result(
            self.round_id, self.banker_hand, self.player_hand, self.rules.big_predicate
        )
        logger.info(result.summary())
        return result

    def play(self, round_id: Optional[int] = None) -> RoundResult:
        """
        Play a complete round.

        The arbiter is reset first, so it can be called repeatedly.
        """
        self.reset()
        self.deal_initial(round_id)
        self.decide_draws()
        self.apply_draws()
        return self.finalize()
