"""Tests for bet types and the per-round bet ledger."""

import pytest

from punto.baccarat.bets import (
    BetErrorKind,
    BetLedger,
    BetLimit,
    BetType,
    BettingClosedError,
    InsufficientBalanceError,
    ValidatedBet,
    default_bet_limits,
)


class TestBetType:
    def test_groups(self):
        assert {t for t in BetType if t.is_main} == {BetType.BANKER, BetType.PLAYER, BetType.TIE}
        assert {t for t in BetType if t.is_pair} == {BetType.BANKER_PAIR, BetType.PLAYER_PAIR}
        assert {t for t in BetType if t.is_big_small} == {BetType.BIG, BetType.SMALL}

    def test_labels(self):
        assert str(BetType.BANKER_PAIR) == "Banker Pair"
        assert [t.value for t in BetType] == list(range(1, 8))

    def test_every_type_has_a_limit(self):
        limits = default_bet_limits()
        assert set(limits) == set(BetType)
        assert limits[BetType.BANKER] == BetLimit(10, 50000)
        assert limits[BetType.PLAYER_PAIR].contains(5)
        assert not limits[BetType.TIE].contains(10001)

    def test_error_carries_reason(self):
        error = InsufficientBalanceError("no funds", BetType.PLAYER, 50)
        assert error.reason is BetErrorKind.INSUFFICIENT_BALANCE
        assert error.bet_type is BetType.PLAYER
        assert error.amount == 50


class TestBetLedger:
    def test_add_accumulates(self):
        ledger = BetLedger()
        assert ledger.add(BetType.BANKER, 100) == 100
        assert ledger.add(BetType.BANKER, 50) == 150
        assert ledger.apply(ValidatedBet(BetType.TIE, 10, 10)) == 10
        assert ledger.total == 160
        assert ledger.bet_types() == [BetType.BANKER, BetType.TIE]
        assert BetType.TIE in ledger
        assert len(ledger) == 2

    def test_cancel_one_type(self):
        ledger = BetLedger()
        ledger.add(BetType.BANKER, 100)
        ledger.add(BetType.PLAYER, 20)
        assert ledger.cancel(BetType.BANKER) == 100
        assert ledger.snapshot() == {BetType.PLAYER: 20}

    def test_cancel_all_keeps_confirmed(self):
        ledger = BetLedger()
        ledger.add(BetType.BANKER, 100)
        ledger.confirm()
        ledger.add(BetType.BANKER, 30)
        ledger.add(BetType.TIE, 10)
        assert ledger.cancel() == 40
        assert ledger.snapshot() == {BetType.BANKER: 100}
        assert ledger.entry(BetType.BANKER).confirmed == 100

    def test_cancel_missing_type(self):
        assert BetLedger().cancel(BetType.SMALL) == 0

    def test_frozen_ledger_refuses_changes(self):
        ledger = BetLedger()
        ledger.add(BetType.BANKER, 100)
        ledger.freeze()
        with pytest.raises(BettingClosedError):
            ledger.add(BetType.BANKER, 10)
        with pytest.raises(BettingClosedError):
            ledger.cancel()
        assert ledger.total == 100

    def test_confirm_everything(self):
        ledger = BetLedger()
        ledger.add(BetType.BANKER, 100)
        ledger.add(BetType.PLAYER_PAIR, 5)
        assert ledger.confirm() == 105
        assert ledger.confirmed_total == 105
        assert ledger.pending_total == 0
        assert not ledger.has_pending

    def test_confirm_only_given_amounts(self):
        ledger = BetLedger()
        ledger.add(BetType.BANKER, 100)
        sent = ledger.pending()
        ledger.add(BetType.BANKER, 25)
        assert ledger.confirm(sent) == 100
        entry = ledger.entry(BetType.BANKER)
        assert entry.confirmed == 100
        assert entry.pending == 25

    def test_rollback_only_given_amounts(self):
        ledger = BetLedger()
        ledger.add(BetType.PLAYER, 100)
        sent = ledger.pending()
        ledger.add(BetType.PLAYER, 25)
        ledger.add(BetType.TIE, 10)
        assert ledger.rollback(sent) == 100
        assert ledger.pending() == {BetType.PLAYER: 25, BetType.TIE: 10}

    def test_rollback_works_when_frozen(self):
        ledger = BetLedger()
        ledger.add(BetType.PLAYER, 100)
        ledger.freeze()
        assert ledger.rollback() == 100
        assert ledger.is_empty()

    def test_rollback_never_drops_confirmed(self):
        ledger = BetLedger()
        ledger.add(BetType.PLAYER, 100)
        ledger.confirm()
        assert ledger.rollback({BetType.PLAYER: 100}) == 0
        assert ledger.amount(BetType.PLAYER) == 100

    def test_clear_unfreezes(self):
        ledger = BetLedger()
        ledger.add(BetType.BIG, 10)
        ledger.freeze()
        ledger.clear()
        assert ledger.is_empty()
        assert not ledger.frozen
        assert ledger.amount(BetType.BIG) == 0
