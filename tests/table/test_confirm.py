"""Tests for confirming stakes with the wallet."""

import asyncio

import pytest

from punto.baccarat.bets import BetType
from punto.table import Phase, TableConfig, TableSession, TableStateError
from punto.table.wallet import (
    AlreadyConfirmingError,
    BackendRejectedError,
    ConfirmationReceipt,
    ConfirmErrorKind,
    ConfirmTimeoutError,
    InMemoryWallet,
    NothingToConfirmError,
    WalletService,
)
from punto.events import EventEmitter

BANKER_WINS = ["3D", "4H", "4C", "5S"]


class BrokenWallet(WalletService):
    async def confirm_bets(self, table_id, round_id, bets):
        raise RuntimeError("connection reset")


class SilentWallet(WalletService):
    """A wallet whose receipts carry no balance."""

    async def confirm_bets(self, table_id, round_id, bets):
        return ConfirmationReceipt("ref-1", round_id, sum(bets.values()), bets=dict(bets))


@pytest.fixture
def emitter():
    return EventEmitter()


@pytest.fixture
def events(emitter):
    seen = []
    emitter.on_any(seen.append)
    return seen


def betting_session(clock, shoe, emitter=None, wallet=None, balance=1000, **config):
    session = TableSession(
        TableConfig(**config),
        balance=balance,
        wallet=wallet if wallet is not None else InMemoryWallet(balance),
        shoe=shoe,
        emitter=emitter,
        clock=clock,
    )
    clock.advance(session.config.durations.waiting)
    session.advance_phase()
    return session


def next_round(session, clock):
    clock.advance(session.config.durations.result)
    session.advance_phase()
    clock.advance(session.config.durations.waiting)
    session.advance_phase()


def deal(session, clock, stacked, cards):
    clock.advance(session.config.durations.betting)
    session.advance_phase()
    stacked(session.shoe, cards)
    return session.deal_round()


class TestConfirm:
    @pytest.mark.asyncio
    async def test_success(self, clock, seeded_shoe, emitter, events):
        session = betting_session(clock, seeded_shoe, emitter)
        session.place_bet(BetType.BANKER, 100)

        receipt = await session.confirm_bets()
        assert receipt.amount == 100
        assert receipt.round_id == 1
        assert receipt.bets == {BetType.BANKER: 100}
        assert session.balance == 900
        assert session.available_balance == 900
        assert session.ledger.entry(BetType.BANKER).confirmed == 100
        assert not session.is_confirming

        name, data = events[-1]
        assert name == "BETS_CONFIRMED"
        assert data["receipt"] is receipt

    @pytest.mark.asyncio
    async def test_receipt_without_balance(self, clock, seeded_shoe):
        session = betting_session(clock, seeded_shoe, wallet=SilentWallet())
        session.place_bet(BetType.PLAYER, 40)
        await session.confirm_bets()
        assert session.balance == 960

    @pytest.mark.asyncio
    async def test_nothing_to_confirm(self, clock, seeded_shoe):
        session = betting_session(clock, seeded_shoe)
        with pytest.raises(NothingToConfirmError):
            await session.confirm_bets()

    @pytest.mark.asyncio
    async def test_only_new_stakes_are_sent(self, clock, seeded_shoe):
        wallet = InMemoryWallet(1000)
        session = betting_session(clock, seeded_shoe, wallet=wallet)
        session.place_bet(BetType.BANKER, 100)
        await session.confirm_bets()
        clock.advance(1)
        session.place_bet(BetType.BANKER, 50)
        receipt = await session.confirm_bets()
        assert receipt.bets == {BetType.BANKER: 50}
        assert session.ledger.entry(BetType.BANKER).confirmed == 150
        assert wallet.balance == 850

    @pytest.mark.asyncio
    async def test_outside_betting(self, clock, seeded_shoe):
        session = TableSession(TableConfig(), balance=100, shoe=seeded_shoe, clock=clock)
        with pytest.raises(TableStateError):
            await session.confirm_bets()


class TestConfirmFailures:
    @pytest.mark.asyncio
    async def test_backend_rejected(self, clock, seeded_shoe, emitter, events):
        wallet = InMemoryWallet(1000)
        wallet.reject_next = True
        session = betting_session(clock, seeded_shoe, emitter, wallet=wallet)
        session.place_bet(BetType.BANKER, 100)

        with pytest.raises(BackendRejectedError):
            await session.confirm_bets()
        assert session.ledger.is_empty()
        assert session.balance == 1000
        assert not session.is_confirming

        name, data = events[-1]
        assert name == "CONFIRM_FAILED"
        assert data["reason"] is ConfirmErrorKind.BACKEND_REJECTED
        assert data["rolled_back"] == 100

    @pytest.mark.asyncio
    async def test_wallet_without_funds(self, clock, seeded_shoe):
        session = betting_session(clock, seeded_shoe, wallet=InMemoryWallet(50), balance=1000)
        session.place_bet(BetType.PLAYER, 100)
        with pytest.raises(BackendRejectedError):
            await session.confirm_bets()
        assert session.ledger.pending_total == 0

    @pytest.mark.asyncio
    async def test_unexpected_wallet_error(self, clock, seeded_shoe):
        session = betting_session(clock, seeded_shoe, wallet=BrokenWallet())
        session.place_bet(BetType.BANKER, 100)
        with pytest.raises(BackendRejectedError) as excinfo:
            await session.confirm_bets()
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert session.ledger.is_empty()

    @pytest.mark.asyncio
    async def test_timeout_rolls_back(self, clock, seeded_shoe, emitter, events):
        wallet = InMemoryWallet(1000, latency=0.5)
        session = betting_session(clock, seeded_shoe, emitter, wallet=wallet, confirm_timeout=0.05)
        session.place_bet(BetType.TIE, 10)

        with pytest.raises(ConfirmTimeoutError):
            await session.confirm_bets()
        assert session.ledger.is_empty()
        assert not session.is_confirming
        assert wallet.balance == 1000
        assert events[-1][1]["reason"] is ConfirmErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_confirm_while_confirming(self, clock, seeded_shoe):
        wallet = InMemoryWallet(1000, latency=0.05)
        session = betting_session(clock, seeded_shoe, wallet=wallet)
        session.place_bet(BetType.BANKER, 100)

        task = asyncio.ensure_future(session.confirm_bets())
        await asyncio.sleep(0)
        assert session.is_confirming

        with pytest.raises(AlreadyConfirmingError):
            await session.confirm_bets()
        with pytest.raises(AlreadyConfirmingError):
            session.cancel_bet()
        # Bets placed meanwhile stay pending
        session.place_bet(BetType.PLAYER, 20)

        await task
        assert wallet.calls == 1
        assert session.ledger.entry(BetType.BANKER).confirmed == 100
        assert session.ledger.pending() == {BetType.PLAYER: 20}
        assert not session.is_confirming

    @pytest.mark.asyncio
    async def test_failure_keeps_stakes_placed_meanwhile(self, clock, seeded_shoe):
        wallet = InMemoryWallet(1000, latency=0.05)
        wallet.reject_next = True
        session = betting_session(clock, seeded_shoe, wallet=wallet)
        session.place_bet(BetType.BANKER, 100)

        task = asyncio.ensure_future(session.confirm_bets())
        await asyncio.sleep(0)
        session.place_bet(BetType.BANKER_PAIR, 5)
        with pytest.raises(BackendRejectedError):
            await task
        assert session.ledger.snapshot() == {BetType.BANKER_PAIR: 5}


class TestSettlement:
    @pytest.mark.asyncio
    async def test_confirmed_and_pending_stakes(self, clock, seeded_shoe, stacked):
        session = betting_session(clock, seeded_shoe)
        session.place_bet(BetType.BANKER, 100)
        await session.confirm_bets()
        session.place_bet(BetType.PLAYER, 50)

        deal(session, clock, stacked, BANKER_WINS)
        # Banker returns 190.25 on a stake already debited; Player stake is lost
        assert session.balance == pytest.approx(1040.25)
        assert session.wallet.balance == pytest.approx(1040.25)

    @pytest.mark.asyncio
    async def test_winnings_carry_into_next_round(self, clock, seeded_shoe, stacked):
        session = betting_session(clock, seeded_shoe)
        session.place_bet(BetType.BANKER, 100)
        await session.confirm_bets()
        deal(session, clock, stacked, BANKER_WINS)
        assert session.balance == pytest.approx(1090.25)
        assert session.wallet.balance == pytest.approx(1090.25)

        next_round(session, clock)
        session.place_bet(BetType.PLAYER, 100)
        await session.confirm_bets()
        assert session.round_id == 2
        assert session.balance == pytest.approx(990.25)
        assert session.wallet.balance == pytest.approx(990.25)

    @pytest.mark.asyncio
    async def test_wallet_without_settlement_keeps_table_balance(self, clock, seeded_shoe, stacked):
        session = betting_session(clock, seeded_shoe, wallet=SilentWallet())
        session.place_bet(BetType.BANKER, 100)
        await session.confirm_bets()
        deal(session, clock, stacked, BANKER_WINS)
        next_round(session, clock)
        session.place_bet(BetType.BANKER, 100)
        await session.confirm_bets()
        assert session.balance == pytest.approx(990.25)

    @pytest.mark.asyncio
    async def test_require_confirmation_voids_pending(self, clock, seeded_shoe, stacked):
        session = betting_session(clock, seeded_shoe, require_confirmation=True)
        session.place_bet(BetType.BANKER, 100)
        await session.confirm_bets()
        session.place_bet(BetType.PLAYER, 50)

        result = deal(session, clock, stacked, BANKER_WINS)
        assert [p.bet_type for p in result.payouts] == [BetType.BANKER]
        assert session.balance == pytest.approx(1090.25)

    @pytest.mark.asyncio
    async def test_reset_refunds_confirmed_stakes(self, clock, seeded_shoe):
        session = betting_session(clock, seeded_shoe)
        session.place_bet(BetType.BANKER, 100)
        await session.confirm_bets()
        assert session.balance == 900

        session.reset()
        assert session.balance == 1000
        assert session.wallet.balance == 1000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("leave_result", [False, True])
    async def test_no_refund_after_result(self, clock, seeded_shoe, stacked, leave_result):
        session = betting_session(clock, seeded_shoe)
        session.place_bet(BetType.PLAYER, 100)
        await session.confirm_bets()
        deal(session, clock, stacked, BANKER_WINS)
        assert session.balance == 900
        if leave_result:
            clock.advance(session.config.durations.result)
            assert session.advance_phase()
            assert session.phase is Phase.WAITING
            assert session.ledger.is_empty()
        session.reset()
        assert session.balance == 900
        assert session.wallet.balance == 900
