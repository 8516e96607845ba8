"""Tests for the aggregate base, @handles and @applies."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from order_engine.aggregate import Aggregate, applies, handles
from order_engine.errors import StateConflictError


@dataclass(frozen=True)
class Deposit:
    amount: int


@dataclass(frozen=True)
class Withdraw:
    amount: int


@dataclass(frozen=True)
class Deposited:
    amount: int


@dataclass(frozen=True)
class Withdrawn:
    amount: int


@dataclass
class WalletState:
    balance: int = 0
    entries: list[int] = field(default_factory=list)


class Wallet(Aggregate[WalletState]):
    domain = "wallet"

    def _create_empty_state(self) -> WalletState:
        return WalletState()

    @applies(Deposited)
    def apply_deposited(self, state: WalletState, event: Deposited) -> None:
        state.balance += event.amount
        state.entries.append(event.amount)

    @applies(Withdrawn)
    def apply_withdrawn(self, state: WalletState, event: Withdrawn) -> None:
        state.balance -= event.amount
        state.entries.append(-event.amount)

    @handles(Deposit)
    def deposit(self, cmd: Deposit):
        if cmd.amount == 0:
            return None
        # Large deposits arrive as two events.
        if cmd.amount > 100:
            return Deposited(100), Deposited(cmd.amount - 100)
        return Deposited(cmd.amount)

    @handles(Withdraw)
    def withdraw(self, cmd: Withdraw) -> Withdrawn:
        if cmd.amount > self._state.balance:
            raise StateConflictError("insufficient funds")
        return Withdrawn(cmd.amount)


class TestHandles:
    """Tests for command handling and event recording."""

    def test_single_event_applied_and_recorded(self) -> None:
        wallet = Wallet()
        result = wallet.deposit(Deposit(10))
        assert result == Deposited(10)
        assert wallet.state.balance == 10
        assert wallet.pending_events() == [Deposited(10)]

    def test_tuple_of_events(self) -> None:
        wallet = Wallet()
        wallet.deposit(Deposit(150))
        assert wallet.state.balance == 150
        assert wallet.pending_events() == [Deposited(100), Deposited(50)]

    def test_none_records_nothing(self) -> None:
        wallet = Wallet()
        wallet.deposit(Deposit(0))
        assert wallet.pending_events() == []

    def test_rejected_command_leaves_state(self) -> None:
        wallet = Wallet()
        wallet.deposit(Deposit(10))
        with pytest.raises(StateConflictError):
            wallet.withdraw(Withdraw(20))
        assert wallet.state.balance == 10
        assert wallet.state.entries == [10]
        assert wallet.pending_events() == [Deposited(10)]

    def test_wrong_command_type(self) -> None:
        with pytest.raises(TypeError, match="expects Deposit"):
            Wallet().deposit(Withdraw(1))


class TestDispatch:
    def test_routes_by_type(self) -> None:
        wallet = Wallet()
        wallet.dispatch(Deposit(5))
        wallet.dispatch(Withdraw(2))
        assert wallet.state.balance == 3

    def test_unknown_command(self) -> None:
        with pytest.raises(ValueError, match="Unknown command type"):
            Wallet().dispatch(object())


class TestHistory:
    def test_rebuild_from_history(self) -> None:
        wallet = Wallet(history=[Deposited(30), Withdrawn(10)])
        assert wallet.state.balance == 20
        assert wallet.pending_events() == []
        assert wallet.events() == [Deposited(30), Withdrawn(10)]

    def test_unknown_events_ignored(self) -> None:
        wallet = Wallet(history=[Deposited(5), "not an event"])
        assert wallet.state.balance == 5

    def test_take_events_drains(self) -> None:
        wallet = Wallet()
        wallet.deposit(Deposit(5))
        assert wallet.take_events() == [Deposited(5)]
        assert wallet.pending_events() == []
        assert wallet.events() == [Deposited(5)]


class TestSpeculate:
    def test_returns_events_without_mutating(self) -> None:
        wallet = Wallet(history=[Deposited(50)])
        events = wallet.speculate(Withdraw(20))
        assert events == [Withdrawn(20)]
        assert wallet.state.balance == 50
        assert wallet.pending_events() == []

    def test_raises_like_handler(self) -> None:
        wallet = Wallet()
        with pytest.raises(StateConflictError):
            wallet.speculate(Withdraw(1))


class TestRegistration:
    def test_missing_domain(self) -> None:
        with pytest.raises(TypeError, match="must define 'domain'"):

            class NoDomain(Aggregate[WalletState]):
                def _create_empty_state(self) -> WalletState:
                    return WalletState()

    def test_mismatched_type_hint(self) -> None:
        with pytest.raises(TypeError, match="doesn't match type hint"):

            @handles(Deposit)
            def handler(self, cmd: Withdraw):
                return None

    def test_missing_type_hint(self) -> None:
        with pytest.raises(TypeError, match="missing type hint"):

            @handles(Deposit)
            def handler(self, cmd):
                return None

    def test_duplicate_handlers(self) -> None:
        with pytest.raises(TypeError, match="duplicate registration"):

            class Twice(Aggregate[WalletState]):
                domain = "twice"

                def _create_empty_state(self) -> WalletState:
                    return WalletState()

                @handles(Deposit)
                def one(self, cmd: Deposit):
                    return None

                @handles(Deposit)
                def two(self, cmd: Deposit):
                    return None
