#!/usr/bin/env python3
"""
Fixed-point arithmetic, configuration and execution primitives

Covers truncating integer math, the validated config schemas, environment
rollback with savepoints and the reentrancy guard.
"""

import json
import threading

import pytest
from pydantic import ValidationError

from reserve_treasury.config import SCALE, DEFAULT_BACKING_RATIO, TreasuryConfig
from reserve_treasury.core.assets import InMemoryAsset, InMemoryManagedToken
from reserve_treasury.core.environment import ExecutionEnvironment
from reserve_treasury.core.exceptions import (
    DivideByZero, InsufficientBacking, InvalidAmount, ReentrantCall, TreasuryError
)
from reserve_treasury.core.fixed_point import FixedPoint, div_trunc, mul_div, ratio_or_none, require_amount
from reserve_treasury.core.guard import ReentrancyGuard
from reserve_treasury.core.treasury import Treasury
from reserve_treasury.simulation.config import AssetSpec, SimulationConfig


class TestFixedPoint:
    """Truncating integer arithmetic"""

    def test_div_trunc_truncates_toward_zero(self):
        assert div_trunc(7, 2) == 3
        assert div_trunc(-7, 2) == -3
        assert div_trunc(7, -2) == -3
        assert div_trunc(-7, -2) == 3

    def test_div_trunc_rejects_zero_denominator(self):
        with pytest.raises(DivideByZero):
            div_trunc(1, 0)

    def test_mul_div_is_exact_for_large_values(self):
        a = 2 ** 200 + 1
        assert mul_div(a, SCALE, SCALE) == a
        assert mul_div(10 ** 18, 10 ** 18, DEFAULT_BACKING_RATIO) == 10 ** 24

    def test_from_ratio_truncates(self):
        share = FixedPoint.from_ratio(1, 3)
        assert share.raw == 333333333333333333
        assert share.apply(9 * 10 ** 18) == 2999999999999999997

    def test_one_and_string_form(self):
        assert FixedPoint.one().apply(12345) == 12345
        assert str(FixedPoint.from_ratio(3, 2)) == "1.500000000000000000"
        assert str(FixedPoint(-5 * 10 ** 17)) == "-0.500000000000000000"

    def test_ratio_or_none(self):
        assert ratio_or_none(5, 0) is None
        assert ratio_or_none(1, 4).to_float() == 0.25

    def test_require_amount(self):
        assert require_amount(0) == 0
        assert require_amount(10 ** 30) == 10 ** 30
        for bad in (-1, 1.5, "10", True, None):
            with pytest.raises(InvalidAmount):
                require_amount(bad)

    def test_error_string_includes_details(self):
        error = TreasuryError("boom", {"amount": 3})
        assert str(error) == "boom (amount=3)"
        assert str(TreasuryError("plain")) == "plain"


class TestConfiguration:
    """Pydantic configuration schemas"""

    def test_treasury_config_defaults(self):
        config = TreasuryConfig()
        assert config.scale == SCALE
        assert config.backing_ratio == DEFAULT_BACKING_RATIO
        assert config.treasury_address == "treasury"

    def test_scale_must_be_power_of_ten(self):
        assert TreasuryConfig(scale=10 ** 6).scale == 10 ** 6
        with pytest.raises(ValidationError):
            TreasuryConfig(scale=12)

    def test_backing_ratio_must_be_positive(self):
        with pytest.raises(ValidationError):
            TreasuryConfig(backing_ratio=0)

    def test_treasury_config_is_frozen(self):
        config = TreasuryConfig()
        with pytest.raises(ValidationError):
            config.backing_ratio = 1

    def test_simulation_config_rejects_duplicate_symbols(self):
        with pytest.raises(ValidationError):
            SimulationConfig(basket=[AssetSpec(symbol="RSV")])

    def test_simulation_config_rejects_bad_percent_and_fractions(self):
        with pytest.raises(ValidationError):
            SimulationConfig(payout_percent=100)
        with pytest.raises(ValidationError):
            SimulationConfig(redemption_fractions=[0.0])
        with pytest.raises(ValidationError):
            SimulationConfig(redemption_fractions=[1.5])

    def test_simulation_config_from_json_file(self, tmp_path):
        path = tmp_path / "world.json"
        path.write_text(json.dumps({
            "name": "small",
            "payout_percent": 25,
            "basket": [{"symbol": "DAI", "decimals": 18, "treasury_balance": 1000}],
        }))

        config = SimulationConfig.from_json_file(path)

        assert config.name == "small"
        assert config.payout_percent == 25
        assert [a.symbol for a in config.basket] == ["DAI"]
        assert config.reserve.symbol == "RSV"


class TestExecutionEnvironment:
    """All-or-nothing transactions with savepoints"""

    def setup_method(self):
        self.environment = ExecutionEnvironment()
        self.asset = InMemoryAsset("AAA")
        self.asset.issue("alice", 100)
        self.environment.register(self.asset)

    def test_failed_transaction_rolls_back(self):
        with pytest.raises(RuntimeError):
            with self.environment.transaction():
                self.asset.transfer("alice", "bob", 40)
                raise RuntimeError("abort")

        assert self.asset.balance_of("alice") == 100
        assert self.asset.balance_of("bob") == 0
        assert self.environment.depth == 0

    def test_successful_transaction_commits(self):
        with self.environment.transaction():
            self.asset.transfer("alice", "bob", 40)

        assert self.asset.balance_of("bob") == 40

    def test_inner_failure_only_undoes_inner_effects(self):
        with self.environment.transaction():
            self.asset.transfer("alice", "bob", 10)
            try:
                with self.environment.transaction():
                    assert self.environment.depth == 2
                    self.asset.transfer("alice", "carol", 20)
                    raise RuntimeError("inner")
            except RuntimeError:
                pass

        assert self.asset.balance_of("bob") == 10
        assert self.asset.balance_of("carol") == 0
        assert self.asset.balance_of("alice") == 90

    def test_register_is_idempotent(self):
        self.environment.register(self.asset)
        assert len(self.environment.participants) == 1

    def test_extra_participant_rolls_back_for_one_transaction(self):
        other = InMemoryAsset("BBB")
        other.issue("alice", 50)

        with pytest.raises(RuntimeError):
            with self.environment.transaction(other):
                other.transfer("alice", "bob", 20)
                raise RuntimeError("abort")

        assert other.balance_of("alice") == 50
        assert self.environment.participants == [self.asset]

    def test_scope_is_read_when_each_transaction_opens(self):
        tracked = []
        other = InMemoryAsset("BBB")
        other.issue("alice", 50)
        self.environment.add_scope(lambda: tracked)
        tracked.append(other)

        with pytest.raises(RuntimeError):
            with self.environment.transaction():
                other.transfer("alice", "bob", 20)
                raise RuntimeError("abort")

        assert other.balance_of("alice") == 50
        tracked.clear()
        assert self.environment.participants == [self.asset]

    def test_concurrent_mints_never_exceed_the_ceiling(self):
        reserve = InMemoryAsset("RSV")
        token = InMemoryManagedToken("RUSD", reserve=reserve)
        treasury = Treasury(token, owner="owner", environment=self.environment)
        token.grant_minter(treasury.address)
        reserve.issue(treasury.address, 10 ** 18)
        treasury.add_approved_minter("owner", "minter")

        ceiling = treasury.excess_reserves()
        chunk = ceiling // 100
        errors = []

        def mint_repeatedly(holder):
            for _ in range(50):
                try:
                    treasury.mint("minter", holder, chunk)
                except TreasuryError as error:
                    errors.append(error)

        threads = [threading.Thread(target=mint_repeatedly, args=(f"holder_{i}",)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert token.total_supply() == ceiling
        assert treasury.excess_reserves() == 0
        assert len(errors) == 100
        assert all(isinstance(error, InsufficientBacking) for error in errors)
        assert self.environment.depth == 0


class TestReentrancyGuard:
    """Single in-flight call per guard"""

    def test_nested_entry_is_rejected(self):
        guard = ReentrancyGuard("treasury")
        with guard.enter("mint"):
            assert guard.in_flight == "mint"
            with pytest.raises(ReentrantCall):
                with guard.enter("burn_and_redeem"):
                    pass
            assert guard.in_flight == "mint"
        assert guard.in_flight is None

    def test_guard_released_after_failure(self):
        guard = ReentrancyGuard()
        with pytest.raises(ValueError):
            with guard.enter("mint"):
                raise ValueError("fail")

        assert guard.in_flight is None
        with guard.enter("mint"):
            pass
