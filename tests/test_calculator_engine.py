"""Scenario tests for the session state machine and its guardrails."""

import pytest

from calculator_engine import CalculatorEngine, Status
from guardrails import ErrorKind, GuardrailError
from repeat_tracker import Trend


def _type(engine, keys):
    for key in keys:
        engine.press(key)


@pytest.fixture
def engine():
    return CalculatorEngine()


class TestEvaluation:
    def test_simple_sum(self, engine):
        _type(engine, "2+3=")
        assert engine.result == "5"
        assert engine.error_text == ""
        assert engine.expression == ""
        assert engine.state.last_int_mode is True

    def test_repeat_applies_last_operator_and_operand(self, engine):
        _type(engine, "2+3=")
        engine.press("=")
        assert engine.result == "8"
        engine.press("=")
        assert engine.result == "11"

    def test_repeat_without_data_is_a_no_op(self, engine):
        _type(engine, "42=")
        engine.press("=")
        assert engine.result == "42"
        assert engine.error_kind is None

    def test_evaluate_with_nothing_pending_does_nothing(self, engine):
        engine.press("=")
        assert engine.result == ""
        assert engine.error_kind is None

    def test_invalid_expression_is_reported_without_halting(self, engine):
        _type(engine, "5+3=")
        engine.press("+")
        engine.press("=")
        assert engine.error_kind is ErrorKind.INVALID_EXPRESSION
        assert engine.error_text == "Invalid expression"
        assert engine.result == ""
        assert not engine.limit_reached
        engine.press("2")
        assert engine.expression == "8+2"
        assert engine.error_kind is None

    def test_invalid_repeat_is_reported(self, engine):
        _type(engine, "5+3=")
        engine.state.repeat.operand = "3.3.3"
        engine.press("=")
        assert engine.error_kind is ErrorKind.INVALID_REPEAT
        assert engine.result == "8"
        assert not engine.limit_reached

    def test_non_integer_result_uses_decimal_text(self, engine):
        _type(engine, "1÷4=")
        assert engine.result == "0.25"
        assert engine.state.last_int_mode is False


class TestInput:
    def test_new_operator_replaces_trailing_operator(self, engine):
        _type(engine, "7+×")
        assert engine.expression == "7×"

    def test_operator_after_result_continues_from_it(self, engine):
        _type(engine, "2+3=")
        engine.press("×")
        assert engine.expression == "5×"
        assert engine.result == ""
        _type(engine, "2=")
        assert engine.result == "10"

    def test_operator_with_nothing_to_extend_is_ignored(self, engine):
        engine.press("+")
        assert engine.expression == ""

    def test_digit_after_result_starts_fresh(self, engine):
        _type(engine, "10÷2=")
        assert engine.state.trend is Trend.EXPECT_DECREASING
        engine.press("4")
        assert engine.expression == "4"
        assert engine.result == ""
        assert engine.state.last_value is None
        assert engine.state.sequential_divisions == 0
        assert engine.state.trend is Trend.NONE
        assert not engine.state.repeat.has_data

    def test_second_dot_in_a_number_is_ignored(self, engine):
        _type(engine, "1.5.2+3.")
        engine.press(".")
        assert engine.expression == "1.52+3."

    def test_unknown_key_is_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.press("x")
        with pytest.raises(ValueError):
            engine.on_operator("^")


class TestGuardrails:
    def test_division_by_zero_overflows_and_halts(self, engine):
        _type(engine, "1÷0=")
        assert engine.error_kind is ErrorKind.OVERFLOW
        assert engine.limit_reached
        assert engine.severity == "error"
        _type(engine, "5+=")
        assert engine.expression == "1÷0"
        assert engine.error_kind is ErrorKind.OVERFLOW

    def test_clear_is_always_accepted(self, engine):
        _type(engine, "1÷0=")
        engine.press("C")
        assert not engine.limit_reached
        assert engine.state.status is Status.ACTIVE
        assert engine.error_text == ""
        _type(engine, "2+2=")
        assert engine.result == "4"

    def test_integer_ceiling(self, engine):
        _type(engine, "9007199254740992+1=")
        assert engine.error_kind is ErrorKind.PRECISION_LIMIT
        assert engine.limit_reached

    def test_largest_exact_integer_is_accepted(self, engine):
        _type(engine, "9007199254740991+1=")
        assert engine.error_kind is None
        assert engine.result == "9007199254740992"

    def test_integer_ceiling_on_repeat(self, engine):
        _type(engine, "9007199254740990+1=")
        engine.press("=")
        assert engine.result == "9007199254740992"
        engine.press("=")
        assert engine.error_kind is ErrorKind.PRECISION_LIMIT

    def test_monotonic_trend_reversal(self, engine):
        _type(engine, "10÷2=")
        assert engine.result == "5"
        engine.state.repeat.operand = "1"
        engine.press("=")
        assert engine.error_kind is ErrorKind.PRECISION_LIMIT
        assert engine.limit_reached

    def test_shrinking_repeat_keeps_going(self, engine):
        _type(engine, "10×0.5=")
        engine.press("=")
        engine.press("=")
        assert engine.result == "1.25"
        assert engine.error_kind is None

    def test_division_chain_hits_hard_cap(self, engine):
        _type(engine, "100000÷1.0000001=")
        repeats = 0
        while not engine.limit_reached and repeats < 1000:
            engine.press("=")
            repeats += 1
        assert engine.error_kind is ErrorKind.PRECISION_LIMIT
        assert repeats == CalculatorEngine.MAX_SEQUENTIAL_DIVISIONS
        assert engine.state.sequential_divisions == CalculatorEngine.MAX_SEQUENTIAL_DIVISIONS + 1

    def test_non_division_resets_the_chain(self, engine):
        _type(engine, "100÷2=")
        engine.press("=")
        assert engine.state.sequential_divisions == 2
        _type(engine, "+1=")
        assert engine.state.sequential_divisions == 0

    def test_tenfold_division_chain_underflows(self, engine):
        _type(engine, "1÷10=")
        for _ in range(600):
            if engine.limit_reached:
                break
            engine.press("=")
        assert engine.error_kind is ErrorKind.UNDERFLOW
        assert engine.severity == "warning"


class TestFinalize:
    def test_quiet_underflow_to_zero(self, engine):
        engine.state.last_value = 1e-300
        with pytest.raises(GuardrailError) as excinfo:
            engine.finalize(0.0, int_mode=False, op="×")
        assert excinfo.value.kind is ErrorKind.UNDERFLOW
        assert engine.limit_reached

    def test_zero_after_addition_is_fine(self, engine):
        engine.state.last_value = 5.0
        engine.finalize(0.0, int_mode=True, op="-")
        assert engine.result == "0"

    def test_float_limits_are_checked_first(self, engine):
        engine.state.last_value = 1.0
        engine.state.trend = Trend.EXPECT_DECREASING
        with pytest.raises(GuardrailError) as excinfo:
            engine.finalize(float("inf"), int_mode=False, op="÷")
        assert excinfo.value.kind is ErrorKind.OVERFLOW

    def test_subnormal_result_underflows(self, engine):
        with pytest.raises(GuardrailError) as excinfo:
            engine.finalize(1e-310, int_mode=False, op="÷")
        assert excinfo.value.kind is ErrorKind.UNDERFLOW

    def test_division_stall(self, engine):
        engine.state.last_value = 1e300
        with pytest.raises(GuardrailError) as excinfo:
            engine.finalize(1e300 * (1 - 1e-16), int_mode=False, op="÷")
        assert excinfo.value.kind is ErrorKind.PRECISION_LIMIT

    def test_integer_ceiling_uses_double_without_exact(self, engine):
        with pytest.raises(GuardrailError):
            engine.finalize(2.0 ** 54, int_mode=True, op="×")

    def test_success_updates_result_and_last_value(self, engine):
        engine.finalize(2.5, int_mode=False, op="÷")
        assert engine.result == "2.5"
        assert engine.state.last_value == 2.5
        assert engine.state.sequential_divisions == 1

    def test_reset_restores_initial_state(self, engine):
        _type(engine, "10÷2=")
        _type(engine, "1÷0")
        engine.on_clear()
        fresh = CalculatorEngine().state
        assert engine.state.expression == fresh.expression
        assert engine.state.result == fresh.result
        assert engine.state.last_value is None
        assert engine.state.trend is Trend.NONE
        assert engine.state.sequential_divisions == 0
        assert engine.state.status is Status.ACTIVE
        assert not engine.state.repeat.has_data
