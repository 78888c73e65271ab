"""Tests for the stateless float-limit classification."""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from guardrails import (
    MAX_MAGNITUDE,
    MIN_NORMAL_MAGNITUDE,
    ErrorKind,
    GuardrailError,
    check_float_limits,
)


def _kind(value):
    try:
        check_float_limits(value)
    except GuardrailError as exc:
        return exc.kind
    return None


def test_min_normal_is_reciprocal_of_max():
    assert MIN_NORMAL_MAGNITUDE == 1 / MAX_MAGNITUDE
    assert 5.5e-309 < MIN_NORMAL_MAGNITUDE < 5.6e-309


@given(st.floats(min_value=MIN_NORMAL_MAGNITUDE, max_value=MAX_MAGNITUDE))
def test_values_inside_the_range_are_accepted(value):
    assert _kind(value) is None
    assert _kind(-value) is None


@given(st.floats(min_value=0.0, max_value=MIN_NORMAL_MAGNITUDE, exclude_min=True, exclude_max=True))
def test_tiny_non_zero_values_underflow(value):
    assert _kind(value) is ErrorKind.UNDERFLOW
    assert _kind(-value) is ErrorKind.UNDERFLOW


@pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
def test_non_finite_values_overflow(value):
    assert _kind(value) is ErrorKind.OVERFLOW


def test_zero_is_accepted():
    assert _kind(0.0) is None
    assert _kind(-0.0) is None


def test_error_kind_classification():
    assert ErrorKind.UNDERFLOW.severity == "warning"
    assert ErrorKind.OVERFLOW.severity == "error"
    assert ErrorKind.INVALID_EXPRESSION.severity == "error"
    assert ErrorKind.PRECISION_LIMIT.halts_session
    assert not ErrorKind.INVALID_REPEAT.halts_session


def test_guardrail_error_message_defaults_to_kind():
    assert str(GuardrailError(ErrorKind.OVERFLOW)) == "Overflow"
