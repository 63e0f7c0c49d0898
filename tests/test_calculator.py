# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tests for reply arithmetic.

Tests: the five operators, division by zero, unsupported operators,
       IEEE results for overflow and domain errors.
"""

import math

import pytest

from numberchain.core.exceptions import CalculationError, DomainError
from numberchain.discussion.calculator import Operation, calculate, power


class TestCalculate:

    @pytest.mark.parametrize(
        "parent, operation, operand, expected",
        [
            (6, "+", 10, 16),
            (6, "-", 10, -4),
            (6, "*", 2.5, 15),
            (6, "/", 4, 1.5),
            (2, "^", 10, 1024),
            (9, "^", 0.5, 3),
        ],
    )
    def test_operators(self, parent, operation, operand, expected):
        assert calculate(parent, operation, operand) == pytest.approx(expected)

    def test_accepts_operation_enum(self):
        assert calculate(6, Operation.ADD, 10) == 16

    def test_division_by_zero(self):
        with pytest.raises(CalculationError) as exc_info:
            calculate(6, "/", 0)
        assert exc_info.value.message == "Division by zero is not allowed"
        assert exc_info.value.status_code == 400

    def test_division_by_negative_zero(self):
        with pytest.raises(CalculationError):
            calculate(6, "/", -0.0)

    def test_zero_divided_is_fine(self):
        assert calculate(0, "/", 5) == 0

    def test_unsupported_operation(self):
        with pytest.raises(CalculationError) as exc_info:
            calculate(6, "%", 2)
        assert exc_info.value.message == "Unsupported operation: %"

    def test_calculation_error_is_domain_error(self):
        with pytest.raises(DomainError):
            calculate(1, "/", 0)


class TestPower:

    def test_overflow_is_infinity(self):
        assert power(10, 400) == math.inf

    def test_negative_base_odd_overflow(self):
        assert power(-10, 401) == -math.inf

    def test_negative_base_even_overflow(self):
        assert power(-10, 400) == math.inf

    def test_negative_base_fractional_exponent_is_nan(self):
        assert math.isnan(power(-8, 0.5))

    def test_zero_to_negative_power(self):
        assert power(0, -1) == math.inf
        assert power(0, -2) == math.inf

    def test_negative_zero_to_negative_odd_power(self):
        assert power(-0.0, -1) == -math.inf

    def test_nan_propagates(self):
        assert math.isnan(calculate(math.nan, "+", 1))

    def test_infinity_arithmetic(self):
        assert calculate(math.inf, "-", 1) == math.inf
        assert math.isnan(calculate(math.inf, "*", 0))
