# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Reply arithmetic.

Results follow IEEE-754 double semantics: overflow gives an infinity and
domain errors give NaN instead of raising. Only division by zero and
unknown operators are refused.
"""

import math
from enum import StrEnum

from ..core.exceptions import CalculationError


class Operation(StrEnum):
    """Operators a reply may apply to its parent's value."""

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    POWER = "^"


def _is_odd_integer(value: float) -> bool:
    return math.isfinite(value) and float(value).is_integer() and int(value) % 2 == 1


def power(base: float, exponent: float) -> float:
    """``base ** exponent`` without math range/domain exceptions."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and _is_odd_integer(exponent):
            return -math.inf
        return math.inf
    except ValueError:
        if base == 0:
            # zero raised to a negative power; -0.0 keeps its sign for odd exponents
            if _is_odd_integer(exponent):
                return math.copysign(math.inf, base)
            return math.inf
        return math.nan


def calculate(parent_value: float, operation: str, operand: float) -> float:
    """
    Apply ``operation`` to ``parent_value`` and ``operand``.

    Raises:
        CalculationError: division by zero or an unsupported operator
    """
    match operation:
        case Operation.ADD:
            return parent_value + operand
        case Operation.SUBTRACT:
            return parent_value - operand
        case Operation.MULTIPLY:
            return parent_value * operand
        case Operation.DIVIDE:
            if operand == 0:
                raise CalculationError("Division by zero is not allowed")
            return parent_value / operand
        case Operation.POWER:
            return power(parent_value, operand)
    raise CalculationError(f"Unsupported operation: {operation}")


__all__ = ["Operation", "calculate", "power"]
