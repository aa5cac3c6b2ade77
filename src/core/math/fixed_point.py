"""
Fixed-Point Math: безопасные целочисленные примитивы

Модуль обеспечивает детерминированную fixed-point арифметику:
- Умножение с делением (mul_div) с округлением к нулю
- Защита от деления на ноль (DivideByZero, не fallback)
- Проверка переполнения промежуточных значений (u128) и результатов (u64)
- Применение basis points и нормализация между числами знаков

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Все операции целочисленные, float не используется
2. Деление всегда округляет к нулю (для неотрицательных = floor)
3. Деление на ноль никогда не маскируется
4. Все операции детерминированы и воспроизводимы
"""

from src.core.domain.units import (
    BPS_DENOMINATOR,
    U128_MAX,
    U64_MAX,
    validate_bps,
    validate_decimals,
)
from src.core.errors import ErrorCode, FixedPointArithmeticError


# =============================================================================
# БАЗОВЫЕ ОПЕРАЦИИ
# =============================================================================


def checked_mul(a: int, b: int, bound: int = U128_MAX) -> int:
    """
    Умножение с проверкой переполнения.

    Raises:
        FixedPointArithmeticError: если |a * b| > bound
    """
    result = a * b
    if abs(result) > bound:
        raise FixedPointArithmeticError(
            ErrorCode.OVERFLOW, f"{a} * {b} exceeds bound {bound}"
        )
    return result


def checked_add(a: int, b: int, bound: int = U64_MAX) -> int:
    """Сложение неотрицательных сумм с проверкой u64."""
    result = a + b
    if result > bound:
        raise FixedPointArithmeticError(ErrorCode.OVERFLOW, f"{a} + {b} exceeds bound {bound}")
    return result


def checked_sub(a: int, b: int) -> int:
    """Вычитание с запретом ухода в минус (underflow)."""
    if b > a:
        raise FixedPointArithmeticError(ErrorCode.OVERFLOW, f"{a} - {b} underflows")
    return a - b


def div_toward_zero(numerator: int, denominator: int) -> int:
    """
    Целочисленное деление с округлением к нулю.

    Python `//` округляет к -inf, поэтому знак обрабатывается явно.

    Raises:
        FixedPointArithmeticError: DivideByZero если denominator == 0

    Examples:
        >>> div_toward_zero(7, 2)
        3
        >>> div_toward_zero(-7, 2)
        -3
    """
    if denominator == 0:
        raise FixedPointArithmeticError(
            ErrorCode.DIVIDE_BY_ZERO, f"division of {numerator} by zero"
        )
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Вычисление (a * b) / denominator с округлением к нулю.

    Промежуточное произведение ограничено u128.

    Raises:
        FixedPointArithmeticError: DivideByZero или Overflow
    """
    if denominator == 0:
        raise FixedPointArithmeticError(
            ErrorCode.DIVIDE_BY_ZERO, f"mul_div({a}, {b}, 0)"
        )
    return div_toward_zero(checked_mul(a, b), denominator)


# =============================================================================
# BASIS POINTS
# =============================================================================


def apply_bps(amount: int, bps: int) -> int:
    """
    Доля amount в basis points: floor(amount * bps / 10000).

    Examples:
        >>> apply_bps(1_000_000, 250)
        25000
    """
    validate_bps(bps)
    return mul_div(amount, bps, BPS_DENOMINATOR)


def apply_bonus_bps(amount: int, bonus_bps: int) -> int:
    """
    Надбавка в basis points: floor(amount * (10000 + bonus_bps) / 10000).

    bonus_bps может превышать 10000 (надбавка больше 100%), но не отрицательна.

    Examples:
        >>> apply_bonus_bps(10_500_000, 2000)
        12600000
    """
    if bonus_bps < 0:
        raise FixedPointArithmeticError(ErrorCode.OVERFLOW, f"negative bonus {bonus_bps}")
    return mul_div(amount, BPS_DENOMINATOR + bonus_bps, BPS_DENOMINATOR)


# =============================================================================
# НОРМАЛИЗАЦИЯ ЗНАКОВ
# =============================================================================


def rescale(value: int, from_decimals: int, to_decimals: int) -> int:
    """
    Перевод fixed-point значения между числами знаков (округление к нулю).

    Examples:
        >>> rescale(1_500_000_000, 9, 6)
        1500000
        >>> rescale(15, 1, 6)
        1500000
    """
    validate_decimals(from_decimals, "from_decimals")
    validate_decimals(to_decimals, "to_decimals")
    if to_decimals >= from_decimals:
        return checked_mul(value, 10 ** (to_decimals - from_decimals))
    return div_toward_zero(value, 10 ** (from_decimals - to_decimals))


def rescale_by_exponent(value: int, exponent: int, to_decimals: int) -> int:
    """
    Перевод значения вида value * 10**exponent в fixed-point с to_decimals знаками.

    Используется для цен внешних фидов (price, expo).

    Examples:
        >>> rescale_by_exponent(1050, -2, 6)
        10500000
        >>> rescale_by_exponent(1_050_000_000, -8, 6)
        10500000
    """
    shift = exponent + to_decimals
    if shift >= 0:
        return checked_mul(value, 10**shift)
    return div_toward_zero(value, 10 ** (-shift))
