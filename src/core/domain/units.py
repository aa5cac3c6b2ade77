"""
Units: централизованный модуль fixed-point единиц

Единственный допустимый способ преобразований между:
- USD суммами (fixed-point, 6 знаков: $10.50 == 10_500_000)
- суммами токенов (fixed-point, token_decimals знаков, по умолчанию 9)
- basis points (целые в [0, 10000], 10000 bps = 100%)

ЗАПРЕЩЕНО смешивать единицы без явного конвертера из этого модуля.
Все значения целые: float в денежных расчётах не используется.
"""

from typing import Final

from src.core.errors import ErrorCode, FixedPointArithmeticError, InputValidationError


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Количество знаков USD fixed-point
USD_DECIMALS: Final[int] = 6
USD_SCALE: Final[int] = 10**USD_DECIMALS

# Количество знаков токена по умолчанию (стандарт SPL)
DEFAULT_TOKEN_DECIMALS: Final[int] = 9

# Знаменатель basis points
BPS_DENOMINATOR: Final[int] = 10_000
BPS_MAX: Final[int] = 10_000

# Верхняя граница суммы (u64), промежуточные значения допускаются до u128
U64_MAX: Final[int] = 2**64 - 1
U128_MAX: Final[int] = 2**128 - 1

# Максимально допустимое число знаков при нормализации
MAX_DECIMALS: Final[int] = 18


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_bps(value: int, name: str = "bps") -> int:
    """
    Проверка, что value является basis points в [0, 10000].

    Raises:
        InputValidationError: если value вне диапазона (никогда не clamp)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InputValidationError(ErrorCode.INVALID_BPS, f"{name} must be int, got {value!r}")
    if value < 0 or value > BPS_MAX:
        raise InputValidationError(
            ErrorCode.INVALID_BPS, f"{name} must be in [0, {BPS_MAX}], got {value}"
        )
    return value


def validate_decimals(decimals: int, name: str = "decimals") -> int:
    """Проверка количества знаков в [0, MAX_DECIMALS]."""
    if decimals < 0 or decimals > MAX_DECIMALS:
        raise InputValidationError(
            ErrorCode.INVALID_PRICE, f"{name} must be in [0, {MAX_DECIMALS}], got {decimals}"
        )
    return decimals


def ensure_u64(value: int, name: str = "amount") -> int:
    """
    Проверка, что результат помещается в u64.

    Raises:
        FixedPointArithmeticError: при переполнении
    """
    if value < 0 or value > U64_MAX:
        raise FixedPointArithmeticError(
            ErrorCode.OVERFLOW, f"{name}={value} does not fit into u64"
        )
    return value


# =============================================================================
# КОНВЕРТЕРЫ
# =============================================================================


def usd_to_fixed(dollars: int, cents: int = 0) -> int:
    """
    Конверсия: доллары + центы → USD fixed-point.

    Examples:
        >>> usd_to_fixed(10, 50)
        10500000
    """
    if cents < 0 or cents > 99:
        raise InputValidationError(ErrorCode.INVALID_PRICE, f"cents must be in [0, 99], got {cents}")
    return dollars * USD_SCALE + cents * (USD_SCALE // 100)


def fixed_to_display(amount: int, decimals: int = USD_DECIMALS) -> str:
    """
    Форматирование fixed-point суммы для логов (без float).

    Examples:
        >>> fixed_to_display(10_500_000)
        '10.500000'
    """
    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), 10**decimals)
    if decimals == 0:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{frac:0{decimals}d}"


def token_scale(token_decimals: int = DEFAULT_TOKEN_DECIMALS) -> int:
    """Множитель 10**token_decimals с проверкой диапазона."""
    return 10 ** validate_decimals(token_decimals, "token_decimals")
