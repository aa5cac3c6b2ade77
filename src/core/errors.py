"""
Settlement Errors: таксономия ошибок ядра расчётов

Все ошибки ядра наследуются от SettlementError и несут:
- code: машиночитаемый ErrorCode (для диспетчера и аудита)
- category: одна из четырёх категорий (VALIDATION/PRECONDITION/AUTHORIZATION/ARITHMETIC)

Чистые функции (quote, split, is_stale, rarity_score) бросают эти исключения.
Операции, меняющие состояние, перехватывают их на границе и возвращают
TransitionResult с неизменённым предыдущим состоянием.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Ошибка всегда обнаруживается до вычисления нового состояния
2. Ошибка никогда не применяется частично
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """Категория ошибки."""

    VALIDATION = "VALIDATION"
    PRECONDITION = "PRECONDITION"
    AUTHORIZATION = "AUTHORIZATION"
    ARITHMETIC = "ARITHMETIC"


class ErrorCode(str, Enum):
    """Машиночитаемые коды ошибок."""

    # Oracle
    INVALID_PRICE = "InvalidPrice"
    INSUFFICIENT_LIQUIDITY = "InsufficientLiquidity"
    FEED_TOO_STALE = "FeedTooStale"
    FEED_CONFIDENCE_TOO_LOW = "FeedConfidenceTooLow"
    PRICE_NOT_SET = "PriceNotSet"
    TIMESTAMP_REGRESSION = "TimestampRegression"

    # Arithmetic
    DIVIDE_BY_ZERO = "DivideByZero"
    OVERFLOW = "Overflow"

    # Escrow
    ZERO_AMOUNT = "ZeroAmount"
    INVALID_DURATION = "InvalidDuration"
    MISSING_FIELD = "MissingField"
    NOT_READY = "NotReady"
    ALREADY_SETTLED = "AlreadySettled"
    UNAUTHORIZED = "Unauthorized"
    PROJECT_MISMATCH = "ProjectMismatch"

    # Project / liquidity pool
    PROJECT_INACTIVE = "ProjectInactive"
    POOL_NOT_INACTIVE = "LiquidityPoolNotInactive"

    # Swap
    INVALID_DISCOUNT = "InvalidDiscountPercentage"
    INVALID_COOLDOWN = "InvalidCooldownPeriod"
    INSUFFICIENT_TOKEN_AMOUNT = "InsufficientTokenAmount"

    # Redemption
    ORACLE_STALE = "OracleStale"
    RARITY_BONUS_OUT_OF_RANGE = "RarityBonusOutOfRange"
    INVALID_BPS = "InvalidBps"

    # Fusion
    TOO_FEW_INPUTS = "TooFewInputs"
    TOO_MANY_INPUTS = "TooManyInputs"
    COLLECTION_MISMATCH = "CollectionMismatch"
    DUPLICATE_INPUT = "DuplicateInput"
    ASSET_NOT_ACTIVE = "AssetNotActive"
    ASSET_IN_COOLDOWN = "AssetInCooldown"
    FUSION_INACTIVE = "FusionInactive"
    INVALID_SEED = "InvalidSeed"

    # Traits
    TRAIT_NOT_FOUND = "TraitNotFound"
    REQUIRED_TRAIT_MISSING = "RequiredTraitMissing"
    TRAIT_SUPPLY_EXCEEDED = "TraitSupplyExceeded"
    INVALID_TRAIT_CONFIG = "InvalidTraitConfig"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class SettlementError(Exception):
    """
    Базовая ошибка ядра расчётов.

    Args:
        code: ErrorCode
        message: человекочитаемое описание
    """

    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(self, code: ErrorCode, message: str = ""):
        self.code = code
        self.message = message or code.value
        super().__init__(f"{code.value}: {self.message}")


class InputValidationError(SettlementError):
    """Некорректный или выходящий за диапазон вход."""

    category = ErrorCategory.VALIDATION


class PreconditionError(SettlementError):
    """Не выполнено предусловие state machine (NotReady, AlreadySettled, OracleStale)."""

    category = ErrorCategory.PRECONDITION


class AuthorizationError(SettlementError):
    """Вызывающий не является владельцем сущности."""

    category = ErrorCategory.AUTHORIZATION


class FixedPointArithmeticError(SettlementError, ArithmeticError):
    """Деление на ноль или переполнение в fixed-point арифметике."""

    category = ErrorCategory.ARITHMETIC
