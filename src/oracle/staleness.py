"""StalenessPolicy: окна свежести цены и активности пула.

Чистые функции от now и timestamp последнего обновления. Ядро никогда не
читает системные часы: now всегда передаёт диспетчер.

Свойство: is_stale монотонна по now (stale в t → stale в любой t' > t).
"""

from dataclasses import dataclass
from typing import Final

from src.core.domain.price import PriceRecord


# Окно неактивности пула ликвидности: 6 месяцев
LP_INACTIVITY_SECONDS: Final[int] = 15_768_000

# Окно свежести по умолчанию: 1 час
DEFAULT_MAX_AGE_SECONDS: Final[int] = 3_600


def is_stale(record: PriceRecord, now: int, max_age_seconds: int) -> bool:
    """
    Устарела ли цена.

    stale = now - last_update_unix_seconds > max_age_seconds

    Args:
        record: запись цены
        now: текущее время (Unix, секунды)
        max_age_seconds: допустимый возраст (>= 0)

    Raises:
        ValueError: если max_age_seconds < 0
    """
    if max_age_seconds < 0:
        raise ValueError(f"max_age_seconds must be non-negative, got {max_age_seconds}")
    return now - record.last_update_unix_seconds > max_age_seconds


def seconds_until_stale(record: PriceRecord, now: int, max_age_seconds: int) -> int:
    """Через сколько секунд цена станет stale (0 если уже stale).

    Согласовано с is_stale: is_stale(record, now + seconds_until_stale(...)) истинно.
    """
    if is_stale(record, now, max_age_seconds):
        return 0
    return record.last_update_unix_seconds + max_age_seconds - now + 1


def is_pool_inactive(
    last_activity_unix_seconds: int,
    now: int,
    inactivity_seconds: int = LP_INACTIVITY_SECONDS,
) -> bool:
    """Пул неактивен дольше окна (ликвидность можно вернуть в treasury платформы)."""
    return now - last_activity_unix_seconds >= inactivity_seconds


@dataclass(frozen=True)
class StalenessPolicy:
    """Политика свежести с фиксированным окном."""

    max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS

    def is_stale(self, record: PriceRecord, now: int) -> bool:
        return is_stale(record, now, self.max_age_seconds)

    def seconds_until_stale(self, record: PriceRecord, now: int) -> int:
        return seconds_until_stale(record, now, self.max_age_seconds)
