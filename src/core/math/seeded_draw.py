"""
Seeded Draw: детерминированные выборки из 32-байтного seed

Исход fusion должен воспроизводиться и проверяться по одному seed, поэтому
PRNG языка (random) не используется. Каждая выборка получается как

    sha256(seed || counter_be32)[:8] → uint64

с монотонным счётчиком: один и тот же фрагмент seed никогда не потребляется
дважды. Равномерность в [0, n) достигается rejection sampling (без modulo bias).
"""

import hashlib
from typing import Final, Sequence

from src.core.errors import ErrorCode, InputValidationError


SEED_LENGTH: Final[int] = 32

_DRAW_SPACE: Final[int] = 2**64


def validate_seed(seed: bytes) -> bytes:
    """
    Проверка seed: ровно 32 байта.

    Raises:
        InputValidationError: INVALID_SEED
    """
    if not isinstance(seed, (bytes, bytearray)) or len(seed) != SEED_LENGTH:
        length = len(seed) if isinstance(seed, (bytes, bytearray)) else type(seed).__name__
        raise InputValidationError(
            ErrorCode.INVALID_SEED, f"randomness must be {SEED_LENGTH} bytes, got {length}"
        )
    return bytes(seed)


def derive_seed(*parts: bytes | str | int) -> bytes:
    """
    Сборка 32-байтного seed из частей энтропии (slot, collection, user, extra).

    Строки кодируются UTF-8, целые как 8 байт little-endian.
    """
    hasher = hashlib.sha256()
    for part in parts:
        if isinstance(part, int):
            hasher.update(part.to_bytes(8, "little", signed=part < 0))
        elif isinstance(part, str):
            hasher.update(part.encode("utf-8"))
        else:
            hasher.update(bytes(part))
    return hasher.digest()


class SeedStream:
    """
    Поток детерминированных выборок из seed.

    Usage:
        stream = SeedStream(seed)
        draw = stream.uniform(10_000)     # [0, 10000)
        idx = stream.weighted_index([5, 1, 4])
    """

    def __init__(self, seed: bytes):
        self._seed = validate_seed(seed)
        self._counter = 0

    @property
    def consumed(self) -> int:
        """Количество потреблённых 64-битных слов."""
        return self._counter

    def next_u64(self) -> int:
        """Следующее 64-битное слово."""
        block = hashlib.sha256(self._seed + self._counter.to_bytes(4, "big")).digest()
        self._counter += 1
        return int.from_bytes(block[:8], "big")

    def uniform(self, upper: int) -> int:
        """
        Равномерная выборка в [0, upper).

        Raises:
            ValueError: если upper <= 0
        """
        if upper <= 0:
            raise ValueError(f"upper must be positive, got {upper}")
        limit = (_DRAW_SPACE // upper) * upper
        while True:
            value = self.next_u64()
            if value < limit:
                return value % upper

    def weighted_index(self, weights: Sequence[int]) -> int:
        """
        Индекс по неотрицательным целым весам (кумулятивный поиск).

        Raises:
            ValueError: если сумма весов <= 0
        """
        total = sum(weights)
        if total <= 0:
            raise ValueError("weights must have a positive sum")
        point = self.uniform(total)
        cumulative = 0
        for index, weight in enumerate(weights):
            cumulative += weight
            if point < cumulative:
                return index
        # Недостижимо при total > 0
        raise AssertionError("weighted draw fell outside cumulative range")

    def sample_indices(self, population: int, count: int) -> list[int]:
        """
        Выборка count различных индексов из range(population) (partial Fisher-Yates).

        Результат отсортирован для стабильного представления.
        """
        if count < 0 or count > population:
            raise ValueError(f"cannot sample {count} of {population}")
        pool = list(range(population))
        for i in range(count):
            j = i + self.uniform(population - i)
            pool[i], pool[j] = pool[j], pool[i]
        return sorted(pool[:count])
