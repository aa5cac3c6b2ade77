"""Тесты детерминированных выборок из seed."""

import pytest

from src.core.errors import ErrorCode, InputValidationError
from src.core.math.seeded_draw import SEED_LENGTH, SeedStream, derive_seed, validate_seed


SEED_A = bytes(range(32))
SEED_B = bytes(31) + b"\x01"


class TestSeedValidation:
    """Тесты проверки seed."""

    def test_accepts_32_bytes(self):
        """Ровно 32 байта принимаются."""
        assert validate_seed(SEED_A) == SEED_A
        assert validate_seed(bytearray(SEED_A)) == SEED_A

    @pytest.mark.parametrize("seed", [b"", bytes(31), bytes(33), "x" * 32, None])
    def test_rejects_wrong_length_or_type(self, seed):
        """Неверная длина или тип: InvalidSeed."""
        with pytest.raises(InputValidationError) as exc_info:
            validate_seed(seed)
        assert exc_info.value.code == ErrorCode.INVALID_SEED

    def test_derive_seed_is_stable(self):
        """derive_seed детерминирован и даёт 32 байта."""
        seed = derive_seed(123_456, "collection_1", "alice", b"\x00\x01")
        assert len(seed) == SEED_LENGTH
        assert seed == derive_seed(123_456, "collection_1", "alice", b"\x00\x01")
        assert seed != derive_seed(123_457, "collection_1", "alice", b"\x00\x01")


class TestSeedStream:
    """Тесты потока выборок."""

    def test_same_seed_same_sequence(self):
        """Один seed → одна последовательность."""
        first = [SeedStream(SEED_A).uniform(10_000) for _ in range(3)]
        stream_a = SeedStream(SEED_A)
        stream_b = SeedStream(SEED_A)
        seq_a = [stream_a.uniform(10_000) for _ in range(20)]
        seq_b = [stream_b.uniform(10_000) for _ in range(20)]
        assert seq_a == seq_b
        assert first == [seq_a[0]] * 3

    def test_different_seed_different_sequence(self):
        """Разные seed → разные последовательности."""
        stream_a = SeedStream(SEED_A)
        stream_b = SeedStream(SEED_B)
        assert [stream_a.next_u64() for _ in range(4)] != [stream_b.next_u64() for _ in range(4)]

    def test_counter_advances(self):
        """Каждое слово потребляется один раз."""
        stream = SeedStream(SEED_A)
        first = stream.next_u64()
        second = stream.next_u64()
        assert first != second
        assert stream.consumed == 2

    def test_uniform_range(self):
        """uniform(n) в [0, n)."""
        stream = SeedStream(SEED_A)
        for upper in (1, 2, 3, 7, 10_000, 2**40 + 3):
            for _ in range(50):
                assert 0 <= stream.uniform(upper) < upper

    def test_uniform_rejects_non_positive(self):
        """upper <= 0 запрещён."""
        with pytest.raises(ValueError):
            SeedStream(SEED_A).uniform(0)

    def test_weighted_index_skips_zero_weights(self):
        """Нулевой вес никогда не выбирается."""
        stream = SeedStream(SEED_A)
        picks = {stream.weighted_index([0, 5, 0, 1]) for _ in range(200)}
        assert picks <= {1, 3}
        assert 1 in picks

    def test_weighted_index_rejects_zero_total(self):
        """Сумма весов 0 запрещена."""
        with pytest.raises(ValueError):
            SeedStream(SEED_A).weighted_index([0, 0])

    def test_sample_indices(self):
        """count различных отсортированных индексов."""
        stream = SeedStream(SEED_A)
        sample = stream.sample_indices(10, 4)
        assert len(sample) == 4
        assert len(set(sample)) == 4
        assert sample == sorted(sample)
        assert all(0 <= i < 10 for i in sample)

    def test_sample_indices_edges(self):
        """0 из n и n из n."""
        stream = SeedStream(SEED_A)
        assert stream.sample_indices(5, 0) == []
        assert stream.sample_indices(5, 5) == [0, 1, 2, 3, 4]
        with pytest.raises(ValueError):
            stream.sample_indices(2, 3)
