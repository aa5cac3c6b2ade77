"""
EntityStore: адресуемое хранилище сущностей

Каждая сущность адресуется стабильным ключом EntityKey(namespace, parts).
Функции *_key() являются явными функциями построения ключа: один и тот же
набор идентификаторов всегда даёт один и тот же адрес.

Хранилище принадлежит диспетчеру: ядро только строит ключи и возвращает
результаты; apply() записывает состояние ТОЛЬКО из принятых результатов.
"""

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from src.core.domain.results import TransitionResult


# =============================================================================
# KEYS
# =============================================================================


@dataclass(frozen=True)
class EntityKey:
    """Стабильный ключ сущности."""

    namespace: str
    parts: tuple[str, ...]

    @property
    def address(self) -> str:
        """
        Детерминированный адрес: namespace + sha256 от частей.

        Части разделены байтом 0x00, поэтому ("ab", "c") != ("a", "bc").
        """
        payload = b"\x00".join(p.encode("utf-8") for p in (self.namespace, *self.parts))
        return f"{self.namespace}:{hashlib.sha256(payload).hexdigest()[:32]}"

    def __str__(self) -> str:
        return self.address


def platform_key() -> EntityKey:
    return EntityKey("platform_config", ())


def project_key(project_id: str) -> EntityKey:
    return EntityKey("project", (project_id,))


def price_key(project_id: str) -> EntityKey:
    """Ключ записи цены (одна на проект)."""
    return EntityKey("price", (project_id,))


def treasury_key(project_id: str) -> EntityKey:
    return EntityKey("project_treasury", (project_id,))


def liquidity_pool_key(project_id: str) -> EntityKey:
    return EntityKey("liquidity_pool", (project_id,))


def escrow_key(project_id: str, asset_ref: str, owner: str, vesting_start: int, nonce: int = 0) -> EntityKey:
    """Ключ escrow.

    Повторный депозит того же актива (после RELEASED или CANCELLED) получает
    новый ключ, поэтому закрытая запись никогда не перезаписывается.
    nonce различает депозиты одного владельца в одну и ту же секунду.
    """
    return EntityKey("escrow", (project_id, asset_ref, owner, str(vesting_start), str(nonce)))


def asset_key(asset_id: str) -> EntityKey:
    return EntityKey("asset", (asset_id,))


def fusion_config_key(collection_id: str) -> EntityKey:
    return EntityKey("fusion_config", (collection_id,))


# =============================================================================
# STORE
# =============================================================================


class EntityStore:
    """
    In-memory хранилище сущностей по ключу.

    Usage:
        store = EntityStore()
        store.put(escrow_key("p1", "nft_1", "alice", t0), escrow)
        result = ledger.release(store.require(key), now=...)
        store.apply(key, result)
    """

    def __init__(self) -> None:
        self._entities: Dict[str, Any] = {}

    def get(self, key: EntityKey) -> Optional[Any]:
        return self._entities.get(key.address)

    def require(self, key: EntityKey) -> Any:
        """
        Получение сущности.

        Raises:
            KeyError: если сущность отсутствует
        """
        try:
            return self._entities[key.address]
        except KeyError:
            raise KeyError(f"entity not found: {key.namespace} {key.parts}") from None

    def put(self, key: EntityKey, entity: Any) -> None:
        self._entities[key.address] = entity

    def apply(self, key: EntityKey, result: TransitionResult) -> bool:
        """
        Запись нового состояния из результата.

        Returns:
            True если результат принят и состояние записано
        """
        if not result.accepted:
            return False
        self._entities[key.address] = result.state
        return True

    def __contains__(self, key: EntityKey) -> bool:
        return key.address in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entities)
