"""Тесты адресуемого хранилища сущностей."""

import pytest

from src.core.domain.escrow import EscrowState
from src.core.store import (
    EntityKey,
    EntityStore,
    asset_key,
    escrow_key,
    fusion_config_key,
    platform_key,
    price_key,
    project_key,
)
from src.escrow.ledger import EscrowLedger


class TestEntityKey:
    """Тесты построения ключей."""

    def test_stable_address(self):
        """Один набор идентификаторов → один адрес."""
        assert escrow_key("p1", "nft_1", "alice", 0).address == escrow_key("p1", "nft_1", "alice", 0).address
        assert str(price_key("p1")) == price_key("p1").address

    def test_namespaces_do_not_collide(self):
        """Разные namespace → разные адреса."""
        addresses = {
            platform_key().address,
            project_key("x").address,
            price_key("x").address,
            asset_key("x").address,
            fusion_config_key("x").address,
        }
        assert len(addresses) == 5

    def test_parts_are_separated(self):
        """("ab", "c") != ("a", "bc")."""
        assert EntityKey("escrow", ("ab", "c")).address != EntityKey("escrow", ("a", "bc")).address

    def test_address_prefix(self):
        assert escrow_key("p1", "n", "alice", 0).address.startswith("escrow:")


class TestEntityStore:
    """Тесты EntityStore."""

    def test_put_get_require(self):
        store = EntityStore()
        key = project_key("p1")
        assert store.get(key) is None
        with pytest.raises(KeyError):
            store.require(key)

        store.put(key, {"name": "p1"})
        assert store.require(key) == {"name": "p1"}
        assert key in store
        assert len(store) == 1
        assert list(store) == [key.address]

    def test_apply_only_accepted(self):
        """apply() записывает только принятые результаты."""
        store = EntityStore()
        ledger = EscrowLedger("p1")
        key = escrow_key("p1", "nft_1", "alice", 0)

        rejected = ledger.deposit("alice", "nft_1", 0, 0, 0, now=0)
        assert store.apply(key, rejected) is False
        assert key not in store

        accepted = ledger.deposit("alice", "nft_1", 5, 0, 0, now=0)
        assert store.apply(key, accepted) is True
        assert store.require(key) == accepted.state

        cancel_denied = ledger.cancel(store.require(key), caller="bob")
        assert store.apply(key, cancel_denied) is False
        assert store.require(key) == accepted.state

    def test_settled_escrow_is_not_overwritten(self):
        """Повторный депозит актива пишется по новому ключу, RELEASED запись остаётся."""
        store = EntityStore()
        ledger = EscrowLedger("p1")

        first = ledger.deposit("alice", "nft_1", 5, 0, 0, now=100)
        first_key = escrow_key("p1", "nft_1", "alice", 100)
        store.apply(first_key, first)
        store.apply(first_key, ledger.release(store.require(first_key), now=100))

        second = ledger.deposit("bob", "nft_1", 5, 0, 0, now=200)
        second_key = escrow_key("p1", "nft_1", "bob", 200)
        assert second.state.escrow_id == second_key.address
        store.apply(second_key, second)

        assert store.require(first_key).state == EscrowState.RELEASED
        assert store.require(second_key).state == EscrowState.VESTING
        assert len(store) == 2
