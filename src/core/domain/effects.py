"""
TransferEffect: инструкция перевода ценности для диспетчера

Ядро никогда не переводит ценность само. Каждая мутирующая операция
возвращает список TransferEffect, который диспетчер применяет атомарно
вместе с новым состоянием сущности.
"""

from enum import Enum

from pydantic import BaseModel, Field


class EffectKind(str, Enum):
    """Вид эффекта."""

    TRANSFER = "TRANSFER"
    BURN = "BURN"
    MINT = "MINT"


class TransferEffect(BaseModel):
    """
    Один перевод ценности.

    source/destination: адреса из src.core.store (EntityKey.address)
    или идентификаторы владельцев. Для BURN destination пуст,
    для MINT пуст source.
    """

    kind: EffectKind = Field(..., description="Вид эффекта")
    asset: str = Field(..., min_length=1, description="Что переводится (token mint / asset id)")
    amount: int = Field(..., ge=0, description="Количество в базовых единицах")
    source: str = Field(default="", description="Откуда")
    destination: str = Field(default="", description="Куда")
    memo: str = Field(default="", description="Назначение перевода (для аудита)")

    model_config = {"frozen": True}


def transfer(asset: str, amount: int, source: str, destination: str, memo: str = "") -> TransferEffect:
    """Конструктор TRANSFER эффекта."""
    return TransferEffect(
        kind=EffectKind.TRANSFER,
        asset=asset,
        amount=amount,
        source=source,
        destination=destination,
        memo=memo,
    )


def burn(asset: str, owner: str, memo: str = "") -> TransferEffect:
    """Конструктор BURN эффекта для одного не-взаимозаменяемого актива."""
    return TransferEffect(kind=EffectKind.BURN, asset=asset, amount=1, source=owner, memo=memo)


def mint(asset: str, owner: str, memo: str = "") -> TransferEffect:
    """Конструктор MINT эффекта для одного не-взаимозаменяемого актива."""
    return TransferEffect(kind=EffectKind.MINT, asset=asset, amount=1, destination=owner, memo=memo)
