"""
Project и LiquidityPool: записи проекта и его пула токенов

Project хранит authority, коллекции проекта, кошелёк роялти и флаг
активности. LiquidityPool хранит баланс токенов проекта и время последней
активности (swap, пополнение), по которому определяется неактивность пула.
"""

from typing import Optional

from pydantic import BaseModel, Field


class Project(BaseModel):
    """Проект на платформе."""

    project_id: str = Field(..., min_length=1)
    authority: str = Field(..., min_length=1, description="Управляющий проектом")
    collection_ids: tuple[str, ...] = Field(default=(), description="Коллекции проекта")
    royalty_wallet: Optional[str] = Field(default=None, description="Получатель роялти")
    is_active: bool = Field(default=True)
    last_activity_timestamp: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def owns_collection(self, collection_id: str) -> bool:
        return collection_id in self.collection_ids


class LiquidityPool(BaseModel):
    """Пул токенов проекта."""

    project_id: str = Field(..., min_length=1)
    token_asset: str = Field(..., min_length=1, description="Токен пула (mint)")
    balance: int = Field(default=0, ge=0, description="Баланс пула (базовые единицы)")
    created_at: int = Field(..., ge=0)
    last_activity: int = Field(..., ge=0, description="Последняя активность (Unix, секунды)")

    model_config = {"frozen": True}
