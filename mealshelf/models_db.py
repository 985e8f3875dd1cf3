from __future__ import annotations
from typing import Optional, List
from datetime import datetime
import uuid

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON as SAJSON, UniqueConstraint


class Meal(SQLModel, table=True):
    """
    Receta del recetario. Visible para todos; sólo el dueño la modifica.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, index=True)
    user_id: str = Field(default="default", index=True)
    name: str = Field(index=True)
    complexity: str = Field(index=True, description="easy|medium|hard")
    cuisine: str = Field(default="", index=True)
    ingredients: Optional[List[str]] = Field(default=None, sa_column=Column(SAJSON))
    instructions: Optional[str] = None
    image: Optional[str] = None
    labels: Optional[List[str]] = Field(default=None, sa_column=Column(SAJSON))  # forma canónica ("Vegano")
    prep_time: Optional[int] = None  # minutos
    servings: Optional[int] = None
    spiciness: int = 0  # 0..3

    # macros por ración (estimadas o manuales)
    calories: Optional[int] = None
    protein: Optional[int] = None
    carbs: Optional[int] = None
    fat: Optional[int] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Favorite(SQLModel, table=True):
    """
    Relación usuario <-> comida marcada como favorita. Como mucho una fila por par.
    """
    __table_args__ = (UniqueConstraint("user_id", "meal_id", name="uq_favorite_user_meal"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, index=True)
    user_id: str = Field(index=True)
    meal_id: str = Field(foreign_key="meal.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
