from __future__ import annotations
from typing import List, Optional, Tuple
from datetime import datetime

from sqlalchemy import func, delete
from sqlmodel import Session, select

from ..models_db import Meal, Favorite
from ..schemas import MealIn, MealOut

MUTABLE_FIELDS = (
    "name", "complexity", "cuisine", "ingredients", "instructions", "image", "labels",
    "prep_time", "servings", "spiciness", "calories", "protein", "carbs", "fat",
)


def to_out(meal: Meal) -> MealOut:
    return MealOut.model_validate(meal)


def list_page(session: Session, offset: int, limit: int) -> Tuple[List[Meal], int, bool]:
    """
    Página de comidas, más recientes primero. Devuelve (comidas, total, hay_más).
    """
    total = session.exec(select(func.count()).select_from(Meal)).one()
    rows = session.exec(
        select(Meal)
        .order_by(Meal.created_at.desc(), Meal.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()
    has_more = offset + len(rows) < total
    return list(rows), int(total), has_more


def get_meal(session: Session, meal_id: str) -> Optional[Meal]:
    return session.get(Meal, meal_id)


def create_meal(session: Session, user_id: str, data: MealIn) -> Meal:
    now = datetime.utcnow()
    meal = Meal(user_id=user_id, created_at=now, updated_at=now, **data.model_dump(include=set(MUTABLE_FIELDS)))
    session.add(meal)
    session.commit()
    session.refresh(meal)
    return meal


def replace_meal(session: Session, meal: Meal, data: MealIn) -> Meal:
    # reemplazo completo: lo que no venga en data queda a su valor por defecto
    values = data.model_dump(include=set(MUTABLE_FIELDS))
    for field in MUTABLE_FIELDS:
        setattr(meal, field, values.get(field))
    meal.updated_at = datetime.utcnow()
    session.add(meal)
    session.commit()
    session.refresh(meal)
    return meal


def delete_meal(session: Session, meal: Meal) -> None:
    """Borra la comida y sus favoritos (cascada explícita: SQLite no aplica FKs por defecto)."""
    session.execute(delete(Favorite).where(Favorite.meal_id == meal.id))
    session.delete(meal)
    session.commit()
