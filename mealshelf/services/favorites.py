from __future__ import annotations
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..models_db import Favorite, Meal


def _find(session: Session, user_id: str, meal_id: str):
    return session.exec(
        select(Favorite).where(Favorite.user_id == user_id, Favorite.meal_id == meal_id)
    ).first()


def list_favorite_ids(session: Session, user_id: str) -> List[str]:
    rows = session.exec(
        select(Favorite.meal_id)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc())
    ).all()
    return list(rows)


def list_favorite_meals(session: Session, user_id: str) -> List[Meal]:
    rows = session.exec(
        select(Meal)
        .join(Favorite, Favorite.meal_id == Meal.id)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc())
    ).all()
    return list(rows)


def add_favorite(session: Session, user_id: str, meal_id: str) -> Favorite:
    """
    Inserción idempotente: si el par ya existe devuelve la fila existente.
    La restricción única cubre la carrera entre dos inserciones simultáneas.
    """
    existing = _find(session, user_id, meal_id)
    if existing:
        return existing
    fav = Favorite(user_id=user_id, meal_id=meal_id)
    session.add(fav)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        existing = _find(session, user_id, meal_id)
        if existing is None:
            raise
        return existing
    session.refresh(fav)
    return fav


def remove_favorite(session: Session, user_id: str, meal_id: str) -> bool:
    """Borra el par si existe. Devuelve si había algo que borrar."""
    fav = _find(session, user_id, meal_id)
    if not fav:
        return False
    session.delete(fav)
    session.commit()
    return True
