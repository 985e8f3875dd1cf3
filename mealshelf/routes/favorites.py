from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from ..db import get_session
from ..security import require_same_user
from ..errors import ErrorResponse
from ..schemas import FavoriteIds, MealOut
from ..services import favorites as svc
from ..services.meals import get_meal, to_out

router = APIRouter(prefix="/users/{user_id}/favorites", tags=["favorites"])

@router.get(
    "",
    response_model=FavoriteIds,
    summary="Ids de comidas favoritas del usuario",
    responses={403: {"model": ErrorResponse}},
)
def list_favorites(
    user_id: str,
    session: Session = Depends(get_session),
    _: str = Depends(require_same_user),
):
    return FavoriteIds(meal_ids=svc.list_favorite_ids(session, user_id))

@router.get(
    "/meals",
    response_model=List[MealOut],
    summary="Comidas favoritas (la última marcada primero)",
    responses={403: {"model": ErrorResponse}},
)
def list_favorite_meals(
    user_id: str,
    session: Session = Depends(get_session),
    _: str = Depends(require_same_user),
):
    return [to_out(m) for m in svc.list_favorite_meals(session, user_id)]

@router.put(
    "/{meal_id}",
    summary="Marcar favorita (idempotente)",
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def add_favorite(
    user_id: str,
    meal_id: str,
    session: Session = Depends(get_session),
    _: str = Depends(require_same_user),
):
    if not get_meal(session, meal_id):
        raise HTTPException(404, "Meal not found")
    fav = svc.add_favorite(session, user_id, meal_id)
    return {"ok": True, "meal_id": fav.meal_id}

@router.delete(
    "/{meal_id}",
    summary="Desmarcar favorita (no-op si no lo era)",
    responses={403: {"model": ErrorResponse}},
)
def remove_favorite(
    user_id: str,
    meal_id: str,
    session: Session = Depends(get_session),
    _: str = Depends(require_same_user),
):
    removed = svc.remove_favorite(session, user_id, meal_id)
    return {"ok": True, "removed": removed}
