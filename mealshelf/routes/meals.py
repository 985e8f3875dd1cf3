from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from ..config import settings
from ..db import get_session
from ..security import get_current_user
from ..errors import ErrorResponse
from ..models_db import Meal
from ..schemas import MealIn, MealOut, MealPage
from ..services import meals as svc
from ..services.nutrition import fill_macros

router = APIRouter(prefix="/meals", tags=["meals"])


def _owned_meal(session: Session, meal_id: str, user_id: str) -> Meal:
    meal = svc.get_meal(session, meal_id)
    if not meal:
        raise HTTPException(status_code=404, detail="Meal not found")
    if meal.user_id != user_id:
        raise HTTPException(status_code=403, detail="No autorizado")
    return meal


@router.get(
    "",
    response_model=MealPage,
    summary="Listar comidas (más recientes primero)",
    responses={422: {"model": ErrorResponse}},
)
def list_meals(
    limit: int = Query(settings.meals_page_size, ge=1, le=settings.meals_page_size_max, examples=[20]),
    offset: int = Query(0, ge=0, examples=[0]),
    session: Session = Depends(get_session),
):
    rows, total, has_more = svc.list_page(session, offset=offset, limit=limit)
    return MealPage(meals=[svc.to_out(m) for m in rows], total=total, has_more=has_more)


@router.get(
    "/{meal_id}",
    response_model=MealOut,
    summary="Obtener una comida por id",
    responses={404: {"model": ErrorResponse}},
)
def get_meal(meal_id: str, session: Session = Depends(get_session)):
    meal = svc.get_meal(session, meal_id)
    if not meal:
        raise HTTPException(status_code=404, detail="Meal not found")
    return svc.to_out(meal)


@router.post(
    "",
    response_model=MealOut,
    status_code=201,
    summary="Crear comida (etiquetas canonizadas; macros opcionales vía IA)",
    responses={401: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_meal(
    data: MealIn,
    estimate_macros: bool = Query(False, description="Estimar macros por ración si faltan"),
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user),
):
    if estimate_macros:
        data = await fill_macros(data)
    meal = svc.create_meal(session, user_id, data)
    return svc.to_out(meal)


@router.put(
    "/{meal_id}",
    response_model=MealOut,
    summary="Reemplazar los campos editables de una comida propia",
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def replace_meal(
    meal_id: str,
    data: MealIn,
    estimate_macros: bool = Query(False, description="Estimar macros por ración si faltan"),
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user),
):
    meal = _owned_meal(session, meal_id, user_id)
    if estimate_macros:
        data = await fill_macros(data)
    meal = svc.replace_meal(session, meal, data)
    return svc.to_out(meal)


@router.delete(
    "/{meal_id}",
    summary="Eliminar una comida propia (borra también sus favoritos)",
    responses={200: {"description": "Eliminada"}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def delete_meal(
    meal_id: str,
    session: Session = Depends(get_session),
    user_id: str = Depends(get_current_user),
):
    meal = _owned_meal(session, meal_id, user_id)
    svc.delete_meal(session, meal)
    return {"status": "ok", "deleted_id": meal_id}
