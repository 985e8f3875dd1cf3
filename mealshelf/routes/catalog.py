from fastapi import APIRouter, Depends, HTTPException, Body
from sqlmodel import Session
from ..db import get_session
from ..security import get_current_user
from ..errors import ErrorResponse
from ..schemas import LabelsOut, NutritionFacts, NutritionRequest
from ..services.labels import all_labels
from ..services.nutrition import estimate_nutrition

router = APIRouter(tags=["catalog"])

@router.get("/labels", response_model=LabelsOut, summary="Etiquetas en uso (canónicas, ordenadas)")
def list_labels(session: Session = Depends(get_session)):
    return LabelsOut(labels=all_labels(session))

@router.post(
    "/nutrition",
    response_model=NutritionFacts,
    summary="Estimar nutrición total de una lista de ingredientes (IA)",
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def nutrition(
    req: NutritionRequest = Body(..., examples=[{"ingredients": ["200 g pasta", "1 lata de tomate"]}]),
    user_id: str = Depends(get_current_user),
):
    if not [i for i in req.ingredients if i and i.strip()]:
        raise HTTPException(400, "Ingredients are required")
    return await estimate_nutrition(req.ingredients)
