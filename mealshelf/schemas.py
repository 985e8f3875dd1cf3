from typing import List, Optional
from typing_extensions import Literal
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .services.labels import normalize_labels

Complexity = Literal["easy", "medium", "hard"]
COMPLEXITIES = ("easy", "medium", "hard")

# === Comidas ===

class MealIn(BaseModel):
    """
    Campos editables de una comida. PUT reemplaza todos (lo ausente queda a None).
    """
    name: str = Field(..., min_length=1, examples=["Sopa de tomate"])
    complexity: Complexity
    cuisine: str = ""
    ingredients: Optional[List[str]] = None
    instructions: Optional[str] = None
    image: Optional[str] = None
    labels: Optional[List[str]] = None
    prep_time: Optional[int] = Field(default=None, ge=1, description="Minutos")
    servings: Optional[int] = Field(default=None, ge=1)
    spiciness: int = Field(default=0, ge=0, le=3)
    calories: Optional[int] = Field(default=None, ge=0)
    protein: Optional[int] = Field(default=None, ge=0)
    carbs: Optional[int] = Field(default=None, ge=0)
    fat: Optional[int] = Field(default=None, ge=0)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("cuisine")
    @classmethod
    def _strip_cuisine(cls, v: str) -> str:
        return v.strip()

    @field_validator("ingredients")
    @classmethod
    def _drop_blank_ingredients(cls, v):
        if v is None:
            return None
        items = [i.strip() for i in v if i and i.strip()]
        return items or None

    @field_validator("instructions")
    @classmethod
    def _blank_instructions(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("image")
    @classmethod
    def _image_url(cls, v):
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("image must be an http(s) URL")
        return v

    @field_validator("labels")
    @classmethod
    def _canonical_labels(cls, v):
        if v is None:
            return None
        return normalize_labels(v) or None

    def has_macros(self) -> bool:
        return any(x is not None for x in (self.calories, self.protein, self.carbs, self.fat))


class MealOut(MealIn):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime

    # la salida ya viene normalizada de la BD; no revalidar la URL de imagen heredada
    @field_validator("image")
    @classmethod
    def _image_url(cls, v):
        return v or None


class MealPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    meals: List[MealOut]
    total: int
    has_more: bool = Field(alias="hasMore")


# === Etiquetas ===

class LabelsOut(BaseModel):
    labels: List[str]


# === Nutrición ===

class NutritionRequest(BaseModel):
    ingredients: List[str] = Field(default_factory=list)


class NutritionFacts(BaseModel):
    """Totales de la receta completa (no por ración)."""
    calories: int
    protein: int
    carbs: int
    fat: int


# === Favoritos ===

class FavoriteIds(BaseModel):
    meal_ids: List[str]
