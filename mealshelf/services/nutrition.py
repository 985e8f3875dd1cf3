from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, List, Optional

from ..config import settings
from ..llm import chat_completion, LLMError
from ..schemas import MealIn, NutritionFacts
from ..utils.json_repair import parse_json_object

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a nutrition expert. Calculate total nutritional information accurately "
    "based on ingredients provided. Always respond with valid JSON only."
)

MACROS = ("calories", "protein", "carbs", "fat")


class NutritionError(RuntimeError):
    """El estimador respondió algo inutilizable o falló la llamada."""


class NutritionUnavailable(NutritionError):
    """No hay API key configurada."""


def build_prompt(ingredients: List[str]) -> str:
    lines = "\n".join(f"- {ing}" for ing in ingredients)
    return (
        "Calculate the TOTAL nutritional information for ALL these ingredients combined:\n\n"
        f"{lines}\n\n"
        "Respond with ONLY a JSON object in this exact format, no other text:\n"
        '{"calories": <number>, "protein": <number>, "carbs": <number>, "fat": <number>}\n\n'
        "Where:\n"
        "- calories: total calories for ALL ingredients combined (integer)\n"
        "- protein: total grams of protein for ALL ingredients (integer)\n"
        "- carbs: total grams of carbohydrates for ALL ingredients (integer)\n"
        "- fat: total grams of fat for ALL ingredients (integer)\n\n"
        "Base your estimates on standard nutritional databases. If ingredient quantities are "
        "unclear, make reasonable assumptions for a typical recipe."
    )


def parse_nutrition(text: str) -> NutritionFacts:
    try:
        data = parse_json_object(text)
    except ValueError as e:
        raise NutritionError(f"Respuesta no parseable: {e}") from e
    values: Dict[str, Any] = {}
    for key in MACROS:
        v = data.get(key)
        # bool es subclase de int: no lo aceptamos como cantidad
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise NutritionError(f"Campo '{key}' ausente o no numérico")
        values[key] = int(round(v))
    return NutritionFacts(**values)


async def estimate_nutrition(ingredients: List[str]) -> NutritionFacts:
    """Totales estimados para la receta completa."""
    items = [i.strip() for i in ingredients if i and i.strip()]
    if not items:
        raise ValueError("ingredients must not be empty")
    if not settings.nutrition_enabled():
        raise NutritionUnavailable("OpenAI API key not configured")
    try:
        raw = await chat_completion(build_prompt(items), system=SYSTEM_PROMPT, temperature=0.0, max_tokens=100, seed=42)
    except (LLMError, httpx.HTTPError) as e:
        raise NutritionError(f"Fallo al llamar al estimador: {e}") from e
    return parse_nutrition(raw)


def per_serving(totals: NutritionFacts, servings: Optional[int]) -> NutritionFacts:
    n = servings if servings and servings > 0 else 1
    return NutritionFacts(**{k: int(round(getattr(totals, k) / n)) for k in MACROS})


async def fill_macros(data: MealIn) -> MealIn:
    """
    Completa las macros por ración si faltan todas y hay ingredientes.
    Best-effort: cualquier fallo se registra y la comida se guarda sin macros.
    """
    if data.has_macros() or not data.ingredients:
        return data
    try:
        totals = await estimate_nutrition(data.ingredients)
    except NutritionError as e:
        logger.warning("Nutrition estimate skipped for %r: %s", data.name, e)
        return data
    per = per_serving(totals, data.servings)
    return data.model_copy(update=per.model_dump())
