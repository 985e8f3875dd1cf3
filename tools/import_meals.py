#!/usr/bin/env python3
"""
Importa un meals.json heredado (formato camelCase, ids numéricos) a la BD.

    python tools/import_meals.py data/meals.json --owner cook@example.com

Los ids antiguos se descartan (la BD asigna UUIDs) y las etiquetas se canonizan.
"""
from __future__ import annotations
import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Tuple
import sys

# Asegura que el repo raíz está en sys.path aunque no se exporte PYTHONPATH=.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from pydantic import ValidationError
from sqlmodel import Session

from mealshelf.db import engine, init_db
from mealshelf.schemas import MealIn
from mealshelf.services.meals import create_meal

# camelCase del JSON antiguo -> columnas actuales
FIELD_MAP = {"prepTime": "prep_time"}


def to_meal_in(raw: Dict[str, Any]) -> MealIn:
    data = {FIELD_MAP.get(k, k): v for k, v in raw.items() if k != "id"}
    if data.get("spiciness") is None:
        data["spiciness"] = 0
    return MealIn(**data)


def load_meals(path: Path) -> Tuple[List[MealIn], List[str]]:
    items = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(items, list):
        raise SystemExit(f"{path}: se esperaba una lista de comidas")
    meals: List[MealIn] = []
    errors: List[str] = []
    for i, raw in enumerate(items):
        try:
            meals.append(to_meal_in(raw))
        except ValidationError as e:
            errors.append(f"#{i} {raw.get('name', '?')}: {e.errors()[0].get('msg')}")
    return meals, errors


def main():
    ap = argparse.ArgumentParser(description="Importa meals.json al recetario")
    ap.add_argument("path", type=Path, help="Fichero JSON con la lista de comidas")
    ap.add_argument("--owner", default="default", help="user_id dueño de las comidas importadas")
    ap.add_argument("--dry-run", action="store_true", help="Valida sin escribir en la BD")
    args = ap.parse_args()

    meals, errors = load_meals(args.path)
    print(f"📖 {len(meals)} comidas válidas, {len(errors)} descartadas")
    for err in errors:
        print(f"  - {err}")
    if args.dry_run:
        return

    init_db()
    with Session(engine, expire_on_commit=False) as session:
        for m in meals:
            meal = create_meal(session, args.owner, m)
            print(f"  - {meal.name}: {meal.id}")
    print("✅ Importación completada")


if __name__ == "__main__":
    main()
