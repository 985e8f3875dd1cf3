from __future__ import annotations
from typing import Iterable, List, Optional, Set

from sqlmodel import Session, select

from ..models_db import Meal


def format_label(label: str) -> str:
    """
    Forma canónica de una etiqueta: recorta espacios, primera letra en mayúscula
    y el resto en minúscula ("  vEGAN " -> "Vegan"). Vacía si no queda nada.
    """
    trimmed = label.strip()
    if not trimmed:
        return ""
    return trimmed[0].upper() + trimmed[1:].lower()


def normalize_labels(labels: Iterable[str]) -> List[str]:
    """Canoniza y deduplica sin distinguir mayúsculas; conserva la primera aparición."""
    out: List[str] = []
    seen: Set[str] = set()
    for raw in labels:
        if not isinstance(raw, str):
            continue
        lbl = format_label(raw)
        if not lbl or lbl.lower() in seen:
            continue
        seen.add(lbl.lower())
        out.append(lbl)
    return out


def label_set(labels: Optional[Iterable[str]]) -> Set[str]:
    return {l.lower() for l in normalize_labels(labels or [])}


def all_labels(session: Session) -> List[str]:
    found: Set[str] = set()
    for labels in session.exec(select(Meal.labels)).all():
        for lbl in normalize_labels(labels or []):
            found.add(lbl)
    return sorted(found)
