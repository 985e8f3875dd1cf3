import json
import re
from typing import Any, Dict, Tuple

FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", flags=re.IGNORECASE | re.MULTILINE)

def _strip_fences(s: str) -> str:
    return FENCE_RE.sub("", s).strip()

def _trim_to_braces(s: str) -> str:
    """Intenta recortar al primer '{' y último '}' equilibrados."""
    first = s.find("{")
    last = s.rfind("}")
    if first != -1 and last != -1 and last > first:
        return s[first:last+1]
    return s

def _remove_trailing_commas(s: str) -> str:
    s = re.sub(r",\s*([}\]])", r"\1", s)
    return s

def repair_json_minimal(text: str) -> Tuple[bool, str]:
    """
    Intenta reparar JSON común:
    - eliminar fences/backticks
    - recortar a llaves exteriores
    - quitar comas finales
    Devuelve (ok, json_str_posible)
    """
    candidate = _strip_fences(text)
    candidate = _trim_to_braces(candidate)
    candidate = _remove_trailing_commas(candidate)
    try:
        json.loads(candidate)
        return True, candidate
    except ValueError:
        pass
    # último intento: reemplazar comillas simples si no rompen números
    candidate2 = re.sub(r"(?<!\\)'", '"', candidate)
    try:
        json.loads(candidate2)
        return True, candidate2
    except ValueError:
        return False, candidate

def parse_json_object(text: str) -> Dict[str, Any]:
    """Reparación mínima + json.loads. ValueError si no sale un objeto."""
    ok, candidate = repair_json_minimal(text)
    if not ok:
        raise ValueError("JSON no reparable")
    data = json.loads(candidate)
    if not isinstance(data, dict):
        raise ValueError("Se esperaba un objeto JSON")
    return data
