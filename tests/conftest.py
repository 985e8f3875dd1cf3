import os
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import List

import pytest

# Entorno de test antes de importar settings: BD en memoria, PIN dev, sin IA y
# límites de rate altos (el test del middleware los baja explícitamente).
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("AUTH_DEV_PIN", "000000")
os.environ.setdefault("SERVICE_ENV", "dev")
os.environ.setdefault("RATE_LIMIT_RPM", "100000")
os.environ.setdefault("RATE_LIMIT_BURST", "100000")
os.environ["OPENAI_API_KEY"] = ""
os.environ.pop("REDIS_URL", None)

# Ensure project root on path for imports when executing from tests dir
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import httpx
from fastapi.testclient import TestClient
from sqlmodel import Session

import mealshelf.main as main
from mealshelf.client.http import MealShelfClient
from mealshelf.db import engine, init_db, drop_db
from mealshelf.models_db import Meal
from mealshelf.security import create_access_token


@pytest.fixture(autouse=True)
def db():
    """Tablas limpias en cada test (BD SQLite en memoria compartida)."""
    drop_db()
    init_db()
    yield
    drop_db()


@pytest.fixture
def session():
    with Session(engine, expire_on_commit=False) as s:
        yield s


@pytest.fixture
def client():
    # Sin context manager: el startup no corre; la fixture db ya creó las tablas
    return TestClient(main.app)


@pytest.fixture
def auth():
    """auth("ana@example.com") -> cabeceras con un JWT válido para ese usuario."""
    def _headers(user_id: str = "cook@example.com"):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _headers


@pytest.fixture
def api_client():
    """Fábrica de MealShelfClient que habla con la app vía ASGI (sin red)."""
    def _make(user_id: str = "cook@example.com") -> MealShelfClient:
        return MealShelfClient(
            "http://mealshelf.test",
            token=create_access_token(user_id),
            transport=httpx.ASGITransport(app=main.app),
        )
    return _make


@pytest.fixture
def seed_meals(session):
    """
    Inserta n comidas con created_at creciente. Devuelve las filas en el orden
    del listado (más reciente primero).
    """
    def _seed(n: int, user_id: str = "cook@example.com", **fields) -> List[Meal]:
        base = datetime(2026, 1, 1, 12, 0, 0)
        rows: List[Meal] = []
        for i in range(n):
            values = {"name": f"Meal {i:02d}", "complexity": "easy", "cuisine": "Italian"}
            values.update(fields)
            m = Meal(user_id=user_id, created_at=base + timedelta(seconds=i), updated_at=base + timedelta(seconds=i), **values)
            session.add(m)
            rows.append(m)
        session.commit()
        return list(reversed(rows))
    return _seed
