from typing import Iterator
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from .config import settings


def _make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False)
    # SQLite: las rutas síncronas corren en el threadpool de FastAPI
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # En memoria: una sola conexión compartida o cada hilo vería una BD vacía
        kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=False, **kwargs)

engine = _make_engine(settings.db_url)

def _column_exists(conn, table: str, column: str) -> bool:
    res = conn.execute(text(f"PRAGMA table_info('{table}')"))
    for row in res.fetchall():
        if row[1] == column:
            return True
    return False

def _safe_add_column(conn, table: str, column: str, decl: str):
    if not _column_exists(conn, table, column):
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {decl}"))

def migrate_meal_columns():
    """
    Añade a 'meal' las columnas que no existían en bases antiguas (SQLite).
    """
    if engine.dialect.name != "sqlite":
        return
    with engine.begin() as conn:
        _safe_add_column(conn, "meal", "spiciness", "INTEGER DEFAULT 0")
        for column in ("calories", "protein", "carbs", "fat"):
            _safe_add_column(conn, "meal", column, "INTEGER")

def init_db() -> None:
    # registra las tablas en el metadata antes de create_all
    from . import models_db  # noqa: F401
    SQLModel.metadata.create_all(engine)
    migrate_meal_columns()

def drop_db() -> None:
    SQLModel.metadata.drop_all(engine)

def get_session() -> Iterator[Session]:
    # Desactiva la expiración de atributos tras commit (evita {} en respuestas)
    with Session(engine, expire_on_commit=False) as session:
        yield session
