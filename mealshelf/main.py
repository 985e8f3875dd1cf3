import logging
import time

import httpx
from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from sqlalchemy import text

from .config import settings
from .db import engine, init_db
from .routes.auth import router as auth_router
from .routes.meals import router as meals_router
from .routes.favorites import router as favorites_router
from .routes.catalog import router as catalog_router
from .middleware.rate_limit import RateLimitMiddleware
from .middleware.size_limit import SizeLimitMiddleware
from .errors import install_exception_handlers
from prometheus_fastapi_instrumentator import Instrumentator

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

TAGS_METADATA = [
    {"name": "auth", "description": "Autenticación JWT (modo dev con PIN)."},
    {"name": "meals", "description": "Recetario: CRUD de comidas y listado paginado."},
    {"name": "favorites", "description": "Favoritos por usuario (alta idempotente)."},
    {"name": "catalog", "description": "Etiquetas en uso y estimación nutricional con IA."},
    {"name": "admin", "description": "Healthchecks."},
]

app = FastAPI(
    title="MealShelf API",
    version="0.1.0",
    description="Backend de MealShelf: recetario personal con favoritos, etiquetas y macros estimadas con OpenAI.",
    default_response_class=ORJSONResponse,
    openapi_tags=TAGS_METADATA,
    license_info={"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_allow_origins.split(",")] if settings.cors_allow_origins != "*" else ["*"],
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=[m.strip() for m in settings.cors_allow_methods.split(",")] if settings.cors_allow_methods != "*" else ["*"],
    allow_headers=[h.strip() for h in settings.cors_allow_headers.split(",")] if settings.cors_allow_headers != "*" else ["*"],
)

# Middlewares
app.add_middleware(SizeLimitMiddleware)     # 413 si Content-Length excede
app.add_middleware(RateLimitMiddleware)     # 429 si exceso RPM

# Prometheus
instrumentator = Instrumentator().instrument(app)
instrumentator.expose(app, include_in_schema=False, endpoint="/metrics")

# Exception handlers
install_exception_handlers(app)

@app.on_event("startup")
async def startup():
    init_db()

# Routers
app.include_router(auth_router)
app.include_router(meals_router)
app.include_router(favorites_router)
app.include_router(catalog_router)


@app.get("/health", tags=["admin"], summary="Healthcheck simple")
async def health():
    return {"status": "ok", "db": engine.dialect.name, "llm": settings.openai_model if settings.nutrition_enabled() else None}

@app.get("/health/deep", tags=["admin"], summary="Healthcheck profundo (BD + OpenAI)")
async def health_deep():
    out = {"status": "ok", "checks": {}}

    # BD
    t0 = time.perf_counter()
    d_ok, d_err = True, None
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        d_ok, d_err = False, str(e)
        out["status"] = "degraded"
    out["checks"]["db"] = {"ok": d_ok, "latency_ms": round((time.perf_counter()-t0)*1000, 1), "error": d_err}

    # OpenAI (sólo si hay key; sin ella la estimación está desactivada, no caída)
    if settings.nutrition_enabled():
        t1 = time.perf_counter()
        o_ok, o_err = True, None
        try:
            async with httpx.AsyncClient(timeout=3) as c:
                r = await c.get(
                    settings.openai_base_url.rstrip("/") + "/models",
                    headers={"Authorization": f"Bearer {settings.openai_api_key}"},
                )
                r.raise_for_status()
        except Exception as e:
            o_ok, o_err = False, str(e)
            out["status"] = "degraded"
        out["checks"]["openai"] = {"ok": o_ok, "latency_ms": round((time.perf_counter()-t1)*1000, 1), "error": o_err}

    return out

# --- OpenAPI servers ---
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=TAGS_METADATA,
    )
    schema["servers"] = [{"url": settings.server_public_url, "description": f"{settings.service_env}"}]
    app.openapi_schema = schema
    return app.openapi_schema
app.openapi = custom_openapi  # type: ignore
