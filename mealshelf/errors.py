from __future__ import annotations
import logging
from typing import Dict
from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .services.nutrition import NutritionError, NutritionUnavailable

logger = logging.getLogger(__name__)

CODE_MAP: Dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    413: "payload_too_large",
    422: "validation_error",
    429: "rate_limited",
    500: "internal_error",
    502: "upstream_error",
    503: "service_unavailable",
}

class ErrorResponse(BaseModel):
    code: str = Field(examples=["bad_request"])
    detail: str = Field(examples=["Invalid input"])
    meta: dict | None = Field(default=None, examples=[{"field": "complexity"}])

def install_exception_handlers(app: FastAPI):
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        payload = ErrorResponse(code=CODE_MAP.get(exc.status_code, "error"), detail=str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=payload.model_dump(), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        payload = ErrorResponse(code="validation_error", detail="Validation failed", meta={"errors": jsonable_encoder(exc.errors())})
        return JSONResponse(status_code=422, content=payload.model_dump())

    @app.exception_handler(NutritionError)
    async def nutrition_exception_handler(request: Request, exc: NutritionError):
        status = 503 if isinstance(exc, NutritionUnavailable) else 502
        logger.warning("Nutrition estimator error on %s: %s", request.url.path, exc)
        payload = ErrorResponse(code=CODE_MAP[status], detail=str(exc))
        return JSONResponse(status_code=status, content=payload.model_dump())
