from __future__ import annotations

import logging
import sys
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from recipeshare.app.config import settings
from recipeshare.app.routers.auth import router as auth_router
from recipeshare.app.routers.recipes import router as recipes_router
from recipeshare.app.schemas.recipes import ErrorResponse, flatten_issues

# Plain stdout logging (fine for dev and containers)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

INVALID_REQUEST_MESSAGE = "Invalid request."
_REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}

app = FastAPI(title="Recipe Share API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _field_loc(loc: Any) -> tuple[Any, ...]:
    loc = tuple(loc or ())
    if len(loc) > 1 and loc[0] in _REQUEST_PARTS:
        return loc[1:]
    return loc


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    body = ErrorResponse(error=str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = [{**issue, "loc": _field_loc(issue.get("loc"))} for issue in exc.errors()]
    body = ErrorResponse(error=INVALID_REQUEST_MESSAGE, validationErrors=flatten_issues(issues))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(exclude_none=True),
    )


app.include_router(recipes_router)
app.include_router(auth_router)


@app.get("/health")
def health():
    return {"ok": True, "env": settings.APP_ENV, "database": settings.DATABASE_BACKEND}
