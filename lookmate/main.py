import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from lookmate.core.config import settings
from lookmate.core.db import init_models
from lookmate.routers import ai, closet, health, looks, products, public_looks, recommendations
from lookmate.routers import auth as auth_router
from lookmate.storage.local import upload_root

logger = logging.getLogger("lookmate.requests")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_AUTO_CREATE:
        await init_models()
    logger.info("startup: env=%s db=%s", settings.APP_ENV, settings.DATABASE_URL.split("://")[0])
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# CORS
origins = settings.cors_origin_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

prefix = settings.API_PREFIX
app.include_router(health.router, prefix=prefix)
app.include_router(auth_router.router, prefix=prefix)
app.include_router(closet.router, prefix=prefix)
app.include_router(looks.router, prefix=prefix)
app.include_router(public_looks.router, prefix=prefix)
app.include_router(recommendations.router, prefix=prefix)
app.include_router(products.router, prefix=prefix)
app.include_router(ai.router, prefix=prefix)

app.mount(settings.UPLOAD_URL_PATH, StaticFiles(directory=str(upload_root())), name="uploads")


def jsonable_errors(exc: RequestValidationError) -> list:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    logger.info("validation: %s %s errors=%d", request.method, request.url.path, len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={"detail": "validation_error", "errors": jsonable_errors(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("error: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "internal_error"})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


@app.get("/")
async def root():
    return {"name": settings.APP_NAME, "env": settings.APP_ENV}
