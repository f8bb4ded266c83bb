import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import router as auth_router
from cars import router as cars_router
from core import db, media, settings
from core.errors import ServiceError
from core.logging_config import setup_logging

# Settings are read from the environment lazily; a local .env fills the gaps.
load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level())

    # Initialize the DB pool once per process. A failure here stops the server.
    try:
        await db.init_pool()
        await db.apply_schema()
    except Exception:
        logger.exception("db_connection_failed")
        raise

    media_config = media.media_config_from_env()
    logger.info(
        "media_config cloud_name=%s api_key=%s api_secret=%s",
        media_config.cloud_name or "-",
        "set" if media_config.api_key else "missing",
        "set" if media_config.api_secret else "missing",
    )
    app.state.media = media.MediaClient(media_config)
    try:
        yield
    finally:
        await app.state.media.aclose()
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _validation_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": str(error.get("msg", ""))}
        for error in exc.errors()
    ]


@app.exception_handler(ServiceError)
async def service_error_handler(_: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request", "errors": _validation_errors(exc)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unknown paths reach the static mount, which answers 404 (GET) or 405 (other verbs).
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"success": False, "message": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Something went wrong!", "error": str(exc)},
    )


app.include_router(auth_router.router, tags=["auth"])
app.include_router(cars_router.router, tags=["cars"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


def _static_dir(path: str) -> str:
    Path(path).mkdir(parents=True, exist_ok=True)
    return path


# Mounted last so API routes win; "/" serves the public assets.
app.mount("/uploads", StaticFiles(directory=_static_dir(settings.uploads_dir())), name="uploads")
app.mount("/", StaticFiles(directory=_static_dir(settings.public_dir()), html=True), name="public")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.port())
