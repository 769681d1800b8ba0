import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .errors import DetectorError
from .routers import detect, video, writing

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("detector_studio")


def create_app() -> FastAPI:
    app = FastAPI(title="Detector Studio", version="1.0.0")

    @app.exception_handler(DetectorError)
    async def detector_error_handler(request: Request, exc: DetectorError) -> JSONResponse:
        logger.warning(
            "Request failed: path=%s error=%s status=%s message=%s cause=%r",
            request.url.path,
            type(exc).__name__,
            exc.status_code,
            exc,
            exc.cause,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.user_message, "error": type(exc).__name__},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        body = b""
        try:
            body = await request.body()
        except Exception:
            pass
        body_preview = body[:500].decode("utf-8", errors="replace") if body else "(none)"
        logger.warning(
            "Request validation failed: path=%s errors=%s body_preview=%s",
            request.url.path,
            exc.errors(),
            body_preview,
        )
        return JSONResponse(
            status_code=422,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok"}

    app.include_router(detect.router, prefix="/v1")
    app.include_router(writing.router, prefix="/v1")
    app.include_router(video.router, prefix="/v1")
    return app


app = create_app()
