"""FastAPI app entry."""

from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from promptsandbox.adapters.openrouter.router import router as openrouter_router
from promptsandbox.adapters.openrouter.upstream import close_gateway_async_client
from promptsandbox.config.settings import settings
from promptsandbox.util.logger import logger


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await close_gateway_async_client()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(openrouter_router, prefix="/v1")


@app.middleware("http")
async def error_boundary_middleware(request: Request, call_next):
    logger.debug("request enter method=%s path=%s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception as exc:  # pragma: no cover - fail-safe
        logger.exception("unhandled exception path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "message": f"internal error: {exc}",
                    "type": "promptsandbox_error",
                    "code": "internal_error",
                }
            },
        )
    logger.debug("request done method=%s path=%s status=%s", request.method, request.url.path, response.status_code)
    return response


@app.get("/health")
def health() -> dict:
    logger.info("health check")
    return {"status": "ok"}


def main() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
