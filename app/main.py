import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.api.endpoints import build
from app.api.endpoints import chat_message
from app.api.endpoints import chats
from app.api.endpoints import dialog
from app.api.endpoints import images
from app.api.endpoints import projects
from app.api.endpoints import publish
from app.core.config import Settings
from app.core.errors import AppError, InputError
from app.database import settings
from app.init_db import create_db_and_tables
from app.services.dialog_sessions import DialogSessionStore

SERVICE_NAME = "site-builder-backend"
SERVICE_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    try:
        yield
    finally:
        app.state.dialog_sessions.clear()
        logger.info("Dialog sessions cleared, shutting down")


async def input_error_handler(request: Request, exc: InputError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def app_error_handler(request: Request, exc: AppError):
    # everything but bad input is reported in a 200 envelope
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=200, content={"status": "error", "message": str(exc)})


def create_app(config: Settings = settings) -> FastAPI:
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, lifespan=lifespan)
    app.state.dialog_sessions = DialogSessionStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(InputError, input_error_handler)
    app.add_exception_handler(AppError, app_error_handler)

    app.include_router(dialog.router, tags=["dialog"])
    app.include_router(build.router, tags=["build"])
    app.include_router(publish.router, tags=["publish"])
    app.include_router(chats.router, tags=["chats"])
    app.include_router(chat_message.router, tags=["messages"])
    app.include_router(projects.router, tags=["projects"])
    app.include_router(images.router, tags=["images"])

    @app.get("/health")
    def health():
        return {"status": "ok", "service": SERVICE_NAME, "version": SERVICE_VERSION}

    os.makedirs(config.result_dir, mode=0o755, exist_ok=True)
    app.mount("/result", StaticFiles(directory=config.result_dir), name="result")
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
