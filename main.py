import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.exceptions import ChatPDFError
from core.logging import configure_logging
from rag_services.state import SessionRegistry
from services.storage import UploadStorage

logger = logging.getLogger(__name__)


def build_registry() -> SessionRegistry:
    from rag_services.llm import LLMService
    from rag_services.pdf_processor import PDFProcessor

    return SessionRegistry(
        extractor=PDFProcessor(),
        generator=LLMService.from_settings(),
        max_sessions=settings.MAX_SESSIONS,
    )


def register_exception_handlers(application: FastAPI) -> None:
    @application.exception_handler(ChatPDFError)
    async def chat_pdf_error_handler(request: Request, exc: ChatPDFError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @application.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # A known path with the wrong method is just an unknown route
        if exc.status_code == 405:
            return JSONResponse(status_code=404, content={"error": "Not Found"})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @application.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    registry: Optional[SessionRegistry] = None,
    storage: Optional[UploadStorage] = None,
) -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    application = FastAPI(
        title=settings.app_name,
        description="Upload a PDF and chat with an assistant grounded in its text",
        version="1.0.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.registry = build_registry() if registry is None else registry
    application.state.storage = UploadStorage(settings.UPLOAD_DIR) if storage is None else storage

    @application.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("Received request: %s %s", request.method, request.url.path)
        return await call_next(request)

    @application.on_event("startup")
    async def startup_event():
        application.state.storage.ensure_dir()
        logger.info(
            "Started %s (%s), uploads in %s",
            settings.app_name,
            settings.environment,
            application.state.storage.upload_dir,
        )

    register_exception_handlers(application)

    # Routers are imported lazily to avoid circular deps during app creation
    from routers.chat import router as chat_router

    application.include_router(chat_router, prefix=settings.API_PREFIX, tags=["chat"])
    application.mount(
        application.state.storage.url_prefix,
        StaticFiles(directory=str(application.state.storage.upload_dir), check_dir=False),
        name="uploads",
    )

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
