import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import routes
from app.core.config import API_VERSION, DEFAULT_JWT_SECRET, Settings
from app.core.database import Database
from app.core.email import EmailSender
from app.core.errors import DomainError
from app.schemas import schemas

logger = logging.getLogger("mybooks")


def binding_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request body"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(loc) or "body"
    return f"{field} {first.get('msg', 'is invalid').lower()}"


def create_app(settings: Optional[Settings] = None, mailer: Optional[EmailSender] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db.create_all()
        if settings.jwt_secret == DEFAULT_JWT_SECRET:
            logger.warning("JWT_SECRET is not set, using the development placeholder")
        yield
        logger.info("Shutting down, disposing database engine")
        app.state.db.dispose()

    app = FastAPI(title="MyBooks API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = Database(settings.database_url)
    app.state.mailer = mailer or EmailSender(settings.resend_api_key, settings.email_from, settings.email_reply_to)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed:.1f}ms")
        return response

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def binding_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": binding_message(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "internal server error"},
        )

    app.include_router(routes.router, prefix=f"/{API_VERSION}")

    @app.get(f"/{API_VERSION}/health", response_model=schemas.HealthOut)
    def health(request: Request):
        database = "ok" if request.app.state.db.ping() else "unavailable"
        return {"status": "ok", "database": database}

    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level,
                        format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
