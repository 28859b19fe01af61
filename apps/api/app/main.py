import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .routers import auth, health, tickets, projects, users
from .models.user import Base
from .db import engine, SessionLocal
from .core.config import settings
from .core.seed import seed_admin
from .services.mail_events import Notifier
from .services.mail_service import SmtpMailer

import app.models.project  # noqa: F401
import app.models.project_member  # noqa: F401
import app.models.ticket  # noqa: F401

logger = logging.getLogger(__name__)

app = FastAPI(title="Bug Tracker API")

mailer = SmtpMailer.from_settings(settings)
app.state.notifier = Notifier(mailer, base_url=settings.app_base_url)


@app.on_event("startup")
def on_startup():
    if settings.auto_db_bootstrap:
        # Create tables in dev if missing.
        Base.metadata.create_all(bind=engine)

        with SessionLocal() as session:
            seed_admin(session, settings)

    if not mailer.configured:
        logger.info("SMTP credentials missing; ticket mail is disabled.")


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message}, headers=headers)


@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        msg = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return _error(400, "; ".join(messages) or "Invalid request")


@app.exception_handler(IntegrityError)
def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error(400, "Duplicate value or invalid reference")


app.include_router(health.router)
app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(users.router, prefix=settings.api_prefix)
app.include_router(projects.router, prefix=settings.api_prefix)
app.include_router(tickets.router, prefix=settings.api_prefix)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
