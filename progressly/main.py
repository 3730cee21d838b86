"""
Progressly Backend API
Plans and usage limits, affiliate program, support tickets and account management.
"""
from dotenv import load_dotenv
load_dotenv()

import logging
import os
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

# Configure logging to stdout so the platform log collector picks it up
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True  # Override any existing configuration
)

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Run Alembic migrations on startup. Uses alembic.ini and DATABASE_URL.
    Fails startup if migrations fail, so the DB is never left out of sync."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_ini = project_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping Alembic migrations")
        return
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        logger.error("DATABASE_URL is not set. Alembic migrations will not run.")
        return
    # Normalize postgres:// -> postgresql:// for SQLAlchemy
    if db_url.startswith("postgres://"):
        db_url = "postgresql://" + db_url[10:]
    try:
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option("sqlalchemy.url", db_url)
        command.upgrade(alembic_cfg, "head")
        logger.info("Alembic migrations completed successfully")
    except Exception as e:
        logger.exception("Alembic migration failed: %s", e)
        raise  # Fail startup so DB is not left out of sync


from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from progressly.api.routes import (
    admin,
    affiliate,
    analysis,
    contact,
    newsletter,
    plans,
    public_affiliate,
    stripe_webhooks,
    tickets,
    usage,
    users,
)
from progressly.db.base import Base
from progressly.db.session import engine
# Import all models to ensure they're registered with Base
from progressly.models import (  # noqa: F401
    Affiliate, Commission, NewsletterSubscriber, Payout, Referral,
    Subscription, SupportTicket, TicketMessage, UsagePeriod, User,
)

app = FastAPI(title="Progressly API")


@app.on_event("startup")
async def startup_event():
    """Create tables, then run Alembic migrations on every server restart."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Running Alembic migrations...")
    run_migrations()


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error("HTTP %s on %s %s: %s", exc.status_code, request.method, request.url.path, exc.detail)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(exc.status_code, message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.warning("Invalid request to %s %s: %s", request.method, request.url.path, errors)
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception for request: %s %s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(plans.router, prefix="/api/plans", tags=["Plans"])
app.include_router(usage.router, prefix="/api/usage", tags=["Usage"])
app.include_router(analysis.router, prefix="/api/analysis", tags=["Analysis"])
app.include_router(affiliate.router, prefix="/api/affiliate", tags=["Affiliate"])
app.include_router(public_affiliate.router, prefix="/api/public", tags=["Public"])
app.include_router(tickets.router, prefix="/api/tickets", tags=["Tickets"])
app.include_router(users.router, prefix="/api/user", tags=["User"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(newsletter.router, prefix="/api/newsletter", tags=["Newsletter"])
app.include_router(contact.router, prefix="/api/contact", tags=["Contact"])
app.include_router(stripe_webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
