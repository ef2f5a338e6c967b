import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import JSONResponse

from .config import Settings, get_settings
from .db.health import check_ledger_store
from .db.session import get_engine
from .errors import InvalidInput, LedgerError
from .ledger_routes import debug_router, router as ledger_router
from .logging_config import configure_logging

settings_snapshot = get_settings()
configure_logging(settings_snapshot)
logger = logging.getLogger(__name__)
app = FastAPI(title="Skill Ledger", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(ledger_router)
app.include_router(debug_router)

logger.info("Skill ledger starting with clock mode: %s", settings_snapshot.clock_mode)
logger.info("Database configured: %s", bool(settings_snapshot.database_url))


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and path segments fail as ``InvalidInput`` like every other rejection."""
    problems = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
        for error in exc.errors()
    ]
    failure = InvalidInput("; ".join(problems) or "Request validation failed.")
    return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


@app.get("/healthz")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/healthz/database")
def database_health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    try:
        report = check_ledger_store(get_engine())
    except (RuntimeError, SQLAlchemyError) as exc:
        logger.warning("Database health check failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if not report.ready:
        logger.warning("Ledger schema incomplete; missing %s", ", ".join(report.missing_tables))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Ledger tables missing: {', '.join(report.missing_tables)}",
        )
    return {"status": "ok", "clock_mode": settings.clock_mode, **report.as_dict()}
