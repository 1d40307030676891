from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import logging

from bookkeeper.config import settings
from bookkeeper.database import db
from bookkeeper.errors import ConflictError, LedgerError, NotFoundError, ValidationError
from bookkeeper.api import accounts, audit, auth, journal_entries, ledger, reports

# Setup Logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    db.connect()
    yield
    db.close()

app = FastAPI(
    title="Nepal Books Ledger API",
    description="Double-entry ledger: chart of accounts, journal posting and financial statements",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_CODES = {
    ValidationError: 422,
    ConflictError: 409,
    NotFoundError: 404,
}

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = next((code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)), 400)
    if status_code == 409:
        logger.warning(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())

# Router Registration
app.include_router(auth.router)
app.include_router(accounts.router)
app.include_router(journal_entries.router)
app.include_router(ledger.router)
app.include_router(reports.router)
app.include_router(audit.router)

# Health Check
@app.get("/health")
async def health_check():
    return {"status": "ok", "environment": settings.ENVIRONMENT}

if __name__ == "__main__":
    uvicorn.run("bookkeeper.main:app", host="0.0.0.0", port=8000, reload=True)
