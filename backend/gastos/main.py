"""
FastAPI entrypoint for the Gastos Compartidos backend.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from gastos.core.config import settings
from gastos.core.exceptions import InvalidMembershipError, NotFoundError
from gastos.core.utils import format_error
from gastos.api.router import api_router
from gastos.db.session import init_db
from gastos.services.fx_service import build_normalizer

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield
    app.state.normalizer.provider.close()


app = FastAPI(
    title="Gastos Compartidos API",
    description="Backend API for shared group expenses, balances and settlements",
    version="1.0.0",
    lifespan=lifespan,
)

# One normalizer (and rate cache) per application instance
app.state.normalizer = build_normalizer(settings)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=format_error(str(exc)))


@app.exception_handler(InvalidMembershipError)
async def invalid_membership_handler(request: Request, exc: InvalidMembershipError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=format_error(str(exc)))


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Gastos Compartidos API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
