"""Main FastAPI application."""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from turjman.config import Settings, get_settings
from turjman.api import health, pages, pay, receipts, services, verify
from turjman.core.ratelimit import RateLimiter
from turjman.services.chain_service import ChainReceiptResolver
from turjman.services.payment_service import PaymentService
from turjman.services.receipt_presenter import ReceiptPresenter
from turjman.services.receipt_store import ReceiptStore
from turjman.services.trust_service import TrustScoreTracker
from turjman.services.verification_service import VerificationService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application and the process-wide state it owns.

    Everything shared between requests (receipt store, rate limiter,
    trust score, chain and payment services) hangs off ``app.state``.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Smart Turjman API",
        version="1.0.0",
        description="Pay for government services in USDC on Arc Testnet and get a verified receipt"
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = ReceiptStore(settings.RECEIPTS_FILE)
    trust = TrustScoreTracker(seed=settings.TRUST_SCORE_SEED)

    app.state.settings = settings
    app.state.receipt_store = store
    app.state.rate_limiter = RateLimiter(
        capacity=settings.RATE_LIMIT_CAPACITY,
        refill_per_s=settings.RATE_LIMIT_REFILL_PER_SEC
    )
    app.state.trust = trust
    app.state.verifier = VerificationService(ChainReceiptResolver(settings), store, trust)
    app.state.payments = PaymentService(settings)
    app.state.presenter = ReceiptPresenter(settings)

    # Include routers
    app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])
    app.include_router(services.router, prefix=settings.API_PREFIX, tags=["services"])
    app.include_router(pay.router, prefix=settings.API_PREFIX, tags=["payments"])
    app.include_router(verify.router, prefix=settings.API_PREFIX, tags=["verify"])
    app.include_router(receipts.router, prefix=settings.API_PREFIX, tags=["receipts"])
    app.include_router(pages.router, tags=["pages"])

    @app.on_event("startup")
    async def startup():
        """Application startup tasks."""
        print("🚀 Smart Turjman API starting...")
        print(f"📝 Environment: {settings.ENVIRONMENT}")
        print(f"🧾 Receipts file: {settings.RECEIPTS_FILE}")
        print("📊 API Docs: http://localhost:8000/docs")

    @app.on_event("shutdown")
    async def shutdown():
        """Application shutdown tasks."""
        print("👋 Smart Turjman API shutting down...")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Smart Turjman API",
            "version": "1.0.0",
            "docs": "/docs",
            "redoc": "/redoc",
        }

    # Global exception handler
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc: HTTPException):
        """Handle HTTP exceptions with consistent error format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail}
        )

    return app


app = create_app()
