"""
BrokerDesk Claims & Approvals Service

FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brokerdesk.api import notifications_router, router as claims_router, workflows_router
from brokerdesk.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format=settings.log_format
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management."""
    logger.info(f"Starting {settings.app_name}")
    yield
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="""
    Claim status workflow and approval threshold engine for an insurance brokerage.

    ## Features

    - **Claim Workflow**: registered → investigating → assessed → approved → settled → closed
    - **Rejection**: allowed before approval, always with notes
    - **Audit Trail**: every status change, assignment and deletion is recorded
    - **Approval Thresholds**: per-role ceilings for underwriting, claims, payments and remittance
    - **Notifications**: fixed templates rendered for each workflow event

    ## Workflow

    1. Register a claim with `POST /claims`
    2. List allowed moves with `GET /claims/{id}/transitions`
    3. Move the claim with `POST /claims/{id}/transition`
    4. Start an approval with `POST /workflows` and decide steps with
       `POST /workflows/{id}/steps/{step_id}`
    """,
    version=settings.version,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(claims_router)
app.include_router(workflows_router)
app.include_router(notifications_router)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with system info."""
    return {
        "system": settings.app_name,
        "version": settings.version,
        "status": "operational",
        "docs": "/docs"
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
