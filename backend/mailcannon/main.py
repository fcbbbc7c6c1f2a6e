"""
MailCannon Backend API
FastAPI application for CV text extraction, AI-assisted drafting and bulk
job-application email dispatch.
"""

import logging
import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mailcannon.config import get_anthropic_api_key, get_smtp_settings
from mailcannon.routers import email, extraction, generation, stats

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

DEV_ORIGINS = ("http://localhost:3000", "http://localhost:9002")

app = FastAPI(
    title="MailCannon API",
    description="Compose one job application, attach a CV, and send it to every employer on your list",
    version="0.1.0",
)


def get_cors_origins() -> List[str]:
    """Local dev front ends plus any comma-separated CORS_ORIGINS."""
    origins = list(DEV_ORIGINS)
    for origin in os.getenv("CORS_ORIGINS", "").split(","):
        origin = origin.strip()
        if origin and origin not in origins:
            origins.append(origin)
    return origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(extraction.router, prefix="/api", tags=["extraction"])
app.include_router(email.router, prefix="/api", tags=["email"])
app.include_router(generation.router, prefix="/api/generate", tags=["generation"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])


@app.on_event("startup")
async def log_startup_mode() -> None:
    """
    Log which external services are configured so it is obvious at a glance
    whether emails will really be sent.
    """
    host_port = os.getenv("HOST_PORT", "8000")
    send_mode = "live" if get_smtp_settings() is not None else "simulated (no SMTP credentials)"
    ai_mode = "configured" if get_anthropic_api_key() else "missing ANTHROPIC_API_KEY"
    logger.info(
        "MailCannon API running at http://localhost:%s\n"
        "  Email sending: %s\n"
        "  AI features:   %s",
        host_port,
        send_mode,
        ai_mode,
    )


@app.get("/")
async def root():
    return {"message": "MailCannon API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "email_mode": "live" if get_smtp_settings() is not None else "simulated",
        "ai_configured": get_anthropic_api_key() is not None,
    }
