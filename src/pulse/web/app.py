"""
Pulse Web - FastAPI application.

App shell for the interest configurator: health check plus the
`/interests` router.
"""

import logging

from fastapi import FastAPI

from pulse import __version__
from interests.api import router as interests_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Pulse", version=__version__)
app.include_router(interests_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    from pulse.config import settings

    return {
        "status": "healthy",
        "version": __version__,
        "follow_ups": "llm" if settings.has_llm_backend else "placeholder",
    }
