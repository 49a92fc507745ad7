"""Models listing endpoint - OpenAI compatible."""

import logging

from fastapi import Request

logger = logging.getLogger("openanakin")


async def list_models(request: Request) -> dict:
    """List configured models in OpenAI API format.

    GET /v1/models
    """
    logger.info("Received models list request")
    catalog = request.app.state.catalog
    created = request.app.state.started_at
    return {
        "object": "list",
        "data": [
            {
                "id": name,
                "object": "model",
                "created": created,
                "owned_by": "openanakin",
            }
            for name in catalog.names()
        ],
    }


async def health(request: Request) -> dict:
    """Liveness probe.

    GET /health
    """
    return {"status": "ok", "models": len(request.app.state.catalog)}
