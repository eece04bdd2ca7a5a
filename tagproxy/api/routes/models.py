"""Models listing endpoint - OpenAI compatible."""

import logging

from ...core.drivers import infer_provider
from ...core.registry import get_gateway

logger = logging.getLogger("tagproxy")

# Fixed creation timestamp reported for every model
MODEL_CREATED = 1700000000


async def list_models() -> dict:
    """List configured models in OpenAI API format.

    GET /v1/models
    """
    logger.info("Received models list request")

    gateway = get_gateway()
    return {
        "object": "list",
        "data": [
            {
                "id": model_name,
                "object": "model",
                "created": MODEL_CREATED,
                "owned_by": infer_provider(model_name),
            }
            for model_name in gateway.models
        ],
    }
