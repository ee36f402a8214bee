"""AWS Lambda handler for API Gateway requests.

API Gateway events are translated into ASGI requests by Mangum and served by
the FastAPI application. Dependencies are wired once at cold start and reused
across warm invocations.
"""

import json
import logging
import os
from typing import Any

from mangum import Mangum

from food_ordering_service.handlers.api_handler import CORS_HEADERS
from lambda_dependencies import build_dependencies, create_fastapi_app, initialize_lambda_environment

logger = logging.getLogger(__name__)

# Initialize Lambda environment and wire the app during cold start (skip in test mode)
if os.getenv("ENVIRONMENT") != "test":
    initialize_lambda_environment()
    app = create_fastapi_app(build_dependencies())
    mangum_handler = Mangum(
        app,
        lifespan="off",
        api_gateway_base_path=os.getenv("API_BASE_PATH", "/"),
    )
else:
    app = None  # type: ignore
    mangum_handler = None  # type: ignore


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda entry point for API Gateway requests.

    Args:
        event: The API Gateway event payload
        context: The Lambda context object

    Returns:
        API Gateway response dict with statusCode, headers and body
    """
    logger.info(f"Received Lambda invocation, request_id: {getattr(context, 'aws_request_id', None)}")

    try:
        result: dict[str, Any] = mangum_handler(event, context)
        return result

    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {e}")
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json", **CORS_HEADERS},
            "body": json.dumps({"error": "Internal Server Error", "type": "InternalError"}),
        }
