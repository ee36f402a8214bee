"""Local development entry point for the food ordering API.

Builds the same dependencies as the Lambda handler and serves the FastAPI
application with uvicorn.
"""

import logging
import os

from fastapi import FastAPI

from food_ordering_service.observability import configure_logging
from lambda_dependencies import build_dependencies, create_fastapi_app

logger = logging.getLogger(__name__)


def create_application() -> FastAPI:
    """Configure logging, wire dependencies and create the application.

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing food ordering API...")
    app = create_fastapi_app(build_dependencies())
    logger.info("Food ordering API initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Create a placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "8001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
