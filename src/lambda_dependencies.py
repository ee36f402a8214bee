"""Shared dependency factory for the Lambda handler and the local server.

Process-wide resources (the DynamoDB resource, the S3 client, repositories and
services) are built once per Lambda container at cold start and handed to the
FastAPI app, which keeps them on ``app.state``.
"""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import boto3
from fastapi import FastAPI
from mypy_boto3_s3.client import S3Client

from food_ordering_service.auth.token_service import TokenService
from food_ordering_service.handlers.api_handler import create_app
from food_ordering_service.observability import configure_logging, setup_observability
from food_ordering_service.repositories.account_repositories import (
    AdminRepository,
    CustomerRepository,
)
from food_ordering_service.repositories.menu_repository import MenuRepository
from food_ordering_service.repositories.order_repository import OrderRepository
from food_ordering_service.services.auth_service import AuthService
from food_ordering_service.services.image_storage import ImageStorage
from food_ordering_service.services.inventory_service import InventoryReservationEngine
from food_ordering_service.services.menu_service import MenuService
from food_ordering_service.services.order_service import OrderService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceDependencies:
    """Everything the API needs, built once per process.

    Attributes:
        menu_service: Menu catalog service
        order_service: Order placement and status service
        auth_service: Account and login service
        token_service: Bearer token issuer and verifier
        expose_error_details: Include exception messages in 500 responses
    """

    menu_service: MenuService
    order_service: OrderService
    auth_service: AuthService
    token_service: TokenService
    expose_error_details: bool


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes")


def get_dynamodb_resource() -> Any:
    """Create the DynamoDB resource for this environment.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        # Local DynamoDB - use environment variables
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )

    logger.info(f"Using AWS DynamoDB in region {region}")
    return boto3.resource("dynamodb", region_name=region)


def get_s3_client() -> S3Client:
    """Create the S3 client used to presign uploads and delete images.

    Explicit credentials come from ``MY_AWS_*`` variables because Lambda
    reserves the standard names. Without them the default chain applies.

    Returns:
        Boto3 S3 client
    """
    region = os.getenv("S3_REGION", "eu-north-1")
    access_key = os.getenv("MY_AWS_ACCESS_KEY_ID")
    secret_key = os.getenv("MY_AWS_SECRET_ACCESS_KEY")

    if access_key and secret_key:
        logger.info(f"Using explicit S3 credentials in region {region}")
        return boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )

    logger.info(f"Using default S3 credentials in region {region}")
    return boto3.client("s3", region_name=region)


def build_token_service() -> TokenService:
    """Create the token service from ``JWT_SECRET`` and the token lifetimes.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET must be set in environment")

    return TokenService(
        secret=secret,
        admin_ttl=timedelta(hours=int(os.getenv("ADMIN_TOKEN_TTL_HOURS", "24"))),
        customer_ttl=timedelta(days=int(os.getenv("CUSTOMER_TOKEN_TTL_DAYS", "30"))),
    )


def build_dependencies() -> ServiceDependencies:
    """Wire repositories and services from environment variables.

    Returns:
        ServiceDependencies for create_app

    Raises:
        ValueError: If JWT_SECRET or S3_BUCKET_NAME is missing
    """
    bucket_name = os.getenv("S3_BUCKET_NAME")
    if not bucket_name:
        raise ValueError("S3_BUCKET_NAME must be set in environment")

    token_service = build_token_service()
    dynamodb_resource = get_dynamodb_resource()

    menu_table = os.getenv("DYNAMODB_MENU_TABLE", "food-ordering-menu-items")
    orders_table = os.getenv("DYNAMODB_ORDERS_TABLE", "food-ordering-orders")
    admins_table = os.getenv("DYNAMODB_ADMINS_TABLE", "food-ordering-admins")
    customers_table = os.getenv("DYNAMODB_CUSTOMERS_TABLE", "food-ordering-customers")

    menu_repository = MenuRepository(dynamodb_resource=dynamodb_resource, table_name=menu_table)
    order_repository = OrderRepository(dynamodb_resource=dynamodb_resource, table_name=orders_table)
    admin_repository = AdminRepository(dynamodb_resource=dynamodb_resource, table_name=admins_table)
    customer_repository = CustomerRepository(
        dynamodb_resource=dynamodb_resource, table_name=customers_table
    )

    logger.info(
        f"Repositories configured - menu: {menu_table}, orders: {orders_table}, "
        f"admins: {admins_table}, customers: {customers_table}"
    )

    image_storage = ImageStorage(
        s3_client=get_s3_client(),
        bucket_name=bucket_name,
        region=os.getenv("S3_REGION", "eu-north-1"),
        expiry_seconds=int(os.getenv("PRESIGNED_URL_EXPIRY_SECONDS", "300")),
    )

    inventory_engine = InventoryReservationEngine(menu_repository=menu_repository)

    dependencies = ServiceDependencies(
        menu_service=MenuService(menu_repository=menu_repository, image_storage=image_storage),
        order_service=OrderService(
            order_repository=order_repository, inventory_engine=inventory_engine
        ),
        auth_service=AuthService(
            admin_repository=admin_repository,
            customer_repository=customer_repository,
            token_service=token_service,
        ),
        token_service=token_service,
        expose_error_details=_env_flag(
            "EXPOSE_ERROR_DETAILS", os.getenv("ENVIRONMENT", "development") != "production"
        ),
    )

    logger.info("Services initialized")
    return dependencies


def create_fastapi_app(dependencies: ServiceDependencies) -> FastAPI:
    """Create the FastAPI application from wired dependencies.

    Args:
        dependencies: Services built by build_dependencies

    Returns:
        Configured FastAPI application instance
    """
    app = create_app(
        menu_service=dependencies.menu_service,
        order_service=dependencies.order_service,
        auth_service=dependencies.auth_service,
        token_service=dependencies.token_service,
        expose_error_details=dependencies.expose_error_details,
    )

    if _env_flag("ENABLE_TRACING", False):
        setup_observability(app)
        logger.info("OpenTelemetry tracing enabled")

    logger.info("FastAPI application initialized")
    return app


def initialize_lambda_environment() -> None:
    """Initialize Lambda environment with structured logging.

    Should be called once during Lambda cold start.
    """
    # Configure structured logging
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Lambda environment initialized")
