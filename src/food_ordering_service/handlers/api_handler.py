"""FastAPI application for the storefront and admin portal API."""

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any

from fastapi import Body, Depends, FastAPI, Header, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from food_ordering_service.auth.api_dependencies import get_claims_from_header
from food_ordering_service.auth.token_service import TokenClaims, TokenService
from food_ordering_service.errors import FoodOrderingError, InternalError, ValidationError
from food_ordering_service.models.account_models import (
    Admin,
    AdminRegistration,
    CredentialsRequest,
    CustomerRegistration,
    CustomerRegistrationRequest,
    CustomerSession,
    TokenResponse,
)
from food_ordering_service.models.menu_models import (
    BulkImportResult,
    MenuItem,
    MenuItemCreate,
    MenuItemUpdate,
    MenuItemWithUpload,
)
from food_ordering_service.models.order_models import (
    Order,
    OrderCreateRequest,
    OrderStatusUpdate,
)
from food_ordering_service.services.auth_service import AuthService
from food_ordering_service.services.menu_service import MenuService
from food_ordering_service.services.order_service import OrderService

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "OPTIONS, POST, GET, PUT, DELETE",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


def _validation_message(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Invalid request: " + "; ".join(problems)


def create_app(
    menu_service: MenuService,
    order_service: OrderService,
    auth_service: AuthService,
    token_service: TokenService,
    expose_error_details: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        menu_service: Service for the menu catalog
        order_service: Service for placing and tracking orders
        auth_service: Service for admin and customer accounts
        token_service: Verifies bearer tokens on protected routes
        expose_error_details: Include exception messages in 500 responses

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Food Ordering API",
        description="Menu, ordering and account API for the storefront and admin portal",
        version="1.0.0",
    )

    # Store services in app state for access in route handlers
    app.state.menu_service = menu_service
    app.state.order_service = order_service
    app.state.auth_service = auth_service
    app.state.token_service = token_service
    app.state.expose_error_details = expose_error_details

    def internal_error_body(error: Exception) -> dict[str, Any]:
        body = InternalError("Internal Server Error").to_dict()
        if app.state.expose_error_details:
            body["details"] = str(error)
        return body

    @app.middleware("http")
    async def edge_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Answer preflights, normalise the path and guarantee CORS headers."""
        if request.method == "OPTIONS":
            return JSONResponse(status_code=200, content={}, headers=CORS_HEADERS)

        path = request.scope["path"]
        if len(path) > 1 and path.endswith("/"):
            request.scope["path"] = path.rstrip("/") or "/"

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(f"Unhandled error on {request.method} {request.scope['path']}: {e}")
            response = JSONResponse(status_code=500, content=internal_error_body(e))

        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(FoodOrderingError)
    async def handle_domain_error(request: Request, exc: FoodOrderingError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = ValidationError(_validation_message(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and known paths with the wrong method both read as "no such route"
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={"error": f"Route not found: {request.method} {request.url.path}"},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "type": "HTTPError"},
        )

    def require_token(authorization: Annotated[str | None, Header()] = None) -> TokenClaims:
        """Dependency that rejects the request unless it carries a valid bearer token."""
        return get_claims_from_header(
            authorization=authorization, token_service=app.state.token_service
        )

    Claims = Annotated[TokenClaims, Depends(require_token)]
    protected = [Depends(require_token)]

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            Health status indicating service is running
        """
        return HealthResponse(status="healthy")

    # --- Accounts ---

    @app.post("/auth/register", response_model=AdminRegistration, status_code=201, tags=["Auth"])
    async def register_admin(request: CredentialsRequest) -> AdminRegistration:
        return await app.state.auth_service.register_admin(request)

    @app.post("/auth/login", response_model=TokenResponse, tags=["Auth"])
    async def login_admin(request: CredentialsRequest) -> TokenResponse:
        return await app.state.auth_service.login_admin(request)

    @app.post(
        "/auth/user/register", response_model=CustomerRegistration, status_code=201, tags=["Auth"]
    )
    async def register_customer(request: CustomerRegistrationRequest) -> CustomerRegistration:
        return await app.state.auth_service.register_customer(request)

    @app.post("/auth/user/login", response_model=CustomerSession, tags=["Auth"])
    async def login_customer(request: CredentialsRequest) -> CustomerSession:
        return await app.state.auth_service.login_customer(request)

    @app.get("/admins", response_model=list[Admin], dependencies=protected, tags=["Admins"])
    async def list_admins() -> list[Admin]:
        admins: list[Admin] = await app.state.auth_service.list_admins()
        return admins

    @app.delete(
        "/admins/{admin_id}", response_model=MessageResponse, dependencies=protected, tags=["Admins"]
    )
    async def delete_admin(admin_id: str) -> MessageResponse:
        result = await app.state.auth_service.delete_admin(admin_id)
        return MessageResponse(**result)

    # --- Menu ---

    @app.get("/menu", response_model=list[MenuItem], tags=["Menu"])
    async def list_menu(
        category: str | None = None,
        search: str | None = None,
        available: str | None = None,
    ) -> list[MenuItem]:
        """List the catalog.

        Args:
            category: Exact category filter
            search: Case-insensitive name search
            available: "true" or "false" to filter on availability
        """
        items: list[MenuItem] = await app.state.menu_service.list_items(
            category=category, search=search, available=available
        )
        return items

    @app.post(
        "/menu",
        response_model=MenuItemWithUpload,
        status_code=201,
        dependencies=protected,
        tags=["Menu"],
    )
    async def create_menu_item(payload: MenuItemCreate) -> MenuItemWithUpload:
        return await app.state.menu_service.create_item(payload)

    # Declared before the /menu/{item_id} routes so "bulk" is never read as an id
    @app.post(
        "/menu/bulk",
        response_model=BulkImportResult,
        status_code=201,
        dependencies=protected,
        tags=["Menu"],
    )
    async def bulk_import_menu(payload: Annotated[Any, Body()] = None) -> BulkImportResult:
        return await app.state.menu_service.bulk_import(payload)

    @app.put("/menu/{item_id}", dependencies=protected, tags=["Menu"])
    async def update_menu_item(item_id: str, patch: MenuItemUpdate) -> dict[str, Any]:
        """Patch a menu item.

        Returns:
            The updated item, plus ``presignedUploadUrl`` and ``uploadKey``
            when a new image upload was requested
        """
        item, upload = await app.state.menu_service.update_item(item_id, patch)
        body: dict[str, Any] = item.model_dump(mode="json", by_alias=True)
        if upload is not None:
            body["presignedUploadUrl"] = upload.upload_url
            body["uploadKey"] = upload.upload_key
        return body

    @app.delete(
        "/menu/{item_id}", response_model=MessageResponse, dependencies=protected, tags=["Menu"]
    )
    async def delete_menu_item(item_id: str) -> MessageResponse:
        result = await app.state.menu_service.delete_item(item_id)
        return MessageResponse(**result)

    # --- Orders ---

    @app.post("/orders", response_model=Order, status_code=201, tags=["Orders"])
    async def create_order(request: OrderCreateRequest) -> Order:
        """Place an order. Prices and the total are computed server-side."""
        return await app.state.order_service.create_order(request)

    @app.get("/orders", response_model=list[Order], dependencies=protected, tags=["Orders"])
    async def list_orders(
        status: str | None = None,
        start_date: Annotated[str | None, Query(alias="startDate")] = None,
        end_date: Annotated[str | None, Query(alias="endDate")] = None,
    ) -> list[Order]:
        orders: list[Order] = await app.state.order_service.list_orders(
            status=status, start_date=start_date, end_date=end_date
        )
        return orders

    # Declared before /orders/{order_id} so "mine" is never read as an id
    @app.get("/orders/mine", response_model=list[Order], tags=["Orders"])
    async def list_my_orders(claims: Claims) -> list[Order]:
        """Order history for the customer identified by the bearer token."""
        orders: list[Order] = await app.state.order_service.list_orders_for_user(claims.account_id)
        return orders

    @app.get("/orders/{order_id}", response_model=Order, dependencies=protected, tags=["Orders"])
    async def get_order(order_id: str) -> Order:
        return await app.state.order_service.get_order(order_id)

    @app.put("/orders/{order_id}", response_model=Order, dependencies=protected, tags=["Orders"])
    async def update_order_status(order_id: str, update: OrderStatusUpdate) -> Order:
        """Move an order through its lifecycle.

        Raises:
            InvalidTransitionError: 400 with the allowed targets when the
                change is not permitted
        """
        return await app.state.order_service.update_status(order_id, update.status)

    return app
