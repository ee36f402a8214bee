"""Unit tests for the account service."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from doubles import InMemoryAdminRepository, InMemoryCustomerRepository
from food_ordering_service.auth.password_hasher import hash_password
from food_ordering_service.auth.token_service import TokenService
from food_ordering_service.errors import AuthError, InternalError, NotFoundError, ValidationError
from food_ordering_service.models.account_models import (
    Admin,
    CredentialsRequest,
    Customer,
    CustomerRegistrationRequest,
)
from food_ordering_service.repositories.account_repositories import AdminRepository
from food_ordering_service.services.auth_service import AuthService


@pytest.fixture
def admin_repository() -> InMemoryAdminRepository:
    return InMemoryAdminRepository()


@pytest.fixture
def customer_repository() -> InMemoryCustomerRepository:
    return InMemoryCustomerRepository()


@pytest.fixture
def service(
    admin_repository: InMemoryAdminRepository,
    customer_repository: InMemoryCustomerRepository,
    token_service: TokenService,
) -> AuthService:
    return AuthService(
        admin_repository=admin_repository,  # type: ignore[arg-type]
        customer_repository=customer_repository,  # type: ignore[arg-type]
        token_service=token_service,
    )


@pytest.mark.unit
class TestAdminAccounts:
    """Test suite for admin registration and login."""

    @pytest.mark.asyncio
    async def test_register_stores_hash_not_password(
        self, service: AuthService, admin_repository: InMemoryAdminRepository
    ) -> None:
        result = await service.register_admin(
            CredentialsRequest(email=" Admin@Example.com ", password="s3cret")
        )

        assert result.message == "Admin registered successfully"
        stored = admin_repository.admins[result.id]
        assert stored.email == "admin@example.com"
        assert stored.password_hash != "s3cret"
        assert stored.password_hash.startswith("$2")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "request_body",
        [
            CredentialsRequest(email="admin@example.com"),
            CredentialsRequest(password="s3cret"),
            CredentialsRequest(email="   ", password="s3cret"),
        ],
    )
    async def test_register_requires_credentials(
        self, service: AuthService, request_body: CredentialsRequest
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await service.register_admin(request_body)

        assert exc_info.value.message == "Missing credentials"

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, service: AuthService) -> None:
        await service.register_admin(CredentialsRequest(email="admin@example.com", password="a"))

        with pytest.raises(ValidationError) as exc_info:
            await service.register_admin(
                CredentialsRequest(email="ADMIN@example.com", password="b")
            )

        assert exc_info.value.message == "Admin already exists"

    @pytest.mark.asyncio
    async def test_register_save_failure(
        self, customer_repository: InMemoryCustomerRepository, token_service: TokenService
    ) -> None:
        admin_repository = MagicMock(spec=AdminRepository)
        admin_repository.get_by_email.return_value = None
        admin_repository.claim_email.return_value = True
        admin_repository.save.return_value = False
        service = AuthService(admin_repository, customer_repository, token_service)  # type: ignore[arg-type]

        with pytest.raises(InternalError):
            await service.register_admin(CredentialsRequest(email="a@example.com", password="x"))

        admin_repository.release_email.assert_called_once_with("a@example.com")

    @pytest.mark.asyncio
    async def test_register_loses_race_for_email(
        self, service: AuthService, admin_repository: InMemoryAdminRepository
    ) -> None:
        """Test that a claim made by a concurrent registration wins over the lookup."""
        admin_repository.claim_email("admin@example.com", "admin_elsewhere")

        with pytest.raises(ValidationError) as exc_info:
            await service.register_admin(CredentialsRequest(email="admin@example.com", password="a"))

        assert exc_info.value.message == "Admin already exists"
        assert admin_repository.admins == {}
        assert admin_repository.email_claims == {"admin@example.com": "admin_elsewhere"}

    @pytest.mark.asyncio
    async def test_login_issues_admin_token(
        self, service: AuthService, token_service: TokenService
    ) -> None:
        registered = await service.register_admin(
            CredentialsRequest(email="admin@example.com", password="s3cret")
        )

        response = await service.login_admin(
            CredentialsRequest(email="Admin@example.com", password="s3cret")
        )

        claims = token_service.verify(response.token)
        assert claims.account_id == registered.id
        assert claims.role == "admin"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,password",
        [("admin@example.com", "wrong"), ("nobody@example.com", "s3cret"), (None, None)],
    )
    async def test_login_failures_share_one_message(
        self, service: AuthService, email: str | None, password: str | None
    ) -> None:
        await service.register_admin(CredentialsRequest(email="admin@example.com", password="s3cret"))

        with pytest.raises(AuthError) as exc_info:
            await service.login_admin(CredentialsRequest(email=email, password=password))

        assert exc_info.value.message == "Invalid credentials"
        assert exc_info.value.status_code == 401


@pytest.mark.unit
class TestAdminManagement:
    """Test suite for listing and deleting admins."""

    @pytest.mark.asyncio
    async def test_list_newest_first(
        self, service: AuthService, admin_repository: InMemoryAdminRepository
    ) -> None:
        for index, day in enumerate([3, 1, 2]):
            admin_repository.save(
                Admin(
                    id=f"a{index}",
                    email=f"a{index}@example.com",
                    password_hash="x",
                    created_at=datetime(2024, 1, day, tzinfo=UTC),
                )
            )

        admins = await service.list_admins()

        assert [admin.id for admin in admins] == ["a0", "a2", "a1"]

    @pytest.mark.asyncio
    async def test_delete_admin(
        self, service: AuthService, admin_repository: InMemoryAdminRepository
    ) -> None:
        admin_repository.save(Admin(id="a1", email="a1@example.com", password_hash="x"))
        admin_repository.claim_email("a1@example.com", "a1")

        result = await service.delete_admin("a1")

        assert result == {"message": "Admin deleted"}
        assert admin_repository.admins == {}
        assert admin_repository.email_claims == {}

    @pytest.mark.asyncio
    async def test_delete_missing_admin(self, service: AuthService) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await service.delete_admin("ghost")

        assert exc_info.value.message == "Admin not found"


@pytest.mark.unit
class TestCustomerAccounts:
    """Test suite for storefront sign-up and login."""

    @pytest.mark.asyncio
    async def test_register_signs_customer_in(
        self,
        service: AuthService,
        customer_repository: InMemoryCustomerRepository,
        token_service: TokenService,
    ) -> None:
        result = await service.register_customer(
            CustomerRegistrationRequest(
                name="Jane Doe",
                email="Jane@Example.com",
                password="pa55word",
                phone="08012345678",
            )
        )

        assert result.message == "User registered successfully"
        assert result.user.email == "jane@example.com"
        assert result.user.phone == "08012345678"
        assert result.user.address is None
        claims = token_service.verify(result.token)
        assert claims.account_id == result.user.id
        assert claims.role == "customer"
        assert "passwordHash" not in result.model_dump(by_alias=True)["user"]
        assert result.user.id in customer_repository.customers

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fields",
        [
            {"email": "jane@example.com", "password": "x"},
            {"name": "Jane", "password": "x"},
            {"name": "Jane", "email": "jane@example.com"},
            {"name": "  ", "email": "jane@example.com", "password": "x"},
        ],
    )
    async def test_register_requires_fields(self, service: AuthService, fields: dict) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await service.register_customer(CustomerRegistrationRequest(**fields))

        assert exc_info.value.message == "Missing required fields"

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, service: AuthService) -> None:
        request = CustomerRegistrationRequest(name="Jane", email="jane@example.com", password="x")
        await service.register_customer(request)

        with pytest.raises(ValidationError) as exc_info:
            await service.register_customer(request)

        assert exc_info.value.message == "User already exists"

    @pytest.mark.asyncio
    async def test_register_loses_race_for_email(
        self, service: AuthService, customer_repository: InMemoryCustomerRepository
    ) -> None:
        customer_repository.claim_email("jane@example.com", "cust_elsewhere")
        request = CustomerRegistrationRequest(name="Jane", email="jane@example.com", password="x")

        with pytest.raises(ValidationError) as exc_info:
            await service.register_customer(request)

        assert exc_info.value.message == "User already exists"
        assert customer_repository.customers == {}

    @pytest.mark.asyncio
    async def test_login_returns_profile(
        self, service: AuthService, customer_repository: InMemoryCustomerRepository
    ) -> None:
        customer_repository.save(
            Customer(
                id="cust_1",
                name="Jane Doe",
                email="jane@example.com",
                password_hash=hash_password("pa55word"),
                address="12 Allen Avenue",
            )
        )

        session = await service.login_customer(
            CredentialsRequest(email="jane@example.com", password="pa55word")
        )

        assert session.user.id == "cust_1"
        assert session.user.address == "12 Allen Avenue"
        assert session.token

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, service: AuthService) -> None:
        await service.register_customer(
            CustomerRegistrationRequest(name="Jane", email="jane@example.com", password="right")
        )

        with pytest.raises(AuthError):
            await service.login_customer(
                CredentialsRequest(email="jane@example.com", password="wrong")
            )
