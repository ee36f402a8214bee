"""Account service for admins and storefront customers."""

import logging
import uuid

from food_ordering_service.auth.password_hasher import hash_password, verify_password
from food_ordering_service.auth.token_service import TokenService
from food_ordering_service.errors import AuthError, InternalError, NotFoundError, ValidationError
from food_ordering_service.models.account_models import (
    Admin,
    AdminRegistration,
    CredentialsRequest,
    Customer,
    CustomerRegistration,
    CustomerRegistrationRequest,
    CustomerSession,
    TokenResponse,
)
from food_ordering_service.repositories.account_repositories import (
    AdminRepository,
    CustomerRepository,
)

logger = logging.getLogger(__name__)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class AuthService:
    """Service for registering accounts and issuing bearer tokens.

    Login failures never reveal whether the email or the password was wrong.
    """

    def __init__(
        self,
        admin_repository: AdminRepository,
        customer_repository: CustomerRepository,
        token_service: TokenService,
    ) -> None:
        """Initialize the AuthService.

        Args:
            admin_repository: Repository for admin accounts
            customer_repository: Repository for customer accounts
            token_service: Issues signed bearer tokens
        """
        self.admin_repository = admin_repository
        self.customer_repository = customer_repository
        self.token_service = token_service

    async def register_admin(self, request: CredentialsRequest) -> AdminRegistration:
        """Register an admin account.

        Raises:
            ValidationError: If a credential is missing or the email is taken
            InternalError: If the account could not be stored
        """
        email = _normalize_email(request.email)
        if not email or not request.password:
            raise ValidationError("Missing credentials")

        if self.admin_repository.get_by_email(email) is not None:
            raise ValidationError("Admin already exists")

        admin = Admin(id=uuid.uuid4().hex, email=email, password_hash=hash_password(request.password))

        # Concurrent registrations can both pass the lookup; the claim decides
        if not self.admin_repository.claim_email(email, admin.id):
            raise ValidationError("Admin already exists")

        if not self.admin_repository.save(admin):
            self.admin_repository.release_email(email)
            raise InternalError("Failed to register admin")

        logger.info(f"Registered admin {admin.id}")
        return AdminRegistration(message="Admin registered successfully", id=admin.id)

    async def login_admin(self, request: CredentialsRequest) -> TokenResponse:
        """Exchange admin credentials for a token.

        Raises:
            AuthError: If the email is unknown or the password is wrong
        """
        email = _normalize_email(request.email)
        admin = self.admin_repository.get_by_email(email) if email else None

        if admin is None or not verify_password(request.password or "", admin.password_hash):
            logger.info("Rejected admin login")
            raise AuthError("Invalid credentials")

        return TokenResponse(token=self.token_service.issue_admin_token(admin.id, admin.email))

    async def register_customer(self, request: CustomerRegistrationRequest) -> CustomerRegistration:
        """Register a storefront customer and sign them in.

        Raises:
            ValidationError: If name, email or password is missing, or the email is taken
            InternalError: If the account could not be stored
        """
        email = _normalize_email(request.email)
        name = (request.name or "").strip()
        if not email or not request.password or not name:
            raise ValidationError("Missing required fields")

        if self.customer_repository.get_by_email(email) is not None:
            raise ValidationError("User already exists")

        customer = Customer(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            password_hash=hash_password(request.password),
            phone=request.phone or None,
            address=request.address or None,
        )

        if not self.customer_repository.claim_email(email, customer.id):
            raise ValidationError("User already exists")

        if not self.customer_repository.save(customer):
            self.customer_repository.release_email(email)
            raise InternalError("Failed to register user")

        logger.info(f"Registered customer {customer.id}")
        return CustomerRegistration(
            message="User registered successfully",
            token=self.token_service.issue_customer_token(customer.id, customer.email),
            user=customer.to_profile(),
        )

    async def login_customer(self, request: CredentialsRequest) -> CustomerSession:
        """Exchange customer credentials for a token and profile.

        Raises:
            AuthError: If the email is unknown or the password is wrong
        """
        email = _normalize_email(request.email)
        customer = self.customer_repository.get_by_email(email) if email else None

        if customer is None or not verify_password(request.password or "", customer.password_hash):
            logger.info("Rejected customer login")
            raise AuthError("Invalid credentials")

        return CustomerSession(
            token=self.token_service.issue_customer_token(customer.id, customer.email),
            user=customer.to_profile(),
        )

    async def list_admins(self) -> list[Admin]:
        """List admin accounts, newest first."""
        admins = self.admin_repository.list_all()
        return sorted(admins, key=lambda admin: admin.created_at, reverse=True)

    async def delete_admin(self, admin_id: str) -> dict[str, str]:
        """Delete an admin account.

        Raises:
            NotFoundError: If the admin does not exist
            InternalError: If the delete failed
        """
        admin = self.admin_repository.get_by_id(admin_id)
        if admin is None:
            raise NotFoundError("Admin not found")

        if not self.admin_repository.delete(admin_id):
            raise InternalError("Failed to delete admin")

        if not self.admin_repository.release_email(admin.email):
            logger.warning(f"Email claim for deleted admin {admin_id} was not released")

        logger.info(f"Deleted admin {admin_id}")
        return {"message": "Admin deleted"}
