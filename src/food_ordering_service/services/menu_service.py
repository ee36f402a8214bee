"""Menu catalog service for the storefront and admin portal."""

import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from food_ordering_service.errors import InternalError, NotFoundError, ValidationError
from food_ordering_service.models.menu_models import (
    BulkImportResult,
    ImageUpload,
    MenuItem,
    MenuItemCreate,
    MenuItemUpdate,
    MenuItemWithUpload,
)
from food_ordering_service.observability.decorators import traced
from food_ordering_service.observability.metrics import record_image_cleanup_failure
from food_ordering_service.repositories.menu_repository import MenuRepository
from food_ordering_service.services.image_storage import ImageStorage

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_IMAGE_TYPE = "application/octet-stream"


class MenuService:
    """Service for browsing and maintaining the menu catalog.

    Stock changes made by orders do not go through this service; they belong
    to the InventoryReservationEngine. Admin edits here may still set stock
    and availability directly.
    """

    def __init__(self, menu_repository: MenuRepository, image_storage: ImageStorage) -> None:
        """Initialize the MenuService.

        Args:
            menu_repository: Repository for menu items
            image_storage: S3 storage for item images
        """
        self.menu_repository = menu_repository
        self.image_storage = image_storage

    async def list_items(
        self,
        category: str | None = None,
        search: str | None = None,
        available: str | None = None,
    ) -> list[MenuItem]:
        """List menu items, newest first.

        Args:
            category: Exact category match
            search: Case-insensitive substring of the item name
            available: "true" or "false" to filter on availability; other
                values are ignored

        Returns:
            Matching menu items
        """
        items = self.menu_repository.list_items()

        if category:
            items = [item for item in items if item.category == category]

        if search:
            needle = search.lower()
            items = [item for item in items if needle in item.name.lower()]

        if available is not None and available.lower() in ("true", "false"):
            wanted = available.lower() == "true"
            items = [item for item in items if item.is_available == wanted]

        return sorted(items, key=lambda item: item.created_at, reverse=True)

    @traced("create_menu_item")
    async def create_item(self, payload: MenuItemCreate) -> MenuItemWithUpload:
        """Create a menu item, with an image-upload handshake when a file is named.

        Args:
            payload: Validated item fields

        Returns:
            The stored item plus the presigned upload URL and key, or nulls
            when no file was given

        Raises:
            InternalError: If the item could not be stored
        """
        item_id = uuid.uuid4().hex

        upload: ImageUpload | None = None
        if payload.file_name:
            upload = self.image_storage.create_upload(
                item_id, payload.file_name, payload.file_type or DEFAULT_IMAGE_TYPE
            )

        item = MenuItem(
            id=item_id,
            name=payload.name,
            description=payload.description,
            price=payload.price,
            category=payload.category,
            stock=payload.stock,
            is_available=payload.is_available,
            image_url=upload.image_url if upload else None,
        )

        if not self.menu_repository.save_item(item):
            raise InternalError("Failed to create menu item")

        logger.info(f"Created menu item {item.id} ({item.name})")
        return MenuItemWithUpload(
            item=item,
            presigned_upload_url=upload.upload_url if upload else None,
            upload_key=upload.upload_key if upload else None,
        )

    @traced("update_menu_item")
    async def update_item(
        self, item_id: str, patch: MenuItemUpdate
    ) -> tuple[MenuItem, ImageUpload | None]:
        """Apply a partial update to a menu item.

        When the patch names a new file and type, a fresh upload handshake is
        issued and ``image_url`` points at the new object. The old object is
        left in the bucket.

        Args:
            item_id: Item to update
            patch: Fields to change

        Returns:
            The updated item and the upload handshake, if one was issued

        Raises:
            NotFoundError: If the item does not exist
        """
        changes = patch.changed_attributes()

        upload: ImageUpload | None = None
        if patch.wants_new_image:
            if self.menu_repository.get_item(item_id) is None:
                raise NotFoundError("Item not found")
            upload = self.image_storage.create_upload(
                item_id, patch.file_name or "", patch.file_type or DEFAULT_IMAGE_TYPE
            )
            changes["image_url"] = upload.image_url

        updated = self.menu_repository.update_item(item_id, changes)
        if updated is None:
            raise NotFoundError("Item not found")

        logger.info(f"Updated menu item {item_id}: {', '.join(sorted(changes)) or 'no changes'}")
        return updated, upload

    @traced("delete_menu_item")
    async def delete_item(self, item_id: str) -> dict[str, str]:
        """Delete a menu item and, best-effort, its stored image.

        Raises:
            NotFoundError: If the item does not exist
            InternalError: If the record could not be deleted
        """
        item = self.menu_repository.get_item(item_id)
        if item is None:
            raise NotFoundError("Item not found")

        if item.image_url and not self.image_storage.delete_image(item.image_url):
            logger.warning(f"Image for menu item {item_id} was left in storage")
            record_image_cleanup_failure()

        if not self.menu_repository.delete_item(item_id):
            raise InternalError("Failed to delete menu item")

        logger.info(f"Deleted menu item {item_id}")
        return {"message": "Item deleted"}

    @traced("bulk_import_menu")
    async def bulk_import(self, payload: Any) -> BulkImportResult:
        """Import many menu items at once.

        Entries without a name or a positive numeric price are skipped.

        Args:
            payload: Raw JSON body, expected to be a list of item objects

        Returns:
            BulkImportResult with the stored items

        Raises:
            ValidationError: If the payload is not a non-empty list, or no entry
                is valid
            InternalError: If the batch write failed
        """
        if not isinstance(payload, list) or not payload:
            raise ValidationError("Invalid input: Expected an array of items")

        items = [item for item in map(self._normalize_entry, payload) if item is not None]
        if not items:
            raise ValidationError("No valid items found to insert")

        skipped = len(payload) - len(items)
        if skipped:
            logger.warning(f"Bulk import skipped {skipped} invalid entr{'y' if skipped == 1 else 'ies'}")

        if not self.menu_repository.save_items(items):
            raise InternalError("Failed to import menu items")

        logger.info(f"Bulk imported {len(items)} menu items")
        return BulkImportResult(message="Bulk import successful", count=len(items), items=items)

    @staticmethod
    def _normalize_entry(entry: Any) -> MenuItem | None:
        if not isinstance(entry, dict):
            return None

        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            return None

        raw_price = entry.get("price")
        if isinstance(raw_price, bool) or raw_price is None:
            return None
        try:
            price = Decimal(str(raw_price).strip())
        except InvalidOperation:
            return None
        if not price.is_finite() or price <= 0:
            return None

        try:
            return MenuItem(
                id=uuid.uuid4().hex,
                name=name.strip(),
                description=entry.get("description") or "",
                price=price,
                category=entry.get("category") or DEFAULT_CATEGORY,
                image_url=entry.get("imageUrl") or None,
                stock=entry.get("stock") or 0,
                is_available=entry.get("isAvailable", True),
            )
        except PydanticValidationError:
            return None
