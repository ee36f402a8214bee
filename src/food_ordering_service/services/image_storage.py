"""S3 storage for menu item images.

The API never handles image bytes. It hands out a presigned PUT URL and the
browser uploads straight to the bucket.
"""

import logging
import time
from urllib.parse import unquote, urlparse

from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_s3.client import S3Client

from food_ordering_service.models.menu_models import ImageUpload

logger = logging.getLogger(__name__)


class ImageStorage:
    """Issues upload handshakes and removes stored images."""

    def __init__(
        self,
        s3_client: S3Client,
        bucket_name: str,
        region: str,
        expiry_seconds: int = 300,
    ) -> None:
        """Initialize image storage.

        Args:
            s3_client: Boto3 S3 client
            bucket_name: Bucket holding menu images
            region: Bucket region, used to build public object URLs
            expiry_seconds: Lifetime of presigned upload URLs
        """
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.region = region
        self.expiry_seconds = expiry_seconds

    @property
    def public_host(self) -> str:
        return f"{self.bucket_name}.s3.{self.region}.amazonaws.com"

    def object_url(self, key: str) -> str:
        return f"https://{self.public_host}/{key}"

    def create_upload(self, item_id: str, file_name: str, file_type: str) -> ImageUpload:
        """Create a presigned PUT handshake for a menu item image.

        Args:
            item_id: Menu item the image belongs to
            file_name: Original file name chosen by the admin
            file_type: MIME type the browser will upload with

        Returns:
            ImageUpload with the presigned URL, object key and public URL
        """
        key = f"menu/{item_id}-{int(time.time() * 1000)}-{file_name}"

        upload_url = self.s3_client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket_name, "Key": key, "ContentType": file_type},
            ExpiresIn=self.expiry_seconds,
        )

        return ImageUpload(upload_url=upload_url, upload_key=key, image_url=self.object_url(key))

    def key_from_url(self, image_url: str) -> str | None:
        """Recover the object key from a public URL in this bucket.

        Returns:
            The object key, or None for URLs that point elsewhere
        """
        parsed = urlparse(image_url)
        if parsed.netloc != self.public_host:
            return None

        key = unquote(parsed.path.lstrip("/"))
        return key or None

    def delete_image(self, image_url: str) -> bool:
        """Delete a stored image.

        Args:
            image_url: Public URL of the image

        Returns:
            bool: True if the object was deleted, False otherwise
        """
        key = self.key_from_url(image_url)
        if key is None:
            logger.warning(f"Image URL is not in bucket {self.bucket_name}: {image_url}")
            return False

        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            logger.info(f"Deleted image {key}")
            return True

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete image {key}: {e}")
            return False
