# recipeshare/app/infra/storage/r2_provider.py
"""
Recipe image storage on Cloudflare R2 (S3 API through boto3).
"""
from __future__ import annotations

import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from recipeshare.app.domain.errors import StorageError, StorageUploadError
from recipeshare.app.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)

# SigV4 pre-signed URLs cannot outlive seven days
MAX_PRESIGNED_SECONDS = 7 * 24 * 3600


class R2StorageProvider(StorageProvider):
    """
    When `public_url` is set (a public bucket or custom domain) durable URLs
    are plain links; otherwise they are pre-signed GET URLs.
    """

    def __init__(
        self,
        account_id: Optional[str],
        access_key_id: Optional[str],
        secret_access_key: Optional[str],
        bucket_name: Optional[str],
        public_url: Optional[str] = None,
        client=None,
    ):
        if not all([account_id, access_key_id, secret_access_key, bucket_name]):
            raise StorageError(
                "Missing R2 configuration. Required: R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, "
                "R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME"
            )

        self.bucket_name = bucket_name
        self.public_url = public_url.rstrip("/") if public_url else None
        self.endpoint_url = f"https://{account_id}.r2.cloudflarestorage.com"

        self._client = client or boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            ),
            region_name="auto",  # R2 uses 'auto' as region
        )

        logger.info(
            "R2StorageProvider initialized: bucket=%s, endpoint=%s",
            self.bucket_name,
            self.endpoint_url,
        )

    def upload_bytes(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
    ) -> None:
        """Upload an object to R2."""
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=object_key,
                Body=data,
                ContentType=content_type,
            )
            logger.info("Uploaded to R2: key=%s, size=%d bytes", object_key, len(data))
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to upload to R2: %s", e)
            raise StorageUploadError(object_key, str(e)) from e

    def durable_url(self, object_key: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{object_key}"

        try:
            url = self._client.generate_presigned_url(
                ClientMethod="get_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": object_key,
                },
                ExpiresIn=MAX_PRESIGNED_SECONDS,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to generate signed GET URL: %s", e)
            raise StorageError(f"Failed to generate download URL: {e}") from e

        logger.warning(
            "R2_PUBLIC_URL not set; image URL for key=%s expires in %d days",
            object_key,
            MAX_PRESIGNED_SECONDS // 86400,
        )
        return url
