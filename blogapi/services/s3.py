import logging
from typing import List, Optional
import boto3
from botocore.exceptions import ClientError
from blogapi.core.config import Settings, settings as default_settings
from blogapi.core.errors import StorageError

logger = logging.getLogger(__name__)

# DeleteObjects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


class S3Service:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=self.settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=self.settings.AWS_SECRET_ACCESS_KEY or None,
            region_name=self.settings.AWS_REGION,
            endpoint_url=self.settings.S3_ENDPOINT_URL or None,
        )
        self.bucket_name = self.settings.S3_BUCKET
        self.key_prefix = self.settings.S3_KEY_PREFIX.strip("/")

    def object_key(self, key: str) -> str:
        """Full S3 key for a generated file name."""
        key = key.lstrip("/")
        return f"{self.key_prefix}/{key}" if self.key_prefix else key

    def get_signed_upload_url(self, content_type: str, key: str) -> str:
        """
        Get a time-limited URL the browser can PUT the file to directly.

        Args:
            content_type: MIME type the upload must be sent with
            key: Generated file name (without the bucket prefix)

        Returns:
            Presigned URL valid for SIGNED_URL_EXPIRATION seconds
        """
        try:
            return self.s3_client.generate_presigned_url(
                'put_object',
                Params={
                    'Bucket': self.bucket_name,
                    'Key': self.object_key(key),
                    'ContentType': content_type,
                },
                ExpiresIn=self.settings.SIGNED_URL_EXPIRATION,
            )
        except ClientError as e:
            logger.error(f"Error signing upload URL for {key}: {e}")
            raise StorageError("Failed to create upload URL") from e

    def get_signed_download_url(self, key: str) -> str:
        try:
            return self.s3_client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket_name, 'Key': self.object_key(key)},
                ExpiresIn=self.settings.SIGNED_URL_EXPIRATION,
            )
        except ClientError as e:
            logger.error(f"Error signing download URL for {key}: {e}")
            raise StorageError("Failed to create download URL") from e

    def delete_objects(self, keys: List[str]) -> int:
        """
        Delete a batch of files from S3.

        Args:
            keys: Generated file names (without the bucket prefix)

        Returns:
            Number of keys deleted
        """
        if not keys:
            return 0

        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start:start + DELETE_BATCH_SIZE]
            try:
                response = self.s3_client.delete_objects(
                    Bucket=self.bucket_name,
                    Delete={'Objects': [{'Key': self.object_key(key)} for key in batch]},
                )
            except ClientError as e:
                logger.error(f"Error deleting from S3: {e}")
                raise StorageError("Failed to delete objects") from e

            errors = response.get('Errors', [])
            if errors:
                failed = ", ".join(error['Key'] for error in errors)
                logger.error(f"S3 refused to delete: {failed}")
                raise StorageError(f"Failed to delete {len(errors)} object(s)")

        logger.info(f"Deleted {len(keys)} object(s) from {self.bucket_name}")
        return len(keys)

    def get_public_url(self, key: str) -> str:
        return f"{self.settings.S3_BASE_URL}/{self.object_key(key)}"
