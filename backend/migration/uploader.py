"""
Object store uploader (S3-compatible, via boto3).
"""

from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from migration.errors import UploadError

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def build_s3_client(
    region: str,
    access_key_id: str,
    access_key_secret: str,
    endpoint_url: str = "",
) -> Any:
    """Create a boto3 S3 client; endpoint_url targets S3-compatible stores."""
    return boto3.client(
        "s3",
        region_name=region,
        aws_access_key_id=access_key_id,
        aws_secret_access_key=access_key_secret,
        endpoint_url=endpoint_url or None,
    )


class ObjectStoreUploader:
    """
    Stores migrated images under their derived key.

    Args:
        client: boto3 S3 client
        bucket: Target bucket
        domain: Public domain objects are served from
    """

    def __init__(self, client: Any, bucket: str, domain: str):
        self.client = client
        self.bucket = bucket
        self.domain = domain.rstrip("/")

    def public_url(self, key: str) -> str:
        """Reference written back to the record: <domain>/<key>"""
        return f"{self.domain}/{key}"

    def upload(self, key: str, body: bytes, content_type: Optional[str] = None) -> str:
        """
        Upload bytes to the bucket.

        Returns:
            Public URL of the stored object

        Raises:
            UploadError: If the store rejects the write
        """
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type or DEFAULT_CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f"upload_failed: {e}") from e
        return self.public_url(key)
