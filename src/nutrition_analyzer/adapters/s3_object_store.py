"""S3-backed object store with pre-signed GET links."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import boto3
from botocore.config import Config

from nutrition_analyzer.domain.storage import SignedUrl
from nutrition_analyzer.services.uploads import ObjectStore


@dataclass
class S3ObjectStore(ObjectStore):
    """Object store writing private objects to a single S3 bucket."""

    client: Any
    bucket: str

    @classmethod
    def create(
        cls,
        bucket: str,
        region: str | None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
    ) -> "S3ObjectStore":
        """Create an S3 store; pre-signed URLs use SigV4."""
        client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(signature_version="s3v4"),
        )
        return cls(client=client, bucket=bucket)

    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload bytes without an ACL so the bucket default (private) applies."""
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )

    def sign_get(self, key: str, ttl_seconds: int) -> SignedUrl:
        """Return a pre-signed GET URL valid for ttl_seconds."""
        issued_at = datetime.now(tz=UTC)
        url = self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=ttl_seconds,
        )
        return SignedUrl(url=url, expires_at=issued_at + timedelta(seconds=ttl_seconds))

    def close(self) -> None:
        """Release pooled connections."""
        self.client.close()
