"""Tests for the S3 object store adapter."""

from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlparse

import boto3
from botocore.config import Config
from botocore.stub import ANY, Stubber

from nutrition_analyzer.adapters.s3_object_store import S3ObjectStore


def _client():  # type: ignore[no-untyped-def]
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="AKIDEXAMPLE",
        aws_secret_access_key="secret",
        config=Config(signature_version="s3v4"),
    )


def test_put_writes_private_object_with_content_type() -> None:
    client = _client()
    store = S3ObjectStore(client=client, bucket="food-analyses-images")

    with Stubber(client) as stubber:
        stubber.add_response(
            "put_object",
            {"ETag": '"etag"'},
            {
                "Bucket": "food-analyses-images",
                "Key": "abc.jpg",
                "Body": ANY,
                "ContentType": "image/jpeg",
            },
        )
        store.put("abc.jpg", b"image-bytes", "image/jpeg")
        stubber.assert_no_pending_responses()


def test_sign_get_returns_sigv4_url_with_expiry() -> None:
    store = S3ObjectStore(client=_client(), bucket="food-analyses-images")
    before = datetime.now(tz=UTC)

    signed = store.sign_get("abc.jpg", 3600)

    parsed = urlparse(signed.url)
    query = parse_qs(parsed.query)
    assert parsed.path.endswith("abc.jpg")
    assert "X-Amz-Signature" in query
    assert query["X-Amz-Expires"] == ["3600"]
    assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
    assert before + timedelta(seconds=3599) <= signed.expires_at
    assert signed.expires_at <= datetime.now(tz=UTC) + timedelta(seconds=3600)


def test_create_builds_client_for_bucket() -> None:
    store = S3ObjectStore.create(
        bucket="meals",
        region="eu-west-1",
        access_key_id="AKIDEXAMPLE",
        secret_access_key="secret",
    )

    assert store.bucket == "meals"
    assert store.client.meta.region_name == "eu-west-1"
    store.close()
