"""Shared S3/R2 client helper."""

from __future__ import annotations

from taskapi.app.config import Settings


def get_bucket_name(settings: Settings) -> str:
    if not settings.r2_bucket_name:
        raise RuntimeError("R2_BUCKET_NAME is not configured")
    return settings.r2_bucket_name


def get_s3_client(settings: Settings):
    if not (settings.r2_endpoint and settings.r2_access_key and settings.r2_secret_key):
        raise RuntimeError("R2 S3 client is not configured")
    import boto3  # noqa: PLC0415

    return boto3.client(
        "s3",
        endpoint_url=settings.r2_endpoint,
        aws_access_key_id=settings.r2_access_key,
        aws_secret_access_key=settings.r2_secret_key,
        region_name="auto",
    )
