import os

import boto3
from botocore.client import Config

R2_BUCKET = os.environ.get("R2_BUCKET", "")
R2_ENDPOINT = os.environ.get("R2_ENDPOINT", "")
R2_REGION = os.environ.get("R2_REGION", "auto")
R2_CDN_BASE = os.environ.get("R2_CDN_BASE", "").rstrip("/")


def r2_enabled() -> bool:
    return bool(R2_BUCKET)


def r2_client():
    return boto3.client(
        "s3",
        endpoint_url=R2_ENDPOINT or None,
        aws_access_key_id=os.environ.get("R2_ACCESS_KEY_ID"),
        aws_secret_access_key=os.environ.get("R2_SECRET_ACCESS_KEY"),
        region_name=R2_REGION,
        config=Config(signature_version="s3v4"),
    )


def object_url(key: str) -> str:
    if R2_CDN_BASE:
        return f"{R2_CDN_BASE}/{key}"
    base = R2_ENDPOINT.rstrip("/")
    return f"{base}/{R2_BUCKET}/{key}"


def put_object(key: str, data: bytes, content_type: str) -> str:
    r2_client().put_object(Bucket=R2_BUCKET, Key=key, Body=data, ContentType=content_type)
    return object_url(key)
