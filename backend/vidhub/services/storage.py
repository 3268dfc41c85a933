from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException

from vidhub.core.config import Settings

logger = logging.getLogger(__name__)

VIDEO = "video"
THUMBNAIL = "thumbnail"
AVATAR = "avatar"

ALLOWED_CONTENT_TYPES: dict[str, set[str]] = {
    VIDEO: {"video/mp4", "video/mpeg"},
    THUMBNAIL: {"image/jpeg", "image/png"},
    AVATAR: {"image/jpeg", "image/png"},
}


@dataclass(frozen=True)
class PresignUploadResult:
    key: str
    upload_url: str
    public_url: str


def _client(settings: Settings):
    return boto3.client("s3", region_name=settings.AWS_REGION or None)


def max_bytes_for(settings: Settings, kind: str) -> int:
    return settings.MAX_VIDEO_BYTES if kind == VIDEO else settings.MAX_THUMBNAIL_BYTES


def validate_upload(settings: Settings, kind: str, content_type: str, size_bytes: int) -> None:
    allowed = ALLOWED_CONTENT_TYPES.get(kind)
    if allowed is None:
        raise HTTPException(status_code=400, detail=f"Invalid upload kind: {kind}")
    if (content_type or "").strip().lower() not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported content type for {kind}. Allowed: {', '.join(sorted(allowed))}",
        )
    limit = max_bytes_for(settings, kind)
    if size_bytes > limit:
        max_mb = limit / (1024 * 1024)
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Max allowed size is {max_mb:.1f} MB.",
        )


def user_prefix(settings: Settings, user_id: int) -> str:
    return f"{settings.S3_PREFIX}/users/{user_id}/"


def build_key(settings: Settings, user_id: int, kind: str, filename: str) -> str:
    safe_name = filename.replace("/", "_").replace("\\", "_").strip() or "upload"
    return f"{user_prefix(settings, user_id)}{kind}/{uuid.uuid4()}_{safe_name}"


def key_belongs_to(settings: Settings, user_id: int, key: str, kind: str | None = None) -> bool:
    key = (key or "").strip()
    if ".." in key:
        return False
    prefix = user_prefix(settings, user_id)
    if kind:
        prefix = f"{prefix}{kind}/"
    return key.startswith(prefix) and len(key) > len(prefix)


def public_url(settings: Settings, key: str) -> str:
    if settings.MEDIA_BASE_URL:
        return f"{settings.MEDIA_BASE_URL}/{key}"
    region = settings.AWS_REGION or "us-east-1"
    return f"https://{settings.S3_BUCKET_NAME}.s3.{region}.amazonaws.com/{key}"


def presign_upload(
    settings: Settings,
    *,
    user_id: int,
    kind: str,
    filename: str,
    content_type: str,
) -> PresignUploadResult:
    s3 = _client(settings)
    key = build_key(settings, user_id, kind, filename)

    url = s3.generate_presigned_url(
        ClientMethod="put_object",
        Params={"Bucket": settings.S3_BUCKET_NAME, "Key": key, "ContentType": content_type},
        ExpiresIn=60 * 10,  # 10 minutes
    )

    return PresignUploadResult(key=key, upload_url=url, public_url=public_url(settings, key))


def delete_object(settings: Settings, key: str) -> None:
    s3 = _client(settings)
    s3.delete_object(Bucket=settings.S3_BUCKET_NAME, Key=key)


def delete_objects_quietly(settings: Settings, keys: Iterable[str | None]) -> int:
    """
    Best-effort cleanup after the DB side has been committed.
    Failures are logged and counted, never raised.
    """
    failed = 0
    for key in keys:
        if not key:
            continue
        try:
            delete_object(settings, key)
        except (BotoCoreError, ClientError):
            failed += 1
            logger.exception("Storage cleanup failed: key=%s", key)
    return failed


def key_from_public_url(settings: Settings, url: str | None) -> str | None:
    base = public_url(settings, "")
    if not url or not url.startswith(base):
        return None
    return url[len(base):] or None
