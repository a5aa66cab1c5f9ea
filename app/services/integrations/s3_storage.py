"""AWS S3 helper service.

This module provides a thin wrapper around aioboto3 S3 operations for uploading
and listing finalized recordings.

Usage:
    from app.services.integrations.s3_storage import s3_service

    # Upload a finalized recording
    url = await s3_service.upload_recording(
        filename="recording_abc_1700000000000.webm",
        content=b"...",
        content_type="video/webm",
    )

    # List recordings, newest first
    objects = await s3_service.list_recordings(limit=50)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import BinaryIO

import aioboto3
from botocore.exceptions import ClientError
from loguru import logger
from pydantic import BaseModel

from app.app_config import get_app_environ_config
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class S3RecordingObject(BaseModel):
    """Subset of S3 object metadata needed by the recording catalog."""

    key: str
    filename: str
    size: int
    last_modified: datetime | None = None


class S3Service:
    """Service wrapper for AWS S3 operations on the recordings bucket."""

    def __init__(self) -> None:
        self._session = None
        self._bucket_name = None
        logger.info("S3Service initialized")

    def _get_session(self) -> aioboto3.Session:
        """Get or create aioboto3 session."""
        if self._session is None:
            cfg = get_app_environ_config()

            if not cfg.AWS_ACCESS_KEY_ID or not cfg.AWS_SECRET_ACCESS_KEY:
                raise AppError(
                    errcode=AppErrorCode.E_STORAGE_NOT_CONFIGURED,
                    error="AWS credentials not configured",
                    status_code=HttpStatusCode.INTERNAL_ERROR,
                )

            self._session = aioboto3.Session(
                aws_access_key_id=cfg.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=cfg.AWS_SECRET_ACCESS_KEY,
                region_name=cfg.AWS_REGION,
            )
            logger.info(f"S3 session created for region: {cfg.AWS_REGION}")

        return self._session

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator:  # type: ignore[misc]
        """Get async S3 client context manager."""
        session = self._get_session()
        async with session.client("s3") as client:  # type: ignore[attr-defined]
            yield client

    def _get_bucket_name(self) -> str:
        """Get S3 bucket name from config."""
        if self._bucket_name is None:
            self._bucket_name = get_app_environ_config().S3_RECORDINGS_BUCKET
            if not self._bucket_name:
                raise AppError(
                    errcode=AppErrorCode.E_STORAGE_NOT_CONFIGURED,
                    error="S3_RECORDINGS_BUCKET not configured",
                    status_code=HttpStatusCode.INTERNAL_ERROR,
                )
        return self._bucket_name

    def _get_prefix(self) -> str:
        return get_app_environ_config().S3_RECORDINGS_PREFIX

    def _get_object_key(self, filename: str) -> str:
        """Generate S3 object key for a recording.

        Args:
            filename: Recording file name (e.g., "recording_abc_1700000000000.webm")

        Returns:
            S3 object key (e.g., "live_recordings/recording_abc_1700000000000.webm")
        """
        return f"{self._get_prefix()}/{filename}"

    def get_recording_url(self, filename: str) -> str:
        """Generate public URL for a recording object."""
        bucket = self._get_bucket_name()
        key = self._get_object_key(filename)
        region = get_app_environ_config().AWS_REGION

        return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"

    async def upload_recording(
        self,
        filename: str,
        content: bytes | BinaryIO,
        content_type: str = "video/webm",
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Upload a finalized recording to S3.

        Args:
            filename: Recording file name
            content: Assembled media as bytes or file-like object
            content_type: MIME type (default: "video/webm")
            metadata: Additional metadata to store with the object

        Returns:
            Public URL of the uploaded object

        Raises:
            ClientError: If upload fails
        """
        bucket = self._get_bucket_name()
        key = self._get_object_key(filename)

        extra_args = {"ContentType": content_type}
        if metadata:
            extra_args["Metadata"] = metadata  # type: ignore[assignment]

        try:
            async with self._get_client() as client:
                if isinstance(content, bytes):
                    await client.put_object(
                        Bucket=bucket,
                        Key=key,
                        Body=content,
                        **extra_args,
                    )
                else:
                    await client.upload_fileobj(
                        content,
                        bucket,
                        key,
                        ExtraArgs=extra_args,
                    )

            url = self.get_recording_url(filename)
            logger.info(f"Uploaded recording: {key} -> {url}")
            return url

        except ClientError as e:
            logger.error(f"Failed to upload recording {key}: {e}")
            raise

    async def list_recordings(self, limit: int = 50) -> list[S3RecordingObject]:
        """List recording objects under the recordings prefix, newest first.

        Args:
            limit: Maximum number of objects returned

        Returns:
            Recording objects sorted by LastModified descending

        Raises:
            ClientError: If the listing request fails
        """
        bucket = self._get_bucket_name()
        prefix = self._get_object_key("")

        objects: list[S3RecordingObject] = []
        async with self._get_client() as client:
            kwargs = {"Bucket": bucket, "Prefix": prefix}
            while True:
                response = await client.list_objects_v2(**kwargs)
                for obj in response.get("Contents", []):
                    key = obj["Key"]
                    filename = key.rsplit("/", 1)[-1]
                    if not filename:
                        continue
                    objects.append(
                        S3RecordingObject(
                            key=key,
                            filename=filename,
                            size=obj.get("Size", 0),
                            last_modified=obj.get("LastModified"),
                        )
                    )
                if not response.get("IsTruncated"):
                    break
                kwargs["ContinuationToken"] = response["NextContinuationToken"]

        objects.sort(
            key=lambda o: o.last_modified.timestamp() if o.last_modified else 0.0,
            reverse=True,
        )
        return objects[:limit]

    async def recording_exists(self, filename: str) -> bool:
        """Check if a recording object exists in S3."""
        bucket = self._get_bucket_name()
        key = self._get_object_key(filename)

        try:
            async with self._get_client() as client:
                await client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError:
            return False


# Singleton instance
s3_service = S3Service()
