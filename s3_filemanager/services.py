from __future__ import annotations
"""Synchronous boto3 access to a single S3-compatible bucket."""
import threading
from typing import Callable

import boto3
from botocore.client import Config

from .models import ObjectRecord

PAGE_SIZE = 1000


class S3BucketService:
    """Lists, signs and deletes objects in one bucket.

    All methods block; :class:`~s3_filemanager.backends.BucketBackend` runs
    them off the event loop.
    """

    def __init__(
        self,
        *,
        endpoint_url: str,
        bucket_name: str,
        access_key: str,
        secret_key: str,
        region: str | None = None,
        client_factory: Callable[..., object] | None = None,
    ):
        self._bucket_name = bucket_name
        self._client_factory = client_factory or boto3.client
        self._client_params = {
            "endpoint_url": endpoint_url or None,
            "aws_access_key_id": access_key,
            "aws_secret_access_key": secret_key,
            "region_name": region or None,
        }
        self._client = None
        self._client_lock = threading.Lock()

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def list_objects(self, *, prefix: str = "", page_size: int = PAGE_SIZE) -> list[ObjectRecord]:
        """Return every object under ``prefix``, following continuation tokens."""

        client = self._get_client()
        records: list[ObjectRecord] = []
        request_token: str | None = None
        while True:
            list_params = {"Bucket": self._bucket_name, "MaxKeys": page_size}
            if prefix:
                list_params["Prefix"] = prefix
            if request_token:
                list_params["ContinuationToken"] = request_token

            response = client.list_objects_v2(**list_params)
            for obj in response.get("Contents", []):
                key = obj.get("Key")
                if not key:
                    continue
                records.append(
                    ObjectRecord(
                        key=key,
                        size=int(obj.get("Size") or 0),
                        last_modified=obj.get("LastModified"),
                    )
                )

            request_token = response.get("NextContinuationToken")
            if not response.get("IsTruncated") or not request_token:
                break
        return records

    def delete_object(self, *, key: str) -> None:
        client = self._get_client()
        client.delete_object(Bucket=self._bucket_name, Key=key)

    def generate_presigned_url(
        self,
        *,
        key: str,
        method: str = "get",
        expires_in: int = 3600,
        content_type: str | None = None,
        content_disposition: str | None = None,
    ) -> str:
        """Create a presigned URL for the requested object operation."""

        operation = method.strip().lower()
        if operation not in {"get", "put"}:
            raise ValueError("method must be either 'get' or 'put'")
        if expires_in <= 0:
            raise ValueError("expires_in must be greater than zero")

        client_method = "get_object" if operation == "get" else "put_object"
        params: dict[str, str] = {"Bucket": self._bucket_name, "Key": key}
        if operation == "get":
            if content_type:
                params["ResponseContentType"] = content_type
            if content_disposition:
                params["ResponseContentDisposition"] = content_disposition
        elif content_type:
            params["ContentType"] = content_type

        client = self._get_client()
        return client.generate_presigned_url(
            client_method,
            Params=params,
            ExpiresIn=expires_in,
        )

    def _get_client(self):
        with self._client_lock:
            if self._client is None:
                config = Config(signature_version="s3v4", s3={"addressing_style": "path"})
                params = {name: value for name, value in self._client_params.items() if value is not None}
                self._client = self._client_factory("s3", config=config, **params)
            return self._client
