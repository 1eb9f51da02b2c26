"""
Interact with S3-compatible object storage (e.g., AWS S3, MinIO, SeaweedFS, Cloudflare R2).

The object store only knows a flat namespace of keys. Everything folder-like is built on top
of the prefix/delimiter listing exposed here.
"""

from datetime import datetime
from typing import AsyncIterable, Optional

from botocore.exceptions import ClientError
from types_aiobotocore_s3.client import S3Client
from types_aiobotocore_s3.type_defs import ListObjectsV2RequestTypeDef
from typing_extensions import TypedDict

DELIMITER = "/"


class InvalidPathError(ValueError):
    """Raised when a required path is missing, before anything is sent to the object store."""


class StoredObject(TypedDict):
    key: str
    size: int
    last_modified: datetime | None


class StoreListing(TypedDict):
    contents: list[StoredObject]
    common_prefixes: list[str]
    next_token: str
    truncated: bool


class ObjectStore:
    """
    Uniform interface over a single bucket: put, get, delete, list and presign.

    Backend errors (ClientError, BotoCoreError) are never caught here, callers decide what to do with them.
    """

    def __init__(self, client: S3Client, bucket: str):
        self.client = client
        self.bucket = bucket

    async def ensure_bucket(self) -> str:
        try:
            await self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            error = e.response.get("Error", {})
            if error.get("Code") in ("404", "NoSuchBucket"):
                await self.client.create_bucket(Bucket=self.bucket)
            else:
                raise
        return self.bucket

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        if content_type:
            await self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        else:
            await self.client.put_object(Bucket=self.bucket, Key=key, Body=data)

    async def get(self, key: str) -> bytes:
        res = await self.client.get_object(Bucket=self.bucket, Key=key)
        async with res["Body"] as stream:
            return await stream.read()

    async def delete(self, key: str) -> None:
        await self.client.delete_object(Bucket=self.bucket, Key=key)

    async def list(
        self,
        prefix: str = "",
        delimiter: Optional[str] = DELIMITER,
        continuation_token: Optional[str] = None,
        max_keys: int = 1000,
    ) -> StoreListing:
        """
        List a single page of keys starting with prefix.

        With a delimiter, keys containing the delimiter after the prefix are grouped into common prefixes.
        Without one, every key under the prefix is returned (a flat, depth-unlimited listing).
        """
        params: ListObjectsV2RequestTypeDef = {
            "Bucket": self.bucket,
            "MaxKeys": max_keys,
        }
        if prefix:
            params["Prefix"] = prefix
        if delimiter:
            params["Delimiter"] = delimiter
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        res = await self.client.list_objects_v2(**params)

        contents: list[StoredObject] = [
            {
                "key": content["Key"],
                "size": content.get("Size") or 0,
                "last_modified": content.get("LastModified"),
            }
            for content in res.get("Contents", [])
            if "Key" in content
        ]
        common_prefixes = [cp["Prefix"] for cp in res.get("CommonPrefixes", []) if "Prefix" in cp]

        return {
            "contents": contents,
            "common_prefixes": common_prefixes,
            "next_token": res.get("NextContinuationToken") or "",
            "truncated": bool(res.get("IsTruncated", False)),
        }

    async def presign(self, key: str, ttl: int, content_type: Optional[str] = None) -> str:
        params = {"Bucket": self.bucket, "Key": key}
        if content_type:
            params["ResponseContentType"] = content_type
        return await self.client.generate_presigned_url("get_object", Params=params, ExpiresIn=ttl)


def as_folder_path(path: str) -> str:
    """Folder paths always end with the delimiter, except the root (empty) path."""
    if path and not path.endswith(DELIMITER):
        return path + DELIMITER
    return path


async def scan_objects(store: ObjectStore, prefix: str = "", page_size: int = 1000) -> AsyncIterable[StoredObject]:
    """Yield every object under prefix (no delimiter), following continuation tokens until the last page."""
    token = ""
    while True:
        page = await store.list(prefix, delimiter=None, continuation_token=token, max_keys=page_size)
        for obj in page["contents"]:
            yield obj
        if not page["truncated"] or not page["next_token"]:
            break
        token = page["next_token"]
