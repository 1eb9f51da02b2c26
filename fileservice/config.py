"""
fileservice Configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables
- A .env file, either in the current working directory or in a location specified
  by the FILESERVICE_ENV_FILE environment variable
"""

import functools
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "fileservice_"


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")
    host: Annotated[
        str,
        Field(
            description="Host this instance is served at",
        ),
    ] = "http://localhost:5000"

    s3_host: Annotated[str | None, Field(description="S3-compatible object storage host")] = None
    s3_access_key: Annotated[str | None, Field(description="S3 access key")] = None
    s3_secret_key: Annotated[str | None, Field(description="S3 secret key")] = None
    s3_region: Annotated[str | None, Field(description="S3 region (leave empty for most S3-compatible stores)")] = None

    bucket_name: Annotated[
        str,
        Field(
            description="Bucket that holds the files and folders served by this instance",
        ),
    ] = "files"

    create_bucket: Annotated[
        bool,
        Field(
            description="Create the bucket on startup if it does not exist yet",
        ),
    ] = False

    pagination_page_size: Annotated[
        int,
        Field(
            description="Default number of records returned by a single /list call",
            gt=0,
        ),
    ] = 10

    recursive_page_size: Annotated[
        int,
        Field(
            description="Page size used internally when listing a folder tree recursively",
            gt=0,
        ),
    ] = 100

    scan_page_size: Annotated[
        int,
        Field(
            description="Page size used for flat scans (deleting folders, listing all folders). S3 caps this at 1000",
            gt=0,
            le=1000,
        ),
    ] = 1000

    download_link_ttl: Annotated[
        int,
        Field(
            description="Number of seconds a presigned download link stays valid",
            gt=0,
        ),
    ] = 15 * 60

    download_content_type: Annotated[
        str | None,
        Field(
            description="Content type the object store should report for presigned downloads (default: stored type)",
        ),
    ] = None

    link_cache_max_entries: Annotated[
        int,
        Field(
            description="Maximum number of download links kept in memory by each worker",
            gt=0,
        ),
    ] = 10000

    @model_validator(mode="after")
    def strip_host(self) -> "Settings":
        if self.s3_host:
            self.s3_host = self.s3_host.rstrip("/")
        return self

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    # Settings() only reads the environment, so we load the .env file ourselves
    # without overriding variables that are already set
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


def validate_settings():
    settings = get_settings()
    if not all([settings.s3_host, settings.s3_access_key, settings.s3_secret_key]):
        return (
            "Object storage is not configured. Set fileservice_s3_host, fileservice_s3_access_key and"
            " fileservice_s3_secret_key (see .env.example) before serving files."
        )


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")
