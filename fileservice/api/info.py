"""API Endpoints for server information and configuration."""

from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter
from pydantic import BaseModel, Field

from fileservice.config import get_settings, validate_settings
from fileservice.connections import s3_enabled

app_info = APIRouter(tags=["informational"])


class ConfigResponse(BaseModel):
    """Response for the service configuration."""

    host: str = Field(..., description="The host this instance is served at.")
    bucket: str = Field(..., description="The bucket holding the files.")
    s3_enabled: bool = Field(..., description="Whether S3 storage is configured.")
    page_size: int = Field(..., description="Default page size of /list.")
    download_link_ttl: int = Field(..., description="Seconds a download link stays valid.")
    warnings: list[str] = Field(..., description="A list of configuration warnings.")
    api_version: str = Field(..., description="The version of the fileservice API.")


def api_version() -> str:
    try:
        return version("fileservice")
    except PackageNotFoundError:
        return "unknown"


@app_info.get("/ping")
def ping() -> dict[str, str]:
    """Check whether the server is up."""
    return {"message": "pong"}


@app_info.get("/config")
def get_config() -> ConfigResponse:
    """Get the configuration of this instance."""
    settings = get_settings()
    return ConfigResponse(
        host=settings.host,
        bucket=settings.bucket_name,
        s3_enabled=s3_enabled(),
        page_size=settings.pagination_page_size,
        download_link_ttl=settings.download_link_ttl,
        warnings=[w for w in [validate_settings()] if w],
        api_version=api_version(),
    )
