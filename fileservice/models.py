from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


######################## DIRECTORY LISTINGS #########################


class ObjectRecord(BaseModel):
    """One entry of a directory listing: either a file or a (virtual) folder."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Full key of the object, or the prefix of the folder (ending with /)")
    is_folder: bool = Field(description="True for common prefixes and zero-size marker objects")
    size: int = Field(0, ge=0, description="Size in bytes (0 for folders)")
    last_modified: datetime = Field(
        description="Last modification time. For folders derived from a common prefix this is the listing time"
    )
    download_link: str | None = Field(None, description="Presigned download URL (files only)")


class ListingPage(BaseModel):
    files: list[ObjectRecord] = Field(default_factory=list, description="Folders and files in this page")
    next_page_token: str = Field("", description="Token to request the next page with (empty if this is the last page)")
    is_last_page: bool = Field(True, description="True if there are no more pages")
    records_returned: int = Field(0, description="Number of records in this page")
    files_count: int = Field(0, description="Number of file entries (objects) in this page")
    folders_count: int = Field(0, description="Number of folders (common prefixes) in this page")


######################## RESPONSE ENVELOPE #########################


class SuccessResponse(BaseModel):
    status: Literal["Success"] = "Success"
    response_code: int = 200
    message: str = ""
    data: Any | None = None


class FailureResponse(BaseModel):
    status: Literal["Failure"] = "Failure"
    response_code: int = 500
    message: str
