from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, Request, UploadFile, status
from starlette.datastructures import UploadFile as StarletteUploadFile

from fileservice.api.common import get_link_cache, get_store, storage_errors
from fileservice.config import get_settings
from fileservice.models import ListingPage, ObjectRecord, SuccessResponse
from fileservice.objectstorage.deletion import delete_folder, delete_object
from fileservice.objectstorage.files import create_folder, file_name, upload_file, upload_files
from fileservice.objectstorage.linkcache import LinkCache
from fileservice.objectstorage.listing import download_link, list_all_files, list_all_folders, list_page
from fileservice.objectstorage.s3bucket import InvalidPathError, ObjectStore, as_folder_path

app_files = APIRouter(prefix="", tags=["files"])

PathQuery = Annotated[str, Query(description="Path of the folder or object, e.g. docs/reports/")]

TRUE_VALUES = {"1", "t", "true"}


def _page_size(value: str | None, default: int) -> int:
    """Parse the pageSize parameter, falling back to default if it is missing, not a number or not positive"""
    try:
        page_size = int(value) if value else default
    except ValueError:
        return default
    return page_size if page_size > 0 else default


def _flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() in TRUE_VALUES


@app_files.post("/create-folder")
async def create_folder_route(path: PathQuery = "", store: ObjectStore = Depends(get_store)) -> SuccessResponse:
    """Create an (empty) folder by writing its marker object."""
    with storage_errors("create folder"):
        await create_folder(store, path)
    return SuccessResponse(message="Folder created successfully")


@app_files.post("/upload")
async def upload(
    file: Annotated[UploadFile, File(description="The file to upload")],
    path: Annotated[str, Form(description="Folder to upload the file into (default: root)")] = "",
    store: ObjectStore = Depends(get_store),
) -> SuccessResponse:
    """Upload a single file into a folder. The object key is the folder path plus the file name."""
    data = await file.read()
    with storage_errors("upload file"):
        key = await upload_file(store, path, file.filename or "", data, file.content_type)
    return SuccessResponse(message=f"File uploaded successfully with object key: {key}")


@app_files.post("/upload-multiple")
async def upload_multiple(
    request: Request,
    file_count: Annotated[int, Form(alias="fileCount", ge=0, description="Number of files (file0, file1, ...)")],
    store: ObjectStore = Depends(get_store),
) -> SuccessResponse:
    """
    Upload multiple files, sent as form fields file0 .. file{fileCount-1}. Each file is stored under its own name.

    If an upload fails, the files before it remain uploaded.
    """
    form = await request.form()
    files = []
    for i in range(file_count):
        part = form.get(f"file{i}")
        if not isinstance(part, StarletteUploadFile):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Missing uploaded file: file{i}")
        files.append((part.filename or "", await part.read(), part.content_type))

    with storage_errors("upload files"):
        await upload_files(store, files)
    return SuccessResponse(message=f"Uploaded {file_count} files successfully")


@app_files.get("/list")
async def list_files(
    path: PathQuery = "",
    page_size: Annotated[str | None, Query(alias="pageSize", description="Records per page")] = None,
    is_folder: Annotated[str | None, Query(alias="isFolder", description="Only list the folders (true/false)")] = None,
    x_next: Annotated[str | None, Header(description="Token of the page to list (next_page_token)")] = None,
    store: ObjectStore = Depends(get_store),
    cache: LinkCache = Depends(get_link_cache),
) -> SuccessResponse:
    """List one page of the files and folders directly within a folder."""
    settings = get_settings()
    with storage_errors("list files"):
        page: ListingPage = await list_page(
            store,
            cache,
            path,
            x_next or "",
            _page_size(page_size, settings.pagination_page_size),
            _flag(is_folder),
            ttl=settings.download_link_ttl,
            content_type=settings.download_content_type,
        )
    return SuccessResponse(message="Files listed successfully", data=page)


@app_files.get("/list-all")
async def list_all(
    path: PathQuery = "",
    store: ObjectStore = Depends(get_store),
    cache: LinkCache = Depends(get_link_cache),
) -> SuccessResponse:
    """List all files and folders within a folder and its subfolders."""
    settings = get_settings()
    with storage_errors("list all files"):
        page = await list_all_files(
            store,
            cache,
            path,
            settings.recursive_page_size,
            ttl=settings.download_link_ttl,
            content_type=settings.download_content_type,
        )
    return SuccessResponse(message="Files listed successfully", data=page)


@app_files.get("/list-folders")
async def list_folders(path: PathQuery = "", store: ObjectStore = Depends(get_store)) -> SuccessResponse:
    """List all folders (marker objects) anywhere within a folder."""
    with storage_errors("list folders"):
        folders: list[ObjectRecord] = await list_all_folders(store, path, get_settings().scan_page_size)
    return SuccessResponse(message="Folders listed successfully", data=folders)


@app_files.get("/download")
async def download(
    path: PathQuery = "",
    store: ObjectStore = Depends(get_store),
    cache: LinkCache = Depends(get_link_cache),
) -> SuccessResponse:
    """Get a (temporary) download link for an object."""
    name = file_name(path)
    if not name:
        raise InvalidPathError("path is required")
    settings = get_settings()
    with storage_errors("create download link"):
        url = await download_link(store, cache, path, settings.download_link_ttl, settings.download_content_type)
    return SuccessResponse(data={"url": url, "fileName": name})


@app_files.delete("/delete")
async def delete(
    path: PathQuery = "",
    store: ObjectStore = Depends(get_store),
    cache: LinkCache = Depends(get_link_cache),
) -> SuccessResponse:
    """Delete a single object. Folders are not deleted recursively, use /delete-folder for that."""
    with storage_errors("delete file"):
        await delete_object(store, path)
    cache.invalidate(path)
    return SuccessResponse(message="File deleted successfully")


@app_files.delete("/delete-folder")
async def delete_folder_route(
    path: PathQuery = "",
    store: ObjectStore = Depends(get_store),
    cache: LinkCache = Depends(get_link_cache),
) -> SuccessResponse:
    """Delete a folder with everything in it."""
    with storage_errors("delete folder"):
        await delete_folder(store, path, get_settings().scan_page_size)
    cache.invalidate_prefix(as_folder_path(path))
    return SuccessResponse(message="Folder deleted successfully")
