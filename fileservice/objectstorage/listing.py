"""
Directory listings on top of the flat object store.

A folder is a key prefix ending with "/". Listing a folder with "/" as delimiter gives its direct children:
objects directly in the folder (contents) and one common prefix per subfolder. Folders can also have a
zero-size "marker" object with the folder path as key, so that empty folders exist.
"""

from datetime import UTC, datetime
from typing import AsyncIterable, Optional

from fileservice.models import ListingPage, ObjectRecord
from fileservice.objectstorage.linkcache import LinkCache
from fileservice.objectstorage.s3bucket import DELIMITER, ObjectStore, StoredObject, as_folder_path, scan_objects

DEFAULT_LINK_TTL = 15 * 60


def _now() -> datetime:
    return datetime.now(UTC).replace(microsecond=0)


def is_folder_marker(obj: StoredObject) -> bool:
    """A zero-size object whose key ends with the delimiter. Zero-size keys without it are empty files."""
    return obj["size"] == 0 and obj["key"].endswith(DELIMITER)


async def download_link(
    store: ObjectStore,
    cache: LinkCache,
    key: str,
    ttl: int = DEFAULT_LINK_TTL,
    content_type: Optional[str] = None,
) -> str:
    """Get a presigned download URL for key, reusing a cached one while it is still valid."""

    async def presign() -> str:
        return await store.presign(key, ttl, content_type=content_type)

    return await cache.get_or_create(key, ttl, presign)


async def list_page(
    store: ObjectStore,
    cache: LinkCache,
    folder_path: str = "",
    continuation_token: str = "",
    page_size: int = 10,
    want_folders_only: bool = False,
    ttl: int = DEFAULT_LINK_TTL,
    content_type: Optional[str] = None,
) -> ListingPage:
    """
    List one page of the direct children of a folder.

    Subfolders (common prefixes) and objects are returned in key order, as the object store lists them.
    Objects get a download link.
    The folder's own marker object is never included. If want_folders_only is set, objects are not
    listed at all and files_count is 0.
    Any error from the object store (listing or presigning) is raised, no partial page is returned.
    """
    folder_path = as_folder_path(folder_path)

    # one extra key, as the folder marker itself can be part of the results
    res = await store.list(
        folder_path,
        delimiter=DELIMITER,
        continuation_token=continuation_token or None,
        max_keys=page_size + 1,
    )

    now = _now()
    records = [ObjectRecord(name=prefix, is_folder=True, size=0, last_modified=now) for prefix in res["common_prefixes"]]

    files_count = 0
    if not want_folders_only:
        for obj in res["contents"]:
            if obj["key"] == folder_path:
                continue
            link = await download_link(store, cache, obj["key"], ttl=ttl, content_type=content_type)
            records.append(
                ObjectRecord(
                    name=obj["key"],
                    is_folder=obj["size"] == 0,
                    size=obj["size"],
                    last_modified=obj["last_modified"] or now,
                    download_link=link,
                )
            )
            files_count += 1

    records.sort(key=lambda record: record.name)
    return ListingPage(
        files=records,
        next_page_token=res["next_token"],
        is_last_page=not res["truncated"],
        records_returned=len(records),
        files_count=files_count,
        folders_count=len(res["common_prefixes"]),
    )


async def iter_pages(
    store: ObjectStore,
    cache: LinkCache,
    folder_path: str = "",
    page_size: int = 10,
    ttl: int = DEFAULT_LINK_TTL,
    content_type: Optional[str] = None,
) -> AsyncIterable[ListingPage]:
    """Yield every page of a folder listing, following the next_page_token until the last page."""
    token = ""
    while True:
        page = await list_page(store, cache, folder_path, token, page_size, ttl=ttl, content_type=content_type)
        yield page
        if page.is_last_page or not page.next_page_token:
            break
        token = page.next_page_token


async def list_all_files(
    store: ObjectStore,
    cache: LinkCache,
    folder_path: str = "",
    page_size: int = 100,
    ttl: int = DEFAULT_LINK_TTL,
    content_type: Optional[str] = None,
) -> ListingPage:
    """
    List a folder and all its subfolders as one flat listing.

    All pages of a folder are listed before descending into its subfolders, which are then visited
    depth-first in the order they were found. The page_size is only used for the requests to the
    object store, the result always contains everything.

    Every folder record is descended into, including zero-size files such as "docs/empty" that list_page
    reports as folders. Listing "docs/empty/" then costs one extra request that finds nothing.
    """
    records: list[ObjectRecord] = []
    files_count = folders_count = 0
    pending = [as_folder_path(folder_path)]
    visited: set[str] = set()

    while pending:
        folder = pending.pop()
        if folder in visited:
            continue
        visited.add(folder)

        subfolders: list[str] = []
        async for page in iter_pages(store, cache, folder, page_size, ttl=ttl, content_type=content_type):
            records.extend(page.files)
            files_count += page.files_count
            folders_count += page.folders_count
            subfolders.extend(record.name for record in page.files if record.is_folder)

        # reversed, so the first subfolder found is the next one popped
        pending.extend(as_folder_path(name) for name in reversed(subfolders))

    return ListingPage(
        files=records,
        next_page_token="",
        is_last_page=True,
        records_returned=len(records),
        files_count=files_count,
        folders_count=folders_count,
    )


async def list_all_folders(store: ObjectStore, folder_path: str = "", page_size: int = 1000) -> list[ObjectRecord]:
    """
    List all folder markers anywhere below folder_path with a single flat scan.

    Only folders that have a marker object are found: folders that only exist as a common prefix
    of other keys have no object of their own.
    """
    folder_path = as_folder_path(folder_path)
    folders: list[ObjectRecord] = []
    async for obj in scan_objects(store, folder_path, page_size):
        if obj["key"] == folder_path or not is_folder_marker(obj):
            continue
        folders.append(
            ObjectRecord(
                name=obj["key"],
                is_folder=True,
                size=0,
                last_modified=obj["last_modified"] or _now(),
            )
        )
    return folders
