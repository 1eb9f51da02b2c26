"""Creating folders and uploading files."""

import logging
from pathlib import PurePosixPath
from typing import Iterable, Optional

from fileservice.objectstorage.s3bucket import DELIMITER, InvalidPathError, ObjectStore, as_folder_path


def object_key(folder_path: Optional[str], file_name: str) -> str:
    """The key for a file uploaded into a folder (or the root, if there is no folder)."""
    if not file_name:
        raise InvalidPathError("file name is required")
    if not folder_path:
        return file_name
    return as_folder_path(folder_path) + file_name


def file_name(key: str) -> str:
    """The last part of a key, ignoring the folders in the prefix."""
    return PurePosixPath(key).name


async def create_folder(store: ObjectStore, folder_path: str) -> str:
    if not folder_path or folder_path == DELIMITER:
        raise InvalidPathError(f"folder path is required and should end with {DELIMITER}")
    folder_path = as_folder_path(folder_path)
    await store.put(folder_path, b"")
    logging.info(f"Created folder {folder_path}")
    return folder_path


async def upload_file(
    store: ObjectStore, folder_path: Optional[str], name: str, data: bytes, content_type: Optional[str] = None
) -> str:
    key = object_key(folder_path, name)
    await store.put(key, data, content_type=content_type)
    logging.info(f"Uploaded {key} ({len(data)} bytes)")
    return key


async def upload_files(store: ObjectStore, files: Iterable[tuple[str, bytes, Optional[str]]]) -> list[str]:
    """
    Upload (name, data, content_type) tuples, each keyed by its name.

    Uploads happen one after the other; if one fails, the remaining files are not uploaded
    and the files uploaded before it stay.
    """
    keys = []
    for name, data, content_type in files:
        keys.append(await upload_file(store, None, name, data, content_type))
    return keys
