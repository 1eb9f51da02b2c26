import logging

from fileservice.objectstorage.s3bucket import InvalidPathError, ObjectStore, as_folder_path, scan_objects


async def delete_object(store: ObjectStore, key: str) -> None:
    if not key:
        raise InvalidPathError("path is required")
    await store.delete(key)


async def delete_folder(store: ObjectStore, folder_path: str, page_size: int = 1000) -> list[str]:
    """
    Delete a folder, everything in it, and finally its own marker object.

    All keys under the folder are collected (over all pages) before the first delete, so that deleting
    does not interfere with the continuation tokens. Objects are deleted one by one in listing order.
    The first failure stops the deletion: objects deleted before that are not restored.
    Returns the deleted keys, including the marker.
    """
    if not folder_path:
        raise InvalidPathError("folder path is required")
    folder_path = as_folder_path(folder_path)

    keys = [obj["key"] async for obj in scan_objects(store, folder_path, page_size) if obj["key"] != folder_path]
    logging.info(f"Deleting folder {folder_path} with {len(keys)} objects")

    for key in keys:
        await store.delete(key)
    await store.delete(folder_path)

    keys.append(folder_path)
    return keys
