"""Helper methods for the API."""

import logging
from contextlib import contextmanager

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, Request, status

from fileservice.config import get_settings
from fileservice.connections import s3
from fileservice.objectstorage.linkcache import LinkCache
from fileservice.objectstorage.s3bucket import ObjectStore


def get_store() -> ObjectStore:
    """Dependency: the object store for the configured bucket."""
    return ObjectStore(s3(), get_settings().bucket_name)


def get_link_cache(request: Request) -> LinkCache:
    """Dependency: the link cache of this process, created in the app lifespan."""
    return request.app.state.link_cache


@contextmanager
def storage_errors(action: str):
    """Turn object storage errors into a 500 response that says what we were trying to do."""
    try:
        yield
    except (ClientError, BotoCoreError) as e:
        logging.exception(f"Failed to {action}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}: {e}")
