import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncGenerator

from aiobotocore.config import AioConfig
from aiobotocore.session import get_session
from types_aiobotocore_s3.client import S3Client

from fileservice.config import get_settings


class FileserviceConnections:
    s3_client: S3Client | None
    s3_context_stack: AsyncExitStack | None

    def __init__(
        self,
        s3_client: S3Client | None = None,
        s3_context_stack: AsyncExitStack | None = None,
    ):
        self.s3_client = s3_client
        self.s3_context_stack = s3_context_stack


CONNECTIONS = FileserviceConnections()


@asynccontextmanager
async def fileservice_connections() -> AsyncGenerator[None, None]:
    """
    The main context manager to start and stop the object storage connection.
    Always use this once (and only once):
        - For running the server: in the FastAPI lifespan
        - For CLI commands: within the CLI command
    """
    try:
        await _start_s3()
        yield
    finally:
        await _close_s3()


def s3() -> S3Client:
    """
    Use this function to access the s3 client.
    """
    if CONNECTIONS.s3_client is None:
        raise ConnectionError("S3 client not started")
    return CONNECTIONS.s3_client


def s3_enabled() -> bool:
    settings = get_settings()
    return all([settings.s3_host, settings.s3_access_key, settings.s3_secret_key])


async def _start_s3() -> None:
    if s3_enabled() is False:
        logging.warning("Object storage is not configured, file operations will fail")
        return None

    settings = get_settings()
    logging.debug(f"Connecting with object storage at {settings.s3_host}, bucket {settings.bucket_name}")

    session = get_session()
    client = session.create_client(
        service_name="s3",
        endpoint_url=settings.s3_host,
        region_name=settings.s3_region,
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret_key,
        config=AioConfig(signature_version="s3v4"),
    )

    # client is an async context manager, so we use an AsyncExitStack to manage its lifetime
    CONNECTIONS.s3_context_stack = AsyncExitStack()
    CONNECTIONS.s3_client = await CONNECTIONS.s3_context_stack.enter_async_context(client)


async def _close_s3():
    if CONNECTIONS.s3_context_stack is not None:
        await CONNECTIONS.s3_context_stack.aclose()
        CONNECTIONS.s3_client = None
        CONNECTIONS.s3_context_stack = None
