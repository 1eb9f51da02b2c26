"""fileservice API: files and folders on top of S3-compatible object storage."""

import logging
from contextlib import asynccontextmanager

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fileservice.api.files import app_files
from fileservice.api.info import app_info
from fileservice.config import get_settings
from fileservice.connections import fileservice_connections, s3, s3_enabled
from fileservice.models import FailureResponse
from fileservice.objectstorage.linkcache import LinkCache
from fileservice.objectstorage.s3bucket import ObjectStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.link_cache = LinkCache(max_entries=settings.link_cache_max_entries)
    async with fileservice_connections():
        if s3_enabled() and settings.create_bucket:
            logging.info(f"Checking bucket {settings.bucket_name}...")
            await ObjectStore(s3(), settings.bucket_name).ensure_bucket()
        yield
    app.state.link_cache.clear()


app = FastAPI(
    title="fileservice",
    description=__doc__ if __doc__ else "",
    openapi_tags=[
        dict(name="files", description="Endpoints to create folders, upload, list, download, and delete files"),
        dict(name="informational", description="Endpoints for server information and configuration"),
    ],
    lifespan=lifespan,
)
app.include_router(app_info)
app.include_router(app_files)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-next"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


def failure(status_code: int, message: str, **extra) -> JSONResponse:
    content = FailureResponse(response_code=status_code, message=message).model_dump()
    return JSONResponse(status_code=status_code, content={**content, **extra})


@app.exception_handler(ValueError)
async def value_error_exception_handler(request: Request, exc: ValueError):
    return failure(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return failure(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return failure(
        422,
        "There was an issue with the data you sent.",
        fields_invalid=jsonable_errors(exc),
    )


@app.exception_handler(ClientError)
@app.exception_handler(BotoCoreError)
@app.exception_handler(ConnectionError)
async def storage_exception_handler(request: Request, exc: Exception):
    logging.error(f"Object storage error on {request.url.path}", exc_info=exc)
    return failure(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Object storage error: {exc}")


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{k: v for k, v in error.items() if k in ("type", "loc", "msg")} for error in exc.errors()]
