"""
fileservice REST API
"""

import argparse
import asyncio
import inspect
import logging
import os
import sys
from pathlib import Path

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from fileservice.config import ENV_PREFIX, get_settings, validate_settings


def run(args):
    logging.info(f"Starting server at port {args.port}, debug={not args.nodebug}")
    if validate_settings():
        logging.warning(validate_settings())
    logging.info(
        "To change server config, create an .env file and/or set environment parameters,\n"
        f"{' ' * 26}see fileservice/config.py or .env.example for more information.\n"
        f"{' ' * 26}You can also run `python -m fileservice create-env` to create a .env settings file\n"
    )

    log_config = "logging.yml" if Path("logging.yml").exists() else LOGGING_CONFIG
    uvicorn.run(
        "fileservice.api:app", host="0.0.0.0", reload=not args.nodebug, port=int(args.port), log_config=log_config
    )


def base_env(bucket: str | None = None):
    settings = get_settings()
    return {
        f"{ENV_PREFIX}s3_host": settings.s3_host or "http://localhost:9000",
        f"{ENV_PREFIX}s3_access_key": "",
        f"{ENV_PREFIX}s3_secret_key": "",
        f"{ENV_PREFIX}bucket_name": bucket or settings.bucket_name,
        f"{ENV_PREFIX}pagination_page_size": settings.pagination_page_size,
    }


def create_env(args):
    if os.path.exists(".env"):
        print("*** File .env already exists, quitting ***")
        sys.exit(1)

    env = base_env(args.bucket)
    with open(".env", "w") as f:
        for key, val in env.items():
            f.write(f"{key}={val}\n")
    os.chmod(".env", 0o600)
    print("*** Created .env file ***")


def config_fileservice(_args):
    settings = get_settings()
    print(f"# Settings read from {settings.env_file} and the environment")
    for fieldname, fieldinfo in type(settings).model_fields.items():
        value = getattr(settings, fieldname)
        if doc := fieldinfo.description:
            print(f"# {doc}")
        if value is None:
            print(f"#{ENV_PREFIX.upper()}{fieldname.upper()}=\n")
        else:
            print(f"{ENV_PREFIX.upper()}{fieldname.upper()}={value}\n")


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m fileservice")

    subparsers = parser.add_subparsers(dest="action", title="action", help="Action to perform:", required=True)
    p = subparsers.add_parser("run", help="Run the backend API in development mode")
    p.add_argument(
        "--no-debug",
        action="store_true",
        dest="nodebug",
        help="Disable debug mode (useful for testing downstream clients)",
    )
    p.add_argument("-p", "--port", help="Port", default=5000)
    p.set_defaults(func=run)

    p = subparsers.add_parser("create-env", help="Create a .env file with the default settings")
    p.add_argument("-b", "--bucket", help="The bucket to serve files from.")
    p.set_defaults(func=create_env)

    p = subparsers.add_parser("config", help="Show the current settings")
    p.set_defaults(func=config_fileservice)

    args = parser.parse_args()

    logging.basicConfig(format="[%(levelname)-7s:%(name)-15s] %(message)s", level=logging.INFO)
    logging.getLogger("botocore").setLevel(logging.WARNING)

    if inspect.iscoroutinefunction(args.func):
        asyncio.run(args.func(args))
    else:
        args.func(args)


if __name__ == "__main__":
    main()
