#!/usr/bin/env python

from setuptools import setup

setup(
    name="fileservice",
    version="1.0.0",
    description="API for files and folders on S3-compatible object storage",
    packages=["fileservice", "fileservice.api", "fileservice.objectstorage"],
    include_package_data=True,
    zip_safe=False,
    keywords=["API", "S3", "files"],
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Topic :: System :: Filesystems",
    ],
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "python-multipart",
        "python-dotenv",
        "pydantic>=2",
        "pydantic-settings",
        "uvicorn",
        "aiobotocore",
        "types-aiobotocore-s3",
        "typing_extensions",
    ],
    extras_require={
        'dev': [
            'pytest',
            'anyio',
            'httpx',
            'mypy',
            'flake8',
        ]
    },
    entry_points={
        'console_scripts': [
            'fileservice = fileservice.__main__:main'
        ]
    },
)
