import pytest
from botocore.exceptions import ClientError

from fileservice.objectstorage.files import create_folder, file_name, object_key, upload_file, upload_files
from fileservice.objectstorage.s3bucket import InvalidPathError, ObjectStore, as_folder_path, scan_objects
from tests.tools import TEST_BUCKET


def test_as_folder_path():
    assert as_folder_path("") == ""
    assert as_folder_path("docs") == "docs/"
    assert as_folder_path("docs/") == "docs/"
    assert as_folder_path("docs/sub") == "docs/sub/"


def test_object_key():
    assert object_key(None, "a.txt") == "a.txt"
    assert object_key("", "a.txt") == "a.txt"
    assert object_key("docs", "a.txt") == "docs/a.txt"
    assert object_key("docs/", "a.txt") == "docs/a.txt"
    with pytest.raises(InvalidPathError):
        object_key("docs", "")


def test_file_name():
    assert file_name("docs/sub/report.pdf") == "report.pdf"
    assert file_name("report.pdf") == "report.pdf"
    assert file_name("docs/sub/") == "sub"
    assert file_name("") == ""


@pytest.mark.anyio
async def test_put_get_delete(store, s3_client):
    await store.put("docs/a.txt", b"hello", content_type="text/plain")
    assert await store.get("docs/a.txt") == b"hello"
    assert s3_client.calls[0] == (
        "put_object",
        {"Bucket": TEST_BUCKET, "Key": "docs/a.txt", "ContentType": "text/plain"},
    )
    await store.delete("docs/a.txt")
    assert s3_client.keys() == []
    with pytest.raises(ClientError):
        await store.get("docs/a.txt")


@pytest.mark.anyio
async def test_list_translates_response(store, s3_client, docs):
    res = await store.list("docs/")
    assert [obj["key"] for obj in res["contents"]] == ["docs/", "docs/a.txt"]
    assert [obj["size"] for obj in res["contents"]] == [0, 5]
    assert res["common_prefixes"] == ["docs/nested/", "docs/sub/"]
    assert res["next_token"] == ""
    assert res["truncated"] is False

    # without delimiter, everything below the prefix
    res = await store.list("docs/", delimiter=None)
    assert res["common_prefixes"] == []
    assert [obj["key"] for obj in res["contents"]] == [
        "docs/",
        "docs/a.txt",
        "docs/nested/",
        "docs/nested/b.txt",
        "docs/nested/deeper/",
        "docs/nested/deeper/c.txt",
        "docs/sub/",
    ]


@pytest.mark.anyio
async def test_list_pagination(store, s3_client, docs):
    res = await store.list("", max_keys=1)
    assert res["common_prefixes"] == ["docs/"]
    assert res["truncated"] is True
    token = res["next_token"]
    assert token

    res = await store.list("", continuation_token=token, max_keys=1)
    assert res["common_prefixes"] == ["other/"]
    assert res["truncated"] is False
    assert res["next_token"] == ""

    _, params = s3_client.calls[-1]
    assert params["ContinuationToken"] == token
    assert params["Delimiter"] == "/"


@pytest.mark.anyio
async def test_scan_objects_all_pages(store, s3_client):
    for i in range(25):
        s3_client.add(f"data/{i:03}.bin", b"x")
    keys = [obj["key"] async for obj in scan_objects(store, "data/", page_size=10)]
    assert keys == [f"data/{i:03}.bin" for i in range(25)]
    assert s3_client.operations() == ["list_objects_v2"] * 3


@pytest.mark.anyio
async def test_presign(store, s3_client):
    url = await store.presign("docs/a.txt", 600, content_type="image/png")
    assert url.startswith(f"https://s3.test/{TEST_BUCKET}/docs/a.txt")
    _, params = s3_client.calls[0]
    assert params == {
        "ClientMethod": "get_object",
        "Params": {"Bucket": TEST_BUCKET, "Key": "docs/a.txt", "ResponseContentType": "image/png"},
        "ExpiresIn": 600,
    }


@pytest.mark.anyio
async def test_ensure_bucket(s3_client):
    store = ObjectStore(s3_client, "new-bucket")
    assert await store.ensure_bucket() == "new-bucket"
    assert "new-bucket" in s3_client.buckets
    # existing buckets are left alone
    await store.ensure_bucket()
    assert s3_client.operations() == ["head_bucket", "create_bucket", "head_bucket"]

    s3_client.fail("head_bucket", code="AccessDenied")
    with pytest.raises(ClientError):
        await store.ensure_bucket()


@pytest.mark.anyio
async def test_create_folder(store, s3_client):
    assert await create_folder(store, "docs/sub") == "docs/sub/"
    assert await create_folder(store, "docs/") == "docs/"
    assert s3_client.keys() == ["docs/", "docs/sub/"]
    assert await store.get("docs/sub/") == b""

    for path in ["", "/"]:
        with pytest.raises(InvalidPathError):
            await create_folder(store, path)
    assert s3_client.operations() == ["put_object", "put_object", "get_object"]


@pytest.mark.anyio
async def test_upload_file(store, s3_client):
    assert await upload_file(store, "docs", "a.txt", b"hello") == "docs/a.txt"
    assert await upload_file(store, None, "b.txt", b"b") == "b.txt"
    assert s3_client.keys() == ["b.txt", "docs/a.txt"]


@pytest.mark.anyio
async def test_upload_files_stops_at_first_failure(store, s3_client):
    s3_client.fail("put_object", when=lambda params: params["Key"] == "2.txt")
    with pytest.raises(ClientError):
        await upload_files(store, [("1.txt", b"1", None), ("2.txt", b"2", None), ("3.txt", b"3", "text/plain")])
    # uploads before the failure are not undone
    assert s3_client.keys() == ["1.txt"]
