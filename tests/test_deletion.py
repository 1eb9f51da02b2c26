import pytest
from botocore.exceptions import ClientError

from fileservice.objectstorage.deletion import delete_folder, delete_object
from fileservice.objectstorage.s3bucket import InvalidPathError


@pytest.mark.anyio
async def test_delete_folder(store, s3_client, docs):
    deleted = await delete_folder(store, "docs")
    assert deleted[-1] == "docs/"
    assert s3_client.keys() == ["other/d.txt"]

    # all children first (in listing order), the marker itself last
    deletes = [params["Key"] for op, params in s3_client.calls if op == "delete_object"]
    assert deletes == [
        "docs/a.txt",
        "docs/nested/",
        "docs/nested/b.txt",
        "docs/nested/deeper/",
        "docs/nested/deeper/c.txt",
        "docs/sub/",
        "docs/",
    ]
    assert deletes == deleted


@pytest.mark.anyio
async def test_delete_folder_1500_keys(store, s3_client):
    s3_client.add("docs/")
    for i in range(1500):
        s3_client.add(f"docs/{i // 100:02}/file-{i:04}.txt", b"x")
    s3_client.add("docs-backup/keep.txt", b"keep")

    await delete_folder(store, "docs/", page_size=1000)

    operations = s3_client.operations()
    first_delete = operations.index("delete_object")
    assert operations[:first_delete].count("list_objects_v2") >= 2
    assert "list_objects_v2" not in operations[first_delete:]
    assert operations.count("delete_object") == 1501
    assert not [key for key in s3_client.keys() if key.startswith("docs/")]
    assert s3_client.keys() == ["docs-backup/keep.txt"]

    # flat listings, no delimiter
    for op, params in s3_client.calls[:first_delete]:
        assert params["Prefix"] == "docs/"
        assert params["Delimiter"] is None
        assert params["MaxKeys"] == 1000


@pytest.mark.anyio
async def test_delete_folder_without_marker(store, s3_client):
    s3_client.add("virtual/a.txt", b"a")
    s3_client.add("virtual/b/c.txt", b"c")
    await delete_folder(store, "virtual")
    assert s3_client.keys() == []


@pytest.mark.anyio
async def test_delete_empty_path(store, s3_client):
    with pytest.raises(InvalidPathError):
        await delete_folder(store, "")
    with pytest.raises(InvalidPathError):
        await delete_object(store, "")
    assert s3_client.calls == []


@pytest.mark.anyio
async def test_delete_folder_stops_at_first_failure(store, s3_client, docs):
    s3_client.fail("delete_object", when=lambda params: params["Key"] == "docs/nested/b.txt")
    with pytest.raises(ClientError):
        await delete_folder(store, "docs/")
    # deleted objects are not restored, the rest is not touched
    assert s3_client.keys() == [
        "docs/",
        "docs/nested/b.txt",
        "docs/nested/deeper/",
        "docs/nested/deeper/c.txt",
        "docs/sub/",
        "other/d.txt",
    ]


@pytest.mark.anyio
async def test_delete_folder_list_failure(store, s3_client, docs):
    s3_client.fail("list_objects_v2", when=lambda params: params["ContinuationToken"] is not None)
    with pytest.raises(ClientError):
        await delete_folder(store, "docs/", page_size=2)
    # nothing is deleted if the folder could not be listed completely
    assert "delete_object" not in s3_client.operations()
    assert len(s3_client.keys()) == 8


@pytest.mark.anyio
async def test_delete_object(store, s3_client, docs):
    await delete_object(store, "docs/a.txt")
    assert "docs/a.txt" not in s3_client.keys()
    # not recursive
    await delete_object(store, "docs/nested/")
    assert "docs/nested/b.txt" in s3_client.keys()
