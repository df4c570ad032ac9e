from datetime import datetime, timezone

import pytest

from s3file.listing import ListOptions, isoformat, list_objects, normalize_content, normalize_response
from s3file.storage.memory import InMemoryBackend


def test_to_params_drops_unset_filters() -> None:
    assert ListOptions().to_params() == {}
    assert ListOptions(prefix="a/", max_keys=0, fetch_owner=False).to_params() == {
        "Prefix": "a/",
        "MaxKeys": 0,
        "FetchOwner": False,
    }


def test_empty_listing_is_sparse() -> None:
    raw = {"Name": "b", "Prefix": "", "MaxKeys": 1000, "KeyCount": 0, "IsTruncated": False}
    response = normalize_response(raw)
    assert response == {"name": "b", "max_keys": 1000, "key_count": 0, "is_truncated": False}
    assert "contents" not in response
    assert "common_prefixes" not in response


def test_full_response_mapping() -> None:
    modified = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    raw = {
        "Name": "b",
        "Prefix": "logs/",
        "Delimiter": "/",
        "ContinuationToken": "tok1",
        "NextContinuationToken": "tok2",
        "StartAfter": "logs/a",
        "EncodingType": "url",
        "MaxKeys": 2,
        "KeyCount": 2,
        "IsTruncated": True,
        "CommonPrefixes": [{"Prefix": "logs/2024/"}],
        "Contents": [
            {
                "Key": "logs/b.txt",
                "ETag": '"e"',
                "Size": 3,
                "LastModified": modified,
                "StorageClass": "STANDARD",
                "ChecksumAlgorithm": ["CRC32", "SHA256"],
                "ChecksumType": "FULL_OBJECT",
                "Owner": {"ID": "o1", "DisplayName": "owner"},
                "RestoreStatus": {"IsRestoreInProgress": False, "RestoreExpiryDate": modified},
            }
        ],
    }
    response = normalize_response(raw)
    assert response == {
        "name": "b",
        "prefix": "logs/",
        "delimiter": "/",
        "continuation_token": "tok1",
        "next_continuation_token": "tok2",
        "start_after": "logs/a",
        "encoding_type": "url",
        "max_keys": 2,
        "key_count": 2,
        "is_truncated": True,
        "common_prefixes": [{"prefix": "logs/2024/"}],
        "contents": [
            {
                "key": "logs/b.txt",
                "etag": '"e"',
                "size": 3,
                "last_modified": "2024-01-02T03:04:05.678Z",
                "storage_class": "STANDARD",
                "checksum_algorithm": "CRC32",
                "checksum_type": "FULL_OBJECT",
                "owner": {"id": "o1", "display_name": "owner"},
                "restore_status": {
                    "is_restore_in_progress": False,
                    "restore_expiry_date": "2024-01-02T03:04:05.678Z",
                },
            }
        ],
    }


def test_partial_entries_omit_missing_fields() -> None:
    content = normalize_content(
        {"Key": "k", "Owner": {"ID": "o1"}, "RestoreStatus": {"IsRestoreInProgress": True}}
    )
    assert content == {
        "key": "k",
        "etag": "",
        "owner": {"id": "o1"},
        "restore_status": {"is_restore_in_progress": True},
    }
    assert None not in content.values()


def test_present_but_empty_timestamp_becomes_now() -> None:
    before = datetime.now(timezone.utc).replace(microsecond=0)
    content = normalize_content({"Key": "k", "ETag": "e", "LastModified": None})
    parsed = datetime.fromisoformat(content["last_modified"].replace("Z", "+00:00"))
    assert parsed >= before


def test_isoformat_accepts_naive_and_string_values() -> None:
    assert isoformat(datetime(2024, 1, 1)) == "2024-01-01T00:00:00.000Z"
    assert isoformat("2024-01-01T10:00:00+02:00") == "2024-01-01T08:00:00.000Z"


@pytest.mark.anyio
async def test_caller_driven_pagination(storage: InMemoryBackend) -> None:
    for name in ["a.txt", "b.txt", "c.txt", "d.txt", "e.txt"]:
        await storage.put_object("b", name, b"x")

    keys: list[str] = []
    pages = 0
    options = ListOptions(max_keys=2)
    while True:
        page = await list_objects(storage, "b", options)
        pages += 1
        keys.extend(item["key"] for item in page.get("contents", []))
        if not page.get("is_truncated"):
            break
        options = ListOptions(max_keys=2, continuation_token=page["next_continuation_token"])
    assert keys == ["a.txt", "b.txt", "c.txt", "d.txt", "e.txt"]
    assert pages == 3


@pytest.mark.anyio
async def test_start_after_pagination(storage: InMemoryBackend) -> None:
    for name in ["a", "b", "c"]:
        await storage.put_object("b", name, b"x")
    first = await list_objects(storage, "b", ListOptions(max_keys=2))
    last_key = first["contents"][-1]["key"]
    second = await list_objects(storage, "b", ListOptions(max_keys=2, start_after=last_key))
    assert [item["key"] for item in second["contents"]] == ["c"]
    assert second["start_after"] == "b"
    assert second["is_truncated"] is False


@pytest.mark.anyio
async def test_delimiter_groups_common_prefixes(storage: InMemoryBackend) -> None:
    for name in ["photos/2023/a.jpg", "photos/2023/b.jpg", "photos/2024/c.jpg", "photos/top.jpg", "readme"]:
        await storage.put_object("b", name, b"x")
    page = await list_objects(storage, "b", ListOptions(prefix="photos/", delimiter="/", fetch_owner=True))
    assert page["common_prefixes"] == [{"prefix": "photos/2023/"}, {"prefix": "photos/2024/"}]
    assert [item["key"] for item in page["contents"]] == ["photos/top.jpg"]
    assert page["contents"][0]["owner"] == {"id": "memory", "display_name": "memory"}
    assert page["key_count"] == 3


@pytest.mark.anyio
async def test_common_prefixes_are_not_repeated_across_pages(storage: InMemoryBackend) -> None:
    for name in ["a/1", "a/2", "a/3", "b/1", "c"]:
        await storage.put_object("b", name, b"x")
    first = await list_objects(storage, "b", ListOptions(delimiter="/", max_keys=1))
    assert first["common_prefixes"] == [{"prefix": "a/"}]
    second = await list_objects(
        storage, "b", ListOptions(delimiter="/", max_keys=5, continuation_token=first["next_continuation_token"])
    )
    assert second["common_prefixes"] == [{"prefix": "b/"}]
    assert [item["key"] for item in second["contents"]] == ["c"]


@pytest.mark.anyio
async def test_empty_bucket_listing(storage: InMemoryBackend) -> None:
    page = await list_objects(storage, "empty")
    assert "contents" not in page
    assert "common_prefixes" not in page
    assert page["key_count"] == 0
