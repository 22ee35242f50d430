from __future__ import annotations

import pytest

from docgen.clients.local_queue import SQLiteQueueClient
from docgen.clients.sqlite_store import SQLiteStore


@pytest.fixture()
def store(tmp_path) -> SQLiteStore:
    return SQLiteStore(str(tmp_path / "nested" / "records.sqlite3"))


def test_put_item_if_absent_keeps_first_writer(store) -> None:
    assert store.put_item_if_absent({"pk": "lead#1", "sk": "folder#google", "folder_id": "a"})
    assert not store.put_item_if_absent({"pk": "lead#1", "sk": "folder#google", "folder_id": "b"})

    item = store.get_item(partition_key="lead#1", sort_key="folder#google")
    assert item["folder_id"] == "a"


def test_put_item_if_version_rejects_stale_writer(store) -> None:
    store.put_item({"pk": "system", "sk": "oauth#google", "version": 1, "token": "one"})

    assert store.put_item_if_version(
        {"pk": "system", "sk": "oauth#google", "version": 2, "token": "two"},
        expected_version=1,
    )
    assert not store.put_item_if_version(
        {"pk": "system", "sk": "oauth#google", "version": 2, "token": "stale"},
        expected_version=1,
    )

    item = store.get_item(partition_key="system", sort_key="oauth#google")
    assert item["token"] == "two"


def test_list_items_with_prefix_and_delete(store) -> None:
    store.put_item({"pk": "offer#1", "sk": "document#items"})
    store.put_item({"pk": "offer#1", "sk": "document#installation"})
    store.put_item({"pk": "offer#1", "sk": "subject"})
    store.put_item({"pk": "offer#2", "sk": "document#items"})

    items = store.list_items_with_prefix(partition_key="offer#1", sort_key_prefix="document#")
    assert [item["sk"] for item in items] == ["document#installation", "document#items"]

    store.delete_item(partition_key="offer#1", sort_key="document#items")
    assert store.get_item(partition_key="offer#1", sort_key="document#items") is None


def test_put_item_requires_keys(store) -> None:
    with pytest.raises(ValueError):
        store.put_item({"pk": "offer#1"})


def test_local_queue_is_fifo(tmp_path) -> None:
    queue = SQLiteQueueClient(str(tmp_path / "queue.sqlite3"))

    first_id = queue.enqueue_document_job({"job_id": "a"})
    queue.enqueue_document_job({"job_id": "b"})

    assert first_id == "1"
    assert queue.dequeue_document_job() == {"job_id": "a"}
    assert queue.dequeue_document_job() == {"job_id": "b"}
    assert queue.dequeue_document_job() is None
