from __future__ import annotations

import io
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from taskapi.app.core.errors import NotFoundError, StorageError

MISSING_ID = "0123456789abcdef01234567"


class _FakeS3Client:
    """Just enough of the boto3 S3 client for the task gateway."""

    def __init__(self, page_size: int = 2) -> None:
        self.objects: dict[str, bytes] = {}
        self.page_size = page_size

    @staticmethod
    def _missing(op: str) -> ClientError:
        return ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, op)

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[Key] = Body

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise self._missing("GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)

    def list_objects_v2(self, Bucket, Prefix, ContinuationToken=None):
        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        start = int(ContinuationToken or 0)
        page = keys[start : start + self.page_size]
        response = {"Contents": [{"Key": k} for k in page]}
        if start + self.page_size < len(keys):
            response["IsTruncated"] = True
            response["NextContinuationToken"] = str(start + self.page_size)
        return response


def _sql_store(tmp_path: Path):
    from taskapi.adapters.task_gateway_sql import SqlTaskStore
    from taskapi.app.db import build_engine

    return SqlTaskStore(build_engine(f"sqlite:///{tmp_path / 'tasks.db'}")).open()


def _file_store(tmp_path: Path):
    from taskapi.adapters.task_gateway_file import FileTaskStore

    return FileTaskStore(tmp_path, "tasks")


def _s3_store(tmp_path: Path):
    from taskapi.adapters.task_gateway_s3 import S3TaskStore

    return S3TaskStore(_FakeS3Client(), "bucket", "tasks")


@pytest.fixture(params=[_sql_store, _file_store, _s3_store], ids=["sql", "file", "s3"])
def store(request, tmp_path: Path):
    store = request.param(tmp_path)
    yield store
    store.close()


def _record(title="Buy milk", description="2%", duedate="", completed=False):
    return {
        "completed": completed,
        "description": description,
        "duedate": duedate,
        "title": title,
    }


def test_insert_assigns_valid_id(store):
    with store.checkout() as gateway:
        task_id = gateway.insert(_record())
        assert gateway.is_valid_id(task_id)
        assert gateway.find_by_id(task_id) == {"id": task_id, **_record()}


def test_find_all_returns_every_task(store):
    with store.checkout() as gateway:
        ids = {gateway.insert(_record(title=f"t{i}")) for i in range(5)}
    with store.checkout() as gateway:
        found = gateway.find_all()
    assert {item["id"] for item in found} == ids


def test_find_all_empty(store):
    with store.checkout() as gateway:
        assert gateway.find_all() == []


def test_update_replaces_fields_but_not_id(store):
    with store.checkout() as gateway:
        task_id = gateway.insert(_record())
        gateway.update_by_id(task_id, _record(title="Oat milk", completed=True, duedate="fri"))
        assert gateway.find_by_id(task_id) == {
            "id": task_id,
            "completed": True,
            "description": "2%",
            "duedate": "fri",
            "title": "Oat milk",
        }


def test_missing_ids_raise_not_found(store):
    with store.checkout() as gateway:
        with pytest.raises(NotFoundError):
            gateway.find_by_id(MISSING_ID)
        with pytest.raises(NotFoundError):
            gateway.update_by_id(MISSING_ID, _record())
        with pytest.raises(NotFoundError):
            gateway.delete_by_id(MISSING_ID)


def test_delete_removes_document(store):
    with store.checkout() as gateway:
        task_id = gateway.insert(_record())
        gateway.delete_by_id(task_id)
        with pytest.raises(NotFoundError):
            gateway.find_by_id(task_id)
        with pytest.raises(NotFoundError):
            gateway.delete_by_id(task_id)


def test_upper_case_id_reaches_same_document(store):
    with store.checkout() as gateway:
        task_id = gateway.insert(_record())
        upper_id = task_id.upper()
        assert gateway.is_valid_id(upper_id)

        assert gateway.find_by_id(upper_id)["id"] == task_id
        gateway.update_by_id(upper_id, _record(title="Oat milk"))
        assert gateway.find_by_id(task_id)["title"] == "Oat milk"

        gateway.delete_by_id(upper_id)
        with pytest.raises(NotFoundError):
            gateway.delete_by_id(task_id)
        assert gateway.find_all() == []


def test_sql_checkout_closes_session_on_error(tmp_path: Path, monkeypatch):
    from sqlalchemy.orm import Session

    store = _sql_store(tmp_path)
    closed = {"count": 0}
    original_close = Session.close

    def tracking_close(self):
        closed["count"] += 1
        original_close(self)

    monkeypatch.setattr(Session, "close", tracking_close)

    with pytest.raises(RuntimeError):
        with store.checkout():
            raise RuntimeError("handler failed")
    with store.checkout() as gateway:
        gateway.find_all()

    assert closed["count"] == 2
    store.close()


def test_sql_errors_become_storage_errors(tmp_path: Path):
    from sqlalchemy import text

    store = _sql_store(tmp_path)
    with store.engine.begin() as conn:
        conn.execute(text("DROP TABLE tasks"))
    with store.checkout() as gateway:
        with pytest.raises(StorageError):
            gateway.find_all()
    with store.checkout() as gateway:
        with pytest.raises(StorageError):
            gateway.insert(_record())
    store.close()


def test_file_corrupt_document_is_storage_error(tmp_path: Path):
    store = _file_store(tmp_path)
    (tmp_path / "tasks").mkdir()
    (tmp_path / "tasks" / f"{MISSING_ID}.json").write_text("{not json", encoding="utf-8")
    with store.checkout() as gateway:
        with pytest.raises(StorageError):
            gateway.find_by_id(MISSING_ID)
        with pytest.raises(StorageError):
            gateway.find_all()


def test_s3_access_denied_is_storage_error():
    from taskapi.adapters.task_gateway_s3 import S3TaskGateway

    class DeniedClient(_FakeS3Client):
        def get_object(self, Bucket, Key):
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "GetObject")

    gateway = S3TaskGateway(DeniedClient(), "bucket")
    with pytest.raises(StorageError):
        gateway.find_by_id(MISSING_ID)


def test_api_round_trip_on_sql_backend(tmp_path: Path):
    from fastapi.testclient import TestClient

    from taskapi.main import create_app

    store = _sql_store(tmp_path)
    client = TestClient(create_app(store=store))

    r = client.post("/tasks", data={"title": "Buy milk", "description": "2%"})
    assert r.status_code == 201
    task_id = r.headers["location"].rsplit("/", 1)[-1]

    r = client.put(f"/tasks/{task_id}", data={"completed": "true", "title": ""})
    assert r.status_code == 200
    assert client.get(f"/tasks/{task_id}").json() == {
        "id": task_id,
        "completed": True,
        "description": "2%",
        "duedate": "",
        "title": "Buy milk",
    }
    assert client.delete(f"/tasks/{task_id}").status_code == 200
    assert client.get(f"/tasks/{task_id}").status_code == 404
    store.close()
