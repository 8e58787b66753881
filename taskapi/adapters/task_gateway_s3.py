"""S3/R2-backed task gateway: one JSON object per task."""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from botocore.exceptions import BotoCoreError, ClientError

from taskapi.app.core.errors import NotFoundError, StorageError
from taskapi.app.core.ids import is_valid_task_id, new_task_id
from taskapi.ports.task_gateway import ITaskGateway, TaskRecord

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def _is_missing(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in _MISSING_CODES


class S3TaskGateway(ITaskGateway):
    """Tasks persisted as JSON objects under ``<collection>/`` in a bucket."""

    backend = "s3"

    def __init__(self, client: Any, bucket: str, collection: str = "tasks") -> None:
        self._client = client
        self._bucket = bucket
        self._prefix = f"{collection}/"

    def _task_key(self, task_id: str) -> str:
        return f"{self._prefix}{task_id.lower()}.json"

    def _put(self, task_id: str, payload: TaskRecord) -> None:
        self._client.put_object(
            Bucket=self._bucket,
            Key=self._task_key(task_id),
            Body=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            ContentType="application/json",
        )

    def _get(self, key: str) -> TaskRecord:
        obj = self._client.get_object(Bucket=self._bucket, Key=key)
        return json.loads(obj["Body"].read().decode("utf-8"))

    def insert(self, record: TaskRecord) -> str:
        task_id = new_task_id()
        payload = dict(record)
        payload["id"] = task_id
        try:
            self._put(task_id, payload)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"insert failed: {exc}", cause=exc) from exc
        return task_id

    def find_all(self) -> list[TaskRecord]:
        results: list[TaskRecord] = []
        token: Optional[str] = None
        try:
            while True:
                params = {"Bucket": self._bucket, "Prefix": self._prefix}
                if token:
                    params["ContinuationToken"] = token
                response = self._client.list_objects_v2(**params)
                for item in response.get("Contents", []):
                    key = item.get("Key")
                    if not key or not key.endswith(".json"):
                        continue
                    try:
                        results.append(self._get(key))
                    except ClientError as exc:
                        # Deleted between list and get
                        if _is_missing(exc):
                            continue
                        raise
                if not response.get("IsTruncated"):
                    break
                token = response.get("NextContinuationToken")
        except (ClientError, BotoCoreError, ValueError) as exc:
            raise StorageError(f"find failed: {exc}", cause=exc) from exc
        return results

    def find_by_id(self, task_id: str) -> TaskRecord:
        try:
            return self._get(self._task_key(task_id))
        except ClientError as exc:
            if _is_missing(exc):
                raise NotFoundError("not found", cause=exc) from exc
            raise StorageError(f"find failed: {exc}", cause=exc) from exc
        except (BotoCoreError, ValueError) as exc:
            raise StorageError(f"find failed: {exc}", cause=exc) from exc

    def update_by_id(self, task_id: str, fields: TaskRecord) -> None:
        current = self.find_by_id(task_id)
        updated = dict(current)
        updated.update({key: value for key, value in fields.items() if key != "id"})
        try:
            self._put(task_id, updated)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"update failed: {exc}", cause=exc) from exc

    def delete_by_id(self, task_id: str) -> None:
        key = self._task_key(task_id)
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _is_missing(exc):
                raise NotFoundError("not found", cause=exc) from exc
            raise StorageError(f"delete failed: {exc}", cause=exc) from exc
        except BotoCoreError as exc:
            raise StorageError(f"delete failed: {exc}", cause=exc) from exc

    def is_valid_id(self, value: str) -> bool:
        return is_valid_task_id(value)


class S3TaskStore:
    """boto3 clients are thread-safe, so every checkout shares one gateway."""

    def __init__(self, client: Any, bucket: str, collection: str = "tasks") -> None:
        self._gateway = S3TaskGateway(client, bucket, collection)

    @contextmanager
    def checkout(self) -> Iterator[S3TaskGateway]:
        yield self._gateway

    def close(self) -> None:
        return None
