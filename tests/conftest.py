"""Shared fixtures: an in-memory fake of the spreadsheet store behind httpx."""

import itertools
import json

import httpx
import pytest

from sheettodo.board.state import TaskBoard
from sheettodo.context import UserContext
from sheettodo.remote import RemoteStoreClient

STORE_URL = "https://sheet.test/exec"


class FakeSheet:
    """Speaks the store protocol from plain dicts and records every call.

    ``failures`` maps an action to the error message to answer with;
    ``unreachable`` holds actions that raise a connection error instead.
    """

    def __init__(self) -> None:
        self.tasks: dict[str, dict] = {}
        self.deleted: dict[str, dict] = {}
        self.calls: list[dict] = []
        self.failures: dict[str, str] = {}
        self.unreachable: set[str] = set()
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # -- test helpers --------------------------------------------------------

    def seed(self, **fields) -> dict:
        record = self._new_record(fields)
        self.tasks[record["id"]] = record
        return record

    def seed_deleted(self, **fields) -> dict:
        record = self._new_record(fields)
        self.deleted[record["id"]] = record
        return record

    def actions(self) -> list[str]:
        return [call["action"] for call in self.calls]

    def _new_record(self, fields: dict) -> dict:
        tick = next(self._clock)
        record = {
            "id": str(next(self._ids)),
            "title": "Task",
            "completed": False,
            "createdAt": f"2024-01-{tick:02d}T09:00:00.000Z",
        }
        record.update(fields)
        return record

    # -- transport -----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            payload = dict(request.url.params)
            action = payload.get("action", "list")
        else:
            payload = json.loads(request.content)
            action = payload["action"]

        self.calls.append({
            "method": request.method,
            "action": action,
            "payload": payload,
            "content_type": request.headers.get("content-type"),
        })

        if action in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if action in self.failures:
            return httpx.Response(200, json={"success": False, "error": self.failures[action]})

        try:
            data = getattr(self, f"_do_{action}")(payload)
        except KeyError:
            return httpx.Response(200, json={"success": False, "error": "Todo not found"})
        return httpx.Response(200, json={"success": True, "data": data})

    def _do_list(self, payload):
        return list(self.tasks.values())

    def _do_getDeleted(self, payload):
        return list(self.deleted.values())

    def _do_add(self, payload):
        fields = {k: v for k, v in payload.items() if k not in ("action",)}
        return self.seed(**fields)

    def _do_update(self, payload):
        record = self.tasks[payload["id"]]
        record.update({k: v for k, v in payload.items() if k not in ("action", "id")})
        return dict(record)

    def _do_delete(self, payload):
        self.deleted[payload["id"]] = self.tasks.pop(payload["id"])
        return {"id": payload["id"], "deleted": True}

    def _do_restore(self, payload):
        record = self.deleted.pop(payload["id"])
        self.tasks[payload["id"]] = record
        return dict(record)

    def _do_emptyTrash(self, payload):
        count = len(self.deleted)
        self.deleted.clear()
        return {"deletedCount": count}

    def _do_uploadAttachment(self, payload):
        record = self.tasks[payload["todoId"]]
        attachment = {
            "id": f"att-{next(self._ids)}",
            "name": payload["fileName"],
            "mimeType": payload["mimeType"],
            "url": f"https://files.test/{payload['fileName']}",
            "size": len(payload["fileData"]) * 3 // 4,
            "uploadedAt": "2024-02-01T10:00:00.000Z",
        }
        record.setdefault("attachments", []).append(attachment)
        return attachment

    def _do_deleteAttachment(self, payload):
        record = self.tasks[payload["todoId"]]
        record["attachments"] = [
            a for a in record.get("attachments", []) if a["id"] != payload["attachmentId"]
        ]
        return {"success": True, "deletedId": payload["attachmentId"]}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def sheet():
    return FakeSheet()


@pytest.fixture
def remote(sheet):
    return RemoteStoreClient(STORE_URL, transport=httpx.MockTransport(sheet.handler))


@pytest.fixture
def ctx():
    return UserContext(user_id="alice@example.com", display_name="Alice")


@pytest.fixture
def board(ctx, remote):
    return TaskBoard(ctx, remote)
