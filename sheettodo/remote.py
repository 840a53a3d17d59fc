"""Async client for the spreadsheet-backed remote store.

Every call goes to one endpoint. Reads are GETs with an optional ``userId``
query parameter; writes are POSTs whose ``text/plain`` body is the JSON object
``{"action": <name>, ...fields}``. Responses are always the envelope
``{"success": bool, "data": ..., "error": str}`` and HTTP status is ignored.
"""

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError

from sheettodo.config import REQUEST_TIMEOUT
from sheettodo.errors import RemoteStoreError, TransportError
from sheettodo.models import (
    Attachment,
    AttachmentDeleteResult,
    DeleteResult,
    EmptyTrashResult,
    Task,
    TaskDraft,
)

logger = logging.getLogger(__name__)

FALLBACK_MESSAGES = {
    "list": "Failed to fetch todos",
    "add": "Failed to add todo",
    "update": "Failed to update todo",
    "delete": "Failed to delete todo",
    "getDeleted": "Failed to fetch deleted todos",
    "restore": "Failed to restore todo",
    "emptyTrash": "Failed to empty trash",
    "uploadAttachment": "Failed to upload attachment",
    "deleteAttachment": "Failed to delete attachment",
}


class RemoteStoreClient:
    """One coroutine per store action.

    Parameters
    ----------
    base_url : str
        The deployed web-app endpoint.
    timeout : float
        Upper bound for a single request, in seconds.
    transport : httpx.AsyncBaseTransport, optional
        Swapped in by tests and by the local development wiring.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        # Web-app deployments answer every call with a redirect to the result.
        self._http = httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # -- reads ---------------------------------------------------------------

    async def list_tasks(self, user_id: Optional[str] = None) -> list[Task]:
        """Fetch the user's active tasks."""
        data = await self._get("list", {"userId": user_id})
        return [self._parse(Task, item, "list") for item in data or []]

    async def list_deleted(self, user_id: Optional[str] = None) -> list[Task]:
        """Fetch the user's soft-deleted tasks."""
        data = await self._get("getDeleted", {"action": "getDeleted", "userId": user_id})
        return [self._parse(Task, item, "getDeleted") for item in data or []]

    # -- task writes ---------------------------------------------------------

    async def add_task(self, draft: TaskDraft, user_id: Optional[str] = None) -> Task:
        fields = draft.model_dump(by_alias=True, mode="json", exclude_none=True)
        if not fields.get("tags"):
            fields.pop("tags", None)
        data = await self._post("add", userId=user_id, **fields)
        return self._parse(Task, data, "add")

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        """Send *changes* (wire field names) for one task."""
        data = await self._post("update", id=task_id, **changes)
        return self._parse(Task, data, "update")

    async def delete_task(self, task_id: str) -> DeleteResult:
        data = await self._post("delete", id=task_id)
        return self._parse(DeleteResult, data, "delete")

    async def restore_task(self, task_id: str) -> Task:
        data = await self._post("restore", id=task_id)
        return self._parse(Task, data, "restore")

    async def empty_trash(self, user_id: Optional[str] = None) -> EmptyTrashResult:
        data = await self._post("emptyTrash", userId=user_id)
        return self._parse(EmptyTrashResult, data or {}, "emptyTrash")

    # -- attachments ---------------------------------------------------------

    async def upload_attachment(
        self, todo_id: str, file_name: str, mime_type: str, file_data: str
    ) -> Attachment:
        """Upload base64 *file_data* inline in the request body."""
        data = await self._post(
            "uploadAttachment",
            todoId=todo_id,
            fileName=file_name,
            mimeType=mime_type,
            fileData=file_data,
        )
        return self._parse(Attachment, data, "uploadAttachment")

    async def delete_attachment(self, todo_id: str, attachment_id: str) -> AttachmentDeleteResult:
        data = await self._post("deleteAttachment", todoId=todo_id, attachmentId=attachment_id)
        return self._parse(AttachmentDeleteResult, data or {}, "deleteAttachment")

    # -- private helpers -----------------------------------------------------

    async def _get(self, action: str, params: dict[str, Any]) -> Any:
        query = {key: value for key, value in params.items() if value is not None}
        try:
            response = await self._http.get(self._base_url, params=query)
        except httpx.HTTPError as exc:
            logger.error(f"Remote store unreachable for {action}: {exc!r}")
            raise TransportError(FALLBACK_MESSAGES[action], action) from exc
        return self._unwrap(response, action)

    async def _post(self, action: str, **fields: Any) -> Any:
        body = {"action": action}
        body.update({key: value for key, value in fields.items() if value is not None})
        try:
            response = await self._http.post(
                self._base_url,
                content=json.dumps(body),
                headers={"Content-Type": "text/plain"},
            )
        except httpx.HTTPError as exc:
            logger.error(f"Remote store unreachable for {action}: {exc!r}")
            raise TransportError(FALLBACK_MESSAGES[action], action) from exc
        return self._unwrap(response, action)

    def _unwrap(self, response: httpx.Response, action: str) -> Any:
        """Decode the envelope and return its ``data``, or raise."""
        fallback = FALLBACK_MESSAGES[action]
        try:
            envelope = response.json()
        except ValueError as exc:
            logger.error(
                "Undecodable response for %s (HTTP %s)", action, response.status_code
            )
            raise TransportError(fallback, action) from exc

        if not isinstance(envelope, dict):
            logger.error("Response for %s is not an envelope: %r", action, envelope)
            raise TransportError(fallback, action)

        if not envelope.get("success"):
            message = envelope.get("error") or fallback
            logger.warning("Remote store rejected %s: %s", action, message)
            raise RemoteStoreError(message, action)

        return envelope.get("data")

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, action: str):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.error("Malformed %s payload from remote store: %s", action, exc)
            raise RemoteStoreError(FALLBACK_MESSAGES[action], action) from exc
