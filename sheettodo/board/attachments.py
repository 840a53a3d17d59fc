"""File attachments of a task: validation, inline base64 upload, delete."""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path

from sheettodo.board.collection import TaskCollection
from sheettodo.config import ALLOWED_EXTENSIONS, MAX_ATTACHMENT_BYTES
from sheettodo.errors import ConfirmationRequired, InvalidInput, TaskNotFound
from sheettodo.models import Attachment
from sheettodo.remote import RemoteStoreClient

logger = logging.getLogger(__name__)


def format_size(num_bytes: int) -> str:
    """Human-readable size for messages, e.g. ``100 MB``."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:g} {unit}"
        size /= 1024
    return f"{size:g} GB"


class AttachmentManager:
    """Uploads and deletes attachments, keeping the owning task in sync.

    Attachments are only ever a sub-field of a loaded task, so there is no
    listing call here.
    """

    def __init__(
        self,
        remote: RemoteStoreClient,
        collection: TaskCollection,
        *,
        allowed_extensions: tuple[str, ...] = ALLOWED_EXTENSIONS,
        max_bytes: int = MAX_ATTACHMENT_BYTES,
    ) -> None:
        self._remote = remote
        self._collection = collection
        self._allowed = tuple(ext.lower().lstrip(".") for ext in allowed_extensions)
        self._max_bytes = max_bytes

    def validate(self, name: str, size: int) -> None:
        """Reject a disallowed extension or an oversized file.

        Raises:
            InvalidInput: With a message listing the allowed types or
                naming the size limit.
        """
        extension = Path(name).suffix.lower().lstrip(".")
        if extension not in self._allowed:
            allowed = ", ".join(f".{ext}" for ext in self._allowed)
            raise InvalidInput(f"File type not allowed. Allowed types: {allowed}")
        if size > self._max_bytes:
            raise InvalidInput(
                f"File is too large. Maximum size is {format_size(self._max_bytes)}"
            )

    async def upload(self, task_id: str, name: str, content: bytes) -> Attachment:
        """Validate, base64-encode and upload *content* for a task."""
        self._collection.get(task_id)
        self.validate(name, len(content))

        mime_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        encoded = base64.b64encode(content).decode("ascii")
        attachment = await self._remote.upload_attachment(task_id, name, mime_type, encoded)

        self._attach(task_id, attachment)
        logger.info("Uploaded %s (%d bytes) to task %s", name, len(content), task_id)
        return attachment

    async def upload_path(self, task_id: str, path: Path) -> Attachment:
        """Upload a local file; the size check happens before reading it."""
        path = Path(path)
        self.validate(path.name, path.stat().st_size)
        return await self.upload(task_id, path.name, path.read_bytes())

    def confirmation_prompt(self, task_id: str, attachment_id: str) -> str:
        attachment = self._find(task_id, attachment_id)
        return f'Delete attachment "{attachment.name}"?'

    async def delete(self, task_id: str, attachment_id: str, confirmed: bool = False) -> None:
        """Remove an attachment from the store and from its task.

        Raises:
            ConfirmationRequired: If *confirmed* is false. Nothing is sent.
        """
        prompt = self.confirmation_prompt(task_id, attachment_id)
        if not confirmed:
            raise ConfirmationRequired(prompt)

        await self._remote.delete_attachment(task_id, attachment_id)
        if task_id not in self._collection:
            return
        task = self._collection.get(task_id)
        remaining = [a for a in task.attachments if a.id != attachment_id]
        self._collection.put(task.model_copy(update={"attachments": remaining}))

    # -- private helpers -----------------------------------------------------

    def _find(self, task_id: str, attachment_id: str) -> Attachment:
        for attachment in self._collection.get(task_id).attachments:
            if attachment.id == attachment_id:
                return attachment
        raise TaskNotFound(f"Attachment {attachment_id} not found")

    def _attach(self, task_id: str, attachment: Attachment) -> None:
        # Re-read: the task may have been replaced while the upload ran.
        if task_id not in self._collection:
            return
        task = self._collection.get(task_id)
        self._collection.put(
            task.model_copy(update={"attachments": [*task.attachments, attachment]})
        )
