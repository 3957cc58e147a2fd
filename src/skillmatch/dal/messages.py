"""Append-only message log, one conversation per application."""

from __future__ import annotations

import logging

from skillmatch.dal.base import Repository, utcnow_iso
from skillmatch.dal.result import Result, dal_operation
from skillmatch.models import Message
from skillmatch.rest.errors import ApiError, ErrorKind
from skillmatch.rest.query import Query

logger = logging.getLogger(__name__)

MESSAGES = "messages"


class MessageRepository(Repository):

    @dal_operation()
    async def send_message(self, application_id: str, sender_id: str, content: str) -> Result[Message]:
        content = content.strip()
        if not content:
            return Result.failure("Message is empty", ErrorKind.CONSTRAINT)
        row = {
            "application_id": application_id,
            "sender_id": sender_id,
            "content": content,
            "created_at": utcnow_iso(),
        }
        rows = await self.insert(MESSAGES, row)
        return Result.success(Message.model_validate(rows[0] if rows else row))

    @dal_operation(default=list)
    async def fetch_messages(self, application_id: str) -> Result[list[Message]]:
        """Whole conversation, oldest first."""
        query = Query(MESSAGES).eq("application_id", application_id).order("created_at")
        try:
            rows = await self.select(query)
        except ApiError as exc:
            logger.warning("Messages unavailable for application %s: %s", application_id, exc)
            return Result.success([])
        return Result.success([Message.model_validate(row) for row in rows])

    @dal_operation()
    async def fetch_last_message(self, application_id: str) -> Result[Message | None]:
        """Most recent message of a conversation, for previews."""
        query = (
            Query(MESSAGES)
            .eq("application_id", application_id)
            .order("created_at", desc=True)
            .limit(1)
        )
        rows = await self.select(query)
        return Result.success(Message.model_validate(rows[0]) if rows else None)
