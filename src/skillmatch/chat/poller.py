"""APScheduler-based message polling for one conversation."""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from skillmatch.dal.messages import MessageRepository
from skillmatch.dal.result import Result
from skillmatch.models import Message

logger = logging.getLogger(__name__)


class ConversationState:
    """Local display state: confirmed server messages plus provisional sends.

    Provisional messages only live until the next successful fetch replaces
    the whole state.
    """

    def __init__(self) -> None:
        self.messages: list[Message] = []
        self.provisional: list[Message] = []

    @property
    def visible(self) -> list[Message]:
        return self.messages + self.provisional

    def add_provisional(self, message: Message) -> None:
        self.provisional.append(message)

    def replace(self, fetched: list[Message]) -> None:
        self.messages = list(fetched)
        self.provisional = []


class MessagePoller:
    """Refreshes a conversation on a fixed interval (last write wins)."""

    def __init__(
        self,
        messages: MessageRepository,
        application_id: str,
        interval_sec: float = 5.0,
        state: ConversationState | None = None,
    ) -> None:
        self.messages = messages
        self.application_id = application_id
        self.interval_sec = interval_sec
        self.state = state or ConversationState()
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def job_id(self) -> str:
        return f"chat:{self.application_id}"

    async def poll_once(self) -> Result[list[Message]]:
        result = await self.messages.fetch_messages(self.application_id)
        if result.ok:
            self.state.replace(result.data or [])
        else:
            logger.debug("Poll for %s failed, keeping local state: %s", self.application_id, result.error)
        return result

    async def send(self, sender_id: str, content: str) -> Result[Message]:
        """Show the message immediately, post it, then reconcile with the server."""
        self.state.add_provisional(
            Message(application_id=self.application_id, sender_id=sender_id, content=content)
        )
        result = await self.messages.send_message(self.application_id, sender_id, content)
        await self.poll_once()
        return result

    def start(self, scheduler: AsyncIOScheduler) -> None:
        scheduler.add_job(
            self.poll_once,
            trigger=IntervalTrigger(seconds=self.interval_sec),
            id=self.job_id,
            replace_existing=True,
            coalesce=True,
        )
        self._scheduler = scheduler
        logger.info("Polling conversation %s every %.1fs", self.application_id, self.interval_sec)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.get_job(self.job_id):
            self._scheduler.remove_job(self.job_id)
        self._scheduler = None
        logger.info("Stopped polling conversation %s", self.application_id)
