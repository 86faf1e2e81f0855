"""
Background delivery of build notifications.

Deliveries run as independent asyncio tasks and are not ordered relative to
each other. Only the latest state matters to the reader, so the last write
wins: text published while the first message is still being sent is applied
as an edit once its handle is known.
"""

from __future__ import annotations

import asyncio
from typing import Coroutine

from apkbuilder.core.exceptions import NotifierError
from apkbuilder.core.logging import get_logger
from apkbuilder.models.build import BuildTarget, NotificationHandle
from apkbuilder.models.stage import BuildStage
from apkbuilder.services.telegram.client import NotifierClient

logger = get_logger(__name__)


def format_notification(stage: BuildStage, body: str, target: BuildTarget) -> str:
    """Compose a chat notification for a stage."""
    return (
        f"🤖 <b>APK Builder - {stage.notification_status.value}</b>\n\n"
        f"{body}\n\n"
        f"📦 Repository: <code>{target.full_name}</code>\n"
        f"🔨 Build Type: {target.build_variant}"
    )


class BuildNotifier:
    """Notifications for one build attempt."""

    def __init__(self, client: NotifierClient, token: str, chat_id: str):
        self._client = client
        self._token = token
        self._chat_id = chat_id
        self._handle: NotificationHandle | None = None
        self._sending = False
        self._released = False
        self._latest: str | None = None
        self._tasks: set[asyncio.Task] = set()
        self._finals: set[asyncio.Task] = set()

    @property
    def handle(self) -> NotificationHandle | None:
        return self._handle

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def publish(self, text: str) -> None:
        """Create the progress message on first use, edit it afterwards."""
        if self._handle is not None:
            self._spawn(self._client.edit(self._token, self._chat_id, self._handle, text))
        elif self._sending:
            self._latest = text
        else:
            self._sending = True
            self._released = False
            self._latest = None
            self._spawn(self._create(text))

    async def _create(self, text: str) -> None:
        try:
            handle = await self._client.send(self._token, self._chat_id, text)
        except NotifierError as e:
            logger.warning(f"Build notification not delivered: {e}")
            self._latest = None
            return
        finally:
            self._sending = False

        if self._released:
            return
        self._handle = handle
        pending, self._latest = self._latest, None
        if pending is not None:
            await self._client.edit(self._token, self._chat_id, handle, pending)

    def send_final(self, text: str) -> None:
        """Send the closing message and release the progress handle."""
        self._handle = None
        self._latest = None
        self._released = True
        task = self._spawn(self._deliver_final(text))
        self._finals.add(task)
        task.add_done_callback(self._finals.discard)

    async def _deliver_final(self, text: str) -> None:
        try:
            await self._client.send(self._token, self._chat_id, text)
        except NotifierError as e:
            logger.warning(f"Final build notification not delivered: {e}")

    async def drain(self) -> None:
        """Wait for outstanding deliveries."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel outstanding progress deliveries. Final messages still go out."""
        for task in list(self._tasks - self._finals):
            task.cancel()
