"""
Timer-driven polling of the latest workflow run.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

from apkbuilder.core.exceptions import BuildError
from apkbuilder.core.logging import get_logger
from apkbuilder.models.stage import BuildStage
from apkbuilder.services.github.client import GitHubClient
from apkbuilder.services.github.schemas import WorkflowRunStatus
from apkbuilder.services.notifications import BuildNotifier, format_notification

if TYPE_CHECKING:
    from apkbuilder.state.machine import BuildStageMachine

logger = get_logger(__name__)

DISPATCH_EVENT = "workflow_dispatch"

# Tolerated difference between the local clock and GitHub's
CLOCK_SKEW = timedelta(seconds=10)


class StatusPoller:
    """
    Repeatedly fetch the latest run until it reaches a terminal status.

    Polls run one at a time inside a single task. After :meth:`stop` no
    result is applied, including one that was already in flight.
    """

    def __init__(
        self,
        machine: BuildStageMachine,
        github: GitHubClient,
        notifier: BuildNotifier,
        *,
        initial_delay: float = 5.0,
        interval: float = 10.0,
    ):
        self._machine = machine
        self._github = github
        self._notifier = notifier
        self._initial_delay = initial_delay
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._running = False
        self._cancelled = False
        self._in_flight = False
        self.last_run_id: str | None = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Schedule the recurring poll."""
        if self._running or self._cancelled:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())

    def stop(self) -> None:
        """Cancel polling unconditionally."""
        self._cancelled = True
        self._running = False
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def wait(self) -> None:
        """Wait for the polling task to finish."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _loop(self) -> None:
        await asyncio.sleep(self._initial_delay)
        while self._running:
            await self.poll_once()
            if not self._running:
                break
            await asyncio.sleep(self._interval)

    async def poll_once(self) -> None:
        """Fetch the latest run once and apply the result."""
        if self._cancelled or self._in_flight:
            return
        self._in_flight = True
        try:
            await self._poll()
        finally:
            self._in_flight = False

    async def _poll(self) -> None:
        target = self._machine.session.target
        options = self._machine.options
        try:
            run = await self._github.fetch_latest_run(
                target.owner_login,
                target.repo_name,
                options.branch,
                workflow_file=options.workflow_file,
                event=DISPATCH_EVENT,
            )
        except BuildError as e:
            if self._cancelled:
                logger.debug(f"Discarding poll error after cancellation: {e}")
                return
            logger.error(f"Polling {target.full_name} failed: {e}")
            self._running = False
            await self._machine.fail(e)
            return

        if self._cancelled:
            logger.debug(f"Discarding late poll result for {target.full_name}")
            return
        if run is None or not self._belongs_to_attempt(run):
            # Dispatch accepted but the run is not visible yet
            return

        self.last_run_id = run.run_id
        if run.is_active:
            await self._machine.report_progress(run)
            self._notifier.publish(
                format_notification(BuildStage.POLLING_STATUS, run.notification_text(target.full_name), target)
            )
            return

        self._running = False
        await self._machine.conclude(run)
        self._notifier.send_final(
            format_notification(self._machine.stage, run.notification_text(target.full_name), target)
        )

    def _belongs_to_attempt(self, run: WorkflowRunStatus) -> bool:
        """Reject runs left over from earlier attempts or other triggers."""
        if run.event and run.event != DISPATCH_EVENT:
            logger.debug(f"Ignoring run {run.run_id} triggered by {run.event}")
            return False
        dispatched_at = self._machine.session.dispatched_at
        created = run.created
        if dispatched_at is not None and created is not None and created < dispatched_at - CLOCK_SKEW:
            logger.debug(f"Ignoring run {run.run_id} created before dispatch")
            return False
        return True
