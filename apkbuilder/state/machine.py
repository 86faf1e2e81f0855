"""
Build stage machine driving one remote build attempt.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Awaitable, Callable

from apkbuilder.core.exceptions import (
    AccessDeniedError,
    BuildError,
    MissingCredentialsError,
    failure_message,
)
from apkbuilder.core.logging import get_logger
from apkbuilder.models.build import BuildOptions, BuildSession, advance
from apkbuilder.models.stage import BuildStage
from apkbuilder.services.github.client import GitHubClient
from apkbuilder.services.github.schemas import WorkflowRunStatus
from apkbuilder.services.github.workflow import render_workflow
from apkbuilder.services.notifications import BuildNotifier, format_notification
from apkbuilder.state.poller import StatusPoller

logger = get_logger(__name__)

SessionListener = Callable[[BuildSession], Awaitable[None]]


class BuildStageMachine:
    """
    Drive a build attempt from ``IDLE`` to ``POLLING_STATUS``, then hand the
    run over to :class:`StatusPoller`, which decides the terminal stage.

    The current :class:`BuildSession` is replaced on every change and passed
    to ``on_change``.
    """

    def __init__(
        self,
        github: GitHubClient,
        notifier: BuildNotifier,
        session: BuildSession,
        options: BuildOptions | None = None,
        on_change: SessionListener | None = None,
    ):
        self._github = github
        self._notifier = notifier
        self._session = session
        self._options = options or BuildOptions()
        self._on_change = on_change
        self._poller: StatusPoller | None = None

    @property
    def session(self) -> BuildSession:
        return self._session

    @property
    def stage(self) -> BuildStage:
        return self._session.stage

    @property
    def poller(self) -> StatusPoller | None:
        return self._poller

    @property
    def options(self) -> BuildOptions:
        return self._options

    async def _publish(self, session: BuildSession) -> None:
        self._session = session
        if self._on_change is None:
            return
        try:
            await self._on_change(session)
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Status listener failed: {e}")

    async def _transition(self, stage: BuildStage, status_text: str | None = None, error: str | None = None) -> None:
        session = advance(self._session, stage, status_text=status_text, error=error)
        logger.info(f"{session.target.full_name}: {self._session.stage.name} -> {stage.name}")
        await self._publish(session)

    async def run(self) -> BuildSession:
        """
        Verify access, commit the workflow, dispatch it and start polling.

        Errors are never raised: any failure ends the attempt in ``FAILED``
        with a message telling the user what to check. An :meth:`abort`
        landing while a step is awaited ends the sequence after that step.
        """
        steps = (self._check_credentials, self._verify_access, self._setup_workflow, self._trigger_build)
        try:
            for step in steps:
                await step()
                if self.stage.is_terminal:
                    logger.info(f"{self._session.target.full_name}: aborted during {step.__name__}")
                    return self._session
        except BuildError as e:
            logger.error(f"Build setup failed for {self._session.target.full_name}: {e}")
            await self._fail_setup(e)
            return self._session
        except Exception as e:  # noqa: BLE001
            logger.exception(f"Unexpected error building {self._session.target.full_name}")
            await self._fail_setup(e)
            return self._session

        target = self._session.target
        self._notifier.publish(
            format_notification(BuildStage.POLLING_STATUS, "🚀 Build triggered, waiting for the run to start...", target)
        )
        await self._transition(
            BuildStage.POLLING_STATUS,
            status_text=(
                "✅ BUILD STARTED SUCCESSFULLY! 🎉\n\n"
                f"📦 Repository: {target.full_name}\n"
                f"🔨 Build Type: {target.build_variant}\n"
                "🏗️ Status: Initializing build...\n\n"
                "📱 The APK will be sent to your Telegram automatically."
            ),
        )
        if self.stage.is_terminal:
            return self._session
        self._poller = StatusPoller(
            self,
            self._github,
            self._notifier,
            initial_delay=self._options.poll_initial_delay,
            interval=self._options.poll_interval,
        )
        self._poller.start()
        return self._session

    async def _enter(self, stage: BuildStage) -> bool:
        """Move to a setup stage; False once the attempt has been aborted."""
        if self.stage.is_terminal:
            return False
        await self._transition(stage)
        return not self.stage.is_terminal

    async def _check_credentials(self) -> None:
        if not await self._enter(BuildStage.CHECKING_TOKEN):
            return
        missing = self._session.credentials.missing()
        if missing:
            raise MissingCredentialsError(f"Missing credentials: {', '.join(missing)}")

    async def _verify_access(self) -> None:
        if not await self._enter(BuildStage.VERIFYING_ACCESS):
            return
        target = self._session.target
        if not await self._github.verify_access(target.owner_login, target.repo_name):
            raise AccessDeniedError(f"Cannot access repository {target.full_name}")

    async def _setup_workflow(self) -> None:
        if not await self._enter(BuildStage.SETTING_UP_WORKFLOW):
            return
        target = self._session.target
        credentials = self._session.credentials
        content = render_workflow(
            target.build_variant,
            credentials.notifier_token,
            credentials.notifier_chat_id,
            workflow_input=self._options.workflow_input,
            use_secret_store=self._options.use_secret_store,
        )
        await self._github.upsert_workflow_file(
            target.owner_login,
            target.repo_name,
            self._options.workflow_path,
            content,
            self._options.branch,
        )

    async def _trigger_build(self) -> None:
        if not await self._enter(BuildStage.TRIGGERING_BUILD):
            return
        target = self._session.target
        # Runs created before this instant belong to earlier attempts
        self._session = replace(self._session, dispatched_at=datetime.now(timezone.utc))
        await self._github.dispatch_build(
            target.owner_login,
            target.repo_name,
            target.build_variant,
            workflow_file=self._options.workflow_file,
            ref=self._options.branch,
            input_name=self._options.workflow_input,
        )
        if self.stage.is_terminal:
            logger.warning(f"{target.full_name}: workflow was dispatched after the build was cancelled")

    async def _fail_setup(self, exc: Exception) -> None:
        if self.stage.is_terminal:
            logger.info(f"Ignoring setup error after cancellation: {exc}")
            return
        await self._transition(BuildStage.FAILED, status_text=failure_message(exc), error=str(exc))

    # Called by StatusPoller

    async def report_progress(self, run: WorkflowRunStatus) -> None:
        """Mirror an active run while staying in ``POLLING_STATUS``."""
        text = f"{run.progress_text()}\n\n{run.summary()}"
        if run.html_url:
            text += f"\n\n🔗 Monitor: {run.html_url}"
        await self._publish(replace(self._session, status_text=text, last_run_id=run.run_id))

    async def conclude(self, run: WorkflowRunStatus) -> None:
        """Move to ``COMPLETED`` or ``FAILED`` from a terminal run."""
        self._session = replace(self._session, last_run_id=run.run_id)
        text = f"{run.progress_text()}\n\n{run.summary()}"
        if run.html_url:
            text += f"\n\n🔗 Details: {run.html_url}"
        if run.is_successful:
            await self._transition(BuildStage.COMPLETED, status_text=text)
        else:
            conclusion = run.conclusion.value if run.conclusion else "unknown"
            await self._transition(
                BuildStage.FAILED,
                status_text=text + "\n\nCheck the GitHub workflow logs for details.",
                error=f"Run concluded with {conclusion}",
            )

    async def fail(self, exc: Exception) -> None:
        """Move to ``FAILED`` after a polling error."""
        await self._transition(BuildStage.FAILED, status_text=failure_message(exc), error=str(exc))

    # Called by the hosting UI

    def stop(self) -> None:
        """Stop polling immediately. No stage transition happens."""
        if self._poller is not None:
            self._poller.stop()
        self._notifier.close()

    async def abort(self, reason: str = "Build cancelled by user") -> None:
        """Stop polling and end the attempt in ``FAILED``."""
        if self._poller is not None:
            self._poller.stop()
        if not self.stage.is_terminal:
            await self._transition(BuildStage.FAILED, status_text=f"🚫 {reason}", error=reason)

    async def reset(self) -> BuildSession:
        """Acknowledge a finished attempt and return to ``IDLE``."""
        await self._transition(BuildStage.IDLE)
        self._poller = None
        return self._session
