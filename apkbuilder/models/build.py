"""
Data model for a single build attempt.
"""

import re
from dataclasses import dataclass, replace, field
from datetime import datetime

from apkbuilder.core.exceptions import InvalidTransitionError
from apkbuilder.models.stage import BuildStage

_REPO_URL_RE = re.compile(r"github\.com[/:]([^/\s]+)/([^/\s]+?)(?:\.git)?(?:[/?#].*)?$")


@dataclass(frozen=True)
class BuildTarget:
    """Repository and variant being built."""

    owner_login: str
    repo_name: str
    build_variant: str

    @classmethod
    def from_url(cls, repo_url: str, build_variant: str = "debug") -> "BuildTarget":
        """
        Create a target from a GitHub repository URL.

        Accepts ``https://github.com/owner/repo`` (optionally ending in
        ``.git``) and ``git@github.com:owner/repo.git``.

        Raises:
            ValueError: If the URL does not point to a GitHub repository
        """
        match = _REPO_URL_RE.search(repo_url.strip())
        if not match:
            raise ValueError(
                f"Invalid GitHub URL: {repo_url}. Use https://github.com/username/repository"
            )
        variant = build_variant.strip().lower() or "debug"
        return cls(owner_login=match.group(1), repo_name=match.group(2), build_variant=variant)

    @property
    def full_name(self) -> str:
        return f"{self.owner_login}/{self.repo_name}"


@dataclass(frozen=True)
class Credentials:
    """Per-session tokens, kept in memory only."""

    ci_token: str = ""
    notifier_token: str = ""
    notifier_chat_id: str = ""

    def missing(self) -> list[str]:
        """Names of the credentials that are still empty."""
        return [name for name in ("ci_token", "notifier_token", "notifier_chat_id") if not getattr(self, name)]

    def __repr__(self) -> str:
        return f"Credentials(missing={self.missing()})"


@dataclass(frozen=True)
class NotificationHandle:
    """Opaque reference to a sent notifier message."""

    message_id: str


@dataclass(frozen=True)
class BuildOptions:
    """Tunables for one build attempt."""

    workflow_path: str = ".github/workflows/android-build.yml"
    branch: str = "main"
    workflow_input: str = "build_type"
    use_secret_store: bool = False
    poll_initial_delay: float = 5.0
    poll_interval: float = 10.0

    @property
    def workflow_file(self) -> str:
        return self.workflow_path.rsplit("/", 1)[-1]

    @classmethod
    def from_settings(cls, settings) -> "BuildOptions":
        return cls(
            workflow_path=settings.workflow_path,
            branch=settings.workflow_branch,
            workflow_input=settings.workflow_input,
            use_secret_store=settings.workflow_use_secrets,
            poll_initial_delay=settings.poll_initial_delay,
            poll_interval=settings.poll_interval,
        )


@dataclass(frozen=True)
class BuildSession:
    """State of one build attempt, replaced on every transition."""

    target: BuildTarget
    credentials: Credentials = field(repr=False)
    stage: BuildStage = BuildStage.IDLE
    status_text: str = BuildStage.IDLE.message
    notification_handle: NotificationHandle | None = None
    last_run_id: str | None = None
    dispatched_at: datetime | None = None
    error: str | None = None


def advance(
    session: BuildSession,
    stage: BuildStage,
    *,
    status_text: str | None = None,
    error: str | None = None,
) -> BuildSession:
    """
    Return a copy of ``session`` moved to ``stage``.

    Raises:
        InvalidTransitionError: If the stage graph does not allow the move
    """
    if not session.stage.can_transition_to(stage):
        raise InvalidTransitionError(
            f"Cannot move from {session.stage.name} to {stage.name}"
        )
    changes = {"stage": stage, "status_text": status_text or stage.message, "error": error}
    if stage is BuildStage.IDLE:
        changes.update(notification_handle=None, last_run_id=None, dispatched_at=None)
    return replace(session, **changes)
