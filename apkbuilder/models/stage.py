"""
Build stages of a single build attempt.
"""

from enum import Enum


class NotificationStatus(str, Enum):
    """Coarse label used as the header of chat notifications."""

    SETUP = "🔧 Build Setup"
    IN_PROGRESS = "⚙️ Build In Progress"
    FINISHED = "✅ Build Finished"
    FAILED = "❌ Build Failed"


class BuildStage(Enum):
    """
    Ordered stages of the build process.

    Stages move forward only. ``COMPLETED`` is reachable from
    ``POLLING_STATUS`` alone, ``FAILED`` from any non-terminal stage, and a
    terminal stage goes back to ``IDLE`` only through an explicit reset.
    """

    IDLE = (0, "🚀 Ready to build projects!", NotificationStatus.SETUP)
    CHECKING_TOKEN = (1, "🔑 Verifying GitHub token...", NotificationStatus.SETUP)
    FETCHING_REPOS = (2, "📥 Fetching repository list...", NotificationStatus.SETUP)
    VERIFYING_ACCESS = (3, "🔍 Checking repository access...", NotificationStatus.SETUP)
    SETTING_UP_WORKFLOW = (4, "📝 Creating CI/CD workflow file...", NotificationStatus.SETUP)
    TESTING_NOTIFIER = (5, "💬 Testing Telegram connection...", NotificationStatus.SETUP)
    TRIGGERING_BUILD = (6, "🚀 Triggering GitHub Actions workflow...", NotificationStatus.IN_PROGRESS)
    POLLING_STATUS = (7, "⏳ Build started. Polling status...", NotificationStatus.IN_PROGRESS)
    COMPLETED = (8, "✅ Build process finished.", NotificationStatus.FINISHED)
    FAILED = (9, "❌ Build process failed.", NotificationStatus.FAILED)

    def __init__(self, order: int, message: str, notification_status: NotificationStatus):
        self.order = order
        self.message = message
        self.notification_status = notification_status

    @property
    def is_terminal(self) -> bool:
        return self in (BuildStage.COMPLETED, BuildStage.FAILED)

    def next(self) -> "BuildStage":
        """Next stage in sequence; polling and terminal stages stay put."""
        if self.order < BuildStage.POLLING_STATUS.order:
            return _BY_ORDER[self.order + 1]
        return self

    def can_transition_to(self, target: "BuildStage") -> bool:
        """Check whether moving from this stage to ``target`` is legal."""
        if self.is_terminal:
            return target is BuildStage.IDLE
        if target is BuildStage.FAILED:
            return True
        if target is BuildStage.COMPLETED:
            return self is BuildStage.POLLING_STATUS
        if target is BuildStage.IDLE:
            return False
        return target.order > self.order


_BY_ORDER = {stage.order: stage for stage in BuildStage}
