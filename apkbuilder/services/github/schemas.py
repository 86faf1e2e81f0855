"""
Data schemas for GitHub API payloads.

Payloads are tagged by shape first (:func:`classify_payload`) and only then
decoded, so a response of the wrong kind fails loudly instead of being
half-read.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from apkbuilder.core.exceptions import ParseError

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class PayloadKind(Enum):
    RUN_LIST = "run_list"
    SINGLE_RUN = "single_run"
    FILE_CONTENT = "file_content"
    CONTENT_UPDATE = "content_update"
    ERROR = "error"


class RunStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Conclusion(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    ACTION_REQUIRED = "action_required"
    NEUTRAL = "neutral"
    SKIPPED = "skipped"
    STALE = "stale"
    STARTUP_FAILURE = "startup_failure"


# Pre-execution states GitHub reports before a runner picks the job up
_QUEUED_ALIASES = {"requested", "waiting", "pending"}


def classify_payload(payload: Any) -> PayloadKind:
    """
    Tag a decoded JSON payload with its shape.

    Raises:
        ParseError: If the payload matches no known shape
    """
    if isinstance(payload, dict):
        if isinstance(payload.get("workflow_runs"), list):
            return PayloadKind.RUN_LIST
        if "id" in payload and "status" in payload and "run_number" in payload:
            return PayloadKind.SINGLE_RUN
        if isinstance(payload.get("content"), dict) and isinstance(payload.get("commit"), dict):
            return PayloadKind.CONTENT_UPDATE
        if payload.get("type") == "file" and "sha" in payload:
            return PayloadKind.FILE_CONTENT
        if "message" in payload:
            return PayloadKind.ERROR
    raise ParseError(f"Unrecognized GitHub payload: {_describe(payload)}")


def _describe(payload: Any) -> str:
    if isinstance(payload, dict):
        return f"object with keys {sorted(payload)[:8]}"
    return type(payload).__name__


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; None when missing or malformed."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: str | None) -> str | None:
    """
    Format an ISO-8601 timestamp as ``MMM DD, HH:MM``.

    Month names come from a fixed table, so the output does not depend on the
    locale. Malformed input is returned unchanged.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return f"{_MONTHS[parsed.month - 1]} {parsed.day:02d}, {parsed.hour:02d}:{parsed.minute:02d}"


@dataclass(frozen=True)
class WorkflowRunStatus:
    """Normalized view of one workflow run, re-fetched on every poll."""

    run_id: str
    status: RunStatus
    conclusion: Conclusion | None
    html_url: str
    branch: str
    created_at: str
    updated_at: str
    run_number: int
    name: str = ""
    event: str = ""

    @classmethod
    def from_run(cls, run: dict) -> "WorkflowRunStatus":
        """
        Decode a single run object.

        Raises:
            ParseError: If required fields are missing or hold unknown values
        """
        try:
            run_id = run["id"]
            raw_status = run["status"]
        except (KeyError, TypeError) as e:
            raise ParseError(f"Workflow run is missing {e}") from e

        if raw_status in _QUEUED_ALIASES:
            raw_status = RunStatus.QUEUED.value
        try:
            status = RunStatus(raw_status)
        except ValueError as e:
            raise ParseError(f"Unknown workflow run status: {raw_status}") from e

        conclusion = None
        raw_conclusion = run.get("conclusion")
        # A conclusion only exists once the run has completed
        if status is RunStatus.COMPLETED and raw_conclusion:
            try:
                conclusion = Conclusion(raw_conclusion)
            except ValueError as e:
                raise ParseError(f"Unknown workflow run conclusion: {raw_conclusion}") from e

        try:
            run_number = int(run.get("run_number") or 0)
        except (TypeError, ValueError) as e:
            raise ParseError(f"Invalid run number: {run.get('run_number')}") from e

        return cls(
            run_id=str(run_id),
            status=status,
            conclusion=conclusion,
            html_url=run.get("html_url") or "",
            branch=run.get("head_branch") or "",
            created_at=run.get("created_at") or "",
            updated_at=run.get("updated_at") or "",
            run_number=run_number,
            name=run.get("name") or "",
            event=run.get("event") or "",
        )

    @property
    def created(self) -> datetime | None:
        return parse_timestamp(self.created_at)

    @property
    def is_active(self) -> bool:
        return self.status in (RunStatus.QUEUED, RunStatus.IN_PROGRESS)

    @property
    def is_terminal(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def is_successful(self) -> bool:
        return self.is_terminal and self.conclusion is Conclusion.SUCCESS

    @property
    def emoji(self) -> str:
        if self.status is RunStatus.QUEUED:
            return "⏱️"
        if self.status is RunStatus.IN_PROGRESS:
            return "🏗️"
        if self.conclusion is Conclusion.SUCCESS:
            return "✅"
        if self.conclusion is Conclusion.FAILURE:
            return "❌"
        if self.conclusion is Conclusion.CANCELLED:
            return "🚫"
        return "⚠️"

    def _headline(self) -> str:
        if not self.is_terminal:
            return f"Current Status: {self.status.value}"
        if self.conclusion is Conclusion.SUCCESS:
            return "Build Successful!"
        if self.conclusion is Conclusion.FAILURE:
            return "Build Failed!"
        conclusion = self.conclusion.value if self.conclusion else "unknown"
        return f"Build Concluded: {conclusion}"

    def summary(self) -> str:
        """Short operator-facing summary."""
        return (
            f"{self._headline()}\n"
            f"  {self.emoji} Run #{self.run_number} on branch {self.branch}\n"
            f"  📅 Updated: {format_timestamp(self.updated_at)}"
        )

    def progress_text(self) -> str:
        """Detailed status line for the current run state."""
        if self.status is RunStatus.QUEUED:
            return "⏳ Build is queued\nWaiting for available runner..."
        if self.status is RunStatus.IN_PROGRESS:
            return "🔄 Build in progress...\nWorking on your APK"
        if self.conclusion is Conclusion.SUCCESS:
            return "✅ Build completed successfully!\nThe APK is being sent to Telegram."
        if self.conclusion is Conclusion.FAILURE:
            return "❌ Build failed\nCheck GitHub for error details"
        if self.conclusion is Conclusion.CANCELLED:
            return "🚫 Build cancelled"
        conclusion = self.conclusion.value if self.conclusion else "unknown"
        return f"📋 Build completed with status: {conclusion}"

    def notification_text(self, repo_full_name: str) -> str:
        """HTML summary for chat notifications."""
        if not self.is_terminal:
            headline = "<b>BUILD STATUS UPDATE</b>"
        elif self.conclusion is Conclusion.SUCCESS:
            headline = "<b>BUILD SUCCESS!</b>"
        elif self.conclusion is Conclusion.FAILURE:
            headline = "<b>BUILD FAILED!</b>"
        else:
            conclusion = self.conclusion.value if self.conclusion else "unknown"
            headline = f"<b>BUILD CONCLUDED: {conclusion.upper()}</b>"

        lines = [
            headline,
            f"{self.emoji} Repository: <code>{repo_full_name}</code>",
            f"  • Run: #{self.run_number} ({self.run_id})",
            f"  • Branch: <code>{self.branch}</code>",
            f"  • Created: {format_timestamp(self.created_at)}",
            f"  • Updated: {format_timestamp(self.updated_at)}",
        ]
        if self.html_url:
            lines.append(f'\n<a href="{self.html_url}">🔗 View Full Workflow Details</a>')
        return "\n".join(lines)


def decode_latest_run(payload: Any) -> WorkflowRunStatus | None:
    """
    Decode the newest run from a runs list or single run payload.

    Returns:
        The run, or None when the list is empty

    Raises:
        ParseError: If the payload is of any other kind
    """
    kind = classify_payload(payload)
    if kind is PayloadKind.RUN_LIST:
        runs = payload["workflow_runs"]
        if not runs:
            return None
        return WorkflowRunStatus.from_run(runs[0])
    if kind is PayloadKind.SINGLE_RUN:
        return WorkflowRunStatus.from_run(payload)
    if kind is PayloadKind.ERROR:
        raise ParseError(f"GitHub returned an error payload: {payload['message']}")
    raise ParseError(f"Expected a workflow run payload, got {kind.value}")


@dataclass(frozen=True)
class FileCommit:
    """Result of writing a file through the contents API."""

    sha: str
    html_url: str
    commit_sha: str

    @classmethod
    def from_payload(cls, payload: Any) -> "FileCommit":
        if classify_payload(payload) is not PayloadKind.CONTENT_UPDATE:
            raise ParseError("Expected a content update payload")
        content = payload["content"]
        return cls(
            sha=content.get("sha", ""),
            html_url=content.get("html_url", ""),
            commit_sha=payload["commit"].get("sha", ""),
        )
