"""
Custom application exceptions.

Every error carries a ``hint`` with the next steps shown to the user when a
build attempt fails.
"""


class BuildError(Exception):
    """Base exception for build errors."""

    hint = "Start the build again with /build."


class InvalidTransitionError(BuildError):
    """Illegal build stage transition."""

    hint = "Finish or /reset the current build before starting another one."


class MissingCredentialsError(BuildError):
    """Required credentials were not provided."""

    hint = (
        "• Set the GitHub token with /token\n"
        "• Set the notifier bot token and chat id with /notifier"
    )


class APIError(BuildError):
    """External API call failed."""
    pass


class ConnectivityError(APIError):
    """Network or transport failure."""

    hint = "• Check your internet connection\n• Try again in a moment"


class ParseError(APIError):
    """Unexpected payload shape from an external API."""

    hint = "• GitHub returned an unexpected response, try again later"


class NotifierError(APIError):
    """Telegram notifier call failed."""

    hint = (
        "• Bot token is correct\n"
        "• Chat id is correct\n"
        "• The bot was started (send /start to it)"
    )


class GitHubAPIError(APIError):
    """GitHub API call failed."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AccessDeniedError(GitHubAPIError):
    """Repository or run resource is not reachable with the token."""

    hint = (
        "• Repository exists\n"
        "• GitHub token has the repo scope\n"
        "• Token has access to private repositories"
    )


class WorkflowSetupError(GitHubAPIError):
    """Workflow file write was rejected."""

    hint = (
        "• GitHub token has the workflow scope\n"
        "• Target branch exists\n"
        "• Branch protection allows direct commits"
    )


class DispatchError(GitHubAPIError):
    """Workflow dispatch was rejected."""

    hint = (
        "• Workflow file exists on the target branch\n"
        "• GitHub Actions is enabled for the repository"
    )


def failure_message(exc: Exception) -> str:
    """Render a user-facing failure text with actionable next steps."""
    hint = getattr(exc, "hint", BuildError.hint)
    return f"❌ Build Failed\n\nError: {exc}\n\nPlease check:\n{hint}"
