"""
Application configuration using pydantic-settings.
All environment variables are validated and typed.

Build credentials are never read from here: they are entered per session
through the control bot.
"""

import os
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Control bot token
    tg_token: str = ""

    # Users allowed to talk to the control bot (comma/space separated)
    allowed_user_ids: str | None = None

    # GitHub REST API
    github_api_url: str = "https://api.github.com"
    github_api_version: str = "2022-11-28"
    http_timeout: float = 30.0

    # Generated workflow
    workflow_path: str = ".github/workflows/android-build.yml"
    workflow_branch: str = "main"
    workflow_input: str = "build_type"
    workflow_use_secrets: bool = False

    # Status polling cadence, in seconds
    poll_initial_delay: float = 5.0
    poll_interval: float = 10.0

    log_level: str = "INFO"

    @staticmethod
    def _parse_int_list(raw: str | None) -> list[int]:
        if raw is None:
            return []
        tokens = str(raw).replace(",", " ").split()
        result: list[int] = []
        for token in tokens:
            try:
                result.append(int(token))
            except ValueError:
                continue
        return result

    @property
    def allowed_ids(self) -> set[int]:
        """Get parsed allowed user IDs."""
        return set(self._parse_int_list(self.allowed_user_ids))

    @property
    def workflow_file(self) -> str:
        """Workflow file name as used by the dispatch endpoint."""
        return self.workflow_path.rsplit("/", 1)[-1]

    @field_validator("github_api_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return str(value).strip().rstrip("/")

    @field_validator("poll_initial_delay", "poll_interval")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("polling delays must not be negative")
        return value

    model_config = {
        "env_file": os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton settings instance
settings = Settings()
