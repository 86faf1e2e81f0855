# GitHub services - GitHub REST API integration
from .client import GitHubClient
from .schemas import WorkflowRunStatus
from .workflow import render_workflow

__all__ = ["GitHubClient", "WorkflowRunStatus", "render_workflow"]
