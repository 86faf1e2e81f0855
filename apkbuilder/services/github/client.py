"""
GitHub API client for remote Android builds.
"""

import base64
from typing import Any

import httpx
from apkbuilder.core.logging import get_logger
from apkbuilder.core.exceptions import (
    AccessDeniedError,
    ConnectivityError,
    DispatchError,
    GitHubAPIError,
    ParseError,
    WorkflowSetupError,
)
from .schemas import FileCommit, PayloadKind, WorkflowRunStatus, classify_payload, decode_latest_run

logger = get_logger(__name__)


class GitHubClient:
    """Client for the GitHub REST operations a remote build needs."""

    BASE_URL = "https://api.github.com"
    API_VERSION = "2022-11-28"

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        api_version: str | None = None,
        timeout: float = 30.0,
    ):
        self._token = token
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": api_version or self.API_VERSION,
        }
        # Last sha written per (owner, repo, path, branch)
        self._written: dict[tuple[str, str, str, str], str] = {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{path}"
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                return await client.request(method, url, headers=self._headers, **kwargs)
            except httpx.RequestError as e:
                logger.error(f"GitHub request {method} {path} failed: {e}")
                raise ConnectivityError(f"Could not reach GitHub: {e}") from e

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ParseError("GitHub returned invalid JSON") from e

    async def verify_access(self, owner: str, repo: str) -> bool:
        """
        Check that the repository is reachable with the current token.

        Returns:
            True on HTTP 200, False for any other status

        Raises:
            ConnectivityError: If the request could not be sent
        """
        response = await self._request("GET", f"/repos/{owner}/{repo}")
        if response.status_code != 200:
            logger.info(f"Access check for {owner}/{repo} returned {response.status_code}")
        return response.status_code == 200

    async def get_file_sha(self, owner: str, repo: str, path: str, branch: str) -> str | None:
        """Get the current sha of a file, or None when it does not exist."""
        response = await self._request(
            "GET",
            f"/repos/{owner}/{repo}/contents/{path}",
            params={"ref": branch},
        )
        if response.status_code != 200:
            return None
        payload = self._json(response)
        if classify_payload(payload) is not PayloadKind.FILE_CONTENT:
            raise ParseError(f"{path} is not a file")
        return payload["sha"]

    async def upsert_workflow_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        branch: str,
        message: str = "Configure Android CI/CD workflow via APK Builder",
    ) -> FileCommit:
        """
        Create or update a file in the repository.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path inside the repository
            content: File text
            branch: Branch to commit to
            message: Commit message

        Returns:
            FileCommit with the new file sha

        Raises:
            WorkflowSetupError: If GitHub rejects the write
        """
        key = (owner, repo, path, branch)
        sha = await self.get_file_sha(owner, repo, path, branch) or self._written.get(key)

        data = {
            "message": message,
            "content": base64.b64encode(content.encode()).decode(),
            "branch": branch,
        }
        if sha:
            data["sha"] = sha

        response = await self._request("PUT", f"/repos/{owner}/{repo}/contents/{path}", json=data)
        if response.status_code not in (200, 201):
            raise WorkflowSetupError(
                f"Failed to write {path}: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        commit = FileCommit.from_payload(self._json(response))
        self._written[key] = commit.sha
        logger.info(f"{'Updated' if sha else 'Created'} {path} in {owner}/{repo} ({commit.commit_sha[:7]})")
        return commit

    async def dispatch_build(
        self,
        owner: str,
        repo: str,
        variant: str,
        *,
        workflow_file: str = "android-build.yml",
        ref: str = "main",
        input_name: str = "build_type",
    ) -> None:
        """
        Trigger the workflow. GitHub does not return a run id, the run has to
        be discovered with :meth:`fetch_latest_run`.

        Raises:
            DispatchError: If GitHub rejects the dispatch
        """
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/actions/workflows/{workflow_file}/dispatches",
            json={"ref": ref, "inputs": {input_name: variant}},
        )
        if response.status_code not in (200, 204):
            raise DispatchError(
                f"Failed to dispatch workflow: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

    async def fetch_latest_run(
        self,
        owner: str,
        repo: str,
        branch: str = "main",
        *,
        workflow_file: str | None = None,
        event: str | None = None,
    ) -> WorkflowRunStatus | None:
        """
        Fetch the newest workflow run on a branch.

        Args:
            workflow_file: Only consider runs of this workflow
            event: Only consider runs triggered by this event

        Returns:
            The run, or None when no run is visible yet

        Raises:
            AccessDeniedError: On a non-200 response
            ParseError: If the payload is not a runs list
        """
        path = f"/repos/{owner}/{repo}/actions/runs"
        if workflow_file:
            path = f"/repos/{owner}/{repo}/actions/workflows/{workflow_file}/runs"
        params = {"per_page": 1, "branch": branch}
        if event:
            params["event"] = event
        response = await self._request("GET", path, params=params)
        if response.status_code != 200:
            raise AccessDeniedError(
                f"Failed to fetch workflow status: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return decode_latest_run(self._json(response))

    async def list_repositories(self) -> list[str]:
        """Get full names of repositories the token can see."""
        response = await self._request("GET", "/user/repos", params={"per_page": 100})
        if response.status_code != 200:
            raise AccessDeniedError(
                f"Failed to fetch repositories: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        payload = self._json(response)
        if not isinstance(payload, list):
            raise ParseError("Expected a repository list")
        return [item["full_name"] for item in payload if isinstance(item, dict) and "full_name" in item]

    async def cancel_run(self, owner: str, repo: str, run_id: str) -> None:
        """Request cancellation of a workflow run."""
        response = await self._request("POST", f"/repos/{owner}/{repo}/actions/runs/{run_id}/cancel")
        if response.status_code != 202:
            raise GitHubAPIError(
                f"Failed to cancel workflow run: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
