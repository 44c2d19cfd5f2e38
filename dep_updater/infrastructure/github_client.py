import aiohttp
import asyncio
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from dep_updater.domain.exceptions import (
    ConflictException,
    NotFoundException,
    RateLimitExceededException,
    SourceControlException,
)
from dep_updater.domain.models import Manifest, RepositoryTarget
from dep_updater.infrastructure.acl import ManifestTranslator

logger = logging.getLogger(__name__)

MANIFEST_PATH = "package.json"
REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=60, connect=10)
CONFLICT_STATUSES = {409, 422}


def _ref_path(branch: str) -> str:
    return quote(f"heads/{branch}", safe="/")


class GitHubRestClient:
    """
    Client for the GitHub REST API.
    Handles authentication and maps error responses onto domain exceptions.
    No call is retried: a failure surfaces to the caller on the first attempt.
    """

    def __init__(self, token: str):
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "npm-dependency-updater",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self.api_url = "https://api.github.com"

    async def _request(
        self,
        session: aiohttp.ClientSession,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> Tuple[int, Any]:
        """
        Sends a single request and returns (status, decoded JSON body).

        Raises:
            NotFoundException: On 404.
            ConflictException: On 409 or 422.
            RateLimitExceededException: On 403/429 with no remaining quota.
            SourceControlException: On any other error status or a transport failure.
        """
        url = f"{self.api_url}{path}"
        try:
            async with session.request(method, url, headers=self.headers, timeout=REQUEST_TIMEOUT, **kwargs) as response:
                status = response.status
                data = None
                if status != 204:
                    try:
                        data = await response.json(content_type=None)
                    except ValueError:
                        data = None

                if 200 <= status < 300:
                    return status, data

                message = data.get("message") if isinstance(data, dict) else None
                message = message or f"HTTP {status}"
                detail = f"{method} {path}: {message}"

                if status == 404:
                    raise NotFoundException(detail)
                if status in CONFLICT_STATUSES:
                    raise ConflictException(detail, status=status)
                if status in {403, 429} and response.headers.get("X-RateLimit-Remaining") == "0":
                    raise RateLimitExceededException(reset_at=response.headers.get("X-RateLimit-Reset"))
                raise SourceControlException(detail, status=status)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SourceControlException(f"{method} {path} failed: {e!r}") from e

    async def read_manifest(self, session: aiohttp.ClientSession, target: RepositoryTarget) -> Manifest:
        """
        Fetches and parses package.json from the target's base branch.

        Raises:
            NotFoundException: If the file is missing or the path is a directory.
        """
        _, data = await self._request(
            session,
            "GET",
            f"/repos/{target.identifier}/contents/{MANIFEST_PATH}",
            params={"ref": target.base_branch},
        )
        return ManifestTranslator.to_domain(data, MANIFEST_PATH)

    async def read_branch_head(self, session: aiohttp.ClientSession, identifier: str, branch: str) -> str:
        """Returns the commit sha a branch points at. Raises NotFoundException if the branch is missing."""
        _, data = await self._request(session, "GET", f"/repos/{identifier}/git/ref/{_ref_path(branch)}")
        return data["object"]["sha"]

    async def branch_exists(self, session: aiohttp.ClientSession, identifier: str, branch: str) -> bool:
        # Only a 404 means absent; outages and permission errors propagate.
        try:
            await self.read_branch_head(session, identifier, branch)
        except NotFoundException:
            return False
        return True

    async def ensure_branch(
        self,
        session: aiohttp.ClientSession,
        identifier: str,
        branch: str,
        from_sha: str,
    ) -> None:
        """
        Makes `branch` point at `from_sha`, deleting and recreating it if it already exists.

        Not atomic: a failure between the delete and the create leaves the branch absent.
        """
        if await self.branch_exists(session, identifier, branch):
            await self._request(session, "DELETE", f"/repos/{identifier}/git/refs/{_ref_path(branch)}")
            logger.info(f"Deleted existing branch: {branch}")

        await self._request(
            session,
            "POST",
            f"/repos/{identifier}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": from_sha},
        )

    async def commit_file(
        self,
        session: aiohttp.ClientSession,
        identifier: str,
        branch: str,
        path: str,
        content: str,
        expected_sha: str,
        message: str,
    ) -> None:
        """
        Overwrites a file on a branch.

        Raises:
            ConflictException: If the file no longer matches `expected_sha`.
        """
        payload: Dict[str, Any] = {
            "message": message,
            "content": ManifestTranslator.encode(content),
            "branch": branch,
            "sha": expected_sha,
        }
        await self._request(session, "PUT", f"/repos/{identifier}/contents/{path}", json=payload)

    async def open_pull_request(
        self,
        session: aiohttp.ClientSession,
        identifier: str,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> Optional[str]:
        """
        Opens a pull request and returns its URL.

        Raises:
            ConflictException: If GitHub rejects it, e.g. a pull request for this head already exists.
        """
        _, data = await self._request(
            session,
            "POST",
            f"/repos/{identifier}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
        )
        return data.get("html_url") if isinstance(data, dict) else None
