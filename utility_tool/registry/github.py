"""GitHub REST registry"""

import asyncio
import base64
import logging
import tempfile
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Any

import aiofiles
import httpx

from .base import RemoteRegistry, TokenCallback
from ..api.exceptions import TransportError
from ..constants import (
    DEFAULT_API_URL,
    DEFAULT_BASE_BRANCH,
    DOWNLOAD_STAGING_PREFIX,
    DEFAULT_REQUEST_TIMEOUT,
    GITHUB_ACCEPT,
    GITHUB_API_VERSION,
    GITHUB_PAGE_SIZE,
)
from ..utils.file_utils import ensure_directory, remove_directory, replace_directory

logger = logging.getLogger(__name__)


class GitHubRegistry(RemoteRegistry):
    """Registry backed by GitHub repositories and branches"""

    def __init__(self, config: Dict[str, Any] = None, token_callback: Optional[TokenCallback] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize GitHub registry

        Args:
            config: ``api_url`` and ``timeout``
            token_callback: Coroutine returning the token for an owner
            transport: Custom httpx transport (tests use ``httpx.MockTransport``)
        """
        super().__init__(config, token_callback)
        self.api_url = self.config.get("api_url", DEFAULT_API_URL).rstrip("/")
        self.timeout = float(self.config.get("timeout", DEFAULT_REQUEST_TIMEOUT))
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _do_initialize(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Accept": GITHUB_ACCEPT,
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
        )

    async def _do_close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, owner: str, *,
                       expected: tuple = (200,),
                       missing: tuple = (),
                       token: Optional[str] = None,
                       **kwargs) -> Optional[httpx.Response]:
        """
        Send an authenticated request

        Args:
            method: HTTP method
            url: Path relative to the API root
            owner: Owner whose token authenticates the request
            expected: Status codes treated as success
            missing: Status codes mapped to a None return
            token: Explicit token, skipping the token callback

        Returns:
            Response, or None for a ``missing`` status

        Raises:
            TransportError: On network errors and unexpected statuses
        """
        await self.initialize()

        if token is None:
            token = await self.token_for(owner)
        headers = dict(kwargs.pop("headers", {}) or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if response.status_code in missing:
            return None
        if response.status_code not in expected:
            raise TransportError(
                f"{method} {url} returned {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json().get("message", response.text)
        except ValueError:
            return response.text

    async def list_branches(self, owner: str, repo: str) -> List[str]:
        branches = []
        page = 1

        while True:
            response = await self._request(
                "GET", f"/repos/{owner}/{repo}/branches", owner,
                missing=(404,),
                params={"per_page": GITHUB_PAGE_SIZE, "page": page},
            )
            if response is None:
                logger.debug("Repository %s/%s not found", owner, repo)
                return []

            data = response.json()
            branches.extend(item["name"] for item in data)
            if len(data) < GITHUB_PAGE_SIZE:
                return branches
            page += 1

    async def get_file(self, owner: str, repo: str, path: str, ref: str) -> Optional[bytes]:
        response = await self._request(
            "GET", f"/repos/{owner}/{repo}/contents/{path}", owner,
            missing=(404,),
            params={"ref": ref},
        )
        if response is None:
            return None

        data = response.json()
        if isinstance(data, list) or data.get("type") != "file":
            return None
        return base64.b64decode(data.get("content", ""))

    async def _ref_sha(self, owner: str, repo: str, branch: str) -> Optional[str]:
        response = await self._request(
            "GET", f"/repos/{owner}/{repo}/git/ref/heads/{branch}", owner,
            missing=(404,),
        )
        return None if response is None else response.json()["object"]["sha"]

    async def create_branch(self, owner: str, repo: str, branch: str,
                            base: str = DEFAULT_BASE_BRANCH) -> None:
        sha = await self._ref_sha(owner, repo, base)
        if sha is None:
            raise TransportError(f"Base branch {base} of {owner}/{repo} not found", status_code=404)

        await self._request(
            "POST", f"/repos/{owner}/{repo}/git/refs", owner,
            expected=(201,),
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )

    async def delete_branch(self, owner: str, repo: str, branch: str) -> bool:
        response = await self._request(
            "DELETE", f"/repos/{owner}/{repo}/git/refs/heads/{branch}", owner,
            expected=(204,),
            missing=(404, 422),
        )
        return response is not None

    async def repository_exists(self, owner: str, repo: str) -> bool:
        response = await self._request("GET", f"/repos/{owner}/{repo}", owner, missing=(404,))
        return response is not None

    async def create_repository(self, owner: str, repo: str, public: bool = False) -> None:
        payload = {"name": repo, "private": not public, "auto_init": True}

        response = await self._request(
            "POST", f"/orgs/{owner}/repos", owner,
            expected=(201,),
            missing=(404,),
            json=payload,
        )
        if response is None:
            # Not an organization: create under the authenticated user
            await self._request("POST", "/user/repos", owner, expected=(201,), json=payload)

    async def _file_sha(self, owner: str, repo: str, path: str, branch: str) -> Optional[str]:
        response = await self._request(
            "GET", f"/repos/{owner}/{repo}/contents/{path}", owner,
            missing=(404,),
            params={"ref": branch},
        )
        if response is None:
            return None
        data = response.json()
        return data.get("sha") if isinstance(data, dict) else None

    async def put_file(self, owner: str, repo: str, path: str, content: bytes,
                       branch: str, message: str) -> None:
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        sha = await self._file_sha(owner, repo, path, branch)
        if sha:
            payload["sha"] = sha

        await self._request(
            "PUT", f"/repos/{owner}/{repo}/contents/{path}", owner,
            expected=(200, 201),
            json=payload,
        )

    async def delete_file(self, owner: str, repo: str, path: str,
                          branch: str, message: str) -> bool:
        sha = await self._file_sha(owner, repo, path, branch)
        if not sha:
            return False

        await self._request(
            "DELETE", f"/repos/{owner}/{repo}/contents/{path}", owner,
            json={"message": message, "sha": sha, "branch": branch},
        )
        return True

    async def download_version(self, owner: str, repo: str, version: str,
                               destination: Path) -> Path:
        destination = Path(destination)
        ensure_directory(destination.parent)
        staging = Path(tempfile.mkdtemp(prefix=DOWNLOAD_STAGING_PREFIX, dir=destination.parent))

        try:
            archive = staging / f"{repo}-{version}.zip"
            response = await self._request(
                "GET", f"/repos/{owner}/{repo}/zipball/{version}", owner,
                missing=(404,),
                follow_redirects=True,
            )
            if response is None:
                raise TransportError(f"Version {version} of {owner}/{repo} not found", status_code=404)

            async with aiofiles.open(archive, 'wb') as f:
                await f.write(response.content)

            extracted = staging / "extracted"
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._extract, archive, extracted)

            # GitHub wraps the archive in a single "<owner>-<repo>-<sha>" directory
            entries = list(extracted.iterdir())
            root = entries[0] if len(entries) == 1 and entries[0].is_dir() else extracted
            replace_directory(root, destination)
        finally:
            remove_directory(staging)

        logger.info("Downloaded %s/%s@%s to %s", owner, repo, version, destination)
        return destination

    @staticmethod
    def _extract(archive: Path, target: Path) -> None:
        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(target)
        except zipfile.BadZipFile as e:
            raise TransportError(f"Downloaded archive is corrupt: {e}") from e

    async def verify_token(self, owner: str, token: str) -> bool:
        if not token:
            return False
        response = await self._request("GET", "/user", owner, token=token, missing=(401, 403))
        return response is not None

    async def _do_upload(self, owner: str, repo: str, branch: str,
                         files: Dict[str, bytes]) -> str:
        base_sha = await self._ref_sha(owner, repo, DEFAULT_BASE_BRANCH)
        if base_sha is None:
            raise TransportError(
                f"Base branch {DEFAULT_BASE_BRANCH} of {owner}/{repo} not found", status_code=404
            )

        logger.debug("Creating %d blobs for %s/%s", len(files), owner, repo)
        blobs = [
            asyncio.ensure_future(self._create_blob(owner, repo, content))
            for content in files.values()
        ]
        try:
            blob_shas = await asyncio.gather(*blobs)
        except BaseException:
            # No blob request may outlive the failed upload
            for task in blobs:
                task.cancel()
            await asyncio.gather(*blobs, return_exceptions=True)
            raise

        tree = [
            {"path": path, "mode": "100644", "type": "blob", "sha": sha}
            for path, sha in zip(files.keys(), blob_shas)
        ]
        response = await self._request(
            "POST", f"/repos/{owner}/{repo}/git/trees", owner,
            expected=(201,),
            json={"tree": tree},
        )
        tree_sha = response.json()["sha"]

        response = await self._request(
            "POST", f"/repos/{owner}/{repo}/git/commits", owner,
            expected=(201,),
            json={"message": f"branch: {branch}", "tree": tree_sha, "parents": [base_sha]},
        )
        commit_sha = response.json()["sha"]

        logger.debug("Setting branch %s to commit %s", branch, commit_sha)
        response = await self._request(
            "POST", f"/repos/{owner}/{repo}/git/refs", owner,
            expected=(201,),
            missing=(422,),
            json={"ref": f"refs/heads/{branch}", "sha": commit_sha},
        )
        if response is None:
            # Branch already exists: reset it
            await self._request(
                "PATCH", f"/repos/{owner}/{repo}/git/refs/heads/{branch}", owner,
                json={"sha": commit_sha, "force": True},
            )

        return commit_sha

    async def _create_blob(self, owner: str, repo: str, content: bytes) -> str:
        response = await self._request(
            "POST", f"/repos/{owner}/{repo}/git/blobs", owner,
            expected=(201,),
            json={"content": base64.b64encode(content).decode("ascii"), "encoding": "base64"},
        )
        return response.json()["sha"]
