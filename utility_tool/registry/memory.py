"""In-memory registry.

MemoryRegistry accepts pre-configured repositories in its constructor and
records every call, so engines can be exercised without a network. It is
also selectable through ``registry.type: memory`` for dry runs.
"""

import logging
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Any, Tuple

import aiofiles

from .base import RemoteRegistry, TokenCallback
from ..api.exceptions import TransportError
from ..constants import UTILITY_DESCRIPTOR_FILE, DEFAULT_BASE_BRANCH, DOWNLOAD_STAGING_PREFIX
from ..models.utility import UtilityDescriptor
from ..utils.file_utils import ensure_directory, remove_directory, replace_directory

logger = logging.getLogger(__name__)

UPLOAD_STAGES = ("blobs", "tree", "commit", "ref", "after_ref")

Branches = Dict[str, Dict[str, bytes]]


def utility_branch(descriptor: UtilityDescriptor, files: Dict[str, Any] = None) -> Dict[str, bytes]:
    """
    Build the content of a version branch

    Args:
        descriptor: Descriptor stored as ``utils.json``
        files: Relative path -> text or bytes

    Returns:
        Relative path -> bytes
    """
    content = {}
    for name, data in (files or {}).items():
        content[name] = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    content[UTILITY_DESCRIPTOR_FILE] = descriptor.to_json().encode("utf-8")
    return content


class MemoryRegistry(RemoteRegistry):
    """In-memory implementation of the remote registry"""

    def __init__(
        self,
        config: Dict[str, Any] = None,
        token_callback: Optional[TokenCallback] = None,
        *,
        repositories: Optional[Dict[str, Branches]] = None,
        public: Optional[Dict[str, bool]] = None,
        valid_tokens: Optional[Dict[str, str]] = None,
        fail_upload_at: Optional[str] = None,
    ):
        """Create MemoryRegistry with pre-configured state.

        Args:
            config: Registry configuration (unused)
            token_callback: Coroutine returning the token for an owner
            repositories: ``"owner/repo"`` -> branch -> path -> bytes
            public: ``"owner/repo"`` -> visibility
            valid_tokens: owner -> accepted token; None accepts any non-empty token
            fail_upload_at: Upload stage (one of ``UPLOAD_STAGES``) that raises
        """
        super().__init__(config, token_callback)
        if fail_upload_at is not None and fail_upload_at not in UPLOAD_STAGES:
            raise ValueError(f"Unknown upload stage: {fail_upload_at}")

        self._repositories: Dict[str, Branches] = {
            key: {branch: dict(files) for branch, files in branches.items()}
            for key, branches in (repositories or {}).items()
        }
        self._public = dict(public or {})
        self._valid_tokens = valid_tokens
        self.fail_upload_at = fail_upload_at
        self._calls: List[Tuple[str, str, str, Optional[str]]] = []

    @property
    def calls(self) -> List[Tuple[str, str, str, Optional[str]]]:
        """Recorded calls as ``(operation, owner, repo, detail)``"""
        return self._calls

    def calls_to(self, operation: str) -> List[Tuple[str, str, str, Optional[str]]]:
        return [call for call in self._calls if call[0] == operation]

    def branches(self, owner: str, repo: str) -> Branches:
        """Read-only view of a repository's branches for assertions"""
        return self._repositories.get(f"{owner}/{repo}", {})

    def is_public(self, owner: str, repo: str) -> Optional[bool]:
        return self._public.get(f"{owner}/{repo}")

    def _record(self, operation: str, owner: str, repo: str, detail: str = None) -> None:
        self._calls.append((operation, owner, repo, detail))

    def _repository(self, owner: str, repo: str) -> Branches:
        key = f"{owner}/{repo}"
        if key not in self._repositories:
            raise TransportError(f"Repository {key} not found", status_code=404)
        return self._repositories[key]

    async def list_branches(self, owner: str, repo: str) -> List[str]:
        self._record("list_branches", owner, repo)
        return list(self._repositories.get(f"{owner}/{repo}", {}))

    async def get_file(self, owner: str, repo: str, path: str, ref: str) -> Optional[bytes]:
        self._record("get_file", owner, repo, f"{ref}:{path}")
        return self._repositories.get(f"{owner}/{repo}", {}).get(ref, {}).get(path)

    async def create_branch(self, owner: str, repo: str, branch: str,
                            base: str = DEFAULT_BASE_BRANCH) -> None:
        self._record("create_branch", owner, repo, branch)
        branches = self._repository(owner, repo)
        if base not in branches:
            raise TransportError(f"Base branch {base} not found", status_code=404)
        if branch in branches:
            raise TransportError(f"Reference refs/heads/{branch} already exists", status_code=422)
        branches[branch] = dict(branches[base])

    async def delete_branch(self, owner: str, repo: str, branch: str) -> bool:
        self._record("delete_branch", owner, repo, branch)
        branches = self._repositories.get(f"{owner}/{repo}", {})
        return branches.pop(branch, None) is not None

    async def repository_exists(self, owner: str, repo: str) -> bool:
        return f"{owner}/{repo}" in self._repositories

    async def create_repository(self, owner: str, repo: str, public: bool = False) -> None:
        self._record("create_repository", owner, repo, "public" if public else "private")
        key = f"{owner}/{repo}"
        self._repositories.setdefault(key, {DEFAULT_BASE_BRANCH: {"README.md": f"# {repo}\n".encode("utf-8")}})
        self._public[key] = public

    async def put_file(self, owner: str, repo: str, path: str, content: bytes,
                       branch: str, message: str) -> None:
        self._record("put_file", owner, repo, f"{branch}:{path}")
        branches = self._repository(owner, repo)
        if branch not in branches:
            raise TransportError(f"Branch {branch} not found", status_code=404)
        branches[branch][path] = bytes(content)

    async def delete_file(self, owner: str, repo: str, path: str,
                          branch: str, message: str) -> bool:
        self._record("delete_file", owner, repo, f"{branch}:{path}")
        files = self._repositories.get(f"{owner}/{repo}", {}).get(branch, {})
        return files.pop(path, None) is not None

    async def download_version(self, owner: str, repo: str, version: str,
                               destination: Path) -> Path:
        self._record("download_version", owner, repo, version)
        files = self._repository(owner, repo).get(version)
        if files is None:
            raise TransportError(f"Branch {version} of {owner}/{repo} not found", status_code=404)

        destination = Path(destination)
        ensure_directory(destination.parent)
        staging = Path(tempfile.mkdtemp(prefix=DOWNLOAD_STAGING_PREFIX, dir=destination.parent))
        try:
            extracted = staging / repo
            for name, content in files.items():
                target = ensure_directory((extracted / name).parent) / Path(name).name
                async with aiofiles.open(target, 'wb') as f:
                    await f.write(content)
            ensure_directory(extracted)
            replace_directory(extracted, destination)
        finally:
            remove_directory(staging)

        return destination

    async def verify_token(self, owner: str, token: str) -> bool:
        self._record("verify_token", owner, "", None)
        if not token:
            return False
        if self._valid_tokens is None:
            return True
        return self._valid_tokens.get(owner) == token

    async def _do_upload(self, owner: str, repo: str, branch: str,
                         files: Dict[str, bytes]) -> str:
        self._record("upload", owner, repo, branch)
        branches = self._repository(owner, repo)

        for stage in ("blobs", "tree", "commit"):
            self._fail_if(stage)

        self._fail_if("ref")
        if branch in branches:
            raise TransportError(f"Reference refs/heads/{branch} already exists", status_code=422)
        branches[branch] = dict(files)

        self._fail_if("after_ref")
        return f"memory-{owner}-{repo}-{branch}"

    def _fail_if(self, stage: str) -> None:
        if self.fail_upload_at == stage:
            raise TransportError(f"Injected failure at {stage}", status_code=500)

