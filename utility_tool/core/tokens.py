"""Registry credentials"""

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional

import yaml

from .path_resolver import get_tokens_path
from .prompt import Prompter
from ..api.exceptions import ConfigError
from ..constants import (
    ENV_TOKEN,
    ENV_TOKEN_PREFIX,
    MAX_TOKEN_ATTEMPTS,
    PROMPT_TOKEN,
    PROMPT_STORE_TOKEN,
)
from ..utils.async_utils import NamedLocks, locked
from ..utils.file_utils import ensure_directory

logger = logging.getLogger(__name__)


class TokenStore(ABC):
    """Persistent owner -> token mapping"""

    @abstractmethod
    def get(self, owner: str) -> Optional[str]:
        pass

    @abstractmethod
    def put(self, owner: str, token: str) -> bool:
        """
        Store a token

        Returns:
            True if the store accepted it
        """
        pass


class EnvironmentTokenStore(TokenStore):
    """Read-only tokens from ``UTILITY_TOOL_TOKEN_<OWNER>`` or ``UTILITY_TOOL_TOKEN``"""

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self.environ = environ if environ is not None else os.environ

    @staticmethod
    def variable_for(owner: str) -> str:
        return ENV_TOKEN_PREFIX + re.sub(r"[^A-Z0-9]", "_", owner.upper())

    def get(self, owner: str) -> Optional[str]:
        return self.environ.get(self.variable_for(owner)) or self.environ.get(ENV_TOKEN) or None

    def put(self, owner: str, token: str) -> bool:
        return False


class FileTokenStore(TokenStore):
    """Tokens kept in a YAML file readable only by the user"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else get_tokens_path()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, 'r') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Token file {self.path} is malformed")
        return {str(k): str(v) for k, v in data.items()}

    def get(self, owner: str) -> Optional[str]:
        return self._load().get(owner)

    def put(self, owner: str, token: str) -> bool:
        tokens = self._load()
        tokens[owner] = token

        ensure_directory(self.path.parent)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w') as f:
            yaml.safe_dump(tokens, f, default_flow_style=False)
        os.chmod(self.path, 0o600)

        logger.info("Stored token for %s in %s", owner, self.path)
        return True


class ChainedTokenStore(TokenStore):
    """First store that knows a token wins; writes go to the first store accepting them"""

    def __init__(self, stores: List[TokenStore]):
        self.stores = stores

    def get(self, owner: str) -> Optional[str]:
        for store in self.stores:
            token = store.get(owner)
            if token:
                return token
        return None

    def put(self, owner: str, token: str) -> bool:
        return any(store.put(owner, token) for store in self.stores)


class TokenProvider:
    """Supplies a verified token per owner, asking the user at most once"""

    def __init__(self,
                 store: TokenStore,
                 verifier: Callable[[str, str], Awaitable[bool]],
                 prompter: Prompter,
                 locks: Optional[NamedLocks] = None):
        """
        Args:
            store: Where tokens are looked up and saved
            verifier: Coroutine ``(owner, token) -> bool`` checking a token
            prompter: Used to ask for a token
            locks: Shared named locks
        """
        self.store = store
        self.verifier = verifier
        self.prompter = prompter
        self.locks = locks or NamedLocks()
        self._cache: Dict[str, str] = {}

    @locked("getToken")
    async def get_token(self, owner: str) -> str:
        """
        Get the token for an owner

        Order: session cache, token store, interactive prompt.

        Raises:
            ConfigError: If no valid token was provided
        """
        if owner in self._cache:
            return self._cache[owner]

        token = self.store.get(owner)
        if token:
            self._cache[owner] = token
            return token

        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            token = await self.prompter.ask(PROMPT_TOKEN.format(owner=owner), password=True)
            if await self.verifier(owner, token):
                break
            logger.error("Token for %s was rejected (attempt %d/%d)", owner, attempt, MAX_TOKEN_ATTEMPTS)
        else:
            raise ConfigError(f"No valid token provided for {owner}")

        if await self.prompter.confirm(PROMPT_STORE_TOKEN.format(owner=owner), default=True):
            if not self.store.put(owner, token):
                logger.warning("Token store is read-only, token kept for this session only")

        self._cache[owner] = token
        return token
