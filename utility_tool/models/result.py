"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any


class PullState(Enum):
    """Outcome of pulling a single utility"""
    PULLED = "pulled"
    UP_TO_DATE = "up_to_date"
    DIVERGED_AHEAD = "diverged_ahead"
    DIVERGED_UNPUBLISHED = "diverged_unpublished"
    NOT_FOUND = "not_found"
    PRIVATE = "private"
    INVALID = "invalid"

    @property
    def is_failure(self) -> bool:
        return self in (PullState.NOT_FOUND, PullState.INVALID)

    @property
    def is_warning(self) -> bool:
        return self in (PullState.DIVERGED_AHEAD, PullState.DIVERGED_UNPUBLISHED)


class PushState(Enum):
    """Outcome of pushing a single utility"""
    PUBLISHED = "published"
    UP_TO_DATE = "up_to_date"
    REMOTE_AHEAD = "remote_ahead"
    VERSION_NOT_BUMPED = "version_not_bumped"
    REMOTE_CORRUPT = "remote_corrupt"
    PRIVATE = "private"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    FAILED = "failed"

    @property
    def is_failure(self) -> bool:
        return self in (PushState.NOT_FOUND, PushState.INVALID, PushState.FAILED)

    @property
    def is_warning(self) -> bool:
        return self in (
            PushState.REMOTE_AHEAD,
            PushState.VERSION_NOT_BUMPED,
            PushState.REMOTE_CORRUPT,
        )


class CleanupState(Enum):
    """Outcome of inspecting an unreferenced local utility"""
    REMOVED = "removed"
    KEPT_UNPUBLISHED = "kept_unpublished"
    KEPT_CORRUPT_REMOTE = "kept_corrupt_remote"
    KEPT_MODIFIED = "kept_modified"

    @property
    def is_failure(self) -> bool:
        return False

    @property
    def is_warning(self) -> bool:
        return self is not CleanupState.REMOVED


@dataclass
class PullResult:
    """Result of pulling one utility"""

    name: str
    state: PullState
    owner: Optional[str] = None
    version: Optional[str] = None
    previous_version: Optional[str] = None
    path: Optional[Path] = None
    main: bool = False
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "name": self.name,
            "state": self.state.value,
            "owner": self.owner,
            "version": self.version,
            "previous_version": self.previous_version,
            "path": str(self.path) if self.path else None,
            "main": self.main,
            "message": self.message,
        }


@dataclass
class PushResult:
    """Result of pushing one utility"""

    name: str
    state: PushState
    owner: Optional[str] = None
    version: Optional[str] = None
    remote_version: Optional[str] = None
    main: bool = False
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "name": self.name,
            "state": self.state.value,
            "owner": self.owner,
            "version": self.version,
            "remote_version": self.remote_version,
            "main": self.main,
            "message": self.message,
        }


@dataclass
class CleanupResult:
    """Result of garbage collecting one utility"""

    name: str
    state: CleanupState
    path: Path
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.value,
            "path": str(self.path),
            "message": self.message,
        }


@dataclass
class CheckResult:
    """Result of recomputing a utility hash"""

    name: str
    matched: bool
    hash: str
    path: Path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "matched": self.matched,
            "hash": self.hash,
            "path": str(self.path),
        }


@dataclass
class SyncReport:
    """Aggregated results of one top-level command"""

    pulls: List[PullResult] = field(default_factory=list)
    pushes: List[PushResult] = field(default_factory=list)
    cleanups: List[CleanupResult] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    def add(self, result) -> None:
        """Record a pull, push or cleanup result"""
        if isinstance(result, PullResult):
            self.pulls.append(result)
        elif isinstance(result, PushResult):
            self.pushes.append(result)
        elif isinstance(result, CleanupResult):
            self.cleanups.append(result)
        else:
            raise TypeError(f"Unsupported result type: {type(result).__name__}")

    @property
    def results(self) -> list:
        return [*self.pulls, *self.pushes, *self.cleanups]

    @property
    def failures(self) -> list:
        return [r for r in self.results if r.state.is_failure]

    @property
    def warnings(self) -> list:
        return [r for r in self.results if r.state.is_warning]

    @property
    def is_success(self) -> bool:
        return not self.failures

    @property
    def duration(self) -> Optional[float]:
        """Get operation duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def complete(self) -> None:
        self.end_time = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "pulls": [r.to_dict() for r in self.pulls],
            "pushes": [r.to_dict() for r in self.pushes],
            "cleanups": [r.to_dict() for r in self.cleanups],
            "success": self.is_success,
            "duration": self.duration,
        }
