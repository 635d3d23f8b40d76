"""Tool configuration models"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Any

from ..constants import (
    RegistryType,
    DEFAULT_API_URL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_PULL_BATCH_FACTOR,
    DEFAULT_PUSH_BATCH_FACTOR,
)


@dataclass
class RegistryConfig:
    """Where published utilities live"""

    type: str = RegistryType.GITHUB.value
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self):
        """Validate registry configuration"""
        RegistryType(self.type)
        if self.timeout <= 0:
            raise ValueError("Registry timeout must be positive")

    @property
    def registry_type(self) -> RegistryType:
        """Get RegistryType enum"""
        return RegistryType(self.type)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "type": self.type,
            "api_url": self.api_url,
            "timeout": self.timeout,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RegistryConfig':
        """Create from dictionary"""
        return cls(
            type=data.get("type", RegistryType.GITHUB.value),
            api_url=data.get("api_url", DEFAULT_API_URL),
            timeout=float(data.get("timeout", DEFAULT_REQUEST_TIMEOUT)),
        )


@dataclass
class ParallelismConfig:
    """Batch size multipliers applied to the CPU count"""

    pull_factor: int = DEFAULT_PULL_BATCH_FACTOR
    push_factor: int = DEFAULT_PUSH_BATCH_FACTOR

    def to_dict(self) -> Dict[str, Any]:
        return {"pull_factor": self.pull_factor, "push_factor": self.push_factor}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParallelismConfig':
        return cls(
            pull_factor=max(1, int(data.get("pull_factor", DEFAULT_PULL_BATCH_FACTOR))),
            push_factor=max(1, int(data.get("push_factor", DEFAULT_PUSH_BATCH_FACTOR))),
        )


@dataclass
class ToolConfig:
    """User-level configuration of utility-tool"""

    registry: RegistryConfig = field(default_factory=RegistryConfig)
    parallelism: ParallelismConfig = field(default_factory=ParallelismConfig)
    default_owner: Optional[str] = None
    log_level: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "registry": self.registry.to_dict(),
            "parallelism": self.parallelism.to_dict(),
        }
        if self.default_owner:
            data["default_owner"] = self.default_owner
        if self.log_level:
            data["log_level"] = self.log_level
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ToolConfig':
        """Create from dictionary"""
        data = data or {}
        return cls(
            registry=RegistryConfig.from_dict(data.get("registry") or {}),
            parallelism=ParallelismConfig.from_dict(data.get("parallelism") or {}),
            default_owner=data.get("default_owner"),
            log_level=data.get("log_level"),
        )
