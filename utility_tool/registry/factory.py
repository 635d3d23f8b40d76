"""Remote registry factory"""

from typing import Dict, Any, Optional, Type

from .base import RemoteRegistry, TokenCallback
from .github import GitHubRegistry
from .memory import MemoryRegistry
from ..constants import RegistryType
from ..models.config import RegistryConfig


class RegistryFactory:
    """Factory for creating remote registry instances"""

    # Registry of implementations
    _registries: Dict[RegistryType, Type[RemoteRegistry]] = {
        RegistryType.GITHUB: GitHubRegistry,
        RegistryType.MEMORY: MemoryRegistry,
    }

    @classmethod
    def create_from_config(cls, config: RegistryConfig,
                           token_callback: Optional[TokenCallback] = None) -> RemoteRegistry:
        """Create a registry from configuration

        Args:
            config: Registry configuration
            token_callback: Coroutine returning the token for an owner

        Returns:
            Registry instance

        Raises:
            ValueError: If registry type is not supported
        """
        return cls.create_from_dict(config.type, config.to_dict(), token_callback)

    @classmethod
    def create_from_dict(cls, registry_type: str, config: Dict[str, Any],
                         token_callback: Optional[TokenCallback] = None) -> RemoteRegistry:
        """Create a registry from type and configuration dict

        Args:
            registry_type: Registry type string
            config: Configuration dictionary
            token_callback: Coroutine returning the token for an owner

        Returns:
            Registry instance

        Raises:
            ValueError: If registry type is not supported
        """
        try:
            type_enum = RegistryType(registry_type)
        except ValueError:
            raise ValueError(f"Invalid registry type: {registry_type}")

        if type_enum not in cls._registries:
            raise ValueError(f"Unsupported registry type: {registry_type}")

        registry_class = cls._registries[type_enum]
        return registry_class(config, token_callback)
