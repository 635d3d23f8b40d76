"""Configuration management service"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from ..api.exceptions import ConfigError
from ..constants import (
    DEFAULT_INSTALLATION_PATH,
    ENV_API_URL,
    ENV_DEFAULT_OWNER,
    ENV_LOG_LEVEL,
    OWNER_NAME_PATTERN,
)
from ..core.path_resolver import get_tool_config_path
from ..models.config import ToolConfig
from ..models.manifest import ProjectManifest
from ..utils.file_utils import ensure_directory

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for the user-level tool configuration and the manifest namespace"""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config service

        Args:
            config_path: Tool configuration file (defaults to the tool home)
        """
        self.config_path = Path(config_path) if config_path else get_tool_config_path()
        self._config: Optional[ToolConfig] = None

    @property
    def config(self) -> ToolConfig:
        """Get current configuration (lazy load)"""
        if self._config is None:
            self.load_config()
        return self._config

    def load_config(self) -> ToolConfig:
        """Load configuration from file and environment

        A missing file yields defaults. Environment variables referenced in
        the file are expanded, then ``UTILITY_TOOL_*`` overrides are applied.

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If the file is not valid YAML or holds invalid values
        """
        data = {}
        if self.config_path.exists():
            with open(self.config_path, 'r') as f:
                content = f.read()

            content = os.path.expandvars(content)

            try:
                data = yaml.safe_load(content) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid configuration file {self.config_path}: {e}")

            if not isinstance(data, dict):
                raise ConfigError(f"Configuration file {self.config_path} must contain a mapping")

        try:
            config = ToolConfig.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration in {self.config_path}: {e}")

        self._apply_environment(config)
        self._config = config
        return config

    @staticmethod
    def _apply_environment(config: ToolConfig) -> None:
        api_url = os.environ.get(ENV_API_URL)
        if api_url:
            config.registry.api_url = api_url

        owner = os.environ.get(ENV_DEFAULT_OWNER)
        if owner:
            config.default_owner = owner

        log_level = os.environ.get(ENV_LOG_LEVEL)
        if log_level:
            config.log_level = log_level

    def save_config(self, config: Optional[ToolConfig] = None) -> None:
        """Save configuration to file

        Args:
            config: Configuration to save (uses current if not provided)
        """
        if config:
            self._config = config

        if not self._config:
            raise ValueError("No configuration to save")

        ensure_directory(self.config_path.parent)
        with open(self.config_path, 'w') as f:
            yaml.dump(self._config.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info("Configuration saved to %s", self.config_path)

    def configure_project(self, project_root: Path,
                          org: Optional[str] = None,
                          dest: Optional[str] = None) -> ProjectManifest:
        """Add the tool namespace to a project manifest

        Fields already present are kept; missing ones get defaults.

        Args:
            project_root: Project root
            org: Default owner (falls back to the configured default owner)
            dest: Default installation directory

        Returns:
            The updated manifest

        Raises:
            ConfigError: If the owner name is malformed
        """
        manifest = ProjectManifest.load(project_root)

        if manifest.org is None:
            org = org or self.config.default_owner
            if org is not None and not OWNER_NAME_PATTERN.fullmatch(org):
                raise ConfigError(f'"{org}" is not a valid owner name')
            manifest.org = org
        if manifest.dest is None:
            manifest.dest = dest or DEFAULT_INSTALLATION_PATH

        manifest.has_namespace = True
        if manifest.save():
            logger.info("Updated %s", manifest.path)

        ensure_directory(Path(project_root) / manifest.dest)
        return manifest
