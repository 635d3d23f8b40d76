"""Tests for the tool configuration and project configuration."""

import json

import pytest

from utility_tool.api.exceptions import ConfigError
from utility_tool.constants import DEFAULT_API_URL
from utility_tool.models.config import ToolConfig
from utility_tool.services.config_service import ConfigService


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "tool-home" / "config.yaml"


# --- Tool Config Tests ---


def test_missing_file_yields_defaults(config_path):
    config = ConfigService(config_path).load_config()

    assert config.registry.api_url == DEFAULT_API_URL
    assert config.registry.type == "github"
    assert config.default_owner is None
    assert config.parallelism.pull_factor == 4


def test_default_path_lives_in_tool_home(isolated_tool_home):
    assert ConfigService().config_path == isolated_tool_home.resolve() / "config.yaml"


def test_yaml_with_environment_variables(config_path, monkeypatch):
    monkeypatch.setenv("TEST_API_HOST", "ghe.example.com")
    config_path.parent.mkdir(parents=True)
    config_path.write_text(
        "registry:\n"
        "  type: github\n"
        "  api_url: https://${TEST_API_HOST}/api/v3\n"
        "  timeout: 5\n"
        "parallelism:\n"
        "  pull_factor: 0\n"
        "default_owner: acme\n"
    )

    config = ConfigService(config_path).load_config()

    assert config.registry.api_url == "https://ghe.example.com/api/v3"
    assert config.registry.timeout == 5.0
    assert config.parallelism.pull_factor == 1
    assert config.default_owner == "acme"


def test_invalid_yaml(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("registry: [unclosed\n")

    with pytest.raises(ConfigError):
        ConfigService(config_path).load_config()


def test_non_mapping_yaml(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("- a\n- b\n")

    with pytest.raises(ConfigError, match="mapping"):
        ConfigService(config_path).load_config()


def test_unknown_registry_type(config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("registry:\n  type: gitlab\n")

    with pytest.raises(ConfigError):
        ConfigService(config_path).load_config()


def test_environment_overrides(config_path, monkeypatch):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("default_owner: acme\n")
    monkeypatch.setenv("UTILITY_TOOL_DEFAULT_OWNER", "initech")
    monkeypatch.setenv("UTILITY_TOOL_API_URL", "http://localhost:9000")
    monkeypatch.setenv("UTILITY_TOOL_LOG_LEVEL", "DEBUG")

    config = ConfigService(config_path).load_config()

    assert config.default_owner == "initech"
    assert config.registry.api_url == "http://localhost:9000"
    assert config.log_level == "DEBUG"


def test_save_then_load(config_path):
    service = ConfigService(config_path)
    config = ToolConfig.from_dict({"default_owner": "acme", "registry": {"type": "memory"}})

    service.save_config(config)
    loaded = ConfigService(config_path).load_config()

    assert loaded.default_owner == "acme"
    assert loaded.registry.type == "memory"


# --- Project Config Tests ---


def test_configure_project_adds_namespace(tmp_path, config_path):
    (tmp_path / "package.json").write_text(json.dumps({"name": "demo-app", "private": True}))

    manifest = ConfigService(config_path).configure_project(tmp_path, org="acme")

    data = json.loads((tmp_path / "package.json").read_text())
    assert data["name"] == "demo-app"
    assert data["private"] is True
    assert data["utility-tool"]["org"] == "acme"
    assert data["utility-tool"]["dest"] == "./utils"
    assert manifest.dest == "./utils"
    assert (tmp_path / "utils").is_dir()


def test_configure_project_keeps_existing_fields(project, config_path):
    project.write_manifest(org="initech", dest="./lib")

    ConfigService(config_path).configure_project(project.root, org="acme", dest="./other")

    namespace = project.manifest()["utility-tool"]
    assert namespace["org"] == "initech"
    assert namespace["dest"] == "./lib"
    assert (project.root / "lib").is_dir()


def test_configure_project_uses_default_owner(tmp_path, config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text("default_owner: initech\n")

    ConfigService(config_path).configure_project(tmp_path, dest="./components")

    data = json.loads((tmp_path / "package.json").read_text())
    assert data["utility-tool"]["org"] == "initech"
    assert (tmp_path / "components").is_dir()


def test_configure_project_rejects_bad_owner(tmp_path, config_path):
    with pytest.raises(ConfigError):
        ConfigService(config_path).configure_project(tmp_path, org="not an owner")
