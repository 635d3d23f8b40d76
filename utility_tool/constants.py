"""Global constants for utility-tool"""

import re
from enum import Enum

APP_NAME = "utility-tool"

# On-disk formats
UTILITY_DESCRIPTOR_FILE = "utils.json"
PROJECT_MANIFEST_FILE = "package.json"
MANIFEST_NAMESPACE = "utility-tool"
JSON_INDENT = 4

# Defaults
DEFAULT_UTILITY_VERSION = "0.1.0"
DEFAULT_BASE_BRANCH = "main"
DEFAULT_INSTALLATION_PATH = "./utils"
DEFAULT_UPDATE_POLICY = "minor"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds
DEFAULT_PULL_BATCH_FACTOR = 4
DEFAULT_PUSH_BATCH_FACTOR = 2
DEFAULT_CHUNK_SIZE = 64 * 1024
MAX_TOKEN_ATTEMPTS = 3

# Tool home
TOOL_HOME_DIR = ".utility-tool"
TOOL_CONFIG_FILE = "config.yaml"
TOKENS_FILE = "tokens.yaml"

# Directories never descended into while discovering or hashing utilities
EXCLUDED_DIR_NAMES = (
    "node_modules",
    ".git",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
)

# Prefix of the temporary directories downloads are staged in
DOWNLOAD_STAGING_PREFIX = ".utility-tool-download-"

LOG_FORMAT = "%(message)s"

# GitHub REST
GITHUB_API_VERSION = "2022-11-28"
GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_PAGE_SIZE = 100


class UpdatePolicy(Enum):
    """Rule deciding which remote version a pull selects"""
    MAJOR = "major"
    MINOR = "minor"
    BATCH = "batch"
    FIXED = "fixed"


class RegistryType(Enum):
    GITHUB = "github"
    MEMORY = "memory"


# Error codes
class ErrorCode:
    CONFIG_ERROR = "UT001"
    PROJECT_NOT_FOUND = "UT002"
    VALIDATION_FAILED = "UT003"
    TRANSPORT_FAILED = "UT004"
    UTILITY_NOT_FOUND = "UT010"
    VERSION_NOT_FOUND = "UT011"
    USER_CANCELLED = "UT020"


# Environment variables
ENV_TOOL_HOME = "UTILITY_TOOL_HOME"
ENV_CONFIG_PATH = "UTILITY_TOOL_CONFIG"
ENV_API_URL = "UTILITY_TOOL_API_URL"
ENV_DEFAULT_OWNER = "UTILITY_TOOL_DEFAULT_OWNER"
ENV_LOG_LEVEL = "UTILITY_TOOL_LOG_LEVEL"
ENV_TOKEN = "UTILITY_TOOL_TOKEN"
ENV_TOKEN_PREFIX = "UTILITY_TOOL_TOKEN_"

# Validation patterns
VERSION_PATTERN = re.compile(r"^(?P<major>[0-9]+)\.(?P<minor>[0-9]+)\.(?P<patch>[0-9]+)$")
UTILITY_NAME_PATTERN = re.compile(r"^[_\-a-zA-Z][_\-a-zA-Z0-9]{4,}$")
OWNER_NAME_PATTERN = re.compile(r"^[_\-a-zA-Z0-9]+$")
OWNER_UTILITY_PATTERN = re.compile(r"^([_\-a-zA-Z0-9]+)/([_\-a-zA-Z][_\-a-zA-Z0-9]{4,})$")

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_INFO = "ℹ"
EMOJI_ARROW = "→"

# Messages templates
MSG_NOT_FOUND_REMOTELY = "Remote utility {utility} is not detected and has no versions"
MSG_UP_TO_DATE = "utility {utility} is up to date: {version}"
MSG_LOCAL_AHEAD = (
    "utility {utility}: local version {local} is greater than remote {remote}, "
    "please push updates"
)
MSG_PUSH_FIRST = (
    "utility {utility} at {path}: current version {version} does not exist remotely, "
    "please push"
)
MSG_REMOTE_AHEAD = (
    "utility {utility}: remote version {remote} is greater than the local version "
    "{local}, pull first"
)
MSG_VERSION_NOT_BUMPED = (
    "utility {utility}: remote content at {version} differs from local content, "
    "update the version before pushing"
)
MSG_HASH_MATCH = 'utility "{utility}" hash match!. no changes detected'
MSG_HASH_MISMATCH = "{utility} hash mismatch, updating on disk config file..."

# Interactive prompts
PROMPT_OWNER = "Please enter organization/owner name (who owns the utility)"
PROMPT_INSTALLATION_PATH = "Where do you want to install this utility (relative to project root)"
PROMPT_OVERRIDE_OWNER = (
    'utility {utility} exists on the project with owner "{current}" instead of '
    '"{provided}", use the owner you entered?'
)
PROMPT_PUBLIC_REPO = "Is this utility repository public?"
PROMPT_TOKEN = (
    "Please provide a personal access token for {owner} "
    "(create one at https://github.com/settings/tokens)"
)
PROMPT_STORE_TOKEN = "Would you like to store the token for {owner}?"
