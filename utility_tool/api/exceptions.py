"""Exception definitions for utility-tool API"""

from ..constants import ErrorCode


class UtilityToolError(Exception):
    """Base exception for utility-tool"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class ValidationError(UtilityToolError):
    """Malformed version, utility name or owner"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.VALIDATION_FAILED)


class UtilityNotFoundError(UtilityToolError):
    """Utility absent locally or remotely"""

    def __init__(self, name: str, where: str = "locally"):
        message = f"could not find utility with name {name} ({where})"
        super().__init__(message, ErrorCode.UTILITY_NOT_FOUND)
        self.name = name
        self.where = where


class VersionNotFoundError(UtilityToolError):
    """Requested version is not published"""

    def __init__(self, identifier: str, version: str):
        message = f"version {version} of {identifier} does not exist remotely"
        super().__init__(message, ErrorCode.VERSION_NOT_FOUND)
        self.identifier = identifier
        self.version = version


class TransportError(UtilityToolError):
    """Remote registry unreachable or rejected a request"""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message, ErrorCode.TRANSPORT_FAILED)
        self.status_code = status_code


class ConfigError(UtilityToolError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_ERROR)


class ProjectNotFoundError(ConfigError):
    """Project root not found error"""

    def __init__(self, message: str = None):
        if message is None:
            message = (
                "No project root found. Please ensure:\n"
                "1. You are in a project directory\n"
                "2. The project root contains package.json\n"
                "3. Or use --project-root parameter to specify project location\n"
            )
        super().__init__(message)
        self.error_code = ErrorCode.PROJECT_NOT_FOUND


class UserCancelledError(UtilityToolError):
    """User cancelled the operation"""

    def __init__(self):
        super().__init__("Operation cancelled by user", ErrorCode.USER_CANCELLED)
